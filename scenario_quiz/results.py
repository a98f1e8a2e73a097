from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from .catalog import CompetencyId, ContentCatalog
from .score_tracker import ResultsSnapshot


class PerformanceBadge(StrEnum):
    WELL_DONE = "Well Done"
    GOOD_JOB = "Good Job"
    ALMOST_THERE = "Almost There"
    WORTH_A_RETRY = "Worth a Retry"


def badge_for_percentage(percentage: int) -> PerformanceBadge:
    if percentage >= 100:
        return PerformanceBadge.WELL_DONE
    if percentage >= 80:
        return PerformanceBadge.GOOD_JOB
    if percentage >= 50:
        return PerformanceBadge.ALMOST_THERE
    return PerformanceBadge.WORTH_A_RETRY


@dataclass(frozen=True, slots=True)
class CompetencyRow:
    competency: CompetencyId
    name: str
    percentage: int


@dataclass(frozen=True, slots=True)
class ResultsReport:
    """Display-ready summary of a finished scenario.

    Rows follow the fixed competency order so the report layout is stable
    regardless of how the content lists its competencies.
    """

    title: str
    overall_percentage: int
    badge: PerformanceBadge
    competencies: tuple[CompetencyRow, ...]
    total_score: int
    questions_answered: int
    answer_path: str


def build_results_report(results: ResultsSnapshot, catalog: ContentCatalog) -> ResultsReport:
    """Build a ResultsReport from a tracker snapshot."""

    rows = tuple(
        CompetencyRow(
            competency=competency,
            name=catalog.competency_name(competency),
            percentage=int(results.competency_percentages.get(competency, 0)),
        )
        for competency in CompetencyId
    )
    overall = int(results.overall_percentage)
    return ResultsReport(
        title=catalog.title,
        overall_percentage=overall,
        badge=badge_for_percentage(overall),
        competencies=rows,
        total_score=int(results.total_score),
        questions_answered=int(results.total_questions),
        answer_path=" -> ".join(results.path),
    )
