"""Answer tracking and competency scoring for the branching scenario.

Scoring rules:

* An option's tier is encoded by the last character of its id: ``a`` is
  optimal (+10), ``b`` is sub-optimal (+7), anything else is non-optimal (-4).
* A question's cumulative score only moves the first time a given option is
  tried for it. Retrying a previously chosen option adds nothing.
* Competency aggregates are derived: they are rebuilt from the per-question
  records after every answer and never edited directly.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from .catalog import CompetencyId, ContentCatalog, OutcomeType

logger = logging.getLogger(__name__)

MAX_POINTS_PER_QUESTION = 10

POINTS_BY_TIER: dict[OutcomeType, int] = {
    OutcomeType.OPTIMAL: 10,
    OutcomeType.SUB_OPTIMAL: 7,
    OutcomeType.NON_OPTIMAL: -4,
}


def tier_for_option(option_id: str) -> OutcomeType:
    if option_id.endswith("a"):
        return OutcomeType.OPTIMAL
    if option_id.endswith("b"):
        return OutcomeType.SUB_OPTIMAL
    return OutcomeType.NON_OPTIMAL


def points_for_option(option_id: str) -> int:
    return POINTS_BY_TIER[tier_for_option(option_id)]


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def percentage(score: int, question_count: int) -> int:
    """Percentage of the optimal score, clamped to [0, 100]."""

    if question_count <= 0:
        return 0
    raw = round_half_up(score / (question_count * MAX_POINTS_PER_QUESTION) * 100)
    return max(0, min(100, raw))


@dataclass(slots=True)
class AnswerRecord:
    attempted: set[str] = field(default_factory=set)
    score: int = 0


@dataclass(frozen=True, slots=True)
class CompetencyScore:
    score: int = 0
    max_score: int = 0
    question_count: int = 0


@dataclass(frozen=True, slots=True)
class ResultsSnapshot:
    """Read-only projection of the tracker state."""

    answers: dict[str, str]
    question_scores: dict[str, int]
    question_attempts: dict[str, frozenset[str]]
    path: tuple[str, ...]
    total_score: int
    total_questions: int
    overall_percentage: int
    competency_scores: dict[CompetencyId, CompetencyScore]
    competency_percentages: dict[CompetencyId, int]


def _empty_competency_scores() -> dict[CompetencyId, CompetencyScore]:
    return {competency: CompetencyScore() for competency in CompetencyId}


class ScoreTracker:
    def __init__(self, catalog: ContentCatalog) -> None:
        self._catalog = catalog
        self._answers: dict[str, str] = {}
        self._records: dict[str, AnswerRecord] = {}
        self._path: list[str] = []
        self._total_score = 0
        self._competency_scores = _empty_competency_scores()

    @property
    def catalog(self) -> ContentCatalog:
        return self._catalog

    @property
    def total_score(self) -> int:
        return self._total_score

    @property
    def path(self) -> tuple[str, ...]:
        return tuple(self._path)

    def question_score(self, question_id: str | int) -> int:
        record = self._records.get(str(question_id))
        return 0 if record is None else record.score

    def competency_score(self, competency: CompetencyId) -> CompetencyScore:
        return self._competency_scores[competency]

    def record_answer(self, question_id: str | int, option_id: str) -> None:
        qid = str(question_id)
        points = points_for_option(option_id)

        record = self._records.get(qid)
        if record is None:
            record = AnswerRecord()
            self._records[qid] = record

        if option_id not in record.attempted:
            record.score += points
            record.attempted.add(option_id)
            logger.debug("Question %s: %s scored %+d (cumulative %d)", qid, option_id, points, record.score)
        else:
            logger.debug("Question %s: %s already attempted, score unchanged", qid, option_id)

        self._answers[qid] = option_id
        self._path.append(option_id)
        self._recalculate()

    def _recalculate(self) -> None:
        totals = {competency: [0, 0, 0] for competency in CompetencyId}
        total_score = 0

        for qid, record in self._records.items():
            total_score += record.score

            question = self._catalog.question_by_id(qid)
            if question is None:
                continue
            try:
                competency = CompetencyId(question.competency)
            except ValueError:
                continue
            bucket = totals[competency]
            bucket[0] += record.score
            bucket[1] += MAX_POINTS_PER_QUESTION
            bucket[2] += 1

        self._competency_scores = {
            competency: CompetencyScore(score=s, max_score=m, question_count=n)
            for competency, (s, m, n) in totals.items()
        }
        self._total_score = total_score

    def answer_path(self) -> str:
        return " -> ".join(self._path)

    def competency_percentage(self, competency: CompetencyId) -> int:
        comp = self._competency_scores[CompetencyId(competency)]
        return percentage(comp.score, comp.question_count)

    def overall_percentage(self) -> int:
        return percentage(self._total_score, len(self._records))

    def results(self) -> ResultsSnapshot:
        return ResultsSnapshot(
            answers=dict(self._answers),
            question_scores={qid: r.score for qid, r in self._records.items()},
            question_attempts={qid: frozenset(r.attempted) for qid, r in self._records.items()},
            path=tuple(self._path),
            total_score=self._total_score,
            total_questions=len(self._records),
            overall_percentage=self.overall_percentage(),
            competency_scores=dict(self._competency_scores),
            competency_percentages={c: self.competency_percentage(c) for c in CompetencyId},
        )

    def reset(self) -> None:
        """Clear all session state for a replay."""

        self._answers = {}
        self._records = {}
        self._path = []
        self._total_score = 0
        self._competency_scores = _empty_competency_scores()
