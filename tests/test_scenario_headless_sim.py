from __future__ import annotations

from scenario_quiz.catalog import CompetencyId, load_catalog
from scenario_quiz.config import PACKAGED_CATALOG
from scenario_quiz.results import PerformanceBadge, build_results_report
from scenario_quiz.scenario import Action, ScenarioController, Screen


def test_headless_scripted_run_produces_expected_report() -> None:
    catalog = load_catalog(PACKAGED_CATALOG, seed=2024)
    controller = ScenarioController(catalog=catalog)

    assert controller.start() is True
    assert controller.proceed() is True
    assert controller.proceed() is True

    # First question: pick the worst option, retry, then the best one.
    # Every later question: sub-optimal on the second, optimal elsewhere.
    visited: list[int] = []
    while controller.screen is Screen.QUESTION:
        question = controller.current_question()
        assert question is not None
        visited.append(controller.question_index)

        if controller.question_index == 0 and len(visited) == 1:
            assert controller.submit(f"{question.id}c") is True
            assert controller.offered_action() is Action.RETRY
            assert controller.retry() is True
            assert controller.question_index == 0
            continue

        suffix = "b" if controller.question_index == 1 else "a"
        assert controller.select_option(f"{question.id}{suffix}") is True
        assert controller.submit() is True
        assert controller.offered_action() is Action.NEXT
        assert controller.next() is True

    assert controller.screen is Screen.RESULTS
    assert visited == [0, 0, 1, 2, 3, 4, 5]

    results = controller.snapshot().results
    assert results is not None
    assert len(results.path) == 7
    assert results.total_questions == 6
    # 6 + 7 + 10*4 = 53 of 60
    assert results.total_score == 53
    assert results.total_score == sum(results.question_scores.values())
    assert results.overall_percentage == 88

    report = build_results_report(results, catalog)
    assert report.badge is PerformanceBadge.GOOD_JOB
    assert sum(row.percentage < 100 for row in report.competencies) >= 1
    for competency in CompetencyId:
        assert results.competency_scores[competency].question_count == 2

    assert controller.restart() is True
    assert controller.screen is Screen.INTRODUCTION
    assert controller.tracker.results().path == ()
