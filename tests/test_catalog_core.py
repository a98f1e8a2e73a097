from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from scenario_quiz.catalog import (
    DEFAULT_TITLE,
    CatalogError,
    ContentCatalog,
    Outcome,
    OutcomeType,
    UnknownOutcomeError,
    load_catalog,
    parse_catalog,
)
from scenario_quiz.config import PACKAGED_CATALOG


def _document(**overrides: object) -> dict[str, object]:
    doc: dict[str, object] = {
        "title": "Test Scenario",
        "subtitle": "Sub",
        "competencies": [{"id": "covid_evidence", "name": "Evidence"}],
        "questions": [
            {
                "id": i,
                "title": f"Q{i}",
                "question": "What now?",
                "competency": "covid_evidence",
                "options": [{"id": f"{i}{s}", "text": s} for s in "abc"],
            }
            for i in range(1, 6)
        ],
        "outcomes": {
            f"{i}{s}": {"type": t, "message": f"m{i}{s}"}
            for i in range(1, 6)
            for s, t in (("a", "optimal"), ("b", "sub-optimal"), ("c", "non-optimal"))
        },
    }
    doc.update(overrides)
    return doc


def test_parse_normalizes_ids_and_links_outcomes() -> None:
    catalog = parse_catalog(_document())

    assert catalog.title == "Test Scenario"
    assert [q.id for q in catalog.questions] == ["1", "2", "3", "4", "5"]
    assert catalog.question_by_id("3") is catalog.questions[2]
    assert catalog.questions[0].options[1].outcome_id == "1b"
    assert catalog.outcome_for("2c").type is OutcomeType.NON_OPTIMAL
    assert catalog.competency_name("covid_evidence") == "Evidence"
    assert catalog.competency_name("navigate_tensions") == "Navigating Policy Tensions"


def test_explicit_outcome_reference_is_followed() -> None:
    doc = _document()
    doc["questions"][0]["options"][0]["outcome"] = "shared"  # type: ignore[index]
    doc["outcomes"]["shared"] = {"type": "optimal", "message": "shared outcome"}  # type: ignore[index]

    catalog = parse_catalog(doc)

    assert catalog.outcome_for("1a").message == "shared outcome"


def test_missing_outcome_raises() -> None:
    doc = _document()
    del doc["outcomes"]["4b"]  # type: ignore[attr-defined]
    catalog = parse_catalog(doc)

    with pytest.raises(UnknownOutcomeError) as excinfo:
        catalog.outcome_for("4b")
    assert excinfo.value.outcome_id == "4b"
    assert isinstance(excinfo.value, KeyError)


def test_malformed_entries_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    doc = _document()
    doc["questions"].append("not a question")  # type: ignore[attr-defined]
    doc["questions"].append({"title": "no id"})  # type: ignore[attr-defined]
    doc["outcomes"]["9z"] = {"type": "excellent", "message": "?"}  # type: ignore[index]

    with caplog.at_level(logging.WARNING, logger="scenario_quiz.catalog"):
        catalog = parse_catalog(doc)

    assert catalog.question_count == 5
    assert "9z" not in catalog.outcomes
    assert any("unknown type" in r.getMessage() for r in caplog.records)


def test_non_object_document_is_rejected() -> None:
    with pytest.raises(CatalogError):
        parse_catalog(["not", "an", "object"])


def test_shuffle_is_seeded_and_keeps_content() -> None:
    doc = _document(randomizeQuestions=True, randomizeOptions=True)

    c1 = parse_catalog(doc, seed=7)
    c2 = parse_catalog(doc, seed=7)
    plain = parse_catalog(_document())

    assert c1.questions == c2.questions
    assert sorted(q.id for q in c1.questions) == sorted(q.id for q in plain.questions)
    for q in c1.questions:
        assert sorted(o.id for o in q.options) == [f"{q.id}a", f"{q.id}b", f"{q.id}c"]


def test_no_shuffle_without_flags() -> None:
    catalog = parse_catalog(_document(), seed=1)
    assert [q.id for q in catalog.questions] == ["1", "2", "3", "4", "5"]


def test_load_missing_file_falls_back_to_empty(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="scenario_quiz.catalog"):
        catalog = load_catalog(tmp_path / "missing.json")

    assert catalog == ContentCatalog.empty()
    assert catalog.title == DEFAULT_TITLE
    assert catalog.question_count == 0
    assert any("Error loading quiz data" in r.getMessage() for r in caplog.records)


def test_load_invalid_json_falls_back_to_empty(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{ not json", encoding="utf-8")

    assert load_catalog(path) == ContentCatalog.empty()


def test_load_round_trip_from_disk(tmp_path: Path) -> None:
    path = tmp_path / "quiz.json"
    path.write_text(json.dumps(_document()), encoding="utf-8")

    catalog = load_catalog(path)

    assert catalog.question_count == 5
    assert len(catalog.outcomes) == 15


def test_packaged_content_is_complete() -> None:
    catalog = load_catalog(PACKAGED_CATALOG, seed=0)

    assert catalog.question_count == 6
    for question in catalog.questions:
        assert question.options
        for option in question.options:
            catalog.outcome_for(option.id)


def test_outcomes_are_read_only_and_detached() -> None:
    source = {"1a": Outcome(id="1a", type=OutcomeType.OPTIMAL, message="good")}
    catalog = ContentCatalog(outcomes=source)

    with pytest.raises(TypeError):
        catalog.outcomes["1b"] = Outcome(id="1b", type=OutcomeType.SUB_OPTIMAL, message="ok")  # type: ignore[index]

    source["1c"] = Outcome(id="1c", type=OutcomeType.NON_OPTIMAL, message="bad")
    assert set(catalog.outcomes) == {"1a"}
    assert catalog == ContentCatalog(outcomes={"1a": source["1a"]})
