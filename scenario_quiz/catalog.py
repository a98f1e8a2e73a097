"""Content catalog for the branching scenario.

The catalog is the read-only input shared by the score tracker (competency
lookups) and the scenario controller (question indexing). It is loaded once
from a JSON document, optionally shuffled, and never changes afterwards.
"""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import StrEnum
from pathlib import Path
from types import MappingProxyType
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Communicating Science for Policy"
DEFAULT_SUBTITLE = "COVID-19 and the Summer Festival"


class CatalogError(Exception):
    """Base class for content-integrity problems."""


class UnknownOutcomeError(CatalogError, KeyError):
    """A submitted option has no matching outcome entry."""

    def __init__(self, outcome_id: str) -> None:
        super().__init__(outcome_id)
        self.outcome_id = outcome_id

    def __str__(self) -> str:
        return f"no outcome defined for option {self.outcome_id!r}"


class OutcomeType(StrEnum):
    OPTIMAL = "optimal"
    SUB_OPTIMAL = "sub-optimal"
    NON_OPTIMAL = "non-optimal"


class CompetencyId(StrEnum):
    SUPPORT_DECISION_MAKING = "support_decision_making"
    COVID_EVIDENCE = "covid_evidence"
    NAVIGATE_TENSIONS = "navigate_tensions"


COMPETENCY_DISPLAY_NAMES: dict[CompetencyId, str] = {
    CompetencyId.SUPPORT_DECISION_MAKING: "Supporting Informed Decision-Making",
    CompetencyId.COVID_EVIDENCE: "Communicating COVID-19-Related Evidence",
    CompetencyId.NAVIGATE_TENSIONS: "Navigating Policy Tensions",
}


@dataclass(frozen=True, slots=True)
class Option:
    id: str
    text: str
    outcome_id: str


@dataclass(frozen=True, slots=True)
class Question:
    id: str
    title: str
    prompt: str
    options: tuple[Option, ...]
    competency: str
    context: str | None = None
    instruction: str | None = None

    def option_by_id(self, option_id: str) -> Option | None:
        for option in self.options:
            if option.id == option_id:
                return option
        return None


@dataclass(frozen=True, slots=True)
class Outcome:
    id: str
    type: OutcomeType
    message: str


@dataclass(frozen=True, slots=True)
class Competency:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class ContentCatalog:
    title: str = DEFAULT_TITLE
    subtitle: str = DEFAULT_SUBTITLE
    questions: tuple[Question, ...] = ()
    outcomes: Mapping[str, Outcome] = field(default_factory=dict)
    competencies: tuple[Competency, ...] = ()
    randomize_questions: bool = False
    randomize_options: bool = False

    def __post_init__(self) -> None:
        # Detached read-only copy: the catalog is shared by tracker and controller.
        object.__setattr__(self, "outcomes", MappingProxyType(dict(self.outcomes)))

    @classmethod
    def empty(cls) -> "ContentCatalog":
        """Fallback used when the content document cannot be loaded."""
        return cls()

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def question_by_id(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def outcome_for(self, option_id: str) -> Outcome:
        """Resolve the outcome shown after choosing ``option_id``.

        Raises ``UnknownOutcomeError`` rather than inventing a default, since a
        fabricated outcome would misrepresent the assessment.
        """

        outcome_id = option_id
        for question in self.questions:
            option = question.option_by_id(option_id)
            if option is not None:
                outcome_id = option.outcome_id
                break
        outcome = self.outcomes.get(outcome_id)
        if outcome is None:
            raise UnknownOutcomeError(outcome_id)
        return outcome

    def competency_name(self, competency_id: str) -> str:
        for competency in self.competencies:
            if competency.id == competency_id:
                return competency.name
        try:
            return COMPETENCY_DISPLAY_NAMES[CompetencyId(competency_id)]
        except ValueError:
            return str(competency_id)


class SeededRng:
    """Seeded RNG wrapper so content shuffles are reproducible."""

    def __init__(self, seed: int) -> None:
        self._rng = random.Random(int(seed))

    def shuffled(self, items: tuple[Any, ...]) -> tuple[Any, ...]:
        out = list(items)
        self._rng.shuffle(out)
        return tuple(out)


def _text(value: object, fallback: str = "") -> str:
    if value is None:
        return fallback
    return str(value).strip()


def _parse_option(data: object) -> Option | None:
    if not isinstance(data, dict):
        return None
    option_id = _text(data.get("id"))
    if option_id == "":
        return None
    outcome_id = _text(data.get("outcome"), option_id) or option_id
    return Option(id=option_id, text=_text(data.get("text")), outcome_id=outcome_id)


def _parse_question(data: object) -> Question | None:
    if not isinstance(data, dict):
        return None
    question_id = _text(data.get("id"))
    if question_id == "":
        return None

    raw_options = data.get("options")
    options: list[Option] = []
    if isinstance(raw_options, list):
        for item in raw_options:
            option = _parse_option(item)
            if option is None:
                logger.warning("Skipping malformed option in question %s: %r", question_id, item)
                continue
            options.append(option)

    context = data.get("context")
    instruction = data.get("instruction")
    return Question(
        id=question_id,
        title=_text(data.get("title")),
        prompt=_text(data.get("question")),
        options=tuple(options),
        competency=_text(data.get("competency")),
        context=None if context is None else str(context),
        instruction=None if instruction is None else str(instruction),
    )


def _parse_outcomes(raw: object) -> dict[str, Outcome]:
    outcomes: dict[str, Outcome] = {}
    if not isinstance(raw, dict):
        return outcomes
    for key, item in raw.items():
        if not isinstance(item, dict):
            logger.warning("Skipping malformed outcome %r", key)
            continue
        try:
            outcome_type = OutcomeType(_text(item.get("type")))
        except ValueError:
            logger.warning("Skipping outcome %r with unknown type %r", key, item.get("type"))
            continue
        outcome_id = str(key)
        outcomes[outcome_id] = Outcome(
            id=outcome_id,
            type=outcome_type,
            message=_text(item.get("message")),
        )
    return outcomes


def _parse_competencies(raw: object) -> tuple[Competency, ...]:
    if not isinstance(raw, list):
        return ()
    out: list[Competency] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        competency_id = _text(item.get("id"))
        if competency_id == "":
            continue
        out.append(Competency(id=competency_id, name=_text(item.get("name"), competency_id) or competency_id))
    return tuple(out)


def parse_catalog(payload: object, *, seed: int | None = None) -> ContentCatalog:
    """Build a catalog from a decoded content document.

    Shuffling requested by ``randomizeQuestions``/``randomizeOptions`` is
    applied here, once, before any session starts.
    """

    if not isinstance(payload, dict):
        raise CatalogError("content document must be a JSON object")

    questions: list[Question] = []
    raw_questions = payload.get("questions")
    if isinstance(raw_questions, list):
        for item in raw_questions:
            question = _parse_question(item)
            if question is None:
                logger.warning("Skipping malformed question: %r", item)
                continue
            questions.append(question)

    catalog = ContentCatalog(
        title=_text(payload.get("title"), DEFAULT_TITLE) or DEFAULT_TITLE,
        subtitle=_text(payload.get("subtitle"), DEFAULT_SUBTITLE) or DEFAULT_SUBTITLE,
        questions=tuple(questions),
        outcomes=_parse_outcomes(payload.get("outcomes")),
        competencies=_parse_competencies(payload.get("competencies")),
        randomize_questions=bool(payload.get("randomizeQuestions", False)),
        randomize_options=bool(payload.get("randomizeOptions", False)),
    )
    return shuffle_catalog(catalog, seed=seed)


def shuffle_catalog(catalog: ContentCatalog, *, seed: int | None = None) -> ContentCatalog:
    if not (catalog.randomize_questions or catalog.randomize_options):
        return catalog

    rng = SeededRng(random.randrange(2**31) if seed is None else seed)
    questions = catalog.questions
    if catalog.randomize_questions:
        questions = rng.shuffled(questions)
    if catalog.randomize_options:
        questions = tuple(
            replace(q, options=rng.shuffled(q.options)) if q.options else q for q in questions
        )
    return replace(catalog, questions=questions)


def load_catalog(path: Path, *, seed: int | None = None) -> ContentCatalog:
    """Load the content document, falling back to an empty catalog on failure."""

    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        catalog = parse_catalog(payload, seed=seed)
    except (OSError, ValueError, CatalogError) as exc:
        logger.error("Error loading quiz data from %s: %s", path, exc)
        return ContentCatalog.empty()

    logger.info("Quiz data loaded: %d questions from %s", catalog.question_count, path)
    return catalog
