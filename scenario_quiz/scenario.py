from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from .catalog import ContentCatalog, Outcome, OutcomeType, Question
from .score_tracker import ResultsSnapshot, ScoreTracker

logger = logging.getLogger(__name__)


class Screen(StrEnum):
    WELCOME = "welcome"
    INTRODUCTION = "introduction"
    MODULE_STRUCTURE = "module_structure"
    QUESTION = "question"
    OUTCOME = "outcome"
    RESULTS = "results"


class Action(StrEnum):
    START = "start"
    CONTINUE = "continue"
    SUBMIT = "submit"
    RETRY = "retry"
    NEXT = "next"
    RESTART = "restart"
    EXIT = "exit"


TRANSITIONS: dict[tuple[Screen, Action], Screen] = {
    (Screen.WELCOME, Action.START): Screen.INTRODUCTION,
    (Screen.INTRODUCTION, Action.CONTINUE): Screen.MODULE_STRUCTURE,
    (Screen.MODULE_STRUCTURE, Action.CONTINUE): Screen.QUESTION,
    (Screen.QUESTION, Action.SUBMIT): Screen.OUTCOME,
    (Screen.OUTCOME, Action.RETRY): Screen.QUESTION,
    (Screen.OUTCOME, Action.NEXT): Screen.QUESTION,
    (Screen.RESULTS, Action.RESTART): Screen.INTRODUCTION,
    **{(screen, Action.EXIT): Screen.WELCOME for screen in Screen},
}


def next_screen(
    screen: Screen,
    action: Action,
    *,
    is_last_question: bool,
    has_questions: bool = True,
) -> Screen | None:
    """Look up the destination of ``action`` taken on ``screen``.

    Moving on from the last question's outcome lands on the results screen,
    as does leaving the module overview when there are no questions at all.
    Returns None when the action is not valid on that screen.
    """

    target = TRANSITIONS.get((screen, action))
    if target is None:
        return None
    if target is Screen.QUESTION and action is Action.NEXT and is_last_question:
        return Screen.RESULTS
    if target is Screen.QUESTION and not has_questions:
        return Screen.RESULTS
    return target


def offered_action(outcome: Outcome) -> Action:
    """Non-optimal outcomes only offer a retry; everything else moves on."""

    if outcome.type is OutcomeType.NON_OPTIMAL:
        return Action.RETRY
    return Action.NEXT


@dataclass(frozen=True, slots=True)
class ScenarioSnapshot:
    """View model for the UI (pure data)."""

    screen: Screen
    question_index: int
    question_count: int
    question: Question | None
    selected_option: str | None
    last_answer: str | None
    outcome: Outcome | None
    offered_action: Action | None
    exit_pending: bool
    results: ResultsSnapshot | None = None


class ScenarioController:
    """Screen flow: welcome -> introduction -> module structure -> questions -> results.

    Each question is followed by its outcome. Non-optimal outcomes send the
    learner back to the same question; the others advance.
    """

    def __init__(self, *, catalog: ContentCatalog, tracker: ScoreTracker | None = None) -> None:
        if tracker is not None and tracker.catalog is not catalog:
            raise ValueError("tracker must be built on the same catalog")
        self._catalog = catalog
        self._tracker = tracker or ScoreTracker(catalog)

        self._screen = Screen.WELCOME
        self._index = 0
        self._selected: str | None = None
        self._last_answer: str | None = None
        self._outcome: Outcome | None = None
        self._exit_pending = False

    @property
    def screen(self) -> Screen:
        return self._screen

    @property
    def question_index(self) -> int:
        return self._index

    @property
    def last_answer(self) -> str | None:
        return self._last_answer

    @property
    def tracker(self) -> ScoreTracker:
        return self._tracker

    @property
    def exit_pending(self) -> bool:
        return self._exit_pending

    def current_question(self) -> Question | None:
        if self._screen not in (Screen.QUESTION, Screen.OUTCOME):
            return None
        if not (0 <= self._index < self._catalog.question_count):
            return None
        return self._catalog.questions[self._index]

    def current_outcome(self) -> Outcome | None:
        return self._outcome

    def offered_action(self) -> Action | None:
        if self._screen is not Screen.OUTCOME or self._outcome is None:
            return None
        return offered_action(self._outcome)

    def _is_last_question(self) -> bool:
        return self._index >= self._catalog.question_count - 1

    def _exit_blocks(self, action: Action) -> bool:
        # Only confirm_exit/cancel_exit may act while the exit prompt is open.
        if self._exit_pending and action is not Action.EXIT:
            logger.debug("Ignoring %s while exit confirmation is pending", action)
            return True
        return False

    def _go(self, action: Action) -> bool:
        if self._exit_blocks(action):
            return False
        target = next_screen(
            self._screen,
            action,
            is_last_question=self._is_last_question(),
            has_questions=self._catalog.question_count > 0,
        )
        if target is None:
            logger.debug("Ignoring %s on %s", action, self._screen)
            return False
        logger.debug("%s --%s--> %s", self._screen, action, target)
        self._screen = target
        return True

    def start(self) -> bool:
        return self._go(Action.START)

    def proceed(self) -> bool:
        return self._go(Action.CONTINUE)

    def select_option(self, option_id: str) -> bool:
        if self._exit_blocks(Action.SUBMIT):
            return False
        question = self.current_question()
        if self._screen is not Screen.QUESTION or question is None:
            return False
        if question.option_by_id(option_id) is None:
            return False
        self._selected = option_id
        return True

    def submit(self, option_id: str | None = None) -> bool:
        """Submit ``option_id`` (or the current selection) for the active question.

        Raises ``UnknownOutcomeError`` if the content has no outcome for the
        option; scoring state is left untouched in that case.
        """

        if self._exit_blocks(Action.SUBMIT):
            return False
        if self._screen is not Screen.QUESTION:
            return False
        question = self.current_question()
        if question is None:
            return False

        answer = self._selected if option_id is None else option_id
        if not answer:
            return False

        outcome = self._catalog.outcome_for(answer)
        self._tracker.record_answer(question.id, answer)
        self._last_answer = answer
        self._outcome = outcome
        self._selected = None
        return self._go(Action.SUBMIT)

    def retry(self) -> bool:
        if self.offered_action() is not Action.RETRY:
            logger.debug("Retry not offered on %s", self._screen)
            return False
        if not self._go(Action.RETRY):
            return False
        self._clear_answer()
        return True

    def next(self) -> bool:
        if self.offered_action() is not Action.NEXT:
            logger.debug("Next not offered on %s", self._screen)
            return False
        if not self._go(Action.NEXT):
            return False
        if self._screen is Screen.QUESTION:
            self._index += 1
        self._clear_answer()
        return True

    def restart(self) -> bool:
        if not self._go(Action.RESTART):
            return False
        self._tracker.reset()
        self._reset_position()
        return True

    def request_exit(self) -> bool:
        if self._exit_pending:
            return False
        self._exit_pending = True
        return True

    def cancel_exit(self) -> bool:
        if not self._exit_pending:
            return False
        self._exit_pending = False
        return True

    def confirm_exit(self) -> bool:
        if not self._exit_pending:
            return False
        self._exit_pending = False
        self._go(Action.EXIT)
        self._tracker.reset()
        self._reset_position()
        return True

    def _clear_answer(self) -> None:
        self._selected = None
        self._last_answer = None
        self._outcome = None

    def _reset_position(self) -> None:
        self._index = 0
        self._clear_answer()

    def snapshot(self) -> ScenarioSnapshot:
        results = self._tracker.results() if self._screen is Screen.RESULTS else None
        return ScenarioSnapshot(
            screen=self._screen,
            question_index=self._index,
            question_count=self._catalog.question_count,
            question=self.current_question(),
            selected_option=self._selected,
            last_answer=self._last_answer,
            outcome=self._outcome,
            offered_action=self.offered_action(),
            exit_pending=self._exit_pending,
            results=results,
        )
