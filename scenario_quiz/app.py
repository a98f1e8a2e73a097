"""Pygame UI shell for the branching scenario quiz.

Screen flow, scoring and content live in scenario_quiz/* (core modules);
this module only turns key presses into controller actions and draws the
controller snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

import pygame

from .catalog import ContentCatalog, UnknownOutcomeError, load_catalog
from .config import QuizConfig
from .results import build_results_report
from .scenario import Action, ScenarioController, ScenarioSnapshot, Screen as ScenarioScreenKind
from .score_tracker import tier_for_option

logger = logging.getLogger(__name__)


class Screen(Protocol):
    def handle_event(self, event: pygame.event.Event) -> None: ...
    def render(self, surface: pygame.Surface) -> None: ...


INTRODUCTION_TEXT = [
    "This scenario is set in a mid-sized city during a period of rising COVID-19 case numbers.",
    "You play a public health scientist at a university. You have secured a short one-on-one "
    "meeting with the Mayor, who must decide whether to go ahead with the city's large annual "
    "summer festival.",
    "The event is culturally meaningful and economically important, but presents public health "
    "risks if held without precautions.",
    "Your goal is to communicate the latest COVID-19-related evidence, navigate policy tensions, "
    "and support informed decision-making.",
]

MODULE_STRUCTURE_TEXT = [
    "The module is a branching scenario with several decision points. At each one, choose one "
    "of the options based on your understanding of the situation.",
    "Your choice affects the flow of the scenario. A poor choice sends you back to retry that "
    "decision point.",
]

OUTCOME_TITLES = {
    "optimal": "Great decision!",
    "sub-optimal": "Good choice, but not the best.",
    "non-optimal": "Not a good choice.",
}

BG = (3, 9, 78)
PANEL_BG = (8, 18, 104)
HEADER_BG = (18, 30, 118)
BORDER = (226, 236, 255)
TEXT_MAIN = (238, 245, 255)
TEXT_MUTED = (186, 200, 224)
ACTIVE_BG = (244, 248, 255)
ACTIVE_TEXT = (14, 26, 74)


class App:
    def __init__(self, surface: pygame.Surface, font: pygame.font.Font) -> None:
        self._surface = surface
        self._font = font
        self._screens: list[Screen] = []
        self._running = True

    @property
    def running(self) -> bool:
        return self._running

    @property
    def font(self) -> pygame.font.Font:
        return self._font

    def push(self, screen: Screen) -> None:
        self._screens.append(screen)

    def quit(self) -> None:
        self._running = False

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.quit()
            return
        if not self._screens:
            return
        self._screens[-1].handle_event(event)

    def render(self) -> None:
        if not self._screens:
            return
        self._screens[-1].render(self._surface)


def wrap_text(font: pygame.font.Font, text: str, max_width: int) -> list[str]:
    lines: list[str] = []
    for paragraph in text.splitlines() or [""]:
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        current = words[0]
        for word in words[1:]:
            candidate = f"{current} {word}"
            if font.size(candidate)[0] <= max_width:
                current = candidate
            else:
                lines.append(current)
                current = word
        lines.append(current)
    return lines


class ScenarioScreen:
    def __init__(self, app: App, *, controller: ScenarioController, catalog: ContentCatalog) -> None:
        self._app = app
        self._controller = controller
        self._catalog = catalog
        self._highlight = -1
        self._error: str | None = None
        self._title_font = app.font
        self._body_font = pygame.font.Font(None, 28)
        self._hint_font = pygame.font.Font(None, 22)

    @property
    def controller(self) -> ScenarioController:
        return self._controller

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type != pygame.KEYDOWN:
            return
        key = event.key

        if self._controller.exit_pending:
            if key in (pygame.K_y, pygame.K_RETURN, pygame.K_KP_ENTER):
                on_welcome = self._controller.screen is ScenarioScreenKind.WELCOME
                self._controller.confirm_exit()
                self._highlight = -1
                self._error = None
                if on_welcome:
                    self._app.quit()
            elif key in (pygame.K_n, pygame.K_ESCAPE, pygame.K_BACKSPACE):
                self._controller.cancel_exit()
            return

        if key == pygame.K_ESCAPE:
            self._controller.request_exit()
            return

        screen = self._controller.screen
        if screen is ScenarioScreenKind.QUESTION:
            self._handle_question_key(key)
            return

        if screen is ScenarioScreenKind.RESULTS:
            if key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE, pygame.K_r):
                self._controller.restart()
                self._highlight = -1
            return

        if key not in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            return
        if screen is ScenarioScreenKind.WELCOME:
            self._controller.start()
        elif screen in (ScenarioScreenKind.INTRODUCTION, ScenarioScreenKind.MODULE_STRUCTURE):
            self._controller.proceed()
        elif screen is ScenarioScreenKind.OUTCOME:
            if self._controller.offered_action() is Action.RETRY:
                self._controller.retry()
            else:
                self._controller.next()
            self._highlight = -1

    def _handle_question_key(self, key: int) -> None:
        question = self._controller.current_question()
        if question is None or not question.options:
            return
        count = len(question.options)

        if key in (pygame.K_UP, pygame.K_w, pygame.K_DOWN, pygame.K_s):
            delta = -1 if key in (pygame.K_UP, pygame.K_w) else 1
            if self._highlight < 0:
                self._highlight = 0 if delta > 0 else count - 1
            else:
                self._highlight = (self._highlight + delta) % count
            self._controller.select_option(question.options[self._highlight].id)
        elif pygame.K_1 <= key <= pygame.K_9:
            idx = key - pygame.K_1
            if idx < count:
                self._highlight = idx
                self._controller.select_option(question.options[idx].id)
        elif key in (pygame.K_RETURN, pygame.K_KP_ENTER, pygame.K_SPACE):
            try:
                accepted = self._controller.submit()
            except UnknownOutcomeError as exc:
                logger.error("Cannot show outcome: %s", exc)
                self._error = "This decision point has no outcome. Please report the content problem."
                return
            if accepted:
                self._error = None
                self._highlight = -1

    def render(self, surface: pygame.Surface) -> None:
        snap = self._controller.snapshot()
        w, h = surface.get_size()
        surface.fill(BG)

        margin = max(10, min(26, w // 34))
        frame = pygame.Rect(margin, margin, max(260, w - margin * 2), max(220, h - margin * 2))
        pygame.draw.rect(surface, PANEL_BG, frame)
        pygame.draw.rect(surface, BORDER, frame, 2)

        header_h = max(34, min(52, h // 8))
        header = pygame.Rect(frame.x + 2, frame.y + 2, frame.w - 4, header_h)
        pygame.draw.rect(surface, HEADER_BG, header)
        pygame.draw.line(surface, BORDER, (header.x, header.bottom), (header.right, header.bottom), 1)

        heading, subheading = self._headings(snap)
        tag = self._hint_font.render(subheading, True, TEXT_MUTED)
        surface.blit(tag, (header.x + 12, header.y + (header.h - tag.get_height()) // 2))
        title = self._title_font.render(heading, True, TEXT_MAIN)
        surface.blit(title, title.get_rect(center=(frame.centerx, header.centery)))

        body = pygame.Rect(frame.x + 24, header.bottom + 16, frame.w - 48, frame.h - header_h - 70)
        if snap.exit_pending:
            self._render_paragraphs(surface, body, ["Are you sure you want to exit the quiz?"])
        elif snap.screen is ScenarioScreenKind.QUESTION:
            self._render_question(surface, body, snap)
        else:
            self._render_paragraphs(surface, body, self._body_text(snap))

        foot = self._hint_font.render(self._footer(snap), True, TEXT_MUTED)
        surface.blit(foot, foot.get_rect(midbottom=(frame.centerx, frame.bottom - 10)))

    def _headings(self, snap: ScenarioSnapshot) -> tuple[str, str]:
        screen = snap.screen
        if screen is ScenarioScreenKind.WELCOME:
            return self._catalog.title.upper(), "BRANCHING SCENARIO"
        if screen is ScenarioScreenKind.INTRODUCTION:
            return "The Setting", "INTRODUCTION"
        if screen is ScenarioScreenKind.MODULE_STRUCTURE:
            return "The Module Structure", "INTRODUCTION"
        if screen is ScenarioScreenKind.QUESTION:
            title = "" if snap.question is None else snap.question.title
            return title, f"DECISION POINT {snap.question_index + 1} OF {snap.question_count}"
        if screen is ScenarioScreenKind.OUTCOME:
            kind = "" if snap.outcome is None else str(snap.outcome.type)
            return OUTCOME_TITLES.get(kind, "Information"), f"DECISION POINT {snap.question_index + 1}"
        return "Results", "END OF SCENARIO"

    def _body_text(self, snap: ScenarioSnapshot) -> list[str]:
        screen = snap.screen
        if screen is ScenarioScreenKind.WELCOME:
            return [self._catalog.subtitle]
        if screen is ScenarioScreenKind.INTRODUCTION:
            return INTRODUCTION_TEXT
        if screen is ScenarioScreenKind.MODULE_STRUCTURE:
            return MODULE_STRUCTURE_TEXT
        if screen is ScenarioScreenKind.OUTCOME:
            return [] if snap.outcome is None else [snap.outcome.message]
        if snap.results is None:
            return []
        report = build_results_report(snap.results, self._catalog)
        lines = [
            f"{report.badge}: overall score {report.overall_percentage}%",
            *(f"{row.name}: {row.percentage}%" for row in report.competencies),
        ]
        if snap.question_count == 0:
            lines.append("No questions are available.")
        elif report.answer_path:
            lines.append(f"Your path: {report.answer_path}")
        return lines

    def _footer(self, snap: ScenarioSnapshot) -> str:
        if snap.exit_pending:
            return "Y/Enter: Exit  |  N/Esc: Stay"
        if snap.screen is ScenarioScreenKind.QUESTION:
            return "Up/Down or 1-9: Choose  |  Enter: Continue  |  Esc: Exit"
        if snap.screen is ScenarioScreenKind.OUTCOME and snap.offered_action is Action.RETRY:
            return "Enter: Go Back and Retry  |  Esc: Exit"
        if snap.screen is ScenarioScreenKind.RESULTS:
            return "R/Enter: Replay  |  Esc: Exit"
        return "Enter: Continue  |  Esc: Exit"

    def _render_paragraphs(self, surface: pygame.Surface, rect: pygame.Rect, paragraphs: list[str]) -> int:
        y = rect.y
        line_h = self._body_font.get_linesize()
        for paragraph in paragraphs:
            for line in wrap_text(self._body_font, paragraph, rect.w):
                if y + line_h > rect.bottom:
                    return y
                surface.blit(self._body_font.render(line, True, TEXT_MAIN), (rect.x, y))
                y += line_h
            y += line_h // 2
        return y

    def _render_question(self, surface: pygame.Surface, rect: pygame.Rect, snap: ScenarioSnapshot) -> None:
        question = snap.question
        if question is None:
            return
        intro = [p for p in (question.context, question.prompt, self._error) if p]
        y = self._render_paragraphs(surface, rect, intro)

        line_h = self._body_font.get_linesize()
        for idx, option in enumerate(question.options):
            selected = option.id == snap.selected_option
            lines = wrap_text(self._body_font, f"{idx + 1}. {option.text}", rect.w - 20)
            row = pygame.Rect(rect.x, y, rect.w, line_h * len(lines) + 8)
            if row.bottom > rect.bottom:
                break
            if selected:
                pygame.draw.rect(surface, ACTIVE_BG, row)
            pygame.draw.rect(surface, (62, 84, 152), row, 1)
            color = ACTIVE_TEXT if selected else TEXT_MAIN
            for i, line in enumerate(lines):
                surface.blit(self._body_font.render(line, True, color), (row.x + 10, row.y + 4 + i * line_h))
            y = row.bottom + 6


def build_controller(config: QuizConfig) -> tuple[ScenarioController, ContentCatalog]:
    catalog = load_catalog(config.catalog_path, seed=config.resolved_seed())
    if catalog.question_count == 0:
        logger.warning("No questions available in %s", config.catalog_path)
    for question in catalog.questions:
        for option in question.options:
            if option.outcome_id not in catalog.outcomes:
                logger.warning(
                    "Option %s (%s) in question %s has no outcome",
                    option.id,
                    tier_for_option(option.id),
                    question.id,
                )
    return ScenarioController(catalog=catalog), catalog


def run(
    *,
    max_frames: int | None = None,
    event_injector: Callable[[int], None] | None = None,
    config: QuizConfig | None = None,
) -> int:
    cfg = config or QuizConfig.from_env()

    pygame.init()
    pygame.display.set_caption("Scenario Quiz")
    surface = pygame.display.set_mode(cfg.window_size, pygame.RESIZABLE)
    font = pygame.font.Font(None, 36)
    clock = pygame.time.Clock()

    app = App(surface=surface, font=font)
    controller, catalog = build_controller(cfg)
    app.push(ScenarioScreen(app, controller=controller, catalog=catalog))

    frame = 0
    try:
        while app.running:
            if event_injector is not None:
                event_injector(frame)

            for event in pygame.event.get():
                app.handle_event(event)

            app.render()

            pygame.display.flip()

            frame += 1
            if max_frames is not None and frame >= max_frames:
                break

            clock.tick(cfg.target_fps)
    finally:
        pygame.quit()

    return 0
