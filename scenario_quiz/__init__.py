"""Branching-scenario quiz: answer tracking, competency scoring and screen flow."""

from .catalog import (
    CatalogError,
    CompetencyId,
    ContentCatalog,
    Outcome,
    OutcomeType,
    Question,
    UnknownOutcomeError,
    load_catalog,
)
from .scenario import Action, ScenarioController, Screen
from .score_tracker import ResultsSnapshot, ScoreTracker

__all__ = [
    "Action",
    "CatalogError",
    "CompetencyId",
    "ContentCatalog",
    "Outcome",
    "OutcomeType",
    "Question",
    "ResultsSnapshot",
    "ScenarioController",
    "ScoreTracker",
    "Screen",
    "UnknownOutcomeError",
    "load_catalog",
]
