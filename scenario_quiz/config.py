from __future__ import annotations

import logging
import os
import random
from dataclasses import dataclass
from pathlib import Path

CATALOG_PATH_ENV = "SCENARIO_QUIZ_CATALOG"
SEED_ENV = "SCENARIO_QUIZ_SEED"
LOG_LEVEL_ENV = "SCENARIO_QUIZ_LOG_LEVEL"

PACKAGED_CATALOG = Path(__file__).resolve().parent / "data" / "quiz_data.json"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def default_catalog_path() -> Path:
    explicit = os.environ.get(CATALOG_PATH_ENV)
    if explicit:
        return Path(explicit).expanduser()
    return PACKAGED_CATALOG


def _env_seed() -> int | None:
    raw = os.environ.get(SEED_ENV, "").strip()
    if raw == "":
        return None
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring non-integer %s=%r", SEED_ENV, raw)
        return None


@dataclass(frozen=True, slots=True)
class QuizConfig:
    catalog_path: Path = PACKAGED_CATALOG
    seed: int | None = None  # None: fresh shuffle each launch
    window_size: tuple[int, int] = (960, 540)
    target_fps: int = 60
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "QuizConfig":
        return cls(
            catalog_path=default_catalog_path(),
            seed=_env_seed(),
            log_level=os.environ.get(LOG_LEVEL_ENV, "WARNING").strip().upper() or "WARNING",
        )

    def resolved_seed(self) -> int:
        return random.randrange(2**31) if self.seed is None else int(self.seed)


def configure_logging(level: str | int = "WARNING") -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
