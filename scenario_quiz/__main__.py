from __future__ import annotations

from .app import run
from .config import QuizConfig, configure_logging


def main() -> int:
    config = QuizConfig.from_env()
    configure_logging(config.log_level)
    return run(config=config)


if __name__ == "__main__":
    raise SystemExit(main())
