from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from core.config import BACKEND_DIR


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
LOG_FILE = "timetable.log"

# Loggers that emit one line per candidate slot at DEBUG.
CHATTY_LOGGERS = ("solver.placement_engine", "solver.slot_catalog")


def _resolve_level(env: str, level_name: str | None) -> int:
    if level_name:
        level = logging.getLevelName(level_name.upper())
        if isinstance(level, int):
            return level
    return logging.INFO if env == "production" else logging.DEBUG


def _file_handler(level: int, formatter: logging.Formatter) -> logging.Handler:
    logs_dir = Path(BACKEND_DIR) / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        logs_dir / LOG_FILE,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(*, environment: str, level_name: str | None = None) -> None:
    """Configure logging for a generation run or the CLI.

    Development logs to the console at DEBUG; production adds a rotating
    ``logs/timetable.log`` and defaults to INFO. ``level_name`` (LOG_LEVEL)
    overrides either default and also unmutes the per-candidate solver logs.

    Does nothing when the root logger already has handlers.
    """

    root = logging.getLogger()
    if root.handlers:
        return

    env = (environment or "development").lower().strip()
    level = _resolve_level(env, level_name)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    handlers: list[logging.Handler] = [console]
    if env == "production":
        handlers.append(_file_handler(level, formatter))

    logging.basicConfig(level=level, handlers=handlers)

    if level_name is None:
        for name in CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(max(level, logging.INFO))
