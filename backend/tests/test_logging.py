from __future__ import annotations

import logging
import logging.handlers

import pytest

from core import logging as app_logging


@pytest.mark.parametrize(
    ("env", "level_name", "expected"),
    [
        ("development", None, logging.DEBUG),
        ("production", None, logging.INFO),
        ("production", "debug", logging.DEBUG),
        ("development", "WARNING", logging.WARNING),
        ("development", "not-a-level", logging.DEBUG),
    ],
)
def test_resolve_level(env, level_name, expected):
    assert app_logging._resolve_level(env, level_name) == expected


def test_file_handler_rotates_under_logs_dir(monkeypatch, tmp_path):
    monkeypatch.setattr(app_logging, "BACKEND_DIR", tmp_path)
    handler = app_logging._file_handler(logging.INFO, logging.Formatter(app_logging.LOG_FORMAT))
    try:
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert handler.baseFilename == str(tmp_path / "logs" / app_logging.LOG_FILE)
        assert handler.level == logging.INFO
    finally:
        handler.close()


def test_setup_leaves_configured_root_alone():
    root = logging.getLogger()
    marker = logging.NullHandler()
    root.addHandler(marker)
    try:
        before = list(root.handlers)
        app_logging.setup_logging(environment="production")
        assert root.handlers == before
    finally:
        root.removeHandler(marker)
