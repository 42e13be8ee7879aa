# tests/test_logging.py
import logging
import logging.handlers

import pytest
from config import settings
from rich.logging import RichHandler

import utils.logging as logging_utils


@pytest.fixture(autouse=True)
def restore_root_handlers():
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers = handlers
    root_logger.setLevel(level)


def test_setup_logging_adds_file_and_rich_handlers(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "BASE_OUTPUT_DIR", str(tmp_path))
    monkeypatch.setattr(settings, "LOG_FILE", "lorekeeper.log")
    monkeypatch.setattr(settings, "ENABLE_RICH_PROGRESS", True)

    logging_utils.setup_logging()

    handlers = logging.getLogger().handlers
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in handlers)
    assert any(isinstance(h, RichHandler) for h in handlers)
    assert (tmp_path / "lorekeeper.log").exists()


def test_setup_logging_plain_stream_without_file(monkeypatch):
    monkeypatch.setattr(settings, "LOG_FILE", "")
    monkeypatch.setattr(settings, "ENABLE_RICH_PROGRESS", False)

    logging_utils.setup_logging()

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert type(handlers[0]) is logging.StreamHandler
    assert logging.getLogger("httpx").level == logging.WARNING


def test_setup_logging_file_error(monkeypatch, tmp_path):
    errors: list[str] = []

    def raise_handler(*_a, **_k):
        raise OSError("fail")

    monkeypatch.setattr(logging.handlers, "RotatingFileHandler", raise_handler)
    monkeypatch.setattr(settings, "BASE_OUTPUT_DIR", str(tmp_path))
    monkeypatch.setattr(settings, "LOG_FILE", "lorekeeper.log")
    monkeypatch.setattr(settings, "ENABLE_RICH_PROGRESS", False)
    monkeypatch.setattr(logging_utils.logger, "error", lambda msg, *a: errors.append(msg % a))

    logging_utils.setup_logging()

    assert any("Error setting up file logger" in m for m in errors)
