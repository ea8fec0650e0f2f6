"""
Tests for logging setup.
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from weather_batch.config import Settings
from weather_batch.utils.logging_config import ERROR_LOG_FILE, LOG_FILE, setup_logging


@pytest.fixture
def restore_logging():
    yield
    setup_logging()


def test_handlers_follow_settings(tmp_path, restore_logging):
    config = Settings(LOG_DIR=str(tmp_path / "logs"), LOG_LEVEL="WARNING",
                      LOG_MAX_BYTES=2048, LOG_BACKUP_COUNT=2)

    root = setup_logging(config)

    assert root.level == logging.WARNING
    rotating = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
    assert {h.baseFilename for h in rotating} == {
        str(tmp_path / "logs" / LOG_FILE),
        str(tmp_path / "logs" / ERROR_LOG_FILE),
    }
    assert all(h.maxBytes == 2048 and h.backupCount == 2 for h in rotating)
    assert sorted(h.level for h in rotating) == [logging.INFO, logging.ERROR]
    assert logging.getLogger("httpx").level == logging.WARNING


def test_setup_twice_replaces_handlers(tmp_path, restore_logging):
    config = Settings(LOG_DIR=str(tmp_path))

    setup_logging(config)
    root = setup_logging(config)

    assert len(root.handlers) == 3


def test_debug_layout_includes_line_numbers(tmp_path, restore_logging):
    root = setup_logging(Settings(LOG_DIR=str(tmp_path), DEBUG=True))

    assert all("%(lineno)d" in h.formatter._fmt for h in root.handlers)
