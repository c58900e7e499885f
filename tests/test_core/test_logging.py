"""Tests for logging setup."""

import json
import logging

import pytest

from flashlink.core.logging import NOISY_LOGGERS, setup_logging
from flashlink.core.structlog_logger import StructlogMixin, get_struct_logger


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_level_applied():
    setup_logging("DEBUG")

    assert logging.getLogger().level == logging.DEBUG
    assert len(logging.getLogger().handlers) == 1


def test_noisy_loggers_quieted():
    setup_logging("DEBUG")

    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


def test_json_log_file(tmp_path):
    log_file = tmp_path / "logs" / "flashlink.log"
    setup_logging("INFO", log_file=log_file)

    get_struct_logger("flashlink.test").info("flash_started", port="/dev/ttyS0")
    for handler in logging.getLogger().handlers:
        handler.flush()

    records = [json.loads(line) for line in log_file.read_text().splitlines()]
    record = next(r for r in records if r["event"] == "flash_started")
    assert record["port"] == "/dev/ttyS0"
    assert record["level"] == "info"


def test_structlog_mixin_uses_injected_logger():
    class Service(StructlogMixin):
        def __init__(self, logger):
            self._logger = logger

    sentinel = object()

    assert Service(sentinel).logger is sentinel
