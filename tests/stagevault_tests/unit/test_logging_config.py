"""
Unit tests for structured JSON logging setup.
"""

import json
import logging

import pytest

from stagevault.core.logging_config import CustomJsonFormatter, get_logger, setup_logging


@pytest.fixture
def log_name():
    name = "stagevault.tests.logging"
    yield name
    logger = logging.getLogger(name)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []


def test_file_handler_writes_json_with_context(tmp_path, log_name):
    log_file = tmp_path / "logs" / "vault.json"
    logger = setup_logging(
        name=log_name, log_file=str(log_file), level="INFO", environment="test", enable_console=False
    )
    logger.info("Stage executed", extra={"event": "distribution.stage_executed", "stage": 2})
    for handler in logger.handlers:
        handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert record["message"] == "Stage executed"
    assert record["event"] == "distribution.stage_executed"
    assert record["stage"] == 2
    assert record["environment"] == "test"
    assert record["service"] == "stagevault"
    assert record["level"] == "info"
    assert record["timestamp"]
    assert record["source"]["function"] == "test_file_handler_writes_json_with_context"


def test_level_filters_records(tmp_path, log_name):
    log_file = tmp_path / "vault.json"
    logger = setup_logging(name=log_name, log_file=str(log_file), level="WARNING", enable_console=False)
    logger.info("dropped")
    logger.warning("kept")
    for handler in logger.handlers:
        handler.flush()
    lines = log_file.read_text(encoding="utf-8").strip().splitlines()
    assert [json.loads(line)["message"] for line in lines] == ["kept"]


def test_setup_replaces_existing_handlers(log_name):
    setup_logging(name=log_name, enable_console=True)
    logger = setup_logging(name=log_name, enable_console=True)
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, CustomJsonFormatter)


def test_get_logger_reuses_configured_logger(log_name):
    configured = setup_logging(name=log_name, enable_console=True)
    handlers = list(configured.handlers)
    assert get_logger(log_name) is configured
    assert configured.handlers == handlers


def test_unknown_level_rejected(log_name):
    with pytest.raises(ValueError, match="VERBOSE"):
        setup_logging(name=log_name, level="VERBOSE", enable_console=False)
    assert logging.getLogger(log_name).handlers == []


def test_level_is_case_insensitive(log_name):
    logger = setup_logging(name=log_name, level="debug", enable_console=False)
    assert logger.level == logging.DEBUG
