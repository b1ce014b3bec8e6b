"""Tests for logging helpers and configuration."""

import json
import logging

import pytest

from gymledger.config.logging import JsonFormatter, setup_logging
from gymledger.config.types import LoggingConfig
from gymledger.utils.logging_utils import EnhancedLoggerMixin, log_execution


class Recorder(EnhancedLoggerMixin):
    pass


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_context_is_appended(caplog):
    recorder = Recorder()
    recorder.set_log_context(service="persistence")
    with caplog.at_level(logging.INFO):
        recorder.info("Saved", member_id="m-1")
    assert "Saved | Context: service=persistence | member_id=m-1" in caplog.text

    recorder.clear_log_context()
    with caplog.at_level(logging.INFO):
        recorder.info("Plain")
    assert caplog.records[-1].getMessage() == "Plain"


def test_warning_adds_exception_text(caplog):
    with caplog.at_level(logging.WARNING):
        Recorder().warning("Primary store read failed", exc_info=ValueError("refused"))
    assert "error=refused" in caplog.text


def test_error_adds_traceback(caplog):
    try:
        raise RuntimeError("boom")
    except RuntimeError as e:
        with caplog.at_level(logging.ERROR):
            Recorder().error("Delete failed", exc_info=e)
    assert "error=boom" in caplog.text
    assert "traceback=" in caplog.text


def test_log_execution(caplog):
    @log_execution(level='INFO', include_args=True)
    def add(a, b=2):
        return a + b

    with caplog.at_level(logging.INFO):
        assert add(1) == 3
    assert "Calling add(a=1, b=2)" in caplog.text
    assert "add completed in" in caplog.text


def test_log_execution_reraises(caplog):
    @log_execution(level='INFO')
    def broken():
        raise ValueError("bad")

    with caplog.at_level(logging.INFO):
        with pytest.raises(ValueError):
            broken()
    assert "broken failed after" in caplog.text


def test_json_formatter():
    record = logging.LogRecord("gymledger", logging.WARNING, __file__, 1, "Saved offline", None, None)
    data = json.loads(JsonFormatter(include_timestamp=False).format(record))
    assert data == {'level': "WARNING", 'logger': "gymledger", 'message': "Saved offline"}


def test_setup_logging_levels(restore_root_logger):
    setup_logging(LoggingConfig(level="ERROR"))
    assert restore_root_logger.level == logging.ERROR

    setup_logging(LoggingConfig(level="ERROR"), verbose=True)
    assert restore_root_logger.level == logging.DEBUG
    assert logging.getLogger("urllib3").level == logging.WARNING


def test_setup_logging_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "logs" / "gymledger.log"
    setup_logging(LoggingConfig(level="WARNING"), log_file=str(log_file))

    logging.getLogger("gymledger.test").info("written to file")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert "written to file" in log_file.read_text()
