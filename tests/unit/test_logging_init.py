from __future__ import annotations

import logging

from xlsx_importer.logging.init import (
    APP_LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    enable_debug,
    get_logger,
    log_summary,
    setup_logging,
)


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord("x", level, __file__, 1, msg, None, None)


def test_setup_logging_configures_app_logger():
    logger = setup_logging()
    assert logger.name == APP_LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert len(second.handlers) == 1
    assert get_logger() is first


def test_labeled_prefixes():
    fmt = LabeledFormatter()
    assert fmt.format(_record(logging.INFO, "hello")) == "INFO hello"
    assert fmt.format(_record(logging.WARNING, "careful")) == "WARN careful"
    assert fmt.format(_record(logging.ERROR, "boom")) == "ERROR boom"
    assert fmt.format(_record(SUMMARY_LEVEL, "files=0/0")) == "SUMMARY files=0/0"


def test_module_loggers_reach_app_handler(capsys):
    setup_logging()
    logging.getLogger("xlsx_importer.excel.reader").info("Excel Importer successfully imported %d rows", 3)
    logging.getLogger("xlsx_importer.excel.reader").debug("hidden")
    out = capsys.readouterr().out
    assert "INFO Excel Importer successfully imported 3 rows" in out
    assert "hidden" not in out


def test_enable_debug(capsys):
    enable_debug()
    logging.getLogger("xlsx_importer.excel.cells").debug("Formatting A1")
    assert "DEBUG Formatting A1" in capsys.readouterr().out


def test_log_summary(capsys):
    log_summary("files=1/1 success=1")
    assert "SUMMARY files=1/1 success=1" in capsys.readouterr().out
