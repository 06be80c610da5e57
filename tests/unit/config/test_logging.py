"""
Tests for logging setup.

setup_logging mutates process-wide loggers, so every test restores the
loggers it touched.
"""

import logging

import pytest

from helya.config.logging import ColoredFormatter, get_logger, setup_logging
from helya.config.settings import Settings

TOUCHED_LOGGERS = ("helya", "discord", "sqlalchemy.engine")


@pytest.fixture(autouse=True)
def restore_loggers():
    saved = {}
    for name in TOUCHED_LOGGERS:
        logger = logging.getLogger(name)
        saved[name] = (list(logger.handlers), logger.level, logger.propagate)
    yield
    for name, (handlers, level, propagate) in saved.items():
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate


class TestSetupLogging:
    def test_configures_helya_logger(self):
        setup_logging(Settings(log_level="WARNING"))

        logger = logging.getLogger("helya")
        assert logger.level == logging.WARNING
        assert logger.propagate is False
        assert len(logger.handlers) == 1

    def test_library_loggers_share_handlers(self):
        setup_logging(Settings())

        helya_handlers = logging.getLogger("helya").handlers
        assert logging.getLogger("discord").handlers == helya_handlers
        assert logging.getLogger("sqlalchemy.engine").handlers == helya_handlers

    def test_discord_logger_is_floored_at_info(self):
        setup_logging(Settings(log_level="DEBUG"))
        assert logging.getLogger("discord").level == logging.INFO

    def test_sql_statements_logged_only_in_development(self):
        setup_logging(Settings(environment="production", log_level="DEBUG"))
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

        setup_logging(Settings(environment="development", log_level="DEBUG"))
        assert logging.getLogger("sqlalchemy.engine").level == logging.INFO

    def test_file_handler_added_when_log_file_set(self, tmp_path):
        log_file = tmp_path / "logs" / "helya.log"
        setup_logging(Settings(log_file=log_file))

        handlers = logging.getLogger("helya").handlers
        assert any(isinstance(h, logging.FileHandler) for h in handlers)
        assert log_file.parent.is_dir()

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(Settings())
        setup_logging(Settings())
        assert len(logging.getLogger("helya").handlers) == 1


class TestGetLogger:
    def test_prefixes_foreign_names(self):
        assert get_logger("runner").name == "helya.runner"

    def test_keeps_module_names_under_helya(self):
        assert get_logger("helya.bot.client").name == "helya.bot.client"


class TestColoredFormatter:
    def test_colors_level_name_without_mutating_record(self):
        formatter = ColoredFormatter(fmt="%(levelname)s %(message)s")
        record = logging.LogRecord("helya", logging.ERROR, __file__, 1, "boom", None, None)

        output = formatter.format(record)

        assert "\033[31m" in output
        assert record.levelname == "ERROR"
