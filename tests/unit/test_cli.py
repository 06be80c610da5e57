"""
Tests for the helya CLI.

main() configures logging, so every test restores the loggers it touched.
"""

import json
import logging
from unittest.mock import patch

import pytest

from helya.__main__ import create_parser, main

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
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate


def _write_config(tmp_path, **overrides):
    config = {
        "credentials": {"discord_token": "token"},
        "database": {"path": str(tmp_path / "helya.db")},
    }
    config.update(overrides)
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config))
    return path


class TestParser:
    def test_defaults(self):
        args = create_parser().parse_args([])
        assert args.command is None
        assert str(args.config) == "config.json"
        assert args.log_level is None

    def test_subcommand_and_options(self):
        args = create_parser().parse_args(["--config", "x.json", "--log-level", "DEBUG", "migrate"])
        assert args.command == "migrate"
        assert str(args.config) == "x.json"
        assert args.log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--log-level", "LOUD"])


class TestMain:
    def test_missing_config_file(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.json"), "config"]) == 1
        assert "Error loading settings" in capsys.readouterr().err

    def test_config_command(self, tmp_path):
        assert main(["--config", str(_write_config(tmp_path)), "config"]) == 0

    def test_migrate_creates_database(self, tmp_path):
        config = _write_config(tmp_path)

        assert main(["--config", str(config), "migrate"]) == 0
        assert (tmp_path / "helya.db").is_file()

    def test_run_without_token(self, tmp_path, monkeypatch):
        monkeypatch.delenv("HELYA_CREDENTIALS__DISCORD_TOKEN", raising=False)
        config = _write_config(tmp_path, credentials={})

        with patch("helya.__main__.BotRunner") as runner:
            assert main(["--config", str(config), "run"]) == 1
        runner.assert_not_called()

    def test_log_level_override(self, tmp_path):
        main(["--config", str(_write_config(tmp_path)), "--log-level", "ERROR", "config"])
        assert logging.getLogger("helya").level == logging.ERROR
