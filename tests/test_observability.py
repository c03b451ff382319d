"""
Tests for logging setup.
"""

import logging

import pytest

from devbootstrap.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    ENV_LOG_LEVEL,
    configure_logging,
    console_level,
    level_number,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLevels:
    def test_flag_precedence(self):
        assert console_level(debug=True, verbose=True, quiet=True) == logging.DEBUG
        assert console_level(verbose=True, quiet=True) == logging.INFO
        assert console_level(quiet=True) == logging.ERROR

    def test_env_fallback(self):
        assert console_level(env_level="info") == logging.INFO
        assert console_level() == logging.WARNING

    def test_level_number(self):
        assert level_number(" Error ") == logging.ERROR
        assert level_number("chatty") == logging.WARNING
        assert level_number(None, default=logging.DEBUG) == logging.DEBUG


class TestConfigureLogging:
    def test_console_only(self):
        level = configure_logging(verbose=True, environ={})
        root = logging.getLogger()
        assert level == logging.INFO
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_env_level(self):
        assert configure_logging(environ={ENV_LOG_LEVEL: "error"}) == logging.ERROR

    def test_file_defaults_to_debug(self, tmp_path):
        log_file = tmp_path / "run.log"
        configure_logging(quiet=True, environ={ENV_LOG_FILE: str(log_file)})

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("devbootstrap.test").debug("written to file")
        for handler in root.handlers:
            handler.flush()
        assert "written to file" in log_file.read_text()

    def test_file_level_from_env(self, tmp_path):
        configure_logging(
            environ={ENV_LOG_FILE: str(tmp_path / "run.log"), ENV_LOG_FILE_LEVEL: "INFO"},
        )
        assert logging.getLogger().level == logging.INFO

    def test_repeated_setup_replaces_handlers(self):
        configure_logging(environ={})
        configure_logging(debug=True, environ={})
        assert len(logging.getLogger().handlers) == 1
