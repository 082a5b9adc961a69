"""
Unit Tests for Centralized Logging.

Tests the logging configuration, structured fields, and source handling.
"""

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import MagicMock, patch

import pytest

from notecore.backend.core.logging import (
    VALID_SOURCES,
    get_logger,
    log_with_source,
    setup_logging,
)


class TestValidSources:
    def test_valid_sources_contains_expected_values(self):
        assert VALID_SOURCES == frozenset({"api", "client", "cli", "internal", "unknown"})


class TestSetupLogging:
    """Tests for setup_logging function."""

    @pytest.fixture
    def logging_config(self):
        return {
            "level": "INFO",
            "format": "json",
            "handlers": {
                "console": {"enabled": True},
                "file": {
                    "enabled": False,
                    "path": "logs/system.jsonl",
                    "max_bytes": 10485760,
                    "backup_count": 5,
                },
            },
        }

    @pytest.fixture(autouse=True)
    def _restore_root_logger(self):
        root_logger = logging.getLogger()
        handlers = root_logger.handlers[:]
        level = root_logger.level
        yield
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()
        for handler in handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(level)

    def test_uses_config_defaults(self, logging_config):
        with patch("notecore.backend.core.logging.load_yaml_config", return_value=logging_config):
            setup_logging()

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert [type(h) for h in root_logger.handlers] == [logging.StreamHandler]

    def test_override_takes_precedence(self, logging_config):
        with patch("notecore.backend.core.logging.load_yaml_config", return_value=logging_config):
            setup_logging(level="DEBUG", format_type="console")

        assert logging.getLogger().level == logging.DEBUG

    def test_console_can_be_disabled(self, logging_config):
        with patch("notecore.backend.core.logging.load_yaml_config", return_value=logging_config):
            setup_logging(enable_console=False)

        assert logging.getLogger().handlers == []

    def test_file_logging_writes_under_project_root(self, tmp_path, logging_config):
        with patch("notecore.backend.core.logging.load_yaml_config", return_value=logging_config), \
             patch("notecore.backend.core.logging.find_project_root", return_value=tmp_path):
            setup_logging(enable_console=False, enable_file_logging=True)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], RotatingFileHandler)
        assert (tmp_path / "logs").is_dir()
        assert handlers[0].baseFilename == str(tmp_path / "logs" / "system.jsonl")

    def test_noisy_libraries_quietened(self, logging_config):
        with patch("notecore.backend.core.logging.load_yaml_config", return_value=logging_config):
            setup_logging(level="DEBUG")

        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING


class TestGetLogger:
    def test_get_logger_returns_structlog_logger(self):
        logger = get_logger("test.module")
        assert hasattr(logger, "bind")
        assert hasattr(logger, "info")


class TestLogWithSource:
    """Tests for log_with_source helper function."""

    def test_adds_source_field(self):
        logger = MagicMock()

        log_with_source(logger, "client", "warning", "Save abandoned", note_id="abc")

        logger.warning.assert_called_once_with(
            "Save abandoned",
            source="client",
            note_id="abc",
        )

    def test_level_is_case_insensitive(self):
        logger = MagicMock()

        log_with_source(logger, "cli", "INFO", "Database initialized")

        logger.info.assert_called_once()

    def test_raises_on_invalid_level(self):
        """Unknown levels are an AttributeError, not a silent fallback."""
        logger = get_logger("test")

        with pytest.raises(AttributeError):
            log_with_source(logger, "client", "nonexistent_level", "Test")
