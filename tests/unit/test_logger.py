"""
Unit tests for the Logger port and the StandardLogger adapter.
"""

import pytest
import logging
from unittest.mock import patch
from ar_analytics.core.ports.logger import Logger
from ar_analytics.adapters.logger.standard_logger import StandardLogger


class TestLoggerPort:
    """Test the Logger port contract."""

    def test_logger_is_abstract(self):
        with pytest.raises(TypeError):
            Logger()

    def test_warning_delegates_to_warn(self):
        logger = StandardLogger("ar_analytics.test")
        with patch.object(logger, "warn") as mock_warn:
            logger.warning("Dropping ST01 bucket 20150622", metric="reliability")
            mock_warn.assert_called_once_with("Dropping ST01 bucket 20150622", metric="reliability")


class TestStandardLogger:
    """Test cases for the StandardLogger implementation."""

    def test_creation(self):
        logger = StandardLogger("ar_analytics.test")
        assert isinstance(logger, Logger)
        assert logger.get_logger().name == "ar_analytics.test"

    def test_default_name(self):
        assert StandardLogger()._logger.name == "ar_analytics"

    @pytest.mark.parametrize("method,target", [
        ("info", "info"),
        ("error", "error"),
        ("warn", "warning"),
        ("debug", "debug"),
    ])
    def test_levels(self, method, target):
        logger = StandardLogger("ar_analytics.test")
        with patch.object(logger._logger, target) as mock_log:
            getattr(logger, method)("Computed 5 results")
            mock_log.assert_called_once_with("Computed 5 results")

    def test_kwargs_are_appended(self):
        logger = StandardLogger("ar_analytics.test")
        with patch.object(logger._logger, "info") as mock_info:
            logger.info("Cache cleared", endpoint="ngis", removed=3)
            mock_info.assert_called_once_with("Cache cleared endpoint=ngis removed=3")

    def test_set_level(self):
        logger = StandardLogger("ar_analytics.test")
        logger.set_level(logging.DEBUG)

        assert logger._logger.level == logging.DEBUG
        for handler in logger._logger.handlers:
            assert handler.level == logging.DEBUG

    def test_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "warning")
        logger = StandardLogger("ar_analytics.env")
        assert logger._logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        logger = StandardLogger("ar_analytics.env")
        assert logger._logger.level == logging.INFO

    def test_single_handler_per_name(self):
        StandardLogger("ar_analytics.shared")
        logger = StandardLogger("ar_analytics.shared")
        assert len(logger._logger.handlers) == 1

    def test_formatter(self):
        logger = StandardLogger("ar_analytics.test")
        for handler in logger._logger.handlers:
            assert "%(levelname)s" in handler.formatter._fmt
            assert "%(message)s" in handler.formatter._fmt
