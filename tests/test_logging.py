"""Tests for structured logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

from akhbarna.app.core.logging import (
    ContextFilter,
    JSONFormatter,
    get_log_context,
    get_logger,
    get_logging_config,
    setup_logging,
)


def _record(msg="Test message", level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:
    """Test JSON formatter for structured logging."""

    def test_basic_json_format(self):
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "test"
        assert data["message"] == "Test message"
        assert "timestamp" in data
        assert data["source"]["file"] == "test.py"
        assert data["source"]["line"] == 1

    def test_json_format_with_context(self):
        record = _record("Rate limit exceeded")
        record.policy = "auth"
        record.rate_limit_key = "auth:10.0.0.1"
        record.request_id = "req-1"
        record.client_ip = "10.0.0.1"

        data = json.loads(JSONFormatter().format(record))

        assert data["policy"] == "auth"
        assert data["rate_limit_key"] == "auth:10.0.0.1"
        assert data["request_id"] == "req-1"
        assert data["client_ip"] == "10.0.0.1"
        assert "extra" not in data

    def test_json_format_with_extra_fields(self):
        record = _record("Custom event")
        record.retry_after = 899
        record.another_field = "value"

        data = json.loads(JSONFormatter().format(record))

        assert data["extra"]["retry_after"] == 899
        assert data["extra"]["another_field"] == "value"

    def test_json_format_skips_empty_context(self):
        record = _record()
        ContextFilter().filter(record)

        data = json.loads(JSONFormatter().format(record))

        assert "policy" not in data
        assert "extra" not in data

    def test_json_format_with_exception(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            record = _record("Error occurred", level=logging.ERROR, exc_info=sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        exception_text = "".join(data["exception"])
        assert "ValueError" in exception_text
        assert "Test error" in exception_text

    def test_json_format_unicode(self):
        data = json.loads(JSONFormatter().format(_record("تم تجاوز الحد المسموح")))
        assert data["message"] == "تم تجاوز الحد المسموح"


class TestContextFilter:
    """Test context filter for adding default fields."""

    def test_adds_default_fields(self):
        record = _record()

        assert ContextFilter().filter(record) is True
        for field in ("request_id", "policy", "rate_limit_key", "client_ip", "path", "method"):
            assert hasattr(record, field)
            assert getattr(record, field) is None

    def test_preserves_existing_values(self):
        record = _record()
        record.policy = "contact"

        ContextFilter().filter(record)

        assert record.policy == "contact"


class TestGetLoggingConfig:
    """Test logging configuration generation."""

    def test_default_text_format(self):
        with patch("akhbarna.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "text"
            mock_settings.log_level = "INFO"

            config = get_logging_config()

        assert "json" not in config["formatters"]
        assert config["handlers"]["console"]["formatter"] == "standard"

    def test_structured_format(self):
        with patch("akhbarna.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "structured"
            mock_settings.log_level = "DEBUG"

            config = get_logging_config()

        assert config["handlers"]["console"]["formatter"] == "structured"
        assert config["handlers"]["console"]["level"] == "DEBUG"
        assert "policy=%(policy)s" in config["formatters"]["structured"]["format"]

    def test_json_format(self):
        with patch("akhbarna.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "WARNING"

            config = get_logging_config()

        assert config["formatters"]["json"]["()"] == "akhbarna.app.core.logging.JSONFormatter"
        assert config["handlers"]["console"]["formatter"] == "json"

    def test_context_filter_added(self):
        config = get_logging_config()

        assert "context" in config["filters"]
        assert "context" in config["handlers"]["console"]["filters"]
        assert config["loggers"]["akhbarna"]["propagate"] is False


class TestGetLogContext:
    """Test get_log_context helper function."""

    def test_context_filters_none(self):
        context = get_log_context(policy="auth", rate_limit_key=None, path="/api/auth/login")

        assert context == {"policy": "auth", "path": "/api/auth/login"}

    def test_context_with_extra(self):
        context = get_log_context(policy="search", retry_after=30)

        assert context["retry_after"] == 30


class TestIntegration:
    """Integration tests for logging system."""

    def test_get_logger_default_name(self):
        assert get_logger().name == "akhbarna"

    def test_json_logging_output(self, capsys):
        with patch("akhbarna.app.core.logging.settings") as mock_settings:
            mock_settings.log_format = "json"
            mock_settings.log_level = "INFO"

            setup_logging()
            logger = get_logger("akhbarna.test")
            logger.warning(
                "Rate limit exceeded",
                extra=get_log_context(policy="auth", rate_limit_key="auth:10.0.0.1"),
            )

        data = json.loads(capsys.readouterr().out.strip())
        assert data["level"] == "WARNING"
        assert data["logger"] == "akhbarna.test"
        assert data["policy"] == "auth"
        assert data["rate_limit_key"] == "auth:10.0.0.1"
