"""
Unit tests for structured logging helpers.
"""

import pytest
import structlog
from structlog.testing import capture_logs

from photoquest.logging_config import (
    SERVICE_NAME,
    add_service_context,
    build_processors,
    get_log_level,
    is_development_environment,
    log_context,
    log_error,
    log_performance,
)


class TestLogLevel:
    @pytest.mark.parametrize("name,expected", [("DEBUG", 10), ("warning", 30), (" error ", 40), ("VERBOSE", 20)])
    def test_get_log_level(self, monkeypatch, name, expected):
        monkeypatch.setenv("LOG_LEVEL", name)
        assert get_log_level() == expected

    def test_default_is_info(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert get_log_level() == 20

    @pytest.mark.parametrize("environment,expected", [("local", True), ("testing", False), ("production", False)])
    def test_is_development_environment(self, monkeypatch, environment, expected):
        monkeypatch.setenv("ENVIRONMENT", environment)
        assert is_development_environment() is expected


class TestProcessors:
    def test_json_renderer_outside_development(self):
        assert isinstance(build_processors(development=False)[-1], structlog.processors.JSONRenderer)

    def test_console_renderer_in_development(self):
        assert isinstance(build_processors(development=True)[-1], structlog.dev.ConsoleRenderer)

    def test_context_variables_merged_first(self):
        assert build_processors(development=False)[0] is structlog.contextvars.merge_contextvars

    def test_add_service_context(self):
        event_dict = add_service_context(None, "info", {"event": "photo_saved_locally"})

        assert event_dict["service"] == SERVICE_NAME
        assert event_dict["environment"] == "testing"

    def test_add_service_context_keeps_explicit_values(self):
        event_dict = add_service_context(None, "info", {"event": "x", "service": "worker"})
        assert event_dict["service"] == "worker"


class TestLogHelpers:
    def test_log_performance(self):
        with capture_logs() as logs:
            log_performance("remote_upload", 0.25, provider="cloudinary")

        assert logs[0]["event"] == "performance_metric"
        assert logs[0]["duration_ms"] == 250.0
        assert logs[0]["provider"] == "cloudinary"

    def test_log_error(self):
        error = ValueError("bad header")

        with capture_logs() as logs:
            log_error(error, {"operation": "fit_within"})

        assert logs[0]["event"] == "error_occurred"
        assert logs[0]["log_level"] == "error"
        assert logs[0]["error_type"] == "ValueError"
        assert logs[0]["operation"] == "fit_within"


class TestLogContext:
    def test_yields_bound_logger(self):
        with capture_logs() as logs:
            with log_context(file="photos/a.jpg") as file_logger:
                file_logger.info("batch_file_stored")

        assert logs[0]["file"] == "photos/a.jpg"

    def test_binds_context_variables_for_the_block(self):
        with log_context(file="photos/a.jpg"):
            assert structlog.contextvars.get_contextvars() == {"file": "photos/a.jpg"}

        assert structlog.contextvars.get_contextvars() == {}

    def test_exception_logged_and_reraised(self):
        with capture_logs() as logs:
            with pytest.raises(OSError):
                with log_context(file="photos/a.jpg"):
                    raise OSError("disk full")

        assert logs[0]["event"] == "context_exception"
        assert logs[0]["exception_type"] == "OSError"
        assert logs[0]["file"] == "photos/a.jpg"
