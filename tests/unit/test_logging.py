"""Unit tests for logging service."""

import json

import pytest
import structlog

from hco_backend.services.logging_service import (
    configure_logging,
    get_logger,
    is_sensitive_key,
    redact_sensitive,
)


class TestRedactSensitive:
    """Tests for redact_sensitive processor."""

    def test_redacts_password(self):
        """Test password field is redacted."""
        event_dict = {"password": "mypassword", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["password"] == "REDACTED"

    def test_redacts_password_hash(self):
        event_dict = {"password_hash": "$2b$10$abc", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["password_hash"] == "REDACTED"

    def test_redacts_tokens(self):
        """Test access and refresh token fields are redacted."""
        event_dict = {
            "access_token": "eyJhbGciOi.a.b",
            "refreshToken": "eyJhbGciOi.c.d",
            "event": "test",
        }
        result = redact_sensitive(None, None, event_dict)
        assert result["access_token"] == "REDACTED"
        assert result["refreshToken"] == "REDACTED"

    def test_redacts_authorization_and_cookie(self):
        event_dict = {
            "authorization": "Bearer token123",
            "cookie": "accessToken=abc",
            "event": "test",
        }
        result = redact_sensitive(None, None, event_dict)
        assert result["authorization"] == "REDACTED"
        assert result["cookie"] == "REDACTED"

    def test_redacts_secret_in_key_name(self):
        """Test fields containing 'secret' are redacted."""
        event_dict = {"access_token_secret": "abc123", "event": "test"}
        result = redact_sensitive(None, None, event_dict)
        assert result["access_token_secret"] == "REDACTED"

    def test_event_name_is_never_redacted(self):
        """Event names like token_expired must survive."""
        event_dict = {"event": "refresh_token_rotated"}
        result = redact_sensitive(None, None, event_dict)
        assert result["event"] == "refresh_token_rotated"

    def test_preserves_non_sensitive_fields(self):
        """Test non-sensitive fields are preserved."""
        event_dict = {
            "correlation_id": "abc-123",
            "admin_id": "7c0e...",
            "duration_ms": 100,
        }
        result = redact_sensitive(None, None, event_dict)
        assert result["correlation_id"] == "abc-123"
        assert result["admin_id"] == "7c0e..."
        assert result["duration_ms"] == 100

    def test_case_insensitive_redaction(self):
        """Test redaction works regardless of case."""
        event_dict = {
            "Password": "secret2",
            "SECRET_TOKEN": "secret3",
            "Authorization": "Bearer x",
        }
        result = redact_sensitive(None, None, event_dict)
        assert result["Password"] == "REDACTED"
        assert result["SECRET_TOKEN"] == "REDACTED"
        assert result["Authorization"] == "REDACTED"


class TestIsSensitiveKey:
    """Tests for the key classifier behind redaction."""

    @pytest.mark.parametrize(
        "key",
        ["password", "password_hash", "refreshToken", "access_token_secret", "Cookie"],
    )
    def test_sensitive(self, key):
        assert is_sensitive_key(key) is True

    @pytest.mark.parametrize("key", ["event", "admin_id", "username", "status_code"])
    def test_not_sensitive(self, key):
        assert is_sensitive_key(key) is False


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_get_logger_returns_bound_logger(self):
        """Test get_logger returns a structlog logger."""
        configure_logging("INFO")
        logger = get_logger("test_module")
        assert logger is not None
        logger.info("test_event", data="value")

    def test_get_logger_without_name(self):
        configure_logging("INFO")
        assert get_logger() is not None

    def test_output_is_redacted_json(self, capsys):
        """A logged password never reaches stdout."""
        configure_logging("INFO")
        structlog.contextvars.clear_contextvars()

        get_logger("auth").info("login_attempt", username="siteadmin", password="hunter2hunter2")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "login_attempt"
        assert record["username"] == "siteadmin"
        assert record["password"] == "REDACTED"
        assert record["logger_name"] == "auth"
        assert "hunter2hunter2" not in line

    def test_unknown_level_falls_back_to_info(self, capsys):
        configure_logging("LOUD")

        get_logger().debug("hidden_event")
        get_logger().info("shown_event")

        out = capsys.readouterr().out
        assert "hidden_event" not in out
        assert "shown_event" in out

    def test_debug_filtered_at_info(self, capsys):
        configure_logging("INFO")

        get_logger().debug("noisy_event")

        assert "noisy_event" not in capsys.readouterr().out


class TestCorrelationIdBinding:
    """Tests for correlation ID context binding."""

    def test_correlation_id_merged_into_output(self, capsys):
        """Test correlation ID bound via contextvars appears in each line."""
        configure_logging("INFO")
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id="test-correlation-123")

        try:
            get_logger().info("request_completed")
        finally:
            structlog.contextvars.clear_contextvars()

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["correlation_id"] == "test-correlation-123"

    def test_correlation_id_clears_correctly(self):
        """Test correlation ID can be cleared from context."""
        structlog.contextvars.bind_contextvars(correlation_id="to-be-cleared")
        structlog.contextvars.clear_contextvars()

        assert "correlation_id" not in structlog.contextvars.get_contextvars()
