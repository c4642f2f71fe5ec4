"""
Unit tests for OAuth logging utilities.

Tests the OAuthLogger class and related logging functions to ensure
proper message formatting and that secrets never reach the log.
"""

import logging

import pytest
from unittest.mock import patch

from src.shared.logging_utils import (
    OAuthLogger,
    ComponentType,
    MessageType,
    create_logger
)


class TestComponentType:
    """Test cases for ComponentType enum."""

    def test_component_type_values(self):
        """Test that component types have correct values."""
        assert ComponentType.PROVIDER == "PROVIDER"
        assert ComponentType.CLIENT_AUTH == "CLIENT-AUTH"
        assert ComponentType.BACKEND == "BACKEND"
        assert ComponentType.SYSTEM == "SYSTEM"


class TestMessageType:
    """Test cases for MessageType enum."""

    def test_message_type_values(self):
        assert MessageType.RESPONSE == "RESPONSE"
        assert MessageType.SUCCESS == "SUCCESS"
        assert MessageType.ERROR == "ERROR"


class TestOAuthLogger:
    """Test cases for OAuthLogger class."""

    def test_logger_initialization(self):
        logger = OAuthLogger("provider")

        assert logger.component_name == "PROVIDER"
        assert logger.logger.name == "oauth2.provider"
        assert "CLIENT-AUTH" in logger.colors

    def test_handler_attached_once(self):
        """Test that creating a logger twice does not duplicate output."""
        first = OAuthLogger("backend")
        handlers_before = list(first.logger.handlers)

        second = OAuthLogger("backend")

        assert second.logger.handlers == handlers_before
        console_handlers = [
            h for h in second.logger.handlers if h.get_name() == OAuthLogger.HANDLER_NAME
        ]
        assert len(console_handlers) == 1
        assert second.logger.propagate is False

    def test_console_handler_added_next_to_foreign_handlers(self):
        """Test that handlers installed by others do not suppress console output."""
        logger = logging.getLogger("oauth2.client-auth-extra")
        foreign = logging.NullHandler()
        logger.addHandler(foreign)
        try:
            oauth_logger = OAuthLogger("client-auth-extra")

            names = [h.get_name() for h in oauth_logger.logger.handlers]
            assert OAuthLogger.HANDLER_NAME in names
            assert foreign in oauth_logger.logger.handlers
        finally:
            logger.handlers.clear()

    def test_format_timestamp(self):
        timestamp = OAuthLogger("provider")._format_timestamp()

        assert "-" in timestamp
        assert ":" in timestamp
        assert "." in timestamp

    def test_sanitize_data_secrets(self):
        """Test that secrets and credentials are redacted."""
        logger = OAuthLogger("provider")
        sanitized = logger._sanitize_data({
            "client_secret": "s1",
            "Authorization": "Basic YzE6czE=",
            "password": "hunter2",
            "client_id": "c1"
        })

        assert sanitized["client_secret"] == "[REDACTED]"
        assert sanitized["Authorization"] == "[REDACTED]"
        assert sanitized["password"] == "[REDACTED]"
        assert sanitized["client_id"] == "c1"

    def test_sanitize_data_tokens_truncated(self):
        logger = OAuthLogger("provider")
        sanitized = logger._sanitize_data({
            "access_token": "abcdefghijklmnopqrstuvwxyz",
            "code": "ABC123",
            "refresh_token": None
        })

        assert sanitized["access_token"] == "abcdefghij..."
        assert sanitized["code"] == "ABC123"
        assert sanitized["refresh_token"] is None

    def test_log_oauth_message_success(self):
        logger = OAuthLogger("provider")

        with patch.object(logger.logger, "log") as mock_log:
            logger.log_oauth_message(
                "CLIENT", "PROVIDER", "Token Request",
                {"grant_type": "authorization_code", "code": "abcdefghijklmnop"}
            )

        level, message = mock_log.call_args[0]
        assert level == logging.INFO
        assert "CLIENT" in message
        assert "PROVIDER" in message
        assert "Token Request" in message
        assert "abcdefghij..." in message
        assert "abcdefghijklmnop" not in message

    def test_log_oauth_message_with_enum_members(self):
        """Test that components and message types are logged by their value."""
        logger = OAuthLogger(ComponentType.CLIENT_AUTH)

        with patch.object(logger.logger, "log") as mock_log:
            logger.log_oauth_message(
                ComponentType.BACKEND, ComponentType.CLIENT_AUTH,
                MessageType.RESPONSE, {"client_id": "c1"}
            )

        message = mock_log.call_args[0][1]
        assert logger.component_name == "CLIENT-AUTH"
        assert logger.logger.name == "oauth2.client-auth"
        assert "BACKEND" in message
        assert "RESPONSE:" in message
        assert "ComponentType" not in message
        assert "MessageType" not in message

    def test_log_oauth_message_failure_is_warning(self):
        logger = OAuthLogger("provider")

        with patch.object(logger.logger, "log") as mock_log:
            logger.log_oauth_message("PROVIDER", "CLIENT", "Rejected", {}, success=False)

        assert mock_log.call_args[0][0] == logging.WARNING

    def test_log_error(self):
        logger = OAuthLogger("client-auth")

        with patch.object(logger.logger, "log") as mock_log:
            logger.log_error("authentication_failed", "invalid client credentials",
                             {"client_secret": "s1"})

        level, message = mock_log.call_args[0]
        assert level == logging.WARNING
        assert "authentication_failed" in message
        assert "ERROR-HANDLER" in message
        assert "[REDACTED]" in message

    def test_log_info(self):
        logger = OAuthLogger("backend")

        with patch.object(logger.logger, "info") as mock_info:
            logger.log_info("Codes cleaned up", {"removed": 3})

        message = mock_info.call_args[0][0]
        assert "BACKEND: Codes cleaned up" in message
        assert "removed: 3" in message

    def test_log_startup(self):
        logger = OAuthLogger("provider")

        with patch.object(logger.logger, "info") as mock_info:
            logger.log_startup(8081, {"token_endpoint": "/oauth2/token"})

        message = mock_info.call_args[0][0]
        assert "PROVIDER started on port 8081" in message
        assert "token_endpoint: /oauth2/token" in message


class TestCreateLogger:
    """Test cases for create_logger factory function."""

    def test_create_logger(self):
        logger = create_logger("provider")

        assert isinstance(logger, OAuthLogger)
        assert logger.component_name == "PROVIDER"
