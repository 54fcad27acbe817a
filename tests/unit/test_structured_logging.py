"""Tests for structured logging context."""

from uuid import uuid4

import pytest
import structlog
from structlog.testing import CapturingLogger

from src.authcore.core.config import get_settings
from src.authcore.core.logging import (
    bind_request_context,
    bind_user_context,
    clear_request_context,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def capturing_logger():
    """Route structlog output into a CapturingLogger for the test."""
    cap_logger = CapturingLogger()
    old_config = structlog.get_config()

    structlog.configure(
        processors=[structlog.contextvars.merge_contextvars],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=lambda *args, **kwargs: cap_logger,
        cache_logger_on_first_use=False,
    )

    clear_request_context()
    yield cap_logger
    clear_request_context()
    structlog.configure(**old_config)


def test_bind_request_context(capturing_logger):
    bind_request_context("test-request-123")
    structlog.get_logger().info("test message")

    assert capturing_logger.calls[0].kwargs["request_id"] == "test-request-123"


def test_bind_request_context_with_none(capturing_logger):
    bind_request_context(None)
    structlog.get_logger().info("test message")

    assert "request_id" not in capturing_logger.calls[0].kwargs


def test_bind_user_context_hides_email_by_default(capturing_logger):
    user_id = uuid4()

    bind_user_context(user_id, "acme", "user@example.com")
    structlog.get_logger().info("test message")

    kwargs = capturing_logger.calls[0].kwargs
    assert kwargs["user_id"] == str(user_id)
    assert kwargs["tenant_id"] == "acme"
    assert "user_email" not in kwargs


def test_bind_user_context_with_email_logging(capturing_logger, monkeypatch):
    monkeypatch.setattr(get_settings(), "log_user_emails", True)

    bind_user_context(uuid4(), None, "user@example.com")
    structlog.get_logger().info("test message")

    kwargs = capturing_logger.calls[0].kwargs
    assert kwargs["user_email"] == "user@example.com"
    assert kwargs["tenant_id"] is None


def test_clear_request_context(capturing_logger):
    bind_request_context("req-1")
    clear_request_context()
    structlog.get_logger().info("test message")

    assert "request_id" not in capturing_logger.calls[0].kwargs
