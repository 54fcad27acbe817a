"""Unit tests for AuditService."""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from src.authcore.core.audit_context import AuditContext
from src.authcore.models import AuditAction, AuditStatus, FailureReason
from src.authcore.services.audit_service import AuditService

pytestmark = pytest.mark.unit


@pytest.fixture
def mock_audit_repo() -> MagicMock:
    """Create mock audit repository."""
    repo = MagicMock()
    repo.add = MagicMock()
    repo.count_failures_since = AsyncMock(return_value=3)
    return repo


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create mock database session."""
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def audit_service(mock_audit_repo, mock_session) -> AuditService:
    return AuditService(mock_audit_repo, mock_session)


class TestLog:
    async def test_log_creates_and_commits_entry(self, audit_service, mock_audit_repo, mock_session):
        user_id = uuid4()

        entry = await audit_service.log(
            AuditAction.LOGIN,
            AuditStatus.SUCCESS,
            email="user@example.com",
            user_id=user_id,
            tenant_id="acme",
        )

        assert entry is mock_audit_repo.add.call_args[0][0]
        assert entry.action == "login"
        assert entry.status == "success"
        assert entry.user_id == user_id
        assert entry.tenant_id == "acme"
        mock_session.commit.assert_awaited_once()

    async def test_log_failure_puts_reason_in_details(self, audit_service, mock_audit_repo):
        await audit_service.log_failure(
            AuditAction.LOGIN,
            FailureReason.TENANT_ACCESS_DENIED,
            details={"attempted_tenant": "globex"},
            email="user@example.com",
        )

        entry = mock_audit_repo.add.call_args[0][0]
        assert entry.status == "failure"
        assert entry.details == {"reason": "tenant_access_denied", "attempted_tenant": "globex"}

    async def test_log_success_has_no_details(self, audit_service, mock_audit_repo):
        await audit_service.log_success(AuditAction.REGISTER, email="new@example.com")

        entry = mock_audit_repo.add.call_args[0][0]
        assert entry.action == "register"
        assert entry.details is None

    @patch("src.authcore.services.audit_service.get_audit_context")
    async def test_log_falls_back_to_request_context(
        self, mock_get_context, audit_service, mock_audit_repo
    ):
        mock_get_context.return_value = AuditContext(
            ip_address="192.168.1.1",
            user_agent="Mozilla/5.0",
            request_id="abc-123",
        )

        await audit_service.log(AuditAction.LOGIN, AuditStatus.SUCCESS)

        entry = mock_audit_repo.add.call_args[0][0]
        assert entry.ip_address == "192.168.1.1"
        assert entry.user_agent == "Mozilla/5.0"
        assert entry.request_id == "abc-123"

    @patch("src.authcore.services.audit_service.get_audit_context")
    async def test_explicit_metadata_wins_over_context(
        self, mock_get_context, audit_service, mock_audit_repo
    ):
        mock_get_context.return_value = AuditContext(ip_address="192.168.1.1", request_id="r1")

        await audit_service.log(
            AuditAction.LOGIN, AuditStatus.SUCCESS, ip_address="10.0.0.9", user_agent="cli"
        )

        entry = mock_audit_repo.add.call_args[0][0]
        assert entry.ip_address == "10.0.0.9"
        assert entry.user_agent == "cli"
        assert entry.request_id == "r1"


class TestWriteFailures:
    async def test_fail_closed_propagates(self, audit_service, mock_session):
        mock_session.commit.side_effect = RuntimeError("audit store down")

        with pytest.raises(RuntimeError, match="audit store down"):
            await audit_service.log_success(AuditAction.LOGIN, email="user@example.com")

        mock_session.rollback.assert_awaited_once()

    async def test_fail_open_swallows(self, mock_audit_repo, mock_session):
        mock_session.commit.side_effect = RuntimeError("audit store down")
        service = AuditService(mock_audit_repo, mock_session, fail_open=True)

        result = await service.log_success(AuditAction.LOGIN, email="user@example.com")

        assert result is None
        mock_session.rollback.assert_awaited_once()

    async def test_rollback_error_does_not_mask_original(self, audit_service, mock_session):
        mock_session.commit.side_effect = RuntimeError("audit store down")
        mock_session.rollback.side_effect = RuntimeError("connection lost")

        with pytest.raises(RuntimeError, match="audit store down"):
            await audit_service.log_success(AuditAction.LOGIN)


class TestQueries:
    async def test_recent_failures_counts_login_only(self, audit_service, mock_audit_repo):
        count = await audit_service.get_recent_failed_attempts("user@example.com", 15)

        assert count == 3
        kwargs = mock_audit_repo.count_failures_since.call_args.kwargs
        assert kwargs["email"] == "user@example.com"
        assert kwargs["action"] == "login"

    async def test_list_logs_delegates(self, audit_service, mock_audit_repo):
        mock_audit_repo.list_logs = AsyncMock(return_value=([], None, False))

        result = await audit_service.list_logs(limit=10, status="failure")

        assert result == ([], None, False)
        assert mock_audit_repo.list_logs.call_args.kwargs["status"] == "failure"
