"""Request metadata captured for audit entries.

Middleware stores the caller's IP address and user agent in a contextvar;
route handlers read it and hand the values to the services explicitly.
"""

from contextvars import ContextVar
from dataclasses import dataclass

USER_AGENT_MAX_LENGTH = 500

_audit_context: ContextVar["AuditContext | None"] = ContextVar("audit_context", default=None)


@dataclass(frozen=True)
class AuditContext:
    """Immutable audit context for the current request."""

    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = None


def set_audit_context(
    ip_address: str | None = None,
    user_agent: str | None = None,
    request_id: str | None = None,
) -> None:
    """Set audit context for the current request."""
    ctx = AuditContext(
        ip_address=ip_address,
        user_agent=user_agent[:USER_AGENT_MAX_LENGTH] if user_agent else user_agent,
        request_id=request_id,
    )
    _audit_context.set(ctx)


def get_audit_context() -> AuditContext | None:
    return _audit_context.get()


def clear_audit_context() -> None:
    _audit_context.set(None)


def get_client_ip(forwarded_for: str | None, client_host: str | None) -> str | None:
    """Extract client IP from X-Forwarded-For header or client host.

    X-Forwarded-For may list several hops; the first one is the client.
    """
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return client_host
