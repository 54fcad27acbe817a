"""Shared enums for models."""

from enum import Enum


class AuditAction(str, Enum):
    """Auth events recorded in the audit log."""

    LOGIN = "login"
    REGISTER = "register"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class FailureReason(str, Enum):
    """Reason codes stored in an audit entry's details."""

    TOO_MANY_ATTEMPTS = "too_many_attempts"
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_INACTIVE = "account_inactive"
    TENANT_ACCESS_DENIED = "tenant_access_denied"
    EMAIL_ALREADY_REGISTERED = "email_already_registered"
