"""FastAPI dependency injection definitions."""

from src.authcore.api.dependencies.auth import (
    CurrentPayload,
    SuperAdmin,
    get_token_payload,
    require_super_admin,
)
from src.authcore.api.dependencies.db import DBSession, get_db_session
from src.authcore.api.dependencies.repositories import (
    TokenRepo,
    UserRepo,
    get_token_repository,
    get_user_repository,
)
from src.authcore.api.dependencies.services import (
    AuditServiceDep,
    AuthServiceDep,
    TokenIssuerDep,
    get_audit_service,
    get_auth_service,
    get_token_issuer,
)

__all__ = [
    # Database
    "DBSession",
    "get_db_session",
    # Auth
    "CurrentPayload",
    "SuperAdmin",
    "get_token_payload",
    "require_super_admin",
    # Repositories
    "TokenRepo",
    "UserRepo",
    "get_token_repository",
    "get_user_repository",
    # Services
    "AuditServiceDep",
    "AuthServiceDep",
    "TokenIssuerDep",
    "get_audit_service",
    "get_auth_service",
    "get_token_issuer",
]
