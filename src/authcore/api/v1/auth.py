"""Authentication endpoints."""

from fastapi import APIRouter
from starlette.requests import Request

from src.authcore.api.dependencies import AuthServiceDep, CurrentPayload, SuperAdmin
from src.authcore.core.audit_context import get_audit_context
from src.authcore.core.rate_limit import LOGIN_LIMIT, REFRESH_LIMIT, REGISTER_LIMIT, limiter
from src.authcore.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RefreshRequest,
    RegisterRequest,
    TokenPayload,
)
from src.authcore.schemas.user import UserSummary

router = APIRouter(prefix="/auth", tags=["auth"])

_TOKENS_EXAMPLE = {
    "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
    "refresh_token": "q0N3c1n3Wm9lY2x0bXdJb0k1a2pYb0pDR0xUVGVtb3dW...",
    "token_type": "bearer",
    "user": {
        "id": "550e8400-e29b-41d4-a716-446655440000",
        "email": "user@example.com",
        "tenant_id": "acme",
        "roles": ["member"],
        "is_super_admin": False,
    },
}


def _request_meta() -> tuple[str | None, str | None]:
    ctx = get_audit_context()
    if ctx is None:
        return None, None
    return ctx.ip_address, ctx.user_agent


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        200: {
            "description": "Successful authentication",
            "content": {"application/json": {"example": _TOKENS_EXAMPLE}},
        },
        401: {"description": "Invalid credentials"},
        403: {"description": "Too many failed attempts, inactive account, or tenant denied"},
    },
)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request, login_data: LoginRequest, service: AuthServiceDep
) -> LoginResponse:
    """Authenticate with email and password, optionally for a specific tenant."""
    ip_address, user_agent = _request_meta()
    result = await service.login(
        login_data.email,
        login_data.password,
        tenant_id=login_data.tenant_id,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        user=result.user,
    )


@router.post(
    "/refresh",
    response_model=LoginResponse,
    responses={
        200: {
            "description": "Token refreshed with rotation",
            "content": {"application/json": {"example": _TOKENS_EXAMPLE}},
        },
        401: {"description": "Invalid, revoked or expired refresh token"},
        403: {"description": "User account is inactive"},
    },
)
@limiter.limit(REFRESH_LIMIT)
async def refresh(
    request: Request, refresh_data: RefreshRequest, service: AuthServiceDep
) -> LoginResponse:
    """Exchange a refresh token for a new access/refresh pair.

    The presented refresh token is revoked and can't be used again.
    """
    ip_address, user_agent = _request_meta()
    result = await service.refresh(
        refresh_data.refresh_token,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        user=result.user,
    )


@router.post(
    "/register",
    response_model=UserSummary,
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Caller is not a super admin, or email already registered"},
    },
)
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request,
    register_data: RegisterRequest,
    _: SuperAdmin,
    service: AuthServiceDep,
) -> UserSummary:
    """Create a user. Super-admin only."""
    ip_address, user_agent = _request_meta()
    return await service.register(
        email=register_data.email,
        password=register_data.password,
        tenant_id=register_data.tenant_id,
        roles=register_data.roles,
        is_super_admin=register_data.is_super_admin,
        ip_address=ip_address,
        user_agent=user_agent,
    )


@router.post("/logout", response_model=LogoutResponse)
async def logout(payload: CurrentPayload, service: AuthServiceDep) -> LogoutResponse:
    """Revoke every refresh token of the caller. Safe to repeat."""
    revoked = await service.logout(payload.sub)
    return LogoutResponse(revoked=revoked)


@router.get("/profile", response_model=TokenPayload)
async def profile(payload: CurrentPayload) -> TokenPayload:
    """Return the claims of the caller's access token."""
    return payload
