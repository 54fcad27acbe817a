"""Authentication and authorization dependencies.

Routes compose these through FastAPI's dependency chain: SuperAdmin depends
on CurrentPayload, so authentication always runs first and the first failure
short-circuits the request.
"""

from typing import Annotated

from fastapi import Depends, Header

from src.authcore.api.dependencies.services import TokenIssuerDep
from src.authcore.core.exceptions import ForbiddenError, InvalidTokenError, UnauthenticatedError
from src.authcore.core.logging import bind_user_context
from src.authcore.schemas.auth import TokenPayload

BEARER_SCHEME = "bearer"


async def get_token_payload(
    issuer: TokenIssuerDep,
    authorization: Annotated[str | None, Header()] = None,
) -> TokenPayload:
    """Validate the bearer access token and return its payload.

    Missing header, wrong scheme, bad signature, expiry and malformed claims
    all produce the same UnauthenticatedError, so callers learn nothing about
    why a token was rejected.
    """
    # Scheme names are case-insensitive (RFC 7235)
    scheme, _, token = (authorization or "").partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER_SCHEME or not token:
        raise UnauthenticatedError()

    try:
        payload = issuer.verify(token)
    except InvalidTokenError as e:
        raise UnauthenticatedError() from e

    bind_user_context(payload.sub, payload.tenant_id, payload.email)
    return payload


CurrentPayload = Annotated[TokenPayload, Depends(get_token_payload)]


async def require_super_admin(payload: CurrentPayload) -> TokenPayload:
    """Require the authenticated caller to be a super-admin."""
    if not payload.is_super_admin:
        raise ForbiddenError()
    return payload


SuperAdmin = Annotated[TokenPayload, Depends(require_super_admin)]
