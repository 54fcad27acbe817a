"""Command line entry point.

Usage:
    authcore create-superadmin --email admin@example.com --password '...' [--tenant-id acme]
    authcore migrate
    authcore serve [--host 0.0.0.0] [--port 8000]
"""

import argparse
import asyncio
import sys

import uvicorn

from src.authcore.core.config import get_settings
from src.authcore.core.db import dispose_engine, get_session, run_migrations_sync
from src.authcore.core.exceptions import DuplicateEmailError
from src.authcore.core.logging import get_logger, setup_logging
from src.authcore.repositories import AuditLogRepository, RefreshTokenRepository, UserRepository
from src.authcore.schemas.user import UserSummary
from src.authcore.services import AuditService, AuthService, TokenIssuer

logger = get_logger(__name__)


async def create_superadmin(email: str, password: str, tenant_id: str | None = None) -> UserSummary:
    """Create the first super-admin directly through AuthService.register.

    HTTP registration requires an existing super-admin, so the first one is
    created here.
    """
    try:
        async with get_session() as session, get_session() as audit_session:
            audit = AuditService(AuditLogRepository(audit_session), audit_session)
            token_repo = RefreshTokenRepository(session)
            service = AuthService(
                UserRepository(session),
                token_repo,
                audit,
                TokenIssuer(token_repo, session),
                session,
            )
            return await service.register(
                email=email,
                password=password,
                tenant_id=tenant_id,
                is_super_admin=True,
            )
    finally:
        await dispose_engine()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="authcore", description="authcore administration")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create-superadmin", help="Create a super-admin user")
    create.add_argument("--email", required=True)
    create.add_argument("--password", required=True)
    create.add_argument("--tenant-id", default=None)

    subparsers.add_parser("migrate", help="Run database migrations to head")

    serve = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(get_settings().debug)

    if args.command == "serve":
        uvicorn.run("src.authcore.main:app", host=args.host, port=args.port, log_level="info")
        return 0

    if args.command == "migrate":
        run_migrations_sync()
        logger.info("Migrations applied")
        return 0

    try:
        user = asyncio.run(create_superadmin(args.email, args.password, args.tenant_id))
    except DuplicateEmailError as e:
        logger.error("Super admin not created", reason=e.detail)
        return 1

    logger.info("Super admin created", user_id=str(user.id), email=user.email)
    return 0


if __name__ == "__main__":
    sys.exit(main())
