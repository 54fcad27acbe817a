"""Migration runner used by the CLI."""

from alembic.config import Config

from alembic import command


def run_migrations_sync(revision: str = "head") -> None:
    """Run Alembic migrations synchronously up to the given revision."""
    alembic_cfg = Config("alembic.ini")
    command.upgrade(alembic_cfg, revision)
