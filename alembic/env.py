"""Alembic environment -- async-aware.

The database URL comes from ``NOVACHAT_THIRD_PARTY__POSTGRES_URI`` when
set, otherwise from the ``ThirdPartyConfig`` default, so migrations and
the running app always agree on the target database.
"""

import asyncio
import os

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine

from novachat.infra.db.models import Base

target_metadata = Base.metadata

DATABASE_URL_ENV = "NOVACHAT_THIRD_PARTY__POSTGRES_URI"


def _database_url() -> str:
    url = os.environ.get(DATABASE_URL_ENV)
    if url:
        return url
    from novachat.configs.system import ThirdPartyConfig

    return ThirdPartyConfig().postgres_uri


def run_migrations_offline() -> None:
    """Emit SQL to stdout without connecting."""
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection) -> None:
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    engine = create_async_engine(_database_url())
    async with engine.connect() as connection:
        await connection.run_sync(_run_sync)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
