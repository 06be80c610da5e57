"""
SQLite access for Helya (async SQLAlchemy over aiosqlite).

Usage::

    database = await HelyaDatabase.create(settings)   # opens + migrates
    async with database.get_context() as session:
        repo = Repository(session)
        ...
        await session.commit()
    await database.dispose()

Every context gets ``journal_mode=WAL`` and ``synchronous=OFF``. With
synchronous off, SQLite does not wait for the OS to flush writes, so the last
few committed transactions can be lost on power failure (not on a process
crash). Helya only stores links and preferences, so write throughput wins.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import URL, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from helya.config.logging import get_logger
from helya.config.settings import DatabaseSettings, Settings
from helya.db import migrations
from helya.errors import DatabaseError, MigrationError

logger = get_logger(__name__)

CONTEXT_PRAGMAS = ("PRAGMA journal_mode=WAL", "PRAGMA synchronous=OFF")


def _key_pragma(password: str) -> str:
    escaped = password.replace("'", "''")
    return f"PRAGMA key = '{escaped}'"


class HelyaDatabase:
    """
    Owns the engine, runs migrations, and hands out per-operation sessions.

    A session from ``get_context()`` must not be shared between concurrent
    tasks; acquire one per unit of work.

    Args:
        settings: Database file path and lock timeout
        password: Database key applied with ``PRAGMA key`` on every new
            connection. Stock SQLite ignores it; SQLCipher builds encrypt.
        sensitive_logging: Include bound parameter values in SQL error messages
    """

    def __init__(
        self,
        settings: DatabaseSettings,
        password: str = "",
        *,
        sensitive_logging: bool = False,
    ) -> None:
        self.settings = settings
        self.url = URL.create("sqlite+aiosqlite", database=str(settings.path))
        self._engine: AsyncEngine = create_async_engine(
            self.url,
            connect_args={"timeout": settings.command_timeout},
            hide_parameters=not sensitive_logging,
        )
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)
        self._disposed = False

        if password:
            key_pragma = _key_pragma(password)

            @event.listens_for(self._engine.sync_engine, "connect")
            def _apply_key(dbapi_conn: object, connection_record: object) -> None:
                cursor = dbapi_conn.cursor()  # type: ignore[attr-defined]
                cursor.execute(key_pragma)
                cursor.close()

    @classmethod
    async def create(cls, settings: Settings) -> HelyaDatabase:
        """
        Build the wrapper from full settings and bring the schema up to date.

        Returns only once migrations have finished; a migration failure
        disposes the engine and propagates.
        """
        database = cls(
            settings.database,
            password=settings.credentials.db_password,
            sensitive_logging=settings.environment == "development",
        )
        try:
            await database.setup()
        except Exception:  # Re-raise pattern, engine must not leak on failure
            await database.dispose()
            raise
        return database

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def disposed(self) -> bool:
        return self._disposed

    async def setup(self) -> None:
        """
        Apply pending migrations until none remain, then enable WAL.

        Each pass checks for pending migrations on a fresh connection and
        applies each one in its own transaction together with its version row,
        so a failure keeps every earlier migration. A migration that makes
        more migrations pending is picked up on the next pass.

        Raises:
            MigrationError: If any migration fails, or a pass leaves the same
                migrations pending
        """
        previous: list[int] | None = None
        try:
            while True:
                async with self._engine.connect() as conn:
                    pending = await migrations.get_pending(conn)
                if not pending:
                    break

                versions = [m.version for m in pending]
                if versions == previous:
                    raise MigrationError(
                        f"Migrations {versions} are still pending after being applied"
                    )
                for migration in pending:
                    await self._apply_migration(migration)
                previous = versions

            async with self._engine.begin() as conn:
                await conn.exec_driver_sql("PRAGMA journal_mode=WAL")
        except SQLAlchemyError as e:
            raise MigrationError(f"Database migration failed: {e}") from e

        if previous is None:
            logger.info(f"Database schema is up to date ({self.settings.path})")
        else:
            logger.info(f"Database migrated ({self.settings.path})")

    async def _apply_migration(self, migration: migrations.Migration) -> None:
        # The sqlite3 driver only opens a transaction before DML, so DDL would
        # autocommit. An explicit BEGIN makes the DDL and the version row one
        # unit: a failure leaves neither behind.
        async with self._engine.connect() as conn:
            await conn.exec_driver_sql("BEGIN")
            try:
                await migrations.apply(conn, [migration])
            except Exception:  # Re-raise pattern, the migration must not half-apply
                await conn.rollback()
                raise
            await conn.commit()

    async def pending_migrations(self) -> list[int]:
        """Versions of migrations not yet applied to the database file."""
        async with self._engine.connect() as conn:
            return [m.version for m in await migrations.get_pending(conn)]

    @asynccontextmanager
    async def get_context(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a new session with its connection open and pragmas applied.

        The session is closed when the block exits. Nothing is committed
        automatically.

        Raises:
            DatabaseError: If the database has been disposed
        """
        if self._disposed:
            raise DatabaseError("Database has been disposed")

        async with self._session_factory() as session:
            conn = await session.connection()
            for pragma in CONTEXT_PRAGMAS:
                await conn.exec_driver_sql(pragma)
            yield session

    async def dispose(self) -> None:
        """Close all pooled connections. Safe to call more than once."""
        if self._disposed:
            return
        self._disposed = True
        await self._engine.dispose()
        logger.info("Database connections closed")
