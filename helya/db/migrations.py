"""
Ordered schema migrations.

Each migration is a version number, a short name and the DDL statements that
bring the schema from the previous version to this one. Applied versions are
recorded in ``schema_migrations``; a migration is pending when its version is
not recorded there.

Adding a migration means appending to ``MIGRATIONS`` with the next version.
Never edit or reorder a migration that has shipped.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from sqlalchemy import insert, select, text
from sqlalchemy.ext.asyncio import AsyncConnection

from helya.config.logging import get_logger
from helya.db.models import SchemaMigrationRow

logger = get_logger(__name__)

_TRACKING_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER NOT NULL PRIMARY KEY,
    name VARCHAR(100) NOT NULL,
    applied_at DATETIME
)
"""


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    statements: tuple[str, ...]


MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        version=1,
        name="create_osu_links",
        statements=(
            """
            CREATE TABLE osu_links (
                discord_user_id BIGINT NOT NULL PRIMARY KEY,
                osu_user_id BIGINT NOT NULL,
                osu_username VARCHAR(32) NOT NULL,
                linked_at DATETIME
            )
            """,
        ),
    ),
    Migration(
        version=2,
        name="add_osu_link_mode",
        statements=(
            "ALTER TABLE osu_links ADD COLUMN mode VARCHAR(10) NOT NULL DEFAULT 'osu'",
            "CREATE INDEX ix_osu_links_osu_user_id ON osu_links (osu_user_id)",
        ),
    ),
    Migration(
        version=3,
        name="create_guild_settings",
        statements=(
            """
            CREATE TABLE guild_settings (
                guild_id BIGINT NOT NULL PRIMARY KEY,
                default_mode VARCHAR(10) NOT NULL DEFAULT 'osu',
                updated_at DATETIME
            )
            """,
        ),
    ),
)


def validate_order(migrations: Sequence[Migration]) -> None:
    """Raise ValueError unless versions are positive and strictly increasing."""
    previous = 0
    for migration in migrations:
        if migration.version <= previous:
            raise ValueError(
                f"Migration {migration.name!r} has version {migration.version}, "
                f"expected a version greater than {previous}"
            )
        previous = migration.version


validate_order(MIGRATIONS)


async def get_applied_versions(conn: AsyncConnection) -> set[int]:
    """Return the versions recorded in ``schema_migrations`` (empty on a new database)."""
    result = await conn.execute(
        text("SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'schema_migrations'")
    )
    if result.first() is None:
        return set()

    result = await conn.execute(select(SchemaMigrationRow.version))
    return set(result.scalars().all())


async def get_pending(
    conn: AsyncConnection, migrations: Sequence[Migration] | None = None
) -> list[Migration]:
    """Return the migrations not yet applied (default: all of ``MIGRATIONS``), in version order."""
    if migrations is None:
        migrations = MIGRATIONS
    applied = await get_applied_versions(conn)
    return [m for m in migrations if m.version not in applied]


async def apply(conn: AsyncConnection, migrations: Iterable[Migration]) -> list[int]:
    """
    Apply migrations on ``conn`` and record each one.

    The caller owns the transaction; nothing is committed here.

    Returns:
        The versions applied, in order
    """
    await conn.execute(text(_TRACKING_TABLE_DDL))

    applied = []
    for migration in sorted(migrations, key=lambda m: m.version):
        logger.info(f"Applying migration {migration.version:04d} ({migration.name})")
        for statement in migration.statements:
            await conn.execute(text(statement))
        await conn.execute(
            insert(SchemaMigrationRow).values(version=migration.version, name=migration.name)
        )
        applied.append(migration.version)
    return applied
