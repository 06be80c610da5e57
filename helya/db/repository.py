"""Repository pattern for database access.

Wraps an ``AsyncSession`` from ``HelyaDatabase.get_context()``. Methods flush
but never commit; the caller decides when the unit of work is done.
"""

from __future__ import annotations

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from helya.db.models import GuildSettingsRow, OsuLinkRow


class Repository:
    """Async repository for all database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- osu! account links ---

    async def get_osu_link(self, discord_user_id: int) -> OsuLinkRow | None:
        return await self.session.get(OsuLinkRow, discord_user_id)

    async def upsert_osu_link(
        self,
        discord_user_id: int,
        osu_user_id: int,
        osu_username: str,
        mode: str = "osu",
    ) -> OsuLinkRow:
        """Link a Discord user to an osu! account, replacing any existing link."""
        row = await self.get_osu_link(discord_user_id)
        if row is None:
            row = OsuLinkRow(discord_user_id=discord_user_id)
            self.session.add(row)
        row.osu_user_id = osu_user_id
        row.osu_username = osu_username
        row.mode = mode
        await self.session.flush()
        return row

    async def delete_osu_link(self, discord_user_id: int) -> bool:
        """Remove a user's link. Returns False if there was nothing to remove."""
        result = await self.session.execute(
            delete(OsuLinkRow).where(OsuLinkRow.discord_user_id == discord_user_id)
        )
        return result.rowcount > 0

    # --- Guild settings ---

    async def get_guild_mode(self, guild_id: int) -> str | None:
        """The guild's default osu! mode, or None if it never set one."""
        row = await self.session.get(GuildSettingsRow, guild_id)
        return row.default_mode if row else None

    async def set_guild_mode(self, guild_id: int, mode: str) -> GuildSettingsRow:
        row = await self.session.get(GuildSettingsRow, guild_id)
        if row is None:
            row = GuildSettingsRow(guild_id=guild_id)
            self.session.add(row)
        row.default_mode = mode
        await self.session.flush()
        return row
