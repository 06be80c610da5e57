"""
OsuCog — the /osu command group.

  /osu link username:<name> [mode]   remember your osu! account
  /osu unlink                        forget it
  /osu profile [username] [mode]     profile summary
  /osu best [username] [mode]        top plays (paginated)
  /osu recent [username] [mode]      recent plays, fails included (paginated)
  /osu firsts [username] [mode]      first-place ranks (paginated)
  /osu mode mode:<mode>              server default mode (Manage Server)

When no username is given the caller's linked account is used. The mode is
picked in order: the explicit option, the linked account's mode (only when
the link is used), the server default, then the player's own main mode.
"""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from helya.bot.embeds import build_profile_embed, build_score_pages, error_embed
from helya.bot.pagination import EmbedPaginator
from helya.config.logging import get_logger
from helya.db.repository import Repository
from helya.osu import GameMode, OsuAPIError, OsuNotFoundError, OsuUser

logger = get_logger(__name__)

SCORE_LIMIT = 25
SCORES_PER_PAGE = 5

NOT_LINKED_MESSAGE = (
    "You haven't linked an osu! account yet. Use `/osu link` or pass a username."
)


class OsuCog(commands.GroupCog, group_name="osu", group_description="osu! statistics"):
    """osu! profile and score lookups, plus account linking."""

    def __init__(self, bot) -> None:
        self.bot = bot

    @property
    def _services(self):
        return self.bot.services

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resolve_target(
        self,
        interaction: discord.Interaction,
        username: str | None,
        mode: GameMode | None,
    ) -> tuple[str | int, GameMode | None] | None:
        """
        Work out which player and mode a lookup is for.

        Returns None (after replying) when no username was given and the
        caller has no linked account.
        """
        async with self._services.database.get_context() as session:
            repo = Repository(session)
            link = None if username else await repo.get_osu_link(interaction.user.id)
            guild_mode = (
                await repo.get_guild_mode(interaction.guild_id)
                if interaction.guild_id is not None
                else None
            )

        if username:
            query: str | int = username
        elif link is not None:
            query = link.osu_user_id
            mode = mode or GameMode(link.mode)
        else:
            await interaction.response.send_message(NOT_LINKED_MESSAGE, ephemeral=True)
            return None

        if mode is None and guild_mode is not None:
            mode = GameMode(guild_mode)
        return query, mode

    async def _fetch_user(
        self,
        interaction: discord.Interaction,
        query: str | int,
        mode: GameMode | None,
    ) -> OsuUser | None:
        """Fetch a user after the interaction was deferred; reply and return None on failure."""
        try:
            return await self._services.osu.get_user(query, mode)
        except OsuNotFoundError:
            await interaction.followup.send(
                embed=error_embed("User not found", f"No osu! user named `{query}`."),
                ephemeral=True,
            )
        except OsuAPIError as e:
            logger.warning(f"osu! user lookup failed for {query!r}: {e}")
            await interaction.followup.send(
                embed=error_embed("osu! is unavailable", "Couldn't reach the osu! API. Try again later."),
                ephemeral=True,
            )
        return None

    async def _send_scores(
        self,
        interaction: discord.Interaction,
        username: str | None,
        mode: GameMode | None,
        kind: str,
    ) -> None:
        target = await self._resolve_target(interaction, username, mode)
        if target is None:
            return
        query, mode = target

        await interaction.response.defer()
        user = await self._fetch_user(interaction, query, mode)
        if user is None:
            return
        mode = mode or user.playmode

        try:
            scores = await self._services.osu.get_user_scores(
                user.id, kind=kind, mode=mode, limit=SCORE_LIMIT
            )
        except OsuAPIError as e:
            logger.warning(f"osu! {kind} scores lookup failed for {user.username!r}: {e}")
            await interaction.followup.send(
                embed=error_embed("osu! is unavailable", "Couldn't fetch scores. Try again later."),
                ephemeral=True,
            )
            return

        pages = build_score_pages(user, scores, kind, mode, per_page=SCORES_PER_PAGE)
        paginator = EmbedPaginator(
            pages,
            author_id=interaction.user.id,
            timeout=self._services.settings.client.interactivity_timeout,
        )
        await paginator.send(interaction)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @app_commands.command(name="link", description="Link your osu! account")
    @app_commands.describe(username="Your osu! username", mode="Your main game mode")
    async def link(
        self,
        interaction: discord.Interaction,
        username: str,
        mode: GameMode | None = None,
    ) -> None:
        await interaction.response.defer(ephemeral=True)
        user = await self._fetch_user(interaction, username, None)
        if user is None:
            return

        chosen_mode = mode or user.playmode
        async with self._services.database.get_context() as session:
            await Repository(session).upsert_osu_link(
                interaction.user.id, user.id, user.username, chosen_mode.value
            )
            await session.commit()

        logger.info(f"Linked Discord user {interaction.user.id} to osu! user {user.id}")
        await interaction.followup.send(
            f"Linked to **{user.username}** ({chosen_mode.display_name}).", ephemeral=True
        )

    @app_commands.command(name="unlink", description="Unlink your osu! account")
    async def unlink(self, interaction: discord.Interaction) -> None:
        async with self._services.database.get_context() as session:
            removed = await Repository(session).delete_osu_link(interaction.user.id)
            await session.commit()

        message = "Your osu! account has been unlinked." if removed else "You had no linked osu! account."
        await interaction.response.send_message(message, ephemeral=True)

    @app_commands.command(name="profile", description="Show an osu! profile")
    @app_commands.describe(username="osu! username (default: your linked account)", mode="Game mode")
    async def profile(
        self,
        interaction: discord.Interaction,
        username: str | None = None,
        mode: GameMode | None = None,
    ) -> None:
        target = await self._resolve_target(interaction, username, mode)
        if target is None:
            return
        query, mode = target

        await interaction.response.defer()
        user = await self._fetch_user(interaction, query, mode)
        if user is None:
            return
        await interaction.followup.send(embed=build_profile_embed(user, mode or user.playmode))

    @app_commands.command(name="best", description="Show top plays")
    @app_commands.describe(username="osu! username (default: your linked account)", mode="Game mode")
    async def best(
        self,
        interaction: discord.Interaction,
        username: str | None = None,
        mode: GameMode | None = None,
    ) -> None:
        await self._send_scores(interaction, username, mode, "best")

    @app_commands.command(name="recent", description="Show recent plays, including fails")
    @app_commands.describe(username="osu! username (default: your linked account)", mode="Game mode")
    async def recent(
        self,
        interaction: discord.Interaction,
        username: str | None = None,
        mode: GameMode | None = None,
    ) -> None:
        await self._send_scores(interaction, username, mode, "recent")

    @app_commands.command(name="firsts", description="Show first-place ranks")
    @app_commands.describe(username="osu! username (default: your linked account)", mode="Game mode")
    async def firsts(
        self,
        interaction: discord.Interaction,
        username: str | None = None,
        mode: GameMode | None = None,
    ) -> None:
        await self._send_scores(interaction, username, mode, "firsts")

    @app_commands.command(name="mode", description="Set this server's default game mode")
    @app_commands.describe(mode="Game mode used when a lookup doesn't specify one")
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_guild=True)
    @app_commands.checks.has_permissions(manage_guild=True)
    async def mode(self, interaction: discord.Interaction, mode: GameMode) -> None:
        async with self._services.database.get_context() as session:
            await Repository(session).set_guild_mode(interaction.guild_id, mode.value)
            await session.commit()

        await interaction.response.send_message(
            f"Default mode for this server is now {mode.display_name}."
        )
