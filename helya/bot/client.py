"""
HelyaBot — discord.py bot client.

Owns the gateway connection and everything that hangs off it:
- Presence resolved from configuration and sent when identifying
- Slash-command cogs, registered per private guild and/or globally
- Guild availability events feeding the guild cache
- Client and slash-command errors logged and handed to the error sink

Shared services (database, osu! client) are built by the runner and passed
in through ``Services``; the bot never constructs them itself.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import discord
from discord import app_commands
from discord.ext import commands

from helya.bot.guilds import GuildCache, GuildCacheUpdater
from helya.bot.presence import build_presence
from helya.bot.services import Services
from helya.config.logging import get_logger

logger = get_logger(__name__)

# Receives errors that escaped an event handler or slash command, after
# they have been logged. The runner decides whether they are fatal.
ErrorSink = Callable[[BaseException], None]

REQUIRED_PERMISSIONS = discord.Permissions(
    view_audit_log=True,
    manage_roles=True,
    manage_channels=True,
    kick_members=True,
    ban_members=True,
    view_channel=True,
    moderate_members=True,
    send_messages=True,
    send_messages_in_threads=True,
    embed_links=True,
    attach_files=True,
    read_message_history=True,
    use_external_emojis=True,
    use_external_stickers=True,
    add_reactions=True,
    use_application_commands=True,
    connect=True,
    speak=True,
    use_voice_activation=True,
    use_embedded_activities=True,
)

GENERIC_ERROR_REPLY = "Something went wrong while running this command."


class HelyaBot(commands.Bot):
    """
    Discord bot for osu! statistics.

    Args:
        services: Settings, database and osu! client shared with the cogs
        error_sink: Called with every unhandled client or slash-command error
    """

    def __init__(self, services: Services, *, error_sink: ErrorSink | None = None) -> None:
        settings = services.settings
        activity, status = build_presence(settings.client.activity)
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=discord.Intents.default(),
            activity=activity,
            status=status,
            help_command=None,
        )
        self.services = services
        self.settings = settings
        self.guild_cache = GuildCache()
        self.guild_updates = GuildCacheUpdater(self.guild_cache)
        self.start_time: datetime | None = None
        self._error_sink = error_sink
        self.tree.error(self.on_app_command_error)

    async def setup_hook(self) -> None:
        """
        Called after login, before connecting to the Gateway.

        Starts the guild cache consumer, loads cogs and registers slash
        commands.
        """
        self.guild_updates.start()

        from helya.bot.cogs.general import GeneralCog
        from helya.bot.cogs.osu import OsuCog
        await self.add_cog(GeneralCog(self))
        await self.add_cog(OsuCog(self))
        logger.info("Cogs loaded")

        await self.register_commands()

    async def register_commands(self) -> None:
        """Sync slash commands to each private guild, then globally if enabled."""
        client_settings = self.settings.client

        for guild_id in client_settings.private_guild_ids:
            logger.warning(f'Registering slash commands for private guild with ID "{guild_id}"')
            guild = discord.Object(id=guild_id)
            self.tree.copy_global_to(guild=guild)
            await self._sync_commands(guild)

        if client_settings.slash_commands_for_global:
            logger.warning("Registering slash commands in global scope")
            await self._sync_commands(None)

        if not client_settings.private_guild_ids and not client_settings.slash_commands_for_global:
            logger.warning(
                "Slash commands are not registered anywhere. Set client.private_guild_ids "
                "or client.slash_commands_for_global."
            )

    async def _sync_commands(self, guild: discord.abc.Snowflake | None) -> None:
        scope = f"guild {guild.id}" if guild else "global scope"
        try:
            synced = await self.tree.sync(guild=guild)
            logger.info(f"Synced {len(synced)} slash command(s) to {scope}")
        except discord.Forbidden:
            logger.warning(
                f"Could not sync slash commands to {scope} (403 Forbidden). "
                "The bot is missing the 'applications.commands' OAuth2 scope there."
            )
        except discord.HTTPException as e:
            logger.warning(f"Slash command sync to {scope} failed: {e}. The bot will still start.")

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def on_ready(self) -> None:
        self.start_time = datetime.now(UTC)
        logger.info(f"Client is ready (as Discord user: {self.user})")

    async def on_guild_available(self, guild: discord.Guild) -> None:
        self.guild_updates.submit_available(guild)

    async def on_guild_join(self, guild: discord.Guild) -> None:
        self.guild_updates.submit_available(guild)

    async def on_guild_unavailable(self, guild: discord.Guild) -> None:
        self.guild_updates.submit_unavailable(guild)

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        self.guild_updates.submit_unavailable(guild)

    async def on_error(self, event_method: str, /, *args, **kwargs) -> None:
        """Called by discord.py when an event handler raises."""
        error = sys.exc_info()[1]
        logger.critical(
            f"An exception occurred when running the bot (event: {event_method})",
            exc_info=True,
        )
        if error is not None:
            self.report_error(error)

    async def on_app_command_error(
        self,
        interaction: discord.Interaction,
        error: app_commands.AppCommandError,
    ) -> None:
        """Called by the command tree when a slash command raises."""
        if isinstance(error, app_commands.CheckFailure):
            # Missing permissions, guild-only, etc. The user gets told; nothing is broken.
            logger.info(f"Slash command check failed for {interaction.user}: {error}")
            await self._reply_ephemeral(interaction, str(error) or "You can't use this command here.")
            return

        command = interaction.command.qualified_name if interaction.command else "unknown"
        logger.critical(
            f"An exception occurred when executing a slash command (/{command})",
            exc_info=error,
        )
        await self._reply_ephemeral(interaction, GENERIC_ERROR_REPLY)
        self.report_error(error)

    async def _reply_ephemeral(self, interaction: discord.Interaction, message: str) -> None:
        try:
            if interaction.response.is_done():
                await interaction.followup.send(message, ephemeral=True)
            else:
                await interaction.response.send_message(message, ephemeral=True)
        except discord.HTTPException as e:
            logger.warning(f"Could not send error reply: {e}")

    def report_error(self, error: BaseException) -> None:
        if self._error_sink is not None:
            self._error_sink(error)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def uptime(self) -> timedelta | None:
        """Time since the last ready event, or None before the first one."""
        if self.start_time is None:
            return None
        return datetime.now(UTC) - self.start_time

    async def close(self) -> None:
        """Disconnect from Discord after flushing pending guild cache updates."""
        if not self.is_closed():
            logger.info("Disconnecting from Discord...")
        await self.guild_updates.stop()
        await super().close()
