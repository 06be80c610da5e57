"""
GeneralCog — /ping, /uptime and /invite.

Small status commands that only depend on the bot itself.
"""

from __future__ import annotations

import math

import discord
from discord import app_commands
from discord.ext import commands

from helya.bot.client import REQUIRED_PERMISSIONS
from helya.bot.embeds import OSU_PINK, format_duration


class GeneralCog(commands.Cog):
    """Bot status and invite commands."""

    def __init__(self, bot) -> None:
        self.bot = bot

    @app_commands.command(name="ping", description="Show the gateway latency")
    async def ping(self, interaction: discord.Interaction) -> None:
        latency = self.bot.latency
        text = "unknown" if math.isnan(latency) or math.isinf(latency) else f"{latency * 1000:.0f} ms"
        await interaction.response.send_message(
            embed=discord.Embed(title="Pong!", description=f"Gateway latency: {text}", color=OSU_PINK)
        )

    @app_commands.command(name="uptime", description="Show how long the bot has been connected")
    async def uptime(self, interaction: discord.Interaction) -> None:
        uptime = self.bot.uptime
        if uptime is None:
            await interaction.response.send_message("I'm still starting up.", ephemeral=True)
            return
        guilds = len(self.bot.guild_cache)
        await interaction.response.send_message(
            embed=discord.Embed(
                title="Uptime",
                description=f"Up for {format_duration(uptime)} across {guilds} server(s).",
                color=OSU_PINK,
            )
        )

    @app_commands.command(name="invite", description="Get a link to add the bot to a server")
    async def invite(self, interaction: discord.Interaction) -> None:
        url = discord.utils.oauth_url(
            self.bot.application_id,
            permissions=REQUIRED_PERMISSIONS,
            scopes=("bot", "applications.commands"),
        )
        await interaction.response.send_message(
            f"[Add me to your server]({url})", ephemeral=True
        )
