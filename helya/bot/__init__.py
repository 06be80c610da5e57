"""
Discord Bot Layer.

The discord.py client, its slash-command cogs, presence resolution, the
guild membership cache, and the runner that owns the process lifecycle.
"""

from helya.bot.client import HelyaBot
from helya.bot.runner import BotRunner, BotState

__all__ = ["HelyaBot", "BotRunner", "BotState"]
