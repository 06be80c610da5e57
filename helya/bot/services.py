"""
Service container handed to the bot and, through it, to every cog.

Built once by the runner. Cogs read ``bot.services`` instead of reaching for
module-level singletons.
"""

from __future__ import annotations

from dataclasses import dataclass

from helya.config.settings import Settings
from helya.db.database import HelyaDatabase
from helya.osu.client import OsuClient


@dataclass(frozen=True)
class Services:
    settings: Settings
    database: HelyaDatabase
    osu: OsuClient
