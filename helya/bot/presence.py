"""
Resolve the configured activity and status strings into discord.py presence.

Configuration stores these as free-form strings. An unrecognised value falls
back to a default (Playing / Online) with a warning rather than stopping the
bot. Matching ignores case, spaces, dashes and underscores.
"""

from __future__ import annotations

import re

import discord

from helya.config.logging import get_logger
from helya.config.settings import ActivitySettings

logger = get_logger(__name__)

VALID_ACTIVITY_TYPES = "ListeningTo, Competing, Playing, Watching"
VALID_STATUSES = "Online, Invisible, Idle, DoNotDisturb"

_ACTIVITY_TYPES = {
    "playing": discord.ActivityType.playing,
    "listening": discord.ActivityType.listening,
    "listeningto": discord.ActivityType.listening,
    "watching": discord.ActivityType.watching,
    "competing": discord.ActivityType.competing,
}

_STATUSES = {
    "online": discord.Status.online,
    "invisible": discord.Status.invisible,
    "offline": discord.Status.offline,
    "idle": discord.Status.idle,
    "donotdisturb": discord.Status.dnd,
    "dnd": discord.Status.dnd,
}

_SEPARATORS = re.compile(r"[\s_\-]+")


def _normalize(value: str) -> str:
    return _SEPARATORS.sub("", value).lower()


def resolve_activity_type(value: str) -> discord.ActivityType:
    """Map a configured activity type to ``discord.ActivityType``, defaulting to playing."""
    activity_type = _ACTIVITY_TYPES.get(_normalize(value))
    if activity_type is None:
        logger.warning(f'Can not convert "{value}" to a valid activity type, using "Playing"')
        logger.info(f"Valid options are: {VALID_ACTIVITY_TYPES}")
        return discord.ActivityType.playing
    return activity_type


def resolve_status(value: str) -> discord.Status:
    """Map a configured status to ``discord.Status``, defaulting to online."""
    status = _STATUSES.get(_normalize(value))
    if status is None:
        logger.warning(f'Can not convert "{value}" to a valid status, using "Online"')
        logger.info(f"Valid options are: {VALID_STATUSES}")
        return discord.Status.online
    return status


def build_presence(settings: ActivitySettings) -> tuple[discord.Activity, discord.Status]:
    """Build the activity and status the bot identifies with on connect."""
    activity = discord.Activity(
        type=resolve_activity_type(settings.type),
        name=settings.name,
    )
    return activity, resolve_status(settings.status)
