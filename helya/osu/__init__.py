"""
osu! API Layer.

Thin async client for the osu! web API v2 plus typed response models. Used by
the bot's /osu commands through the service container.
"""

from helya.osu.client import OsuClient
from helya.osu.errors import OsuAPIError, OsuNotFoundError
from helya.osu.models import GameMode, OsuScore, OsuUser

__all__ = [
    "OsuClient",
    "OsuAPIError",
    "OsuNotFoundError",
    "GameMode",
    "OsuScore",
    "OsuUser",
]
