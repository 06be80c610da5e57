"""
In-memory cache of the guilds the bot can currently see.

discord.py fires availability events from its own dispatch tasks. Handlers
never touch the cache directly: they submit a ``GuildUpdate`` and a single
consumer task applies updates in arrival order. The cache keeps one entry
per guild ID, so a repeated "available" event replaces the entry instead of
duplicating it.

The cache reflects last-known availability only. It is not persisted and is
not kept transactionally consistent with Discord.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

import discord

from helya.config.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class GuildEntry:
    id: int
    name: str

    @classmethod
    def from_guild(cls, guild: discord.Guild) -> GuildEntry:
        return cls(id=guild.id, name=guild.name)


class GuildCache:
    """Ordered mapping of guild ID to ``GuildEntry``."""

    def __init__(self) -> None:
        self._guilds: dict[int, GuildEntry] = {}

    def add(self, entry: GuildEntry) -> bool:
        """Insert or replace an entry. Returns True if the guild was new."""
        is_new = entry.id not in self._guilds
        self._guilds[entry.id] = entry
        return is_new

    def remove(self, guild_id: int) -> GuildEntry | None:
        """Drop a guild. Returns the removed entry, or None if it wasn't cached."""
        return self._guilds.pop(guild_id, None)

    def get(self, guild_id: int) -> GuildEntry | None:
        return self._guilds.get(guild_id)

    def __contains__(self, guild_id: object) -> bool:
        if isinstance(guild_id, GuildEntry):
            guild_id = guild_id.id
        return guild_id in self._guilds

    def __len__(self) -> int:
        return len(self._guilds)

    def __iter__(self) -> Iterator[GuildEntry]:
        return iter(list(self._guilds.values()))


class UpdateKind(Enum):
    ADD = "add"
    REMOVE = "remove"


@dataclass(frozen=True)
class GuildUpdate:
    kind: UpdateKind
    entry: GuildEntry


class GuildCacheUpdater:
    """
    Serializes cache mutations through one queue and one consumer task.

    Args:
        cache: The cache this updater owns writes to
    """

    def __init__(self, cache: GuildCache) -> None:
        self.cache = cache
        self._queue: asyncio.Queue[GuildUpdate] = asyncio.Queue()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the consumer task on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._consume(), name="guild-cache-updater")

    async def stop(self) -> None:
        """Apply everything already queued, then stop the consumer."""
        if self._task is None:
            return
        if not self._task.done():
            await self._queue.join()
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def join(self) -> None:
        """Wait until every submitted update has been applied."""
        await self._queue.join()

    def submit(self, update: GuildUpdate) -> None:
        self._queue.put_nowait(update)

    def submit_available(self, guild: discord.Guild) -> None:
        self.submit(GuildUpdate(UpdateKind.ADD, GuildEntry.from_guild(guild)))

    def submit_unavailable(self, guild: discord.Guild) -> None:
        self.submit(GuildUpdate(UpdateKind.REMOVE, GuildEntry.from_guild(guild)))

    async def _consume(self) -> None:
        while True:
            update = await self._queue.get()
            try:
                self.apply(update)
            finally:
                self._queue.task_done()

    def apply(self, update: GuildUpdate) -> None:
        entry = update.entry
        if update.kind is UpdateKind.ADD:
            self.cache.add(entry)
            logger.debug(f"Guild cache added: {entry.name} (ID: {entry.id})")
        else:
            self.cache.remove(entry.id)
            logger.debug(f"Guild cache removed: {entry.name} (ID: {entry.id})")
