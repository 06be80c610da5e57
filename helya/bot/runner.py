"""
BotRunner — composition root and process lifecycle.

    UNINITIALIZED → CONFIGURING → CONNECTED → RUNNING → SHUTTING_DOWN → DISCONNECTED

``configure()`` builds every component from settings: the database (migrated
before anything else touches it), the osu! client and the bot. ``run()``
starts the gateway task (CONNECTED) and then polls a shutdown flag every
``poll_interval`` seconds, moving to RUNNING once the bot reports ready. The flag is set by SIGINT/SIGTERM, by a fatal
error under the ``crash`` error policy, or implicitly when the gateway task
ends on its own. Teardown runs once, in reverse order of construction: bot,
osu! client, database.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Callable
from contextlib import AsyncExitStack
from enum import Enum
from typing import Any

from helya.bot.client import ErrorSink, HelyaBot
from helya.bot.services import Services
from helya.config.logging import get_logger
from helya.config.settings import Settings
from helya.db.database import HelyaDatabase
from helya.osu.client import OsuClient

logger = get_logger(__name__)

POLL_INTERVAL = 0.2

# Seconds to wait for the gateway task to return after close()
GATEWAY_CLOSE_TIMEOUT = 10.0

BotFactory = Callable[..., HelyaBot]


class BotState(Enum):
    UNINITIALIZED = "uninitialized"
    CONFIGURING = "configuring"
    CONNECTED = "connected"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    DISCONNECTED = "disconnected"


class BotRunner:
    """
    Builds the bot and its services, runs it, and tears everything down.

    Args:
        settings: Full application settings
        poll_interval: Seconds between shutdown-flag checks
        bot_factory: Called as ``bot_factory(services, error_sink=...)``
    """

    def __init__(
        self,
        settings: Settings,
        *,
        poll_interval: float = POLL_INTERVAL,
        bot_factory: BotFactory = HelyaBot,
    ) -> None:
        self.settings = settings
        self.poll_interval = poll_interval
        self._bot_factory = bot_factory
        self.state = BotState.UNINITIALIZED
        self.bot: HelyaBot | None = None
        self.database: HelyaDatabase | None = None
        self.osu: OsuClient | None = None
        self._exit_stack = AsyncExitStack()
        self._shutdown_requested = False
        self._fatal_error: BaseException | None = None
        self._signals: list[signal.Signals] = []
        self._previous_handlers: dict[signal.Signals, Any] = {}

    # ------------------------------------------------------------------
    # Shutdown flag and error policy
    # ------------------------------------------------------------------

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    def request_shutdown(self) -> None:
        if not self._shutdown_requested:
            logger.info("Shutdown requested")
        self._shutdown_requested = True

    def report_error(self, error: BaseException) -> None:
        """
        Error sink for the bot. Errors arrive here already logged.

        Under the ``crash`` policy the first error is kept and re-raised once
        the runner has shut down. Under ``log`` nothing further happens.
        """
        if self.settings.client.error_policy != "crash":
            return
        if self._fatal_error is None:
            self._fatal_error = error
        self.request_shutdown()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def configure(self) -> HelyaBot:
        """Build database, osu! client and bot. Cleans up after itself on failure."""
        self.state = BotState.CONFIGURING
        if self.settings.environment == "development":
            logger.critical("Running in development mode: SQL statements and parameters are logged")
            logger.critical('Set "environment": "production" in the configuration for live use')

        try:
            logger.info("Setting up database")
            self.database = await HelyaDatabase.create(self.settings)
            self._exit_stack.push_async_callback(self.database.dispose)

            osu_credentials = self.settings.credentials.osu
            self.osu = await self._exit_stack.enter_async_context(
                OsuClient(osu_credentials.client_id, osu_credentials.client_secret)
            )
            if not self.osu.has_credentials:
                logger.warning("osu! API credentials not set. /osu commands will fail until configured.")

            services = Services(settings=self.settings, database=self.database, osu=self.osu)
            error_sink: ErrorSink = self.report_error
            self.bot = self._bot_factory(services, error_sink=error_sink)
            self._exit_stack.push_async_callback(self.bot.close)
        except Exception:  # Re-raise pattern, partial setup must be released
            await self.shutdown()
            raise
        return self.bot

    async def run(self, *, install_signal_handlers: bool = True) -> None:
        """
        Connect and block until shutdown is requested or the gateway stops.

        Raises:
            The fatal error reported under the ``crash`` policy, otherwise
            whatever made the gateway task fail (e.g. discord.LoginFailure)
        """
        if self.bot is None:
            await self.configure()

        if install_signal_handlers:
            self._install_signal_handlers()

        gateway = asyncio.create_task(
            self.bot.start(self.settings.credentials.discord_token),
            name="discord-gateway",
        )
        self.state = BotState.CONNECTED
        try:
            while not self._shutdown_requested and not gateway.done():
                if self.state is BotState.CONNECTED and self.bot.is_ready():
                    self.state = BotState.RUNNING
                    logger.info("Bot is running")
                await asyncio.sleep(self.poll_interval)
        finally:
            await self.shutdown()
            self._remove_signal_handlers()

        gateway_error = await self._collect_gateway(gateway)
        if self._fatal_error is not None:
            raise self._fatal_error
        if gateway_error is not None:
            raise gateway_error

    async def shutdown(self) -> None:
        """Disconnect the bot, close the osu! client and dispose the database, once."""
        if self.state in (BotState.SHUTTING_DOWN, BotState.DISCONNECTED):
            return
        self.state = BotState.SHUTTING_DOWN
        try:
            await self._exit_stack.aclose()
        finally:
            self.state = BotState.DISCONNECTED
            logger.info("Shutdown complete")

    async def _collect_gateway(self, gateway: asyncio.Task) -> BaseException | None:
        try:
            await asyncio.wait_for(gateway, timeout=GATEWAY_CLOSE_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("Gateway task did not finish after disconnect; cancelled it")
        except asyncio.CancelledError:
            if not gateway.cancelled():
                raise
        except Exception as e:  # Returned to run(), which re-raises it
            return e
        return None

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
                self._signals.append(sig)
            except NotImplementedError:
                # Windows event loops: fall back to a plain handler
                previous = signal.signal(sig, lambda *_: self.request_shutdown())
                self._previous_handlers[sig] = signal.SIG_DFL if previous is None else previous

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in self._signals:
            loop.remove_signal_handler(sig)
        self._signals.clear()
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler)
        self._previous_handlers.clear()
