"""
Helya CLI entry point.

    python -m helya [--config PATH] [--log-level LEVEL] {run,config,migrate}

``run`` is the default command.
"""

import argparse
import asyncio
import sys
from pathlib import Path

import discord

from helya import __version__
from helya.bot.runner import BotRunner
from helya.config.logging import get_logger, setup_logging
from helya.config.settings import DEFAULT_CONFIG_PATH, Settings, load_settings
from helya.db.database import HelyaDatabase
from helya.errors import ConfigurationError, HelyaError


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="helya",
        description="osu! statistics bot for Discord",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Helya {__version__}",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help=f"Path to the JSON configuration file (default: {DEFAULT_CONFIG_PATH})",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level from config",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    subparsers.add_parser("run", help="Connect to Discord and run the bot (default)")
    subparsers.add_parser("config", help="Show current configuration (secrets masked)")
    subparsers.add_parser("migrate", help="Apply pending database migrations and exit")

    return parser


def _mask(secret: str) -> str:
    return "Set" if secret else "Not set"


def cmd_config(settings: Settings) -> int:
    """Show current configuration."""
    logger = get_logger(__name__)
    client = settings.client

    logger.info("\n=== Helya Configuration ===\n")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Log Level: {settings.log_level}")
    logger.info(f"Log File: {settings.log_file or 'None (console only)'}")
    logger.info(f"\nDiscord Token: {_mask(settings.credentials.discord_token)}")
    logger.info(f"osu! Client ID: {settings.credentials.osu.client_id or 'Not set'}")
    logger.info(f"osu! Client Secret: {_mask(settings.credentials.osu.client_secret)}")
    logger.info(f"Database Password: {_mask(settings.credentials.db_password)}")
    logger.info(f"\nPrivate Guild IDs: {client.private_guild_ids or 'None'}")
    logger.info(f"Global Slash Commands: {client.slash_commands_for_global}")
    logger.info(f"Activity: {client.activity.type} {client.activity.name!r}")
    logger.info(f"Status: {client.activity.status}")
    logger.info(f"Interactivity Timeout: {client.interactivity_timeout}s")
    logger.info(f"Error Policy: {client.error_policy}")
    logger.info(f"\nDatabase Path: {settings.database.path}")
    logger.info(f"Database Timeout: {settings.database.command_timeout}s")

    return 0


async def cmd_migrate(settings: Settings) -> int:
    """Bring the database schema up to date without starting the bot."""
    logger = get_logger(__name__)

    try:
        database = await HelyaDatabase.create(settings)
    except HelyaError as e:
        logger.error(f"Migration failed: {e}", exc_info=True)
        return 1

    await database.dispose()
    logger.info(f"Database ready: {settings.database.path}")
    return 0


def cmd_run(settings: Settings) -> int:
    """Start the Discord bot and block until Ctrl-C."""
    logger = get_logger(__name__)

    if not settings.credentials.discord_token:
        logger.error(
            "Discord bot token not set. Add credentials.discord_token to the configuration file."
        )
        return 1

    runner = BotRunner(settings)
    try:
        asyncio.run(runner.run())
    except discord.LoginFailure:
        logger.error("Discord rejected the bot token (credentials.discord_token).")
        return 1
    except HelyaError as e:
        logger.critical(f"Bot stopped: {e}", exc_info=True)
        return 1
    except Exception as e:  # Fatal client/slash-command error under the crash policy
        logger.critical(f"Bot stopped after an unhandled error: {e}")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Load settings
    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    # Override log level if specified
    if args.log_level:
        settings = settings.model_copy(update={"log_level": args.log_level})

    # Setup logging
    setup_logging(settings)

    # Execute command
    if args.command == "config":
        return cmd_config(settings)
    elif args.command == "migrate":
        return asyncio.run(cmd_migrate(settings))
    else:
        return cmd_run(settings)


if __name__ == "__main__":
    sys.exit(main())
