"""
Application settings and configuration management.

Settings are read from a JSON file (``config.json`` by default) and validated
with Pydantic. Environment variables prefixed with ``HELYA_`` fill in anything
the file leaves out, e.g. ``HELYA_CREDENTIALS__DISCORD_TOKEN``.
"""

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from helya.errors import ConfigurationError

DEFAULT_CONFIG_PATH = Path("config.json")


class OsuCredentials(BaseModel):
    """osu! OAuth application credentials."""

    client_id: int = Field(default=0, description="osu! OAuth client ID")
    client_secret: str = Field(default="", description="osu! OAuth client secret")

    model_config = ConfigDict(frozen=True)


class Credentials(BaseModel):
    """Secrets needed to talk to Discord, osu! and the local database."""

    discord_token: str = Field(default="", description="Discord bot token")
    osu: OsuCredentials = Field(default_factory=OsuCredentials)
    db_password: str = Field(
        default="",
        description="Database key. Only honoured by SQLCipher-enabled SQLite builds.",
    )

    model_config = ConfigDict(frozen=True)


class ActivitySettings(BaseModel):
    """
    Presence shown under the bot's name.

    ``type`` and ``status`` are kept as raw strings; they are resolved into
    discord.py enums at startup so a typo degrades to a default instead of
    refusing to boot.
    """

    name: str = Field(default="osu!", description="Activity text")
    type: str = Field(
        default="Playing",
        description="One of ListeningTo, Competing, Playing, Watching",
    )
    status: str = Field(
        default="Online",
        description="One of Online, Invisible, Idle, DoNotDisturb",
    )

    model_config = ConfigDict(frozen=True)


class ClientSettings(BaseModel):
    """Discord client runtime options."""

    private_guild_ids: list[int] = Field(
        default_factory=list,
        description="Guilds that get slash commands registered instantly.",
    )
    slash_commands_for_global: bool = Field(
        default=False,
        description="Register slash commands globally (up to 1 hour propagation).",
    )
    activity: ActivitySettings = Field(default_factory=ActivitySettings)
    interactivity_timeout: float = Field(
        default=30.0, gt=0, description="Seconds before pagination buttons stop responding"
    )
    error_policy: Literal["crash", "log"] = Field(
        default="crash",
        description="What to do after a client or slash-command error has been logged",
    )

    model_config = ConfigDict(frozen=True)


class DatabaseSettings(BaseModel):
    """SQLite storage options."""

    path: Path = Field(default=Path("database.db"), description="SQLite database file")
    command_timeout: float = Field(
        default=30.0, gt=0, description="Seconds to wait on a locked database"
    )

    model_config = ConfigDict(frozen=True)


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: Literal["development", "production"] = Field(
        default="production", description="Deployment environment"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")

    # Sub-configurations
    credentials: Credentials = Field(default_factory=Credentials)
    client: ClientSettings = Field(default_factory=ClientSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    model_config = SettingsConfigDict(
        env_prefix="HELYA_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # The JSON file arrives through init kwargs (see load_settings), so
        # file values win over the environment.
        return init_settings, env_settings


def load_settings(config_path: str | Path | None = None) -> Settings:
    """
    Load settings from a JSON file and the environment.

    Args:
        config_path: Path to the JSON configuration file (default: config.json)

    Returns:
        Loaded, frozen settings instance

    Raises:
        ConfigurationError: If the file is missing, is not UTF-8 encoded JSON,
            is not a JSON object, or contains values that fail validation
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        file_values = json.loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Configuration file is not valid JSON: {path}: {e}") from e

    if not isinstance(file_values, dict):
        raise ConfigurationError(
            f"Configuration file must contain a JSON object, got {type(file_values).__name__}: {path}"
        )

    try:
        return Settings(**file_values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}:\n{e}") from e
