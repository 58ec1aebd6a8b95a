"""
Application settings and configuration management.

Uses Pydantic Settings for validation and environment variable support.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BotSettings(BaseSettings):
    """Discord bot and command dispatch configuration."""

    name: str = Field(default="Gearshift", description="Bot display name")
    token: str = Field(default="", description="Discord bot token")
    command_prefix: str = Field(default="!", description="Prefix that marks a message as a command")
    unknown_command_response: bool = Field(
        default=True,
        description="Reply \"unknown command '<name>'\" when a prefixed message names no command",
    )
    strict_entity_lookup: bool = Field(
        default=False,
        description="If True, a user/member/channel/guild argument the platform cannot find "
                    "is rejected as an invalid argument. If False it is passed to the "
                    "handler as None.",
    )
    ignore_bots: bool = Field(
        default=True, description="Ignore messages authored by bot accounts"
    )
    allowed_channel_ids: list[int] = Field(
        default_factory=list,
        description="If non-empty, bot only responds in these channel IDs. "
                    "Set via BOT__ALLOWED_CHANNEL_IDS='[123456,789012]'",
    )


class Settings(BaseSettings):
    """Main application settings."""

    # Environment
    environment: Literal["development", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_file: Path | None = Field(default=None, description="Log file path")
    discord_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Level for discord.py's own \"discord\" logger, which shares our handlers",
    )

    bot: BotSettings = Field(default_factory=BotSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(env_file: str | Path | None = None) -> Settings:
    """
    Load settings from file and environment.

    Args:
        env_file: Path to .env file (optional)

    Returns:
        Loaded settings instance
    """
    global _settings
    if env_file:
        _settings = Settings(_env_file=env_file)
    else:
        _settings = Settings()
    return _settings
