"""
Configuration management for Wilson Bot.

This module handles all configuration loading and validation, and provides
typed configuration objects for use throughout the application.

Settings are layered, highest priority first:
1. Keyword arguments passed to AppConfig (used by tests)
2. Environment variables named WILSONBOT__<SECTION>__<KEY>
3. A .env file in the working directory (loaded into the environment)
4. The bundled base_config.toml shipped with the package
"""

from pathlib import Path
from typing import Optional, Tuple, Type

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    TomlConfigSettingsSource,
)

from wilson_bot.utils.exceptions import ConfigurationError


ENV_PREFIX = "WILSONBOT__"
BASE_CONFIG_PATH = Path(__file__).parent / "base_config.toml"

PROVIDERS = {"google_chat", "discord"}


class HTTPConfig(BaseModel):
    """HTTP API server settings."""

    host: str = Field(
        default="0.0.0.0",
        description="Interface the API server binds to"
    )
    port: int = Field(
        default=8080,
        gt=0,
        lt=65536,
        description="Port the API server listens on"
    )
    prefix: str = Field(
        default="/api",
        description="Path prefix for every route"
    )
    enable_send: bool = Field(
        default=False,
        description="Allow the API to trigger webhook deliveries"
    )
    shutdown_timeout: float = Field(
        default=10.0,
        ge=0.0,
        description="Seconds to drain in-flight requests on shutdown"
    )

    @validator("prefix")
    def validate_prefix(cls, v: str) -> str:
        """Normalize the prefix to '' or '/something' without a trailing slash."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v


class CronConfig(BaseModel):
    """Scheduled delivery settings."""

    enabled: bool = Field(
        default=False,
        description="Send a random message on the cron schedule"
    )
    cron_string: str = Field(
        default="0 12 * * 1-5",
        description="Standard 5-field crontab expression"
    )
    timezone: str = Field(
        default="UTC",
        description="Timezone the cron expression is evaluated in"
    )
    shutdown_timeout: float = Field(
        default=30.0,
        ge=0.0,
        description="Seconds to wait for an in-flight delivery on shutdown"
    )


class DeliveryConfig(BaseModel):
    """Outbound webhook settings shared by every provider."""

    provider: str = Field(
        default="google_chat",
        description="Which webhook receives messages: google_chat or discord"
    )
    timeout: float = Field(
        default=10.0,
        gt=0.0,
        description="Total timeout in seconds for one webhook call"
    )

    @validator("provider")
    def validate_provider(cls, v: str) -> str:
        """Validate the provider name."""
        v = v.lower()
        if v not in PROVIDERS:
            raise ValueError(f"Provider must be one of: {PROVIDERS}")
        return v


class GoogleChatConfig(BaseModel):
    """Google Chat incoming webhook settings."""

    webhook_url: str = Field(
        default="",
        description="Incoming webhook URL of the Google Chat space"
    )


class DiscordWebhookConfig(BaseModel):
    """Discord channel webhook settings."""

    webhook_url: str = Field(
        default="",
        description="Webhook URL of the Discord channel"
    )


class MessagesConfig(BaseModel):
    """Message set settings."""

    path: Optional[str] = Field(
        default=None,
        description="JSON file replacing the bundled message set"
    )


class LoggingConfig(BaseModel):
    """Logging configuration settings."""

    level: str = Field(
        default="INFO",
        description="Logging level"
    )
    format: str = Field(
        default="json",
        description="Log format: 'json' or 'text'"
    )

    @validator("level")
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @validator("format")
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in {"json", "text"}:
            raise ValueError("Log format must be 'json' or 'text'")
        return v


class AppConfig(BaseSettings):
    """Main application configuration."""

    http: HTTPConfig = Field(default_factory=HTTPConfig)
    cron: CronConfig = Field(default_factory=CronConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    google_chat: GoogleChatConfig = Field(default_factory=GoogleChatConfig)
    discord_webhook: DiscordWebhookConfig = Field(default_factory=DiscordWebhookConfig)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    class Config:
        env_prefix = ENV_PREFIX
        env_nested_delimiter = "__"
        case_sensitive = False
        extra = "ignore"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Put the bundled TOML file underneath the environment."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=BASE_CONFIG_PATH),
        )

    @property
    def webhook_url(self) -> str:
        """Webhook URL of the configured provider."""
        if self.delivery.provider == "discord":
            return self.discord_webhook.webhook_url
        return self.google_chat.webhook_url


def load_config(**overrides) -> AppConfig:
    """
    Load and validate application configuration.

    Args:
        **overrides: Section values taking precedence over every other source

    Returns:
        AppConfig: Validated application configuration

    Raises:
        ConfigurationError: If any setting fails validation

    Example:
        ```python
        config = load_config()
        print(f"Messages go to: {config.delivery.provider}")
        ```
    """
    # Load .env into the process environment so every layer sees it
    env_file = Path(".env")
    if env_file.exists():
        load_dotenv(env_file)

    try:
        return AppConfig(**overrides)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid configuration",
            context={"errors": e.error_count()},
            original_error=e,
        )
