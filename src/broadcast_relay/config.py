import os
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError

DEFAULT_PORT = 3000
DEFAULT_FEED_LIMIT = 10

# Environment variable -> config field
ENV_FIELDS = {
    "TELEGRAM_BOT_TOKEN": "bot_token",
    "TELEGRAM_BOT_ADMIN": "admin_username",
    "FEED_URL": "feed_url",
    "DATABASE_URL": "database_url",
    "PORT": "port",
    "POST_BASE_URL": "post_base_url",
    "FEED_LIMIT": "feed_limit",
    "LOG_DIR": "log_dir",
}

REQUIRED_ENV = ("TELEGRAM_BOT_TOKEN", "TELEGRAM_BOT_ADMIN", "FEED_URL", "DATABASE_URL")


class RelayConfig(BaseModel):
    """Process configuration, built once at startup and passed explicitly"""

    model_config = ConfigDict(frozen=True)

    bot_token: str = Field(description="Telegram Bot Token")
    admin_username: str = Field(description="Telegram username allowed to broadcast")
    feed_url: str = Field(description="JSON feed used by /latest")
    database_url: str = Field(description="Subscriber database location")

    port: int = Field(
        default=DEFAULT_PORT,
        description="Health check listen port"
    )
    post_base_url: str = Field(
        default="",
        description="Base URL for post deep links (defaults to the feed origin)"
    )
    feed_limit: int = Field(
        default=DEFAULT_FEED_LIMIT,
        gt=0,
        description="Maximum number of feed items shown by /latest"
    )
    log_dir: Optional[Path] = Field(
        default=None,
        description="Directory for rotated log files (stdout only if unset)"
    )

    @field_validator("bot_token", "admin_username", "feed_url", "database_url")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("admin_username")
    @classmethod
    def _strip_at(cls, value: str) -> str:
        return value[1:] if value.startswith("@") else value

    @field_validator("port")
    @classmethod
    def _valid_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("must be between 1 and 65535")
        return value

    @model_validator(mode="before")
    @classmethod
    def _default_post_base_url(cls, data):
        if isinstance(data, dict) and not data.get("post_base_url") and data.get("feed_url"):
            parsed = urlparse(str(data["feed_url"]).strip())
            if parsed.scheme and parsed.netloc:
                data = {**data, "post_base_url": f"{parsed.scheme}://{parsed.netloc}"}
        return data

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RelayConfig":
        """Build configuration from environment variables

        Raises:
            ConfigError: a required variable is missing or a value is invalid
        """
        if environ is None:
            environ = os.environ

        missing = [name for name in REQUIRED_ENV if not environ.get(name)]
        if missing:
            raise ConfigError(f"missing required environment: {', '.join(missing)}")

        data = {
            field: environ[name]
            for name, field in ENV_FIELDS.items()
            if environ.get(name)
        }
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or 'config'}: {err['msg']}"
                for err in e.errors()
            )
            raise ConfigError(f"invalid configuration: {problems}") from e

    def masked_token(self) -> str:
        """Token with the middle hidden, for display"""
        if len(self.bot_token) <= 15:
            return "*" * len(self.bot_token)
        return f"{self.bot_token[:10]}...{self.bot_token[-5:]}"
