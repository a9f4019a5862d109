"""Environment-based settings using pydantic-settings.

Secrets and host-specific values live in the environment (or a .env file);
structured options live in config.yaml and win when both are set.

Environment Variables:
    Jellyfin:
        JELLYFIN_HOST - Jellyfin server URL (e.g., "http://jellyfin:8096")
        JELLYFIN_API_KEY - Jellyfin API key

    Theme songs:
        THEMESONGS_URL_TEMPLATE - URL template for downloads (blank disables)
        FFMPEG_BIN - ffmpeg binary name or path (default: "ffmpeg")

    Application:
        THEMESONGS_ENV - Environment name (default: "production")
        LOG_LEVEL - Logging level (default: "INFO")
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def _validate_url_field(v: str, field_name: str) -> str:
    """Validate URL format and strip the trailing slash.

    Raises:
        ValueError: If URL doesn't start with http:// or https://.
    """
    if v and not v.startswith(("http://", "https://")):
        raise ValueError(f"{field_name} must start with http:// or https://, got: {v}")
    return v.rstrip("/") if v else v


class JellyfinEnvSettings(BaseSettings):
    """Jellyfin credentials from JELLYFIN_HOST, JELLYFIN_API_KEY."""

    model_config = SettingsConfigDict(
        env_prefix="JELLYFIN_",
        extra="ignore",
    )

    host: str = Field(default="", description="Jellyfin server URL")
    api_key: str = Field(default="", description="Jellyfin API key")

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        return _validate_url_field(v, "JELLYFIN_HOST")


class ThemeSongsEnvSettings(BaseSettings):
    """Theme song options that may come from the environment."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    url_template: str = Field(
        default="",
        validation_alias="THEMESONGS_URL_TEMPLATE",
        description="Theme song URL template",
    )
    ffmpeg_bin: str = Field(
        default="ffmpeg",
        validation_alias="FFMPEG_BIN",
        description="ffmpeg binary name or path",
    )

    @field_validator("url_template")
    @classmethod
    def strip_template(cls, v: str) -> str:
        return v.strip()


class AppEnvSettings(BaseSettings):
    """Application-level settings from THEMESONGS_ENV, LOG_LEVEL."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    env: str = Field(
        default="production",
        validation_alias="THEMESONGS_ENV",
        description="Environment name (development/production)",
    )
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}, got: {v}")
        return upper


class EnvSettings(BaseSettings):
    """Combined environment settings.

    Example:
        env = get_env_settings()
        print(env.jellyfin.host)
        print(env.themesongs.url_template)
    """

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    jellyfin: JellyfinEnvSettings = Field(default_factory=JellyfinEnvSettings)
    themesongs: ThemeSongsEnvSettings = Field(default_factory=ThemeSongsEnvSettings)
    app: AppEnvSettings = Field(default_factory=AppEnvSettings)


@lru_cache(maxsize=1)
def get_env_settings() -> EnvSettings:
    """Get cached environment settings."""
    return EnvSettings()


def clear_env_settings_cache() -> None:
    """Clear the cached environment settings (used by tests and reloads)."""
    get_env_settings.cache_clear()


def load_env_settings_from_file(env_file: Path) -> EnvSettings:
    """Load environment settings from a specific .env file.

    The file is loaded into os.environ (overriding existing values) and the
    cache is refreshed.
    """
    from dotenv import load_dotenv

    load_dotenv(env_file, override=True)

    clear_env_settings_cache()
    return get_env_settings()
