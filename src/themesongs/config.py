"""
Configuration loading from .env and config.yaml.

Setting Sources and Precedence
==============================
1. **config.yaml** (structured options, highest priority):
   - download: url_template, filename, timeout_seconds
   - normalize: ffmpeg_binary, volume, codec, quality, timeout_seconds
   - jellyfin: timeout_seconds
   - paths: log_file

2. **.env file / environment** (secrets and host-specific values):
   - JELLYFIN_HOST, JELLYFIN_API_KEY
   - THEMESONGS_URL_TEMPLATE, FFMPEG_BIN
   - THEMESONGS_ENV, LOG_LEVEL

A missing config.yaml is not an error: every option has a default and the
URL template defaults to blank, which leaves downloading disabled.

Relative paths in config.yaml are resolved against the project root
(parent of the config/ directory).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError

from themesongs.env_settings import (
    clear_env_settings_cache,
    get_env_settings,
    load_env_settings_from_file,
)
from themesongs.exceptions import ConfigurationError
from themesongs.paths import default_log_file

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/config.yaml")


@dataclass
class DownloadConfig:
    """Theme song download settings (config.yaml download section)."""

    # Blank disables downloading
    url_template: str = ""
    filename: str = "theme.mp3"
    timeout_seconds: float = 60.0


@dataclass
class NormalizeConfig:
    """ffmpeg volume normalization settings (config.yaml normalize section)."""

    ffmpeg_binary: str = "ffmpeg"
    # Linear gain passed to the volume filter
    volume: float = 0.5
    codec: str = "libmp3lame"
    # libmp3lame VBR quality, 0 (best) - 9 (worst)
    quality: int = 2
    timeout_seconds: float | None = 300.0


@dataclass
class JellyfinConfig:
    """Jellyfin catalog settings. host/api_key come from .env."""

    host: str = ""
    api_key: str = ""
    timeout_seconds: float = 30.0


@dataclass
class PathsConfig:
    """Path configuration settings (config.yaml paths section)."""

    log_file: Path | None = None


@dataclass
class Settings:
    """Complete application settings."""

    download: DownloadConfig = field(default_factory=DownloadConfig)
    normalize: NormalizeConfig = field(default_factory=NormalizeConfig)
    jellyfin: JellyfinConfig = field(default_factory=JellyfinConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    env: str = "production"
    log_level: str = "INFO"
    config_file: Path | None = None


def load_yaml_config(config_path: Path) -> dict[str, Any]:
    """Load configuration from YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigurationError: If the file is not valid YAML or not a mapping
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}", config_file=config_path) from e

    if not isinstance(data, dict):
        raise ConfigurationError("Top level of config.yaml must be a mapping", config_file=config_path)
    return data


def _section(data: dict[str, Any], name: str, config_path: Path) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigurationError(
            f"Section '{name}' must be a mapping", config_file=config_path, field=name
        )
    return section


def _number(value: Any, name: str, config_path: Path, *, cast: type = float) -> Any:
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"{name} must be a number, got: {value!r}", config_file=config_path, field=name
        ) from None


def validate_settings(settings: Settings) -> list[str]:
    """Return human-readable problems with loaded settings (empty when valid)."""
    errors: list[str] = []

    if not settings.download.filename.strip():
        errors.append("download.filename cannot be blank")
    if settings.download.timeout_seconds <= 0:
        errors.append("download.timeout_seconds must be positive")
    if settings.normalize.volume <= 0:
        errors.append("normalize.volume must be positive")
    if not 0 <= settings.normalize.quality <= 9:
        errors.append("normalize.quality must be between 0 and 9")
    if settings.normalize.timeout_seconds is not None and settings.normalize.timeout_seconds <= 0:
        errors.append("normalize.timeout_seconds must be positive")
    if settings.jellyfin.timeout_seconds <= 0:
        errors.append("jellyfin.timeout_seconds must be positive")

    return errors


def load_settings(
    config_file: Path | None = None,
    env_file: Path | None = None,
) -> Settings:
    """
    Load settings from .env and config.yaml files.

    Args:
        config_file: Path to config.yaml (default: config/config.yaml)
        env_file: Path to a .env file whose values override the process
            environment. Without it, a .env next to config.yaml (then in the
            current directory) fills in only variables that are not yet set.

    Returns:
        Populated Settings object

    Raises:
        ConfigurationError: If a file is malformed or a value is invalid
    """
    config_path = config_file or DEFAULT_CONFIG_PATH

    try:
        if env_file is not None:
            env = load_env_settings_from_file(env_file)
        else:
            env_next_to_config = config_path.resolve().parent / ".env"
            discovered = env_next_to_config if env_next_to_config.exists() else Path(".env")
            if discovered.exists():
                load_dotenv(discovered)
            clear_env_settings_cache()
            env = get_env_settings()
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid environment settings: {e}") from e

    try:
        yaml_config = load_yaml_config(config_path)
        loaded_from: Path | None = config_path
    except FileNotFoundError:
        logger.debug("No config file at %s, using defaults", config_path)
        yaml_config = {}
        loaded_from = None

    project_root = config_path.resolve().parent.parent

    def resolve_path(path_str: str) -> Path:
        p = Path(path_str).expanduser()
        return p if p.is_absolute() else (project_root / p).resolve()

    download_data = _section(yaml_config, "download", config_path)
    download = DownloadConfig(
        url_template=str(download_data.get("url_template") or "").strip()
        or env.themesongs.url_template,
        filename=str(download_data.get("filename", "theme.mp3")),
        timeout_seconds=_number(
            download_data.get("timeout_seconds", 60), "download.timeout_seconds", config_path
        ),
    )

    normalize_data = _section(yaml_config, "normalize", config_path)
    normalize_timeout = normalize_data.get("timeout_seconds", 300)
    normalize = NormalizeConfig(
        ffmpeg_binary=str(normalize_data.get("ffmpeg_binary") or env.themesongs.ffmpeg_bin),
        volume=_number(normalize_data.get("volume", 0.5), "normalize.volume", config_path),
        codec=str(normalize_data.get("codec", "libmp3lame")),
        quality=_number(
            normalize_data.get("quality", 2), "normalize.quality", config_path, cast=int
        ),
        timeout_seconds=None
        if normalize_timeout is None
        else _number(normalize_timeout, "normalize.timeout_seconds", config_path),
    )

    jellyfin_data = _section(yaml_config, "jellyfin", config_path)
    jellyfin = JellyfinConfig(
        host=env.jellyfin.host,
        api_key=env.jellyfin.api_key,
        timeout_seconds=_number(
            jellyfin_data.get("timeout_seconds", 30), "jellyfin.timeout_seconds", config_path
        ),
    )

    paths_data = _section(yaml_config, "paths", config_path)
    log_file = paths_data.get("log_file")
    paths = PathsConfig(log_file=resolve_path(log_file) if log_file else default_log_file())

    settings = Settings(
        download=download,
        normalize=normalize,
        jellyfin=jellyfin,
        paths=paths,
        env=env.app.env,
        log_level=env.app.log_level,
        config_file=loaded_from,
    )

    errors = validate_settings(settings)
    if errors:
        raise ConfigurationError(
            "Invalid configuration: " + "; ".join(errors),
            config_file=loaded_from,
            details={"errors": errors},
        )

    return settings


# Lazy-loaded global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance (lazy-loaded)."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reload_settings(
    config_file: Path | None = None,
    env_file: Path | None = None,
) -> Settings:
    """Reload settings from files and replace the cached instance."""
    global _settings
    _settings = load_settings(config_file, env_file)
    return _settings


def clear_settings() -> None:
    """Clear the cached settings instance."""
    global _settings
    _settings = None
