"""
SkyChecker Configuration System

Configuration for the visibility engine and its remote providers, using
pydantic for validation and YAML for the config file.

Configuration loading priority:
1. Environment variables (SKYCHECKER_SECTION_KEY)
2. Config file passed explicitly (e.g. --config on the command line)
3. ./skychecker.yaml (current directory)
4. ~/.skychecker/config.yaml (user home)
5. /etc/skychecker/config.yaml
6. Built-in defaults

Usage:
    from skychecker.config import load_config

    config = load_config()
    print(config.site.latitude)
    print(config.horizons.max_attempts)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from skychecker import constants
from skychecker.exceptions import ConfigurationError

__all__ = [
    "SkyCheckerConfig",
    "SiteConfig",
    "FetchPolicy",
    "HorizonsConfig",
    "SatelliteConfig",
    "WeatherConfig",
    "CacheConfig",
    "TwilightConfig",
    "load_config",
    "get_config_paths",
]

ENV_PREFIX = "SKYCHECKER_"


# =============================================================================
# Sections
# =============================================================================


class SiteConfig(BaseModel):
    """Default observer location, used when no location is supplied."""

    latitude: float = Field(
        default=constants.DEFAULT_LATITUDE,
        ge=-90.0,
        le=90.0,
        description="Latitude in decimal degrees (positive = North)",
    )
    longitude: float = Field(
        default=constants.DEFAULT_LONGITUDE,
        ge=-180.0,
        le=180.0,
        description="Longitude in decimal degrees (positive = East)",
    )
    elevation: float = Field(
        default=constants.DEFAULT_ELEVATION_M,
        ge=-500.0,
        le=9000.0,
        description="Elevation in meters above sea level",
    )
    timezone: str = Field(
        default=constants.DEFAULT_TIMEZONE,
        description="IANA timezone used for the local calendar date",
    )
    name: str = Field(default=constants.DEFAULT_SITE_NAME, description="Display name")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Timezone must resolve through zoneinfo."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v


class FetchPolicy(BaseModel):
    """Timeout and retry policy shared by the remote providers."""

    request_timeout: float = Field(
        default=constants.REQUEST_TIMEOUT_SEC,
        gt=0.0,
        le=120.0,
        description="Per-request connect/read timeout in seconds",
    )
    resource_timeout: float = Field(
        default=constants.RESOURCE_TIMEOUT_SEC,
        gt=0.0,
        le=300.0,
        description="Whole-request timeout in seconds",
    )
    max_attempts: int = Field(
        default=constants.MAX_FETCH_ATTEMPTS,
        ge=1,
        le=10,
        description="Attempts before a transient failure is surfaced",
    )
    backoff_step: float = Field(
        default=constants.BACKOFF_STEP_SEC,
        ge=0.0,
        le=60.0,
        description="Linear backoff step: delay = attempt * step",
    )

    @model_validator(mode="after")
    def validate_timeouts(self) -> "FetchPolicy":
        if self.resource_timeout < self.request_timeout:
            raise ValueError("resource_timeout must be >= request_timeout")
        return self


class HorizonsConfig(FetchPolicy):
    """JPL Horizons ephemeris provider."""

    base_url: str = Field(default=constants.HORIZONS_API_URL, description="Horizons API endpoint")
    stagger_delay: float = Field(
        default=constants.STAGGER_DELAY_SEC,
        ge=0.0,
        le=5.0,
        description="Launch delay between batch requests: index * stagger",
    )


class SatelliteConfig(FetchPolicy):
    """ISS pass prediction feed."""

    enabled: bool = Field(default=True, description="Fetch satellite passes")
    base_url: str = Field(default=constants.ISS_PASS_API_URL, description="Pass feed endpoint")
    pass_count: int = Field(default=constants.ISS_PASS_COUNT, ge=1, le=100, description="Passes requested")


class WeatherConfig(FetchPolicy):
    """Open-Meteo forecast source."""

    enabled: bool = Field(default=True, description="Fetch cloud/visibility forecast")
    base_url: str = Field(default=constants.OPEN_METEO_API_URL, description="Forecast endpoint")
    max_attempts: int = Field(default=2, ge=1, le=10, description="Weather is optional, retry briefly")


class CacheConfig(BaseModel):
    """Session cache."""

    enabled: bool = Field(default=True, description="Persist computed sessions")
    directory: str = Field(default="~/.skychecker/cache", description="JSON cache directory")
    ttl_hours: float = Field(default=constants.CACHE_TTL_HOURS, gt=0.0, le=168.0, description="Max age")


class TwilightConfig(BaseModel):
    """Sun elevations defining the observation window."""

    observation_elevation: float = Field(
        default=constants.CIVIL_TWILIGHT_ELEVATION,
        ge=-18.0,
        le=0.0,
        description="Sun elevation that opens/closes the window (civil twilight)",
    )
    fallback_elevation: float = Field(
        default=constants.SUNSET_ELEVATION,
        ge=-18.0,
        le=0.0,
        description="Retried when the twilight window has no solution",
    )


class SkyCheckerConfig(BaseModel):
    """Top-level configuration."""

    model_config = ConfigDict(extra="ignore")

    site: SiteConfig = Field(default_factory=SiteConfig)
    horizons: HorizonsConfig = Field(default_factory=HorizonsConfig)
    satellite: SatelliteConfig = Field(default_factory=SatelliteConfig)
    weather: WeatherConfig = Field(default_factory=WeatherConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    twilight: TwilightConfig = Field(default_factory=TwilightConfig)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Global logging level",
    )
    log_file: Optional[str] = Field(default=None, description="Optional rotating log file")


# =============================================================================
# Loading
# =============================================================================


def get_config_paths() -> list[Path]:
    """Config file search path, first found wins."""
    home = Path.home()
    return [
        Path("./skychecker.yaml"),
        Path("./skychecker.yml"),
        home / ".skychecker" / "config.yaml",
        home / ".skychecker" / "config.yml",
        Path("/etc/skychecker/config.yaml"),
    ]


def _coerce(value: str):
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit():
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides(config_dict: dict) -> dict:
    """Apply SKYCHECKER_SECTION_KEY overrides.

    Example: SKYCHECKER_HORIZONS_MAX_ATTEMPTS=3 -> horizons.max_attempts.
    Top-level keys use the same form: SKYCHECKER_LOG_LEVEL -> log_level.
    """
    top_level = set(SkyCheckerConfig.model_fields) - {
        name for name, field in SkyCheckerConfig.model_fields.items()
        if field.default_factory is not None
    }

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        name = key[len(ENV_PREFIX):].lower()
        if name in top_level:
            config_dict[name] = value
            continue

        parts = name.split("_")
        if len(parts) < 2:
            continue
        section = parts[0]
        setting = "_".join(parts[1:])

        if not isinstance(config_dict.get(section), dict):
            config_dict[section] = {}
        config_dict[section][setting] = _coerce(value)

    return config_dict


def load_config(config_path: Optional[str | Path] = None) -> SkyCheckerConfig:
    """Load and validate configuration.

    Args:
        config_path: Explicit config file, or None for auto-discovery

    Returns:
        Validated SkyCheckerConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    config_dict: dict = {}

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {path}")
        candidates = [path]
    else:
        candidates = get_config_paths()

    for path in candidates:
        if not path.exists():
            continue
        try:
            with open(path, encoding="utf-8") as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read {path}: {e}") from e
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Config root in {path} must be a mapping")
        break

    config_dict = _apply_env_overrides(config_dict)

    try:
        return SkyCheckerConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e
