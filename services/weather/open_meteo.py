"""
SkyChecker Open-Meteo Weather Integration

Cloud cover and transparency forecast for the observation window, from the
free Open-Meteo API (no key required):
- Current total cloud cover, humidity and wind
- Hourly cloud layers (low/mid/high) and visibility
- A 1-5 observing rating combining the above

Weather is advisory. The planner fetches it alongside the ephemeris
batch and a failure only drops the rating from the session.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

import aiohttp

from skychecker import constants
from skychecker.config import WeatherConfig
from skychecker.exceptions import ProviderError
from skychecker.logging_config import get_logger
from skychecker.models import ObserverLocation
from services.http_client import ProviderClient

logger = get_logger(__name__)

__all__ = [
    "CloudCondition",
    "WeatherData",
    "HourlyWeather",
    "OpenMeteoClient",
    "parse_current_weather",
    "parse_hourly_weather",
]

CURRENT_FIELDS = "cloud_cover,relative_humidity_2m,wind_speed_10m"
HOURLY_FIELDS = "cloud_cover,cloud_cover_low,cloud_cover_mid,cloud_cover_high,visibility"


class CloudCondition(Enum):
    """Cloud cover bands by total percentage."""
    CLEAR = "Clear"                  # < 10%
    MOSTLY_CLEAR = "Mostly Clear"    # < 25%
    PARTLY_CLOUDY = "Partly Cloudy"  # < 50%
    MOSTLY_CLOUDY = "Mostly Cloudy"  # < 75%
    OVERCAST = "Overcast"

    @classmethod
    def from_cover(cls, percent: float) -> "CloudCondition":
        if percent < 10:
            return cls.CLEAR
        if percent < 25:
            return cls.MOSTLY_CLEAR
        if percent < 50:
            return cls.PARTLY_CLOUDY
        if percent < 75:
            return cls.MOSTLY_CLOUDY
        return cls.OVERCAST


@dataclass
class WeatherData:
    """Conditions at the time of the request."""
    cloud_cover: int            # total cloud cover, percent
    cloud_cover_low: int = 0
    cloud_cover_mid: int = 0
    cloud_cover_high: int = 0
    visibility: float = 20000.0  # meters
    humidity: int = 50           # percent
    wind_speed: float = 0.0      # km/h
    timestamp: Optional[datetime] = None

    @property
    def cloud_description(self) -> str:
        return CloudCondition.from_cover(self.cloud_cover).value

    @property
    def visibility_description(self) -> str:
        if self.visibility >= 20000:
            return "Excellent"
        if self.visibility >= 10000:
            return "Good"
        if self.visibility >= 5000:
            return "Fair"
        return "Poor"

    @property
    def observation_rating(self) -> int:
        """1-5 stars. Clouds dominate; visibility, dew risk and wind adjust."""
        score = 5.0 - self.cloud_cover / 25.0
        if self.visibility < 10000:
            score -= 0.5
        if self.visibility > 20000:
            score += 0.5
        if self.humidity > 85:
            score -= 0.5
        if self.wind_speed > 30:
            score -= 0.5
        return max(1, min(5, math.floor(score + 0.5)))

    @property
    def rating_description(self) -> str:
        return {5: "Excellent", 4: "Good", 3: "Fair", 2: "Poor"}.get(self.observation_rating, "Bad")

    @property
    def rating_stars(self) -> str:
        return "*" * self.observation_rating + "-" * (5 - self.observation_rating)

    @property
    def summary(self) -> str:
        return f"{self.cloud_description}, {self.visibility_description} visibility ({self.rating_stars})"


@dataclass
class HourlyWeather:
    """One forecast hour."""
    hour: datetime
    cloud_cover: int
    visibility: float
    humidity: int = 50

    @property
    def is_good_for_observing(self) -> bool:
        return (
            self.cloud_cover < constants.GOOD_CLOUD_COVER_PERCENT
            and self.visibility > constants.GOOD_VISIBILITY_M
        )


def _series_value(series: Optional[Sequence], index: int, default):
    if not series or index >= len(series) or series[index] is None:
        return default
    return series[index]


def _parse_local_hour(text: str, tz: tzinfo) -> Optional[datetime]:
    try:
        return datetime.strptime(text, "%Y-%m-%dT%H:%M").replace(tzinfo=tz)
    except (TypeError, ValueError):
        return None


def parse_current_weather(payload: Dict[str, Any], now: datetime) -> WeatherData:
    """Build WeatherData from a forecast payload.

    Current values win; hourly values at the current local hour fill gaps.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("hourly"), dict):
        raise ProviderError("Open-Meteo payload has no hourly block", provider="open-meteo")

    current = payload.get("current") or {}
    hourly = payload["hourly"]
    cover_series = hourly.get("cloud_cover") or [0]
    index = min(now.hour, len(cover_series) - 1)

    cloud_cover = current.get("cloud_cover")
    if cloud_cover is None:
        cloud_cover = _series_value(cover_series, index, 0)
    humidity = current.get("relative_humidity_2m")
    if humidity is None:
        humidity = _series_value(hourly.get("relative_humidity_2m"), index, 50)

    return WeatherData(
        cloud_cover=int(cloud_cover),
        cloud_cover_low=int(_series_value(hourly.get("cloud_cover_low"), index, 0)),
        cloud_cover_mid=int(_series_value(hourly.get("cloud_cover_mid"), index, 0)),
        cloud_cover_high=int(_series_value(hourly.get("cloud_cover_high"), index, 0)),
        visibility=float(_series_value(hourly.get("visibility"), index, 20000.0)),
        humidity=int(humidity),
        wind_speed=float(current.get("wind_speed_10m") or 0.0),
        timestamp=now,
    )


def parse_hourly_weather(
    payload: Dict[str, Any],
    start: datetime,
    end: datetime,
    tz: tzinfo,
) -> List[HourlyWeather]:
    """Forecast hours falling inside [start, end].

    Open-Meteo returns local wall times when ``timezone=auto``; ``tz`` is
    the zone they are interpreted in.
    """
    hourly = payload.get("hourly") or {}
    times = hourly.get("time")
    cover = hourly.get("cloud_cover")
    visibility = hourly.get("visibility")
    if not times or not cover or not visibility:
        return []

    humidity = hourly.get("relative_humidity_2m")
    hours = []
    for i, stamp in enumerate(times):
        when = _parse_local_hour(stamp, tz)
        if when is None or not start <= when <= end:
            continue
        hours.append(HourlyWeather(
            hour=when,
            cloud_cover=int(_series_value(cover, i, 0)),
            visibility=float(_series_value(visibility, i, 0.0)),
            humidity=int(_series_value(humidity, i, 50)),
        ))
    return hours


class OpenMeteoClient:
    """Async Open-Meteo forecast client."""

    def __init__(
        self,
        config: Optional[WeatherConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or WeatherConfig()
        self._client = ProviderClient("open-meteo", self.config, session)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def __aenter__(self) -> "OpenMeteoClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.close()

    async def fetch_weather(self, location: ObserverLocation, tz: Optional[tzinfo] = None) -> WeatherData:
        """Current conditions at ``location``."""
        params = {
            "latitude": str(location.latitude),
            "longitude": str(location.longitude),
            "current": CURRENT_FIELDS,
            "hourly": HOURLY_FIELDS,
            "forecast_days": "1",
            "timezone": "auto",
        }
        payload = await self._client.get_json(self.config.base_url, params)
        now = self._clock()
        data = parse_current_weather(payload, now.astimezone(tz) if tz else now)
        logger.debug(f"Weather at {location.display_string}: {data.summary}")
        return data

    async def fetch_hourly_forecast(
        self,
        location: ObserverLocation,
        start: datetime,
        end: datetime,
        tz: tzinfo,
    ) -> List[HourlyWeather]:
        """Hourly forecast restricted to the observation window."""
        params = {
            "latitude": str(location.latitude),
            "longitude": str(location.longitude),
            "hourly": f"{HOURLY_FIELDS},relative_humidity_2m",
            "forecast_days": "2",
            "timezone": "auto",
        }
        payload = await self._client.get_json(self.config.base_url, params)
        return parse_hourly_weather(payload, start, end, tz)
