"""
SkyChecker Solar Geometry Service

Computes the nightly observation window for a date and observer:
- Sunset / sunrise at an arbitrary sun elevation (civil twilight by default)
- Polar night / midnight sun detection
- The window cascade: civil twilight, then true sunset, then fixed fallbacks

Uses the NOAA solar position approximation (Spencer Fourier series for
declination and the equation of time). Accurate to about a minute away from
the poles, which is all the planner needs. No external ephemeris required.

Usage:
    from zoneinfo import ZoneInfo
    from services.solar import SunsetService

    service = SunsetService(ZoneInfo("America/Los_Angeles"))
    window, polar = service.resolve_window(date(2025, 12, 11), location)
"""

import math
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

from skychecker import constants
from skychecker.logging_config import get_logger
from skychecker.models import (
    ObservationWindow,
    ObserverLocation,
    PolarCondition,
    WindowSource,
    format_clock_time,
)

logger = get_logger(__name__)

__all__ = ["SunsetService", "solar_declination", "equation_of_time", "cos_hour_angle"]


# =============================================================================
# Solar Position (NOAA approximation)
# =============================================================================


def _fractional_year(day: date) -> float:
    """Gamma in radians, evaluated at local noon of ``day``."""
    days_in_year = 366 if _is_leap(day.year) else 365
    day_of_year = day.timetuple().tm_yday
    return 2.0 * math.pi / days_in_year * (day_of_year - 1 + 0.5)


def _is_leap(year: int) -> bool:
    return (year % 4 == 0 and year % 100 != 0) or year % 400 == 0


def solar_declination(day: date) -> float:
    """Solar declination in radians."""
    g = _fractional_year(day)
    return (
        0.006918
        - 0.399912 * math.cos(g)
        + 0.070257 * math.sin(g)
        - 0.006758 * math.cos(2 * g)
        + 0.000907 * math.sin(2 * g)
        - 0.002697 * math.cos(3 * g)
        + 0.00148 * math.sin(3 * g)
    )


def equation_of_time(day: date) -> float:
    """Equation of time in minutes."""
    g = _fractional_year(day)
    return 229.18 * (
        0.000075
        + 0.001868 * math.cos(g)
        - 0.032077 * math.sin(g)
        - 0.014615 * math.cos(2 * g)
        - 0.040849 * math.sin(2 * g)
    )


def cos_hour_angle(day: date, latitude: float, elevation: float) -> float:
    """Cosine of the hour angle at which the sun crosses ``elevation``.

    Values outside [-1, 1] mean the sun never reaches that elevation:
    > 1 it stays below, < -1 it stays above.
    """
    lat = math.radians(latitude)
    dec = solar_declination(day)
    zenith = math.radians(90.0 - elevation)
    return math.cos(zenith) / (math.cos(lat) * math.cos(dec)) - math.tan(lat) * math.tan(dec)


# =============================================================================
# Sunset Service
# =============================================================================


class SunsetService:
    """Observation window calculator bound to the observer's local timezone."""

    def __init__(
        self,
        tz: Optional[tzinfo] = None,
        observation_elevation: float = constants.CIVIL_TWILIGHT_ELEVATION,
        fallback_elevation: float = constants.SUNSET_ELEVATION,
    ):
        self.tz = tz or ZoneInfo(constants.DEFAULT_TIMEZONE)
        self.observation_elevation = observation_elevation
        self.fallback_elevation = fallback_elevation

    def _local_midnight(self, day: date) -> datetime:
        return datetime.combine(day, time(0, 0), tzinfo=self.tz)

    def _sun_event(
        self,
        day: date,
        location: ObserverLocation,
        elevation: float,
        rising: bool,
    ) -> Optional[datetime]:
        """Time the sun crosses ``elevation`` in the solar day of ``day``.

        Usually falls on ``day`` itself; at high latitudes an evening
        crossing can fall after local midnight.
        """
        if abs(location.latitude) >= 90.0:
            return None

        cos_ha = cos_hour_angle(day, location.latitude, elevation)
        if not -1.0 <= cos_ha <= 1.0:
            return None

        ha = math.degrees(math.acos(cos_ha))
        if rising:
            ha = -ha

        minutes_utc = 720.0 - 4.0 * location.longitude - equation_of_time(day) + 4.0 * ha

        offset = datetime.combine(day, time(12, 0), tzinfo=self.tz).utcoffset() or timedelta(0)
        minutes_local = math.floor(minutes_utc + offset.total_seconds() / 60.0)

        # Not wrapped: a dusk past local midnight lands on the next calendar day
        return self._local_midnight(day) + timedelta(minutes=minutes_local)

    def get_sunset_time(
        self,
        day: date,
        location: ObserverLocation,
        elevation: Optional[float] = None,
    ) -> Optional[datetime]:
        """Evening crossing of ``elevation`` (civil twilight end by default)."""
        if elevation is None:
            elevation = self.observation_elevation
        return self._sun_event(day, location, elevation, rising=False)

    def get_sunrise_time(
        self,
        day: date,
        location: ObserverLocation,
        elevation: Optional[float] = None,
    ) -> Optional[datetime]:
        """Morning crossing of ``elevation`` (civil twilight start by default)."""
        if elevation is None:
            elevation = self.observation_elevation
        return self._sun_event(day, location, elevation, rising=True)

    def detect_polar_condition(self, day: date, location: ObserverLocation) -> PolarCondition:
        """Classify the day at civil-twilight depth.

        Independent of the window calculation; used to pick the fallback
        window and to label the night.
        """
        if abs(location.latitude) >= 90.0:
            # tan(lat) diverges; decide from the sign of declination instead
            same_hemisphere = (solar_declination(day) >= 0) == (location.latitude > 0)
            return PolarCondition.MIDNIGHT_SUN if same_hemisphere else PolarCondition.POLAR_NIGHT

        cos_ha = cos_hour_angle(day, location.latitude, self.observation_elevation)
        if cos_ha > 1.0:
            return PolarCondition.POLAR_NIGHT
        if cos_ha < -1.0:
            return PolarCondition.MIDNIGHT_SUN
        return PolarCondition.NORMAL

    def get_observation_window(self, day: date, location: ObserverLocation) -> Optional[ObservationWindow]:
        """Sunset on ``day`` to sunrise on ``day + 1``.

        Tries civil twilight first, then true sunset/sunrise for high
        latitudes where the sun sets but twilight never ends. Returns None
        when neither pair exists.
        """
        next_day = day + timedelta(days=1)

        for elevation, source in (
            (self.observation_elevation, WindowSource.CIVIL_TWILIGHT),
            (self.fallback_elevation, WindowSource.SUNSET),
        ):
            sunset = self.get_sunset_time(day, location, elevation)
            sunrise = self.get_sunrise_time(next_day, location, elevation)
            if sunset is not None and sunrise is not None and sunrise <= sunset:
                # dusk slipped past midnight and next_day's dawn came first
                sunrise = self.get_sunrise_time(next_day + timedelta(days=1), location, elevation)
            if sunset is not None and sunrise is not None and sunset < sunrise:
                logger.debug(
                    f"Observation window ({source.value}): "
                    f"{format_clock_time(sunset)} -> {format_clock_time(sunrise)}"
                )
                return ObservationWindow(sunset, sunrise, source)

        logger.info(f"No sunset/sunrise window for {day} at {location.display_string}")
        return None

    def resolve_window(self, day: date, location: ObserverLocation) -> Tuple[ObservationWindow, PolarCondition]:
        """Always produce a usable window.

        Polar night and midnight sun fall back to the local calendar day
        (midnight to midnight). A normal day without a solution (boundary
        latitudes near the solstices) falls back to 18:00 + 12 h.
        """
        polar = self.detect_polar_condition(day, location)
        window = self.get_observation_window(day, location)
        if window is not None:
            return window, polar

        start = self._local_midnight(day)
        if polar is PolarCondition.NORMAL:
            start = start.replace(hour=constants.DEFAULT_FALLBACK_START_HOUR)
            window = ObservationWindow(
                start,
                start + timedelta(hours=constants.DEFAULT_FALLBACK_HOURS),
                WindowSource.DEFAULT_FALLBACK,
            )
            logger.warning(f"Using default 18:00-06:00 window for {day}")
        else:
            window = ObservationWindow(
                start,
                start + timedelta(hours=constants.POLAR_FALLBACK_HOURS),
                WindowSource.POLAR_FALLBACK,
            )
            logger.info(f"{polar.value} on {day}: using full-day window")
        return window, polar

    def get_midnight(self, day: date) -> datetime:
        """Local midnight at the end of ``day``."""
        return self._local_midnight(day + timedelta(days=1))

    def format_time(self, instant: datetime) -> str:
        """Local compact clock string, e.g. ``7:22p``."""
        return format_clock_time(instant, self.tz)
