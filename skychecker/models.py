"""
SkyChecker Data Model

Shared value types for the visibility engine:
- ObserverLocation, ObservationWindow, ObservationSession
- EphemerisResult, the computed rise/transit/set projection for one object
- CelestialObject, a catalog entry carrying its last computed projection
- Enumerations for status, phase, direction, difficulty and event outcome

All instants are timezone-aware datetimes. Angles are degrees, positive
longitude is East.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import List, NewType, Optional

from skychecker.constants import CACHE_KEY_PREFIX
from skychecker.exceptions import InvalidCoordinatesError

ObjectId = NewType("ObjectId", str)

__all__ = [
    "ObjectId",
    "ObjectType",
    "DifficultyRating",
    "SkyDirection",
    "MoonPhase",
    "VisibilityStatus",
    "EventState",
    "PolarCondition",
    "WindowSource",
    "ObserverLocation",
    "ObservationWindow",
    "EphemerisResult",
    "CelestialObject",
    "ObservationSession",
    "format_clock_time",
    "session_cache_key",
]


# =============================================================================
# Enumerations
# =============================================================================


class ObjectType(Enum):
    """Catalog object categories; each maps to one ephemeris source."""
    PLANET = "planet"
    MOON = "moon"
    DEEP_SKY = "deep_sky"
    SATELLITE = "satellite"

    @property
    def display_name(self) -> str:
        return {
            ObjectType.PLANET: "Planet",
            ObjectType.MOON: "Moon",
            ObjectType.DEEP_SKY: "Deep Sky Object",
            ObjectType.SATELLITE: "Satellite",
        }[self]


class DifficultyRating(Enum):
    """Minimum equipment needed to see the object."""
    NAKED_EYE = "Naked Eye"
    BINOCULARS = "Binoculars"
    SMALL_TELESCOPE = "Small Telescope"
    LARGE_TELESCOPE = "Large Telescope"

    @property
    def short_name(self) -> str:
        return {
            DifficultyRating.NAKED_EYE: "Eye",
            DifficultyRating.BINOCULARS: "Bino",
            DifficultyRating.SMALL_TELESCOPE: "Scope",
            DifficultyRating.LARGE_TELESCOPE: "L.Scope",
        }[self]

    @property
    def indicator(self) -> str:
        return {
            DifficultyRating.NAKED_EYE: "[*]",
            DifficultyRating.BINOCULARS: "[B]",
            DifficultyRating.SMALL_TELESCOPE: "[T]",
            DifficultyRating.LARGE_TELESCOPE: "[L]",
        }[self]


class SkyDirection(Enum):
    """8-point compass direction."""
    N = "N"
    NE = "NE"
    E = "E"
    SE = "SE"
    S = "S"
    SW = "SW"
    W = "W"
    NW = "NW"

    @property
    def full_name(self) -> str:
        return {
            "N": "North", "NE": "Northeast", "E": "East", "SE": "Southeast",
            "S": "South", "SW": "Southwest", "W": "West", "NW": "Northwest",
        }[self.value]

    @classmethod
    def from_azimuth(cls, azimuth: float) -> "SkyDirection":
        """Sector lookup; North covers [337.5, 360) and [0, 22.5)."""
        sector = int(((azimuth % 360.0) + 22.5) % 360.0 // 45.0)
        return list(cls)[sector]


class MoonPhase(Enum):
    """Named lunar phases."""
    NEW_MOON = "New Moon"
    WAXING_CRESCENT = "Waxing Crescent"
    FIRST_QUARTER = "First Quarter"
    WAXING_GIBBOUS = "Waxing Gibbous"
    FULL_MOON = "Full Moon"
    WANING_GIBBOUS = "Waning Gibbous"
    LAST_QUARTER = "Last Quarter"
    WANING_CRESCENT = "Waning Crescent"

    @classmethod
    def from_illumination(cls, illumination: float, waxing: bool) -> "MoonPhase":
        """Map illuminated percentage to a phase using fixed bands.

        <3 new, 3-47 crescent, 47-53 quarter, 53-97 gibbous, >=97 full.
        """
        if illumination < 3:
            return cls.NEW_MOON
        if illumination < 47:
            return cls.WAXING_CRESCENT if waxing else cls.WANING_CRESCENT
        if illumination < 53:
            return cls.FIRST_QUARTER if waxing else cls.LAST_QUARTER
        if illumination < 97:
            return cls.WAXING_GIBBOUS if waxing else cls.WANING_GIBBOUS
        return cls.FULL_MOON


class VisibilityStatus(Enum):
    """Per-object visibility verdict."""
    VISIBLE = "visible"
    NOT_YET_RISEN = "not_yet_risen"
    ALREADY_SET = "already_set"
    BELOW_HORIZON = "below_horizon"
    TOO_CLOSE_TO_SUN = "too_close_to_sun"  # reserved, never produced

    @property
    def display_text(self) -> str:
        return {
            VisibilityStatus.VISIBLE: "Visible Now",
            VisibilityStatus.NOT_YET_RISEN: "Rises Later",
            VisibilityStatus.ALREADY_SET: "Already Set",
            VisibilityStatus.BELOW_HORIZON: "Below Horizon",
            VisibilityStatus.TOO_CLOSE_TO_SUN: "Too Close to Sun",
        }[self]

    @property
    def sort_order(self) -> int:
        """Listing order: visible first, unobservable last."""
        return list(VisibilityStatus).index(self)


class EventState(Enum):
    """Why a rise or set time is (or is not) present."""
    OCCURS = "occurs"            # time is set
    ALREADY_UP = "already_up"    # above horizon at window start, no rise
    STILL_UP = "still_up"        # above horizon at window end, no set
    NEVER_UP = "never_up"        # never crests the horizon this window
    UNKNOWN = "unknown"          # no samples to decide from


class PolarCondition(Enum):
    """Sun behaviour at civil-twilight depth for a date and latitude."""
    NORMAL = "normal"
    POLAR_NIGHT = "polar_night"    # sun never rises above -6 deg
    MIDNIGHT_SUN = "midnight_sun"  # sun never sinks below -6 deg


class WindowSource(Enum):
    """Which step of the window cascade produced the window."""
    CIVIL_TWILIGHT = "civil_twilight"
    SUNSET = "sunset"
    POLAR_FALLBACK = "polar_fallback"
    DEFAULT_FALLBACK = "default_fallback"


def format_clock_time(instant: datetime, tz: Optional[tzinfo] = None) -> str:
    """Compact clock string such as ``7:22p`` or ``6:04a``."""
    local = instant.astimezone(tz) if tz is not None else instant
    hour = local.hour % 12 or 12
    suffix = "a" if local.hour < 12 else "p"
    return f"{hour}:{local.minute:02d}{suffix}"


# =============================================================================
# Locations and Windows
# =============================================================================


@dataclass(frozen=True)
class ObserverLocation:
    """Observer position on Earth.

    Raises InvalidCoordinatesError on construction when latitude or
    longitude are non-finite or out of range.
    """
    latitude: float   # degrees, positive North
    longitude: float  # degrees, positive East
    altitude: float = 0.0  # meters
    name: Optional[str] = None

    def __post_init__(self):
        for label, value, limit in (("latitude", self.latitude, 90.0), ("longitude", self.longitude, 180.0)):
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise InvalidCoordinatesError(f"{label} must be a finite number, got {value!r}")
            if abs(value) > limit:
                raise InvalidCoordinatesError(f"{label} {value} outside [-{limit:g}, {limit:g}]")

    @property
    def display_string(self) -> str:
        if self.name:
            return self.name
        ns = "N" if self.latitude >= 0 else "S"
        ew = "E" if self.longitude >= 0 else "W"
        return f"{abs(self.latitude):.2f}°{ns} {abs(self.longitude):.2f}°{ew}"

    @property
    def horizons_site_coord(self) -> str:
        """SITE_COORD value: ``lon,lat,elevation_km``."""
        return f"{self.longitude:.4f},{self.latitude:.4f},{self.altitude / 1000.0:.1f}"

    @classmethod
    def manual(cls, latitude: float, longitude: float, altitude: float = 0.0) -> "ObserverLocation":
        """Location typed in by the user."""
        return cls(latitude, longitude, altitude, name=f"Manual: {latitude:.2f}°, {longitude:.2f}°")

    @classmethod
    def san_francisco(cls) -> "ObserverLocation":
        return cls(37.7749, -122.4194, 16.0, name="San Francisco")


@dataclass(frozen=True)
class ObservationWindow:
    """Night interval to plan for; start is always before end."""
    start: datetime
    end: datetime
    source: WindowSource = WindowSource.CIVIL_TWILIGHT

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Observation window start {self.start} is not before end {self.end}")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


# =============================================================================
# Ephemeris Results and Catalog Objects
# =============================================================================


@dataclass(frozen=True)
class EphemerisResult:
    """Derived rise/transit/set and current position for one object.

    Every field is optional. A missing rise or set time is explained by
    rise_state / set_state, so "already up" and "never rises" stay
    distinguishable. A failed fetch produces no EphemerisResult at all.
    """
    rise_time: Optional[datetime] = None
    rise_azimuth: Optional[float] = None
    set_time: Optional[datetime] = None
    set_azimuth: Optional[float] = None
    transit_time: Optional[datetime] = None
    transit_azimuth: Optional[float] = None
    transit_altitude: Optional[float] = None
    current_altitude: Optional[float] = None
    current_azimuth: Optional[float] = None
    illumination: Optional[float] = None     # Moon only, percent
    sun_elongation: Optional[float] = None   # Moon only, [0, 360), <180 waxing
    altitude_at_start: Optional[float] = None
    rise_state: EventState = EventState.UNKNOWN
    set_state: EventState = EventState.UNKNOWN

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.rise_time, self.set_time, self.transit_time,
                self.current_altitude, self.altitude_at_start, self.illumination,
            )
        )


@dataclass
class CelestialObject:
    """Catalog entry plus its last computed visibility projection.

    The source selector is horizons_command for solar-system bodies and
    ra_hours / dec_degrees for deep-sky objects. Satellites use the pass
    feed and carry neither.
    """
    id: ObjectId
    name: str
    type: ObjectType
    difficulty: DifficultyRating = DifficultyRating.NAKED_EYE
    short_name: Optional[str] = None
    description: str = ""
    horizons_command: Optional[str] = None
    ra_hours: Optional[float] = None
    dec_degrees: Optional[float] = None

    # Last computed projection
    rise_time: Optional[datetime] = None
    rise_azimuth: Optional[float] = None
    set_time: Optional[datetime] = None
    set_azimuth: Optional[float] = None
    transit_time: Optional[datetime] = None
    transit_azimuth: Optional[float] = None
    transit_altitude: Optional[float] = None
    current_altitude: Optional[float] = None
    current_azimuth: Optional[float] = None
    rise_state: EventState = EventState.UNKNOWN
    set_state: EventState = EventState.UNKNOWN
    moon_phase: Optional[MoonPhase] = None
    illumination: Optional[float] = None
    status: Optional[VisibilityStatus] = None
    last_updated: Optional[datetime] = None
    is_stale: bool = False
    data_inconsistent: bool = False

    @property
    def display_name(self) -> str:
        return self.short_name or self.name

    @property
    def is_visible(self) -> bool:
        return self.status is VisibilityStatus.VISIBLE

    @property
    def has_fixed_coordinates(self) -> bool:
        return self.ra_hours is not None and self.dec_degrees is not None

    @property
    def rise_direction(self) -> Optional[SkyDirection]:
        return None if self.rise_azimuth is None else SkyDirection.from_azimuth(self.rise_azimuth)

    @property
    def set_direction(self) -> Optional[SkyDirection]:
        return None if self.set_azimuth is None else SkyDirection.from_azimuth(self.set_azimuth)

    @property
    def transit_direction(self) -> Optional[SkyDirection]:
        return None if self.transit_azimuth is None else SkyDirection.from_azimuth(self.transit_azimuth)

    @property
    def current_direction(self) -> Optional[SkyDirection]:
        return None if self.current_azimuth is None else SkyDirection.from_azimuth(self.current_azimuth)

    def share_text(self, tz: Optional[tzinfo] = None) -> str:
        """Plain-text summary suitable for sharing."""
        lines = [f"{self.name} - Tonight's Visibility", ""]
        if self.status is not None:
            lines.append(f"Status: {self.status.display_text}")
        lines.append(f"Equipment: {self.difficulty.value}")

        if self.type is ObjectType.MOON and self.moon_phase is not None:
            lines.append(f"Phase: {self.moon_phase.value}")
            if self.illumination is not None:
                lines.append(f"Illumination: {self.illumination:.0f}%")

        if self.current_altitude is not None and self.current_direction is not None:
            lines.append(f"Current: {self.current_altitude:.0f}° altitude, {self.current_direction.full_name}")

        if self.rise_time or self.transit_time or self.set_time:
            lines.append("")
            if self.rise_time:
                direction = self.rise_direction.value if self.rise_direction else ""
                lines.append(f"Rise: {format_clock_time(self.rise_time, tz)} {direction}".rstrip())
            if self.transit_time:
                peak = f"{self.transit_altitude:.0f}°" if self.transit_altitude is not None else ""
                lines.append(f"Peak: {format_clock_time(self.transit_time, tz)} {peak}".rstrip())
            if self.set_time:
                direction = self.set_direction.value if self.set_direction else ""
                lines.append(f"Set: {format_clock_time(self.set_time, tz)} {direction}".rstrip())

        lines.extend(["", "via SkyChecker"])
        return "\n".join(lines)


# =============================================================================
# Session
# =============================================================================


@dataclass
class ObservationSession:
    """Everything computed for one (date, location) planning cycle."""
    date: date
    location: ObserverLocation
    window: ObservationWindow
    polar_condition: PolarCondition
    objects: List[CelestialObject] = field(default_factory=list)
    last_updated: Optional[datetime] = None
    meteor_shower: Optional[str] = None
    weather_summary: Optional[str] = None
    observation_rating: Optional[int] = None
    clear_hours: Optional[int] = None      # forecast hours in the window good for observing
    forecast_hours: Optional[int] = None

    @property
    def cache_key(self) -> str:
        return session_cache_key(self.date, self.location)

    @property
    def visible_count(self) -> int:
        """Objects visible now or rising later tonight."""
        return sum(
            1 for obj in self.objects
            if obj.status in (VisibilityStatus.VISIBLE, VisibilityStatus.NOT_YET_RISEN)
        )


def session_cache_key(day: date, location: ObserverLocation) -> str:
    """``session_YYYY-MM-DD_<lat>_<lon>`` with coordinates rounded to 0.01 deg."""
    return f"{CACHE_KEY_PREFIX}_{day.isoformat()}_{location.latitude:.2f}_{location.longitude:.2f}"
