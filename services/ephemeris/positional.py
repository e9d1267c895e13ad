"""
SkyChecker Positional Astronomy

Local altitude/azimuth calculations for fixed RA/Dec objects, plus the
sample-series derivation shared with the Horizons adapter:
- Julian Date and local sidereal time (Meeus)
- Equatorial to horizontal conversion
- Hourly sampling across an observation window
- Rise / transit / set extraction with explicit "already up" and
  "still up" outcomes
- Interpolated current position with circular azimuth handling

No refraction, precession or nutation: J2000 catalog coordinates are used
as-is, which is well inside the fraction-of-a-degree target.

Usage:
    from services.ephemeris.positional import calculate_ephemeris

    result = calculate_ephemeris(0.7122, 41.27, location, window.start, window.end)
    print(result.transit_time, result.transit_altitude)
"""

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

from skychecker import constants
from skychecker.models import EphemerisResult, EventState, ObserverLocation

__all__ = [
    "PositionSample",
    "julian_date",
    "local_sidereal_time",
    "altitude_azimuth",
    "sample_positions",
    "derive_ephemeris",
    "interpolate_position",
    "calculate_ephemeris",
]


@dataclass(frozen=True)
class PositionSample:
    """One point of an altitude/azimuth time series."""
    time: datetime
    altitude: float  # degrees
    azimuth: float   # degrees from North, [0, 360)


def _as_utc(instant: datetime) -> datetime:
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


# =============================================================================
# Time
# =============================================================================


def julian_date(instant: datetime) -> float:
    """Julian Date of a Gregorian calendar instant (naive input is UTC)."""
    utc = _as_utc(instant)
    year, month = utc.year, utc.month
    if month <= 2:
        year -= 1
        month += 12

    a = math.floor(year / 100)
    b = 2 - a + math.floor(a / 4)
    jd = math.floor(365.25 * (year + 4716)) + math.floor(30.6001 * (month + 1)) + utc.day + b - 1524.5

    day_fraction = (utc.hour + utc.minute / 60.0 + (utc.second + utc.microsecond / 1e6) / 3600.0) / 24.0
    return jd + day_fraction


def local_sidereal_time(longitude: float, instant: datetime) -> float:
    """Local mean sidereal time in hours, [0, 24).

    Args:
        longitude: Observer longitude in degrees, positive East
        instant: Time of observation
    """
    jd = julian_date(instant)
    days = jd - constants.J2000_JD
    t = days / constants.DAYS_PER_CENTURY

    gmst = (
        constants.GMST_AT_J2000_DEG
        + constants.GMST_RATE_DEG_PER_DAY * days
        + constants.GMST_T2_COEFF * t * t
        - t * t * t / constants.GMST_T3_DIVISOR
    ) % 360.0

    return (gmst / 15.0 + longitude / 15.0) % 24.0


# =============================================================================
# Coordinates
# =============================================================================


def altitude_azimuth(
    ra_hours: float,
    dec_degrees: float,
    latitude: float,
    longitude: float,
    instant: datetime,
) -> Tuple[float, float]:
    """Convert equatorial coordinates to (altitude, azimuth) in degrees.

    Azimuth is measured from North through East. At the geographic poles
    azimuth is undefined and reported as 0.
    """
    hour_angle = (local_sidereal_time(longitude, instant) - ra_hours) % 24.0
    ha = math.radians(hour_angle * 15.0)
    dec = math.radians(dec_degrees)
    lat = math.radians(latitude)

    sin_alt = math.sin(dec) * math.sin(lat) + math.cos(dec) * math.cos(lat) * math.cos(ha)
    sin_alt = max(-1.0, min(1.0, sin_alt))
    alt = math.asin(sin_alt)

    denominator = math.cos(lat) * math.cos(alt)
    if abs(denominator) < 1e-12:
        return math.degrees(alt), 0.0

    cos_az = (math.sin(dec) - math.sin(lat) * sin_alt) / denominator
    azimuth = math.degrees(math.acos(max(-1.0, min(1.0, cos_az))))
    if math.sin(ha) > 0:
        azimuth = 360.0 - azimuth

    return math.degrees(alt), azimuth % 360.0


def sample_positions(
    ra_hours: float,
    dec_degrees: float,
    location: ObserverLocation,
    start: datetime,
    end: datetime,
    step: timedelta = timedelta(minutes=constants.SAMPLE_STEP_MINUTES),
) -> List[PositionSample]:
    """Sample altitude/azimuth from ``start`` to ``end`` inclusive."""
    samples = []
    current = _as_utc(start)
    stop = _as_utc(end)
    while current <= stop:
        alt, az = altitude_azimuth(ra_hours, dec_degrees, location.latitude, location.longitude, current)
        samples.append(PositionSample(current, alt, az))
        current += step
    return samples


# =============================================================================
# Derivation (shared with the Horizons adapter)
# =============================================================================


def interpolate_position(
    samples: Sequence[PositionSample],
    now: datetime,
) -> Optional[Tuple[float, float]]:
    """Linear interpolation of (altitude, azimuth) at ``now``.

    Azimuth takes the short way around the circle, so 350 -> 10 passes
    through 0. Outside the sampled range the nearest endpoint is returned.
    """
    if not samples:
        return None

    now = _as_utc(now)
    first, last = samples[0], samples[-1]
    if now <= first.time:
        return first.altitude, first.azimuth
    if now >= last.time:
        return last.altitude, last.azimuth

    for before, after in zip(samples, samples[1:]):
        if before.time <= now <= after.time:
            span = (after.time - before.time).total_seconds()
            fraction = (now - before.time).total_seconds() / span if span > 0 else 0.0

            altitude = before.altitude + (after.altitude - before.altitude) * fraction

            delta = after.azimuth - before.azimuth
            if delta > 180.0:
                delta -= 360.0
            elif delta < -180.0:
                delta += 360.0
            azimuth = (before.azimuth + delta * fraction) % 360.0
            return altitude, azimuth

    return last.altitude, last.azimuth


def derive_ephemeris(
    samples: Sequence[PositionSample],
    now: Optional[datetime] = None,
    illumination: Optional[float] = None,
    sun_elongation: Optional[float] = None,
) -> EphemerisResult:
    """Extract rise/transit/set and the current position from a series.

    - transit: the highest sample, only if it is above the horizon
    - rise: first below -> at-or-above transition (later sample's time)
    - set: first at-or-above -> below transition
    An object up at the first sample has no rise (ALREADY_UP); one still
    up at the last sample has no set (STILL_UP).
    """
    if not samples:
        return EphemerisResult(illumination=illumination, sun_elongation=sun_elongation)

    peak = max(samples, key=lambda s: s.altitude)
    transit = peak if peak.altitude > 0 else None

    rise = next(
        (curr for prev, curr in zip(samples, samples[1:]) if prev.altitude < 0 <= curr.altitude),
        None,
    )
    setting = next(
        (curr for prev, curr in zip(samples, samples[1:]) if prev.altitude >= 0 > curr.altitude),
        None,
    )

    if rise is not None:
        rise_state = EventState.OCCURS
    elif samples[0].altitude >= 0:
        rise_state = EventState.ALREADY_UP
    else:
        rise_state = EventState.NEVER_UP

    if setting is not None:
        set_state = EventState.OCCURS
    elif samples[-1].altitude >= 0:
        set_state = EventState.STILL_UP
    else:
        set_state = EventState.NEVER_UP

    current = interpolate_position(samples, now or datetime.now(timezone.utc))

    return EphemerisResult(
        rise_time=rise.time if rise else None,
        rise_azimuth=rise.azimuth if rise else None,
        set_time=setting.time if setting else None,
        set_azimuth=setting.azimuth if setting else None,
        transit_time=transit.time if transit else None,
        transit_azimuth=transit.azimuth if transit else None,
        transit_altitude=transit.altitude if transit else None,
        current_altitude=current[0] if current else None,
        current_azimuth=current[1] if current else None,
        illumination=illumination,
        sun_elongation=sun_elongation,
        altitude_at_start=samples[0].altitude,
        rise_state=rise_state,
        set_state=set_state,
    )


def calculate_ephemeris(
    ra_hours: float,
    dec_degrees: float,
    location: ObserverLocation,
    window_start: datetime,
    window_end: datetime,
    now: Optional[datetime] = None,
) -> EphemerisResult:
    """Ephemeris for a fixed RA/Dec object across the observation window.

    The current position is computed directly at ``now`` rather than
    interpolated, since the closed form is available.
    """
    now = now or datetime.now(timezone.utc)
    samples = sample_positions(ra_hours, dec_degrees, location, window_start, window_end)
    result = derive_ephemeris(samples, now)
    alt, az = altitude_azimuth(ra_hours, dec_degrees, location.latitude, location.longitude, now)
    return replace(result, current_altitude=alt, current_azimuth=az)
