"""
SkyChecker Ephemeris Services

Local positional astronomy for fixed RA/Dec objects and the JPL Horizons
adapter for solar-system bodies. Both derive rise/transit/set the same way.
"""

from .positional import (
    PositionSample,
    altitude_azimuth,
    calculate_ephemeris,
    derive_ephemeris,
    interpolate_position,
    julian_date,
    local_sidereal_time,
    sample_positions,
)

from .horizons_service import (
    BatchFetchResult,
    EphemerisProvider,
    HorizonsService,
    parse_horizons_response,
)

__all__ = [
    "PositionSample",
    "altitude_azimuth",
    "calculate_ephemeris",
    "derive_ephemeris",
    "interpolate_position",
    "julian_date",
    "local_sidereal_time",
    "sample_positions",
    "BatchFetchResult",
    "EphemerisProvider",
    "HorizonsService",
    "parse_horizons_response",
]
