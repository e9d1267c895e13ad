"""
SkyChecker Satellite Services

ISS pass predictions projected onto the visibility model.
"""

from .iss_service import (
    ISSPassService,
    SatellitePass,
    SatellitePassProvider,
    parse_pass_response,
    pass_to_ephemeris,
)

__all__ = [
    "ISSPassService",
    "SatellitePass",
    "SatellitePassProvider",
    "parse_pass_response",
    "pass_to_ephemeris",
]
