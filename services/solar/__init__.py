"""
SkyChecker Solar Geometry

Observation window and polar condition calculations.
"""

from .sunset_service import (
    SunsetService,
    cos_hour_angle,
    equation_of_time,
    solar_declination,
)

__all__ = [
    "SunsetService",
    "cos_hour_angle",
    "equation_of_time",
    "solar_declination",
]
