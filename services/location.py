"""
SkyChecker Location Helpers

Manual coordinate entry. Device geolocation and reverse geocoding are out
of scope; the default site comes from configuration.
"""

import math
from typing import Tuple, Union

from skychecker.config import SiteConfig
from skychecker.exceptions import InvalidCoordinatesError
from skychecker.models import ObserverLocation

__all__ = ["validate_coordinates", "manual_location", "site_location"]

Number = Union[str, int, float]


def _to_float(label: str, value: Number) -> float:
    try:
        result = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise InvalidCoordinatesError(f"{label} is not a number: {value!r}") from None
    if not math.isfinite(result):
        raise InvalidCoordinatesError(f"{label} must be finite, got {value!r}")
    return result


def validate_coordinates(latitude: Number, longitude: Number) -> Tuple[float, float]:
    """Parse and range-check a latitude/longitude pair.

    Accepts numbers or numeric strings. Latitude must lie in [-90, 90] and
    longitude in [-180, 180].
    """
    lat = _to_float("latitude", latitude)
    lon = _to_float("longitude", longitude)
    if not -90.0 <= lat <= 90.0:
        raise InvalidCoordinatesError(f"latitude {lat} outside [-90, 90]")
    if not -180.0 <= lon <= 180.0:
        raise InvalidCoordinatesError(f"longitude {lon} outside [-180, 180]")
    return lat, lon


def manual_location(latitude: Number, longitude: Number, altitude: float = 0.0) -> ObserverLocation:
    lat, lon = validate_coordinates(latitude, longitude)
    return ObserverLocation.manual(lat, lon, altitude)


def site_location(site: SiteConfig) -> ObserverLocation:
    """Observer location for the configured default site."""
    return ObserverLocation(site.latitude, site.longitude, site.elevation, name=site.name)
