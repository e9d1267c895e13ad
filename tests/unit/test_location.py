"""
SkyChecker Unit Tests - Location Helpers

Unit tests for services/location.py.

Run:
    pytest tests/unit/test_location.py -v
"""

import pytest

from skychecker.config import SiteConfig
from skychecker.exceptions import InvalidCoordinatesError


class TestValidateCoordinates:
    """Tests for validate_coordinates."""

    def test_numbers(self):
        from services.location import validate_coordinates

        assert validate_coordinates(37.7749, -122.4194) == (37.7749, -122.4194)

    def test_numeric_strings(self):
        from services.location import validate_coordinates

        assert validate_coordinates(" 64.8378 ", "-147.7164") == (64.8378, -147.7164)

    @pytest.mark.parametrize("lat,lon", [
        ("north", "0"), ("", "0"), (None, 0.0), ("nan", "0"), ("0", "inf"),
        (90.5, 0.0), (-90.01, 0.0), (0.0, 180.01), (0.0, -200),
    ])
    def test_rejected(self, lat, lon):
        from services.location import validate_coordinates

        with pytest.raises(InvalidCoordinatesError):
            validate_coordinates(lat, lon)

    def test_poles_and_antimeridian_accepted(self):
        from services.location import validate_coordinates

        assert validate_coordinates(90, 180) == (90.0, 180.0)
        assert validate_coordinates("-90", "-180") == (-90.0, -180.0)


class TestLocations:
    """Tests for manual_location and site_location."""

    def test_manual_location(self):
        from services.location import manual_location

        location = manual_location("37.7749", "-122.4194")

        assert location.latitude == 37.7749
        assert location.altitude == 0.0
        assert location.display_string == "Manual: 37.77°, -122.42°"

    def test_manual_location_invalid(self):
        from services.location import manual_location

        with pytest.raises(InvalidCoordinatesError):
            manual_location("123", "0")

    def test_site_location(self):
        from services.location import site_location

        site = SiteConfig(latitude=78.2232, longitude=15.6267, elevation=10.0,
                          timezone="Europe/Oslo", name="Longyearbyen")
        location = site_location(site)

        assert (location.latitude, location.longitude, location.altitude) == (78.2232, 15.6267, 10.0)
        assert location.display_string == "Longyearbyen"
