"""
SkyChecker Unit Tests - Satellite Pass Adapter

Unit tests for services/satellite/iss_service.py.
Tests feed validation and the projection of tonight's first pass.

Run:
    pytest tests/unit/test_iss_service.py -v
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from skychecker.config import SatelliteConfig
from skychecker.exceptions import ProviderError
from skychecker.models import EventState, ObserverLocation
from tests.fixtures import FakeSession, fixed_clock, iss_payload

SAN_FRANCISCO = ObserverLocation(37.7749, -122.4194, 16.0, "San Francisco")
SYDNEY = ObserverLocation(-33.8688, 151.2093, 0.0, "Sydney")
START = datetime(2025, 12, 12, 1, 20, tzinfo=timezone.utc)
END = datetime(2025, 12, 12, 14, 45, tzinfo=timezone.utc)


# =============================================================================
# Feed Parsing
# =============================================================================

class TestParsePassResponse:
    """Tests for parse_pass_response."""

    def test_sorted_passes(self):
        from services.satellite import parse_pass_response

        late = START + timedelta(hours=5)
        early = START + timedelta(hours=1)
        passes = parse_pass_response(json.loads(iss_payload([late, early], duration_sec=540)))

        assert [p.rise_time for p in passes] == [early, late]
        assert passes[0].duration == timedelta(seconds=540)
        assert passes[0].set_time == early + timedelta(seconds=540)
        assert passes[0].transit_time == early + timedelta(seconds=270)

    def test_failure_message(self):
        from services.satellite import parse_pass_response

        with pytest.raises(ProviderError):
            parse_pass_response({"message": "failure", "reason": "Latitude must be number"})

    def test_malformed_entry(self):
        from services.satellite import parse_pass_response

        with pytest.raises(ProviderError):
            parse_pass_response({"message": "success", "response": [{"duration": 600}]})

    def test_non_object_payload(self):
        from services.satellite import parse_pass_response

        with pytest.raises(ProviderError):
            parse_pass_response([1, 2, 3])

    def test_empty_response(self):
        from services.satellite import parse_pass_response

        assert parse_pass_response({"message": "success", "response": []}) == []


# =============================================================================
# Projection
# =============================================================================

class TestPassToEphemeris:
    """Tests for pass_to_ephemeris."""

    def _passes(self, *offsets_min, duration=600):
        from services.satellite import SatellitePass

        return [SatellitePass(START + timedelta(minutes=m), timedelta(seconds=duration)) for m in offsets_min]

    def test_no_pass_tonight(self):
        from services.satellite import pass_to_ephemeris

        passes = self._passes(-120, 24 * 60)
        result = pass_to_ephemeris(passes, SAN_FRANCISCO, START, END, now=START)

        assert result.rise_time is None
        assert result.transit_time is None
        assert result.rise_state is EventState.NEVER_UP
        assert result.set_state is EventState.NEVER_UP

    def test_first_pass_in_window_northern_hemisphere(self):
        from services.satellite import pass_to_ephemeris

        passes = self._passes(-120, 90, 300)
        result = pass_to_ephemeris(passes, SAN_FRANCISCO, START, END, now=START)

        assert result.rise_time == START + timedelta(minutes=90)
        assert result.set_time == START + timedelta(minutes=100)
        assert result.transit_time == START + timedelta(minutes=95)
        assert result.transit_altitude == 45.0
        assert (result.rise_azimuth, result.transit_azimuth, result.set_azimuth) == (225.0, 180.0, 45.0)
        assert result.rise_state is EventState.OCCURS

    def test_southern_hemisphere_azimuths(self):
        from services.satellite import pass_to_ephemeris

        result = pass_to_ephemeris(self._passes(90), SYDNEY, START, END, now=START)
        assert (result.rise_azimuth, result.transit_azimuth, result.set_azimuth) == (315.0, 0.0, 135.0)

    def test_before_pass_is_below_horizon(self):
        from services.satellite import pass_to_ephemeris

        result = pass_to_ephemeris(self._passes(90), SAN_FRANCISCO, START, END, now=START + timedelta(minutes=30))

        assert result.current_altitude == -10.0
        assert result.current_azimuth == 225.0

    def test_during_pass_at_peak(self):
        from services.satellite import pass_to_ephemeris

        now = START + timedelta(minutes=95)
        result = pass_to_ephemeris(self._passes(90), SAN_FRANCISCO, START, END, now=now)

        assert result.current_altitude == pytest.approx(45.0)
        assert result.current_azimuth == pytest.approx(135.0)

    def test_after_pass(self):
        from services.satellite import pass_to_ephemeris

        now = START + timedelta(minutes=200)
        result = pass_to_ephemeris(self._passes(90), SAN_FRANCISCO, START, END, now=now)

        assert result.current_altitude == -10.0
        assert result.current_azimuth == 45.0

    def test_now_outside_window_has_no_position(self):
        from services.satellite import pass_to_ephemeris

        now = START - timedelta(hours=3)
        result = pass_to_ephemeris(self._passes(90), SAN_FRANCISCO, START, END, now=now)

        assert result.rise_time is not None
        assert result.current_altitude is None
        assert result.current_azimuth is None


# =============================================================================
# Service
# =============================================================================

class TestISSPassService:
    """Tests for ISSPassService.fetch_passes."""

    @pytest.mark.asyncio
    async def test_fetch_passes(self):
        from services.satellite import ISSPassService

        rise = START + timedelta(hours=2)
        session = FakeSession(lambda url, params: (200, iss_payload([rise])))
        service = ISSPassService(SatelliteConfig(backoff_step=0.0), session=session, clock=fixed_clock(START))

        result = await service.fetch_passes(SAN_FRANCISCO, START, END)

        assert result.rise_time == rise
        url, params = session.calls[0]
        assert url == SatelliteConfig().base_url
        assert params == {"lat": "37.7749", "lon": "-122.4194", "n": "10"}

    @pytest.mark.asyncio
    async def test_feed_error_raises(self):
        from services.satellite import ISSPassService

        session = FakeSession(lambda url, params: (200, json.dumps({"message": "failure"})))
        service = ISSPassService(session=session)

        with pytest.raises(ProviderError):
            await service.fetch_passes(SAN_FRANCISCO, START, END)
