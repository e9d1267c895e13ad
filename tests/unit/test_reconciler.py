"""
SkyChecker Unit Tests - Visibility Reconciliation

Unit tests for services/visibility/reconciler.py.
Tests the status rules, moon phase assignment and the merge of fetch
results into the catalog, including failed fetches.

Run:
    pytest tests/unit/test_reconciler.py -v
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from skychecker.models import (
    CelestialObject,
    EphemerisResult,
    EventState,
    MoonPhase,
    ObjectId,
    ObjectType,
    VisibilityStatus,
)

NOW = datetime(2025, 12, 12, 4, 0, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)


def _planet(**fields):
    return CelestialObject(id=ObjectId("jupiter"), name="Jupiter", type=ObjectType.PLANET,
                           horizons_command="599", **fields)


def _moon(**fields):
    return CelestialObject(id=ObjectId("moon"), name="The Moon", type=ObjectType.MOON,
                           horizons_command="301", **fields)


# =============================================================================
# Status Rules
# =============================================================================

class TestDetermineStatus:
    """Tests for determine_status."""

    def test_up_now_is_visible(self):
        from services.visibility import determine_status

        decision = determine_status(EphemerisResult(current_altitude=25.0, set_time=NOW + HOUR), NOW)
        assert decision.status is VisibilityStatus.VISIBLE
        assert not decision.inconsistent

    def test_up_but_past_set_is_already_set(self):
        from services.visibility import determine_status

        result = EphemerisResult(current_altitude=0.5, set_time=NOW - timedelta(minutes=5))
        assert determine_status(result, NOW).status is VisibilityStatus.ALREADY_SET

    def test_rises_later(self):
        from services.visibility import determine_status

        result = EphemerisResult(current_altitude=-12.0, rise_time=NOW + 2 * HOUR)
        assert determine_status(result, NOW).status is VisibilityStatus.NOT_YET_RISEN

    def test_rose_and_set_is_already_set(self):
        from services.visibility import determine_status

        result = EphemerisResult(current_altitude=-3.0, rise_time=NOW - 5 * HOUR, set_time=NOW - HOUR)
        assert determine_status(result, NOW).status is VisibilityStatus.ALREADY_SET

    def test_rose_no_set_but_below_is_flagged(self):
        from services.visibility import determine_status

        result = EphemerisResult(current_altitude=-3.0, rise_time=NOW - HOUR)
        decision = determine_status(result, NOW)

        assert decision.status is VisibilityStatus.BELOW_HORIZON
        assert decision.inconsistent

    def test_transit_above_horizon_without_current_position(self):
        from services.visibility import determine_status

        result = EphemerisResult(transit_time=NOW + HOUR, transit_altitude=40.0)
        assert determine_status(result, NOW).status is VisibilityStatus.VISIBLE

    def test_nothing_above_horizon(self):
        from services.visibility import determine_status

        result = EphemerisResult(current_altitude=-40.0, rise_state=EventState.NEVER_UP)
        assert determine_status(result, NOW).status is VisibilityStatus.BELOW_HORIZON

    def test_empty_result_is_below_horizon(self):
        from services.visibility import determine_status

        assert determine_status(EphemerisResult(), NOW).status is VisibilityStatus.BELOW_HORIZON

    def test_exactly_at_horizon_is_not_visible(self):
        from services.visibility import determine_status

        result = EphemerisResult(current_altitude=0.0)
        assert determine_status(result, NOW).status is VisibilityStatus.BELOW_HORIZON


class TestMoonPhase:
    """Tests for moon_phase_for."""

    @pytest.mark.parametrize("illumination,elongation,expected", [
        (1.0, 10.0, MoonPhase.NEW_MOON),
        (25.0, 60.0, MoonPhase.WAXING_CRESCENT),
        (25.0, 300.0, MoonPhase.WANING_CRESCENT),
        (50.0, 90.0, MoonPhase.FIRST_QUARTER),
        (50.0, 270.0, MoonPhase.LAST_QUARTER),
        (80.0, 130.0, MoonPhase.WAXING_GIBBOUS),
        (80.0, 230.0, MoonPhase.WANING_GIBBOUS),
        (99.0, 178.0, MoonPhase.FULL_MOON),
    ])
    def test_bands(self, illumination, elongation, expected):
        from services.visibility import moon_phase_for

        assert moon_phase_for(illumination, elongation) is expected

    def test_missing_elongation_counts_as_waxing(self):
        from services.visibility import moon_phase_for

        assert moon_phase_for(30.0, None) is MoonPhase.WAXING_CRESCENT


# =============================================================================
# Merge
# =============================================================================

class TestReconcile:
    """Tests for reconcile."""

    def test_fields_copied_and_status_set(self):
        from services.visibility import reconcile

        previous = _planet()
        result = EphemerisResult(
            rise_time=NOW - HOUR, rise_azimuth=100.0, transit_time=NOW + HOUR,
            transit_azimuth=180.0, transit_altitude=55.0, current_altitude=30.0,
            current_azimuth=140.0, rise_state=EventState.OCCURS, set_state=EventState.STILL_UP,
        )
        merged = reconcile(previous, result, NOW)

        assert merged is not previous
        assert previous.status is None
        assert merged.status is VisibilityStatus.VISIBLE
        assert merged.rise_azimuth == 100.0
        assert merged.transit_altitude == 55.0
        assert merged.set_state is EventState.STILL_UP
        assert merged.last_updated == NOW
        assert not merged.is_stale

    def test_failed_fetch_keeps_visible(self):
        from services.visibility import reconcile

        previous = _planet(status=VisibilityStatus.VISIBLE, current_altitude=20.0,
                           last_updated=NOW - HOUR)
        merged = reconcile(previous, None, NOW)

        assert merged.status is VisibilityStatus.VISIBLE
        assert merged.current_altitude == 20.0
        assert merged.last_updated == NOW - HOUR
        assert merged.is_stale

    def test_failed_fetch_without_history(self):
        from services.visibility import reconcile

        merged = reconcile(_planet(), None, NOW)

        assert merged.status is VisibilityStatus.BELOW_HORIZON
        assert merged.is_stale

    def test_moon_phase_assigned(self):
        from services.visibility import reconcile

        result = EphemerisResult(current_altitude=10.0, illumination=45.5, sun_elongation=80.2)
        merged = reconcile(_moon(), result, NOW)

        assert merged.illumination == 45.5
        assert merged.moon_phase is MoonPhase.WAXING_CRESCENT

    def test_planet_ignores_illumination(self):
        from services.visibility import reconcile

        merged = reconcile(_planet(), EphemerisResult(current_altitude=10.0, illumination=99.0), NOW)
        assert merged.moon_phase is None
        assert merged.illumination is None

    def test_inconsistent_flag_set_and_cleared(self):
        from services.visibility import reconcile

        flagged = reconcile(_planet(), EphemerisResult(current_altitude=-1.0, rise_time=NOW - HOUR), NOW)
        assert flagged.data_inconsistent

        cleared = reconcile(flagged, EphemerisResult(current_altitude=10.0), NOW)
        assert not cleared.data_inconsistent


class TestVisibilityReconciler:
    """Tests for VisibilityReconciler.apply."""

    def test_apply_replaces_in_place(self):
        from services.visibility import VisibilityReconciler

        jupiter = _planet(status=VisibilityStatus.VISIBLE)
        moon = _moon()
        mars = CelestialObject(id=ObjectId("mars"), name="Mars", type=ObjectType.PLANET, horizons_command="499")
        objects = [moon, jupiter, mars]

        summary = VisibilityReconciler().apply(
            objects,
            {
                ObjectId("moon"): EphemerisResult(current_altitude=15.0, illumination=70.0, sun_elongation=120.0),
                ObjectId("mars"): EphemerisResult(current_altitude=-20.0, rise_time=NOW + HOUR),
            },
            NOW,
        )

        assert [o.id for o in objects] == ["moon", "jupiter", "mars"]
        assert objects[0] is not moon
        assert objects[0].status is VisibilityStatus.VISIBLE
        assert objects[1].status is VisibilityStatus.VISIBLE
        assert objects[1].is_stale
        assert objects[2].status is VisibilityStatus.NOT_YET_RISEN
        assert summary.updated == 2
        assert summary.stale == 1
        assert summary.visible == 2
        assert summary.rising_later == 1


# =============================================================================
# Night-Long Status
# =============================================================================

class TestStatusAcrossTheNight:
    """Circumpolar and never-rising stars keep one status every hour of the night."""

    def _hourly_statuses(self, ra_hours, dec_degrees):
        from zoneinfo import ZoneInfo

        from services.ephemeris import calculate_ephemeris
        from services.solar import SunsetService
        from services.visibility import reconcile
        from skychecker.models import ObserverLocation

        san_francisco = ObserverLocation(37.7749, -122.4194, 16.0, "San Francisco")
        window, _ = SunsetService(ZoneInfo("America/Los_Angeles")).resolve_window(
            date(2025, 12, 11), san_francisco
        )
        star = CelestialObject(id=ObjectId("star"), name="Star", type=ObjectType.DEEP_SKY,
                               ra_hours=ra_hours, dec_degrees=dec_degrees)

        statuses = []
        now = window.start
        while now <= window.end:
            result = calculate_ephemeris(ra_hours, dec_degrees, san_francisco, window.start, window.end, now)
            statuses.append(reconcile(star, result, now).status)
            now += HOUR
        return statuses

    def test_polaris_visible_every_hour(self):
        statuses = self._hourly_statuses(2.5303, 89.2642)

        assert len(statuses) >= 12
        assert all(status is VisibilityStatus.VISIBLE for status in statuses)

    def test_far_southern_star_below_horizon_every_hour(self):
        statuses = self._hourly_statuses(21.1465, -88.9565)

        assert len(statuses) >= 12
        assert all(status is VisibilityStatus.BELOW_HORIZON for status in statuses)
