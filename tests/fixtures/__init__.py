"""
SkyChecker Test Fixtures Package.

Fake network sessions, canned provider payloads and fake providers, so
the engines and the planner can be tested without network access.

Available fixtures:
- FakeSession / sequence_handler: scripted aiohttp session
- HORIZONS_*_TEXT: canned JPL Horizons text responses
- iss_payload / open_meteo_payload: canned JSON bodies
- FakeEphemerisProvider / FakeSatelliteProvider / FakeWeatherClient
- fixed_clock: deterministic "now"

Usage:
    from tests.fixtures import FakeSession, HORIZONS_PLANET_TEXT

    session = FakeSession(lambda url, params: (200, HORIZONS_PLANET_TEXT))
    service = HorizonsService(session=session)
"""

from tests.fixtures.mock_providers import (
    HORIZONS_EMPTY_TEXT,
    HORIZONS_MOON_LEADING_TEXT,
    HORIZONS_MOON_TEXT,
    HORIZONS_PLANET_TEXT,
    FakeEphemerisProvider,
    FakeResponse,
    FakeSatelliteProvider,
    FakeSession,
    FakeWeatherClient,
    fixed_clock,
    iss_payload,
    open_meteo_payload,
    sequence_handler,
)

__all__ = [
    "HORIZONS_EMPTY_TEXT",
    "HORIZONS_MOON_LEADING_TEXT",
    "HORIZONS_MOON_TEXT",
    "HORIZONS_PLANET_TEXT",
    "FakeEphemerisProvider",
    "FakeResponse",
    "FakeSatelliteProvider",
    "FakeSession",
    "FakeWeatherClient",
    "fixed_clock",
    "iss_payload",
    "open_meteo_payload",
    "sequence_handler",
]
