"""
Mock providers and canned payloads for SkyChecker tests.

- FakeSession: stands in for aiohttp.ClientSession; a handler decides the
  status/body (or raises) for each GET and every call is recorded
- Canned JPL Horizons, ISS pass feed and Open-Meteo responses
- Fake ephemeris/satellite/weather providers for planner tests, with an
  optional asyncio.Event gate to hold a cycle in flight
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from skychecker.exceptions import ProviderUnavailableError
from skychecker.models import CelestialObject, EphemerisResult, ObjectId, ObservationWindow, ObserverLocation
from services.ephemeris import BatchFetchResult


# =============================================================================
# HTTP
# =============================================================================


class FakeResponse:
    """Minimal async-context-manager response."""

    def __init__(self, status: int, body: str):
        self.status = status
        self._body = body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc_info) -> None:
        return None

    async def text(self) -> str:
        return self._body


Handler = Callable[[str, Dict[str, Any]], Tuple[int, str]]


class FakeSession:
    """aiohttp.ClientSession stand-in driven by a handler function.

    The handler receives (url, params) and returns (status, body) or
    raises, e.g. asyncio.TimeoutError, to simulate a transport failure.
    """

    def __init__(self, handler: Handler):
        self.handler = handler
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.timeouts: List[Any] = []
        self.closed = False

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: Any = None) -> FakeResponse:
        params = dict(params or {})
        self.calls.append((url, params))
        self.timeouts.append(timeout)
        status, body = self.handler(url, params)
        return FakeResponse(status, body)

    async def close(self) -> None:
        self.closed = True


def sequence_handler(responses: Sequence[Any]) -> Handler:
    """Handler returning ``responses`` in order; exceptions are raised.

    The last entry repeats once the list is exhausted.
    """
    state = {"index": 0}

    def handler(url: str, params: Dict[str, Any]) -> Tuple[int, str]:
        index = min(state["index"], len(responses) - 1)
        state["index"] += 1
        item = responses[index]
        if isinstance(item, BaseException):
            raise item
        return item

    return handler


# =============================================================================
# Canned Payloads
# =============================================================================

HORIZONS_HEADER = """\
*******************************************************************************
Ephemeris / API_USER Thu Dec 11 20:00:00 2025 Pasadena, USA      / Horizons
*******************************************************************************
Target body name: Jupiter (599)                   {source: jup365_merged}
Center body name: Earth (399)                     {source: DE441}
Center-site name: (user defined site below)
*******************************************************************************
 Date__(UT)__HR:MN     Azi_(a-app)___Elev_(a-app)
*******************************************************************************
"""

# Rises at 03:00 UT (az 110), peaks 04:00 at 62.5 deg, sets 06:00 (az 240)
HORIZONS_PLANET_TEXT = HORIZONS_HEADER + """\
$$SOE
 2025-Dec-12 02:00 *   100.000000  -5.000000
 2025-Dec-12 03:00 *m  110.000000   3.000000
 2025-Dec-12 04:00  m  150.000000  62.500000
 2025-Dec-12 05:00  m  200.000000   8.000000
 2025-Dec-12 06:00     240.000000  -2.000000
$$EOE
*******************************************************************************
Column meaning:
 TIME
"""

# Up for the whole window, 45.5% lit and trailing the Sun (evening sky)
HORIZONS_MOON_TEXT = HORIZONS_HEADER + """\
$$SOE
 2025-Dec-12 02:00 *m  120.000000  10.000000   45.52500  80.2000 /T
 2025-Dec-12 03:00  m  140.000000  20.000000   46.01000  80.7000 /T
 2025-Dec-12 04:00  m  170.000000  25.000000   46.49000  81.2000 /T
$$EOE
"""

HORIZONS_MOON_LEADING_TEXT = HORIZONS_HEADER + """\
$$SOE
 2025-Dec-12 02:00 *m  120.000000  10.000000   45.52500  80.2000 /L
 2025-Dec-12 03:00  m  140.000000  20.000000   46.01000  80.7000 /L
$$EOE
"""

HORIZONS_EMPTY_TEXT = HORIZONS_HEADER + """\
$$SOE
$$EOE
"""


def iss_payload(rise_times: Sequence[datetime], duration_sec: int = 600) -> str:
    """Open-Notify style pass prediction JSON."""
    import json

    return json.dumps({
        "message": "success",
        "request": {"altitude": 100, "datetime": 1765500000, "passes": len(rise_times)},
        "response": [
            {"duration": duration_sec, "risetime": int(t.timestamp())} for t in rise_times
        ],
    })


def open_meteo_payload(
    cloud_cover: int = 20,
    humidity: int = 60,
    wind_speed: float = 12.0,
    hourly_cover: Optional[List[int]] = None,
    hourly_visibility: Optional[List[float]] = None,
    day: str = "2025-12-11",
    hours: int = 24,
) -> Dict[str, Any]:
    """Open-Meteo forecast payload with ``hours`` hourly entries from ``day``."""
    start = datetime.fromisoformat(f"{day}T00:00")
    times = [(start + timedelta(hours=h)).strftime("%Y-%m-%dT%H:%M") for h in range(hours)]
    cover = hourly_cover or [cloud_cover] * hours
    visibility = hourly_visibility or [24000.0] * hours
    return {
        "latitude": 37.78,
        "longitude": -122.42,
        "timezone": "America/Los_Angeles",
        "current": {
            "time": f"{day}T20:00",
            "cloud_cover": cloud_cover,
            "relative_humidity_2m": humidity,
            "wind_speed_10m": wind_speed,
        },
        "hourly": {
            "time": times,
            "cloud_cover": cover,
            "cloud_cover_low": [5] * hours,
            "cloud_cover_mid": [10] * hours,
            "cloud_cover_high": [15] * hours,
            "visibility": visibility,
            "relative_humidity_2m": [humidity] * hours,
        },
    }


# =============================================================================
# Planner Providers
# =============================================================================


@dataclass
class FakeEphemerisProvider:
    """EphemerisProvider returning canned results per object ID.

    IDs listed in ``failing`` are reported as failures. When ``gate`` is
    set the batch waits on it, keeping the planning cycle in flight.
    """
    results: Dict[str, EphemerisResult] = field(default_factory=dict)
    failing: Sequence[str] = ()
    gate: Optional[asyncio.Event] = None
    calls: int = 0
    closed: bool = False

    async def fetch_ephemeris(
        self,
        obj: CelestialObject,
        location: ObserverLocation,
        start: datetime,
        end: datetime,
    ) -> EphemerisResult:
        if obj.id in self.failing:
            raise ProviderUnavailableError(f"{obj.id} unavailable", provider="fake", object_id=obj.id)
        return self.results.get(obj.id, EphemerisResult())

    async def fetch_all_ephemeris(
        self,
        objects: Sequence[CelestialObject],
        location: ObserverLocation,
        window: ObservationWindow,
    ) -> BatchFetchResult:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        batch = BatchFetchResult()
        for obj in objects:
            if obj.id in self.failing:
                batch.failures[ObjectId(obj.id)] = "unavailable"
            elif obj.id in self.results:
                batch.results[ObjectId(obj.id)] = self.results[obj.id]
        return batch

    async def close(self) -> None:
        self.closed = True


@dataclass
class FakeSatelliteProvider:
    """SatellitePassProvider returning one canned result or raising."""
    result: Optional[EphemerisResult] = None
    error: Optional[Exception] = None
    calls: int = 0

    async def fetch_passes(
        self,
        location: ObserverLocation,
        start: datetime,
        end: datetime,
    ) -> EphemerisResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result or EphemerisResult()


@dataclass
class FakeWeatherClient:
    """Weather client returning canned data or raising."""
    data: Any = None
    hours: Optional[List[Any]] = None
    error: Optional[Exception] = None
    hourly_error: Optional[Exception] = None
    hourly_requests: List[Tuple[datetime, datetime]] = field(default_factory=list)

    async def fetch_weather(self, location: ObserverLocation, tz=None):
        if self.error is not None:
            raise self.error
        return self.data

    async def fetch_hourly_forecast(self, location: ObserverLocation, start: datetime, end: datetime, tz=None):
        self.hourly_requests.append((start, end))
        if self.error is not None:
            raise self.error
        if self.hourly_error is not None:
            raise self.hourly_error
        return self.hours


def fixed_clock(instant: datetime) -> Callable[[], datetime]:
    """Clock returning ``instant`` (made UTC-aware if naive)."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return lambda: instant
