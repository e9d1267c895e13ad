"""
SkyChecker ISS Pass Service

Turns an Open-Notify style pass prediction feed into an EphemerisResult.
The feed only gives rise time and duration, so the geometry is a fixed
approximation:
- transit at the pass midpoint, 45 deg altitude
- northern observers: rises SW (225), transits S (180), sets NE (45)
- southern observers: rises NW (315), transits N (0), sets SE (135)
- current altitude follows 45 * sin(progress * pi) during the pass and
  sits at -10 deg before and after it

Failures of this feed never fail a planning cycle; the planner simply
leaves the satellite without fresh data.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional, Protocol

import aiohttp

from skychecker import constants
from skychecker.config import SatelliteConfig
from skychecker.exceptions import ProviderError
from skychecker.logging_config import get_logger
from skychecker.models import EphemerisResult, EventState, ObserverLocation
from services.http_client import ProviderClient

logger = get_logger(__name__)

__all__ = ["SatellitePass", "SatellitePassProvider", "ISSPassService", "parse_pass_response", "pass_to_ephemeris"]


@dataclass(frozen=True)
class SatellitePass:
    """One predicted pass."""
    rise_time: datetime
    duration: timedelta

    @property
    def set_time(self) -> datetime:
        return self.rise_time + self.duration

    @property
    def transit_time(self) -> datetime:
        return self.rise_time + self.duration / 2


class SatellitePassProvider(Protocol):
    """Source of satellite pass projections."""

    async def fetch_passes(
        self,
        location: ObserverLocation,
        start: datetime,
        end: datetime,
    ) -> EphemerisResult:
        ...


def parse_pass_response(payload: Any) -> List[SatellitePass]:
    """Validate the feed payload and return its passes sorted by rise time.

    Raises:
        ProviderError: Non-success message or malformed entries
    """
    if not isinstance(payload, dict):
        raise ProviderError("ISS feed returned a non-object payload", provider="iss")
    message = payload.get("message")
    if message != "success":
        raise ProviderError(f"ISS feed error: {message}", provider="iss")

    passes = []
    for entry in payload.get("response") or []:
        try:
            rise = datetime.fromtimestamp(int(entry["risetime"]), tz=timezone.utc)
            duration = timedelta(seconds=int(entry["duration"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed ISS pass entry {entry!r}", provider="iss") from e
        passes.append(SatellitePass(rise, duration))
    return sorted(passes, key=lambda p: p.rise_time)


def pass_to_ephemeris(
    passes: List[SatellitePass],
    location: ObserverLocation,
    start: datetime,
    end: datetime,
    now: datetime,
) -> EphemerisResult:
    """Project the first pass rising inside [start, end]."""
    tonight = [p for p in passes if start <= p.rise_time <= end]
    if not tonight:
        return EphemerisResult(rise_state=EventState.NEVER_UP, set_state=EventState.NEVER_UP)

    sat_pass = tonight[0]
    if location.latitude >= 0:
        rise_az, transit_az, set_az = constants.ISS_NORTH_AZIMUTHS
    else:
        rise_az, transit_az, set_az = constants.ISS_SOUTH_AZIMUTHS

    current_alt = current_az = None
    if start <= now <= end:
        if sat_pass.rise_time <= now <= sat_pass.set_time:
            seconds = sat_pass.duration.total_seconds()
            progress = (now - sat_pass.rise_time).total_seconds() / seconds if seconds > 0 else 0.0
            current_alt = constants.ISS_TRANSIT_ALTITUDE * math.sin(progress * math.pi)
            current_az = rise_az + progress * (set_az - rise_az)
        elif now < sat_pass.rise_time:
            current_alt, current_az = constants.ISS_BELOW_HORIZON_ALTITUDE, rise_az
        else:
            current_alt, current_az = constants.ISS_BELOW_HORIZON_ALTITUDE, set_az

    if len(tonight) > 1:
        logger.debug(f"{len(tonight)} ISS passes tonight, reporting the first")

    return EphemerisResult(
        rise_time=sat_pass.rise_time,
        rise_azimuth=rise_az,
        set_time=sat_pass.set_time,
        set_azimuth=set_az,
        transit_time=sat_pass.transit_time,
        transit_azimuth=transit_az,
        transit_altitude=constants.ISS_TRANSIT_ALTITUDE,
        current_altitude=current_alt,
        current_azimuth=current_az,
        rise_state=EventState.OCCURS,
        set_state=EventState.OCCURS,
    )


class ISSPassService:
    """Open-Notify ISS pass client implementing SatellitePassProvider."""

    def __init__(
        self,
        config: Optional[SatelliteConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or SatelliteConfig()
        self._client = ProviderClient("iss", self.config, session)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def __aenter__(self) -> "ISSPassService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.close()

    async def fetch_passes(
        self,
        location: ObserverLocation,
        start: datetime,
        end: datetime,
    ) -> EphemerisResult:
        """Fetch predictions and project tonight's first pass.

        Raises:
            ProviderError: Feed error or malformed payload
            ProviderUnavailableError: Retries exhausted
        """
        params = {
            "lat": f"{location.latitude}",
            "lon": f"{location.longitude}",
            "n": str(self.config.pass_count),
        }
        payload = await self._client.get_json(self.config.base_url, params, object_id="iss")
        passes = parse_pass_response(payload)
        logger.debug(f"ISS feed returned {len(passes)} passes")
        return pass_to_ephemeris(passes, location, start, end, self._clock())
