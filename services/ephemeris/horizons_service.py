"""
SkyChecker Horizons Ephemeris Service

Fetches hourly observer tables from the JPL Horizons API for solar-system
bodies and turns them into EphemerisResult projections:
- One text-format OBSERVER ephemeris per object, geodetic site coordinates
- Quantity 4 (apparent azimuth/elevation); the Moon adds 10 (illuminated
  fraction) and 23 (sun-observer-target elongation)
- Tolerant line parsing between $$SOE and $$EOE
- Staggered, concurrent batch fetch; one object's failure never aborts
  the others

Rise/transit/set extraction is shared with the local positional engine
(derive_ephemeris) so both sources follow the same rules.

Usage:
    from services.ephemeris import HorizonsService

    async with HorizonsService(config.horizons) as horizons:
        batch = await horizons.fetch_all_ephemeris(objects, location, window)
        for object_id, reason in batch.failures.items():
            print(object_id, reason)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Protocol, Sequence

import aiohttp

from skychecker import constants
from skychecker.config import HorizonsConfig
from skychecker.exceptions import ProviderError
from skychecker.logging_config import get_logger, log_exception, log_timing
from skychecker.models import (
    CelestialObject,
    EphemerisResult,
    ObjectId,
    ObjectType,
    ObservationWindow,
    ObserverLocation,
)
from services.ephemeris.positional import PositionSample, derive_ephemeris
from services.http_client import ProviderClient

logger = get_logger(__name__)

__all__ = [
    "EphemerisProvider",
    "BatchFetchResult",
    "HorizonsRow",
    "HorizonsService",
    "build_query",
    "parse_horizons_line",
    "parse_horizons_table",
    "parse_horizons_response",
]


# =============================================================================
# Provider Interface
# =============================================================================


@dataclass
class BatchFetchResult:
    """Outcome of a batch fetch: successes and per-object failure reasons."""
    results: Dict[ObjectId, EphemerisResult] = field(default_factory=dict)
    failures: Dict[ObjectId, str] = field(default_factory=dict)

    @property
    def failure_count(self) -> int:
        return len(self.failures)


class EphemerisProvider(Protocol):
    """Source of ephemeris projections for solar-system bodies."""

    async def fetch_ephemeris(
        self,
        obj: CelestialObject,
        location: ObserverLocation,
        start: datetime,
        end: datetime,
    ) -> EphemerisResult:
        ...

    async def fetch_all_ephemeris(
        self,
        objects: Sequence[CelestialObject],
        location: ObserverLocation,
        window: ObservationWindow,
    ) -> BatchFetchResult:
        ...


# =============================================================================
# Parsing
# =============================================================================


@dataclass(frozen=True)
class HorizonsRow:
    """One parsed table line."""
    time: datetime
    azimuth: float
    altitude: float
    illumination: Optional[float] = None
    sun_elongation: Optional[float] = None


def _numeric_tokens(tokens: Sequence[str]) -> List[float]:
    values = []
    for token in tokens:
        try:
            values.append(float(token))
        except ValueError:
            continue
    return values


def _parse_row_time(date_token: str, time_token: str) -> Optional[datetime]:
    for fmt in (constants.HORIZONS_ROW_TIME_FORMAT, constants.HORIZONS_ROW_TIME_FORMAT + ":%S"):
        try:
            return datetime.strptime(f"{date_token} {time_token}", fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def parse_horizons_line(line: str, is_moon: bool = False) -> Optional[HorizonsRow]:
    """Parse one data row, or return None if it is not one.

    Row layout: ``2025-Dec-11 18:00 *m  143.033787  18.149777``. Solar and
    lunar presence markers are non-numeric and ignored. For the Moon the
    third and fourth numbers are illumination (%) and sun elongation, the
    latter followed by /T (trails the sun, evening sky) or /L (leads it,
    morning sky). Elongation is folded onto [0, 360) so that values below
    180 mean waxing.
    """
    tokens = line.split()
    if len(tokens) < 3:
        return None

    when = _parse_row_time(tokens[0], tokens[1])
    if when is None:
        return None

    numbers = _numeric_tokens(tokens[2:])
    if len(numbers) < 2:
        return None

    illumination = None
    elongation = None
    if is_moon:
        if len(numbers) >= 3:
            illumination = numbers[2]
        if len(numbers) >= 4:
            elongation = numbers[3]
            if "/L" in tokens[2:]:
                elongation = (360.0 - elongation) % 360.0

    return HorizonsRow(when, numbers[0], numbers[1], illumination, elongation)


def parse_horizons_table(text: str, is_moon: bool = False) -> List[HorizonsRow]:
    """All parseable rows between the $$SOE and $$EOE markers."""
    rows = []
    in_table = False
    for line in text.splitlines():
        if constants.HORIZONS_START_MARKER in line:
            in_table = True
            continue
        if constants.HORIZONS_END_MARKER in line:
            break
        if in_table:
            row = parse_horizons_line(line, is_moon)
            if row is not None:
                rows.append(row)
            elif line.strip():
                logger.debug(f"Skipping unparseable Horizons line: {line.strip()!r}")
    return rows


def parse_horizons_response(
    text: str,
    is_moon: bool = False,
    now: Optional[datetime] = None,
) -> EphemerisResult:
    """Parse a Horizons text response into an EphemerisResult.

    A response without data rows yields an empty result rather than an
    error. Moon illumination and elongation come from the first row.
    """
    rows = parse_horizons_table(text, is_moon)
    if not rows:
        return EphemerisResult()

    samples = [PositionSample(row.time, row.altitude, row.azimuth) for row in rows]
    first = rows[0]
    return derive_ephemeris(
        samples,
        now,
        illumination=first.illumination if is_moon else None,
        sun_elongation=first.sun_elongation if is_moon else None,
    )


def build_query(
    command: str,
    location: ObserverLocation,
    start: datetime,
    end: datetime,
    is_moon: bool = False,
) -> Dict[str, str]:
    """Query parameters for one OBSERVER ephemeris request."""
    fmt = constants.HORIZONS_TIME_FORMAT
    quantities = constants.HORIZONS_MOON_QUANTITIES if is_moon else constants.HORIZONS_QUANTITIES
    return {
        "format": "text",
        "COMMAND": f"'{command}'",
        "OBJ_DATA": "'NO'",
        "MAKE_EPHEM": "'YES'",
        "EPHEM_TYPE": "'OBSERVER'",
        "CENTER": "'coord@399'",
        "COORD_TYPE": "'GEODETIC'",
        "SITE_COORD": f"'{location.horizons_site_coord}'",
        "START_TIME": f"'{start.astimezone(timezone.utc).strftime(fmt)}'",
        "STOP_TIME": f"'{end.astimezone(timezone.utc).strftime(fmt)}'",
        "STEP_SIZE": f"'{constants.HORIZONS_STEP_SIZE}'",
        "QUANTITIES": f"'{quantities}'",
    }


# =============================================================================
# Service
# =============================================================================


class HorizonsService:
    """JPL Horizons client implementing EphemerisProvider."""

    def __init__(
        self,
        config: Optional[HorizonsConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or HorizonsConfig()
        self._client = ProviderClient("horizons", self.config, session)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def __aenter__(self) -> "HorizonsService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.close()

    async def fetch_ephemeris(
        self,
        obj: CelestialObject,
        location: ObserverLocation,
        start: datetime,
        end: datetime,
    ) -> EphemerisResult:
        """Fetch and derive the ephemeris for one object.

        Raises:
            ProviderError: Object has no Horizons command, or HTTP error
            ProviderUnavailableError: Retries exhausted
        """
        if not obj.horizons_command:
            raise ProviderError(f"{obj.id} has no Horizons command", provider="horizons", object_id=obj.id)

        is_moon = obj.type is ObjectType.MOON
        params = build_query(obj.horizons_command, location, start, end, is_moon)
        text = await self._client.get_text(self.config.base_url, params, object_id=obj.id)

        result = parse_horizons_response(text, is_moon, now=self._clock())
        if result.is_empty:
            logger.warning(f"Horizons returned no ephemeris rows for {obj.id}")
        return result

    async def _fetch_staggered(
        self,
        index: int,
        obj: CelestialObject,
        location: ObserverLocation,
        window: ObservationWindow,
    ) -> EphemerisResult:
        if index and self.config.stagger_delay:
            await asyncio.sleep(index * self.config.stagger_delay)
        return await self.fetch_ephemeris(obj, location, window.start, window.end)

    async def fetch_all_ephemeris(
        self,
        objects: Sequence[CelestialObject],
        location: ObserverLocation,
        window: ObservationWindow,
    ) -> BatchFetchResult:
        """Fetch every object concurrently with staggered starts.

        Per-object failures are logged and collected in the result; the
        batch itself only raises if it is cancelled.
        """
        batch = BatchFetchResult()
        if not objects:
            return batch

        with log_timing(logger, f"horizons batch ({len(objects)} objects)", warn_threshold_sec=60.0):
            outcomes = await asyncio.gather(
                *(self._fetch_staggered(i, obj, location, window) for i, obj in enumerate(objects)),
                return_exceptions=True,
            )

        for obj, outcome in zip(objects, outcomes):
            if isinstance(outcome, EphemerisResult):
                batch.results[obj.id] = outcome
            elif isinstance(outcome, Exception):
                log_exception(logger, f"Ephemeris fetch failed for {obj.name}", outcome, level=logging.WARNING)
                batch.failures[obj.id] = str(outcome) or type(outcome).__name__
            else:
                raise outcome

        logger.info(f"Horizons batch: {len(batch.results)} ok, {batch.failure_count} failed")
        return batch
