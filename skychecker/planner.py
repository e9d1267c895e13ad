"""
SkyChecker Night Planner

Runs one planning cycle per (date, location) request:

    +------------------+
    |  SunsetService   |  polar condition, observation window
    +--------+---------+
             |
    +--------v---------+      +------------------+
    |  concurrent      |----->| Horizons batch   |  Moon, planets
    |  fetch stage     |----->| ISS pass feed    |  satellites
    |  (asyncio.gather)|----->| Open-Meteo       |  optional weather, hourly
    +--------+---------+      +------------------+
             |   deep-sky objects computed inline from RA/Dec
    +--------v---------+
    |  Reconciler      |  whole catalog merged in one pass
    +--------+---------+
             |
    +--------v---------+
    | ObservationSession -> cache
    +------------------+

Only one cycle is in flight at a time. Starting a new cycle cancels the
previous one and waits for it to unwind; the superseded caller receives
CycleSupersededError and its results are never merged.

Usage:
    from skychecker.config import load_config
    from skychecker.planner import NightPlanner

    planner = NightPlanner.from_config(load_config())
    result = await planner.plan(date.today(), location)
    for obj in result.session.objects:
        print(obj.name, obj.status)
    await planner.close()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from skychecker.config import SkyCheckerConfig
from skychecker.exceptions import CycleSupersededError
from skychecker.logging_config import correlation_context, get_logger, log_exception, log_timing
from skychecker.models import (
    CelestialObject,
    EphemerisResult,
    ObjectId,
    ObjectType,
    ObservationSession,
    ObservationWindow,
    ObserverLocation,
)
from services.cache import JsonFileSessionCache, SessionCache
from services.catalog import default_catalog
from services.ephemeris import BatchFetchResult, EphemerisProvider, HorizonsService, calculate_ephemeris
from services.events import MeteorShowerService
from services.satellite import ISSPassService, SatellitePassProvider
from services.solar import SunsetService
from services.visibility import VisibilityReconciler
from services.weather import HourlyWeather, OpenMeteoClient, WeatherData

logger = get_logger(__name__)

__all__ = ["NightPlanner", "CycleResult"]


@dataclass
class CycleResult:
    """Outcome of one planning cycle.

    The session always carries the complete catalog; objects whose fetch
    failed keep their previous projection and are marked stale.
    """
    session: ObservationSession
    failures: Dict[ObjectId, str] = field(default_factory=dict)
    error_message: Optional[str] = None

    @property
    def failure_count(self) -> int:
        return len(self.failures)


class NightPlanner:
    """Per-(date, location) fetch and merge cycle over the catalog."""

    def __init__(
        self,
        config: Optional[SkyCheckerConfig] = None,
        sunset_service: Optional[SunsetService] = None,
        ephemeris_provider: Optional[EphemerisProvider] = None,
        satellite_provider: Optional[SatellitePassProvider] = None,
        weather_client: Optional[OpenMeteoClient] = None,
        cache: Optional[SessionCache] = None,
        clock: Optional[Callable[[], datetime]] = None,
        objects: Optional[List[CelestialObject]] = None,
    ):
        self.config = config or SkyCheckerConfig()
        self.sunset_service = sunset_service or SunsetService(
            tz=ZoneInfo(self.config.site.timezone),
            observation_elevation=self.config.twilight.observation_elevation,
            fallback_elevation=self.config.twilight.fallback_elevation,
        )
        self.ephemeris_provider = ephemeris_provider
        self.satellite_provider = satellite_provider
        self.weather_client = weather_client
        self.cache = cache
        self.objects = objects if objects is not None else default_catalog()
        self.meteor_showers = MeteorShowerService()
        self.reconciler = VisibilityReconciler()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._lock = asyncio.Lock()
        self._generation = 0
        self._cycle_now: Optional[datetime] = None
        self._current: Optional[asyncio.Task] = None
        self._last_request: Optional[Tuple[date, ObserverLocation]] = None

    @classmethod
    def from_config(
        cls,
        config: SkyCheckerConfig,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "NightPlanner":
        """Planner wired to the real providers described by ``config``.

        Every provider reads the planner's cycle time, so current
        positions and statuses refer to the same instant.
        """
        cache = (
            JsonFileSessionCache(config.cache.directory, config.cache.ttl_hours)
            if config.cache.enabled else None
        )
        planner = cls(config, cache=cache, clock=clock)
        planner.ephemeris_provider = HorizonsService(config.horizons, clock=planner.cycle_time)
        if config.satellite.enabled:
            planner.satellite_provider = ISSPassService(config.satellite, clock=planner.cycle_time)
        if config.weather.enabled:
            planner.weather_client = OpenMeteoClient(config.weather, clock=planner.cycle_time)
        return planner

    def cycle_time(self) -> datetime:
        """Instant pinned by the running cycle, or the clock when idle."""
        if self._cycle_now is not None and self.in_flight:
            return self._cycle_now
        return self._clock()

    async def close(self) -> None:
        """Cancel any running cycle and close provider sessions."""
        if self._current is not None and not self._current.done():
            self._current.cancel()
            await asyncio.wait({self._current})
        for provider in (self.ephemeris_provider, self.satellite_provider, self.weather_client):
            closer = getattr(provider, "close", None)
            if closer is not None:
                await closer()

    @property
    def in_flight(self) -> bool:
        return self._current is not None and not self._current.done()

    # =========================================================================
    # Public API
    # =========================================================================

    async def plan(self, day: date, location: ObserverLocation) -> CycleResult:
        """Run a planning cycle, superseding any cycle already running.

        Raises:
            CycleSupersededError: A newer plan() call replaced this cycle
        """
        async with self._lock:
            self._generation += 1
            generation = self._generation
            previous = self._current
            if previous is not None and not previous.done():
                logger.info("Superseding in-flight planning cycle")
                previous.cancel()
                await asyncio.wait({previous})

            self._last_request = (day, location)
            task = asyncio.create_task(self._run_cycle(day, location, generation))
            self._current = task

        try:
            return await task
        except asyncio.CancelledError:
            if task.cancelled() and generation != self._generation:
                raise CycleSupersededError(f"Planning cycle for {day} superseded") from None
            raise

    async def refresh(self) -> Optional[CycleResult]:
        """Re-run the last request unless a cycle is already running."""
        if self._last_request is None:
            logger.debug("Nothing to refresh yet")
            return None
        if self.in_flight:
            logger.debug("Refresh skipped: cycle in flight")
            return None
        return await self.plan(*self._last_request)

    def load_cached(self, day: date, location: ObserverLocation) -> Optional[ObservationSession]:
        """Cached session for the request, if the cache has a fresh one."""
        if self.cache is None:
            return None
        session = self.cache.load(day, location)
        if session is not None:
            logger.debug(f"Cache hit for {session.cache_key}")
        return session

    # =========================================================================
    # Cycle
    # =========================================================================

    async def _run_cycle(self, day: date, location: ObserverLocation, generation: int) -> CycleResult:
        with correlation_context(prefix="cycle"), log_timing(
            logger, f"planning cycle {day} @ {location.display_string}",
            level=logging.INFO, warn_threshold_sec=120.0,
        ):
            now = self._clock()
            self._cycle_now = now
            window, polar = self.sunset_service.resolve_window(day, location)
            shower = self.meteor_showers.get_shower_status(day)

            solar_system = [
                obj for obj in self.objects
                if obj.type in (ObjectType.PLANET, ObjectType.MOON) and obj.horizons_command
            ]
            satellites = [obj for obj in self.objects if obj.type is ObjectType.SATELLITE]

            batch, satellite_result, weather, hourly = await asyncio.gather(
                self._fetch_ephemeris(solar_system, location, window),
                self._fetch_satellite(satellites, location, window),
                self._fetch_weather(location),
                self._fetch_hourly_weather(location, window),
            )

            results: Dict[ObjectId, EphemerisResult] = dict(batch.results)
            for obj in self.objects:
                if obj.type is ObjectType.DEEP_SKY and obj.has_fixed_coordinates:
                    results[obj.id] = calculate_ephemeris(
                        obj.ra_hours, obj.dec_degrees, location, window.start, window.end, now,
                    )
            if satellite_result is not None:
                for obj in satellites:
                    results[obj.id] = satellite_result

            if generation != self._generation:
                raise CycleSupersededError(f"Planning cycle {generation} superseded before merge")

            self.reconciler.apply(self.objects, results, now)

            session = ObservationSession(
                date=day,
                location=location,
                window=window,
                polar_condition=polar,
                objects=list(self.objects),
                last_updated=now,
                meteor_shower=shower.status_text if shower else None,
                weather_summary=weather.summary if weather else None,
                observation_rating=weather.observation_rating if weather else None,
                clear_hours=sum(1 for hour in hourly if hour.is_good_for_observing) if hourly else None,
                forecast_hours=len(hourly) if hourly else None,
            )
            if self.cache is not None:
                self.cache.save(session)

            error_message = None
            if batch.failure_count:
                error_message = f"Ephemeris fetch failed for {batch.failure_count} objects"
                logger.warning(error_message)
            return CycleResult(session, dict(batch.failures), error_message)

    async def _fetch_ephemeris(
        self,
        objects: List[CelestialObject],
        location: ObserverLocation,
        window: ObservationWindow,
    ) -> BatchFetchResult:
        if not objects:
            return BatchFetchResult()
        if self.ephemeris_provider is None:
            return BatchFetchResult(failures={obj.id: "no ephemeris provider" for obj in objects})
        try:
            return await self.ephemeris_provider.fetch_all_ephemeris(objects, location, window)
        except Exception as e:
            log_exception(logger, "Ephemeris batch failed", e, include_traceback=True)
            return BatchFetchResult(failures={obj.id: str(e) or type(e).__name__ for obj in objects})

    async def _fetch_satellite(
        self,
        satellites: List[CelestialObject],
        location: ObserverLocation,
        window: ObservationWindow,
    ) -> Optional[EphemerisResult]:
        if not satellites or self.satellite_provider is None:
            return None
        try:
            return await self.satellite_provider.fetch_passes(location, window.start, window.end)
        except Exception as e:
            log_exception(logger, "Satellite pass fetch failed", e, level=logging.WARNING)
            return None

    async def _fetch_weather(self, location: ObserverLocation) -> Optional[WeatherData]:
        if self.weather_client is None:
            return None
        try:
            return await self.weather_client.fetch_weather(location, self.sunset_service.tz)
        except Exception as e:
            log_exception(logger, "Weather fetch failed", e, level=logging.WARNING)
            return None

    async def _fetch_hourly_weather(
        self,
        location: ObserverLocation,
        window: ObservationWindow,
    ) -> Optional[List[HourlyWeather]]:
        if self.weather_client is None:
            return None
        try:
            return await self.weather_client.fetch_hourly_forecast(
                location, window.start, window.end, self.sunset_service.tz,
            )
        except Exception as e:
            log_exception(logger, "Hourly forecast fetch failed", e, level=logging.WARNING)
            return None
