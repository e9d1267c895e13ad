"""
SkyChecker Visibility Reconciliation

Merges freshly computed ephemeris results into the catalog and decides a
visibility status per object.

Status rules, first match wins (current altitude defaults to -90 when
unknown):
    1. up, no set time or set still ahead      -> VISIBLE
    2. up, set time passed                     -> ALREADY_SET
    3. down, rise still ahead                  -> NOT_YET_RISEN
    4. down, rise and set both passed          -> ALREADY_SET
    5. down, rise passed, set not passed       -> BELOW_HORIZON (inconsistent)
    6. down, no rise, transit above horizon    -> VISIBLE
    7. otherwise                               -> BELOW_HORIZON

Objects without a fresh result keep their previous projection and status
and are marked stale. Only objects that never had data are forced to
BELOW_HORIZON.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Mapping, NamedTuple, Optional

from skychecker.constants import MISSING_ALTITUDE
from skychecker.logging_config import get_logger
from skychecker.models import (
    CelestialObject,
    EphemerisResult,
    MoonPhase,
    ObjectId,
    ObjectType,
    VisibilityStatus,
)

logger = get_logger(__name__)

__all__ = [
    "StatusDecision",
    "ReconcileSummary",
    "VisibilityReconciler",
    "determine_status",
    "moon_phase_for",
    "reconcile",
]


class StatusDecision(NamedTuple):
    status: VisibilityStatus
    inconsistent: bool = False


@dataclass
class ReconcileSummary:
    """Counts from one merge pass."""
    updated: int = 0
    stale: int = 0
    inconsistent: int = 0
    visible: int = 0
    rising_later: int = 0


def determine_status(result: EphemerisResult, now: datetime) -> StatusDecision:
    """Apply the status rules to one ephemeris result."""
    altitude = result.current_altitude if result.current_altitude is not None else MISSING_ALTITUDE

    if altitude > 0:
        if result.set_time is not None and now >= result.set_time:
            return StatusDecision(VisibilityStatus.ALREADY_SET)
        return StatusDecision(VisibilityStatus.VISIBLE)

    if result.rise_time is not None:
        if now < result.rise_time:
            return StatusDecision(VisibilityStatus.NOT_YET_RISEN)
        if result.set_time is not None and now >= result.set_time:
            return StatusDecision(VisibilityStatus.ALREADY_SET)
        # Rise passed and no set yet, yet the object reads below the horizon.
        return StatusDecision(VisibilityStatus.BELOW_HORIZON, inconsistent=True)

    if result.transit_time is not None and (result.transit_altitude or 0) > 0:
        return StatusDecision(VisibilityStatus.VISIBLE)

    return StatusDecision(VisibilityStatus.BELOW_HORIZON)


def moon_phase_for(illumination: float, sun_elongation: Optional[float]) -> MoonPhase:
    """Phase from illumination; waxing when elongation is below 180."""
    return MoonPhase.from_illumination(illumination, waxing=(sun_elongation or 0.0) < 180.0)


def reconcile(
    previous: CelestialObject,
    current: Optional[EphemerisResult],
    now: datetime,
) -> CelestialObject:
    """Return the merged object; ``previous`` is left untouched."""
    if current is None:
        if previous.status is None:
            return replace(previous, status=VisibilityStatus.BELOW_HORIZON, is_stale=True)
        return replace(previous, is_stale=True)

    decision = determine_status(current, now)
    if decision.inconsistent:
        logger.warning(
            f"{previous.id}: rise passed at {current.rise_time} but altitude "
            f"{current.current_altitude} is below horizon with no set time"
        )

    moon_phase = previous.moon_phase
    illumination = previous.illumination
    if previous.type is ObjectType.MOON and current.illumination is not None:
        illumination = current.illumination
        moon_phase = moon_phase_for(current.illumination, current.sun_elongation)

    return replace(
        previous,
        rise_time=current.rise_time,
        rise_azimuth=current.rise_azimuth,
        set_time=current.set_time,
        set_azimuth=current.set_azimuth,
        transit_time=current.transit_time,
        transit_azimuth=current.transit_azimuth,
        transit_altitude=current.transit_altitude,
        current_altitude=current.current_altitude,
        current_azimuth=current.current_azimuth,
        rise_state=current.rise_state,
        set_state=current.set_state,
        moon_phase=moon_phase,
        illumination=illumination,
        status=decision.status,
        last_updated=now,
        is_stale=False,
        data_inconsistent=decision.inconsistent,
    )


class VisibilityReconciler:
    """Applies a full set of results to the catalog in one pass."""

    def apply(
        self,
        objects: List[CelestialObject],
        results: Mapping[ObjectId, EphemerisResult],
        now: datetime,
    ) -> ReconcileSummary:
        """Replace every entry of ``objects`` in place with its merged state."""
        summary = ReconcileSummary()
        for index, obj in enumerate(objects):
            merged = reconcile(obj, results.get(obj.id), now)
            objects[index] = merged

            if merged.is_stale:
                summary.stale += 1
            else:
                summary.updated += 1
            if merged.data_inconsistent:
                summary.inconsistent += 1
            if merged.status is VisibilityStatus.VISIBLE:
                summary.visible += 1
            elif merged.status is VisibilityStatus.NOT_YET_RISEN:
                summary.rising_later += 1

        logger.info(
            f"Reconciled {len(objects)} objects: {summary.visible} visible, "
            f"{summary.rising_later} rising later, {summary.stale} stale"
        )
        return summary
