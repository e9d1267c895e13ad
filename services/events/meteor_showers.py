"""
SkyChecker Meteor Shower Calendar

Static table of the major annual meteor showers and a lookup for the
shower that is active now or peaks soonest (within 30 days).

Usage:
    from services.events import MeteorShowerService

    status = MeteorShowerService().get_shower_status(date.today())
    if status:
        print(status.status_text, status.detail_text)
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple

from skychecker.constants import SHOWER_LOOKAHEAD_DAYS, SHOWER_PEAK_GRACE_DAYS

__all__ = ["MeteorShower", "MeteorShowerStatus", "MeteorShowerService", "SHOWERS"]


@dataclass(frozen=True)
class MeteorShower:
    """Annual shower; dates are (month, day)."""
    name: str
    peak: Tuple[int, int]
    active_start: Tuple[int, int]
    active_end: Tuple[int, int]
    zhr: int  # zenithal hourly rate
    radiant: str
    description: str = ""

    @property
    def wraps_year(self) -> bool:
        return self.active_start > self.active_end

    def peak_date(self, year: int) -> date:
        return date(year, *self.peak)

    def is_active(self, day: date) -> bool:
        if self.wraps_year:
            return (day.month, day.day) >= self.active_start or (day.month, day.day) <= self.active_end
        return self.active_start <= (day.month, day.day) <= self.active_end


SHOWERS: List[MeteorShower] = [
    MeteorShower("Quadrantids", (1, 3), (12, 28), (1, 12), 120, "Bootes", "Strong January shower, best after midnight"),
    MeteorShower("Lyrids", (4, 22), (4, 16), (4, 25), 18, "Lyra", "Spring shower from Comet Thatcher"),
    MeteorShower("Eta Aquariids", (5, 6), (4, 19), (5, 28), 50, "Aquarius", "Debris from Halley's Comet"),
    MeteorShower("Delta Aquariids", (7, 30), (7, 12), (8, 23), 20, "Aquarius", "Summer shower, best from southern latitudes"),
    MeteorShower("Perseids", (8, 12), (7, 17), (8, 24), 100, "Perseus", "Most popular summer shower"),
    MeteorShower("Orionids", (10, 21), (10, 2), (11, 7), 20, "Orion", "Another Halley's Comet shower"),
    MeteorShower("Leonids", (11, 17), (11, 6), (11, 30), 15, "Leo", "Fast meteors, occasional storms"),
    MeteorShower("Geminids", (12, 14), (12, 4), (12, 17), 150, "Gemini", "Strongest annual shower"),
    MeteorShower("Ursids", (12, 22), (12, 17), (12, 26), 10, "Ursa Minor", "Late December shower"),
]


@dataclass(frozen=True)
class MeteorShowerStatus:
    """A shower relative to a reference date."""
    shower: MeteorShower
    peak_date: date
    days_until_peak: int
    is_active: bool

    @property
    def status_text(self) -> str:
        name = self.shower.name
        if not self.is_active:
            return f"{name} in {self.days_until_peak} days"
        if self.days_until_peak == 0:
            return f"{name} peak tonight!"
        if self.days_until_peak > 0:
            return f"{name} active - peaks in {self.days_until_peak}d"
        return f"{name} active - past peak"

    @property
    def detail_text(self) -> str:
        return f"~{self.shower.zhr}/hr from {self.shower.radiant}"


class MeteorShowerService:
    """Lookup over the static shower table."""

    def __init__(self, showers: Optional[List[MeteorShower]] = None):
        self.showers = showers if showers is not None else SHOWERS

    def _status(self, shower: MeteorShower, day: date) -> MeteorShowerStatus:
        # Nearest peak not more than the grace period in the past
        for year in (day.year - 1, day.year, day.year + 1):
            peak = shower.peak_date(year)
            days = (peak - day).days
            if days >= -SHOWER_PEAK_GRACE_DAYS:
                break
        return MeteorShowerStatus(shower, peak, days, shower.is_active(day))

    def get_shower_status(self, day: date) -> Optional[MeteorShowerStatus]:
        """Active shower (closest peak first), else the next one within 30 days."""
        statuses = [self._status(shower, day) for shower in self.showers]

        active = [s for s in statuses if s.is_active]
        if active:
            return min(active, key=lambda s: abs(s.days_until_peak))

        upcoming = [s for s in statuses if 0 <= s.days_until_peak <= SHOWER_LOOKAHEAD_DAYS]
        if upcoming:
            return min(upcoming, key=lambda s: s.days_until_peak)
        return None
