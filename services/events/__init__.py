"""
SkyChecker Sky Events

Annual meteor shower calendar.
"""

from .meteor_showers import SHOWERS, MeteorShower, MeteorShowerService, MeteorShowerStatus

__all__ = ["SHOWERS", "MeteorShower", "MeteorShowerService", "MeteorShowerStatus"]
