"""
SkyChecker Object Catalog

The seeded list of objects checked each night:
- The Moon and the planets, fetched from JPL Horizons by body ID
- Bright Messier objects with fixed J2000 RA/Dec, computed locally
- The ISS, from the pass prediction feed

default_catalog() hands out fresh mutable copies, so each planner owns
its own list and the seed data is never modified.
"""

import copy
from typing import List, Optional

from skychecker.models import CelestialObject, DifficultyRating, ObjectId, ObjectType

__all__ = ["CatalogService", "SOLAR_SYSTEM_OBJECTS", "DEEP_SKY_OBJECTS", "SATELLITE_OBJECTS", "default_catalog"]

EYE = DifficultyRating.NAKED_EYE
BINO = DifficultyRating.BINOCULARS


def _body(object_id: str, name: str, command: str, description: str,
          difficulty: DifficultyRating = EYE, short_name: Optional[str] = None,
          object_type: ObjectType = ObjectType.PLANET) -> CelestialObject:
    return CelestialObject(
        id=ObjectId(object_id),
        name=name,
        short_name=short_name,
        type=object_type,
        difficulty=difficulty,
        description=description,
        horizons_command=command,
    )


def _messier(object_id: str, name: str, short_name: str, ra_hours: float, dec_degrees: float,
             description: str, difficulty: DifficultyRating = EYE) -> CelestialObject:
    return CelestialObject(
        id=ObjectId(object_id),
        name=name,
        short_name=short_name,
        type=ObjectType.DEEP_SKY,
        difficulty=difficulty,
        description=description,
        ra_hours=ra_hours,
        dec_degrees=dec_degrees,
    )


SOLAR_SYSTEM_OBJECTS: List[CelestialObject] = [
    _body("moon", "The Moon", "301", "Earth's natural satellite", short_name="Moon", object_type=ObjectType.MOON),
    _body("mercury", "Mercury", "199", "The smallest planet"),
    _body("venus", "Venus", "299", "The morning/evening star"),
    _body("mars", "Mars", "499", "The Red Planet"),
    _body("jupiter", "Jupiter", "599", "The largest planet"),
    _body("saturn", "Saturn", "699", "The ringed planet"),
    _body("uranus", "Uranus", "799", "The ice giant", difficulty=BINO),
    _body("neptune", "Neptune", "899", "The distant blue planet", difficulty=DifficultyRating.SMALL_TELESCOPE),
]

DEEP_SKY_OBJECTS: List[CelestialObject] = [
    _messier("m31", "M31 Andromeda Galaxy", "M31", 0.7122, 41.27, "The nearest major galaxy"),
    _messier("m42", "M42 Orion Nebula", "M42", 5.59, -5.45, "The great nebula in Orion"),
    _messier("m22", "M22 Globular Cluster", "M22", 18.607, -23.90, "Bright globular cluster", BINO),
    _messier("m45", "M45 Pleiades", "M45", 3.7833, 24.1167, "The Seven Sisters star cluster"),
    _messier("m44", "M44 Beehive Cluster", "M44", 8.6733, 19.6717, "Open cluster in Cancer"),
    _messier("m13", "M13 Hercules Cluster", "M13", 16.6947, 36.4617, "Great globular in Hercules", BINO),
]

SATELLITE_OBJECTS: List[CelestialObject] = [
    CelestialObject(
        id=ObjectId("iss"),
        name="International Space Station",
        short_name="ISS",
        type=ObjectType.SATELLITE,
        description="Crewed orbital laboratory",
    ),
]


def default_catalog() -> List[CelestialObject]:
    """Fresh copies of every seeded object."""
    return [copy.deepcopy(obj) for obj in SOLAR_SYSTEM_OBJECTS + DEEP_SKY_OBJECTS + SATELLITE_OBJECTS]


class CatalogService:
    """Lookup over a catalog list, by ID or type."""

    def __init__(self, objects: Optional[List[CelestialObject]] = None):
        self.objects = objects if objects is not None else default_catalog()

    def __len__(self) -> int:
        return len(self.objects)

    def lookup(self, object_id: str) -> Optional[CelestialObject]:
        """Find by ID (case-insensitive) or by display/short name."""
        key = object_id.strip().lower()
        for obj in self.objects:
            if key in (obj.id.lower(), obj.name.lower(), (obj.short_name or "").lower()):
                return obj
        return None

    def by_type(self, object_type: ObjectType) -> List[CelestialObject]:
        return [obj for obj in self.objects if obj.type is object_type]
