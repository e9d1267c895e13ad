"""
SkyChecker Catalog Service

Seeded object catalog (Moon, planets, bright Messier objects, ISS) and
lookup by ID, name or type.
"""

from .catalog import (
    DEEP_SKY_OBJECTS,
    SATELLITE_OBJECTS,
    SOLAR_SYSTEM_OBJECTS,
    CatalogService,
    default_catalog,
)

__all__ = [
    "DEEP_SKY_OBJECTS",
    "SATELLITE_OBJECTS",
    "SOLAR_SYSTEM_OBJECTS",
    "CatalogService",
    "default_catalog",
]
