"""
SkyChecker Unit Tests - Object Catalog

Unit tests for services/catalog/catalog.py.

Run:
    pytest tests/unit/test_catalog.py -v
"""

from skychecker.models import ObjectType, VisibilityStatus


class TestDefaultCatalog:
    """Tests for the seeded catalog."""

    def test_contents(self):
        from services.catalog import default_catalog

        objects = default_catalog()
        ids = [obj.id for obj in objects]

        assert len(ids) == len(set(ids))
        assert {"moon", "mars", "jupiter", "saturn", "m31", "m42", "iss"} <= set(ids)

    def test_source_selectors(self):
        from services.catalog import default_catalog

        for obj in default_catalog():
            if obj.type in (ObjectType.PLANET, ObjectType.MOON):
                assert obj.horizons_command
                assert not obj.has_fixed_coordinates
            elif obj.type is ObjectType.DEEP_SKY:
                assert obj.horizons_command is None
                assert obj.has_fixed_coordinates
                assert 0.0 <= obj.ra_hours < 24.0
                assert -90.0 <= obj.dec_degrees <= 90.0
            else:
                assert obj.type is ObjectType.SATELLITE
                assert obj.horizons_command is None
                assert not obj.has_fixed_coordinates

    def test_horizons_body_ids(self):
        from services.catalog import CatalogService

        catalog = CatalogService()
        assert catalog.lookup("moon").horizons_command == "301"
        assert catalog.lookup("mars").horizons_command == "499"
        assert catalog.lookup("jupiter").horizons_command == "599"

    def test_fresh_copies(self):
        from services.catalog import SOLAR_SYSTEM_OBJECTS, default_catalog

        first = default_catalog()
        first[0].status = VisibilityStatus.VISIBLE

        assert default_catalog()[0].status is None
        assert SOLAR_SYSTEM_OBJECTS[0].status is None
        assert first[0] is not SOLAR_SYSTEM_OBJECTS[0]


class TestCatalogService:
    """Tests for CatalogService lookups."""

    def test_lookup_by_id_name_and_short_name(self):
        from services.catalog import CatalogService

        catalog = CatalogService()

        assert catalog.lookup("M42").id == "m42"
        assert catalog.lookup("the moon").id == "moon"
        assert catalog.lookup(" ISS ").id == "iss"
        assert catalog.lookup("M31 Andromeda Galaxy").id == "m31"
        assert catalog.lookup("pluto") is None

    def test_by_type(self):
        from services.catalog import CatalogService

        catalog = CatalogService()

        assert [o.id for o in catalog.by_type(ObjectType.MOON)] == ["moon"]
        assert [o.id for o in catalog.by_type(ObjectType.SATELLITE)] == ["iss"]
        assert all(o.type is ObjectType.DEEP_SKY for o in catalog.by_type(ObjectType.DEEP_SKY))
        assert len(catalog) == len(catalog.objects)

    def test_custom_objects(self):
        from services.catalog import CatalogService, default_catalog

        catalog = CatalogService(default_catalog()[:2])
        assert len(catalog) == 2
        assert catalog.lookup("jupiter") is None
