"""
Shared pytest fixtures for Bosun tests.

Environment variables are set before any api.* import so the module-level
settings and rate limiter pick them up.

Synthetic datasets are small enough to route over at the default grid
resolutions in milliseconds:
- ocean box lat/lon -0.01..0.02 with a 0.01° square island (a hole) at 0..0.01
- a separate lake square around (1.0, 1.0)
"""

import os

import pytest
from fastapi.testclient import TestClient

# ---------------------------------------------------------------------------
# Section 1: Environment setup (before ANY api.* imports)
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOAD_DATA_ON_STARTUP", "true")

from bosun.config import RoutingSettings  # noqa: E402
from bosun.data.geometry import feature_set_from_rings  # noqa: E402
from bosun.data.polygon_store import PolygonStore  # noqa: E402
from bosun.routing.engine import RouteEngine  # noqa: E402


def square(min_lat, min_lon, max_lat, max_lon):
    """Closed (lat, lon) ring, clockwise in (lon, lat)."""
    return [
        (min_lat, min_lon),
        (max_lat, min_lon),
        (max_lat, max_lon),
        (min_lat, max_lon),
        (min_lat, min_lon),
    ]


ISLAND = square(0.0, 0.0, 0.01, 0.01)
OCEAN_BOX = square(-0.01, -0.01, 0.02, 0.02)
LAKE = square(1.0, 1.0, 1.01, 1.01)


# ---------------------------------------------------------------------------
# Section 2: Dataset fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def routing_settings():
    """Reference routing settings, independent of the environment."""
    return RoutingSettings(
        data_dir="does-not-exist",
        grid_resolutions_deg=[0.001, 0.0005, 0.0002, 0.0001],
        max_iterations=50_000,
        refine_resolution_deg=0.0001,
        refine_max_iterations=10_000,
        snap_radius_cells=5,
        segment_sample_m=11.0,
        simplify_sample_m=15.0,
        cache_max_size=100_000,
        cache_precision=4,
    )


@pytest.fixture
def ocean_with_island():
    """Ocean polygon whose hole is a square island."""
    return feature_set_from_rings([[OCEAN_BOX, ISLAND]], name="ocean")


@pytest.fixture
def ocean_box():
    """Outer ring of the ocean box, no island."""
    return OCEAN_BOX


@pytest.fixture
def island_ring():
    return ISLAND


@pytest.fixture
def lake_ring():
    return LAKE


@pytest.fixture
def lake_polygons():
    return feature_set_from_rings([[LAKE]], name="lake")


@pytest.fixture
def island_store(ocean_with_island, lake_polygons):
    return PolygonStore.from_feature_sets(ocean=ocean_with_island, lakes=lake_polygons)


@pytest.fixture
def empty_store():
    """Loaded store with no datasets found."""
    return PolygonStore.from_feature_sets()


@pytest.fixture
def island_engine(island_store, routing_settings):
    return RouteEngine.from_store(island_store, routing_settings)


@pytest.fixture
def geojson_feature_collection():
    """GeoJSON FeatureCollection with the island ocean and one broken feature."""
    def ring(latlon_ring):
        return [[lon, lat] for lat, lon in latlon_ring]

    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"name": "ocean"},
                "geometry": {"type": "Polygon", "coordinates": [ring(OCEAN_BOX), ring(ISLAND)]},
            },
            {
                "type": "Feature",
                "properties": {"name": "degenerate"},
                "geometry": {"type": "Polygon", "coordinates": [[[0, 0], [1, 1]]]},
            },
            {"type": "Feature", "properties": {}, "geometry": None},
        ],
    }


@pytest.fixture
def write_shapefile(tmp_path):
    """
    Factory writing polygon shapefiles into tmp_path.

    Each record is a (lat, lon) outer ring or a list of rings whose first
    is the outer ring and the rest are holes.
    """
    import shapefile

    def _parts(record):
        rings = [record] if isinstance(record[0][0], (int, float)) else record
        parts = [[[lon, lat] for lat, lon in rings[0]]]
        # Shapefile holes run counterclockwise
        parts.extend([[lon, lat] for lat, lon in reversed(hole)] for hole in rings[1:])
        return parts

    def _write(records, relpath="water_polygons.shp"):
        path = tmp_path / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        with shapefile.Writer(str(path), shapeType=shapefile.POLYGON) as w:
            w.field("id", "N")
            for i, record in enumerate(records):
                w.poly(_parts(record))
                w.record(i)
        return path

    return _write


@pytest.fixture
def write_pbf(tmp_path):
    """Factory writing OSM PBF extracts of closed natural=water ways ((lat, lon) rings)."""
    import osmium

    def _write(rings, relpath="OSM_WaterLayer.pbf"):
        path = tmp_path / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        writer = osmium.SimpleWriter(str(path))
        try:
            node_id = 1
            ways = []
            for latlon_ring in rings:
                # Closed ring: the last node repeats the first
                ids = list(range(node_id, node_id + len(latlon_ring) - 1))
                for nid, (lat, lon) in zip(ids, latlon_ring):
                    writer.add_node(osmium.osm.mutable.Node(
                        id=nid, version=1, location=osmium.osm.Location(lon, lat)
                    ))
                ways.append(ids + ids[:1])
                node_id += len(ids)
            for way_id, nodes in enumerate(ways, start=1):
                writer.add_way(osmium.osm.mutable.Way(
                    id=way_id, version=1, nodes=nodes, tags={"natural": "water"}
                ))
        finally:
            writer.close()
        return path

    return _write


# ---------------------------------------------------------------------------
# Section 3: API client fixtures
# ---------------------------------------------------------------------------


def _client_for(engine, load_data=True):
    from api.config import Settings
    from api.main import create_app
    from api.state import ApplicationState

    settings = Settings(load_data_on_startup=load_data, rate_limit_enabled=False)
    state = ApplicationState(engine, worker_mode="thread", worker_count=1)
    return TestClient(create_app(settings=settings, state=state))


@pytest.fixture
def client(island_engine):
    """TestClient over the island dataset with a started route worker."""
    with _client_for(island_engine) as test_client:
        yield test_client


@pytest.fixture
def no_data_client(empty_store, routing_settings):
    """TestClient whose store loaded but found no datasets."""
    engine = RouteEngine.from_store(empty_store, routing_settings)
    with _client_for(engine) as test_client:
        yield test_client


@pytest.fixture
def unready_client(island_engine):
    """TestClient whose route worker was never started."""
    with _client_for(island_engine, load_data=False) as test_client:
        yield test_client
