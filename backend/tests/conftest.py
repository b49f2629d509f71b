import pytest

from busmap.catalog import RouteCatalog


def _route(route_id, name, direction, day_type, ranking):
    return {
        "type": "Feature",
        "properties": {
            "route_id": route_id,
            "route_long_name": name,
            "direction": direction,
            "day_type": day_type,
            "ratio_ranking": ranking,
        },
    }


def _shape(route_id, coordinates):
    return {
        "type": "Feature",
        "properties": {"route_id": route_id},
        "geometry": {"type": "LineString", "coordinates": coordinates},
    }


@pytest.fixture
def routes_doc():
    # Rankings run 1..20; route "9" is the least reliable
    return {
        "type": "FeatureCollection",
        "features": [
            _route("20", "Madison", "East", "wk", 5),
            _route("20", "Madison", "West", "wk", 6),
            _route("20", "Madison", "East", "sat", 7),
            _route(4, "Cottage Grove", "North", "wk", 1),
            _route(4, "Cottage Grove", "South", "wk", 2),
            _route("66", "Chicago", "Eastbound", "wk", 12),
            _route("66", "Chicago", "Westbound", "wk", 13),
            _route("J14", "Jeffery Jump", "North", "wk", 15),
            _route("J14", "Jeffery Jump", "South", "wk", 16),
            _route("9", "Ashland", "North", "wk", 20),
            _route("9", "Ashland", "South", "sun", 19),
            _route("X9", "Ashland Express", "North", "wk", 11),
        ],
    }


@pytest.fixture
def shapes_doc():
    return {
        "type": "FeatureCollection",
        "features": [
            _shape(20, [[-87.70, 41.88], [-87.62, 41.88]]),
            _shape("20", [[-87.62, 41.88], [-87.61, 41.88]]),
            _shape("4", [[-87.60, 41.80], [-87.60, 41.88]]),
            _shape("66", [[-87.75, 41.89], [-87.62, 41.89]]),
            _shape("J14", [[-87.57, 41.75], [-87.62, 41.88]]),
            _shape("9", [[-87.66, 41.70], [-87.66, 42.00]]),
            _shape("X9", [[-87.66, 41.70], [-87.66, 42.00]]),
            _shape("999", [[-87.80, 41.90], [-87.79, 41.91]]),
        ],
    }


@pytest.fixture
def catalog(routes_doc, shapes_doc):
    return RouteCatalog.from_documents(routes_doc, shapes_doc, top_threshold=10)
