"""Tests for the HTTP surface in busmap.routes."""

import pytest
from fastapi.testclient import TestClient

from busmap.config import HEATMAP, HIGHLIGHT_COLOR
from busmap.main import app, app_state
from busmap.sessions import ViewerSessionManager


@pytest.fixture
def client(catalog):
    # Lifespan is skipped (no context manager), state is seeded directly
    app_state.clear()
    app_state["catalog"] = catalog
    app_state["sessions"] = ViewerSessionManager()
    yield TestClient(app)
    app_state.clear()


def _post_event(client, session_id: str, event: dict):
    return client.post(f"/api/viewer-sessions/{session_id}/events", json={"event": event})


class TestCatalogEndpoints:
    def test_health(self, client) -> None:
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["records"] == 12
        assert resp.json()["shapes"] == 8
        assert resp.json()["viewer_sessions"] == 0

    def test_health_counts_viewer_sessions(self, client) -> None:
        client.post("/api/viewer-sessions")
        assert client.get("/api/health").json()["viewer_sessions"] == 1

    def test_map_config(self, client) -> None:
        data = client.get("/api/map-config").json()
        assert data["center"] == [41.881832, -87.691916]
        assert data["zoom"] == 11
        assert data["scroll_wheel_zoom"] is False
        assert "stadiamaps" in data["tile_url"]
        assert data["heatmap"] == HEATMAP

    def test_list_routes(self, client) -> None:
        data = client.get("/api/routes").json()
        assert len(data) == 12
        assert data[0]["route_id"] == "20"

    def test_search(self, client) -> None:
        data = client.get("/api/routes/search", params={"q": "20"}).json()
        assert data["query"] == "20"
        assert [r["route_id"] for r in data["results"]] == ["20"]
        assert data["results"][0]["label"] == "20, Madison"

    def test_search_empty_term(self, client) -> None:
        data = client.get("/api/routes/search").json()
        assert [r["route_id"] for r in data["results"]] == ["20", "4", "66", "J14", "9", "X9"]

    def test_search_no_results(self, client) -> None:
        resp = client.get("/api/routes/search", params={"q": "zzz"})
        assert resp.status_code == 200
        assert resp.json()["results"] == []

    def test_eligible(self, client) -> None:
        data = client.get("/api/routes/eligible", params={"top10": "true"}).json()
        assert data["route_ids"] == ["20", "4"]
        assert data["filters"]["reliability"]["top10"] is True

    def test_eligible_union(self, client) -> None:
        data = client.get("/api/routes/eligible", params={"top10": "true", "bottom10": "true"}).json()
        assert set(data["route_ids"]) == {"20", "4", "66", "J14", "9", "X9"}

    def test_route_detail(self, client) -> None:
        data = client.get("/api/routes/20").json()
        assert data["route_id"] == "20"
        assert len(data["records"]) == 3

    def test_route_detail_unknown_is_empty(self, client) -> None:
        resp = client.get("/api/routes/999")
        assert resp.status_code == 200
        assert resp.json()["records"] == []

    def test_shapes(self, client) -> None:
        data = client.get("/api/shapes", params={"bottom10": "true", "color": "false"}).json()
        route_ids = {f["properties"]["route_id"] for f in data["layer"]["features"]}
        assert route_ids == {"66", "J14", "9", "X9"}
        assert '"color":false' in data["layer_key"]

    def test_empty_catalog_when_not_loaded(self) -> None:
        app_state.clear()
        data = TestClient(app).get("/api/routes/search", params={"q": ""}).json()
        assert data["results"] == []


class TestViewerSessionEndpoints:
    def test_create_session(self, client) -> None:
        resp = client.post("/api/viewer-sessions")
        assert resp.status_code == 200
        view = resp.json()
        assert view["session_id"]
        assert view["state"]["selected_route"] is None
        assert len(view["layer"]["features"]) == 7
        assert view["effects"] == []

    def test_get_unknown_session(self, client) -> None:
        assert client.get("/api/viewer-sessions/nope").status_code == 404

    def test_event_unknown_session(self, client) -> None:
        resp = _post_event(client, "nope", {"type": "detail_dismissed"})
        assert resp.status_code == 404

    def test_invalid_event(self, client) -> None:
        session_id = client.post("/api/viewer-sessions").json()["session_id"]
        resp = _post_event(client, session_id, {"type": "teleport"})
        assert resp.status_code == 422

    def test_click_then_dismiss(self, client) -> None:
        session_id = client.post("/api/viewer-sessions").json()["session_id"]

        view = _post_event(client, session_id, {"type": "route_clicked", "route_id": "20"}).json()
        assert [r["route_id"] for r in view["state"]["selected_route"]] == ["20", "20", "20"]
        assert view["effects"] == ["lock_scroll"]

        view = _post_event(client, session_id, {"type": "detail_dismissed"}).json()
        assert view["state"]["selected_route"] is None
        assert view["effects"] == ["unlock_scroll"]

    def test_filter_change_replaces_layer(self, client) -> None:
        view = client.post("/api/viewer-sessions").json()
        session_id, old_key = view["session_id"], view["layer_key"]

        view = _post_event(client, session_id, {
            "type": "filters_changed",
            "filters": {"color": True, "reliability": {"top10": True, "bottom10": False}},
        }).json()
        assert view["layer_key"] != old_key
        assert {f["properties"]["route_id"] for f in view["layer"]["features"]} == {"20", "4"}

    def test_hover_highlights_in_layer(self, client) -> None:
        session_id = client.post("/api/viewer-sessions").json()["session_id"]
        view = _post_event(client, session_id, {"type": "pointer_enter", "route_id": 9}).json()
        styles = {
            f["properties"]["route_id"]: f["properties"]["style"]["color"]
            for f in view["layer"]["features"]
        }
        assert styles["9"] == HIGHLIGHT_COLOR
        assert styles["X9"] != HIGHLIGHT_COLOR

    def test_search_event(self, client) -> None:
        session_id = client.post("/api/viewer-sessions").json()["session_id"]
        view = _post_event(client, session_id, {"type": "search_changed", "text": "Jeffery"}).json()
        assert view["state"]["search_term"] == "jeffery"
        assert [r["route_id"] for r in view["search_results"]] == ["J14"]

    def test_end_session(self, client) -> None:
        session_id = client.post("/api/viewer-sessions").json()["session_id"]
        _post_event(client, session_id, {"type": "route_clicked", "route_id": "66"})

        resp = client.delete(f"/api/viewer-sessions/{session_id}")
        assert resp.json()["effects"] == ["unlock_scroll"]
        assert client.get(f"/api/viewer-sessions/{session_id}").status_code == 404
