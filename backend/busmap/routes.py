import logging

from fastapi import APIRouter, HTTPException, Query

from busmap import config
from busmap.catalog import RouteCatalog
from busmap.filters import eligible_route_ids
from busmap.models import (
    EligibleRoutesResponse,
    FilterState,
    MapConfig,
    ReliabilityFilter,
    RouteDetailResponse,
    RouteRecord,
    SearchResponse,
    ViewerEventRequest,
    ViewerState,
    ViewerView,
)
from busmap.viewer import build_view, layer_key, render_layer, search_results

logger = logging.getLogger("busmap.routes")

router = APIRouter()


def _get_state():
    from busmap.main import app_state
    return app_state


def _get_catalog() -> RouteCatalog:
    catalog = _get_state().get("catalog")
    if catalog is None:
        return RouteCatalog([], [])
    return catalog


def _get_sessions():
    sessions = _get_state().get("sessions")
    if sessions is None:
        raise HTTPException(status_code=503, detail="Viewer sessions not initialized")
    return sessions


def _filters_from_query(top10: bool, bottom10: bool, color: bool = True) -> FilterState:
    return FilterState(color=color, reliability=ReliabilityFilter(top10=top10, bottom10=bottom10))


@router.get("/health")
async def health():
    catalog = _get_catalog()
    sessions = _get_state().get("sessions")
    return {
        "status": "ok",
        "service": "Bus Reliability Map API",
        "records": len(catalog.records),
        "shapes": len(catalog.shapes),
        "viewer_sessions": sessions.get_active_sessions_count() if sessions else 0,
    }


@router.get("/map-config", response_model=MapConfig)
async def get_map_config():
    """Basemap and view settings for the map frontend."""
    return MapConfig(
        center=config.MAP_CENTER,
        zoom=config.MAP_ZOOM,
        scroll_wheel_zoom=config.SCROLL_WHEEL_ZOOM,
        tile_url=config.TILE_URL,
        attribution=config.TILE_ATTRIBUTION,
        heatmap=config.HEATMAP,
    )


@router.get("/routes", response_model=list[RouteRecord])
async def list_routes():
    return _get_catalog().records


@router.get("/routes/search", response_model=SearchResponse)
async def search_routes(q: str = Query("", description="Route number or name")):
    """Search weekday routes by id or name (case-insensitive)."""
    return SearchResponse(query=q, results=search_results(_get_catalog(), q))


@router.get("/routes/eligible", response_model=EligibleRoutesResponse)
async def get_eligible_routes(
    top10: bool = Query(False),
    bottom10: bool = Query(False),
):
    """Route ids visible under the reliability filter."""
    catalog = _get_catalog()
    filters = _filters_from_query(top10, bottom10)
    eligible = eligible_route_ids(
        catalog.records_df,
        filters,
        top_threshold=catalog.top_threshold,
        bottom_threshold=catalog.bottom_threshold,
    )
    return EligibleRoutesResponse(filters=filters, route_ids=sorted(eligible))


@router.get("/routes/{route_id}", response_model=RouteDetailResponse)
async def get_route_detail(route_id: str):
    """All direction/day-type records for a route; empty when the route is unknown."""
    return RouteDetailResponse(route_id=route_id, records=_get_catalog().records_for_route(route_id))


@router.get("/shapes")
async def get_shapes(
    top10: bool = Query(False),
    bottom10: bool = Query(False),
    color: bool = Query(True),
):
    """Styled route geometry for a filter state, without session state."""
    filters = _filters_from_query(top10, bottom10, color)
    layer = render_layer(_get_catalog(), ViewerState(filters=filters))
    return {"layer_key": layer_key(filters), "layer": layer}


@router.post("/viewer-sessions", response_model=ViewerView)
async def create_viewer_session():
    session = _get_sessions().create_session()
    return build_view(session.session_id, session.state, _get_catalog())


@router.get("/viewer-sessions/{session_id}", response_model=ViewerView)
async def get_viewer_session(session_id: str):
    session = _get_sessions().get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return build_view(session.session_id, session.state, _get_catalog())


@router.post("/viewer-sessions/{session_id}/events", response_model=ViewerView)
async def dispatch_viewer_event(session_id: str, request: ViewerEventRequest):
    """Apply a UI event (search, filter, hover, click, dismiss) and return the new view."""
    sessions = _get_sessions()
    catalog = _get_catalog()

    effects = sessions.dispatch(session_id, request.event, catalog)
    if effects is None:
        raise HTTPException(status_code=404, detail="Session not found")

    session = sessions.get_session(session_id)
    return build_view(session.session_id, session.state, catalog, effects)


@router.delete("/viewer-sessions/{session_id}")
async def end_viewer_session(session_id: str):
    effects = _get_sessions().end_session(session_id)
    if effects is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"session_id": session_id, "effects": effects}
