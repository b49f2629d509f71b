"""Presentation shell for the reliability map.

UI state lives in an immutable ViewerState. Every user interaction is a
ViewerEvent; `reduce` turns (state, event) into a new state plus the side
effects the frontend must apply (scroll lock while the detail overlay is open).
The map layer is rendered from the state alone and keyed on the filter state,
so any filter change replaces the whole layer.
"""

import logging
from typing import Optional

from busmap.catalog import RouteCatalog
from busmap.colorizer import feature_style
from busmap.filters import eligible_route_ids, search_records, visible_shapes
from busmap.models import (
    DetailDismissed,
    Effect,
    FilterPanelToggled,
    FiltersChanged,
    FilterState,
    PointerEnter,
    PointerLeave,
    RouteClicked,
    RouteRecord,
    SearchChanged,
    SearchResult,
    ViewerState,
    ViewerView,
)

logger = logging.getLogger("busmap.viewer")


def reduce(state: ViewerState, event, catalog: RouteCatalog) -> tuple[ViewerState, list[Effect]]:
    """Apply one UI event. Returns the new state and the effects to run."""
    if isinstance(event, SearchChanged):
        return state.model_copy(update={"search_term": event.text.lower()}), []

    if isinstance(event, FilterPanelToggled):
        is_open = (not state.filter_open) if event.open is None else event.open
        return state.model_copy(update={"filter_open": is_open}), []

    if isinstance(event, FiltersChanged):
        # The layer is rebuilt, so no shape stays under the pointer
        return state.model_copy(update={
            "filters": event.filters,
            "hovered_route_id": None,
            "unhovered_route_ids": frozenset(),
        }), []

    if isinstance(event, PointerEnter):
        return state.model_copy(update={"hovered_route_id": event.route_id}), []

    if isinstance(event, PointerLeave):
        unhovered = state.unhovered_route_ids | {event.route_id}
        if state.hovered_route_id != event.route_id:
            return state.model_copy(update={"unhovered_route_ids": unhovered}), []
        return state.model_copy(update={"hovered_route_id": None, "unhovered_route_ids": unhovered}), []

    if isinstance(event, RouteClicked):
        selected = catalog.records_for_route(event.route_id)
        if not selected:
            logger.info(f"No route records for clicked route {event.route_id}")
        effects = [] if state.scroll_locked else [Effect.LOCK_SCROLL]
        new_state = state.model_copy(update={"selected_route": selected, "scroll_locked": True})
        return new_state, effects

    if isinstance(event, DetailDismissed):
        return close_detail(state)

    raise TypeError(f"Unsupported viewer event: {type(event).__name__}")


def close_detail(state: ViewerState) -> tuple[ViewerState, list[Effect]]:
    """Clear the selection and release the scroll lock if it is held."""
    effects = [Effect.UNLOCK_SCROLL] if state.scroll_locked else []
    return state.model_copy(update={"selected_route": None, "scroll_locked": False}), effects


def layer_key(filters: FilterState) -> str:
    return filters.model_dump_json()


def render_layer(catalog: RouteCatalog, state: ViewerState) -> dict:
    """GeoJSON FeatureCollection of the eligible shapes, each with its style and tooltip."""
    eligible = eligible_route_ids(
        catalog.records_df,
        state.filters,
        top_threshold=catalog.top_threshold,
        bottom_threshold=catalog.bottom_threshold,
    )

    features = []
    for shape in visible_shapes(catalog.shapes, eligible):
        route_id = shape["properties"]["route_id"]
        record = catalog.first_record(route_id)
        style = feature_style(
            record,
            state.filters,
            hovered=state.hovered_route_id == route_id,
            keys=catalog.percentile_keys,
            unhovered=route_id in state.unhovered_route_ids,
        )
        features.append({
            **shape,
            "properties": {
                **shape["properties"],
                "style": style.model_dump(),
                "tooltip": tooltip_for(shape, record),
            },
        })

    return {"type": "FeatureCollection", "features": features}


def tooltip_for(shape: dict, record: Optional[RouteRecord]) -> Optional[str]:
    """`"{route_id}, {route_long_name}"` from the shape, or from its record when the shape is unnamed."""
    props = shape.get("properties") or {}
    if props.get("route_long_name"):
        return f"{props['route_id']}, {props['route_long_name']}"
    return record.label if record else None


def search_results(catalog: RouteCatalog, search_term: str) -> list[SearchResult]:
    return [
        SearchResult(
            route_id=r.route_id,
            route_long_name=r.route_long_name,
            label=r.label,
            record=r,
        )
        for r in search_records(catalog.records, search_term)
    ]


def build_view(
    session_id: str,
    state: ViewerState,
    catalog: RouteCatalog,
    effects: list[Effect] | None = None,
) -> ViewerView:
    return ViewerView(
        session_id=session_id,
        state=state,
        layer_key=layer_key(state.filters),
        layer=render_layer(catalog, state),
        search_results=search_results(catalog, state.search_term),
        effects=effects or [],
    )
