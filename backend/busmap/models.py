from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DayType(str, Enum):
    WEEKDAY = "wk"
    SATURDAY = "sat"
    SUNDAY = "sun"


class RouteRecord(BaseModel):
    """One route/direction/day-type row of the reliability results."""
    model_config = ConfigDict(frozen=True)

    route_id: str
    route_long_name: str = ""
    direction: str = ""
    day_type: str = ""  # "wk", "sat", "sun" (other values are kept as-is)
    ratio_ranking: int  # 1 = most reliable

    @field_validator("route_id", mode="before")
    @classmethod
    def _stringify_route_id(cls, v):
        return str(v)

    @property
    def label(self) -> str:
        return f"{self.route_id}, {self.route_long_name}"


class ReliabilityFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    top10: bool = False
    bottom10: bool = False


class FilterState(BaseModel):
    model_config = ConfigDict(frozen=True)

    color: bool = True  # color mode: heatmap by reliability vs flat style
    reliability: ReliabilityFilter = Field(default_factory=ReliabilityFilter)


class FeatureStyle(BaseModel):
    color: str
    fillColor: str
    weight: int
    fillOpacity: float = 1.0


class ViewerState(BaseModel):
    model_config = ConfigDict(frozen=True)

    search_term: str = ""
    filter_open: bool = False
    filters: FilterState = Field(default_factory=FilterState)
    selected_route: Optional[list[RouteRecord]] = None
    hovered_route_id: Optional[str] = None
    # Shapes restyled by a pointer leave since the layer was last rebuilt
    unhovered_route_ids: frozenset[str] = frozenset()
    scroll_locked: bool = False

    @property
    def detail_open(self) -> bool:
        return self.selected_route is not None


class Effect(str, Enum):
    LOCK_SCROLL = "lock_scroll"
    UNLOCK_SCROLL = "unlock_scroll"


# --- Viewer events ---


class SearchChanged(BaseModel):
    type: Literal["search_changed"] = "search_changed"
    text: str = ""


class FilterPanelToggled(BaseModel):
    type: Literal["filter_panel_toggled"] = "filter_panel_toggled"
    open: Optional[bool] = None  # None flips the current value


class FiltersChanged(BaseModel):
    type: Literal["filters_changed"] = "filters_changed"
    filters: FilterState


class PointerEnter(BaseModel):
    type: Literal["pointer_enter"] = "pointer_enter"
    route_id: str

    @field_validator("route_id", mode="before")
    @classmethod
    def _stringify_route_id(cls, v):
        return str(v)


class PointerLeave(BaseModel):
    type: Literal["pointer_leave"] = "pointer_leave"
    route_id: str

    @field_validator("route_id", mode="before")
    @classmethod
    def _stringify_route_id(cls, v):
        return str(v)


class RouteClicked(BaseModel):
    """A shape click or a search result click."""
    type: Literal["route_clicked"] = "route_clicked"
    route_id: str

    @field_validator("route_id", mode="before")
    @classmethod
    def _stringify_route_id(cls, v):
        return str(v)


class DetailDismissed(BaseModel):
    type: Literal["detail_dismissed"] = "detail_dismissed"


ViewerEvent = Annotated[
    Union[
        SearchChanged,
        FilterPanelToggled,
        FiltersChanged,
        PointerEnter,
        PointerLeave,
        RouteClicked,
        DetailDismissed,
    ],
    Field(discriminator="type"),
]


class ViewerEventRequest(BaseModel):
    event: ViewerEvent


# --- API responses ---


class SearchResult(BaseModel):
    route_id: str
    route_long_name: str
    label: str
    record: RouteRecord


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResult]


class RouteDetailResponse(BaseModel):
    route_id: str
    records: list[RouteRecord]


class EligibleRoutesResponse(BaseModel):
    filters: FilterState
    route_ids: list[str]


class MapConfig(BaseModel):
    center: tuple[float, float]
    zoom: int
    scroll_wheel_zoom: bool
    tile_url: str
    attribution: str
    heatmap: list[str]


class ViewerView(BaseModel):
    session_id: str
    state: ViewerState
    layer_key: str
    layer: dict  # GeoJSON FeatureCollection with style/tooltip properties
    search_results: list[SearchResult]
    effects: list[Effect] = Field(default_factory=list)
