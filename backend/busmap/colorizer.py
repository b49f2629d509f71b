"""Reliability heatmap: percentile buckets → palette colors, and feature styles."""

from typing import Optional, Sequence

import numpy as np

from busmap.config import (
    BASE_WEIGHT,
    DEFAULT_COLOR,
    HEATMAP,
    HEATMAP_WEIGHT,
    HIGHLIGHT_COLOR,
    HIGHLIGHT_WEIGHT,
)
from busmap.models import FeatureStyle, FilterState, RouteRecord

# 10th, 20th, ... 90th percentile cut points
_PERCENTILES = list(range(10, 100, 10))


def percentile_keys(rankings: Sequence[int]) -> list[float]:
    """Decile cut points of the catalog's rankings (empty catalog → no keys)."""
    if len(rankings) == 0:
        return []
    return np.percentile(np.asarray(rankings, dtype=float), _PERCENTILES).tolist()


def find_percentile_index(ranking: int, keys: Sequence[float]) -> int:
    """Number of cut points strictly below `ranking`, i.e. a bucket in [0, 9]."""
    if len(keys) == 0:
        return 0
    return int(np.searchsorted(np.asarray(keys, dtype=float), ranking, side="left"))


def bucket_color(percentile_index: int) -> str:
    # Buckets pair up: (0,1), (2,3), (4,5), (6,7), then everything else
    return HEATMAP[min(max(percentile_index, 0) // 2, len(HEATMAP) - 1)]


def color_for(record: RouteRecord, keys: Sequence[float]) -> str:
    return bucket_color(find_percentile_index(record.ratio_ranking, keys))


def default_style() -> FeatureStyle:
    return FeatureStyle(color=DEFAULT_COLOR, fillColor=DEFAULT_COLOR, weight=BASE_WEIGHT)


def feature_style(
    record: Optional[RouteRecord],
    filters: FilterState,
    hovered: bool,
    keys: Sequence[float],
    unhovered: bool = False,
) -> FeatureStyle:
    """Style for one rendered shape.

    Hover wins over everything; otherwise the heatmap color when color mode is
    on and the shape has a matching record, else the flat default. Heatmap
    strokes start at HEATMAP_WEIGHT and drop to BASE_WEIGHT once the pointer
    has left the shape.
    """
    if hovered:
        return FeatureStyle(color=HIGHLIGHT_COLOR, fillColor=HIGHLIGHT_COLOR, weight=HIGHLIGHT_WEIGHT)

    if record is None or not filters.color:
        return default_style()

    color = color_for(record, keys)
    weight = BASE_WEIGHT if unhovered else HEATMAP_WEIGHT
    return FeatureStyle(color=color, fillColor=color, weight=weight)
