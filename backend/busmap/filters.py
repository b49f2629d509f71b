from typing import Iterable, Optional

import pandas as pd

from busmap.catalog import derive_bottom_threshold
from busmap.config import SEARCH_DAY_TYPE, SEARCH_EXCLUDED_DIRECTIONS, TOP_RANK_THRESHOLD
from busmap.models import FilterState, RouteRecord


def eligible_route_ids(
    records: pd.DataFrame,
    filters: FilterState,
    top_threshold: int = TOP_RANK_THRESHOLD,
    bottom_threshold: Optional[int] = None,
) -> set[str]:
    """Route ids currently eligible for display under the reliability filter.

    No reliability flag set means every route. With one flag set only that
    group qualifies; with both, a route qualifies if it is in either group.
    A route is eligible when any of its direction/day-type rows qualifies.
    """
    if records.empty:
        return set()

    reliability = filters.reliability
    if not reliability.top10 and not reliability.bottom10:
        return set(records["route_id"].astype(str))

    if bottom_threshold is None:
        bottom_threshold = derive_bottom_threshold(records["ratio_ranking"], top_threshold)

    mask = pd.Series(False, index=records.index)
    if reliability.top10:
        mask |= records["ratio_ranking"] <= top_threshold
    if reliability.bottom10:
        mask |= records["ratio_ranking"] >= bottom_threshold

    return set(records.loc[mask, "route_id"].astype(str))


def matches(record: RouteRecord, search_term: str) -> bool:
    """Search predicate: id/name substring match, weekday, one direction per route."""
    haystack = str(record.route_id) + record.route_long_name.lower()
    if search_term.lower() not in haystack:
        return False
    if any(d in record.direction for d in SEARCH_EXCLUDED_DIRECTIONS):
        return False
    return record.day_type == SEARCH_DAY_TYPE


def search_records(records: Iterable[RouteRecord], search_term: str) -> list[RouteRecord]:
    return [r for r in records if matches(r, search_term)]


def visible_shapes(shapes: Iterable[dict], eligible: set[str]) -> list[dict]:
    """Shape features whose route_id is in the eligible set."""
    return [
        s for s in shapes
        if str((s.get("properties") or {}).get("route_id")) in eligible
    ]
