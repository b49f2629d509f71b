"""Route and shape catalogs loaded from the two static GeoJSON documents.

The route document carries one feature per route/direction/day-type with the
reliability ranking in its properties; the shape document carries the drawn
geometry. Both are keyed by route_id, normalized to a string here so the two
documents join regardless of how each one typed the id.
"""

import json
import logging
import os
from typing import Optional

import httpx
import pandas as pd
from pydantic import ValidationError

from busmap import config
from busmap.colorizer import percentile_keys
from busmap.models import RouteRecord

logger = logging.getLogger("busmap.catalog")

RECORD_COLUMNS = ["route_id", "route_long_name", "direction", "day_type", "ratio_ranking"]


class CatalogError(ValueError):
    """A catalog document could not be turned into records."""


def empty_collection() -> dict:
    return {"type": "FeatureCollection", "features": []}


def load_document(path: str) -> dict:
    """Read a GeoJSON document from disk, or an empty collection if it is missing."""
    if not os.path.exists(path):
        logger.warning(f"Catalog document not found: {path}")
        return empty_collection()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error reading catalog document {path}: {e}")
        return empty_collection()

    logger.info(f"Loaded {len(data.get('features', []))} features from {path}")
    return data


async def fetch_document(url: str, http_client: httpx.AsyncClient) -> dict:
    """Fetch a GeoJSON document over HTTP, or an empty collection on failure."""
    try:
        resp = await http_client.get(url)
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Failed to fetch catalog document {url}: {e}")
        return empty_collection()

    if "features" not in data:
        logger.warning(f"No features found in catalog document from {url}")
        return empty_collection()

    logger.info(f"Fetched {len(data['features'])} features from {url}")
    return data


def parse_route_records(document: dict) -> list[RouteRecord]:
    records = []
    for i, feature in enumerate(document.get("features", [])):
        props = feature.get("properties") or {}
        try:
            records.append(RouteRecord(**{k: props[k] for k in RECORD_COLUMNS if k in props}))
        except ValidationError as e:
            raise CatalogError(f"Route feature {i} is malformed: {e}") from e
    return records


def parse_shape_features(document: dict) -> list[dict]:
    features = []
    for feature in document.get("features", []):
        props = dict(feature.get("properties") or {})
        if "route_id" in props:
            props["route_id"] = str(props["route_id"])
        features.append({**feature, "properties": props})
    return features


def derive_bottom_threshold(rankings: pd.Series, top_threshold: int) -> int:
    """Rank at or above which a route is in the bottom group.

    Mirrors the top group: the last `top_threshold` ranks of the catalog.
    """
    if rankings.empty:
        return top_threshold + 1
    return max(1, int(rankings.max()) - top_threshold + 1)


class RouteCatalog:
    """Immutable route metadata + geometry, joined by route_id."""

    def __init__(
        self,
        records: list[RouteRecord],
        shapes: list[dict],
        top_threshold: int = config.TOP_RANK_THRESHOLD,
        bottom_threshold: Optional[int] = config.BOTTOM_RANK_THRESHOLD,
    ):
        self.records = list(records)
        self.shapes = list(shapes)
        self.records_df = pd.DataFrame(
            [r.model_dump() for r in self.records], columns=RECORD_COLUMNS
        )

        self._by_route: dict[str, list[RouteRecord]] = {}
        for record in self.records:
            self._by_route.setdefault(record.route_id, []).append(record)

        rankings = self.records_df["ratio_ranking"]
        self.top_threshold = top_threshold
        if bottom_threshold is None:
            bottom_threshold = derive_bottom_threshold(rankings, top_threshold)
        self.bottom_threshold = bottom_threshold
        self.percentile_keys = percentile_keys(rankings.tolist())

    @classmethod
    def from_documents(cls, routes_doc: dict, shapes_doc: dict, **kwargs) -> "RouteCatalog":
        catalog = cls(parse_route_records(routes_doc), parse_shape_features(shapes_doc), **kwargs)
        logger.info(
            f"Catalog ready: {len(catalog.records)} records, "
            f"{len(catalog.route_ids())} routes, {len(catalog.shapes)} shapes, "
            f"bottom threshold {catalog.bottom_threshold}"
        )
        return catalog

    def __len__(self) -> int:
        return len(self.records)

    def route_ids(self) -> list[str]:
        return list(self._by_route)

    def records_for_route(self, route_id) -> list[RouteRecord]:
        """All records sharing route_id; empty when the route is unknown."""
        return list(self._by_route.get(str(route_id), []))

    def first_record(self, route_id) -> Optional[RouteRecord]:
        matches = self._by_route.get(str(route_id))
        return matches[0] if matches else None


def load_catalog(
    routes_path: Optional[str] = None,
    shapes_path: Optional[str] = None,
) -> RouteCatalog:
    """Build the catalog from the local documents under DATA_DIR."""
    routes_path = routes_path or os.path.join(config.DATA_DIR, config.ROUTES_FILE)
    shapes_path = shapes_path or os.path.join(config.DATA_DIR, config.SHAPES_FILE)
    return RouteCatalog.from_documents(load_document(routes_path), load_document(shapes_path))


async def fetch_catalog(http_client: Optional[httpx.AsyncClient] = None) -> RouteCatalog:
    """Build the catalog, fetching each document remotely when a URL is configured."""
    if http_client and config.ROUTES_URL:
        routes_doc = await fetch_document(config.ROUTES_URL, http_client)
    else:
        routes_doc = load_document(os.path.join(config.DATA_DIR, config.ROUTES_FILE))

    if http_client and config.SHAPES_URL:
        shapes_doc = await fetch_document(config.SHAPES_URL, http_client)
    else:
        shapes_doc = load_document(os.path.join(config.DATA_DIR, config.SHAPES_FILE))

    return RouteCatalog.from_documents(routes_doc, shapes_doc)
