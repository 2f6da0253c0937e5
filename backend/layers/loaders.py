from __future__ import annotations

import logging
import math
from typing import Any, Iterable

from geo.types import Polygon
from geo.wkt import parse_to_polygons
from layers.types import MetricPoint
from scoring.metrics import metric_value

logger = logging.getLogger(__name__)

_LAT_KEYS = ("lat", "Lat", "latitude", "Latitude", "LAT")
_LNG_KEYS = ("lon", "lng", "Lng", "longitude", "Longitude", "LON", "long", "Long")
_WKT_KEYS = ("wkt", "Wkt", "WKT", "geometry", "Geometry")
_ID_KEYS = ("id", "Id", "ID")
_NAME_KEYS = ("name", "Name", "project_name")


def _first(record: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for k in keys:
        v = record.get(k)
        if v is not None:
            return v
    return None


def _as_float(v: Any) -> float | None:
    try:
        if v is None or isinstance(v, bool):
            return None
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def load_metric_points(
    records: Iterable[dict[str, Any]],
    *,
    metric: str = "rsrp",
    category_field: str = "provider",
) -> list[MetricPoint]:
    """
    Turn raw measurement records into `MetricPoint`s.

    Records without usable coordinates (missing, non-numeric, non-finite or out of
    range) are skipped. `value` is the record's `metric` field (None when unusable).
    """
    out: list[MetricPoint] = []
    skipped = 0
    for i, rec in enumerate(records):
        if not isinstance(rec, dict):
            skipped += 1
            continue
        lat = _as_float(_first(rec, _LAT_KEYS))
        lng = _as_float(_first(rec, _LNG_KEYS))
        if lat is None or lng is None or abs(lat) > 90.0 or abs(lng) > 180.0:
            skipped += 1
            continue

        rid = _first(rec, _ID_KEYS)
        category = rec.get(category_field)
        out.append(
            MetricPoint(
                id=str(rid) if rid is not None else f"log-{i}",
                lat=lat,
                lng=lng,
                value=metric_value(rec, metric),
                category=str(category).strip() if category not in (None, "") else None,
                raw=rec,
            )
        )

    if skipped:
        logger.debug("Skipped %d record(s) without usable coordinates", skipped)
    return out


def load_region_polygons(
    items: Iterable[dict[str, Any]], *, source: str | None = None
) -> list[Polygon]:
    """
    Parse polygon records (`{id, name, wkt}`-ish) into a flat polygon set.

    Multi-geometries are flattened; every entry gets `"{source}-{item_id}-{k}"`.
    """
    out: list[Polygon] = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        wkt = _first(item, _WKT_KEYS)
        if not wkt:
            logger.debug("Polygon record %s has no geometry", idx)
            continue

        item_id = _first(item, _ID_KEYS)
        base = str(item_id) if item_id is not None else str(idx)
        if source:
            base = f"{source}-{base}"

        props: dict[str, Any] = {
            "itemId": item_id if item_id is not None else idx,
            "name": _first(item, _NAME_KEYS) or f"Polygon {item_id if item_id is not None else idx}",
        }
        if source:
            props["source"] = source

        polys = parse_to_polygons(wkt, base_id=base, props=props)
        if not polys:
            logger.debug("Polygon record %s produced no valid rings", base)
        out.extend(polys)
    return out
