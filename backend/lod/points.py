from __future__ import annotations

import math
from typing import Sequence, TypeVar

from geo.aoi import Viewport
from layers.types import MetricPoint

T = TypeVar("T")

GridKey = tuple[int, int]


def has_coords(p: MetricPoint) -> bool:
    return math.isfinite(p.lat) and math.isfinite(p.lng)


def points_in_viewport(points: Sequence[MetricPoint], viewport: Viewport) -> list[MetricPoint]:
    return [p for p in points if has_coords(p) and viewport.contains(p.lat, p.lng)]


def cap_items(items: Sequence[T], max_items: int) -> list[T]:
    """
    Truncate to `max_items`, preserving input order.
    """
    limit = max(0, int(max_items))
    if len(items) <= limit:
        return list(items)
    return list(items[:limit])


def grid_key(lat: float, lng: float, cell_size: float) -> GridKey:
    """
    Snap to the nearest grid line (round half up), in whole cells.

    cell_size=0.0001 degrees is ~11m in latitude.
    """
    return (
        int(math.floor(lat / cell_size + 0.5)),
        int(math.floor(lng / cell_size + 0.5)),
    )
