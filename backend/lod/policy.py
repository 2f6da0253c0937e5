from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Sequence

from geo.aoi import Viewport
from geo.bbox import intersects
from geo.ops import point_in_any_polygon
from geo.types import Polygon
from layers.types import MetricPoint
from lod.config import RenderBudgets
from lod.points import cap_items, points_in_viewport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewportSlice:
    points: list[MetricPoint]
    polygons: list[Polygon]
    stats: dict[str, Any] = field(default_factory=dict)


def visible_polygons(polygons: Sequence[Polygon], viewport: Viewport) -> list[Polygon]:
    """
    Polygons whose cached bbox intersects the viewport.

    A viewport crossing the antimeridian is tested as its two non-wrapping halves.
    """
    boxes = viewport.boxes()
    return [p for p in polygons if any(intersects(p.bbox, b) for b in boxes)]


def filter_to_viewport(
    points: Sequence[MetricPoint],
    polygons: Sequence[Polygon],
    viewport: Viewport | None,
    point_cap: int | None = None,
    polygon_cap: int | None = None,
    restrict_to_inside_polygons: bool = False,
    *,
    budgets: RenderBudgets | None = None,
) -> ViewportSlice:
    """
    Cap the geometry handed to the renderer to the viewport and hard count ceilings.

    Important: callers should only invoke this once the map settles (idle/debounced);
    it is a pure pass over its inputs.
    """
    t0 = time.perf_counter()
    b = budgets or RenderBudgets.from_env()
    p_cap = b.max_points_rendered if point_cap is None else max(0, int(point_cap))
    g_cap = b.max_polygons_rendered if polygon_cap is None else max(0, int(polygon_cap))

    stats: dict[str, Any] = {
        "pointsIn": len(points),
        "polygonsIn": len(polygons),
        "viewportApplied": viewport is not None,
    }

    if viewport is None:
        # Unknown viewport: hand back the full sets.
        stats.update(
            {
                "pointsVisible": len(points),
                "pointsOut": len(points),
                "polygonsVisible": len(polygons),
                "polygonsOut": len(polygons),
                "pointCapReached": False,
                "polygonCapReached": False,
                "insideOnlyApplied": False,
                "crossesAntimeridian": False,
                "totalMs": round((time.perf_counter() - t0) * 1000.0, 2),
            }
        )
        return ViewportSlice(points=list(points), polygons=list(polygons), stats=stats)

    polys = visible_polygons(polygons, viewport)
    polys_out = cap_items(polys, g_cap)

    pts = points_in_viewport(points, viewport)
    pts_visible = len(pts)

    inside_only = bool(restrict_to_inside_polygons and polys_out)
    if inside_only:
        pts = [p for p in pts if point_in_any_polygon(p.lat, p.lng, polys_out)]

    pts_out = cap_items(pts, p_cap)

    stats.update(
        {
            "pointsVisible": pts_visible,
            "pointsOut": len(pts_out),
            "polygonsVisible": len(polys),
            "polygonsOut": len(polys_out),
            "pointCapReached": len(pts) > p_cap,
            "polygonCapReached": len(polys) > g_cap,
            "insideOnlyApplied": inside_only,
            "crossesAntimeridian": viewport.crosses_antimeridian,
            "totalMs": round((time.perf_counter() - t0) * 1000.0, 2),
        }
    )
    logger.debug(
        "Viewport slice: %d/%d points, %d/%d polygons",
        len(pts_out),
        len(points),
        len(polys_out),
        len(polygons),
    )
    return ViewportSlice(points=pts_out, polygons=polys_out, stats=stats)
