from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Sequence

from geo.bbox import contains_point
from geo.ops import point_in_polygon_with_holes
from geo.types import Polygon
from layers.types import MetricPoint
from lod.points import has_coords
from scoring.colors import NO_DATA_COLOR, compile_color_scale, pci_color
from scoring.metrics import metric_value, resolve_metric_config

Aggregate = Literal["mean", "median"]


@dataclass(frozen=True)
class CategoryShare:
    name: str
    count: int
    percentage: float
    avg_value: float | None


@dataclass(frozen=True)
class CategoryBreakdown:
    shares: list[CategoryShare]
    total: int

    @property
    def dominant(self) -> CategoryShare | None:
        return self.shares[0] if self.shares else None


@dataclass(frozen=True)
class RegionSummary:
    polygon: Polygon
    point_count: int
    value: float | None
    fill_color: str
    categories: dict[str, CategoryBreakdown] = field(default_factory=dict)
    min_value: float | None = None
    max_value: float | None = None


def points_inside(polygon: Polygon, points: Sequence[MetricPoint]) -> list[MetricPoint]:
    return [
        p
        for p in points
        if has_coords(p)
        and contains_point(polygon.bbox, p.lat, p.lng)
        and point_in_polygon_with_holes(p.lat, p.lng, polygon)
    ]


def category_breakdown(
    points: Sequence[MetricPoint], field_name: str, *, metric: str | None = None
) -> CategoryBreakdown | None:
    if not points:
        return None
    grouped: dict[str, tuple[int, list[float]]] = {}
    for p in points:
        raw = p.raw.get(field_name)
        # Only a missing or blank value is "Unknown"; 0 is a real category.
        key = (str(raw).strip() if raw is not None else "") or "Unknown"
        count, values = grouped.get(key, (0, []))
        v = metric_value(p.raw, metric) if metric else None
        if v is not None:
            values.append(v)
        grouped[key] = (count + 1, values)

    shares = [
        CategoryShare(
            name=name,
            count=count,
            percentage=round(count / len(points) * 100.0, 1),
            avg_value=(sum(values) / len(values)) if values else None,
        )
        for name, (count, values) in grouped.items()
    ]
    # Stable: equal counts keep first-seen order.
    shares.sort(key=lambda s: s.count, reverse=True)
    return CategoryBreakdown(shares=shares, total=len(points))


def summarize_regions(
    polygons: Sequence[Polygon],
    points: Sequence[MetricPoint],
    *,
    metric: str,
    thresholds: Mapping[str, Any] | None = None,
    aggregate: Aggregate = "mean",
    category_fields: Sequence[str] = ("provider", "band", "technology"),
) -> list[RegionSummary]:
    """
    Per-polygon rollup of the points falling inside it (holes excluded).

    The fill color comes from the metric's threshold bands applied to the mean
    (or median) value; regions without any numeric value get NO_DATA_COLOR.
    """
    if aggregate not in ("mean", "median"):
        raise ValueError(f"Unknown aggregate: {aggregate}")

    cfg = resolve_metric_config(metric)
    is_pci = str(metric or "").strip().lower() == "pci"
    scale = compile_color_scale((thresholds or {}).get(cfg.threshold_key) or [])

    out: list[RegionSummary] = []
    for poly in polygons:
        inside = points_inside(poly, points)
        values = [v for v in (metric_value(p.raw, metric) for p in inside) if v is not None]

        value: float | None = None
        if values:
            value = statistics.fmean(values) if aggregate == "mean" else statistics.median(values)

        if value is None:
            color = NO_DATA_COLOR
        elif is_pci:
            color = pci_color(value)
        else:
            color = scale(value)

        cats: dict[str, CategoryBreakdown] = {}
        for f in category_fields:
            b = category_breakdown(inside, f, metric=metric)
            if b is not None:
                cats[f] = b

        out.append(
            RegionSummary(
                polygon=poly,
                point_count=len(inside),
                value=value,
                fill_color=color,
                categories=cats,
                min_value=min(values) if values else None,
                max_value=max(values) if values else None,
            )
        )
    return out
