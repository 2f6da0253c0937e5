from __future__ import annotations

import pytest

from geo.wkt import parse_to_polygons
from layers.types import MetricPoint
from scoring.colors import NO_DATA_COLOR
from scoring.regions import category_breakdown, points_inside, summarize_regions

THRESHOLDS = {
    "rsrp": [
        {"min": -140, "max": -100, "color": "red"},
        {"min": -99.99, "max": -44, "color": "green"},
    ]
}

ZONE = parse_to_polygons(
    "POLYGON((0 0, 10 0, 10 10, 0 10, 0 0), (4 4, 6 4, 6 6, 4 6, 4 4))", base_id="zone"
)[0]
EMPTY_ZONE = parse_to_polygons("POLYGON((50 50, 51 50, 51 51, 50 51, 50 50))", base_id="empty")[0]


def _pt(pid: str, lat: float, lng: float, **raw) -> MetricPoint:
    return MetricPoint(id=pid, lat=lat, lng=lng, value=raw.get("rsrp"), category=raw.get("provider"), raw=raw)


POINTS = [
    _pt("a", 1, 1, rsrp=-110, provider="A", band="n78"),
    _pt("b", 2, 2, rsrp=-80, provider="B", band="n78"),
    _pt("c", 3, 3, rsrp=-90, provider="A"),
    _pt("hole", 5, 5, rsrp=-50, provider="B"),
    _pt("outside", 20, 20, rsrp=-50, provider="B"),
    _pt("novalue", 8, 8, provider="A"),
]


def test_points_inside_excludes_holes_and_outside():
    assert [p.id for p in points_inside(ZONE, POINTS)] == ["a", "b", "c", "novalue"]


def test_mean_summary_and_fill_color():
    (s,) = summarize_regions([ZONE], POINTS, metric="rsrp", thresholds=THRESHOLDS)
    assert s.point_count == 4
    assert s.value == pytest.approx((-110 - 80 - 90) / 3)
    assert s.fill_color == "green"
    assert (s.min_value, s.max_value) == (-110.0, -80.0)


def test_median_summary():
    (s,) = summarize_regions([ZONE], POINTS, metric="rsrp", thresholds=THRESHOLDS, aggregate="median")
    assert s.value == pytest.approx(-90.0)


def test_region_without_values_gets_no_data_color():
    (s,) = summarize_regions([EMPTY_ZONE], POINTS, metric="rsrp", thresholds=THRESHOLDS)
    assert s.point_count == 0
    assert s.value is None
    assert s.fill_color == NO_DATA_COLOR
    assert s.min_value is None and s.max_value is None
    assert s.categories == {}


def test_category_breakdown_dominant_and_unknown():
    inside = points_inside(ZONE, POINTS)
    providers = category_breakdown(inside, "provider", metric="rsrp")
    assert providers is not None
    assert providers.dominant.name == "A"
    assert providers.dominant.count == 3
    assert providers.dominant.percentage == 75.0
    assert providers.dominant.avg_value == pytest.approx(-100.0)

    bands = category_breakdown(inside, "band")
    assert {s.name: s.count for s in bands.shares} == {"n78": 2, "Unknown": 2}
    # Equal counts keep first-seen order.
    assert bands.shares[0].name == "n78"


def test_summary_carries_category_breakdowns():
    (s,) = summarize_regions([ZONE], POINTS, metric="rsrp", thresholds=THRESHOLDS)
    assert set(s.categories) == {"provider", "band", "technology"}
    assert s.categories["technology"].dominant.name == "Unknown"


def test_unknown_aggregate_is_rejected():
    with pytest.raises(ValueError):
        summarize_regions([ZONE], POINTS, metric="rsrp", aggregate="max")  # type: ignore[arg-type]


def test_falsy_category_values_are_kept():
    points = [
        _pt("x", 1, 1, rsrp=-90, band=0),
        _pt("y", 2, 2, rsrp=-90, band=0),
        _pt("z", 3, 3, rsrp=-90, band="  "),
    ]
    b = category_breakdown(points, "band")
    assert {s.name: s.count for s in b.shares} == {"0": 2, "Unknown": 1}
    assert b.dominant.name == "0"
