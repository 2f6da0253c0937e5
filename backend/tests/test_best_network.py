from __future__ import annotations

import math

import pytest

from layers.types import MetricPoint
from lod.points import grid_key
from scoring.best_network import compute_best_network, pick_cell_winner
from scoring.colors import NOT_BEST_COLOR
from scoring.normalize import (
    DEFAULT_METRIC_RANGES,
    DEFAULT_WEIGHTS,
    MetricRange,
    composite_score,
    normalize_metric,
)


def _pt(pid: str, category: str | None, lat: float = 50.08, lng: float = 14.42, **metrics) -> MetricPoint:
    return MetricPoint(id=pid, lat=lat, lng=lng, value=metrics.get("rsrp"), category=category, raw=dict(metrics))


def test_normalize_clamps_and_inverts():
    rng = MetricRange(min=-140, max=-44)
    assert normalize_metric(-44, rng) == 100.0
    assert normalize_metric(-140, rng) == 0.0
    assert normalize_metric(-20, rng) == 100.0
    assert normalize_metric(-92, rng) == pytest.approx(50.0)
    assert normalize_metric(-92, MetricRange(min=-140, max=-44, higher_is_better=False)) == pytest.approx(50.0)
    assert normalize_metric(-140, MetricRange(min=-140, max=-44, higher_is_better=False)) == 100.0
    assert normalize_metric(None, rng) is None
    assert normalize_metric(math.nan, rng) is None
    assert normalize_metric("bad", rng) is None


def test_missing_metrics_do_not_drag_the_score_down():
    score = composite_score({"rsrp": -44, "rsrq": None}, DEFAULT_WEIGHTS, DEFAULT_METRIC_RANGES)
    assert score == pytest.approx(100.0)


def test_composite_is_weighted_average_of_present_metrics():
    raw = {"rsrp": -44, "rsrq": -20, "sinr": 30}
    # (100*0.4 + 0*0.3 + 100*0.3) / 1.0
    assert composite_score(raw, DEFAULT_WEIGHTS) == pytest.approx(70.0)
    # Weights need not sum to 100.
    assert composite_score(raw, {"rsrp": 1, "rsrq": 1}) == pytest.approx(50.0)


def test_no_usable_metric_means_no_score():
    assert composite_score({"rsrp": None, "sinr": "x"}, DEFAULT_WEIGHTS) is None
    assert composite_score({"rsrp": -50}, {"rsrp": 0}) is None
    assert composite_score({}, DEFAULT_WEIGHTS) is None


def test_grid_key_rounds_to_nearest_line():
    assert grid_key(50.00004, 14.00006, 0.0001) == (500000, 140001)
    assert grid_key(0.00006, -0.00004, 0.0001) == (1, 0)


def test_higher_average_wins_whole_cell():
    points = [
        _pt("a1", "A", rsrp=-100),
        _pt("b1", "B", rsrp=-60),
        _pt("a2", "A", rsrp=-90),
        _pt("b2", "B", rsrp=-70),
    ]
    res = compute_best_network(points, DEFAULT_WEIGHTS, category_colors={"B": "#0000FF"})
    flags = {sp.point.id: sp.is_best for sp in res.annotated_points}
    assert flags == {"a1": False, "b1": True, "a2": False, "b2": True}
    colors = {sp.point.id: sp.color for sp in res.annotated_points}
    assert colors["b1"] == "#0000FF"
    assert colors["a1"] == NOT_BEST_COLOR

    assert set(res.per_category_stats) == {"B"}
    stats = res.per_category_stats["B"]
    assert stats.locations == 1
    assert stats.percentage == pytest.approx(100.0)


def test_rsrp_only_point_scores_its_normalized_value():
    res = compute_best_network([_pt("p", "A", rsrp=-44)], DEFAULT_WEIGHTS)
    sp = res.annotated_points[0]
    assert sp.score == pytest.approx(100.0)
    assert sp.is_best is True


def test_tie_keeps_first_encountered_category():
    points = [_pt("x1", "X", rsrp=-80), _pt("y1", "Y", rsrp=-80)]
    res = compute_best_network(points, DEFAULT_WEIGHTS)
    assert [sp.is_best for sp in res.annotated_points] == [True, False]

    reversed_res = compute_best_network(list(reversed(points)), DEFAULT_WEIGHTS)
    assert [sp.point.id for sp in reversed_res.annotated_points if sp.is_best] == ["y1"]


def test_cells_are_independent():
    near = dict(lat=50.0, lng=14.0)
    far = dict(lat=50.01, lng=14.01)
    points = [
        _pt("a-near", "A", rsrp=-60, **near),
        _pt("b-near", "B", rsrp=-100, **near),
        _pt("a-far", "A", rsrp=-110, **far),
        _pt("b-far", "B", rsrp=-65, **far),
    ]
    res = compute_best_network(points, DEFAULT_WEIGHTS)
    best = [sp.point.id for sp in res.annotated_points if sp.is_best]
    assert best == ["a-near", "b-far"]
    assert res.per_category_stats["A"].percentage == pytest.approx(50.0)
    assert len(res.winners) == 2


def test_unscored_and_uncategorized_points_are_annotated_but_never_best():
    points = [
        _pt("scored", "A", rsrp=-80),
        _pt("unscored", "B", rsrp=None),
        _pt("nocat", None, rsrp=-50),
        _pt("nocoords", "C", lat=math.nan, rsrp=-50),
    ]
    res = compute_best_network(points, DEFAULT_WEIGHTS)
    assert [sp.point.id for sp in res.annotated_points] == ["scored", "unscored", "nocat", "nocoords"]
    assert [sp.is_best for sp in res.annotated_points] == [True, False, False, False]
    assert res.annotated_points[1].score is None
    assert res.annotated_points[3].cell is None


def test_palette_assignment_is_deterministic_and_returned():
    points = [_pt("1", "Zeta", rsrp=-80), _pt("2", "Alpha", rsrp=-80, lat=51.0)]
    res = compute_best_network(points, DEFAULT_WEIGHTS, palette=["c0", "c1"])
    assert res.category_colors == {"Zeta": "c0", "Alpha": "c1"}
    assert [sp.color for sp in res.annotated_points] == ["c0", "c1"]

    # Feeding the map back keeps colors stable even when order changes.
    again = compute_best_network(list(reversed(points)), DEFAULT_WEIGHTS, category_colors=res.category_colors)
    assert again.category_colors == res.category_colors


def test_resupplied_colors_give_new_categories_a_fresh_color():
    first = compute_best_network([_pt("1", "A", rsrp=-80, lat=50.0)], DEFAULT_WEIGHTS)
    second = compute_best_network(
        [_pt("1", "A", rsrp=-80, lat=50.0), _pt("2", "B", rsrp=-80, lat=51.0)],
        DEFAULT_WEIGHTS,
        category_colors=first.category_colors,
    )
    assert second.category_colors["A"] == first.category_colors["A"]
    assert second.category_colors["B"] != second.category_colors["A"]
    assert [sp.color for sp in second.annotated_points] == [
        second.category_colors["A"],
        second.category_colors["B"],
    ]


def test_non_finite_cell_size_is_rejected():
    points = [_pt("1", "A", rsrp=-80)]
    for bad in (math.nan, math.inf, 0.0, -0.0001):
        with pytest.raises(ValueError):
            compute_best_network(points, DEFAULT_WEIGHTS, cell_size=bad)


def test_pick_cell_winner_requires_strictly_higher_average():
    w = pick_cell_winner({"A": [50.0, 70.0], "B": [60.0], "C": []})
    assert w is not None
    assert w.category == "A"
    assert pick_cell_winner({}) is None


def test_invalid_cell_size_is_rejected():
    with pytest.raises(ValueError):
        compute_best_network([], DEFAULT_WEIGHTS, cell_size=0)
