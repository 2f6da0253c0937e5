from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from layers.types import MetricPoint
from lod.points import GridKey, grid_key, has_coords
from scoring.colors import CATEGORY_PALETTE, NOT_BEST_COLOR, assign_category_colors
from scoring.normalize import DEFAULT_METRIC_RANGES, MetricRange, composite_score

logger = logging.getLogger(__name__)

DEFAULT_CELL_SIZE = 0.0001


@dataclass(frozen=True)
class ScoredPoint:
    point: MetricPoint
    score: float | None
    cell: GridKey | None
    is_best: bool
    color: str


@dataclass(frozen=True)
class CellWinner:
    category: str
    avg_score: float


@dataclass(frozen=True)
class CategoryStats:
    locations: int
    percentage: float
    avg_score: float


@dataclass(frozen=True)
class BestNetworkResult:
    annotated_points: list[ScoredPoint]
    per_category_stats: dict[str, CategoryStats]
    # Pass back as `category_colors` to keep colors stable across calls.
    category_colors: dict[str, str]
    winners: dict[GridKey, CellWinner] = field(default_factory=dict)
    stats: dict[str, Any] = field(default_factory=dict)


def pick_cell_winner(scores_by_category: Mapping[str, Sequence[float]]) -> CellWinner | None:
    """
    Category with the strictly highest average score.

    Ties keep whichever category came first in the mapping's (insertion) order.
    """
    best: CellWinner | None = None
    for category, scores in scores_by_category.items():
        if not scores:
            continue
        avg = sum(scores) / len(scores)
        if best is None or avg > best.avg_score:
            best = CellWinner(category=category, avg_score=avg)
    return best


def compute_best_network(
    points: Sequence[MetricPoint],
    weights: Mapping[str, float],
    *,
    cell_size: float = DEFAULT_CELL_SIZE,
    metric_ranges: Mapping[str, MetricRange] | None = None,
    category_colors: Mapping[str, str] | None = None,
    palette: Sequence[str] | None = None,
    not_best_color: str = NOT_BEST_COLOR,
) -> BestNetworkResult:
    """
    Decide, per small grid cell, which category (operator) has the best composite score.

    Metric values are read from each point's raw record. Every input point comes
    back annotated, in input order.
    """
    t0 = time.perf_counter()
    if not math.isfinite(cell_size) or cell_size <= 0:
        raise ValueError(f"cell_size must be positive, got {cell_size}")
    ranges = DEFAULT_METRIC_RANGES if metric_ranges is None else metric_ranges

    colors = assign_category_colors(
        (p.category for p in points),
        presets=category_colors,
        palette=palette or CATEGORY_PALETTE,
    )

    scores: list[float | None] = []
    cells: list[GridKey | None] = []
    # cell -> category -> scores, both in first-seen order
    by_cell: dict[GridKey, dict[str, list[float]]] = {}
    for p in points:
        score = composite_score(p.raw, weights, ranges)
        cell = grid_key(p.lat, p.lng, cell_size) if has_coords(p) else None
        scores.append(score)
        cells.append(cell)
        if cell is None or not p.category:
            continue
        bucket = by_cell.setdefault(cell, {})
        if score is None:
            continue
        bucket.setdefault(p.category, []).append(score)

    winners: dict[GridKey, CellWinner] = {}
    for cell, by_category in by_cell.items():
        w = pick_cell_winner(by_category)
        if w is not None:
            winners[cell] = w

    annotated: list[ScoredPoint] = []
    for p, score, cell in zip(points, scores, cells):
        w = winners.get(cell) if cell is not None else None
        is_best = bool(w is not None and p.category == w.category)
        annotated.append(
            ScoredPoint(
                point=p,
                score=score,
                cell=cell,
                is_best=is_best,
                color=colors.get(p.category or "", not_best_color) if is_best else not_best_color,
            )
        )

    per_category = category_stats(winners)
    stats = {
        "pointsIn": len(points),
        "pointsScored": sum(1 for s in scores if s is not None),
        "cells": len(by_cell),
        "cellsWithWinner": len(winners),
        "totalMs": round((time.perf_counter() - t0) * 1000.0, 2),
    }
    logger.debug("Best network: %s", stats)
    return BestNetworkResult(
        annotated_points=annotated,
        per_category_stats=per_category,
        category_colors=colors,
        winners=winners,
        stats=stats,
    )


def category_stats(winners: Mapping[GridKey, CellWinner]) -> dict[str, CategoryStats]:
    total = len(winners)
    won: dict[str, list[float]] = {}
    for w in winners.values():
        won.setdefault(w.category, []).append(w.avg_score)
    return {
        category: CategoryStats(
            locations=len(s),
            percentage=(len(s) / total) * 100.0 if total else 0.0,
            avg_score=sum(s) / len(s),
        )
        for category, s in won.items()
    }
