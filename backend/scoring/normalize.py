from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class MetricRange:
    min: float
    max: float
    higher_is_better: bool = True


DEFAULT_METRIC_RANGES: dict[str, MetricRange] = {
    "rsrp": MetricRange(min=-140.0, max=-44.0),
    "rsrq": MetricRange(min=-20.0, max=-3.0),
    "sinr": MetricRange(min=-10.0, max=30.0),
}

DEFAULT_WEIGHTS: dict[str, float] = {"rsrp": 40.0, "rsrq": 30.0, "sinr": 30.0}


def normalize_metric(value: Any, rng: MetricRange | None) -> float | None:
    """
    Rescale to [0, 100] (clamped); None when the value is missing or not a number.
    """
    if rng is None or value is None or isinstance(value, bool):
        return None
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(v) or rng.max == rng.min:
        return None
    n = (v - rng.min) / (rng.max - rng.min) * 100.0
    n = max(0.0, min(100.0, n))
    return n if rng.higher_is_better else 100.0 - n


def composite_score(
    raw: Mapping[str, Any] | None,
    weights: Mapping[str, float],
    ranges: Mapping[str, MetricRange] | None = None,
) -> float | None:
    """
    Weighted average of the normalized metrics actually present in `raw`.

    A missing metric drops out of both numerator and denominator instead of
    counting as zero.
    """
    if not raw:
        return None
    rngs = DEFAULT_METRIC_RANGES if ranges is None else ranges
    weighted_sum = 0.0
    total_weight = 0.0
    for metric, pct in weights.items():
        n = normalize_metric(raw.get(metric), rngs.get(metric))
        if n is None:
            continue
        try:
            w = float(pct) / 100.0
        except (TypeError, ValueError):
            continue
        if not math.isfinite(w) or w <= 0.0:
            continue
        weighted_sum += n * w
        total_weight += w
    if total_weight <= 0.0:
        return None
    return weighted_sum / total_weight
