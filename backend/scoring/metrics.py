from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from scoring.colors import DEFAULT_COLOR, compile_color_scale, pci_color


@dataclass(frozen=True)
class MetricConfig:
    field: str
    threshold_key: str
    label: str
    unit: str


_METRICS: dict[str, MetricConfig] = {
    "rsrp": MetricConfig(field="rsrp", threshold_key="rsrp", label="RSRP", unit="dBm"),
    "rsrq": MetricConfig(field="rsrq", threshold_key="rsrq", label="RSRQ", unit="dB"),
    "sinr": MetricConfig(field="sinr", threshold_key="sinr", label="SINR", unit="dB"),
    "dl-throughput": MetricConfig(field="dl_tpt", threshold_key="dl_thpt", label="DL Throughput", unit="Mbps"),
    "ul-throughput": MetricConfig(field="ul_tpt", threshold_key="ul_thpt", label="UL Throughput", unit="Mbps"),
    "mos": MetricConfig(field="mos", threshold_key="mos", label="MOS", unit=""),
    "lte-bler": MetricConfig(field="bler", threshold_key="lte_bler", label="LTE BLER", unit="%"),
    "pci": MetricConfig(field="pci", threshold_key="pci", label="PCI", unit=""),
}

_ALIASES: dict[str, str] = {
    "dl_tpt": "dl-throughput",
    "dl_thpt": "dl-throughput",
    "ul_tpt": "ul-throughput",
    "ul_thpt": "ul-throughput",
    "lte_bler": "lte-bler",
    "bler": "lte-bler",
}


def resolve_metric_config(key: str | None) -> MetricConfig:
    k = str(key or "").strip().lower()
    k = _ALIASES.get(k, k)
    return _METRICS.get(k) or _METRICS["rsrp"]


def metric_value(raw: Mapping[str, Any] | None, metric: str) -> float | None:
    """
    Numeric value of `metric` in a raw record, or None when missing/unusable.
    """
    if not raw:
        return None
    k = str(metric or "").strip().lower()
    cfg = _METRICS.get(_ALIASES.get(k, k))
    # Unknown metrics are read verbatim instead of falling back to rsrp.
    v = raw.get(cfg.field) if cfg is not None else None
    if v is None:
        v = raw.get(metric)
    try:
        if v is None or isinstance(v, bool):
            return None
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def color_for_metric(
    metric: str,
    value: Any,
    thresholds: Mapping[str, Any] | None,
    *,
    default: str = DEFAULT_COLOR,
) -> str:
    """
    One-off color lookup. Compile the scale once with `compile_color_scale` when
    coloring many values.
    """
    if str(metric or "").strip().lower() == "pci":
        return pci_color(value, default=default)
    cfg = resolve_metric_config(metric)
    bands = (thresholds or {}).get(cfg.threshold_key) or []
    return compile_color_scale(bands, default=default)(value)
