from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MetricPoint:
    """
    One geo-tagged measurement sample.

    `raw` keeps the full source record so the renderer (and the scoring code)
    can read any other field off it.
    """

    id: str
    lat: float
    lng: float
    value: float | None = None
    category: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)
