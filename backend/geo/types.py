from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, TypeAlias

from geo.aoi import BoundingBox


@dataclass(frozen=True)
class Coordinate:
    lat: float
    lng: float


# Open ring: the closing point is never repeated.
Ring: TypeAlias = tuple[Coordinate, ...]


@dataclass(frozen=True)
class Polygon:
    """
    A parsed polygon with its outer-ring box cached at construction.

    Holes are assumed to lie inside the outer ring; this is not verified.
    """

    id: str
    outer_ring: Ring
    holes: tuple[Ring, ...] = ()
    bbox: BoundingBox | None = None
    props: dict[str, Any] = field(default_factory=dict)
