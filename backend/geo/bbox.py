from __future__ import annotations

import math
from typing import Iterable

from geo.aoi import BoundingBox
from geo.types import Coordinate


def compute_bounding_box(ring: Iterable[Coordinate]) -> BoundingBox | None:
    north = -math.inf
    south = math.inf
    east = -math.inf
    west = math.inf
    for c in ring:
        if not (math.isfinite(c.lat) and math.isfinite(c.lng)):
            continue
        north = max(north, c.lat)
        south = min(south, c.lat)
        east = max(east, c.lng)
        west = min(west, c.lng)
    if north == -math.inf:
        return None
    return BoundingBox(north=north, south=south, east=east, west=west)


def intersects(a: BoundingBox | None, b: BoundingBox | None) -> bool:
    # Plain rectangle overlap: a box with east < west is not treated as wrapping.
    if a is None or b is None:
        return False
    return not (
        a.west > b.east or a.east < b.west or a.south > b.north or a.north < b.south
    )


def contains_point(box: BoundingBox | None, lat: float, lng: float) -> bool:
    if box is None:
        return False
    return box.south <= lat <= box.north and box.west <= lng <= box.east
