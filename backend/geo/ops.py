from __future__ import annotations

from typing import Iterable, Sequence

from geo.bbox import contains_point
from geo.types import Coordinate, Polygon


def point_in_ring(lat: float, lng: float, ring: Sequence[Coordinate]) -> bool:
    """
    Even-odd ray casting (ray towards +lng). Boundary points fall wherever the
    crossing test puts them.
    """
    inside = False
    n = len(ring)
    if n < 3:
        return False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i].lng, ring[i].lat
        xj, yj = ring[j].lng, ring[j].lat
        if (yi > lat) != (yj > lat):
            # yj != yi here, so the division is safe.
            x_cross = (xj - xi) * (lat - yi) / (yj - yi) + xi
            if lng < x_cross:
                inside = not inside
        j = i
    return inside


def point_in_polygon_with_holes(lat: float, lng: float, polygon: Polygon) -> bool:
    if not point_in_ring(lat, lng, polygon.outer_ring):
        return False
    for hole in polygon.holes:
        if point_in_ring(lat, lng, hole):
            return False
    return True


def point_in_any_polygon(lat: float, lng: float, polygons: Iterable[Polygon]) -> bool:
    for poly in polygons:
        if poly.bbox is None or not contains_point(poly.bbox, lat, lng):
            continue
        if point_in_polygon_with_holes(lat, lng, poly):
            return True
    return False
