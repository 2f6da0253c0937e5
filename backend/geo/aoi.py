from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned WGS84 box in lat/lng degrees.

    Convention used throughout this repo:
    - north >= south
    - west/east are plain min/max longitudes; polygon boxes never wrap the antimeridian.
    """

    north: float
    south: float
    east: float
    west: float


@dataclass(frozen=True)
class Viewport:
    """
    Visible map region reported by the map widget once panning/zooming settles.

    `east < west` means the viewport crosses the antimeridian.
    """

    north: float
    south: float
    east: float
    west: float
    zoom: float = 0.0

    @property
    def crosses_antimeridian(self) -> bool:
        return self.east < self.west

    def contains(self, lat: float, lng: float) -> bool:
        if not (self.south <= lat <= self.north):
            return False
        if self.crosses_antimeridian:
            return lng >= self.west or lng <= self.east
        return self.west <= lng <= self.east

    def boxes(self) -> list[BoundingBox]:
        """
        Non-wrapping boxes covering the viewport (two halves when crossing the antimeridian).
        """
        if not self.crosses_antimeridian:
            return [
                BoundingBox(
                    north=self.north, south=self.south, east=self.east, west=self.west
                )
            ]
        return [
            BoundingBox(north=self.north, south=self.south, east=180.0, west=self.west),
            BoundingBox(north=self.north, south=self.south, east=self.east, west=-180.0),
        ]

    @classmethod
    def from_bounds(cls, bounds: dict[str, float] | None) -> "Viewport | None":
        """
        Build from a `{north, south, east, west, zoom}` dict as sent by the map widget.
        """
        if not bounds:
            return None
        try:
            return cls(
                north=float(bounds["north"]),
                south=float(bounds["south"]),
                east=float(bounds["east"]),
                west=float(bounds["west"]),
                zoom=float(bounds.get("zoom") or 0.0),
            )
        except (KeyError, TypeError, ValueError):
            return None
