from __future__ import annotations

import os
from dataclasses import dataclass

_DEFAULT_MAX_POINTS = 5_000
_DEFAULT_MAX_POLYGONS = 800


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if raw:
        try:
            return max(0, int(raw))
        except ValueError:
            pass
    return default


def default_max_points() -> int:
    return _env_int("SIGNALMAP_MAX_POINTS", _DEFAULT_MAX_POINTS)


def default_max_polygons() -> int:
    return _env_int("SIGNALMAP_MAX_POLYGONS", _DEFAULT_MAX_POLYGONS)


@dataclass(frozen=True)
class RenderBudgets:
    """
    Hard ceilings on what is ever handed to the renderer.
    """

    max_points_rendered: int = _DEFAULT_MAX_POINTS
    max_polygons_rendered: int = _DEFAULT_MAX_POLYGONS

    @classmethod
    def from_env(cls) -> "RenderBudgets":
        return cls(
            max_points_rendered=default_max_points(),
            max_polygons_rendered=default_max_polygons(),
        )
