from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence

DEFAULT_COLOR = "#808080"
NO_DATA_COLOR = "#cccccc"
NOT_BEST_COLOR = "#666666"

PCI_MAX = 503
PCI_COLOR_PALETTE: tuple[str, ...] = (
    "#FF6B6B", "#4ECDC4", "#45B7D1", "#FFA07A", "#98D8C8",
    "#F7DC6F", "#BB8FCE", "#85C1E2", "#F8B739", "#52BE80",
    "#EC7063", "#5DADE2", "#F39C12", "#A569BD", "#48C9B0",
    "#E74C3C", "#3498DB", "#E67E22", "#9B59B6", "#1ABC9C",
)

CATEGORY_PALETTE: tuple[str, ...] = (
    "#8B5CF6",
    "#10B981",
    "#F59E0B",
    "#EF4444",
    "#3B82F6",
)


@dataclass(frozen=True)
class ColorBand:
    min: float
    max: float
    color: str


ColorScale = Callable[[Any], str]


def _as_float(v: Any) -> float | None:
    try:
        if v is None or isinstance(v, bool):
            return None
        f = float(v)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _coerce_band(band: Any) -> ColorBand | None:
    if isinstance(band, ColorBand):
        lo, hi, color = band.min, band.max, band.color
    elif isinstance(band, Mapping):
        lo, hi, color = band.get("min"), band.get("max"), band.get("color")
    else:
        lo, hi, color = getattr(band, "min", None), getattr(band, "max", None), getattr(band, "color", None)
    flo = _as_float(lo)
    fhi = _as_float(hi)
    if flo is None or fhi is None or not color:
        return None
    return ColorBand(min=flo, max=fhi, color=str(color))


def compile_color_scale(
    bands: Iterable[Any] | None, *, default: str = DEFAULT_COLOR
) -> ColorScale:
    """
    Compile threshold bands into a value -> color lookup.

    Bands may be `ColorBand`s, dicts or config models with min/max/color. Unusable
    bands are dropped and the rest sorted by `min` once; the first band whose
    inclusive [min, max] holds the value wins.
    """
    scale: tuple[ColorBand, ...] = tuple(
        sorted(
            (b for b in (_coerce_band(raw) for raw in (bands or [])) if b is not None),
            key=lambda b: b.min,
        )
    )

    def color_for(value: Any) -> str:
        v = _as_float(value)
        if v is None:
            return default
        for band in scale:
            if band.min <= v <= band.max:
                return band.color
        return default

    return color_for


def pci_color(value: Any, *, default: str = DEFAULT_COLOR) -> str:
    v = _as_float(value)
    if v is None:
        return default
    pci = math.floor(v)
    if pci < 0 or pci > PCI_MAX:
        return default
    return PCI_COLOR_PALETTE[pci % len(PCI_COLOR_PALETTE)]


def assign_category_colors(
    categories: Iterable[str | None],
    *,
    presets: Mapping[str, str] | None = None,
    palette: Sequence[str] = CATEGORY_PALETTE,
) -> dict[str, str]:
    """
    Build an explicit category -> color map in first-seen order.

    Presets win; every other category takes the first palette color not yet in
    the map, then cycles once the palette is used up. Passing a previous result
    back as `presets` keeps colors stable across calls.
    """
    out: dict[str, str] = dict(presets or {})
    pal = list(palette) or list(CATEGORY_PALETTE)
    used = set(out.values())
    # Running index continues past palette colors already handed out.
    next_idx = sum(1 for c in out.values() if c in pal)
    for cat in categories:
        if not cat or cat in out:
            continue
        free = [c for c in pal if c not in used]
        color = free[0] if free else pal[next_idx % len(pal)]
        out[cat] = color
        used.add(color)
        next_idx += 1
    return out
