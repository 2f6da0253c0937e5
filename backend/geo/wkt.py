from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Union

from geo.bbox import compute_bounding_box
from geo.types import Coordinate, Polygon, Ring

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[(),;]|[^\s(),;]+")
_CLOSE_EPS = 1e-12
_DIMENSION_TAGS = {"Z", "M", "ZM"}


class WktParseError(ValueError):
    """Raised for a single malformed ring/polygon; never escapes `parse_to_polygons`."""


@dataclass
class _Group:
    """One parenthesis group: atoms, "," separators and nested groups, in order."""

    items: list[Union["_Group", str]] = field(default_factory=list)
    closed: bool = False

    def groups(self) -> list["_Group"]:
        return [i for i in self.items if isinstance(i, _Group)]

    def atoms(self) -> list[str]:
        return [i for i in self.items if isinstance(i, str) and i != ","]


def tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text)


def _build_tree(tokens: list[str]) -> _Group:
    """
    Bracket-depth scan. Unclosed groups stay attached with `closed=False`;
    a stray ")" at depth 0 is ignored.
    """
    root = _Group(closed=True)
    stack: list[_Group] = [root]
    for tok in tokens:
        if tok == "(":
            g = _Group()
            stack[-1].items.append(g)
            stack.append(g)
        elif tok == ")":
            if len(stack) == 1:
                continue
            stack.pop().closed = True
        else:
            stack[-1].items.append(tok)
    return root


@dataclass(frozen=True)
class _ParsedPolygon:
    outer: Ring
    holes: tuple[Ring, ...]


class _Parser:
    """
    Recursive descent over the group tree:

        geometry := [SRID=n ;] KEYWORD [Z|M|ZM] (EMPTY | body)
        polygon  := "(" ring ("," ring)* ")"
        ring     := "(" coord ("," coord)* ")"
        coord    := number number [number ...]
    """

    def __init__(self, root: _Group):
        self.root = root

    def parse(self) -> list[_ParsedPolygon]:
        keyword, body = self._head()
        if body is None:
            return []
        if keyword == "POLYGON":
            poly = self._polygon_or_none(body)
            return [poly] if poly is not None else []
        if keyword == "MULTIPOLYGON":
            out: list[_ParsedPolygon] = []
            for child in body.groups():
                poly = self._polygon_or_none(child)
                if poly is not None:
                    out.append(poly)
            return out
        return []

    def _head(self) -> tuple[str | None, _Group | None]:
        keyword: str | None = None
        for item in self.root.items:
            if isinstance(item, _Group):
                return keyword, item if keyword else None
            tok = item.upper()
            if keyword is None:
                if tok.startswith("SRID=") or tok == ";":
                    continue
                if tok not in {"POLYGON", "MULTIPOLYGON"}:
                    return None, None
                keyword = tok
            elif tok in _DIMENSION_TAGS:
                continue
            else:
                # EMPTY or anything unexpected between keyword and body.
                return keyword, None
        return keyword, None

    def _polygon_or_none(self, group: _Group) -> _ParsedPolygon | None:
        try:
            return self._polygon(group)
        except WktParseError as e:
            logger.debug("Dropping polygon: %s", e)
            return None

    def _polygon(self, group: _Group) -> _ParsedPolygon:
        if not group.closed:
            raise WktParseError("unbalanced parentheses in polygon")
        if group.atoms():
            raise WktParseError("coordinates outside of a ring group")
        ring_groups = group.groups()
        if not ring_groups:
            raise WktParseError("polygon has no rings")

        outer = self._ring(ring_groups[0])
        holes: list[Ring] = []
        for g in ring_groups[1:]:
            try:
                holes.append(self._ring(g))
            except WktParseError as e:
                logger.debug("Dropping hole: %s", e)
        return _ParsedPolygon(outer=outer, holes=tuple(holes))

    def _ring(self, group: _Group) -> Ring:
        if not group.closed:
            raise WktParseError("unbalanced parentheses in ring")
        if group.groups():
            raise WktParseError("unexpected nested group in ring")

        coords: list[Coordinate] = []
        pair: list[str] = []
        for item in [*group.items, ","]:
            if item != ",":
                pair.append(item)  # type: ignore[arg-type]
                continue
            c = self._coordinate(pair)
            if c is not None:
                coords.append(c)
            pair = []

        if len(coords) >= 2 and _same_point(coords[0], coords[-1]):
            coords.pop()
        if len(coords) < 3:
            raise WktParseError(f"ring has {len(coords)} valid coordinates")
        return tuple(coords)

    def _coordinate(self, parts: list[str]) -> Coordinate | None:
        if len(parts) < 2:
            return None
        try:
            lng = float(parts[0])
            lat = float(parts[1])
        except ValueError:
            raise WktParseError(f"non-numeric coordinate: {' '.join(parts)!r}") from None
        if not (math.isfinite(lng) and math.isfinite(lat)):
            return None
        # WKT order is lon lat.
        return Coordinate(lat=lat, lng=lng)


def _same_point(a: Coordinate, b: Coordinate) -> bool:
    return abs(a.lat - b.lat) <= _CLOSE_EPS and abs(a.lng - b.lng) <= _CLOSE_EPS


def parse_to_polygons(
    text: Any,
    *,
    base_id: str | None = None,
    props: dict[str, Any] | None = None,
) -> list[Polygon]:
    """
    Parse POLYGON / MULTIPOLYGON WKT into polygons in (lat, lng) order.

    Never raises: malformed rings and polygons are dropped, siblings survive.
    Each accepted polygon gets `"{base_id}-{k}"` (or `"{k}"`) as id and its
    outer-ring bbox.
    """
    if not isinstance(text, str) or not text.strip():
        return []

    try:
        parsed = _Parser(_build_tree(tokenize(text))).parse()
    except Exception:
        # The parser isolates failures per ring; this only guards the tree walk itself.
        logger.debug("Unparseable WKT payload: %.80s", text, exc_info=True)
        return []

    out: list[Polygon] = []
    for k, p in enumerate(parsed):
        pid = f"{base_id}-{k}" if base_id is not None else str(k)
        out.append(
            Polygon(
                id=pid,
                outer_ring=p.outer,
                holes=p.holes,
                bbox=compute_bounding_box(p.outer),
                props=dict(props or {}),
            )
        )
    return out
