"""Segment and polyline algorithms for the drafting surface.

Everything here is pure: inputs are never mutated and degenerate input
(zero-length edges, parallel cutters) resolves to ``None`` or an unchanged
copy instead of raising. Document space follows the canvas convention with y
growing downwards, which is why the left-hand normal of a direction
``(dx, dy)`` is ``(dy, -dx)``.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import numpy as np

from .intersect2d import (
    Point,
    Segment,
    add,
    intersect_lines,
    lerp,
    mul,
    norm,
    normalize,
    segment_params,
    sub,
)
from .settings import EPS, EXTEND_MAX_LENGTH

log = logging.getLogger("draftsnap.geometry")


@dataclass(frozen=True)
class Poly:
    """Ordered point ring or path; ``closed`` adds the last->first edge."""

    points: tuple = ()
    closed: bool = False

    def __post_init__(self) -> None:
        pts = tuple((float(p[0]), float(p[1])) for p in self.points)
        object.__setattr__(self, "points", pts)

    def __len__(self) -> int:
        return len(self.points)

    def edges(self) -> List[Segment]:
        pts = self.points
        if len(pts) < 2:
            return []
        out = [(pts[i], pts[i + 1]) for i in range(len(pts) - 1)]
        if self.closed and len(pts) > 2:
            out.append((pts[-1], pts[0]))
        return out

    def flat(self) -> List[float]:
        return [c for p in self.points for c in p]

    def reversed(self) -> "Poly":
        return Poly(tuple(reversed(self.points)), self.closed)


def left_normal(direction: Point) -> Point:
    dx, dy = normalize(direction)
    return (dy, -dx)


def trim_segment(seg: Segment, cutters: Iterable[Segment]) -> Optional[Segment]:
    """Shorten ``seg`` from its start to the first cutter met walking forward.

    Only hits strictly inside the segment count. Returns ``None`` when no
    cutter crosses the interior.
    """
    best_t: Optional[float] = None
    for cutter in cutters:
        params = segment_params(seg, cutter)
        if params is None:
            continue
        t = params[0]
        if t <= EPS or t >= 1 - EPS:
            continue
        if best_t is None or t < best_t:
            best_t = t
    if best_t is None:
        return None
    a = (float(seg[0][0]), float(seg[0][1]))
    return (a, lerp(seg[0], seg[1], best_t))


def extend_segment(seg: Segment, cutters: Iterable[Segment], max_length: float = EXTEND_MAX_LENGTH) -> Segment:
    """Push the B end forward until the nearest cutter or ``max_length``."""
    a, b = seg
    direction = normalize(sub(b, a))
    base_length = norm(sub(b, a))
    total_length = base_length + max_length
    extension = max_length
    ray = (a, add(a, mul(direction, total_length)))
    base_ratio = base_length / total_length if total_length > 0 else 0.0
    for cutter in cutters:
        params = segment_params(ray, cutter)
        if params is None:
            continue
        t, u = params
        if t <= base_ratio + EPS:
            continue
        if u < -EPS or u > 1 + EPS:
            continue
        extra = t * total_length - base_length
        if extra >= EPS:
            extension = min(extension, extra)
    return ((float(a[0]), float(a[1])), add(a, mul(direction, base_length + extension)))


def offset_polyline(poly: Poly, distance: float) -> Poly:
    """Miter offset of ``poly``; positive ``distance`` moves to the path's left.

    The result keeps the input's point count. Corners whose neighbouring
    offset edges are parallel fall back to the previous edge's end point.
    """
    pts = poly.points
    if len(pts) < 2:
        return Poly(pts, poly.closed)
    closed = poly.closed
    edge_count = len(pts) if closed else len(pts) - 1
    offset_edges: List[Segment] = []
    for i in range(edge_count):
        a = pts[i]
        b = pts[(i + 1) % len(pts)]
        shift = mul(left_normal(sub(b, a)), distance)
        offset_edges.append((add(a, shift), add(b, shift)))

    out: List[Point] = []
    for i in range(len(pts)):
        if not closed and i == 0:
            out.append(offset_edges[0][0])
            continue
        if not closed and i == len(pts) - 1:
            out.append(offset_edges[-1][1])
            continue
        prev_edge = offset_edges[(i - 1) % len(offset_edges)]
        next_edge = offset_edges[i % len(offset_edges)]
        corner = intersect_lines(prev_edge, next_edge)
        out.append(corner if corner is not None else prev_edge[1])
    return Poly(out, closed)


def join_offset_polylines(base: Poly, offset: Poly) -> Poly:
    """Closed outline running along ``base`` and back along ``offset``."""
    return Poly(base.points + tuple(reversed(offset.points)), True)


def poly_area(poly: Poly) -> float:
    """Signed shoelace area; the sign encodes the winding direction."""
    count = len(poly.points)
    if count < 3:
        return 0.0
    arr = np.asarray(poly.points, dtype=float)
    x = arr[:, 0]
    y = arr[:, 1]
    total = float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))
    if abs(total) < EPS and count >= 4:
        log.warning("poly_area: near-zero area on %d vertices, probable self-crossing poly", count)
    return 0.5 * total


def polygon_area_abs(points: Sequence[Point]) -> float:
    return abs(poly_area(Poly(points, True)))


def rect_area(width: float, height: float) -> float:
    return float(width) * float(height)


def circle_area(radius: float) -> float:
    return math.pi * float(radius) ** 2


def format_area(area: float, unit: str = "sq units") -> str:
    if area >= 1_000_000:
        return f"{area / 1_000_000:.2f}M {unit}"
    if area >= 1000:
        return f"{area / 1000:.2f}K {unit}"
    return f"{area:.2f} {unit}"


def polyline_length(points: Sequence[Point]) -> float:
    """Return the cumulative length of a polyline."""
    if len(points) < 2:
        return 0.0
    arr = np.asarray(points, dtype=float)
    delta = np.diff(arr, axis=0)
    return float(np.sum(np.hypot(delta[:, 0], delta[:, 1])))


__all__ = [
    "Poly",
    "circle_area",
    "extend_segment",
    "format_area",
    "join_offset_polylines",
    "left_normal",
    "offset_polyline",
    "poly_area",
    "polygon_area_abs",
    "polyline_length",
    "rect_area",
    "trim_segment",
]
