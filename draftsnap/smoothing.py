"""Freehand stroke helpers: point thinning and Ramer-Douglas-Peucker simplification.

Strokes travel as flat coordinate lists ``[x0, y0, x1, y1, ...]`` because that
is what the document store keeps on line-like elements.
"""
from __future__ import annotations

from typing import List, Sequence

from .intersect2d import Point, dist


def to_pairs(flat: Sequence[float]) -> List[Point]:
    return [(float(flat[i]), float(flat[i + 1])) for i in range(0, len(flat) - 1, 2)]


def flatten(points: Sequence[Point]) -> List[float]:
    return [float(c) for p in points for c in p]


def perpendicular_distance(point: Point, start: Point, end: Point) -> float:
    base = dist(start, end)
    if base == 0.0:
        return dist(point, start)
    doubled_area = abs(
        start[0] * end[1]
        + end[0] * point[1]
        + point[0] * start[1]
        - end[0] * start[1]
        - point[0] * end[1]
        - start[0] * point[1]
    )
    return doubled_area / base


def rdp(points: Sequence[Point], epsilon: float) -> List[Point]:
    if len(points) <= 2:
        return list(points)
    max_distance = 0.0
    index = 0
    for i in range(1, len(points) - 1):
        d = perpendicular_distance(points[i], points[0], points[-1])
        if d > max_distance:
            index = i
            max_distance = d
    if max_distance >= epsilon:
        left = rdp(points[: index + 1], epsilon)
        right = rdp(points[index:], epsilon)
        return left[:-1] + right
    return [points[0], points[-1]]


def simplify_points(flat: Sequence[float], tolerance: float = 1.5) -> List[float]:
    """Drop stroke vertices that deviate less than ``tolerance`` from the chord."""
    if len(flat) <= 4:
        return list(flat)
    return flatten(rdp(to_pairs(flat), tolerance))


def append_point(flat: Sequence[float], nxt: Point, min_distance: float = 1.0) -> List[float]:
    """Append ``nxt`` unless it sits within ``min_distance`` of the last vertex."""
    if len(flat) < 2:
        return list(flat) + [float(nxt[0]), float(nxt[1])]
    prev = (flat[-2], flat[-1])
    if dist(prev, nxt) < min_distance:
        return list(flat)
    return list(flat) + [float(nxt[0]), float(nxt[1])]


__all__ = ["append_point", "flatten", "perpendicular_distance", "rdp", "simplify_points", "to_pairs"]
