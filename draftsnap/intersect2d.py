"""2D vector and intersection helpers shared by the snapping and edit modules."""
from __future__ import annotations

from typing import Optional, Tuple
import math

from .settings import EPS

Point = Tuple[float, float]
Segment = Tuple[Point, Point]


def dot(a: Point, b: Point) -> float:
    return a[0] * b[0] + a[1] * b[1]


def cross(a: Point, b: Point) -> float:
    return a[0] * b[1] - a[1] * b[0]


def sub(a: Point, b: Point) -> Point:
    return (a[0] - b[0], a[1] - b[1])


def add(a: Point, b: Point) -> Point:
    return (a[0] + b[0], a[1] + b[1])


def mul(a: Point, s: float) -> Point:
    return (a[0] * s, a[1] * s)


def norm(a: Point) -> float:
    return math.hypot(a[0], a[1])


def normalize(a: Point) -> Point:
    """Unit vector along ``a``; the zero vector is returned unchanged."""
    length = norm(a) or 1.0
    return (a[0] / length, a[1] / length)


def dist(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def midpoint(a: Point, b: Point) -> Point:
    return ((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0)


def lerp(a: Point, b: Point, t: float) -> Point:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def segment_params(s1: Segment, s2: Segment) -> Optional[Tuple[float, float]]:
    """Solve ``s1.A + t*r == s2.A + u*s`` for the infinite carrier lines.

    Returns ``(t, u)`` or ``None`` when the lines are parallel.
    """
    r = sub(s1[1], s1[0])
    s = sub(s2[1], s2[0])
    den = cross(r, s)
    if abs(den) < EPS:
        return None
    qmp = sub(s2[0], s1[0])
    t = cross(qmp, s) / den
    u = cross(qmp, r) / den
    return t, u


def intersect_segments(s1: Segment, s2: Segment) -> Optional[Point]:
    """Bounded segment/segment intersection (end points included)."""
    params = segment_params(s1, s2)
    if params is None:
        return None
    t, u = params
    if -EPS <= t <= 1 + EPS and -EPS <= u <= 1 + EPS:
        return lerp(s1[0], s1[1], t)
    return None


def intersect_lines(l1: Segment, l2: Segment) -> Optional[Point]:
    """Intersection of the infinite lines through ``l1`` and ``l2``."""
    params = segment_params(l1, l2)
    if params is None:
        return None
    return lerp(l1[0], l1[1], params[0])


def project_point_to_segment(p: Point, a: Point, b: Point) -> Tuple[Point, float]:
    """Clamped projection of ``p`` onto ``a-b``; returns the point and its parameter."""
    ab = sub(b, a)
    ab2 = dot(ab, ab)
    if ab2 == 0.0:
        return (a[0], a[1]), 0.0
    t = dot(sub(p, a), ab) / ab2
    t = max(0.0, min(1.0, t))
    return add(a, mul(ab, t)), t


def segment_length(seg: Segment) -> float:
    return dist(seg[0], seg[1])


__all__ = [
    "Point",
    "Segment",
    "add",
    "cross",
    "dist",
    "dot",
    "intersect_lines",
    "intersect_segments",
    "lerp",
    "midpoint",
    "mul",
    "norm",
    "normalize",
    "project_point_to_segment",
    "segment_length",
    "segment_params",
    "sub",
]
