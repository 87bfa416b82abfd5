"""
Thick walls: outline generation, joining, opening cuts and the drawing session.

A wall element stores its centerline in ``points`` (relative to ``x``/``y``)
plus the derived ``outer_poly``/``inner_poly`` rings as flat lists. The
helpers here never mutate an element; they return new mappings.

The drawing session is an explicit :class:`WallSession` value the caller
threads through ``start_wall`` / ``update_wall`` / ``finish_wall``.
"""

from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .entities import Element, element_points
from .geometry import Poly
from .intersect2d import Point, Segment, dist, normalize, sub
from .settings import (
    DOOR_WIDTH,
    OPENING_SEARCH_DISTANCE,
    WALL_INNER_INSET,
    WALL_JOIN_TOLERANCE,
    WALL_THICKNESS,
    WINDOW_WIDTH,
)
from .spatial import BoxIndex

log = logging.getLogger("draftsnap.walls")


@dataclass(frozen=True)
class WallGeometry:
    outer: Poly
    inner: Poly
    thickness: float


@dataclass(frozen=True)
class WallCut:
    """Result of cutting an opening into a wall; either side may be missing."""

    before: Optional[Dict[str, Any]]
    after: Optional[Dict[str, Any]]
    wall_id: str


@dataclass(frozen=True)
class WallSession:
    """In-progress wall: anchor point, live preview segment and thickness."""

    start: Point
    thickness: float = WALL_THICKNESS
    preview: Optional[Segment] = None


EMPTY_WALL = WallGeometry(Poly((), False), Poly((), False), 0.0)


def _rect_ring(start: Point, end: Point, half_width: float, length: float) -> Poly:
    px = (-(end[1] - start[1]) / length) * half_width
    py = ((end[0] - start[0]) / length) * half_width
    return Poly(
        (
            (start[0] + px, start[1] + py),
            (end[0] + px, end[1] + py),
            (end[0] - px, end[1] - py),
            (start[0] - px, start[1] - py),
        ),
        True,
    )


def create_wall_geometry(start: Point, end: Point, thickness: float) -> WallGeometry:
    """Outer rectangle around the centerline plus an inner ring inset by 10% of the thickness."""
    start = (float(start[0]), float(start[1]))
    end = (float(end[0]), float(end[1]))
    length = dist(start, end)
    if length == 0.0:
        log.debug("create_wall_geometry: zero-length centerline at %s", start)
        return EMPTY_WALL
    thickness = float(thickness)
    outer = _rect_ring(start, end, thickness / 2.0, length)
    inner = _rect_ring(start, end, thickness / 2.0 - thickness * WALL_INNER_INSET, length)
    return WallGeometry(outer, inner, thickness)


def join_wall_geometries(a: WallGeometry, b: WallGeometry) -> WallGeometry:
    # ring concatenation only, no boolean union
    return WallGeometry(
        Poly(a.outer.points + b.outer.points, True),
        Poly(a.inner.points + b.inner.points, True),
        max(a.thickness, b.thickness),
    )


def auto_corner(seg_a: Segment, seg_b: Segment, thickness: float) -> Poly:
    """Triangular corner filler at the end of ``seg_a``, spread across ``seg_b``."""
    corner = (float(seg_a[1][0]), float(seg_a[1][1]))
    dx, dy = normalize(sub(seg_b[1], seg_b[0]))
    ox, oy = -dy * thickness, dx * thickness
    return Poly(
        ((corner[0] + ox, corner[1] + oy), (corner[0] - ox, corner[1] - oy), corner),
        True,
    )


def _offset(element: Element) -> Point:
    return (float(element.get("x") or 0.0), float(element.get("y") or 0.0))


def _relative_flat(points: Sequence[Point], origin: Point) -> List[float]:
    return [c for p in points for c in (p[0] - origin[0], p[1] - origin[1])]


def _centerline(element: Element) -> Optional[Segment]:
    pts = element_points(element)
    if len(pts) < 2:
        return None
    return (pts[0], pts[-1])


def with_centerline(wall: Mapping[str, Any], points: List[float]) -> Dict[str, Any]:
    """Copy ``wall`` with new centerline points and rings rebuilt from them."""
    out = dict(wall)
    out["points"] = points
    thickness = float(wall.get("thickness") or 0.0)
    if thickness > 0.0 and len(points) >= 4:
        geo = create_wall_geometry((points[0], points[1]), (points[-2], points[-1]), thickness)
        out["outer_poly"] = geo.outer.flat()
        out["inner_poly"] = geo.inner.flat()
    return out


def create_wall_element(
    start: Point,
    end: Point,
    thickness: float,
    layer_id: str,
    id: Optional[str] = None,
) -> Dict[str, Any]:
    geo = create_wall_geometry(start, end, thickness)
    return {
        "id": id or f"wall-{uuid.uuid4().hex[:12]}",
        "type": "wall",
        "layer_id": layer_id,
        "points": [float(start[0]), float(start[1]), float(end[0]), float(end[1])],
        "thickness": float(thickness),
        "outer_poly": geo.outer.flat(),
        "inner_poly": geo.inner.flat(),
        "x": 0.0,
        "y": 0.0,
    }


def auto_join_walls(
    new_wall: Element,
    existing_walls: Sequence[Element],
    tolerance: float = WALL_JOIN_TOLERANCE,
) -> List[Dict[str, Any]]:
    """Merge ``new_wall`` into the first existing wall it touches at an endpoint.

    The matched wall is replaced in the result by the new wall carrying the
    joined outer ring as its points and outline. Later walls pass through.
    Without a match the new wall is appended unchanged.
    """
    new_line = _centerline(new_wall)
    if new_line is None:
        return [dict(new_wall)]
    origin = _offset(new_wall)
    results: List[Dict[str, Any]] = []
    joined = False
    for wall in existing_walls:
        line = _centerline(wall)
        if joined or line is None:
            results.append(dict(wall))
            continue
        touching = any(dist(p, q) < tolerance for p in new_line for q in line)
        if not touching:
            results.append(dict(wall))
            continue
        merged = join_wall_geometries(
            create_wall_geometry(new_line[0], new_line[1], float(new_wall.get("thickness") or 0.0)),
            create_wall_geometry(line[0], line[1], float(wall.get("thickness") or 0.0)),
        )
        outer_flat = _relative_flat(merged.outer.points, origin)
        out = dict(new_wall)
        out["points"] = outer_flat
        out["outer_poly"] = list(outer_flat)
        out["inner_poly"] = _relative_flat(merged.inner.points, origin)
        results.append(out)
        joined = True
        log.debug("auto_join_walls: %r joined with %r", new_wall.get("id"), wall.get("id"))
    if not joined:
        results.append(dict(new_wall))
    return results


def auto_cut_wall(wall: Element, opening_center: Point, opening_width: float) -> WallCut:
    """Split ``wall`` around an opening centered on ``opening_center``.

    The center is projected onto the centerline (clamped to the wall). The
    two cut points sit half the opening width either side of the projection
    along the wall's perpendicular, the way the drawing tool places them.
    """
    wall_id = str(wall.get("id") or "")
    line = _centerline(wall)
    if line is None or dist(line[0], line[1]) == 0.0:
        log.debug("auto_cut_wall: wall %r is degenerate, left whole", wall_id)
        return WallCut(dict(wall), None, wall_id)
    (ax, ay), (bx, by) = line
    dx, dy = bx - ax, by - ay
    length = math.hypot(dx, dy)
    t = ((opening_center[0] - ax) * dx + (opening_center[1] - ay) * dy) / (length * length)
    t = max(0.0, min(1.0, t))
    proj = (ax + t * dx, ay + t * dy)
    px = (-dy / length) * (opening_width / 2.0)
    py = (dx / length) * (opening_width / 2.0)
    cut_start = (proj[0] - px, proj[1] - py)
    cut_end = (proj[0] + px, proj[1] + py)

    origin = _offset(wall)
    rel = [float(v) for v in wall.get("points") or []]
    before = None
    after = None
    if t > 0.0:
        before = with_centerline(wall, rel[:2] + _relative_flat([cut_start], origin))
        before["id"] = f"{wall_id}-1"
    if t < 1.0:
        after = with_centerline(wall, _relative_flat([cut_end], origin) + rel[-2:])
        after["id"] = f"{wall_id}-2"
    return WallCut(before, after, wall_id)


def _default_opening_width(opening: Element) -> float:
    return WINDOW_WIDTH if opening.get("type") == "window" else DOOR_WIDTH


def insert_opening(
    opening: Element,
    walls: Sequence[Element],
    default_width: Optional[float] = None,
    max_distance: float = OPENING_SEARCH_DISTANCE,
) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
    """Place a door or window: cut the nearest wall it sits on and tag the opening."""
    width = float(opening.get("width") or default_width or _default_opening_width(opening))
    center = _offset(opening)
    best: Optional[Element] = None
    best_distance = math.inf
    for wall in walls:
        line = _centerline(wall)
        if line is None:
            continue
        (ax, ay), (bx, by) = line
        dx, dy = bx - ax, by - ay
        length_sq = dx * dx + dy * dy
        if length_sq == 0.0:
            continue
        t = ((center[0] - ax) * dx + (center[1] - ay) * dy) / length_sq
        if t < 0.0 or t > 1.0:
            continue
        d = dist(center, (ax + t * dx, ay + t * dy))
        if d < best_distance and d < max_distance:
            best, best_distance = wall, d
    if best is None:
        log.debug("insert_opening: no wall within %s of %s", max_distance, center)
        return [dict(w) for w in walls], dict(opening)

    cut = auto_cut_wall(best, center, width)
    new_walls = [dict(w) for w in walls if w.get("id") != cut.wall_id]
    new_walls.extend(part for part in (cut.before, cut.after) if part is not None)
    tagged = dict(opening)
    tagged["wall_id"] = cut.wall_id
    return new_walls, tagged


def start_wall(point: Point, thickness: float = WALL_THICKNESS) -> WallSession:
    return WallSession((float(point[0]), float(point[1])), float(thickness))


def update_wall(session: Optional[WallSession], point: Point) -> Optional[WallSession]:
    if session is None:
        return None
    return replace(session, preview=(session.start, (float(point[0]), float(point[1]))))


def finish_wall(
    session: Optional[WallSession], point: Point
) -> Tuple[Optional[WallGeometry], Optional[WallSession]]:
    """Close the session; the second item is always ``None`` (session ended)."""
    if session is None:
        return None, None
    end = (float(point[0]), float(point[1]))
    return create_wall_geometry(session.start, end, session.thickness), None


def auto_join_with_nearby_walls(index: BoxIndex, segment: Segment, thickness: float) -> Optional[WallGeometry]:
    """Join a new wall with every indexed wall whose box lies near the segment end."""
    end = segment[1]
    nearby = []
    for entity in index.search_region(end[0], end[1], thickness):
        outer = entity.meta.get("wall_outer")
        inner = entity.meta.get("wall_inner")
        if outer is None or inner is None:
            continue
        nearby.append(WallGeometry(outer, inner, float(entity.meta.get("thickness") or thickness)))
    if not nearby:
        return None
    acc = create_wall_geometry(segment[0], segment[1], thickness)
    for wall in nearby:
        acc = join_wall_geometries(acc, wall)
    return acc


__all__ = [
    "EMPTY_WALL",
    "WallCut",
    "WallGeometry",
    "WallSession",
    "auto_corner",
    "auto_cut_wall",
    "auto_join_walls",
    "auto_join_with_nearby_walls",
    "create_wall_element",
    "create_wall_geometry",
    "finish_wall",
    "insert_opening",
    "join_wall_geometries",
    "start_wall",
    "update_wall",
    "with_centerline",
]
