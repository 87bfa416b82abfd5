"""
Object-snap resolver covering the drafting aids (endpoint, intersection,
midpoint, perpendicular, grid and polar angle).

``snap_point`` asks the spatial index for entities near the pointer and then
walks the strategies in a fixed priority order; the first strategy that finds
a candidate within tolerance wins, even if a lower-priority candidate sits
closer to the pointer. Joining existing geometry accurately matters more than
the grid and angle conveniences.

Within one strategy the first hit wins, where "first" follows the index's
return order (insertion order for the bundled indexes) and then each
entity's own vertex/segment order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, Iterator, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .intersect2d import Point, Segment, dist, intersect_segments, midpoint, project_point_to_segment
from .settings import ANGLE_BAND, CIRCLE_RING_STEPS, GRID_SIZE, SNAP_TOLERANCE
from .spatial import BoxIndex, Entity


class SnapOptions(BaseModel):
    """Which strategies are active plus their numeric parameters."""

    model_config = ConfigDict(frozen=True)

    endpoint: bool = Field(True, description="Snap to line ends, polyline vertices, rect corners and circle key points.")
    midpoint: bool = Field(True, description="Snap to the midpoint of any candidate segment.")
    intersection: bool = Field(True, description="Snap to crossings between segments of different entities.")
    perpendicular: bool = Field(True, description="Snap to the foot of the pointer on a candidate segment.")
    parallel: bool = Field(False, description="Reserved; accepted for settings round-trips, produces no candidate.")
    grid: bool = Field(True, description="Snap to the nearest grid intersection.")
    angle: bool = Field(True, description="Polar snap around the previous point when angle_step is set.")
    angle_step: Optional[float] = Field(
        None, gt=0.0, le=360.0, description="Polar increment in degrees; unset disables angle snapping."
    )
    tolerance: float = Field(SNAP_TOLERANCE, gt=0.0, description="Acceptance radius in document units.")
    grid_size: float = Field(GRID_SIZE, gt=0.0, description="Grid pitch in document units.")


DEFAULT_OPTIONS = SnapOptions()


@dataclass(frozen=True)
class SnapResult:
    point: Point

    kind: ClassVar[str] = "none"

    @property
    def snapped(self) -> bool:
        return self.kind != "none"


@dataclass(frozen=True)
class SnapNone(SnapResult):
    kind: ClassVar[str] = "none"


@dataclass(frozen=True)
class SnapEndpoint(SnapResult):
    entity_id: str
    kind: ClassVar[str] = "endpoint"


@dataclass(frozen=True)
class SnapMidpoint(SnapResult):
    entity_id: str
    kind: ClassVar[str] = "midpoint"


@dataclass(frozen=True)
class SnapPerpendicular(SnapResult):
    entity_id: str
    kind: ClassVar[str] = "perpendicular"


@dataclass(frozen=True)
class SnapIntersection(SnapResult):
    entity_ids: Tuple[str, str]
    kind: ClassVar[str] = "intersection"


@dataclass(frozen=True)
class SnapGrid(SnapResult):
    grid_size: float
    kind: ClassVar[str] = "grid"


@dataclass(frozen=True)
class SnapAngle(SnapResult):
    snapped_angle: float
    step: float
    kind: ClassVar[str] = "angle"


def _round_half_up(value: float) -> float:
    return math.floor(value + 0.5)


def _point(p: Sequence[float]) -> Point:
    return (float(p[0]), float(p[1]))


def entity_vertices(entity: Entity) -> List[Point]:
    """Key points of an entity in the order the endpoint strategy tests them."""
    geom = entity.geom or {}
    min_x, min_y, max_x, max_y = entity.bbox
    if entity.type == "point":
        if "point" in geom:
            return [_point(geom["point"])]
        return [((min_x + max_x) / 2.0, (min_y + max_y) / 2.0)]
    if entity.type in ("line", "polyline"):
        return [_point(p) for p in geom.get("points", ())]
    if entity.type == "rect":
        return [(min_x, min_y), (max_x, min_y), (max_x, max_y), (min_x, max_y)]
    if entity.type == "circle" and "center" in geom:
        cx, cy = _point(geom["center"])
        r = float(geom.get("radius", max(max_x - min_x, max_y - min_y) / 2.0))
        return [(cx, cy), (cx + r, cy), (cx - r, cy), (cx, cy + r), (cx, cy - r)]
    return []


def entity_segments(entity: Entity) -> List[Segment]:
    """Edges of an entity; circles become a closed ring of chords."""
    if entity.type == "circle":
        geom = entity.geom or {}
        if "center" not in geom:
            return []
        cx, cy = _point(geom["center"])
        r = float(geom.get("radius", (entity.bbox[2] - entity.bbox[0]) / 2.0))
        ring = [
            (cx + math.cos(2.0 * math.pi * i / CIRCLE_RING_STEPS) * r, cy + math.sin(2.0 * math.pi * i / CIRCLE_RING_STEPS) * r)
            for i in range(CIRCLE_RING_STEPS)
        ]
        return [(ring[i], ring[(i + 1) % CIRCLE_RING_STEPS]) for i in range(CIRCLE_RING_STEPS)]
    pts = entity_vertices(entity)
    if entity.type == "point":
        return []
    out = [(pts[i], pts[i + 1]) for i in range(len(pts) - 1)]
    if entity.type == "rect" and pts:
        out.append((pts[-1], pts[0]))
    return out


def _tagged_segments(candidates: Sequence[Entity]) -> Iterator[Tuple[Segment, str]]:
    for entity in candidates:
        for seg in entity_segments(entity):
            yield seg, entity.id


def snap_grid(raw: Point, grid_size: float) -> Point:
    return (_round_half_up(raw[0] / grid_size) * grid_size, _round_half_up(raw[1] / grid_size) * grid_size)


def snap_angle(origin: Point, raw: Point, step: float) -> Tuple[Point, float]:
    """Rotate ``raw`` about ``origin`` onto the nearest multiple of ``step`` degrees."""
    angle = math.degrees(math.atan2(raw[1] - origin[1], raw[0] - origin[0]))
    snapped = _round_half_up(angle / step) * step
    radius = dist(origin, raw)
    theta = math.radians(snapped)
    return (origin[0] + math.cos(theta) * radius, origin[1] + math.sin(theta) * radius), snapped


def snap_point(
    index: BoxIndex,
    raw: Sequence[float],
    last_point: Optional[Sequence[float]] = None,
    options: Optional[SnapOptions] = None,
) -> SnapResult:
    """Resolve ``raw`` to the best snap candidate; ``SnapNone`` keeps ``raw``."""
    opts = options or DEFAULT_OPTIONS
    p = _point(raw)
    tol = opts.tolerance
    candidates = index.search_region(p[0], p[1], tol)

    if opts.endpoint:
        for entity in candidates:
            for vertex in entity_vertices(entity):
                if dist(vertex, p) <= tol:
                    return SnapEndpoint(vertex, entity.id)

    segments: List[Tuple[Segment, str]] = []
    if opts.intersection or opts.midpoint or opts.perpendicular:
        segments = list(_tagged_segments(candidates))

    if opts.intersection and len(segments) > 1:
        for i in range(len(segments)):
            seg_i, id_i = segments[i]
            for j in range(i + 1, len(segments)):
                seg_j, id_j = segments[j]
                if id_i == id_j:
                    continue
                hit = intersect_segments(seg_i, seg_j)
                if hit is not None and dist(hit, p) <= tol:
                    return SnapIntersection(hit, (id_i, id_j))

    if opts.midpoint:
        for (a, b), entity_id in segments:
            if a == b:
                continue
            mid = midpoint(a, b)
            if dist(mid, p) <= tol:
                return SnapMidpoint(mid, entity_id)

    if opts.perpendicular:
        for (a, b), entity_id in segments:
            if a == b:
                continue
            foot, _ = project_point_to_segment(p, a, b)
            if dist(foot, p) <= tol:
                return SnapPerpendicular(foot, entity_id)

    if opts.grid:
        grid_point = snap_grid(p, opts.grid_size)
        if dist(grid_point, p) <= tol:
            return SnapGrid(grid_point, opts.grid_size)

    if opts.angle and last_point is not None and opts.angle_step:
        origin = _point(last_point)
        polar, snapped = snap_angle(origin, p, opts.angle_step)
        if dist(polar, p) <= tol * ANGLE_BAND:
            return SnapAngle(polar, snapped, opts.angle_step)

    return SnapNone(p)


__all__ = [
    "DEFAULT_OPTIONS",
    "SnapAngle",
    "SnapEndpoint",
    "SnapGrid",
    "SnapIntersection",
    "SnapMidpoint",
    "SnapNone",
    "SnapOptions",
    "SnapPerpendicular",
    "SnapResult",
    "entity_segments",
    "entity_vertices",
    "snap_angle",
    "snap_grid",
    "snap_point",
]
