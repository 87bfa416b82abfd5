"""Interactive helpers wiring snapping and edit operations to a caller-owned document."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .edit_ops import element_to_segment, extend_element, offset_element, supports_segment_ops, trim_element
from .entities import DEFAULT_LAYER, Element
from .geometry import left_normal
from .intersect2d import Point, Segment, dist, dot, project_point_to_segment, sub
from .osnap import SnapOptions, SnapResult, snap_point
from .settings import WALL_THICKNESS
from .spatial import BoxIndex
from .walls import (
    WallSession,
    auto_join_with_nearby_walls,
    create_wall_element,
    finish_wall,
    start_wall,
    update_wall,
)


@dataclass
class EditCtx:
    """Callbacks into the document store plus the snapping setup.

    ``apply_patch(element_id, patch)`` merges ``patch`` into the element with
    that id, creating the element when the store has none.
    """

    get_elements: Callable[[], List[Element]]
    apply_patch: Callable[[str, Dict[str, Any]], None]
    update_status: Callable[[str], None]
    index: BoxIndex
    options: SnapOptions = field(default_factory=SnapOptions)

    def snap(self, point: Point, last_point: Optional[Point] = None) -> SnapResult:
        return snap_point(self.index, point, last_point, self.options)


def _changes(before: Element, after: Element) -> Dict[str, Any]:
    return {key: value for key, value in after.items() if before.get(key) != value}


class _PickingTool:
    label = ""

    def __init__(self, ctx: EditCtx) -> None:
        self.ctx = ctx

    def pick(self, point: Point) -> Optional[Element]:
        """Segment element under ``point``: the snapped entity first, else the nearest in tolerance."""
        elements = [e for e in self.ctx.get_elements() if supports_segment_ops(e)]
        entity_id = getattr(self.ctx.snap(point), "entity_id", None)
        if entity_id is not None:
            for element in elements:
                if element.get("id") == entity_id:
                    return element
        best: Optional[Element] = None
        best_d = self.ctx.options.tolerance
        for element in elements:
            seg = element_to_segment(element)
            if seg is None:
                continue
            foot, _ = project_point_to_segment(point, seg[0], seg[1])
            d = dist(foot, point)
            if d <= best_d:
                best, best_d = element, d
        return best

    def others(self, target: Element) -> List[Element]:
        return [e for e in self.ctx.get_elements() if e.get("id") != target.get("id")]

    def deactivate(self) -> None:
        return


class TrimTool(_PickingTool):
    label = "Trim"

    def mouse_press(self, point: Point) -> None:
        target = self.pick(point)
        if target is None:
            self.ctx.update_status("Trim: click on a line, polyline or wall")
            return
        result = trim_element(target, point, self.others(target))
        patch = _changes(target, result)
        if not patch:
            self.ctx.update_status("Trim: no cutting edge crosses this element")
            return
        self.ctx.apply_patch(str(target["id"]), patch)
        self.ctx.update_status("Trim: done")


class ExtendTool(_PickingTool):
    label = "Extend"

    def __init__(self, ctx: EditCtx, max_length: Optional[float] = None) -> None:
        super().__init__(ctx)
        self.max_length = max_length

    def mouse_press(self, point: Point) -> None:
        target = self.pick(point)
        if target is None:
            self.ctx.update_status("Extend: click near the end to extend")
            return
        if self.max_length is None:
            result = extend_element(target, point, self.others(target))
        else:
            result = extend_element(target, point, self.others(target), self.max_length)
        patch = _changes(target, result)
        if not patch:
            self.ctx.update_status("Extend: no boundary to extend to")
            return
        self.ctx.apply_patch(str(target["id"]), patch)
        self.ctx.update_status("Extend: done")


class OffsetTool(_PickingTool):
    """Two clicks: pick the element, then the side (and distance) of the copy."""

    label = "Offset"

    def __init__(self, ctx: EditCtx, distance: Optional[float] = None) -> None:
        super().__init__(ctx)
        self.distance = distance
        self.stage = 0
        self.target: Optional[Element] = None

    def mouse_press(self, point: Point) -> None:
        if self.stage == 0:
            self.target = self.pick(point)
            if self.target is None:
                self.ctx.update_status("Offset: select a line, polyline or wall first")
                return
            self.stage = 1
            self.ctx.update_status("Offset: now click the side to offset to")
            return
        target = self.target
        self.deactivate()
        seg = element_to_segment(target) if target is not None else None
        if seg is None:
            self.ctx.update_status("Offset: cannot offset this element")
            return
        side_point = self.ctx.snap(point).point
        foot, _ = project_point_to_segment(side_point, seg[0], seg[1])
        amount = self.distance if self.distance is not None else dist(foot, side_point)
        side = dot(sub(side_point, seg[0]), left_normal(sub(seg[1], seg[0])))
        result = offset_element(target, amount if side >= 0 else -amount)
        if result is None or amount == 0:
            self.ctx.update_status("Offset: cannot offset this element")
            return
        self.ctx.apply_patch(str(result["id"]), result)
        self.ctx.update_status("Offset: done")

    def deactivate(self) -> None:
        self.stage = 0
        self.target = None


class WallTool:
    """Click-click wall drawing with snapping and joins onto indexed walls."""

    label = "Wall"

    def __init__(self, ctx: EditCtx, thickness: float = WALL_THICKNESS, layer_id: str = DEFAULT_LAYER) -> None:
        self.ctx = ctx
        self.thickness = thickness
        self.layer_id = layer_id
        self.session: Optional[WallSession] = None

    def mouse_move(self, point: Point) -> Optional[Segment]:
        if self.session is None:
            return None
        snapped = self.ctx.snap(point, self.session.start).point
        self.session = update_wall(self.session, snapped)
        return self.session.preview

    def mouse_press(self, point: Point) -> Optional[Element]:
        last = self.session.start if self.session is not None else None
        snapped = self.ctx.snap(point, last).point
        if self.session is None:
            self.session = start_wall(snapped, self.thickness)
            self.ctx.update_status("Wall: pick end point")
            return None
        start = self.session.start
        geometry, self.session = finish_wall(self.session, snapped)
        if geometry is None or not len(geometry.outer):
            self.ctx.update_status("Wall: zero-length wall ignored")
            return None
        element = create_wall_element(start, snapped, self.thickness, self.layer_id)
        joined = auto_join_with_nearby_walls(self.ctx.index, (start, snapped), self.thickness)
        if joined is not None:
            element["outer_poly"] = joined.outer.flat()
            element["inner_poly"] = joined.inner.flat()
        self.ctx.apply_patch(element["id"], element)
        self.ctx.update_status("Wall: joined" if joined is not None else "Wall: done")
        return element

    def deactivate(self) -> None:
        self.session = None


__all__ = ["EditCtx", "ExtendTool", "OffsetTool", "TrimTool", "WallTool"]
