"""Core edit operations on document elements (trim / extend / offset / join / explode / move).

Only ``line``, ``polyline`` and ``wall`` elements carry a segment; the
segment of an element is its first two points in absolute coordinates.
Every operation returns new mappings and leaves its inputs alone.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .entities import Element, element_points
from .errors import UnsupportedElementError
from .geometry import Poly, extend_segment, left_normal, offset_polyline
from .intersect2d import Point, Segment, intersect_segments, project_point_to_segment, sub
from .settings import EXTEND_ELEMENT_CAP, JOIN_ELEMENT_TOLERANCE, TRIM_CLICK_MARGIN
from .walls import with_centerline

log = logging.getLogger("draftsnap.edit_ops")

SEGMENT_TYPES = frozenset({"line", "wall", "polyline"})


def _dist(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def _origin(element: Element) -> Point:
    return (float(element.get("x") or 0.0), float(element.get("y") or 0.0))


def supports_segment_ops(element: Element) -> bool:
    return element.get("type") in SEGMENT_TYPES


def element_to_segment(element: Element) -> Optional[Segment]:
    if not supports_segment_ops(element):
        return None
    pts = element.get("points") or []
    if len(pts) < 4:
        return None
    ox, oy = _origin(element)
    return ((float(pts[0]) + ox, float(pts[1]) + oy), (float(pts[2]) + ox, float(pts[3]) + oy))


def segment_to_element_patch(element: Element, segment: Segment) -> Optional[Dict[str, Any]]:
    """``points`` with the first edge replaced by ``segment``; later vertices are kept."""
    if not supports_segment_ops(element):
        return None
    ox, oy = _origin(element)
    (ax, ay), (bx, by) = segment
    rest = [float(v) for v in (element.get("points") or [])[4:]]
    return {"points": [ax - ox, ay - oy, bx - ox, by - oy] + rest}


def collect_segments(elements: Iterable[Element], exclude_id: Optional[str] = None) -> List[Segment]:
    out: List[Segment] = []
    for element in elements:
        if exclude_id is not None and element.get("id") == exclude_id:
            continue
        seg = element_to_segment(element)
        if seg is not None:
            out.append(seg)
    return out


def _require_segment_element(element: Element, op: str) -> None:
    if not supports_segment_ops(element):
        raise UnsupportedElementError(
            f"{op}: element {element.get('id')!r} of type {element.get('type')!r} has no segment"
        )


def _apply_patch(element: Element, patch: Dict[str, Any]) -> Dict[str, Any]:
    if element.get("type") == "wall":
        return with_centerline(element, patch["points"])
    out = dict(element)
    out.update(patch)
    return out


def trim_element(element: Element, click: Point, cutters: Sequence[Element]) -> Dict[str, Any]:
    """Cut ``element`` back to the cutter crossing nearest the click.

    Hits beyond the click (towards B) keep the A side; hits before it keep
    the B side. The nearer of the two wins, ties go to the B-ward hit.
    """
    _require_segment_element(element, "trim")
    seg = element_to_segment(element)
    if seg is None:
        return dict(element)
    _, t_click = project_point_to_segment(click, seg[0], seg[1])

    above = None
    below = None
    for cutter in collect_segments(cutters, exclude_id=element.get("id")):
        hit = intersect_segments(seg, cutter)
        if hit is None:
            continue
        _, t = project_point_to_segment(hit, seg[0], seg[1])
        if t > t_click + TRIM_CLICK_MARGIN and (above is None or t < above[0]):
            above = (t, hit)
        elif t < t_click - TRIM_CLICK_MARGIN and (below is None or t > below[0]):
            below = (t, hit)

    if above is not None and (below is None or above[0] - t_click <= t_click - below[0]):
        new_seg = (seg[0], above[1])
    elif below is not None:
        new_seg = (below[1], seg[1])
    else:
        log.debug("trim: no cutter crosses %r", element.get("id"))
        return dict(element)
    return _apply_patch(element, segment_to_element_patch(element, new_seg))


def extend_element(
    element: Element,
    click: Point,
    targets: Sequence[Element],
    max_length: float = EXTEND_ELEMENT_CAP,
) -> Dict[str, Any]:
    """Extend the end of ``element`` nearest the click up to the first target."""
    _require_segment_element(element, "extend")
    seg = element_to_segment(element)
    boundaries = collect_segments(targets, exclude_id=element.get("id"))
    if seg is None or not boundaries:
        return dict(element)
    _, t_click = project_point_to_segment(click, seg[0], seg[1])
    if t_click >= 0.5:
        new_seg = extend_segment(seg, boundaries, max_length)
    else:
        a, b = extend_segment((seg[1], seg[0]), boundaries, max_length)
        new_seg = (b, a)
    return _apply_patch(element, segment_to_element_patch(element, new_seg))


def offset_element(element: Element, distance: float) -> Optional[Dict[str, Any]]:
    """Parallel copy of ``element`` at ``distance`` to its left; None when impossible."""
    if not supports_segment_ops(element):
        return None
    pts = [(float(element["points"][i]), float(element["points"][i + 1]))
           for i in range(0, len(element.get("points") or []) - 1, 2)]
    if len(pts) < 2:
        return None
    if element.get("type") == "line":
        a, b = pts[0], pts[1]
        if _dist(a, b) == 0.0:
            return None
        nx, ny = left_normal(sub(b, a))
        shifted = [a[0] + nx * distance, a[1] + ny * distance, b[0] + nx * distance, b[1] + ny * distance]
        out = dict(element)
        out["points"] = shifted
    else:
        moved = offset_polyline(Poly(pts, bool(element.get("closed"))), distance)
        out = _apply_patch(element, {"points": moved.flat()})
    out["id"] = f"{element.get('id')}-offset"
    return out


def _attach(chain: List[Point], path: List[Point], tol: float) -> Optional[List[Point]]:
    # the shared vertex is kept once, from ``chain``
    head, tail = chain[0], chain[-1]
    if _dist(tail, path[0]) <= tol:
        return chain + path[1:]
    if _dist(tail, path[-1]) <= tol:
        return chain + path[-2::-1]
    if _dist(head, path[-1]) <= tol:
        return path[:-1] + chain
    if _dist(head, path[0]) <= tol:
        return path[:0:-1] + chain
    return None


def join_polylines(paths: Sequence[Sequence[Point]], tol: float = 1e-6) -> List[List[Point]]:
    """Greedily chain paths whose endpoints meet within ``tol``, in either direction.

    Each output chain starts from the first unused input path and absorbs
    matching paths until none attaches. Paths with fewer than 2 points are
    dropped.
    """
    pending = [list(p) for p in paths if len(p) >= 2]
    chains: List[List[Point]] = []
    while pending:
        chain = pending.pop(0)
        grown = True
        while grown:
            grown = False
            for i, path in enumerate(pending):
                joined = _attach(chain, path, tol)
                if joined is not None:
                    chain = joined
                    del pending[i]
                    grown = True
                    break
        chains.append(chain)
    return chains


def join_elements(a: Element, b: Element, tolerance: float = JOIN_ELEMENT_TOLERANCE) -> Optional[Dict[str, Any]]:
    """Chain two lines/polylines that meet at an endpoint into one polyline.

    The result keeps ``a``'s id, style and coordinate frame. ``None`` when
    either element is not line-like or no endpoints meet within ``tolerance``.
    """
    if a.get("type") not in ("line", "polyline") or b.get("type") not in ("line", "polyline"):
        return None
    pts_a = element_points(a)
    pts_b = element_points(b)
    if len(pts_a) < 2 or len(pts_b) < 2:
        return None
    chains = join_polylines([pts_a, pts_b], tolerance)
    if len(chains) != 1:
        return None
    ox, oy = _origin(a)
    out = dict(a)
    out["type"] = "polyline"
    out["points"] = [c for p in chains[0] for c in (p[0] - ox, p[1] - oy)]
    return out


def _line_from(element: Element, line_id: str, points: List[float]) -> Dict[str, Any]:
    out = dict(element)
    out.update({"id": line_id, "type": "line", "points": points})
    return out


def explode_element(element: Element) -> List[Dict[str, Any]]:
    """Break a polyline into lines and a rectangle into its four sides."""
    kind = element.get("type")
    if kind == "polyline" and element.get("points"):
        pts = [float(v) for v in element["points"]]
        return [
            _line_from(element, f"{element.get('id')}-line-{i}", pts[i:i + 4])
            for i in range(0, len(pts) - 2, 2)
        ]
    if kind in ("rectangle", "rect"):
        x, y = _origin(element)
        w = float(element.get("width") or 0.0)
        h = float(element.get("height") or 0.0)
        corners = [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]
        lines = []
        for i in range(4):
            (ax, ay), (bx, by) = corners[i], corners[(i + 1) % 4]
            line = _line_from(element, f"{element.get('id')}-line{i + 1}", [ax, ay, bx, by])
            line.update({"x": 0.0, "y": 0.0})
            line.pop("width", None)
            line.pop("height", None)
            lines.append(line)
        return lines
    return [dict(element)]


def _shift_flat(flat: Sequence[float], dx: float, dy: float) -> List[float]:
    return [float(v) + (dx if i % 2 == 0 else dy) for i, v in enumerate(flat)]


def move_elements(elements: Sequence[Element], ids: Iterable[str], dx: float, dy: float) -> List[Dict[str, Any]]:
    selected = set(ids)
    out: List[Dict[str, Any]] = []
    for element in elements:
        moved = dict(element)
        if element.get("id") in selected:
            if supports_segment_ops(element):
                moved["points"] = _shift_flat(element.get("points") or [], dx, dy)
                for key in ("outer_poly", "inner_poly"):
                    if element.get(key):
                        moved[key] = _shift_flat(element[key], dx, dy)
            else:
                moved["x"] = float(element.get("x") or 0.0) + dx
                moved["y"] = float(element.get("y") or 0.0) + dy
        out.append(moved)
    return out


__all__ = [
    "SEGMENT_TYPES",
    "collect_segments",
    "element_to_segment",
    "explode_element",
    "extend_element",
    "join_elements",
    "join_polylines",
    "move_elements",
    "offset_element",
    "segment_to_element_patch",
    "supports_segment_ops",
    "trim_element",
]
