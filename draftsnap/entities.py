"""Adapter from document-store elements to index entities.

Elements are the plain mappings the editor keeps (``type``, flat ``points``
relative to an optional ``x``/``y`` offset, ``width``/``height``/``radius``
...). This module is the only place that reads them for indexing; the index
and the snap resolver only ever see normalized :class:`Entity` values.
Malformed input fails here, with the element id in the message.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from .errors import InvalidEntityError
from .geometry import Poly
from .intersect2d import Point
from .spatial import BBox, BoxIndex, Entity

log = logging.getLogger("draftsnap.entities")

Element = Mapping[str, Any]

DEFAULT_LAYER = "layer-0"
POINT_MARGIN = 1.0


def bbox_from_points(points: Sequence[Point]) -> BBox:
    if not points:
        raise InvalidEntityError("Cannot bound an empty point list")
    xs = [float(p[0]) for p in points]
    ys = [float(p[1]) for p in points]
    return (min(xs), min(ys), max(xs), max(ys))


def bbox_from_rect(x: float, y: float, width: float, height: float) -> BBox:
    return (min(x, x + width), min(y, y + height), max(x, x + width), max(y, y + height))


def bbox_from_circle(cx: float, cy: float, radius: float) -> BBox:
    return (cx - radius, cy - radius, cx + radius, cy + radius)


def pairs(flat: Sequence[float]) -> List[Point]:
    if len(flat) % 2:
        raise InvalidEntityError(f"Flat point list has odd length {len(flat)}")
    return [(float(flat[i]), float(flat[i + 1])) for i in range(0, len(flat), 2)]


def point_entity(entity_id: str, point: Point, meta: Optional[Mapping[str, Any]] = None) -> Entity:
    p = (float(point[0]), float(point[1]))
    return Entity(entity_id, "point", bbox_from_circle(p[0], p[1], POINT_MARGIN), {"point": p}, dict(meta or {}))


def line_entity(entity_id: str, a: Point, b: Point, meta: Optional[Mapping[str, Any]] = None) -> Entity:
    pts = ((float(a[0]), float(a[1])), (float(b[0]), float(b[1])))
    return Entity(entity_id, "line", bbox_from_points(pts), {"points": pts}, dict(meta or {}))


def polyline_entity(entity_id: str, points: Sequence[Point], meta: Optional[Mapping[str, Any]] = None) -> Entity:
    pts = tuple((float(p[0]), float(p[1])) for p in points)
    if len(pts) < 2:
        raise InvalidEntityError(f"Entity {entity_id!r}: polyline needs at least 2 points, got {len(pts)}")
    return Entity(entity_id, "polyline", bbox_from_points(pts), {"points": pts}, dict(meta or {}))


def rect_entity(
    entity_id: str, x: float, y: float, width: float, height: float, meta: Optional[Mapping[str, Any]] = None
) -> Entity:
    return Entity(entity_id, "rect", bbox_from_rect(float(x), float(y), float(width), float(height)), {}, dict(meta or {}))


def circle_entity(entity_id: str, center: Point, radius: float, meta: Optional[Mapping[str, Any]] = None) -> Entity:
    r = float(radius)
    if not math.isfinite(r) or r < 0.0:
        raise InvalidEntityError(f"Entity {entity_id!r}: circle radius must be >= 0, got {radius!r}")
    c = (float(center[0]), float(center[1]))
    return Entity(entity_id, "circle", bbox_from_circle(c[0], c[1], r), {"center": c, "radius": r}, dict(meta or {}))


def element_points(element: Element) -> List[Point]:
    """Absolute vertices of a line-like element (``points`` plus its x/y offset)."""
    ox = float(element.get("x") or 0.0)
    oy = float(element.get("y") or 0.0)
    return [(x + ox, y + oy) for x, y in pairs(element.get("points") or [])]


def _poly_from_flat(flat: Optional[Sequence[float]], ox: float, oy: float) -> Optional[Poly]:
    if not flat:
        return None
    return Poly([(x + ox, y + oy) for x, y in pairs(flat)], True)


def element_to_entities(element: Element, owner: Optional[str] = None) -> List[Entity]:
    """Entities for one element; elements nothing can snap to yield ``[]``.

    Every entity records the top-level element it came from under
    ``meta["element"]`` so group children can be found again on update.
    """
    element_id = str(element.get("id") or "")
    kind = element.get("type")
    owner = owner or element_id
    meta = {"layer": element.get("layer_id") or element.get("layer") or DEFAULT_LAYER, "element": owner}
    try:
        if kind == "group":
            out: List[Entity] = []
            for child in element.get("children") or []:
                out.extend(element_to_entities(child, owner))
            return out
        if kind in ("line", "polyline"):
            pts = element_points(element)
            if kind == "line" and len(pts) == 2:
                return [line_entity(element_id, pts[0], pts[1], meta)]
            return [polyline_entity(element_id, pts, meta)]
        if kind == "wall":
            pts = element_points(element)
            ox = float(element.get("x") or 0.0)
            oy = float(element.get("y") or 0.0)
            meta["wall_outer"] = _poly_from_flat(element.get("outer_poly"), ox, oy)
            meta["wall_inner"] = _poly_from_flat(element.get("inner_poly"), ox, oy)
            meta["thickness"] = float(element.get("thickness") or 0.0)
            return [polyline_entity(element_id, pts, meta)]
        if kind in ("rectangle", "rect"):
            return [
                rect_entity(
                    element_id,
                    float(element.get("x") or 0.0),
                    float(element.get("y") or 0.0),
                    float(element.get("width") or 0.0),
                    float(element.get("height") or 0.0),
                    meta,
                )
            ]
        if kind == "circle":
            center = (float(element.get("x") or 0.0), float(element.get("y") or 0.0))
            return [circle_entity(element_id, center, float(element.get("radius") or 0.0), meta)]
        if kind == "point":
            return [point_entity(element_id, (float(element.get("x") or 0.0), float(element.get("y") or 0.0)), meta)]
    except (TypeError, ValueError) as exc:
        raise InvalidEntityError(f"Element {element_id!r} ({kind}): {exc}") from exc
    log.debug("element %r of type %r is not indexed", element_id, kind)
    return []


def register_element(index: BoxIndex, element: Element) -> List[str]:
    entities = element_to_entities(element)
    for entity in entities:
        index.add(entity)
    return [entity.id for entity in entities]


def _owned_ids(index: BoxIndex, element_id: str) -> List[str]:
    return [entity.id for entity in index if entity.meta.get("element") == element_id]


def update_element(index: BoxIndex, element: Element) -> List[str]:
    """Re-index ``element``; entities it no longer produces are dropped."""
    entities = element_to_entities(element)
    current = {entity.id for entity in entities}
    for entity_id in _owned_ids(index, str(element.get("id") or "")):
        if entity_id not in current:
            log.debug("update_element: dropping stale entity %r", entity_id)
            index.remove(entity_id)
    for entity in entities:
        index.update(entity)
    return [entity.id for entity in entities]


def unregister_element(index: BoxIndex, element: Element) -> List[str]:
    ids = [entity.id for entity in element_to_entities(element)]
    ids.extend(i for i in _owned_ids(index, str(element.get("id") or "")) if i not in ids)
    for entity_id in ids:
        index.remove(entity_id)
    return ids


def rebuild_index(index: BoxIndex, elements: Iterable[Element]) -> int:
    """Clear ``index`` and register every element; returns the entity count."""
    index.clear()
    total = 0
    for element in elements:
        total += len(register_element(index, element))
    return total


__all__ = [
    "Element",
    "bbox_from_circle",
    "bbox_from_points",
    "bbox_from_rect",
    "circle_entity",
    "element_points",
    "element_to_entities",
    "line_entity",
    "pairs",
    "point_entity",
    "polyline_entity",
    "rebuild_index",
    "rect_entity",
    "register_element",
    "unregister_element",
    "update_element",
]
