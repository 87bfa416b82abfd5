"""draftsnap: snapping and segment editing for 2D floor-plan drafting."""
from __future__ import annotations

import logging

from .edit_ops import (
    collect_segments,
    element_to_segment,
    explode_element,
    extend_element,
    join_elements,
    join_polylines,
    move_elements,
    offset_element,
    segment_to_element_patch,
    supports_segment_ops,
    trim_element,
)
from .edit_tools import EditCtx, ExtendTool, OffsetTool, TrimTool, WallTool
from .entities import element_to_entities, rebuild_index, register_element, unregister_element, update_element
from .errors import DraftSnapError, InvalidEntityError, UnsupportedElementError
from .geometry import (
    Poly,
    circle_area,
    extend_segment,
    format_area,
    join_offset_polylines,
    offset_polyline,
    poly_area,
    polygon_area_abs,
    polyline_length,
    rect_area,
    trim_segment,
)
from .intersect2d import intersect_segments, project_point_to_segment, segment_params
from .osnap import (
    SnapAngle,
    SnapEndpoint,
    SnapGrid,
    SnapIntersection,
    SnapMidpoint,
    SnapNone,
    SnapOptions,
    SnapPerpendicular,
    SnapResult,
    snap_point,
)
from .smoothing import append_point, simplify_points
from .spatial import BoxIndex, Entity, LinearBoxIndex, SnapIndex
from .walls import (
    WallCut,
    WallGeometry,
    WallSession,
    auto_corner,
    auto_cut_wall,
    auto_join_walls,
    auto_join_with_nearby_walls,
    create_wall_element,
    create_wall_geometry,
    finish_wall,
    insert_opening,
    join_wall_geometries,
    start_wall,
    update_wall,
)

logging.getLogger("draftsnap").addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "BoxIndex",
    "DraftSnapError",
    "EditCtx",
    "Entity",
    "ExtendTool",
    "InvalidEntityError",
    "LinearBoxIndex",
    "OffsetTool",
    "Poly",
    "SnapAngle",
    "SnapEndpoint",
    "SnapGrid",
    "SnapIndex",
    "SnapIntersection",
    "SnapMidpoint",
    "SnapNone",
    "SnapOptions",
    "SnapPerpendicular",
    "SnapResult",
    "TrimTool",
    "UnsupportedElementError",
    "WallCut",
    "WallGeometry",
    "WallSession",
    "WallTool",
    "append_point",
    "auto_corner",
    "auto_cut_wall",
    "auto_join_walls",
    "auto_join_with_nearby_walls",
    "circle_area",
    "collect_segments",
    "create_wall_element",
    "create_wall_geometry",
    "element_to_entities",
    "element_to_segment",
    "explode_element",
    "extend_element",
    "extend_segment",
    "finish_wall",
    "format_area",
    "insert_opening",
    "intersect_segments",
    "join_elements",
    "join_offset_polylines",
    "join_polylines",
    "join_wall_geometries",
    "move_elements",
    "offset_element",
    "offset_polyline",
    "poly_area",
    "polygon_area_abs",
    "polyline_length",
    "project_point_to_segment",
    "rebuild_index",
    "rect_area",
    "register_element",
    "segment_params",
    "segment_to_element_patch",
    "simplify_points",
    "snap_point",
    "start_wall",
    "supports_segment_ops",
    "trim_element",
    "trim_segment",
    "unregister_element",
    "update_element",
    "update_wall",
]
