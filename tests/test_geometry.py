import logging
import math

import pytest
from conftest import flat

from draftsnap.geometry import (
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
from draftsnap.intersect2d import (
    intersect_lines,
    intersect_segments,
    normalize,
    project_point_to_segment,
    segment_params,
)

SQUARE = Poly([(0, 0), (10, 0), (10, 10), (0, 10)], True)


def test_crossing_diagonals_meet_in_the_middle():
    hit = intersect_segments(((0, 0), (10, 10)), ((0, 10), (10, 0)))
    assert hit == pytest.approx((5.0, 5.0))


def test_parallel_segments_do_not_intersect():
    assert intersect_segments(((0, 0), (10, 0)), ((0, 5), (10, 5))) is None
    assert segment_params(((0, 0), (10, 0)), ((0, 5), (10, 5))) is None


def test_intersection_outside_either_segment_is_rejected():
    # carrier lines cross at (2.5, 2.5), beyond both segments
    assert intersect_segments(((0, 0), (1, 1)), ((5, 0), (4, 1))) is None
    assert intersect_lines(((0, 0), (1, 1)), ((5, 0), (4, 1))) == pytest.approx((2.5, 2.5))


def test_touching_endpoints_count_as_intersection():
    assert intersect_segments(((0, 0), (10, 0)), ((10, 0), (10, 10))) == pytest.approx((10.0, 0.0))


def test_projection_is_clamped_and_handles_zero_length():
    point, t = project_point_to_segment((15, 3), (0, 0), (10, 0))
    assert point == pytest.approx((10.0, 0.0))
    assert t == 1.0
    point, t = project_point_to_segment((4, 4), (2, 2), (2, 2))
    assert point == (2, 2)
    assert t == 0.0


def test_normalize_leaves_zero_vector_alone():
    assert normalize((0.0, 0.0)) == (0.0, 0.0)
    assert normalize((3.0, 4.0)) == pytest.approx((0.6, 0.8))


def test_trim_to_first_cutter():
    assert flat(trim_segment(((0, 0), (10, 0)), [((5, -5), (5, 5))])) == pytest.approx([0, 0, 5, 0])


def test_trim_picks_smallest_parameter_and_ignores_end_hits():
    cutters = [((8, -1), (8, 1)), ((3, -1), (3, 1)), ((10, -1), (10, 1))]
    assert flat(trim_segment(((0, 0), (10, 0)), cutters)) == pytest.approx([0, 0, 3, 0])


def test_trim_without_interior_hit_returns_none():
    assert trim_segment(((0, 0), (10, 0)), [((0, 5), (10, 5))]) is None
    assert trim_segment(((0, 0), (10, 0)), []) is None


def test_extend_stops_at_cutter():
    seg = extend_segment(((0, 0), (5, 0)), [((12, -5), (12, 5))], 20)
    assert seg[0] == pytest.approx((0, 0))
    assert seg[1] == pytest.approx((12, 0))


def test_extend_uses_full_length_without_hit():
    seg = extend_segment(((0, 0), (5, 0)), [((12, 5), (12, 15))], 20)
    assert seg[1] == pytest.approx((25, 0))


def test_extend_ignores_cutters_behind_the_end():
    seg = extend_segment(((0, 0), (5, 0)), [((3, -5), (3, 5)), ((9, -5), (9, 5))], 20)
    assert seg[1] == pytest.approx((9, 0))


def test_extend_zero_length_is_a_copy():
    assert extend_segment(((1, 1), (1, 1)), [((0, 0), (5, 5))], 20) == ((1.0, 1.0), (1.0, 1.0))


def test_square_offset_grows_outward():
    grown = offset_polyline(SQUARE, 2)
    assert len(grown) == 4
    assert grown.closed
    first = grown.points[0]
    assert first[0] < 0 and first[1] < 0
    assert first == pytest.approx((-2, -2))
    assert poly_area(grown) == pytest.approx(196.0)


def test_open_offset_keeps_raw_endpoints():
    moved = offset_polyline(Poly([(0, 0), (10, 0), (10, 10)]), 1)
    assert flat(moved.points) == pytest.approx([0, -1, 11, -1, 11, 10])


def test_offset_of_short_poly_is_a_copy():
    single = Poly([(1, 2)])
    assert offset_polyline(single, 5).points == ((1.0, 2.0),)


def test_offset_collinear_vertex_falls_back_to_previous_edge_end():
    moved = offset_polyline(Poly([(0, 0), (5, 0), (10, 0)]), 1)
    assert flat(moved.points) == pytest.approx([0, -1, 5, -1, 10, -1])


def test_join_offset_builds_closed_outline():
    base = Poly([(0, 0), (10, 0)])
    outline = join_offset_polylines(base, offset_polyline(base, 2))
    assert outline.closed
    assert flat(outline.points) == pytest.approx([0, 0, 10, 0, 10, -2, 0, -2])


def test_area_sign_follows_winding():
    assert poly_area(SQUARE) == pytest.approx(100.0)
    assert poly_area(SQUARE.reversed()) == pytest.approx(-100.0)
    assert polygon_area_abs(SQUARE.reversed().points) == pytest.approx(100.0)


def test_area_of_degenerate_poly_is_zero():
    assert poly_area(Poly([(0, 0), (1, 1)])) == 0.0


def test_bow_tie_logs_self_intersection_warning(caplog):
    bow_tie = Poly([(0, 0), (10, 10), (10, 0), (0, 10)], True)
    with caplog.at_level(logging.WARNING, logger="draftsnap.geometry"):
        assert poly_area(bow_tie) == pytest.approx(0.0)
    assert "near-zero area" in caplog.text


def test_measurement_helpers():
    assert rect_area(3, 4) == 12.0
    assert circle_area(1) == pytest.approx(math.pi)
    assert polyline_length([(0, 0), (3, 4), (3, 10)]) == pytest.approx(11.0)
    assert polyline_length([(0, 0)]) == 0.0
    assert format_area(12.5) == "12.50 sq units"
    assert format_area(1500) == "1.50K sq units"
    assert format_area(2_500_000, "m2") == "2.50M m2"


def test_poly_edges_and_flat():
    assert len(SQUARE.edges()) == 4
    assert len(Poly(SQUARE.points, False).edges()) == 3
    assert SQUARE.flat()[:4] == [0.0, 0.0, 10.0, 0.0]
