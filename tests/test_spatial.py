import logging
import math

import pytest

from draftsnap.errors import DraftSnapError, InvalidEntityError
from draftsnap.spatial import Entity, LinearBoxIndex, SnapIndex, bbox_intersects, query_box


def box(entity_id, x0, y0, x1, y1):
    return Entity(entity_id, "rect", (x0, y0, x1, y1))


def ids(entities):
    return [e.id for e in entities]


@pytest.mark.parametrize(
    "bbox",
    [(10, 0, 0, 10), (0, 10, 10, 0), (0, 0, math.inf, 1), (0, math.nan, 1, 1)],
)
def test_malformed_bbox_is_rejected(bbox):
    with pytest.raises(InvalidEntityError):
        Entity("bad", "rect", bbox)


def test_entity_rejects_unknown_type_and_empty_id():
    with pytest.raises(InvalidEntityError):
        Entity("x", "spline", (0, 0, 1, 1))
    with pytest.raises(InvalidEntityError):
        Entity("", "rect", (0, 0, 1, 1))
    with pytest.raises(ValueError):
        Entity("x", "rect", (0, 0, 1))


def test_entities_with_geometry_are_hashable():
    a = Entity("l", "line", (0, 0, 10, 0), {"points": ((0.0, 0.0), (10.0, 0.0))})
    b = Entity("l", "line", (0, 0, 10, 0), {"points": ((0.0, 0.0), (10.0, 0.0))}, {"layer": "x"})
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b, box("r", 0, 0, 1, 1)}) == 2


def test_invalid_entity_error_is_a_value_error():
    assert issubclass(InvalidEntityError, DraftSnapError)
    assert issubclass(InvalidEntityError, ValueError)


def test_entity_bbox_is_coerced_to_floats():
    e = box("a", 0, 1, 2, 3)
    assert e.bbox == (0.0, 1.0, 2.0, 3.0)
    assert all(isinstance(v, float) for v in e.bbox)


def test_bbox_intersection_is_inclusive():
    assert bbox_intersects((0, 0, 1, 1), (1, 1, 2, 2))
    assert not bbox_intersects((0, 0, 1, 1), (1.5, 0, 2, 1))
    assert query_box(5, 5, -2) == (3.0, 3.0, 7.0, 7.0)


def test_update_is_idempotent(make_index):
    index = make_index()
    e = box("a", 0, 0, 10, 10)
    index.add(e)
    index.update(e)
    index.update(e)
    assert len(index) == 1
    assert ids(index.search_region(5, 5, 1)) == ["a"]


def test_update_moves_entity(make_index):
    index = make_index()
    index.add(box("a", 0, 0, 10, 10))
    index.update(box("a", 100, 100, 110, 110))
    assert index.search_region(5, 5, 1) == []
    assert ids(index.search_region(105, 105, 1)) == ["a"]
    assert index.get("a").bbox == (100.0, 100.0, 110.0, 110.0)


def test_add_with_existing_id_behaves_like_update(make_index):
    index = make_index()
    index.add(box("a", 0, 0, 10, 10))
    index.add(box("a", 50, 50, 60, 60))
    assert len(index) == 1
    assert index.search_region(5, 5, 1) == []


def test_remove_unknown_id_is_a_noop(make_index, caplog):
    index = make_index()
    index.add(box("a", 0, 0, 10, 10))
    with caplog.at_level(logging.DEBUG, logger="draftsnap.spatial"):
        index.remove("ghost")
    assert len(index) == 1
    assert "ghost" in caplog.text


def test_results_follow_insertion_order(make_index):
    index = make_index()
    index.add(box("a", 0, 0, 10, 10))
    index.add(box("b", 0, 0, 10, 10))
    index.add(box("c", 0, 0, 10, 10))
    index.update(box("a", 0, 0, 10, 10))
    assert ids(index.search_region(5, 5, 1)) == ["b", "c", "a"]
    assert ids(index) == ["b", "c", "a"]


def test_clear_and_contains(make_index):
    index = make_index()
    index.add(box("a", 0, 0, 10, 10))
    assert "a" in index
    assert "b" not in index
    index.clear()
    assert len(index) == 0
    assert index.search_region(5, 5, 100) == []


def test_degenerate_boxes_are_found():
    index = SnapIndex(rebuild_threshold=0)
    index.add(Entity("h", "line", (0, 0, 10, 0)))
    index.add(Entity("p", "point", (20, 20, 20, 20)))
    assert ids(index.search_region(5, 1, 2)) == ["h"]
    assert ids(index.search_region(20, 20, 0.5)) == ["p"]


def test_stale_tree_entries_are_hidden_until_rebuild():
    index = SnapIndex(rebuild_threshold=1000)
    for i in range(5):
        index.add(box(f"e{i}", i * 20, 0, i * 20 + 10, 10))
    index.rebuild()
    assert index.pending_count == 0
    index.remove("e1")
    index.update(box("e2", 500, 500, 510, 510))
    assert index.pending_count == 3
    assert ids(index.search_region(25, 5, 1)) == []
    assert ids(index.search_region(45, 5, 1)) == []
    assert ids(index.search_region(505, 505, 1)) == ["e2"]
    index.rebuild()
    assert ids(index.search_region(505, 505, 1)) == ["e2"]
    assert ids(index.search_region(65, 5, 1)) == ["e3"]


def test_lazy_rebuild_after_threshold():
    index = SnapIndex(rebuild_threshold=3)
    for i in range(5):
        index.add(box(f"e{i}", i * 20, 0, i * 20 + 10, 10))
    assert index.pending_count == 5
    index.search_region(0, 0, 1)
    assert index.pending_count == 0


def test_linear_and_str_backends_agree():
    linear = LinearBoxIndex()
    tree = SnapIndex(rebuild_threshold=7)
    for i in range(12):
        for j in range(12):
            e = box(f"r{i}-{j}", i * 30.0 + 0.5, j * 30.0 + 0.5, i * 30.0 + 20.5 + j, j * 30.0 + 10.5 + i)
            linear.add(e)
            tree.add(e)
    for i in range(0, 12, 3):
        linear.remove(f"r{i}-{i}")
        tree.remove(f"r{i}-{i}")
        moved = box(f"r{i}-0", 1000.5 + i, 1000.5, 1010.5 + i, 1010.5)
        linear.update(moved)
        tree.update(moved)
    for qx, qy, r in [(15, 15, 7), (100, 250, 33), (200, 40, 3), (1005, 1005, 10), (-50, -50, 5), (180, 180, 120)]:
        assert ids(tree.search_region(qx, qy, r)) == ids(linear.search_region(qx, qy, r))
