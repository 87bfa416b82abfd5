import pytest
from conftest import line, polyline

from draftsnap.entities import (
    element_points,
    element_to_entities,
    rebuild_index,
    register_element,
    unregister_element,
    update_element,
)
from draftsnap.errors import InvalidEntityError
from draftsnap.geometry import Poly
from draftsnap.spatial import LinearBoxIndex
from draftsnap.walls import create_wall_element


def test_line_element_uses_offset():
    (entity,) = element_to_entities(line("l1", 0, 0, 10, 0, x=5, y=5, layer_id="walls"))
    assert entity.type == "line"
    assert entity.bbox == (5.0, 5.0, 15.0, 5.0)
    assert entity.geom["points"] == ((5.0, 5.0), (15.0, 5.0))
    assert entity.meta["layer"] == "walls"


def test_long_line_and_polyline_become_polylines():
    (a,) = element_to_entities(line("l2", 0, 0, 10, 0, 10, 10))
    (b,) = element_to_entities(polyline("p1", 0, 0, 5, 5, 10, 0))
    assert a.type == b.type == "polyline"
    assert a.geom["points"] == ((0.0, 0.0), (10.0, 0.0), (10.0, 10.0))
    assert b.bbox == (0.0, 0.0, 10.0, 5.0)


def test_wall_carries_its_outline():
    wall = create_wall_element((0, 0), (100, 0), 20, "layer-0", id="w1")
    (entity,) = element_to_entities(wall)
    assert entity.type == "polyline"
    assert isinstance(entity.meta["wall_outer"], Poly)
    assert entity.meta["wall_outer"].closed
    assert len(entity.meta["wall_inner"]) == 4
    assert entity.meta["thickness"] == 20.0


def test_rectangle_with_negative_size_is_normalized():
    (entity,) = element_to_entities({"id": "r", "type": "rectangle", "x": 10, "y": 10, "width": -4, "height": 6})
    assert entity.type == "rect"
    assert entity.bbox == (6.0, 10.0, 10.0, 16.0)


def test_circle_and_point_elements():
    (c,) = element_to_entities({"id": "c", "type": "circle", "x": 5, "y": 5, "radius": 2})
    assert c.bbox == (3.0, 3.0, 7.0, 7.0)
    assert c.geom["center"] == (5.0, 5.0)
    (p,) = element_to_entities({"id": "p", "type": "point", "x": 1, "y": 2})
    assert p.geom["point"] == (1.0, 2.0)


def test_group_is_flattened_and_unknown_types_are_skipped():
    group = {
        "id": "g",
        "type": "group",
        "children": [line("a", 0, 0, 1, 1), {"id": "t", "type": "text", "x": 0, "y": 0}, line("b", 2, 2, 3, 3)],
    }
    assert [e.id for e in element_to_entities(group)] == ["a", "b"]


def test_malformed_elements_raise_with_their_id():
    with pytest.raises(InvalidEntityError, match="l9"):
        element_to_entities({"id": "l9", "type": "line", "points": [0, 0, 1]})
    with pytest.raises(InvalidEntityError, match="c9"):
        element_to_entities({"id": "c9", "type": "circle", "x": 0, "y": 0, "radius": -1})
    with pytest.raises(InvalidEntityError, match="p9"):
        element_to_entities({"id": "p9", "type": "polyline", "points": [0, "abc", 1, 1]})
    with pytest.raises(InvalidEntityError):
        element_to_entities({"id": "p8", "type": "polyline", "points": [1, 1]})


def test_element_points_are_absolute():
    assert element_points(polyline("p", 0, 0, 1, 1, x=10, y=20)) == [(10.0, 20.0), (11.0, 21.0)]


def test_register_update_unregister_roundtrip():
    index = LinearBoxIndex()
    el = line("l1", 0, 0, 10, 0)
    assert register_element(index, el) == ["l1"]
    moved = line("l1", 100, 100, 110, 100)
    assert update_element(index, moved) == ["l1"]
    assert len(index) == 1
    assert index.search_region(5, 0, 1) == []
    assert unregister_element(index, moved) == ["l1"]
    assert len(index) == 0


def test_group_children_remember_their_group():
    group = {"id": "g", "type": "group", "children": [line("c1", 0, 0, 10, 0)]}
    (child,) = element_to_entities(group)
    assert child.meta["element"] == "g"
    (alone,) = element_to_entities(line("c1", 0, 0, 10, 0))
    assert alone.meta["element"] == "c1"


def test_updating_group_drops_removed_children(make_index):
    index = make_index()
    group = {"id": "g", "type": "group", "children": [line("c1", 0, 0, 10, 0), line("c2", 50, 0, 60, 0)]}
    assert register_element(index, group) == ["c1", "c2"]
    smaller = dict(group, children=[line("c1", 0, 0, 10, 0)])
    assert update_element(index, smaller) == ["c1"]
    assert "c2" not in index
    assert [e.id for e in index] == ["c1"]
    assert index.search_region(55, 0, 2) == []


def test_unregistering_group_removes_every_child(make_index):
    index = make_index()
    register_element(index, {"id": "g", "type": "group", "children": [line("c1", 0, 0, 1, 0), line("c2", 5, 0, 6, 0)]})
    register_element(index, line("other", 0, 5, 1, 5))
    unregister_element(index, {"id": "g", "type": "group", "children": []})
    assert [e.id for e in index] == ["other"]


def test_rebuild_index_counts_entities():
    index = LinearBoxIndex()
    index.add(element_to_entities(line("stale", 0, 0, 1, 1))[0])
    elements = [line("a", 0, 0, 1, 1), {"id": "x", "type": "text"}, polyline("b", 0, 0, 1, 1, 2, 0)]
    assert rebuild_index(index, elements) == 2
    assert "stale" not in index
