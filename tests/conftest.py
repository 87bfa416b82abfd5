import pytest

from draftsnap.entities import rebuild_index
from draftsnap.spatial import LinearBoxIndex, SnapIndex


INDEX_FACTORIES = {
    "linear": LinearBoxIndex,
    "str": lambda: SnapIndex(rebuild_threshold=0),
    "str-lazy": lambda: SnapIndex(rebuild_threshold=1000),
}


@pytest.fixture(params=sorted(INDEX_FACTORIES))
def make_index(request):
    """Build an index of each backend kind, optionally pre-filled with elements."""
    factory = INDEX_FACTORIES[request.param]

    def build(elements=()):
        index = factory()
        rebuild_index(index, elements)
        return index

    return build


def line(element_id, *coords, **extra):
    el = {"id": element_id, "type": "line", "points": list(coords)}
    el.update(extra)
    return el


def polyline(element_id, *coords, **extra):
    el = {"id": element_id, "type": "polyline", "points": list(coords)}
    el.update(extra)
    return el


def flat(points):
    """Flatten nested point tuples so ``pytest.approx`` can compare them."""
    return [float(c) for p in points for c in p]
