"""Bounding-box entities and the broad-phase spatial index used for snapping.

``BoxIndex`` is the contract the snap resolver talks to. Two backends ship:

* ``LinearBoxIndex`` keeps entities in a flat dictionary and scans it. It is
  the right choice for a handful of entities and doubles as a reference
  implementation in tests.
* ``SnapIndex`` answers region queries from a shapely ``STRtree``. STR trees
  are immutable once built, so recent mutations live in a small pending
  overlay (scanned linearly) plus a set of stale tree ids, and the tree is
  rebuilt lazily once the overlay grows past ``rebuild_threshold``.

Both return hits in insertion order, where ``update`` counts as a fresh
insertion.
"""
from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from itertools import count
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set, Tuple

import shapely
from shapely.strtree import STRtree

from .errors import InvalidEntityError
from .settings import INDEX_REBUILD_THRESHOLD

log = logging.getLogger("draftsnap.spatial")

BBox = Tuple[float, float, float, float]

ENTITY_TYPES = ("point", "line", "polyline", "rect", "circle")


@dataclass(frozen=True)
class Entity:
    """A spatially indexable drawable, already normalized to document space."""

    id: str
    type: str
    bbox: BBox
    geom: Mapping[str, Any] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise InvalidEntityError(f"Entity id must be a non-empty string, got {self.id!r}")
        if self.type not in ENTITY_TYPES:
            raise InvalidEntityError(f"Entity {self.id!r}: unknown type {self.type!r}")
        if len(self.bbox) != 4:
            raise InvalidEntityError(f"Entity {self.id!r}: bbox needs 4 values, got {len(self.bbox)}")
        bbox = tuple(float(v) for v in self.bbox)
        if not all(math.isfinite(v) for v in bbox):
            raise InvalidEntityError(f"Entity {self.id!r}: bbox {bbox} is not finite")
        min_x, min_y, max_x, max_y = bbox
        if min_x > max_x or min_y > max_y:
            raise InvalidEntityError(
                f"Entity {self.id!r}: malformed bbox {bbox} (min must not exceed max)"
            )
        object.__setattr__(self, "bbox", bbox)

    def __hash__(self) -> int:
        # geom is a plain dict and stays out of the hash
        return hash((self.id, self.type, self.bbox))

    def intersects(self, region: BBox) -> bool:
        return bbox_intersects(self.bbox, region)


def bbox_intersects(a: BBox, b: BBox) -> bool:
    return not (a[2] < b[0] or a[0] > b[2] or a[3] < b[1] or a[1] > b[3])


def query_box(x: float, y: float, radius: float) -> BBox:
    r = abs(float(radius))
    return (float(x) - r, float(y) - r, float(x) + r, float(y) + r)


class BoxIndex(ABC):
    """Broad-phase index: candidates only, exact tests happen downstream."""

    @abstractmethod
    def add(self, entity: Entity) -> None:
        ...

    @abstractmethod
    def remove(self, entity_id: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @abstractmethod
    def get(self, entity_id: str) -> Optional[Entity]:
        ...

    @abstractmethod
    def search_region(self, x: float, y: float, radius: float) -> List[Entity]:
        """Entities whose bbox meets the square ``[x-r, x+r] x [y-r, y+r]``."""

    @abstractmethod
    def __iter__(self) -> Iterator[Entity]:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...

    def update(self, entity: Entity) -> None:
        # remove + add inside one call: no query can see the entity missing
        self.remove(entity.id)
        self.add(entity)

    def __contains__(self, entity_id: object) -> bool:
        return isinstance(entity_id, str) and self.get(entity_id) is not None


class LinearBoxIndex(BoxIndex):
    """Flat dictionary scan; fine for small scenes."""

    def __init__(self) -> None:
        self._items: Dict[str, Entity] = {}

    def add(self, entity: Entity) -> None:
        self._items.pop(entity.id, None)
        self._items[entity.id] = entity

    def remove(self, entity_id: str) -> None:
        if self._items.pop(entity_id, None) is None:
            log.debug("remove: unknown entity %r ignored", entity_id)

    def clear(self) -> None:
        self._items.clear()

    def get(self, entity_id: str) -> Optional[Entity]:
        return self._items.get(entity_id)

    def search_region(self, x: float, y: float, radius: float) -> List[Entity]:
        region = query_box(x, y, radius)
        return [entity for entity in self._items.values() if entity.intersects(region)]

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)


class SnapIndex(BoxIndex):
    """STR-tree backed index with a pending overlay for cheap mutations."""

    def __init__(self, rebuild_threshold: int = INDEX_REBUILD_THRESHOLD) -> None:
        self.rebuild_threshold = max(0, int(rebuild_threshold))
        self._entities: Dict[str, Entity] = {}
        self._seq: Dict[str, int] = {}
        self._counter = count()
        self._tree: Optional[STRtree] = None
        self._tree_entities: List[Entity] = []
        self._tree_ids: Set[str] = set()
        self._pending: Dict[str, Entity] = {}
        self._stale: Set[str] = set()

    # -- mutation -------------------------------------------------------
    def add(self, entity: Entity) -> None:
        if entity.id in self._entities:
            self._discard(entity.id)
        self._entities[entity.id] = entity
        self._seq[entity.id] = next(self._counter)
        self._pending[entity.id] = entity

    def remove(self, entity_id: str) -> None:
        if entity_id not in self._entities:
            log.debug("remove: unknown entity %r ignored", entity_id)
            return
        self._discard(entity_id)

    def _discard(self, entity_id: str) -> None:
        del self._entities[entity_id]
        self._seq.pop(entity_id, None)
        self._pending.pop(entity_id, None)
        if entity_id in self._tree_ids:
            self._stale.add(entity_id)

    def clear(self) -> None:
        self._entities.clear()
        self._seq.clear()
        self._pending.clear()
        self._stale.clear()
        self._tree = None
        self._tree_entities = []
        self._tree_ids = set()

    # -- queries --------------------------------------------------------
    def get(self, entity_id: str) -> Optional[Entity]:
        return self._entities.get(entity_id)

    @property
    def pending_count(self) -> int:
        return len(self._pending) + len(self._stale)

    def rebuild(self) -> None:
        """Fold pending changes into a fresh STR tree."""
        entities = list(self._entities.values())
        self._tree_entities = entities
        self._tree_ids = {entity.id for entity in entities}
        self._tree = STRtree([shapely.box(*entity.bbox) for entity in entities]) if entities else None
        self._pending.clear()
        self._stale.clear()
        log.debug("rebuilt STR tree over %d entities", len(entities))

    def search_region(self, x: float, y: float, radius: float) -> List[Entity]:
        if self.pending_count > self.rebuild_threshold:
            self.rebuild()
        region = query_box(x, y, radius)
        hits: List[Entity] = []
        if self._tree is not None:
            for idx in self._tree.query(shapely.box(*region)):
                entity = self._tree_entities[int(idx)]
                if entity.id in self._stale:
                    continue
                hits.append(entity)
        hits.extend(entity for entity in self._pending.values() if entity.intersects(region))
        hits.sort(key=lambda entity: self._seq[entity.id])
        return hits

    def __iter__(self) -> Iterator[Entity]:
        return iter(sorted(self._entities.values(), key=lambda entity: self._seq[entity.id]))

    def __len__(self) -> int:
        return len(self._entities)


__all__ = [
    "BBox",
    "BoxIndex",
    "ENTITY_TYPES",
    "Entity",
    "LinearBoxIndex",
    "SnapIndex",
    "bbox_intersects",
    "query_box",
]
