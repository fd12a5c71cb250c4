"""Cache patches as command objects.

Every patch is applied to an immutable :class:`CacheState` and returns
the new state together with the patch that undoes it, computed against
the state it was applied to. Inverses touch only the entities the
forward patch touched, so undoing one mutation leaves unrelated changes
made in the meantime in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from stockflow.data.collections import CACHE_KINDS


@dataclass(frozen=True)
class CacheState:
    """Per-kind entity tuples, newest first."""

    collections: Mapping[str, tuple] = field(
        default_factory=lambda: MappingProxyType({kind: () for kind in CACHE_KINDS})
    )

    def items(self, kind: str) -> tuple:
        return self.collections.get(kind, ())

    def find(self, kind: str, entity_id) -> Any | None:
        for entity in self.items(kind):
            if entity.id == entity_id:
                return entity
        return None

    def index_of(self, kind: str, entity_id) -> int | None:
        for index, entity in enumerate(self.items(kind)):
            if entity.id == entity_id:
                return index
        return None

    def with_kind(self, kind: str, entities) -> "CacheState":
        updated = dict(self.collections)
        updated[kind] = tuple(entities)
        return CacheState(MappingProxyType(updated))


class Patch:
    """Base class; subclasses implement :meth:`apply`."""

    def apply(self, state: CacheState) -> tuple[CacheState, "Patch"]:
        raise NotImplementedError


@dataclass(frozen=True)
class Put(Patch):
    """Insert *entity*, or replace the entity with the same id in place.

    New entities land at *index* (0 = newest first).
    """

    kind: str
    entity: Any
    index: int = 0

    def apply(self, state):
        entities = list(state.items(self.kind))
        position = state.index_of(self.kind, self.entity.id)
        if position is None:
            entities.insert(min(self.index, len(entities)), self.entity)
            return state.with_kind(self.kind, entities), Remove(self.kind, self.entity.id)
        previous = entities[position]
        entities[position] = self.entity
        return state.with_kind(self.kind, entities), Put(self.kind, previous, position)


@dataclass(frozen=True)
class Remove(Patch):
    kind: str
    entity_id: Any

    def apply(self, state):
        position = state.index_of(self.kind, self.entity_id)
        if position is None:
            return state, Batch()
        entities = list(state.items(self.kind))
        previous = entities.pop(position)
        return state.with_kind(self.kind, entities), Put(self.kind, previous, position)


@dataclass(frozen=True)
class Swap(Patch):
    """Replace the entity *old_id* by *entity*, keeping its position.

    Used to trade a provisional local id for the id the store assigned.
    """

    kind: str
    old_id: Any
    entity: Any

    def apply(self, state):
        position = state.index_of(self.kind, self.old_id)
        if position is None:
            return Put(self.kind, self.entity).apply(state)
        entities = list(state.items(self.kind))
        previous = entities[position]
        entities[position] = self.entity
        return state.with_kind(self.kind, entities), Swap(self.kind, self.entity.id, previous)


@dataclass(frozen=True)
class Batch(Patch):
    """Several patches applied in order; undone in reverse order."""

    patches: tuple = ()

    def __init__(self, *patches):
        object.__setattr__(self, "patches", tuple(p for p in patches if p is not None))

    def apply(self, state):
        inverses = []
        for patch in self.patches:
            state, inverse = patch.apply(state)
            inverses.append(inverse)
        return state, Batch(*reversed(inverses))

    def __bool__(self) -> bool:
        return bool(self.patches)


@dataclass(frozen=True)
class ReplaceAll(Patch):
    """Swap the contents of the given kinds wholesale (full refresh)."""

    collections: Mapping[str, tuple]

    def apply(self, state):
        previous = {kind: state.items(kind) for kind in self.collections}
        updated = dict(state.collections)
        for kind, entities in self.collections.items():
            updated[kind] = tuple(entities)
        return CacheState(MappingProxyType(updated)), ReplaceAll(previous)
