"""A small entity store with components, a parent/child hierarchy and change tracking."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional


@dataclass(frozen=True)
class ChildOf:
    """Relationship component pointing at an entity's parent."""

    parent: int


def _flatten(items: Iterable[Any]) -> Iterator[Any]:
    for item in items:
        if isinstance(item, (tuple, list)):
            yield from _flatten(item)
        else:
            yield item


class World:
    """Entities are integers; each holds at most one component of each type."""

    def __init__(self) -> None:
        self._next_entity = 0
        self._components: dict[int, dict[type, Any]] = {}
        self._children: dict[int, list[int]] = {}
        self._added: set[tuple[int, type]] = set()
        self._changed: set[tuple[int, type]] = set()

    def __contains__(self, entity: object) -> bool:
        return entity in self._components

    def _store(self, entity: int) -> dict[type, Any]:
        try:
            return self._components[entity]
        except KeyError:
            raise KeyError(f"entity {entity} does not exist") from None

    def _set(self, entity: int, component: Any) -> None:
        store = self._store(entity)
        key = type(component)
        if key not in store:
            self._added.add((entity, key))
        store[key] = component
        self._changed.add((entity, key))

    def spawn(self, *args: Any) -> int:
        """Create an entity holding the given components (tuples are flattened)."""
        entity = self._next_entity
        self._next_entity += 1
        self._components[entity] = {}
        self._children[entity] = []
        self.insert(entity, *args)
        return entity

    def insert(self, entity: int, *args: Any) -> None:
        """Add or replace components; a ``ChildOf`` attaches the entity to its parent."""
        self._store(entity)
        for component in _flatten(args):
            if isinstance(component, ChildOf):
                self.add_child(component.parent, entity)
            else:
                self._set(entity, component)

    def remove(self, entity: int, component_type: type) -> None:
        store = self._store(entity)
        if component_type is ChildOf:
            self._detach(entity)
            return
        store.pop(component_type, None)
        self._added.discard((entity, component_type))
        self._changed.discard((entity, component_type))

    def _detach(self, entity: int) -> None:
        store = self._components[entity]
        link = store.pop(ChildOf, None)
        if link is not None:
            siblings = self._children.get(link.parent)
            if siblings is not None and entity in siblings:
                siblings.remove(entity)
        self._added.discard((entity, ChildOf))
        self._changed.discard((entity, ChildOf))

    def despawn(self, entity: int) -> None:
        """Remove an entity and all of its descendants."""
        self._store(entity)
        for child in list(self._children[entity]):
            self.despawn(child)
        self._detach(entity)
        for key in list(self._components[entity]):
            self._added.discard((entity, key))
            self._changed.discard((entity, key))
        del self._components[entity]
        del self._children[entity]

    def get(self, entity: int, component_type: type) -> Optional[Any]:
        return self._store(entity).get(component_type)

    def has(self, entity: int, component_type: type) -> bool:
        return component_type in self._store(entity)

    def query(self, *args: type) -> Iterator[tuple]:
        """Yield ``(entity, component, ...)`` for entities holding every given type."""
        for entity in list(self._components):
            store = self._components.get(entity)
            if store is None:
                continue
            if all(t in store for t in args):
                yield (entity, *(store[t] for t in args))

    def add_child(self, parent: int, child: int) -> None:
        self._store(parent)
        store = self._store(child)
        if parent == child or child in self.ancestors(parent):
            raise ValueError(f"making {child} a child of {parent} would create a cycle")
        current = store.get(ChildOf)
        if current is not None and current.parent == parent:
            return
        if current is not None:
            self._children[current.parent].remove(child)
        self._children[parent].append(child)
        self._set(child, ChildOf(parent))

    def parent(self, entity: int) -> Optional[int]:
        link = self._store(entity).get(ChildOf)
        return link.parent if link is not None else None

    def children(self, entity: int) -> list[int]:
        self._store(entity)
        return list(self._children[entity])

    def ancestors(self, entity: int) -> Iterator[int]:
        """Parent, grandparent and so on up to the root."""
        current = self.parent(entity)
        while current is not None:
            yield current
            current = self.parent(current)

    def descendants(self, entity: int) -> Iterator[int]:
        """All descendants, breadth first."""
        queue = deque(self.children(entity))
        while queue:
            current = queue.popleft()
            yield current
            queue.extend(self._children[current])

    def mark_changed(self, entity: int, component_type: type) -> None:
        if component_type not in self._store(entity):
            raise KeyError(f"entity {entity} has no {component_type.__name__}")
        self._changed.add((entity, component_type))

    def is_changed(self, entity: int, component_type: type) -> bool:
        return (entity, component_type) in self._changed

    def is_added(self, entity: int, component_type: type) -> bool:
        return (entity, component_type) in self._added

    def clear_trackers(self) -> None:
        """Forget all added and changed marks."""
        self._added.clear()
        self._changed.clear()