"""Floating origin marker and the root component that tracks it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from bigspace.world import World

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FloatingOrigin:
    """Marks the entity whose cell is the rendering origin of its big space."""


@dataclass
class BigSpace:
    """Marks the root of a high precision hierarchy and records its floating origin."""

    floating_origin: Optional[int] = None

    def validate_floating_origin(self, this_entity: int, world: World) -> Optional[int]:
        """The floating origin, if it exists and descends from ``this_entity``."""
        origin = self.floating_origin
        if origin is None or origin not in world:
            return None
        root = None
        for root in world.ancestors(origin):
            pass
        if root is None or root != this_entity:
            return None
        return origin


def find_floating_origin(world: World) -> None:
    """Set each big space's floating origin from the ``FloatingOrigin`` in its hierarchy."""
    counts: dict[int, int] = {}
    for entity, space in world.query(BigSpace):
        space.floating_origin = None
        counts[entity] = 0

    for origin, _ in world.query(FloatingOrigin):
        root = None
        for root in world.ancestors(origin):
            pass
        if root is None:
            continue
        space = world.get(root, BigSpace)
        if space is None:
            continue
        counts[root] = counts.get(root, 0) + 1
        if counts[root] > 1:
            logger.error(
                "BigSpace %s has multiple floating origins. There must be exactly one. "
                "Resetting this big space and disabling the floating origin.",
                root,
            )
            space.floating_origin = None
        else:
            space.floating_origin = origin

    for root, count in counts.items():
        if count == 0:
            logger.error(
                "BigSpace %s has no floating origins. There must be exactly one. "
                "Transform propagation will not work until there is a FloatingOrigin in the hierarchy.",
                root,
            )