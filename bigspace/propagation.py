"""Recentering of large transforms and propagation of global transforms through grids."""

from __future__ import annotations

from dataclasses import dataclass

from bigspace.cell import GridCell
from bigspace.floating_origins import BigSpace, find_floating_origin
from bigspace.grid import Grid
from bigspace.grids import compute_all
from bigspace.math import GlobalTransform, Transform
from bigspace.world import ChildOf, World


@dataclass(frozen=True)
class LowPrecisionRoot:
    """Marks an entity without a ``GridCell`` whose parent is a high precision entity."""


def recenter_large_transforms(world: World) -> None:
    """Move entities whose changed translation left their cell into the nearest cell."""
    for entity, cell, transform, link in list(world.query(GridCell, Transform, ChildOf)):
        if not world.is_changed(entity, Transform):
            continue
        grid = world.get(link.parent, Grid)
        if grid is None:
            continue
        if transform.translation.abs().max_element() > grid.maximum_distance_from_origin:
            delta, translation = grid.imprecise_translation_to_grid(transform.translation)
            world.insert(entity, cell + delta, transform.with_translation(translation))


def propagate_high_precision(world: World) -> None:
    """Update the ``GlobalTransform`` of entities with a ``GridCell`` and of root grids."""
    for entity, cell, transform, link, _ in list(
        world.query(GridCell, Transform, ChildOf, GlobalTransform)
    ):
        grid = world.get(link.parent, Grid)
        if grid is None:
            continue
        # Skip entities that have not moved while their grid's local origin stayed put.
        if (
            not grid.local_floating_origin.is_local_origin_unchanged
            or world.is_changed(entity, Transform)
            or world.is_changed(entity, GridCell)
            or world.is_changed(entity, ChildOf)
        ):
            world.insert(entity, grid.global_transform(cell, transform))

    for entity, grid, _, _ in list(world.query(Grid, GlobalTransform, BigSpace)):
        if grid.local_floating_origin.is_local_origin_unchanged:
            continue
        world.insert(entity, grid.global_transform(GridCell(), Transform.IDENTITY))


def _is_valid_parent(world: World, entity: int) -> bool:
    return (
        world.has(entity, GridCell)
        and world.has(entity, GlobalTransform)
        and bool(world.children(entity))
    )


def _is_low_precision(world: World, entity: int) -> bool:
    return (
        world.has(entity, Transform)
        and world.has(entity, GlobalTransform)
        and not world.has(entity, GridCell)
        and not world.has(entity, Grid)
    )


def tag_low_precision_roots(world: World) -> None:
    """Add ``LowPrecisionRoot`` where it belongs and remove it where it no longer does."""
    to_mark = [
        entity
        for entity, link, _, _ in world.query(ChildOf, Transform, GlobalTransform)
        if not world.has(entity, GridCell)
        and not world.has(entity, LowPrecisionRoot)
        and (world.is_changed(entity, ChildOf) or world.is_added(entity, Transform))
        and _is_valid_parent(world, link.parent)
    ]

    to_unmark = set()
    for entity, _ in world.query(LowPrecisionRoot):
        link = world.get(entity, ChildOf)
        if (
            not world.has(entity, Transform)
            or not world.has(entity, GlobalTransform)
            or world.has(entity, GridCell)
            or link is None
            or not _is_valid_parent(world, link.parent)
        ):
            to_unmark.add(entity)

    for entity in to_mark:
        world.insert(entity, LowPrecisionRoot())
    for entity in to_unmark:
        world.remove(entity, LowPrecisionRoot)


def _propagate_subtree(
    world: World, root: int, parent_global: GlobalTransform, changed: bool
) -> None:
    stack = [(root, parent_global, changed)]
    while stack:
        entity, parent_global, changed = stack.pop()
        if not _is_low_precision(world, entity) or world.parent(entity) is None:
            continue
        transform = world.get(entity, Transform)
        global_transform = world.get(entity, GlobalTransform)
        changed = (
            changed
            or world.is_changed(entity, Transform)
            or world.is_added(entity, GlobalTransform)
        )
        if changed:
            global_transform = parent_global.mul_transform(transform)
            world.insert(entity, global_transform)

        for child in world.children(entity):
            if not _is_low_precision(world, child):
                continue
            if world.parent(child) != entity:
                raise RuntimeError(
                    "Malformed hierarchy. This probably means that your hierarchy has been "
                    "improperly maintained, or contains a cycle"
                )
            stack.append(
                (child, global_transform, changed or world.is_changed(child, ChildOf))
            )


def propagate_low_precision(world: World) -> None:
    """Propagate ``GlobalTransform`` down subtrees of entities that only have a ``Transform``."""
    for entity, _, link in list(world.query(LowPrecisionRoot, ChildOf)):
        parent = link.parent
        if not (world.has(parent, Grid) or world.has(parent, GridCell)):
            continue
        parent_global = world.get(parent, GlobalTransform)
        if parent_global is None:
            continue
        _propagate_subtree(
            world, entity, parent_global, world.is_changed(parent, GlobalTransform)
        )


def propagate_all(world: World) -> None:
    """Run one full frame of floating origin bookkeeping and transform propagation.

    Change marks are cleared at the end, so the next call only reacts to later changes.
    """
    find_floating_origin(world)
    recenter_large_transforms(world)
    compute_all(world)
    tag_low_precision_roots(world)
    propagate_high_precision(world)
    propagate_low_precision(world)
    world.clear_trackers()