"""Navigation of grid hierarchies and propagation of the floating origin through them."""

from __future__ import annotations

import logging
from typing import Callable, Iterator, Optional, TypeVar

from bigspace.cell import GridCell
from bigspace.floating_origins import BigSpace
from bigspace.grid import Grid
from bigspace.math import Affine3, Quat, Transform, Vec3
from bigspace.world import World

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_REFERENCE_FRAME_DEPTH = 1_000
"""Guards against degenerate hierarchies when walking up the grid tree."""


class Grids:
    """A view of a world for navigating and updating a hierarchy of grids."""

    def __init__(self, world: World) -> None:
        self._world = world

    @property
    def world(self) -> World:
        return self._world

    def get(self, grid_entity: int) -> Grid:
        """The ``Grid`` component of ``grid_entity``."""
        grid = self._world.get(grid_entity, Grid)
        if grid is None:
            raise KeyError(f"Grid entity {grid_entity} missing Grid component")
        return grid

    def position(self, grid_entity: int) -> tuple[GridCell, Transform]:
        """The cell and transform of a grid; a root grid without them sits at the origin."""
        cell = self._world.get(grid_entity, GridCell)
        transform = self._world.get(grid_entity, Transform)
        if cell is not None and transform is not None:
            return cell, transform
        if self._world.parent(grid_entity) is not None:
            raise ValueError(
                f"Grid entity {grid_entity} is missing a GridCell and Transform. "
                "This is valid only if this is a root grid, but this is not."
            )
        return GridCell(), Transform()

    def update(self, grid_entity: int, func: Callable[[Grid, GridCell, Transform], T]) -> T:
        """Call ``func(grid, cell, transform)`` on a grid, mark it changed and return the result."""
        cell, transform = self.position(grid_entity)
        grid = self.get(grid_entity)
        result = func(grid, cell, transform)
        self._world.mark_changed(grid_entity, Grid)
        return result

    def parent_grid(self, entity: int) -> Optional[Grid]:
        """The grid ``entity`` is a child of, if any."""
        parent = self.parent_grid_entity(entity)
        return self.get(parent) if parent is not None else None

    def parent_grid_entity(self, entity: int) -> Optional[int]:
        """The entity of the grid ``entity`` is a child of, if any."""
        parent = self._world.parent(entity)
        if parent is None or not self._world.has(parent, Grid):
            return None
        return parent

    def child_grids(self, entity: int) -> Iterator[int]:
        """Grid entities that are children of ``entity``."""
        world = self._world
        return (child for child, _ in world.query(Grid) if world.parent(child) == entity)

    def sibling_grids(self, entity: int) -> Optional[Iterator[int]]:
        """Grid entities sharing ``entity``'s parent grid, or ``None`` without a parent grid."""
        parent = self.parent_grid_entity(entity)
        if parent is None:
            return None
        return (child for child in self.child_grids(parent) if child != entity)


def propagate_origin_to_parent(this_grid_entity: int, grids: Grids, parent_grid_entity: int) -> None:
    """Compute the parent grid's local floating origin from this grid's."""
    this_grid = grids.get(this_grid_entity)
    this_cell, this_transform = grids.position(this_grid_entity)
    parent_grid = grids.get(parent_grid_entity)
    local = this_grid.local_floating_origin

    # Work relative to this grid's cell to keep precision; the cell is added back at the end.
    this_affine = Affine3.from_rotation_translation(
        this_transform.rotation, this_transform.translation
    )
    origin_translation = this_grid.grid_position_double(
        local.cell, Transform.from_translation(local.translation)
    )
    this_local_origin = Affine3.from_rotation_translation(local.rotation, origin_translation)

    origin_affine = this_affine * this_local_origin
    _, origin_rotation, origin_translation = origin_affine.to_scale_rotation_translation()
    relative_cell, remainder = parent_grid.translation_to_grid(origin_translation)
    parent_origin_cell = relative_cell + this_cell

    grids.update(
        parent_grid_entity,
        lambda grid, _cell, _transform: grid.local_floating_origin.set(
            parent_origin_cell, remainder, origin_rotation
        ),
    )


def propagate_origin_to_child(this_grid_entity: int, grids: Grids, child_grid_entity: int) -> None:
    """Compute a child grid's local floating origin from this grid's."""
    this_grid = grids.get(this_grid_entity)
    child_grid = grids.get(child_grid_entity)
    child_cell, child_transform = grids.position(child_grid_entity)
    local = this_grid.local_floating_origin

    relative_cell = local.cell - child_cell
    origin_translation = this_grid.grid_position_double(
        relative_cell, Transform.from_translation(local.translation)
    )
    origin_in_child_cell = Affine3.from_rotation_translation(local.rotation, origin_translation)

    child_view = Affine3.from_rotation_translation(
        child_transform.rotation, child_transform.translation
    ).inverse()

    origin_child = child_view * origin_in_child_cell
    _, rotation, translation = origin_child.to_scale_rotation_translation()
    cell, offset = child_grid.translation_to_grid(translation)

    grids.update(
        child_grid_entity,
        lambda grid, _cell, _transform: grid.local_floating_origin.set(cell, offset, rotation),
    )


def _seed_origin_grid(grids: Grids, grid_entity: int, origin_cell: GridCell) -> None:
    grids.update(
        grid_entity,
        lambda grid, _cell, _transform: grid.local_floating_origin.set(
            origin_cell, Vec3.ZERO, Quat.IDENTITY
        ),
    )


def _propagate_down(grids: Grids, stack: list[int]) -> None:
    while stack:
        current = stack.pop()
        for child in list(grids.child_grids(current)):
            propagate_origin_to_child(current, grids, child)
            stack.append(child)


def compute_all(world: World) -> None:
    """Update the local floating origin of every grid in every big space of ``world``."""
    grids = Grids(world)
    for root_entity, root in list(world.query(BigSpace)):
        origin = root.validate_floating_origin(root_entity, world)
        if origin is None:
            continue
        origin_cell = world.get(origin, GridCell)
        if origin_cell is None:
            continue

        this_grid = grids.parent_grid_entity(origin)
        if this_grid is None:
            logger.error(
                "The floating origin is not in a valid grid. The floating origin entity "
                "must be a child of an entity with the `Grid` component."
            )
            continue

        _seed_origin_grid(grids, this_grid, origin_cell)
        stack = [this_grid]

        for _ in range(MAX_REFERENCE_FRAME_DEPTH):
            parent_grid = grids.parent_grid_entity(this_grid)
            if parent_grid is not None:
                propagate_origin_to_parent(this_grid, grids, parent_grid)
                for sibling in list(grids.sibling_grids(this_grid) or ()):
                    propagate_origin_to_child(parent_grid, grids, sibling)
                    stack.append(sibling)

            _propagate_down(grids, stack)

            if parent_grid is None:
                break
            this_grid = parent_grid
        else:
            logger.error(
                "Reached the maximum grid depth (%d), and exited early to prevent an infinite "
                "loop. This might be caused by a degenerate hierarchy.",
                MAX_REFERENCE_FRAME_DEPTH,
            )