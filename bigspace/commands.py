"""Helpers for building big space hierarchies, and the component bundles they use."""

from __future__ import annotations

from typing import Any, Callable, Optional

from bigspace.cell import GridCell
from bigspace.floating_origins import BigSpace
from bigspace.grid import Grid
from bigspace.math import GlobalTransform, Transform
from bigspace.world import World


def big_spatial_bundle() -> tuple:
    """Components needed to position an entity in a big space."""
    return (Transform(), GlobalTransform(), GridCell())


def big_grid_bundle() -> tuple:
    """A spatial bundle that is also a grid other spatial entities can be nested in."""
    return (Transform(), GlobalTransform(), GridCell(), Grid())


def big_space_root_bundle() -> tuple:
    """Components the root of a big space needs."""
    return (Grid(), GlobalTransform(), BigSpace())


class ChildSpawner:
    """Spawns children of one entity."""

    def __init__(self, world: World, parent: int) -> None:
        self._world = world
        self._parent = parent

    @property
    def target_entity(self) -> int:
        return self._parent

    def spawn(self, *args: Any) -> int:
        entity = self._world.spawn(*args)
        self._world.add_child(self._parent, entity)
        return entity


class SpatialEntityCommands:
    """Operations on a single entity spawned in a grid."""

    def __init__(self, world: World, entity: int) -> None:
        self._world = world
        self._entity = entity

    @property
    def world(self) -> World:
        return self._world

    def insert(self, *args: Any) -> SpatialEntityCommands:
        self._world.insert(self._entity, *args)
        return self

    def remove(self, component_type: type) -> SpatialEntityCommands:
        self._world.remove(self._entity, component_type)
        return self

    def with_children(self, builder: Callable[[ChildSpawner], Any]) -> SpatialEntityCommands:
        """Call ``builder`` with a spawner whose entities become children of this entity."""
        builder(ChildSpawner(self._world, self._entity))
        return self

    def with_child(self, *args: Any) -> SpatialEntityCommands:
        ChildSpawner(self._world, self._entity).spawn(*args)
        return self

    def id(self) -> int:
        return self._entity


class GridCommands:
    """Builds the contents of one grid; ``finish`` (or leaving a ``with`` block) stores the grid."""

    def __init__(self, world: World, entity: int, grid: Grid) -> None:
        self._world = world
        self._entity = entity
        self._grid = grid

    def __enter__(self) -> GridCommands:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.finish()

    @property
    def grid(self) -> Grid:
        """The grid this entity will hold."""
        return self._grid

    @property
    def world(self) -> World:
        return self._world

    def insert(self, *args: Any) -> GridCommands:
        """Insert components on the grid entity."""
        self._world.insert(self._entity, *args)
        return self

    def spawn(self, *args: Any) -> SpatialEntityCommands:
        """Spawn an entity as a child of this grid."""
        entity = self._world.spawn(*args)
        self._world.add_child(self._entity, entity)
        return SpatialEntityCommands(self._world, entity)

    def spawn_spatial(self, *args: Any) -> SpatialEntityCommands:
        """Spawn a high precision entity (with a ``GridCell``) in this grid."""
        return self.spawn(big_spatial_bundle()).insert(*args)

    def id(self) -> int:
        return self._entity

    def with_spatial(self, builder: Callable[[SpatialEntityCommands], Any]) -> GridCommands:
        builder(self.spawn_spatial())
        return self

    def with_grid(self, grid: Grid, builder: Callable[[GridCommands], Any]) -> GridCommands:
        """Spawn a child grid and fill it with ``builder``."""
        with self.spawn_grid(grid) as child:
            builder(child)
        return self

    def with_grid_default(self, builder: Callable[[GridCommands], Any]) -> GridCommands:
        return self.with_grid(Grid(), builder)

    def spawn_grid(self, grid: Grid, *args: Any) -> GridCommands:
        """Spawn a child grid; the returned commands must be finished to store ``grid``."""
        entity = self.spawn(big_grid_bundle()).insert(*args).id()
        return GridCommands(self._world, entity, grid)

    def spawn_grid_default(self, *args: Any) -> GridCommands:
        return self.spawn_grid(Grid(), *args)

    def with_child(self, *args: Any) -> GridCommands:
        """Spawn a plain child of this grid."""
        self.spawn(*args)
        return self

    def finish(self) -> None:
        """Store this builder's grid on the entity."""
        self._world.insert(self._entity, self._grid)


def spawn_big_space(world: World, grid: Grid, builder: Callable[[GridCommands], Any]) -> int:
    """Spawn a big space root holding ``grid``, fill it with ``builder`` and return its entity."""
    entity = world.spawn(big_space_root_bundle())
    with GridCommands(world, entity, grid) as commands:
        builder(commands)
    return entity


def spawn_big_space_default(world: World, builder: Callable[[GridCommands], Any]) -> int:
    return spawn_big_space(world, Grid(), builder)


def grid_commands(world: World, entity: int, grid: Optional[Grid]) -> GridCommands:
    """Commands for an existing entity; ``grid`` is inserted when they are finished."""
    return GridCommands(world, entity, grid if grid is not None else Grid())