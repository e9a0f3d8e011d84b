import logging
import math

import pytest

from bigspace.cell import GridCell
from bigspace.floating_origins import BigSpace, FloatingOrigin, find_floating_origin
from bigspace.grid import Grid, LocalFloatingOrigin
from bigspace.grids import (
    Grids,
    compute_all,
    propagate_origin_to_child,
    propagate_origin_to_parent,
)
from bigspace.math import Affine3, Quat, Transform, Vec3
from bigspace.world import World


def grid_bundle():
    return (Transform(), GridCell(), Grid())


def test_grid_hierarchy_getters():
    world = World()
    child_1 = world.spawn(grid_bundle())
    child_2 = world.spawn(grid_bundle())
    parent = world.spawn(grid_bundle())
    root = world.spawn(grid_bundle())
    world.add_child(root, parent)
    world.add_child(parent, child_1)
    world.add_child(parent, child_2)

    grids = Grids(world)

    assert list(grids.child_grids(root)) == [parent]
    result = list(grids.child_grids(parent))
    assert child_1 in result
    assert child_2 in result
    assert list(grids.child_grids(child_1)) == []

    assert grids.parent_grid_entity(root) is None
    assert grids.parent_grid_entity(parent) == root
    assert grids.parent_grid_entity(child_1) == parent

    assert grids.sibling_grids(root) is None
    assert list(grids.sibling_grids(parent)) == []
    assert list(grids.sibling_grids(child_1)) == [child_2]


def test_child_propagation():
    world = World()
    root_grid = Grid(
        local_floating_origin=LocalFloatingOrigin(
            GridCell(1_000_000, -1, -1),
            Vec3.ZERO,
            Quat.from_rotation_z(-math.pi / 2),
        )
    )
    root = world.spawn(Transform(), GridCell(), root_grid)
    child = world.spawn(
        Transform.from_rotation(Quat.from_rotation_z(math.pi / 2)).with_translation(
            Vec3(1.0, 1.0, 0.0)
        ),
        GridCell(1_000_000, 0, 0),
        Grid(),
    )
    world.add_child(root, child)
    grids = Grids(world)

    propagate_origin_to_child(root, grids, child)

    child_grid = grids.get(child)
    assert child_grid.local_floating_origin.cell == GridCell(-1, 0, -1)

    rot_error = child_grid.local_floating_origin.rotation.angle_between(
        Quat.from_rotation_z(math.pi)
    )
    assert rot_error < 1e-6

    trans_error = child_grid.local_floating_origin.translation.distance(Vec3(-1.0, 1.0, 0.0))
    assert trans_error < 1e-4


def test_parent_propagation():
    world = World()
    root = world.spawn(grid_bundle())
    child = world.spawn(
        Transform.from_rotation(Quat.from_rotation_z(math.pi / 2)).with_translation(
            Vec3(1.0, 1.0, 0.0)
        ),
        GridCell(150_000_003_000, 0, 0),
        Grid(
            local_floating_origin=LocalFloatingOrigin(
                GridCell(0, 3_000, 0),
                Vec3(5.0, 5.0, 0.0),
                Quat.from_rotation_z(-math.pi / 2),
            )
        ),
    )
    world.add_child(root, child)
    grids = Grids(world)

    propagate_origin_to_parent(child, grids, root)

    root_grid = grids.get(root)
    assert root_grid.local_floating_origin.cell == GridCell(150_000_000_000, 0, 0)

    rot_error = root_grid.local_floating_origin.rotation.angle_between(Quat.IDENTITY)
    assert rot_error < 1e-6

    trans_error = root_grid.local_floating_origin.translation.distance(Vec3(-4.0, 6.0, 0.0))
    assert trans_error < 0.3


def test_origin_transform():
    world = World()
    root = world.spawn(
        Transform(),
        GridCell(),
        Grid(
            local_floating_origin=LocalFloatingOrigin(
                GridCell(0, 0, 0), Vec3(1.0, 1.0, 0.0), Quat.from_rotation_z(0.0)
            )
        ),
    )
    child = world.spawn(
        Transform()
        .with_rotation(Quat.from_rotation_z(-math.pi / 2))
        .with_translation(Vec3(3.0, 3.0, 0.0)),
        GridCell(0, 0, 0),
        Grid(),
    )
    world.add_child(root, child)
    grids = Grids(world)

    propagate_origin_to_child(root, grids, child)

    child_grid = grids.get(child)
    point = Vec3(5.0, 5.0, 0.0)
    computed = child_grid.local_floating_origin.grid_transform.transform_point3(point)
    correct = Affine3.from_rotation_translation(
        Quat.from_rotation_z(-math.pi / 2), Vec3(2.0, 2.0, 0.0)
    ).transform_point3(point)

    assert (computed - correct).length() < 1e-6
    assert (computed - Vec3(7.0, -3.0, 0.0)).length() < 1e-6


def test_get_missing_grid_raises():
    world = World()
    entity = world.spawn(Transform())
    with pytest.raises(KeyError):
        Grids(world).get(entity)


def test_position_of_root_defaults():
    world = World()
    root = world.spawn(Grid())
    assert Grids(world).position(root) == (GridCell(), Transform())


def test_position_of_child_without_cell_raises():
    world = World()
    root = world.spawn(Grid())
    child = world.spawn(Grid())
    world.add_child(root, child)
    with pytest.raises(ValueError):
        Grids(world).position(child)


def test_parent_grid_none_when_parent_is_not_a_grid():
    world = World()
    plain = world.spawn(Transform())
    child = world.spawn(grid_bundle())
    world.add_child(plain, child)
    grids = Grids(world)
    assert grids.parent_grid_entity(child) is None
    assert grids.parent_grid(child) is None


def test_update_returns_result_and_marks_changed():
    world = World()
    root = world.spawn(Grid())
    world.clear_trackers()
    grids = Grids(world)
    result = grids.update(root, lambda grid, cell, transform: (grid.cell_edge_length, cell))
    assert result == (Grid().cell_edge_length, GridCell())
    assert world.is_changed(root, Grid)


def _space_with_origin_in_subgrid():
    world = World()
    root = world.spawn(Grid(), BigSpace())
    grid_a = world.spawn(Transform(), GridCell(1, 0, 0), Grid())
    grid_b = world.spawn(Transform(), GridCell(-1, 0, 0), Grid())
    grid_c = world.spawn(Transform(), GridCell(0, 2, 0), Grid())
    origin = world.spawn(Transform(), GridCell(0, 0, 0), FloatingOrigin())
    world.add_child(root, grid_a)
    world.add_child(root, grid_b)
    world.add_child(grid_b, grid_c)
    world.add_child(grid_a, origin)
    return world, root, grid_a, grid_b, grid_c


def test_compute_all_reaches_parents_siblings_and_their_children():
    world, root, grid_a, grid_b, grid_c = _space_with_origin_in_subgrid()
    find_floating_origin(world)
    compute_all(world)
    grids = Grids(world)

    assert grids.get(grid_a).local_floating_origin.cell == GridCell(0, 0, 0)
    assert grids.get(root).local_floating_origin.cell == GridCell(1, 0, 0)
    assert grids.get(grid_b).local_floating_origin.cell == GridCell(2, 0, 0)
    assert grids.get(grid_c).local_floating_origin.cell == GridCell(2, -2, 0)


def test_compute_all_twice_reports_unchanged():
    world, root, grid_a, grid_b, grid_c = _space_with_origin_in_subgrid()
    find_floating_origin(world)
    compute_all(world)
    compute_all(world)
    grids = Grids(world)
    for entity in (root, grid_a, grid_b, grid_c):
        assert grids.get(entity).local_floating_origin.is_local_origin_unchanged


def test_compute_all_logs_when_origin_not_in_grid(caplog):
    world = World()
    root = world.spawn(BigSpace())
    origin = world.spawn(Transform(), GridCell(), FloatingOrigin())
    world.add_child(root, origin)
    find_floating_origin(world)
    with caplog.at_level(logging.ERROR, logger="bigspace.grids"):
        compute_all(world)
    assert any("not in a valid grid" in record.getMessage() for record in caplog.records)