import logging

from bigspace.floating_origins import BigSpace, FloatingOrigin, find_floating_origin
from bigspace.world import World


def make_space(world):
    root = world.spawn(BigSpace())
    return root


def test_validate_accepts_descendant_origin():
    world = World()
    root = make_space(world)
    grid = world.spawn()
    origin = world.spawn(FloatingOrigin())
    world.add_child(root, grid)
    world.add_child(grid, origin)
    space = BigSpace(floating_origin=origin)
    assert space.validate_floating_origin(root, world) == origin


def test_validate_rejects_foreign_or_missing_origin():
    world = World()
    root = make_space(world)
    other = make_space(world)
    origin = world.spawn(FloatingOrigin())
    world.add_child(other, origin)
    assert BigSpace(floating_origin=origin).validate_floating_origin(root, world) is None
    assert BigSpace().validate_floating_origin(root, world) is None
    lone = world.spawn(FloatingOrigin())
    assert BigSpace(floating_origin=lone).validate_floating_origin(root, world) is None


def test_find_sets_origin_in_each_space():
    world = World()
    first, second = make_space(world), make_space(world)
    a = world.spawn(FloatingOrigin())
    mid = world.spawn()
    b = world.spawn(FloatingOrigin())
    world.add_child(first, a)
    world.add_child(second, mid)
    world.add_child(mid, b)
    find_floating_origin(world)
    assert world.get(first, BigSpace).floating_origin == a
    assert world.get(second, BigSpace).floating_origin == b


def test_multiple_origins_disable_space(caplog):
    world = World()
    root = make_space(world)
    for _ in range(2):
        world.add_child(root, world.spawn(FloatingOrigin()))
    with caplog.at_level(logging.ERROR):
        find_floating_origin(world)
    assert world.get(root, BigSpace).floating_origin is None
    assert "multiple floating origins" in caplog.text


def test_missing_origin_is_reported_and_reset(caplog):
    world = World()
    root = make_space(world)
    origin = world.spawn(FloatingOrigin())
    world.add_child(root, origin)
    find_floating_origin(world)
    assert world.get(root, BigSpace).floating_origin == origin
    world.despawn(origin)
    with caplog.at_level(logging.ERROR):
        find_floating_origin(world)
    assert world.get(root, BigSpace).floating_origin is None
    assert "no floating origins" in caplog.text


def test_origin_outside_big_space_is_ignored():
    world = World()
    root = make_space(world)
    plain_root = world.spawn()
    origin = world.spawn(FloatingOrigin())
    world.add_child(plain_root, origin)
    find_floating_origin(world)
    assert world.get(root, BigSpace).floating_origin is None