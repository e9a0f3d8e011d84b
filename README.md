# bigspace

Floating origin grids for worlds far larger than single-precision floats can
describe.

A position in a big space has two parts. A `GridCell` holds the integer cell
indices, as signed 64-bit values. A `Transform` holds a small offset from that
cell's centre.

Grids nest inside one another. A planet can spin inside a solar system while
the things on it keep their full precision. Every frame, positions are worked
out relative to the cell of one `FloatingOrigin` entity, usually the camera.
Because of that, the resulting `GlobalTransform` values stay small and precise
wherever you are.

The package has no dependencies outside the standard library.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The world

`bigspace.world.World` is a small entity store:

- Entities are integers.
- Each entity holds at most one component of each type.
- `World` keeps a parent/child hierarchy through the `ChildOf` component.
- `World` tracks which components were added or changed since the last `clear_trackers()`.

Its main methods are:

- `spawn`, `insert`, `remove` and `despawn` to create and edit entities.
- `get`, `has` and `query` to read components.
- `add_child`, `parent`, `children`, `ancestors` and `descendants` for the hierarchy.
- `mark_changed`, `is_changed`, `is_added` and `clear_trackers` for change tracking.

## Building a hierarchy

```python
from bigspace.world import World
from bigspace.math import Vec3, Transform, GlobalTransform
from bigspace.floating_origins import FloatingOrigin
from bigspace.commands import spawn_big_space_default
from bigspace.propagation import propagate_all

world = World()
spawned = {}

def build(root):
    cell, offset = root.grid.translation_to_grid(Vec3(1e18, 1e18, 1e18))
    root.spawn_spatial(FloatingOrigin(), Transform.from_translation(offset), cell)
    spawned["ship"] = root.spawn_spatial(
        Transform.from_translation(offset + Vec3(3.0, 0.0, 0.0)), cell
    ).id()

spawn_big_space_default(world, build)
propagate_all(world)
print(world.get(spawned["ship"], GlobalTransform).translation())  # about (3, 0, 0)
```

`bigspace.commands` helps you build hierarchies:

- `spawn_big_space(world, grid, builder)` spawns a root with the components from `big_space_root_bundle()`. It calls `builder` with a `GridCommands` and returns the root entity. `spawn_big_space_default` does the same with a default `Grid`.
- `GridCommands` spawns entities into its grid with `spawn`, `spawn_spatial` and `with_spatial`.
- `GridCommands` nests child grids with `with_grid`, `with_grid_default`, `spawn_grid` and `spawn_grid_default`.
- The grid a `GridCommands` carries is stored on its entity by `finish()`, or when the `with` block ends.
- `spawn_spatial` and `spawn` return a `SpatialEntityCommands`. It offers `insert`, `remove`, `with_child`, `with_children` and `id`.
- `grid_commands(world, entity, grid)` gives commands for an existing entity.

## Each frame

`bigspace.propagation.propagate_all(world)` runs these steps in order:

1. `find_floating_origin` records each `BigSpace` root's single `FloatingOrigin`. It logs an error when a root has none or more than one.
2. `recenter_large_transforms` moves entities whose changed translation has drifted past the grid's `maximum_distance_from_origin` into the nearest cell.
3. `compute_all` works out where the floating origin lies in every grid, as each grid's `local_floating_origin`. It walks the hierarchy up to the root and back down.
4. `tag_low_precision_roots` adds `LowPrecisionRoot` to entities that have a `Transform` but no `GridCell` and hang under a high-precision entity. It removes the tag where it no longer applies.
5. `propagate_high_precision` computes `GlobalTransform` for entities with a `GridCell`, and for root grids.
6. `propagate_low_precision` computes `GlobalTransform` down low-precision subtrees.
7. Finally, the world's change marks are cleared.

`bigspace.grids` also provides `Grids`, a view for navigating grids: `get`, `position`, `update`, `parent_grid`, `parent_grid_entity`, `child_grids` and `sibling_grids`. It also provides `propagate_origin_to_parent` and `propagate_origin_to_child`.

## Grids

`Grid(cell_edge_length, switching_threshold)` defines a grid. The default is
2000 units per cell with a 100 unit threshold. Its methods are:

- `translation_to_grid(v)` splits a double-precision translation into a cell and a small offset. Halves are rounded away from zero.
- `imprecise_translation_to_grid(v)` does the same for a translation taken from a `Transform`.
- `grid_position_double(cell, transform)` and `grid_position(cell, transform)` give the position back, in double and in single precision.
- `cell_to_float(cell)` gives the position of a cell's centre.
- `global_transform(cell, transform)` gives the transform relative to the floating origin.

`GridCell` additions and subtractions wrap around at the 64-bit limits.

`bigspace.math` holds the double-precision types everything else uses: `Vec3`, `Quat`, `Affine3`, `Transform` and `GlobalTransform`.

## Camera controller

`bigspace.camera` provides `CameraController` (built with `with_speed`, `with_smoothness`, `with_speed_bounds` and friends) and `CameraInput`:

- `default_camera_inputs(cam, pressed_keys, mouse_deltas)` applies the default bindings to a `CameraInput`:
  - W/S move forward and back, A/D move left and right.
  - Space and left Control move up and down.
  - Q/E roll, and left Shift boosts.
  - Mouse motion pitches and yaws.

  Pass keys as `KeyCode` members or their string values. Nothing is applied when `defaults_disabled` is set.
- `nearest_objects_in_grid(world)` records, on the single controlled camera, the nearest visible object. An object counts if it has an `Aabb` and `InheritedVisibility` and shares a `RenderLayers` layer with the camera. The camera uses this distance to slow down near objects.
- `camera_controller(world, camera_input, dt)` moves every camera that has a `CameraController`, `GridCell` and `Transform` through its grid, then resets the input.

## What this package does not do

It does no rendering, opens no windows and reads no keyboard or mouse itself.
The camera functions take input as plain values, and all results are
`GlobalTransform` components left in the `World` for your own renderer to use.
There is no debug drawing of cells or grid axes, and no spatial hashing or
partitioning of cells.