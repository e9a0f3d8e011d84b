"""A camera controller that moves through grids without losing precision."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar, Iterable, Optional, Sequence, Union

from bigspace.cell import GridCell
from bigspace.grids import Grids
from bigspace.math import GlobalTransform, Quat, Transform, Vec3
from bigspace.world import World


@dataclass(frozen=True)
class Aabb:
    """An axis aligned bounding box, in the entity's local space."""

    center: Vec3 = Vec3()
    half_extents: Vec3 = Vec3()


@dataclass(frozen=True)
class RenderLayers:
    """The set of render layers an entity belongs to; layer 0 by default."""

    layers: frozenset = frozenset({0})

    @classmethod
    def layer(cls, index: int) -> RenderLayers:
        return cls(frozenset({index}))

    @classmethod
    def from_layers(cls, *indices: int) -> RenderLayers:
        return cls(frozenset(indices))

    def intersects(self, other: RenderLayers) -> bool:
        """True if the two sets share at least one layer."""
        return bool(self.layers & other.layers)


@dataclass(frozen=True)
class InheritedVisibility:
    """Whether an entity is visible after taking its ancestors into account."""

    visible: bool = False

    VISIBLE: ClassVar[InheritedVisibility]
    HIDDEN: ClassVar[InheritedVisibility]


InheritedVisibility.VISIBLE = InheritedVisibility(True)
InheritedVisibility.HIDDEN = InheritedVisibility(False)


@dataclass
class CameraController:
    """Per-camera settings of the floating origin camera controller."""

    smoothness: float = 0.85
    rotational_smoothness: float = 0.8
    speed: float = 1.0
    speed_yaw: float = 2.0
    speed_pitch: float = 2.0
    speed_roll: float = 1.0
    speed_bounds: tuple = (1e-17, 1e30)
    slow_near_objects: bool = True
    _nearest_object: Optional[tuple] = field(default=None, repr=False)
    _vel_translation: Vec3 = field(default=Vec3.ZERO, repr=False)
    _vel_rotation: Quat = field(default=Quat.IDENTITY, repr=False)

    def with_smoothness(self, translation: float, rotation: float) -> CameraController:
        return replace(self, smoothness=translation, rotational_smoothness=rotation)

    def with_slowing(self, slow_near_objects: bool) -> CameraController:
        return replace(self, slow_near_objects=slow_near_objects)

    def with_speed(self, speed: float) -> CameraController:
        return replace(self, speed=speed)

    def with_speed_yaw(self, speed: float) -> CameraController:
        return replace(self, speed_yaw=speed)

    def with_speed_pitch(self, speed: float) -> CameraController:
        return replace(self, speed_pitch=speed)

    def with_speed_roll(self, speed: float) -> CameraController:
        return replace(self, speed_roll=speed)

    def with_speed_bounds(self, speed_bounds: Sequence[float]) -> CameraController:
        bounds = tuple(float(b) for b in speed_bounds)
        if len(bounds) != 2:
            raise ValueError("speed bounds must be a (minimum, maximum) pair")
        return replace(self, speed_bounds=bounds)

    def velocity(self) -> tuple[Vec3, Quat]:
        """The translational and rotational velocity of the camera."""
        return self._vel_translation, self._vel_rotation

    def nearest_object(self) -> Optional[tuple[int, float]]:
        """The entity nearest the camera and its distance, if known."""
        return self._nearest_object


@dataclass
class CameraInput:
    """Requested camera motion, using aircraft principal axes; cleared after each update."""

    defaults_disabled: bool = False
    forward: float = 0.0
    up: float = 0.0
    right: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0
    boost: bool = False

    def reset(self) -> None:
        """Zero all motion, keeping ``defaults_disabled``."""
        self.forward = self.up = self.right = 0.0
        self.roll = self.pitch = self.yaw = 0.0
        self.boost = False

    def target_velocity(
        self, controller: CameraController, speed: float, dt: float
    ) -> tuple[Vec3, Quat]:
        """The desired translation and rotation for a step of ``dt`` seconds."""
        rotation = Quat.from_euler_xyz(
            self.pitch * dt * controller.speed_pitch,
            self.yaw * dt * controller.speed_yaw,
            self.roll * dt * controller.speed_roll,
        )
        translation = Vec3(self.right, self.up, self.forward) * speed * dt
        return translation, rotation


class KeyCode(str, Enum):
    """Keys used by the default bindings."""

    KEY_W = "KeyW"
    KEY_S = "KeyS"
    KEY_A = "KeyA"
    KEY_D = "KeyD"
    KEY_Q = "KeyQ"
    KEY_E = "KeyE"
    SPACE = "Space"
    CONTROL_LEFT = "ControlLeft"
    SHIFT_LEFT = "ShiftLeft"


_AXIS_BINDINGS = (
    (KeyCode.KEY_W, "forward", -1.0),
    (KeyCode.KEY_S, "forward", 1.0),
    (KeyCode.KEY_A, "right", -1.0),
    (KeyCode.KEY_D, "right", 1.0),
    (KeyCode.SPACE, "up", 1.0),
    (KeyCode.CONTROL_LEFT, "up", -1.0),
    (KeyCode.KEY_Q, "roll", 2.0),
    (KeyCode.KEY_E, "roll", -2.0),
)


def default_camera_inputs(
    cam: CameraInput,
    pressed_keys: Iterable[Union[KeyCode, str]],
    mouse_deltas: Iterable[tuple[float, float]] = (),
) -> None:
    """Apply keyboard and mouse defaults to ``cam``, unless its defaults are disabled."""
    if cam.defaults_disabled:
        return
    pressed = {k.value if isinstance(k, KeyCode) else str(k) for k in pressed_keys}
    for key, attribute, amount in _AXIS_BINDINGS:
        if key.value in pressed:
            setattr(cam, attribute, getattr(cam, attribute) + amount)
    if KeyCode.SHIFT_LEFT.value in pressed:
        cam.boost = True

    deltas = list(mouse_deltas)
    if deltas:
        total_x = sum(dx for dx, _ in deltas)
        total_y = sum(dy for _, dy in deltas)
        cam.pitch += total_y * -0.1
        cam.yaw += total_x * -0.1


def nearest_objects_in_grid(world: World) -> None:
    """Record on the single camera the visible object whose bounds are nearest to it."""
    cameras = list(world.query(CameraController, GlobalTransform))
    if len(cameras) != 1:
        return
    cam_entity, controller, cam_global = cameras[0]
    if not controller.slow_near_objects:
        return
    cam_layer = world.get(cam_entity, RenderLayers) or RenderLayers()
    cam_children = set(world.descendants(cam_entity))
    cam_pos = cam_global.translation()

    nearest: Optional[tuple[int, float]] = None
    for entity, local, global_transform, aabb, visibility in world.query(
        Transform, GlobalTransform, Aabb, InheritedVisibility
    ):
        if entity in cam_children:
            continue
        obj_layer = world.get(entity, RenderLayers) or RenderLayers()
        if not cam_layer.intersects(obj_layer):
            continue
        if not visibility.visible:
            continue
        center_distance = global_transform.translation() - cam_pos
        distance = center_distance.length() - (aabb.half_extents * local.scale).abs().min_element()
        if not math.isfinite(distance):
            continue
        if nearest is None or distance < nearest[1]:
            nearest = (entity, distance)

    controller._nearest_object = nearest
    world.mark_changed(cam_entity, CameraController)


def camera_controller(world: World, camera_input: CameraInput, dt: float) -> None:
    """Move every controlled camera according to ``camera_input`` over ``dt`` seconds."""
    grids = Grids(world)
    for entity, controller, cell, transform in list(
        world.query(CameraController, GridCell, Transform)
    ):
        grid = grids.parent_grid(entity)
        if grid is None:
            continue

        nearest = controller._nearest_object
        if nearest is not None and controller.slow_near_objects:
            base = abs(nearest[1])
        else:
            base = controller.speed
        speed = base * (controller.speed + (1.0 if camera_input.boost else 0.0))

        low, high = controller.speed_bounds
        if low > high:
            raise ValueError(f"invalid speed bounds: minimum {low} exceeds maximum {high}")
        speed = min(max(speed, low), high)

        lerp_translation = 1.0 - min(max(controller.smoothness, 0.0), 0.999)
        lerp_rotation = 1.0 - min(max(controller.rotational_smoothness, 0.0), 0.999)

        vel_t_current, vel_r_current = controller.velocity()
        vel_t_target, vel_r_target = camera_input.target_velocity(controller, speed, dt)

        vel_t_next = transform.rotation.rotate(vel_t_target)
        vel_t_next = vel_t_current.lerp(vel_t_next, lerp_translation)

        cell_offset, new_translation = grid.translation_to_grid(vel_t_next)
        new_cell = cell + cell_offset
        if new_cell != cell:
            world.insert(entity, new_cell)

        new_rotation = vel_r_current.slerp(vel_r_target, lerp_rotation)
        world.insert(
            entity,
            replace(
                transform,
                translation=transform.translation + new_translation,
                rotation=transform.rotation * new_rotation,
            ),
        )

        controller._vel_translation = vel_t_next
        controller._vel_rotation = new_rotation
        world.mark_changed(entity, CameraController)

        camera_input.reset()