"""Grids that locate child entities by cell, and the floating origin's position within a grid."""

from __future__ import annotations

import math
import struct
from typing import Iterable, Optional, Union

from bigspace.cell import GridCell
from bigspace.math import Affine3, GlobalTransform, Quat, Transform, Vec3

_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1


def _f32(value: float) -> float:
    """Round a double to the nearest single precision value."""
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _round_half_away(value: float) -> float:
    """Round to the nearest integer, with halves rounded away from zero."""
    if not math.isfinite(value):
        return value
    whole = float(math.trunc(value))
    if abs(value - whole) >= 0.5:
        whole += math.copysign(1.0, value)
    return whole


def _to_index(value: float) -> int:
    """Saturating conversion of a float to a 64 bit signed cell index."""
    if math.isnan(value):
        return 0
    if value >= _I64_MAX:
        return _I64_MAX
    if value <= _I64_MIN:
        return _I64_MIN
    return int(value)


def _as_vec3(value: Union[Vec3, Iterable[float]]) -> Vec3:
    if isinstance(value, Vec3):
        return value
    x, y, z = value
    return Vec3(float(x), float(y), float(z))


def _view_transform(translation: Vec3, rotation: Quat) -> Affine3:
    return Affine3.from_rotation_translation(rotation, translation).inverse()


class LocalFloatingOrigin:
    """Where the floating origin's cell lies within a local grid.

    ``grid_transform`` maps positions relative to ``cell`` in the local grid into the
    floating origin's cell.
    """

    def __init__(
        self,
        cell: Optional[GridCell] = None,
        translation: Optional[Vec3] = None,
        rotation: Optional[Quat] = None,
    ) -> None:
        if cell is None and translation is None and rotation is None:
            self._cell = GridCell()
            self._translation = Vec3()
            self._rotation = Quat.IDENTITY
            self._grid_transform = Affine3.identity()
        else:
            self._cell = cell if cell is not None else GridCell()
            self._translation = translation if translation is not None else Vec3()
            self._rotation = rotation if rotation is not None else Quat.IDENTITY
            self._grid_transform = _view_transform(self._translation, self._rotation)
        self._is_local_origin_unchanged = False

    @property
    def cell(self) -> GridCell:
        """The local cell that the floating origin's cell origin falls into."""
        return self._cell

    @property
    def translation(self) -> Vec3:
        """Offset of the floating origin's cell from the origin of ``cell``."""
        return self._translation

    @property
    def rotation(self) -> Quat:
        """Rotation of the floating origin's cell relative to this grid."""
        return self._rotation

    @property
    def grid_transform(self) -> Affine3:
        """Transform from this grid (relative to ``cell``) into the floating origin's cell."""
        return self._grid_transform

    @property
    def is_local_origin_unchanged(self) -> bool:
        """True if the last ``set`` left the origin where it already was."""
        return self._is_local_origin_unchanged

    def _key(self) -> tuple:
        return (self._cell, self._translation, self._rotation, self._grid_transform)

    def set(self, cell: GridCell, translation: Vec3, rotation: Quat) -> None:
        """Move the local origin and recompute the grid transform."""
        previous = self._key()
        self._cell = cell
        self._translation = translation
        self._rotation = rotation
        self._grid_transform = _view_transform(translation, rotation)
        self._is_local_origin_unchanged = previous == self._key()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LocalFloatingOrigin):
            return NotImplemented
        return (
            self._key() == other._key()
            and self._is_local_origin_unchanged == other._is_local_origin_unchanged
        )

    def __repr__(self) -> str:
        return (
            f"LocalFloatingOrigin(cell={self._cell!r}, translation={self._translation!r}, "
            f"rotation={self._rotation!r})"
        )


class Grid:
    """A uniform grid of cubic cells that child entities are located on."""

    def __init__(
        self,
        cell_edge_length: float = 2000.0,
        switching_threshold: float = 100.0,
        local_floating_origin: Optional[LocalFloatingOrigin] = None,
    ) -> None:
        self._cell_edge_length = float(cell_edge_length)
        self._maximum_distance_from_origin = self._cell_edge_length / 2.0 + float(
            switching_threshold
        )
        self.local_floating_origin = (
            local_floating_origin if local_floating_origin is not None else LocalFloatingOrigin()
        )

    @property
    def cell_edge_length(self) -> float:
        return self._cell_edge_length

    @property
    def maximum_distance_from_origin(self) -> float:
        """How far from its cell center an entity may drift before it is moved to another cell."""
        return self._maximum_distance_from_origin

    def grid_position_double(self, cell: GridCell, transform: Transform) -> Vec3:
        """Double precision position of ``transform`` within ``cell``."""
        length = self._cell_edge_length
        t = transform.translation
        return Vec3(
            float(cell.x) * length + t.x,
            float(cell.y) * length + t.y,
            float(cell.z) * length + t.z,
        )

    def grid_position(self, cell: GridCell, transform: Transform) -> Vec3:
        """Single precision position of ``transform`` within ``cell``."""
        length = _f32(self._cell_edge_length)
        t = transform.translation
        return Vec3(
            _f32(_f32(_f32(float(cell.x)) * length) + _f32(t.x)),
            _f32(_f32(_f32(float(cell.y)) * length) + _f32(t.y)),
            _f32(_f32(_f32(float(cell.z)) * length) + _f32(t.z)),
        )

    def cell_to_float(self, cell: GridCell) -> Vec3:
        """The position of a cell's center."""
        return Vec3(float(cell.x), float(cell.y), float(cell.z)) * self._cell_edge_length

    def translation_to_grid(self, translation: Union[Vec3, Iterable[float]]) -> tuple[GridCell, Vec3]:
        """Split a large translation into a cell and a small offset from that cell's center."""
        value = _as_vec3(translation)
        if value.abs().max_element() < self._maximum_distance_from_origin:
            return GridCell(), value

        length = self._cell_edge_length
        rounded = [_round_half_away(c / length) for c in value]
        cell = GridCell(*(_to_index(r) for r in rounded))
        offset = Vec3(*(c - r * length for c, r in zip(value, rounded)))
        return cell, offset

    def imprecise_translation_to_grid(self, translation: Vec3) -> tuple[GridCell, Vec3]:
        """Same as ``translation_to_grid``, for translations taken from a ``Transform``."""
        return self.translation_to_grid(translation)

    def global_transform(self, cell: GridCell, transform: Transform) -> GlobalTransform:
        """The rendering transform of an entity in this grid, relative to the floating origin."""
        origin = self.local_floating_origin
        offset = self.cell_to_float(cell - origin.cell)
        local = Affine3.from_scale_rotation_translation(
            transform.scale,
            transform.rotation,
            transform.translation + offset,
        )
        return GlobalTransform(origin.grid_transform * local)

    def __repr__(self) -> str:
        return (
            f"Grid(cell_edge_length={self._cell_edge_length!r}, "
            f"maximum_distance_from_origin={self._maximum_distance_from_origin!r}, "
            f"local_floating_origin={self.local_floating_origin!r})"
        )