"""Integer cell coordinates within a grid."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Iterable, Union

from bigspace.math import Vec3

_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1
_I64_SPAN = 1 << 64


def _wrap(value: int) -> int:
    return (value - _I64_MIN) % _I64_SPAN + _I64_MIN


def _components(other: Union["GridCell", Iterable[int]]) -> tuple[int, int, int]:
    if isinstance(other, GridCell):
        return other.x, other.y, other.z
    values = tuple(other)
    if len(values) != 3 or not all(isinstance(v, int) for v in values):
        raise TypeError("expected a GridCell or three integers")
    return values  # type: ignore[return-value]


@dataclass(frozen=True)
class GridCell:
    """The index of a cell in its parent grid, as signed 64 bit integers."""

    x: int = 0
    y: int = 0
    z: int = 0

    ZERO: ClassVar[GridCell]
    ONE: ClassVar[GridCell]

    def __post_init__(self) -> None:
        for value in (self.x, self.y, self.z):
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"grid cell index must be an integer, got {value!r}")
            if not _I64_MIN <= value <= _I64_MAX:
                raise OverflowError(f"grid cell index {value} is out of range")

    def as_dvec3(self, grid) -> Vec3:
        """The position of this cell's center within ``grid``."""
        length = float(grid.cell_edge_length)
        return Vec3(float(self.x) * length, float(self.y) * length, float(self.z) * length)

    def min(self, other: GridCell) -> GridCell:
        return GridCell(min(self.x, other.x), min(self.y, other.y), min(self.z, other.z))

    def max(self, other: GridCell) -> GridCell:
        return GridCell(max(self.x, other.x), max(self.y, other.y), max(self.z, other.z))

    def __add__(self, other: object) -> GridCell:
        try:
            ox, oy, oz = _components(other)  # type: ignore[arg-type]
        except TypeError:
            return NotImplemented
        return GridCell(_wrap(self.x + ox), _wrap(self.y + oy), _wrap(self.z + oz))

    def __sub__(self, other: object) -> GridCell:
        try:
            ox, oy, oz = _components(other)  # type: ignore[arg-type]
        except TypeError:
            return NotImplemented
        return GridCell(_wrap(self.x - ox), _wrap(self.y - oy), _wrap(self.z - oz))

    def __mul__(self, factor: object) -> GridCell:
        if isinstance(factor, bool) or not isinstance(factor, int):
            return NotImplemented
        return GridCell(self.x * factor, self.y * factor, self.z * factor)


GridCell.ZERO = GridCell(0, 0, 0)
GridCell.ONE = GridCell(1, 1, 1)