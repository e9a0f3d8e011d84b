"""Double precision vectors, quaternions and affine transforms used by the grid code."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import ClassVar, Iterator, Union

Number = Union[int, float]


@dataclass(frozen=True)
class Vec3:
    """A three component vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    ZERO: ClassVar[Vec3]
    ONE: ClassVar[Vec3]
    X: ClassVar[Vec3]
    Y: ClassVar[Vec3]
    Z: ClassVar[Vec3]

    @classmethod
    def splat(cls, value: float) -> Vec3:
        """A vector with every component set to ``value``."""
        return cls(value, value, value)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y
        yield self.z

    def length(self) -> float:
        return math.sqrt(_dot(self, self))

    def abs(self) -> Vec3:
        return Vec3(abs(self.x), abs(self.y), abs(self.z))

    def max_element(self) -> float:
        return max(self.x, self.y, self.z)

    def min_element(self) -> float:
        return min(self.x, self.y, self.z)

    def distance(self, other: Vec3) -> float:
        return (self - other).length()

    def lerp(self, other: Vec3, t: float) -> Vec3:
        """Linear interpolation from ``self`` (t = 0) to ``other`` (t = 1)."""
        return self + (other - self) * t

    def __add__(self, other: object) -> Vec3:
        if not isinstance(other, Vec3):
            return NotImplemented
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: object) -> Vec3:
        if not isinstance(other, Vec3):
            return NotImplemented
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, other: object) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3(self.x * other.x, self.y * other.y, self.z * other.z)
        if isinstance(other, (int, float)):
            return Vec3(self.x * other, self.y * other, self.z * other)
        return NotImplemented

    def __rmul__(self, other: object) -> Vec3:
        if isinstance(other, (int, float)):
            return self * other
        return NotImplemented

    def __truediv__(self, other: object) -> Vec3:
        if isinstance(other, Vec3):
            return Vec3(self.x / other.x, self.y / other.y, self.z / other.z)
        if isinstance(other, (int, float)):
            return Vec3(self.x / other, self.y / other, self.z / other)
        return NotImplemented

    def __neg__(self) -> Vec3:
        return Vec3(-self.x, -self.y, -self.z)


Vec3.ZERO = Vec3(0.0, 0.0, 0.0)
Vec3.ONE = Vec3(1.0, 1.0, 1.0)
Vec3.X = Vec3(1.0, 0.0, 0.0)
Vec3.Y = Vec3(0.0, 1.0, 0.0)
Vec3.Z = Vec3(0.0, 0.0, 1.0)


def _dot(a: Vec3, b: Vec3) -> float:
    return a.x * b.x + a.y * b.y + a.z * b.z


def _cross(a: Vec3, b: Vec3) -> Vec3:
    return Vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


_SLERP_DOT_THRESHOLD = 0.9995


@dataclass(frozen=True)
class Quat:
    """A rotation quaternion stored as (x, y, z, w)."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    IDENTITY: ClassVar[Quat]

    @classmethod
    def from_rotation_x(cls, angle: float) -> Quat:
        return cls(math.sin(angle * 0.5), 0.0, 0.0, math.cos(angle * 0.5))

    @classmethod
    def from_rotation_y(cls, angle: float) -> Quat:
        return cls(0.0, math.sin(angle * 0.5), 0.0, math.cos(angle * 0.5))

    @classmethod
    def from_rotation_z(cls, angle: float) -> Quat:
        return cls(0.0, 0.0, math.sin(angle * 0.5), math.cos(angle * 0.5))

    @classmethod
    def from_euler_xyz(cls, a: float, b: float, c: float) -> Quat:
        """Intrinsic X, then Y, then Z rotation."""
        return cls.from_rotation_x(a) * cls.from_rotation_y(b) * cls.from_rotation_z(c)

    def _dot(self, other: Quat) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z + self.w * other.w

    def _scaled(self, factor: float) -> Quat:
        return Quat(self.x * factor, self.y * factor, self.z * factor, self.w * factor)

    def _plus(self, other: Quat) -> Quat:
        return Quat(self.x + other.x, self.y + other.y, self.z + other.z, self.w + other.w)

    def normalize(self) -> Quat:
        norm = math.sqrt(self._dot(self))
        if norm == 0.0:
            raise ValueError("cannot normalize a zero quaternion")
        return self._scaled(1.0 / norm)

    def inverse(self) -> Quat:
        norm_sq = self._dot(self)
        if norm_sq == 0.0:
            raise ValueError("cannot invert a zero quaternion")
        return Quat(-self.x, -self.y, -self.z, self.w)._scaled(1.0 / norm_sq)

    def rotate(self, vector: Vec3) -> Vec3:
        axis = Vec3(self.x, self.y, self.z)
        t = _cross(axis, vector) * 2.0
        return vector + t * self.w + _cross(axis, t)

    def angle_between(self, other: Quat) -> float:
        """The smallest angle between two unit rotations, in radians."""
        d = min(abs(self._dot(other)), 1.0)
        return 2.0 * math.acos(d)

    def slerp(self, other: Quat, t: float) -> Quat:
        """Spherical interpolation along the shortest arc."""
        end = other
        d = self._dot(end)
        if d < 0.0:
            end = end._scaled(-1.0)
            d = -d
        if d > _SLERP_DOT_THRESHOLD:
            return self._plus(end._plus(self._scaled(-1.0))._scaled(t)).normalize()
        theta = math.acos(d)
        scale1 = math.sin(theta * (1.0 - t))
        scale2 = math.sin(theta * t)
        return self._scaled(scale1)._plus(end._scaled(scale2))._scaled(1.0 / math.sin(theta))

    def __mul__(self, other: object):
        if isinstance(other, Quat):
            x1, y1, z1, w1 = self.x, self.y, self.z, self.w
            x2, y2, z2, w2 = other.x, other.y, other.z, other.w
            return Quat(
                w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
                w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
                w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
                w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            )
        if isinstance(other, Vec3):
            return self.rotate(other)
        return NotImplemented

    def _to_columns(self) -> tuple[Vec3, Vec3, Vec3]:
        x2, y2, z2 = self.x + self.x, self.y + self.y, self.z + self.z
        xx, xy, xz = self.x * x2, self.x * y2, self.x * z2
        yy, yz, zz = self.y * y2, self.y * z2, self.z * z2
        wx, wy, wz = self.w * x2, self.w * y2, self.w * z2
        return (
            Vec3(1.0 - (yy + zz), xy + wz, xz - wy),
            Vec3(xy - wz, 1.0 - (xx + zz), yz + wx),
            Vec3(xz + wy, yz - wx, 1.0 - (xx + yy)),
        )

    @classmethod
    def _from_columns(cls, x_axis: Vec3, y_axis: Vec3, z_axis: Vec3) -> Quat:
        m00, m01, m02 = x_axis
        m10, m11, m12 = y_axis
        m20, m21, m22 = z_axis
        if m22 <= 0.0:
            dif10 = m11 - m00
            omm22 = 1.0 - m22
            if dif10 <= 0.0:
                four_xsq = omm22 - dif10
                inv = 0.5 / math.sqrt(four_xsq)
                return cls(four_xsq * inv, (m01 + m10) * inv, (m02 + m20) * inv, (m12 - m21) * inv)
            four_ysq = omm22 + dif10
            inv = 0.5 / math.sqrt(four_ysq)
            return cls((m01 + m10) * inv, four_ysq * inv, (m12 + m21) * inv, (m20 - m02) * inv)
        sum10 = m11 + m00
        opm22 = 1.0 + m22
        if sum10 <= 0.0:
            four_zsq = opm22 - sum10
            inv = 0.5 / math.sqrt(four_zsq)
            return cls((m02 + m20) * inv, (m12 + m21) * inv, four_zsq * inv, (m01 - m10) * inv)
        four_wsq = opm22 + sum10
        inv = 0.5 / math.sqrt(four_wsq)
        return cls((m12 - m21) * inv, (m20 - m02) * inv, (m01 - m10) * inv, four_wsq * inv)


Quat.IDENTITY = Quat()

_IDENTITY_COLUMNS = (Vec3(1.0, 0.0, 0.0), Vec3(0.0, 1.0, 0.0), Vec3(0.0, 0.0, 1.0))


def _mat_vec(columns: tuple[Vec3, Vec3, Vec3], v: Vec3) -> Vec3:
    return columns[0] * v.x + columns[1] * v.y + columns[2] * v.z


@dataclass(frozen=True)
class Affine3:
    """A 3x3 linear part (stored as columns) followed by a translation."""

    matrix3: tuple[Vec3, Vec3, Vec3] = _IDENTITY_COLUMNS
    translation: Vec3 = Vec3()

    @classmethod
    def identity(cls) -> Affine3:
        return cls()

    @classmethod
    def from_rotation_translation(cls, rotation: Quat, translation: Vec3) -> Affine3:
        return cls(rotation._to_columns(), translation)

    @classmethod
    def from_scale_rotation_translation(cls, scale: Vec3, rotation: Quat, translation: Vec3) -> Affine3:
        c0, c1, c2 = rotation._to_columns()
        return cls((c0 * scale.x, c1 * scale.y, c2 * scale.z), translation)

    def _determinant(self) -> float:
        c0, c1, c2 = self.matrix3
        return _dot(c2, _cross(c0, c1))

    def inverse(self) -> Affine3:
        c0, c1, c2 = self.matrix3
        tmp0 = _cross(c1, c2)
        tmp1 = _cross(c2, c0)
        tmp2 = _cross(c0, c1)
        det = _dot(c2, tmp2)
        if det == 0.0:
            raise ValueError("affine transform is not invertible")
        inv_det = 1.0 / det
        columns = (
            Vec3(tmp0.x, tmp1.x, tmp2.x) * inv_det,
            Vec3(tmp0.y, tmp1.y, tmp2.y) * inv_det,
            Vec3(tmp0.z, tmp1.z, tmp2.z) * inv_det,
        )
        return Affine3(columns, -_mat_vec(columns, self.translation))

    def transform_point3(self, point: Vec3) -> Vec3:
        return _mat_vec(self.matrix3, point) + self.translation

    def to_scale_rotation_translation(self) -> tuple[Vec3, Quat, Vec3]:
        c0, c1, c2 = self.matrix3
        sign = 1.0 if self._determinant() >= 0.0 else -1.0
        scale = Vec3(c0.length() * sign, c1.length(), c2.length())
        rotation = Quat._from_columns(c0 / scale.x, c1 / scale.y, c2 / scale.z)
        return scale, rotation, self.translation

    def __mul__(self, other: object) -> Affine3:
        if not isinstance(other, Affine3):
            return NotImplemented
        columns = tuple(_mat_vec(self.matrix3, c) for c in other.matrix3)
        return Affine3(columns, self.transform_point3(other.translation))


@dataclass(frozen=True)
class Transform:
    """Local translation, rotation and scale of an entity."""

    translation: Vec3 = Vec3()
    rotation: Quat = Quat()
    scale: Vec3 = Vec3(1.0, 1.0, 1.0)

    IDENTITY: ClassVar[Transform]

    @classmethod
    def from_xyz(cls, x: float, y: float, z: float) -> Transform:
        return cls(translation=Vec3(x, y, z))

    @classmethod
    def from_translation(cls, translation: Vec3) -> Transform:
        return cls(translation=translation)

    @classmethod
    def from_rotation(cls, rotation: Quat) -> Transform:
        return cls(rotation=rotation)

    @classmethod
    def from_scale(cls, scale: Vec3) -> Transform:
        return cls(scale=scale)

    def with_translation(self, translation: Vec3) -> Transform:
        return replace(self, translation=translation)

    def with_rotation(self, rotation: Quat) -> Transform:
        return replace(self, rotation=rotation)

    def with_scale(self, scale: Vec3) -> Transform:
        return replace(self, scale=scale)

    def to_affine(self) -> Affine3:
        return Affine3.from_scale_rotation_translation(self.scale, self.rotation, self.translation)


Transform.IDENTITY = Transform()


@dataclass(frozen=True)
class GlobalTransform:
    """The transform of an entity relative to the rendering origin."""

    affine: Affine3 = Affine3()

    @classmethod
    def from_xyz(cls, x: float, y: float, z: float) -> GlobalTransform:
        return cls(Affine3(translation=Vec3(x, y, z)))

    def translation(self) -> Vec3:
        return self.affine.translation

    def mul_transform(self, transform: Transform) -> GlobalTransform:
        return GlobalTransform(self.affine * transform.to_affine())

    def to_scale_rotation_translation(self) -> tuple[Vec3, Quat, Vec3]:
        return self.affine.to_scale_rotation_translation()

    def approx_eq(self, other: GlobalTransform, tolerance: float) -> bool:
        """True if every matrix and translation component differs by at most ``tolerance``."""
        mine = [*self.affine.matrix3, self.affine.translation]
        theirs = [*other.affine.matrix3, other.affine.translation]
        return all(
            abs(a - b) <= tolerance
            for va, vb in zip(mine, theirs)
            for a, b in zip(va, vb)
        )