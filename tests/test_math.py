import math

import pytest

from bigspace.math import Affine3, GlobalTransform, Quat, Transform, Vec3


def test_splat_fills_all_components():
    assert Vec3.splat(2.5) == Vec3(2.5, 2.5, 2.5)


def test_add_sub_round_trip():
    a, b = Vec3(1.5, -2.0, 7.0), Vec3(0.25, 9.0, -3.0)
    assert (a + b) - b == a


def test_scalar_multiplication_matches_repeated_addition():
    v = Vec3(1.0, 2.0, 3.0)
    assert v * 2 == v + v
    assert 2 * v == v + v


def test_componentwise_multiplication():
    assert Vec3(1.0, 2.0, 3.0) * Vec3.ONE == Vec3(1.0, 2.0, 3.0)


def test_negation_cancels():
    v = Vec3(4.0, -5.0, 6.0)
    assert -v + v == Vec3.ZERO


def test_abs_and_elements():
    v = Vec3(-5.0, 2.0, 3.0)
    assert v.abs().max_element() == 5.0
    assert v.min_element() == -5.0
    assert v.max_element() == 3.0


def test_length():
    assert Vec3(3.0, 4.0, 0.0).length() == pytest.approx(5.0)


def test_distance_is_symmetric():
    a, b = Vec3(1.0, 2.0, 3.0), Vec3(-4.0, 0.5, 9.0)
    assert a.distance(b) == pytest.approx(b.distance(a))
    assert a.distance(b) == pytest.approx((a - b).length())


def test_lerp_endpoints():
    a, b = Vec3(1.0, 2.0, 3.0), Vec3(-4.0, 0.5, 9.0)
    assert tuple(a.lerp(b, 0.0)) == pytest.approx(tuple(a), abs=1e-9)
    assert tuple(a.lerp(b, 1.0)) == pytest.approx(tuple(b), abs=1e-9)
    mid = a.lerp(b, 0.5)
    assert mid.distance(a) == pytest.approx(mid.distance(b))


def test_rotation_preserves_length():
    q = Quat.from_euler_xyz(0.3, -1.2, 2.0)
    v = Vec3(1.0, 2.0, 3.0)
    assert q.rotate(v).length() == pytest.approx(v.length())


def test_quarter_turn_about_z():
    q = Quat.from_rotation_z(math.pi / 2)
    assert tuple(q * Vec3.X) == pytest.approx((0.0, 1.0, 0.0), abs=1e-9)


def test_quat_times_inverse_is_identity():
    q = Quat.from_euler_xyz(0.7, 0.1, -0.4)
    assert (q * q.inverse()).angle_between(Quat.IDENTITY) < 1e-7


def test_angle_between_recovers_rotation_angle():
    assert Quat.from_rotation_z(0.7).angle_between(Quat.IDENTITY) == pytest.approx(0.7)
    assert Quat.from_rotation_x(1.1).angle_between(Quat.IDENTITY) == pytest.approx(1.1)


def test_euler_composition():
    expected = Quat.from_rotation_x(0.2) * Quat.from_rotation_y(0.5) * Quat.from_rotation_z(-0.9)
    assert Quat.from_euler_xyz(0.2, 0.5, -0.9).angle_between(expected) < 1e-9


def test_slerp_endpoints_and_midpoint():
    q0 = Quat.from_rotation_y(0.0)
    q1 = Quat.from_rotation_y(1.5)
    assert q0.slerp(q1, 0.0).angle_between(q0) < 1e-7
    assert q0.slerp(q1, 1.0).angle_between(q1) < 1e-7
    mid = q0.slerp(q1, 0.5)
    assert mid.angle_between(q0) == pytest.approx(mid.angle_between(q1))


def test_normalize():
    q = Quat(0.0, 0.0, 0.0, 2.0).normalize()
    assert q == Quat.IDENTITY
    with pytest.raises(ValueError):
        Quat(0.0, 0.0, 0.0, 0.0).normalize()


def test_affine_inverse_round_trip():
    a = Affine3.from_scale_rotation_translation(
        Vec3(2.0, 3.0, 0.5), Quat.from_euler_xyz(0.3, 0.2, 0.1), Vec3(10.0, -3.0, 4.0)
    )
    p = Vec3(1.0, -2.0, 5.0)
    round_trip = a.inverse().transform_point3(a.transform_point3(p))
    assert tuple(round_trip) == pytest.approx((1.0, -2.0, 5.0), abs=1e-9)
    product = a * a.inverse()
    assert tuple(product.transform_point3(p)) == pytest.approx((1.0, -2.0, 5.0), abs=1e-9)


def test_identity_leaves_points_alone():
    p = Vec3(7.0, 8.0, 9.0)
    assert Affine3.identity().transform_point3(p) == p


def test_decomposition_round_trip():
    scale = Vec3(2.0, 3.0, 0.5)
    rotation = Quat.from_euler_xyz(0.3, -0.2, 1.1)
    translation = Vec3(10.0, -3.0, 4.0)
    s, r, t = Affine3.from_scale_rotation_translation(scale, rotation, translation).to_scale_rotation_translation()
    assert tuple(s) == pytest.approx((2.0, 3.0, 0.5), abs=1e-9)
    assert r.angle_between(rotation) < 1e-7
    assert t == translation


def test_singular_inverse_raises():
    a = Affine3.from_scale_rotation_translation(Vec3(1.0, 0.0, 1.0), Quat.IDENTITY, Vec3.ZERO)
    with pytest.raises(ValueError):
        a.inverse()


def test_transform_builders():
    t = Transform.from_xyz(1.0, 2.0, 3.0).with_scale(Vec3.splat(4.0))
    assert t.translation == Vec3(1.0, 2.0, 3.0)
    assert t.scale == Vec3.splat(4.0)
    assert Transform.from_rotation(Quat.from_rotation_y(1.0)).translation == Vec3.ZERO


def test_transform_to_affine_decomposes_back():
    t = Transform.from_scale(Vec3(1.0, 2.0, 3.0)).with_rotation(Quat.from_rotation_z(0.4)).with_translation(Vec3(5.0, 6.0, 7.0))
    s, r, tr = t.to_affine().to_scale_rotation_translation()
    assert tuple(s) == pytest.approx((1.0, 2.0, 3.0), abs=1e-9)
    assert r.angle_between(t.rotation) < 1e-7
    assert tr == t.translation


def test_global_transform_composes_translations():
    g = GlobalTransform.from_xyz(1.0, 2.0, 3.0).mul_transform(Transform.from_xyz(4.0, 5.0, 6.0))
    assert g.translation() == Vec3(1.0, 2.0, 3.0) + Vec3(4.0, 5.0, 6.0)


def test_global_transform_approx_eq():
    a = GlobalTransform.from_xyz(1.0, 2.0, 3.0)
    assert a.approx_eq(GlobalTransform.from_xyz(1.0, 2.0, 3.0 + 1e-9), 1e-6)
    assert not a.approx_eq(GlobalTransform.from_xyz(1.0, 2.0, 3.1), 1e-6)