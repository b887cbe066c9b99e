"""Unit tests for sphere intersection.

Tests cover:
- Ray hitting sphere from outside
- Ray missing sphere, sphere behind the ray
- Ray starting inside sphere (outward normal)
- Tangent rays and origins on the surface
- Host-side validation
"""

import math

import numpy as np
import pytest
import taichi as ti


def _intersect(origin, direction, center, radius):
    """Run intersect_sphere for one ray and return (hit, t, normal)."""
    from src.spheretrace.core.ray import vec3
    from src.spheretrace.geometry.sphere import Sphere, intersect_sphere

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f64, shape=())
    normal = ti.field(dtype=vec3, shape=())

    @ti.kernel
    def test_kernel(
        ox: ti.f64,
        oy: ti.f64,
        oz: ti.f64,
        dx: ti.f64,
        dy: ti.f64,
        dz: ti.f64,
        cx: ti.f64,
        cy: ti.f64,
        cz: ti.f64,
        r: ti.f64,
    ):
        sphere = Sphere(center=vec3(cx, cy, cz), radius=r)
        isect = intersect_sphere(vec3(ox, oy, oz), vec3(dx, dy, dz), sphere)
        hit[None] = isect.hit
        t[None] = isect.t
        normal[None] = isect.normal

    test_kernel(*origin, *direction, *center, radius)
    return hit[None], t[None], normal[None].to_numpy()


class TestSphereIntersection:
    """Tests for intersect_sphere."""

    def test_hit_from_outside(self):
        """Test a ray toward the sphere hits the near surface."""
        hit, t, normal = _intersect((0.0, 0.0, -5.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 1
        assert t == pytest.approx(4.0)
        assert np.allclose(normal, [0.0, 0.0, -1.0])

    def test_unit_sphere_from_minus_ten(self):
        """Test the unit sphere seen from (0, -10, 0) is hit at t = 9."""
        hit, t, normal = _intersect((0.0, -10.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 1
        assert t == pytest.approx(9.0)
        assert np.allclose(normal, [0.0, -1.0, 0.0])

    def test_miss(self):
        """Test a ray passing beside the sphere misses."""
        hit, _, _ = _intersect((0.0, 2.0, -5.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_sphere_behind_ray(self):
        """Test a sphere entirely behind the origin is not hit."""
        hit, _, _ = _intersect((0.0, 0.0, 5.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_inside_sphere_hits_far_side(self):
        """Test a ray from the center hits the far side with an outward normal."""
        hit, t, normal = _intersect((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 0.0), 2.0)
        assert hit == 1
        assert t == pytest.approx(2.0)
        # Outward, i.e. pointing the same way as the ray
        assert np.allclose(normal, [1.0, 0.0, 0.0])

    def test_tangent_ray_is_hit(self):
        """Test a ray grazing the sphere (zero discriminant) is an ordinary hit."""
        hit, t, normal = _intersect((-5.0, 1.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 1
        assert t == pytest.approx(5.0)
        assert np.allclose(normal, [0.0, 1.0, 0.0])

    def test_origin_on_surface_leaving(self):
        """Test an origin on the surface pointing outward does not hit."""
        hit, _, _ = _intersect((0.0, 0.0, 1.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_origin_on_surface_entering(self):
        """Test an origin on the surface pointing inward hits the far side."""
        hit, t, normal = _intersect((0.0, 0.0, 1.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 1
        assert t == pytest.approx(2.0)
        assert np.allclose(normal, [0.0, 0.0, -1.0])

    def test_normal_is_unit_length(self):
        """Test the normal is unit length for an off-center hit on a large sphere."""
        d = np.array([0.3, 0.2, 1.0])
        d /= np.linalg.norm(d)
        hit, _, normal = _intersect((0.0, 0.0, -20.0), tuple(d), (1.0, 1.0, 0.0), 7.5)
        assert hit == 1
        assert np.linalg.norm(normal) == pytest.approx(1.0)

    def test_large_wall_sphere(self):
        """Test a huge sphere behaves like a plane near its surface."""
        big = 100_000.0
        hit, t, normal = _intersect((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (big + 2000.0, 0.0, 0.0), big)
        assert hit == 1
        assert t == pytest.approx(2000.0, rel=1e-9)
        assert np.allclose(normal, [-1.0, 0.0, 0.0])

    def test_hit_point_lies_on_surface(self):
        """Test hit_point recovers a point on the sphere along the normal."""
        from src.spheretrace.core.ray import vec3
        from src.spheretrace.geometry.sphere import Sphere, hit_point, intersect_sphere

        point = ti.field(dtype=vec3, shape=())
        normal = ti.field(dtype=vec3, shape=())

        @ti.kernel
        def test_kernel():
            origin = vec3(1.0, 5.0, 0.0)
            direction = vec3(0.0, -1.0, 0.0)
            rec = intersect_sphere(origin, direction, Sphere(center=vec3(1.0, 0.0, 0.0), radius=2.0))
            point[None] = hit_point(origin, direction, rec.t)
            normal[None] = rec.normal

        test_kernel()
        assert np.allclose(point[None].to_numpy(), [1.0, 2.0, 0.0])
        assert np.allclose(normal[None].to_numpy(), [0.0, 1.0, 0.0])


class TestSphereValidation:
    """Tests for host-side validate_sphere."""

    def test_valid_sphere(self):
        """Test ordinary parameters pass."""
        from src.spheretrace.geometry.sphere import validate_sphere

        validate_sphere((0.0, 0.0, 0.0), 1.0)

    @pytest.mark.parametrize("radius", [0.0, -1.0, math.inf, math.nan])
    def test_invalid_radius(self, radius):
        """Test non-positive or non-finite radii raise ValueError."""
        from src.spheretrace.geometry.sphere import validate_sphere

        with pytest.raises(ValueError, match="radius"):
            validate_sphere((0.0, 0.0, 0.0), radius)

    def test_non_finite_center(self):
        """Test a non-finite center raises ValueError."""
        from src.spheretrace.geometry.sphere import validate_sphere

        with pytest.raises(ValueError, match="center"):
            validate_sphere((0.0, math.nan, 0.0), 1.0)
