"""Unit tests for ray helpers and random direction sampling."""

import pytest
import taichi as ti


class TestRayOperations:
    """Tests for Ray dataclass and ray_at."""

    def test_ray_at_positive_t(self):
        """ray_at moves along the direction."""
        from spheretracer.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -2.0))
            result[None] = ray_at(ray, 1.5)

        test_kernel()
        p = result[None]
        assert abs(p[0] - 1.0) < 1e-6
        assert abs(p[1] - 2.0) < 1e-6
        assert abs(p[2] - 0.0) < 1e-6


class TestVectorUtilities:
    """Tests for vector helpers."""

    def test_normalize(self):
        from spheretracer.core.ray import normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = normalize(vec3(3.0, 0.0, 4.0))

        test_kernel()
        v = result[None]
        assert abs(v[0] - 0.6) < 1e-6
        assert abs(v[2] - 0.8) < 1e-6

    def test_normalize_zero_vector(self):
        """Normalizing the zero vector gives the zero vector, not NaN."""
        from spheretracer.core.ray import normalize, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = normalize(vec3(0.0, 0.0, 0.0))

        test_kernel()
        v = result[None]
        assert v[0] == 0.0 and v[1] == 0.0 and v[2] == 0.0

    def test_reflect(self):
        from spheretracer.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6

    def test_refract_equal_indices_is_undeviated(self):
        """With an index ratio of 1 the direction passes straight through."""
        from spheretracer.core.ray import normalize, refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            d = normalize(vec3(0.3, -1.0, 0.2))
            result[None] = refract(d, vec3(0.0, 1.0, 0.0), 1.0)

        test_kernel()
        r = result[None]
        length = (0.3**2 + 1.0 + 0.2**2) ** 0.5
        assert abs(r[0] - 0.3 / length) < 1e-5
        assert abs(r[1] + 1.0 / length) < 1e-5
        assert abs(r[2] - 0.2 / length) < 1e-5

    def test_refract_bends_toward_normal(self):
        """Entering a denser medium bends the ray toward the normal."""
        from spheretracer.core.ray import normalize, refract, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            d = normalize(vec3(1.0, -1.0, 0.0))
            result[None] = refract(d, vec3(0.0, 1.0, 0.0), 1.0 / 1.5)

        test_kernel()
        r = result[None]
        sin_in = 2**-0.5
        assert abs(r[0] - sin_in / 1.5) < 1e-5
        assert r[1] < 0.0

    def test_schlick_reflectance(self):
        """Schlick gives r0 at normal incidence and 1 at grazing incidence."""
        from spheretracer.core.ray import schlick_reflectance

        normal_result = ti.field(dtype=ti.f32, shape=())
        grazing_result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            normal_result[None] = schlick_reflectance(1.0, 1.5)
            grazing_result[None] = schlick_reflectance(0.0, 1.5)

        test_kernel()
        assert abs(normal_result[None] - 0.04) < 1e-5
        assert abs(grazing_result[None] - 1.0) < 1e-5

    def test_near_zero(self):
        from spheretracer.core.ray import near_zero, vec3

        small = ti.field(dtype=ti.i32, shape=())
        large = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            small[None] = near_zero(vec3(1e-9, -1e-9, 0.0))
            large[None] = near_zero(vec3(1e-9, 1e-3, 0.0))

        test_kernel()
        assert small[None] == 1
        assert large[None] == 0


class TestRandomSampling:
    """Tests for random direction sampling."""

    N = 500

    def test_random_unit_vector_length(self, rng_slot):
        from spheretracer.core.ray import random_unit_vector

        n = self.N
        lengths = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel(slot: ti.i32):
            ti.loop_config(serialize=True)
            for i in range(n):
                lengths[i] = random_unit_vector(slot).norm()

        test_kernel(rng_slot)
        arr = lengths.to_numpy()
        assert (abs(arr - 1.0) < 1e-4).all()

    def test_random_in_unit_sphere_bounds(self, rng_slot):
        from spheretracer.core.ray import length_squared, random_in_unit_sphere

        n = self.N
        values = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel(slot: ti.i32):
            ti.loop_config(serialize=True)
            for i in range(n):
                values[i] = length_squared(random_in_unit_sphere(slot))

        test_kernel(rng_slot)
        arr = values.to_numpy()
        assert (arr > 0.0).all()
        assert (arr < 1.0).all()

    def test_random_in_unit_disk_bounds(self, rng_slot):
        from spheretracer.core.ray import random_in_unit_disk

        n = self.N
        points = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel(slot: ti.i32):
            ti.loop_config(serialize=True)
            for i in range(n):
                points[i] = random_in_unit_disk(slot)

        test_kernel(rng_slot)
        arr = points.to_numpy()
        assert (arr[:, 0] ** 2 + arr[:, 1] ** 2 < 1.0).all()
        assert (arr[:, 2] == 0.0).all()

    def test_sample_square_bounds(self, rng_slot):
        from spheretracer.core.ray import sample_square

        n = self.N
        points = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel(slot: ti.i32):
            ti.loop_config(serialize=True)
            for i in range(n):
                points[i] = sample_square(slot)

        test_kernel(rng_slot)
        arr = points.to_numpy()
        assert (arr[:, :2] >= -0.5).all()
        assert (arr[:, :2] < 0.5).all()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
