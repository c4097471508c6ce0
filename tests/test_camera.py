"""Unit tests for the thin-lens camera.

Tests cover:
- Camera basis and viewport layout
- Ray generation with and without defocus blur
- Degenerate configurations
- Dictionary round-trip of the camera configuration
"""

import math

import pytest
import taichi as ti


def _close(a, b, tol=1e-4):
    return all(abs(x - y) < tol for x, y in zip(a, b))


def _sample_rays(slot, i, j, n):
    from spheretracer.camera.thin_lens import get_ray

    origins = ti.Vector.field(3, dtype=ti.f32, shape=n)
    directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

    @ti.kernel
    def test_kernel(s: ti.i32, pi: ti.i32, pj: ti.i32):
        ti.loop_config(serialize=True)
        for k in range(n):
            ray = get_ray(pi, pj, s)
            origins[k] = ray.origin
            directions[k] = ray.direction

    test_kernel(slot, i, j)
    return origins.to_numpy(), directions.to_numpy()


class TestCameraSetup:
    """Tests for setup_camera."""

    def test_default_basis(self):
        from spheretracer.camera.thin_lens import ThinLensCamera, get_camera_info, setup_camera

        setup_camera(ThinLensCamera(), 4, 2)
        info = get_camera_info()

        assert _close(info["u"], (1.0, 0.0, 0.0))
        assert _close(info["v"], (0.0, 1.0, 0.0))
        assert _close(info["w"], (0.0, 0.0, 1.0))

    def test_viewport_layout(self):
        """With vfov 90 and focus 10 the viewport is 20 units tall."""
        from spheretracer.camera.thin_lens import ThinLensCamera, get_camera_info, setup_camera

        setup_camera(ThinLensCamera(), 4, 2)
        info = get_camera_info()

        assert _close(info["pixel_delta_u"], (10.0, 0.0, 0.0))
        assert _close(info["pixel_delta_v"], (0.0, -10.0, 0.0))
        assert _close(info["pixel00_loc"], (-15.0, 5.0, -10.0))

    def test_pixel_center(self):
        from spheretracer.camera.thin_lens import ThinLensCamera, pixel_center, setup_camera

        setup_camera(ThinLensCamera(), 4, 2)
        # Bottom-right pixel
        assert _close(pixel_center(3, 1), (15.0, -5.0, -10.0))

    def test_basis_is_orthonormal(self):
        import numpy as np

        from spheretracer.camera.thin_lens import ThinLensCamera, get_camera_info, setup_camera

        camera = ThinLensCamera(lookfrom=(13.0, 2.0, 3.0), lookat=(0.0, 0.0, 0.0), vfov=20.0)
        setup_camera(camera, 16, 9)
        info = get_camera_info()
        u, v, w = (np.array(info[k]) for k in ("u", "v", "w"))

        for vec in (u, v, w):
            assert abs(np.linalg.norm(vec) - 1.0) < 1e-5
        assert abs(np.dot(u, v)) < 1e-5
        assert abs(np.dot(v, w)) < 1e-5
        assert abs(np.dot(u, w)) < 1e-5

    def test_coincident_lookfrom_lookat(self):
        from spheretracer.camera.thin_lens import ThinLensCamera, setup_camera

        with pytest.raises(ValueError, match="must differ"):
            setup_camera(ThinLensCamera(lookat=(0.0, 0.0, 0.0)), 4, 4)

    def test_vup_parallel_to_view(self):
        from spheretracer.camera.thin_lens import ThinLensCamera, setup_camera

        with pytest.raises(ValueError, match="parallel"):
            setup_camera(ThinLensCamera(lookat=(0.0, -1.0, 0.0)), 4, 4)

    def test_non_positive_size(self):
        from spheretracer.camera.thin_lens import ThinLensCamera, setup_camera

        with pytest.raises(ValueError, match="positive"):
            setup_camera(ThinLensCamera(), 0, 4)


class TestGetRay:
    """Tests for get_ray."""

    def test_pinhole_rays_start_at_center(self, rng_slot):
        from spheretracer.camera.thin_lens import ThinLensCamera, setup_camera

        setup_camera(ThinLensCamera(lookfrom=(1.0, 2.0, 3.0), lookat=(1.0, 2.0, 0.0)), 8, 8)
        origins, directions = _sample_rays(rng_slot, 3, 5, 64)

        for o in origins:
            assert _close(o, (1.0, 2.0, 3.0), tol=1e-6)
        for d in directions:
            assert abs(sum(x * x for x in d) - 1.0) < 1e-4

    def test_rays_stay_within_pixel(self, rng_slot):
        """Jittered rays cross the focus plane inside the pixel's square."""
        from spheretracer.camera.thin_lens import ThinLensCamera, setup_camera

        setup_camera(ThinLensCamera(), 4, 2)
        origins, directions = _sample_rays(rng_slot, 0, 0, 64)

        for d in directions:
            # Scale to the focus plane at z = -10
            t = -10.0 / d[2]
            x, y = d[0] * t, d[1] * t
            assert -20.0 - 1e-3 <= x <= -10.0 + 1e-3
            assert 0.0 - 1e-3 <= y <= 10.0 + 1e-3

    def test_defocus_origins_on_lens_disk(self, rng_slot):
        from spheretracer.camera.thin_lens import ThinLensCamera, setup_camera

        camera = ThinLensCamera(defocus_angle=10.0, focus_dist=2.0)
        setup_camera(camera, 8, 8)
        origins, _ = _sample_rays(rng_slot, 4, 4, 128)
        radius = 2.0 * math.tan(math.radians(5.0))

        spread = 0.0
        for o in origins:
            assert abs(o[2]) < 1e-6
            r = math.hypot(o[0], o[1])
            assert r <= radius + 1e-5
            spread = max(spread, r)
        assert spread > 0.0


class TestCameraConfig:
    """Tests for ThinLensCamera serialization."""

    def test_round_trip(self):
        from spheretracer.camera.thin_lens import ThinLensCamera

        camera = ThinLensCamera(lookfrom=(13.0, 2.0, 3.0), vfov=20.0, defocus_angle=0.6)
        assert ThinLensCamera.from_dict(camera.to_dict()) == camera

    def test_missing_keys_take_defaults(self):
        from spheretracer.camera.thin_lens import ThinLensCamera

        assert ThinLensCamera.from_dict({}) == ThinLensCamera()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
