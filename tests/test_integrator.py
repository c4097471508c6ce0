"""Tests for the path tracing integrator.

This module tests the core path tracing functionality including:
- Render target setup and management
- Background radiance for escaped rays
- Emission and absorption along a path
- The bounce budget
- First-hit auxiliary values

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run, so module-level
imports of modules containing ti.field() declarations would fail.
"""

import math

import pytest


def _close(a, b, tol=1e-5):
    return all(abs(x - y) < tol for x, y in zip(a, b))


class TestRenderTargetSetup:
    """Test render target initialization and management."""

    def test_setup_render_target(self):
        from spheretracer.core.integrator import (
            get_buffers_numpy,
            get_image_dimensions,
            setup_render_target,
        )

        setup_render_target(32, 16)
        assert get_image_dimensions() == (32, 16)

        buffers = get_buffers_numpy()
        assert buffers["color"].shape == (16, 32, 3)
        assert buffers["albedo"].shape == (16, 32, 3)
        assert buffers["normal"].shape == (16, 32, 3)
        assert buffers["depth"].shape == (16, 32)
        assert (buffers["color"] == 0.0).all()

    @pytest.mark.parametrize("width,height", [(0, 10), (10, -1), (4096, 10), (10, 4096)])
    def test_invalid_dimensions(self, width, height):
        from spheretracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_clear_resets_row_counter(self):
        from spheretracer.core.integrator import (
            _rows_done,
            clear_render_target,
            get_rows_done,
            setup_render_target,
        )

        setup_render_target(8, 8)
        _rows_done[None] = 5
        clear_render_target()
        assert get_rows_done() == 0


class TestBackground:
    """Escaped rays pick up the sky gradient scaled by exposure."""

    def test_empty_scene_looking_up(self):
        from spheretracer.core.integrator import trace_ray

        result = trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), exposure=1.0)
        assert _close(result["color"], (0.5, 0.7, 1.0))

    def test_empty_scene_looking_down(self):
        from spheretracer.core.integrator import trace_ray

        result = trace_ray((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), exposure=1.0)
        assert _close(result["color"], (1.0, 1.0, 1.0))

    def test_exposure_scales_background(self):
        from spheretracer.core.integrator import trace_ray

        result = trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), exposure=0.05)
        assert _close(result["color"], (0.025, 0.035, 0.05))

    def test_zero_direction_gives_mid_gradient(self):
        """A zero-length direction neither hits nor divides by zero."""
        from spheretracer.core.integrator import trace_ray

        result = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, 0.0), exposure=1.0)
        assert _close(result["color"], (0.75, 0.85, 1.0))

    def test_miss_auxiliary_values(self):
        from spheretracer.core.integrator import trace_ray

        result = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), clip_max=50.0)
        assert _close(result["albedo"], (0.0, 0.0, 0.0))
        assert _close(result["normal"], (0.0, 0.0, 0.0))
        assert result["depth"] == 50.0

    def test_miss_depth_is_infinite_by_default(self):
        from spheretracer.core.integrator import trace_ray

        result = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert math.isinf(result["depth"])


class TestPathTermination:
    """Emission, absorption and the bounce budget."""

    def test_enclosing_light(self):
        """From inside a light sphere the first hit returns its emission."""
        from spheretracer.core.integrator import trace_ray
        from spheretracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_emissive_sphere((0.0, 0.0, 0.0), 10.0, (1.0, 1.0, 1.0), intensity=5.0)

        result = trace_ray((0.0, 0.0, 0.0), (0.6, 0.0, -0.8), max_depth=1)
        assert _close(result["color"], (5.0, 5.0, 5.0))
        assert abs(result["depth"] - 10.0) < 1e-3

    def test_black_closed_scene(self):
        """A path trapped inside a black sphere carries no radiance."""
        from spheretracer.core.integrator import trace_ray
        from spheretracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_diffuse_sphere((0.0, 0.0, 0.0), 10.0, (0.0, 0.0, 0.0))

        for seed in range(5):
            result = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), seed=seed)
            assert result["color"] == (0.0, 0.0, 0.0)

    def test_exhausted_budget_is_black(self):
        """A white closed scene with no light never escapes, so it stays black."""
        from spheretracer.core.integrator import trace_ray
        from spheretracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_diffuse_sphere((0.0, 0.0, 0.0), 10.0, (1.0, 1.0, 1.0))

        result = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=3)
        assert result["color"] == (0.0, 0.0, 0.0)

    def test_zero_depth_traces_nothing(self):
        from spheretracer.core.integrator import trace_ray
        from spheretracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_emissive_sphere((0.0, 0.0, -5.0), 1.0, (1.0, 1.0, 1.0), intensity=5.0)

        result = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), max_depth=0, clip_max=100.0)
        assert result["color"] == (0.0, 0.0, 0.0)
        assert result["depth"] == 100.0

    def test_mirror_reflects_sky(self):
        """A perfect mirror below the ray returns the zenith colour times its albedo."""
        from spheretracer.core.integrator import trace_ray
        from spheretracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, -1001.0, 0.0), 1000.0, (0.5, 0.5, 0.5), fuzz=0.0)

        result = trace_ray((0.0, 0.0, 0.0), (0.0, -1.0, 0.0), exposure=1.0)
        assert _close(result["color"], (0.25, 0.35, 0.5), tol=1e-4)

    def test_light_behind_glass(self):
        """Clear glass between the ray and a light passes the light through."""
        from spheretracer.core.integrator import trace_ray
        from spheretracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_dielectric_sphere((0.0, 0.0, -3.0), 1.0, 1.0)
        scene.add_emissive_sphere((0.0, 0.0, -10.0), 2.0, (1.0, 1.0, 1.0), intensity=3.0)

        result = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert _close(result["color"], (3.0, 3.0, 3.0), tol=1e-4)


class TestFirstHitAuxiliary:
    """Auxiliary values come from the first surface only."""

    def test_diffuse_first_hit(self):
        from spheretracer.core.integrator import trace_ray
        from spheretracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_diffuse_sphere((0.0, 0.0, -5.0), 1.0, (0.2, 0.4, 0.6))

        result = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert _close(result["albedo"], (0.2, 0.4, 0.6))
        assert _close(result["normal"], (0.0, 0.0, 1.0))
        assert abs(result["depth"] - 4.0) < 1e-4

    def test_glass_first_hit_is_white(self):
        from spheretracer.core.integrator import trace_ray
        from spheretracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_dielectric_sphere((0.0, 0.0, -5.0), 1.0, 1.5)
        scene.add_diffuse_sphere((0.0, 0.0, -20.0), 5.0, (0.1, 0.1, 0.1))

        result = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        assert _close(result["albedo"], (1.0, 1.0, 1.0))
        assert abs(result["depth"] - 4.0) < 1e-4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
