"""Pytest configuration for spheretracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene and material data before and after each test."""
    # Import here so Taichi is initialized before any field is declared
    from spheretracer.materials.dielectric import clear_dielectric_materials
    from spheretracer.materials.emissive import clear_emissive_materials
    from spheretracer.materials.lambertian import clear_lambertian_materials
    from spheretracer.materials.metal import clear_metal_materials
    from spheretracer.materials.registry import clear_material_registry
    from spheretracer.scene.intersection import clear_scene

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_emissive_materials()
        clear_material_registry()

    _clear_all()
    yield
    _clear_all()


@pytest.fixture
def rng_slot():
    """Seed generator slot 0 and return it for use inside test kernels."""
    from spheretracer.core.sampler import seed_rng

    @ti.kernel
    def _seed(seed: ti.i32):
        seed_rng(0, 0, seed)

    _seed(1234)
    return 0
