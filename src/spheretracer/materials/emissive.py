"""Emissive (area light) material implementation.

An emissive surface is a light source: it never scatters and contributes
``color * intensity`` to the radiance of any path that reaches it. The
emitted value doubles as the albedo and attenuation reported for auxiliary
buffers.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.materials.emissive import add_emissive_material
    >>> # A warm light five times brighter than white
    >>> mat_idx = add_emissive_material(color=(1.0, 0.9, 0.8), intensity=5.0)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def get_emission(color: vec3, intensity: ti.f32) -> vec3:
    """Compute emitted radiance.

    Args:
        color: The emission color (RGB).
        intensity: The emission strength multiplier.

    Returns:
        The emitted radiance (color * intensity).
    """
    return color * intensity


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of emissive materials in the scene
MAX_EMISSIVE_MATERIALS = 512

# Storage for emissive material properties
emissive_colors = ti.Vector.field(3, dtype=ti.f32, shape=MAX_EMISSIVE_MATERIALS)
emissive_intensities = ti.field(dtype=ti.f32, shape=MAX_EMISSIVE_MATERIALS)
num_emissive_materials = ti.field(dtype=ti.i32, shape=())


def clear_emissive_materials() -> None:
    """Clear all emissive materials."""
    num_emissive_materials[None] = 0


def add_emissive_material(
    color: tuple[float, float, float],
    intensity: float = 1.0,
) -> int:
    """Add an emissive material to the material registry.

    Args:
        color: The emission color as (R, G, B) tuple. Components must be
            non-negative but may exceed 1.
        intensity: The emission strength multiplier. Default is 1.0.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any color component or the intensity is negative.
    """
    for i, component in enumerate(color):
        if component < 0.0:
            raise ValueError(
                f"Emission color component {i} = {component} is negative."
            )

    if intensity < 0.0:
        raise ValueError(f"Emission intensity = {intensity} is negative.")

    idx = num_emissive_materials[None]
    if idx >= MAX_EMISSIVE_MATERIALS:
        raise RuntimeError(
            f"Maximum number of emissive materials ({MAX_EMISSIVE_MATERIALS}) exceeded"
        )

    emissive_colors[idx] = vec3(color[0], color[1], color[2])
    emissive_intensities[idx] = intensity
    num_emissive_materials[None] = idx + 1
    return idx


def get_emissive_material_count() -> int:
    """Get the number of emissive materials in the registry."""
    return int(num_emissive_materials[None])


@ti.func
def get_emissive_emission(material_idx: ti.i32) -> vec3:
    """Get the emitted radiance for an emissive material by index."""
    return get_emission(emissive_colors[material_idx], emissive_intensities[material_idx])
