"""Dielectric (glass/water) material implementation.

This module implements transparent materials that both reflect and refract.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when (n1/n2) * sin(theta1) > 1

Rather than spawning a reflected and a refracted ray, each interaction picks
one of the two at random with probability equal to the Schlick reflectance.

A refractive index below 1 is allowed: a sphere of index 1/1.5 nested inside
a sphere of index 1.5 behaves like an air bubble in glass.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_dielectric(
    >>> #     refractive_index, incident_dir, normal, front_face, rng
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from spheretracer.core.ray import normalize, reflect, refract, schlick_reflectance
from spheretracer.core.sampler import random_float

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio(refractive_index: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio n_incident / n_transmitted for the side the ray arrives from."""
    ratio = 1.0 / refractive_index
    if front_face == 0:
        ratio = refractive_index
    return ratio


@ti.func
def scatter_dielectric(
    refractive_index: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    rng: ti.i32,
):
    """Compute scattered ray direction for dielectric material.

    Args:
        refractive_index: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The surface normal facing the incident ray (unit length).
        front_face: 1 if ray is hitting the outside of the surface,
            0 if ray is inside the material hitting from within.
        rng: The worker's generator slot.

    Returns:
        A tuple of (scattered_direction, attenuation) where:
        - scattered_direction: The reflected or refracted direction.
        - attenuation: White; clear glass does not tint light.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    ri = refraction_ratio(refractive_index, front_face)

    unit_direction = normalize(incident_direction)
    cos_theta = tm.min(-tm.dot(unit_direction, normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))

    cannot_refract = ri * sin_theta > 1.0

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or schlick_reflectance(cos_theta, ri) > random_float(rng):
        scattered_direction = reflect(unit_direction, normal)
    else:
        scattered_direction = refract(unit_direction, normal, ri)

    return scattered_direction, attenuation


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 512

# Storage for dielectric material properties
dielectric_indices = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(refractive_index: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        refractive_index: Index of refraction. Default is 1.5 (typical
            glass). Must be positive; values below 1 model a less dense
            medium enclosed by a denser one.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the refractive index is not positive.
    """
    if refractive_index <= 0.0:
        raise ValueError(
            f"Index of refraction = {refractive_index} is not positive."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_indices[idx] = refractive_index
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_index(material_idx: ti.i32) -> ti.f32:
    """Get the refractive index for a dielectric material by index."""
    return dielectric_indices[material_idx]
