"""Matte surfaces that scatter light evenly about the normal.

Bounces leave along ``normal + u`` with ``u`` drawn uniformly from the unit
sphere, which yields a cosine-weighted lobe. No extra weighting is needed
then, and each bounce is attenuated by the albedo alone.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.materials.lambertian import scatter_lambertian
    >>> # inside a kernel:
    >>> # direction, attenuation = scatter_lambertian(albedo, normal, rng)
"""

import taichi as ti
import taichi.math as tm

from spheretracer.core.ray import near_zero, random_unit_vector
from spheretracer.materials.registry import check_reflectance

vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3, rng: ti.i32):
    """Pick a bounce direction off a matte surface.

    ``normal`` must be unit length and face the incoming ray. The returned
    direction is left unnormalized and the attenuation is ``albedo`` as is.
    """
    scattered_direction = normal + random_unit_vector(rng)

    # u ~= -normal leaves a degenerate direction
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo


# Diffuse arena: one albedo slot per registered matte material.
MAX_LAMBERTIAN_MATERIALS = 512

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Empty the diffuse arena; stale slots are overwritten on reuse."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Store a diffuse albedo and return its slot in the arena.

    Raises:
        ValueError: If a channel of ``albedo`` is outside [0, 1].
        RuntimeError: If the arena is full.
    """
    check_reflectance("Lambertian", albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(f"Lambertian arena is full ({MAX_LAMBERTIAN_MATERIALS} slots)")

    lambertian_albedos[idx] = vec3(*albedo)
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]
