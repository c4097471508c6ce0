"""Polished and brushed metals.

The incoming direction is mirrored about the normal (``I - 2(I.N)N``), then
nudged by ``fuzz`` times a random unit vector to roughen the highlight.
Rays nudged below the surface are absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.materials.metal import scatter_metal
    >>> # inside a kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal, rng
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from spheretracer.core.ray import normalize, random_unit_vector, reflect
from spheretracer.materials.registry import check_reflectance

vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    rng: ti.i32,
):
    """Reflect off a metal surface with optional roughness.

    Returns:
        ``(direction, attenuation, did_scatter)``. ``direction`` is the fuzzed
        mirror direction, unnormalized. ``attenuation`` is ``albedo``.
        ``did_scatter`` is 0 when the fuzzed ray points into the surface.
    """
    reflected = normalize(reflect(incident_direction, normal))
    scattered_direction = reflected + fuzz * random_unit_vector(rng)

    did_scatter = 1
    if tm.dot(scattered_direction, normal) <= 0.0:
        did_scatter = 0

    return scattered_direction, albedo, did_scatter


# Metal arena: tint and roughness per registered metal.
MAX_METAL_MATERIALS = 512

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Empty the metal arena."""
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Store a metal and return its slot in the arena.

    Args:
        albedo: Tint applied to every reflection.
        fuzz: 0 gives a perfect mirror, 1 the roughest finish.

    Raises:
        ValueError: If a channel of ``albedo`` or ``fuzz`` is outside [0, 1].
        RuntimeError: If the arena is full.
    """
    check_reflectance("Metal", albedo)
    if not 0.0 <= fuzz <= 1.0:
        raise ValueError(f"Fuzz {fuzz} is outside [0, 1]")

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Metal arena is full ({MAX_METAL_MATERIALS} slots)")

    metal_albedos[idx] = vec3(*albedo)
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]
