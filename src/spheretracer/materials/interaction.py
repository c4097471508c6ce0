"""Material dispatch for the path tracer.

``interact`` looks up the material kind of a hit surface in the registry and
calls the matching scatter routine. Every kind answers with the same
``MaterialInteraction`` record, so the integrator never needs to know which
material it is shading.
"""

import taichi as ti
import taichi.math as tm

from spheretracer.materials.dielectric import get_dielectric_index, scatter_dielectric
from spheretracer.materials.emissive import get_emissive_emission
from spheretracer.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from spheretracer.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from spheretracer.materials.registry import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)
from spheretracer.scene.intersection import SceneHitRecord

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.dataclass
class MaterialInteraction:
    """Outcome of a ray meeting a surface.

    Attributes:
        albedo: Surface color reported to the albedo buffer.
        attenuation: Per-channel throughput multiplier for the next segment.
        emission: Radiance emitted by the surface.
        direction: Scattered direction (valid only if did_scatter == 1).
        did_scatter: 1 if the path continues.
        did_emit: 1 if the surface is a light source.
    """

    albedo: vec3
    attenuation: vec3
    emission: vec3
    direction: vec3
    did_scatter: ti.i32
    did_emit: ti.i32


@ti.func
def interact(
    material_id: ti.i32,
    incident_direction: vec3,
    hit: SceneHitRecord,
    rng: ti.i32,
) -> MaterialInteraction:
    """Shade a hit according to its material.

    Args:
        material_id: The unified material ID of the hit surface.
        incident_direction: The incoming ray direction.
        hit: The nearest-hit record for the surface.
        rng: The worker's generator slot.

    Returns:
        The interaction record. An unknown material ID absorbs the ray
        without emitting.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    albedo = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    emission = vec3(0.0, 0.0, 0.0)
    direction = vec3(0.0, 0.0, 0.0)
    did_scatter = 0
    did_emit = 0

    if mat_type == int(MaterialType.DIFFUSE):
        albedo = get_lambertian_albedo(type_index)
        direction, attenuation = scatter_lambertian(albedo, hit.normal, rng)
        did_scatter = 1

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        direction, attenuation, did_scatter = scatter_metal(
            albedo, get_metal_fuzz(type_index), incident_direction, hit.normal, rng
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        direction, attenuation = scatter_dielectric(
            get_dielectric_index(type_index),
            incident_direction,
            hit.normal,
            hit.front_face,
            rng,
        )
        albedo = attenuation
        did_scatter = 1

    elif mat_type == int(MaterialType.EMISSIVE):
        emission = get_emissive_emission(type_index)
        albedo = emission
        attenuation = emission
        did_emit = 1

    return MaterialInteraction(
        albedo=albedo,
        attenuation=attenuation,
        emission=emission,
        direction=direction,
        did_scatter=did_scatter,
        did_emit=did_emit,
    )
