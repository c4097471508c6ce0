"""Unified material id space over the per-type material arenas.

Each material kind keeps its parameters in its own structure-of-arrays
storage (``lambertian_albedos``, ``metal_fuzzes``, ...). This registry hands
out a single ``material_id`` per registered material and records which kind
it is and where its parameters live, so render kernels can dispatch on the
tag without any Python-side polymorphism.
"""

from enum import IntEnum

import taichi as ti


class MaterialType(IntEnum):
    """Tag identifying a material kind for dispatch in the path tracer."""

    DIFFUSE = 0
    METAL = 1
    DIELECTRIC = 2
    EMISSIVE = 3


# Maximum number of materials across all types
MAX_MATERIALS = 2048  # 512 per type * 4 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_material_registry() -> None:
    """Forget every registered material id."""
    num_materials[None] = 0


def register_material(material_type: MaterialType, type_index: int) -> int:
    """Assign a unified material id to a material stored in a type arena.

    Args:
        material_type: The kind of material.
        type_index: The index of its parameters in the type's arena.

    Returns:
        The new material id.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id


def get_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_materials[None])


def check_reflectance(kind: str, rgb) -> None:
    """Reject a reflectance triple with any channel outside [0, 1].

    Raises:
        ValueError: Naming the material kind and the offending channel.
    """
    for channel, value in zip("RGB", rgb):
        if not 0.0 <= value <= 1.0:
            raise ValueError(
                f"{kind} albedo {channel}={value} is outside [0, 1]; "
                "a surface cannot reflect more light than it receives"
            )


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    Returns:
        The index into the type-specific material array, or -1 for invalid
        material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result
