"""Path tracing integrator for Monte Carlo light transport.

This module holds the render target buffers and the kernels that fill them.
Each camera ray is followed through the scene as a bounded loop over bounce
depth, equivalent to the recursion

    trace(ray, depth) = emission + attenuation * trace(scattered, depth - 1)

with three ways for a path to end:
    - the bounce budget runs out: the path contributes black
    - the ray escapes: it picks up the sky gradient scaled by exposure
    - the surface absorbs or only emits: nothing further is added

Alongside the colour, the first hit of every sample reports an albedo, a
surface normal and a hit distance. These auxiliary values are averaged per
pixel the same way as colour.

Rendering is split between a fixed set of workers, each owning a contiguous
range of rows (see ``core.scheduler``). ``render_band`` renders the next row
of every worker in one launch; the outermost loop over workers runs in
parallel on Taichi's CPU thread pool.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.core.integrator import setup_render_target
    >>> setup_render_target(400, 225)
"""

import math

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretracer.camera.thin_lens import get_ray
from spheretracer.core.ray import normalize
from spheretracer.core.sampler import MAX_WORKERS, seed_rng
from spheretracer.materials.interaction import interact
from spheretracer.scene.intersection import intersect_scene

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

DEFAULT_SAMPLES_PER_PIXEL = 20
DEFAULT_MAX_DEPTH = 10
DEFAULT_EXPOSURE = 0.05

# Clip interval for ray-surface hits
T_MIN = 0.001
T_MAX = math.inf

# Sky gradient endpoints (horizon-to-zenith), before exposure scaling
SKY_HORIZON = vec3(1.0, 1.0, 1.0)
SKY_ZENITH = vec3(0.5, 0.7, 1.0)


# =============================================================================
# Render Target (Image Buffers)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Buffers are indexed [row, column]; row 0 is the top of the image
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))
_albedo_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))
_normal_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))
_depth_buffer = ti.field(dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Number of times each pixel was written; 1 everywhere after a full render
_write_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Worker row ranges [start, end) and the completed-row counter
_worker_row_start = ti.field(dtype=ti.i32, shape=MAX_WORKERS)
_worker_row_end = ti.field(dtype=ti.i32, shape=MAX_WORKERS)
_rows_done = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image dimensions and clear the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers and the row counter."""
    _color_buffer.fill(0.0)
    _albedo_buffer.fill(0.0)
    _normal_buffer.fill(0.0)
    _depth_buffer.fill(0.0)
    _write_count.fill(0)
    _rows_done[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def set_worker_rows(ranges: list[tuple[int, int]]) -> None:
    """Upload the [start, end) row range of every worker.

    Raises:
        ValueError: If there are more ranges than worker slots.
    """
    if len(ranges) > MAX_WORKERS:
        raise ValueError(f"At most {MAX_WORKERS} workers are supported, got {len(ranges)}")
    for w, (start, end) in enumerate(ranges):
        _worker_row_start[w] = start
        _worker_row_end[w] = end


def get_rows_done() -> int:
    """Number of rows completed since the render target was cleared."""
    return int(_rows_done[None])


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def background(direction: vec3, exposure: ti.f32) -> vec3:
    """Sky gradient for an escaped ray.

    A zero-length direction maps to the middle of the gradient.
    """
    unit_direction = normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return exposure * ((1.0 - a) * SKY_HORIZON + a * SKY_ZENITH)


@ti.func
def trace_path(
    origin: vec3,
    direction: vec3,
    max_depth: ti.i32,
    clip_min: ti.f32,
    clip_max: ti.f32,
    exposure: ti.f32,
    rng: ti.i32,
):
    """Trace one path from a ray into the scene.

    Args:
        origin: Ray origin.
        direction: Ray direction (any length).
        max_depth: Maximum number of surface interactions.
        clip_min: Exclusive lower bound for accepted hits.
        clip_max: Exclusive upper bound for accepted hits.
        exposure: Scale applied to the sky gradient.
        rng: The worker's generator slot.

    Returns:
        A tuple of (color, albedo, normal, depth). The auxiliary values
        describe the first hit; if the first segment misses they are zero
        albedo, zero normal and depth = clip_max.
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    first_albedo = vec3(0.0, 0.0, 0.0)
    first_normal = vec3(0.0, 0.0, 0.0)
    first_depth = clip_max

    ray_origin = origin
    ray_direction = direction

    # Taichi has no break inside ti.func loops
    active = 1

    for bounce in range(max_depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, clip_min, clip_max)

            if rec.hit == 0:
                radiance += throughput * background(ray_direction, exposure)
                active = 0
            else:
                interaction = interact(rec.material_id, ray_direction, rec, rng)

                if bounce == 0:
                    first_albedo = interaction.albedo
                    first_normal = rec.normal
                    first_depth = rec.t

                if interaction.did_emit == 1:
                    radiance += throughput * interaction.emission

                if interaction.did_scatter == 1:
                    throughput *= interaction.attenuation
                    ray_origin = rec.point
                    ray_direction = interaction.direction
                else:
                    active = 0

    return radiance, first_albedo, first_normal, first_depth


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace a sample with NaN or infinite components by black."""
    result = color
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            result = vec3(0.0, 0.0, 0.0)
    return result


@ti.func
def render_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    clip_min: ti.f32,
    clip_max: ti.f32,
    exposure: ti.f32,
    seed: ti.i32,
    rng: ti.i32,
):
    """Average ``samples_per_pixel`` jittered paths through one pixel.

    The generator slot is reseeded from the pixel index first, so the
    result does not depend on which worker renders the pixel.
    """
    seed_rng(rng, pixel_j * width + pixel_i, seed)

    color_sum = vec3(0.0, 0.0, 0.0)
    albedo_sum = vec3(0.0, 0.0, 0.0)
    normal_sum = vec3(0.0, 0.0, 0.0)
    depth_sum = 0.0

    for _ in range(samples_per_pixel):
        ray = get_ray(pixel_i, pixel_j, rng)
        color, albedo, normal, depth = trace_path(
            ray.origin, ray.direction, max_depth, clip_min, clip_max, exposure, rng
        )
        color_sum += _sanitize(color)
        albedo_sum += albedo
        normal_sum += normal
        depth_sum += depth

    scale = 1.0 / ti.cast(samples_per_pixel, ti.f32)
    return color_sum * scale, albedo_sum * scale, normal_sum * scale, depth_sum * scale


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_band(
    band_offset: ti.i32,
    num_workers: ti.i32,
    width: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
    clip_min: ti.f32,
    clip_max: ti.f32,
    exposure: ti.f32,
    seed: ti.i32,
):
    """Render row ``start + band_offset`` of every worker that has one left.

    Only the outermost loop is parallelised, so each worker renders its row
    serially and writes nothing outside it.
    """
    for w in range(num_workers):
        j = _worker_row_start[w] + band_offset
        if j < _worker_row_end[w]:
            for i in range(width):
                color, albedo, normal, depth = render_pixel(
                    i,
                    j,
                    width,
                    samples_per_pixel,
                    max_depth,
                    clip_min,
                    clip_max,
                    exposure,
                    seed,
                    w,
                )
                _color_buffer[j, i] = color
                _albedo_buffer[j, i] = albedo
                _normal_buffer[j, i] = normal
                _depth_buffer[j, i] = depth
                _write_count[j, i] += 1
            ti.atomic_add(_rows_done[None], 1)


def render_band(
    band_offset: int,
    num_workers: int,
    samples_per_pixel: int,
    max_depth: int,
    clip_min: float,
    clip_max: float,
    exposure: float,
    seed: int,
) -> int:
    """Render one row for each worker and return the completed-row count.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    width, _ = get_image_dimensions()
    _render_band(
        band_offset,
        num_workers,
        width,
        samples_per_pixel,
        max_depth,
        clip_min,
        clip_max,
        exposure,
        seed,
    )
    return get_rows_done()


@ti.kernel
def _trace_ray(
    origin: vec3,
    direction: vec3,
    max_depth: ti.i32,
    clip_min: ti.f32,
    clip_max: ti.f32,
    exposure: ti.f32,
    seed: ti.i32,
) -> ti.types.vector(10, ti.f32):
    seed_rng(0, 0, seed)
    color, albedo, normal, depth = trace_path(
        origin, direction, max_depth, clip_min, clip_max, exposure, 0
    )
    return ti.Vector(
        [
            color.x,
            color.y,
            color.z,
            albedo.x,
            albedo.y,
            albedo.z,
            normal.x,
            normal.y,
            normal.z,
            depth,
        ]
    )


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = DEFAULT_MAX_DEPTH,
    clip_min: float = T_MIN,
    clip_max: float = T_MAX,
    exposure: float = DEFAULT_EXPOSURE,
    seed: int = 0,
) -> dict[str, tuple[float, ...] | float]:
    """Trace a single path from Python.

    Intended for tests and debugging; renders use ``render_band``.

    Returns:
        Dictionary with "color", "albedo", "normal" (RGB/XYZ tuples) and
        "depth".
    """
    out = _trace_ray(
        vec3(*origin),
        vec3(*direction),
        max_depth,
        clip_min,
        clip_max,
        exposure,
        seed,
    )
    values = [float(out[k]) for k in range(10)]
    return {
        "color": tuple(values[0:3]),
        "albedo": tuple(values[3:6]),
        "normal": tuple(values[6:9]),
        "depth": values[9],
    }


# =============================================================================
# Buffer Access
# =============================================================================


def get_buffers_numpy() -> dict[str, np.ndarray]:
    """Copy the active region of every buffer to NumPy.

    Returns:
        Dictionary with "color", "albedo", "normal" of shape (H, W, 3) and
        "depth" of shape (H, W), all float32.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return {
        "color": _color_buffer.to_numpy()[:height, :width].astype(np.float32),
        "albedo": _albedo_buffer.to_numpy()[:height, :width].astype(np.float32),
        "normal": _normal_buffer.to_numpy()[:height, :width].astype(np.float32),
        "depth": _depth_buffer.to_numpy()[:height, :width].astype(np.float32),
    }


def get_write_counts_numpy() -> np.ndarray:
    """Per-pixel write counts for the active region, shape (H, W)."""
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return _write_count.to_numpy()[:height, :width]
