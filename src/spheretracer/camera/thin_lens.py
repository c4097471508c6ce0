"""Thin-lens camera model with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits at ``focus_dist`` in front of the camera, so everything at
that distance is in perfect focus. With a positive ``defocus_angle`` ray
origins are spread over a disk around the camera centre whose radius is
``focus_dist * tan(defocus_angle / 2)``, which blurs everything off the focus
plane.

Pixels are addressed as (i, j) with i the column and j the row; row 0 is the
top of the image.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.camera.thin_lens import ThinLensCamera, setup_camera
    >>> camera = ThinLensCamera(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vfov=20.0,
    ...     defocus_angle=0.6,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera, width=400, height=225)
"""

import math
from dataclasses import asdict, dataclass
from typing import Any

import numpy as np
import taichi as ti
import taichi.math as tm

from spheretracer.core.ray import Ray, normalize, random_in_unit_disk, sample_square, vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ThinLensCamera:
    """Configuration for a thin-lens camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation.
        vfov: Vertical field of view in degrees.
        defocus_angle: Cone angle in degrees subtended by the lens aperture
            at the focus plane. 0 gives a pinhole camera.
        focus_dist: Distance from lookfrom to the plane of perfect focus.
    """

    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 90.0
    defocus_angle: float = 0.0
    focus_dist: float = 10.0

    def to_dict(self) -> dict[str, Any]:
        """Export the camera to a JSON-compatible dictionary."""
        return {key: list(value) if isinstance(value, tuple) else value
                for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ThinLensCamera":
        """Build a camera from a dictionary; missing keys take defaults."""
        kwargs: dict[str, Any] = {}
        for key in ("lookfrom", "lookat", "vup"):
            if key in data:
                kwargs[key] = tuple(float(x) for x in data[key])
        for key in ("vfov", "defocus_angle", "focus_dist"):
            if key in data:
                kwargs[key] = float(data[key])
        return cls(**kwargs)


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_center = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Per-pixel steps and the centre of the top-left pixel
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel00_loc = ti.Vector.field(3, dtype=ti.f32, shape=())

# Defocus disk basis, scaled by the disk radius
_defocus_disk_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_angle = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: ThinLensCamera, width: int, height: int) -> None:
    """Initialize camera state for an image of the given size.

    Args:
        camera: Camera configuration.
        width: Image width in pixels.
        height: Image height in pixels.

    Raises:
        ValueError: If the image size is not positive or the view
            direction is degenerate.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    viewport_height = 2.0 * h * camera.focus_dist
    viewport_width = viewport_height * (float(width) / float(height))

    # Build orthonormal basis using NumPy (Python-side computation)
    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    w = lookfrom - lookat
    w_len = np.linalg.norm(w)
    if w_len == 0.0:
        raise ValueError("lookfrom and lookat must differ")
    w = w / w_len

    u = np.cross(vup, w)
    u_len = np.linalg.norm(u)
    if u_len == 0.0:
        raise ValueError("vup must not be parallel to the view direction")
    u = u / u_len

    v = np.cross(w, u)

    # Viewport edges; v runs down the image because row 0 is the top
    viewport_u = viewport_width * u
    viewport_v = viewport_height * -v

    pixel_delta_u = viewport_u / width
    pixel_delta_v = viewport_v / height

    viewport_upper_left = lookfrom - camera.focus_dist * w - viewport_u / 2.0 - viewport_v / 2.0
    pixel00_loc = viewport_upper_left + 0.5 * (pixel_delta_u + pixel_delta_v)

    defocus_radius = camera.focus_dist * math.tan(math.radians(camera.defocus_angle / 2.0))

    _camera_center[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _pixel_delta_u[None] = pixel_delta_u.tolist()
    _pixel_delta_v[None] = pixel_delta_v.tolist()
    _pixel00_loc[None] = pixel00_loc.tolist()
    _defocus_disk_u[None] = (u * defocus_radius).tolist()
    _defocus_disk_v[None] = (v * defocus_radius).tolist()
    _defocus_angle[None] = camera.defocus_angle


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def defocus_disk_sample(rng: ti.i32) -> vec3:
    """Return a random point on the camera's defocus disk."""
    p = random_in_unit_disk(rng)
    return _camera_center[None] + p.x * _defocus_disk_u[None] + p.y * _defocus_disk_v[None]


@ti.func
def get_ray(pixel_i: ti.i32, pixel_j: ti.i32, rng: ti.i32) -> Ray:
    """Generate a camera ray through a random point of pixel (i, j).

    The ray starts on the defocus disk (or at the camera centre when the
    defocus angle is 0) and passes through a point jittered uniformly
    within the pixel's square on the focus plane.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = top).
        rng: The worker's generator slot.

    Returns:
        A Ray with a unit direction.
    """
    offset = sample_square(rng)
    pixel_sample = (
        _pixel00_loc[None]
        + (ti.cast(pixel_i, ti.f32) + offset.x) * _pixel_delta_u[None]
        + (ti.cast(pixel_j, ti.f32) + offset.y) * _pixel_delta_v[None]
    )

    origin = _camera_center[None]
    if _defocus_angle[None] > 0.0:
        origin = defocus_disk_sample(rng)

    return Ray(origin=origin, direction=normalize(pixel_sample - origin))


@ti.func
def get_pixel_center(pixel_i: ti.i32, pixel_j: ti.i32) -> vec3:
    """World-space centre of pixel (i, j) on the focus plane."""
    return (
        _pixel00_loc[None]
        + ti.cast(pixel_i, ti.f32) * _pixel_delta_u[None]
        + ti.cast(pixel_j, ti.f32) * _pixel_delta_v[None]
    )


@ti.kernel
def _pixel_center_kernel(pixel_i: ti.i32, pixel_j: ti.i32) -> tm.vec3:
    return get_pixel_center(pixel_i, pixel_j)


def pixel_center(pixel_i: int, pixel_j: int) -> tuple[float, float, float]:
    """Python-callable wrapper around get_pixel_center."""
    p = _pixel_center_kernel(pixel_i, pixel_j)
    return (float(p[0]), float(p[1]), float(p[2]))


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with center, u, v, w, pixel_delta_u, pixel_delta_v,
        pixel00_loc, defocus_disk_u, defocus_disk_v and defocus_angle.
    """

    def _vec(f) -> tuple[float, float, float]:
        value = f[None]
        return (float(value[0]), float(value[1]), float(value[2]))

    return {
        "center": _vec(_camera_center),
        "u": _vec(_camera_u),
        "v": _vec(_camera_v),
        "w": _vec(_camera_w),
        "pixel_delta_u": _vec(_pixel_delta_u),
        "pixel_delta_v": _vec(_pixel_delta_v),
        "pixel00_loc": _vec(_pixel00_loc),
        "defocus_disk_u": _vec(_defocus_disk_u),
        "defocus_disk_v": _vec(_defocus_disk_v),
        "defocus_angle": float(_defocus_angle[None]),
    }
