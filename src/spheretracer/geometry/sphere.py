"""Spheres and the ray/sphere hit test.

Substituting the ray into the implicit surface gives a quadratic in ``t``.
With ``oc = center - origin`` it is solved in half-b form::

    a = d.d    h = d.oc    c = oc.oc - r^2
    t = (h -/+ sqrt(h^2 - a c)) / a

The near root wins when it lies strictly inside ``(t_min, t_max)``; the far
root is tried otherwise. Both bounds are exclusive so a bounce never lands
back on the point it started from.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
"""

import taichi as ti
import taichi.math as tm

from spheretracer.core.interval import interval_surrounds

vec3 = tm.vec3


@ti.dataclass
class Sphere:
    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Outcome of one ray/sphere test.

    Every field except ``hit`` is meaningful only when ``hit`` is 1.
    ``normal`` is unit length and points back toward the ray origin;
    ``front_face`` is 1 when the ray came from outside the sphere.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect a ray with one sphere inside the open range (t_min, t_max).

    ``ray_direction`` does not need to be normalized. Zero-radius spheres and
    zero-length directions never report a hit.
    """
    oc = sphere.center - ray_origin
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    # Declared up front so both branches assign the same variables
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)
    is_front_face = 0

    if discriminant >= 0.0 and sphere.radius > 0.0 and a > 0.0:
        sqrt_d = ti.sqrt(discriminant)

        t = (h - sqrt_d) / a
        valid = interval_surrounds(t_min, t_max, t)

        if not valid:
            t = (h + sqrt_d) / a
            valid = interval_surrounds(t_min, t_max, t)

        if valid:
            did_hit = 1
            hit_t = t
            hit_point = ray_origin + t * ray_direction

            outward_normal = (hit_point - sphere.center) / sphere.radius

            if tm.dot(ray_direction, outward_normal) > 0.0:
                # leaving the sphere
                is_front_face = 0
                hit_normal = -outward_normal
            else:
                is_front_face = 1
                hit_normal = outward_normal

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
        front_face=is_front_face,
    )
