"""Ready-made scenes and matching cameras.

Two scenes are provided:

- ``material_showcase``: four spheres on a large ground sphere showing a
  diffuse ball, a hollow glass ball (a glass shell around an air bubble)
  and a brushed gold ball.
- ``random_spheres``: a field of small diffuse, emissive, metal and glass
  balls around three large ones, seen through a lens with depth of field.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretracer.scene.manager import SceneManager
    >>> from spheretracer.scene.presets import build_material_showcase
    >>> scene = SceneManager()
    >>> camera = build_material_showcase(scene)
"""

import math
from collections.abc import Callable

import numpy as np

from spheretracer.camera.thin_lens import ThinLensCamera
from spheretracer.core.color import from_hsv, multiply, random_color
from spheretracer.scene.manager import SceneManager

# Small spheres closer than this to the big metal ball are skipped
_CLEARANCE = 0.9


def material_showcase_camera() -> ThinLensCamera:
    """Camera looking down -z at the showcase spheres."""
    return ThinLensCamera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        defocus_angle=0.0,
        focus_dist=1.0,
    )


def build_material_showcase(scene: SceneManager) -> ThinLensCamera:
    """Populate ``scene`` with the material showcase and return its camera."""
    scene.clear()

    ground = scene.add_diffuse_material((0.1, 0.2, 0.5))
    center = scene.add_diffuse_material((0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(1.5)
    bubble = scene.add_dielectric_material(1.0 / 1.5)
    gold = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=1.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.2), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.4, bubble)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    return material_showcase_camera()


def random_spheres_camera() -> ThinLensCamera:
    """Low-angle camera with a shallow depth of field."""
    return ThinLensCamera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        defocus_angle=0.6,
        focus_dist=10.0,
    )


def build_random_spheres(scene: SceneManager, seed: int = 0) -> ThinLensCamera:
    """Populate ``scene`` with the random sphere field and return its camera.

    The layout is a 22 x 22 grid of radius-0.2 balls with jittered centres.
    Each ball is diffuse with probability 0.5, emissive with 0.3, metal with
    0.15 and glass otherwise.

    Args:
        scene: Scene to fill; it is cleared first.
        seed: Seed for the layout, so a given seed always builds the same scene.
    """
    scene.clear()
    rng = np.random.default_rng(seed)

    scene.add_diffuse_sphere((0.0, -1000.0, 0.0), 1000.0, (0.5, 0.5, 0.5))

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = (a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())

            if math.dist(center, (4.0, 0.2, 0.0)) <= _CLEARANCE:
                continue

            if choose_mat < 0.5:
                albedo = multiply(random_color(rng), random_color(rng))
                scene.add_diffuse_sphere(center, 0.2, albedo)
            elif choose_mat < 0.8:
                hue = from_hsv(rng.random(), 0.7, 1.0)
                scene.add_emissive_sphere(center, 0.2, multiply(hue, hue), rng.uniform(6.0, 20.0))
            elif choose_mat < 0.95:
                albedo = random_color(rng, 0.5, 1.0)
                scene.add_metal_sphere(center, 0.2, albedo, fuzz=rng.uniform(0.0, 0.5))
            else:
                scene.add_dielectric_sphere(center, 0.2, 1.5)

    scene.add_dielectric_sphere((0.0, 1.0, 0.0), 1.0, 1.5)
    scene.add_diffuse_sphere((-4.0, 1.0, 0.0), 1.0, (0.4, 0.2, 0.1))
    scene.add_metal_sphere((4.0, 1.0, 0.0), 1.0, (0.7, 0.6, 0.5), fuzz=0.0)

    return random_spheres_camera()


PRESETS: dict[str, Callable[..., ThinLensCamera]] = {
    "showcase": build_material_showcase,
    "random": build_random_spheres,
}


def build_preset(name: str, scene: SceneManager, seed: int = 0) -> ThinLensCamera:
    """Build a preset scene by name and return its camera.

    Raises:
        ValueError: If the preset name is unknown.
    """
    if name == "random":
        return build_random_spheres(scene, seed)
    if name in PRESETS:
        return PRESETS[name](scene)
    raise ValueError(f"Unknown preset {name!r}; expected one of {sorted(PRESETS)}")
