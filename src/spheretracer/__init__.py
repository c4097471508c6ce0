"""Monte Carlo sphere path tracer built on Taichi.

Subpackages:
    core: Rays, random sampling, the path tracing integrator, the row
        scheduler and the high-level Renderer
    geometry: Sphere primitive and ray-sphere intersection
    materials: Diffuse, metal, dielectric and emissive materials
    scene: Sphere storage, the SceneManager and preset scenes
    camera: Thin-lens camera with depth of field
    imaging: Tone mapping, AOV encoding and image export

Modules that declare Taichi fields must be imported after ``ti.init()``.
"""

__version__ = "0.1.0"
