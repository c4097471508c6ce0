"""Material models.

Components:
    registry: Material type tags and the unified material id space
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick reflectance
    emissive: Light-emitting surfaces
    interaction: Tagged dispatch used by the integrator
"""
