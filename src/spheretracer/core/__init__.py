"""Core rendering module.

Components:
    ray: Ray data structure, vector helpers and random direction sampling
    sampler: Deterministic per-pixel random number generator
    interval: Closed/open range tests used for hit clipping
    color: Host-side colour helpers for scene building
    integrator: Path tracing kernels and render target buffers
    scheduler: Row partitioning and parallel dispatch with progress logging
    renderer: Renderer facade (init / render / write)

Nothing is imported here: most modules declare Taichi fields and must be
imported after ``ti.init()``.
"""
