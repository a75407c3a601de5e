"""Monte Carlo path tracer built on the Taichi CPU backend.

This package renders scenes of spheres by stochastically sampling light
transport paths, with support for:
- Lambert, mirror and transparent materials (Fresnel, roughness, metallic tint)
- Emission counted at every path vertex, optional next-event estimation
- Optional Russian roulette path termination
- Deterministic multi-worker rendering over disjoint row bands

Subpackages:
    core: Vector utilities, random sampling, integrator and render scheduler
    geometry: Sphere primitive and ray-sphere intersection
    materials: Material model and BSDF sampling
    scene: Immutable scene description, device upload and loaders
    camera: Look-at pinhole camera
    preview: Tone mapping and image export

The Taichi runtime must be initialised with
``pathtracer.core.backend.init_backend`` before importing any module that
allocates device fields (``scene.intersection``, ``camera.pinhole``,
``core.integrator``, ``core.renderer``).
"""

__version__ = "0.1.0"
