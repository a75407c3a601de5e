"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive, robust ray-sphere intersection and the
        Python-side SphereShape description

Intersection routines return an outward normal and a front_face flag; the
material layer decides which side the shading normal faces.
"""

from .sphere import Sphere, SphereHit, SphereShape, hit_sphere, make_sphere

__all__ = [
    "Sphere",
    "SphereShape",
    "SphereHit",
    "hit_sphere",
    "make_sphere",
]
