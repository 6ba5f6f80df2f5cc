"""Geometry module for the sphere primitive.

Components:
    sphere: Ray-sphere intersection, hit records and face orientation

Intersection routines are Taichi functions (@ti.func) called from the
scene-level nearest-hit search in pathtracer.scene.intersection.
"""

from .sphere import HitRecord, hit_sphere, make_miss_record, set_face_normal

__all__ = [
    "HitRecord",
    "hit_sphere",
    "make_miss_record",
    "set_face_normal",
]
