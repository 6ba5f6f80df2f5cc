"""Scene module for scene description, upload and hit queries.

Components:
    world: Python-side Sphere and World value objects
    intersection: Sphere storage and nearest-hit search over it
    manager: Upload of worlds into fields with a unified material table
    examples: Ready-made example scenes

Scene data is organized for kernel access:
    - Structure-of-Arrays layout for sphere data
    - Contiguous material ID arrays
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .world import Material, Sphere, World

# Note: examples is NOT imported here; it depends on the camera package.

__all__ = [
    # World
    "Sphere",
    "World",
    "Material",
    # Intersection
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
]
