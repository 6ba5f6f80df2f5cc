"""Lambertian (ideal diffuse) material implementation.

Scattered directions are sampled as ``normal + random_unit_vector()``: a
point on the unit sphere tangent to the surface at the hit point, which
gives the cosine-weighted distribution of an ideal diffuse reflector. The
attenuation is the albedo, unconditionally.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.lambertian import Lambertian, scatter_lambertian
    >>> red = Lambertian(albedo=(0.8, 0.1, 0.1))
    >>> # Use within a Taichi kernel:
    >>> # attenuation, scattered, did_scatter, rng = scatter_lambertian(albedo, ray, rec, rng)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, length, make_ray
from pathtracer.core.sampling import random_unit_vector

# Type alias for 3D vectors
vec3 = tm.vec3

# Scatter directions shorter than this fall back to the surface normal
DEGENERATE_DIRECTION_LENGTH = 1e-8


@dataclass(frozen=True)
class Lambertian:
    """Lambertian (ideal diffuse) material.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    albedo: tuple[float, float, float]

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", tuple(float(c) for c in self.albedo))


@ti.func
def scatter_lambertian(albedo: vec3, incident: Ray, point: vec3, normal: vec3, state: ti.u32):
    """Sample a diffuse bounce off a Lambertian surface.

    Args:
        albedo: The diffuse reflectance color (RGB).
        incident: The incoming ray (unused; diffuse scattering ignores it).
        point: The hit point; becomes the scattered ray's origin.
        normal: The unit surface normal at the hit point, facing the ray.
        state: Generator state.

    Returns:
        A tuple of (attenuation, scattered_ray, did_scatter, new_state) where
        attenuation is the albedo and did_scatter is always 1.
    """
    offset, rng = random_unit_vector(state)
    scatter_direction = normal + offset

    # Opposite normal and sample cancel out; avoid a zero-length direction
    if length(scatter_direction) < DEGENERATE_DIRECTION_LENGTH:
        scatter_direction = normal

    # Diffuse surfaces always scatter
    did_scatter = 1

    return albedo, make_ray(point, scatter_direction), did_scatter, rng


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = [float(albedo[0]), float(albedo[1]), float(albedo[2])]
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    return lambertian_albedos[material_idx]
