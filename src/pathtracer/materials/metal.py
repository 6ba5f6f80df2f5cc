"""Metal (specular reflective) material implementation.

The incident direction is mirrored about the surface normal:
    R = I - 2(I . N)N

normalized, then perturbed by ``fuzz * random_unit_vector()``. Fuzz 0 is a
perfect mirror; larger values blur the specular lobe. A perturbation that
pushes the ray below the surface absorbs it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.metal import Metal
    >>> gold = Metal(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
    >>> Metal(albedo=(1.0, 1.0, 1.0), fuzz=4.0).fuzz
    1.0
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import Ray, dot, make_ray, normalize, reflect
from pathtracer.core.sampling import random_unit_vector

# Type alias for 3D vectors
vec3 = tm.vec3


def clamp_fuzz(fuzz: float) -> float:
    """Clamp a fuzz value into [0, 1]."""
    return min(max(float(fuzz), 0.0), 1.0)


@dataclass(frozen=True)
class Metal:
    """Metal (specular reflective) material.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: Blur of the reflection in [0, 1]; values outside the range
            are clamped at construction. 0 = perfect mirror.
    """

    albedo: tuple[float, float, float]
    fuzz: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", tuple(float(c) for c in self.albedo))
        object.__setattr__(self, "fuzz", clamp_fuzz(self.fuzz))


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident: Ray,
    point: vec3,
    normal: vec3,
    state: ti.u32,
):
    """Reflect a ray off a metal surface.

    Args:
        albedo: The reflective color (RGB).
        fuzz: The reflection blur in [0, 1].
        incident: The incoming ray. Its direction need not be unit length.
        point: The hit point; becomes the scattered ray's origin.
        normal: The unit surface normal at the hit point, facing the ray.
        state: Generator state.

    Returns:
        A tuple of (attenuation, scattered_ray, did_scatter, new_state) where
        did_scatter is 1 if the reflected ray leaves the surface and 0 if it
        was absorbed.
    """
    reflected = normalize(reflect(incident.direction, normal))
    offset, rng = random_unit_vector(state)
    reflected = reflected + fuzz * offset

    did_scatter = 0
    if dot(reflected, normal) > 0.0:
        did_scatter = 1

    return albedo, make_ray(point, reflected), did_scatter, rng


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzz = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
        fuzz: The reflection blur. Values are clamped to [0, 1].

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = [float(albedo[0]), float(albedo[1]), float(albedo[2])]
    metal_fuzz[idx] = clamp_fuzz(fuzz)
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzz[material_idx]
