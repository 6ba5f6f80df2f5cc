"""Dielectric (glass/water) material implementation.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when ratio * sin(theta) > 1

Each scatter event follows a single child ray: reflection is chosen with the
Schlick reflectance probability against a fresh uniform draw, refraction
otherwise. Dielectrics never absorb, so the attenuation is white.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.materials.dielectric import Dielectric
    >>> glass = Dielectric(refraction_index=1.5)
    >>> bubble = Dielectric(refraction_index=1.0 / 1.5)  # air pocket in glass
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import (
    Ray,
    dot,
    make_ray,
    normalize,
    reflect,
    refract,
    schlick_fresnel,
)
from pathtracer.core.sampling import random_float

# Type alias for 3D vectors
vec3 = tm.vec3


def validate_refraction_index(refraction_index: float) -> float:
    """Check that an index of refraction is positive.

    Indices below 1 are allowed; they describe a less dense medium enclosed
    by a denser one (an air bubble in glass).

    Raises:
        ValueError: If the index is not positive.
    """
    if refraction_index <= 0.0:
        raise ValueError(
            f"Index of refraction = {refraction_index} is not positive. "
            "The refraction ratio would be undefined."
        )
    return float(refraction_index)


@dataclass(frozen=True)
class Dielectric:
    """Dielectric (glass/water) material.

    Attributes:
        refraction_index: Index of refraction relative to the enclosing
            medium. Common values: water 1.33, glass 1.5, diamond 2.4.
    """

    refraction_index: float

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "refraction_index", validate_refraction_index(self.refraction_index)
        )


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Return 1/ior when entering the material and ior when leaving it."""
    ratio = ior
    if front_face == 1:
        ratio = 1.0 / ior
    return ratio


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident: Ray,
    point: vec3,
    normal: vec3,
    front_face: ti.i32,
    state: ti.u32,
):
    """Reflect or refract a ray at a dielectric boundary.

    Args:
        ior: Index of refraction of the material.
        incident: The incoming ray. Its direction need not be unit length.
        point: The hit point; becomes the scattered ray's origin.
        normal: The unit surface normal, facing the incident ray.
        front_face: 1 if the ray is entering the material, 0 if leaving.
        state: Generator state.

    Returns:
        A tuple of (attenuation, scattered_ray, did_scatter, new_state) where
        attenuation is white and did_scatter is always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    ratio = refraction_ratio(ior, front_face)

    unit_direction = normalize(incident.direction)
    cos_theta = tm.min(-dot(unit_direction, normal), 1.0)
    sin_theta = tm.sqrt(1.0 - cos_theta * cos_theta)

    cannot_refract = ratio * sin_theta > 1.0

    # Always draw so the number of draws per event does not depend on the branch
    u, rng = random_float(state)

    direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract or schlick_fresnel(cos_theta, ratio) > u:
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ratio)

    did_scatter = 1

    return attenuation, make_ray(point, direction), did_scatter, rng


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the IOR is not positive.
    """
    ior = validate_refraction_index(ior)

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]
