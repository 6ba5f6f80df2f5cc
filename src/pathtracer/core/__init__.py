"""Core rendering module.

Components:
    ray: Ray data structure and vector utilities
    interval: Float ranges used for hit distances and intensity clamping
    sampling: Explicit-state random number generation and sampling
    integrator: Radiance estimation and the scanline render kernel

All compute-intensive operations use Taichi functions and kernels.
"""

from .interval import (
    EMPTY,
    UNIVERSE,
    clamp_to,
    Interval,
    interval_clamp,
    interval_contains,
    interval_contains_open,
    interval_size,
    make_interval,
)
from .ray import (
    Ray,
    color,
    dot,
    length,
    length_squared,
    make_ray,
    normalize,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)
from .sampling import (
    MAX_REJECTION_ATTEMPTS,
    SamplingError,
    check_sampling_failures,
    get_sampling_failure_count,
    random_float,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_range,
    random_unit_vector,
    random_vec3,
    random_vec3_range,
    reset_sampling_failures,
    rng_init,
    sample_square,
)

# Note: integrator is NOT imported here; it depends on the camera and scene
# packages. Import it directly from pathtracer.core.integrator.

__all__ = [
    # Interval
    "Interval",
    "EMPTY",
    "UNIVERSE",
    "clamp_to",
    "make_interval",
    "interval_size",
    "interval_contains",
    "interval_contains_open",
    "interval_clamp",
    # Ray
    "Ray",
    "vec3",
    "color",
    "ray_at",
    "make_ray",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "reflect",
    "refract",
    "schlick_fresnel",
    # Sampling
    "MAX_REJECTION_ATTEMPTS",
    "SamplingError",
    "reset_sampling_failures",
    "get_sampling_failure_count",
    "check_sampling_failures",
    "rng_init",
    "random_float",
    "random_range",
    "random_vec3",
    "random_vec3_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "sample_square",
]
