"""Random number generation and Monte Carlo sampling utilities.

Randomness comes from an explicit 32-bit generator state rather than a
process-wide generator. Every sampling function takes the current state and
returns its sample together with the advanced state::

    u, rng = random_float(rng)
    direction, rng = random_unit_vector(rng)

The generator is a 32-bit LCG step followed by the PCG RXS-M-XS output
permutation. ``rng_init(seed, stream)`` derives an independent starting state
for each stream (the render loop uses one stream per pixel), so a render is
reproducible for a given seed no matter how the pixel loop is scheduled.

Rejection samplers are bounded by ``MAX_REJECTION_ATTEMPTS``. Running out of
attempts cannot happen with a working generator; when it does, the sampler
increments a failure counter that ``check_sampling_failures()`` turns into a
``SamplingError`` on the Python side.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import length_squared, normalize

# Type alias for 3D vectors
vec3 = tm.vec3

# Upper bound on iterations of any rejection-sampling loop
MAX_REJECTION_ATTEMPTS = 1000

# Generator constants (LCG step and PCG output permutation)
_LCG_MULTIPLIER = 747796405
_LCG_INCREMENT = 1013904223
_OUTPUT_MULTIPLIER = 277803737

# 2^-24: maps the top 24 bits of a draw onto [0, 1)
_FLOAT_SCALE = 1.0 / 16777216.0


class SamplingError(RuntimeError):
    """Raised when a bounded rejection sampler exhausted its attempts."""


# Number of rejection samplers that gave up since the last reset
_sampling_failures = ti.field(dtype=ti.i32, shape=())


def reset_sampling_failures() -> None:
    """Reset the rejection-sampling failure counter."""
    _sampling_failures[None] = 0


def get_sampling_failure_count() -> int:
    """Get the number of rejection-sampling failures since the last reset."""
    return int(_sampling_failures[None])


def check_sampling_failures() -> None:
    """Raise if any rejection sampler failed since the last reset.

    Raises:
        SamplingError: If the failure counter is non-zero. The counter is
            left untouched so the caller can inspect it.
    """
    failures = get_sampling_failure_count()
    if failures > 0:
        raise SamplingError(
            f"Rejection sampling exceeded {MAX_REJECTION_ATTEMPTS} attempts "
            f"{failures} time(s); the random source is broken"
        )


# =============================================================================
# Generator Core
# =============================================================================


@ti.func
def _u32(x):
    return ti.cast(x, ti.u32)


@ti.func
def _permute(state: ti.u32) -> ti.u32:
    """PCG RXS-M-XS output permutation."""
    shift = ti.bit_shr(state, _u32(28)) + _u32(4)
    word = (ti.bit_shr(state, shift) ^ state) * _u32(_OUTPUT_MULTIPLIER)
    return ti.bit_shr(word, _u32(22)) ^ word


@ti.func
def _advance(state: ti.u32) -> ti.u32:
    return state * _u32(_LCG_MULTIPLIER) + _u32(_LCG_INCREMENT)


@ti.func
def rng_init(seed: ti.u32, stream: ti.u32) -> ti.u32:
    """Derive a generator state for one stream of a seeded sequence.

    Args:
        seed: The user-visible seed.
        stream: Stream index (e.g. the linear pixel index).

    Returns:
        The initial generator state for the stream.
    """
    return _permute(_advance(stream ^ _permute(seed)))


@ti.func
def random_u32(state: ti.u32):
    """Draw 32 random bits.

    Returns:
        A tuple (bits, new_state).
    """
    next_state = _advance(state)
    return _permute(next_state), next_state


@ti.func
def random_float(state: ti.u32):
    """Draw a uniform float in [0, 1).

    Returns:
        A tuple (value, new_state).
    """
    bits, next_state = random_u32(state)
    value = ti.cast(ti.bit_shr(bits, _u32(8)), ti.f32) * _FLOAT_SCALE
    return value, next_state


@ti.func
def random_range(state: ti.u32, lo: ti.f32, hi: ti.f32):
    """Draw a uniform float in [lo, hi).

    Returns:
        A tuple (value, new_state).
    """
    u, next_state = random_float(state)
    return lo + (hi - lo) * u, next_state


@ti.func
def random_vec3(state: ti.u32):
    """Draw a vector with each component uniform in [0, 1).

    Returns:
        A tuple (vector, new_state).
    """
    rng = state
    x, rng = random_float(rng)
    y, rng = random_float(rng)
    z, rng = random_float(rng)
    return vec3(x, y, z), rng


@ti.func
def random_vec3_range(state: ti.u32, lo: ti.f32, hi: ti.f32):
    """Draw a vector uniformly from the cube [lo, hi)^3.

    Returns:
        A tuple (vector, new_state).
    """
    rng = state
    x, rng = random_range(rng, lo, hi)
    y, rng = random_range(rng, lo, hi)
    z, rng = random_range(rng, lo, hi)
    return vec3(x, y, z), rng


# =============================================================================
# Rejection Samplers
# =============================================================================


@ti.func
def random_in_unit_sphere_bounded(state: ti.u32, max_attempts: ti.template()):
    """Rejection-sample a point inside the unit ball.

    Candidates are drawn from [-1, 1)^3 and accepted when
    ``1e-8 < |p|^2 <= 1``; the lower bound keeps the point normalizable.

    Args:
        state: Generator state.
        max_attempts: Compile-time bound on the number of candidates.

    Returns:
        A tuple (point, new_state). The point is zero and the failure
        counter is incremented if no candidate was accepted.
    """
    rng = state
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    attempts = 0
    while found == 0 and attempts < max_attempts:
        candidate, rng = random_vec3_range(rng, -1.0, 1.0)
        len_sq = length_squared(candidate)
        if 1e-8 < len_sq and len_sq <= 1.0:
            p = candidate
            found = 1
        attempts += 1
    if found == 0:
        ti.atomic_add(_sampling_failures[None], 1)
    return p, rng


@ti.func
def random_in_unit_disk_bounded(state: ti.u32, max_attempts: ti.template()):
    """Rejection-sample a point inside the unit disk in the xy-plane.

    Returns:
        A tuple (point, new_state) with point = (x, y, 0), x^2 + y^2 < 1.
    """
    rng = state
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    attempts = 0
    while found == 0 and attempts < max_attempts:
        x, rng = random_range(rng, -1.0, 1.0)
        y, rng = random_range(rng, -1.0, 1.0)
        if x * x + y * y < 1.0:
            p = vec3(x, y, 0.0)
            found = 1
        attempts += 1
    if found == 0:
        ti.atomic_add(_sampling_failures[None], 1)
    return p, rng


@ti.func
def random_in_unit_sphere(state: ti.u32):
    return random_in_unit_sphere_bounded(state, MAX_REJECTION_ATTEMPTS)


@ti.func
def random_unit_vector(state: ti.u32):
    """Draw a unit vector uniformly distributed on the sphere.

    Returns:
        A tuple (unit_vector, new_state).
    """
    p, rng = random_in_unit_sphere(state)
    result = p
    if length_squared(p) > 0.0:
        result = normalize(p)
    return result, rng


@ti.func
def random_in_unit_disk(state: ti.u32):
    """Draw a point uniformly from the unit disk (defocus blur).

    Returns:
        A tuple (point, new_state).
    """
    return random_in_unit_disk_bounded(state, MAX_REJECTION_ATTEMPTS)


@ti.func
def sample_square(state: ti.u32):
    """Draw an offset uniformly from the square [-0.5, 0.5)^2.

    Returns:
        A tuple (offset, new_state) with offset = (dx, dy, 0).
    """
    rng = state
    dx, rng = random_float(rng)
    dy, rng = random_float(rng)
    return vec3(dx - 0.5, dy - 0.5, 0.0), rng
