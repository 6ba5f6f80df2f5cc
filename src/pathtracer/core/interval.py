"""Closed/open ranges over floats.

Intervals bound the accepted ray parameter during intersection and the
intensity range during pixel quantization. An interval with ``min > max``
is empty; ``(-inf, +inf)`` is the universe.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.interval import Interval, interval_contains_open
    >>> @ti.kernel
    ... def example() -> ti.i32:
    ...     return interval_contains_open(Interval(min=0.0, max=1.0), 1.0)  # 0
"""

import math

import numpy as np
import numpy.typing as npt
import taichi as ti


@ti.dataclass
class Interval:
    """A range of floats.

    Attributes:
        min: Lower bound.
        max: Upper bound. ``min > max`` denotes the empty interval.
    """

    min: ti.f32
    max: ti.f32


# Python-side bounds for the two distinguished intervals
EMPTY = (math.inf, -math.inf)
UNIVERSE = (-math.inf, math.inf)


@ti.func
def make_interval(lo: ti.f32, hi: ti.f32) -> Interval:
    return Interval(min=lo, max=hi)


@ti.func
def interval_size(interval: Interval) -> ti.f32:
    return interval.max - interval.min


@ti.func
def interval_contains(interval: Interval, x: ti.f32) -> ti.i32:
    """Return 1 if ``min <= x <= max``."""
    return 1 if interval.min <= x and x <= interval.max else 0


@ti.func
def interval_contains_open(interval: Interval, x: ti.f32) -> ti.i32:
    """Return 1 if ``min < x < max``.

    Intersection code uses the open form so a hit exactly at the lower bound
    (the shadow-acne bias) is rejected.
    """
    return 1 if interval.min < x and x < interval.max else 0


@ti.func
def interval_clamp(interval: Interval, x: ti.f32) -> ti.f32:
    result = x
    if x < interval.min:
        result = interval.min
    if x > interval.max:
        result = interval.max
    return result


def clamp_to(bounds: tuple[float, float], values: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Host-side interval_clamp over a NumPy array.

    Args:
        bounds: (min, max) of a non-empty interval.
        values: Values to clamp.

    Returns:
        A float32 array with every element clamped into the interval.
    """
    lo, hi = bounds
    return np.clip(np.asarray(values, dtype=np.float32), lo, hi).astype(np.float32)
