"""Pixel encoding and ASCII PPM (P3) output.

Linear colors are gamma corrected with gamma 2 (square root), clamped to
[0, 0.999] and scaled to integers in [0, 255]. Each pixel is written on its
own line as ``"R G B"``.

Example:
    >>> import sys
    >>> import numpy as np
    >>> from pathtracer.output.encoder import encode_colors, write_ppm
    >>> image = encode_colors(np.full((1, 2, 3), 0.25, dtype=np.float32))
    >>> write_ppm(sys.stdout, image)
    P3
    2 1
    255
    128 128 128
    128 128 128
"""

from collections.abc import Iterable
from typing import TextIO

import numpy as np
import numpy.typing as npt

from pathtracer.core.interval import clamp_to

# Intensity range after gamma correction; 0.999 keeps 256 * x below 256
INTENSITY_MIN = 0.0
INTENSITY_MAX = 0.999
INTENSITY = (INTENSITY_MIN, INTENSITY_MAX)

# Maximum component value written in the PPM header
MAX_COLOR_VALUE = 255


def linear_to_gamma(linear: npt.ArrayLike) -> npt.NDArray[np.float32]:
    """Apply gamma 2 correction; non-positive components map to 0."""
    values = np.asarray(linear, dtype=np.float32)
    return np.where(values > 0.0, np.sqrt(np.maximum(values, 0.0)), 0.0).astype(np.float32)


def encode_colors(colors: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Convert linear colors to 8-bit display values.

    Args:
        colors: Array of linear RGB values with a trailing axis of size 3.
            NaN components are treated as 0.

    Returns:
        A uint8 array of the same shape with values in [0, 255].
    """
    values = np.nan_to_num(np.asarray(colors, dtype=np.float32), nan=0.0)
    gamma = linear_to_gamma(values)
    clamped = clamp_to(INTENSITY, gamma)
    return (256.0 * clamped).astype(np.uint8)


def format_pixel(rgb: Iterable[int]) -> str:
    """Format one encoded pixel as a PPM text line (without newline)."""
    r, g, b = (int(c) for c in rgb)
    return f"{r} {g} {b}"


def write_ppm_header(out: TextIO, width: int, height: int) -> None:
    """Write the P3 header for an image of the given size."""
    out.write(f"P3\n{width} {height}\n{MAX_COLOR_VALUE}\n")


def write_pixels(out: TextIO, pixels: npt.NDArray[np.uint8]) -> None:
    """Write encoded pixels in row-major order, one per line.

    Args:
        out: Destination text stream.
        pixels: Encoded pixels, shape (..., 3).
    """
    rows = np.asarray(pixels).reshape(-1, 3)
    out.write("".join(format_pixel(rgb) + "\n" for rgb in rows))


def write_ppm(out: TextIO, image: npt.NDArray[np.uint8]) -> None:
    """Write a complete encoded image as an ASCII PPM.

    Args:
        out: Destination text stream.
        image: Encoded image of shape (height, width, 3).

    Raises:
        ValueError: If the image does not have shape (height, width, 3).
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (height, width, 3), got {image.shape}")
    height, width = image.shape[:2]
    write_ppm_header(out, width, height)
    write_pixels(out, image)
