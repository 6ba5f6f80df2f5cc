"""Output module: pixel encoding, PPM writing and PNG export."""

from .encoder import (
    INTENSITY_MAX,
    INTENSITY_MIN,
    encode_colors,
    format_pixel,
    linear_to_gamma,
    write_pixels,
    write_ppm,
    write_ppm_header,
)
from .export import load_png, save_png

__all__ = [
    "INTENSITY_MIN",
    "INTENSITY_MAX",
    "linear_to_gamma",
    "encode_colors",
    "format_pixel",
    "write_ppm_header",
    "write_pixels",
    "write_ppm",
    "save_png",
    "load_png",
]
