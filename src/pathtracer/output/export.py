"""Image export utilities for rendered images.

Supported formats:
    - PNG (8-bit via Pillow), from the already gamma-corrected and
      quantized image returned by Camera.render()

Example:
    >>> from pathtracer.output.export import save_png
    >>> image = camera.render(world)
    >>> save_png(image, "output.png")
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage


def save_png(image: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Save an encoded image as a PNG file.

    Args:
        image: Encoded image of shape (height, width, 3) with dtype uint8.
        filepath: Output file path (should end in .png).

    Raises:
        ValueError: If the image is not an (H, W, 3) uint8 array.
    """
    if image.dtype != np.uint8 or image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(
            f"Expected a uint8 image of shape (height, width, 3), got "
            f"{image.dtype} {image.shape}"
        )

    pil_image = PILImage.fromarray(np.ascontiguousarray(image))
    pil_image.save(filepath)


def load_png(filepath: str | Path) -> npt.NDArray[np.uint8]:
    """Load a PNG file back into an (H, W, 3) uint8 array."""
    with PILImage.open(filepath) as pil_image:
        return np.asarray(pil_image.convert("RGB"), dtype=np.uint8)
