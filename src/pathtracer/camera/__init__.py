"""Camera module for view setup, ray generation and rendering.

Components:
    thin_lens: Look-at camera with defocus blur and the scanline render loop

Pixel coordinates are (i, j) with i growing to the right and j growing
downward; scanline 0 is the top row of the image.
"""

from .thin_lens import (
    Camera,
    CameraState,
    ProgressCallback,
    RenderPhase,
    ScanlineProgress,
    get_camera_info,
    get_ray,
)

__all__ = [
    "Camera",
    "CameraState",
    "RenderPhase",
    "ScanlineProgress",
    "ProgressCallback",
    "get_ray",
    "get_camera_info",
]
