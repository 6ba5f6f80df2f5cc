"""Thin-lens camera: ray generation and the render loop.

The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view specification
- Arbitrary aspect ratios
- Jittered sampling for anti-aliasing
- Defocus blur (depth of field) from a thin lens

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The focus plane sits ``focus_dist`` in front of the camera. Rays start on a
disk of radius ``focus_dist * tan(defocus_angle / 2)`` around the camera
center and pass through a jittered point of their pixel on the focus plane.

Derived state is computed on the Python side with NumPy and uploaded into
Taichi fields, where ``get_ray`` reads it inside kernels.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import Camera
    >>> from pathtracer.materials import Lambertian
    >>> from pathtracer.scene.world import Sphere, World
    >>>
    >>> world = World()
    >>> world.add(Sphere((0.0, 0.0, -1.0), 0.5, Lambertian((0.5, 0.5, 0.5))))
    >>> camera = Camera(image_width=200, samples_per_pixel=20, vfov=90.0)
    >>> with open("image.ppm", "w") as out:
    ...     image = camera.render(world, out=out)
"""

import math
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, TextIO

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import make_ray
from pathtracer.core.sampling import random_in_unit_disk, sample_square

if TYPE_CHECKING:
    from pathtracer.scene.world import World

# Type alias for 3D vectors
vec3 = tm.vec3

# Basis vectors shorter than this mean the view is degenerate
_DEGENERATE_LENGTH = 1e-8


class RenderPhase(IntEnum):
    """Lifecycle of a camera across render calls."""

    UNINITIALIZED = 0
    INITIALIZED = 1
    RENDERING = 2
    DONE = 3


@dataclass
class ScanlineProgress:
    """Progress report sent after each finished scanline.

    Attributes:
        scanline: Index of the finished scanline (0 = top).
        remaining: Number of scanlines still to render.
        scanline_seconds: Wall time spent on the finished scanline.
        elapsed_seconds: Wall time since the render started.
    """

    scanline: int
    remaining: int
    scanline_seconds: float
    elapsed_seconds: float

    @property
    def estimated_remaining_seconds(self) -> float:
        """Remaining time, assuming later scanlines cost the same on average."""
        done = self.scanline + 1
        return self.elapsed_seconds / done * self.remaining


# Type alias for progress callback
ProgressCallback = Callable[[ScanlineProgress], None]


@dataclass
class CameraState:
    """Derived camera quantities computed by Camera.initialize().

    Attributes:
        image_height: Rendered image height in pixels (at least 1).
        pixel_samples_scale: Weight of one sample in the pixel average.
        center: Camera center (equal to lookfrom).
        pixel00_loc: Center of the top-left pixel on the focus plane.
        pixel_delta_u: Offset from one pixel to the next one to the right.
        pixel_delta_v: Offset from one pixel to the next one below.
        u: Camera right vector.
        v: Camera up vector.
        w: Camera backward vector (opposite the view direction).
        defocus_disk_u: Horizontal radius vector of the defocus disk.
        defocus_disk_v: Vertical radius vector of the defocus disk.
    """

    image_height: int
    pixel_samples_scale: float
    center: npt.NDArray[np.float32]
    pixel00_loc: npt.NDArray[np.float32]
    pixel_delta_u: npt.NDArray[np.float32]
    pixel_delta_v: npt.NDArray[np.float32]
    u: npt.NDArray[np.float32]
    v: npt.NDArray[np.float32]
    w: npt.NDArray[np.float32]
    defocus_disk_u: npt.NDArray[np.float32]
    defocus_disk_v: npt.NDArray[np.float32]


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_center = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel00_loc = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_pixel_delta_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_u = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_disk_v = ti.Vector.field(3, dtype=ti.f32, shape=())
_defocus_angle = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera
# =============================================================================


@dataclass
class Camera:
    """Configuration and render loop of a thin-lens camera.

    Attributes:
        aspect_ratio: Ideal ratio of image width over height.
        image_width: Rendered image width in pixels.
        samples_per_pixel: Number of random samples averaged per pixel.
        max_depth: Maximum number of ray bounces into the scene.
        vfov: Vertical field of view in degrees.
        lookfrom: Camera position in world space.
        lookat: Point the camera is looking at.
        vup: Camera-relative "up" direction.
        defocus_angle: Variation angle of rays through each pixel, in
            degrees. 0 disables defocus blur.
        focus_dist: Distance from lookfrom to the plane of perfect focus.
        seed: Seed of the per-pixel random streams.
    """

    aspect_ratio: float = 16.0 / 9.0
    image_width: int = 100
    samples_per_pixel: int = 10
    max_depth: int = 10
    vfov: float = 20.0
    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookat: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    defocus_angle: float = 0.0
    focus_dist: float = 10.0
    seed: int = 0

    phase: RenderPhase = field(default=RenderPhase.UNINITIALIZED, init=False, compare=False)
    _state: CameraState | None = field(default=None, init=False, repr=False, compare=False)

    @property
    def state(self) -> CameraState:
        """The derived state from the last initialize() call.

        Raises:
            RuntimeError: If the camera has not been initialized.
        """
        if self._state is None:
            raise RuntimeError("Camera not initialized. Call initialize() first.")
        return self._state

    @property
    def image_height(self) -> int:
        return self.state.image_height

    def _validate(self) -> None:
        """Reject configurations that would produce NaN or empty images."""
        from pathtracer.core.integrator import MAX_IMAGE_WIDTH

        if self.image_width < 1:
            raise ValueError(f"image_width must be at least 1, got {self.image_width}")
        if self.image_width > MAX_IMAGE_WIDTH:
            raise ValueError(
                f"image_width {self.image_width} exceeds maximum supported ({MAX_IMAGE_WIDTH})"
            )
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must not be negative, got {self.max_depth}")
        if self.focus_dist <= 0.0:
            raise ValueError(f"focus_dist must be positive, got {self.focus_dist}")

    def initialize(self) -> CameraState:
        """Compute derived camera state and upload it for kernels.

        Returns:
            The derived CameraState.

        Raises:
            ValueError: If the configuration is degenerate (see _validate),
                lookfrom equals lookat, or vup is parallel to the view
                direction.
        """
        self._validate()

        image_height = max(1, int(self.image_width / self.aspect_ratio))

        lookfrom = np.array(self.lookfrom, dtype=np.float32)
        lookat = np.array(self.lookat, dtype=np.float32)
        vup = np.array(self.vup, dtype=np.float32)

        # Viewport dimensions on the focus plane
        theta = math.radians(self.vfov)
        h = math.tan(theta / 2.0)
        viewport_height = 2.0 * h * self.focus_dist
        viewport_width = viewport_height * (self.image_width / image_height)

        # w points from lookat toward lookfrom (backward)
        w = lookfrom - lookat
        w_length = np.linalg.norm(w)
        if w_length < _DEGENERATE_LENGTH:
            raise ValueError("lookfrom and lookat must be different points")
        w = w / w_length

        # u points right (perpendicular to w and vup)
        u = np.cross(vup, w)
        u_length = np.linalg.norm(u)
        if u_length < _DEGENERATE_LENGTH:
            raise ValueError("vup must not be parallel to the view direction")
        u = u / u_length

        # v points up in the camera's frame
        v = np.cross(w, u)

        # Across the horizontal and down the vertical viewport edges
        viewport_u = viewport_width * u
        viewport_v = viewport_height * -v

        pixel_delta_u = viewport_u / self.image_width
        pixel_delta_v = viewport_v / image_height

        viewport_upper_left = (
            lookfrom - self.focus_dist * w - viewport_u / 2.0 - viewport_v / 2.0
        )
        pixel00_loc = viewport_upper_left + 0.5 * (pixel_delta_u + pixel_delta_v)

        defocus_radius = self.focus_dist * math.tan(math.radians(self.defocus_angle / 2.0))

        state = CameraState(
            image_height=image_height,
            pixel_samples_scale=1.0 / self.samples_per_pixel,
            center=lookfrom,
            pixel00_loc=pixel00_loc.astype(np.float32),
            pixel_delta_u=pixel_delta_u.astype(np.float32),
            pixel_delta_v=pixel_delta_v.astype(np.float32),
            u=u.astype(np.float32),
            v=v.astype(np.float32),
            w=w.astype(np.float32),
            defocus_disk_u=(u * defocus_radius).astype(np.float32),
            defocus_disk_v=(v * defocus_radius).astype(np.float32),
        )

        _camera_center[None] = state.center.tolist()
        _pixel00_loc[None] = state.pixel00_loc.tolist()
        _pixel_delta_u[None] = state.pixel_delta_u.tolist()
        _pixel_delta_v[None] = state.pixel_delta_v.tolist()
        _defocus_disk_u[None] = state.defocus_disk_u.tolist()
        _defocus_disk_v[None] = state.defocus_disk_v.tolist()
        _defocus_angle[None] = self.defocus_angle

        self._state = state
        self.phase = RenderPhase.INITIALIZED
        return state

    def render(
        self,
        world: "World",
        out: TextIO | None = None,
        progress: ProgressCallback | None = None,
    ) -> npt.NDArray[np.uint8]:
        """Render the world and write it as an ASCII PPM image.

        Scanlines are written top to bottom as soon as they are finished.

        Args:
            world: The scene to render.
            out: Text stream receiving the PPM data. Defaults to sys.stdout.
            progress: Optional callback invoked after each scanline.

        Returns:
            The encoded image as a uint8 array of shape (height, width, 3).

        Raises:
            RuntimeError: If called while a render is already in progress.
            ValueError: If the camera configuration is degenerate.
            SamplingError: If a rejection sampler failed during the render.
        """
        # Lazy imports: the integrator kernels read this module's fields
        from pathtracer.core.integrator import render_scanline
        from pathtracer.core.sampling import check_sampling_failures, reset_sampling_failures
        from pathtracer.output.encoder import encode_colors, write_pixels, write_ppm_header
        from pathtracer.scene.manager import SceneManager

        if self.phase == RenderPhase.RENDERING:
            raise RuntimeError("A render is already in progress on this camera")

        if out is None:
            out = sys.stdout

        scene = SceneManager()
        scene.load_world(world)

        state = self.initialize()
        width = self.image_width
        height = state.image_height

        self.phase = RenderPhase.RENDERING
        try:
            reset_sampling_failures()
            write_ppm_header(out, width, height)

            image = np.zeros((height, width, 3), dtype=np.uint8)
            start_time = time.perf_counter()

            for j in range(height):
                scanline_start = time.perf_counter()

                row = render_scanline(
                    j, width, self.samples_per_pixel, self.max_depth, self.seed
                )
                check_sampling_failures()

                image[j] = encode_colors(row)
                write_pixels(out, image[j])

                if progress is not None:
                    now = time.perf_counter()
                    progress(
                        ScanlineProgress(
                            scanline=j,
                            remaining=height - j - 1,
                            scanline_seconds=now - scanline_start,
                            elapsed_seconds=now - start_time,
                        )
                    )
        except BaseException:
            self.phase = RenderPhase.INITIALIZED
            raise

        out.flush()
        self.phase = RenderPhase.DONE
        return image


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def defocus_disk_sample(state: ti.u32):
    """Return a random point on the camera's defocus disk.

    Returns:
        A tuple (point, new_state).
    """
    p, rng = random_in_unit_disk(state)
    point = _camera_center[None] + p.x * _defocus_disk_u[None] + p.y * _defocus_disk_v[None]
    return point, rng


@ti.func
def get_ray(i: ti.i32, j: ti.i32, state: ti.u32):
    """Generate a camera ray for pixel (i, j).

    The ray originates from the defocus disk (or the camera center when
    defocus is disabled) and passes through a random point in the square
    region of the pixel on the focus plane.

    Args:
        i: Pixel column (0 = left).
        j: Pixel row (0 = top).
        state: Generator state.

    Returns:
        A tuple (ray, new_state). The ray direction is not normalized.
    """
    rng = state
    offset, rng = sample_square(rng)
    pixel_sample = (
        _pixel00_loc[None]
        + (ti.cast(i, ti.f32) + offset.x) * _pixel_delta_u[None]
        + (ti.cast(j, ti.f32) + offset.y) * _pixel_delta_v[None]
    )

    ray_origin = _camera_center[None]
    if _defocus_angle[None] > 0.0:
        ray_origin, rng = defocus_disk_sample(rng)

    ray = make_ray(ray_origin, pixel_sample - ray_origin)
    return ray, rng


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with center, pixel00_loc, pixel_delta_u, pixel_delta_v,
        defocus_disk_u and defocus_disk_v.
    """
    fields = {
        "center": _camera_center,
        "pixel00_loc": _pixel00_loc,
        "pixel_delta_u": _pixel_delta_u,
        "pixel_delta_v": _pixel_delta_v,
        "defocus_disk_u": _defocus_disk_u,
        "defocus_disk_v": _defocus_disk_v,
    }
    info = {}
    for name, value_field in fields.items():
        value = value_field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
