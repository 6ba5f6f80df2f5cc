"""Monte Carlo radiance integrator and the scanline render kernel.

Radiance along a camera ray is estimated by following a single scattered
ray per bounce: every hit multiplies the path throughput by the material's
attenuation, an absorbed ray contributes black, and a ray that escapes the
scene picks up the sky gradient. Exceeding the bounce budget also yields
black.

Taichi has no recursion, so ``ray_color`` runs the bounces as a loop with
an active flag; the result is identical to the recursive definition

    color(r, depth) = attenuation * color(scattered, depth - 1)

Rendering proceeds one scanline per kernel launch. Pixels inside a scanline
are processed left to right in a serialized loop, and each pixel draws from
its own generator stream derived from the render seed, so the output is
reproducible for a given seed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import trace_ray
    >>> r, g, b = trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=10)
    >>> # Empty scene, looking straight up: (r, g, b) is about (0.1, 0.46, 1.0)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray
from pathtracer.core.interval import make_interval
from pathtracer.core.ray import Ray, make_ray, normalize
from pathtracer.core.sampling import rng_init
from pathtracer.materials.dielectric import get_dielectric_ior, scatter_dielectric
from pathtracer.materials.lambertian import get_lambertian_albedo, scatter_lambertian
from pathtracer.materials.metal import get_metal_albedo, get_metal_fuzz, scatter_metal
from pathtracer.scene.intersection import SceneHitRecord, intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Constants
# =============================================================================

# Lower bound of accepted hit distances; suppresses self-intersection
SHADOW_ACNE_EPSILON = 1e-3

# Upper bound of accepted hit distances
T_MAX = tm.inf

# Sky gradient: a = SKY_BLEND_SCALE * (unit_direction.y + 1)
SKY_BLEND_SCALE = 0.9
SKY_WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)

# Maximum supported image width (the scanline buffer is preallocated)
MAX_IMAGE_WIDTH = 2048

# Averaged linear colors of the scanline being rendered
_scanline_buffer = ti.Vector.field(3, dtype=ti.f32, shape=MAX_IMAGE_WIDTH)


# =============================================================================
# Sky
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background radiance for a ray that leaves the scene.

    Blends white toward light blue with the height of the unit direction.
    """
    unit_direction = normalize(direction)
    a = SKY_BLEND_SCALE * (unit_direction.y + 1.0)
    return (1.0 - a) * SKY_WHITE + a * SKY_BLUE


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(material_id: ti.i32, ray: Ray, rec: SceneHitRecord, state: ti.u32):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        ray: The incoming ray.
        rec: The hit record of the intersection.
        state: Generator state.

    Returns:
        A tuple of (attenuation, scattered_ray, did_scatter, new_state).
        An unknown material absorbs the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    # Default values
    rng = state
    attenuation = vec3(0.0, 0.0, 0.0)
    scattered = make_ray(rec.point, vec3(0.0, 0.0, 0.0))
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        attenuation, scattered, did_scatter, rng = scatter_lambertian(
            albedo, ray, rec.point, rec.normal, rng
        )

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        attenuation, scattered, did_scatter, rng = scatter_metal(
            albedo, fuzz, ray, rec.point, rec.normal, rng
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        attenuation, scattered, did_scatter, rng = scatter_dielectric(
            ior, ray, rec.point, rec.normal, rec.front_face, rng
        )

    return attenuation, scattered, did_scatter, rng


# =============================================================================
# Radiance
# =============================================================================


@ti.func
def ray_color(ray: Ray, depth: ti.i32, state: ti.u32):
    """Estimate the radiance arriving along a ray.

    Args:
        ray: The ray to trace.
        depth: Remaining bounce budget. A budget of 0 yields black.
        state: Generator state.

    Returns:
        A tuple (color, new_state).
    """
    rng = state
    current = ray
    throughput = vec3(1.0, 1.0, 1.0)
    result = vec3(0.0, 0.0, 0.0)

    # Active flag for path continuation (no early exit from ti.func loops)
    active = 1

    for _ in range(depth):
        if active == 1:
            rec = intersect_scene(current, make_interval(SHADOW_ACNE_EPSILON, T_MAX))

            if rec.hit == 0:
                result = throughput * sky_color(current.direction)
                active = 0
            else:
                attenuation = vec3(0.0, 0.0, 0.0)
                scattered = current
                did_scatter = 0
                attenuation, scattered, did_scatter, rng = _scatter_material(
                    rec.material_id, current, rec, rng
                )

                if did_scatter == 0:
                    # Absorbed
                    active = 0
                else:
                    throughput *= attenuation
                    current = scattered

    # A path still active here ran out of bounces and contributes black
    return result, rng


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_scanline(
    j: ti.i32,
    width: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
    scale: ti.f32,
    seed: ti.u32,
):
    """Render one scanline into the scanline buffer.

    Args:
        j: Row index, 0 at the top of the image.
        width: Image width in pixels.
        samples: Samples per pixel.
        max_depth: Bounce budget per camera ray.
        scale: 1 / samples.
        seed: Render seed.
    """
    ti.loop_config(serialize=True)
    for i in range(width):
        rng = rng_init(seed, ti.cast(j * width + i, ti.u32))
        pixel_color = vec3(0.0, 0.0, 0.0)
        for _ in range(samples):
            ray, rng = get_ray(i, j, rng)
            sample, rng = ray_color(ray, max_depth, rng)
            pixel_color += sample
        _scanline_buffer[i] = scale * pixel_color


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, depth: ti.i32, seed: ti.u32) -> vec3:
    color = vec3(0.0, 0.0, 0.0)
    # Single serial iteration keeps the bounce loop out of the parallel scope
    ti.loop_config(serialize=True)
    for _ in range(1):
        rng = rng_init(seed, ti.cast(0, ti.u32))
        sample, rng = ray_color(make_ray(origin, direction), depth, rng)
        color = sample
    return color


def render_scanline(
    j: int,
    width: int,
    samples_per_pixel: int,
    max_depth: int,
    seed: int,
) -> npt.NDArray[np.float32]:
    """Render one scanline with the currently initialized camera and scene.

    Args:
        j: Row index, 0 at the top of the image.
        width: Image width in pixels (at most MAX_IMAGE_WIDTH).
        samples_per_pixel: Samples per pixel (at least 1).
        max_depth: Bounce budget per camera ray.
        seed: Render seed.

    Returns:
        Averaged linear colors as a float32 array of shape (width, 3).
    """
    if width > MAX_IMAGE_WIDTH:
        raise ValueError(
            f"Image width {width} exceeds maximum supported ({MAX_IMAGE_WIDTH})"
        )
    _render_scanline(
        j, width, samples_per_pixel, max_depth, 1.0 / samples_per_pixel, seed & 0xFFFFFFFF
    )
    return _scanline_buffer.to_numpy()[:width]


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int,
    seed: int = 0,
) -> tuple[float, float, float]:
    """Estimate the radiance along a single ray against the uploaded scene.

    This is a Python-callable function for testing and debugging. For
    rendering, use Camera.render() which processes whole scanlines.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z); need not be unit length.
        depth: Bounce budget.
        seed: Generator seed for the ray.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    color = _trace_ray_kernel(vec3(*origin), vec3(*direction), depth, seed & 0xFFFFFFFF)
    return (float(color[0]), float(color[1]), float(color[2]))
