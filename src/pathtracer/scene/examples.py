"""Ready-made example scenes.

Each factory returns a ``(world, camera)`` pair. The cameras carry full
quality settings; callers that want a quick preview override
``image_width`` and ``samples_per_pixel`` before rendering.

Example:
    >>> from pathtracer.scene.examples import materials_scene
    >>> world, camera = materials_scene(vfov=20.0)
    >>> camera.image_width = 200
    >>> # camera.render(world)
"""

from __future__ import annotations

import math

import numpy as np

from pathtracer.camera.thin_lens import Camera
from pathtracer.materials.dielectric import Dielectric
from pathtracer.materials.lambertian import Lambertian
from pathtracer.materials.metal import Metal
from pathtracer.scene.world import Sphere, World

# Scene names accepted by get_example_scene()
SCENE_NAMES = ("two-spheres", "materials", "fov", "final")


def two_spheres_scene() -> tuple[World, Camera]:
    """A small diffuse sphere resting on a large ground sphere.

    Returns:
        Tuple of (world, camera) using the default camera orientation.
    """
    grey = Lambertian(albedo=(0.5, 0.5, 0.5))

    world = World()
    world.add(Sphere((0.0, 0.0, -1.0), 0.5, grey))
    world.add(Sphere((0.0, -100.5, -1.0), 100.0, grey))

    camera = Camera(aspect_ratio=16.0 / 9.0, image_width=800, vfov=90.0)
    return world, camera


def materials_scene(vfov: float = 90.0) -> tuple[World, Camera]:
    """Diffuse, hollow glass and fuzzy metal spheres on a yellow ground.

    The left sphere is a glass shell: an outer sphere of index 1.5 with an
    inner "bubble" of index 1/1.5.

    Args:
        vfov: Vertical field of view in degrees.

    Returns:
        Tuple of (world, camera) with depth of field focused on the center sphere.
    """
    material_ground = Lambertian(albedo=(0.8, 0.8, 0.0))
    material_center = Lambertian(albedo=(0.1, 0.2, 0.5))
    material_left = Dielectric(refraction_index=1.5)
    material_bubble = Dielectric(refraction_index=1.0 / 1.5)
    material_right = Metal(albedo=(0.8, 0.6, 0.2), fuzz=1.0)

    world = World()
    world.add(Sphere((0.0, -100.5, -1.0), 100.0, material_ground))
    world.add(Sphere((0.0, 0.0, -1.2), 0.5, material_center))
    world.add(Sphere((-1.0, 0.0, -1.0), 0.5, material_left))
    world.add(Sphere((-1.0, 0.0, -1.0), 0.4, material_bubble))
    world.add(Sphere((1.0, 0.0, -1.0), 0.5, material_right))

    camera = Camera(
        aspect_ratio=16.0 / 9.0,
        image_width=800,
        samples_per_pixel=100,
        max_depth=50,
        vfov=vfov,
        lookfrom=(-2.0, 2.0, 1.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        defocus_angle=10.0,
        focus_dist=3.4,
    )
    return world, camera


def fov_scene() -> tuple[World, Camera]:
    """Two touching spheres that exactly fill a 90 degree field of view."""
    r = math.cos(math.pi / 4.0)

    world = World()
    world.add(Sphere((-r, 0.0, -1.0), r, Lambertian(albedo=(0.0, 0.0, 1.0))))
    world.add(Sphere((r, 0.0, -1.0), r, Lambertian(albedo=(1.0, 0.0, 0.0))))

    camera = Camera(
        aspect_ratio=16.0 / 9.0,
        image_width=800,
        samples_per_pixel=100,
        max_depth=50,
        vfov=90.0,
    )
    return world, camera


def final_scene(seed: int = 0) -> tuple[World, Camera]:
    """A field of small random spheres around three large ones.

    The layout is drawn from a NumPy generator seeded with ``seed``, so the
    same seed always produces the same world.

    Args:
        seed: Seed for the random layout.

    Returns:
        Tuple of (world, camera) with a slight depth of field.
    """
    rng = np.random.default_rng(seed)

    world = World()
    world.add(Sphere((0.0, -1000.0, 0.0), 1000.0, Lambertian(albedo=(0.5, 0.5, 0.5))))

    # Small spheres are kept clear of the large metal sphere
    clearance_center = np.array([4.0, 0.2, 0.0])

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random()])

            if np.linalg.norm(center - clearance_center) <= 0.9:
                continue

            if choose_mat < 0.8:
                # diffuse
                albedo = rng.random(3) * rng.random(3)
                material = Lambertian(albedo=tuple(albedo))
            elif choose_mat < 0.95:
                # metal
                albedo = rng.uniform(0.5, 1.0, size=3)
                fuzz = rng.uniform(0.0, 0.5)
                material = Metal(albedo=tuple(albedo), fuzz=fuzz)
            else:
                # glass
                material = Dielectric(refraction_index=1.5)

            world.add(Sphere(tuple(center), 0.2, material))

    world.add(Sphere((0.0, 1.0, 0.0), 1.0, Dielectric(refraction_index=1.5)))
    world.add(Sphere((-4.0, 1.0, 0.0), 1.0, Lambertian(albedo=(0.4, 0.2, 0.1))))
    world.add(Sphere((4.0, 1.0, 0.0), 1.0, Metal(albedo=(0.7, 0.6, 0.5), fuzz=0.0)))

    camera = Camera(
        aspect_ratio=16.0 / 9.0,
        image_width=800,
        samples_per_pixel=10,
        max_depth=50,
        vfov=20.0,
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        defocus_angle=0.6,
        focus_dist=10.0,
    )
    return world, camera


def get_example_scene(name: str, seed: int = 0) -> tuple[World, Camera]:
    """Build an example scene by name.

    Args:
        name: One of SCENE_NAMES.
        seed: Layout seed, used by the "final" scene only.

    Raises:
        ValueError: If the name is unknown.
    """
    if name == "two-spheres":
        return two_spheres_scene()
    if name == "materials":
        return materials_scene()
    if name == "fov":
        return fov_scene()
    if name == "final":
        return final_scene(seed)
    raise ValueError(f"Unknown scene: {name!r} (expected one of {', '.join(SCENE_NAMES)})")
