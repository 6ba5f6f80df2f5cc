"""Python-side scene description: spheres and the world list.

A scene is built from plain value objects and uploaded into Taichi fields
only when rendering starts (see ``SceneManager.load_world``). Materials are
immutable and may be shared by any number of spheres.

Example:
    >>> from pathtracer.materials import Lambertian, Metal
    >>> from pathtracer.scene.world import Sphere, World
    >>> world = World()
    >>> ground = Lambertian(albedo=(0.8, 0.8, 0.0))
    >>> world.add(Sphere((0.0, -100.5, -1.0), 100.0, ground))
    >>> world.add(Sphere((1.0, 0.0, -1.0), 0.5, Metal((0.8, 0.6, 0.2), fuzz=1.0)))
    >>> len(world)
    2
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from pathtracer.materials.dielectric import Dielectric
from pathtracer.materials.lambertian import Lambertian
from pathtracer.materials.metal import Metal

# Closed set of material variants a sphere can carry
Material = Lambertian | Metal | Dielectric


@dataclass(frozen=True)
class Sphere:
    """A sphere surface.

    Attributes:
        center: The center point (x, y, z).
        radius: The radius. Negative values are clamped to 0 at construction.
        material: The material the sphere scatters with.
    """

    center: tuple[float, float, float]
    radius: float
    material: Material

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", tuple(float(c) for c in self.center))
        object.__setattr__(self, "radius", max(0.0, float(self.radius)))


class World:
    """An ordered collection of surfaces.

    A world may contain other worlds; they are flattened in insertion order
    when the scene is uploaded.
    """

    def __init__(self, surfaces: list[Sphere | World] | None = None) -> None:
        self.objects: list[Sphere | World] = list(surfaces) if surfaces else []

    def add(self, surface: Sphere | World) -> None:
        self.objects.append(surface)

    def clear(self) -> None:
        self.objects.clear()

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self) -> Iterator[Sphere | World]:
        return iter(self.objects)

    def spheres(self) -> Iterator[Sphere]:
        """Yield every sphere in the world, descending into nested worlds."""
        for surface in self.objects:
            if isinstance(surface, World):
                yield from surface.spheres()
            else:
                yield surface
