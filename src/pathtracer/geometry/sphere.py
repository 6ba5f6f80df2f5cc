"""Ray-sphere intersection.

The ray-sphere intersection is found by solving

    |origin + t * direction - center|^2 = radius^2

for t using the half-b form of the quadratic. The nearer root is tried
first and the farther one only if the nearer lies outside the accepted
interval, so a ray starting inside a sphere reports the exit point.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.interval import Interval
    >>> from pathtracer.core.ray import Ray, vec3
    >>> from pathtracer.geometry.sphere import hit_sphere
    >>> @ti.kernel
    ... def example() -> ti.f32:
    ...     ray = Ray(origin=vec3(0.0), direction=vec3(0.0, 0.0, -1.0))
    ...     rec = hit_sphere(ray, vec3(0.0, 0.0, -1.0), 0.5, Interval(min=0.001, max=1e10))
    ...     return rec.t  # 0.5
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.interval import Interval, interval_contains_open
from pathtracer.core.ray import Ray, dot, length_squared, ray_at

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal oriented against the incoming ray.
            Only valid if hit == 1.
        front_face: 1 if the ray arrived from the outward side of the
            surface, 0 if it arrived from inside. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a unit outward normal against the ray.

    Establishes ``front_face == (dot(direction, outward_normal) < 0)`` and
    returns the normal flipped to the ray's side when the ray is inside.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: Unit normal pointing out of the surface.

    Returns:
        A tuple (normal, front_face).
    """
    front_face = 0
    normal = -outward_normal
    if dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return normal, front_face


@ti.func
def make_miss_record() -> HitRecord:
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def hit_sphere(ray: Ray, center: vec3, radius: ti.f32, ray_t: Interval) -> HitRecord:
    """Test for ray-sphere intersection inside the open interval ``ray_t``.

    With ``oc = center - origin`` the quadratic coefficients are:
        a = dot(direction, direction)
        h = dot(direction, oc)  (half of the traditional b, sign flipped)
        c = dot(oc, oc) - radius^2

    and the roots are ``(h -/+ sqrt(h^2 - a*c)) / a``.

    Args:
        ray: The ray to test. Its direction need not be unit length.
        center: Sphere center.
        radius: Sphere radius (>= 0).
        ray_t: Accepted range of t; both bounds are exclusive.

    Returns:
        A HitRecord; check the hit field to determine if intersection
        occurred.
    """
    oc = center - ray.origin
    a = length_squared(ray.direction)
    h = dot(ray.direction, oc)
    c = length_squared(oc) - radius * radius

    discriminant = h * h - a * c

    record = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)

        # Nearest root that lies in the acceptable range
        root = (h - sqrt_d) / a
        valid = interval_contains_open(ray_t, root)
        if valid == 0:
            root = (h + sqrt_d) / a
            valid = interval_contains_open(ray_t, root)

        if valid == 1:
            point = ray_at(ray, root)
            outward_normal = (point - center) / radius
            normal, front_face = set_face_normal(ray.direction, outward_normal)
            record = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
            )

    return record
