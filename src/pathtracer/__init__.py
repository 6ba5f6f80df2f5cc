"""Monte Carlo sphere ray tracer built on Taichi.

Renders scenes made of spheres with Lambertian, metal and dielectric
materials through a thin-lens camera, and writes the result as an ASCII PPM
image.

Subpackages:
    core: Ray and interval types, random sampling, and the radiance integrator
    geometry: Ray-sphere intersection and hit records
    materials: Lambertian, metal and dielectric scattering
    scene: Scene description, upload and example scenes
    camera: Thin-lens camera with ray generation and the render loop
    output: Pixel encoding, PPM writing and PNG export

Taichi must be initialized (``ti.init``) before importing any subpackage,
since their modules allocate Taichi fields at import time.
"""

__version__ = "0.1.0"
