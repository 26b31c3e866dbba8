"""Taichi Monte Carlo path tracer for analytic spheres.

This package renders scenes of spheres and moving spheres with diffuse,
metal and glass materials under a sky gradient, using GPU-accelerated path
tracing through Taichi.

Subpackages:
    core: Vector utilities, rays, sampling and the rendering integrator
    geometry: Sphere primitives and intersection
    materials: Lambertian, metal and dielectric scattering
    scene: Scene storage, scene manager and preset scenes
    camera: Thin-lens camera with depth of field and motion blur
    output: PPM and PNG image writers
"""

__version__ = "0.1.0"
