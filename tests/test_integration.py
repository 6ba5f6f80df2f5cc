"""Integration tests for the end-to-end rendering pipeline.

This module tests the complete pipeline from world description through the
PPM stream written by Camera.render(). Tests are designed to be fast (low
resolution, few samples) while still exercising every stage.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

import io

import numpy as np
import pytest
import taichi as ti


def _two_sphere_world():
    from pathtracer.materials import Lambertian
    from pathtracer.scene.world import Sphere, World

    grey = Lambertian(albedo=(0.5, 0.5, 0.5))
    world = World()
    world.add(Sphere((0.0, 0.0, -1.0), 0.5, grey))
    world.add(Sphere((0.0, -100.5, -1.0), 100.0, grey))
    return world


def _small_camera(**overrides):
    from pathtracer.camera.thin_lens import Camera

    params = dict(aspect_ratio=2.0, image_width=8, samples_per_pixel=4, max_depth=8, vfov=90.0)
    params.update(overrides)
    return Camera(**params)


def _render_to_text(world, camera, progress=None):
    out = io.StringIO()
    image = camera.render(world, out=out, progress=progress)
    return out.getvalue(), image


class TestRenderOutput:
    """Tests for the PPM stream and returned image."""

    def test_ppm_layout(self):
        text, image = _render_to_text(_two_sphere_world(), _small_camera())

        lines = text.splitlines()
        assert text.startswith("P3\n8 4\n255\n")
        assert len(lines) == 3 + 8 * 4
        assert image.shape == (4, 8, 3)
        assert image.dtype == np.uint8

        # Pixel lines match the returned image in row-major order
        for line, rgb in zip(lines[3:], image.reshape(-1, 3)):
            assert line == " ".join(str(int(c)) for c in rgb)

    def test_same_seed_is_byte_identical(self):
        world = _two_sphere_world()
        first, _ = _render_to_text(world, _small_camera(seed=3))
        second, _ = _render_to_text(world, _small_camera(seed=3))

        assert first == second

    def test_single_sample_is_byte_identical(self):
        world = _two_sphere_world()
        first, _ = _render_to_text(world, _small_camera(samples_per_pixel=1, seed=0))
        second, _ = _render_to_text(world, _small_camera(samples_per_pixel=1, seed=0))

        assert first == second
        assert len(first.splitlines()) == 3 + 8 * 4

    def test_different_seed_changes_output(self):
        world = _two_sphere_world()
        first, _ = _render_to_text(world, _small_camera(seed=3))
        second, _ = _render_to_text(world, _small_camera(seed=4))

        assert first != second

    def test_empty_world_is_sky(self):
        from pathtracer.scene.world import World

        _, image = _render_to_text(World(), _small_camera())

        # Blue saturates everywhere; the top is bluer than the bottom
        assert np.all(image[:, :, 2] == 255)
        assert image[0, :, 0].mean() < image[-1, :, 0].mean()

    def test_sphere_is_darker_than_sky(self):
        _, image = _render_to_text(_two_sphere_world(), _small_camera(samples_per_pixel=16))

        sphere_pixel = image[2, 3].astype(np.int32)
        sky_pixel = image[0, 0].astype(np.int32)
        assert sphere_pixel.sum() < sky_pixel.sum()

    def test_nested_world_matches_flat_world(self):
        from pathtracer.materials import Lambertian
        from pathtracer.scene.world import Sphere, World

        grey = Lambertian(albedo=(0.5, 0.5, 0.5))
        nested = World()
        nested.add(World([Sphere((0.0, 0.0, -1.0), 0.5, grey)]))
        nested.add(Sphere((0.0, -100.5, -1.0), 100.0, grey))

        flat, _ = _render_to_text(_two_sphere_world(), _small_camera(seed=1))
        inner, _ = _render_to_text(nested, _small_camera(seed=1))

        assert flat == inner


class TestRenderLifecycle:
    """Tests for progress reporting and render phases."""

    def test_progress_counts_down(self):
        from pathtracer.camera.thin_lens import RenderPhase

        updates = []
        camera = _small_camera()
        _render_to_text(_two_sphere_world(), camera, progress=updates.append)

        assert [u.scanline for u in updates] == [0, 1, 2, 3]
        assert [u.remaining for u in updates] == [3, 2, 1, 0]
        assert all(u.scanline_seconds >= 0.0 for u in updates)
        assert updates[-1].estimated_remaining_seconds == 0.0
        assert camera.phase == RenderPhase.DONE

    def test_failed_render_returns_to_initialized(self):
        from pathtracer.camera.thin_lens import RenderPhase

        def fail(update):
            raise KeyboardInterrupt

        camera = _small_camera()
        with pytest.raises(KeyboardInterrupt):
            _render_to_text(_two_sphere_world(), camera, progress=fail)

        assert camera.phase == RenderPhase.INITIALIZED

    def test_sampling_failure_aborts_render(self, monkeypatch):
        from pathtracer.camera.thin_lens import RenderPhase
        from pathtracer.core import integrator
        from pathtracer.core.sampling import (
            SamplingError,
            random_in_unit_sphere_bounded,
            rng_init,
        )

        @ti.kernel
        def exhaust_sampler():
            ti.loop_config(serialize=True)
            for _ in range(1):
                rng = rng_init(ti.cast(1, ti.u32), ti.cast(0, ti.u32))
                # Zero attempts always gives up
                p, rng = random_in_unit_sphere_bounded(rng, 0)

        original = integrator.render_scanline

        def failing_scanline(*args):
            row = original(*args)
            exhaust_sampler()
            return row

        monkeypatch.setattr(integrator, "render_scanline", failing_scanline)

        out = io.StringIO()
        camera = _small_camera()
        with pytest.raises(SamplingError, match="attempts"):
            camera.render(_two_sphere_world(), out=out)

        assert camera.phase == RenderPhase.INITIALIZED
        # The first scanline is never written
        assert out.getvalue() == "P3\n8 4\n255\n"

    def test_render_while_rendering_raises(self):
        from pathtracer.camera.thin_lens import RenderPhase

        camera = _small_camera()
        camera.phase = RenderPhase.RENDERING
        with pytest.raises(RuntimeError, match="already in progress"):
            _render_to_text(_two_sphere_world(), camera)

    def test_camera_can_render_again(self):
        camera = _small_camera(seed=9)
        first, _ = _render_to_text(_two_sphere_world(), camera)
        second, _ = _render_to_text(_two_sphere_world(), camera)

        assert first == second

    def test_invalid_camera_raises_before_output(self):
        out = io.StringIO()
        camera = _small_camera(samples_per_pixel=0)

        with pytest.raises(ValueError, match="samples_per_pixel"):
            camera.render(_two_sphere_world(), out=out)
        assert out.getvalue() == ""


class TestExampleScenes:
    """Smoke tests rendering the example scenes at tiny sizes."""

    @pytest.mark.parametrize("name", ["two-spheres", "materials", "fov", "final"])
    def test_example_scene_renders(self, name):
        from pathtracer.scene.examples import get_example_scene

        world, camera = get_example_scene(name)
        camera.image_width = 16
        camera.samples_per_pixel = 1
        camera.max_depth = 4

        text, image = _render_to_text(world, camera)

        assert image.shape == (camera.image_height, 16, 3)
        assert len(text.splitlines()) == 3 + 16 * camera.image_height
