"""Unit tests for the thin-lens camera.

Tests cover:
- Derived state: image height, sample scale, basis, pixel grid
- Configuration validation
- Ray generation with and without defocus blur
- Render phases
"""

import math

import numpy as np
import pytest
import taichi as ti


def _small_camera(**overrides):
    """Two-pixel-wide square camera looking down -z with a unit focus plane."""
    from pathtracer.camera.thin_lens import Camera

    params = dict(
        aspect_ratio=1.0,
        image_width=2,
        samples_per_pixel=1,
        vfov=90.0,
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        focus_dist=1.0,
    )
    params.update(overrides)
    return Camera(**params)


def _sample_rays(i, j, n):
    """Generate n rays for pixel (i, j); return (origins, directions)."""
    from pathtracer.camera.thin_lens import get_ray
    from pathtracer.core.sampling import rng_init

    origins = ti.Vector.field(3, dtype=ti.f32, shape=n)
    directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

    @ti.kernel
    def test_kernel(pi: ti.i32, pj: ti.i32):
        rng = rng_init(ti.cast(4, ti.u32), ti.cast(0, ti.u32))
        ti.loop_config(serialize=True)
        for k in range(n):
            ray, rng = get_ray(pi, pj, rng)
            origins[k] = ray.origin
            directions[k] = ray.direction

    test_kernel(i, j)
    return origins.to_numpy(), directions.to_numpy()


class TestCameraDefaults:
    """Tests for configuration defaults."""

    def test_defaults(self):
        from pathtracer.camera.thin_lens import Camera, RenderPhase

        camera = Camera()
        assert camera.aspect_ratio == pytest.approx(16.0 / 9.0)
        assert camera.image_width == 100
        assert camera.samples_per_pixel == 10
        assert camera.max_depth == 10
        assert camera.vfov == 20.0
        assert camera.lookfrom == (0.0, 0.0, 0.0)
        assert camera.lookat == (0.0, 0.0, -1.0)
        assert camera.vup == (0.0, 1.0, 0.0)
        assert camera.defocus_angle == 0.0
        assert camera.phase == RenderPhase.UNINITIALIZED

    def test_state_before_initialize_raises(self):
        from pathtracer.camera.thin_lens import Camera

        with pytest.raises(RuntimeError, match="not initialized"):
            _ = Camera().state


class TestInitialize:
    """Tests for derived camera state."""

    @pytest.mark.parametrize(
        "width, aspect, expected_height",
        [(100, 16.0 / 9.0, 56), (400, 16.0 / 9.0, 225), (2, 1.0, 2), (10, 100.0, 1)],
    )
    def test_image_height(self, width, aspect, expected_height):
        camera = _small_camera(image_width=width, aspect_ratio=aspect)
        assert camera.initialize().image_height == expected_height

    def test_pixel_grid(self):
        from pathtracer.camera.thin_lens import RenderPhase

        camera = _small_camera(samples_per_pixel=4)
        state = camera.initialize()

        assert state.pixel_samples_scale == pytest.approx(0.25)
        np.testing.assert_allclose(state.pixel00_loc, [-0.5, 0.5, -1.0], atol=1e-6)
        np.testing.assert_allclose(state.pixel_delta_u, [1.0, 0.0, 0.0], atol=1e-6)
        np.testing.assert_allclose(state.pixel_delta_v, [0.0, -1.0, 0.0], atol=1e-6)
        assert camera.phase == RenderPhase.INITIALIZED

    def test_orthonormal_basis(self):
        camera = _small_camera(lookfrom=(13.0, 2.0, 3.0), lookat=(0.0, 0.0, 0.0))
        state = camera.initialize()

        for a, b in [(state.u, state.v), (state.u, state.w), (state.v, state.w)]:
            assert abs(float(np.dot(a, b))) < 1e-5
        for vec in (state.u, state.v, state.w):
            assert float(np.linalg.norm(vec)) == pytest.approx(1.0, abs=1e-5)
        # w points from lookat back to lookfrom
        expected_w = np.array([13.0, 2.0, 3.0]) / math.sqrt(13.0**2 + 2.0**2 + 3.0**2)
        np.testing.assert_allclose(state.w, expected_w, atol=1e-5)

    def test_fields_uploaded(self):
        from pathtracer.camera.thin_lens import get_camera_info

        _small_camera(lookfrom=(1.0, 2.0, 3.0), lookat=(1.0, 2.0, 2.0)).initialize()

        info = get_camera_info()
        assert info["center"] == pytest.approx((1.0, 2.0, 3.0))
        assert info["pixel00_loc"] == pytest.approx((0.5, 2.5, 2.0))

    def test_defocus_disk(self):
        camera = _small_camera(defocus_angle=90.0, focus_dist=2.0)
        state = camera.initialize()

        # radius = focus_dist * tan(45 degrees)
        np.testing.assert_allclose(state.defocus_disk_u, [2.0, 0.0, 0.0], atol=1e-5)
        np.testing.assert_allclose(state.defocus_disk_v, [0.0, 2.0, 0.0], atol=1e-5)

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"samples_per_pixel": 0}, "samples_per_pixel"),
            ({"image_width": 0}, "image_width"),
            ({"image_width": 4096}, "exceeds maximum"),
            ({"aspect_ratio": 0.0}, "aspect_ratio"),
            ({"max_depth": -1}, "max_depth"),
            ({"focus_dist": 0.0}, "focus_dist"),
            ({"lookat": (0.0, 0.0, 0.0)}, "lookfrom and lookat"),
            ({"vup": (0.0, 0.0, 1.0)}, "vup"),
        ],
    )
    def test_invalid_configuration_raises(self, overrides, message):
        camera = _small_camera(**overrides)
        with pytest.raises(ValueError, match=message):
            camera.initialize()


class TestGetRay:
    """Tests for ray generation inside kernels."""

    def test_rays_pass_through_their_pixel(self):
        _small_camera().initialize()
        origins, directions = _sample_rays(0, 0, 256)

        np.testing.assert_allclose(origins, 0.0, atol=1e-6)
        # Direction = pixel sample - origin, on the focus plane z = -1
        np.testing.assert_allclose(directions[:, 2], -1.0, atol=1e-6)
        assert directions[:, 0].min() >= -1.0 and directions[:, 0].max() < 0.0
        assert directions[:, 1].min() > 0.0 and directions[:, 1].max() <= 1.0

    def test_rays_are_jittered(self):
        _small_camera().initialize()
        _, directions = _sample_rays(1, 1, 16)

        assert len(np.unique(directions[:, 0])) > 1

    def test_defocus_moves_origin_within_disk(self):
        _small_camera(defocus_angle=60.0).initialize()
        origins, directions = _sample_rays(1, 0, 256)

        radius = math.tan(math.radians(30.0))
        distances = np.linalg.norm(origins, axis=1)
        assert distances.max() < radius + 1e-5
        assert distances.max() > 0.0
        np.testing.assert_allclose(origins[:, 2], 0.0, atol=1e-6)

        # Every ray still lands inside its pixel on the focus plane
        landing = origins + directions
        assert landing[:, 0].min() >= 0.0 and landing[:, 0].max() < 1.0
        assert landing[:, 1].min() > 0.0 and landing[:, 1].max() <= 1.0
