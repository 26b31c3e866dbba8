"""Integration tests for end-to-end rendering pipeline.

This module tests the complete rendering pipeline from scene creation through
final image output. It verifies that all components work together correctly
and that the output meets basic quality criteria.

Tests are designed to be fast (low resolution, few samples) while still
exercising the full pipeline.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest
from PIL import Image as PILImage


class TestThreeSpheresIntegration:
    """Integration tests for the three-sphere scene."""

    def test_three_spheres_end_to_end(self) -> None:
        from pathtracer.core.integrator import RenderSettings, render
        from pathtracer.scene.presets import create_three_spheres_scene

        scene, camera = create_three_spheres_scene()
        settings = RenderSettings.from_aspect_ratio(32, 16.0 / 9.0, samples_per_pixel=4)

        pixels = render(camera, scene, settings)

        assert pixels.shape == (18, 32, 3)
        assert pixels.dtype == np.uint8

    def test_three_spheres_radiance_is_finite_and_bounded(self) -> None:
        """Attenuations never exceed 1, so radiance never exceeds the sky."""
        from pathtracer.core.integrator import render_radiance
        from pathtracer.scene.presets import create_three_spheres_scene

        scene, camera = create_three_spheres_scene()
        radiance = render_radiance(camera, scene, 32, 18, samples_per_pixel=4)

        assert not np.any(np.isnan(radiance)), "Image contains NaN values"
        assert not np.any(np.isinf(radiance)), "Image contains Inf values"
        assert np.all(radiance >= 0.0), "Image contains negative values"
        assert np.all(radiance <= 1.0 + 1e-5)

    def test_three_spheres_composition(self) -> None:
        """Sky on top, yellow ground at the bottom, blue-ish sphere in the middle."""
        from pathtracer.core.integrator import render_image
        from pathtracer.scene.presets import create_three_spheres_scene

        scene, camera = create_three_spheres_scene()
        pixels = render_image(camera, scene, 64, 36, samples_per_pixel=16).astype(int)

        top = pixels[0, 32]
        bottom = pixels[-1, 32]
        center = pixels[16:20, 30:34].reshape(-1, 3).mean(axis=0)

        # Sky: blue channel saturated and brightest
        assert top[2] == 255
        assert top[0] < top[2]
        # Ground albedo (0.8, 0.8, 0) has no blue
        assert bottom[2] < bottom[0]
        # Center sphere albedo (0.1, 0.2, 0.5)
        assert center[2] > center[0]

    def test_same_scene_renders_similarly_twice(self) -> None:
        from pathtracer.core.integrator import render_radiance
        from pathtracer.output.export import compute_rmse
        from pathtracer.scene.presets import create_three_spheres_scene

        scene, camera = create_three_spheres_scene()
        first = render_radiance(camera, scene, 32, 18, samples_per_pixel=64)
        second = render_radiance(camera, scene, 32, 18, samples_per_pixel=64)

        assert compute_rmse(first, second) < 0.1


class TestRandomSceneIntegration:
    def test_random_scene_renders(self) -> None:
        from pathtracer.core.integrator import render_image
        from pathtracer.scene.presets import create_random_scene

        scene, camera = create_random_scene(seed=5)
        pixels = render_image(camera, scene, 16, 9, samples_per_pixel=2, max_depth=8)

        assert pixels.shape == (9, 16, 3)
        assert pixels.any()

    def test_motion_blur_scene_renders(self) -> None:
        from pathtracer.core.integrator import render_radiance
        from pathtracer.scene.presets import create_random_scene

        scene, camera = create_random_scene(seed=5, motion_blur=True)
        radiance = render_radiance(camera, scene, 16, 9, samples_per_pixel=2, max_depth=8)

        assert not np.any(np.isnan(radiance))
        assert np.all(radiance >= 0.0)

    def test_scene_round_trip_through_json(self, tmp_path: Path) -> None:
        from pathtracer.core.integrator import render_image
        from pathtracer.scene.manager import SceneManager
        from pathtracer.scene.presets import create_three_spheres_scene

        scene, camera = create_three_spheres_scene()
        path = tmp_path / "scene.json"
        path.write_text(json.dumps(scene.to_dict()), encoding="utf-8")

        restored = SceneManager()
        restored.from_dict(json.loads(path.read_text(encoding="utf-8")))

        assert restored.to_dict() == scene.to_dict()
        pixels = render_image(camera, restored, 8, 4, samples_per_pixel=1)
        assert pixels.shape == (4, 8, 3)


class TestRenderScript:
    """Tests for examples/render_scene.py, run without re-initializing Taichi."""

    def test_parse_args_defaults(self) -> None:
        from examples.render_scene import parse_args

        args = parse_args([])
        assert args.scene == "random"
        assert args.width == 400
        assert args.samples == 100
        assert args.max_depth == 50
        assert args.output == "image.ppm"
        assert args.save_scene is None
        assert not args.motion_blur

    def test_parse_args_rejects_unknown_scene(self) -> None:
        from examples.render_scene import parse_args

        with pytest.raises(SystemExit):
            parse_args(["--scene", "cornell"])

    def test_render_scene_writes_ppm(self, tmp_path: Path) -> None:
        from examples.render_scene import render_scene

        output = render_scene(
            scene_name="three-spheres",
            width=16,
            num_samples=2,
            max_depth=5,
            output_path=str(tmp_path / "image.ppm"),
            quiet=True,
        )

        lines = output.read_text(encoding="ascii").splitlines()
        assert lines[:3] == ["P3", "16 9", "255"]
        assert len(lines) == 3 + 16 * 9

    def test_render_scene_writes_png_and_scene(self, tmp_path: Path) -> None:
        from examples.render_scene import render_scene

        scene_path = tmp_path / "scene.json"
        output = render_scene(
            scene_name="random",
            width=16,
            num_samples=1,
            max_depth=4,
            seed=9,
            motion_blur=True,
            output_path=str(tmp_path / "image.png"),
            scene_path=str(scene_path),
            quiet=True,
        )

        with PILImage.open(output) as img:
            assert img.size == (16, 9)

        data = json.loads(scene_path.read_text(encoding="utf-8"))
        assert data["moving_spheres"]
        assert len(data["spheres"]) + len(data["moving_spheres"]) > 400
