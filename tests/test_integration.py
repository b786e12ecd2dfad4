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

import io

import numpy as np
import pytest


class TestCenterSphere:
    """The classic single sphere in front of the viewport camera."""

    def test_center_pixel_hits_sphere(self) -> None:
        from spheretrace.camera.pinhole import ViewportCamera, setup_camera
        from spheretrace.core.integrator import render_sample, setup_render_target
        from spheretrace.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))
        setup_camera(ViewportCamera())
        setup_render_target(600, 300)

        # A diffuse bounce off a 50% gray sphere can never exceed half the sky
        for _ in range(10):
            color = render_sample(300, 150)
            assert all(0.0 <= c <= 0.5 + 1e-5 for c in color)

    def test_corner_pixel_sees_sky(self) -> None:
        from spheretrace.camera.pinhole import ViewportCamera, setup_camera
        from spheretrace.core.integrator import render_sample, setup_render_target
        from spheretrace.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_lambertian_sphere((0.0, 0.0, -1.0), 0.5, (0.5, 0.5, 0.5))
        setup_camera(ViewportCamera())
        setup_render_target(600, 300)

        color = render_sample(0, 299)
        assert color[2] == pytest.approx(1.0)
        assert color[0] > 0.5


class TestPresetRendering:
    @pytest.mark.parametrize("name", ["normals", "materials", "random"])
    def test_preset_renders_cleanly(self, name: str) -> None:
        from spheretrace.camera.pinhole import setup_camera
        from spheretrace.core.progressive import ProgressiveRenderer
        from spheretrace.scene.presets import build_scene

        _, camera = build_scene(name, aspect_ratio=2.0, seed=1)
        setup_camera(camera)

        renderer = ProgressiveRenderer(32, 16, max_depth=10)
        renderer.render(num_samples=2)

        assert renderer.sample_count == 2
        image = renderer.get_image_numpy()
        assert not np.any(np.isnan(image))
        assert image.min() >= 0.0
        assert image.max() <= 1.0
        # Something other than flat sky or flat black
        assert image.std() > 0.0

    def test_more_samples_reduce_noise(self) -> None:
        """Two independent 32-spp renders agree better than two 1-spp renders."""
        from spheretrace.camera.pinhole import setup_camera
        from spheretrace.core.progressive import ProgressiveRenderer
        from spheretrace.preview.export import compute_rmse
        from spheretrace.scene.presets import build_scene

        _, camera = build_scene("materials", aspect_ratio=2.0)
        setup_camera(camera)
        renderer = ProgressiveRenderer(24, 12, max_depth=10)

        def render(samples: int) -> np.ndarray:
            renderer.reset()
            renderer.render(samples)
            return renderer.get_image_numpy()

        noisy = compute_rmse(render(1), render(1))
        smooth = compute_rmse(render(32), render(32))
        assert smooth < noisy


class TestPipelineOutput:
    def test_ppm_stream(self) -> None:
        from spheretrace.cli import run
        from spheretrace.config import RenderConfig

        stream = io.StringIO()
        run(RenderConfig(width=10, height=5, samples=2, max_depth=8), stdout=stream)

        lines = stream.getvalue().splitlines()
        assert lines[0] == "P3"
        assert lines[1] == "10 5"
        assert lines[2] == "255"
        assert len(lines) == 3 + 10 * 5
        for line in lines[3:]:
            values = [int(v) for v in line.split()]
            assert len(values) == 3
            assert all(0 <= v <= 255 for v in values)

    def test_normals_image_top_is_sky(self) -> None:
        """With normal shading the top row is sky, which keeps blue saturated."""
        from spheretrace.cli import run
        from spheretrace.config import RenderConfig
        from spheretrace.preview.export import read_ppm

        stream = io.StringIO()
        run(
            RenderConfig(width=20, height=10, samples=1, scene="normals", shading="normals"),
            stdout=stream,
        )
        pixels = read_ppm(stream.getvalue())
        assert (pixels[0, :, 2] == 255).all()
