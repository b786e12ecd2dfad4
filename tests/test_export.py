"""Tests for image export.

Tests cover:
- P3 text layout (header, row-major order from the top-left)
- Writing to streams and files
- PNG output via Pillow
- Format inference from file suffixes
- RMSE helper
"""

import io

import numpy as np
import pytest
from PIL import Image as PILImage


def _sample_pixels():
    """A 2x3 image with distinct colors per pixel."""
    return np.array(
        [
            [[255, 0, 0], [0, 255, 0], [0, 0, 255]],
            [[1, 2, 3], [10, 20, 30], [100, 200, 255]],
        ],
        dtype=np.uint8,
    )


class TestPPM:
    def test_format_ppm_layout(self):
        from spheretrace.preview.export import format_ppm

        text = format_ppm(_sample_pixels())
        lines = text.splitlines()
        assert lines[:3] == ["P3", "3 2", "255"]
        assert lines[3:] == [
            "255 0 0",
            "0 255 0",
            "0 0 255",
            "1 2 3",
            "10 20 30",
            "100 200 255",
        ]
        assert text.endswith("\n")

    def test_line_count(self):
        from spheretrace.preview.export import format_ppm

        pixels = np.zeros((4, 7, 3), dtype=np.uint8)
        assert len(format_ppm(pixels).splitlines()) == 3 + 4 * 7

    def test_write_ppm_to_stream(self):
        from spheretrace.preview.export import format_ppm, write_ppm

        stream = io.StringIO()
        write_ppm(_sample_pixels(), stream)
        assert stream.getvalue() == format_ppm(_sample_pixels())

    def test_read_ppm_inverts_format(self):
        from spheretrace.preview.export import format_ppm, read_ppm

        pixels = _sample_pixels()
        np.testing.assert_array_equal(read_ppm(format_ppm(pixels)), pixels)

    @pytest.mark.parametrize(
        "text,message",
        [
            ("P6\n1 1\n255\n0 0 0\n", "P3"),
            ("P3\n1 1\n65535\n0 0 0\n", "maxval"),
            ("P3\n2 1\n255\n0 0 0\n", "Expected 6"),
            ("P3\n1 1\n255\n300 0 0\n", r"\[0, 255\]"),
            ("P3\n1 1\n255\n0 -1 0\n", r"\[0, 255\]"),
        ],
    )
    def test_read_ppm_rejects_malformed(self, text, message):
        from spheretrace.preview.export import read_ppm

        with pytest.raises(ValueError, match=message):
            read_ppm(text)

    def test_rejects_wrong_shape(self):
        from spheretrace.preview.export import format_ppm

        with pytest.raises(ValueError, match="shape"):
            format_ppm(np.zeros((4, 4), dtype=np.uint8))


class TestSaveImage:
    def test_save_ppm_file(self, tmp_path):
        from spheretrace.preview.export import format_ppm, save_image

        path = tmp_path / "out.ppm"
        save_image(_sample_pixels(), path)
        assert path.read_text() == format_ppm(_sample_pixels())

    def test_save_png_file(self, tmp_path):
        from spheretrace.preview.export import save_image

        path = tmp_path / "out.png"
        save_image(_sample_pixels(), path)
        with PILImage.open(path) as img:
            assert img.size == (3, 2)
            assert img.mode == "RGB"
            np.testing.assert_array_equal(np.asarray(img), _sample_pixels())

    def test_explicit_format_overrides_suffix(self, tmp_path):
        from spheretrace.preview.export import save_image

        path = tmp_path / "image.out"
        save_image(_sample_pixels(), path, fmt="ppm")
        assert path.read_text().startswith("P3\n")

    def test_unknown_suffix(self, tmp_path):
        from spheretrace.preview.export import save_image

        with pytest.raises(ValueError, match="suffix"):
            save_image(_sample_pixels(), tmp_path / "out.jpg")

    @pytest.mark.parametrize(
        "name,expected", [("a.ppm", "ppm"), ("b.PNG", "png"), ("dir/c.png", "png")]
    )
    def test_infer_format(self, name, expected):
        from spheretrace.preview.export import infer_format

        assert infer_format(name) == expected


class TestRMSE:
    def test_identical_images(self):
        from spheretrace.preview.export import compute_rmse

        assert compute_rmse(_sample_pixels(), _sample_pixels()) == 0.0

    def test_known_difference(self):
        from spheretrace.preview.export import compute_rmse

        a = np.zeros((2, 2, 3), dtype=np.uint8)
        b = np.full((2, 2, 3), 3, dtype=np.uint8)
        assert compute_rmse(a, b) == pytest.approx(3.0)

    def test_shape_mismatch(self):
        from spheretrace.preview.export import compute_rmse

        with pytest.raises(ValueError, match="shapes"):
            compute_rmse(np.zeros((2, 2, 3)), np.zeros((2, 3, 3)))
