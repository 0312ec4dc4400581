"""Tests for screenshot downscaling and PNG encoding."""

from __future__ import annotations

import io

from PIL import Image

from tgterm.utils.imaging import encode_png, fit_within, normalize_png


def png_size(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as image:
        return image.size


class TestImaging:
    def test_small_image_is_untouched(self) -> None:
        image = Image.new("RGB", (100, 50))
        assert fit_within(image, 200) is image

    def test_large_image_keeps_aspect_ratio(self) -> None:
        image = Image.new("RGB", (4000, 2000))
        assert fit_within(image, 2000).size == (2000, 1000)

    def test_encode_png(self) -> None:
        data = encode_png(Image.new("RGB", (300, 100), "white"), 150)
        assert data.startswith(b"\x89PNG")
        assert png_size(data) == (150, 50)

    def test_normalize_keeps_small_png_bytes(self) -> None:
        data = encode_png(Image.new("RGB", (64, 64)), 1000)
        assert normalize_png(data, 100) is data

    def test_normalize_downscales_rgba(self) -> None:
        buffer = io.BytesIO()
        Image.new("RGBA", (400, 200)).save(buffer, format="PNG")
        assert png_size(normalize_png(buffer.getvalue(), 100)) == (100, 50)
