"""Image helpers for screenshots sent to the chat.

Telegram rejects photos whose sides are too large, so captures are
downscaled, preserving aspect ratio, before being encoded as PNG.
"""

from __future__ import annotations

import io
import logging

from PIL import Image

logger = logging.getLogger(__name__)


def fit_within(image: Image.Image, max_dimension: int) -> Image.Image:
    """Downscale ``image`` so its largest side is at most ``max_dimension``."""
    w, h = image.size
    largest = max(w, h)
    if largest <= max_dimension:
        return image
    scale = max_dimension / largest
    new_size = (max(1, int(w * scale)), max(1, int(h * scale)))
    logger.debug("Downscaling screenshot %dx%d -> %dx%d", w, h, *new_size)
    return image.resize(new_size, Image.LANCZOS)


def encode_png(image: Image.Image, max_dimension: int) -> bytes:
    """Downscale if needed and encode as PNG bytes."""
    buffer = io.BytesIO()
    fit_within(image, max_dimension).save(buffer, format="PNG")
    return buffer.getvalue()


def normalize_png(data: bytes, max_dimension: int) -> bytes:
    """Re-encode PNG bytes, downscaling when larger than ``max_dimension``."""
    with Image.open(io.BytesIO(data)) as image:
        if max(image.size) <= max_dimension:
            return data
        return encode_png(image.convert("RGB"), max_dimension)
