"""Texture atlas export — aspect-preserving downscale + JPEG encode (OpenCV)."""

from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np

from scanmesh.core.errors import FormatError
from scanmesh.utils.io import scoped_output

logger = logging.getLogger(__name__)


def fit_texture(image: np.ndarray, max_size: int) -> np.ndarray:
    """Downscale so the longest side is ``max_size``; smaller images pass through."""
    h, w = image.shape[:2]
    if w <= max_size and h <= max_size:
        return image

    aspect = w / h
    if w > h:
        new_w, new_h = max_size, int(max_size / aspect)
    else:
        new_w, new_h = int(max_size * aspect), max_size
    new_w, new_h = max(new_w, 1), max(new_h, 1)

    logger.debug(f"Texture resized {w}x{h} -> {new_w}x{new_h}")
    return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)


def write_texture_jpeg(
    image: np.ndarray, output_path: Path, max_size: int = 2048, quality: int = 85
) -> Path:
    """Write an RGB (or grayscale) uint8 raster as JPEG.

    Args:
        image: (H, W, 3) RGB, (H, W, 4) RGBA, or (H, W) grayscale.
        output_path: Output .jpg file path.
        max_size: Longest side after downscaling.
        quality: JPEG quality 1-100.

    Returns:
        Path to the written JPEG.
    """
    img = fit_texture(np.ascontiguousarray(image, dtype=np.uint8), max_size)
    if img.ndim == 3 and img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_RGBA2BGR)
    elif img.ndim == 3:
        img = cv2.cvtColor(img, cv2.COLOR_RGB2BGR)

    ok, encoded = cv2.imencode(".jpg", img, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise FormatError(f"Could not encode texture of shape {image.shape} as JPEG")

    with scoped_output(output_path, "wb") as f:
        f.write(encoded.tobytes())

    h, w = img.shape[:2]
    logger.info(f"Texture exported: {output_path} ({w}x{h}, quality {quality})")
    return output_path
