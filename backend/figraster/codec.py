"""
Bitmap decoding / encoding.

  TIFF written by a backend → RGB uint8 array   (OpenCV)
  RGB uint8 array           → PNG / JPG bytes   (Pillow)
"""

import io
from pathlib import Path

import cv2
import numpy as np
from PIL import Image

from .errors import RenderBackendError


def decode_bitmap(path: Path) -> np.ndarray:
    """Read a bitmap file written by a backend as an H x W x 3 RGB array."""
    arr = np.frombuffer(Path(path).read_bytes(), dtype=np.uint8)
    img = cv2.imdecode(arr, cv2.IMREAD_COLOR) if arr.size else None
    if img is None:
        raise RenderBackendError(f"Cannot decode bitmap written to {path}")
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def _to_image(raster: np.ndarray) -> Image.Image:
    if raster.ndim != 3 or raster.shape[2] != 3:
        raise ValueError(f"Expected an H x W x 3 array, got shape {raster.shape}")
    return Image.fromarray(np.ascontiguousarray(raster, dtype=np.uint8))


def array_to_png(raster: np.ndarray) -> bytes:
    buf = io.BytesIO()
    _to_image(raster).save(buf, format="PNG")
    return buf.getvalue()


def array_to_jpg(raster: np.ndarray, quality: int = 92) -> bytes:
    """Encode as JPEG."""
    buf = io.BytesIO()
    _to_image(raster).save(buf, format="JPEG", quality=quality)
    return buf.getvalue()
