"""
Output size checks.

Backends sometimes hand back a few pixels more than the figure size times the
scale factor.  The excess is cut off (top-left origin kept); nothing is ever
padded.
"""

import logging
from typing import NamedTuple, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class ExpectedExtent(NamedTuple):
    height: int
    width: int


def expected_extent(pixel_size: Tuple[float, float], scale: float) -> ExpectedExtent:
    """*pixel_size* is the figure's logical (width, height)."""
    width, height = pixel_size
    return ExpectedExtent(height=int(round(height * scale)), width=int(round(width * scale)))


def is_whole(scale: float) -> bool:
    return float(scale) == round(scale)


def reconcile_size(raster: np.ndarray, extent: ExpectedExtent, scale: float) -> np.ndarray:
    """
    Crop *raster* down to *extent*.

    Skipped for fractional scale factors: the expected size is not reliable
    once the DPI has been rounded.
    """
    if not is_whole(scale):
        return raster
    h, w = raster.shape[:2]
    if (h, w) == tuple(extent):
        return raster
    new_h, new_w = min(h, extent.height), min(w, extent.width)
    logger.info(f"Output size corrected: {w}x{h} -> {new_w}x{new_h}")
    return raster[:new_h, :new_w, :]
