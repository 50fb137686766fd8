"""
Border normalisation for rasters coming out of Ghostscript.

  raw raster → content box (first non-white row/column from each edge)
             → median colour along the box lines → repaint outside the box

The rasterizer tends to leave a thin border that does not match the figure
background.  The content box is the tightest box holding any pixel that is
not pure white; everything outside it is repainted with one colour.

Limitation: pure white figure content touching the edge of a non-white
figure is indistinguishable from padding and gets repainted.
"""

import logging
from typing import NamedTuple, Optional

import numpy as np

from .color import WHITE, DeclaredColor, is_transparent, is_white

logger = logging.getLogger(__name__)


class ContentBox(NamedTuple):
    left: int
    right: int
    top: int
    bottom: int


def find_content_box(raster: np.ndarray) -> ContentBox:
    """
    Inclusive box around every pixel that is not pure white.

    An all-white raster gives the full image.
    """
    h, w = raster.shape[:2]
    content = ~np.all(raster == 255, axis=2)
    cols = np.flatnonzero(content.any(axis=0))
    rows = np.flatnonzero(content.any(axis=1))
    if cols.size == 0:
        return ContentBox(0, w - 1, 0, h - 1)
    return ContentBox(int(cols[0]), int(cols[-1]), int(rows[0]), int(rows[-1]))


def boundary_median(raster: np.ndarray, box: ContentBox) -> np.ndarray:
    """Per-channel median of the pixels on the four box lines."""
    channels = raster.shape[2]
    lines = np.concatenate([
        raster[:, [box.left, box.right], :].reshape(-1, channels),
        raster[[box.top, box.bottom], :, :].reshape(-1, channels),
    ])
    # halves round up, as an integer median does
    return np.floor(np.median(lines, axis=0) + 0.5).astype(np.uint8)


def fill_outside(raster: np.ndarray, box: ContentBox, color: np.ndarray) -> None:
    raster[:, :box.left] = color
    raster[:, box.right + 1:] = color
    raster[:box.top] = color
    raster[box.bottom + 1:] = color


def normalize_border(raster: np.ndarray, declared: DeclaredColor) -> Optional[np.ndarray]:
    """
    Repaint the border of *raster* in place and return the background colour.

    Transparent figures are left untouched (returns None).  White figures
    need no scan: outside the content box everything is white already.
    """
    if is_transparent(declared):
        return None
    if is_white(declared):
        return WHITE.copy()

    box = find_content_box(raster)
    fill = boundary_median(raster, box)
    fill_outside(raster, box, fill)
    logger.info(f"Border normalised: box={tuple(box)}, fill={fill.tolist()}")
    return fill
