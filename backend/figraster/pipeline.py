"""
Full export pipeline:
  figure host → raw raster → border-normalised raster → size-checked raster

KEY DESIGN PRINCIPLE:
  The border normaliser only runs for the -painters (Ghostscript) path;
  direct captures take their background from the declared colour instead.
  The size check always runs, and only ever shrinks.
"""

import logging
import time
import warnings
from typing import Optional, Tuple

import numpy as np

from .borders import normalize_border
from .color import resolve_captured_color
from .config import RasterSettings
from .dimensions import expected_extent, reconcile_size
from .errors import SizeWarning
from .renderers import DEFAULT_RENDERER, FigureHost, RenderSpec, renderer_for

logger = logging.getLogger(__name__)


def warn_if_large(pixel_size: Tuple[int, int], scale: float, settings: RasterSettings) -> float:
    """Emit a SizeWarning when the output will exceed the megapixel limit."""
    width, height = pixel_size
    megapixels = width * scale * height * scale / 1e6
    if megapixels > settings.large_image_megapixels:
        msg = (
            f"Generating a {megapixels:.1f}M pixel image. "
            "This could be slow and might also cause memory problems."
        )
        logger.warning(msg)
        warnings.warn(msg, SizeWarning, stacklevel=3)
    return megapixels


# -----------------------------------------------------------------------
# public entry point
# -----------------------------------------------------------------------

def print_to_array(
    figure: FigureHost,
    scale: float = 1.0,
    renderer: str = DEFAULT_RENDERER,
    settings: Optional[RasterSettings] = None,
) -> Tuple[np.ndarray, Optional[np.ndarray]]:
    """
    Returns (raster, background) where raster is an H x W x 3 uint8 array and
    background is a uint8 RGB triple, or None for a transparent figure.
    """
    settings = settings or RasterSettings.from_env()
    t0 = time.time()

    spec = RenderSpec.for_figure(figure, scale=scale, renderer=renderer)
    pixel_size = figure.pixel_size()
    warn_if_large(pixel_size, spec.scale, settings)

    raster, declared = renderer_for(spec, settings).render(spec)
    logger.info(
        f"Rendered ({spec.strategy}, {spec.renderer}, {spec.dpi} dpi): "
        f"{raster.shape[1]}x{raster.shape[0]} in {time.time() - t0:.2f}s"
    )

    if spec.strategy == "vector":
        background = normalize_border(raster, declared)
    else:
        background = resolve_captured_color(declared, raster)

    raster = reconcile_size(raster, expected_extent(pixel_size, scale), scale)
    logger.info(f"Total export: {raster.shape[1]}x{raster.shape[0]} in {time.time() - t0:.2f}s")
    return raster, background
