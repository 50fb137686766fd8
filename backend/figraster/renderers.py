"""
Renderer adapters: figure host → raw RGB raster + declared background colour.

  -painters         → VectorRenderer:  EPS → Ghostscript → TIFF → array
  anything else     → DirectRenderer:  hardcopy → array
                                       (falls back to print → TIFF → array)

Both strategies take a RenderSpec and expose ``render(spec)``.
"""

import logging
import math
import shutil
import subprocess
from pathlib import Path
from typing import Any, List, Protocol, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from .codec import decode_bitmap
from .color import DeclaredColor
from .config import RasterSettings
from .errors import ExternalToolError, RenderBackendError
from .scoped import GraphicsObject, override_each, override_property, temporary_file

logger = logging.getLogger(__name__)

# Property names understood by figure hosts
COLOR = "color"
ERASE_MODE = "erasemode"
PAPER_POSITION_MODE = "paperpositionmode"
SHOW_HIDDEN_HANDLES = "showhiddenhandles"

VECTOR_RENDERER = "-painters"
DEFAULT_RENDERER = "-opengl"

GHOSTSCRIPT_NAMES = ("gs", "gswin64c", "gswin32c")
GHOSTSCRIPT_MISSING = (
    "Ghostscript not found.\n"
    "The -painters renderer requires Ghostscript.\n"
    "  macOS:  brew install ghostscript\n"
    "  Linux:  sudo apt install ghostscript\n"
    "Or point the GHOSTSCRIPT environment variable at the executable."
)


class FigureHost(GraphicsObject, Protocol):
    """The graphics system that owns the figure being exported."""

    root: GraphicsObject

    def pixel_size(self) -> Tuple[int, int]: ...

    def screen_dpi(self) -> float: ...

    def find_objects(self, prop: str, exclude: Any) -> List[GraphicsObject]: ...

    def export_vector(self, path: Path, renderer: str) -> None: ...

    def hardcopy(self, renderer: str, dpi: int) -> np.ndarray: ...

    def print_bitmap(self, path: Path, renderer: str, dpi: int) -> None: ...


class RenderSpec(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    figure: Any
    scale: float = Field(1.0, gt=0, description="Multiple of the screen resolution")
    renderer: str = Field(DEFAULT_RENDERER, description="-painters | -opengl | -zbuffer")
    dpi: int = Field(..., gt=0, description="Absolute output resolution")

    @classmethod
    def for_figure(cls, figure: FigureHost, scale: float = 1.0,
                   renderer: str = DEFAULT_RENDERER) -> "RenderSpec":
        dpi = math.ceil(figure.screen_dpi() * scale) if scale > 0 else 0
        return cls(figure=figure, scale=scale, renderer=renderer, dpi=dpi)

    @property
    def strategy(self) -> str:
        return "vector" if self.renderer == VECTOR_RENDERER else "direct"


# -----------------------------------------------------------------------
# Ghostscript
# -----------------------------------------------------------------------

def find_ghostscript(settings: RasterSettings) -> str:
    if settings.ghostscript:
        return settings.ghostscript
    for name in GHOSTSCRIPT_NAMES:
        found = shutil.which(name)
        if found:
            return found
    raise ExternalToolError(GHOSTSCRIPT_MISSING)


def ghostscript_command(gs: str, eps: Path, tif: Path, dpi: int) -> List[str]:
    return [
        gs,
        "-dEPSCrop",
        "-q",
        "-dNOPAUSE",
        "-dBATCH",
        f"-r{dpi}",
        "-sDEVICE=tiff24nc",
        f"-sOutputFile={tif}",
        str(eps),
    ]


def run_ghostscript(eps: Path, tif: Path, dpi: int, settings: RasterSettings) -> None:
    cmd = ghostscript_command(find_ghostscript(settings), eps, tif, dpi)
    logger.debug("Running %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError as e:
        raise ExternalToolError(GHOSTSCRIPT_MISSING) from e

    if proc.returncode != 0:
        details = (proc.stderr or proc.stdout or "").strip()
        raise ExternalToolError(f"Ghostscript failed (code={proc.returncode}). {details}".strip())


def _as_rgb(raster: np.ndarray) -> np.ndarray:
    raster = np.asarray(raster)
    if raster.ndim != 3 or raster.shape[2] not in (3, 4):
        raise RenderBackendError(f"Capture returned an array of shape {raster.shape}")
    return np.ascontiguousarray(raster[:, :, :3], dtype=np.uint8)


# -----------------------------------------------------------------------
# Strategies
# -----------------------------------------------------------------------

class VectorRenderer:
    """Print to EPS, rasterize with Ghostscript."""

    def __init__(self, settings: RasterSettings):
        self.settings = settings

    def render(self, spec: RenderSpec) -> Tuple[np.ndarray, DeclaredColor]:
        fig = spec.figure
        with temporary_file(".eps") as eps, temporary_file(".tif") as tif:
            fig.export_vector(eps, spec.renderer)
            run_ghostscript(eps, tif, spec.dpi, self.settings)
            raster = decode_bitmap(tif)
        return raster, fig.get(COLOR)


class DirectRenderer:
    """
    Capture the figure's bitmap straight from the host.

    Animated objects are drawn normally and the paper position is forced to
    auto while capturing; both are restored afterwards, errors included.
    """

    def render(self, spec: RenderSpec) -> Tuple[np.ndarray, DeclaredColor]:
        fig = spec.figure
        with override_property(fig.root, SHOW_HIDDEN_HANDLES, "on"):
            animated = fig.find_objects(ERASE_MODE, exclude="normal")

        with override_property(fig, PAPER_POSITION_MODE, "auto"), \
                override_each(animated, ERASE_MODE, "normal"):
            raster = self._capture(spec)
        return raster, fig.get(COLOR)

    def _capture(self, spec: RenderSpec) -> np.ndarray:
        fig = spec.figure
        try:
            return _as_rgb(fig.hardcopy(spec.renderer, spec.dpi))
        except Exception as exc:
            logger.warning(f"hardcopy failed ({exc}), printing to a bitmap file instead")

        with temporary_file(".tif") as tif:
            try:
                fig.print_bitmap(tif, spec.renderer, spec.dpi)
                return decode_bitmap(tif)
            except RenderBackendError:
                raise
            except Exception as exc:
                raise RenderBackendError(f"Bitmap capture failed: {exc}") from exc


def renderer_for(spec: RenderSpec, settings: RasterSettings):
    if spec.strategy == "vector":
        return VectorRenderer(settings)
    return DirectRenderer()
