"""
Figure host backed by a matplotlib Figure.

  color              ↔ figure face colour ("none" when fully transparent)
  paperpositionmode  ↔ rcParams["savefig.bbox"]   (auto → standard)
  erasemode          ↔ artist animated flag       (normal ↔ not animated)
  showhiddenhandles  ↔ whether artists with "_"-prefixed labels are listed
"""

import io
from pathlib import Path
from typing import Any, List, Tuple

import matplotlib as mpl
import numpy as np
from matplotlib import colors as mcolors
from matplotlib.figure import Figure

from .errors import RenderBackendError
from .renderers import COLOR, ERASE_MODE, PAPER_POSITION_MODE, SHOW_HIDDEN_HANDLES

DIRECT_RENDERERS = ("-opengl", "-zbuffer")


class _Root:
    """Process-wide settings shared by every matplotlib figure."""

    _state: dict = {SHOW_HIDDEN_HANDLES: "off"}

    def get(self, name: str) -> Any:
        return self._state[name]

    def set(self, name: str, value: Any) -> None:
        if name not in self._state:
            raise KeyError(name)
        self._state[name] = value


class _ArtistHandle:
    def __init__(self, artist):
        self.artist = artist

    def get(self, name: str) -> Any:
        if name != ERASE_MODE:
            raise KeyError(name)
        return "xor" if self.artist.get_animated() else "normal"

    def set(self, name: str, value: Any) -> None:
        if name != ERASE_MODE:
            raise KeyError(name)
        self.artist.set_animated(value != "normal")


def _check_renderer(renderer: str) -> None:
    if renderer not in DIRECT_RENDERERS:
        raise RenderBackendError(
            f"Unsupported renderer {renderer!r} for bitmap capture "
            f"(use one of {', '.join(DIRECT_RENDERERS)})"
        )


class MatplotlibFigure:
    root = _Root()

    def __init__(self, figure: Figure):
        self.figure = figure

    def get(self, name: str) -> Any:
        if name == COLOR:
            rgba = mcolors.to_rgba(self.figure.get_facecolor())
            return "none" if rgba[3] == 0 else tuple(rgba[:3])
        if name == PAPER_POSITION_MODE:
            return mpl.rcParams["savefig.bbox"]
        raise KeyError(name)

    def set(self, name: str, value: Any) -> None:
        if name == COLOR:
            self.figure.set_facecolor(value)
        elif name == PAPER_POSITION_MODE:
            mpl.rcParams["savefig.bbox"] = "standard" if value == "auto" else value
        else:
            raise KeyError(name)

    def pixel_size(self) -> Tuple[int, int]:
        width, height = self.figure.get_size_inches() * self.figure.dpi
        return int(round(width)), int(round(height))

    def screen_dpi(self) -> float:
        return float(self.figure.dpi)

    def find_objects(self, prop: str, exclude: Any) -> List[_ArtistHandle]:
        show_hidden = self.root.get(SHOW_HIDDEN_HANDLES) == "on"
        found = []
        for artist in self.figure.findobj(include_self=False):
            if not show_hidden and str(artist.get_label()).startswith("_"):
                continue
            handle = _ArtistHandle(artist)
            if handle.get(prop) != exclude:
                found.append(handle)
        return found

    def export_vector(self, path: Path, renderer: str) -> None:
        self.figure.savefig(path, format="eps")

    def hardcopy(self, renderer: str, dpi: int) -> np.ndarray:
        """Render through Agg straight into an RGBA buffer."""
        _check_renderer(renderer)
        buf = io.BytesIO()
        self.figure.savefig(buf, format="rgba", dpi=dpi)
        width, height = (int(v) for v in self.figure.get_size_inches() * dpi)
        rgba = np.frombuffer(buf.getvalue(), dtype=np.uint8).reshape(height, width, 4)
        return rgba[:, :, :3]

    def print_bitmap(self, path: Path, renderer: str, dpi: int) -> None:
        _check_renderer(renderer)
        self.figure.savefig(path, format="tiff", dpi=dpi)
