"""
Figure host for an EPS file that already exists (e.g. an upload).

Only the -painters path is available: the document can be handed to
Ghostscript but there is nothing to capture directly.
"""

import re
from pathlib import Path
from typing import Any, List, Tuple

import numpy as np

from .color import DeclaredColor
from .errors import RenderBackendError
from .renderers import COLOR, PAPER_POSITION_MODE, SHOW_HIDDEN_HANDLES

POINTS_PER_INCH = 72.0

_NUM = rb"([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)"
_BBOX = re.compile(rb"^%%BoundingBox:\s*" + rb"\s+".join([_NUM] * 4), re.MULTILINE)
_HIRES_BBOX = re.compile(rb"^%%HiResBoundingBox:\s*" + rb"\s+".join([_NUM] * 4), re.MULTILINE)


class PropertyBag:
    def __init__(self, **props):
        self._props = dict(props)

    def get(self, name: str) -> Any:
        return self._props[name]

    def set(self, name: str, value: Any) -> None:
        self._props[name] = value


def bounding_box_size(data: bytes) -> Tuple[float, float]:
    """(width, height) in points, preferring the high resolution box."""
    match = _HIRES_BBOX.search(data) or _BBOX.search(data)
    if match is None:
        raise ValueError("EPS has no %%BoundingBox comment")
    llx, lly, urx, ury = (float(v) for v in match.groups())
    width, height = urx - llx, ury - lly
    if width <= 0 or height <= 0:
        raise ValueError(f"EPS bounding box is empty: {match.group(0).decode(errors='replace')}")
    return width, height


class EpsDocument:
    def __init__(self, data: bytes, background: DeclaredColor = (1.0, 1.0, 1.0)):
        self.data = data
        self.size_points = bounding_box_size(data)
        self.root = PropertyBag(**{SHOW_HIDDEN_HANDLES: "off"})
        self._props = PropertyBag(**{COLOR: background, PAPER_POSITION_MODE: "auto"})

    def get(self, name: str) -> Any:
        return self._props.get(name)

    def set(self, name: str, value: Any) -> None:
        self._props.set(name, value)

    def pixel_size(self) -> Tuple[int, int]:
        width, height = self.size_points
        factor = self.screen_dpi() / POINTS_PER_INCH
        return int(round(width * factor)), int(round(height * factor))

    def screen_dpi(self) -> float:
        return POINTS_PER_INCH

    def find_objects(self, prop: str, exclude: Any) -> List[PropertyBag]:
        return []

    def export_vector(self, path: Path, renderer: str) -> None:
        Path(path).write_bytes(self.data)

    def hardcopy(self, renderer: str, dpi: int) -> np.ndarray:
        raise RenderBackendError("EPS documents can only be rasterized with -painters")

    def print_bitmap(self, path: Path, renderer: str, dpi: int) -> None:
        raise RenderBackendError("EPS documents can only be rasterized with -painters")
