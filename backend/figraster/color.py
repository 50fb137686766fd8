"""
Background colour helpers shared by both rendering strategies.

A background colour is either ``None`` (the figure declares "none", i.e. it
is transparent) or a ``uint8`` array of three RGB values.
"""

from typing import Optional, Sequence, Union

import numpy as np

DeclaredColor = Union[str, Sequence[float]]

WHITE = np.array([255, 255, 255], dtype=np.uint8)


def is_transparent(declared: DeclaredColor) -> bool:
    return isinstance(declared, str) and declared.lower() == "none"


def declared_rgb01(declared: DeclaredColor) -> np.ndarray:
    """Return a declared colour as a float array in 0..1."""
    rgb = np.asarray(declared, dtype=np.float64).reshape(-1)
    if rgb.size != 3:
        raise ValueError(f"Expected an RGB triple, got {declared!r}")
    return rgb


def is_white(declared: DeclaredColor) -> bool:
    if is_transparent(declared):
        return False
    return bool(np.all(declared_rgb01(declared) == 1.0))


def resolve_captured_color(declared: DeclaredColor, raster: np.ndarray) -> Optional[np.ndarray]:
    """
    Background colour for a directly captured raster.

    The declared colour is scaled to 0..255.  When that does not land on whole
    numbers the renderer has quantised it its own way, so the top-left pixel
    of the capture is used instead.
    """
    if is_transparent(declared):
        return None
    scaled = declared_rgb01(declared) * 255
    if np.array_equal(scaled, np.round(scaled)):
        return scaled.astype(np.uint8)
    return raster[0, 0, :].copy()


def hex_to_rgb01(value: str) -> DeclaredColor:
    """Parse ``#RRGGBB`` (or ``none``) into a declared colour."""
    if is_transparent(value):
        return "none"
    text = value.strip().lstrip("#")
    if len(text) != 6:
        raise ValueError(f"Invalid colour {value!r}, expected #RRGGBB or none")
    try:
        channels = [int(text[i:i + 2], 16) for i in (0, 2, 4)]
    except ValueError:
        raise ValueError(f"Invalid colour {value!r}, expected #RRGGBB or none") from None
    return tuple(c / 255.0 for c in channels)


def rgb255_to_hex(color: Optional[np.ndarray]) -> str:
    if color is None:
        return "none"
    r, g, b = (int(c) for c in color)
    return f"#{r:02X}{g:02X}{b:02X}"
