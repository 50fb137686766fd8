from __future__ import annotations

import subprocess
from pathlib import Path

import numpy as np
import pytest
from PIL import Image


class FakeObject:
    def __init__(self, **props):
        self.props = dict(props)

    def get(self, name):
        return self.props[name]

    def set(self, name, value):
        self.props[name] = value


class FakeFigure(FakeObject):
    """In-memory figure host that records what the renderers did to it."""

    def __init__(
        self,
        raster: np.ndarray,
        color=(1.0, 1.0, 1.0),
        size: tuple[int, int] | None = None,
        dpi: float = 96.0,
        children: list[FakeObject] | None = None,
        hardcopy_error: Exception | None = None,
        print_error: Exception | None = None,
    ):
        super().__init__(color=color, paperpositionmode="manual")
        self.root = FakeObject(showhiddenhandles="off")
        self.raster = raster
        self.size = size or (raster.shape[1], raster.shape[0])
        self.dpi = dpi
        self.children = children or []
        self.hardcopy_error = hardcopy_error
        self.print_error = print_error
        self.hidden_flag_during_lookup = None
        self.state_during_capture = None
        self.bitmap_path: Path | None = None
        self.eps_path: Path | None = None

    def pixel_size(self):
        return self.size

    def screen_dpi(self):
        return self.dpi

    def find_objects(self, prop, exclude):
        self.hidden_flag_during_lookup = self.root.get("showhiddenhandles")
        return [c for c in self.children if c.get(prop) != exclude]

    def export_vector(self, path, renderer):
        self.eps_path = Path(path)
        self.eps_path.write_bytes(b"%!PS-Adobe-3.0 EPSF-3.0\n%%BoundingBox: 0 0 10 10\n")

    def _record_state(self):
        self.state_during_capture = (
            self.get("paperpositionmode"),
            [c.get("erasemode") for c in self.children],
        )

    def hardcopy(self, renderer, dpi):
        self._record_state()
        if self.hardcopy_error is not None:
            raise self.hardcopy_error
        return self.raster.copy()

    def print_bitmap(self, path, renderer, dpi):
        self._record_state()
        self.bitmap_path = Path(path)
        if self.print_error is not None:
            raise self.print_error
        Image.fromarray(self.raster).save(path, format="TIFF")


def make_fake_ghostscript(raster: np.ndarray | None, returncode: int = 0, stderr: str = ""):
    """subprocess.run replacement that writes *raster* where Ghostscript would."""
    calls: list[list[str]] = []

    def fake_run(cmd, *, capture_output: bool, text: bool, check: bool):
        calls.append(list(cmd))
        if returncode == 0 and raster is not None:
            out = next(a for a in cmd if a.startswith("-sOutputFile="))
            Image.fromarray(raster).save(out[len("-sOutputFile="):], format="TIFF")
        return subprocess.CompletedProcess(args=cmd, returncode=returncode, stdout="", stderr=stderr)

    fake_run.calls = calls
    return fake_run


def bordered(size: int, border: int, border_rgb, inner_rgb) -> np.ndarray:
    img = np.empty((size, size, 3), dtype=np.uint8)
    img[:] = border_rgb
    img[border:size - border, border:size - border] = inner_rgb
    return img


@pytest.fixture
def ghostscript_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GHOSTSCRIPT", "gs")
