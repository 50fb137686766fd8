from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from figraster import renderers
from figraster.config import RasterSettings
from figraster.errors import ExternalToolError, RenderBackendError
from figraster.renderers import DirectRenderer, RenderSpec, VectorRenderer, renderer_for
from conftest import FakeFigure, FakeObject, make_fake_ghostscript

# Renderer adapters (Ghostscript path and direct capture).

SETTINGS = RasterSettings(ghostscript="gs")


def _raster(h: int = 6, w: int = 8) -> np.ndarray:
    rng = np.random.default_rng(0)
    return rng.integers(0, 256, size=(h, w, 3), dtype=np.uint8)


def _gs_paths(cmd: list[str]) -> tuple[Path, Path]:
    out = next(a for a in cmd if a.startswith("-sOutputFile="))
    return Path(cmd[-1]), Path(out[len("-sOutputFile="):])


def test_render_spec_derives_dpi_and_strategy():
    fig = FakeFigure(_raster(), dpi=96)

    spec = RenderSpec.for_figure(fig, scale=1.3, renderer="-painters")
    assert spec.dpi == 125
    assert spec.strategy == "vector"

    spec = RenderSpec.for_figure(fig, scale=2)
    assert spec.dpi == 192
    assert spec.renderer == "-opengl"
    assert spec.strategy == "direct"
    assert isinstance(renderer_for(spec, SETTINGS), DirectRenderer)


@pytest.mark.parametrize("scale", [0, -1.0])
def test_render_spec_rejects_non_positive_scale(scale):
    with pytest.raises(ValueError):
        RenderSpec.for_figure(FakeFigure(_raster()), scale=scale)


def test_ghostscript_command_line():
    cmd = renderers.ghostscript_command("gs", Path("in.eps"), Path("out.tif"), 150)

    assert cmd == [
        "gs", "-dEPSCrop", "-q", "-dNOPAUSE", "-dBATCH", "-r150",
        "-sDEVICE=tiff24nc", "-sOutputFile=out.tif", "in.eps",
    ]


def test_find_ghostscript_prefers_settings_then_path(monkeypatch: pytest.MonkeyPatch):
    assert renderers.find_ghostscript(RasterSettings(ghostscript="/opt/gs")) == "/opt/gs"

    monkeypatch.setattr(renderers.shutil, "which", lambda name: "/usr/bin/gswin64c" if name == "gswin64c" else None)
    assert renderers.find_ghostscript(RasterSettings()) == "/usr/bin/gswin64c"

    monkeypatch.setattr(renderers.shutil, "which", lambda name: None)
    with pytest.raises(ExternalToolError, match="Ghostscript not found"):
        renderers.find_ghostscript(RasterSettings())


def test_vector_renderer_reads_ghostscript_output_and_cleans_up(monkeypatch: pytest.MonkeyPatch):
    raster = _raster()
    fake_run = make_fake_ghostscript(raster)
    monkeypatch.setattr(renderers.subprocess, "run", fake_run)
    fig = FakeFigure(raster, color=(0.2, 0.4, 0.6))

    out, declared = VectorRenderer(SETTINGS).render(RenderSpec.for_figure(fig, 2, "-painters"))

    assert np.array_equal(out, raster)
    assert declared == (0.2, 0.4, 0.6)
    (cmd,) = fake_run.calls
    assert "-r192" in cmd
    eps, tif = _gs_paths(cmd)
    assert eps == fig.eps_path
    assert not eps.exists()
    assert not tif.exists()


def test_vector_renderer_deletes_intermediate_when_ghostscript_fails(monkeypatch: pytest.MonkeyPatch):
    fake_run = make_fake_ghostscript(None, returncode=1, stderr="Unrecoverable error")
    monkeypatch.setattr(renderers.subprocess, "run", fake_run)
    fig = FakeFigure(_raster())

    with pytest.raises(ExternalToolError, match=r"code=1\). Unrecoverable error"):
        VectorRenderer(SETTINGS).render(RenderSpec.for_figure(fig, 1, "-painters"))

    eps, tif = _gs_paths(fake_run.calls[0])
    assert not eps.exists()
    assert not tif.exists()


def test_vector_renderer_reports_missing_ghostscript(monkeypatch: pytest.MonkeyPatch):
    def missing(*args, **kwargs):
        raise FileNotFoundError

    monkeypatch.setattr(renderers.subprocess, "run", missing)
    fig = FakeFigure(_raster())

    with pytest.raises(ExternalToolError, match="Ghostscript not found"):
        VectorRenderer(SETTINGS).render(RenderSpec.for_figure(fig, 1, "-painters"))

    assert not fig.eps_path.exists()


def test_external_tool_error_is_a_render_backend_error():
    assert issubclass(ExternalToolError, RenderBackendError)


def test_direct_renderer_forces_and_restores_graphics_state():
    children = [FakeObject(erasemode="xor"), FakeObject(erasemode="normal"), FakeObject(erasemode="background")]
    raster = _raster()
    fig = FakeFigure(raster, children=children)

    out, declared = DirectRenderer().render(RenderSpec.for_figure(fig))

    assert np.array_equal(out, raster)
    assert declared == (1.0, 1.0, 1.0)
    assert fig.hidden_flag_during_lookup == "on"
    assert fig.state_during_capture == ("auto", ["normal", "normal", "normal"])
    assert fig.root.get("showhiddenhandles") == "off"
    assert fig.get("paperpositionmode") == "manual"
    assert [c.get("erasemode") for c in children] == ["xor", "normal", "background"]


def test_direct_renderer_drops_alpha_channel():
    rgba = np.zeros((4, 5, 4), dtype=np.uint8)
    rgba[..., 3] = 255
    fig = FakeFigure(rgba)

    out, _ = DirectRenderer().render(RenderSpec.for_figure(fig))

    assert out.shape == (4, 5, 3)


def test_direct_renderer_falls_back_to_printed_bitmap():
    raster = _raster()
    fig = FakeFigure(raster, hardcopy_error=RuntimeError("no hardcopy"))

    out, _ = DirectRenderer().render(RenderSpec.for_figure(fig, 2, "-zbuffer"))

    assert np.array_equal(out, raster)
    assert fig.bitmap_path is not None
    assert not fig.bitmap_path.exists()


def test_direct_renderer_restores_state_when_capture_fails():
    children = [FakeObject(erasemode="xor")]
    cause = OSError("printer on fire")
    fig = FakeFigure(_raster(), children=children,
                     hardcopy_error=RuntimeError("no hardcopy"), print_error=cause)

    with pytest.raises(RenderBackendError, match="printer on fire") as info:
        DirectRenderer().render(RenderSpec.for_figure(fig))

    assert info.value.__cause__ is cause
    assert fig.state_during_capture == ("auto", ["normal"])
    assert fig.get("paperpositionmode") == "manual"
    assert children[0].get("erasemode") == "xor"
    assert not fig.bitmap_path.exists()


def test_direct_renderer_propagates_backend_errors_unchanged():
    error = RenderBackendError("unsupported renderer")
    fig = FakeFigure(_raster(), hardcopy_error=error, print_error=error)

    with pytest.raises(RenderBackendError) as info:
        DirectRenderer().render(RenderSpec.for_figure(fig))

    assert info.value is error
    assert fig.get("paperpositionmode") == "manual"


def test_vector_renderer_reports_missing_ghostscript_output(monkeypatch: pytest.MonkeyPatch):
    fake_run = make_fake_ghostscript(None, returncode=0)
    monkeypatch.setattr(renderers.subprocess, "run", fake_run)
    fig = FakeFigure(_raster())

    with pytest.raises(RenderBackendError, match="Cannot decode bitmap"):
        VectorRenderer(SETTINGS).render(RenderSpec.for_figure(fig, 1, "-painters"))

    eps, tif = _gs_paths(fake_run.calls[0])
    assert not eps.exists()
    assert not tif.exists()
