"""
Error types raised (or warned) by the export pipeline.
"""


class RenderBackendError(RuntimeError):
    """The rasterizer or the capture pathway failed."""


class ExternalToolError(RenderBackendError):
    """An external tool (Ghostscript) is missing or exited non-zero."""


class SizeWarning(UserWarning):
    """The requested output is large enough to be slow and memory-hungry."""
