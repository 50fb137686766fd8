"""
Figure → bitmap export with border clean-up and size correction.
"""

from .errors import ExternalToolError, RenderBackendError, SizeWarning
from .pipeline import print_to_array

__all__ = ["print_to_array", "RenderBackendError", "ExternalToolError", "SizeWarning"]
