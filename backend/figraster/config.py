"""
Runtime settings for the export pipeline.
"""

import os
from typing import Optional

from pydantic import BaseModel, Field


class RasterSettings(BaseModel):
    ghostscript: Optional[str] = Field(None, description="Path to the Ghostscript executable")
    large_image_megapixels: float = Field(30.0, gt=0, description="Warn above this many megapixels")
    jpeg_quality: int = Field(92, ge=1, le=100, description="Quality used by JPEG encoding")

    @classmethod
    def from_env(cls) -> "RasterSettings":
        """Build settings from GHOSTSCRIPT / FIGRASTER_LARGE_IMAGE_MP."""
        values = {}
        if os.environ.get("GHOSTSCRIPT"):
            values["ghostscript"] = os.environ["GHOSTSCRIPT"]
        if os.environ.get("FIGRASTER_LARGE_IMAGE_MP"):
            values["large_image_megapixels"] = float(os.environ["FIGRASTER_LARGE_IMAGE_MP"])
        return cls(**values)
