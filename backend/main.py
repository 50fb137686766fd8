"""
Figure Raster Export — FastAPI Backend
Rasterizes uploaded EPS figures into clean, border-trimmed PNG / JPG images.
"""

import io
import logging

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from figraster.codec import array_to_jpg, array_to_png
from figraster.color import hex_to_rgb01, rgb255_to_hex
from figraster.config import RasterSettings
from figraster.eps import EpsDocument
from figraster.errors import RenderBackendError
from figraster.pipeline import print_to_array
from figraster.renderers import VECTOR_RENDERER

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Figure Raster Export",
    version="1.0.0",
    description="Rasterize EPS figures with consistent borders and exact output sizes",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

MEDIA_TYPES = {"png": "image/png", "jpg": "image/jpeg"}


def get_settings() -> RasterSettings:
    return RasterSettings.from_env()


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/api/rasterize")
async def rasterize(
    file: UploadFile = File(...),
    scale: float = Query(1.0, gt=0, le=50, description="Multiple of 72 dpi"),
    background: str = Query("#FFFFFF", description="Figure background: #RRGGBB | none"),
    format: str = Query("png", description="Output format: png | jpg"),
):
    """Rasterize an EPS upload and stream the image back."""
    fmt = format.lower()
    if fmt not in MEDIA_TYPES:
        raise HTTPException(status_code=400, detail="Unsupported format. Use png or jpg.")

    contents = await file.read()
    settings = get_settings()

    try:
        doc = EpsDocument(contents, background=hex_to_rgb01(background))
        raster, bcol = print_to_array(doc, scale=scale, renderer=VECTOR_RENDERER, settings=settings)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RenderBackendError as e:
        logger.error("Rasterization failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    except Exception as e:
        logger.exception("Rasterization failed")
        raise HTTPException(status_code=500, detail=str(e))

    if fmt == "png":
        data = array_to_png(raster)
    else:
        data = array_to_jpg(raster, quality=settings.jpeg_quality)

    height, width = raster.shape[:2]
    return StreamingResponse(
        io.BytesIO(data),
        media_type=MEDIA_TYPES[fmt],
        headers={
            "Content-Disposition": f"attachment; filename=figure.{fmt}",
            "X-Background-Color": rgb255_to_hex(bcol),
            "X-Image-Width": str(width),
            "X-Image-Height": str(height),
        },
    )
