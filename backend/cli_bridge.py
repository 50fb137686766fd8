"""
Figure Raster Export — CLI Bridge

Reads JSON commands from stdin, rasterizes with the same pipeline as the web
backend, and writes JSON results to stdout.

No FastAPI/uvicorn needed — runs as a child process of a desktop app.

Protocol:
  → stdin:  one JSON object per line (newline-delimited JSON)
  ← stdout: one JSON object per line as response

Commands:
  {"cmd": "rasterize", "eps_b64": "...", "scale": 2, "background": "#FFFFFF", "format": "png"}
  {"cmd": "ping"}
"""

import sys
import json
import base64
import traceback
import os
import logging

# ── File logger (writes to figraster-bridge.log next to cli_bridge.py) ──
_log_dir = os.path.dirname(os.path.abspath(__file__))
_log_file = os.path.join(_log_dir, "figraster-bridge.log")
logger = logging.getLogger("bridge")

from figraster.codec import array_to_jpg, array_to_png
from figraster.color import hex_to_rgb01
from figraster.config import RasterSettings
from figraster.eps import EpsDocument
from figraster.pipeline import print_to_array
from figraster.renderers import VECTOR_RENDERER


def handle_rasterize(msg: dict) -> dict:
    raw = base64.b64decode(msg["eps_b64"])
    scale = float(msg.get("scale", 1.0))
    background = msg.get("background", "#FFFFFF")
    fmt = msg.get("format", "png").lower()
    if fmt not in ("png", "jpg"):
        return {"ok": False, "error": f"Unsupported format: {fmt}"}

    logger.info("rasterize: %d bytes, scale=%s, background=%s, format=%s",
                len(raw), scale, background, fmt)
    settings = RasterSettings.from_env()
    doc = EpsDocument(raw, background=hex_to_rgb01(background))
    raster, bcol = print_to_array(doc, scale=scale, renderer=VECTOR_RENDERER, settings=settings)

    if fmt == "png":
        data = array_to_png(raster)
    else:
        data = array_to_jpg(raster, quality=settings.jpeg_quality)

    logger.info("rasterize: done — %dx%d", raster.shape[1], raster.shape[0])
    return {
        "ok": True,
        "format": fmt,
        "data_b64": base64.b64encode(data).decode("ascii"),
        "width": int(raster.shape[1]),
        "height": int(raster.shape[0]),
        "background": None if bcol is None else [int(c) for c in bcol],
    }


def handle_message(line: str) -> dict:
    try:
        msg = json.loads(line)
    except json.JSONDecodeError as e:
        logger.error("Invalid JSON input: %s", e)
        return {"ok": False, "error": f"Invalid JSON: {e}"}

    if not isinstance(msg, dict):
        logger.error("Ignoring non-object message: %s", line)
        return {"ok": False, "error": "Invalid message: expected a JSON object"}

    cmd = msg.get("cmd", "")
    logger.info("Received command: %s", cmd)

    try:
        if cmd == "ping":
            return {"ok": True, "pong": True}
        elif cmd == "rasterize":
            return handle_rasterize(msg)
        else:
            return {"ok": False, "error": f"Unknown command: {cmd}"}
    except Exception:
        logger.exception("Unhandled exception for cmd=%s", cmd)
        return {"ok": False, "error": traceback.format_exc()}


def main():
    logging.basicConfig(
        level=logging.DEBUG,
        format="[%(asctime)s] [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(_log_file, encoding="utf-8"),
        ],
    )
    logger.info("=" * 50)
    logger.info("Figure Raster Export CLI Bridge starting")
    logger.info("Python %s  |  cwd: %s", sys.version.split()[0], os.getcwd())

    # Signal ready
    sys.stdout.write(json.dumps({"status": "ready"}) + "\n")
    sys.stdout.flush()

    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue

        resp_json = json.dumps(handle_message(line))
        logger.info("Sending response (%d bytes)", len(resp_json))
        sys.stdout.write(resp_json + "\n")
        sys.stdout.flush()


if __name__ == "__main__":
    main()
