"""
FastAPI application factory for the detection overlay preview.

Routes:
- /api/status -> scheduler and detection status (JSON)
- /api/overlay/snapshot.jpg -> latest overlay frame
- /api/overlay/stream.mjpg -> MJPEG stream of overlay frames
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from .routes import api

INDEX_HTML = """<!doctype html>
<html>
  <head><title>Detection Overlay</title></head>
  <body style="margin:0;background:#111">
    <img src="/api/overlay/stream.mjpg" width="640" height="640" alt="overlay">
  </body>
</html>
"""


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Detection Overlay",
        version="0.1.0",
        description="Real-time object detection overlay preview",
    )

    app.include_router(api.router, prefix="/api")

    @app.get("/", response_class=HTMLResponse)
    def index():
        return INDEX_HTML

    return app


# Exported application instance for uvicorn
app = create_app()
