"""
FastAPI application factory for the ball pass detector diagnostics API.

Routes:
- /api/telemetry -> latest area/circularity/velocity/band readings
- /api/status -> session state, counters and warnings
- /api/bands -> current colour thresholds
- /api/calibration/* -> calibration mode and capture requests
- /api/reset -> queue a detector reset
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Ball Pass Detector",
        version="0.1.0",
        description="Diagnostics and calibration API for the ball pass detector",
    )

    # The scoring UI runs on its own dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")
    return app


# Exported application instance for uvicorn
app = create_app()
