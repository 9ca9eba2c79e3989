"""
FastAPI Server for the GolfSim Ball Tracker.

Control surface for the tracker process:
- Tracking mode and live status
- Simulator server address and reachability
- Latest overlay snapshot and photo upload
- Health monitoring

The tracker runs as a separate process; state and control are exchanged
through the JSON files in golfsim.endpoint.pipeline_state.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from golfsim.config.settings import AppConfig
from golfsim.endpoint.pipeline_state import read_state
from golfsim.endpoint.routes import photo, server_address, snapshot, tracking
from golfsim.utils.AppLogging import get_log_file_paths, logger

# Application version
APP_VERSION = AppConfig.APP_VERSION

# Tracker state older than this is reported as inactive
STATE_STALE_SECONDS = 10.0

# Server start time for uptime tracking
_SERVER_START_TIME = time.time()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("[Endpoint] Starting up...")
    yield
    logger.info("[Endpoint] Shutting down...")


app = FastAPI(
    title="GolfSim Ball Tracker API",
    description="Control endpoint for the golf ball highlight recorder",
    version=APP_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tracking.router)
app.include_router(server_address.router)
app.include_router(snapshot.router)
app.include_router(photo.router)


@app.get("/health")
async def health() -> Dict[str, Any]:
    """
    Health check with tracker diagnostics.

    The tracker counts as active while its published state is fresh.
    """
    now = time.time()
    uptime_seconds = now - _SERVER_START_TIME

    hours, remainder = divmod(int(uptime_seconds), 3600)
    minutes, seconds = divmod(remainder, 60)
    uptime_str = f"{hours:02d}:{minutes:02d}:{seconds:02d}"

    pipeline = read_state()
    updated_at = pipeline.get("_updated_at") or 0
    tracker_active = bool(updated_at) and (now - updated_at) < STATE_STALE_SECONDS

    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": APP_VERSION,
        "uptime_seconds": round(uptime_seconds, 1),
        "uptime": uptime_str,
        "tracker_active": tracker_active,
        "tracker": {
            "mode": pipeline.get("mode"),
            "state": (pipeline.get("state_machine") or {}).get("state"),
            "recording": pipeline.get("recording", False),
            "frames": pipeline.get("frames", 0),
        },
        "logs": get_log_file_paths(),
    }
