"""
Tracking Routes - mode control and live status.

Provides:
- GET  /api/status    - Published pipeline state (mode, FSM, thresholds, notifications)
- POST /api/tracking  - Request a tracking mode change ("off" | "preview" | "game")

The tracker picks up control changes on its next control poll.
"""

from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from golfsim.constants import TRACKING_MODES, control_mode_key
from golfsim.endpoint.pipeline_state import read_state, write_control
from golfsim.utils.AppLogging import logger

router = APIRouter(tags=["tracking"])


@router.get("/api/status")
async def api_status() -> Dict[str, Any]:
    """Latest state published by the tracker (internal fields stripped)."""
    state = read_state()
    return {k: v for k, v in state.items() if not k.startswith("_")}


@router.post("/api/tracking", response_class=JSONResponse)
async def set_tracking_mode(request: Request):
    """
    Request a tracking mode.

    Body: {"mode": "game"}
    """
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({"status": "error", "detail": "Invalid JSON body"}, status_code=400)

    mode = body.get("mode") if isinstance(body, dict) else None
    if mode not in TRACKING_MODES:
        return JSONResponse(
            {"status": "error", "detail": f"mode must be one of {TRACKING_MODES}"},
            status_code=400
        )

    write_control({control_mode_key: mode})
    logger.info(f"[TrackingRoute] Mode requested: {mode}")
    return {"status": "ok", "mode": mode}
