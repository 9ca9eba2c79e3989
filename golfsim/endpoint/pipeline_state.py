"""
Pipeline State - cross-process files shared by the tracker and the endpoint.

- State file:   written by BallTrackerApp, read by the FastAPI server
                (mode, state machine, thresholds, recent notifications).
- Control file: written by the FastAPI server, polled by BallTrackerApp
                (requested mode, simulator server address).

Both are JSON, written atomically via a temp file + os.replace.
"""

import json
import os
import time
from typing import Any, Dict, Optional

from golfsim.utils.AppLogging import logger

_DEFAULT_STATE_PATH = "data/pipeline_state.json"
_DEFAULT_CONTROL_PATH = "data/pipeline_control.json"


def _get_state_path() -> str:
    """Get the state file path, checking env var at call time."""
    return os.getenv("PIPELINE_STATE_FILE", _DEFAULT_STATE_PATH)


def _get_control_path() -> str:
    return os.getenv("PIPELINE_CONTROL_FILE", _DEFAULT_CONTROL_PATH)


def _write_json_atomic(data: Dict[str, Any], filepath: str) -> bool:
    try:
        os.makedirs(os.path.dirname(filepath) or ".", exist_ok=True)
        tmp_path = filepath + ".tmp"
        with open(tmp_path, "w") as f:
            json.dump(data, f)
        os.replace(tmp_path, filepath)
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"[PipelineState] Failed to write {filepath}: {e}")
        return False


def _read_json(filepath: str) -> Optional[Dict[str, Any]]:
    if not os.path.exists(filepath):
        return None
    try:
        with open(filepath, "r") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"[PipelineState] Failed to read {filepath}: {e}")
        return None


def write_state(state: Dict[str, Any], state_file: Optional[str] = None) -> bool:
    """
    Write pipeline state (called by BallTrackerApp).

    Returns:
        True if written successfully
    """
    state["_updated_at"] = time.time()
    return _write_json_atomic(state, state_file or _get_state_path())


def read_state(state_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Read pipeline state (called by the FastAPI server).

    Returns a default empty state if the file doesn't exist or is unreadable.
    """
    return _read_json(state_file or _get_state_path()) or empty_state()


def empty_state() -> Dict[str, Any]:
    """Return default pipeline state (tracker not running yet)."""
    return {
        "mode": "off",
        "state_machine": {
            "state": "IDLE",
            "recording": False,
        },
        "ball_detected": False,
        "recording": False,
        "thresholds": None,
        "server": {"host": None, "port": None},
        "frames": 0,
        "recent_events": [],
        "uploads": {},
        "_updated_at": 0,
    }


def write_control(updates: Dict[str, Any], control_file: Optional[str] = None) -> Dict[str, Any]:
    """
    Merge *updates* into the control file (called by the FastAPI server).

    Each key carries its own timestamp in ``_key_updated_at`` so the tracker
    applies only what was written, not every key still in the file.

    Returns:
        The full control document after the merge
    """
    filepath = control_file or _get_control_path()
    control = _read_json(filepath) or {}
    now = time.time()
    stamps = control.get("_key_updated_at") or {}
    for key in updates:
        stamps[key] = now
    control.update(updates)
    control["_key_updated_at"] = stamps
    control["_updated_at"] = now
    _write_json_atomic(control, filepath)
    return control


def read_control(control_file: Optional[str] = None) -> Dict[str, Any]:
    """Read the control file (called by BallTrackerApp). Empty dict if absent."""
    return _read_json(control_file or _get_control_path()) or {}
