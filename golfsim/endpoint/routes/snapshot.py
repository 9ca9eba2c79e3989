"""
Snapshot Routes - latest overlay / raw frame as JPEG.

The tracker writes the latest raw frame and detection overlay to disk at a
throttled rate (SnapshotWriter); the endpoint serves whatever is newest.
"""

import json
import os
import time
from typing import Optional, Tuple

import cv2
import numpy as np
from fastapi import APIRouter, Query
from fastapi.responses import Response

from golfsim.utils.AppLogging import logger

router = APIRouter(tags=["snapshot"])


def _snapshot_dir() -> str:
    return os.getenv("SNAPSHOT_DIR", "data/snapshot")


def _paths(snapshot_dir: str) -> Tuple[str, str, str]:
    return (
        os.path.join(snapshot_dir, "latest_raw.jpg"),
        os.path.join(snapshot_dir, "latest_overlay.jpg"),
        os.path.join(snapshot_dir, "latest_meta.json"),
    )


class SnapshotWriter:
    """
    Writes the latest frames to disk, at most once per *min_interval*.

    Used by BallTrackerApp on analyzed frames.
    """

    def __init__(self, snapshot_dir: Optional[str] = None, min_interval: float = 1.0):
        self._snapshot_dir = snapshot_dir or _snapshot_dir()
        self._raw_path, self._overlay_path, self._meta_path = _paths(self._snapshot_dir)
        self.min_interval = min_interval
        self._last_write = 0.0

        os.makedirs(self._snapshot_dir, exist_ok=True)

    def maybe_write(self, frame: np.ndarray, overlay: Optional[np.ndarray], frame_number: int = 0) -> bool:
        now = time.time()
        if now - self._last_write < self.min_interval:
            return False
        self._last_write = now
        return self.write_snapshot(frame, overlay, frame_number)

    def write_snapshot(
        self,
        frame: np.ndarray,
        frame_with_overlay: Optional[np.ndarray] = None,
        frame_number: int = 0,
        quality: int = 85
    ) -> bool:
        """
        Write snapshot to disk.

        Returns:
            True if written successfully
        """
        try:
            encode_params = [cv2.IMWRITE_JPEG_QUALITY, quality]
            cv2.imwrite(self._raw_path, frame, encode_params)
            if frame_with_overlay is not None:
                cv2.imwrite(self._overlay_path, frame_with_overlay, encode_params)

            meta = {
                "frame_number": frame_number,
                "timestamp": time.time(),
                "width": frame.shape[1],
                "height": frame.shape[0],
            }
            with open(self._meta_path, 'w') as f:
                json.dump(meta, f)
            return True
        except (cv2.error, OSError) as e:
            logger.error(f"[SnapshotWriter] Failed to write snapshot: {e}")
            return False


def read_snapshot(overlay: bool = True) -> Optional[bytes]:
    """
    Read the latest snapshot JPEG bytes.

    Args:
        overlay: Prefer the overlay image (falls back to raw)
    """
    raw_path, overlay_path, _meta_path = _paths(_snapshot_dir())
    path = overlay_path if overlay and os.path.exists(overlay_path) else raw_path
    if not os.path.exists(path):
        return None
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError:
        return None


def read_raw_frame() -> Optional[np.ndarray]:
    """Decode the latest raw snapshot into a BGR array."""
    raw_path, _overlay_path, _meta_path = _paths(_snapshot_dir())
    if not os.path.exists(raw_path):
        return None
    return cv2.imread(raw_path)


@router.get("/snapshot")
async def snapshot(
    overlay: bool = Query(True, description="Return the detection overlay instead of the raw frame")
) -> Response:
    """Latest camera frame as JPEG, or 503 if the tracker has not written one yet."""
    jpeg_bytes = read_snapshot(overlay=overlay)
    if jpeg_bytes is None:
        return Response(content="No snapshot available", status_code=503, media_type="text/plain")
    return Response(
        content=jpeg_bytes,
        media_type="image/jpeg",
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"}
    )
