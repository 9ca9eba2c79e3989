"""
Tracking configuration for the GolfSim ball tracker.

Detection and debounce parameters. All values can be overridden through
environment variables so the station can be tuned without code changes.
"""

import os
from dataclasses import dataclass
from typing import Tuple


def _parse_float_env(key: str, default: float) -> float:
    """Parse float environment variable."""
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def _parse_int_env(key: str, default: int) -> int:
    """Parse integer environment variable."""
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _parse_color_env(key: str, default: Tuple[int, int, int]) -> Tuple[int, int, int]:
    """Parse a 'B,G,R' environment variable into a color tuple."""
    raw = os.getenv(key)
    if not raw:
        return default
    try:
        b, g, r = (int(part) for part in raw.split(','))
        return b, g, r
    except ValueError:
        return default


@dataclass
class TrackingConfig:
    """
    Configuration for ball detection and recording debounce.
    """

    # ==========================================================================
    # Frame Sampling
    # ==========================================================================

    frame_stride: int = _parse_int_env("FRAME_STRIDE", 5)
    """
    Analyze only every Nth captured frame.
    Skipped frames are still written to an active recording.
    """

    # ==========================================================================
    # Detection
    # ==========================================================================

    min_ball_size: int = _parse_int_env("MIN_BALL_SIZE", 50)
    """
    Minimum bounding-box width AND height (pixels, strictly greater) for a
    contour to count as the ball. Not normalised to capture resolution.
    """

    overlay_color: Tuple[int, int, int] = _parse_color_env("OVERLAY_COLOR", (0, 0, 255))
    """BGR color of candidate rectangles drawn on the overlay."""

    overlay_thickness: int = _parse_int_env("OVERLAY_THICKNESS", 2)
    """Stroke width (pixels) of candidate rectangles."""

    # ==========================================================================
    # Debounce
    # ==========================================================================

    dwell_seconds: float = _parse_float_env("DWELL_SECONDS", 1.5)
    """
    Sustained presence required before recording starts, and sustained
    absence required before recording stops.
    """

    # ==========================================================================
    # Background Tasks
    # ==========================================================================

    fetch_interval_seconds: float = _parse_float_env("HSV_FETCH_INTERVAL", 5.0)
    """Interval between remote threshold fetches."""

    control_poll_frames: int = _parse_int_env("CONTROL_POLL_FRAMES", 15)
    """Check the control file for mode/server changes every N frames."""

    snapshot_interval_seconds: float = _parse_float_env("SNAPSHOT_INTERVAL", 1.0)
    """Minimum time between overlay snapshots written for the endpoint."""

    def __post_init__(self):
        if self.frame_stride < 1:
            self.frame_stride = 1
        if self.control_poll_frames < 1:
            self.control_poll_frames = 1
