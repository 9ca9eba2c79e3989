"""
Application settings for the GolfSim ball tracker.

Runtime paths, recording parameters and simulator server address.
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from golfsim.constants import DEFAULT_SERVER_PORT


def _parse_source_env(key: str, default: str) -> Union[int, str]:
    """Camera indices are given as digits, everything else is a path/URL."""
    val = os.getenv(key, default)
    return int(val) if val.isdigit() else val


def _parse_optional_str_env(key: str) -> Optional[str]:
    val = os.getenv(key, "").strip()
    return val or None


@dataclass
class AppConfig:
    """
    Application configuration for the GolfSim ball tracker.
    """

    APP_VERSION: str = "19-10-2026_v1.2.0"

    # Video source: camera index, file path or RTSP URL
    video_source: Union[int, str] = field(default_factory=lambda: _parse_source_env("VIDEO_SOURCE", "0"))

    # Simulator server (threshold source + upload sink)
    server_host: Optional[str] = field(default_factory=lambda: _parse_optional_str_env("GOLFSIM_SERVER_HOST"))
    server_port: int = int(os.getenv("GOLFSIM_SERVER_PORT", str(DEFAULT_SERVER_PORT)))
    http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT", "10.0"))
    upload_timeout_seconds: float = float(os.getenv("UPLOAD_TIMEOUT", "120.0"))

    # Recording
    recording_dir: str = os.getenv("RECORDING_DIR", "data/recordings")
    recording_fps: float = float(os.getenv("RECORDING_FPS", "30.0"))
    recording_frame_size: Tuple[int, int] = (1280, 720)

    # Frame source
    frame_queue_size: int = int(os.getenv("FRAME_QUEUE_SIZE", "30"))
    frame_target_fps: Optional[float] = None  # None = use source FPS

    # Cross-process files shared with the endpoint
    state_file: str = os.getenv("PIPELINE_STATE_FILE", "data/pipeline_state.json")
    control_file: str = os.getenv("PIPELINE_CONTROL_FILE", "data/pipeline_control.json")
    snapshot_dir: str = os.getenv("SNAPSHOT_DIR", "data/snapshot")

    def log_configuration(self):
        """Log current configuration."""
        from golfsim.utils.AppLogging import logger
        logger.info(f"[Config] App Version: {self.APP_VERSION}")
        logger.info(f"[Config] Video source: {self.video_source}")
        logger.info(f"[Config] Server: {self.server_host or '<unset>'}:{self.server_port}")
        logger.info(f"[Config] Recording dir: {self.recording_dir} @ {self.recording_fps} FPS")
