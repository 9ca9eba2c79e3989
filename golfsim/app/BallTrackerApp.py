"""
Main GolfSim Ball Tracker Application.

Central orchestrator that:
1. Reads frames from the camera (OpenCV)
2. Samples every Nth frame through the HSV ball analyzer
3. Debounces presence/absence into recording start/stop
4. Records highlight clips and hands them to the upload worker
5. Keeps HSV thresholds fresh from the simulator server
6. Publishes state/overlay for the control endpoint

Production Notes:
- Graceful shutdown handling
- Bad frames never stop the loop
- Thread-safe notification log
"""

import signal
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from golfsim.app.pipeline_core import TrackingPipeline
from golfsim.app.pipeline_visualizer import PipelineVisualizer
from golfsim.config.settings import AppConfig
from golfsim.config.tracking_config import TrackingConfig
from golfsim.constants import (
    MODE_GAME,
    MODE_OFF,
    TRACKING_MODES,
    control_mode_key,
    control_server_host_key,
    control_server_port_key,
)
from golfsim.detection.HsvBallDetector import HsvBallDetector
from golfsim.detection.ThresholdConfig import ThresholdStore
from golfsim.endpoint.pipeline_state import read_control, write_state
from golfsim.endpoint.routes.snapshot import SnapshotWriter
from golfsim.frame_source.FrameSource import FrameSource
from golfsim.frame_source.OpenCvFrameSource import OpenCVFrameSource
from golfsim.network.ConfigFetcher import ConfigFetcher
from golfsim.network.ServerAddress import ServerAddress
from golfsim.recording.RecordingController import RecordingController
from golfsim.recording.UploadWorker import UploadWorker
from golfsim.recording.VideoSink import OpenCVVideoSink, OutputSink
from golfsim.tracking.DetectionStateMachine import DetectionStateMachine
from golfsim.utils.AppLogging import logger


@dataclass
class TrackerState:
    """User-facing notification log (thread-safe)."""
    recent_events: List[Tuple[float, str, str]] = field(default_factory=list)
    max_events: int = 20

    def __post_init__(self):
        self._lock = threading.Lock()

    def add_event(self, level: str, message: str):
        with self._lock:
            self.recent_events.append((time.time(), level, message))
            if len(self.recent_events) > self.max_events:
                self.recent_events = self.recent_events[-self.max_events:]

    def get_recent_events(self) -> List[Tuple[float, str, str]]:
        with self._lock:
            return list(self.recent_events)


class BallTrackerApp:
    """
    Ball-triggered highlight recorder.

    Pipeline:
    Frame → (every Nth) HSV analysis → debounce FSM → record → upload
    """

    def __init__(
        self,
        app_config: Optional[AppConfig] = None,
        tracking_config: Optional[TrackingConfig] = None,
        frame_source: Optional[FrameSource] = None,
        sink: Optional[OutputSink] = None,
        initial_mode: str = MODE_OFF,
        enable_display: bool = False,
        testing_mode: bool = False
    ):
        """
        Args:
            app_config: Application configuration
            tracking_config: Detection/debounce configuration
            frame_source: Optional pre-configured frame source
            sink: Optional pre-configured output sink
            initial_mode: 'off', 'preview' or 'game'
            enable_display: Show the overlay in a local OpenCV window
            testing_mode: Read file sources synchronously (no drops)
        """
        self.app_config = app_config or AppConfig()
        self.tracking_config = tracking_config or TrackingConfig()
        self.enable_display = enable_display
        self.testing_mode = testing_mode

        self.state = TrackerState()
        self._mode = MODE_OFF
        self._mode_lock = threading.Lock()

        # Shared between fetcher and analyzer
        self.thresholds = ThresholdStore()
        self.server = ServerAddress(self.app_config.server_host, self.app_config.server_port)

        self._frame_source = frame_source
        self.upload_worker = UploadWorker(timeout=self.app_config.upload_timeout_seconds)
        self.recorder = RecordingController(
            sink=sink or OpenCVVideoSink(
                fps=self.app_config.recording_fps,
                frame_size=self.app_config.recording_frame_size
            ),
            upload_worker=self.upload_worker,
            server=self.server,
            recording_dir=self.app_config.recording_dir,
            on_notify=self.state.add_event
        )
        self.recorder.on_recording_stopped = self._on_recording_stopped

        self.pipeline = TrackingPipeline(
            analyzer=HsvBallDetector.from_config(self.tracking_config),
            state_machine=DetectionStateMachine(
                dwell_seconds=self.tracking_config.dwell_seconds,
                now=time.monotonic()
            ),
            recorder=self.recorder,
            thresholds=self.thresholds,
            frame_stride=self.tracking_config.frame_stride
        )
        self.fetcher = ConfigFetcher(
            store=self.thresholds,
            server=self.server,
            interval=self.tracking_config.fetch_interval_seconds,
            timeout=self.app_config.http_timeout_seconds
        )

        self._visualizer: Optional[PipelineVisualizer] = PipelineVisualizer() if enable_display else None
        self._snapshot_writer: Optional[SnapshotWriter] = None
        self._control_stamp = 0.0
        self._key_stamps: Dict[str, float] = {}

        self._running = False
        self._frame_count = 0
        self._start_time: Optional[float] = None

        self.set_mode(initial_mode)

        logger.info("[BallTrackerApp] Initialized")

    # ── Mode handling ────────────────────────────────────────────────────────

    @property
    def mode(self) -> str:
        with self._mode_lock:
            return self._mode

    def set_mode(self, mode: str) -> bool:
        """
        Switch tracking mode.

        Leaving game mode (or switching off) hard-resets the state machine:
        pending dwell timers are cancelled and an open recording is discarded
        without upload.
        """
        if mode not in TRACKING_MODES:
            logger.warning(f"[BallTrackerApp] Unknown mode ignored: {mode!r}")
            return False

        with self._mode_lock:
            old_mode = self._mode
            self._mode = mode

        if old_mode == mode:
            return True

        if old_mode == MODE_GAME or mode == MODE_OFF:
            self.pipeline.reset(time.monotonic())
            if self._visualizer is not None:
                self._visualizer.clear()

        logger.info(f"[BallTrackerApp] Mode: {old_mode} -> {mode}")
        self.state.add_event('info', f"Tracking mode: {mode}")
        return True

    def _on_recording_stopped(self, artifact: str):
        self.state.add_event('info', "Preview restored")

    # ── Control file (endpoint -> tracker) ───────────────────────────────────

    def _poll_control(self):
        control = read_control(self.app_config.control_file)
        stamp = control.get("_updated_at", 0.0)
        if not control or stamp <= self._control_stamp:
            return
        self._control_stamp = stamp

        key_stamps = control.get("_key_updated_at") or {}

        def changed(key: str) -> bool:
            return key in control and key_stamps.get(key, stamp) > self._key_stamps.get(key, 0.0)

        if control_server_host_key in control and (
            changed(control_server_host_key) or changed(control_server_port_key)
        ):
            port = control.get(control_server_port_key)
            self.server.set_host(control.get(control_server_host_key), int(port) if port else None)

        # Stale modes stay in the file; only a fresh request overrides the operator
        requested_mode = control.get(control_mode_key)
        if changed(control_mode_key) and requested_mode != self.mode:
            self.set_mode(requested_mode)

        self._key_stamps = {key: key_stamps.get(key, stamp) for key in control if not key.startswith("_")}

    def _publish_state(self):
        """Write pipeline state for the endpoint."""
        sm = self.pipeline.state_machine
        last = self.pipeline.last_result
        largest = last.detection.largest if last is not None else None

        state: Dict[str, Any] = {
            "mode": self.mode,
            "state_machine": sm.get_statistics(),
            "ball_detected": bool(last and last.detection.detected),
            "largest_region": (
                {"x": largest.x, "y": largest.y, "width": largest.width, "height": largest.height}
                if largest else None
            ),
            "thresholds": self.thresholds.get().as_dict(),
            "server": {"host": self.server.get_host(), "port": self.server.get_port()},
            "frames": self._frame_count,
            "recording": self.recorder.is_recording,
            "recent_events": [
                {"ts": ts, "level": level, "msg": msg}
                for ts, level, msg in self.state.get_recent_events()
            ],
            "uploads": self.upload_worker.get_statistics(),
        }
        write_state(state, self.app_config.state_file)

    # ── Main loop ────────────────────────────────────────────────────────────

    def _init_components(self):
        if self._frame_source is None:
            self._frame_source = OpenCVFrameSource(
                self.app_config.video_source,
                queue_size=self.app_config.frame_queue_size,
                target_fps=self.app_config.frame_target_fps,
                testing_mode=self.testing_mode
            )
        self._snapshot_writer = SnapshotWriter(
            self.app_config.snapshot_dir,
            min_interval=self.tracking_config.snapshot_interval_seconds
        )
        # Replace whatever a previous run left behind
        self._publish_state()

        self.upload_worker.start()
        self.fetcher.start_fetching()

    def _signal_handler(self, signum, _frame):
        logger.info(f"[BallTrackerApp] Received signal {signum}, shutting down...")
        self._running = False

    def process_frame(self, frame: Optional[np.ndarray], timestamp: float):
        """Run one captured frame through the pipeline and publish outputs."""
        mode = self.mode
        result = self.pipeline.process_frame(frame, timestamp, mode) if mode != MODE_OFF else None
        if result is None:
            # Off or skipped frame: keep the window responsive to keys
            if self._visualizer is not None:
                self._handle_key_action(self._visualizer.poll_keys())
            return None

        if self._snapshot_writer is not None and frame is not None:
            self._snapshot_writer.maybe_write(frame, result.overlay, self._frame_count)

        if self._visualizer is not None:
            annotated = self._visualizer.annotate(
                result.overlay,
                mode,
                self.pipeline.state_machine.state,
                result.detection.detected,
                self.state.get_recent_events()
            )
            self._handle_key_action(self._visualizer.show(annotated))
        return result

    def _handle_key_action(self, action: Optional[str]):
        if action == 'quit':
            self._running = False
        elif action is not None:
            self.set_mode(action)

    def run(self, max_frames: Optional[int] = None):
        """
        Run until the source ends, a signal arrives or *max_frames* is reached.
        """
        logger.info("[BallTrackerApp] Starting...")
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        self._init_components()
        self._running = True
        self._start_time = time.perf_counter()
        self._frame_count = 0
        poll_every = self.tracking_config.control_poll_frames

        try:
            for frame, timestamp in self._frame_source.frames():
                if not self._running:
                    break
                if max_frames and self._frame_count >= max_frames:
                    break

                self._frame_count += 1
                self.process_frame(frame, timestamp)

                if self._frame_count % poll_every == 0:
                    self._poll_control()
                    self._publish_state()

                if self._frame_count % 300 == 0:
                    logger.info(
                        f"[BallTrackerApp] Frame {self._frame_count}: mode={self.mode} "
                        f"state={self.pipeline.state_machine.state.value}"
                    )
        finally:
            self._cleanup()

    def _cleanup(self):
        logger.info("[BallTrackerApp] Cleaning up...")

        self.fetcher.stop_fetching()
        # Clip in progress at shutdown is finalized and uploaded
        if self.recorder.is_recording:
            self.recorder.stop_and_upload()
        # Let the final clip finish uploading (and be deleted) before exit
        self.upload_worker.stop(timeout=self.app_config.upload_timeout_seconds + 5.0)

        if self._frame_source is not None:
            self._frame_source.cleanup()
        if self._visualizer is not None:
            self._visualizer.cleanup()

        self._publish_state()

        total_time = time.perf_counter() - self._start_time if self._start_time else 0
        stats = self.pipeline.state_machine.get_statistics()
        logger.info("=" * 50)
        logger.info("[BallTrackerApp] Final Statistics:")
        logger.info(f"  Total frames: {self._frame_count}")
        logger.info(f"  Total time: {total_time:.1f}s")
        logger.info(f"  Recordings started: {stats['recordings_started']}")
        logger.info(f"  Uploads: {self.upload_worker.get_statistics()}")
        logger.info("=" * 50)

    def stop(self):
        """Stop the tracker loop."""
        self._running = False
