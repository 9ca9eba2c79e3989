"""
Recording lifecycle controller.

Owns the output sink session and turns recording commands into
open/close/upload actions. Ordering guarantee: a session is closed (sink
released) strictly before its artifact is handed to the upload worker.
"""

import os
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

import numpy as np

from golfsim.constants import upload_endpoint
from golfsim.network.ServerAddress import ServerAddress
from golfsim.recording.UploadWorker import UploadWorker
from golfsim.recording.VideoSink import OutputSink, SinkError
from golfsim.tracking.DetectionStateMachine import RecordingCommand
from golfsim.utils.AppLogging import logger


@dataclass
class RecordingSession:
    """Active recording window."""
    path: str
    opened_at: float


class RecordingController:
    """
    Start/stop/upload coordinator for highlight clips.

    Double-start and stop-while-idle are reported no-ops. Failures are
    reported through ``on_notify(level, message)`` and never raised into
    the caller's loop.
    """

    def __init__(
        self,
        sink: OutputSink,
        upload_worker: UploadWorker,
        server: ServerAddress,
        recording_dir: str = "data/recordings",
        on_notify: Optional[Callable[[str, str], None]] = None
    ):
        self.sink = sink
        self.upload_worker = upload_worker
        self.server = server
        self.recording_dir = recording_dir

        # Callbacks (set by orchestrator)
        # NOTE: upload results arrive from the worker thread
        self.on_notify = on_notify
        self.on_recording_stopped: Optional[Callable[[str], None]] = None

        self._lock = threading.Lock()
        self._session: Optional[RecordingSession] = None
        self._pending_artifact: Optional[str] = None  # stopped, awaiting UPLOAD_ARTIFACT

        self.total_recordings = 0

        os.makedirs(recording_dir, exist_ok=True)
        logger.info(f"[RecordingController] Initialized | dir={recording_dir}")

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._session is not None

    @property
    def session(self) -> Optional[RecordingSession]:
        with self._lock:
            return self._session

    def _new_artifact_path(self) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return os.path.join(self.recording_dir, f"VIDEO_{timestamp}.mp4")

    def start(self) -> Optional[str]:
        """
        Open a new recording.

        Returns:
            Output path, or None if already recording or the sink failed
        """
        with self._lock:
            if self._session is not None:
                already = self._session.path
                path = None
            else:
                already = None
                path = self._new_artifact_path()
                try:
                    self.sink.open(path)
                except SinkError as e:
                    self._report('error', f"Start recording failed: {e}")
                    return None
                self._session = RecordingSession(path=path, opened_at=time.time())
                self.total_recordings += 1

        if already is not None:
            self._report('warning', f"Start ignored, already recording to {already}")
            return None

        logger.info(f"[RecordingController] Recording started: {path}")
        self._report('info', "Recording started")
        return path

    def write(self, frame: np.ndarray):
        """Forward a frame to the sink while a session is open."""
        with self._lock:
            if self._session is None:
                return
            try:
                self.sink.write(frame)
            except Exception as e:
                logger.error(f"[RecordingController] Frame write failed: {e}")

    def stop(self) -> Optional[str]:
        """
        Finalize the current recording.

        Returns:
            Path of the finished artifact, or None if nothing was recording
        """
        with self._lock:
            session = self._session
            self._session = None
            if session is None:
                artifact = None
            else:
                try:
                    artifact = self.sink.close() or session.path
                except Exception as e:
                    logger.error(f"[RecordingController] Sink close failed: {e}")
                    artifact = session.path

        if session is None:
            self._report('warning', "Stop ignored, not recording")
            return None

        duration = time.time() - session.opened_at
        logger.info(f"[RecordingController] Recording stopped: {artifact} ({duration:.1f}s)")
        self._report('info', "Recording stopped")
        if self.on_recording_stopped:
            self.on_recording_stopped(artifact)
        return artifact

    def upload(self, artifact: Optional[str]) -> bool:
        """
        Hand a finished artifact to the upload worker (non-blocking).

        Returns:
            True if the upload was queued
        """
        if artifact is None:
            return False

        url = self.server.url(upload_endpoint)
        if url is None:
            self._report('error', "The server's IP address is not set")
            _remove_quietly(artifact)
            return False

        return self.upload_worker.submit(artifact, url, callback=self._on_upload_done)

    def stop_and_upload(self) -> bool:
        """Stop, then upload the finished artifact."""
        return self.upload(self.stop())

    def abort(self):
        """Release an open session without uploading and delete the partial file."""
        with self._lock:
            session = self._session
            self._session = None
            if session is not None:
                try:
                    self.sink.close()
                except Exception as e:
                    logger.error(f"[RecordingController] Sink close failed during abort: {e}")

        if session is not None:
            _remove_quietly(session.path)
            logger.info(f"[RecordingController] Recording aborted: {session.path}")
            self._report('info', "Recording cancelled")

    def handle_command(self, command: RecordingCommand):
        """
        Execute one state-machine command.

        STOP_RECORDING keeps the finished artifact until the UPLOAD_ARTIFACT
        that follows it.
        """
        if command == RecordingCommand.START_RECORDING:
            self.start()
        elif command == RecordingCommand.STOP_RECORDING:
            self._pending_artifact = self.stop()
        elif command == RecordingCommand.UPLOAD_ARTIFACT:
            artifact = self._pending_artifact
            self._pending_artifact = None
            self.upload(artifact)

    def _on_upload_done(self, artifact: str, ok: bool, message: str):
        self._report('info' if ok else 'error', message)

    def _report(self, level: str, message: str):
        if level == 'error':
            logger.error(f"[RecordingController] {message}")
        elif level == 'warning':
            logger.warning(f"[RecordingController] {message}")

        if self.on_notify:
            try:
                self.on_notify(level, message)
            except Exception as e:
                logger.error(f"[RecordingController] Notify callback error: {e}")


def _remove_quietly(path: str):
    try:
        os.remove(path)
    except OSError:
        pass
