"""
Threaded Upload Worker.

Pushes finished clips to the simulator server in a background thread so the
frame-analysis loop never waits on network I/O.

Architecture:
- Main thread: frame analysis + state machine + recorder start/stop
- Upload thread: multipart POST of finished artifacts
- Queue-based communication between threads

Every artifact is deleted locally after its upload attempt, whether the
attempt succeeded or not. Failed uploads are reported, never retried.
"""

import os
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from golfsim.constants import upload_field_name
from golfsim.utils.AppLogging import logger


@dataclass
class UploadJob:
    """Job for upload worker."""
    artifact_path: str
    url: str
    content_type: str = 'video/mp4'
    callback: Optional[Callable[[str, bool, str], None]] = None  # (path, ok, message)


def post_file(url: str, path: str, content_type: str, timeout: float) -> requests.Response:
    """POST one file as multipart/form-data under the 'file' field."""
    with open(path, 'rb') as fh:
        files = {upload_field_name: (os.path.basename(path), fh, content_type)}
        return requests.post(url, files=files, timeout=timeout)


class UploadWorker:
    """
    Background worker for artifact uploads.
    """

    def __init__(
        self,
        timeout: float = 120.0,
        max_queue_size: int = 16,
        name: str = "UploadWorker"
    ):
        """
        Args:
            timeout: HTTP timeout per upload (seconds)
            max_queue_size: Maximum pending uploads
            name: Thread name for debugging
        """
        self.timeout = timeout
        self.name = name

        self.job_queue: queue.Queue[UploadJob] = queue.Queue(maxsize=max_queue_size)

        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._stop_event = threading.Event()

        # Statistics
        self.total_uploaded = 0
        self.total_failed = 0
        self.total_dropped = 0

        logger.info(f"[{self.name}] Initialized with queue size {max_queue_size}")

    def start(self):
        """Start background worker thread."""
        if self._running:
            logger.warning(f"[{self.name}] Already running")
            return

        self._running = True
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._worker_loop,
            name=self.name,
            daemon=True
        )
        self._thread.start()
        logger.info(f"[{self.name}] Started")

    def stop(self, timeout: float = 10.0):
        """
        Stop the worker. Pending jobs are drained before the thread exits.

        Args:
            timeout: Max time to wait for thread to finish
        """
        if not self._running:
            return

        logger.info(f"[{self.name}] Stopping...")
        self._running = False
        self._stop_event.set()

        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None

        logger.info(
            f"[{self.name}] Stopped. Uploaded: {self.total_uploaded}, "
            f"Failed: {self.total_failed}, Dropped: {self.total_dropped}"
        )

    def submit(
        self,
        artifact_path: str,
        url: str,
        content_type: str = 'video/mp4',
        callback: Optional[Callable[[str, bool, str], None]] = None
    ) -> bool:
        """
        Queue an artifact for upload.

        Returns:
            True if queued. If the queue is full the artifact is deleted,
            reported through the callback and False is returned.
        """
        job = UploadJob(artifact_path=artifact_path, url=url, content_type=content_type, callback=callback)
        try:
            self.job_queue.put_nowait(job)
            return True
        except queue.Full:
            self.total_dropped += 1
            logger.warning(
                f"[{self.name}] Queue full! Dropped {artifact_path}. "
                f"Total dropped: {self.total_dropped}"
            )
            self._discard(artifact_path)
            self._notify(job, False, "Upload queue full")
            return False

    def _worker_loop(self):
        """Main worker loop - runs in background thread."""
        logger.info(f"[{self.name}] Worker loop started")

        while self._running:
            try:
                job = self.job_queue.get(timeout=0.5)
            except queue.Empty:
                continue
            self.process_job(job)

        # Process remaining jobs before exit
        while True:
            try:
                job = self.job_queue.get_nowait()
            except queue.Empty:
                break
            self.process_job(job)

        logger.info(f"[{self.name}] Worker loop exited")

    def process_job(self, job: UploadJob) -> bool:
        """
        Upload one artifact and delete it locally.

        Returns:
            True if the server answered 2xx
        """
        start_time = time.perf_counter()
        ok = False

        try:
            response = post_file(job.url, job.artifact_path, job.content_type, self.timeout)
            ok = 200 <= response.status_code < 300
            if ok:
                message = "Upload successful"
            else:
                message = f"Upload failed: HTTP {response.status_code} {response.reason}"
        except (requests.RequestException, OSError) as e:
            message = f"Upload error: {e}"
        finally:
            self._discard(job.artifact_path)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        if ok:
            self.total_uploaded += 1
            logger.info(f"[{self.name}] Uploaded {job.artifact_path} -> {job.url} in {elapsed_ms:.0f}ms")
        else:
            self.total_failed += 1
            logger.error(f"[{self.name}] {message} ({job.artifact_path})")

        self._notify(job, ok, message)
        return ok

    def _notify(self, job: UploadJob, ok: bool, message: str):
        if job.callback is None:
            return
        try:
            job.callback(job.artifact_path, ok, message)
        except Exception as e:
            logger.error(f"[{self.name}] Callback error for {job.artifact_path}: {e}", exc_info=True)

    def _discard(self, path: str):
        try:
            os.remove(path)
            logger.debug(f"[{self.name}] Deleted local artifact {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"[{self.name}] Could not delete {path}: {e}")

    def get_queue_size(self) -> int:
        return self.job_queue.qsize()

    def get_statistics(self) -> dict:
        return {
            'running': self._running,
            'queue_size': self.job_queue.qsize(),
            'total_uploaded': self.total_uploaded,
            'total_failed': self.total_failed,
            'total_dropped': self.total_dropped,
        }
