"""
OpenCV-based frame source for webcams, video files or RTSP streams.

A background reader thread fills a bounded queue that the analysis loop
drains in capture order. Live sources (camera index, rtsp/http URL) survive
dropped reads: the capture is reopened and ``None`` frames are yielded while
it is not ready. Files end at EOF.
"""

import queue
import threading
import time
from typing import Iterator, Optional, Tuple, Union

import cv2
import numpy as np

from golfsim.frame_source.FrameSource import FrameSource
from golfsim.utils.AppLogging import logger

FrameItem = Tuple[Optional[np.ndarray], float]

_LIVE_PREFIXES = ("rtsp://", "rtmp://", "http://", "https://")


class OpenCVFrameSource(FrameSource):
    """
    cv2.VideoCapture wrapper with backpressure, reconnect and graceful shutdown.

    Modes:
    1. Live (default): reader thread + bounded queue
    2. Testing: synchronous reads, no frame drops, no pacing
    """

    def __init__(
        self,
        source: Union[int, str],
        queue_size: int = 30,
        target_fps: Optional[float] = None,
        testing_mode: bool = False,
        max_reconnect_attempts: int = 5,
        reconnect_delay: float = 1.0
    ):
        """
        Args:
            source: Camera index, file path or stream URL
            queue_size: Bounded queue size for live mode
            target_fps: Playback pacing for files (None = file FPS)
            testing_mode: Read synchronously in the caller's thread
            max_reconnect_attempts: Consecutive reopen attempts before a live source gives up
            reconnect_delay: Seconds between reopen attempts
        """
        self.source = source
        self.testing_mode = testing_mode
        self.is_live = isinstance(source, int) or str(source).lower().startswith(_LIVE_PREFIXES)
        self.max_reconnect_attempts = max_reconnect_attempts
        self.reconnect_delay = reconnect_delay

        self.cap = cv2.VideoCapture(source)
        if not self.cap.isOpened():
            raise ValueError(f"Could not open video source: {source}")

        self.source_fps = self.cap.get(cv2.CAP_PROP_FPS) or 30.0
        logger.info(
            f"[OpenCVFrameSource] Source: {source} ({'live' if self.is_live else 'file'}), "
            f"FPS: {self.source_fps}, Size: {int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x"
            f"{int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))}"
        )

        self._stopped = threading.Event()
        self._exhausted = False
        self.frames_read = 0
        self.reconnects = 0
        self.queue_full_events = 0

        # Live sources pace themselves
        fps = target_fps if target_fps and target_fps > 0 else self.source_fps
        self._frame_interval = None if (self.is_live or testing_mode) else 1.0 / fps

        self._queue: Optional[queue.Queue] = None
        self._reader: Optional[threading.Thread] = None
        if not testing_mode:
            self._queue = queue.Queue(maxsize=queue_size)
            self._reader = threading.Thread(target=self._reader_loop, name="FrameReader", daemon=True)
            self._reader.start()

    # ── Capture ──────────────────────────────────────────────────────────────

    def _reopen(self) -> bool:
        self.cap.release()
        self.cap = cv2.VideoCapture(self.source)
        return self.cap.isOpened()

    def _next_item(self, failures: int) -> Tuple[Optional[FrameItem], int]:
        """
        Read one frame.

        Returns:
            (item or None when the source is finished, updated failure count)
        """
        ret, frame = self.cap.read()
        if ret:
            self.frames_read += 1
            return (frame, time.monotonic()), 0

        if not self.is_live:
            logger.info("[OpenCVFrameSource] End of video file")
            return None, failures

        failures += 1
        if failures > self.max_reconnect_attempts:
            logger.error(f"[OpenCVFrameSource] Giving up on {self.source} after {self.max_reconnect_attempts} reconnects")
            return None, failures

        logger.warning(f"[OpenCVFrameSource] Read failed, reconnecting ({failures}/{self.max_reconnect_attempts})")
        self._stopped.wait(self.reconnect_delay)
        if self._reopen():
            self.reconnects += 1
        # Camera not ready this cycle
        return (None, time.monotonic()), failures

    def _reader_loop(self):
        logger.info("[OpenCVFrameSource] Reader started")
        failures = 0

        while not self._stopped.is_set():
            cycle_start = time.perf_counter()
            item, failures = self._next_item(failures)
            if item is None:
                break

            # Blocking put = backpressure on the reader
            while not self._stopped.is_set():
                try:
                    self._queue.put(item, timeout=0.5)
                    break
                except queue.Full:
                    self.queue_full_events += 1
                    if self.queue_full_events % 10 == 1:
                        logger.warning(f"[OpenCVFrameSource] Consumer slow, queue full x{self.queue_full_events}")

            if self._frame_interval is not None:
                remaining = self._frame_interval - (time.perf_counter() - cycle_start)
                if remaining > 0:
                    self._stopped.wait(remaining)

        self._exhausted = True
        logger.info(f"[OpenCVFrameSource] Reader stopped after {self.frames_read} frames")

    # ── FrameSource ──────────────────────────────────────────────────────────

    def frames(self) -> Iterator[FrameItem]:
        if self.testing_mode:
            failures = 0
            while not self._stopped.is_set():
                item, failures = self._next_item(failures)
                if item is None:
                    break
                yield item
            return

        while not (self._exhausted and self._queue.empty()):
            try:
                yield self._queue.get(timeout=0.1)
            except queue.Empty:
                if self._stopped.is_set():
                    break

    def cleanup(self):
        """Stop the reader, drop queued frames and release the capture."""
        self._stopped.set()

        if self._reader is not None and self._reader.is_alive():
            self._reader.join(timeout=3.0)
            if self._reader.is_alive():
                logger.warning("[OpenCVFrameSource] Reader thread did not stop cleanly")

        if self._queue is not None:
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break

        self.cap.release()
        logger.info(
            f"[OpenCVFrameSource] Cleanup complete | frames={self.frames_read} "
            f"reconnects={self.reconnects} queue_full={self.queue_full_events}"
        )
