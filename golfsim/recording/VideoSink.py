"""
Video output sinks.

The recording controller only calls open/close around the recording window
and forwards frames; the sink owns encoding and muxing.
"""

import os
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import cv2
import numpy as np

from golfsim.utils.AppLogging import logger


class SinkError(RuntimeError):
    """The sink could not be opened or written."""


class OutputSink(ABC):
    """
    Abstract base class for video output sinks.
    """

    @abstractmethod
    def open(self, path: str):
        """
        Open the sink for writing.

        Raises:
            SinkError: If the output cannot be created
        """
        pass

    @abstractmethod
    def write(self, frame: np.ndarray):
        """Append one frame. No-op if the sink is not open."""
        pass

    @abstractmethod
    def close(self) -> Optional[str]:
        """
        Finalize the output and release resources.

        Returns:
            Path of the finished artifact, or None if nothing was open
        """
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass


class OpenCVVideoSink(OutputSink):
    """
    MP4 sink backed by cv2.VideoWriter.

    Frames are resized to the configured output size if they differ.
    """

    def __init__(
        self,
        fps: float = 30.0,
        frame_size: Tuple[int, int] = (1280, 720),
        fourcc: str = 'mp4v'
    ):
        self.fps = fps
        self.frame_size = frame_size
        self.fourcc = fourcc

        self._writer: Optional[cv2.VideoWriter] = None
        self._path: Optional[str] = None
        self.frames_written = 0

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    def open(self, path: str):
        if self._writer is not None:
            raise SinkError(f"Sink already open: {self._path}")

        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        writer = cv2.VideoWriter(
            path,
            cv2.VideoWriter_fourcc(*self.fourcc),
            self.fps,
            self.frame_size
        )
        if not writer.isOpened():
            writer.release()
            raise SinkError(f"Could not open video writer: {path}")

        self._writer = writer
        self._path = path
        self.frames_written = 0
        logger.info(f"[OpenCVVideoSink] Opened {path} ({self.frame_size[0]}x{self.frame_size[1]} @ {self.fps} FPS)")

    def write(self, frame: np.ndarray):
        if self._writer is None or frame is None:
            return

        h, w = frame.shape[:2]
        if (w, h) != self.frame_size:
            frame = cv2.resize(frame, self.frame_size)
        self._writer.write(frame)
        self.frames_written += 1

    def close(self) -> Optional[str]:
        if self._writer is None:
            return None

        self._writer.release()
        path = self._path
        self._writer = None
        self._path = None
        logger.info(f"[OpenCVVideoSink] Closed {path} ({self.frames_written} frames)")
        return path
