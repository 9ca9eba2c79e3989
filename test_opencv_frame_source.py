"""
Tests for OpenCVFrameSource with a scripted cv2.VideoCapture.

Validates:
1. File sources yield every frame in order and end at EOF
2. Live sources yield None while reconnecting and resume after reopen
3. Live sources give up after max_reconnect_attempts
4. Threaded mode delivers the same frames through the queue
5. An unopenable source raises ValueError
"""

import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

import numpy as np
import pytest

from golfsim.frame_source import OpenCvFrameSource as source_module
from golfsim.frame_source.OpenCvFrameSource import OpenCVFrameSource


# ── helpers ──────────────────────────────────────────────────────────────────

def make_frame(value):
    return np.full((4, 4, 3), value, dtype=np.uint8)


class FakeCapture:
    def __init__(self, frames, opened=True):
        self._frames = list(frames)
        self._opened = opened
        self.released = False

    def isOpened(self):
        return self._opened

    def read(self):
        if self._frames:
            return True, self._frames.pop(0)
        return False, None

    def get(self, prop):
        return 0

    def release(self):
        self.released = True


def install_captures(monkeypatch, scripts):
    """Each VideoCapture() call consumes the next frame script (empty once exhausted)."""
    remaining = list(scripts)
    created = []

    def factory(source):
        cap = FakeCapture(remaining.pop(0) if remaining else [])
        created.append(cap)
        return cap

    monkeypatch.setattr(source_module.cv2, "VideoCapture", factory)
    return created


def values(items):
    return [None if frame is None else int(frame[0, 0, 0]) for frame, _ in items]


# ── tests ────────────────────────────────────────────────────────────────────

def test_file_source_ends_at_eof(monkeypatch):
    install_captures(monkeypatch, [[make_frame(1), make_frame(2), make_frame(3)]])

    src = OpenCVFrameSource("clip.mp4", testing_mode=True)
    items = list(src.frames())
    src.cleanup()

    assert values(items) == [1, 2, 3]
    assert src.frames_read == 3
    assert src.reconnects == 0
    print("PASS: file source ends at EOF")


def test_timestamps_are_monotonic(monkeypatch):
    install_captures(monkeypatch, [[make_frame(i) for i in range(5)]])

    src = OpenCVFrameSource("clip.mp4", testing_mode=True)
    stamps = [ts for _, ts in src.frames()]
    src.cleanup()

    assert stamps == sorted(stamps)
    print("PASS: timestamps are monotonic")


def test_live_source_reconnects_with_none_frames(monkeypatch):
    created = install_captures(monkeypatch, [[make_frame(1), make_frame(2)], [make_frame(3)]])

    src = OpenCVFrameSource(0, testing_mode=True, max_reconnect_attempts=2, reconnect_delay=0)
    items = list(src.frames())
    src.cleanup()

    # drop -> None, reopen delivers 3, then two more empty reopens before giving up
    assert values(items) == [1, 2, None, 3, None, None]
    assert src.reconnects == 3
    assert all(cap.released for cap in created)
    print("PASS: live source reconnects with None frames")


def test_live_source_gives_up_after_max_attempts(monkeypatch):
    install_captures(monkeypatch, [[make_frame(7)]])

    src = OpenCVFrameSource("rtsp://camera.local/stream", testing_mode=True,
                            max_reconnect_attempts=1, reconnect_delay=0)
    items = list(src.frames())
    src.cleanup()

    assert src.is_live
    assert values(items) == [7, None]
    print("PASS: live source gives up")


def test_threaded_mode_delivers_all_frames(monkeypatch):
    install_captures(monkeypatch, [[make_frame(i) for i in range(1, 6)]])

    src = OpenCVFrameSource("clip.mp4", queue_size=2, target_fps=200)
    items = list(src.frames())
    src.cleanup()

    assert values(items) == [1, 2, 3, 4, 5]
    print("PASS: threaded mode delivers all frames")


def test_unopenable_source_raises(monkeypatch):
    monkeypatch.setattr(source_module.cv2, "VideoCapture", lambda source: FakeCapture([], opened=False))

    with pytest.raises(ValueError):
        OpenCVFrameSource("missing.mp4", testing_mode=True)
    print("PASS: unopenable source raises")
