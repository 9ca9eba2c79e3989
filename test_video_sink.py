"""
Tests for OpenCVVideoSink with a fake cv2.VideoWriter.

Validates:
1. open/write/close lifecycle returns the artifact path
2. Frames of another size are resized to the output size
3. Double open and unopenable writers raise SinkError
4. write/close on a closed sink are no-ops
"""

import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

import numpy as np
import pytest

from golfsim.recording import VideoSink as sink_module
from golfsim.recording.VideoSink import OpenCVVideoSink, SinkError


class FakeWriter:
    def __init__(self, path, fourcc, fps, size, opened=True):
        self.path = path
        self.fps = fps
        self.size = size
        self.opened = opened
        self.frames = []
        self.released = False

    def isOpened(self):
        return self.opened

    def write(self, frame):
        self.frames.append(frame)

    def release(self):
        self.released = True


def install_writer(monkeypatch, opened=True):
    writers = []

    def factory(path, fourcc, fps, size):
        writer = FakeWriter(path, fourcc, fps, size, opened=opened)
        writers.append(writer)
        return writer

    monkeypatch.setattr(sink_module.cv2, "VideoWriter", factory)
    return writers


def test_lifecycle_returns_artifact(monkeypatch, tmp_path):
    writers = install_writer(monkeypatch)
    sink = OpenCVVideoSink(fps=25.0, frame_size=(64, 48))
    path = str(tmp_path / "clips" / "VIDEO_20261019_101500.mp4")

    sink.open(path)
    assert sink.is_open
    assert os.path.isdir(tmp_path / "clips")

    for _ in range(3):
        sink.write(np.zeros((48, 64, 3), dtype=np.uint8))

    assert sink.close() == path
    assert not sink.is_open
    assert len(writers[0].frames) == 3
    assert writers[0].released
    assert sink.frames_written == 3
    print("PASS: sink lifecycle")


def test_frames_resized_to_output_size(monkeypatch, tmp_path):
    writers = install_writer(monkeypatch)
    sink = OpenCVVideoSink(frame_size=(64, 48))
    sink.open(str(tmp_path / "clip.mp4"))

    sink.write(np.zeros((120, 160, 3), dtype=np.uint8))
    sink.close()

    assert writers[0].frames[0].shape == (48, 64, 3)
    print("PASS: frames resized")


def test_double_open_raises(monkeypatch, tmp_path):
    install_writer(monkeypatch)
    sink = OpenCVVideoSink()
    sink.open(str(tmp_path / "a.mp4"))

    with pytest.raises(SinkError):
        sink.open(str(tmp_path / "b.mp4"))
    sink.close()
    print("PASS: double open raises")


def test_unopenable_writer_raises(monkeypatch, tmp_path):
    writers = install_writer(monkeypatch, opened=False)
    sink = OpenCVVideoSink()

    with pytest.raises(SinkError):
        sink.open(str(tmp_path / "clip.mp4"))
    assert not sink.is_open
    assert writers[0].released
    print("PASS: unopenable writer raises")


def test_closed_sink_is_noop(monkeypatch):
    install_writer(monkeypatch)
    sink = OpenCVVideoSink()

    sink.write(np.zeros((720, 1280, 3), dtype=np.uint8))
    assert sink.close() is None
    assert sink.frames_written == 0
    print("PASS: closed sink no-op")
