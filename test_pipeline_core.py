"""
Tests for TrackingPipeline.

Validates:
1. Stride sampling: with stride 5, frames 1-4 skipped, frame 5 analyzed
2. Every frame reaches the recorder in game mode, none in preview
3. Analyzer exceptions are logged and swallowed for that frame
4. Command handler exceptions are logged and swallowed
5. Commands are dispatched in emission order
6. reset() returns the state machine to IDLE and aborts the recording
"""

import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

import numpy as np

from golfsim.app.pipeline_core import TrackingPipeline
from golfsim.detection.BaseDetection import AnalysisResult, BaseFrameAnalyzer, DetectionResult
from golfsim.detection.ThresholdConfig import ThresholdConfig, ThresholdStore
from golfsim.tracking.DetectionStateMachine import DetectionStateMachine, RecordingCommand, TrackingState


# ── fakes ────────────────────────────────────────────────────────────────────

class ScriptedAnalyzer(BaseFrameAnalyzer):
    """Returns detected=True/False per call from a script; 'raise' raises."""

    def __init__(self, script=None, default=False):
        self.script = list(script or [])
        self.default = default
        self.calls = []

    def analyze(self, frame, config, timestamp):
        self.calls.append((timestamp, config))
        if frame is None:
            return None
        step = self.script.pop(0) if self.script else self.default
        if step == 'raise':
            raise RuntimeError("corrupt frame")
        return AnalysisResult(
            detection=DetectionResult(detected=step, timestamp=timestamp),
            overlay=frame,
        )


class FakeRecorder:
    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.frames = 0
        self.commands = []
        self.aborted = 0

    def write(self, frame):
        self.frames += 1

    def handle_command(self, command):
        self.commands.append(command)
        if command == self.fail_on:
            raise RuntimeError("disk full")

    def abort(self):
        self.aborted += 1


def make_pipeline(analyzer=None, recorder=None, stride=1, dwell=0.6):
    analyzer = analyzer or ScriptedAnalyzer()
    recorder = recorder or FakeRecorder()
    pipeline = TrackingPipeline(
        analyzer=analyzer,
        state_machine=DetectionStateMachine(dwell_seconds=dwell),
        recorder=recorder,
        thresholds=ThresholdStore(),
        frame_stride=stride,
    )
    return pipeline, analyzer, recorder


FRAME = np.zeros((4, 4, 3), dtype=np.uint8)


def run(pipeline, count, mode='game', start=0.0, step=0.25):
    return [pipeline.process_frame(FRAME, start + i * step, mode) for i in range(count)]


# ── sampling ─────────────────────────────────────────────────────────────────

def test_stride_five():
    pipeline, analyzer, _ = make_pipeline(stride=5)
    results = run(pipeline, 10)

    assert results[:4] == [None] * 4
    assert results[4] is not None
    assert results[5:9] == [None] * 4
    assert results[9] is not None
    assert len(analyzer.calls) == 2
    assert pipeline.frame_count == 10
    print("PASS test_stride_five")


def test_invalid_stride_clamped():
    pipeline, analyzer, _ = make_pipeline(stride=0)
    run(pipeline, 3)
    assert len(analyzer.calls) == 3
    print("PASS test_invalid_stride_clamped")


def test_current_thresholds_used():
    pipeline, analyzer, _ = make_pipeline()
    new_config = ThresholdConfig(1, 2, 3, 4, 5, 6)
    run(pipeline, 1)
    pipeline.thresholds.update(new_config)
    run(pipeline, 1)
    assert analyzer.calls[0][1] == ThresholdConfig()
    assert analyzer.calls[1][1] is new_config
    print("PASS test_current_thresholds_used")


# ── recording feed ───────────────────────────────────────────────────────────

def test_every_frame_forwarded_in_game_mode():
    pipeline, _, recorder = make_pipeline(stride=5)
    run(pipeline, 12, mode='game')
    assert recorder.frames == 12

    run(pipeline, 5, mode='preview')
    assert recorder.frames == 12

    pipeline.process_frame(None, 10.0, 'game')
    assert recorder.frames == 12
    print("PASS test_every_frame_forwarded_in_game_mode")


def test_commands_dispatched_in_order():
    analyzer = ScriptedAnalyzer([True] * 5 + [False] * 5)
    pipeline, _, recorder = make_pipeline(analyzer=analyzer)
    run(pipeline, 10)
    assert recorder.commands == [
        RecordingCommand.START_RECORDING,
        RecordingCommand.STOP_RECORDING,
        RecordingCommand.UPLOAD_ARTIFACT,
    ]
    print("PASS test_commands_dispatched_in_order")


def test_preview_mode_never_dispatches():
    pipeline, _, recorder = make_pipeline(analyzer=ScriptedAnalyzer(default=True))
    results = run(pipeline, 20, mode='preview')
    assert all(r is not None and r.detection.detected for r in results)
    assert recorder.commands == []
    print("PASS test_preview_mode_never_dispatches")


# ── failure isolation ────────────────────────────────────────────────────────

def test_analyzer_exception_swallowed():
    analyzer = ScriptedAnalyzer([True, 'raise', True])
    pipeline, _, _ = make_pipeline(analyzer=analyzer)
    results = run(pipeline, 3)

    assert results[0] is not None
    assert results[1] is None
    assert results[2] is not None
    assert pipeline.analysis_errors == 1
    assert pipeline.state_machine.state == TrackingState.PENDING_START
    print("PASS test_analyzer_exception_swallowed")


def test_command_exception_swallowed():
    analyzer = ScriptedAnalyzer([True] * 5 + [False] * 5)
    recorder = FakeRecorder(fail_on=RecordingCommand.STOP_RECORDING)
    pipeline, _, _ = make_pipeline(analyzer=analyzer, recorder=recorder)
    run(pipeline, 10)

    assert pipeline.command_errors == 1
    # UPLOAD still dispatched after the failing STOP
    assert recorder.commands[-1] == RecordingCommand.UPLOAD_ARTIFACT
    assert pipeline.state_machine.state == TrackingState.IDLE
    print("PASS test_command_exception_swallowed")


def test_missing_frame_skipped():
    pipeline, _, _ = make_pipeline()
    assert pipeline.process_frame(None, 0.0, 'game') is None
    assert pipeline.last_result is None
    print("PASS test_missing_frame_skipped")


# ── reset ────────────────────────────────────────────────────────────────────

def test_reset_aborts_recording():
    pipeline, _, recorder = make_pipeline(analyzer=ScriptedAnalyzer(default=True))
    run(pipeline, 5)
    assert pipeline.state_machine.state == TrackingState.RECORDING

    pipeline.reset(now=2.0)
    assert pipeline.state_machine.state == TrackingState.IDLE
    assert recorder.aborted == 1
    assert recorder.commands == [RecordingCommand.START_RECORDING]
    assert pipeline.last_result is None
    print("PASS test_reset_aborts_recording")
