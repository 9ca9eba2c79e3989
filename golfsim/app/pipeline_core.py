"""
Core pipeline: stride sampling → HSV analysis → debounce → recording.

This module handles the per-frame processing without UI, endpoint or
frame-source concerns. Nothing raised while analyzing a frame or executing
a command escapes process_frame(); the sampling loop keeps running across
bad frames.
"""

from typing import List, Optional

import numpy as np

from golfsim.constants import MODE_GAME
from golfsim.detection.BaseDetection import AnalysisResult, BaseFrameAnalyzer
from golfsim.detection.ThresholdConfig import ThresholdStore
from golfsim.recording.RecordingController import RecordingController
from golfsim.tracking.DetectionStateMachine import DetectionStateMachine, RecordingCommand
from golfsim.utils.AppLogging import logger


class TrackingPipeline:
    """
    Single-threaded frame pipeline.

    Responsibilities:
    - Forward every captured frame to an active recording
    - Analyze every Nth frame with the current threshold snapshot
    - Feed results to the state machine in capture order
    - Dispatch emitted commands to the recording controller
    """

    def __init__(
        self,
        analyzer: BaseFrameAnalyzer,
        state_machine: DetectionStateMachine,
        recorder: RecordingController,
        thresholds: ThresholdStore,
        frame_stride: int = 5
    ):
        self.analyzer = analyzer
        self.state_machine = state_machine
        self.recorder = recorder
        self.thresholds = thresholds
        self.frame_stride = max(1, frame_stride)

        self._frame_counter = 0
        self.last_result: Optional[AnalysisResult] = None
        self.last_commands: List[RecordingCommand] = []

        self.analysis_errors = 0
        self.command_errors = 0

        logger.info(f"[TrackingPipeline] Initialized | stride={self.frame_stride}")

    @property
    def frame_count(self) -> int:
        return self._frame_counter

    def process_frame(
        self,
        frame: Optional[np.ndarray],
        timestamp: float,
        mode: str
    ) -> Optional[AnalysisResult]:
        """
        Process one captured frame.

        Args:
            frame: BGR frame, or None if the capture is not ready
            timestamp: Capture time in seconds (monotonic)
            mode: Current tracking mode

        Returns:
            AnalysisResult for sampled frames, None for skipped/failed frames
        """
        self._frame_counter += 1

        if frame is not None and mode == MODE_GAME:
            self.recorder.write(frame)

        if self._frame_counter % self.frame_stride != 0:
            return None

        try:
            result = self.analyzer.analyze(frame, self.thresholds.get(), timestamp)
        except Exception as e:
            self.analysis_errors += 1
            logger.error(f"[TrackingPipeline] Analysis failed on frame {self._frame_counter}: {e}", exc_info=True)
            return None

        if result is None:
            return None
        self.last_result = result

        commands = self.state_machine.update(result.detection, mode)
        self.last_commands = commands
        for command in commands:
            logger.info(f"[TrackingPipeline] {command.value} at frame {self._frame_counter}")
            try:
                self.recorder.handle_command(command)
            except Exception as e:
                self.command_errors += 1
                logger.error(f"[TrackingPipeline] Command {command.value} failed: {e}", exc_info=True)

        return result

    def reset(self, now: float = 0.0):
        """
        Hard reset: back to IDLE and discard any open recording.

        Never triggers an upload.
        """
        self.state_machine.reset(now)
        self.recorder.abort()
        self.last_result = None
        self.last_commands = []
