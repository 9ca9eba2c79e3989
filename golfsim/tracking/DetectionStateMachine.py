"""
Detection-to-recording state machine.

Turns the stream of per-frame DetectionResults into recording commands with
a dwell-time debounce in both directions:

States:
- IDLE:          Not recording, ball not currently seen.
- PENDING_START: Ball seen, waiting out the dwell time before recording.
- RECORDING:     Recording, ball seen.
- PENDING_STOP:  Recording, ball not seen, waiting out the dwell time
                 before stopping.

Transitions (only in "game" mode; "preview" never touches state):
  IDLE          --seen-->                          PENDING_START
  PENDING_START --seen, held > dwell-->            RECORDING      emit START_RECORDING
  PENDING_START --not seen-->                      IDLE
  RECORDING     --not seen-->                      PENDING_STOP
  PENDING_STOP  --seen-->                          RECORDING
  PENDING_STOP  --not seen, held > dwell-->        IDLE           emit STOP_RECORDING, UPLOAD_ARTIFACT

reset() forces IDLE without emitting anything (tracking toggled off).
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from golfsim.constants import MODE_GAME
from golfsim.detection.BaseDetection import DetectionResult
from golfsim.utils.AppLogging import logger


class TrackingState(str, Enum):
    IDLE = 'IDLE'
    PENDING_START = 'PENDING_START'
    RECORDING = 'RECORDING'
    PENDING_STOP = 'PENDING_STOP'


class RecordingCommand(str, Enum):
    START_RECORDING = 'START_RECORDING'
    STOP_RECORDING = 'STOP_RECORDING'
    UPLOAD_ARTIFACT = 'UPLOAD_ARTIFACT'


class DetectionStateMachine:
    """
    Debounced presence/absence state machine.

    The machine itself cannot fail; it only emits commands. Whatever the
    consumer does with them never feeds back into its state.
    """

    _RECORDING_STATES = (TrackingState.RECORDING, TrackingState.PENDING_STOP)

    def __init__(self, dwell_seconds: float = 1.5, now: float = 0.0):
        """
        Args:
            dwell_seconds: Time a condition must hold (strictly longer) before
                           recording starts or stops
            now: Initial state-entry timestamp
        """
        self.dwell_seconds = dwell_seconds

        self._state = TrackingState.IDLE
        self._state_entered_at = now
        self._last_timestamp: Optional[float] = None

        # Statistics
        self.total_results = 0
        self.out_of_order_dropped = 0
        self.recordings_started = 0
        self.recordings_stopped = 0
        self.resets = 0

        logger.info(f"[DetectionStateMachine] Initialized | dwell={dwell_seconds}s")

    # ── Read-only properties ─────────────────────────────────────────────────

    @property
    def state(self) -> TrackingState:
        return self._state

    @property
    def state_entered_at(self) -> float:
        return self._state_entered_at

    @property
    def is_recording(self) -> bool:
        return self._state in self._RECORDING_STATES

    # ── Transitions ──────────────────────────────────────────────────────────

    def update(self, result: DetectionResult, mode: str) -> List[RecordingCommand]:
        """
        Feed one sampled DetectionResult.

        Args:
            result: Detection outcome for the sampled frame
            mode: Current tracking mode; only "game" drives recording

        Returns:
            Commands to execute, in order (usually empty)
        """
        if mode != MODE_GAME:
            return []

        now = result.timestamp
        if self._last_timestamp is not None and now < self._last_timestamp:
            self.out_of_order_dropped += 1
            logger.warning(
                f"[DetectionStateMachine] Out-of-order result dropped: "
                f"{now:.3f} < {self._last_timestamp:.3f}"
            )
            return []
        self._last_timestamp = now
        self.total_results += 1

        if result.detected:
            return self._on_seen(now)
        return self._on_not_seen(now)

    def _on_seen(self, now: float) -> List[RecordingCommand]:
        if self._state == TrackingState.IDLE:
            self._enter(TrackingState.PENDING_START, now)
        elif self._state == TrackingState.PENDING_STOP:
            # Ball came back before the absence dwell ran out
            self._enter(TrackingState.RECORDING, now)
        elif self._state == TrackingState.PENDING_START:
            if now - self._state_entered_at > self.dwell_seconds:
                self._enter(TrackingState.RECORDING, now)
                self.recordings_started += 1
                return [RecordingCommand.START_RECORDING]
        return []

    def _on_not_seen(self, now: float) -> List[RecordingCommand]:
        if self._state == TrackingState.PENDING_START:
            self._enter(TrackingState.IDLE, now)
        elif self._state == TrackingState.RECORDING:
            self._enter(TrackingState.PENDING_STOP, now)
        elif self._state == TrackingState.PENDING_STOP:
            if now - self._state_entered_at > self.dwell_seconds:
                self._enter(TrackingState.IDLE, now)
                self.recordings_stopped += 1
                return [RecordingCommand.STOP_RECORDING, RecordingCommand.UPLOAD_ARTIFACT]
        return []

    def reset(self, now: float = 0.0):
        """Force IDLE, clearing all pending dwell state. Emits nothing."""
        if self._state != TrackingState.IDLE:
            logger.info(f"[DetectionStateMachine] Reset from {self._state.value}")
        self._state = TrackingState.IDLE
        self._state_entered_at = now
        self._last_timestamp = None
        self.resets += 1

    def _enter(self, new_state: TrackingState, now: float):
        logger.debug(
            f"[DetectionStateMachine] {self._state.value} -> {new_state.value} "
            f"after {now - self._state_entered_at:.2f}s"
        )
        self._state = new_state
        self._state_entered_at = now

    def get_statistics(self) -> Dict[str, Any]:
        return {
            'state': self._state.value,
            'state_entered_at': self._state_entered_at,
            'recording': self.is_recording,
            'total_results': self.total_results,
            'out_of_order_dropped': self.out_of_order_dropped,
            'recordings_started': self.recordings_started,
            'recordings_stopped': self.recordings_stopped,
            'resets': self.resets,
        }
