"""
Pipeline visualizer for the operator overlay.

Draws a small status panel on the analyzer overlay and manages the local
OpenCV window. Purely observational: nothing here feeds back into detection.
"""

import time
from typing import List, Optional, Tuple

import cv2
import numpy as np

from golfsim.constants import MODE_GAME, MODE_OFF, MODE_PREVIEW
from golfsim.tracking.DetectionStateMachine import TrackingState


class PipelineVisualizer:
    """
    Handles annotation and display of the detection overlay.

    Keys (window focused):
        g - game mode, p - preview mode, o - tracking off, q - quit
    """

    COLORS = {
        'panel_bg': (30, 30, 35),
        'text_primary': (255, 255, 255),
        'text_secondary': (180, 180, 190),
        'recording': (60, 60, 255),
        'pending': (80, 200, 255),
        'idle': (120, 120, 130),
        'ball': (100, 230, 120),
    }

    STATE_COLORS = {
        TrackingState.IDLE: 'idle',
        TrackingState.PENDING_START: 'pending',
        TrackingState.RECORDING: 'recording',
        TrackingState.PENDING_STOP: 'pending',
    }

    KEY_MODES = {
        ord('g'): MODE_GAME,
        ord('p'): MODE_PREVIEW,
        ord('o'): MODE_OFF,
    }

    FONT = cv2.FONT_HERSHEY_SIMPLEX
    FONT_SCALE = 0.5
    LINE_HEIGHT = 22
    PANEL_PADDING = 10

    def __init__(
        self,
        window_name: str = "GolfSim Ball Tracker",
        display_size: Tuple[int, int] = (960, 540)
    ):
        self.window_name = window_name
        self.display_size = display_size
        self._window_created = False

    def annotate(
        self,
        overlay: np.ndarray,
        mode: str,
        state: TrackingState,
        ball_detected: bool,
        recent_events: Optional[List[Tuple[float, str, str]]] = None
    ) -> np.ndarray:
        """
        Draw mode/state panel and the latest notifications on a copy of the overlay.
        """
        frame = overlay.copy()
        lines = [
            (f"Mode: {mode}", self.COLORS['text_primary']),
            (f"State: {state.value}", self.COLORS[self.STATE_COLORS[state]]),
            (f"Ball: {'yes' if ball_detected else 'no'}",
             self.COLORS['ball'] if ball_detected else self.COLORS['text_secondary']),
        ]

        now = time.time()
        for ts, _level, message in (recent_events or [])[-3:]:
            lines.append((f"{now - ts:4.0f}s {message[:40]}", self.COLORS['text_secondary']))

        panel_h = len(lines) * self.LINE_HEIGHT + 2 * self.PANEL_PADDING
        panel_w = 330
        cv2.rectangle(frame, (10, 10), (10 + panel_w, 10 + panel_h), self.COLORS['panel_bg'], -1)

        y = 10 + self.PANEL_PADDING + 14
        for text, color in lines:
            cv2.putText(frame, text, (10 + self.PANEL_PADDING, y),
                        self.FONT, self.FONT_SCALE, color, 1, cv2.LINE_AA)
            y += self.LINE_HEIGHT

        if state in (TrackingState.RECORDING, TrackingState.PENDING_STOP):
            w = frame.shape[1]
            cv2.circle(frame, (w - 30, 30), 10, self.COLORS['recording'], -1)
            cv2.putText(frame, "REC", (w - 80, 36), self.FONT, self.FONT_SCALE,
                        self.COLORS['recording'], 2, cv2.LINE_AA)

        return frame

    def show(self, frame: np.ndarray) -> Optional[str]:
        """
        Display frame in window.

        Returns:
            'quit', a mode name if a mode key was pressed, otherwise None
        """
        if not self._window_created:
            cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
            self._window_created = True

        cv2.imshow(self.window_name, cv2.resize(frame, self.display_size))
        return self._read_key()

    def poll_keys(self) -> Optional[str]:
        """Read keys without drawing (tracking off). Same return values as show()."""
        if not self._window_created:
            return self.show(np.zeros((self.display_size[1], self.display_size[0], 3), dtype=np.uint8))
        return self._read_key()

    def _read_key(self) -> Optional[str]:
        key = cv2.waitKey(1) & 0xFF
        if key == ord('q'):
            return 'quit'
        return self.KEY_MODES.get(key)

    def clear(self):
        """Blank the window (tracking switched off)."""
        if self._window_created:
            w, h = self.display_size
            cv2.imshow(self.window_name, np.zeros((h, w, 3), dtype=np.uint8))
            cv2.waitKey(1)

    def cleanup(self):
        """Close display window."""
        if self._window_created:
            cv2.destroyWindow(self.window_name)
            self._window_created = False
