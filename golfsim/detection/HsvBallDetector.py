"""
HSV threshold ball detector.

Segments the ball by color, extracts exterior contours and classifies the
frame by bounding-box size. The overlay keeps only the in-range pixels on a
black background with every candidate rectangle drawn on top.
"""

from typing import List, Optional, Tuple

import cv2
import numpy as np

from golfsim.config.tracking_config import TrackingConfig
from golfsim.detection.BaseDetection import (
    AnalysisResult,
    BaseFrameAnalyzer,
    DetectionResult,
    FrameRegion,
)
from golfsim.detection.ThresholdConfig import ThresholdConfig
from golfsim.utils.AppLogging import logger


class HsvBallDetector(BaseFrameAnalyzer):
    """
    Color-threshold ball detector (single ball, fixed pixel size gate).
    """

    def __init__(
        self,
        min_ball_size: int = 50,
        overlay_color: Tuple[int, int, int] = (0, 0, 255),
        overlay_thickness: int = 2
    ):
        """
        Args:
            min_ball_size: Width and height (px) a region must exceed
            overlay_color: BGR color of candidate rectangles
            overlay_thickness: Rectangle stroke width in pixels
        """
        self.min_ball_size = min_ball_size
        self.overlay_color = overlay_color
        self.overlay_thickness = overlay_thickness

        logger.info(
            f"[HsvBallDetector] Initialized | min_size={min_ball_size}px "
            f"color={overlay_color} thickness={overlay_thickness}"
        )

    @classmethod
    def from_config(cls, tracking_config: TrackingConfig) -> 'HsvBallDetector':
        return cls(
            min_ball_size=tracking_config.min_ball_size,
            overlay_color=tracking_config.overlay_color,
            overlay_thickness=tracking_config.overlay_thickness,
        )

    def build_mask(self, frame: np.ndarray, config: ThresholdConfig) -> np.ndarray:
        """Binary mask of pixels whose H, S and V all lie within bounds."""
        hsv = cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)
        lower = np.array(config.lower, dtype=np.float64)
        upper = np.array(config.upper, dtype=np.float64)
        return cv2.inRange(hsv, lower, upper)

    def find_regions(self, mask: np.ndarray) -> List[FrameRegion]:
        """Bounding rectangles of the exterior contours in the mask."""
        contours, _hierarchy = cv2.findContours(
            mask,
            cv2.RETR_EXTERNAL,
            cv2.CHAIN_APPROX_SIMPLE
        )
        regions = []
        for contour in contours:
            x, y, w, h = cv2.boundingRect(contour)
            regions.append(FrameRegion(int(x), int(y), int(w), int(h)))
        return regions

    def render_overlay(
        self,
        frame: np.ndarray,
        mask: np.ndarray,
        regions: List[FrameRegion]
    ) -> np.ndarray:
        """Black background + in-range pixels + candidate rectangles."""
        overlay = cv2.bitwise_and(frame, frame, mask=mask)
        for region in regions:
            cv2.rectangle(
                overlay,
                (region.x, region.y),
                (region.x + region.width - 1, region.y + region.height - 1),
                self.overlay_color,
                self.overlay_thickness
            )
        return overlay

    def analyze(
        self,
        frame: Optional[np.ndarray],
        config: ThresholdConfig,
        timestamp: float
    ) -> Optional[AnalysisResult]:
        if frame is None or frame.size == 0:
            return None

        mask = self.build_mask(frame, config)
        regions = self.find_regions(mask)

        qualifying = [r for r in regions if r.exceeds(self.min_ball_size)]
        largest = max(qualifying, key=lambda r: r.area) if qualifying else None

        detection = DetectionResult(
            detected=largest is not None,
            timestamp=timestamp,
            regions=regions,
            largest=largest,
        )

        if largest is not None:
            logger.debug(
                f"[HsvBallDetector] Ball at ({largest.x},{largest.y}) "
                f"{largest.width}x{largest.height} | candidates={len(regions)}"
            )

        return AnalysisResult(detection=detection, overlay=self.render_overlay(frame, mask, regions))
