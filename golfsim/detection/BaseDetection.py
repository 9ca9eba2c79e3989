"""
Base analyzer interface and result types for ball detection.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from golfsim.detection.ThresholdConfig import ThresholdConfig


@dataclass(frozen=True)
class FrameRegion:
    """Axis-aligned bounding rectangle of one contour."""
    x: int
    y: int
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    def exceeds(self, min_size: int) -> bool:
        """True if both sides are strictly larger than min_size."""
        return self.width > min_size and self.height > min_size


@dataclass
class DetectionResult:
    """Frame-level classification outcome."""
    detected: bool
    timestamp: float
    regions: List[FrameRegion] = field(default_factory=list)
    largest: Optional[FrameRegion] = None  # Largest qualifying region


@dataclass
class AnalysisResult:
    """Detection result plus the overlay rendered for the operator."""
    detection: DetectionResult
    overlay: np.ndarray


class BaseFrameAnalyzer(ABC):
    """
    Abstract base class for per-frame ball analyzers.
    """

    @abstractmethod
    def analyze(
        self,
        frame: Optional[np.ndarray],
        config: ThresholdConfig,
        timestamp: float
    ) -> Optional[AnalysisResult]:
        """
        Analyze one frame.

        Args:
            frame: BGR image, or None if capture is not ready
            config: Active threshold snapshot
            timestamp: Capture time in seconds (monotonic)

        Returns:
            AnalysisResult, or None if there was no frame to analyze
        """
        pass
