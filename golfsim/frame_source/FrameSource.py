"""
Abstract base class for frame sources.
"""

from abc import ABC, abstractmethod
from typing import Iterator, Optional, Tuple

import numpy as np


class FrameSource(ABC):
    """
    Abstract base class for video frame sources.

    Implementations yield frames in capture order. A frame may be None when
    the capture is not ready yet; consumers skip such cycles.
    """

    @abstractmethod
    def frames(self) -> Iterator[Tuple[Optional[np.ndarray], float]]:
        """
        Yield frames from the source.

        Yields:
            Tuple of (frame, timestamp)
            - frame: numpy array (BGR format) or None
            - timestamp: capture time in seconds (time.monotonic clock)
        """
        pass

    @abstractmethod
    def cleanup(self):
        """Release resources."""
        pass
