"""
HSV threshold configuration shared between the config fetcher and the
frame analyzer.

ThresholdConfig is immutable; the ThresholdStore swaps whole snapshots under
a lock so a reader never observes a half-updated set of bounds.
"""

import threading
from dataclasses import dataclass, astuple
from typing import Any, Dict, Optional, Tuple

from golfsim.constants import HSV_PAYLOAD_FIELDS, hsv_payload_key
from golfsim.utils.AppLogging import logger


class ThresholdPayloadError(ValueError):
    """Remote threshold payload is missing fields or has non-integer values."""


@dataclass(frozen=True)
class ThresholdConfig:
    """
    Lower/upper bound per HSV channel.

    Inverted bounds (min > max) are accepted and simply match nothing.
    """
    hue_min: int = 0
    hue_max: int = 255
    saturation_min: int = 0
    saturation_max: int = 255
    value_min: int = 0
    value_max: int = 255

    @property
    def lower(self) -> Tuple[int, int, int]:
        return self.hue_min, self.saturation_min, self.value_min

    @property
    def upper(self) -> Tuple[int, int, int]:
        return self.hue_max, self.saturation_max, self.value_max

    @property
    def is_inverted(self) -> bool:
        """True if any channel has min > max."""
        return any(lo > hi for lo, hi in zip(self.lower, self.upper))

    def as_dict(self) -> Dict[str, int]:
        return dict(zip(HSV_PAYLOAD_FIELDS, astuple(self)))

    @classmethod
    def from_payload(cls, payload: Any) -> 'ThresholdConfig':
        """
        Build a config from the remote JSON document.

        Expected shape::

            {"hsv_vals": {"hue_min": 20, "hue_max": 40, ...}}

        Raises:
            ThresholdPayloadError: If the document does not have that shape.
        """
        if not isinstance(payload, dict) or not isinstance(payload.get(hsv_payload_key), dict):
            raise ThresholdPayloadError(f"missing '{hsv_payload_key}' object")

        values = payload[hsv_payload_key]
        kwargs = {}
        for name in HSV_PAYLOAD_FIELDS:
            if name not in values:
                raise ThresholdPayloadError(f"missing field '{name}'")
            value = values[name]
            # bool is an int subclass; reject it along with floats/strings
            if isinstance(value, bool) or not isinstance(value, int):
                raise ThresholdPayloadError(f"field '{name}' is not an integer: {value!r}")
            kwargs[name] = value
        return cls(**kwargs)


class ThresholdStore:
    """
    Synchronized cell holding the active ThresholdConfig.

    Written by ConfigFetcher, read by the frame analysis loop.
    """

    def __init__(self, initial: Optional[ThresholdConfig] = None):
        self._lock = threading.Lock()
        self._config = initial or ThresholdConfig()
        self._version = 0

    def get(self) -> ThresholdConfig:
        with self._lock:
            return self._config

    @property
    def version(self) -> int:
        """Number of times a different config has been applied."""
        with self._lock:
            return self._version

    def update(self, new_config: ThresholdConfig) -> bool:
        """
        Swap in a new snapshot if it differs from the current one.

        Returns:
            True if the active config changed
        """
        with self._lock:
            if new_config == self._config:
                changed = False
            else:
                old = self._config
                self._config = new_config
                self._version += 1
                changed = True

        if changed:
            logger.info(f"[ThresholdStore] HSV values changed: {old.as_dict()} -> {new_config.as_dict()}")
            if new_config.is_inverted:
                logger.warning(f"[ThresholdStore] Inverted HSV range, mask will match nothing: {new_config.as_dict()}")
        else:
            logger.debug("[ThresholdStore] HSV values did not change")
        return changed
