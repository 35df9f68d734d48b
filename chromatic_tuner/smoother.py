"""
Temporal smoothing of per-frame pitch estimates.

Frame-to-frame estimates jitter with the bin quantization of the transform.
A fixed-weight exponential moving average turns them into a stable displayed
frequency without any tunable state.
"""

import math

from .constants import SMOOTHING_FACTOR


def smooth(previous: float, new_estimate: float) -> float:
    """
    Blend a new estimate into the running value.

    Args:
        previous: Current smoothed frequency
        new_estimate: Latest per-frame estimate

    Returns:
        previous*0.8 + new_estimate*0.2, or previous when the estimate is not finite
    """
    if not math.isfinite(new_estimate):
        return previous
    return previous * (1.0 - SMOOTHING_FACTOR) + new_estimate * SMOOTHING_FACTOR


class FrequencySmoother:
    """Holds the smoothed frequency across analysis passes."""

    def __init__(self):
        self._value = 0.0

    def update(self, new_estimate: float) -> float:
        self._value = smooth(self._value, new_estimate)
        return self._value

    def reset(self):
        self._value = 0.0

    @property
    def value(self) -> float:
        return self._value
