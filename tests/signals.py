"""Synthetic signal generators shared by the tests."""

import numpy as np

from chromatic_tuner import SAMPLE_RATE


def generate_sine_wave(
    frequency: float,
    duration_samples: int,
    sample_rate: int = SAMPLE_RATE,
    amplitude: float = 0.8,
) -> np.ndarray:
    """Generate a sine wave at the given frequency."""
    t = np.arange(duration_samples) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t)).astype(np.float64)
