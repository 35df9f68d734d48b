"""
One-pole noise filters applied to raw samples before analysis.

A high-pass stage strips DC offset and rumble, a low-pass stage strips hiss.
Both keep their running state in an explicit FilterState so a session reset
is just a matter of zeroing two small objects.
"""

import math
from dataclasses import dataclass

import numpy as np
from scipy.signal import lfilter, lfiltic

from .config import require_positive
from .constants import HIGHPASS_CUTOFF, LOWPASS_CUTOFF, SAMPLE_RATE


@dataclass
class FilterState:
    """Running state of a one-pole filter."""

    previous_input: float = 0.0
    previous_output: float = 0.0

    def reset(self):
        self.previous_input = 0.0
        self.previous_output = 0.0


def _time_constant(cutoff: float, sample_rate: float) -> tuple[float, float]:
    """Return (rc, dt) for a corner frequency."""
    cutoff = require_positive("cutoff", cutoff)
    sample_rate = require_positive("sample_rate", sample_rate)
    return 1.0 / (2.0 * math.pi * cutoff), 1.0 / sample_rate


def highpass_alpha(cutoff: float, sample_rate: float) -> float:
    rc, dt = _time_constant(cutoff, sample_rate)
    return rc / (rc + dt)


def lowpass_alpha(cutoff: float, sample_rate: float) -> float:
    rc, dt = _time_constant(cutoff, sample_rate)
    return dt / (rc + dt)


def highpass_sample(value: float, state: FilterState, alpha: float) -> float:
    """Run one sample through the high-pass recurrence, updating state."""
    out = alpha * (state.previous_output + value - state.previous_input)
    if not math.isfinite(out):
        return state.previous_output
    state.previous_input = value
    state.previous_output = out
    return out


def lowpass_sample(value: float, state: FilterState, alpha: float) -> float:
    """Run one sample through the low-pass recurrence, updating state."""
    out = state.previous_output + alpha * (value - state.previous_output)
    if not math.isfinite(out):
        return state.previous_output
    state.previous_output = out
    return out


def filter_sample(
    raw: float,
    hp_state: FilterState,
    lp_state: FilterState,
    cutoff_hp: float,
    cutoff_lp: float,
    sample_rate: float,
) -> float:
    """
    Filter a single sample through the high-pass then low-pass stage.

    A non-finite sample carries no information: both states are left as
    they are and the previous low-pass output is returned.

    Args:
        raw: Input sample
        hp_state: High-pass state (mutated)
        lp_state: Low-pass state (mutated)
        cutoff_hp: High-pass corner frequency in Hz
        cutoff_lp: Low-pass corner frequency in Hz
        sample_rate: Sample rate in Hz

    Returns:
        Filtered sample

    Raises:
        ConfigurationError: If a cutoff or the sample rate is not positive
    """
    hp_alpha = highpass_alpha(cutoff_hp, sample_rate)
    lp_alpha = lowpass_alpha(cutoff_lp, sample_rate)
    if not math.isfinite(raw):
        return lp_state.previous_output
    high = highpass_sample(raw, hp_state, hp_alpha)
    return lowpass_sample(high, lp_state, lp_alpha)


class FilterStage:
    """
    Chunk-level filter stage.

    Applies the same recurrences as filter_sample to whole chunks using
    scipy's lfilter, seeding and reading back the FilterState so chunk
    boundaries are seamless. Chunks containing NaN or infinity go through
    the per-sample path instead.
    """

    def __init__(
        self,
        sample_rate: float = SAMPLE_RATE,
        highpass_cutoff: float = HIGHPASS_CUTOFF,
        lowpass_cutoff: float = LOWPASS_CUTOFF,
        enabled: bool = True,
    ):
        self.highpass = FilterState()
        self.lowpass = FilterState()
        self.enabled = enabled
        self._was_enabled = enabled
        self._last_raw = 0.0
        self.configure(sample_rate, highpass_cutoff, lowpass_cutoff)

    def configure(self, sample_rate: float, highpass_cutoff: float, lowpass_cutoff: float):
        """
        Set sample rate and corner frequencies.

        Raises:
            ConfigurationError: If any value is not positive
        """
        hp_alpha = highpass_alpha(highpass_cutoff, sample_rate)
        lp_alpha = lowpass_alpha(lowpass_cutoff, sample_rate)
        self.sample_rate = float(sample_rate)
        self.highpass_cutoff = float(highpass_cutoff)
        self.lowpass_cutoff = float(lowpass_cutoff)
        self._hp_alpha = hp_alpha
        self._lp_alpha = lp_alpha

    def set_enabled(self, enabled: bool):
        """Request bypass on or off; the switch happens on the next processed chunk."""
        self.enabled = bool(enabled)

    def reset(self):
        self.highpass.reset()
        self.lowpass.reset()
        self._last_raw = 0.0
        self._was_enabled = self.enabled

    def _resume(self):
        """Restart both filters from the last bypassed sample."""
        self.highpass.reset()
        self.lowpass.reset()
        self.highpass.previous_input = self._last_raw

    def process(self, samples: np.ndarray) -> np.ndarray:
        """
        Filter a chunk of samples.

        Args:
            samples: Raw samples

        Returns:
            Filtered samples (or the raw samples when bypassed), always finite
        """
        samples = np.asarray(samples, dtype=np.float64).ravel()
        if len(samples) == 0:
            return samples

        enabled = self.enabled
        if enabled and not self._was_enabled:
            self._resume()
        self._was_enabled = enabled

        if not enabled:
            return self._hold_finite(samples)

        if np.all(np.isfinite(samples)):
            saved = (
                self.highpass.previous_input,
                self.highpass.previous_output,
                self.lowpass.previous_output,
            )
            out = self._process_vectorized(samples)
            if np.all(np.isfinite(out)):
                return out
            # Overflow inside the recurrence; redo sample by sample
            self.highpass.previous_input, self.highpass.previous_output = saved[:2]
            self.lowpass.previous_output = saved[2]

        return self._process_per_sample(samples)

    def _process_vectorized(self, samples: np.ndarray) -> np.ndarray:
        a_hp = self._hp_alpha
        b = [a_hp, -a_hp]
        a = [1.0, -a_hp]
        zi = lfiltic(b, a, y=[self.highpass.previous_output], x=[self.highpass.previous_input])
        high, _ = lfilter(b, a, samples, zi=zi)

        a_lp = self._lp_alpha
        b = [a_lp]
        a = [1.0, a_lp - 1.0]
        zi = lfiltic(b, a, y=[self.lowpass.previous_output])
        low, _ = lfilter(b, a, high, zi=zi)

        self.highpass.previous_input = float(samples[-1])
        self.highpass.previous_output = float(high[-1])
        self.lowpass.previous_output = float(low[-1])
        return low

    def _process_per_sample(self, samples: np.ndarray) -> np.ndarray:
        out = np.empty_like(samples)
        for i, value in enumerate(samples):
            value = float(value)
            if not math.isfinite(value):
                out[i] = self.lowpass.previous_output
                continue
            high = highpass_sample(value, self.highpass, self._hp_alpha)
            out[i] = lowpass_sample(high, self.lowpass, self._lp_alpha)
        return out

    def _hold_finite(self, samples: np.ndarray) -> np.ndarray:
        """Replace non-finite samples with the last finite one seen."""
        finite = np.isfinite(samples)
        if finite.all():
            self._last_raw = float(samples[-1])
            return samples

        idx = np.where(finite, np.arange(len(samples)), -1)
        np.maximum.accumulate(idx, out=idx)
        held = np.where(idx >= 0, samples[np.maximum(idx, 0)], self._last_raw)
        self._last_raw = float(held[-1])
        return held
