"""
Engine configuration and validation.
"""

import math
from dataclasses import dataclass, replace

from .constants import (
    A4_REFERENCE,
    CHUNK_SIZE,
    FFT_SIZE,
    HIGHPASS_CUTOFF,
    LOWPASS_CUTOFF,
    SAMPLE_RATE,
)


class ConfigurationError(ValueError):
    """Raised when the engine is given values it cannot run with."""


def require_positive(name: str, value: float) -> float:
    """
    Check that a configuration value is a finite number above zero.

    Args:
        name: Setting name used in the error message
        value: Value to check

    Returns:
        The value as a float

    Raises:
        ConfigurationError: If the value is zero, negative or not finite
    """
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be > 0, got {value}")
    return value


@dataclass(frozen=True)
class TunerConfig:
    """
    Static parameters of a tuning session.

    Attributes:
        sample_rate: Audio sample rate in Hz
        fft_size: Analysis window length (power of two)
        chunk_size: Expected capture block size in samples
        highpass_cutoff: High-pass corner frequency in Hz
        lowpass_cutoff: Low-pass corner frequency in Hz, also bounds the bin search
        reference_pitch: Frequency of A4 in Hz
        noise_filter: Run samples through the filter stage
        noise_floor: Minimum harmonic score needed to report a pitch
    """

    sample_rate: int = SAMPLE_RATE
    fft_size: int = FFT_SIZE
    chunk_size: int = CHUNK_SIZE
    highpass_cutoff: float = HIGHPASS_CUTOFF
    lowpass_cutoff: float = LOWPASS_CUTOFF
    reference_pitch: float = A4_REFERENCE
    noise_filter: bool = True
    noise_floor: float = 0.0

    def validate(self) -> "TunerConfig":
        """
        Check every value, raising on the first bad one.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigurationError: If any value is unusable
        """
        require_positive("sample_rate", self.sample_rate)
        require_positive("highpass_cutoff", self.highpass_cutoff)
        require_positive("lowpass_cutoff", self.lowpass_cutoff)
        require_positive("reference_pitch", self.reference_pitch)

        if not isinstance(self.fft_size, int) or self.fft_size < 4:
            raise ConfigurationError(f"fft_size must be an integer >= 4, got {self.fft_size!r}")
        if self.fft_size & (self.fft_size - 1):
            raise ConfigurationError(f"fft_size must be a power of two, got {self.fft_size}")
        if not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be a positive integer, got {self.chunk_size!r}")
        if not math.isfinite(self.noise_floor) or self.noise_floor < 0:
            raise ConfigurationError(f"noise_floor must be >= 0, got {self.noise_floor}")
        return self

    def with_sample_rate(self, sample_rate: int) -> "TunerConfig":
        return replace(self, sample_rate=sample_rate)

    @property
    def bin_width(self) -> float:
        """Frequency spacing between spectrum bins in Hz."""
        return self.sample_rate / self.fft_size
