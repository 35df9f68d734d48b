"""
Spectral pitch estimation with harmonic scoring.

The analyzer takes a full analysis window, computes its magnitude spectrum
and picks the bin that looks most like a fundamental: a bin scores its own
magnitude plus a weighted share of the magnitudes at twice and three times
its index. This keeps a strong second harmonic from winning over the note
actually being played. The winning bin is then refined to sub-bin accuracy
by fitting a parabola through it and its neighbours.
"""

import math

import numpy as np

from .constants import FFT_SIZE, HARMONIC_WEIGHTS, LOWPASS_CUTOFF, SAMPLE_RATE


def parabolic_offset(a: float, b: float, c: float) -> float | None:
    """
    Offset of the vertex of the parabola through three equally spaced points.

    Args:
        a: Magnitude left of the peak
        b: Magnitude at the peak
        c: Magnitude right of the peak

    Returns:
        Offset in bins relative to the middle point, or None when the three
        points are (nearly) collinear and the vertex is undefined
    """
    denom = a - 2 * b + c
    if abs(denom) <= 1e-10:
        return None
    offset = 0.5 * (a - c) / denom
    if not math.isfinite(offset):
        return None
    return offset


def harmonic_scores(magnitudes: np.ndarray, limit: int) -> np.ndarray:
    """
    Harmonic-product score for bins [0, limit).

    score[i] = w1*mag[i] + w2*mag[2i] + w3*mag[3i], where a harmonic term is
    left out once its bin falls outside the spectrum. Entry 0 (DC) is
    always zero.
    """
    n_bins = len(magnitudes)
    limit = max(0, min(limit, n_bins))
    scores = np.zeros(limit, dtype=np.float64)
    if limit <= 1:
        return scores

    idx = np.arange(1, limit)
    for harmonic, weight in enumerate(HARMONIC_WEIGHTS, start=1):
        h_idx = idx * harmonic
        valid = h_idx < n_bins
        scores[1:][valid] += weight * magnitudes[h_idx[valid]]
    return scores


class SpectralAnalyzer:
    """
    Estimates the fundamental frequency of a full analysis window.

    The frame is tapered with a Hann window before the transform so that
    the parabolic refinement has a smooth main lobe to fit.
    """

    def __init__(
        self,
        sample_rate: float = SAMPLE_RATE,
        fft_size: int = FFT_SIZE,
        lowpass_cutoff: float = LOWPASS_CUTOFF,
        noise_floor: float = 0.0,
    ):
        """
        Initialize analyzer.

        Args:
            sample_rate: Audio sample rate in Hz
            fft_size: Window length in samples (power of two)
            lowpass_cutoff: Bins above this frequency are never scored
            noise_floor: Best score must exceed this to report a pitch
        """
        self.sample_rate = sample_rate
        self.fft_size = fft_size
        self.lowpass_cutoff = lowpass_cutoff
        self.noise_floor = noise_floor
        self._taper = np.hanning(fft_size)
        self._magnitudes = np.zeros(fft_size // 2, dtype=np.float64)

    def set_sample_rate(self, sample_rate: float):
        self.sample_rate = sample_rate

    def set_lowpass_cutoff(self, cutoff: float):
        self.lowpass_cutoff = cutoff

    def set_noise_floor(self, noise_floor: float):
        self.noise_floor = max(0.0, noise_floor)

    @property
    def magnitudes(self) -> np.ndarray:
        """Magnitude spectrum of the last analysed window (read-only view)."""
        view = self._magnitudes.view()
        view.flags.writeable = False
        return view

    @property
    def search_limit(self) -> int:
        """Exclusive upper bin index considered by the scorer."""
        cutoff_bin = int(math.floor(self.lowpass_cutoff * self.fft_size / self.sample_rate))
        return min(self.fft_size // 2, cutoff_bin)

    def magnitude_spectrum(self, window: np.ndarray) -> np.ndarray:
        """
        Compute fft_size/2 magnitude bins of a window.

        Args:
            window: Exactly fft_size samples

        Returns:
            Magnitudes, index 0 = DC
        """
        window = np.asarray(window, dtype=np.float64)
        if len(window) != self.fft_size:
            raise ValueError(f"expected {self.fft_size} samples, got {len(window)}")
        spectrum = np.fft.rfft(window * self._taper)
        return np.abs(spectrum[: self.fft_size // 2])

    def best_bin(self, magnitudes: np.ndarray) -> int:
        """
        Index of the highest scoring bin, 0 when nothing clears the noise floor.

        np.argmax returns the first maximum, so ties go to the lowest bin.
        """
        scores = harmonic_scores(magnitudes, self.search_limit)
        if len(scores) <= 1:
            return 0
        best = int(np.argmax(scores))
        if scores[best] <= self.noise_floor:
            return 0
        return best

    def refine(self, magnitudes: np.ndarray, index: int) -> float:
        """Sub-bin position of a peak; the integer index at the spectrum edges."""
        if index <= 0 or index >= len(magnitudes) - 1:
            return float(index)
        offset = parabolic_offset(
            magnitudes[index - 1],
            magnitudes[index],
            magnitudes[index + 1],
        )
        if offset is None:
            return float(index)
        return index + offset

    def analyze(self, window: np.ndarray) -> float:
        """
        Estimate the fundamental frequency of a window.

        Args:
            window: Exactly fft_size samples, oldest first

        Returns:
            Frequency in Hz, 0.0 when no pitch was found
        """
        magnitudes = self.magnitude_spectrum(window)
        self._magnitudes = magnitudes

        index = self.best_bin(magnitudes)
        if index == 0:
            return 0.0

        refined = self.refine(magnitudes, index)
        return refined * self.sample_rate / self.fft_size
