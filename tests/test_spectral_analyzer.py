"""
Tests for the spectral analyzer using synthetic signals.

These tests generate sine waves at known frequencies and check bin
selection, harmonic scoring and sub-bin refinement.
"""

import numpy as np
import pytest

from chromatic_tuner.spectral_analyzer import SpectralAnalyzer, harmonic_scores, parabolic_offset
from tests.signals import generate_sine_wave

SAMPLE_RATE = 44100
FFT_SIZE = 2048


class TestHarmonicScores:

    def test_weights(self):
        mags = np.zeros(16)
        mags[4], mags[8], mags[12] = 1.0, 2.0, 3.0
        scores = harmonic_scores(mags, 16)
        assert scores[4] == pytest.approx(1.0 + 0.5 * 2.0 + 0.33 * 3.0)
        assert scores[0] == 0.0

    def test_harmonics_beyond_spectrum_are_dropped(self):
        mags = np.zeros(10)
        mags[4], mags[8] = 1.0, 2.0
        scores = harmonic_scores(mags, 10)
        assert scores[4] == pytest.approx(2.0)  # 3*4 = 12 is out of range
        assert scores[8] == pytest.approx(2.0)

    def test_limit_bounds_scored_bins(self):
        scores = harmonic_scores(np.ones(32), 5)
        assert len(scores) == 5


class TestParabolicOffset:

    def test_symmetric_peak(self):
        assert parabolic_offset(1.0, 2.0, 1.0) == pytest.approx(0.0)

    def test_skewed_peak(self):
        # Vertex of y = -(x - 0.25)^2 sampled at -1, 0, 1
        a, b, c = -(1.25**2), -(0.25**2), -(0.75**2)
        assert parabolic_offset(a, b, c) == pytest.approx(0.25)

    def test_flat_peak(self):
        assert parabolic_offset(1.0, 1.0, 1.0) is None


class TestSpectralAnalyzer:

    def setup_method(self):
        self.analyzer = SpectralAnalyzer(SAMPLE_RATE, FFT_SIZE, lowpass_cutoff=5000.0)

    def test_a4_bin_and_frequency(self):
        """440 Hz lands on bin 20 (440*2048/44100 = 20.4) and refines to within 1 Hz."""
        window = generate_sine_wave(440.0, FFT_SIZE, SAMPLE_RATE)
        mags = self.analyzer.magnitude_spectrum(window)

        assert len(mags) == FFT_SIZE // 2
        assert self.analyzer.best_bin(mags) == 20
        assert self.analyzer.analyze(window) == pytest.approx(440.0, abs=1.0)

    @pytest.mark.parametrize("frequency", [110.0, 196.0, 329.63, 523.25, 880.0])
    def test_other_notes(self, frequency):
        window = generate_sine_wave(frequency, FFT_SIZE, SAMPLE_RATE)
        bin_width = SAMPLE_RATE / FFT_SIZE
        assert abs(self.analyzer.analyze(window) - frequency) < 0.1 * bin_width

    def test_silence(self):
        assert self.analyzer.analyze(np.zeros(FFT_SIZE)) == 0.0
        assert np.all(self.analyzer.magnitudes == 0.0)

    def test_fundamental_beats_stronger_second_harmonic(self):
        """A weaker fundamental still wins when its octave is strong."""
        window = generate_sine_wave(220.0, FFT_SIZE, SAMPLE_RATE, amplitude=0.6)
        window += generate_sine_wave(440.0, FFT_SIZE, SAMPLE_RATE, amplitude=0.8)
        mags = self.analyzer.magnitude_spectrum(window)

        assert int(np.argmax(mags)) == 20
        assert self.analyzer.best_bin(mags) == 10
        assert self.analyzer.analyze(window) == pytest.approx(220.0, abs=2.0)

    def test_search_limited_by_lowpass_cutoff(self):
        self.analyzer.set_lowpass_cutoff(300.0)
        assert self.analyzer.search_limit == 13  # floor(300 * 2048 / 44100)

        window = generate_sine_wave(440.0, FFT_SIZE, SAMPLE_RATE)
        mags = self.analyzer.magnitude_spectrum(window)
        assert self.analyzer.best_bin(mags) < 13

    def test_search_limit_capped_at_bin_count(self):
        self.analyzer.set_lowpass_cutoff(40000.0)
        assert self.analyzer.search_limit == FFT_SIZE // 2

    def test_ties_pick_lowest_bin(self):
        analyzer = SpectralAnalyzer(sample_rate=64, fft_size=64, lowpass_cutoff=32.0)
        mags = np.zeros(32)
        mags[5] = mags[7] = 1.0
        assert analyzer.best_bin(mags) == 5

    def test_refine_skips_edges(self):
        mags = np.array([0.0, 3.0, 1.0, 0.5])
        assert self.analyzer.refine(mags, 0) == 0.0
        assert self.analyzer.refine(mags, 3) == 3.0

    def test_refine_flat_peak(self):
        mags = np.array([0.0, 1.0, 1.0, 1.0, 0.0])
        assert self.analyzer.refine(mags, 2) == 2.0

    def test_noise_floor(self):
        self.analyzer.set_noise_floor(1e9)
        window = generate_sine_wave(440.0, FFT_SIZE, SAMPLE_RATE)
        assert self.analyzer.analyze(window) == 0.0

    def test_wrong_window_length(self):
        with pytest.raises(ValueError):
            self.analyzer.analyze(np.zeros(1000))
