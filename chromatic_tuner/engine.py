"""
Real-time tuning engine.

The engine is driven from the audio capture callback. Each chunk is
filtered, appended to the analysis window and, once the window is full,
analysed. The smoothed frequency is mapped to a note and published as an
immutable TunerReading that any other thread may pick up through
latest_reading.

Each session owns its own pipeline (filters, window, smoother, waveform
buffer) and only the capture thread touches it. Starting or stopping a
session swaps the pipeline reference and hands the ReadingSlot to the new
owner, so a pass still running on the old pipeline can neither change the
new one nor publish into it. Settings and mode changes only swap plain
attributes that the next analysis pass reads.
"""

import logging
import threading
from dataclasses import dataclass, replace

import numpy as np

from .analysis_window import AnalysisWindow
from .config import ConfigurationError, TunerConfig, require_positive
from .filters import FilterStage
from .note_mapper import NO_NOTE_INFO, Auto, Manual, NoteInfo, TuningMode, map_frequency
from .smoother import FrequencySmoother
from .spectral_analyzer import SpectralAnalyzer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TunerReading:
    """Published result of one analysis pass."""

    frequency: float = 0.0
    note_info: NoteInfo = NO_NOTE_INFO

    @property
    def note_name(self) -> str:
        return self.note_info.name

    @property
    def octave(self) -> int | None:
        return self.note_info.octave

    @property
    def cents(self) -> float:
        return self.note_info.cents


EMPTY_READING = TunerReading()


def _frozen(samples: np.ndarray) -> np.ndarray:
    samples.flags.writeable = False
    return samples


EMPTY_WAVEFORM = _frozen(np.zeros(0, dtype=np.float64))


class ReadingSlot:
    """
    Single-slot latest-value handoff.

    The writer replaces the whole reading (and the display waveform);
    readers always get complete values and never wait on anything but the
    swap. A writer that passes an owner token is ignored once the slot has
    been handed to someone else.
    """

    def __init__(self, initial: TunerReading = EMPTY_READING):
        self._lock = threading.Lock()
        self._reading = initial
        self._waveform = EMPTY_WAVEFORM
        self._sequence = 0
        self._owner = None

    def open(self, owner):
        """Hand the slot to a new writer and clear it."""
        with self._lock:
            self._owner = owner
            self._clear()

    def close(self):
        """Revoke the current writer and clear the slot."""
        with self._lock:
            self._owner = None
            self._clear()

    def _clear(self):
        self._reading = EMPTY_READING
        self._waveform = EMPTY_WAVEFORM
        self._sequence += 1

    def publish(self, reading: TunerReading, owner=None) -> bool:
        """
        Replace the reading.

        Args:
            reading: New reading
            owner: If given, the reading is dropped unless owner holds the slot

        Returns:
            True if the reading was stored
        """
        with self._lock:
            if owner is not None and owner is not self._owner:
                return False
            self._reading = reading
            self._sequence += 1
            return True

    def publish_waveform(self, waveform: np.ndarray, owner=None) -> bool:
        """Replace the display waveform; does not count as a new reading."""
        waveform = _frozen(np.array(waveform, dtype=np.float64))
        with self._lock:
            if owner is not None and owner is not self._owner:
                return False
            self._waveform = waveform
            return True

    def read(self) -> TunerReading:
        with self._lock:
            return self._reading

    def read_with_sequence(self) -> tuple[TunerReading, int]:
        """Latest reading and how many times the slot has changed so far."""
        with self._lock:
            return self._reading, self._sequence

    def read_waveform(self) -> np.ndarray:
        with self._lock:
            return self._waveform


class _Pipeline:
    """Per-session processing state, written only by the capture thread."""

    def __init__(self, config: TunerConfig):
        self.filters = FilterStage(
            sample_rate=config.sample_rate,
            highpass_cutoff=config.highpass_cutoff,
            lowpass_cutoff=config.lowpass_cutoff,
            enabled=config.noise_filter,
        )
        self.window = AnalysisWindow(config.fft_size)
        self.waveform = AnalysisWindow(config.fft_size // 2)
        self.analyzer = SpectralAnalyzer(
            sample_rate=config.sample_rate,
            fft_size=config.fft_size,
            lowpass_cutoff=config.lowpass_cutoff,
            noise_floor=config.noise_floor,
        )
        self.smoother = FrequencySmoother()


class TunerEngine:
    """
    Pitch detection pipeline for a live tuner.

    Usage:
        engine = TunerEngine()
        engine.start_session(44100)
        engine.process(chunk)          # from the capture callback
        reading = engine.latest_reading  # from the display
    """

    def __init__(self, config: TunerConfig | None = None):
        """
        Initialize engine.

        Args:
            config: Session parameters, validated here

        Raises:
            ConfigurationError: If the configuration is unusable
        """
        self.config = (config or TunerConfig()).validate()
        self._mode: TuningMode = Auto()
        self._pipeline: _Pipeline | None = None
        self._slot = ReadingSlot()

    # Session control

    def start_session(self, sample_rate: int | None = None):
        """
        Start (or restart) a session with freshly initialized state.

        Args:
            sample_rate: Capture sample rate in Hz, defaults to the configured one

        Raises:
            ConfigurationError: If the sample rate is not positive
        """
        config = self.config
        if sample_rate is not None:
            config = config.with_sample_rate(sample_rate)
        config = config.validate()

        pipeline = _Pipeline(config)
        self.config = config
        self._slot.open(pipeline)
        self._pipeline = pipeline
        logger.debug(
            "Session started: %d Hz, window %d, filter %s",
            config.sample_rate,
            config.fft_size,
            "on" if config.noise_filter else "off",
        )

    def stop_session(self):
        """Stop the session; later chunks are ignored until the next start."""
        self._pipeline = None
        self._slot.close()
        logger.debug("Session stopped")

    @property
    def is_active(self) -> bool:
        return self._pipeline is not None

    # Audio path

    def process(self, samples: np.ndarray) -> TunerReading | None:
        """
        Feed one chunk of captured samples.

        Args:
            samples: Normalized samples in [-1, 1]

        Returns:
            The new reading if the chunk completed an analysis pass, else None
        """
        pipeline = self._pipeline
        if pipeline is None:
            return None

        filtered = pipeline.filters.process(samples)
        pipeline.window.push(filtered)
        pipeline.waveform.push(filtered)
        if not self._slot.publish_waveform(pipeline.waveform.snapshot(), owner=pipeline):
            return None

        if not pipeline.window.is_full():
            return None

        estimate = pipeline.analyzer.analyze(pipeline.window.snapshot())
        frequency = pipeline.smoother.update(estimate)
        note_info = map_frequency(frequency, self._mode, self.config.reference_pitch)
        reading = TunerReading(frequency=frequency, note_info=note_info)

        # Dropped if the session was stopped or restarted during the pass
        if not self._slot.publish(reading, owner=pipeline):
            return None
        return reading

    # Display side

    @property
    def latest_reading(self) -> TunerReading:
        return self._slot.read()

    @property
    def reading_slot(self) -> ReadingSlot:
        return self._slot

    def waveform(self) -> np.ndarray:
        """Most recent fft_size/2 filtered samples, oldest first, read-only."""
        return self._slot.read_waveform()

    def spectrum(self) -> np.ndarray:
        """Magnitude spectrum of the last analysis pass."""
        pipeline = self._pipeline
        if pipeline is None:
            return np.zeros(self.config.fft_size // 2, dtype=np.float64)
        return pipeline.analyzer.magnitudes

    # Settings and mode

    def set_reference_pitch(self, reference: float):
        """
        Set the frequency of A4.

        Raises:
            ConfigurationError: If reference is not positive; the old value stays
        """
        try:
            reference = require_positive("reference_pitch", reference)
        except ConfigurationError:
            logger.warning("Rejected reference pitch %r", reference)
            raise
        self.config = replace(self.config, reference_pitch=reference)

    def set_noise_filter(self, enabled: bool):
        self.config = replace(self.config, noise_filter=bool(enabled))
        pipeline = self._pipeline
        if pipeline is not None:
            pipeline.filters.set_enabled(enabled)

    def set_mode(self, mode: TuningMode):
        """Switch between Auto() and Manual(pitch_class); applies on the next pass."""
        if not isinstance(mode, (Auto, Manual)):
            raise TypeError(f"expected Auto or Manual, got {type(mode).__name__}")
        self._mode = mode
        logger.debug("Tuning mode set to %s", mode)

    @property
    def mode(self) -> TuningMode:
        return self._mode

    @property
    def smoothed_frequency(self) -> float:
        pipeline = self._pipeline
        return pipeline.smoother.value if pipeline is not None else 0.0
