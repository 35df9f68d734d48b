"""
chromatic_tuner - Real-time pitch detection and note mapping for a live instrument tuner
"""

from .analysis_window import AnalysisWindow
from .capture import AudioCapture, pcm16_bytes_to_float, pcm16_to_float
from .config import ConfigurationError, TunerConfig
from .constants import A4_REFERENCE, FFT_SIZE, NOTE_NAMES, SAMPLE_RATE
from .engine import ReadingSlot, TunerEngine, TunerReading
from .filters import FilterStage, FilterState, filter_sample
from .note_mapper import Auto, Manual, NoteInfo, TuningMode, map_auto, map_frequency, map_manual
from .settings import TunerSettings, load_settings, save_settings
from .smoother import FrequencySmoother, smooth
from .spectral_analyzer import SpectralAnalyzer

__version__ = "0.1.0"
__all__ = [
    "TunerEngine",
    "TunerReading",
    "ReadingSlot",
    "TunerConfig",
    "ConfigurationError",
    "TunerSettings",
    "load_settings",
    "save_settings",
    "AudioCapture",
    "pcm16_to_float",
    "pcm16_bytes_to_float",
    "FilterStage",
    "FilterState",
    "filter_sample",
    "AnalysisWindow",
    "SpectralAnalyzer",
    "FrequencySmoother",
    "smooth",
    "NoteInfo",
    "TuningMode",
    "Auto",
    "Manual",
    "map_auto",
    "map_manual",
    "map_frequency",
    "SAMPLE_RATE",
    "FFT_SIZE",
    "A4_REFERENCE",
    "NOTE_NAMES",
]
