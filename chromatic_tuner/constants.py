"""
Shared constants for the tuner engine.
"""

SAMPLE_RATE = 44100
FFT_SIZE = 2048
CHUNK_SIZE = 1024

A4_REFERENCE = 440.0
A4_NOTE = 69
OCTAVE = 12

# Reference pitch bounds offered by the settings collaborator
REFERENCE_MIN = 415.0
REFERENCE_MAX = 466.0

# Playable range (piano A0..C8)
LOWEST_NOTE = 21
HIGHEST_NOTE = 108

NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
NO_NOTE = "--"

# Noise filter corner frequencies in Hz
HIGHPASS_CUTOFF = 20.0
LOWPASS_CUTOFF = 5000.0

# Weights for the fundamental, 2nd and 3rd harmonic
HARMONIC_WEIGHTS = (1.0, 0.5, 0.33)

# Weight given to each new estimate by the smoother
SMOOTHING_FACTOR = 0.2

PCM16_SCALE = 32768.0
