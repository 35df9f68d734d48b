"""
Frequency to note name, octave and cents deviation.

Notes are numbered MIDI style (A4 = 69) on an equal-tempered scale anchored
at the reference pitch. Two mappings are offered:

- Auto: the nearest note to the detected frequency, clamped to the piano
  range A0..C8.
- Manual: a user-chosen pitch class; only the octave is inferred, so the
  deviation is always reported against the note being tuned to.
"""

import math
from dataclasses import dataclass

from .constants import (
    A4_NOTE,
    A4_REFERENCE,
    HIGHEST_NOTE,
    LOWEST_NOTE,
    NO_NOTE,
    NOTE_NAMES,
    OCTAVE,
)


@dataclass(frozen=True)
class NoteInfo:
    """A named note with the deviation of a frequency from it."""

    name: str  # "A", "C#", or "--" when no pitch was detected
    octave: int | None  # None when there is no octave to show
    cents: float = 0.0

    @property
    def label(self) -> str:
        """Display label, e.g. "A4", "C#" or "--"."""
        if self.octave is None:
            return self.name
        return f"{self.name}{self.octave}"

    @property
    def detected(self) -> bool:
        return self.name != NO_NOTE


NO_NOTE_INFO = NoteInfo(name=NO_NOTE, octave=None, cents=0.0)


@dataclass(frozen=True)
class Auto:
    """Report the nearest note."""


@dataclass(frozen=True)
class Manual:
    """Report deviation from a fixed pitch class (0=C, ..., 11=B)."""

    pitch_class: int

    def __post_init__(self):
        if not isinstance(self.pitch_class, int) or not 0 <= self.pitch_class < OCTAVE:
            raise ValueError(f"pitch_class must be in 0..11, got {self.pitch_class!r}")

    @property
    def name(self) -> str:
        return NOTE_NAMES[self.pitch_class]


TuningMode = Auto | Manual


def note_position(frequency: float, reference: float = A4_REFERENCE) -> float:
    """Fractional note number of a frequency (A4 = 69)."""
    return 12.0 * math.log2(frequency / reference) + A4_NOTE


def ideal_frequency(note: int, reference: float = A4_REFERENCE) -> float:
    """Equal-tempered frequency of a note number."""
    return reference * 2.0 ** ((note - A4_NOTE) / 12.0)


def cents_between(frequency: float, target: float) -> float:
    return 1200.0 * math.log2(frequency / target)


def note_name(note: int) -> tuple[str, int]:
    """Convert note number to note name and octave."""
    return NOTE_NAMES[note % OCTAVE], note // OCTAVE - 1


def _has_pitch(frequency: float) -> bool:
    return math.isfinite(frequency) and frequency > 0


def map_auto(frequency: float, reference: float = A4_REFERENCE) -> NoteInfo:
    """
    Map a frequency to its nearest note.

    Frequencies outside the piano range still produce a reading: the note
    number is clamped to [21, 108] and cents are measured against the
    clamped note, so the deviation can be far outside +/-50.

    Args:
        frequency: Frequency in Hz
        reference: Frequency of A4 in Hz

    Returns:
        NoteInfo, or the "--" sentinel when frequency <= 0
    """
    if not _has_pitch(frequency):
        return NO_NOTE_INFO

    note = int(round(note_position(frequency, reference)))
    note = max(LOWEST_NOTE, min(HIGHEST_NOTE, note))
    name, octave = note_name(note)
    cents = cents_between(frequency, ideal_frequency(note, reference))
    return NoteInfo(name=name, octave=octave, cents=cents)


def map_manual(frequency: float, pitch_class: int, reference: float = A4_REFERENCE) -> NoteInfo:
    """
    Map a frequency onto the closest octave of a chosen pitch class.

    Three octave candidates around the rough octave of the frequency are
    compared by distance in the log domain. When all three fall outside the
    piano range the in-range note of that pitch class at the nearer end of
    the range is used.

    Args:
        frequency: Frequency in Hz
        pitch_class: Target pitch class, 0=C ... 11=B
        reference: Frequency of A4 in Hz

    Returns:
        NoteInfo for the chosen note; with no pitch, the pitch class name
        without an octave and 0 cents
    """
    target = Manual(pitch_class)
    if not _has_pitch(frequency):
        return NoteInfo(name=target.name, octave=None, cents=0.0)

    rough_octave = int(round(note_position(frequency, reference) / OCTAVE))
    candidates = [
        octave * OCTAVE + pitch_class
        for octave in (rough_octave - 1, rough_octave, rough_octave + 1)
    ]
    candidates = [n for n in candidates if LOWEST_NOTE <= n <= HIGHEST_NOTE]

    if candidates:
        note = min(
            candidates,
            key=lambda n: abs(math.log2(frequency / ideal_frequency(n, reference))),
        )
    else:
        in_range = [n for n in range(LOWEST_NOTE, HIGHEST_NOTE + 1) if n % OCTAVE == pitch_class]
        note = in_range[0] if rough_octave * OCTAVE < LOWEST_NOTE else in_range[-1]

    name, octave = note_name(note)
    cents = cents_between(frequency, ideal_frequency(note, reference))
    return NoteInfo(name=name, octave=octave, cents=cents)


def map_frequency(frequency: float, mode: TuningMode, reference: float = A4_REFERENCE) -> NoteInfo:
    """Map a frequency according to the tuning mode."""
    if isinstance(mode, Manual):
        return map_manual(frequency, mode.pitch_class, reference)
    return map_auto(frequency, reference)
