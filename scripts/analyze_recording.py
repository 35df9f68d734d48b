"""
Run the tuner engine frame by frame over a recording.

Loads a mono .npy recording (float samples, or int16 PCM), feeds it to the
engine in capture-sized chunks and prints every reading. With --plot the
smoothed frequency track and cents deviation are saved as a PNG.

Usage:
    python scripts/analyze_recording.py take_A4.npy
    python scripts/analyze_recording.py take_E2.npy --note E --plot
"""

import argparse
from pathlib import Path

import matplotlib
import numpy as np

matplotlib.use('Agg')
import matplotlib.pyplot as plt

from chromatic_tuner.capture import pcm16_to_float
from chromatic_tuner.config import TunerConfig
from chromatic_tuner.constants import CHUNK_SIZE, NOTE_NAMES, SAMPLE_RATE
from chromatic_tuner.engine import TunerEngine
from chromatic_tuner.note_mapper import Auto, Manual


def load_recording(path: Path) -> np.ndarray:
    audio = np.load(path)
    if audio.ndim > 1:
        audio = audio[:, 0]
    if audio.dtype == np.int16:
        return pcm16_to_float(audio)
    return audio.astype(np.float64)


def analyze(audio: np.ndarray, engine: TunerEngine, chunk_size: int) -> list[tuple[float, object]]:
    """Feed audio through the engine; returns (time, reading) per analysis pass."""
    sample_rate = engine.config.sample_rate
    readings = []
    for start in range(0, len(audio) - chunk_size + 1, chunk_size):
        reading = engine.process(audio[start : start + chunk_size])
        if reading is not None:
            readings.append(((start + chunk_size) / sample_rate, reading))
    return readings


def plot_readings(readings, filename: str):
    times = [t for t, _ in readings]
    freqs = [r.frequency for _, r in readings]
    cents = [r.cents for _, r in readings]

    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

    ax1.plot(times, freqs, 'b-', linewidth=1.0)
    ax1.set_ylabel('Frequency (Hz)')
    ax1.set_title('Smoothed frequency')
    ax1.grid(True, alpha=0.3)

    ax2.plot(times, cents, 'r-', linewidth=1.0)
    ax2.axhline(0, color='green', linestyle='--', linewidth=1)
    ax2.set_ylim(-60, 60)
    ax2.set_xlabel('Time (s)')
    ax2.set_ylabel('Cents')
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(filename, dpi=100)
    plt.close(fig)
    print(f"Saved: {filename}")


def main():
    parser = argparse.ArgumentParser(description="Analyze a recording with the tuner engine")
    parser.add_argument("recording", type=Path)
    parser.add_argument("--sample-rate", type=int, default=SAMPLE_RATE)
    parser.add_argument("--chunk-size", type=int, default=CHUNK_SIZE)
    parser.add_argument("--reference", type=float, default=440.0)
    parser.add_argument("--note", choices=NOTE_NAMES, default=None)
    parser.add_argument("--no-filter", action="store_true")
    parser.add_argument("--plot", action="store_true")
    args = parser.parse_args()

    config = TunerConfig(
        sample_rate=args.sample_rate,
        chunk_size=args.chunk_size,
        reference_pitch=args.reference,
        noise_filter=not args.no_filter,
    )
    engine = TunerEngine(config)
    engine.set_mode(Manual(NOTE_NAMES.index(args.note)) if args.note else Auto())
    engine.start_session(args.sample_rate)

    audio = load_recording(args.recording)
    print(f"{args.recording}: {len(audio)} samples, {len(audio) / args.sample_rate:.1f}s")

    readings = analyze(audio, engine, args.chunk_size)
    for t, reading in readings:
        print(f"{t:7.3f}s  {reading.note_info.label:>4}  {reading.frequency:8.2f} Hz  {reading.cents:+7.1f}")

    if args.plot and readings:
        plot_readings(readings, f"{args.recording.with_suffix('')}_track.png")

    print("Done!")


if __name__ == "__main__":
    main()
