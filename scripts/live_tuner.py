"""
Live terminal tuner using the default microphone.

Prints the latest reading a few times per second until Ctrl+C.

Usage:
    python scripts/live_tuner.py
    python scripts/live_tuner.py --note E        # tune every string to E
    python scripts/live_tuner.py --reference 442 --no-filter
"""

import argparse
import logging
import time

from chromatic_tuner.capture import AudioCapture
from chromatic_tuner.config import TunerConfig
from chromatic_tuner.constants import NOTE_NAMES, SAMPLE_RATE
from chromatic_tuner.engine import TunerEngine
from chromatic_tuner.note_mapper import Auto, Manual
from chromatic_tuner.settings import TunerSettings, load_settings, save_settings


def needle(cents: float, width: int = 41, span: float = 50.0) -> str:
    """ASCII needle centred on 0 cents."""
    c = max(-span, min(span, cents))
    mid = width // 2
    pos = mid + int(round(c / span * mid))
    bar = ["-"] * width
    bar[mid] = "|"
    bar[pos] = "^"
    return "".join(bar)


def format_reading(reading) -> str:
    if reading.frequency <= 0 or reading.octave is None:
        return f"{reading.note_info.label:>4}   ---.-- Hz"
    return (
        f"{reading.note_info.label:>4} {reading.frequency:8.2f} Hz "
        f"{needle(reading.cents)} {reading.cents:+6.1f} cents"
    )


def parse_args():
    parser = argparse.ArgumentParser(description="Live chromatic tuner")
    parser.add_argument("--device", type=int, default=None, help="Input device index")
    parser.add_argument("--sample-rate", type=int, default=SAMPLE_RATE)
    parser.add_argument("--reference", type=float, default=None, help="A4 in Hz (415-466)")
    parser.add_argument("--note", choices=NOTE_NAMES, default=None, help="Manual target note")
    parser.add_argument("--no-filter", action="store_true", help="Disable the noise filter")
    parser.add_argument("--settings", default=None, help="JSON settings file to load and update")
    parser.add_argument("--rate", type=float, default=10.0, help="Display updates per second")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args()


def main():
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    settings = load_settings(args.settings) if args.settings else TunerSettings()
    overrides = {}
    if args.reference is not None:
        overrides["reference_pitch"] = args.reference
    if args.no_filter:
        overrides["noise_filter"] = False
    if overrides:
        settings = TunerSettings.from_mapping({**settings.to_dict(), **overrides})
        if args.settings:
            save_settings(settings, args.settings)

    engine = TunerEngine(TunerConfig(sample_rate=args.sample_rate))
    settings.apply_to(engine)
    engine.set_mode(Manual(NOTE_NAMES.index(args.note)) if args.note else Auto())

    print(f"Reference A4 = {settings.reference_pitch:.1f} Hz, "
          f"filter {'on' if settings.noise_filter else 'off'} (Ctrl+C to stop)")

    capture = AudioCapture(engine, device=args.device, sample_rate=args.sample_rate)
    interval = 1.0 / max(args.rate, 1.0)
    with capture:
        last_sequence = -1
        try:
            while True:
                reading, sequence = engine.reading_slot.read_with_sequence()
                if sequence != last_sequence:
                    print("\r" + format_reading(reading), end="", flush=True)
                    last_sequence = sequence
                time.sleep(interval)
        except KeyboardInterrupt:
            print()

    print("Done!")


if __name__ == "__main__":
    main()
