"""
User-adjustable tuner settings.

Settings are stored as a small JSON object. Missing keys fall back to the
defaults, so files written by older versions keep loading.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .constants import A4_REFERENCE, REFERENCE_MAX, REFERENCE_MIN

if TYPE_CHECKING:
    from .engine import TunerEngine

logger = logging.getLogger(__name__)


@dataclass
class TunerSettings:
    """
    Attributes:
        reference_pitch: Frequency of A4 in Hz (415-466)
        noise_filter: Run samples through the high/low-pass filter stage
    """

    reference_pitch: float = A4_REFERENCE
    noise_filter: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TunerSettings":
        """
        Build settings from a partial mapping merged over the defaults.

        Unknown keys are ignored and the reference pitch is clamped to the
        supported range.
        """
        known = {f.name for f in fields(cls)}
        merged = asdict(cls())
        merged.update({k: v for k, v in data.items() if k in known})

        reference = float(merged["reference_pitch"])
        merged["reference_pitch"] = max(REFERENCE_MIN, min(REFERENCE_MAX, reference))
        merged["noise_filter"] = bool(merged["noise_filter"])
        return cls(**merged)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def apply_to(self, engine: "TunerEngine"):
        """Push these settings into a running engine."""
        engine.set_reference_pitch(self.reference_pitch)
        engine.set_noise_filter(self.noise_filter)


def load_settings(path: str | Path) -> TunerSettings:
    """
    Load settings from a JSON file.

    Args:
        path: Settings file

    Returns:
        Loaded settings, or the defaults if the file is missing or unreadable
    """
    file_path = Path(path)
    if not file_path.exists():
        return TunerSettings()

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("settings file must contain a JSON object")
        return TunerSettings.from_mapping(data)
    except (OSError, ValueError, TypeError) as e:
        logger.warning("Could not read settings from %s: %s", file_path, e)
        return TunerSettings()


def save_settings(settings: TunerSettings, path: str | Path):
    """Write settings to a JSON file, creating parent directories."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(settings.to_dict(), f, indent=2)
