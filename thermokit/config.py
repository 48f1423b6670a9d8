"""Engine settings loaded from YAML.

The packaged ``defaults.yaml`` supplies the values the built-in descriptors
offer as parameter defaults. Callers can point ``load_config`` at their own
file and build an :class:`EngineSettings` from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULTS_PATH = Path(__file__).resolve().parent / "defaults.yaml"


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load a YAML configuration file.

    Args:
        config_path: Explicit path to a YAML file. If None, the packaged
            ``defaults.yaml`` is read.

    Returns:
        The parsed mapping (empty if the file is empty).

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = DEFAULTS_PATH if config_path is None else Path(config_path)

    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found at: {path}")

    with open(path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    return config


@dataclass(frozen=True)
class EngineSettings:
    half_window: int = 50
    dt: float = 0.1
    electrochemical_window: int = 25
    smooth_window: int = 15
    min_half_window: int = 1
    max_half_window: int = 50
    low_ratio: float = 1e-4
    high_ratio: float = 1e-2
    smoothing_window: int = 5
    smoothing_passes: int = 1
    extrema_threshold: float = 0.1

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> "EngineSettings":
        """Flatten the sectioned YAML layout into settings; unknown keys are ignored."""
        sections = {
            "differentiation": {
                "half_window": "half_window",
                "dt": "dt",
                "electrochemical_window": "electrochemical_window",
                "smooth_window": "smooth_window",
            },
            "adaptive": {
                "min_half_window": "min_half_window",
                "max_half_window": "max_half_window",
                "low_ratio": "low_ratio",
                "high_ratio": "high_ratio",
            },
            "smoothing": {"window": "smoothing_window", "passes": "smoothing_passes"},
            "extrema": {"threshold": "extrema_threshold"},
        }
        known = {f.name: f.type for f in fields(cls)}
        values: Dict[str, Any] = {}
        for section, mapping in sections.items():
            block = config.get(section) or {}
            for key, attr in mapping.items():
                if key in block:
                    values[attr] = block[key]
            for key in set(block) - set(mapping):
                logger.warning(f"Ignoring unknown setting '{section}.{key}'")
        # YAML may hand back ints for float fields and vice versa
        for attr, value in list(values.items()):
            values[attr] = float(value) if known[attr] == "float" else int(value)
        return cls(**values)


@lru_cache(maxsize=1)
def default_settings() -> EngineSettings:
    """Settings from the packaged defaults file (cached)."""
    return EngineSettings.from_mapping(load_config())
