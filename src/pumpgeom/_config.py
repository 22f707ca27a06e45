from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

CONFIG_DIR = Path.home() / ".pumpgeom"
CONFIG_FILE = CONFIG_DIR / "pumpgeom.cfg"
DEFAULT_CONFIG = {
    "_comment": "Valid units: millimeters (default), meters, inches. Limits bound blade and segment counts.",
    "units": "millimeters",
    "limits": {"max_blades": 64, "max_segments": 512},
}
_UNIT_INFO: Dict[str, Dict[str, Any]] = {
    "millimeters": {"label": "mm", "scale_to_mm": 1.0},
    "meters": {"label": "m", "scale_to_mm": 1000.0},
    "inches": {"label": "in", "scale_to_mm": 25.4},
}
_UNIT_ALIASES = {
    "millimeter": "millimeters",
    "millimeters": "millimeters",
    "mm": "millimeters",
    "meter": "meters",
    "meters": "meters",
    "m": "meters",
    "inch": "inches",
    "inches": "inches",
    "in": "inches",
}


@dataclass(frozen=True)
class UnitSettings:
    """Resolved units from pumpgeom.cfg."""

    name: str
    label: str
    scale_to_mm: float


@dataclass(frozen=True)
class GenerationLimits:
    """Upper bounds on blade and segment counts.

    Generators reject requests above these values instead of truncating them.
    """

    max_blades: int = 64
    max_segments: int = 512

    def __post_init__(self) -> None:
        if self.max_blades < 1:
            raise ValueError("max_blades must be >= 1.")
        if self.max_segments < 3:
            raise ValueError("max_segments must be >= 3.")


DEFAULT_LIMITS = GenerationLimits()


def ensure_user_config() -> None:
    """Ensure ~/.pumpgeom/pumpgeom.cfg exists with sane defaults."""

    try:
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    except OSError:
        return

    if CONFIG_FILE.exists():
        return

    try:
        CONFIG_FILE.write_text(json.dumps(DEFAULT_CONFIG, indent=2) + "\n")
    except OSError:
        return


def _load_user_config() -> Dict[str, Any]:
    ensure_user_config()
    try:
        data = json.loads(CONFIG_FILE.read_text())
    except (OSError, json.JSONDecodeError):
        return dict(DEFAULT_CONFIG)
    if not isinstance(data, dict):
        return dict(DEFAULT_CONFIG)
    return data


def _normalize_units(value: str) -> str | None:
    key = value.strip().lower()
    if key in _UNIT_INFO:
        return key
    return _UNIT_ALIASES.get(key)


def get_unit_settings() -> UnitSettings:
    """Return the configured units and the conversion to millimeters."""

    raw_config = _load_user_config()
    raw_units = str(raw_config.get("units", DEFAULT_CONFIG["units"]))
    normalized = _normalize_units(raw_units)
    if normalized is None:
        normalized = DEFAULT_CONFIG["units"]

    info = _UNIT_INFO[normalized]
    return UnitSettings(name=normalized, label=info["label"], scale_to_mm=info["scale_to_mm"])


def _limit_value(raw: Dict[str, Any], key: str, default: int, minimum: int) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        return default
    return value


def get_generation_limits() -> GenerationLimits:
    """Return the configured generation limits, falling back to defaults for bad entries."""

    raw_config = _load_user_config()
    raw_limits = raw_config.get("limits")
    if not isinstance(raw_limits, dict):
        return DEFAULT_LIMITS
    return GenerationLimits(
        max_blades=_limit_value(raw_limits, "max_blades", DEFAULT_LIMITS.max_blades, 1),
        max_segments=_limit_value(raw_limits, "max_segments", DEFAULT_LIMITS.max_segments, 3),
    )
