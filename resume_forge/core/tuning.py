from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

_TUNING_CONFIG_CACHE: dict[str, Any] | None = None
_TUNING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "tuning.yaml"


def get_tuning_config() -> dict[str, Any]:
    """Load heuristic thresholds from repo-level config/tuning.yaml and cache them."""
    global _TUNING_CONFIG_CACHE

    if _TUNING_CONFIG_CACHE is not None:
        return _TUNING_CONFIG_CACHE

    if not _TUNING_CONFIG_PATH.exists():
        raise RuntimeError(
            f"Tuning config not found at '{_TUNING_CONFIG_PATH}'. "
            "Expected file: config/tuning.yaml"
        )

    try:
        raw = _TUNING_CONFIG_PATH.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(
            f"Failed to read tuning config '{_TUNING_CONFIG_PATH}': {exc}"
        ) from exc

    try:
        parsed = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise RuntimeError(
            f"Invalid YAML in tuning config '{_TUNING_CONFIG_PATH}': {exc}"
        ) from exc

    if not isinstance(parsed, dict):
        raise RuntimeError(
            f"Invalid tuning config '{_TUNING_CONFIG_PATH}': expected a top-level mapping."
        )

    _TUNING_CONFIG_CACHE = parsed
    return _TUNING_CONFIG_CACHE


def get_tuning_value(path: str, default: Any = None) -> Any:
    """Get nested config value using dot path notation, e.g. 'scorer.grades.A'."""
    if not path:
        return default

    current: Any = get_tuning_config()
    for key in path.split("."):
        if not isinstance(current, dict):
            return default
        if key not in current:
            return default
        current = current[key]
    return current
