"""Helpers for reading raw configuration values."""

from collections.abc import Mapping
from copy import deepcopy
from pathlib import Path
from typing import Any

from gymledger.exceptions import ConfigError


TRUE_VALUES = ('1', 'true', 'yes', 'on')


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` updated with ``override``; nested sections merge key by key.

    Neither argument is modified.
    """
    merged = deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


def resolve_path(
    path: str | Path,
    base_dir: str | Path | None = None,
    create: bool = False
) -> Path:
    """Expand ``~`` and anchor relative paths at ``base_dir``.

    Args:
        path: Path to resolve
        base_dir: Directory relative paths are taken from
        create: Create the resulting directory

    Returns:
        Resolved Path object
    """
    path = Path(path).expanduser()
    if not path.is_absolute() and base_dir is not None:
        path = Path(base_dir) / path
    if create:
        path.mkdir(parents=True, exist_ok=True)
    return path


def section(raw: Mapping[str, Any], name: str) -> dict[str, Any]:
    """A top-level section as a dict; a missing or empty section reads as ``{}``."""
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"Section '{name}' must be a mapping", {"section": name})
    return dict(value)


def as_float(name: str, key: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name}.{key} must be a number, got {value!r}", {"section": name, "key": key}) from e


def as_int(name: str, key: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name}.{key} must be an integer, got {value!r}", {"section": name, "key": key}) from e


def as_bool(value: Any) -> bool:
    """Flags from YAML are booleans already; flags from the environment are strings."""
    if isinstance(value, str):
        return value.strip().lower() in TRUE_VALUES
    return bool(value)
