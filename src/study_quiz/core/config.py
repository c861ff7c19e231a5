"""TOML helpers: read a config file, overlay it on defaults, write a template."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any, Mapping, MutableMapping

__all__ = [
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
]


class TomlConfigError(RuntimeError):
    """A config file could not be read, parsed or merged."""


def load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(f"Failed to parse config TOML: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    path: str = "",
) -> None:
    """Overlay ``override`` onto ``base`` in place.

    Every key must already exist in ``base``; tables merge key by key and
    scalars replace. Errors name the offending key by its dotted path.
    """

    for key, value in override.items():
        dotted = path + key
        if key not in base:
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        if not isinstance(base[key], MutableMapping):
            base[key] = value
        elif isinstance(value, Mapping):
            merge_defaults(base[key], value, path=dotted + ".")
        else:
            raise TomlConfigError(
                f"Expected table for '{dotted}', found {type(value).__name__}."
            )


def write_toml_template(
    path: Path, *, template: str, overwrite: bool = False
) -> Path:
    """Write ``template`` to ``path`` (mode 0600) unless it already exists."""

    if path.exists() and not overwrite:
        raise TomlConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(template, encoding="utf-8")
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path
