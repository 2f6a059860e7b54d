"""Load icon build configurations from YAML, following `compose:` references."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from ..models import IconsheetConfig


class ConfigLoadError(RuntimeError):
    """A configuration file is unreadable, malformed or fails validation."""


def _overlay(base: Mapping[str, Any], layer: Mapping[str, Any]) -> dict[str, Any]:
    """Apply *layer* on top of *base*; nested sections such as ``engine`` merge key by key."""

    result = dict(base)
    for key, value in layer.items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = _overlay(current, value)
        else:
            result[key] = value
    return result


def _read_document(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot read icon build configuration {path}"
        raise ConfigLoadError(msg) from exc

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        msg = f"{path} is not valid YAML"
        raise ConfigLoadError(msg) from exc

    if document is None:
        return {}
    if not isinstance(document, dict):
        msg = f"{path} must contain build options as a mapping, not a {type(document).__name__}"
        raise ConfigLoadError(msg)
    return document


def _compose_targets(document: Mapping[str, Any], path: Path) -> list[Path]:
    entries = document.get("compose") or []
    if isinstance(entries, str):
        entries = [entries]
    if not isinstance(entries, list) or not all(isinstance(entry, str) for entry in entries):
        msg = f"'compose' in {path} must be a file name or a list of file names"
        raise ConfigLoadError(msg)
    return [(path.parent / entry).resolve() for entry in entries]


def _resolve(path: Path, chain: tuple[Path, ...] = ()) -> dict[str, Any]:
    """Options from *path* layered over the files it composes, earliest first."""

    if path in chain:
        loop = " -> ".join(item.name for item in chain + (path,))
        msg = f"circular compose chain: {loop}"
        raise ConfigLoadError(msg)

    document = _read_document(path)
    options: dict[str, Any] = {}
    for target in _compose_targets(document, path):
        options = _overlay(options, _resolve(target, chain + (path,)))
    own = {key: value for key, value in document.items() if key != "compose"}
    return _overlay(options, own)


def load_config(
    path: Path,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> IconsheetConfig:
    """Read *path* and its composed files, layer *overrides* on top and validate.

    Relative ``src`` and ``dest`` entries are kept as written; callers resolve
    them against the directory holding *path* (see ``ExecutionContext.root``).
    """

    resolved = Path(path).resolve()
    options = _resolve(resolved)
    if overrides:
        options = _overlay(options, overrides)

    try:
        return IconsheetConfig.model_validate(options)
    except ValidationError as exc:
        msg = f"Invalid icon build configuration in {resolved}: {exc}"
        raise ConfigLoadError(msg) from exc


__all__ = ["ConfigLoadError", "load_config"]
