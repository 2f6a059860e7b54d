"""Expand source patterns into concrete file paths."""

from __future__ import annotations

import glob
from pathlib import Path
from typing import Iterable

_GLOB_CHARS = frozenset("*?[")


def _is_pattern(value: str) -> bool:
    return any(char in _GLOB_CHARS for char in value)


def discover_sources(patterns: Iterable[str], *, root: Path | None = None) -> list[str]:
    """Expand *patterns* relative to *root* into POSIX-style relative paths.

    Matches for each pattern are sorted; patterns are processed in order and
    repeated matches keep their first position. A directory (e.g.
    ``example/source/``) is expanded to every file beneath it. Plain paths are
    passed through even when missing so that the read error surfaces during
    collection rather than being silently ignored.
    """

    base = Path(root) if root is not None else Path.cwd()
    ordered: dict[str, None] = {}
    for pattern in patterns:
        if _is_pattern(pattern):
            matches = glob.glob(pattern, root_dir=base, recursive=True)
            candidates = sorted(Path(match).as_posix() for match in matches if (base / match).is_file())
        elif (base / pattern).is_dir():
            directory = base / pattern
            files = [item for item in directory.rglob("*") if item.is_file()]
            if Path(pattern).is_absolute():
                candidates = sorted(item.as_posix() for item in files)
            else:
                candidates = sorted(item.relative_to(base).as_posix() for item in files)
        else:
            candidates = [Path(pattern).as_posix()]
        for candidate in candidates:
            ordered.setdefault(candidate, None)
    return list(ordered)


__all__ = ["discover_sources"]
