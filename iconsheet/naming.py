"""Naming rules shared by raster files, stylesheet files and CSS classes."""

from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")
_SEPARATORS = re.compile(r"[\\/]+")


def format_number(value: float) -> str:
    """Render *value* in its shortest form (``2.0`` -> ``"2"``, ``1.5`` -> ``"1.5"``)."""

    number = float(value)
    if number.is_integer():
        return str(int(number))
    return repr(number)


def scale_suffix(scale: float) -> str:
    """Return the filename suffix for *scale*: empty at 1x, ``.x{scale}`` otherwise."""

    if float(scale) == 1:
        return ""
    return f".x{format_number(scale)}"


def with_scale_suffix(name: str, scale: float, extension: str) -> str:
    """Append the scale suffix and *extension* to *name*.

    An existing trailing *extension* on *name* is stripped first, so
    ``icons.data.svg.css`` and ``icons.data.svg`` both become
    ``icons.data.svg.x2.css`` at scale 2.
    """

    if not extension.startswith("."):
        extension = f".{extension}"
    stem = name[: -len(extension)] if name.lower().endswith(extension.lower()) else name
    return f"{stem}{scale_suffix(scale)}{extension}"


def slugify(value: str) -> str:
    """Turn a relative source name into a CSS-safe class fragment.

    Directory separators become ``-`` so nested sources stay namespaced.
    Case is preserved because CSS class selectors are case-sensitive.
    """

    joined = _SEPARATORS.sub("-", value.strip().strip("/\\"))
    dashed = _WHITESPACE.sub("-", joined)
    return "".join(char for char in dashed if char.isalnum() or char in {"_", "-"})


def class_name_for(relative_name: str, prefix: str) -> str:
    return f"{prefix}{slugify(relative_name)}"


__all__ = [
    "class_name_for",
    "format_number",
    "scale_suffix",
    "slugify",
    "with_scale_suffix",
]
