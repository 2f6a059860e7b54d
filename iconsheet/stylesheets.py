"""Stylesheet generation for rendered icon variants.

Three sheet kinds are produced for every scale that has variants:

* ``vector``: SVG markup inlined as base64 data URIs
* ``raster``: PNG bytes inlined as base64 data URIs
* ``fallback``: plain URLs pointing at the written PNG files
"""

from __future__ import annotations

import base64
from urllib.parse import quote
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Sequence, TYPE_CHECKING

from .naming import format_number, with_scale_suffix

if TYPE_CHECKING:  # pragma: no cover
    from .models import IconsheetConfig
    from .variants import ImageVariant

SVG_MIME = "image/svg+xml"
PNG_MIME = "image/png"
CSS_EXTENSION = ".css"
RULE_SEPARATOR = "\n\n"


class SheetKind(str, Enum):
    """Stylesheet flavours emitted per scale."""

    VECTOR = "vector"
    RASTER = "raster"
    FALLBACK = "fallback"


SHEET_ORDER = (SheetKind.VECTOR, SheetKind.RASTER, SheetKind.FALLBACK)


@dataclass(frozen=True)
class Sheet:
    """Ordered CSS rules for one (kind, scale) pair."""

    kind: SheetKind
    scale: float
    filename: str
    rules: tuple[str, ...]

    @property
    def text(self) -> str:
        return RULE_SEPARATOR.join(self.rules)


def data_uri(mime: str, payload: bytes) -> str:
    return f"data:{mime};base64,{base64.b64encode(payload).decode('ascii')}"


def css_rule(class_name: str, url: str, extra: str = "") -> str:
    return (
        f".{class_name} {{ "
        f"background-image: url({url}); "
        "background-repeat: no-repeat; "
        f"{extra}"
        "}"
    )


def background_size(width: float, height: float) -> str:
    if width == height:
        return f"background-size: {format_number(width)}px; "
    return f"background-size: {format_number(width)}px {format_number(height)}px; "


def _require_rendered(variant: "ImageVariant") -> None:
    if not variant.is_rendered:
        msg = f"{variant.source_path} @{format_number(variant.scale)}x has no raster data; render it first."
        raise ValueError(msg)


def vector_rule(variant: "ImageVariant") -> str:
    """Inline the SVG source; scaled sheets pin the rendered size."""

    _require_rendered(variant)
    uri = data_uri(SVG_MIME, variant.vector_data.encode("utf-8"))
    extra = ""
    if float(variant.scale) != 1:
        extra = background_size(variant.rendered_width, variant.rendered_height)  # type: ignore[arg-type]
    return css_rule(variant.class_name, uri, extra)


def raster_rule(variant: "ImageVariant") -> str:
    _require_rendered(variant)
    return css_rule(variant.class_name, data_uri(PNG_MIME, variant.raster_data))  # type: ignore[arg-type]


def fallback_rule(variant: "ImageVariant") -> str:
    # Percent-encode so spaces and parentheses in file names stay valid inside url().
    return css_rule(variant.class_name, quote(variant.relative_output_path, safe="/"))


RULE_BUILDERS = {
    SheetKind.VECTOR: vector_rule,
    SheetKind.RASTER: raster_rule,
    SheetKind.FALLBACK: fallback_rule,
}


def sheet_filename(base_name: str, scale: float) -> str:
    """``icons.data.svg`` at 2x -> ``icons.data.svg.x2.css``."""

    return with_scale_suffix(base_name, scale, CSS_EXTENSION)


def sheet_names_from_config(config: "IconsheetConfig") -> dict[SheetKind, str]:
    return {
        SheetKind.VECTOR: config.svg_sheet,
        SheetKind.RASTER: config.png_sheet,
        SheetKind.FALLBACK: config.fallback_sheet,
    }


def build_sheets(
    variants: Sequence["ImageVariant"],
    sheet_names: Mapping[SheetKind, str],
) -> list[Sheet]:
    """Group rules by scale, keeping variant order within each sheet.

    Scales appear in the order they are first seen; a scale without variants
    never yields a sheet.
    """

    missing = [kind.value for kind in SHEET_ORDER if kind not in sheet_names]
    if missing:
        msg = f"Missing stylesheet names for: {', '.join(missing)}"
        raise ValueError(msg)

    for variant in variants:
        _require_rendered(variant)

    grouped: dict[float, dict[SheetKind, list[str]]] = {}
    for variant in variants:
        rules = grouped.setdefault(variant.scale, {kind: [] for kind in SHEET_ORDER})
        for kind in SHEET_ORDER:
            rules[kind].append(RULE_BUILDERS[kind](variant))

    sheets: list[Sheet] = []
    for scale, rules_by_kind in grouped.items():
        for kind in SHEET_ORDER:
            sheets.append(
                Sheet(
                    kind=kind,
                    scale=scale,
                    filename=sheet_filename(sheet_names[kind], scale),
                    rules=tuple(rules_by_kind[kind]),
                )
            )
    return sheets


def generate_stylesheets(
    variants: Sequence["ImageVariant"],
    sheet_names: Mapping[SheetKind, str],
) -> dict[str, str]:
    """Return a mapping of stylesheet filename to CSS text."""

    return {sheet.filename: sheet.text for sheet in build_sheets(variants, sheet_names)}


__all__ = [
    "PNG_MIME",
    "SHEET_ORDER",
    "SVG_MIME",
    "Sheet",
    "SheetKind",
    "background_size",
    "build_sheets",
    "css_rule",
    "data_uri",
    "fallback_rule",
    "generate_stylesheets",
    "raster_rule",
    "sheet_filename",
    "sheet_names_from_config",
    "vector_rule",
]
