"""Expansion of SVG sources into per-scale image variants."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from .engine.base import RasterResult
from .models import IconsheetConfig
from .naming import class_name_for, scale_suffix

logger = logging.getLogger(__name__)

VECTOR_EXTENSION = ".svg"
RASTER_EXTENSION = ".png"


class CollectionError(RuntimeError):
    """Raised when sources cannot be collected into a consistent batch."""


@dataclass
class ImageVariant:
    """One (source, scale) pair to be rendered and referenced from stylesheets."""

    source_path: str
    scale: float
    class_name: str
    relative_output_path: str
    absolute_output_path: Path
    vector_data: str = field(repr=False)
    raster: RasterResult | None = field(default=None, repr=False)

    @property
    def is_rendered(self) -> bool:
        return self.raster is not None

    @property
    def raster_data(self) -> bytes | None:
        return self.raster.data if self.raster is not None else None

    @property
    def rendered_width(self) -> float | None:
        return self.raster.width if self.raster is not None else None

    @property
    def rendered_height(self) -> float | None:
        return self.raster.height if self.raster is not None else None

    def attach_raster(self, result: RasterResult) -> None:
        """Store the engine output; bytes and dimensions always arrive together."""

        if self.raster is not None:
            msg = f"{self.source_path} @{self.scale}x has already been rendered."
            raise ValueError(msg)
        self.raster = result


def is_vector_source(path: str) -> bool:
    return path.lower().endswith(VECTOR_EXTENSION)


def relative_name(source: str, base_dir: str) -> str:
    """Strip the SVG extension and, when present, the configured base directory.

    The result never starts with ``/``, so names derived from absolute
    sources stay inside the output directory.
    """

    rel = Path(source).as_posix()[: -len(VECTOR_EXTENSION)]
    if base_dir and rel.startswith(base_dir):
        rel = rel[len(base_dir):]
    return rel.lstrip("/")


def raster_relative_path(rel: str, scale: float, png_folder: str) -> str:
    name = f"{rel.lstrip('/')}{scale_suffix(scale)}{RASTER_EXTENSION}"
    return posixpath.join(png_folder, name) if png_folder else name


def _read_source(path: Path, source: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Failed to read SVG source: {source}"
        raise CollectionError(msg) from exc


def expand_variants(
    sources: Iterable[str],
    config: IconsheetConfig,
    *,
    scales: Sequence[float] | None = None,
    root: Path | None = None,
) -> list[ImageVariant]:
    """Turn *sources* into one ``ImageVariant`` per (SVG source, scale).

    Non-SVG entries are dropped. Each source is read exactly once, before any
    rendering happens; unreadable sources and naming collisions raise
    ``CollectionError``.
    """

    base = Path(root) if root is not None else Path.cwd()
    dest = base / config.dest
    effective_scales = tuple(scales) if scales is not None else config.scales

    variants: list[ImageVariant] = []
    class_owners: dict[str, str] = {}
    output_owners: dict[str, str] = {}

    for source in dict.fromkeys(sources):
        if not is_vector_source(source):
            logger.debug("Skipping non-SVG source %s", source)
            continue

        rel = relative_name(source, config.base_dir)
        class_name = class_name_for(rel, config.css_prefix)
        if class_name == config.css_prefix:
            msg = f"Cannot derive a class name for {source}"
            raise CollectionError(msg)

        owner = class_owners.setdefault(class_name, source)
        if owner != source:
            msg = f"Class name '{class_name}' is shared by {owner} and {source}"
            raise CollectionError(msg)

        vector_data = _read_source(base / source, source)

        for scale in effective_scales:
            rel_path = raster_relative_path(rel, scale, config.png_folder)
            previous = output_owners.get(rel_path)
            if previous is not None:
                msg = f"Output path '{rel_path}' is targeted by {previous} and {source} @{scale}x"
                raise CollectionError(msg)
            output_owners[rel_path] = source
            variants.append(
                ImageVariant(
                    source_path=source,
                    scale=scale,
                    class_name=class_name,
                    relative_output_path=rel_path,
                    absolute_output_path=dest / rel_path,
                    vector_data=vector_data,
                )
            )

    logger.debug("Collected %d variants from %d sources", len(variants), len(class_owners))
    return variants


__all__ = [
    "CollectionError",
    "ImageVariant",
    "expand_variants",
    "is_vector_source",
    "raster_relative_path",
    "relative_name",
]
