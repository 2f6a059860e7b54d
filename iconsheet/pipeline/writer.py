"""Persist rendered rasters and generated stylesheets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from ..stylesheets import Sheet
from ..variants import ImageVariant
from .outputs import PipelineOutputArtifact

logger = logging.getLogger(__name__)


class WriteError(RuntimeError):
    """Raised (and collected) when a single artifact cannot be written."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


@dataclass
class WriteReport:
    """Files written plus the per-file failures encountered along the way."""

    written: list[PipelineOutputArtifact] = field(default_factory=list)
    errors: list[WriteError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _ensure_parent_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def _write_bytes(path: Path, payload: bytes, report: WriteReport) -> bool:
    try:
        _ensure_parent_directory(path)
        path.write_bytes(payload)
    except OSError as exc:
        error = WriteError(path, f"Failed to write ({exc.strerror or exc})")
        error.__cause__ = exc
        logger.error("%s", error)
        report.errors.append(error)
        return False
    return True


def write_artifacts(
    variants: Sequence[ImageVariant],
    sheets: Sequence[Sheet],
    dest: Path,
) -> WriteReport:
    """Write every raster to its output path and every sheet under *dest*.

    Each file is written independently: a failure is recorded in the report
    and the remaining files are still attempted. Nothing is rolled back.
    """

    report = WriteReport()

    for variant in variants:
        data = variant.raster_data
        if data is None:
            msg = f"{variant.source_path} has no raster data to write."
            raise ValueError(msg)
        path = variant.absolute_output_path
        if _write_bytes(path, data, report):
            report.written.append(PipelineOutputArtifact.png(path, scale=variant.scale))

    for sheet in sheets:
        path = Path(dest) / sheet.filename
        # Encode explicitly so line endings are identical on every platform.
        if _write_bytes(path, sheet.text.encode("utf-8"), report):
            report.written.append(
                PipelineOutputArtifact.css(path, scale=sheet.scale, sheet_kind=sheet.kind)
            )

    logger.debug("Wrote %d files (%d failures)", len(report.written), len(report.errors))
    return report


__all__ = ["WriteError", "WriteReport", "write_artifacts"]
