"""Artifact descriptors emitted by the icon pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..stylesheets import SheetKind


class OutputKind(str, Enum):
    """Supported artifact formats emitted by the pipeline."""

    PNG = "png"
    CSS = "css"


@dataclass(frozen=True)
class PipelineOutputArtifact:
    """Represents a file emitted by the pipeline."""

    kind: OutputKind
    path: Path
    scale: float
    sheet_kind: SheetKind | None = None

    @classmethod
    def png(cls, path: Path, *, scale: float) -> "PipelineOutputArtifact":
        return cls(kind=OutputKind.PNG, path=Path(path), scale=scale)

    @classmethod
    def css(cls, path: Path, *, scale: float, sheet_kind: SheetKind) -> "PipelineOutputArtifact":
        return cls(kind=OutputKind.CSS, path=Path(path), scale=scale, sheet_kind=sheet_kind)


__all__ = ["OutputKind", "PipelineOutputArtifact", "SheetKind"]
