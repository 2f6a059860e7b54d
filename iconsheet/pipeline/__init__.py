"""Icon pipeline public interface."""

from .core import (
    BatchResult,
    ExecutionContext,
    IconsheetPipeline,
    PipelineError,
    RenderPipeline,
)
from .outputs import OutputKind, PipelineOutputArtifact
from .writer import WriteError, WriteReport, write_artifacts

__all__ = [
    "BatchResult",
    "ExecutionContext",
    "IconsheetPipeline",
    "OutputKind",
    "PipelineError",
    "PipelineOutputArtifact",
    "RenderPipeline",
    "WriteError",
    "WriteReport",
    "write_artifacts",
]
