"""iconsheet package public interface."""

from .models import IconsheetConfig, RenderEngineConfig
from .pipeline import BatchResult, ExecutionContext, IconsheetPipeline, PipelineError, RenderPipeline
from .stylesheets import SheetKind, generate_stylesheets
from .variants import CollectionError, ImageVariant, expand_variants

__all__ = [
    "BatchResult",
    "CollectionError",
    "ExecutionContext",
    "IconsheetConfig",
    "IconsheetPipeline",
    "ImageVariant",
    "PipelineError",
    "RenderEngineConfig",
    "RenderPipeline",
    "SheetKind",
    "expand_variants",
    "generate_stylesheets",
]
