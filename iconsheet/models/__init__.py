"""Pydantic models describing iconsheet configuration objects."""

from .config import IconsheetConfig, RenderEngineConfig

__all__ = [
    "IconsheetConfig",
    "RenderEngineConfig",
]
