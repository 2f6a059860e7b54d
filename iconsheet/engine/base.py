"""Capability interfaces for external render engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


class EngineStartupError(RuntimeError):
    """Raised when the render engine cannot be started or never becomes ready."""


class RenderError(RuntimeError):
    """Raised when the engine cannot rasterize the current request."""


class RenderTimeoutError(RenderError):
    """Raised when the engine does not answer within the configured render timeout."""


@dataclass(frozen=True)
class RenderRequest:
    """Vector markup plus the magnification to rasterize it at."""

    vector_markup: str = field(repr=False)
    scale: float


@dataclass(frozen=True)
class RasterResult:
    """Encoded raster bytes and the final pixel dimensions reported by the engine."""

    data: bytes = field(repr=False)
    width: float
    height: float


@runtime_checkable
class RenderSession(Protocol):
    """A live engine session accepting one outstanding request at a time."""

    def render(self, vector_markup: str, scale: float) -> RasterResult:
        """Rasterize *vector_markup* at *scale*, raising ``RenderError`` on failure."""
        ...

    def close(self) -> None:
        """Terminate the engine; safe to call more than once."""
        ...


@runtime_checkable
class RenderChannel(Protocol):
    """Factory for render sessions against one kind of engine."""

    def open(self) -> RenderSession:
        """Start the engine and return a ready session, or raise ``EngineStartupError``."""
        ...


__all__ = [
    "EngineStartupError",
    "RasterResult",
    "RenderChannel",
    "RenderError",
    "RenderRequest",
    "RenderSession",
    "RenderTimeoutError",
]
