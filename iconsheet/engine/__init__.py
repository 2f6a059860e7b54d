"""Render engine channels and their selection from configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import (
    EngineStartupError,
    RasterResult,
    RenderChannel,
    RenderError,
    RenderRequest,
    RenderSession,
    RenderTimeoutError,
)

if TYPE_CHECKING:  # pragma: no cover
    from ..models import RenderEngineConfig


def build_render_channel(config: "RenderEngineConfig") -> RenderChannel:
    """Construct the channel described by *config*."""

    if config.kind == "http":
        from .http import HttpRenderChannel

        if not config.url:
            msg = "HTTP render engines require a 'url'."
            raise ValueError(msg)
        return HttpRenderChannel(
            config.url,
            startup_timeout=config.startup_timeout,
            render_timeout=config.render_timeout,
        )

    from .process import SubprocessRenderChannel

    return SubprocessRenderChannel(
        config.command,
        startup_timeout=config.startup_timeout,
        render_timeout=config.render_timeout,
    )


__all__ = [
    "EngineStartupError",
    "RasterResult",
    "RenderChannel",
    "RenderError",
    "RenderRequest",
    "RenderSession",
    "RenderTimeoutError",
    "build_render_channel",
]
