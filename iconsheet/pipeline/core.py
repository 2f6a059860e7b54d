"""Core execution engine for icon sheet builds."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Sequence

from ..discovery import discover_sources
from ..engine import EngineStartupError, RenderChannel, RenderError, build_render_channel
from ..models import IconsheetConfig, RenderEngineConfig
from ..naming import format_number
from ..stylesheets import Sheet, build_sheets, sheet_names_from_config
from ..variants import CollectionError, ImageVariant, expand_variants
from .outputs import PipelineOutputArtifact
from .writer import WriteReport, write_artifacts

logger = logging.getLogger(__name__)

ChannelFactory = Callable[[RenderEngineConfig], RenderChannel]


class PipelineError(RuntimeError):
    """Fatal batch failure carrying the stage and, when known, the offending variant."""

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        source: str | None = None,
        scale: float | None = None,
    ) -> None:
        super().__init__(message)
        self.stage = stage
        self.source = source
        self.scale = scale


@dataclass
class ExecutionContext:
    """Identifies where a batch runs and, optionally, its pre-selected sources."""

    config_path: Path | None = None
    root: Path | None = None
    sources: Sequence[str] | None = None

    def resolve_root(self) -> Path:
        if self.root is not None:
            return self.root
        if self.config_path is not None:
            return self.config_path.resolve().parent
        return Path.cwd()


@dataclass
class BatchResult:
    """Outcome of a full build."""

    config: IconsheetConfig
    variants: List[ImageVariant]
    sheets: List[Sheet]
    report: WriteReport = field(default_factory=WriteReport)

    @property
    def outputs(self) -> List[PipelineOutputArtifact]:
        return self.report.written

    @property
    def ok(self) -> bool:
        return self.report.ok


class RenderPipeline:
    """Drives one engine session sequentially across a batch of variants."""

    def __init__(self, channel: RenderChannel) -> None:
        self._channel = channel

    def render(self, variants: Sequence[ImageVariant]) -> None:
        """Populate raster data on every variant, in order.

        The first failure stops the batch: later variants are left untouched,
        the session is closed, and ``PipelineError`` names the failing item.
        """

        try:
            session = self._channel.open()
        except EngineStartupError as exc:
            raise PipelineError(f"Render engine failed to start: {exc}", stage="startup") from exc

        try:
            total = len(variants)
            for index, variant in enumerate(variants, start=1):
                scale = format_number(variant.scale)
                logger.debug("Rendering %s @%sx (%d/%d)...", variant.source_path, scale, index, total)
                try:
                    result = session.render(variant.vector_data, variant.scale)
                except RenderError as exc:
                    logger.error("Could not render %s @%sx: %s", variant.source_path, scale, exc)
                    message = f"Could not render {variant.source_path} @{scale}x: {exc}"
                    raise PipelineError(
                        message,
                        stage="render",
                        source=variant.source_path,
                        scale=variant.scale,
                    ) from exc
                variant.attach_raster(result)
        finally:
            session.close()

        logger.info("Rendered %d SVGs.", len(variants))


class IconsheetPipeline:
    """Collect, render, generate and write: the whole batch in one call."""

    def __init__(
        self,
        *,
        channel: RenderChannel | None = None,
        channel_factory: ChannelFactory | None = None,
    ) -> None:
        self._channel = channel
        self._channel_factory = channel_factory or build_render_channel

    def resolve_channel(self, config: IconsheetConfig) -> RenderChannel:
        if self._channel is not None:
            return self._channel
        return self._channel_factory(config.engine)

    def collect(self, config: IconsheetConfig, context: ExecutionContext) -> List[ImageVariant]:
        root = context.resolve_root()
        sources = context.sources if context.sources is not None else discover_sources(config.src, root=root)
        try:
            return expand_variants(sources, config, root=root)
        except CollectionError as exc:
            raise PipelineError(str(exc), stage="collect") from exc

    def execute(
        self,
        config: IconsheetConfig,
        context: ExecutionContext | None = None,
    ) -> BatchResult:
        context = context or ExecutionContext()
        variants = self.collect(config, context)

        if variants:
            RenderPipeline(self.resolve_channel(config)).render(variants)
        else:
            logger.warning("No SVG sources matched %s", ", ".join(config.src) or "the supplied inputs")

        sheets = build_sheets(variants, sheet_names_from_config(config))
        dest = context.resolve_root() / config.dest
        report = write_artifacts(variants, sheets, dest)
        if sheets:
            logger.info("Generated icon stylesheets.")

        return BatchResult(config=config, variants=variants, sheets=sheets, report=report)


__all__ = [
    "BatchResult",
    "ChannelFactory",
    "ExecutionContext",
    "IconsheetPipeline",
    "PipelineError",
    "RenderPipeline",
]
