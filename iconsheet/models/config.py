"""Batch configuration for icon sheet builds."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_STARTUP_TIMEOUT = 10.0
DEFAULT_RENDER_TIMEOUT = 30.0

ScaleFactor = Annotated[float, Field(ge=1, allow_inf_nan=False)]


class RenderEngineConfig(BaseModel):
    """Selects and tunes the external render engine."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    kind: Literal["subprocess", "http"] = Field(
        default="subprocess",
        description="Engine transport: a local worker process or a remote render service.",
    )
    command: tuple[str, ...] | None = Field(
        default=None,
        description="Override for the worker command line (subprocess engines only).",
    )
    url: str | None = Field(
        default=None,
        description="Base URL of the render service (http engines only).",
    )
    startup_timeout: float = Field(
        default=DEFAULT_STARTUP_TIMEOUT,
        alias="startupTimeout",
        gt=0,
        description="Seconds to wait for the engine to report readiness.",
    )
    render_timeout: float = Field(
        default=DEFAULT_RENDER_TIMEOUT,
        alias="renderTimeout",
        gt=0,
        description="Seconds to wait for a single render reply before aborting the batch.",
    )

    @field_validator("command", mode="before")
    @classmethod
    def _split_command(cls, value):
        if isinstance(value, str):
            return tuple(value.split())
        return value

    @field_validator("command")
    @classmethod
    def _normalize_command(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return value
        if not value:
            msg = "Engine command cannot be empty."
            raise ValueError(msg)
        return value

    @field_validator("url")
    @classmethod
    def _normalize_url(cls, value: str | None) -> str | None:
        if value is None:
            return value
        normalized = value.strip().rstrip("/")
        return normalized or None

    @model_validator(mode="after")
    def _check_transport(self) -> "RenderEngineConfig":
        if self.kind == "http" and not self.url:
            msg = "HTTP render engines require a 'url'."
            raise ValueError(msg)
        return self


class IconsheetConfig(BaseModel):
    """Immutable configuration for one icon build batch."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True, validate_default=True)

    src: tuple[str, ...] = Field(
        default=(),
        description="Glob patterns or paths selecting the SVG sources.",
    )
    dest: Path = Field(..., description="Directory receiving stylesheets and the raster folder.")
    base_dir: str = Field(
        default="",
        alias="basedir",
        description="Prefix stripped from source paths before deriving names.",
    )
    scales: tuple[ScaleFactor, ...] = Field(
        default=(1,),
        alias="variants",
        min_length=1,
        description="Scale factors rendered for every source.",
    )
    css_prefix: str = Field(
        default="icon-",
        alias="cssprefix",
        description="Prefix prepended to every generated class name.",
    )
    png_folder: str = Field(
        default="png/",
        alias="pngfolder",
        description="Folder (inside dest) that receives the rendered PNG files.",
    )
    svg_sheet: str = Field(
        default="icons.data.svg",
        alias="datasvgcss",
        description="Base name of the stylesheet embedding SVG data URIs.",
    )
    png_sheet: str = Field(
        default="icons.data.png",
        alias="datapngcss",
        description="Base name of the stylesheet embedding PNG data URIs.",
    )
    fallback_sheet: str = Field(
        default="icons.fallback",
        alias="urlpngcss",
        description="Base name of the stylesheet referencing PNG files by URL.",
    )
    engine: RenderEngineConfig = Field(
        default_factory=RenderEngineConfig,
        description="Render engine selection and timeouts.",
    )

    @field_validator("src", mode="before")
    @classmethod
    def _ensure_sequence(cls, value):
        if value is None:
            return ()
        if isinstance(value, (str, Path)):
            return (str(value),)
        return tuple(str(item) for item in value)

    @field_validator("base_dir")
    @classmethod
    def _normalize_base_dir(cls, value: str) -> str:
        # Same normalization as source paths, so "./icons" matches "./icons/star.svg".
        normalized = value.strip().replace("\\", "/")
        if normalized:
            normalized = Path(normalized).as_posix()
        if normalized == ".":
            normalized = ""
        if not normalized.endswith("/"):
            normalized += "/"
        return normalized

    @field_validator("scales")
    @classmethod
    def _check_scales(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if len(set(value)) != len(value):
            msg = "Scale factors must be unique."
            raise ValueError(msg)
        return value

    @field_validator("png_folder")
    @classmethod
    def _normalize_folder(cls, value: str) -> str:
        return value.strip().replace("\\", "/").strip("/")

    @field_validator("svg_sheet", "png_sheet", "fallback_sheet")
    @classmethod
    def _normalize_sheet(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            msg = "Stylesheet names cannot be empty."
            raise ValueError(msg)
        return normalized

    @field_validator("css_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        return value.strip()

    @model_validator(mode="after")
    def _check_sheet_names(self) -> "IconsheetConfig":
        names = [self.svg_sheet, self.png_sheet, self.fallback_sheet]
        stems = [name[:-4] if name.lower().endswith(".css") else name for name in names]
        if len(set(stems)) != len(stems):
            msg = "Stylesheet names must be distinct."
            raise ValueError(msg)
        return self


__all__ = [
    "DEFAULT_RENDER_TIMEOUT",
    "DEFAULT_STARTUP_TIMEOUT",
    "IconsheetConfig",
    "RenderEngineConfig",
]
