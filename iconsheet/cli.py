"""Command line interface for building icon stylesheets."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from pydantic import ValidationError

from .io.yaml_loader import ConfigLoadError, load_config
from .models import IconsheetConfig
from .pipeline import ExecutionContext, IconsheetPipeline, PipelineError
from .schema import write_config_schema


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Render SVG icons to PNG and generate data-URI and fallback stylesheets."
    )
    parser.add_argument(
        "config",
        type=Path,
        nargs="?",
        default=None,
        help=(
            "Optional YAML build configuration; flags below override its values and relative "
            "paths resolve against its directory."
        ),
    )
    parser.add_argument(
        "--src",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Glob pattern or path selecting SVG sources (repeatable).",
    )
    parser.add_argument("--dest", type=Path, default=None, help="Output directory.")
    parser.add_argument(
        "--basedir",
        type=str,
        default=None,
        help="Prefix stripped from source paths before deriving names.",
    )
    parser.add_argument(
        "--scale",
        action="append",
        type=float,
        default=None,
        help="Scale factor to render (repeatable, defaults to 1).",
    )
    parser.add_argument("--prefix", type=str, default=None, help="CSS class prefix (default 'icon-').")
    parser.add_argument(
        "--png-folder",
        type=str,
        default=None,
        help="Folder inside the output directory for PNG files (default 'png/').",
    )
    parser.add_argument(
        "--engine-url",
        type=str,
        default=None,
        help="Use a remote render service at this URL instead of a local worker process.",
    )
    parser.add_argument(
        "--render-timeout",
        type=float,
        default=None,
        help="Seconds to wait for each render before aborting the batch.",
    )
    parser.add_argument(
        "--write-schema",
        type=Path,
        default=None,
        metavar="PATH",
        help="Write the JSON schema of configuration files to PATH and exit.",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log every rendered variant.")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings and errors.")
    return parser


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.src:
        overrides["src"] = list(args.src)
    if args.dest is not None:
        overrides["dest"] = str(args.dest)
    if args.basedir is not None:
        overrides["basedir"] = args.basedir
    if args.scale:
        overrides["variants"] = list(args.scale)
    if args.prefix is not None:
        overrides["cssprefix"] = args.prefix
    if args.png_folder is not None:
        overrides["pngfolder"] = args.png_folder

    engine: dict[str, Any] = {}
    if args.engine_url is not None:
        engine.update(kind="http", url=args.engine_url)
    if args.render_timeout is not None:
        engine["renderTimeout"] = args.render_timeout
    if engine:
        overrides["engine"] = engine
    return overrides


def _load(args: argparse.Namespace, parser: argparse.ArgumentParser) -> IconsheetConfig | None:
    overrides = _overrides_from_args(args)
    if args.config is not None:
        try:
            return load_config(args.config, overrides=overrides)
        except ConfigLoadError as exc:
            parser.error(str(exc))
            return None

    if "src" not in overrides or "dest" not in overrides:
        parser.error("--src and --dest are required when no configuration file is given.")
        return None
    try:
        return IconsheetConfig.model_validate(overrides)
    except ValidationError as exc:
        parser.error(str(exc))
        return None


def run(argv: Sequence[str] | None = None, *, pipeline: IconsheetPipeline | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)

    if args.write_schema is not None:
        path = write_config_schema(args.write_schema)
        print(f"Wrote configuration schema to {path}")
        return 0

    config = _load(args, parser)
    if config is None:
        return 2

    context = ExecutionContext(
        config_path=args.config,
        root=None if args.config is not None else Path.cwd(),
    )
    runner = pipeline or IconsheetPipeline()

    try:
        result = runner.execute(config, context)
    except PipelineError as exc:
        print(f"error: {exc}", file=sys.stderr)
        print("Failed to render SVGs.", file=sys.stderr)
        return 1

    dest = context.resolve_root() / config.dest
    print(f"Wrote {len(result.outputs)} files to {dest}")
    if not result.ok:
        for error in result.report.errors:
            print(f"error: {error}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
