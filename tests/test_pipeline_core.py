import logging
from pathlib import Path

import pytest

from iconsheet.models import IconsheetConfig
from iconsheet.pipeline import (
    ExecutionContext,
    IconsheetPipeline,
    OutputKind,
    PipelineError,
    RenderPipeline,
)
from iconsheet.stylesheets import SheetKind
from iconsheet.variants import expand_variants
from tests.utils.icon_cases import FakeRenderChannel, fake_png, write_svg

SHEET_FILES = [
    "icons.data.svg.css",
    "icons.data.png.css",
    "icons.fallback.css",
    "icons.data.svg.x2.css",
    "icons.data.png.x2.css",
    "icons.fallback.x2.css",
]


def _snapshot_tree(root: Path) -> dict[str, bytes]:
    return {
        path.relative_to(root).as_posix(): path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }


def _star_config(**kwargs) -> IconsheetConfig:
    kwargs.setdefault("src", ["example/source/*.svg"])
    kwargs.setdefault("dest", Path("example/output"))
    kwargs.setdefault("basedir", "example/source")
    kwargs.setdefault("variants", [1, 2])
    return IconsheetConfig(**kwargs)


def test_single_source_two_scales(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    write_svg(tmp_path, "example/source/star.svg", 20, 20)
    channel = FakeRenderChannel()

    with caplog.at_level(logging.INFO, logger="iconsheet"):
        result = IconsheetPipeline(channel=channel).execute(_star_config(), ExecutionContext(root=tmp_path))

    output = tmp_path / "example/output"
    assert result.ok
    assert (output / "png/star.png").read_bytes() == fake_png(20, 20)
    assert (output / "png/star.x2.png").read_bytes() == fake_png(40, 40)
    assert [path.name for path in sorted(output.glob("*.css"))] == sorted(SHEET_FILES)

    kinds = [artifact.kind for artifact in result.outputs]
    assert kinds.count(OutputKind.PNG) == 2
    assert kinds.count(OutputKind.CSS) == 6

    fallback = (output / "icons.fallback.x2.css").read_text(encoding="utf-8")
    assert fallback == ".icon-star { background-image: url(png/star.x2.png); background-repeat: no-repeat; }"
    assert "background-size: 40px; " in (output / "icons.data.svg.x2.css").read_text(encoding="utf-8")

    messages = [record.getMessage() for record in caplog.records]
    assert "Rendered 2 SVGs." in messages
    assert "Generated icon stylesheets." in messages

    [session] = channel.sessions
    assert session.close_count == 1
    assert [scale for _, scale in session.calls] == [1, 2]


def test_render_failure_aborts_batch(tmp_path: Path) -> None:
    sources = [write_svg(tmp_path, f"icons/icon{index}.svg") for index in range(5)]
    config = IconsheetConfig(dest=Path("out"), basedir="icons")
    variants = expand_variants(sources, config, root=tmp_path)
    channel = FakeRenderChannel(fail_on=3)

    with pytest.raises(PipelineError) as excinfo:
        RenderPipeline(channel).render(variants)

    error = excinfo.value
    assert error.stage == "render"
    assert error.source == "icons/icon2.svg"
    assert error.scale == 1
    assert [variant.is_rendered for variant in variants] == [True, True, False, False, False]

    [session] = channel.sessions
    assert len(session.calls) == 3
    assert session.close_count == 1


def test_render_failure_writes_nothing(tmp_path: Path) -> None:
    for index in range(5):
        write_svg(tmp_path, f"example/source/icon{index}.svg")
    channel = FakeRenderChannel(fail_on=3)

    with pytest.raises(PipelineError, match="icon1.svg @1x"):
        IconsheetPipeline(channel=channel).execute(_star_config(), ExecutionContext(root=tmp_path))

    assert not (tmp_path / "example/output").exists()


def test_startup_failure_is_reported(tmp_path: Path) -> None:
    write_svg(tmp_path, "example/source/star.svg")

    with pytest.raises(PipelineError) as excinfo:
        IconsheetPipeline(channel=FakeRenderChannel(fail_startup=True)).execute(
            _star_config(), ExecutionContext(root=tmp_path)
        )

    assert excinfo.value.stage == "startup"
    assert "engine binary missing" in str(excinfo.value)
    assert not (tmp_path / "example/output").exists()


def test_collection_errors_stop_before_rendering(tmp_path: Path) -> None:
    write_svg(tmp_path, "example/source/a-b.svg")
    write_svg(tmp_path, "example/source/a/b.svg")
    channel = FakeRenderChannel()

    with pytest.raises(PipelineError) as excinfo:
        IconsheetPipeline(channel=channel).execute(
            _star_config(src=["example/source/**/*.svg"]), ExecutionContext(root=tmp_path)
        )

    assert excinfo.value.stage == "collect"
    assert "icon-a-b" in str(excinfo.value)
    assert channel.sessions == []


def test_rebuilding_is_byte_identical(tmp_path: Path) -> None:
    write_svg(tmp_path, "example/source/star.svg", 20, 20)
    write_svg(tmp_path, "example/source/arrow.svg", 16, 8)
    pipeline = IconsheetPipeline(channel=FakeRenderChannel())
    context = ExecutionContext(root=tmp_path)
    output = tmp_path / "example/output"

    pipeline.execute(_star_config(), context)
    first = _snapshot_tree(output)
    pipeline.execute(_star_config(), context)

    assert _snapshot_tree(output) == first
    assert len(first) == 4 + len(SHEET_FILES)


def test_write_failures_are_reported_without_rollback(tmp_path: Path) -> None:
    write_svg(tmp_path, "example/source/star.svg")
    blocked = tmp_path / "example/output/png/star.x2.png"
    blocked.mkdir(parents=True)

    result = IconsheetPipeline(channel=FakeRenderChannel()).execute(
        _star_config(), ExecutionContext(root=tmp_path)
    )

    assert not result.ok
    [error] = result.report.errors
    assert error.path == blocked
    written = {artifact.path for artifact in result.outputs}
    assert tmp_path / "example/output/png/star.png" in written
    assert len(written) == 1 + len(SHEET_FILES)
    assert (tmp_path / "example/output/icons.fallback.x2.css").is_file()


def test_empty_source_set_produces_nothing(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    channel = FakeRenderChannel()

    with caplog.at_level(logging.WARNING, logger="iconsheet"):
        result = IconsheetPipeline(channel=channel).execute(_star_config(), ExecutionContext(root=tmp_path))

    assert result.ok
    assert result.variants == [] and result.sheets == [] and result.outputs == []
    assert channel.sessions == []
    assert not (tmp_path / "example/output").exists()
    assert any("No SVG sources matched" in record.getMessage() for record in caplog.records)


def test_preselected_sources_skip_discovery(tmp_path: Path) -> None:
    write_svg(tmp_path, "example/source/star.svg")
    write_svg(tmp_path, "example/source/arrow.svg")
    context = ExecutionContext(root=tmp_path, sources=["example/source/arrow.svg"])

    result = IconsheetPipeline(channel=FakeRenderChannel()).execute(_star_config(variants=[1]), context)

    assert [variant.class_name for variant in result.variants] == ["icon-arrow"]
    assert [sheet.kind for sheet in result.sheets] == [SheetKind.VECTOR, SheetKind.RASTER, SheetKind.FALLBACK]


def test_channel_factory_receives_engine_config(tmp_path: Path) -> None:
    write_svg(tmp_path, "example/source/star.svg")
    seen = []

    def factory(engine_config):
        seen.append(engine_config)
        return FakeRenderChannel()

    config = _star_config(engine={"kind": "http", "url": "http://render.local/"})
    IconsheetPipeline(channel_factory=factory).execute(config, ExecutionContext(root=tmp_path))

    assert [engine.url for engine in seen] == ["http://render.local"]


def test_context_root_defaults_to_config_directory(tmp_path: Path) -> None:
    context = ExecutionContext(config_path=tmp_path / "build" / "icons.yaml")

    assert context.resolve_root() == (tmp_path / "build").resolve()


def test_absolute_source_globs_write_under_dest(tmp_path: Path) -> None:
    write_svg(tmp_path, "icons/star.svg")
    config = IconsheetConfig(src=[(tmp_path / "icons").as_posix() + "/*.svg"], dest=Path("out"))

    result = IconsheetPipeline(channel=FakeRenderChannel()).execute(config, ExecutionContext(root=tmp_path))

    assert result.ok
    for artifact in result.outputs:
        assert artifact.path.is_relative_to(tmp_path / "out")
    fallback = (tmp_path / "out/icons.fallback.css").read_text(encoding="utf-8")
    assert "url(png/" in fallback
    assert not (tmp_path / "icons/star.png").exists()


def test_dot_prefixed_sources_and_base_dir(tmp_path: Path) -> None:
    write_svg(tmp_path, "icons/star.svg")
    config = IconsheetConfig(src=["./icons/*.svg"], dest=Path("out"), basedir="./icons")

    result = IconsheetPipeline(channel=FakeRenderChannel()).execute(config, ExecutionContext(root=tmp_path))

    assert [variant.class_name for variant in result.variants] == ["icon-star"]
    assert (tmp_path / "out/png/star.png").is_file()
