import base64
import json

import httpx
import pytest

from iconsheet.engine import EngineStartupError, RenderError, RenderTimeoutError, build_render_channel
from iconsheet.engine.http import HttpRenderChannel
from iconsheet.models import RenderEngineConfig


def _service(calls: list[str], *, healthy: bool = True):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(f"{request.method} {request.url.path}")
        if request.url.path == "/health":
            return httpx.Response(200 if healthy else 503)
        if request.url.path == "/render":
            payload = json.loads(request.content)
            if "broken" in payload["svg"]:
                return httpx.Response(422, json={"error": "missing intrinsic size"})
            if "slow" in payload["svg"]:
                raise httpx.ReadTimeout("timed out", request=request)
            if "weird" in payload["svg"]:
                return httpx.Response(200, json={"unexpected": True})
            return httpx.Response(
                200,
                json={
                    "png": base64.b64encode(b"raster").decode("ascii"),
                    "width": 16 * payload["scale"],
                    "height": 16 * payload["scale"],
                },
            )
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def test_open_render_and_close() -> None:
    calls: list[str] = []
    channel = HttpRenderChannel("http://render.test/", transport=_service(calls))

    session = channel.open()
    try:
        result = session.render("<svg/>", 2)
    finally:
        session.close()
    session.close()

    assert result.data == b"raster"
    assert (result.width, result.height) == (32, 32)
    assert calls == ["GET /health", "POST /render"]
    assert session.closed


def test_unhealthy_service_fails_startup() -> None:
    channel = HttpRenderChannel("http://render.test", transport=_service([], healthy=False))

    with pytest.raises(EngineStartupError, match="not ready"):
        channel.open()


def test_unreachable_service_fails_startup() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    channel = HttpRenderChannel("http://render.test", transport=httpx.MockTransport(handler))

    with pytest.raises(EngineStartupError, match="unreachable"):
        channel.open()


@pytest.mark.parametrize(
    ("markup", "error", "message"),
    [
        ("<svg>broken</svg>", RenderError, "missing intrinsic size"),
        ("<svg>slow</svg>", RenderTimeoutError, "timed out"),
        ("<svg>weird</svg>", RenderError, "invalid reply"),
    ],
)
def test_render_failures(markup: str, error: type[Exception], message: str) -> None:
    session = HttpRenderChannel("http://render.test", transport=_service([])).open()
    try:
        with pytest.raises(error, match=message):
            session.render(markup, 1)
    finally:
        session.close()


def test_build_render_channel_selects_http() -> None:
    channel = build_render_channel(RenderEngineConfig(kind="http", url="http://render.test"))

    assert isinstance(channel, HttpRenderChannel)
