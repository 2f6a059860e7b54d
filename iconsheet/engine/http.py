"""Render channel that delegates rasterization to a remote render service."""

from __future__ import annotations

import logging

import httpx

from .base import EngineStartupError, RasterResult, RenderError, RenderRequest, RenderTimeoutError
from .protocol import ProtocolError, parse_result_payload, request_payload

logger = logging.getLogger(__name__)

FAILURE_STATUS = 422


class HttpRenderSession:
    """Session bound to a single ``httpx.Client`` connection pool."""

    def __init__(self, client: httpx.Client, base_url: str) -> None:
        self._client = client
        self._base_url = base_url
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def render(self, vector_markup: str, scale: float) -> RasterResult:
        if self._closed:
            msg = "Render session is closed."
            raise RenderError(msg)

        payload = request_payload(RenderRequest(vector_markup=vector_markup, scale=scale))
        try:
            response = self._client.post(f"{self._base_url}/render", json=payload)
        except httpx.TimeoutException as exc:
            msg = f"Render service at {self._base_url} timed out"
            raise RenderTimeoutError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Render service request failed: {exc}"
            raise RenderError(msg) from exc

        if response.status_code == FAILURE_STATUS:
            raise RenderError(_failure_reason(response))
        if response.status_code != 200:
            msg = f"Render service returned {response.status_code}: {response.text[:200]}"
            raise RenderError(msg)

        try:
            return parse_result_payload(response.json())
        except (ValueError, ProtocolError) as exc:
            msg = f"Render service sent an invalid reply: {exc}"
            raise RenderError(msg) from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._client.close()


def _failure_reason(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return response.text.strip() or "Render service could not rasterize the markup"


class HttpRenderChannel:
    """Opens sessions against ``{url}/health`` and ``{url}/render``."""

    def __init__(
        self,
        url: str,
        *,
        startup_timeout: float = 10.0,
        render_timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._startup_timeout = startup_timeout
        self._render_timeout = render_timeout
        self._transport = transport

    def open(self) -> HttpRenderSession:
        client = httpx.Client(
            timeout=httpx.Timeout(self._render_timeout, connect=self._startup_timeout),
            transport=self._transport,
        )
        try:
            response = client.get(f"{self._url}/health", timeout=self._startup_timeout)
        except httpx.HTTPError as exc:
            client.close()
            msg = f"Render service at {self._url} is unreachable: {exc}"
            raise EngineStartupError(msg) from exc
        if response.status_code != 200:
            client.close()
            msg = f"Render service at {self._url} is not ready: {response.status_code}"
            raise EngineStartupError(msg)
        logger.info("Render service ready at %s", self._url)
        return HttpRenderSession(client, self._url)


__all__ = ["FAILURE_STATUS", "HttpRenderChannel", "HttpRenderSession"]
