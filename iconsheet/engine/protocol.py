"""JSON-lines wire format spoken between the pipeline and a render engine.

Each message is a single line of UTF-8 text:

* engine -> host, once at startup: ``ready``
* host -> engine: ``{"svg": "<markup>", "scale": 2}``
* engine -> host on success: ``{"png": "<base64>", "width": 40, "height": 40}``
* engine -> host on failure: ``fail`` optionally followed by a tab and a reason
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Mapping

from .base import RasterResult, RenderRequest

READY = "ready"
FAIL = "fail"


class ProtocolError(ValueError):
    """Raised when a message does not follow the wire format."""


@dataclass(frozen=True)
class RenderFailure:
    """Failure sentinel: the engine could not rasterize the current item."""

    reason: str | None = None


def request_payload(request: RenderRequest) -> dict[str, Any]:
    return {"svg": request.vector_markup, "scale": request.scale}


def parse_request_payload(payload: Any) -> RenderRequest:
    if not isinstance(payload, Mapping):
        msg = "Render request must be a JSON object."
        raise ProtocolError(msg)
    markup = payload.get("svg")
    scale = payload.get("scale", 1)
    if not isinstance(markup, str):
        msg = "Render request is missing the 'svg' markup string."
        raise ProtocolError(msg)
    if isinstance(scale, bool) or not isinstance(scale, (int, float)) or scale <= 0:
        msg = f"Render request has an invalid scale: {scale!r}"
        raise ProtocolError(msg)
    return RenderRequest(vector_markup=markup, scale=scale)


def result_payload(result: RasterResult) -> dict[str, Any]:
    return {
        "png": base64.b64encode(result.data).decode("ascii"),
        "width": result.width,
        "height": result.height,
    }


def parse_result_payload(payload: Any) -> RasterResult:
    if not isinstance(payload, Mapping):
        msg = "Render reply must be a JSON object."
        raise ProtocolError(msg)
    encoded = payload.get("png")
    width = payload.get("width")
    height = payload.get("height")
    if not isinstance(encoded, str):
        msg = "Render reply is missing the 'png' payload."
        raise ProtocolError(msg)
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            msg = f"Render reply has an invalid {name}: {value!r}"
            raise ProtocolError(msg)
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        msg = "Render reply carries malformed base64 data."
        raise ProtocolError(msg) from exc
    return RasterResult(data=data, width=width, height=height)


def encode_request(request: RenderRequest) -> str:
    return json.dumps(request_payload(request))


def decode_request(line: str) -> RenderRequest:
    try:
        payload = json.loads(line)
    except json.JSONDecodeError as exc:
        msg = "Render request is not valid JSON."
        raise ProtocolError(msg) from exc
    return parse_request_payload(payload)


def encode_success(result: RasterResult) -> str:
    return json.dumps(result_payload(result))


def encode_failure(reason: str | None = None) -> str:
    if not reason:
        return FAIL
    # Newlines would break the line framing.
    flattened = " ".join(reason.split())
    return f"{FAIL}\t{flattened}"


def decode_reply(line: str) -> RasterResult | RenderFailure:
    """Decode one engine reply line into a result or the failure sentinel."""

    text = line.rstrip("\r\n")
    if text == FAIL:
        return RenderFailure()
    if text.startswith(f"{FAIL}\t"):
        return RenderFailure(reason=text[len(FAIL) + 1:] or None)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Unexpected engine reply: {text[:80]!r}"
        raise ProtocolError(msg) from exc
    return parse_result_payload(payload)


__all__ = [
    "FAIL",
    "READY",
    "ProtocolError",
    "RenderFailure",
    "decode_reply",
    "decode_request",
    "encode_failure",
    "encode_request",
    "encode_success",
    "parse_request_payload",
    "parse_result_payload",
    "request_payload",
    "result_payload",
]
