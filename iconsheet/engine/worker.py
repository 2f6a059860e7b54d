"""Out-of-process render engine rasterizing SVG markup with CairoSVG.

Run as ``python -m iconsheet.engine.worker``. Requests arrive on stdin and
replies leave on stdout, one JSON line each (see ``iconsheet.engine.protocol``).
Diagnostics go to stderr so they never interleave with protocol traffic.
"""

from __future__ import annotations

import logging
import re
import sys
import xml.etree.ElementTree as ET
from typing import IO, Any

from .base import RasterResult, RenderError
from .protocol import READY, ProtocolError, decode_request, encode_failure, encode_success

logger = logging.getLogger(__name__)

_PIXEL_LENGTH = re.compile(r"^\s*(?P<value>\d+(?:\.\d+)?|\.\d+)\s*(?:px)?\s*$")


def load_backend() -> Any:
    """Import CairoSVG; missing Python or native libraries raise ``ImportError``/``OSError``."""

    import cairosvg

    return cairosvg


def intrinsic_size(markup: str) -> tuple[float, float]:
    """Return the ``width``/``height`` declared on the root ``<svg>`` element."""

    try:
        root = ET.fromstring(markup)
    except ET.ParseError as exc:
        msg = f"Malformed SVG markup: {exc}"
        raise RenderError(msg) from exc

    if root.tag != "svg" and not root.tag.endswith("}svg"):
        msg = f"Root element is <{root.tag}>, expected <svg>."
        raise RenderError(msg)

    dimensions: list[float] = []
    for name in ("width", "height"):
        raw = root.get(name)
        if raw is None:
            msg = f"SVG root is missing the '{name}' attribute."
            raise RenderError(msg)
        match = _PIXEL_LENGTH.match(raw)
        if match is None:
            msg = f"SVG {name} '{raw}' is not a pixel length."
            raise RenderError(msg)
        value = float(match.group("value"))
        if value <= 0:
            msg = f"SVG {name} must be positive (got '{raw}')."
            raise RenderError(msg)
        dimensions.append(value)
    return dimensions[0], dimensions[1]


def rasterize(markup: str, scale: float, *, backend: Any | None = None) -> RasterResult:
    """Render *markup* to PNG at *scale* times its intrinsic size."""

    width, height = intrinsic_size(markup)
    cairosvg = backend or load_backend()
    try:
        png = cairosvg.svg2png(bytestring=markup.encode("utf-8"), scale=scale)
    except Exception as exc:  # CairoSVG raises a wide range of parser errors.
        msg = f"CairoSVG could not render the markup: {exc}"
        raise RenderError(msg) from exc
    if not png:
        msg = "CairoSVG produced an empty image."
        raise RenderError(msg)
    return RasterResult(data=png, width=width * scale, height=height * scale)


def _reply(stream: IO[str], line: str) -> None:
    stream.write(line + "\n")
    stream.flush()


def serve(stdin: IO[str], stdout: IO[str], *, backend: Any) -> int:
    """Answer requests from *stdin* until it closes; returns the number served."""

    _reply(stdout, READY)
    served = 0
    for raw in stdin:
        line = raw.strip()
        if not line:
            continue
        try:
            request = decode_request(line)
            result = rasterize(request.vector_markup, request.scale, backend=backend)
        except (ProtocolError, RenderError) as exc:
            logger.warning("Render failed: %s", exc)
            _reply(stdout, encode_failure(str(exc)))
        else:
            _reply(stdout, encode_success(result))
        served += 1
    logger.debug("Input closed after %d requests", served)
    return served


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        stream=sys.stderr,
        format="%(levelname)s iconsheet-worker: %(message)s",
    )
    try:
        backend = load_backend()
    except (ImportError, OSError) as exc:
        logger.error("CairoSVG is unavailable: %s", exc)
        return 1
    serve(sys.stdin, sys.stdout, backend=backend)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
