"""Render channel backed by a local worker process speaking JSON lines over stdio."""

from __future__ import annotations

import logging
import os
import queue
import subprocess
import sys
import threading
from collections import deque
from pathlib import Path
from typing import IO, Mapping, Sequence

from .base import EngineStartupError, RasterResult, RenderError, RenderRequest, RenderTimeoutError
from .protocol import READY, ProtocolError, RenderFailure, decode_reply, encode_request

logger = logging.getLogger(__name__)

DEFAULT_WORKER_COMMAND = (sys.executable, "-m", "iconsheet.engine.worker")
_STDERR_TAIL = 20
_TERMINATE_GRACE = 2.0


def _pump(stream: IO[str], sink: "queue.Queue[str | None]") -> None:
    """Forward lines from *stream* into *sink*; ``None`` marks end of stream."""

    try:
        for line in stream:
            sink.put(line)
    except (OSError, ValueError):
        # The stream was closed underneath us during shutdown.
        pass
    finally:
        sink.put(None)


def _drain_stderr(stream: IO[str], tail: deque[str]) -> None:
    try:
        for line in stream:
            text = line.rstrip()
            tail.append(text)
            logger.debug("engine: %s", text)
    except (OSError, ValueError):
        pass


class SubprocessRenderSession:
    """One live worker process. Use ``SubprocessRenderChannel.open`` to create."""

    def __init__(self, proc: subprocess.Popen[str], *, render_timeout: float) -> None:
        self._proc = proc
        self._render_timeout = render_timeout
        self._replies: "queue.Queue[str | None]" = queue.Queue()
        self._stderr_tail: deque[str] = deque(maxlen=_STDERR_TAIL)
        self._closed = False
        self._threads = [
            threading.Thread(target=_pump, args=(proc.stdout, self._replies), daemon=True),
            threading.Thread(target=_drain_stderr, args=(proc.stderr, self._stderr_tail), daemon=True),
        ]
        for thread in self._threads:
            thread.start()

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def closed(self) -> bool:
        return self._closed

    def _stderr_summary(self) -> str:
        # Give the drain thread a moment to catch the last lines of a dying worker.
        self._threads[1].join(timeout=0.2)
        if not self._stderr_tail:
            return ""
        return f": {self._stderr_tail[-1]}"

    def wait_ready(self, timeout: float) -> None:
        try:
            line = self._replies.get(timeout=timeout)
        except queue.Empty as exc:
            msg = f"Render engine did not become ready within {timeout:g}s"
            raise EngineStartupError(msg) from exc
        if line is None:
            code = self._proc.poll()
            msg = f"Render engine exited during startup (exit code {code}){self._stderr_summary()}"
            raise EngineStartupError(msg)
        if line.strip() != READY:
            msg = f"Render engine sent an unexpected greeting: {line.strip()[:80]!r}"
            raise EngineStartupError(msg)

    def render(self, vector_markup: str, scale: float) -> RasterResult:
        if self._closed:
            msg = "Render session is closed."
            raise RenderError(msg)

        stdin = self._proc.stdin
        if stdin is None:
            msg = "Render engine stdin unavailable."
            raise RenderError(msg)
        try:
            stdin.write(encode_request(RenderRequest(vector_markup=vector_markup, scale=scale)) + "\n")
            stdin.flush()
        except (BrokenPipeError, OSError, ValueError) as exc:
            msg = f"Render engine is no longer accepting requests{self._stderr_summary()}"
            raise RenderError(msg) from exc

        try:
            line = self._replies.get(timeout=self._render_timeout)
        except queue.Empty as exc:
            msg = f"Render engine did not answer within {self._render_timeout:g}s"
            raise RenderTimeoutError(msg) from exc
        if line is None:
            msg = f"Render engine exited unexpectedly{self._stderr_summary()}"
            raise RenderError(msg)

        try:
            reply = decode_reply(line)
        except ProtocolError as exc:
            raise RenderError(str(exc)) from exc
        if isinstance(reply, RenderFailure):
            msg = reply.reason or "Render engine could not rasterize the markup"
            raise RenderError(msg)
        return reply

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        proc = self._proc
        try:
            if proc.stdin is not None:
                proc.stdin.close()
        except OSError:
            pass
        if proc.poll() is None:
            proc.terminate()
            try:
                proc.wait(timeout=_TERMINATE_GRACE)
            except subprocess.TimeoutExpired:
                proc.kill()
                proc.wait()
        for thread in self._threads:
            thread.join(timeout=_TERMINATE_GRACE)
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
        logger.debug("Render engine %s stopped (exit code %s)", proc.pid, proc.returncode)


class SubprocessRenderChannel:
    """Starts the worker with *command* and hands out sessions bound to it."""

    def __init__(
        self,
        command: Sequence[str] | None = None,
        *,
        startup_timeout: float = 10.0,
        render_timeout: float = 30.0,
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> None:
        self._command = list(command) if command else list(DEFAULT_WORKER_COMMAND)
        self._startup_timeout = startup_timeout
        self._render_timeout = render_timeout
        self._env = env
        self._cwd = cwd

    @property
    def command(self) -> list[str]:
        return list(self._command)

    def open(self) -> SubprocessRenderSession:
        logger.debug("Starting render engine: %s", " ".join(self._command))
        try:
            proc = subprocess.Popen(
                self._command,
                cwd=str(self._cwd) if self._cwd is not None else None,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                bufsize=1,
                env=self._build_process_env(),
            )
        except OSError as exc:
            msg = f"Failed to start render engine: {exc}"
            raise EngineStartupError(msg) from exc

        session = SubprocessRenderSession(proc, render_timeout=self._render_timeout)
        try:
            session.wait_ready(self._startup_timeout)
        except EngineStartupError:
            session.close()
            raise
        logger.info("Render engine ready (pid %s)", proc.pid)
        return session

    def _build_process_env(self) -> dict[str, str]:
        env = dict(self._env if self._env is not None else os.environ)
        path_entries = []
        existing = env.get("PYTHONPATH")
        if existing:
            path_entries.extend([p for p in existing.split(os.pathsep) if p])
        # Make the worker importable from a source checkout as well as an install.
        package_root = str(Path(__file__).resolve().parents[2])
        if package_root not in path_entries:
            path_entries.insert(0, package_root)
        env["PYTHONPATH"] = os.pathsep.join(path_entries)
        env.setdefault("PYTHONUNBUFFERED", "1")
        env.setdefault("PYTHONIOENCODING", "utf-8")
        return env


__all__ = [
    "DEFAULT_WORKER_COMMAND",
    "SubprocessRenderChannel",
    "SubprocessRenderSession",
]
