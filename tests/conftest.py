from __future__ import annotations

import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from types import SimpleNamespace
from typing import Any, Iterable, Iterator, List, Optional, Tuple

import pytest

from langflow_proxy.config import LangflowConfig

_NO_JSON = object()


class FakeResponse:
    """Stand-in for the requests.Response returned by requests.post."""

    def __init__(
        self,
        status_code: int = 200,
        payload: Any = _NO_JSON,
        reason: str = "OK",
        text: str = "",
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        self.text = text if payload is _NO_JSON else json.dumps(payload)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._payload is _NO_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSocket:
    """Records shutdown() and releases whatever reader is parked on the owning response."""

    def __init__(self, released: threading.Event) -> None:
        self._released = released
        self.shutdowns: List[int] = []

    def shutdown(self, how: int) -> None:
        self.shutdowns.append(how)
        self._released.set()


class FakeStreamResponse:
    """Stand-in for a streaming requests.Response: replays SSE lines, then optionally raises."""

    def __init__(
        self,
        lines: Iterable[str],
        status_code: int = 200,
        reason: str = "OK",
        error: Optional[Exception] = None,
        hold_open: bool = False,
    ) -> None:
        self.lines = list(lines)
        self.status_code = status_code
        self.reason = reason
        self.error = error
        self.encoding: Optional[str] = None
        self.closed = False
        self._released = threading.Event()
        self._hold_open = hold_open
        self.sock = FakeSocket(self._released)
        self.raw = SimpleNamespace(connection=SimpleNamespace(sock=self.sock))

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def iter_lines(self, chunk_size: int = 512, decode_unicode: bool = False):
        for line in self.lines:
            if self.closed:
                return
            yield line
        if self._hold_open:
            # Behaves like an idle connection until close() or a socket shutdown tears it down.
            self._released.wait(5)
            return
        if self.error is not None:
            raise self.error

    def close(self) -> None:
        self.closed = True
        self._released.set()


def sse_lines(*events: Tuple[Optional[str], Any]) -> List[str]:
    """Render (event_name, payload) pairs as the lines iter_lines would yield."""
    lines: List[str] = []
    for name, payload in events:
        if name is not None:
            lines.append(f"event: {name}")
        if payload is not None:
            data = payload if isinstance(payload, str) else json.dumps(payload)
            lines.append(f"data: {data}")
        lines.append("")
    return lines


IDLE_EVENT = b'data: {"chunk": "a"}\n\n'


class IdleSSEHandler(BaseHTTPRequestHandler):
    """
    Sends one message event and then goes quiet, holding the connection open until the test releases it.
    `/chunked` answers HTTP/1.1 with chunked framing; anything else answers HTTP/1.0 with no length.
    """

    def do_GET(self) -> None:
        chunked = self.path.startswith("/chunked")
        self.protocol_version = "HTTP/1.1" if chunked else "HTTP/1.0"
        self.close_connection = True

        self.send_response(200)
        self.send_header("Content-Type", "text/event-stream")
        if chunked:
            self.send_header("Transfer-Encoding", "chunked")
        else:
            self.send_header("Connection", "close")
        self.end_headers()

        if chunked:
            self.wfile.write(b"%x\r\n%s\r\n" % (len(IDLE_EVENT), IDLE_EVENT))
        else:
            self.wfile.write(IDLE_EVENT)
        self.wfile.flush()
        self.server.release.wait(10)

    def log_message(self, format: str, *args: Any) -> None:
        pass


class CallbackRecorder:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any]] = []

    def on_update(self, data: Any) -> None:
        self.calls.append(("update", data))

    def on_close(self, reason: str) -> None:
        self.calls.append(("close", reason))

    def on_error(self, err: Exception) -> None:
        self.calls.append(("error", err))

    @property
    def updates(self) -> List[Any]:
        return [arg for kind, arg in self.calls if kind == "update"]

    @property
    def closes(self) -> List[str]:
        return [arg for kind, arg in self.calls if kind == "close"]

    @property
    def errors(self) -> List[Exception]:
        return [arg for kind, arg in self.calls if kind == "error"]


@pytest.fixture
def langflow_config() -> LangflowConfig:
    return LangflowConfig(base_url="http://langflow.test", application_token="test-token", timeout_seconds=5)


@pytest.fixture
def recorder() -> CallbackRecorder:
    return CallbackRecorder()


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_stream_response():
    return FakeStreamResponse


@pytest.fixture
def make_sse_lines():
    return sse_lines


@pytest.fixture
def idle_sse_server() -> Iterator[str]:
    """Base URL of a local server whose event streams stay open and silent after the first event."""
    server = ThreadingHTTPServer(("127.0.0.1", 0), IdleSSEHandler)
    server.daemon_threads = True
    server.release = threading.Event()
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    try:
        yield f"http://{host}:{port}"
    finally:
        server.release.set()
        server.shutdown()
        server.server_close()
