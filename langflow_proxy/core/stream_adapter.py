# Role: Stream adapter. Subscribes to a Langflow stream_url (server-sent events) and relays updates, completion,
# and errors to caller callbacks from a background thread.
#
# Calling discipline per session: on_update fires zero or more times, then exactly one of on_close / on_error,
# then nothing. Sessions are single-use: once CLOSED or FAILED, a new session must be attached.

from __future__ import annotations

import json
import logging
import socket
import threading
from enum import Enum
from typing import Any, Callable, Iterator, Optional, Tuple

import requests

from langflow_proxy.core.sse import DEFAULT_EVENT, iter_events
from langflow_proxy.errors import LangflowError, MalformedResponseError, RequestError, TransportError

logger = logging.getLogger(__name__)

OnUpdate = Callable[[Any], None]
OnClose = Callable[[str], None]
OnError = Callable[[Exception], None]

CLOSE_EVENT = "close"
STREAM_ERROR_MESSAGE = "Stream error occurred"
# Connect timeout only; an open stream may stay idle indefinitely.
STREAM_CONNECT_TIMEOUT_SECONDS = 10.0


class StreamState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    FAILED = "failed"


_TERMINAL = {StreamState.CLOSED, StreamState.FAILED}


def open_event_stream(stream_url: str) -> requests.Response:
    try:
        r = requests.get(
            stream_url,
            stream=True,
            headers={"Accept": "text/event-stream"},
            timeout=(STREAM_CONNECT_TIMEOUT_SECONDS, None),
        )
    except requests.RequestException as e:
        raise TransportError(STREAM_ERROR_MESSAGE) from e

    if not r.ok:
        r.close()
        raise TransportError(STREAM_ERROR_MESSAGE) from RequestError(r.status_code, r.reason or "", stream_url)

    # Key line: text/event-stream is UTF-8 by definition; requests would otherwise guess ISO-8859-1.
    r.encoding = "utf-8"
    return r


def iter_stream_updates(response: requests.Response) -> Iterator[Any]:
    """
    Yield parsed JSON payloads of `message` events until a `close` event.
    Raises MalformedResponseError on non-JSON data and TransportError when the
    connection breaks or ends without a `close` event.
    """
    try:
        # Key line: chunk_size=1 hands each line over as soon as it arrives; the default 512 holds short events back.
        for event in iter_events(response.iter_lines(chunk_size=1, decode_unicode=True)):
            if event.event == CLOSE_EVENT:
                return
            if event.event != DEFAULT_EVENT:
                continue
            try:
                data = json.loads(event.data)
            except ValueError as e:
                raise MalformedResponseError(f"Stream event is not valid JSON: {event.data[:200]!r}") from e
            yield data
    except requests.RequestException as e:
        raise TransportError(STREAM_ERROR_MESSAGE) from e

    raise TransportError(STREAM_ERROR_MESSAGE) from ConnectionError("stream ended without a close event")


def _underlying_socket(response: requests.Response) -> Optional[socket.socket]:
    raw = getattr(response, "raw", None)
    sock = getattr(getattr(raw, "connection", None), "sock", None)
    if sock is None:
        # http.client drops conn.sock for non-keep-alive responses; the socket lives on in the response's reader.
        fp = getattr(getattr(raw, "_fp", None), "fp", None)
        sock = getattr(getattr(fp, "raw", None), "_sock", None)
    return sock


def interrupt_event_stream(response: requests.Response) -> None:
    """
    Wake a reader blocked on `response` from another thread.

    Response.close() would wait on the buffered reader's lock, which the blocked
    reader holds, so the socket is shut down instead; the read then returns and
    the reader thread closes the response itself.
    """
    sock = _underlying_socket(response)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        logger.debug("Stream socket already shut down: %s", e)


class StreamSession:
    def __init__(
        self,
        stream_url: str,
        on_update: OnUpdate,
        on_close: OnClose,
        on_error: OnError,
    ) -> None:
        self.stream_url = stream_url
        self._on_update = on_update
        self._on_close = on_close
        self._on_error = on_error

        self._state = StreamState.CONNECTING
        self._response: Optional[requests.Response] = None
        # Terminal callback + argument, recorded on the transition and delivered by the reader thread.
        self._outcome: Optional[Tuple[Callable[[Any], None], Any]] = None
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._started = False
        self._thread = threading.Thread(
            target=self._run,
            name=f"langflow-stream-{id(self):x}",
            daemon=True,
        )

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state not in _TERMINAL

    def start(self) -> "StreamSession":
        with self._lock:
            if self._started:
                raise RuntimeError("StreamSession cannot be restarted; attach a new session")
            self._started = True
        self._thread.start()
        return self

    def close(self) -> None:
        """
        Explicit shutdown. Returns without waiting for the reader; on_close is
        delivered once any in-flight on_update has returned. Use wait() to block
        until then.
        """
        if not self._settle(StreamState.CLOSED, self._on_close, "Stream closed by client"):
            return
        response = self._response
        if response is not None:
            interrupt_event_stream(response)

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    def _run(self) -> None:
        # 1) Connect (CONNECTING -> OPEN, or FAILED)
        # 2) Relay message events in arrival order
        # 3) Close the response and deliver the single terminal callback from this thread
        response = None
        try:
            response = self._connect()
            if response is not None:
                self._pump(response)
        finally:
            if response is not None:
                response.close()
            self._finish()

    def _connect(self) -> Optional[requests.Response]:
        try:
            response = open_event_stream(self.stream_url)
        except TransportError as e:
            self._fail(e)
            return None

        with self._lock:
            if self._state is not StreamState.CONNECTING:
                response.close()
                return None
            self._response = response
            self._state = StreamState.OPEN
        return response

    def _pump(self, response: requests.Response) -> None:
        try:
            for data in iter_stream_updates(response):
                if self._state is not StreamState.OPEN:
                    return
                try:
                    self._on_update(data)
                except Exception as e:
                    logger.exception("Stream update callback failed")
                    self._settle(StreamState.FAILED, self._on_error, e)
                    return
        except LangflowError as e:
            self._fail(e)
            return
        except Exception as e:
            # Reads on a socket shut down by close() land here too; _fail is a no-op then.
            error = TransportError(STREAM_ERROR_MESSAGE)
            error.__cause__ = e
            self._fail(error)
            return

        self._settle(StreamState.CLOSED, self._on_close, "Stream closed")

    def _fail(self, error: Exception) -> None:
        if self.is_active:
            logger.error("Stream Error: %s (%s)", error, error.__cause__ or "no detail")
        self._settle(StreamState.FAILED, self._on_error, error)

    def _settle(self, state: StreamState, callback: Callable[[Any], None], arg: Any) -> bool:
        with self._lock:
            if self._state in _TERMINAL:
                return False
            self._state = state
            self._outcome = (callback, arg)
        return True

    def _finish(self) -> None:
        if self._outcome is None:
            self._settle(StreamState.FAILED, self._on_error, TransportError(STREAM_ERROR_MESSAGE))
        with self._lock:
            self._response = None
            callback, arg = self._outcome
        try:
            callback(arg)
        except Exception:
            logger.exception("Stream %s callback failed", self._state.value)
        self._done.set()


class StreamAdapter:
    def attach(
        self,
        stream_url: str,
        on_update: OnUpdate,
        on_close: OnClose,
        on_error: OnError,
    ) -> StreamSession:
        # Fire-and-forget: the session runs on its own thread; the caller keeps the handle.
        logger.info("Streaming from: %s", stream_url)
        return StreamSession(stream_url, on_update, on_close, on_error).start()

    def iter_updates(self, stream_url: str) -> Iterator[Any]:
        # Pull-style alternative to attach(): same transport, caller drives the loop.
        response = open_event_stream(stream_url)
        try:
            yield from iter_stream_updates(response)
        finally:
            response.close()
