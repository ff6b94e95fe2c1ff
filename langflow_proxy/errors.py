# Role: Error taxonomy for the Langflow integration. Everything raised by this package derives from
# LangflowError, so the API layer can turn any of them into the {success: false, error} envelope.

from __future__ import annotations

import json
from typing import Any


class LangflowError(Exception):
    pass


class RequestError(LangflowError):
    """Non-success HTTP status from the flow-execution API."""

    def __init__(self, status_code: int, status_text: str, body: Any) -> None:
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(f"{status_code} {status_text} - {_serialize(body)}")


class TransportError(LangflowError):
    """Network/connection failure, on the initial call or on an open stream."""


class MalformedResponseError(LangflowError):
    """A payload that should be JSON and is not."""


def _serialize(body: Any) -> str:
    # Key line: non-JSON error bodies are kept as raw text, but still quoted like JSON.stringify would.
    try:
        return json.dumps(body)
    except (TypeError, ValueError):
        return repr(body)
