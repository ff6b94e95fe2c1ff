# Role: Thin HTTP adapter for the chat endpoints. Reshapes the inbound payload into a FlowRequest and delegates
# the run to FlowRunner. /api/rag answers with a JSON envelope; /api/rag/stream relays the Langflow stream as SSE.

from __future__ import annotations

import json
import logging
import queue
from typing import Any, Dict, Iterator, Optional, Tuple

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import AliasChoices, BaseModel, Field

from langflow_proxy.api.deps import get_flow_runner
from langflow_proxy.core.flow_runner import FlowRun, FlowRunner
from langflow_proxy.models.flow_request import FlowRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rag"])

KEEPALIVE_SECONDS = 15.0


class RagRequest(BaseModel):
    flow_id: str = Field(validation_alias=AliasChoices("flowId", "flow_id"))
    # Key line: older clients send the flow group as "langflowId".
    flow_group_id: str = Field(validation_alias=AliasChoices("flowGroupId", "langflowId", "flow_group_id"))
    input_value: str = Field(validation_alias=AliasChoices("inputValue", "input_value"))
    input_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("inputType", "input_type"))
    output_type: Optional[str] = Field(default=None, validation_alias=AliasChoices("outputType", "output_type"))
    tweaks: Optional[Dict[str, Any]] = None

    def to_flow_request(self, stream: bool) -> FlowRequest:
        return FlowRequest(
            flow_id=self.flow_id,
            flow_group_id=self.flow_group_id,
            input_value=self.input_value,
            input_type=self.input_type or "chat",
            output_type=self.output_type or "chat",
            tweaks=self.tweaks or {},
            stream=stream,
        )


def error_envelope(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "error": message})


def _sse(event: str, payload: Any) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


@router.post("/api/rag")
def run_rag(req: RagRequest, runner: FlowRunner = Depends(get_flow_runner)) -> JSONResponse:
    # 1) Run the flow without streaming
    # 2) Return the Langflow body untouched inside the success envelope
    try:
        result = runner.run_flow(req.to_flow_request(stream=False))
    except Exception as e:
        logger.exception("Flow run failed")
        return error_envelope(str(e))

    return JSONResponse(content={"success": True, "data": result.to_payload()})


def relay_stream(run: FlowRun, events: queue.Queue) -> Iterator[str]:
    """
    Render a started run as SSE: `init` with the initial body, then every queued update until the
    terminal close/error event. Comment lines keep idle connections from being reaped.
    """
    yield _sse("init", run.response.to_payload())

    if run.session is None:
        yield _sse("close", "No stream available")
        return

    try:
        while True:
            try:
                kind, payload = events.get(timeout=KEEPALIVE_SECONDS)
            except queue.Empty:
                yield ": keep-alive\n\n"
                continue
            yield _sse(kind, payload)
            if kind in {"close", "error"}:
                return
    finally:
        # Client went away (or we finished): make sure the upstream connection is released.
        if run.session.is_active:
            run.session.close()


@router.post("/api/rag/stream")
def run_rag_stream(req: RagRequest, runner: FlowRunner = Depends(get_flow_runner)) -> Response:
    # 1) Run the flow with streaming; a failure here still gets the 500 JSON envelope
    # 2) Relay the attached stream as SSE
    # Callbacks fire on the stream thread; the queue hands events to the response generator in arrival order.
    events: queue.Queue[Tuple[str, Any]] = queue.Queue()

    try:
        run = runner.start_flow(
            req.to_flow_request(stream=True),
            on_update=lambda data: events.put(("update", data)),
            on_close=lambda reason: events.put(("close", reason)),
            on_error=lambda err: events.put(("error", str(err))),
        )
    except Exception as e:
        logger.exception("Flow run failed")
        return error_envelope(str(e))

    return StreamingResponse(relay_stream(run, events), media_type="text/event-stream")
