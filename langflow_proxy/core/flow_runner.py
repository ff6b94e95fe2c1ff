# Role: Orchestrator for one flow run. Calls the Langflow client, then (only when streaming was requested, a
# stream_url came back, and all callbacks are present) attaches the stream adapter without waiting on it.

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from langflow_proxy.core.stream_adapter import OnClose, OnError, OnUpdate, StreamAdapter, StreamSession
from langflow_proxy.models.flow_request import FlowRequest
from langflow_proxy.models.flow_response import FlowResponse
from langflow_proxy.tools.langflow_client import LangflowClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlowRun:
    response: FlowResponse
    session: Optional[StreamSession] = None


class FlowRunner:
    def __init__(self, client: LangflowClient, stream_adapter: Optional[StreamAdapter] = None) -> None:
        # Key line: dependencies are injectable for testing/mocking.
        self.client = client
        self.stream_adapter = stream_adapter or StreamAdapter()

    def run_flow(
        self,
        request: FlowRequest,
        on_update: Optional[OnUpdate] = None,
        on_close: Optional[OnClose] = None,
        on_error: Optional[OnError] = None,
    ) -> FlowResponse:
        return self.start_flow(request, on_update, on_close, on_error).response

    def start_flow(
        self,
        request: FlowRequest,
        on_update: Optional[OnUpdate] = None,
        on_close: Optional[OnClose] = None,
        on_error: Optional[OnError] = None,
    ) -> FlowRun:
        # 1) Run the flow (errors: notify on_error, then re-raise)
        # 2) If not streaming -> done
        # 3) Look up stream_url + callbacks; missing pieces degrade to a plain response
        # 4) Attach the stream and return immediately
        try:
            response = self.client.run(request)
        except Exception as e:
            logger.error("Error running flow: %s", e)
            if on_error is not None:
                on_error(e)
            raise

        if not request.stream:
            return FlowRun(response=response)

        stream_url = response.stream_url()
        if not stream_url:
            logger.warning("Streaming requested for flow %s but no stream_url was returned", request.flow_id)
            return FlowRun(response=response)

        if on_update is None or on_close is None or on_error is None:
            logger.warning("Streaming requested for flow %s without all stream callbacks; not attaching", request.flow_id)
            return FlowRun(response=response)

        session = self.stream_adapter.attach(stream_url, on_update, on_close, on_error)
        return FlowRun(response=response, session=session)
