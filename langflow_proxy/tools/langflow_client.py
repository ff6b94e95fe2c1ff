# Role: External tool adapter for the Langflow flow-execution API. Builds the /run call, attaches bearer auth,
# and normalizes failures into RequestError / TransportError / MalformedResponseError.

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from langflow_proxy.config import LangflowConfig
from langflow_proxy.errors import MalformedResponseError, RequestError, TransportError
from langflow_proxy.models.flow_request import FlowRequest
from langflow_proxy.models.flow_response import FlowResponse

logger = logging.getLogger(__name__)


class LangflowClient:
    RUN_PATH = "/lf/{flow_group_id}/api/v1/run/{flow_id}"

    def __init__(self, config: LangflowConfig) -> None:
        self.base_url = config.base_url
        self.application_token = config.application_token
        self.timeout_seconds = config.timeout_seconds

    def post(
        self,
        endpoint: str,
        body: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        # 1) Merge headers (auth + content type always win)
        # 2) POST JSON body
        # 3) Parse body before checking status so errors carry it
        # 4) Raise on non-2xx, return parsed JSON otherwise
        merged = dict(headers or {})
        merged["Content-Type"] = "application/json"
        merged["Authorization"] = f"Bearer {self.application_token}"
        url = f"{self.base_url}{endpoint}"

        try:
            r = requests.post(url, json=body, headers=merged, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            logger.error("Request Error: %s", e)
            raise TransportError(f"Langflow request failed: {e}") from e

        try:
            payload = r.json()
        except ValueError:
            payload = None
            if r.ok:
                logger.error("Request Error: non-JSON body from %s", url)
                raise MalformedResponseError(f"Langflow returned a non-JSON body ({r.status_code})")

        if not r.ok:
            err = RequestError(r.status_code, r.reason or "", payload if payload is not None else r.text)
            logger.error("Request Error: %s", err)
            raise err

        return payload

    def initiate_session(
        self,
        flow_id: str,
        flow_group_id: str,
        input_value: str,
        input_type: str = "chat",
        output_type: str = "chat",
        stream: bool = False,
        tweaks: Optional[Dict[str, Any]] = None,
    ) -> FlowResponse:
        request = FlowRequest(
            flow_id=flow_id,
            flow_group_id=flow_group_id,
            input_value=input_value,
            input_type=input_type,
            output_type=output_type,
            tweaks=tweaks or {},
            stream=stream,
        )
        return self.run(request)

    def run(self, request: FlowRequest) -> FlowResponse:
        path = self.RUN_PATH.format(flow_group_id=request.flow_group_id, flow_id=request.flow_id)
        # Key line: the flag is rendered lower-case ("true"/"false"), which is what Langflow parses.
        endpoint = f"{path}?stream={'true' if request.stream else 'false'}"

        payload = self.post(endpoint, request.to_run_payload())
        logger.debug("Init Response: %s", payload)
        return FlowResponse.from_payload(payload)
