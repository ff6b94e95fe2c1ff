# Role: Typed, immutable input for one flow run. Built once per inbound call and handed to the client/runner.

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class FlowRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    flow_id: str
    flow_group_id: str
    input_value: str
    input_type: str = "chat"
    output_type: str = "chat"
    tweaks: Dict[str, Any] = Field(default_factory=dict)
    stream: bool = False

    def to_run_payload(self) -> Dict[str, Any]:
        # Key line: wire names are snake_case on the Langflow side.
        return {
            "input_value": self.input_value,
            "input_type": self.input_type,
            "output_type": self.output_type,
            "tweaks": dict(self.tweaks),
        }
