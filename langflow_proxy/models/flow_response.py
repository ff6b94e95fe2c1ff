# Role: Partial, typed view over Langflow's /run response. Every level is optional and only the first element
# of each list is ever inspected. The raw parsed JSON is kept so the API can return it untouched.

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)


class _Loose(BaseModel):
    model_config = ConfigDict(extra="allow")

    @field_validator("*", mode="wrap")
    @classmethod
    def _degrade_mismatch(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        # Key line: a level with an unexpected shape becomes None; its siblings keep validating.
        try:
            return handler(value)
        except ValidationError:
            if isinstance(value, list):
                return [_validate_item(handler, item) for item in value]
            return None


def _validate_item(handler: ValidatorFunctionWrapHandler, item: Any) -> Any:
    try:
        return handler([item])[0]
    except ValidationError:
        return None


class Artifacts(_Loose):
    stream_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("stream_url", "streamUrl"),
    )


class InnerMessage(_Loose):
    text: Optional[str] = None


class MessageEnvelope(_Loose):
    # Newer Langflow sends the text directly here; older payloads nest it as {"text": ...}.
    message: Union[InnerMessage, str, None] = None


class ComponentOutputs(_Loose):
    message: Optional[MessageEnvelope] = None


class ComponentResult(_Loose):
    artifacts: Optional[Artifacts] = None
    outputs: Optional[ComponentOutputs] = None


class RunOutput(_Loose):
    outputs: Optional[List[Optional[ComponentResult]]] = None


class FlowResponse(_Loose):
    outputs: Optional[List[Optional[RunOutput]]] = None

    _raw: Any = PrivateAttr(default=None)

    @classmethod
    def from_payload(cls, payload: Any) -> "FlowResponse":
        # Key line: anything that isn't a JSON object yields an empty view, never an exception.
        if isinstance(payload, dict):
            try:
                resp = cls.model_validate(payload)
            except ValidationError:
                resp = cls()
        else:
            resp = cls()
        resp._raw = payload
        return resp

    def to_payload(self) -> Any:
        return self._raw

    def _first_component(self) -> Optional[ComponentResult]:
        if not self.outputs or self.outputs[0] is None:
            return None
        inner = self.outputs[0].outputs
        return inner[0] if inner else None

    def stream_url(self) -> Optional[str]:
        component = self._first_component()
        if component is None or component.artifacts is None:
            return None
        return component.artifacts.stream_url or None

    def message_text(self) -> Optional[str]:
        component = self._first_component()
        if component is None or component.outputs is None:
            return None
        envelope = component.outputs.message
        if envelope is None or envelope.message is None:
            return None
        if isinstance(envelope.message, str):
            return envelope.message
        return envelope.message.text
