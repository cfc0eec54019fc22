"""Generic executor for the flow table.

For every flow the steps are the same:

1. validate the request against the flow's input model,
2. render its prompt template (or call its declared tool),
3. invoke the model once,
4. strip code fences from the declared fields,
5. post-process (trim, dedupe, count checks),
6. validate against the strict output model.

Failures surface as ``FlowError`` subclasses. Flows that declare a
``fallback`` degrade to it on provider or conformance failures; validation
and configuration failures always propagate.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import (
    FlowError,
    OutputConformanceError,
    ProviderUnavailableError,
    ValidationError,
    field_from_loc,
)
from app.core.llm import ModelClient
from app.core.logging import flow_logger, get_logger
from app.modules.flows.registry import FLOWS, FlowDefinition, FlowName
from app.modules.flows.sanitizer import sanitize_fields

logger = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

Payload = Union[BaseModel, Mapping[str, Any]]
Tool = Callable[[Any], Awaitable[Union[BaseModel, Mapping[str, Any]]]]


class ResultStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"


@dataclass
class FlowResult(Generic[T]):
    """Outcome of a flow run that never raises a ``FlowError``.

    ``EMPTY`` is a success whose payload has no items (no videos found, no
    related concepts); it is distinct from every error kind.
    """

    flow: str
    status: ResultStatus
    value: Optional[T] = None
    error: Optional[FlowError] = None

    @property
    def ok(self) -> bool:
        return self.status is not ResultStatus.ERROR

    @classmethod
    def success(cls, flow: str, value: T) -> "FlowResult[T]":
        empty = bool(getattr(value, "is_empty", False))
        return cls(
            flow=flow,
            status=ResultStatus.EMPTY if empty else ResultStatus.OK,
            value=value,
        )

    @classmethod
    def failure(cls, flow: str, error: FlowError) -> "FlowResult[T]":
        return cls(flow=flow, status=ResultStatus.ERROR, error=error)


def validate_input(definition: FlowDefinition, payload: Payload) -> BaseModel:
    """Validate ``payload`` against the flow's input model before any call."""
    model = definition.input_model
    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump()
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = field_from_loc(tuple(first.get("loc", ())))
        raise ValidationError(
            f"Invalid {field}: {first.get('msg', 'invalid value')}",
            flow=definition.name.value,
            field=field,
        ) from e


def validate_output(definition: FlowDefinition, data: Mapping[str, Any]) -> BaseModel:
    try:
        return definition.output_model.model_validate(dict(data))
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = field_from_loc(tuple(first.get("loc", ())))
        raise OutputConformanceError(
            f"Model output failed validation at {field}: {first.get('msg', 'invalid value')}",
            flow=definition.name.value,
            field=field,
        ) from e


class FlowRunner:
    """Runs any flow in ``flows`` against an injected model client and tools."""

    def __init__(
        self,
        model_client: Optional[ModelClient],
        *,
        tools: Optional[Mapping[str, Tool]] = None,
        flows: Optional[Mapping[FlowName, FlowDefinition]] = None,
    ) -> None:
        self.model_client = model_client
        self.tools = dict(tools or {})
        self.flows = dict(flows or FLOWS)

    def definition(self, name: Union[FlowName, str]) -> FlowDefinition:
        try:
            return self.flows[FlowName(name)]
        except (KeyError, ValueError) as e:
            raise KeyError(f"Unknown flow: {name}") from e

    def render_prompt(self, name: Union[FlowName, str], payload: Payload) -> str:
        definition = self.definition(name)
        if definition.template is None:
            raise ValueError(f"flow {definition.name.value} has no prompt template")
        request = validate_input(definition, payload)
        return definition.template.render(request)

    async def run(self, name: Union[FlowName, str], payload: Payload) -> BaseModel:
        definition = self.definition(name)
        flow = definition.name.value
        request = validate_input(definition, payload)
        log = flow_logger(logger, flow)
        log.info("Running flow")
        try:
            output = await self._execute(definition, request)
        except (ProviderUnavailableError, OutputConformanceError) as e:
            e.flow = e.flow or flow
            if definition.fallback is None:
                log.error("Flow failed: %s", e.message)
                raise
            log.warning(
                "Flow degraded to fallback after %s: %s", e.kind.value, e.message
            )
            return definition.fallback()
        except FlowError as e:
            e.flow = e.flow or flow
            log.error("Flow failed: %s", e.message)
            raise
        log.info("Flow completed")
        return output

    async def try_run(self, name: Union[FlowName, str], payload: Payload) -> FlowResult:
        flow = FlowName(name).value
        try:
            value = await self.run(name, payload)
        except FlowError as e:
            return FlowResult.failure(flow, e)
        return FlowResult.success(flow, value)

    async def _execute(self, definition: FlowDefinition, request: BaseModel) -> BaseModel:
        if definition.tool is not None:
            raw = await self._call_tool(definition, request)
        else:
            raw = await self._call_model(definition, request)

        data = raw.model_dump() if isinstance(raw, BaseModel) else dict(raw)
        if definition.sanitize_fields:
            data = sanitize_fields(data, definition.sanitize_fields)
        if definition.postprocess is not None:
            data = definition.postprocess(data, request)
        return validate_output(definition, data)

    async def _call_tool(
        self, definition: FlowDefinition, request: BaseModel
    ) -> Union[BaseModel, Mapping[str, Any]]:
        tool = self.tools.get(definition.tool or "")
        if tool is None:
            raise RuntimeError(f"Tool {definition.tool!r} is not registered")
        return await tool(request)

    async def _call_model(self, definition: FlowDefinition, request: BaseModel) -> BaseModel:
        if definition.template is None:
            raise RuntimeError(f"flow {definition.name.value} has no prompt template")
        if self.model_client is None:
            raise RuntimeError("No model client registered")
        text = definition.template.render(request)
        user_prompt: Any = text
        if definition.attachments is not None:
            user_prompt = [text, *definition.attachments(request)]
        return await self.model_client.generate(
            user_prompt,
            output_type=definition.requested_model,
            system_prompt=definition.template.system,
            name=definition.name.value,
        )
