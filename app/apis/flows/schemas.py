from __future__ import annotations

from typing import Any, Optional

from pydantic import Field

from app.modules.flows.runner import FlowResult, ResultStatus
from app.modules.flows.schemas import FlowModel, TopicRequest


class ExploreRequest(TopicRequest):
    pass


class FlowErrorPayload(FlowModel):
    kind: str
    message: str
    flow: Optional[str] = None
    field: Optional[str] = None


class FlowResultPayload(FlowModel):
    status: ResultStatus
    data: Optional[dict[str, Any]] = None
    error: Optional[FlowErrorPayload] = None

    @classmethod
    def from_result(cls, result: FlowResult) -> "FlowResultPayload":
        return cls(
            status=result.status,
            data=result.value.model_dump(by_alias=True) if result.value is not None else None,
            error=FlowErrorPayload(**result.error.to_dict()) if result.error else None,
        )


class ExploreResponse(FlowModel):
    explanation: FlowResultPayload
    diagram: FlowResultPayload
    similar_concepts: FlowResultPayload = Field(..., description="Related concepts result")
