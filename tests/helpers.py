"""Test doubles shared across the suite.

Model calls are answered by pydantic-ai's ``FunctionModel`` and YouTube
calls by ``httpx.MockTransport``, so no test touches the network.
"""

from typing import Any, Optional

import httpx
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    ToolCallPart,
    UserPromptPart,
)
from pydantic_ai.models.function import AgentInfo, FunctionModel


# =============================================================================
# Model helpers
# =============================================================================


class RecordingModel:
    """A ``FunctionModel`` that answers with fixed structured output.

    Every request is recorded so tests can assert on the rendered prompt,
    the system prompt and attachments.
    """

    def __init__(self, payload: Optional[dict[str, Any]] = None, error: Optional[Exception] = None):
        self.payload = payload or {}
        self.error = error
        self.calls: list[list[ModelMessage]] = []
        self.model = FunctionModel(self._respond, model_name="test-model")

    def _respond(self, messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return ModelResponse(parts=[ToolCallPart(info.output_tools[0].name, self.payload)])

    def _parts(self) -> list[Any]:
        assert self.calls, "model was never called"
        request = self.calls[-1][0]
        assert isinstance(request, ModelRequest)
        return list(request.parts)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def user_prompt(self) -> Any:
        return next(p.content for p in self._parts() if isinstance(p, UserPromptPart))

    @property
    def prompt_text(self) -> str:
        content = self.user_prompt
        return content if isinstance(content, str) else content[0]

    @property
    def system_prompt(self) -> str:
        return next(p.content for p in self._parts() if isinstance(p, SystemPromptPart))


def http_error(status_code: int, body: Any = None) -> ModelHTTPError:
    return ModelHTTPError(status_code=status_code, model_name="test-model", body=body)


# =============================================================================
# YouTube helpers
# =============================================================================


def video_item(
    video_id: str,
    *,
    title: str = "Animated lesson",
    description: str = "A short animated lesson.",
    upload_status: str = "processed",
    privacy_status: str = "public",
    embeddable: bool = True,
    made_for_kids: bool = False,
    thumbnails: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Build one ``videos.list`` item in the provider's camelCase shape."""
    return {
        "id": video_id,
        "snippet": {
            "title": title,
            "description": description,
            "channelTitle": "Edu Channel",
            "thumbnails": thumbnails
            if thumbnails is not None
            else {"high": {"url": f"https://img.example/{video_id}/high.jpg"}},
        },
        "status": {
            "uploadStatus": upload_status,
            "privacyStatus": privacy_status,
            "embeddable": embeddable,
            "madeForKids": made_for_kids,
        },
    }


def youtube_transport(
    video_items: list[dict[str, Any]],
    *,
    search_ids: Optional[list[str]] = None,
    requests: Optional[list[httpx.Request]] = None,
    error: Optional[tuple[int, dict[str, Any]]] = None,
) -> httpx.MockTransport:
    """Mock the ``search`` and ``videos`` endpoints.

    ``search_ids`` defaults to the ids of ``video_items``. ``error`` makes
    every call return that (status, body) pair.
    """
    ids = search_ids if search_ids is not None else [item["id"] for item in video_items]

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if error is not None:
            return httpx.Response(error[0], json=error[1])
        if request.url.path.endswith("/search"):
            items = [{"id": {"kind": "youtube#video", "videoId": i}} for i in ids]
            return httpx.Response(200, json={"items": items})
        if request.url.path.endswith("/videos"):
            wanted = request.url.params["id"].split(",")
            return httpx.Response(
                200, json={"items": [i for i in video_items if i["id"] in wanted]}
            )
        return httpx.Response(404, json={"error": {"message": "not found"}})

    return httpx.MockTransport(handler)


