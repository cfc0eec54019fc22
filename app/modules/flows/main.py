"""Learning flows service class.

Provides one coroutine per capability over the generic ``FlowRunner`` so API
handlers, the CLI, or scripts can call a flow directly:

    flows = LearningFlows.from_settings(settings)
    out = await flows.generate_quiz(topic="Solar System", num_questions=2)

Every method accepts either a request model, a mapping, or keyword fields.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

import httpx
from pydantic import BaseModel

from app.core.config import Settings
from app.core.errors import ProviderUnavailableError
from app.core.llm import ModelClient
from app.core.logging import get_logger
from app.modules.flows.registry import FlowName
from app.modules.flows.runner import FlowResult, FlowRunner
from app.modules.flows.schemas import (
    DiagramHtmlOutput,
    DiagramOutput,
    ExplanationOutput,
    ImageProblemOutput,
    Language,
    QuizOutput,
    SimilarConceptsOutput,
    StoryOutput,
    VideoSearchOutput,
    VideoSearchRequest,
    WelcomeMessageOutput,
)
from app.modules.youtube.client import YouTubeAPIError, YouTubeClient

logger = get_logger(__name__)

Payload = Optional[Union[BaseModel, Mapping[str, Any]]]

WELCOME_TEXT = "Welcome! How can I help you today?"


def _payload(payload: Payload, fields: dict[str, Any]) -> Union[BaseModel, Mapping[str, Any]]:
    if payload is None:
        return fields
    if fields:
        base = payload.model_dump() if isinstance(payload, BaseModel) else dict(payload)
        return {**base, **fields}
    return payload


@dataclass
class TopicExploration:
    """Explanation, diagram and related concepts requested together."""

    explanation: FlowResult
    diagram: FlowResult
    similar_concepts: FlowResult


def youtube_search_tool(client: YouTubeClient):
    """Adapt the YouTube client to the runner's tool signature.

    Provider failures become ``ProviderUnavailableError`` so the video flow's
    empty-list fallback applies; configuration failures pass through.
    """

    async def search(request: VideoSearchRequest) -> VideoSearchOutput:
        try:
            videos = await client.search_animated_educational_videos(
                request.topic,
                request.language.value,
                max_results=request.max_results,
            )
        except YouTubeAPIError as e:
            raise ProviderUnavailableError(
                str(e), provider="youtube", status_code=e.status_code
            ) from e
        return VideoSearchOutput(videos=videos)

    return search


class LearningFlows:
    """High-level facade: one method per learning capability."""

    def __init__(self, runner: FlowRunner) -> None:
        self.runner = runner

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        model_client: Optional[ModelClient] = None,
    ) -> "LearningFlows":
        youtube = YouTubeClient(
            settings.youtube.api_key,
            http_client=http_client,
            base_url=settings.youtube.base_url,
        )
        runner = FlowRunner(
            model_client or ModelClient(settings),
            tools={"youtube_search": youtube_search_tool(youtube)},
        )
        return cls(runner)

    async def explain_topic(self, payload: Payload = None, **fields: Any) -> ExplanationOutput:
        return await self.runner.run(FlowName.EXPLANATION, _payload(payload, fields))

    async def generate_diagram(self, payload: Payload = None, **fields: Any) -> DiagramOutput:
        return await self.runner.run(FlowName.DIAGRAM, _payload(payload, fields))

    async def generate_diagram_html(
        self, payload: Payload = None, **fields: Any
    ) -> DiagramHtmlOutput:
        return await self.runner.run(FlowName.DIAGRAM_HTML, _payload(payload, fields))

    async def generate_similar_concepts(
        self, payload: Payload = None, **fields: Any
    ) -> SimilarConceptsOutput:
        return await self.runner.run(FlowName.SIMILAR_CONCEPTS, _payload(payload, fields))

    async def generate_quiz(self, payload: Payload = None, **fields: Any) -> QuizOutput:
        return await self.runner.run(FlowName.QUIZ, _payload(payload, fields))

    async def generate_story(self, payload: Payload = None, **fields: Any) -> StoryOutput:
        return await self.runner.run(FlowName.STORY, _payload(payload, fields))

    async def solve_image_problem(
        self, payload: Payload = None, **fields: Any
    ) -> ImageProblemOutput:
        return await self.runner.run(FlowName.IMAGE_PROBLEM, _payload(payload, fields))

    async def find_animated_videos(
        self, payload: Payload = None, **fields: Any
    ) -> VideoSearchOutput:
        return await self.runner.run(FlowName.VIDEO_SEARCH, _payload(payload, fields))

    async def explore_topic(
        self, topic: str, language: Union[Language, str] = Language.EN
    ) -> TopicExploration:
        """Run explanation, diagram and related concepts concurrently.

        Each flow succeeds or fails on its own; one failure does not cancel
        the others.
        """
        payload = {"topic": topic, "language": language}
        explanation, diagram, concepts = await asyncio.gather(
            self.runner.try_run(FlowName.EXPLANATION, payload),
            self.runner.try_run(FlowName.DIAGRAM, payload),
            self.runner.try_run(FlowName.SIMILAR_CONCEPTS, payload),
        )
        return TopicExploration(
            explanation=explanation, diagram=diagram, similar_concepts=concepts
        )

    async def suggest_videos(self, payload: Payload = None, **fields: Any) -> VideoSearchOutput:
        """Deprecated: superseded by ``find_animated_videos``; always empty."""
        logger.warning("suggest_videos is deprecated; returning an empty list")
        return VideoSearchOutput(videos=[])

    async def welcome_message(self) -> WelcomeMessageOutput:
        """Deprecated: the greeting is static and no model is called."""
        logger.warning("welcome_message is deprecated; returning the default greeting")
        return WelcomeMessageOutput(welcome_text=WELCOME_TEXT)
