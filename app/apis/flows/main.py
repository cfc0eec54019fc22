from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.apis.deps import get_flows
from app.core.config import settings
from app.modules.flows.main import LearningFlows
from app.modules.flows.schemas import (
    DiagramHtmlOutput,
    DiagramHtmlRequest,
    DiagramOutput,
    DiagramRequest,
    ExplanationOutput,
    ExplanationRequest,
    ImageProblemOutput,
    ImageProblemRequest,
    QuizOutput,
    QuizRequest,
    SimilarConceptsOutput,
    SimilarConceptsRequest,
    StoryOutput,
    StoryRequest,
    VideoSearchOutput,
    VideoSearchRequest,
    WelcomeMessageOutput,
)
from .schemas import ExploreRequest, ExploreResponse, FlowResultPayload


router = APIRouter()

Flows = Annotated[LearningFlows, Depends(get_flows)]

PREFIX = f"/{settings.app.version}/flows"


@router.post(
    f"{PREFIX}/explanation",
    response_model=ExplanationOutput,
    status_code=status.HTTP_200_OK,
    tags=["flows"],
)
async def explain_topic(req: ExplanationRequest, flows: Flows) -> ExplanationOutput:
    return await flows.explain_topic(req)


@router.post(
    f"{PREFIX}/diagram",
    response_model=DiagramOutput,
    status_code=status.HTTP_200_OK,
    tags=["flows"],
)
async def generate_diagram(req: DiagramRequest, flows: Flows) -> DiagramOutput:
    return await flows.generate_diagram(req)


@router.post(
    f"{PREFIX}/diagram-html",
    response_model=DiagramHtmlOutput,
    status_code=status.HTTP_200_OK,
    tags=["flows"],
)
async def generate_diagram_html(req: DiagramHtmlRequest, flows: Flows) -> DiagramHtmlOutput:
    return await flows.generate_diagram_html(req)


@router.post(
    f"{PREFIX}/similar-concepts",
    response_model=SimilarConceptsOutput,
    status_code=status.HTTP_200_OK,
    tags=["flows"],
)
async def generate_similar_concepts(
    req: SimilarConceptsRequest, flows: Flows
) -> SimilarConceptsOutput:
    return await flows.generate_similar_concepts(req)


@router.post(
    f"{PREFIX}/quiz",
    response_model=QuizOutput,
    status_code=status.HTTP_200_OK,
    tags=["flows"],
)
async def generate_quiz(req: QuizRequest, flows: Flows) -> QuizOutput:
    return await flows.generate_quiz(req)


@router.post(
    f"{PREFIX}/story",
    response_model=StoryOutput,
    status_code=status.HTTP_200_OK,
    tags=["flows"],
)
async def generate_story(req: StoryRequest, flows: Flows) -> StoryOutput:
    return await flows.generate_story(req)


@router.post(
    f"{PREFIX}/solve-image",
    response_model=ImageProblemOutput,
    status_code=status.HTTP_200_OK,
    tags=["flows"],
)
async def solve_image_problem(req: ImageProblemRequest, flows: Flows) -> ImageProblemOutput:
    return await flows.solve_image_problem(req)


@router.post(
    f"{PREFIX}/videos",
    response_model=VideoSearchOutput,
    status_code=status.HTTP_200_OK,
    tags=["flows"],
)
async def find_animated_videos(req: VideoSearchRequest, flows: Flows) -> VideoSearchOutput:
    return await flows.find_animated_videos(req)


@router.post(
    f"{PREFIX}/explore",
    response_model=ExploreResponse,
    status_code=status.HTTP_200_OK,
    tags=["flows"],
)
async def explore_topic(req: ExploreRequest, flows: Flows) -> ExploreResponse:
    # Partial failures are reported per flow; the request itself succeeds.
    bundle = await flows.explore_topic(req.topic, req.language)
    return ExploreResponse(
        explanation=FlowResultPayload.from_result(bundle.explanation),
        diagram=FlowResultPayload.from_result(bundle.diagram),
        similar_concepts=FlowResultPayload.from_result(bundle.similar_concepts),
    )


@router.get(
    f"{PREFIX}/welcome",
    response_model=WelcomeMessageOutput,
    tags=["flows"],
    deprecated=True,
)
async def welcome_message(flows: Flows) -> WelcomeMessageOutput:
    return await flows.welcome_message()
