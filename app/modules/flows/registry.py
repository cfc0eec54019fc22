"""The flow table: one declarative entry per capability.

``FlowRunner`` iterates this table generically; adding a flow means adding
schemas, a template and an entry here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel
from pydantic_ai import BinaryContent

from app.core.errors import OutputConformanceError
from app.modules.flows import prompts
from app.modules.flows.schemas import (
    MAX_CONCEPTS,
    DiagramDraft,
    DiagramHtmlDraft,
    DiagramHtmlOutput,
    DiagramHtmlRequest,
    DiagramOutput,
    DiagramRequest,
    ExplanationOutput,
    ExplanationRequest,
    ImageProblemOutput,
    ImageProblemRequest,
    QuizDraft,
    QuizOutput,
    QuizRequest,
    SimilarConceptsDraft,
    SimilarConceptsOutput,
    SimilarConceptsRequest,
    StoryOutput,
    StoryRequest,
    VideoSearchOutput,
    VideoSearchRequest,
)


class FlowName(str, Enum):
    EXPLANATION = "explanation"
    DIAGRAM = "diagram"
    DIAGRAM_HTML = "diagram-html"
    SIMILAR_CONCEPTS = "similar-concepts"
    QUIZ = "quiz"
    STORY = "story"
    IMAGE_PROBLEM = "solve-image"
    VIDEO_SEARCH = "videos"


Postprocess = Callable[[dict[str, Any], BaseModel], dict[str, Any]]


@dataclass(frozen=True)
class FlowDefinition:
    """Declarative description of one flow.

    Exactly one of ``template`` (model flows) or ``tool`` (flows answered by
    an external tool whose output is authoritative) is set.
    """

    name: FlowName
    input_model: type[BaseModel]
    output_model: type[BaseModel]
    template: Optional[prompts.PromptTemplate] = None
    tool: Optional[str] = None
    # Shape requested from the model; defaults to output_model.
    draft_model: Optional[type[BaseModel]] = None
    sanitize_fields: tuple[str, ...] = ()
    postprocess: Optional[Postprocess] = None
    attachments: Optional[Callable[[Any], list[Any]]] = None
    # Returned instead of failing on provider or conformance errors.
    fallback: Optional[Callable[[], BaseModel]] = None
    description: str = ""

    def __post_init__(self) -> None:
        if (self.template is None) == (self.tool is None):
            raise ValueError(f"flow {self.name.value} needs exactly one of template or tool")

    @property
    def requested_model(self) -> type[BaseModel]:
        return self.draft_model or self.output_model


def _finalize_quiz(data: dict[str, Any], request: QuizRequest) -> dict[str, Any]:
    """Trim to the requested count; fewer questions than asked is a conformance failure."""
    questions = []
    for q in data.get("questions") or []:
        questions.append(
            {
                **q,
                "question_text": (q.get("question_text") or "").strip(),
                "options": [str(o).strip() for o in q.get("options") or []],
            }
        )
    wanted = request.num_questions
    if len(questions) < wanted:
        raise OutputConformanceError(
            f"expected {wanted} questions, model returned {len(questions)}",
            field="questions",
        )
    return {**data, "questions": questions[:wanted]}


def _finalize_concepts(data: dict[str, Any], request: SimilarConceptsRequest) -> dict[str, Any]:
    seen: set[str] = set()
    concepts: list[str] = []
    for c in data.get("concepts") or []:
        s = str(c).strip()
        key = s.casefold()
        if s and key != request.topic.casefold() and key not in seen:
            seen.add(key)
            concepts.append(s)
    return {"concepts": concepts[:MAX_CONCEPTS]}


def _image_attachments(request: ImageProblemRequest) -> list[Any]:
    media_type, data = request.image()
    return [BinaryContent(data=data, media_type=media_type)]


FLOWS: dict[FlowName, FlowDefinition] = {
    FlowName.EXPLANATION: FlowDefinition(
        name=FlowName.EXPLANATION,
        input_model=ExplanationRequest,
        output_model=ExplanationOutput,
        template=prompts.EXPLANATION,
        description="Simple explanation of a topic.",
    ),
    FlowName.DIAGRAM: FlowDefinition(
        name=FlowName.DIAGRAM,
        input_model=DiagramRequest,
        output_model=DiagramOutput,
        draft_model=DiagramDraft,
        template=prompts.DIAGRAM,
        sanitize_fields=("diagram",),
        description="Mermaid diagram or flowchart for a topic.",
    ),
    FlowName.DIAGRAM_HTML: FlowDefinition(
        name=FlowName.DIAGRAM_HTML,
        input_model=DiagramHtmlRequest,
        output_model=DiagramHtmlOutput,
        draft_model=DiagramHtmlDraft,
        template=prompts.DIAGRAM_HTML,
        sanitize_fields=("html_content",),
        description="Standalone HTML page rendering a Mermaid diagram.",
    ),
    FlowName.SIMILAR_CONCEPTS: FlowDefinition(
        name=FlowName.SIMILAR_CONCEPTS,
        input_model=SimilarConceptsRequest,
        output_model=SimilarConceptsOutput,
        draft_model=SimilarConceptsDraft,
        template=prompts.SIMILAR_CONCEPTS,
        postprocess=_finalize_concepts,
        fallback=lambda: SimilarConceptsOutput(concepts=[]),
        description="3 to 5 related concepts.",
    ),
    FlowName.QUIZ: FlowDefinition(
        name=FlowName.QUIZ,
        input_model=QuizRequest,
        output_model=QuizOutput,
        draft_model=QuizDraft,
        template=prompts.QUIZ,
        postprocess=_finalize_quiz,
        description="Multiple-choice quiz on a topic.",
    ),
    FlowName.STORY: FlowDefinition(
        name=FlowName.STORY,
        input_model=StoryRequest,
        output_model=StoryOutput,
        template=prompts.STORY,
        description="Short story explaining a topic.",
    ),
    FlowName.IMAGE_PROBLEM: FlowDefinition(
        name=FlowName.IMAGE_PROBLEM,
        input_model=ImageProblemRequest,
        output_model=ImageProblemOutput,
        template=prompts.IMAGE_PROBLEM,
        attachments=_image_attachments,
        description="Step-by-step Bengali solution to a photographed problem.",
    ),
    FlowName.VIDEO_SEARCH: FlowDefinition(
        name=FlowName.VIDEO_SEARCH,
        input_model=VideoSearchRequest,
        output_model=VideoSearchOutput,
        tool="youtube_search",
        fallback=lambda: VideoSearchOutput(videos=[]),
        description="Animated educational videos from YouTube.",
    ),
}
