"""Request and response models for the learning flows.

Field names are snake_case in Python and camelCase on the wire; both
spellings are accepted on input.

Draft models are what the provider is asked to produce. They carry no
count or range constraints, which keeps the structured-output schema sent to
Gemini simple and lets post-processing trim an over-long reply before the
strict output models below are applied.
"""

from __future__ import annotations

import base64
import binascii
import re
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from app.modules.youtube.models import VideoDescriptor

MAX_TOPIC_LENGTH = 500
MAX_QUESTIONS = 10
MAX_VIDEO_RESULTS = 10
MAX_CONCEPTS = 5
FENCE = "```"

MERMAID_DIAGRAM_KEYWORDS = (
    "graph",
    "flowchart",
    "sequenceDiagram",
    "classDiagram",
    "classDiagram-v2",
    "stateDiagram",
    "stateDiagram-v2",
    "erDiagram",
    "journey",
    "gantt",
    "pie",
    "mindmap",
    "timeline",
    "gitGraph",
    "quadrantChart",
    "requirementDiagram",
    "xychart-beta",
    "sankey-beta",
    "block-beta",
)

_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w.+-]+=[\w.+-]+)*;base64,(?P<data>.+)$",
    re.DOTALL,
)


class Language(str, Enum):
    EN = "en"
    BN = "bn"

    @property
    def label(self) -> str:
        return {"en": "English", "bn": "Bengali"}[self.value]


class StudentLevel(str, Enum):
    SECONDARY = "Secondary"
    HIGHER_SECONDARY = "Higher Secondary"


class FlowModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# Requests


class TopicRequest(FlowModel):
    topic: str = Field(
        ...,
        min_length=1,
        max_length=MAX_TOPIC_LENGTH,
        description="The topic to work on.",
    )
    language: Language = Field(
        default=Language.EN,
        description="Preferred output language (en for English, bn for Bengali).",
    )


class ExplanationRequest(TopicRequest):
    pass


class DiagramRequest(TopicRequest):
    pass


class SimilarConceptsRequest(TopicRequest):
    pass


class StoryRequest(TopicRequest):
    pass


class QuizRequest(TopicRequest):
    num_questions: int = Field(
        default=5, ge=1, le=MAX_QUESTIONS, description="Number of questions to generate."
    )


class VideoSearchRequest(TopicRequest):
    max_results: int = Field(default=6, ge=1, le=MAX_VIDEO_RESULTS)


class DiagramHtmlRequest(FlowModel):
    mermaid_code: str = Field(
        ..., min_length=1, description="Mermaid diagram code to render in HTML."
    )


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a ``data:<mime>;base64,<payload>`` URI into (mime, bytes)."""
    match = _DATA_URI_RE.match(uri.strip())
    if not match:
        raise ValueError("expected a data URI of the form data:<mimetype>;base64,<data>")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("data URI payload is not valid base64") from e
    if not data:
        raise ValueError("data URI payload is empty")
    return match.group("mime").lower(), data


class ImageProblemRequest(FlowModel):
    photo_data_uri: str = Field(
        ...,
        description=(
            "A photo of a math, physics, or chemistry problem as a base64 data URI: "
            "'data:<mimetype>;base64,<encoded_data>'."
        ),
    )
    student_level: StudentLevel = Field(
        ...,
        description=(
            "Secondary for classes 6-10, Higher Secondary for classes 11-12; "
            "tailors the explanation."
        ),
    )

    @field_validator("photo_data_uri")
    @classmethod
    def _check_data_uri(cls, v: str) -> str:
        mime, _ = parse_data_uri(v)
        if not mime.startswith("image/"):
            raise ValueError(f"expected an image MIME type, got {mime}")
        return v

    def image(self) -> tuple[str, bytes]:
        return parse_data_uri(self.photo_data_uri)


# Drafts (provider-facing)


class DiagramDraft(FlowModel):
    diagram: str = Field(
        ...,
        description="Mermaid diagram code for the topic, text in the requested language.",
    )


class DiagramHtmlDraft(FlowModel):
    html_content: str = Field(
        ...,
        description="A complete, self-contained HTML document rendering the diagram.",
    )


class SimilarConceptsDraft(FlowModel):
    concepts: list[str] = Field(
        default_factory=list,
        description="3 to 5 concise related terms or concepts, in the requested language.",
    )


class QuizQuestionDraft(FlowModel):
    question_text: str = Field(..., description="The text of the quiz question.")
    options: list[str] = Field(
        default_factory=list, description="2 to 5 possible answers; one is correct."
    )
    correct_answer_index: int = Field(
        ..., description="0-based index of the correct answer in options."
    )
    explanation: Optional[str] = Field(
        default=None, description="Brief explanation of why the answer is correct."
    )


class QuizDraft(FlowModel):
    quiz_title: str = Field(..., description="A suitable title for the quiz.")
    questions: list[QuizQuestionDraft] = Field(default_factory=list)


# Outputs


class ExplanationOutput(FlowModel):
    explanation: str = Field(
        ...,
        min_length=1,
        description="A simple explanation of the topic in the requested language.",
    )


def first_content_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


class DiagramOutput(FlowModel):
    diagram: str = Field(..., min_length=1)

    @field_validator("diagram")
    @classmethod
    def _check_diagram(cls, v: str) -> str:
        if FENCE in v:
            raise ValueError("diagram still contains a code fence")
        head = first_content_line(v)
        keyword = head.split(maxsplit=1)[0] if head else ""
        if keyword not in MERMAID_DIAGRAM_KEYWORDS:
            raise ValueError(
                f"first line must start with a Mermaid diagram keyword, got {head[:40]!r}"
            )
        return v


class DiagramHtmlOutput(FlowModel):
    html_content: str = Field(..., min_length=1)

    @field_validator("html_content")
    @classmethod
    def _no_fence(cls, v: str) -> str:
        if v.startswith(FENCE) or v.endswith(FENCE):
            raise ValueError("html content still wrapped in a code fence")
        return v


class SimilarConceptsOutput(FlowModel):
    concepts: list[str] = Field(default_factory=list, max_length=MAX_CONCEPTS)

    @property
    def is_empty(self) -> bool:
        return not self.concepts


class QuizQuestion(FlowModel):
    """A single multiple-choice question."""

    question_text: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2, max_length=5)
    correct_answer_index: int = Field(..., ge=0)
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def _index_in_range(self) -> "QuizQuestion":
        if self.correct_answer_index >= len(self.options):
            raise ValueError(
                f"correct_answer_index {self.correct_answer_index} does not index "
                f"one of {len(self.options)} options"
            )
        return self


class QuizOutput(FlowModel):
    quiz_title: str = Field(..., min_length=1)
    questions: list[QuizQuestion] = Field(..., min_length=1, max_length=MAX_QUESTIONS)


class StoryOutput(FlowModel):
    story_text: str = Field(
        ...,
        min_length=1,
        description=(
            "A simple, fun, engaging story explaining the topic in the requested "
            "language, with a few relevant emojis."
        ),
    )


class ImageProblemOutput(FlowModel):
    solution_text: str = Field(
        ...,
        min_length=1,
        description="A step-by-step solution in Bengali for the given student level.",
    )


class VideoSearchOutput(FlowModel):
    videos: list[VideoDescriptor] = Field(
        default_factory=list, max_length=MAX_VIDEO_RESULTS
    )

    @property
    def is_empty(self) -> bool:
        return not self.videos


class WelcomeMessageOutput(FlowModel):
    welcome_text: str


__all__ = [
    "Language",
    "StudentLevel",
    "TopicRequest",
    "ExplanationRequest",
    "DiagramRequest",
    "SimilarConceptsRequest",
    "StoryRequest",
    "QuizRequest",
    "VideoSearchRequest",
    "DiagramHtmlRequest",
    "ImageProblemRequest",
    "DiagramDraft",
    "DiagramHtmlDraft",
    "SimilarConceptsDraft",
    "QuizQuestionDraft",
    "QuizDraft",
    "ExplanationOutput",
    "DiagramOutput",
    "DiagramHtmlOutput",
    "SimilarConceptsOutput",
    "QuizQuestion",
    "QuizOutput",
    "StoryOutput",
    "ImageProblemOutput",
    "VideoDescriptor",
    "VideoSearchOutput",
    "WelcomeMessageOutput",
    "parse_data_uri",
    "first_content_line",
]
