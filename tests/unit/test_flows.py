"""Unit tests for the flow runner and the ``LearningFlows`` facade.

Tests cover:
- The five end-to-end behaviours each flow must show
- Quiz count and index invariants
- Fallback policy per error kind
- Concurrent topic exploration
- Deprecated capabilities
"""

import base64

import pytest
from pydantic_ai import BinaryContent

from app.core.errors import (
    ConfigurationError,
    OutputConformanceError,
    ProviderUnavailableError,
    ValidationError,
)
from app.modules.flows import FLOWS, FlowDefinition, FlowName, FlowRunner, ResultStatus
from app.modules.flows.schemas import ExplanationOutput, ExplanationRequest
from tests.helpers import RecordingModel, http_error, video_item, youtube_transport


def _question(text: str, correct: int = 1) -> dict:
    return {
        "questionText": text,
        "options": ["Earth", "Mars", "Jupiter", "Saturn"],
        "correctAnswerIndex": correct,
    }


@pytest.mark.unit
class TestEndToEnd:
    """The core contract of each flow with a scripted model."""

    @pytest.mark.asyncio
    async def test_explanation(self, make_flows) -> None:
        model = RecordingModel({"explanation": "Plants turn sunlight into food."})
        flows = make_flows(model)

        out = await flows.explain_topic(topic="Photosynthesis", language="en")

        assert out.explanation == "Plants turn sunlight into food."
        assert "Topic: Photosynthesis" in model.prompt_text
        assert model.call_count == 1

    @pytest.mark.asyncio
    async def test_quiz_returns_requested_count(self, make_flows) -> None:
        model = RecordingModel(
            {
                "quizTitle": "Solar System Challenge",
                "questions": [_question("Red planet?"), _question("Largest?", 2)],
            }
        )
        flows = make_flows(model)

        out = await flows.generate_quiz(
            {"topic": "Solar System", "language": "en", "numQuestions": 2}
        )

        assert len(out.questions) == 2
        for q in out.questions:
            assert 2 <= len(q.options) <= 5
            assert 0 <= q.correct_answer_index < len(q.options)

    @pytest.mark.asyncio
    async def test_diagram_fence_is_stripped(self, make_flows) -> None:
        model = RecordingModel({"diagram": "```mermaid\nflowchart TD\n  A --> B\n```"})
        flows = make_flows(model)

        out = await flows.generate_diagram(topic="Water cycle")

        assert out.diagram.split()[0] in ("graph", "flowchart")
        assert "```" not in out.diagram

    @pytest.mark.asyncio
    async def test_videos_with_no_qualifying_results_is_empty(self, make_flows) -> None:
        transport = youtube_transport([video_item("x", embeddable=False)])
        flows = make_flows(transport=transport)

        out = await flows.find_animated_videos(topic="Obscure topic")

        assert out.videos == []

    @pytest.mark.asyncio
    async def test_videos_without_key_is_configuration_error(self, make_flows) -> None:
        flows = make_flows(youtube_key=None)

        with pytest.raises(ConfigurationError) as exc:
            await flows.find_animated_videos(topic="Water cycle")
        assert exc.value.flow == "videos"
        assert exc.value.setting == "YOUTUBE_API_KEY"


    @pytest.mark.asyncio
    async def test_diagram_tag_on_first_line_is_stripped(self, make_flows) -> None:
        flows = make_flows(RecordingModel({"diagram": "```mermaid graph TD\nA-->B\n```"}))

        out = await flows.generate_diagram(topic="Water cycle")

        assert out.diagram == "graph TD\nA-->B"

    @pytest.mark.asyncio
    async def test_diagram_html_inline_tag_is_stripped(self, make_flows) -> None:
        html = "```html<!DOCTYPE html><html><body></body></html>```"
        flows = make_flows(RecordingModel({"htmlContent": html}))

        out = await flows.generate_diagram_html(mermaid_code="graph TD\nA-->B")

        assert out.html_content == "<!DOCTYPE html><html><body></body></html>"

@pytest.mark.unit
class TestValidation:
    @pytest.mark.asyncio
    async def test_invalid_input_never_calls_model(self, make_flows) -> None:
        model = RecordingModel({"quizTitle": "x", "questions": []})
        flows = make_flows(model)

        with pytest.raises(ValidationError) as exc:
            await flows.generate_quiz({"topic": "Solar System", "numQuestions": 11})

        assert exc.value.field == "numQuestions"
        assert exc.value.flow == "quiz"
        assert model.call_count == 0

    @pytest.mark.asyncio
    async def test_empty_topic(self, make_flows) -> None:
        with pytest.raises(ValidationError) as exc:
            await make_flows().explain_topic(topic="")
        assert exc.value.field == "topic"

    @pytest.mark.asyncio
    async def test_accepts_request_model(self, make_flows) -> None:
        flows = make_flows(RecordingModel({"explanation": "ok"}))
        out = await flows.explain_topic(ExplanationRequest(topic="Gravity"))
        assert isinstance(out, ExplanationOutput)


@pytest.mark.unit
class TestQuizPostprocessing:
    @pytest.mark.asyncio
    async def test_extra_questions_are_trimmed(self, make_flows) -> None:
        questions = [_question(f"Q{i}?") for i in range(4)]
        flows = make_flows(RecordingModel({"quizTitle": "Quiz", "questions": questions}))

        out = await flows.generate_quiz(topic="Planets", num_questions=2)

        assert [q.question_text for q in out.questions] == ["Q0?", "Q1?"]

    @pytest.mark.asyncio
    async def test_too_few_questions_is_conformance_error(self, make_flows) -> None:
        flows = make_flows(RecordingModel({"quizTitle": "Quiz", "questions": [_question("Q?")]}))

        with pytest.raises(OutputConformanceError) as exc:
            await flows.generate_quiz(topic="Planets", num_questions=3)
        assert exc.value.field == "questions"

    @pytest.mark.asyncio
    async def test_out_of_range_index_is_conformance_error(self, make_flows) -> None:
        payload = {"quizTitle": "Quiz", "questions": [_question("Q?", correct=7)]}
        flows = make_flows(RecordingModel(payload))

        with pytest.raises(OutputConformanceError):
            await flows.generate_quiz(topic="Planets", num_questions=1)


@pytest.mark.unit
class TestFallbackPolicy:
    """Only flows with a declared fallback degrade; others propagate."""

    @pytest.mark.asyncio
    async def test_concepts_degrade_to_empty_on_overload(self, make_flows) -> None:
        flows = make_flows(RecordingModel(error=http_error(503)))

        out = await flows.generate_similar_concepts(topic="Gravity")

        assert out.concepts == []

    @pytest.mark.asyncio
    async def test_concepts_do_not_mask_configuration_error(self, make_flows) -> None:
        flows = make_flows(RecordingModel(error=http_error(401)))

        with pytest.raises(ConfigurationError):
            await flows.generate_similar_concepts(topic="Gravity")

    @pytest.mark.asyncio
    async def test_explanation_propagates_overload(self, make_flows) -> None:
        flows = make_flows(RecordingModel(error=http_error(503)))

        with pytest.raises(ProviderUnavailableError) as exc:
            await flows.explain_topic(topic="Gravity")
        assert exc.value.flow == "explanation"

    @pytest.mark.asyncio
    async def test_videos_degrade_on_quota_error(self, make_flows) -> None:
        body = {"error": {"message": "Quota", "errors": [{"reason": "quotaExceeded"}]}}
        flows = make_flows(transport=youtube_transport([], error=(403, body)))

        out = await flows.find_animated_videos(topic="Gravity")

        assert out.is_empty

    @pytest.mark.asyncio
    async def test_diagram_without_keyword_is_conformance_error(self, make_flows) -> None:
        flows = make_flows(RecordingModel({"diagram": "Here is a diagram"}))

        with pytest.raises(OutputConformanceError) as exc:
            await flows.generate_diagram(topic="Gravity")
        assert exc.value.field == "diagram"


@pytest.mark.unit
class TestSimilarConcepts:
    @pytest.mark.asyncio
    async def test_dedupes_and_drops_topic(self, make_flows) -> None:
        concepts = ["Gravity", " Mass ", "mass", "Inertia", "Orbit", "Weight", "Force"]
        flows = make_flows(RecordingModel({"concepts": concepts}))

        out = await flows.generate_similar_concepts(topic="gravity")

        assert out.concepts == ["Mass", "Inertia", "Orbit", "Weight", "Force"]


@pytest.mark.unit
class TestOtherFlows:
    @pytest.mark.asyncio
    async def test_diagram_html(self, make_flows) -> None:
        html = "```html\n<!DOCTYPE html><html><body></body></html>\n```"
        model = RecordingModel({"htmlContent": html})
        flows = make_flows(model)

        out = await flows.generate_diagram_html(mermaid_code="graph TD\nA-->B")

        assert out.html_content == "<!DOCTYPE html><html><body></body></html>"
        assert "graph TD\nA-->B" in model.prompt_text

    @pytest.mark.asyncio
    async def test_story(self, make_flows) -> None:
        flows = make_flows(RecordingModel({"storyText": "Once upon a time 🌱"}))
        out = await flows.generate_story(topic="Photosynthesis", language="bn")
        assert out.story_text.startswith("Once")

    @pytest.mark.asyncio
    async def test_image_problem_sends_attachment(self, make_flows) -> None:
        model = RecordingModel({"solutionText": "ধাপ ১: ..."})
        flows = make_flows(model)
        uri = "data:image/jpeg;base64," + base64.b64encode(b"jpeg-bytes").decode()

        out = await flows.solve_image_problem(
            photo_data_uri=uri, student_level="Higher Secondary"
        )

        assert out.solution_text.startswith("ধাপ")
        text, image = model.user_prompt
        assert "Higher Secondary" in text
        assert isinstance(image, BinaryContent)
        assert image.media_type == "image/jpeg"
        assert image.data == b"jpeg-bytes"

    @pytest.mark.asyncio
    async def test_videos_found(self, make_flows) -> None:
        flows = make_flows(transport=youtube_transport([video_item("a"), video_item("b")]))
        out = await flows.find_animated_videos(topic="Water cycle", max_results=1)
        assert [v.id for v in out.videos] == ["a"]


@pytest.mark.unit
class TestExploreTopic:
    @pytest.mark.asyncio
    async def test_partial_failure_is_reported_per_flow(self, make_flows) -> None:
        # One payload cannot satisfy all three shapes; diagram fails conformance.
        model = RecordingModel({"explanation": "Simple.", "concepts": ["Mass"], "diagram": "oops"})
        flows = make_flows(model)

        bundle = await flows.explore_topic("Gravity")

        assert bundle.explanation.status is ResultStatus.OK
        assert bundle.explanation.value.explanation == "Simple."
        assert bundle.diagram.status is ResultStatus.ERROR
        assert isinstance(bundle.diagram.error, OutputConformanceError)
        assert bundle.similar_concepts.value.concepts == ["Mass"]
        assert model.call_count == 3

    @pytest.mark.asyncio
    async def test_empty_concepts_status(self, make_flows) -> None:
        flows = make_flows(RecordingModel(error=http_error(500)))

        bundle = await flows.explore_topic("Gravity")

        assert bundle.similar_concepts.status is ResultStatus.EMPTY
        assert bundle.explanation.status is ResultStatus.ERROR


@pytest.mark.unit
class TestDeprecated:
    @pytest.mark.asyncio
    async def test_suggest_videos_is_empty(self, make_flows) -> None:
        model = RecordingModel()
        out = await make_flows(model).suggest_videos(topic="Gravity")
        assert out.videos == []
        assert model.call_count == 0

    @pytest.mark.asyncio
    async def test_welcome_message(self, make_flows) -> None:
        out = await make_flows().welcome_message()
        assert out.welcome_text == "Welcome! How can I help you today?"


@pytest.mark.unit
class TestRegistry:
    def test_every_flow_is_registered(self) -> None:
        assert set(FLOWS) == set(FlowName)

    def test_definition_needs_template_or_tool(self) -> None:
        with pytest.raises(ValueError):
            FlowDefinition(
                name=FlowName.STORY,
                input_model=ExplanationRequest,
                output_model=ExplanationOutput,
            )

    def test_unknown_flow(self) -> None:
        with pytest.raises(KeyError):
            FlowRunner(None).definition("poetry")

    @pytest.mark.asyncio
    async def test_model_flow_without_client(self) -> None:
        with pytest.raises(RuntimeError):
            await FlowRunner(None).run("story", {"topic": "Atoms"})

    def test_render_prompt(self) -> None:
        text = FlowRunner(None).render_prompt("quiz", {"topic": "Atoms", "numQuestions": 3})
        assert "Number of Questions: 3" in text
