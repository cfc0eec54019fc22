"""Prompt templates for the learning flows.

Each flow has exactly one ``PromptTemplate``. Placeholders use
``string.Template`` syntax (``$topic``, ``${language}``) and are filled from
the validated request, so rendering is deterministic: the same request always
produces the same prompt text.

The templates carry the business rules (output language, formatting, counts)
but the model is not guaranteed to follow them; the sanitizer and the output
models enforce what matters independently.
"""

from __future__ import annotations

from dataclasses import dataclass
from string import Template
from typing import Any

from pydantic import BaseModel

from app.modules.flows.schemas import Language

MERMAID_CDN_URL = "https://cdn.jsdelivr.net/npm/mermaid@10.9.0/dist/mermaid.min.js"


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    system: str
    template: str

    def values(self, request: BaseModel) -> dict[str, Any]:
        values = request.model_dump(mode="json")
        if "language" in values:
            values["language_name"] = Language(values["language"]).label
        return values

    def render(self, request: BaseModel) -> str:
        return Template(self.template).substitute(self.values(request))


EXPLANATION = PromptTemplate(
    name="topic_explanation",
    system="You are an expert in explaining complex topics in simple terms.",
    template="""Explain the following topic in a way that is easy to understand.
The explanation must be in the language specified by the code '$language' ($language_name; en for English, bn for Bengali).

Topic: $topic
Language Code: $language""",
)


DIAGRAM = PromptTemplate(
    name="mermaid_diagram",
    system=(
        "You are an expert in creating Mermaid diagrams and flowcharts. Your primary "
        "goal is to generate syntactically perfect and clear Mermaid code."
    ),
    template="""Topic: $topic
Language for diagram text: $language ($language_name). All text in the diagram MUST be in this language.

CRITICAL INSTRUCTIONS:

1. OUTPUT FORMAT
   - The diagram field MUST contain ONLY the Mermaid diagram code.
   - The VERY FIRST line MUST be the diagram type keyword (e.g. "graph TD", "flowchart TD").
   - Do NOT include titles, explanations, or markdown fences (no ```mermaid or ```).
   - The code must be directly renderable by Mermaid.js 10.9.x.

2. SYNTACTIC VALIDITY
   - Quote ALL node text and edge labels that contain spaces, punctuation (:, -, !, ...)
     or non-ASCII characters such as Bengali script, using double quotes.
     Example: A["Node with spaces: Example"] --> B["বাংলা টেক্সট"]
   - Keep node IDs simple and alphanumeric (node1, itemA); no spaces or symbols in IDs.
   - Use standard arrows: -->, ---, ==>.
   - Balance every (), [] and {}.
   - Use the correct keywords: graph TD, flowchart TD, subgraph, end.

3. DIAGRAM TYPE AND COMPLEXITY
   - If the topic is complex or you are unsure, prefer "flowchart TD" or "graph TD".
   - A simpler, correct diagram is far better than a complex one that fails to render.
   - Only use subgraphs when essential and when their syntax is certain.

4. CONTENT
   - Pick the diagram type that best explains the core concepts of the topic.
   - Keep it clear and concise.
   - Every label MUST be in '$language'.

Double-check the output for any non-Mermaid content or syntax errors before responding.""",
)


DIAGRAM_HTML = PromptTemplate(
    name="mermaid_html",
    system="You are an expert in web development and Mermaid.js.",
    template=f"""Take the Mermaid diagram code below and produce a complete, self-contained HTML document that renders it.

CRITICAL INSTRUCTIONS:
1. The htmlContent field MUST be ONLY the HTML code, starting with <!DOCTYPE html> or <html> and ending with </html>. No explanations and no markdown fences.
2. Include a <script> tag loading Mermaid.js 10.9.0 from {MERMAID_CDN_URL}.
3. Place the Mermaid code, unchanged, inside a <div class="mermaid"> (or <pre class="mermaid">) element in the body.
4. Initialise Mermaid after the diagram with: mermaid.initialize({{ startOnLoad: true, theme: 'neutral' }});
5. Minimal CSS for centering is welcome, e.g. body {{ display: flex; justify-content: center; align-items: center; min-height: 100vh; margin: 0; background-color: #f0f0f0; }} .mermaid {{ padding: 20px; background-color: white; border-radius: 8px; }}
6. Do NOT HTML-escape <, > or & inside the mermaid container; Mermaid expects the raw diagram syntax.

Mermaid diagram code to render:
```mermaid
$mermaid_code
```

Generate the complete HTML document now.""",
)


SIMILAR_CONCEPTS = PromptTemplate(
    name="similar_concepts",
    system="You are an expert at identifying related topics and concepts.",
    template="""Based on the topic "$topic", provide a list of 3 to 5 similar or closely related concepts or terms.
The concepts should be concise and in the language specified by the code '$language' ($language_name).
Present them as a simple list of strings.

Topic: $topic
Language Code: $language

Example for topic "Machine Learning" in English:
{ "concepts": ["Deep Learning", "Artificial Intelligence", "Data Mining", "Natural Language Processing", "Computer Vision"] }

Example for topic "জলবায়ু পরিবর্তন" (Climate Change) in Bengali:
{ "concepts": ["বিশ্ব উষ্ণায়ন", "গ্রিনহাউস গ্যাস", "কার্বন নিঃসরণ", "নবায়নযোগ্য শক্তি", "পরিবেশ দূষণ"] }""",
)


QUIZ = PromptTemplate(
    name="quiz",
    system=(
        "You are an expert quiz creator. Generate high-quality multiple-choice "
        "questions that strictly follow the provided JSON schema."
    ),
    template="""Topic: $topic
Language: $language ($language_name)
Number of Questions: $num_questions

Instructions:
1. Create a relevant quiz title in the specified language.
2. Generate exactly $num_questions multiple-choice questions.
3. For each question:
   - Write clear question text in '$language'.
   - Provide 2 to 5 plausible options, also in '$language'.
   - Give the 0-based index of the correct answer in correctAnswerIndex.
   - Optionally add a brief explanation of the correct answer, in '$language'.
4. All text (title, questions, options, explanations) MUST be in '$language'.

Example for topic "Solar System" in English, 2 questions:
{
  "quizTitle": "Solar System Challenge",
  "questions": [
    {
      "questionText": "Which planet is known as the Red Planet?",
      "options": ["Earth", "Mars", "Jupiter", "Saturn"],
      "correctAnswerIndex": 1,
      "explanation": "Mars looks red because of the iron oxide on its surface."
    },
    {
      "questionText": "What is the largest planet in our Solar System?",
      "options": ["Venus", "Mars", "Jupiter", "Neptune"],
      "correctAnswerIndex": 2
    }
  ]
}

Example for topic "মুক্তিযুদ্ধ" (Liberation War) in Bengali, 1 question:
{
  "quizTitle": "মুক্তিযুদ্ধ কুইজ",
  "questions": [
    {
      "questionText": "বাংলাদেশের মুক্তিযুদ্ধ কত সালে সংঘটিত হয়েছিল?",
      "options": ["১৯৫২", "১৯৭১", "১৯৪৭", "১৯৬৯"],
      "correctAnswerIndex": 1
    }
  ]
}""",
)


STORY = PromptTemplate(
    name="learning_story",
    system=(
        "You are a masterful storyteller who explains complex topics to learners "
        "of all ages through simple, fun, and engaging narratives."
    ),
    template="""Topic to explain: $topic
Language for the story: $language ($language_name)

Instructions:
1. Craft a story that clearly explains the core concepts of "$topic".
2. The story MUST be in '$language'.
3. Keep it easy to understand; avoid jargon or explain it simply inside the narrative.
4. The tone should be lighthearted, fun, and engaging.
5. Naturally include 2-3 relevant emojis. Do not overdo it.
6. Be concise yet cover the main aspects of the topic.
7. Return only the story text in storyText.

Example for topic "Photosynthesis" in English:
{
  "storyText": "Once upon a time, in a sunny garden ☀️, lived a little plant named Pip 🌱. Pip never ate sandwiches. Instead, his green leaves were a tiny kitchen: he sipped water through his roots, breathed in carbon dioxide, and with sunlight as his chef he cooked his own sugary food. That is photosynthesis! As a thank-you, Pip breathed out fresh oxygen for everyone 🌬️."
}""",
)


IMAGE_PROBLEM = PromptTemplate(
    name="solve_image_problem",
    system=(
        "You are an expert tutor for Secondary (classes 6-10) and Higher Secondary "
        "(classes 11-12) students in Bangladesh."
    ),
    template="""The attached image shows a problem (most likely math, physics, or chemistry).
Analyse it, understand the problem, and provide a clear, step-by-step solution.

CRITICAL INSTRUCTIONS:
1. Language: the entire solution and explanation MUST be in Bengali (বাংলা).
2. Clarity: teach it as you would to a $student_level student. Use simple language and break down complex steps.
3. Accuracy: the solution must be mathematically and scientifically correct.
4. Completeness: show the full working, not only the final answer.
5. Focus: only address the problem in the image.

Student's Academic Level: $student_level

Example output for a math problem:
{
  "solutionText": "প্রশ্নটি সমাধান করার জন্য, প্রথমে আমাদের প্রদত্ত সমীকরণটি বুঝতে হবে...\\nধাপ ১: ...\\nধাপ ২: ...\\nঅতএব, চূড়ান্ত উত্তর হলো: ..."
}
If the image is unclear or is not a solvable academic problem, reply politely in Bengali that you cannot solve it, for example:
{
  "solutionText": "দুঃখিত, ছবিটি স্পষ্ট নয় অথবা এটি এমন কোনো সমস্যা নয় যা আমি সমাধান করতে পারি। অনুগ্রহ করে একটি স্পষ্ট সমস্যার ছবি আপলোড করুন।"
}""",
)
