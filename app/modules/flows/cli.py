from __future__ import annotations

import argparse
import asyncio
import base64
import json
import mimetypes
import sys
from pathlib import Path
from typing import Any, Optional

import httpx

from app.core.config import Settings
from app.core.errors import FlowError
from app.modules.flows.main import LearningFlows
from app.modules.flows.registry import FlowName


def _image_data_uri(path: str) -> str:
    p = Path(path)
    mime = mimetypes.guess_type(p.name)[0] or "image/png"
    encoded = base64.b64encode(p.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def _add_topic_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--topic", "-t", required=True, help="Topic text")
    p.add_argument(
        "--language", "-l", choices=["en", "bn"], default="en", help="Output language"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="learning-flows", description="Run a learning flow and print JSON"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    _add_topic_args(sub.add_parser("explain", help="Simple explanation of a topic"))
    _add_topic_args(sub.add_parser("diagram", help="Mermaid diagram for a topic"))
    _add_topic_args(sub.add_parser("concepts", help="Related concepts for a topic"))
    _add_topic_args(sub.add_parser("story", help="Learning story for a topic"))

    q = sub.add_parser("quiz", help="Multiple-choice quiz")
    _add_topic_args(q)
    q.add_argument("--questions", "-n", type=int, default=5, help="Number of questions (1-10)")

    v = sub.add_parser("videos", help="Animated educational YouTube videos")
    _add_topic_args(v)
    v.add_argument("--max-results", type=int, default=6)

    h = sub.add_parser("diagram-html", help="Standalone HTML page for Mermaid code")
    h.add_argument("--mermaid-file", required=True, help="Path to a file with Mermaid code")

    s = sub.add_parser("solve-image", help="Solve a photographed problem (Bengali)")
    s.add_argument("--image", required=True, help="Path to the problem image")
    s.add_argument(
        "--level",
        choices=["Secondary", "Higher Secondary"],
        default="Secondary",
        help="Student level",
    )
    return parser


def _payload(args: argparse.Namespace) -> tuple[FlowName, dict[str, Any]]:
    if args.cmd == "diagram-html":
        code = Path(args.mermaid_file).read_text(encoding="utf-8")
        return FlowName.DIAGRAM_HTML, {"mermaid_code": code}
    if args.cmd == "solve-image":
        return FlowName.IMAGE_PROBLEM, {
            "photo_data_uri": _image_data_uri(args.image),
            "student_level": args.level,
        }
    base = {"topic": args.topic, "language": args.language}
    if args.cmd == "quiz":
        return FlowName.QUIZ, {**base, "num_questions": args.questions}
    if args.cmd == "videos":
        return FlowName.VIDEO_SEARCH, {**base, "max_results": args.max_results}
    names = {
        "explain": FlowName.EXPLANATION,
        "diagram": FlowName.DIAGRAM,
        "concepts": FlowName.SIMILAR_CONCEPTS,
        "story": FlowName.STORY,
    }
    return names[args.cmd], base


async def _run(flow: FlowName, payload: dict[str, Any], settings: Settings) -> Any:
    async with httpx.AsyncClient() as http:
        flows = LearningFlows.from_settings(settings, http_client=http)
        return await flows.runner.run(flow, payload)


def main(argv: Optional[list[str]] = None, *, flows: Optional[LearningFlows] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    flow, payload = _payload(args)
    try:
        if flows is not None:
            result = asyncio.run(flows.runner.run(flow, payload))
        else:
            result = asyncio.run(_run(flow, payload, Settings()))
    except FlowError as e:
        print(json.dumps({"error": e.to_dict()}, ensure_ascii=False), file=sys.stderr)
        return 1
    print(json.dumps(result.model_dump(by_alias=True), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
