"""Strip markdown code fences from model replies that should be bare source.

Models asked for Mermaid or HTML often wrap the payload in a fenced block
anyway. This is a pure text transform: it does not check that what remains
is valid diagram or HTML source.
"""

from __future__ import annotations

import re
from typing import Any, Iterable

FENCE = "```"

# A fence line is ``` optionally followed by a single language tag (```mermaid).
_OPENING_FENCE_RE = re.compile(r"^```[ \t]*(?P<tag>[A-Za-z0-9_+.#-]*)[ \t]*(?:\r?\n|$)")

# Tags stripped even when the payload follows on the fence line (```html<!DOCTYPE ...).
INLINE_FENCE_TAGS = ("mermaid", "html")
_INLINE_TAG_RE = re.compile(
    r"^[ \t]*(?:" + "|".join(INLINE_FENCE_TAGS) + r")(?![A-Za-z0-9_-])", re.IGNORECASE
)


def _strip_once(text: str) -> str:
    cleaned = text.strip()
    if cleaned.startswith(FENCE):
        match = _OPENING_FENCE_RE.match(cleaned)
        if match:
            cleaned = cleaned[match.end():]
        else:
            # Payload starts on the fence line itself, e.g. ```graph TD ...
            cleaned = _INLINE_TAG_RE.sub("", cleaned[len(FENCE):], count=1)
        cleaned = cleaned.rstrip()
    if cleaned.endswith(FENCE):
        cleaned = cleaned[: -len(FENCE)]
    return cleaned.strip()


def strip_code_fence(text: str) -> str:
    """Return ``text`` without a surrounding code fence, whitespace trimmed.

    Repeats until nothing changes, so applying it to already-stripped text
    returns that text unchanged.
    """
    cleaned = (text or "").strip()
    while True:
        stripped = _strip_once(cleaned)
        if stripped == cleaned:
            return cleaned
        cleaned = stripped


def sanitize_fields(data: dict[str, Any], fields: Iterable[str]) -> dict[str, Any]:
    """Apply ``strip_code_fence`` to the named string fields of ``data``."""
    out = dict(data)
    for name in fields:
        value = out.get(name)
        if isinstance(value, str):
            out[name] = strip_code_fence(value)
    return out
