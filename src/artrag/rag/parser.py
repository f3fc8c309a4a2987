"""Strict parser for the model's JSON answer.

Model output is untrusted. A Markdown code fence around the object is
tolerated; anything else that is not exactly ``{"answer": str,
"sources": [str, ...]}`` raises MalformedResponseError.
"""

from __future__ import annotations

import json
import re

from artrag.errors import MalformedResponseError
from artrag.models import RagResponse

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def parse_response(raw: str) -> RagResponse:
    """Validate *raw* model output and return a RagResponse.

    Raises:
        MalformedResponseError: On non-JSON text, a non-object payload, a
            missing field, or a field of the wrong type.
    """
    text = (raw or "").strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedResponseError(f"Model output is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise MalformedResponseError(
            f"Model output must be a JSON object, got {type(data).__name__}"
        )

    answer = data.get("answer")
    sources = data.get("sources")
    if not isinstance(answer, str):
        raise MalformedResponseError("Model output field 'answer' must be a string")
    if not isinstance(sources, list) or not all(isinstance(s, str) for s in sources):
        raise MalformedResponseError("Model output field 'sources' must be a list of strings")

    return RagResponse(answer=answer, sources=list(sources))
