"""
Recover a ModelAssessment from a free-form understanding service reply.

The reply is untrusted text. It may wrap the JSON record in prose or a
markdown fence. We take the first top-level {...} span, decode it, and
validate it strictly. Anything short of a complete, well-typed record is a
MalformedAssessment — a missing score is never filled in.
"""

from __future__ import annotations

import json
from typing import Optional

from pydantic import ValidationError

from .exceptions import MalformedAssessment
from .models import ModelAssessment

RAW_PREVIEW_MAX_CHARS = 4000


def parse_assessment(raw: str) -> ModelAssessment:
    """Extract and validate the assessment record from raw reply text.

    Raises:
        MalformedAssessment: No record found, undecodable JSON, or a field
            that is missing or has the wrong type/range.
    """
    span = find_record_span(raw)
    if span is None:
        raise _malformed("No JSON object found in understanding service reply", raw)

    try:
        data = json.loads(span)
    except json.JSONDecodeError as e:
        raise _malformed(f"Assessment record is not valid JSON: {e}", raw) from e

    if not isinstance(data, dict):
        raise _malformed("Assessment record is not a JSON object", raw)

    try:
        return ModelAssessment.model_validate(data)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        ]
        raise _malformed(
            f"Assessment record has invalid fields: {'; '.join(problems)}",
            raw,
            problems=problems,
        ) from e


def find_record_span(text: str) -> Optional[str]:
    """Return the first balanced top-level ``{...}`` substring, or None.

    Braces inside JSON string literals (including escaped quotes) are not
    counted.
    """
    if not text:
        return None

    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    return None


def _malformed(message: str, raw: str, **extra: object) -> MalformedAssessment:
    details: dict = {"raw_response": (raw or "")[:RAW_PREVIEW_MAX_CHARS]}
    details.update(extra)
    return MalformedAssessment(message, details=details)
