"""Resilient extraction of the plan JSON from raw model output.

Entry point: extract_plan_json(raw) -> dict

Flow:
  1. First fenced block holding a JSON object, else first '{' to last '}'
  2. Balanced braces -> json.loads (retry once without trailing commas);
     NaN and Infinity constants become null
  3. Unbalanced (truncated output) -> extract_balanced_json salvage
  4. Nothing usable -> JSONExtractionError (caller falls back to the
     simplified prompt)

Only brace depth is tracked while salvaging; square brackets are ignored.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional

_FENCED_OBJECT = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")
_OUTER_OBJECT = re.compile(r"\{[\s\S]*\}")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


class JSONExtractionError(ValueError):
    """Raised when no JSON object can be recovered from model output."""


def extract_balanced_json(text: str) -> Optional[str]:
    """Return the prefix of ``text`` from the first '{' up to where brace depth
    first returns to zero, or None if it never does.

    Braces inside string literals (including escaped quotes) are ignored.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def _non_finite_to_null(constant: str) -> None:
    # NaN / Infinity / -Infinity are not valid JSON and cannot be serialized back
    return None


def _loads_object(text: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(text, parse_constant=_non_finite_to_null)
    except json.JSONDecodeError:
        parsed = json.loads(_TRAILING_COMMA.sub(r"\1", text), parse_constant=_non_finite_to_null)
    if not isinstance(parsed, dict):
        raise JSONExtractionError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def extract_plan_json(raw: str) -> Dict[str, Any]:
    """Recover the plan object from raw model output.

    Raises
    ------
    JSONExtractionError
        If the output holds no parseable JSON object.
    """
    text = (raw or "").strip().lstrip("\ufeff")

    fenced = _FENCED_OBJECT.search(text)
    if fenced:
        candidate = fenced.group(1)
    else:
        outer = _OUTER_OBJECT.search(text)
        candidate = outer.group(0) if outer else text

    if candidate.count("{") == candidate.count("}"):
        try:
            return _loads_object(candidate)
        except json.JSONDecodeError as exc:
            print(f"⚠️  [PLAN] Balanced JSON failed to parse, trying salvage: {exc}")

    salvaged = extract_balanced_json(candidate)
    if salvaged is None and candidate is not text:
        salvaged = extract_balanced_json(text)
    if salvaged is None:
        raise JSONExtractionError("No complete JSON object found in model output")

    try:
        result = _loads_object(salvaged)
    except json.JSONDecodeError as exc:
        raise JSONExtractionError(f"Salvaged JSON is not parseable: {exc}") from exc
    print(f"🔧 [PLAN] Salvaged JSON object ({len(salvaged)} of {len(text)} chars)")
    return result
