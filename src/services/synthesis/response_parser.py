"""Parsing and light repair of JSON replies from text generators.

Models wrap JSON in Markdown fences, add a sentence of preamble, or leave
a trailing comma despite instructions.  :func:`parse_json_reply` undoes
those in order and gives up with :class:`SchemaViolationError`:

1. ``json.loads`` the reply as is.  Fenced code inside JSON string values
   (a quiz question quoting a snippet) never reaches the fence logic.
2. Strip a surrounding ```` ```json ... ``` ```` fence, or use the first
   fenced block when the reply is prose rather than bare JSON, and
   ``json.loads`` that.
3. Retry on the outermost ``{...}`` / ``[...]`` slice.
4. Retry with trailing commas before ``}`` / ``]`` removed.
"""

from __future__ import annotations

import json
import re
from typing import Any

from src.utils.errors import SchemaViolationError

_WHOLE_FENCE = re.compile(r"^```[a-zA-Z0-9_-]*[ \t]*\n?(.*?)\n?[ \t]*```$", re.DOTALL)
_INNER_FENCE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def strip_code_fences(reply: str) -> str:
    """Return *reply* without a Markdown code fence around it."""
    cleaned = reply.strip()
    whole = _WHOLE_FENCE.match(cleaned)
    if whole:
        return whole.group(1).strip()
    if cleaned.startswith(("{", "[")):
        return cleaned
    inner = _INNER_FENCE.search(cleaned)
    if inner:
        return inner.group(1).strip()
    return cleaned


def parse_json_reply(reply: str) -> Any:
    """Parse a model reply into JSON, repairing common wrapper noise.

    Raises
    ------
    SchemaViolationError
        If no repair step yields valid JSON.
    """
    if not reply or not reply.strip():
        raise SchemaViolationError(message="Reply was empty")

    try:
        return json.loads(reply.strip())
    except json.JSONDecodeError:
        pass

    cleaned = strip_code_fences(reply)
    candidates = [cleaned]
    sliced = _outermost_json(cleaned)
    if sliced is not None and sliced != cleaned:
        candidates.append(sliced)
    for candidate in list(candidates):
        repaired = _TRAILING_COMMA.sub(r"\1", candidate)
        if repaired != candidate:
            candidates.append(repaired)

    last_error: json.JSONDecodeError | None = None
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as exc:
            last_error = exc

    raise SchemaViolationError(
        message=f"Reply is not valid JSON: {last_error.msg if last_error else 'unknown error'}"
    )


def _outermost_json(text: str) -> str | None:
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return None
    start = min(starts)
    closer = "}" if text[start] == "{" else "]"
    end = text.rfind(closer)
    if end <= start:
        return None
    return text[start : end + 1]
