"""Extract and repair a JSON object from free-form model output.

Each step targets one observed class of near-miss syntax rather than acting as
a general forgiving parser:

0. reject text longer than max_chars
1. take the content of a ```json fence when present
2. slice from the first "{" to the last "}"
3. give up when there is no such pair
4. drop C0 control characters (tab, newline and carriage return are kept)
5. drop /* */ and // comments outside string literals
6. drop trailing commas before "}" or "]" outside string literals
7. reject nesting deeper than max_depth, then parse; any failure returns
   Unparseable instead of raising
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Union

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\r?\n?(.*?)```", re.DOTALL | re.IGNORECASE)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

MAX_RESPONSE_CHARS = 100_000
MAX_JSON_DEPTH = 10


@dataclass
class Unparseable:
    """Parse failure signal; raw text is kept for diagnostic logging"""

    raw: str
    reason: str


ParseResult = Union[Dict[str, Any], Unparseable]


def extract_candidate(text: str) -> str | None:
    """Return the substring most likely to be the JSON object, or None"""
    for match in _FENCE_RE.finditer(text):
        inner = match.group(1)
        if "{" in inner:
            text = inner
            break

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return text[start : end + 1]


def _skip_string(text: str, i: int, out: list) -> int:
    """Copy a string literal starting at text[i] == '"'; return index after it"""
    out.append('"')
    i += 1
    while i < len(text):
        ch = text[i]
        out.append(ch)
        if ch == "\\" and i + 1 < len(text):
            out.append(text[i + 1])
            i += 2
            continue
        i += 1
        if ch == '"':
            break
    return i


def strip_comments(text: str) -> str:
    out: list = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == '"':
            i = _skip_string(text, i, out)
        elif text.startswith("/*", i):
            close = text.find("*/", i + 2)
            i = len(text) if close == -1 else close + 2
        elif text.startswith("//", i):
            newline = text.find("\n", i + 2)
            i = len(text) if newline == -1 else newline
        else:
            out.append(ch)
            i += 1
    return "".join(out)


def strip_trailing_commas(text: str) -> str:
    out: list = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == '"':
            i = _skip_string(text, i, out)
            continue
        if ch == ",":
            j = i + 1
            while j < len(text) and text[j] in " \t\r\n":
                j += 1
            if j < len(text) and text[j] in "}]":
                i += 1
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def nesting_depth(text: str) -> int:
    """Deepest {}/[] nesting outside string literals, found without recursion"""
    depth = deepest = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == '"':
            i += 1
            while i < len(text) and text[i] != '"':
                i += 2 if text[i] == "\\" else 1
        elif ch in "{[":
            depth += 1
            deepest = max(deepest, depth)
        elif ch in "}]":
            depth -= 1
        i += 1
    return deepest


def parse_model_json(raw: Any, max_chars: int = MAX_RESPONSE_CHARS, max_depth: int = MAX_JSON_DEPTH) -> ParseResult:
    """Parse a single JSON object out of model text; never raises"""
    if not isinstance(raw, str):
        return Unparseable(raw=repr(raw), reason="response is not text")

    if len(raw) > max_chars:
        return Unparseable(raw=raw, reason=f"response too large ({len(raw)} chars)")

    candidate = extract_candidate(raw)
    if candidate is None:
        return Unparseable(raw=raw, reason="no JSON object found")

    candidate = _CONTROL_CHARS_RE.sub("", candidate)
    candidate = strip_comments(candidate)
    candidate = strip_trailing_commas(candidate)

    if nesting_depth(candidate) > max_depth:
        return Unparseable(raw=raw, reason=f"JSON nested deeper than {max_depth} levels")

    try:
        # strict=False only admits raw newlines/tabs inside strings
        parsed = json.loads(candidate, strict=False)
    except (ValueError, RecursionError) as e:
        return Unparseable(raw=raw, reason=f"invalid JSON: {e}")

    if not isinstance(parsed, dict):
        return Unparseable(raw=raw, reason="JSON root is not an object")
    return parsed
