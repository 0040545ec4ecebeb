"""Lenient JSON extraction for model replies."""

from __future__ import annotations

import json
import re
from typing import Any, Optional

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

_REPAIRS: list[tuple[re.Pattern, str]] = [
    # "time" / truncated "ime" keys instead of postTime
    (re.compile(r'"(?:time|ime)"\s*:'), '"postTime":'),
    # times split by a stray quote: "14": 30"
    (re.compile(r'"(\d{2})":\s*(\d{2})"'), r'"\1:\2"'),
    # doubled quotes around words
    (re.compile(r'""+(?=\w)'), '"'),
    (re.compile(r'(?<=\w)""+'), '"'),
    # single-quoted values
    (re.compile(r":\s*'([^']*)'"), r': "\1"'),
    # adjacent objects without a comma
    (re.compile(r"}\s*{"), "},{"),
    # raw control characters are not allowed inside JSON strings
    (re.compile(r"[\x00-\x1f]"), " "),
]

_TRAILING_COMMA_RE = re.compile(r",(\s*[\]}])")


def extract_json_object(text: str) -> Optional[str]:
    """Return the outermost ``{...}`` span of a reply, ignoring code fences."""
    if not text:
        return None
    cleaned = _FENCE_RE.sub("", text)
    start = cleaned.find("{")
    if start < 0:
        return None
    end = cleaned.rfind("}")
    if end <= start:
        # Truncated reply; keep everything after the first brace
        return cleaned[start:]
    return cleaned[start:end + 1]


def _quote_keys(text: str) -> str:
    """Quote bare object keys, leaving string contents untouched."""
    out: list[str] = []
    in_string = False
    escaped = False
    expect_key = False
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            expect_key = False
        elif ch in "{,":
            expect_key = True
        elif expect_key and (ch.isalpha() or ch == "_"):
            end = i
            while end < n and (text[end].isalnum() or text[end] == "_"):
                end += 1
            colon = end
            while colon < n and text[colon].isspace():
                colon += 1
            expect_key = False
            if colon < n and text[colon] == ":":
                out.append(f'"{text[i:end]}"')
                i = end
                continue
        elif not ch.isspace():
            expect_key = False
        out.append(ch)
        i += 1
    return "".join(out)


def _balance(text: str) -> str:
    stack: list[str] = []
    in_string = False
    escaped = False
    for ch in text:
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
        elif ch in "{[":
            stack.append("}" if ch == "{" else "]")
        elif ch in "}]" and stack and stack[-1] == ch:
            stack.pop()
    if in_string:
        text += '"'
    return text + "".join(reversed(stack))


def strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA_RE.sub(r"\1", text)


def repair_json(text: str) -> str:
    """Normalise the defects models commonly produce in JSON output."""
    for pattern, replacement in _REPAIRS:
        text = pattern.sub(replacement, text)
    text = _quote_keys(strip_trailing_commas(text))
    return strip_trailing_commas(_balance(text))


def loads_lenient(text: str) -> Optional[Any]:
    """Parse the JSON object in ``text``, repairing it if needed. None when hopeless."""
    candidate = extract_json_object(text)
    if candidate is None:
        return None
    for attempt in (str, strip_trailing_commas, repair_json):
        try:
            return json.loads(attempt(candidate))
        except json.JSONDecodeError:
            continue
    return None
