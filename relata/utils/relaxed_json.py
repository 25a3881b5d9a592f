"""Tolerant reader for hand-written JSON manifests.

Manifests are written in a relaxed JSON dialect:

- `//` line comments and `/* ... */` block comments
- a stray `;` where a `,` belongs (e.g. `"format": "CSV";`)
- trailing commas before `}` or `]`, which appear once commented-out
  entries are removed

The text is normalized into strict JSON in a single pass that tracks string
state, so comment markers and semicolons inside string literals are kept.
The result is parsed with the standard json module, which preserves key
order.
"""

import json
from typing import Any


class RelaxedJSONError(ValueError):
    """Raised when relaxed JSON text cannot be normalized or parsed."""

    pass


def normalize_relaxed_json(text: str) -> str:
    """Rewrite relaxed JSON text into strict JSON.

    Raises:
        RelaxedJSONError: On an unterminated string or block comment
    """
    out: list[str] = []
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]

        if ch == '"':
            start = i
            i += 1
            while i < n and text[i] != '"':
                i += 2 if text[i] == "\\" else 1
            if i >= n:
                raise RelaxedJSONError(f"unterminated string starting at offset {start}")
            out.append(text[start : i + 1])
            i += 1
            continue

        if text.startswith("//", i):
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue

        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            if end == -1:
                raise RelaxedJSONError(f"unterminated block comment at offset {i}")
            out.append(" ")
            i = end + 2
            continue

        if ch == ";":
            out.append(",")
            i += 1
            continue

        if ch in "}]":
            _drop_trailing_comma(out)

        out.append(ch)
        i += 1

    return "".join(out)


def _drop_trailing_comma(out: list[str]) -> None:
    """Remove a comma that is followed only by whitespace in the output so far."""
    j = len(out) - 1
    while j >= 0 and out[j].isspace():
        j -= 1
    if j >= 0 and out[j] == ",":
        del out[j]


def loads_relaxed(text: str) -> Any:
    """Parse relaxed JSON text.

    Raises:
        RelaxedJSONError: If the text is not valid even after normalization
    """
    normalized = normalize_relaxed_json(text)
    try:
        return json.loads(normalized)
    except json.JSONDecodeError as e:
        raise RelaxedJSONError(f"invalid JSON: {e}") from e
