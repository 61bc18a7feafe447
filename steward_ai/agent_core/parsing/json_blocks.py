from __future__ import annotations

"""Locate JSON objects embedded in free-form model output.

Models wrap structured payloads in prose, in fenced code blocks, or both. The
helpers here find candidate objects without assuming the whole text is JSON:

- fenced blocks (```` ``` ```` or ```` ```json ````) are tried first,
- then every balanced ``{...}`` slice of the text, scanned with awareness of
  string literals so braces inside strings do not unbalance the scan.
"""

import json
import re
from typing import Any, Dict, Iterator, Optional, Tuple

FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def _strip_leading_json_label(s: str) -> str:
    # "json\n{ ... }" -> "{ ... }"
    return re.sub(r"^\s*json\s*\r?\n\s*(?=\{)", "", s, count=1, flags=re.IGNORECASE)


def balanced_brace_slices(text: str) -> Iterator[Tuple[int, int]]:
    """Yield ``(start, end_inclusive)`` indices of balanced ``{...}`` blocks.

    Unterminated blocks (common while a response is still streaming) are
    skipped and scanning resumes right after their opening brace.
    """
    n = len(text)
    i = 0
    while i < n:
        if text[i] != "{":
            i += 1
            continue
        depth = 0
        j = i
        in_str = False
        esc = False
        closed = False
        while j < n:
            ch = text[j]
            if in_str:
                if esc:
                    esc = False
                elif ch == "\\":
                    esc = True
                elif ch == '"':
                    in_str = False
            else:
                if ch == '"':
                    in_str = True
                elif ch == "{":
                    depth += 1
                elif ch == "}":
                    depth -= 1
                    if depth == 0:
                        closed = True
                        break
            j += 1
        if closed:
            yield (i, j)
            i = j + 1
        else:
            i += 1


def loads_object(raw: str) -> Optional[Dict[str, Any]]:
    """Decode ``raw`` as a JSON object, returning ``None`` for anything else."""
    try:
        obj = json.loads(_strip_leading_json_label(raw).strip())
    except (ValueError, TypeError):
        return None
    return obj if isinstance(obj, dict) else None


def iter_json_objects(text: str) -> Iterator[Dict[str, Any]]:
    """Yield every decodable JSON object in ``text``, fenced blocks first."""
    for m in FENCE_RE.finditer(text):
        obj = loads_object(m.group(1))
        if obj is not None:
            yield obj
    for a, b in balanced_brace_slices(text):
        obj = loads_object(text[a : b + 1])
        if obj is not None:
            yield obj


def first_to_last_brace(text: str) -> Optional[Dict[str, Any]]:
    """Decode the span from the first ``{`` to the last ``}`` of ``text``."""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        return None
    return loads_object(text[start : end + 1])
