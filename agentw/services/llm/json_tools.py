"""JSON recovery from model answers (code fences, chatty prefixes)."""

import json
import re
from typing import Any, Optional

_FENCE = re.compile(r"^```[a-zA-Z]*\s*(?P<body>.*?)\s*```$", re.DOTALL)
_decoder = json.JSONDecoder()


def strip_code_fence(text: str) -> str:
    stripped = text.strip()
    match = _FENCE.match(stripped)
    return match.group("body") if match else stripped


def extract_json(text: Optional[str]) -> Optional[Any]:
    """
    Return the JSON object or array found in *text*, or None.

    Tries the whole (unfenced) text first, then decodes from each ``{`` or
    ``[`` in turn so that answers like ``Here you go: {...}`` still parse.
    An object anywhere in the text wins over an earlier array; an array is
    returned only when the text holds no object.
    Bare scalars are not accepted: a model asked for JSON that answers
    ``"ok"`` did not comply.
    """
    if not text or not text.strip():
        return None

    body = strip_code_fence(text)

    try:
        value = json.loads(body)
    except ValueError:
        pass
    else:
        return value if isinstance(value, (dict, list)) else None

    first = None
    index = 0
    while index < len(body):
        if body[index] not in "{[":
            index += 1
            continue
        try:
            value, end = _decoder.raw_decode(body, index)
        except ValueError:
            index += 1
            continue
        if isinstance(value, dict):
            return value
        # Prose like "Transactions [2]: {...}" puts an array before the answer
        if first is None:
            first = value
        index = end

    return first
