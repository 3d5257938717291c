# resume_revision/services/json_repair.py
"""
Best-effort parsing of JSON produced by language models: code fences,
trailing commas and replies cut off at the token limit.
"""
import json
import re
from typing import Any, Dict, Optional

_FENCE_RE = re.compile(r"```(?:json)?\s*")
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
_SCORE_RE = re.compile(r'"score"\s*:\s*(\d+(?:\.\d+)?)')


def repair_json(text: str) -> str:
    repaired = _FENCE_RE.sub("", text or "")
    repaired = _TRAILING_COMMA_RE.sub(r"\1", repaired)
    return repaired.strip()


def close_truncated_json(text: str) -> str:
    """Balance the braces and brackets of a truncated JSON document."""
    s = text.rstrip()
    # drop an unterminated string value at the end
    last_quote = s.rfind('"')
    if last_quote > 0:
        after = s[last_quote + 1:].strip()
        if after and after[0] not in ",:]}[":
            s = s[:last_quote].rstrip()
    s = re.sub(r",\s*$", "", s)

    stack = []
    in_string = False
    escaped = False
    for c in s:
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
            continue
        if c == '"':
            in_string = True
        elif c in "{[":
            stack.append("}" if c == "{" else "]")
        elif c in "}]" and stack:
            stack.pop()
    if in_string:
        s += '"'
    # a dangling key without a value cannot be closed meaningfully
    s = re.sub(r',?\s*"[^"]*"\s*:\s*$', "", s)
    return s + "".join(reversed(stack))


def salvage_score(text: str) -> Optional[float]:
    m = _SCORE_RE.search(text or "")
    return float(m.group(1)) if m else None


def parse_model_json(text: str, truncated: bool = False) -> Dict[str, Any]:
    """
    Parse a model reply into a dict. When the reply was cut off (`truncated`)
    the structure is closed before giving up. Raises ValueError if nothing parses.
    """
    cleaned = repair_json(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        if not truncated:
            raise ValueError("response is not valid JSON")
        try:
            data = json.loads(close_truncated_json(cleaned))
        except json.JSONDecodeError as exc:
            raise ValueError("truncated response could not be repaired") from exc
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data
