# resume_revision/services/field_path.py
"""
FieldPath parsing and resolution.

A FieldPath locates one editable value inside a resume document, e.g.
``professional_summary``, ``work_experience[2].responsibilities[0]`` or
``skills[1].items``. The dotted-index form ``work_experience.2.responsibilities``
is accepted too; both canonicalise to the bracket form, which is the key used
for all per-field AI state.
"""
import re
from typing import Any, Dict, List, Tuple, Union

Segment = Union[str, int]

ALIASES = {
    "summary": "professional_summary",
    "workHistory": "work_experience",
    "work_history": "work_experience",
    "bullets": "responsibilities",
}

_SEGMENT_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)((?:\[\d+\])*)")
_INDEX_RE = re.compile(r"\[(\d+)\]")


class FieldPathError(ValueError):
    pass


def parse_path(path: str) -> Tuple[Segment, ...]:
    if not isinstance(path, str) or not path.strip():
        raise FieldPathError("empty field path")
    parts: List[Segment] = []
    for segment in path.strip().split("."):
        if segment.isdigit():
            parts.append(int(segment))
            continue
        m = _SEGMENT_RE.fullmatch(segment)
        if not m:
            raise FieldPathError(f"malformed field path segment {segment!r} in {path!r}")
        parts.append(ALIASES.get(m.group(1), m.group(1)))
        parts.extend(int(i) for i in _INDEX_RE.findall(m.group(2)))
    if not isinstance(parts[0], str):
        raise FieldPathError(f"field path {path!r} must start with a section name")
    return tuple(parts)


def canonical_path(path: str) -> str:
    out = ""
    for part in parse_path(path):
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else part
    return out


def _walk(document: Dict[str, Any], parts: Tuple[Segment, ...], path: str):
    current: Any = document
    for part in parts:
        if isinstance(part, int):
            if not isinstance(current, list) or part >= len(current):
                raise FieldPathError(f"index {part} out of range in {path!r}")
        elif not isinstance(current, dict) or part not in current:
            raise FieldPathError(f"no field {part!r} in {path!r}")
        current = current[part]
    return current


def _is_editable(value: Any) -> bool:
    if isinstance(value, str):
        return True
    return isinstance(value, list) and all(isinstance(v, str) for v in value)


def get_value(document: Dict[str, Any], path: str) -> Any:
    """Return the value at `path`; it must be a string or a list of strings."""
    value = _walk(document, parse_path(path), path)
    if not _is_editable(value):
        raise FieldPathError(f"{path!r} does not point at text or a list of text")
    return value


def set_value(document: Dict[str, Any], path: str, value: Any) -> None:
    parts = parse_path(path)
    parent = _walk(document, parts[:-1], path)
    last = parts[-1]
    if isinstance(last, int):
        if not isinstance(parent, list) or last >= len(parent):
            raise FieldPathError(f"index {last} out of range in {path!r}")
    elif not isinstance(parent, dict) or last not in parent:
        raise FieldPathError(f"no field {last!r} in {path!r}")
    if not _is_editable(parent[last]):
        raise FieldPathError(f"{path!r} does not point at text or a list of text")
    parent[last] = value


def as_prompt_text(value: Any) -> str:
    if isinstance(value, list):
        return "\n".join(value)
    return value or ""
