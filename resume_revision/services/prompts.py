# resume_revision/services/prompts.py
"""
Prompt construction for field rewrites and candidate parsing of the replies.

Skill lists are exchanged as pipe-separated text; prose fields as plain text.
"""
import re
from typing import Any, List, Optional

from pydantic import BaseModel, Field

SECTION_PLACEHOLDER = "{section_content}"

_SKILLS_SYSTEM = """You are a professional resume writer. Refine resume skills following these strict rules:
1. Never add skills that are not in the original list.
2. Never invent skills.
3. Only refine the wording of existing skills to be more professional or industry-standard.
4. Never add duplicates.
5. Keep skills specific and technical.
6. Output must be roughly the same length as the input (within 20%).
7. Return the skills separated only by the pipe character (|), with no explanations, numbering or bullets."""

_TEXT_SYSTEM = """You are a professional resume writer. Improve resume content while:
1. Never making up information.
2. Only improving language and presentation of existing information.
3. Keeping all facts exactly as provided.
4. Using strong action verbs.
5. Keeping the output roughly the same length as the input (within 20%).
6. Returning only the improved text."""

_SKILLS_INSTRUCTION = (
    "Refine only the wording of these skills for this specific category. Do not add new skills. "
    "Do not create duplicates. Return the refined list separated by the pipe character (|)."
)
_TEXT_INSTRUCTION = "Improve the following resume section. Keep it roughly the same length."

_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+")
_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


class GenerationContext(BaseModel):
    job_description: str = ""
    missing_keywords: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    prompt_text: Optional[str] = None


def is_skills_path(path: str) -> bool:
    return path.startswith("skills")


def _keywords_block(context: GenerationContext, skills: bool) -> str:
    if not context.missing_keywords:
        return ""
    if skills:
        return (
            "\nATS keywords (only add those directly relevant to this category): "
            + " | ".join(context.missing_keywords)
        )
    return (
        "\nATS optimization context: the job description mentions these keywords that the resume lacks: "
        + ", ".join(context.missing_keywords)
        + ". Incorporate a keyword only where it is truthful and relevant to this content; never fabricate experience."
    )


def build_system_prompt(path: str, context: GenerationContext) -> str:
    skills = is_skills_path(path)
    parts = [_SKILLS_SYSTEM if skills else _TEXT_SYSTEM]
    if skills and context.category:
        parts.append(f"\nSkill category: {context.category}")
    keywords = _keywords_block(context, skills)
    if keywords:
        parts.append(keywords)
    if context.job_description.strip():
        parts.append(f"\nJob Description:\n{context.job_description.strip()}")
    return "\n".join(parts)


def build_user_prompt(path: str, content: str, context: GenerationContext, custom_prompt: Optional[str] = None) -> str:
    instruction = custom_prompt or context.prompt_text or (
        _SKILLS_INSTRUCTION if is_skills_path(path) else _TEXT_INSTRUCTION
    )
    if SECTION_PLACEHOLDER in instruction:
        return instruction.replace(SECTION_PLACEHOLDER, content)
    return f"{instruction}\n\nContent:\n{content}"


def content_for_prompt(path: str, value: Any) -> str:
    if isinstance(value, list):
        return " | ".join(value) if is_skills_path(path) else "\n".join(value)
    return value or ""


def _strip_wrapping(text: str) -> str:
    text = _FENCE_RE.sub("", text.strip()).strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        text = text[1:-1].strip()
    return text


def coerce_candidate(original: Any, text: str) -> Any:
    """
    Turn a provider reply into a value of the same shape as `original`.
    Returns None when nothing usable is left.
    """
    text = _strip_wrapping(text or "")
    if not isinstance(original, list):
        return text or None
    raw_items = text.split("|") if "|" in text else text.splitlines()
    items: List[str] = []
    seen = set()
    for raw in raw_items:
        item = _BULLET_RE.sub("", raw).strip()
        key = item.lower()
        if item and key not in seen:
            seen.add(key)
            items.append(item)
    return items or None
