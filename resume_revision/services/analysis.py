# resume_revision/services/analysis.py
"""
ATS analysis backend: score a resume against a job description with the
default AI provider and normalise the reply.
"""
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from resume_revision.core.config import settings
from resume_revision.core.errors import AnalysisError, ProviderError
from resume_revision.models.provider import ProviderConfig
from resume_revision.services import llm_adapter
from resume_revision.services.json_repair import parse_model_json, salvage_score

logger = logging.getLogger(__name__)

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "score": {"type": "number", "minimum": 0, "maximum": 100},
        "keywords_extracted_jd": {"type": "array", "items": {"type": "string"}},
        "keywords_found_resume": {"type": "array", "items": {"type": "string"}},
        "missing_keywords": {"type": "array", "items": {"type": "string"}},
        "recommendations": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["score"],
}

SYSTEM_PROMPT = (
    "You are an applicant tracking system expert. Compare the resume with the job description, "
    "extract the important keywords of the job description, report which of them the resume "
    "contains and which are missing, score the match from 0 to 100 and give concrete recommendations."
)

TRUNCATED_RECOMMENDATION = "Analysis was truncated. Please try again."


def build_resume_text(document: Dict[str, Any]) -> str:
    jobs = []
    for job in document.get("work_experience") or []:
        header = f"{job.get('position', '')} at {job.get('company', '')}"
        jobs.append("\n".join([header] + list(job.get("responsibilities") or [])))
    skills = [item for group in document.get("skills") or [] for item in group.get("items") or []]
    text = (
        f"Professional Summary: {document.get('professional_summary') or ''}\n\n"
        f"Work Experience:\n" + "\n".join(jobs) + "\n\n"
        f"Skills: {', '.join(skills)}"
    )
    return text.strip()


def build_analysis_prompt(input_text: str, resume_text: str, schema: Dict[str, Any]) -> str:
    return (
        f"Job Description:\n{input_text}\n\n"
        f"Resume:\n{resume_text}\n\n"
        "Respond ONLY with valid JSON matching this schema:\n" + json.dumps(schema, indent=2)
    )


def pick_analysis_provider(providers: Sequence[ProviderConfig]) -> Optional[ProviderConfig]:
    active = sorted((p for p in providers if p.is_active), key=lambda p: p.order)
    for p in active:
        if p.is_default:
            return p
    return active[0] if active else None


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v).strip()]


def normalize_analysis(data: Dict[str, Any]) -> Dict[str, Any]:
    score = data.get("score")
    try:
        score = max(0.0, min(100.0, float(score)))
    except (TypeError, ValueError):
        score = None
    return {
        "score": score,
        "extracted_keywords": _str_list(data.get("keywords_extracted_jd", data.get("extracted_keywords"))),
        "found_keywords": _str_list(data.get("keywords_found_resume", data.get("found_keywords"))),
        "missing_keywords": _str_list(data.get("missing_keywords")),
        "recommendations": _str_list(data.get("recommendations")),
    }


def parse_analysis_reply(text: str) -> Dict[str, Any]:
    try:
        return normalize_analysis(parse_model_json(text, truncated=True))
    except ValueError as exc:
        score = salvage_score(text)
        if score is None:
            raise AnalysisError(f"unparseable analysis response: {exc}") from exc
        logger.warning("Analysis reply was truncated; salvaged score %s", score)
        return normalize_analysis({"score": score, "recommendations": [TRUNCATED_RECOMMENDATION]})


async def analyze(
    input_text: str,
    document: Dict[str, Any],
    providers: Sequence[ProviderConfig],
    generate_fn: Optional[Callable[..., Awaitable[str]]] = None,
) -> Dict[str, Any]:
    provider = pick_analysis_provider(providers)
    if provider is None:
        raise AnalysisError("No active AI providers configured")
    generate = generate_fn or llm_adapter.generate
    prompt = build_analysis_prompt(input_text, build_resume_text(document), ANALYSIS_SCHEMA)
    try:
        reply = await generate(
            provider,
            prompt,
            system_prompt=SYSTEM_PROMPT,
            temperature=settings.ANALYSIS_TEMPERATURE,
            max_tokens=settings.ANALYSIS_MAX_TOKENS,
        )
    except ProviderError as exc:
        raise AnalysisError(str(exc)) from exc
    return parse_analysis_reply(reply)
