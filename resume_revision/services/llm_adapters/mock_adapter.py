# resume_revision/services/llm_adapters/mock_adapter.py
"""
Deterministic mock adapter for development and tests.
Output depends only on the provider id and the prompt.
"""
import asyncio
import hashlib
import json
from typing import Optional

from resume_revision.models.provider import ProviderConfig

_VERBS = ["Led", "Delivered", "Drove", "Built", "Streamlined"]


def _content_of(prompt: str) -> str:
    marker = "Content:\n"
    if marker in prompt:
        return prompt.split(marker, 1)[1].strip()
    return prompt.strip()


async def generate(provider: ProviderConfig, prompt: str, system_prompt: Optional[str] = None, **options) -> str:
    await asyncio.sleep(0)  # keep async signature
    h = int(hashlib.sha256(f"{provider.id}:{prompt}".encode()).hexdigest()[:8], 16)
    if "Respond ONLY with valid JSON" in prompt:
        return json.dumps({
            "score": 50 + h % 50,
            "keywords_extracted_jd": ["python", "sql"],
            "keywords_found_resume": ["python"],
            "missing_keywords": ["sql"],
            "recommendations": ["Mention SQL where it applies."],
        })
    content = _content_of(prompt)
    if system_prompt and "pipe character" in system_prompt:
        items = [i.strip() for i in content.split("|") if i.strip()]
        return " | ".join(item.title() for item in items)
    verb = _VERBS[h % len(_VERBS)]
    return f"{verb} {content[:1].lower()}{content[1:]}" if content else verb
