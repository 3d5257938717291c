# resume_revision/services/llm_adapters/http_adapter.py
"""
Async HTTP adapter for OpenAI-compatible chat completion endpoints
(OpenAI, OpenRouter, Groq, Perplexity, DeepSeek, Mistral).
Retries with linear backoff.

Configuration comes from the provider record (api_key, api_url, model_name)
and from settings (LLM_TIMEOUT_SEC, LLM_RETRIES, LLM_BACKOFF_FACTOR).
"""
import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from resume_revision.core.config import settings
from resume_revision.core.errors import ProviderError
from resume_revision.models.provider import ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "openrouter": "https://openrouter.ai/api/v1",
    "groq": "https://api.groq.com/openai/v1",
    "perplexity": "https://api.perplexity.ai",
    "deepseek": "https://api.deepseek.com/v1",
    "mistral": "https://api.mistral.ai/v1",
}


def resolve_base_url(provider: ProviderConfig) -> str:
    if provider.api_url:
        url = provider.api_url.rstrip("/")
        if url.endswith("/chat/completions"):
            url = url[: -len("/chat/completions")]
        return url
    base = DEFAULT_BASE_URLS.get(provider.provider_type)
    if not base:
        raise ProviderError(f"no base URL known for provider type {provider.provider_type!r}")
    return base


def _extract_content(data: Dict[str, Any]) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderError(f"malformed completion response: {exc!r}") from exc
    if not isinstance(content, str) or not content.strip():
        raise ProviderError("empty completion")
    return content


async def _post_once(client: httpx.AsyncClient, url: str, api_key: str, body: Dict[str, Any]) -> Dict[str, Any]:
    headers = {"Content-Type": "application/json", "Authorization": f"Bearer {api_key}"}
    resp = await client.post(url, json=body, headers=headers, timeout=float(settings.LLM_TIMEOUT_SEC))
    resp.raise_for_status()
    return resp.json()


async def generate(
    provider: ProviderConfig,
    prompt: str,
    system_prompt: Optional[str] = None,
    temperature: Optional[float] = None,
    max_tokens: Optional[int] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    if not provider.api_key:
        raise ProviderError(f"{provider.provider_type} API key not configured")
    url = f"{resolve_base_url(provider)}/chat/completions"
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    messages.append({"role": "user", "content": prompt})
    body = {
        "model": provider.model_name or settings.LLM_DEFAULT_MODEL,
        "messages": messages,
        "temperature": settings.LLM_TEMPERATURE if temperature is None else temperature,
        "max_tokens": settings.LLM_MAX_TOKENS if max_tokens is None else max_tokens,
    }

    owns_client = client is None
    client = client or httpx.AsyncClient()
    try:
        last_exc: Optional[Exception] = None
        for attempt in range(1, settings.LLM_RETRIES + 2):
            try:
                data = await _post_once(client, url, provider.api_key, body)
                return _extract_content(data)
            except httpx.HTTPStatusError as exc:
                # credentials and bad requests will not fix themselves
                if exc.response.status_code in (400, 401, 403, 404):
                    raise ProviderError(f"{provider.name or provider.id}: HTTP {exc.response.status_code}") from exc
                last_exc = exc
            except (httpx.HTTPError, ValueError) as exc:
                last_exc = exc
            if attempt <= settings.LLM_RETRIES:
                logger.debug("Provider %s attempt %s failed: %r", provider.id, attempt, last_exc)
                await asyncio.sleep(settings.LLM_BACKOFF_FACTOR * attempt)
        raise ProviderError(f"{provider.name or provider.id}: {last_exc!r}") from last_exc
    finally:
        if owns_client:
            await client.aclose()
