# resume_revision/services/llm_adapter.py
"""
Pluggable text-generation facade.

The adapter is chosen per provider record:
- provider_type "mock": deterministic mock adapter
- any OpenAI-compatible provider_type: HTTP adapter

Public:
- async def generate(provider, prompt, system_prompt=None, **options) -> str
"""
import importlib
from typing import Optional

from resume_revision.core.errors import ProviderError
from resume_revision.models.provider import ProviderConfig
from resume_revision.services.llm_adapters.http_adapter import DEFAULT_BASE_URLS

_adapters = {}


def _load_adapter(provider_type: str):
    if provider_type == "mock":
        name = "resume_revision.services.llm_adapters.mock_adapter"
    elif provider_type in DEFAULT_BASE_URLS:
        name = "resume_revision.services.llm_adapters.http_adapter"
    else:
        raise ProviderError(f"Provider type {provider_type} not supported")
    if name not in _adapters:
        mod = importlib.import_module(name)
        # adapter module must implement async generate
        if not hasattr(mod, "generate"):
            raise RuntimeError(f"Adapter {name} does not expose generate()")
        _adapters[name] = mod
    return _adapters[name]


async def generate(provider: ProviderConfig, prompt: str, system_prompt: Optional[str] = None, **options) -> str:
    """
    Unified entry to call the adapter matching the provider.
    Failures surface as ProviderError.
    """
    adapter = _load_adapter(provider.provider_type)
    try:
        text = await adapter.generate(provider, prompt, system_prompt=system_prompt, **options)
    except ProviderError:
        raise
    except Exception as exc:
        raise ProviderError(f"{provider.name or provider.id}: {exc!r}") from exc
    if not isinstance(text, str) or not text.strip():
        raise ProviderError(f"{provider.name or provider.id}: empty response")
    return text
