# resume_revision/services/fanout.py
"""
Provider fan-out: send one logical generation request to the configured
providers in parallel and keep whatever succeeds.

- RequestThrottle enforces a minimum interval between requests per scope key.
- ProviderFanout selects up to N active default providers (ascending `order`),
  calls them concurrently, collects failures instead of raising them, and
  returns the successful texts in provider order.
"""
import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, Field

from resume_revision.core.config import settings
from resume_revision.core.errors import ProviderError
from resume_revision.models.provider import ProviderConfig
from resume_revision.models.revision import ProviderFailure
from resume_revision.repositories.record_store import PROVIDERS_COLLECTION, RecordStore, RecordStoreError
from resume_revision.services import llm_adapter

logger = logging.getLogger(__name__)

PromptFor = Callable[[ProviderConfig], Tuple[Optional[str], str]]
ProviderSource = Callable[[], Awaitable[List[ProviderConfig]]]
GenerateFn = Callable[..., Awaitable[str]]


class RequestThrottle:
    def __init__(self, min_interval_ms: Optional[int] = None, clock: Callable[[], float] = time.monotonic):
        if min_interval_ms is None:
            min_interval_ms = settings.AI_MIN_REQUEST_INTERVAL_MS
        self._min_interval = min_interval_ms / 1000.0
        self._clock = clock
        self._last: Dict[str, float] = {}

    def try_acquire(self, key: str = "global") -> Optional[int]:
        """Record a request for `key`. Returns None when allowed, else the milliseconds left to wait."""
        now = self._clock()
        last = self._last.get(key)
        if last is not None and now - last < self._min_interval:
            return max(1, int(round((self._min_interval - (now - last)) * 1000)))
        self._last[key] = now
        return None

    def reset(self) -> None:
        self._last.clear()


# shared by every session when AI_THROTTLE_SCOPE == "process"
process_throttle = RequestThrottle()


class FanoutStatus(str, Enum):
    OK = "ok"
    TOO_SOON = "too_soon"
    NO_PROVIDERS = "no_providers"
    FAILED = "failed"


class FanoutResult(BaseModel):
    status: FanoutStatus
    texts: List[str] = Field(default_factory=list)
    provider_ids: List[str] = Field(default_factory=list)
    failures: List[ProviderFailure] = Field(default_factory=list)
    retry_after_ms: Optional[int] = None
    message: Optional[str] = None


async def load_providers(store: RecordStore) -> List[ProviderConfig]:
    rows = await store.find(PROVIDERS_COLLECTION)
    return [ProviderConfig.model_validate(r) for r in rows]


def select_providers(
    providers: Sequence[ProviderConfig], limit: int, provider_id: Optional[str] = None
) -> List[ProviderConfig]:
    active = [p for p in providers if p.is_active]
    if provider_id:
        return [p for p in active if p.id == provider_id][:1]
    defaults = sorted((p for p in active if p.is_default), key=lambda p: p.order)
    return defaults[: max(0, limit)]


def static_providers(providers: Sequence[ProviderConfig]) -> ProviderSource:
    async def _source() -> List[ProviderConfig]:
        return list(providers)
    return _source


class ProviderFanout:
    def __init__(
        self,
        provider_source: ProviderSource,
        throttle: Optional[RequestThrottle] = None,
        max_providers: Optional[int] = None,
        generate_fn: Optional[GenerateFn] = None,
    ):
        self._provider_source = provider_source
        self.throttle = throttle or process_throttle
        self._max_providers = settings.AI_MAX_PROVIDERS if max_providers is None else max_providers
        self._generate = generate_fn or llm_adapter.generate

    async def _call_one(self, provider: ProviderConfig, prompt: Union[str, PromptFor]) -> str:
        if callable(prompt):
            system_prompt, user_prompt = prompt(provider)
        else:
            system_prompt, user_prompt = None, prompt
        text = await self._generate(provider, user_prompt, system_prompt=system_prompt)
        if not isinstance(text, str) or not text.strip():
            raise ProviderError("empty response")
        return text

    async def request(
        self,
        prompt: Union[str, PromptFor],
        throttle_key: str = "global",
        provider_id: Optional[str] = None,
    ) -> FanoutResult:
        # no await before the throttle check: concurrent callers see each other's timestamp
        retry_after = self.throttle.try_acquire(throttle_key)
        if retry_after is not None:
            return FanoutResult(
                status=FanoutStatus.TOO_SOON,
                retry_after_ms=retry_after,
                message=f"Please wait {retry_after} ms before requesting again.",
            )

        try:
            providers = await self._provider_source()
        except RecordStoreError as exc:
            logger.warning("Could not load AI providers: %s", exc)
            return FanoutResult(status=FanoutStatus.FAILED, message="Could not load AI providers.")

        selected = select_providers(providers, self._max_providers, provider_id)
        if not selected:
            logger.info("No active AI providers configured (provider_id=%s)", provider_id)
            return FanoutResult(status=FanoutStatus.NO_PROVIDERS, message="No AI providers configured.")

        outcomes = await asyncio.gather(
            *(self._call_one(p, prompt) for p in selected), return_exceptions=True
        )

        result = FanoutResult(status=FanoutStatus.OK)
        for provider, outcome in zip(selected, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.warning("Provider %s (%s) failed: %r", provider.id, provider.name, outcome)
                result.failures.append(
                    ProviderFailure(provider_id=provider.id, provider_name=provider.name, error=str(outcome) or repr(outcome))
                )
            else:
                result.texts.append(outcome)
                result.provider_ids.append(provider.id)
        if result.failures and result.texts:
            result.message = f"{len(result.failures)} of {len(selected)} providers failed."
        elif result.failures:
            result.message = "Failed to generate suggestions. Please try again in a moment."
        return result
