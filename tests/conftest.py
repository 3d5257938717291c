# tests/conftest.py
import pytest

from resume_revision.models.provider import ProviderConfig
from resume_revision.models.resume import normalize_document
from resume_revision.repositories.record_store import InMemoryRecordStore
from resume_revision.services.fanout import RequestThrottle, process_throttle
from resume_revision.services.session import registry


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGenerate:
    """Records every call; replies per provider id from `replies` (str or Exception)."""

    def __init__(self, replies=None, default="Rewritten text"):
        self.replies = replies or {}
        self.default = default
        self.calls = []

    async def __call__(self, provider, prompt, system_prompt=None, **options):
        self.calls.append({"provider": provider.id, "prompt": prompt, "system_prompt": system_prompt, **options})
        reply = self.replies.get(provider.id, self.default)
        if isinstance(reply, Exception):
            raise reply
        return reply


def make_provider(pid: str, order: int = 0, **kwargs) -> ProviderConfig:
    data = {"id": pid, "name": pid.upper(), "provider_type": "mock", "is_default": True, "order": order}
    data.update(kwargs)
    return ProviderConfig(**data)


@pytest.fixture
def sample_document():
    return normalize_document({
        "id": "doc-1",
        "resume_id": "res-1",
        "personal_info": {"full_name": "Ada Lovelace", "email": "ada@example.com"},
        "professional_summary": "Engineer with ten years of experience.",
        "work_experience": [
            {
                "company": "Acme",
                "position": "Developer",
                "responsibilities": ["Wrote code", "Reviewed pull requests"],
            },
            {
                "company": "Globex",
                "position": "Lead",
                "responsibilities": ["Ran the team"],
            },
        ],
        "skills": [{"category": "Languages", "items": ["python", "sql"]}],
        "education": [{"institution": "MIT", "degree": "BSc"}],
    })


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def throttle(clock):
    return RequestThrottle(min_interval_ms=2000, clock=clock)


@pytest.fixture(autouse=True)
def reset_shared_state():
    registry.clear()
    process_throttle.reset()
    yield
    registry.clear()
    process_throttle.reset()
