from __future__ import annotations

import os

os.environ.update(
    {
        "APP_ENV": "test",
        "DATABASE_URL": "sqlite:///./.pytest-matchfeed.db",
        "REDIS_URL": "",
        "OPENAI_API_KEY": "",
        "LOCAL_LLM_ENABLED": "false",
        "ADZUNA_APP_ID": "",
        "ADZUNA_APP_KEY": "",
    }
)

import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from matchfeed.config import Settings
from matchfeed.core.runtime import build_service, set_service
from matchfeed.core.service import MatchFeedService
from matchfeed.db.base import Base
from matchfeed.db.seed import seed_demo_user
from matchfeed.db.session import SessionLocal, engine
from matchfeed.types import JobRecord


class FakeLLM:
    """Stands in for LLMRouter. Outputs may be strings or exceptions to raise."""

    def __init__(self) -> None:
        self.score_output: str | Exception = '{"scores": []}'
        self.classify_output: str | Exception = "Hello! How can I help with your job search?"
        self.score_delay = 0.0
        self.classify_delay = 0.0
        self.score_prompts: list[str] = []
        self.classify_messages: list[str] = []
        self._lock = threading.Lock()

    @property
    def score_calls(self) -> int:
        return len(self.score_prompts)

    def score_matches(self, prompt: str) -> str:
        with self._lock:
            self.score_prompts.append(prompt)
        if self.score_delay:
            time.sleep(self.score_delay)
        if isinstance(self.score_output, Exception):
            raise self.score_output
        return self.score_output

    def classify(self, message: str) -> str:
        with self._lock:
            self.classify_messages.append(message)
        if self.classify_delay:
            time.sleep(self.classify_delay)
        if isinstance(self.classify_output, Exception):
            raise self.classify_output
        return self.classify_output


class FakeJobSearch:
    def __init__(self) -> None:
        self.results: list[JobRecord] = []
        self.terms: list[str] = []

    def search(self, term: str) -> list[JobRecord]:
        self.terms.append(term)
        return list(self.results)


class MemoryCacheStore:
    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.deleted: list[str] = []

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str, ttl_sec: int) -> None:
        self.values[key] = value
        self.ttls[key] = ttl_sec

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.values.pop(key, None)


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        seed_demo_user(session)
    yield
    set_service(None)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(scoring_timeout_sec=0.5, classifier_timeout_sec=0.5)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def fake_search() -> FakeJobSearch:
    return FakeJobSearch()


@pytest.fixture
def memory_cache() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def service(test_settings, fake_llm, fake_search, memory_cache) -> MatchFeedService:
    return build_service(
        test_settings,
        llm=fake_llm,
        job_search=fake_search,
        cache_store=memory_cache,
    )


@pytest.fixture
def make_jobs() -> Callable[..., list[JobRecord]]:
    def _make(count: int, *, prefix: str = "job") -> list[JobRecord]:
        newest = datetime(2025, 6, 1, tzinfo=UTC)
        return [
            JobRecord(
                id=f"{prefix}-{index}",
                title=f"Engineer {index}",
                company="Acme",
                location="Bengaluru",
                description=f"Build services number {index}. " * 20,
                posted_at=newest - timedelta(hours=index),
            )
            for index in range(count)
        ]

    return _make
