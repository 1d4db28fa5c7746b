"""
Shared pytest fixtures for DataCopilot test suite.
"""

import os

# The app module builds its settings at import time
os.environ.setdefault("GROQ_API_KEY", "test-key")
os.environ.setdefault("LLM_PROVIDER", "groq")

import pytest
from typing import AsyncGenerator, List, Optional

from httpx import AsyncClient, ASGITransport

from datacopilot.api.deps import get_insight_service
from datacopilot.main import app
from datacopilot.services.insights import InsightService


class FakeProvider:
    """Stands in for the remote model; records every prompt it receives."""

    name = "fake"
    model = "fake-model"

    def __init__(self, reply: Optional[str] = None, error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[dict] = []

    async def complete(self, system_prompt: str, user_prompt: str) -> Optional[str]:
        self.calls.append({"system": system_prompt, "user": user_prompt})
        if self.error is not None:
            raise self.error
        return self.reply


VALID_REPLY = (
    '{"overview": "Three people in two cities.", '
    '"keyFindings": "- Oslo appears twice\\n- One age is missing", '
    '"recommendations": "- Fill the missing age"}'
)


@pytest.fixture
def headers() -> List[str]:
    return ["age", "city"]


@pytest.fixture
def rows() -> List[List[str]]:
    return [["34", "Oslo"], ["", "Oslo"], ["29", "Bergen"]]


@pytest.fixture
def sample_csv() -> bytes:
    return b"age,city,joined\n34,Oslo,2024-01-05\n,Oslo,2023-11-30\n29,Bergen,2022-06-01\n"


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider(reply=VALID_REPLY)


@pytest.fixture
def insight_service(fake_provider: FakeProvider) -> InsightService:
    return InsightService(fake_provider, sample_row_limit=20, timeout=5)


@pytest.fixture
async def test_client(insight_service: InsightService) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client with the model replaced by a fake."""
    app.dependency_overrides[get_insight_service] = lambda: insight_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def make_service():
    """Factory for an InsightService backed by a FakeProvider."""
    def _make(reply: Optional[str] = None, error: Optional[Exception] = None, timeout: float = 5):
        provider = FakeProvider(reply=reply, error=error)
        return InsightService(provider, sample_row_limit=20, timeout=timeout), provider
    return _make
