"""Pytest configuration and shared fixtures."""

import asyncio
from collections.abc import Callable, Iterator
from typing import Optional

import httpx
import pytest

from app.core.config import Settings, YouTubeSettings
from app.core.llm import ModelClient
from app.modules.flows.main import LearningFlows
from tests.helpers import RecordingModel, youtube_transport


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings with a YouTube key and no LLM credentials."""
    return Settings(
        GEMINI_API_KEY=None,
        OPENROUTER_API_KEY=None,
        MODEL_PROVIDER="google",
        youtube=YouTubeSettings(YOUTUBE_API_KEY="test-youtube-key"),
    )


@pytest.fixture
def make_http() -> Iterator[Callable[[httpx.MockTransport], httpx.AsyncClient]]:
    """Factory for mock-transport HTTP clients, all closed at teardown."""
    clients: list[httpx.AsyncClient] = []

    def _make(transport: httpx.MockTransport) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=transport)
        clients.append(client)
        return client

    yield _make
    for client in clients:
        asyncio.run(client.aclose())


@pytest.fixture
def make_flows(
    settings: Settings, make_http: Callable[[httpx.MockTransport], httpx.AsyncClient]
) -> Callable[..., LearningFlows]:
    """Factory building ``LearningFlows`` over a recording model and mock YouTube."""

    def _make(
        model: Optional[RecordingModel] = None,
        transport: Optional[httpx.MockTransport] = None,
        youtube_key: Optional[str] = "test-youtube-key",
    ) -> LearningFlows:
        cfg = settings.model_copy(
            update={"youtube": YouTubeSettings(YOUTUBE_API_KEY=youtube_key)}
        )
        http = make_http(transport or youtube_transport([]))
        client = ModelClient(cfg, model=(model or RecordingModel()).model)
        return LearningFlows.from_settings(cfg, http_client=http, model_client=client)

    return _make
