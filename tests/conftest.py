from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Callable
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from core.schemas import Source, Topic
from services.config import Config
from services.scheduler import Window


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def config() -> Config:
    return Config(GITHUB_TOKEN="gh-token", MODELS_TOKEN="models-token")


@pytest.fixture
def window() -> Window:
    return Window(start=utc(2026, 2, 3, 6), end=utc(2026, 2, 3, 14), post_type="midday")


def make_topic(score: float, title: str = "Topic", platforms: tuple[str, ...] = ("github",)) -> Topic:
    return Topic(
        title=title,
        summary=f"Summary of {title}",
        relevanceScore=score,
        sources=[Source(platform=p, url=f"https://example.com/{p}/{title.replace(' ', '-')}") for p in platforms],
    )


def llm_returning(*contents: str) -> MagicMock:
    """A ChatClient stand-in whose complete() yields the given contents in order."""
    llm = MagicMock()
    llm.complete = AsyncMock(
        side_effect=[{"raw": None, "content": c, "latency_ms": 5} for c in contents]
    )
    return llm


def json_transport(handler: Callable[[httpx.Request], tuple[int, object]]) -> httpx.MockTransport:
    """MockTransport whose handler returns (status, json_body)."""

    def _handle(request: httpx.Request) -> httpx.Response:
        status, body = handler(request)
        return httpx.Response(status, content=json.dumps(body).encode(), headers={"Content-Type": "application/json"})

    return httpx.MockTransport(_handle)
