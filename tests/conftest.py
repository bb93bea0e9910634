"""Shared fixtures: settings without a real API key and a scripted model."""

import json

import pytest

from trackwise.agents.llm import PromptAdapter
from trackwise.config import get_settings


class FakeLLMClient:
    """
    LLMClient that replays scripted replies.

    Each reply is a string (returned as-is), a dict (returned as JSON)
    or an exception (raised).
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.replies:
            raise AssertionError("FakeLLMClient ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Fresh settings for every test, with a dummy API key."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()


@pytest.fixture
def fake_client():
    return FakeLLMClient()


@pytest.fixture
def adapter(fake_client):
    return PromptAdapter(client=fake_client)
