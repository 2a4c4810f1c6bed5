"""Shared test fixtures."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any

import anthropic
import httpx
import pytest

from draftdesk.http.fetcher import HttpFetcher

NOW = datetime(2026, 10, 17, 12, 0, tzinfo=UTC)

_ENV_PREFIXES = ("DRAFTDESK_",)
_ENV_NAMES = ("ANTHROPIC_API_KEY", "TWITTER_BEARER_TOKEN")


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep the developer's environment out of settings-driven tests."""
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES) or name in _ENV_NAMES:
            monkeypatch.delenv(name, raising=False)


def make_fetcher(handler: Callable[[httpx.Request], httpx.Response]) -> HttpFetcher:
    return HttpFetcher(timeout_seconds=5, transport=httpx.MockTransport(handler))


class FakeMessages:
    """Records `create` calls and replays scripted replies or errors."""

    def __init__(self, replies: list[Any]) -> None:
        self._replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeBackend:
    def __init__(self, *replies: Any) -> None:
        self.messages = FakeMessages(list(replies))


def text_reply(text: str, *, input_tokens: int = 100, output_tokens: int = 50) -> Any:
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)],
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens),
    )


def drafts_reply(drafts: list[dict[str, Any]], **kwargs: Any) -> Any:
    return text_reply(json.dumps(drafts), **kwargs)


def api_status_error(status_code: int, message: str = "backend error") -> Exception:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    return anthropic.APIStatusError(
        message,
        response=httpx.Response(status_code, request=request),
        body=None,
    )
