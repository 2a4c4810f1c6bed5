"""Single-call client for the Anthropic Messages API."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Protocol

import anthropic

from draftdesk.config import GenerationSettings
from draftdesk.errors import ErrorKind, Result, failure, propagate, success
from draftdesk.generation.failure_classifier import classify_backend_failure
from draftdesk.generation.repair import parse_drafts
from draftdesk.models import GenerationOutput

logger = logging.getLogger(__name__)


class MessagesAPI(Protocol):
    def create(self, **kwargs: Any) -> Any: ...


class MessagesBackend(Protocol):
    """Anything shaped like `anthropic.Anthropic` (only `.messages.create` is used)."""

    @property
    def messages(self) -> MessagesAPI: ...


def create_backend(settings: GenerationSettings) -> anthropic.Anthropic:
    return anthropic.Anthropic(
        api_key=settings.api_key,
        timeout=settings.request_timeout_seconds,
        max_retries=0,
    )


def first_text_block(response: Any) -> str | None:
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            return str(getattr(block, "text", ""))
    return None


def tokens_used(response: Any) -> int:
    usage = getattr(response, "usage", None)
    if usage is None:
        return 0
    return int(getattr(usage, "input_tokens", 0) or 0) + int(
        getattr(usage, "output_tokens", 0) or 0,
    )


class GenerationClient:
    """Invoke the backend once and turn its reply into validated drafts."""

    def __init__(
        self,
        backend: MessagesBackend,
        *,
        model: str,
        max_tokens: int = 2_000,
        max_chars: int = 280,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.backend = backend
        self.model = model
        self.max_tokens = max_tokens
        self.max_chars = max_chars
        self._now = now or (lambda: datetime.now(tz=UTC))

    def generate(self, system: str, user: str) -> Result[GenerationOutput]:
        reply = self.complete(system=system, user=user, max_tokens=self.max_tokens)
        if not reply.is_success:
            return propagate(reply)
        text, used = reply.unwrap()

        generated_at = self._now()
        parsed = parse_drafts(text, now=generated_at, max_chars=self.max_chars)
        if not parsed.is_success:
            return propagate(parsed)
        report = parsed.unwrap()
        logger.info(
            "Generated %d drafts with %s (%d tokens, %d defaults filled, %d over limit).",
            len(report.drafts),
            self.model,
            used,
            report.filled_defaults,
            report.over_limit,
        )
        return success(
            GenerationOutput(
                drafts=report.drafts,
                tokens_used=used,
                model_used=self.model,
                generated_at=generated_at,
            ),
        )

    def complete(
        self,
        *,
        user: str,
        max_tokens: int,
        system: str | None = None,
    ) -> Result[tuple[str, int]]:
        """One Messages API call; returns the first text block and tokens used."""

        request: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": user}],
        }
        if system is not None:
            request["system"] = system
        try:
            response = self.backend.messages.create(**request)
        except anthropic.AnthropicError as error:
            classified = classify_backend_failure(error, model=self.model)
            return failure(classified.kind, classified.message, **classified.details)

        text = first_text_block(response)
        if text is None:
            return failure(ErrorKind.AI_INVALID_RESPONSE, "No text block in backend response.")
        return success((text, tokens_used(response)))
