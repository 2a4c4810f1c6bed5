"""Rewrite a single draft according to reviewer feedback."""

from __future__ import annotations

import logging

from draftdesk.errors import ErrorKind, Result, failure, propagate, success
from draftdesk.generation.client import GenerationClient
from draftdesk.generation.prompts import build_revision_prompt
from draftdesk.models import RevisionOutput

logger = logging.getLogger(__name__)


class Reviser:
    """Revision never persists; the caller decides whether to keep the new text."""

    def __init__(
        self,
        client: GenerationClient,
        *,
        handle: str,
        max_tokens: int = 500,
    ) -> None:
        self.client = client
        self.handle = handle
        self.max_tokens = max_tokens

    def revise(self, original_content: str, feedback: str) -> Result[RevisionOutput]:
        if not original_content.strip() or not feedback.strip():
            return failure(
                ErrorKind.INVALID_DATA_FORMAT,
                "Feedback and original content are required.",
            )
        prompt = build_revision_prompt(
            original_content,
            feedback,
            handle=self.handle,
            max_chars=self.client.max_chars,
        )
        reply = self.client.complete(user=prompt, max_tokens=self.max_tokens)
        if not reply.is_success:
            return propagate(reply)
        text, used = reply.unwrap()
        revised = text.strip()
        if len(revised) > self.client.max_chars:
            logger.warning(
                "Revised draft is %d characters, over the %d limit.",
                len(revised),
                self.client.max_chars,
            )
        return success(RevisionOutput(content=revised, tokens_used=used))
