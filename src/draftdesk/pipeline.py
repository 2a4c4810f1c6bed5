"""Request/response service behind the CLI and the review dashboard."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from draftdesk.config import Settings
from draftdesk.errors import ErrorKind, Result, failure, log_error, propagate, success
from draftdesk.generation.client import GenerationClient, MessagesBackend, create_backend
from draftdesk.generation.prompts import PromptOptions, build_prompts
from draftdesk.generation.revision import Reviser
from draftdesk.models import (
    Batch,
    Draft,
    GenerationInput,
    MetricSnapshot,
    NewsItem,
    RevisionOutput,
    SocialPost,
    SourceKind,
)
from draftdesk.sources.collector import CollectionReport, SourceCollector, SourceOutcome
from draftdesk.storage.store import DraftStore
from draftdesk.voice.profile import load_voice_profile

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GenerationRequest:
    """Caller-provided material; `scrape_first` ignores it and collects fresh data."""

    news: list[NewsItem] | None = None
    posts: list[SocialPost] | None = None
    metrics: MetricSnapshot | None = None
    scrape_first: bool = False
    parallel: bool = False


@dataclass(slots=True)
class GenerationResponse:
    drafts: list[Draft]
    tokens_used: int
    model_used: str
    generated_at: datetime
    input: GenerationInput
    saved_path: Path | None = None
    outcomes: list[SourceOutcome] = field(default_factory=list)


@dataclass(slots=True)
class RevisionRequest:
    draft_id: str
    feedback: str
    original_content: str


class DraftPipeline:
    """Collect, prompt, generate, attach provenance and persist."""

    def __init__(
        self,
        settings: Settings,
        *,
        client: GenerationClient | None = None,
        collector: SourceCollector | None = None,
        store: DraftStore | None = None,
    ) -> None:
        self.settings = settings
        self.client = client
        self.collector = collector or SourceCollector(settings.sources)
        self.store = store or DraftStore(settings.storage.drafts_dir)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        backend: MessagesBackend | None = None,
    ) -> DraftPipeline:
        """Wire the default collaborators; no backend is created without an API key."""

        generation = settings.generation
        if backend is None and generation.api_key:
            backend = create_backend(generation)
        client = None
        if backend is not None:
            client = GenerationClient(
                backend,
                model=generation.model,
                max_tokens=generation.max_tokens,
                max_chars=generation.max_chars,
            )
        return cls(settings, client=client)

    def collect(self, *, parallel: bool = False) -> CollectionReport:
        return self.collector.collect(parallel=parallel)

    def generate(self, request: GenerationRequest) -> Result[GenerationResponse]:
        if self.client is None:
            return failure(
                ErrorKind.AI_UNAVAILABLE,
                "Generation backend is not configured (ANTHROPIC_API_KEY).",
            )

        outcomes: list[SourceOutcome] = []
        if request.scrape_first:
            report = self.collector.collect(parallel=request.parallel)
            generation_input = report.input
            outcomes = report.outcomes
        else:
            generation_input = GenerationInput(
                news=request.news,
                posts=request.posts,
                metrics=request.metrics,
            )

        voice = self.settings.voice
        profile = load_voice_profile(voice.profile_path, handle=voice.handle)
        if not profile.is_success:
            return propagate(profile)

        prompts = build_prompts(
            profile.unwrap(),
            generation_input,
            self.settings.generation.draft_count,
            PromptOptions(
                style_tags=voice.style_tags,
                domain=voice.domain,
                default_hashtags=voice.default_hashtags,
                max_chars=self.settings.generation.max_chars,
                max_voice_samples=voice.max_samples,
            ),
        )
        generated = self.client.generate(prompts.system, prompts.user)
        if not generated.is_success:
            return propagate(generated)
        output = generated.unwrap()

        for draft in output.drafts:
            draft.source_data = attach_source_data(draft, generation_input)

        saved = self.store.save(output.drafts, generation_input, now=output.generated_at)
        saved_path: Path | None = None
        if saved.error is not None:
            log_error("generate:save", saved.error)
        else:
            saved_path = saved.value

        return success(
            GenerationResponse(
                drafts=output.drafts,
                tokens_used=output.tokens_used,
                model_used=output.model_used,
                generated_at=output.generated_at,
                input=generation_input,
                saved_path=saved_path,
                outcomes=outcomes,
            ),
        )

    def revise(self, request: RevisionRequest) -> Result[RevisionOutput]:
        if self.client is None:
            return failure(
                ErrorKind.AI_UNAVAILABLE,
                "Generation backend is not configured (ANTHROPIC_API_KEY).",
            )
        reviser = Reviser(
            self.client,
            handle=self.settings.voice.handle,
            max_tokens=self.settings.generation.revision_max_tokens,
        )
        result = reviser.revise(request.original_content, request.feedback)
        if result.is_success:
            logger.info("Revised draft %s.", request.draft_id)
        return result

    def list_batches(self) -> list[Batch]:
        return self.store.load_all()

    def edit_draft(self, draft_id: str, content: str) -> Result[Draft]:
        if not content.strip():
            return failure(ErrorKind.INVALID_DATA_FORMAT, "Draft content must not be empty.")
        return self.store.update_draft(draft_id, content)


def attach_source_data(draft: Draft, generation_input: GenerationInput) -> GenerationInput | None:
    """The subset of the input a draft's metadata points at, or None when nothing matches."""

    metadata = draft.metadata
    news: list[NewsItem] = []
    posts: list[SocialPost] = []
    metrics: MetricSnapshot | None = None

    if metadata is not None:
        if metadata.news_url or metadata.news_title:
            title = (metadata.news_title or "").strip().lower()
            news = [
                item
                for item in generation_input.news or []
                if (metadata.news_url and item.url == metadata.news_url)
                or (title and item.title.strip().lower() == title)
            ]
        if metadata.social_handle:
            handle = metadata.social_handle.lstrip("@").lower()
            posts = [
                post
                for post in generation_input.posts or []
                if post.author_handle.lower() == handle
            ]
        if metadata.metric:
            metrics = generation_input.metrics
    if draft.source is SourceKind.ONCHAIN and metrics is None:
        metrics = generation_input.metrics

    if not news and not posts and metrics is None:
        return None
    return GenerationInput(news=news or None, posts=posts or None, metrics=metrics)
