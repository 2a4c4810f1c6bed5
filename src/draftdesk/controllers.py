"""Controllers for draftdesk CLI commands."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from draftdesk.config import Settings
from draftdesk.errors import AppError, ErrorKind
from draftdesk.models import Draft, GenerationInput
from draftdesk.pipeline import DraftPipeline, GenerationRequest, RevisionRequest
from draftdesk.sources.collector import SourceOutcome
from draftdesk.sources.social import SocialConnector
from draftdesk.verification import verify_url
from draftdesk.voice.analyzer import build_voice_profile
from draftdesk.voice.profile import save_voice_profile

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 100


@dataclass(slots=True)
class GenerateCommand:
    """CLI inputs for draft generation."""

    drafts_dir: Path | None
    input_path: Path | None
    scrape_first: bool
    parallel: bool


@dataclass(slots=True)
class CollectCommand:
    drafts_dir: Path | None
    parallel: bool
    output_path: Path | None


@dataclass(slots=True)
class ListDraftsCommand:
    drafts_dir: Path | None
    limit: int


@dataclass(slots=True)
class EditDraftCommand:
    drafts_dir: Path | None
    draft_id: str
    content: str


@dataclass(slots=True)
class ReviseCommand:
    """CLI inputs for revision; `apply` stores the revised text on the draft."""

    drafts_dir: Path | None
    draft_id: str
    feedback: str
    original_content: str | None
    apply: bool


@dataclass(slots=True)
class VerifyUrlCommand:
    url: str


@dataclass(slots=True)
class VoiceBuildCommand:
    handle: str | None
    max_posts: int
    output_path: Path


@dataclass(slots=True)
class ControllerResult:
    success: bool
    lines: list[str] = field(default_factory=list)


PipelineFactory = Callable[[Settings], DraftPipeline]


class DraftDeskCliController:
    """Coordinates CLI command execution."""

    def __init__(self, pipeline_factory: PipelineFactory = DraftPipeline.from_settings) -> None:
        self._pipeline_factory = pipeline_factory

    def generate(self, command: GenerateCommand) -> ControllerResult:
        settings, error = _load_settings(command.drafts_dir)
        if settings is None:
            return error
        request = GenerationRequest(scrape_first=command.scrape_first, parallel=command.parallel)
        if command.input_path is not None and not command.scrape_first:
            try:
                raw = json.loads(command.input_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                return _failed(
                    AppError(ErrorKind.INVALID_DATA_FORMAT, f"Cannot read input file: {exc}"),
                )
            try:
                provided = GenerationInput.from_dict(raw if isinstance(raw, dict) else None)
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                return _failed(
                    AppError(ErrorKind.INVALID_DATA_FORMAT, f"Malformed input file: {exc}"),
                )
            request.news, request.posts, request.metrics = (
                provided.news,
                provided.posts,
                provided.metrics,
            )

        result = self._pipeline_factory(settings).generate(request)
        if result.error is not None:
            return _failed(result.error)
        response = result.unwrap()

        lines = _outcome_lines(response.outcomes)
        lines.append(
            f"Generated {len(response.drafts)} drafts "
            f"model={response.model_used} tokens={response.tokens_used}",
        )
        lines.extend(_draft_lines(response.drafts))
        if response.saved_path is not None:
            lines.append(f"Saved: {response.saved_path}")
        else:
            lines.append("Warning: drafts were not saved (see log).")
        return ControllerResult(success=True, lines=lines)

    def collect(self, command: CollectCommand) -> ControllerResult:
        settings, error = _load_settings(command.drafts_dir)
        if settings is None:
            return error
        report = self._pipeline_factory(settings).collect(parallel=command.parallel)
        lines = _outcome_lines(report.outcomes)
        payload = report.input.to_dict()
        for item in report.input.news or []:
            lines.append(f"  news [{item.source}] {item.title} ({item.relevance_score})")
        for post in report.input.posts or []:
            lines.append(f"  post @{post.author_handle}: {_preview(post.content)}")
        if report.input.metrics is not None:
            metrics = ", ".join(
                f"{name}={value:g}" for name, value in report.input.metrics.metrics().items()
            )
            lines.append(f"  metrics {report.input.metrics.subject}: {metrics or '-'}")
        if command.output_path is not None:
            try:
                command.output_path.parent.mkdir(parents=True, exist_ok=True)
                command.output_path.write_text(
                    json.dumps(payload, ensure_ascii=False, indent=2) + "\n",
                    encoding="utf-8",
                )
            except OSError as exc:
                return _failed(
                    AppError(
                        ErrorKind.UNKNOWN,
                        f"Failed to write collected input to {command.output_path}: {exc}",
                    ),
                    lines,
                )
            lines.append(f"Wrote collected input to {command.output_path}")
        return ControllerResult(success=True, lines=lines)

    def list_drafts(self, command: ListDraftsCommand) -> ControllerResult:
        settings, error = _load_settings(command.drafts_dir)
        if settings is None:
            return error
        batches = self._pipeline_factory(settings).list_batches()
        if not batches:
            return ControllerResult(success=True, lines=["No drafts saved yet."])
        lines: list[str] = []
        for batch in batches[: command.limit]:
            lines.append(f"{batch.date}: {len(batch.drafts)} drafts")
            lines.extend(_draft_lines(batch.drafts))
        return ControllerResult(success=True, lines=lines)

    def edit_draft(self, command: EditDraftCommand) -> ControllerResult:
        settings, error = _load_settings(command.drafts_dir)
        if settings is None:
            return error
        result = self._pipeline_factory(settings).edit_draft(command.draft_id, command.content)
        if result.error is not None:
            return _failed(result.error)
        return ControllerResult(success=True, lines=[f"Updated draft {command.draft_id}."])

    def revise(self, command: ReviseCommand) -> ControllerResult:
        settings, error = _load_settings(command.drafts_dir)
        if settings is None:
            return error
        pipeline = self._pipeline_factory(settings)
        original = command.original_content
        if original is None:
            original = _find_draft_content(pipeline, command.draft_id)
            if original is None:
                return _failed(
                    AppError(ErrorKind.NO_DATA_AVAILABLE, f"Draft not found: {command.draft_id}"),
                )

        result = pipeline.revise(
            RevisionRequest(
                draft_id=command.draft_id,
                feedback=command.feedback,
                original_content=original,
            ),
        )
        if result.error is not None:
            return _failed(result.error)
        revision = result.unwrap()
        lines = [revision.content, f"tokens={revision.tokens_used}"]
        if command.apply:
            applied = pipeline.edit_draft(command.draft_id, revision.content)
            if applied.error is not None:
                return _failed(applied.error, lines)
            lines.append(f"Applied revision to draft {command.draft_id}.")
        return ControllerResult(success=True, lines=lines)

    def verify_url(self, command: VerifyUrlCommand) -> ControllerResult:
        result = verify_url(command.url)
        line = f"{result.status.value} {result.url}"
        if result.http_status is not None:
            line += f" http={result.http_status}"
        if result.error:
            line += f" error={result.error}"
        return ControllerResult(success=True, lines=[line])

    def voice_build(self, command: VoiceBuildCommand) -> ControllerResult:
        settings, error = _load_settings(None)
        if settings is None:
            return error
        handle = (command.handle or settings.voice.handle).lstrip("@")
        connector = SocialConnector(settings.sources)
        try:
            analysis = build_voice_profile(connector, handle, max_posts=command.max_posts)
        finally:
            connector.close()
        if analysis.error is not None:
            return _failed(analysis.error)

        result = analysis.unwrap()
        saved = save_voice_profile(result.to_profile(handle), command.output_path)
        if saved.error is not None:
            return _failed(saved.error)
        stats = result.stats
        rules = result.guidelines
        return ControllerResult(
            success=True,
            lines=[
                f"Voice profile for @{handle}: posts={stats.total_posts} "
                f"avg_length={stats.average_length} avg_likes={stats.average_likes} "
                f"avg_reshares={stats.average_reshares}",
                f"  emojis={rules.emoji_frequency.value} length={rules.average_length.value} "
                f"hashtags={'yes' if rules.uses_hashtags else 'no'} "
                f"questions={'yes' if rules.asks_questions else 'no'} "
                f"data_first={'yes' if rules.data_first else 'no'} "
                f"humor={'yes' if rules.includes_humor else 'no'}",
                f"  top_topics={', '.join(stats.top_topics[:10]) or '-'}",
                f"Saved {len(result.samples)} samples to {command.output_path}",
            ],
        )


def _load_settings(drafts_dir: Path | None) -> tuple[Settings | None, ControllerResult]:
    try:
        settings = Settings.from_env(drafts_dir=drafts_dir)
        settings.validate()
    except ValueError as exc:
        return None, _failed(AppError(ErrorKind.INVALID_CONFIG, str(exc)))
    return settings, ControllerResult(success=True)


def _failed(error: AppError, lines: list[str] | None = None) -> ControllerResult:
    return ControllerResult(success=False, lines=[*(lines or []), f"Error: {error}"])


def _outcome_lines(outcomes: list[SourceOutcome]) -> list[str]:
    lines: list[str] = []
    for outcome in outcomes:
        if outcome.success:
            lines.append(f"Source {outcome.name}: {outcome.count} items")
        else:
            lines.append(f"Source {outcome.name}: failed ({outcome.error})")
    return lines


def _draft_lines(drafts: list[Draft]) -> list[str]:
    return [
        f"  {draft.id} [{draft.source.value}] conf={draft.confidence:.2f} "
        f"{_preview(draft.content)}"
        for draft in drafts
    ]


def _preview(text: str) -> str:
    flat = " ".join(text.split())
    if len(flat) <= PREVIEW_CHARS:
        return flat
    return flat[: PREVIEW_CHARS - 3] + "..."


def _find_draft_content(pipeline: DraftPipeline, draft_id: str) -> str | None:
    for batch in pipeline.list_batches():
        for draft in batch.drafts:
            if draft.id == draft_id:
                return draft.content
    return None
