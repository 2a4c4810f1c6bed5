from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import allure
import pytest
from conftest import NOW, FakeBackend, api_status_error, drafts_reply, text_reply

from draftdesk.config import Settings, SourceSettings, StorageSettings
from draftdesk.errors import ErrorKind, success
from draftdesk.generation.client import GenerationClient
from draftdesk.models import (
    Draft,
    DraftMetadata,
    GenerationInput,
    MetricSnapshot,
    NewsItem,
    SocialPost,
    SourceKind,
)
from draftdesk.pipeline import (
    DraftPipeline,
    GenerationRequest,
    RevisionRequest,
    attach_source_data,
)
from draftdesk.sources.collector import SourceCollector
from draftdesk.storage.store import DraftStore

pytestmark = [
    allure.epic("Draft Generation"),
    allure.feature("Pipeline"),
]

NEWS = NewsItem(
    title="Avalanche ships upgrade",
    summary="Faster blocks.",
    url="https://example.com/upgrade",
    source="CoinDesk",
    published_at=NOW - timedelta(hours=2),
)
POST = SocialPost(
    post_id="1",
    author="Ava",
    author_handle="avax",
    content="Subnets are live",
    posted_at=NOW - timedelta(hours=1),
)
METRICS = MetricSnapshot(subject="Avalanche", captured_at=NOW, tvl=1_000_000_000)

GENERATED = [
    {
        "id": "d-news",
        "content": "Avalanche upgrade is out",
        "source": "news",
        "metadata": {"newsUrl": "https://example.com/upgrade"},
    },
    {"id": "d-chain", "content": "TVL at $1B", "source": "onchain"},
    {"id": "d-free", "content": "gm builders", "source": "mixed"},
]


def _settings(tmp_path: Path) -> Settings:
    return Settings(storage=StorageSettings(drafts_dir=tmp_path / "drafts"))


def _pipeline(tmp_path: Path, backend: FakeBackend, **kwargs) -> DraftPipeline:
    client = GenerationClient(backend, model="claude-test", now=lambda: NOW)
    return DraftPipeline(_settings(tmp_path), client=client, **kwargs)


def test_generate_without_backend_is_unavailable(tmp_path: Path) -> None:
    pipeline = DraftPipeline.from_settings(_settings(tmp_path))

    result = pipeline.generate(GenerationRequest(news=[NEWS]))

    assert pipeline.client is None
    assert result.error is not None
    assert result.error.kind is ErrorKind.AI_UNAVAILABLE
    assert not (tmp_path / "drafts").exists()


def test_generate_attaches_source_data_and_saves(tmp_path: Path) -> None:
    backend = FakeBackend(drafts_reply(GENERATED))
    pipeline = _pipeline(tmp_path, backend)

    response = pipeline.generate(
        GenerationRequest(news=[NEWS], posts=[POST], metrics=METRICS),
    ).unwrap()

    drafts = {draft.id: draft for draft in response.drafts}
    assert drafts["d-news"].source_data == GenerationInput(news=[NEWS])
    assert drafts["d-chain"].source_data == GenerationInput(metrics=METRICS)
    assert drafts["d-free"].source_data is None
    assert response.tokens_used == 150
    assert response.saved_path == tmp_path / "drafts" / "2026-10-17.json"

    batch = pipeline.list_batches()[0]
    assert batch.input == GenerationInput(news=[NEWS], posts=[POST], metrics=METRICS)
    assert batch.drafts[0].source_data is not None

    user_prompt = backend.messages.calls[0]["messages"][0]["content"]
    assert "Avalanche ships upgrade" in user_prompt
    assert "Write exactly 5 drafts." in backend.messages.calls[0]["system"]


def test_generate_with_empty_input_uses_fallback_prompt(tmp_path: Path) -> None:
    backend = FakeBackend(drafts_reply([{"content": "general post"}]))

    response = _pipeline(tmp_path, backend).generate(GenerationRequest()).unwrap()

    assert response.input.is_empty
    user_prompt = backend.messages.calls[0]["messages"][0]["content"]
    assert "No specific data provided" in user_prompt


def test_generate_returns_drafts_even_when_save_fails(tmp_path: Path) -> None:
    blocker = tmp_path / "blocked"
    blocker.write_text("", encoding="utf-8")
    pipeline = _pipeline(
        tmp_path,
        FakeBackend(drafts_reply([{"content": "kept"}])),
        store=DraftStore(blocker),
    )

    response = pipeline.generate(GenerationRequest(news=[NEWS])).unwrap()

    assert [draft.content for draft in response.drafts] == ["kept"]
    assert response.saved_path is None


def test_backend_failure_saves_nothing(tmp_path: Path) -> None:
    pipeline = _pipeline(tmp_path, FakeBackend(api_status_error(429)))

    result = pipeline.generate(GenerationRequest(news=[NEWS]))

    assert result.error is not None
    assert result.error.kind is ErrorKind.AI_RATE_LIMITED
    assert pipeline.list_batches() == []


def test_scrape_first_collects_fresh_input(tmp_path: Path) -> None:
    class _News:
        def __init__(self, settings: SourceSettings) -> None:
            pass

        def fetch(self):
            return success([NEWS])

        def close(self) -> None:
            pass

    collector = SourceCollector(
        SourceSettings(social_enabled=False, metrics_enabled=False),
        news_factory=_News,
    )
    backend = FakeBackend(drafts_reply([{"content": "fresh"}]))
    pipeline = _pipeline(tmp_path, backend, collector=collector)

    response = pipeline.generate(
        GenerationRequest(posts=[POST], scrape_first=True),
    ).unwrap()

    assert response.input == GenerationInput(news=[NEWS])
    assert [outcome.name for outcome in response.outcomes] == ["news"]


def test_missing_voice_profile_file_is_invalid_config(tmp_path: Path) -> None:
    pipeline = _pipeline(tmp_path, FakeBackend())
    pipeline.settings.voice.profile_path = tmp_path / "missing.json"

    result = pipeline.generate(GenerationRequest())

    assert result.error is not None
    assert result.error.kind is ErrorKind.INVALID_CONFIG


def test_revise_does_not_touch_saved_drafts(tmp_path: Path) -> None:
    backend = FakeBackend(
        drafts_reply([{"id": "d1", "content": "original"}]),
        text_reply("revised"),
    )
    pipeline = _pipeline(tmp_path, backend)
    pipeline.generate(GenerationRequest(news=[NEWS]))

    revised = pipeline.revise(
        RevisionRequest(draft_id="d1", feedback="shorter", original_content="original"),
    ).unwrap()

    assert revised.content == "revised"
    assert backend.messages.calls[1]["max_tokens"] == 500
    assert pipeline.list_batches()[0].drafts[0].content == "original"


def test_edit_draft_persists_new_content(tmp_path: Path) -> None:
    pipeline = _pipeline(tmp_path, FakeBackend(drafts_reply([{"id": "d1", "content": "old"}])))
    pipeline.generate(GenerationRequest(news=[NEWS]))

    assert pipeline.edit_draft("d1", "new").unwrap().content == "new"
    assert pipeline.list_batches()[0].drafts[0].content == "new"

    blank = pipeline.edit_draft("d1", "   ")
    assert blank.error is not None
    assert blank.error.kind is ErrorKind.INVALID_DATA_FORMAT


@pytest.mark.parametrize(
    ("metadata", "expected"),
    [
        (DraftMetadata(news_title="avalanche ships upgrade"), GenerationInput(news=[NEWS])),
        (DraftMetadata(social_handle="@AVAX"), GenerationInput(posts=[POST])),
        (DraftMetadata(metric="tvl"), GenerationInput(metrics=METRICS)),
        (DraftMetadata(news_url="https://example.com/other"), None),
    ],
)
def test_attach_source_data_matches_metadata(metadata, expected) -> None:
    draft = Draft(
        id="d",
        content="c",
        source=SourceKind.MIXED,
        context="",
        confidence=0.5,
        created_at=NOW,
        metadata=metadata,
    )

    assert attach_source_data(draft, GenerationInput([NEWS], [POST], METRICS)) == expected
