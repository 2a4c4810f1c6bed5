from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

import allure
from conftest import NOW

from draftdesk.errors import ErrorKind
from draftdesk.models import Draft, GenerationInput, NewsItem, SourceKind
from draftdesk.storage.store import DraftStore

pytestmark = [
    allure.epic("Persistence"),
    allure.feature("Draft Store"),
]


def _draft(draft_id: str, content: str = "content") -> Draft:
    return Draft(
        id=draft_id,
        content=content,
        source=SourceKind.NEWS,
        context="ctx",
        confidence=0.8,
        created_at=NOW,
    )


def _input() -> GenerationInput:
    return GenerationInput(
        news=[
            NewsItem(
                title="Avalanche news",
                summary="s",
                url="https://example.com/a",
                source="Example",
                published_at=NOW - timedelta(hours=1),
            ),
        ],
    )


def test_save_writes_one_file_per_date(tmp_path: Path) -> None:
    store = DraftStore(tmp_path / "drafts")

    path = store.save([_draft("d1")], _input(), now=NOW).unwrap()

    assert path == tmp_path / "drafts" / "2026-10-17.json"
    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["date"] == "2026-10-17"
    assert document["generatedAt"] == "2026-10-17T12:00:00.000Z"
    assert document["drafts"][0]["id"] == "d1"
    assert document["input"]["news"][0]["url"] == "https://example.com/a"
    assert [p.name for p in path.parent.iterdir()] == ["2026-10-17.json"]


def test_second_save_same_day_replaces_batch(tmp_path: Path) -> None:
    store = DraftStore(tmp_path)
    store.save([_draft("first")], None, now=NOW)

    store.save([_draft("second")], None, now=NOW + timedelta(hours=1))

    batches = store.load_all()
    assert len(batches) == 1
    assert [draft.id for draft in batches[0].drafts] == ["second"]
    assert batches[0].input is None


def test_load_all_orders_newest_first_and_skips_bad_files(tmp_path: Path) -> None:
    store = DraftStore(tmp_path)
    store.save([_draft("old")], None, now=NOW - timedelta(days=2))
    store.save([_draft("new")], _input(), now=NOW)
    (tmp_path / "2026-10-16.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "notes.json").write_text("{}", encoding="utf-8")

    batches = store.load_all()

    assert [batch.date for batch in batches] == ["2026-10-17", "2026-10-15"]
    assert batches[0].input is not None
    assert batches[0].input.news is not None
    assert batches[0].input.news[0].title == "Avalanche news"


def test_load_all_on_missing_directory_is_empty(tmp_path: Path) -> None:
    assert DraftStore(tmp_path / "missing").load_all() == []


def test_load_single_date(tmp_path: Path) -> None:
    store = DraftStore(tmp_path)
    store.save([_draft("d1")], None, now=NOW)

    assert store.load("2026-10-17").unwrap().drafts[0].id == "d1"
    missing = store.load("2026-01-01")
    assert missing.error is not None
    assert missing.error.kind is ErrorKind.NO_DATA_AVAILABLE


def test_update_draft_rewrites_only_content(tmp_path: Path) -> None:
    store = DraftStore(tmp_path)
    store.save([_draft("d1"), _draft("d2")], _input(), now=NOW)

    updated = store.update_draft("d2", "edited").unwrap()

    assert updated.content == "edited"
    drafts = store.load_all()[0].drafts
    assert [draft.content for draft in drafts] == ["content", "edited"]
    assert drafts[1].confidence == 0.8
    assert drafts[1].context == "ctx"


def test_update_unknown_draft_is_no_data(tmp_path: Path) -> None:
    store = DraftStore(tmp_path)
    store.save([_draft("d1")], None, now=NOW)

    result = store.update_draft("nope", "edited")

    assert result.error is not None
    assert result.error.kind is ErrorKind.NO_DATA_AVAILABLE


def test_save_into_unwritable_location_fails(tmp_path: Path) -> None:
    blocker = tmp_path / "blocked"
    blocker.write_text("", encoding="utf-8")

    result = DraftStore(blocker).save([_draft("d1")], None, now=NOW)

    assert result.error is not None
    assert result.error.kind is ErrorKind.UNKNOWN
