from __future__ import annotations

from datetime import timedelta

import allure
from conftest import NOW

from draftdesk.models import MetricSnapshot, NewsItem, SocialPost
from draftdesk.sources.relevance import (
    RelevancePolicy,
    filter_and_score,
    is_fresh,
    relevance_score,
)

pytestmark = [
    allure.epic("Source Collection"),
    allure.feature("Relevance Scoring"),
]

POLICY = RelevancePolicy(
    primary_keywords=("avalanche", "avax"),
    secondary_keywords=("subnet", "ava labs"),
)


def _news(title: str, *, age: timedelta, summary: str = "") -> NewsItem:
    return NewsItem(
        title=title,
        summary=summary,
        url=f"https://example.com/{abs(hash(title))}",
        source="Example",
        published_at=NOW - age,
    )


def test_stale_item_is_dropped_even_when_it_matches() -> None:
    items = [
        _news("Avalanche launches subnet", age=timedelta(days=10)),
        _news("Avalanche ships upgrade", age=timedelta(days=1)),
    ]

    scored = filter_and_score(items, POLICY, now=NOW)

    assert [entry.item.title for entry in scored] == ["Avalanche ships upgrade"]
    assert scored[0].score == 0.3


def test_keyword_gate_is_case_insensitive_and_checks_summary() -> None:
    items = [
        _news("Market wrap", age=timedelta(hours=3), summary="AVAX rallied overnight"),
        _news("Bitcoin dips", age=timedelta(hours=3)),
    ]

    scored = filter_and_score(items, POLICY, now=NOW)

    assert [entry.item.title for entry in scored] == ["Market wrap"]


def test_score_adds_weights_per_keyword() -> None:
    text = "Avalanche and AVAX: new subnet from Ava Labs"

    assert relevance_score(text, POLICY) == 0.8


def test_score_is_capped_at_one() -> None:
    policy = RelevancePolicy(
        primary_keywords=("alpha", "beta", "gamma"),
        secondary_keywords=("delta", "epsilon", "zeta"),
    )

    assert relevance_score("alpha beta gamma delta epsilon zeta", policy) == 1.0


def test_unmatched_items_are_kept_when_match_not_required() -> None:
    policy = RelevancePolicy(primary_keywords=("avalanche",), require_match=False)
    post = SocialPost(
        post_id="1",
        author="Alice",
        author_handle="alice",
        content="gm",
        posted_at=NOW - timedelta(hours=1),
    )

    scored = filter_and_score([post], policy, now=NOW)

    assert len(scored) == 1
    assert scored[0].score == 0.0


def test_metric_snapshots_use_capture_time_for_freshness() -> None:
    fresh = MetricSnapshot(subject="Avalanche", captured_at=NOW)
    stale = MetricSnapshot(subject="Avalanche", captured_at=NOW - timedelta(days=30))

    scored = filter_and_score([fresh, stale], POLICY, now=NOW)

    assert [entry.item for entry in scored] == [fresh]


def test_is_fresh_boundary_is_inclusive() -> None:
    assert is_fresh(NOW - timedelta(days=7), now=NOW)
    assert not is_fresh(NOW - timedelta(days=7, seconds=1), now=NOW)
