"""Freshness gate and keyword relevance scoring shared by all connectors."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Generic, TypeVar

from draftdesk.models import MetricSnapshot, NewsItem, SocialPost

ItemT = TypeVar("ItemT", NewsItem, SocialPost, MetricSnapshot)

DEFAULT_MAX_AGE = timedelta(days=7)


@dataclass(slots=True, frozen=True)
class RelevancePolicy:
    """Knobs for `filter_and_score`.

    `require_match=False` keeps items without any keyword hit; they score 0.
    """

    primary_keywords: tuple[str, ...] = ()
    secondary_keywords: tuple[str, ...] = ()
    primary_weight: float = 0.3
    secondary_weight: float = 0.1
    max_age: timedelta = DEFAULT_MAX_AGE
    require_match: bool = True


@dataclass(slots=True)
class ScoredItem(Generic[ItemT]):
    item: ItemT
    score: float


def is_fresh(timestamp: datetime, *, now: datetime, max_age: timedelta = DEFAULT_MAX_AGE) -> bool:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return now - timestamp <= max_age


def matches_keywords(text: str, policy: RelevancePolicy) -> bool:
    lowered = text.lower()
    return any(
        keyword.lower() in lowered
        for keyword in (*policy.primary_keywords, *policy.secondary_keywords)
    )


def relevance_score(text: str, policy: RelevancePolicy) -> float:
    """Weighted keyword presence, capped at 1.0."""

    lowered = text.lower()
    score = 0.0
    for keyword in policy.primary_keywords:
        if keyword.lower() in lowered:
            score += policy.primary_weight
    for keyword in policy.secondary_keywords:
        if keyword.lower() in lowered:
            score += policy.secondary_weight
    return round(min(score, 1.0), 4)


def filter_and_score(
    items: Iterable[ItemT],
    policy: RelevancePolicy,
    *,
    now: datetime | None = None,
) -> list[ScoredItem[ItemT]]:
    """Drop stale or off-topic items and attach a relevance score to the rest.

    Input order is preserved.
    """

    reference = now or datetime.now(tz=UTC)
    results: list[ScoredItem[ItemT]] = []
    for item in items:
        if not is_fresh(item.timestamp, now=reference, max_age=policy.max_age):
            continue
        text = item.searchable_text
        if policy.require_match and not matches_keywords(text, policy):
            continue
        results.append(ScoredItem(item=item, score=relevance_score(text, policy)))
    return results
