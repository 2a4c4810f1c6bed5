"""News connector over RSS/Atom feeds and Reddit listing JSON."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Any

from defusedxml import DefusedXmlException, ElementTree

from draftdesk.config import FeedSource, SourceSettings
from draftdesk.errors import Result, success
from draftdesk.http.fetcher import HttpFetcher
from draftdesk.models import EPOCH, NewsItem, coerce_int, parse_timestamp
from draftdesk.sources.cleaning import article_key, extract_domain, html_to_text, truncate
from draftdesk.sources.relevance import RelevancePolicy, filter_and_score

logger = logging.getLogger(__name__)

REDDIT_MIN_SCORE = 5
REDDIT_BASE_URL = "https://www.reddit.com"


class FeedFormatError(ValueError):
    """Feed body is not RSS, Atom or a Reddit listing."""


class NewsConnector:
    """Polls every configured feed and returns fresh, on-topic articles."""

    def __init__(
        self,
        settings: SourceSettings,
        *,
        fetcher: HttpFetcher | None = None,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self._fetcher = fetcher or HttpFetcher(timeout_seconds=settings.request_timeout_seconds)
        self._sleep = sleep
        self._now = now or (lambda: datetime.now(tz=UTC))
        self._policy = RelevancePolicy(
            primary_keywords=settings.primary_keywords,
            secondary_keywords=settings.secondary_keywords,
            max_age=timedelta(days=settings.freshness_days),
            require_match=True,
        )

    def fetch(self) -> Result[list[NewsItem]]:
        """Fetch all feeds; failing feeds are skipped, zero items is still a success."""

        collected: list[NewsItem] = []
        for index, feed in enumerate(self.settings.feeds):
            if index > 0 and self.settings.news_delay_seconds > 0:
                self._sleep(self.settings.news_delay_seconds)
            collected.extend(self._fetch_feed(feed))

        scored = filter_and_score(collected, self._policy, now=self._now())
        unique: dict[str, NewsItem] = {}
        for entry in scored:
            entry.item.relevance_score = entry.score
            key = article_key(entry.item.url)
            if key not in unique:
                unique[key] = entry.item

        items = sorted(unique.values(), key=lambda item: item.published_at, reverse=True)
        items = items[: self.settings.news_limit]
        logger.info(
            "News: %d relevant items from %d feeds (%d entries parsed).",
            len(items),
            len(self.settings.feeds),
            len(collected),
        )
        return success(items)

    def _fetch_feed(self, feed: FeedSource) -> list[NewsItem]:
        response = self._fetcher.fetch(feed.url)
        if not response.is_success:
            logger.warning("Skipping feed %s (%s): %s", feed.name, feed.url, response.error)
            return []
        try:
            if feed.kind == "reddit":
                payload = response.json()
                if payload is None:
                    raise FeedFormatError(f"Invalid JSON from {feed.url}")
                return parse_reddit_listing(payload, feed, self.settings.summary_max_chars)
            return parse_feed(response.content, feed, self.settings.summary_max_chars)
        except FeedFormatError as error:
            logger.warning("Skipping feed %s: %s", feed.name, error)
            return []

    def close(self) -> None:
        self._fetcher.close()


def parse_feed(raw_xml: str, feed: FeedSource, summary_max_chars: int = 500) -> list[NewsItem]:
    """Parse RSS 2.0 or Atom XML into news items."""

    try:
        root = ElementTree.fromstring(raw_xml)
    except (ElementTree.ParseError, DefusedXmlException) as error:
        raise FeedFormatError(f"Invalid RSS/Atom XML from {feed.url}") from error

    root_name = _local_name(root.tag)
    if root_name == "rss":
        return _parse_rss(root, feed, summary_max_chars)
    if root_name == "feed":
        return _parse_atom(root, feed, summary_max_chars)

    # Some feeds wrap items in RDF or other containers.
    if root.findall(".//item"):
        channel = root.find(".//channel")
        return _parse_rss(channel if channel is not None else root, feed, summary_max_chars)
    raise FeedFormatError(f"Unsupported feed format from {feed.url}")


def parse_reddit_listing(
    payload: Any,
    feed: FeedSource,
    summary_max_chars: int = 500,
) -> list[NewsItem]:
    """Parse a Reddit listing; low-score posts are skipped."""

    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        raise FeedFormatError(f"Unexpected Reddit payload from {feed.url}")
    children = payload["data"].get("children")
    if not isinstance(children, list):
        raise FeedFormatError(f"Unexpected Reddit payload from {feed.url}")

    results: list[NewsItem] = []
    for child in children:
        post = child.get("data") if isinstance(child, dict) else None
        if not isinstance(post, dict):
            continue
        if coerce_int(post.get("score")) < REDDIT_MIN_SCORE:
            continue
        title = str(post.get("title") or "").strip()
        if not title:
            continue
        permalink = str(post.get("permalink") or "")
        url = f"{REDDIT_BASE_URL}{permalink}" if permalink else str(post.get("url") or feed.url)
        results.append(
            NewsItem(
                title=title,
                summary=truncate(html_to_text(str(post.get("selftext") or "")), summary_max_chars),
                url=url,
                source=feed.name,
                published_at=parse_timestamp(post.get("created_utc")) or EPOCH,
            ),
        )
    return results


def _parse_rss(
    root: ElementTree.Element,
    feed: FeedSource,
    summary_max_chars: int,
) -> list[NewsItem]:
    channel = root.find("channel")
    container = channel if channel is not None else root

    results: list[NewsItem] = []
    for item in container:
        if _local_name(item.tag) != "item":
            continue
        title = _child_text(item, "title")
        if not title:
            continue
        link = _child_text(item, "link") or feed.url
        description = _child_text(item, "description") or _child_text(item, "encoded") or ""
        results.append(
            NewsItem(
                title=html_to_text(title),
                summary=truncate(html_to_text(description), summary_max_chars),
                url=link,
                source=feed.name or extract_domain(link),
                published_at=_parse_datetime(
                    _child_text(item, "pubDate") or _child_text(item, "date"),
                ),
            ),
        )
    return results


def _parse_atom(
    root: ElementTree.Element,
    feed: FeedSource,
    summary_max_chars: int,
) -> list[NewsItem]:
    results: list[NewsItem] = []
    for entry in root.iter():
        if _local_name(entry.tag) != "entry":
            continue
        title = _child_text(entry, "title")
        if not title:
            continue
        link = _atom_link(entry) or feed.url
        summary = _child_text(entry, "summary") or _child_text(entry, "content") or ""
        results.append(
            NewsItem(
                title=html_to_text(title),
                summary=truncate(html_to_text(summary), summary_max_chars),
                url=link,
                source=feed.name or extract_domain(link),
                published_at=_parse_datetime(
                    _child_text(entry, "published") or _child_text(entry, "updated"),
                ),
            ),
        )
    return results


def _atom_link(entry: ElementTree.Element) -> str | None:
    fallback: str | None = None
    for child in entry:
        if _local_name(child.tag) != "link":
            continue
        href = child.attrib.get("href", "").strip()
        if not href:
            continue
        rel = child.attrib.get("rel", "").strip().lower()
        if not rel or rel == "alternate":
            return href
        fallback = fallback or href
    return fallback


def _child_text(element: ElementTree.Element, name: str) -> str | None:
    target = name.lower()
    for child in element:
        if _local_name(child.tag) != target:
            continue
        full_text = "".join(child.itertext()).strip()
        if full_text:
            return full_text
    return None


def _local_name(tag: str) -> str:
    if "}" in tag:
        return tag.rsplit("}", 1)[1].lower()
    return tag.lower()


def _parse_datetime(raw_value: str | None) -> datetime:
    """RFC 822 or ISO-8601; unknown dates map to the epoch so they count as stale."""

    if not raw_value:
        return EPOCH
    try:
        parsed = parsedate_to_datetime(raw_value)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (TypeError, ValueError):
        pass
    return parse_timestamp(raw_value.replace("Z", "+00:00")) or EPOCH
