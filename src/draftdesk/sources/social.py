"""Social connector for a fixed roster of accounts (X/Twitter API v2)."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from draftdesk.config import SourceSettings
from draftdesk.errors import ErrorKind, Result, failure, success
from draftdesk.http.fetcher import FetchResult, HttpFetcher
from draftdesk.models import EPOCH, Engagement, SocialPost, coerce_int, parse_timestamp
from draftdesk.sources.relevance import RelevancePolicy, filter_and_score

logger = logging.getLogger(__name__)

HTTP_TOO_MANY_REQUESTS = 429
TWEET_FIELDS = "created_at,public_metrics"
MAX_PAGE_SIZE = 100
MIN_PAGE_SIZE = 5


@dataclass(slots=True)
class _AccountUser:
    user_id: str
    name: str
    handle: str


class _AccountFetchError(Exception):
    def __init__(self, message: str, status_code: int = 0) -> None:
        super().__init__(message)
        self.status_code = status_code


class SocialConnector:
    """Fetches the latest posts of every monitored account."""

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
        self._base = settings.social_api_base.rstrip("/")

    @property
    def has_credentials(self) -> bool:
        token = self.settings.social_bearer_token
        return bool(token and token.strip())

    def fetch(self) -> Result[list[SocialPost]]:
        """Latest posts across the roster, newest first."""

        if not self.has_credentials:
            return failure(
                ErrorKind.MISSING_CREDENTIALS,
                "Social API bearer token is not configured (TWITTER_BEARER_TOKEN).",
            )

        posts: list[SocialPost] = []
        failed_statuses: list[int] = []
        for index, handle in enumerate(self.settings.accounts):
            if index > 0 and self.settings.request_delay_seconds > 0:
                self._sleep(self.settings.request_delay_seconds)
            try:
                user = self._resolve_user(handle)
                posts.extend(self._fetch_posts(user, self.settings.posts_per_account))
            except _AccountFetchError as error:
                logger.warning("Skipping social account @%s: %s", handle, error)
                failed_statuses.append(error.status_code)

        policy = RelevancePolicy(
            primary_keywords=self.settings.primary_keywords,
            secondary_keywords=self.settings.secondary_keywords,
            max_age=timedelta(days=self.settings.freshness_days),
            require_match=False,
        )
        unique: dict[str, SocialPost] = {}
        for entry in filter_and_score(posts, policy, now=self._now()):
            unique.setdefault(entry.item.post_id, entry.item)
        result = sorted(unique.values(), key=lambda post: post.posted_at, reverse=True)

        if not result:
            if failed_statuses and all(
                status == HTTP_TOO_MANY_REQUESTS for status in failed_statuses
            ):
                return failure(
                    ErrorKind.SCRAPER_RATE_LIMITED,
                    "Social API rate limit reached for every account.",
                    accounts=len(failed_statuses),
                )
            return failure(
                ErrorKind.NO_DATA_AVAILABLE,
                "No recent posts found for the monitored accounts.",
                failed_accounts=len(failed_statuses),
            )
        logger.info(
            "Social: %d posts from %d accounts.",
            len(result),
            len(self.settings.accounts),
        )
        return success(result)

    def fetch_timeline(self, handle: str, max_posts: int) -> Result[list[SocialPost]]:
        """Page through one account's own posts, excluding reposts and replies."""

        if not self.has_credentials:
            return failure(
                ErrorKind.MISSING_CREDENTIALS,
                "Social API bearer token is not configured (TWITTER_BEARER_TOKEN).",
            )
        try:
            user = self._resolve_user(handle.lstrip("@"))
            posts: list[SocialPost] = []
            pagination_token: str | None = None
            while len(posts) < max_posts:
                page_size = max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, max_posts - len(posts)))
                params = {
                    "max_results": str(page_size),
                    "tweet.fields": TWEET_FIELDS,
                    "exclude": "retweets,replies",
                }
                if pagination_token:
                    params["pagination_token"] = pagination_token
                payload = self._get_json(f"{self._base}/users/{user.user_id}/tweets", params)
                posts.extend(_parse_posts(payload, user))
                meta = payload.get("meta") if isinstance(payload, dict) else None
                pagination_token = meta.get("next_token") if isinstance(meta, dict) else None
                if not pagination_token:
                    break
                if self.settings.request_delay_seconds > 0:
                    self._sleep(self.settings.request_delay_seconds)
        except _AccountFetchError as error:
            kind = (
                ErrorKind.SCRAPER_RATE_LIMITED
                if error.status_code == HTTP_TOO_MANY_REQUESTS
                else ErrorKind.SCRAPER_FAILED
            )
            return failure(kind, f"Timeline fetch failed for @{handle}: {error}")

        if not posts:
            return failure(ErrorKind.NO_DATA_AVAILABLE, f"No posts found for @{handle}.")
        return success(posts[:max_posts])

    def _resolve_user(self, handle: str) -> _AccountUser:
        payload = self._get_json(f"{self._base}/users/by/username/{handle}")
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict) or not data.get("id"):
            raise _AccountFetchError(f"user @{handle} not found")
        return _AccountUser(
            user_id=str(data["id"]),
            name=str(data.get("name") or handle),
            handle=str(data.get("username") or handle),
        )

    def _fetch_posts(self, user: _AccountUser, max_posts: int) -> list[SocialPost]:
        payload = self._get_json(
            f"{self._base}/users/{user.user_id}/tweets",
            {
                "max_results": str(max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, max_posts))),
                "tweet.fields": TWEET_FIELDS,
            },
        )
        return _parse_posts(payload, user)[:max_posts]

    def _get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        response = self._fetcher.fetch(url, params=params, headers=self._auth_headers())
        _raise_for_failure(response)
        payload = response.json()
        if payload is None:
            raise _AccountFetchError(f"invalid JSON from {url}", response.status_code)
        return payload

    def _auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.settings.social_bearer_token}"}

    def close(self) -> None:
        self._fetcher.close()


def _raise_for_failure(response: FetchResult) -> None:
    if response.is_success:
        return
    raise _AccountFetchError(response.error or "request failed", response.status_code)


def _parse_posts(payload: Any, user: _AccountUser) -> list[SocialPost]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        return []
    posts: list[SocialPost] = []
    for raw in data:
        if not isinstance(raw, dict) or not raw.get("id"):
            continue
        metrics = raw.get("public_metrics")
        engagement = None
        if isinstance(metrics, dict):
            engagement = Engagement(
                likes=coerce_int(metrics.get("like_count")),
                reshares=coerce_int(metrics.get("retweet_count")),
                replies=coerce_int(metrics.get("reply_count")),
            )
        posts.append(
            SocialPost(
                post_id=str(raw["id"]),
                author=user.name,
                author_handle=user.handle,
                content=str(raw.get("text") or ""),
                posted_at=parse_timestamp(raw.get("created_at")) or EPOCH,
                engagement=engagement,
            ),
        )
    return posts
