from __future__ import annotations

from datetime import timedelta

import allure
import httpx
from conftest import NOW, make_fetcher

from draftdesk.config import SourceSettings
from draftdesk.errors import ErrorKind
from draftdesk.sources.social import SocialConnector

pytestmark = [
    allure.epic("Source Collection"),
    allure.feature("Social Accounts"),
]

USERS = {
    "alice": {"id": "1", "name": "Alice", "username": "alice"},
    "bob": {"id": "2", "name": "Bob", "username": "bob"},
}


def _tweet(tweet_id: str, text: str, age: timedelta, likes: int = 0) -> dict:
    return {
        "id": tweet_id,
        "text": text,
        "created_at": (NOW - age).isoformat().replace("+00:00", "Z"),
        "public_metrics": {"like_count": likes, "retweet_count": 1, "reply_count": 0},
    }


TIMELINES = {
    "1": [
        _tweet("11", "Avalanche mainnet upgrade is live", timedelta(hours=1), likes=10),
        _tweet("12", "Old announcement", timedelta(days=12)),
    ],
    "2": [
        _tweet("21", "Subnets everywhere", timedelta(hours=3)),
        _tweet("11", "Avalanche mainnet upgrade is live", timedelta(hours=1)),
    ],
}


def _connector(handler, *, token: str | None = "secret-token", sleeps=None, **overrides):
    settings = SourceSettings(
        accounts=overrides.pop("accounts", ("alice", "bob")),
        social_bearer_token=token,
        **overrides,
    )
    return SocialConnector(
        settings,
        fetcher=make_fetcher(handler),
        sleep=(sleeps.append if sleeps is not None else lambda _: None),
        now=lambda: NOW,
    )


def _api(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.startswith("/2/users/by/username/"):
        handle = path.rsplit("/", 1)[1]
        if handle not in USERS:
            return httpx.Response(404, json={"errors": []})
        return httpx.Response(200, json={"data": USERS[handle]})
    user_id = path.split("/")[3]
    return httpx.Response(200, json={"data": TIMELINES[user_id], "meta": {}})


def test_missing_credentials_fail_without_network() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    result = _connector(handler, token=None).fetch()

    assert result.error is not None
    assert result.error.kind is ErrorKind.MISSING_CREDENTIALS
    assert calls == []


def test_fetch_dedupes_filters_stale_and_sorts_newest_first() -> None:
    seen_auth: set[str] = set()
    sleeps: list[float] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_auth.add(request.headers["Authorization"])
        return _api(request)

    result = _connector(handler, sleeps=sleeps, request_delay_seconds=1.0).fetch()

    posts = result.unwrap()
    assert [post.post_id for post in posts] == ["11", "21"]
    assert posts[0].author_handle == "alice"
    assert posts[0].engagement is not None
    assert posts[0].engagement.likes == 10
    assert seen_auth == {"Bearer secret-token"}
    assert sleeps == [1.0]


def test_failed_account_is_skipped() -> None:
    result = _connector(_api, accounts=("ghost", "bob")).fetch()

    assert [post.post_id for post in result.unwrap()] == ["11", "21"]


def test_every_account_rate_limited_reports_rate_limit() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429)

    result = _connector(handler).fetch()

    assert result.error is not None
    assert result.error.kind is ErrorKind.SCRAPER_RATE_LIMITED


def test_empty_result_is_no_data() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if "/users/by/username/" in request.url.path:
            return _api(request)
        return httpx.Response(200, json={"meta": {"result_count": 0}})

    result = _connector(handler).fetch()

    assert result.error is not None
    assert result.error.kind is ErrorKind.NO_DATA_AVAILABLE


def test_fetch_timeline_follows_pagination_and_excludes_replies() -> None:
    seen_params: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if "/users/by/username/" in request.url.path:
            return _api(request)
        params = dict(request.url.params)
        seen_params.append(params)
        if "pagination_token" not in params:
            return httpx.Response(
                200,
                json={
                    "data": [_tweet("1", "first page", timedelta(days=40))],
                    "meta": {"next_token": "t2"},
                },
            )
        return httpx.Response(
            200,
            json={"data": [_tweet("2", "second page", timedelta(days=41))], "meta": {}},
        )

    result = _connector(handler).fetch_timeline("@alice", 50)

    assert [post.post_id for post in result.unwrap()] == ["1", "2"]
    assert seen_params[0]["exclude"] == "retweets,replies"
    assert seen_params[1]["pagination_token"] == "t2"


def test_non_numeric_engagement_counts_fall_back_to_zero() -> None:
    odd = _tweet("31", "Avalanche builders shipping", timedelta(hours=2))
    odd["public_metrics"] = {"like_count": "many", "retweet_count": None, "reply_count": [1]}

    def handler(request: httpx.Request) -> httpx.Response:
        if "/users/by/username/" in request.url.path:
            return _api(request)
        return httpx.Response(200, json={"data": [odd], "meta": {}})

    result = _connector(handler, accounts=("alice",)).fetch()

    posts = result.unwrap()
    assert [post.post_id for post in posts] == ["31"]
    assert posts[0].engagement is not None
    assert (posts[0].engagement.likes, posts[0].engagement.reshares) == (0, 0)
