from __future__ import annotations

from pathlib import Path

import allure
import pytest

from draftdesk.config import DEFAULT_FEEDS, FeedSource, Settings

pytestmark = [
    allure.epic("Configuration"),
    allure.feature("Settings"),
]


def test_defaults_without_environment() -> None:
    settings = Settings.from_env()

    assert settings.generation.api_key is None
    assert settings.generation.model == "claude-3-haiku-20240307"
    assert settings.generation.draft_count == 5
    assert settings.sources.social_bearer_token is None
    assert settings.sources.feeds == DEFAULT_FEEDS
    assert settings.sources.freshness_days == 7
    assert settings.storage.drafts_dir == Path("data/drafts")
    assert settings.voice.profile_path is None
    settings.validate()


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-real")
    monkeypatch.setenv("DRAFTDESK_DRAFTS_PER_DAY", "3")
    monkeypatch.setenv("DRAFTDESK_VOICE_HANDLE", "@builder")
    monkeypatch.setenv("DRAFTDESK_SOCIAL_ACCOUNTS", "@one, two ,")
    monkeypatch.setenv("DRAFTDESK_ENABLE_SOCIAL", "off")
    monkeypatch.setenv("DRAFTDESK_VOICE_PROFILE_PATH", "profiles/me.json")

    settings = Settings.from_env(drafts_dir=Path("/tmp/drafts"))

    assert settings.generation.api_key == "sk-real"
    assert settings.generation.draft_count == 3
    assert settings.voice.handle == "builder"
    assert settings.voice.profile_path == Path("profiles/me.json")
    assert settings.sources.accounts == ("one", "two")
    assert settings.sources.social_enabled is False
    assert settings.storage.drafts_dir == Path("/tmp/drafts")


@pytest.mark.parametrize("value", ["your-twitter-bearer-token", "changeme", "   "])
def test_placeholder_secrets_count_as_missing(monkeypatch, value: str) -> None:
    monkeypatch.setenv("TWITTER_BEARER_TOKEN", value)

    assert Settings.from_env().sources.social_bearer_token is None


def test_news_feeds_are_parsed_and_deduplicated(monkeypatch) -> None:
    monkeypatch.setenv(
        "DRAFTDESK_NEWS_FEEDS",
        "A|https://a.example/rss, B|https://b.example/hot.json|Reddit, A2|https://a.example/rss",
    )

    feeds = Settings.from_env().sources.feeds

    assert feeds == (
        FeedSource("A", "https://a.example/rss"),
        FeedSource("B", "https://b.example/hot.json", "reddit"),
    )


def test_malformed_feed_entry_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("DRAFTDESK_NEWS_FEEDS", "just-a-name")

    with pytest.raises(ValueError, match="DRAFTDESK_NEWS_FEEDS"):
        Settings.from_env()


def test_invalid_boolean_is_rejected(monkeypatch) -> None:
    monkeypatch.setenv("DRAFTDESK_ENABLE_NEWS", "maybe")

    with pytest.raises(ValueError, match="DRAFTDESK_ENABLE_NEWS"):
        Settings.from_env()


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("DRAFTDESK_DRAFTS_PER_DAY", "0", "DRAFTS_PER_DAY"),
        ("DRAFTDESK_FRESHNESS_DAYS", "-1", "FRESHNESS_DAYS"),
        ("DRAFTDESK_METRICS_API", "ftp://llama", "DRAFTDESK_METRICS_API"),
        ("DRAFTDESK_NEWS_FEEDS", "A|https://a.example|atom", "Unsupported feed kind"),
    ],
)
def test_validate_rejects_unusable_values(monkeypatch, name: str, value: str, message: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError, match=message):
        Settings.from_env().validate()
