"""Runtime configuration for source collection, generation and storage."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

PLACEHOLDER_SECRETS = frozenset({"your-twitter-bearer-token", "your-anthropic-api-key", "changeme"})
FEED_KINDS = frozenset({"rss", "reddit"})


@dataclass(slots=True, frozen=True)
class FeedSource:
    """One news endpoint polled by the news connector."""

    name: str
    url: str
    kind: str = "rss"


DEFAULT_FEEDS: tuple[FeedSource, ...] = (
    FeedSource("CoinDesk", "https://www.coindesk.com/arc/outboundfeeds/rss/"),
    FeedSource("CoinTelegraph", "https://cointelegraph.com/rss"),
    FeedSource("Decrypt", "https://decrypt.co/feed"),
    FeedSource("The Block", "https://www.theblock.co/rss.xml"),
    FeedSource("Blockworks", "https://blockworks.co/feed"),
    FeedSource(
        "PR Newswire",
        "https://www.prnewswire.com/rss/financial-services-latest-news/"
        "financial-services-latest-news-list.rss",
    ),
    FeedSource("Yahoo Finance", "https://finance.yahoo.com/rss/topstories"),
    FeedSource("CNBC", "https://www.cnbc.com/id/100003114/device/rss/rss.html"),
    FeedSource("MarketWatch", "https://www.marketwatch.com/rss/topstories"),
    FeedSource("Reddit r/avax", "https://www.reddit.com/r/avax/hot.json?limit=25", "reddit"),
)

DEFAULT_ACCOUNTS: tuple[str, ...] = ("avax", "AvalancheFDN", "AvaLabs", "el33th4xor", "John1wu")

PRIMARY_KEYWORDS: tuple[str, ...] = ("avalanche", "avax")
SECONDARY_KEYWORDS: tuple[str, ...] = (
    "$avax",
    "ava labs",
    "avalabs",
    "subnet",
    "c-chain",
    "p-chain",
    "x-chain",
    "avalanchego",
    "emin gun sirer",
    "emin gün sirer",
    "avlanche",
    "avalanch",
)


@dataclass(slots=True)
class GenerationSettings:
    """Generation backend settings."""

    api_key: str | None = None
    model: str = "claude-3-haiku-20240307"
    max_tokens: int = 2_000
    revision_max_tokens: int = 500
    draft_count: int = 5
    max_chars: int = 280
    request_timeout_seconds: float = 60.0


@dataclass(slots=True)
class VoiceSettings:
    """Persona the drafts are written for."""

    handle: str = "avalanche"
    style_tags: tuple[str, ...] = ("casual", "data-driven", "humorous")
    domain: str = "Avalanche"
    default_hashtags: tuple[str, ...] = ("#Avalanche", "#AVAX")
    profile_path: Path | None = None
    max_samples: int = 15


@dataclass(slots=True)
class SourceSettings:
    """Connector settings and feature toggles."""

    news_enabled: bool = True
    social_enabled: bool = True
    metrics_enabled: bool = True
    feeds: tuple[FeedSource, ...] = DEFAULT_FEEDS
    accounts: tuple[str, ...] = DEFAULT_ACCOUNTS
    primary_keywords: tuple[str, ...] = PRIMARY_KEYWORDS
    secondary_keywords: tuple[str, ...] = SECONDARY_KEYWORDS
    social_bearer_token: str | None = None
    posts_per_account: int = 5
    news_limit: int = 15
    freshness_days: int = 7
    summary_max_chars: int = 500
    news_delay_seconds: float = 0.5
    request_delay_seconds: float = 1.0
    request_timeout_seconds: float = 10.0
    metrics_base_url: str = "https://api.llama.fi"
    metrics_subject: str = "Avalanche"
    social_api_base: str = "https://api.twitter.com/2"


@dataclass(slots=True)
class StorageSettings:
    drafts_dir: Path = Path("data/drafts")


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    generation: GenerationSettings = field(default_factory=GenerationSettings)
    voice: VoiceSettings = field(default_factory=VoiceSettings)
    sources: SourceSettings = field(default_factory=SourceSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)

    @classmethod
    def from_env(cls, drafts_dir: Path | None = None) -> Settings:
        """Load settings from environment with defaults suited for local use."""

        profile_path = os.getenv("DRAFTDESK_VOICE_PROFILE_PATH", "").strip()
        return cls(
            generation=GenerationSettings(
                api_key=_secret("ANTHROPIC_API_KEY"),
                model=os.getenv("DRAFTDESK_AI_MODEL", "claude-3-haiku-20240307"),
                max_tokens=int(os.getenv("DRAFTDESK_AI_MAX_TOKENS", "2000")),
                revision_max_tokens=int(os.getenv("DRAFTDESK_AI_REVISION_MAX_TOKENS", "500")),
                draft_count=int(os.getenv("DRAFTDESK_DRAFTS_PER_DAY", "5")),
                max_chars=int(os.getenv("DRAFTDESK_POST_MAX_LENGTH", "280")),
                request_timeout_seconds=float(os.getenv("DRAFTDESK_AI_TIMEOUT_SECONDS", "60")),
            ),
            voice=VoiceSettings(
                handle=os.getenv("DRAFTDESK_VOICE_HANDLE", "avalanche").lstrip("@"),
                style_tags=_csv("DRAFTDESK_VOICE_STYLE", ("casual", "data-driven", "humorous")),
                domain=os.getenv("DRAFTDESK_DOMAIN", "Avalanche"),
                default_hashtags=_csv("DRAFTDESK_DEFAULT_HASHTAGS", ("#Avalanche", "#AVAX")),
                profile_path=Path(profile_path) if profile_path else None,
                max_samples=int(os.getenv("DRAFTDESK_VOICE_MAX_SAMPLES", "15")),
            ),
            sources=SourceSettings(
                news_enabled=_env_bool("DRAFTDESK_ENABLE_NEWS", default=True),
                social_enabled=_env_bool("DRAFTDESK_ENABLE_SOCIAL", default=True),
                metrics_enabled=_env_bool("DRAFTDESK_ENABLE_METRICS", default=True),
                feeds=_collect_feeds(),
                accounts=tuple(
                    handle.lstrip("@")
                    for handle in _csv("DRAFTDESK_SOCIAL_ACCOUNTS", DEFAULT_ACCOUNTS)
                ),
                social_bearer_token=_secret("TWITTER_BEARER_TOKEN"),
                posts_per_account=int(os.getenv("DRAFTDESK_POSTS_PER_ACCOUNT", "5")),
                news_limit=int(os.getenv("DRAFTDESK_NEWS_LIMIT", "15")),
                freshness_days=int(os.getenv("DRAFTDESK_FRESHNESS_DAYS", "7")),
                summary_max_chars=int(os.getenv("DRAFTDESK_SUMMARY_MAX_CHARS", "500")),
                news_delay_seconds=float(os.getenv("DRAFTDESK_NEWS_DELAY_SECONDS", "0.5")),
                request_delay_seconds=float(os.getenv("DRAFTDESK_REQUEST_DELAY_SECONDS", "1.0")),
                request_timeout_seconds=float(
                    os.getenv("DRAFTDESK_REQUEST_TIMEOUT_SECONDS", "10"),
                ),
                metrics_base_url=os.getenv("DRAFTDESK_METRICS_API", "https://api.llama.fi"),
                metrics_subject=os.getenv("DRAFTDESK_METRICS_SUBJECT", "Avalanche"),
            ),
            storage=StorageSettings(
                drafts_dir=drafts_dir or Path(os.getenv("DRAFTDESK_DRAFTS_DIR", "data/drafts")),
            ),
        )

    def validate(self) -> None:
        """Raise `ValueError` when a setting cannot work at runtime."""

        generation = self.generation
        if not generation.model.strip():
            raise ValueError("DRAFTDESK_AI_MODEL must not be empty.")
        if generation.max_tokens <= 0 or generation.revision_max_tokens <= 0:
            raise ValueError("DRAFTDESK_AI_MAX_TOKENS values must be positive integers.")
        if generation.draft_count <= 0:
            raise ValueError("DRAFTDESK_DRAFTS_PER_DAY must be a positive integer.")
        if generation.max_chars <= 0:
            raise ValueError("DRAFTDESK_POST_MAX_LENGTH must be a positive integer.")

        sources = self.sources
        if sources.freshness_days <= 0:
            raise ValueError("DRAFTDESK_FRESHNESS_DAYS must be a positive integer.")
        if sources.news_limit <= 0 or sources.posts_per_account <= 0:
            raise ValueError("DRAFTDESK_NEWS_LIMIT and DRAFTDESK_POSTS_PER_ACCOUNT must be > 0.")
        if sources.request_timeout_seconds <= 0:
            raise ValueError("DRAFTDESK_REQUEST_TIMEOUT_SECONDS must be > 0.")
        if sources.news_delay_seconds < 0 or sources.request_delay_seconds < 0:
            raise ValueError("Request delays must be >= 0.")
        for feed in sources.feeds:
            _validate_url(feed.url, label=f"feed {feed.name!r}")
            if feed.kind not in FEED_KINDS:
                raise ValueError(
                    f"Unsupported feed kind for {feed.name!r}: {feed.kind!r}. "
                    f"Expected one of {sorted(FEED_KINDS)}.",
                )
        _validate_url(sources.metrics_base_url, label="DRAFTDESK_METRICS_API")


def _collect_feeds() -> tuple[FeedSource, ...]:
    raw = os.getenv("DRAFTDESK_NEWS_FEEDS", "").strip()
    if not raw:
        return DEFAULT_FEEDS

    feeds: list[FeedSource] = []
    seen: set[str] = set()
    for part in raw.split(","):
        token = part.strip()
        if not token:
            continue
        pieces = [piece.strip() for piece in token.split("|")]
        if len(pieces) not in {2, 3} or not all(pieces):
            raise ValueError(
                "Invalid DRAFTDESK_NEWS_FEEDS entry: "
                f"{token!r}. Expected format '<name>|<url>' or '<name>|<url>|<kind>'.",
            )
        name, url = pieces[0], pieces[1]
        kind = pieces[2].lower() if len(pieces) == 3 else "rss"
        if url in seen:
            continue
        seen.add(url)
        feeds.append(FeedSource(name=name, url=url, kind=kind))
    return tuple(feeds)


def _csv(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def _secret(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    if not value or value in PLACEHOLDER_SECRETS:
        return None
    return value


def _validate_url(value: str, *, label: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(
            f"Invalid URL for {label}: {value!r}. "
            "Expected an absolute URL with http:// or https:// scheme.",
        )


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
