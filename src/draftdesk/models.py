"""Domain models for sources, voice profiles, drafts and persisted batches."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class SourceKind(str, Enum):
    """Which kind of material a draft was built from."""

    NEWS = "news"
    SOCIAL = "social"
    ONCHAIN = "onchain"
    MIXED = "mixed"


class VerificationStatus(str, Enum):
    """Reachability state of a news URL."""

    VERIFIED = "verified"
    UNVERIFIED = "unverified"
    BROKEN = "broken"
    PENDING = "pending"


class EmojiFrequency(str, Enum):
    NONE = "none"
    LIGHT = "light"
    MODERATE = "moderate"
    HEAVY = "heavy"


class LengthTier(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


@dataclass(slots=True)
class NewsItem:
    """Normalized article from an RSS/Atom or JSON feed."""

    title: str
    summary: str
    url: str
    source: str
    published_at: datetime
    relevance_score: float | None = None
    verification: VerificationStatus | None = None
    verified_at: datetime | None = None

    @property
    def identity(self) -> str:
        return self.url

    @property
    def timestamp(self) -> datetime:
        return self.published_at

    @property
    def searchable_text(self) -> str:
        return f"{self.title} {self.summary}"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "summary": self.summary,
            "url": self.url,
            "source": self.source,
            "publishedAt": format_timestamp(self.published_at),
        }
        if self.relevance_score is not None:
            payload["relevanceScore"] = self.relevance_score
        if self.verification is not None:
            payload["verification"] = self.verification.value
        if self.verified_at is not None:
            payload["verifiedAt"] = format_timestamp(self.verified_at)
        return payload

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> NewsItem:
        verification = raw.get("verification")
        verified_at = raw.get("verifiedAt")
        return cls(
            title=str(raw.get("title") or ""),
            summary=str(raw.get("summary") or ""),
            url=str(raw.get("url") or ""),
            source=str(raw.get("source") or "unknown"),
            published_at=parse_timestamp(raw.get("publishedAt")) or EPOCH,
            relevance_score=_optional_float(raw.get("relevanceScore")),
            verification=VerificationStatus(verification) if verification else None,
            verified_at=parse_timestamp(verified_at) if verified_at else None,
        )


@dataclass(slots=True)
class Engagement:
    likes: int = 0
    reshares: int = 0
    replies: int = 0


@dataclass(slots=True)
class SocialPost:
    """Post from a monitored social account."""

    post_id: str
    author: str
    author_handle: str
    content: str
    posted_at: datetime
    engagement: Engagement | None = None

    @property
    def identity(self) -> str:
        return self.post_id

    @property
    def timestamp(self) -> datetime:
        return self.posted_at

    @property
    def searchable_text(self) -> str:
        return self.content

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.post_id,
            "author": self.author,
            "authorHandle": self.author_handle,
            "content": self.content,
            "postedAt": format_timestamp(self.posted_at),
        }
        if self.engagement is not None:
            payload["engagement"] = {
                "likes": self.engagement.likes,
                "reshares": self.engagement.reshares,
                "replies": self.engagement.replies,
            }
        return payload

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> SocialPost:
        engagement = raw.get("engagement")
        return cls(
            post_id=str(raw.get("id") or ""),
            author=str(raw.get("author") or ""),
            author_handle=str(raw.get("authorHandle") or ""),
            content=str(raw.get("content") or ""),
            posted_at=parse_timestamp(raw.get("postedAt")) or EPOCH,
            engagement=(
                Engagement(
                    likes=coerce_int(engagement.get("likes")),
                    reshares=coerce_int(engagement.get("reshares")),
                    replies=coerce_int(engagement.get("replies")),
                )
                if isinstance(engagement, dict)
                else None
            ),
        )


_METRIC_FIELDS: tuple[tuple[str, str], ...] = (
    ("tvl", "tvl"),
    ("tvl_change_24h", "tvlChange24h"),
    ("tvl_change_7d", "tvlChange7d"),
    ("transactions_24h", "transactions24h"),
    ("active_addresses_24h", "activeAddresses24h"),
    ("volume_24h", "volume24h"),
    ("fees_24h", "fees24h"),
)


@dataclass(slots=True)
class MetricSnapshot:
    """Point-in-time analytics for one network; every metric is optional."""

    subject: str
    captured_at: datetime
    tvl: float | None = None
    tvl_change_24h: float | None = None
    tvl_change_7d: float | None = None
    transactions_24h: int | None = None
    active_addresses_24h: int | None = None
    volume_24h: float | None = None
    fees_24h: float | None = None

    @property
    def identity(self) -> str:
        return f"{self.subject}@{format_timestamp(self.captured_at)}"

    @property
    def timestamp(self) -> datetime:
        return self.captured_at

    @property
    def searchable_text(self) -> str:
        return self.subject

    def metrics(self) -> dict[str, float]:
        """Present metric values keyed by attribute name."""

        values: dict[str, float] = {}
        for attr, _ in _METRIC_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                values[attr] = value
        return values

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "subject": self.subject,
            "timestamp": format_timestamp(self.captured_at),
        }
        for attr, key in _METRIC_FIELDS:
            value = getattr(self, attr)
            if value is not None:
                payload[key] = value
        return payload

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> MetricSnapshot:
        snapshot = cls(
            subject=str(raw.get("subject") or ""),
            captured_at=parse_timestamp(raw.get("timestamp")) or EPOCH,
        )
        for attr, key in _METRIC_FIELDS:
            value = raw.get(key)
            if value is None:
                continue
            if attr in {"transactions_24h", "active_addresses_24h"}:
                setattr(snapshot, attr, int(value))
            else:
                setattr(snapshot, attr, float(value))
        return snapshot


SourceItem = NewsItem | SocialPost | MetricSnapshot


@dataclass(slots=True)
class GenerationInput:
    """The exact material shown to the generator."""

    news: list[NewsItem] | None = None
    posts: list[SocialPost] | None = None
    metrics: MetricSnapshot | None = None

    @property
    def is_empty(self) -> bool:
        return not self.news and not self.posts and self.metrics is None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.news is not None:
            payload["news"] = [item.to_dict() for item in self.news]
        if self.posts is not None:
            payload["posts"] = [post.to_dict() for post in self.posts]
        if self.metrics is not None:
            payload["metrics"] = self.metrics.to_dict()
        return payload

    @classmethod
    def from_dict(cls, raw: dict[str, Any] | None) -> GenerationInput:
        if not raw:
            return cls()
        news = raw.get("news")
        posts = raw.get("posts")
        metrics = raw.get("metrics")
        return cls(
            news=[NewsItem.from_dict(item) for item in news] if isinstance(news, list) else None,
            posts=(
                [SocialPost.from_dict(post) for post in posts]
                if isinstance(posts, list)
                else None
            ),
            metrics=MetricSnapshot.from_dict(metrics) if isinstance(metrics, dict) else None,
        )


@dataclass(slots=True)
class VoiceSample:
    text: str
    topics: list[str] = field(default_factory=list)
    likes: int = 0
    reshares: int = 0

    @property
    def engagement_score(self) -> int:
        return self.likes + self.reshares * 2


@dataclass(slots=True)
class StyleGuidelines:
    """Style attributes of the target voice."""

    uses_emojis: bool = False
    emoji_frequency: EmojiFrequency = EmojiFrequency.NONE
    uses_threads: bool = False
    average_length: LengthTier = LengthTier.MEDIUM
    uses_hashtags: bool = False
    data_first: bool = False
    includes_humor: bool = False
    asks_questions: bool = False
    uses_cta: bool = False
    avoid_words: list[str] = field(default_factory=list)
    preferred_terms: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class VoiceProfile:
    handle: str
    samples: list[VoiceSample]
    guidelines: StyleGuidelines


@dataclass(slots=True)
class DraftMetadata:
    """Pinpoints which specific item a draft used."""

    news_title: str | None = None
    news_url: str | None = None
    social_handle: str | None = None
    metric: str | None = None

    def to_dict(self) -> dict[str, str]:
        payload: dict[str, str] = {}
        if self.news_title is not None:
            payload["newsTitle"] = self.news_title
        if self.news_url is not None:
            payload["newsUrl"] = self.news_url
        if self.social_handle is not None:
            payload["socialHandle"] = self.social_handle
        if self.metric is not None:
            payload["metric"] = self.metric
        return payload

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DraftMetadata:
        return cls(
            news_title=_optional_str(raw.get("newsTitle")),
            news_url=_optional_str(raw.get("newsUrl")),
            social_handle=_optional_str(raw.get("socialHandle")),
            metric=_optional_str(raw.get("metric")),
        )


@dataclass(slots=True)
class Draft:
    """One generated post draft."""

    id: str
    content: str
    source: SourceKind
    context: str
    confidence: float
    created_at: datetime
    metadata: DraftMetadata | None = None
    source_data: GenerationInput | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "content": self.content,
            "source": self.source.value,
            "context": self.context,
            "confidence": self.confidence,
            "createdAt": format_timestamp(self.created_at),
        }
        if self.metadata is not None:
            payload["metadata"] = self.metadata.to_dict()
        if self.source_data is not None:
            payload["sourceData"] = self.source_data.to_dict()
        return payload

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Draft:
        metadata = raw.get("metadata")
        source_data = raw.get("sourceData")
        return cls(
            id=str(raw["id"]),
            content=str(raw.get("content") or ""),
            source=SourceKind(raw.get("source") or SourceKind.MIXED.value),
            context=str(raw.get("context") or ""),
            confidence=float(raw.get("confidence", 0.5)),
            created_at=parse_timestamp(raw.get("createdAt")) or EPOCH,
            metadata=DraftMetadata.from_dict(metadata) if isinstance(metadata, dict) else None,
            source_data=(
                GenerationInput.from_dict(source_data) if isinstance(source_data, dict) else None
            ),
        )


@dataclass(slots=True)
class Batch:
    """Drafts generated for one calendar date plus the input used."""

    date: str
    generated_at: datetime
    drafts: list[Draft]
    input: GenerationInput | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "generatedAt": format_timestamp(self.generated_at),
            "drafts": [draft.to_dict() for draft in self.drafts],
            "input": self.input.to_dict() if self.input is not None else None,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Batch:
        drafts = raw.get("drafts")
        raw_input = raw.get("input")
        return cls(
            date=str(raw["date"]),
            generated_at=parse_timestamp(raw.get("generatedAt")) or EPOCH,
            drafts=[Draft.from_dict(item) for item in drafts] if isinstance(drafts, list) else [],
            input=GenerationInput.from_dict(raw_input) if isinstance(raw_input, dict) else None,
        )


@dataclass(slots=True)
class GenerationOutput:
    drafts: list[Draft]
    tokens_used: int
    model_used: str
    generated_at: datetime


@dataclass(slots=True)
class RevisionOutput:
    content: str
    tokens_used: int


EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a `Z` suffix."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(raw_value: object) -> datetime | None:
    """Parse ISO-8601 strings or unix seconds into an aware UTC datetime."""

    if raw_value is None or isinstance(raw_value, bool):
        return None
    if isinstance(raw_value, int | float):
        try:
            return datetime.fromtimestamp(float(raw_value), tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    text = str(raw_value).strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _optional_float(value: object) -> float | None:
    if value is None:
        return None
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def coerce_int(value: object, default: int = 0) -> int:
    """Integer value of loosely-typed upstream JSON, or `default` when it is not numeric."""

    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError, OverflowError):
        return default
