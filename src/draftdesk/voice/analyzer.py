"""Derive a voice profile from an account's own posts."""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field

from draftdesk.errors import ErrorKind, Result, failure, propagate, success
from draftdesk.models import (
    EmojiFrequency,
    LengthTier,
    SocialPost,
    StyleGuidelines,
    VoiceProfile,
    VoiceSample,
)
from draftdesk.sources.cleaning import strip_links
from draftdesk.sources.social import SocialConnector
from draftdesk.voice.defaults import DEFAULT_AVOID_WORDS, DEFAULT_PREFERRED_TERMS

logger = logging.getLogger(__name__)

MIN_SUBSTANTIVE_CHARS = 30
MAX_SAMPLES = 20
MAX_TOPICS = 20
MAX_SAMPLE_TOPICS = 5

_EMOJI_RE = re.compile("[\U0001f300-\U0001f9ff\u2600-\u26ff\u2700-\u27bf]")
_HASHTAG_RE = re.compile(r"#\w+")
_WORD_CLEAN_RE = re.compile(r"[^a-z0-9\s@#]")
_DATA_PATTERNS = (
    re.compile(r"\d+%"),
    re.compile(r"\$[\d,.]+[BMK]?", re.IGNORECASE),
    re.compile(r"\d+[BMK]\+?", re.IGNORECASE),
    re.compile(r"\d{1,3}(,\d{3})+"),
    re.compile(r"\d+x", re.IGNORECASE),
)
_HUMOR_PATTERNS = (
    re.compile(r"lol|lmao|haha|tbh|ngl|lowkey|highkey", re.IGNORECASE),
    re.compile("[\U0001f602\U0001f605\U0001f606\U0001f623\U0001f480]"),
)
_STOP_WORDS = frozenset(
    """
    the a an is are was were be been to of in for on with at by from it this that
    these those and or but if so as its just not you your we our my i me they them
    he she will can has have had do does did would could should may might about what
    when how why all each every both few more most other some such no nor only own
    same than too very now also here there https co rt via amp
    """.split(),
)


@dataclass(slots=True)
class VoiceStats:
    total_posts: int
    average_length: int
    average_likes: int
    average_reshares: int
    top_topics: list[str] = field(default_factory=list)
    emoji_count: int = 0
    hashtag_count: int = 0
    question_count: int = 0


@dataclass(slots=True)
class VoiceAnalysis:
    samples: list[VoiceSample]
    guidelines: StyleGuidelines
    stats: VoiceStats

    def to_profile(self, handle: str) -> VoiceProfile:
        return VoiceProfile(handle=handle, samples=self.samples, guidelines=self.guidelines)


def analyze_posts(posts: list[SocialPost]) -> Result[VoiceAnalysis]:
    """Compute style attributes and pick the best-performing posts as samples."""

    substantive = [
        post for post in posts if len(strip_links(post.content)) > MIN_SUBSTANTIVE_CHARS
    ]
    if not substantive:
        return failure(
            ErrorKind.NO_DATA_AVAILABLE,
            "No substantive posts to analyze.",
            total=len(posts),
        )

    count = len(substantive)
    emoji_count = sum(len(_EMOJI_RE.findall(post.content)) for post in substantive)
    hashtag_count = sum(len(_HASHTAG_RE.findall(post.content)) for post in substantive)
    question_count = sum(post.content.count("?") for post in substantive)
    average_length = sum(len(post.content) for post in substantive) / count
    top_topics = _top_topics(substantive)

    ranked = sorted(substantive, key=_engagement_score, reverse=True)
    samples = [
        VoiceSample(
            text=post.content,
            topics=_topics_in(post.content, top_topics),
            likes=post.engagement.likes if post.engagement else 0,
            reshares=post.engagement.reshares if post.engagement else 0,
        )
        for post in ranked[:MAX_SAMPLES]
    ]

    guidelines = StyleGuidelines(
        uses_emojis=emoji_count > count * 0.2,
        emoji_frequency=_emoji_frequency(emoji_count / count),
        average_length=_length_tier(average_length),
        uses_hashtags=hashtag_count > count * 0.1,
        asks_questions=question_count > count * 0.15,
        data_first=_share_matching(substantive, _DATA_PATTERNS) > 0.15,
        includes_humor=_share_matching(substantive, _HUMOR_PATTERNS) > 0.05,
        avoid_words=list(DEFAULT_AVOID_WORDS),
        preferred_terms=dict(DEFAULT_PREFERRED_TERMS),
    )
    stats = VoiceStats(
        total_posts=count,
        average_length=round(average_length),
        average_likes=round(
            sum(post.engagement.likes if post.engagement else 0 for post in substantive) / count,
        ),
        average_reshares=round(
            sum(post.engagement.reshares if post.engagement else 0 for post in substantive)
            / count,
        ),
        top_topics=top_topics,
        emoji_count=emoji_count,
        hashtag_count=hashtag_count,
        question_count=question_count,
    )
    return success(VoiceAnalysis(samples=samples, guidelines=guidelines, stats=stats))


def build_voice_profile(
    connector: SocialConnector,
    handle: str,
    *,
    max_posts: int = 200,
) -> Result[VoiceAnalysis]:
    timeline = connector.fetch_timeline(handle, max_posts)
    if not timeline.is_success:
        return propagate(timeline)
    analysis = analyze_posts(timeline.unwrap())
    if analysis.is_success:
        stats = analysis.unwrap().stats
        logger.info(
            "Analyzed %d posts for @%s (avg length %d, avg likes %d).",
            stats.total_posts,
            handle,
            stats.average_length,
            stats.average_likes,
        )
    return analysis


def _engagement_score(post: SocialPost) -> int:
    if post.engagement is None:
        return 0
    return post.engagement.likes + post.engagement.reshares * 2


def _emoji_frequency(per_post: float) -> EmojiFrequency:
    if per_post > 1:
        return EmojiFrequency.HEAVY
    if per_post > 0.3:
        return EmojiFrequency.MODERATE
    if per_post > 0.1:
        return EmojiFrequency.LIGHT
    return EmojiFrequency.NONE


def _length_tier(average_length: float) -> LengthTier:
    if average_length > 220:
        return LengthTier.LONG
    if average_length > 140:
        return LengthTier.MEDIUM
    return LengthTier.SHORT


def _share_matching(posts: list[SocialPost], patterns: tuple[re.Pattern[str], ...]) -> float:
    hits = sum(1 for post in posts if any(pattern.search(post.content) for pattern in patterns))
    return hits / len(posts)


def _top_topics(posts: list[SocialPost]) -> list[str]:
    counter: Counter[str] = Counter()
    for post in posts:
        cleaned = _WORD_CLEAN_RE.sub("", strip_links(post.content.lower()))
        counter.update(
            word for word in cleaned.split() if len(word) > 2 and word not in _STOP_WORDS
        )
    return [word for word, _ in counter.most_common(MAX_TOPICS)]


def _topics_in(text: str, topics: list[str]) -> list[str]:
    lowered = text.lower()
    return [topic for topic in topics if topic in lowered][:MAX_SAMPLE_TOPICS]
