"""Voice profile JSON persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from draftdesk.errors import ErrorKind, Result, failure, success
from draftdesk.models import EmojiFrequency, LengthTier, StyleGuidelines, VoiceProfile, VoiceSample
from draftdesk.voice.defaults import default_profile

logger = logging.getLogger(__name__)


def load_voice_profile(path: Path | None, *, handle: str) -> Result[VoiceProfile]:
    """Load an analyzed profile, or the built-in default when no file is configured."""

    if path is None:
        return success(default_profile(handle))
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return failure(ErrorKind.INVALID_CONFIG, f"Voice profile not found: {path}")
    except (OSError, json.JSONDecodeError) as error:
        return failure(ErrorKind.INVALID_DATA_FORMAT, f"Unreadable voice profile {path}: {error}")
    try:
        profile = profile_from_dict(raw, default_handle=handle)
    except (AttributeError, KeyError, TypeError, ValueError) as error:
        return failure(ErrorKind.INVALID_DATA_FORMAT, f"Malformed voice profile {path}: {error}")
    logger.info("Loaded voice profile @%s with %d samples.", profile.handle, len(profile.samples))
    return success(profile)


def save_voice_profile(profile: VoiceProfile, path: Path) -> Result[Path]:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(profile_to_dict(profile), ensure_ascii=False, indent=2) + "\n",
            encoding="utf-8",
        )
    except OSError as error:
        return failure(ErrorKind.UNKNOWN, f"Failed to write voice profile {path}: {error}")
    return success(path)


def profile_to_dict(profile: VoiceProfile) -> dict[str, Any]:
    guidelines = profile.guidelines
    return {
        "handle": profile.handle,
        "samples": [
            {
                "text": sample.text,
                "topics": sample.topics,
                "engagement": {"likes": sample.likes, "reshares": sample.reshares},
            }
            for sample in profile.samples
        ],
        "guidelines": {
            "usesEmojis": guidelines.uses_emojis,
            "emojiFrequency": guidelines.emoji_frequency.value,
            "usesThreads": guidelines.uses_threads,
            "averageLength": guidelines.average_length.value,
            "usesHashtags": guidelines.uses_hashtags,
            "dataFirst": guidelines.data_first,
            "includesHumor": guidelines.includes_humor,
            "asksQuestions": guidelines.asks_questions,
            "usesCta": guidelines.uses_cta,
            "avoidWords": guidelines.avoid_words,
            "preferredTerms": guidelines.preferred_terms,
        },
    }


def profile_from_dict(raw: dict[str, Any], *, default_handle: str) -> VoiceProfile:
    samples = []
    for item in raw.get("samples") or []:
        engagement = item.get("engagement") or {}
        samples.append(
            VoiceSample(
                text=str(item["text"]),
                topics=[str(topic) for topic in item.get("topics") or []],
                likes=int(engagement.get("likes") or 0),
                reshares=int(engagement.get("reshares") or engagement.get("retweets") or 0),
            ),
        )
    rules = raw.get("guidelines") or {}
    guidelines = StyleGuidelines(
        uses_emojis=bool(rules.get("usesEmojis", False)),
        emoji_frequency=EmojiFrequency(rules.get("emojiFrequency", "none")),
        uses_threads=bool(rules.get("usesThreads", False)),
        average_length=LengthTier(rules.get("averageLength", "medium")),
        uses_hashtags=bool(rules.get("usesHashtags", False)),
        data_first=bool(rules.get("dataFirst", False)),
        includes_humor=bool(rules.get("includesHumor", False)),
        asks_questions=bool(rules.get("asksQuestions", False)),
        uses_cta=bool(rules.get("usesCta", False)),
        avoid_words=[str(word) for word in rules.get("avoidWords") or []],
        preferred_terms={str(k): str(v) for k, v in (rules.get("preferredTerms") or {}).items()},
    )
    return VoiceProfile(
        handle=str(raw.get("handle") or default_handle),
        samples=samples,
        guidelines=guidelines,
    )
