"""Validation and default-filling for raw generation backend output."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from draftdesk.errors import ErrorKind, Result, failure, success
from draftdesk.models import Draft, DraftMetadata, SourceKind, parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 0.5
SOURCE_ALIASES = {"twitter": SourceKind.SOCIAL, "x": SourceKind.SOCIAL}
METADATA_ALIASES = {
    "twitterAuthor": "socialHandle",
    "onchainMetric": "metric",
}


class DraftRejected(ValueError):
    """One entry in the response cannot be turned into a draft."""


@dataclass(slots=True)
class RepairReport:
    drafts: list[Draft]
    filled_defaults: int = 0
    over_limit: int = 0


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json / ``` fence if present."""

    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json") :]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_drafts(text: str, *, now: datetime, max_chars: int) -> Result[RepairReport]:
    """Parse the response text into drafts, filling only absent fields."""

    try:
        payload = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as error:
        return failure(
            ErrorKind.AI_INVALID_RESPONSE,
            "Failed to parse generation response as JSON.",
            reason=str(error),
        )
    if not isinstance(payload, list):
        return failure(
            ErrorKind.AI_INVALID_RESPONSE,
            "Generation response is not a JSON array.",
            type=type(payload).__name__,
        )

    report = RepairReport(drafts=[])
    epoch_ms = int(now.timestamp() * 1000)
    for index, entry in enumerate(payload):
        try:
            draft, filled = repair_entry(entry, index=index, now=now, epoch_ms=epoch_ms)
        except DraftRejected as error:
            return failure(
                ErrorKind.AI_INVALID_RESPONSE,
                f"Draft {index} rejected: {error}",
                index=index,
            )
        report.filled_defaults += filled
        if len(draft.content) > max_chars:
            report.over_limit += 1
            logger.warning(
                "Draft %s is %d characters, over the %d limit.",
                draft.id,
                len(draft.content),
                max_chars,
            )
        report.drafts.append(draft)
    return success(report)


def repair_entry(
    entry: Any,
    *,
    index: int,
    now: datetime,
    epoch_ms: int,
) -> tuple[Draft, int]:
    """Build one draft; returns the draft and how many defaults were filled."""

    if not isinstance(entry, dict):
        raise DraftRejected("entry is not an object")
    content = entry.get("content")
    if not isinstance(content, str):
        raise DraftRejected("content must be a string")

    filled = 0
    draft_id = entry.get("id")
    if draft_id is None or draft_id == "":
        draft_id = f"draft-{epoch_ms}-{index}"
        filled += 1

    raw_source = entry.get("source")
    if raw_source is None:
        source = SourceKind.MIXED
        filled += 1
    else:
        source = _parse_source(raw_source)

    raw_confidence = entry.get("confidence")
    if raw_confidence is None:
        confidence = DEFAULT_CONFIDENCE
        filled += 1
    else:
        confidence = _parse_confidence(raw_confidence)

    raw_created_at = entry.get("createdAt")
    if raw_created_at is None:
        created_at = now
        filled += 1
    else:
        parsed = parse_timestamp(raw_created_at) if isinstance(raw_created_at, str) else None
        if parsed is None:
            raise DraftRejected(f"unparseable createdAt {raw_created_at!r}")
        created_at = parsed

    raw_context = entry.get("context")
    context = "" if raw_context is None else str(raw_context)

    raw_metadata = entry.get("metadata")
    metadata = None
    if raw_metadata is not None:
        if not isinstance(raw_metadata, dict):
            raise DraftRejected("metadata must be an object")
        metadata = DraftMetadata.from_dict(
            {METADATA_ALIASES.get(key, key): value for key, value in raw_metadata.items()},
        )

    draft = Draft(
        id=str(draft_id),
        content=content,
        source=source,
        context=context,
        confidence=confidence,
        created_at=created_at,
        metadata=metadata,
    )
    return draft, filled


def _parse_source(raw: Any) -> SourceKind:
    if not isinstance(raw, str):
        raise DraftRejected(f"invalid source {raw!r}")
    normalized = raw.strip().lower()
    if normalized in SOURCE_ALIASES:
        return SOURCE_ALIASES[normalized]
    try:
        return SourceKind(normalized)
    except ValueError as error:
        raise DraftRejected(f"unknown source {raw!r}") from error


def _parse_confidence(raw: Any) -> float:
    if isinstance(raw, bool) or not isinstance(raw, int | float):
        raise DraftRejected(f"confidence must be a number, got {raw!r}")
    value = float(raw)
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise DraftRejected(f"confidence {raw!r} outside [0, 1]")
    return value
