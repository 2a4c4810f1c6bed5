"""Reachability check for news URLs referenced by drafts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import urlparse

from draftdesk.http.fetcher import FetchResult, HttpFetcher
from draftdesk.models import VerificationStatus, format_timestamp

logger = logging.getLogger(__name__)

VERIFY_TIMEOUT_SECONDS = 10.0
_GET_FALLBACK_STATUSES = frozenset({403, 405})
_BROKEN_STATUSES = frozenset({404, 410})


@dataclass(slots=True)
class VerificationResult:
    url: str
    status: VerificationStatus
    http_status: int | None
    error: str | None
    verified_at: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "url": self.url,
            "status": self.status.value,
            "httpStatus": self.http_status,
            "error": self.error,
            "verifiedAt": format_timestamp(self.verified_at),
        }


def verify_url(url: str, fetcher: HttpFetcher | None = None) -> VerificationResult:
    """HEAD the URL (GET when HEAD is refused) and classify the outcome."""

    checked_at = datetime.now(tz=UTC)
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return VerificationResult(
            url=url,
            status=VerificationStatus.BROKEN,
            http_status=None,
            error="invalid URL",
            verified_at=checked_at,
        )

    owned = fetcher is None
    active = fetcher or HttpFetcher(timeout_seconds=VERIFY_TIMEOUT_SECONDS)
    try:
        response = active.head(url)
        if response.status_code in _GET_FALLBACK_STATUSES:
            response = active.fetch(url)
    finally:
        if owned:
            active.close()

    result = VerificationResult(
        url=url,
        status=_classify(response),
        http_status=response.status_code or None,
        error=None if response.is_success else response.error,
        verified_at=checked_at,
    )
    logger.info("Verified %s: %s (%s)", url, result.status.value, result.http_status)
    return result


def _classify(response: FetchResult) -> VerificationStatus:
    if response.status_code == 0:
        return VerificationStatus.BROKEN
    if response.is_success:
        return VerificationStatus.VERIFIED
    if response.status_code in _BROKEN_STATUSES:
        return VerificationStatus.BROKEN
    return VerificationStatus.UNVERIFIED
