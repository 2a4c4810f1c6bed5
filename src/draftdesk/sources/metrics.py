"""On-chain metrics connector for a DefiLlama-compatible analytics API."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

from draftdesk.config import SourceSettings
from draftdesk.errors import ErrorKind, Result, failure, success
from draftdesk.http.fetcher import HttpFetcher
from draftdesk.models import MetricSnapshot

logger = logging.getLogger(__name__)

OVERVIEW_PARAMS = {
    "excludeTotalDataChart": "true",
    "excludeTotalDataChartBreakdown": "true",
}


class MetricsConnector:
    """Builds one `MetricSnapshot` for the configured chain."""

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
        self._base = settings.metrics_base_url.rstrip("/")
        self._subject = settings.metrics_subject

    def fetch(self) -> Result[MetricSnapshot]:
        chains = self._fetcher.fetch(f"{self._base}/v2/chains")
        if chains.timed_out:
            return failure(ErrorKind.SCRAPER_TIMEOUT, "Metrics API timed out.", url=chains.url)
        if not chains.is_success:
            return failure(
                ErrorKind.SCRAPER_FAILED,
                f"Metrics API error: {chains.error}",
                status=chains.status_code,
            )
        payload = chains.json()
        if not isinstance(payload, list):
            return failure(ErrorKind.INVALID_DATA_FORMAT, "Metrics API returned a non-list body.")
        chain = next(
            (
                entry
                for entry in payload
                if isinstance(entry, dict) and entry.get("name") == self._subject
            ),
            None,
        )
        if chain is None:
            return failure(
                ErrorKind.NO_DATA_AVAILABLE,
                f"{self._subject} data not found in metrics API.",
            )

        snapshot = MetricSnapshot(
            subject=self._subject,
            captured_at=self._now(),
            tvl=_as_float(chain.get("tvl")),
        )

        self._pause()
        history = self._fetcher.fetch(
            f"{self._base}/v2/historicalChainTvl/{quote(self._subject)}",
        )
        if history.is_success:
            snapshot.tvl_change_24h, snapshot.tvl_change_7d = tvl_changes(history.json())
        else:
            logger.warning("TVL history unavailable for %s: %s", self._subject, history.error)

        self._pause()
        snapshot.volume_24h = self._overview_total("dexs")
        self._pause()
        snapshot.fees_24h = self._overview_total("fees")

        logger.info("Metrics: %s snapshot with %d values.", self._subject, len(snapshot.metrics()))
        return success(snapshot)

    def _overview_total(self, kind: str) -> float | None:
        response = self._fetcher.fetch(
            f"{self._base}/overview/{kind}/{quote(self._subject)}",
            params=OVERVIEW_PARAMS,
        )
        if not response.is_success:
            logger.warning("Optional %s overview unavailable: %s", kind, response.error)
            return None
        payload = response.json()
        if not isinstance(payload, dict):
            return None
        return _as_float(payload.get("total24h"))

    def _pause(self) -> None:
        if self.settings.request_delay_seconds > 0:
            self._sleep(self.settings.request_delay_seconds)

    def close(self) -> None:
        self._fetcher.close()


def tvl_changes(history: Any) -> tuple[float | None, float | None]:
    """Percent change vs. the previous point and vs. the eighth most recent one.

    Short history falls back to the current value (0%); a zero reference
    value also yields 0%.
    """

    if not isinstance(history, list):
        return None, None
    values = [
        _as_float(point.get("tvl")) for point in history if isinstance(point, dict)
    ]
    series = [value for value in values if value is not None]
    if not series:
        return None, None
    current = series[-1]
    day_ago = series[-2] if len(series) >= 2 else current
    week_ago = series[-8] if len(series) >= 8 else current
    return _percent_change(current, day_ago), _percent_change(current, week_ago)


def _percent_change(current: float, reference: float) -> float:
    if reference == 0:
        return 0.0
    return (current - reference) / reference * 100


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
