"""HTTP client wrapper with a hard timeout and structured results."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; DraftDeskBot/1.0)"


@dataclass(slots=True)
class FetchResult:
    """Result of an HTTP request.

    `status_code` is 0 when no response was received; `timed_out` separates
    timeouts from other transport failures.
    """

    url: str
    status_code: int
    content: str
    content_type: str
    is_success: bool
    error: str | None = None
    timed_out: bool = False

    def json(self) -> Any | None:
        """Decode the body as JSON, returning None for empty or invalid payloads."""

        if not self.content:
            return None
        try:
            return json.loads(self.content)
        except json.JSONDecodeError:
            return None


class HttpFetcher:
    """Single-attempt HTTP client with timeout and user-agent configuration.

    Requests are never retried here; callers decide what a failure means.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(timeout_seconds, connect=min(timeout_seconds, 10.0))
        base_headers = {"User-Agent": user_agent}
        if headers:
            base_headers.update(headers)
        self._client = httpx.Client(
            timeout=self._timeout,
            headers=base_headers,
            transport=transport or httpx.HTTPTransport(retries=0),
            follow_redirects=True,
        )

    def fetch(
        self,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> FetchResult:
        """GET `url`, returning a structured result instead of raising."""

        return self._request("GET", url, params=params, headers=headers)

    def head(self, url: str, *, headers: dict[str, str] | None = None) -> FetchResult:
        return self._request("HEAD", url, headers=headers)

    def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> FetchResult:
        try:
            response = self._client.request(method, url, params=params, headers=headers)
            content_type = response.headers.get("content-type", "")
            return FetchResult(
                url=url,
                status_code=response.status_code,
                content=response.text,
                content_type=content_type,
                is_success=response.is_success,
                error=None if response.is_success else f"HTTP {response.status_code}",
            )
        except httpx.TimeoutException:
            logger.warning("Timeout fetching %s", url)
            return FetchResult(
                url=url,
                status_code=0,
                content="",
                content_type="",
                is_success=False,
                error="timeout",
                timed_out=True,
            )
        except httpx.HTTPError as exc:
            logger.warning("HTTP error fetching %s: %s", url, exc)
            return FetchResult(
                url=url,
                status_code=0,
                content="",
                content_type="",
                is_success=False,
                error=str(exc) or exc.__class__.__name__,
            )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
