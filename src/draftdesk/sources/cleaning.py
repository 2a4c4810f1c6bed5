"""Text and link helpers for news summaries and social posts."""

from __future__ import annotations

import html
import re
from urllib.parse import parse_qsl, urlencode, urlparse

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")
_LINK_RE = re.compile(r"https?://\S+")
# WordPress-driven feeds append this to every description.
_FEED_FOOTER_RE = re.compile(r"\s*The post .+? appeared first on .+?\.?$", re.IGNORECASE)
_READ_MORE_RE = re.compile(r"\s*(\[(\.\.\.|…)\]|(continue|read) (reading|more)\W*)$", re.IGNORECASE)

TRACKING_PARAMS = frozenset({"fbclid", "gclid", "mc_cid", "mc_eid", "ref"})
DEFAULT_PORTS = frozenset({80, 443})


def html_to_text(raw_html: str) -> str:
    """Plain-text summary from feed markup, without feed footers and read-more tails."""

    if not raw_html:
        return ""
    text = _TAG_RE.sub(" ", _SCRIPT_STYLE_RE.sub(" ", raw_html))
    text = _WHITESPACE_RE.sub(" ", html.unescape(text)).strip()
    text = _FEED_FOOTER_RE.sub("", text)
    return _READ_MORE_RE.sub("", text).strip()


def truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars].rstrip()


def strip_links(text: str) -> str:
    return _LINK_RE.sub("", text).strip()


def article_key(url: str) -> str:
    """Dedup key for a news link.

    The same story syndicated by two feeds differs only in scheme, `www.`,
    default port, trailing slash, tracking parameters or fragment; all of
    those are dropped from the key.
    """

    parsed = urlparse(url.strip())
    host = (parsed.hostname or "").removeprefix("www.")
    try:
        port = parsed.port
    except ValueError:
        port = None
    if port is not None and port not in DEFAULT_PORTS:
        host = f"{host}:{port}"

    query = sorted(
        (name, value)
        for name, value in parse_qsl(parsed.query, keep_blank_values=True)
        if not name.lower().startswith("utm_") and name.lower() not in TRACKING_PARAMS
    )
    key = host + (parsed.path.rstrip("/") or "/")
    if query:
        key += "?" + urlencode(query)
    return key


def extract_domain(url: str) -> str:
    return urlparse(url).netloc.lower() or "unknown"
