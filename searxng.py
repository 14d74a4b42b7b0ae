# SearXNG search client.
# Builds the aggregator query, parses its JSON answer and renders the results
# as plain-text blocks for the `searxng_web_search` tool.
from __future__ import annotations

import json
import logging
import os
import urllib.parse
from dataclasses import dataclass
from typing import Any

from text_filters import remove_links_from_text
from web_tools import ParseError, UpstreamError, http_get_bytes

logger = logging.getLogger(__name__)

DEFAULT_SEARXNG_URL = "http://localhost:8080"

TIME_RANGES = ("day", "month", "year")
SAFESEARCH_LEVELS = ("0", "1", "2")


def _normalize_base_url(url: str) -> str:
    # Normalize and provide the local default instance.
    url = (url or "").strip()
    if not url:
        return DEFAULT_SEARXNG_URL
    # Allow values like `searxng:8080` by prepending HTTP scheme.
    if not url.startswith(("http://", "https://")):
        url = "http://" + url
    # Remove trailing slash so `/search` joins cleanly.
    return url.rstrip("/")


@dataclass(frozen=True)
class SearxngConfig:
    base_url: str = DEFAULT_SEARXNG_URL
    timeout_s: float = 30.0

    @staticmethod
    def from_env() -> "SearxngConfig":
        # Read instance URL and request bound from environment with safe defaults.
        base_url = _normalize_base_url(os.getenv("SEARXNG_URL", DEFAULT_SEARXNG_URL))
        timeout_s = float(os.getenv("SEARXNG_TIMEOUT_S", "30"))
        return SearxngConfig(base_url=base_url, timeout_s=timeout_s)


@dataclass(frozen=True)
class SearchResult:
    title: str
    content: str
    url: str
    score: float = 0

    @staticmethod
    def from_raw(item: dict[str, Any]) -> "SearchResult":
        """Normalize one aggregator item; URLs that look like video links are blanked."""
        # Upstream fields may be missing or null; coerce to text first.
        raw_url = str(item.get("url") or "")
        return SearchResult(
            title=remove_links_from_text(str(item.get("title") or "")),
            content=remove_links_from_text(str(item.get("content") or "")),
            # Case-sensitive substring check, not a content-type check.
            url="" if "video" in raw_url else raw_url,
            # Missing score counts as 0.
            score=item.get("score") or 0,
        )

    def render(self) -> str:
        # Four-line block per result; blocks are joined by a blank line.
        return (
            f"Title: {self.title}\n"
            f"Description: {self.content}\n"
            f"Score: {_format_number(self.score)}\n"
            f"URL: {self.url}"
        )


def _format_number(value: Any) -> str:
    # JSON numbers arrive as floats: 1.0 -> "1", 0.5 -> "0.5".
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_search_url(
    query: str,
    pageno: Any = 1,
    time_range: str | None = None,
    language: str | None = "all",
    safesearch: Any = None,
    *,
    base_url: str = DEFAULT_SEARXNG_URL,
) -> str:
    # Mandatory parameters: query, JSON output, page number.
    params: dict[str, str] = {"q": query, "format": "json", "pageno": _format_number(pageno)}

    # Optional filters are forwarded only when they hold a recognised value.
    if time_range in TIME_RANGES:
        params["time_range"] = time_range
    # `all` is the instance default, so it is never sent.
    if language and language != "all":
        params["language"] = str(language)
    # Accept 0-2 as int or str; booleans are not levels.
    if safesearch is not None and not isinstance(safesearch, bool) and str(safesearch) in SAFESEARCH_LEVELS:
        params["safesearch"] = str(safesearch)

    return f"{base_url}/search?{urllib.parse.urlencode(params)}"


def parse_results(payload: bytes) -> list[SearchResult]:
    try:
        # Parse JSON answer; decoding errors are replaced, not fatal.
        data = json.loads(payload.decode("utf-8", errors="replace"))
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON from SearXNG: {e}") from e
    if not isinstance(data, dict):
        raise ParseError("Unexpected response shape from SearXNG.")

    # A missing or null `results` field means no hits.
    raw_results = data.get("results") or []
    if not isinstance(raw_results, list):
        raise ParseError("Unexpected response shape from SearXNG.")
    # Items are independent; `map` keeps the upstream order.
    return list(map(SearchResult.from_raw, (r for r in raw_results if isinstance(r, dict))))


def web_search(
    query: str,
    pageno: Any = 1,
    time_range: str | None = None,
    language: str | None = "all",
    safesearch: Any = None,
    *,
    config: SearxngConfig | None = None,
) -> str:
    # Configuration is resolved at call time unless injected.
    config = config or SearxngConfig.from_env()
    url = build_search_url(
        query,
        pageno,
        time_range,
        language,
        safesearch,
        base_url=config.base_url,
    )

    # One GET per search; no retries.
    try:
        _, payload = http_get_bytes(
            url,
            timeout_s=config.timeout_s,
            headers={"Accept": "application/json"},
        )
    except UpstreamError as e:
        # Message carries status, reason and the upstream body.
        raise UpstreamError(
            f"SearXNG API error: {e.status} {e.reason}\n{e.body}",
            status=e.status,
            reason=e.reason,
            body=e.body,
        ) from e

    results = parse_results(payload)
    logger.debug("SearXNG returned %d results for %r", len(results), query)
    return "\n\n".join(r.render() for r in results)
