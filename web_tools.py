# Web helper utilities for the MCP tools.
# Provides the shared HTTP GET helper, the error types every tool raises, and
# the URL -> markdown converter used by `web_url_read`.
from __future__ import annotations

import codecs
import logging
import re
import time
import urllib.error
import urllib.request

from bs4 import BeautifulSoup
from markdownify import markdownify as md

from text_filters import remove_links_from_text

logger = logging.getLogger(__name__)

DEFAULT_READ_TIMEOUT_MS = 10_000
DEFAULT_MAX_BYTES = 5_000_000

# Request headers sent on every call; callers may override single entries.
_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; mcp-searxng/0.4.6)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class WebToolError(RuntimeError):
    # Base for every failure raised while serving a tool call.
    pass


class ValidationError(WebToolError):
    # Missing or malformed tool arguments, detected before any network call.
    pass


class UpstreamError(WebToolError):
    # Non-2xx answer from the aggregator or from a fetched page.
    def __init__(self, message: str, *, status: int, reason: str = "", body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.body = body


class RequestTimeout(WebToolError):
    # The configured bound elapsed before the body was fully read.
    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"Request timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class ParseError(WebToolError):
    # Aggregator answered 2xx but the body is not the JSON we expect.
    pass


# Plain opener: standard redirect handling, no extra policy.
_OPENER = urllib.request.build_opener()


def _timeout_ms(timeout_s: float) -> int:
    # Error messages report the bound in milliseconds.
    return int(round(timeout_s * 1000))


def _set_read_timeout(resp, seconds: float) -> None:
    # Reach the socket under http.client's buffered reader, when there is one.
    sock = getattr(getattr(getattr(resp, "fp", None), "raw", None), "_sock", None)
    if sock is not None:
        sock.settimeout(seconds)


def http_get_bytes(
    url: str,
    *,
    timeout_s: float,
    max_bytes: int = DEFAULT_MAX_BYTES,
    headers: dict[str, str] | None = None,
) -> tuple[str, bytes]:
    """
    GET `url` and return `(content_type, body)`.

    `timeout_s` is an overall deadline: connecting and receiving headers are
    bounded by the socket timeout, and every body read gets only the time left
    before the deadline.
    Raises `UpstreamError` for non-2xx answers, `RequestTimeout` when the bound
    is exceeded, and `WebToolError` for other network failures.
    """
    # Merge caller headers over the defaults.
    req = urllib.request.Request(url, headers={**_DEFAULT_HEADERS, **(headers or {})})
    # Fix the deadline before any network activity.
    deadline = time.monotonic() + timeout_s
    logger.debug("GET %s (timeout %.1fs)", url, timeout_s)

    try:
        # The context manager closes the response on every exit path.
        with _OPENER.open(req, timeout=timeout_s) as resp:
            content_type = resp.headers.get("Content-Type", "") or ""
            # `read1` returns after one socket read instead of filling the buffer.
            read = getattr(resp, "read1", resp.read)
            chunks: list[bytes] = []
            total = 0
            while total < max_bytes:
                remaining = deadline - time.monotonic()
                # Deadline already spent (slow headers or a slow drip).
                if remaining <= 0:
                    raise RequestTimeout(_timeout_ms(timeout_s))
                # Next socket read may block for the remaining time only.
                _set_read_timeout(resp, remaining)
                chunk = read(min(64_000, max_bytes - total))
                if not chunk:
                    break
                chunks.append(chunk)
                total += len(chunk)
    except urllib.error.HTTPError as e:
        # Keep the error body; the aggregator explains failures there.
        body = ""
        try:
            body = e.read().decode("utf-8", errors="replace")
        except Exception:
            body = ""
        reason = str(e.reason or "")
        raise UpstreamError(f"HTTP {e.code} {reason}", status=e.code, reason=reason, body=body) from e
    except urllib.error.URLError as e:
        # urllib wraps connect-phase timeouts in URLError.
        if isinstance(e.reason, TimeoutError):
            raise RequestTimeout(_timeout_ms(timeout_s)) from e
        raise WebToolError(f"Network error while fetching {url}: {e.reason}") from e
    except TimeoutError as e:
        # Raised by a body read that outlived the remaining time.
        raise RequestTimeout(_timeout_ms(timeout_s)) from e

    # Lowercased content type keeps charset checks case-insensitive.
    return content_type.lower(), b"".join(chunks)


def _guess_encoding(content_type: str, raw: bytes) -> str:
    # Start with HTTP header charset when present.
    match = re.search(r"charset=([^\s;]+)", content_type or "", re.IGNORECASE)
    if match:
        encoding = match.group(1).strip("\"'").lower()
    else:
        # Otherwise look for a charset declaration in the HTML head.
        head = raw[:50_000].decode("utf-8", errors="ignore")
        match = re.search(r"charset\s*=\s*[\"']?([a-zA-Z0-9_\-]+)", head, re.IGNORECASE)
        encoding = match.group(1).lower() if match else "utf-8"
    # Unknown labels fall back to UTF-8 instead of failing the decode.
    try:
        codecs.lookup(encoding)
    except LookupError:
        return "utf-8"
    return encoding


def html_to_markdown(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    # Non-content blocks would otherwise leak code into the markdown.
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    # ATX headings (`# Title`) survive the whitespace collapse readably.
    return md(str(soup), heading_style="ATX")


def fetch_and_convert_to_markdown(url: str, timeout_ms: int = DEFAULT_READ_TIMEOUT_MS) -> str:
    """Fetch `url`, convert the HTML body to markdown and strip links from it."""
    # Non-string and blank inputs are both treated as a missing URL.
    url = (url or "").strip() if isinstance(url, str) else ""
    if not url:
        raise ValidationError("URL is empty.")

    try:
        content_type, raw = http_get_bytes(url, timeout_s=timeout_ms / 1000)
    except UpstreamError as e:
        # Page fetch failures report the status text only.
        raise UpstreamError(
            f"Failed to fetch the URL: {e.reason}",
            status=e.status,
            reason=e.reason,
            body=e.body,
        ) from e

    # Decode with replacement to avoid hard failures on mixed encodings.
    html = raw.decode(_guess_encoding(content_type, raw), errors="replace")
    return remove_links_from_text(html_to_markdown(html))
