# Link and citation stripping shared by the search and URL-read tools.
from __future__ import annotations

import re


# Markdown link syntax: keep the label, drop the target.
_MD_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]+\)")
# Bare web links.
_HTTP_URL_RE = re.compile(r"https?://[^\s]+")
_WWW_URL_RE = re.compile(r"www\.[^\s]+")
# Numeric citation markers such as [1], [23].
_CITATION_RE = re.compile(r"\[\d+\]")
_MULTI_SPACE_RE = re.compile(r"\s{2,}")


def _strip_once(text: str) -> str:
    text = _MD_LINK_RE.sub(r"\1", text)
    text = _HTTP_URL_RE.sub("", text)
    text = _WWW_URL_RE.sub("", text)
    text = _CITATION_RE.sub("", text)
    # Collapse whitespace runs left behind by the removals.
    text = _MULTI_SPACE_RE.sub(" ", text)
    return text.strip()


def remove_links_from_text(text: str | None) -> str:
    """
    Strip markdown links (keeping the label), bare URLs, `www.` links and
    numeric citation markers, then collapse whitespace.

    Removals can expose new matches (e.g. nested `[[a](b)](c)`), so the pass
    repeats until the text is stable. Every pass either shortens the text or
    leaves it unchanged.
    """
    # Guard against None from loosely typed upstream JSON.
    text = text or ""
    while True:
        cleaned = _strip_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned
