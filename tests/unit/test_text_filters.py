"""Unit tests for remove_links_from_text: links, citations, whitespace."""
import re

import pytest

from text_filters import remove_links_from_text


def test_markdown_link_and_citation():
    assert remove_links_from_text("See [docs](http://example.com/x) [1]") == "See docs"


def test_removes_bare_urls():
    text = "Go to https://example.com/a?b=c now or http://x.org"
    assert remove_links_from_text(text) == "Go to now or"


def test_removes_www_links():
    assert remove_links_from_text("visit www.example.com/page today") == "visit today"


def test_removes_citations_only_when_numeric():
    assert remove_links_from_text("fact [12] and [note]") == "fact and [note]"


def test_collapses_whitespace_and_trims():
    assert remove_links_from_text("  a \n\n b\t\tc  ") == "a b c"


def test_empty_and_none():
    assert remove_links_from_text("") == ""
    assert remove_links_from_text(None) == ""


def test_plain_text_unchanged():
    assert remove_links_from_text("nothing to strip here") == "nothing to strip here"


def test_nested_markdown_links_fully_stripped():
    assert remove_links_from_text("[[a](b)](c)") == "a"


SAMPLES = [
    "See [docs](http://example.com/x) [1]",
    "[[a](b)](c) and [x][1](y)",
    "ww[3]w.example.com text",
    "http[1]://host.example/path",
    "Mixed   www.a.b [label](https://t.co)\n\n[7]   end",
    "# Heading\n\nParagraph with [link](/relative) and https://x.y/z",
]


@pytest.mark.parametrize("text", SAMPLES)
def test_idempotent(text):
    once = remove_links_from_text(text)
    assert remove_links_from_text(once) == once


@pytest.mark.parametrize("text", SAMPLES)
def test_no_links_remain(text):
    out = remove_links_from_text(text)
    assert not re.search(r"https?://", out)
    assert not re.search(r"www\.\S", out)
    assert not re.search(r"\[[^\]]*\]\([^)]+\)", out)
