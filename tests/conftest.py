"""Pytest config: PYTHONPATH, env and a fake HTTP response for tests."""
import io
import os
import sys
from pathlib import Path

import pytest

root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(root))
os.environ.pop("SEARXNG_URL", None)


class FakeResponse:
    """Stand-in for the object returned by `urllib` openers."""

    def __init__(self, body: bytes, content_type: str = "text/html; charset=utf-8"):
        self._buf = io.BytesIO(body)
        self.headers = {"Content-Type": content_type}
        self.closed = False

    def read(self, n: int = -1) -> bytes:
        return self._buf.read(n)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False


@pytest.fixture
def fake_response():
    return FakeResponse
