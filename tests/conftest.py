import pytest

from app.providers import http_fetch
from app.providers.http_fetch import FetchResult


class FakeFetch:
    """Stands in for http_fetch.fetch_url; records every outbound call."""

    def __init__(self):
        self.calls = []
        self.result = FetchResult(200, "OK", "{}")
        self.exc = None

    def respond(self, status_code, body, reason="OK"):
        self.result = FetchResult(status_code, reason, body)
        self.exc = None

    def fail(self, exc):
        self.exc = exc

    async def __call__(self, url, headers=None, timeout_ms=None, transport=None):
        self.calls.append({"url": url, "headers": dict(headers or {})})
        if self.exc is not None:
            raise self.exc
        return self.result


@pytest.fixture
def fake_fetch(monkeypatch):
    fake = FakeFetch()
    monkeypatch.setattr(http_fetch, "fetch_url", fake)
    return fake
