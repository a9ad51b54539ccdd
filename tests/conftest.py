import json
from unittest.mock import MagicMock

import pytest

from sapo import AsyncRateLimiter, RateLimiter

SAPO_ENV = (
    "SAPO_AUTH_TYPE",
    "SAPO_STORE",
    "SAPO_API_KEY",
    "SAPO_API_SECRET",
    "SAPO_SECRET_KEY",
    "SAPO_REDIRECT_URI",
)


class FakeClockLimiter(RateLimiter):
    """RateLimiter on a manual clock; sleeping advances the clock instead of blocking."""

    def __init__(self, *args, **kwargs):
        self.clock = 1000.0
        self.sleeps = []
        super().__init__(*args, **kwargs)

    def _now(self):
        return self.clock

    def _sleep(self, delay):
        self.sleeps.append(delay)
        self.clock += delay


class FakeClockAsyncLimiter(AsyncRateLimiter):
    def __init__(self, *args, **kwargs):
        self.clock = 1000.0
        self.sleeps = []
        super().__init__(*args, **kwargs)

    def _now(self):
        return self.clock

    async def _sleep(self, delay):
        self.sleeps.append(delay)
        self.clock += delay


def fake_response(status=200, body=None, headers=None):
    """Stand-in for requests.Response with just what the transport reads."""
    resp = MagicMock()
    resp.status_code = status
    resp.headers = headers or {}
    if body is None:
        resp.content = b""
        resp.json.side_effect = ValueError("no body")
        resp.text = ""
    else:
        raw = json.dumps(body)
        resp.content = raw.encode()
        resp.json.return_value = body
        resp.text = raw
    return resp


@pytest.fixture(autouse=True)
def _clean_sapo_env(monkeypatch):
    for name in SAPO_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def private_config():
    return {
        "type": "private",
        "store": "demo.mysapo.net",
        "api_key": "key",
        "api_secret": "secret",
    }


@pytest.fixture
def oauth_config():
    return {
        "type": "oauth",
        "store": "demo.mysapo.net",
        "api_key": "client-id",
        "secret_key": "shh",
        "redirect_uri": "https://app.example/callback",
    }


@pytest.fixture
def session():
    sess = MagicMock()
    sess.request.return_value = fake_response(200, {})
    return sess
