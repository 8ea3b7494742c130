import json

import pytest
import requests

from semaphore_sms import shared_cache


def make_response(status=200, body=b"", url="https://semaphore.co/api/v4/", reason=None):
    """Build a real requests.Response so raise_for_status/json behave as in production"""
    if not isinstance(body, bytes):
        body = json.dumps(body).encode("utf-8")
    response = requests.Response()
    response.status_code = status
    response._content = body
    response.encoding = "utf-8"
    response.url = url
    response.reason = reason
    return response


class FakeSession:
    """Stands in for requests.Session and records every request"""

    def __init__(self, responses=None):
        # Each item is a Response to return or an exception to raise;
        # the last one is reused once the list runs out
        self.responses = list(responses or [make_response(200, {"ok": True})])
        self.calls = []
        self.closed = False

    def request(self, method, url, params=None, data=None, timeout=None):
        self.calls.append({
            "method": method,
            "url": url,
            "params": params,
            "data": data,
            "timeout": timeout,
        })
        outcome = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def close(self):
        self.closed = True


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for name in ("SEMAPHORE_API_KEY", "SEMAPHORE_CONFIG", "XDG_CONFIG_HOME"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    shared_cache().clear()
    yield
    shared_cache().clear()
