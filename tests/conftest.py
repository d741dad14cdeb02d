from __future__ import annotations

import os
import types

import pytest

# main.py reads its configuration at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["CAPTCHA_ENABLED"] = "1"
os.environ["RECAPTCHA_SECRET_KEY"] = "test-recaptcha-secret"


class StubResponse:
    """Minimal stand-in for a streamed requests.Response."""

    def __init__(self, body: bytes = b"", read_error: Exception | None = None):
        self._body = body
        self._read_error = read_error
        self.closed = False

    @property
    def content(self) -> bytes:
        if self._read_error is not None:
            raise self._read_error
        return self._body

    def close(self) -> None:
        self.closed = True


class StubClient:
    """Records every POST and answers with a canned response or error."""

    def __init__(self, body: bytes = b"", error: Exception | None = None, read_error=None):
        self.body = body
        self.error = error
        self.read_error = read_error
        self.calls: list[dict] = []
        self.responses: list[StubResponse] = []

    def post(self, url, data=None, timeout=None, stream=False):
        self.calls.append({"url": url, "data": data, "timeout": timeout, "stream": stream})
        if self.error is not None:
            raise self.error
        response = StubResponse(self.body, self.read_error)
        self.responses.append(response)
        return response


def make_request(form: dict | None = None, remote_addr: str | None = "203.0.113.7:5123"):
    return types.SimpleNamespace(form=form if form is not None else {}, remote_addr=remote_addr)


SUCCESS_BODY = (
    b'{"success":true,"hostname":"example.com",'
    b'"challenge_ts":"2024-01-01T00:00:00Z","error-codes":[]}'
)
FAILURE_BODY = b'{"success":false,"error-codes":["invalid-input-response"]}'


@pytest.fixture
def valid_request():
    return make_request({"g-recaptcha-response": "token-123"})
