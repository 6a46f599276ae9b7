import json
import os

import pytest
from requests import Response
from requests.structures import CaseInsensitiveDict

from mtls_gateway.config import GatewayConfig


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No GATEWAY_* variables and no stray .env file leak into a test."""
    for name in list(os.environ):
        if name.upper().startswith("GATEWAY_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def gateway_env(monkeypatch):
    monkeypatch.setenv("GATEWAY_HMAC_SECRET", "env-secret")
    monkeypatch.setenv("GATEWAY_CERT_PATH", "/env/cert.pem")
    monkeypatch.setenv("GATEWAY_KEY_PATH", "/env/key.pem")


@pytest.fixture
def config():
    return GatewayConfig(
        hmac_secret="top-secret",
        cert_path="/path/to/cert.pem",
        key_path="/path/to/key.pem",
    )


def make_response(status=200, body="", headers=None, url="https://gateway.test/pay"):
    response = Response()
    response.status_code = status
    response.headers = CaseInsensitiveDict(headers or {})
    response._content = body.encode("utf-8") if isinstance(body, str) else json.dumps(body).encode("utf-8")
    response.encoding = "utf-8"
    response.url = url
    return response


class FakeSession:
    """Stands in for requests.Session; records every get()."""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else make_response(200, "ok")
        self.error = error
        self.calls = []
        self.closed = False

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response

    def close(self):
        self.closed = True
