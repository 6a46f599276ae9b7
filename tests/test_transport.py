import pytest
import requests
from requests.adapters import BaseAdapter

from conftest import make_response
from mtls_gateway.config import GatewayConfig
from mtls_gateway.services.transport import GatewaySession, MtlsAdapter, create_session, mtls_options


class RecordingAdapter(BaseAdapter):
    def __init__(self, status=200):
        super().__init__()
        self.status = status
        self.sent = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.sent.append({"request": request, "timeout": timeout, "verify": verify})
        response = make_response(self.status, "ok", url=request.url)
        response.request = request
        return response

    def close(self):
        pass


def test_options_minimal_config(config):
    assert mtls_options(config) == {
        "cert": ("/path/to/cert.pem", ""),
        "ssl_key": ("/path/to/key.pem", ""),
        "verify": True,
        "timeout": 15,
        "connect_timeout": 10,
    }


def test_options_with_passphrase():
    config = GatewayConfig(hmac_secret="s", cert_path="/path/to/cert.pem", key_path="/path/to/key.pem", key_passphrase="my-passphrase")

    options = mtls_options(config)

    assert options["cert"] == ("/path/to/cert.pem", "my-passphrase")
    assert options["ssl_key"] == ("/path/to/key.pem", "my-passphrase")


def test_options_with_empty_passphrase():
    config = GatewayConfig(hmac_secret="s", cert_path="/c.pem", key_path="/k.pem", key_passphrase="")

    options = mtls_options(config)

    assert options["cert"] == ("/c.pem", "")
    assert options["ssl_key"] == ("/k.pem", "")


@pytest.mark.parametrize("verify, expected", [(False, False), (True, True), ("/path/to/ca-bundle.pem", "/path/to/ca-bundle.pem")])
def test_options_verify_passed_through(verify, expected):
    config = GatewayConfig(hmac_secret="s", cert_path="/c.pem", key_path="/k.pem", verify=verify)

    assert mtls_options(config)["verify"] == expected


def test_options_custom_timeouts():
    config = GatewayConfig(hmac_secret="s", cert_path="/c.pem", key_path="/k.pem", timeout_seconds=60, connect_timeout_seconds=30)

    options = mtls_options(config)

    assert options["timeout"] == 60
    assert options["connect_timeout"] == 30


def test_create_session_binds_mtls_settings():
    config = GatewayConfig(
        hmac_secret="s",
        cert_path="/complex/path/cert.pem",
        key_path="/complex/path/key.pem",
        key_passphrase="complex-pass",
        verify="/custom/ca.pem",
        timeout_seconds=60,
        connect_timeout_seconds=30,
    )

    session = create_session(config)

    assert isinstance(session, GatewaySession)
    assert isinstance(session, requests.Session)
    assert session.verify == "/custom/ca.pem"
    assert session.default_timeout == (30, 60)
    adapter = session.get_adapter("https://gateway.example.com/")
    assert isinstance(adapter, MtlsAdapter)
    assert adapter.cert_file == "/complex/path/cert.pem"
    assert adapter.key_file == "/complex/path/key.pem"


def test_cert_files_are_not_read_at_construction(config):
    session = create_session(config)

    adapter = session.get_adapter("https://gateway.example.com/")
    assert adapter.chain_loaded is False


def test_extra_options_override_derived_ones(config):
    session = create_session(config, {"timeout": 30, "custom_option": "custom_value"})

    assert session.default_timeout == (10, 30)
    assert session.options["timeout"] == 30
    assert session.options["custom_option"] == "custom_value"
    assert session.options["cert"] == ("/path/to/cert.pem", "")


def test_extra_headers_and_base_url(config):
    recorder = RecordingAdapter()
    session = create_session(
        config,
        {
            "base_url": "https://example.com/api/",
            "headers": {"User-Agent": "Test-Client/1.0"},
            "adapters": {"https://example.com": recorder},
        },
    )

    session.get("status", params={"a": "1"})

    sent = recorder.sent[0]["request"]
    assert sent.url == "https://example.com/api/status?a=1"
    assert sent.headers["User-Agent"] == "Test-Client/1.0"


def test_default_timeout_applied_to_requests(config):
    recorder = RecordingAdapter()
    session = create_session(config, {"adapters": {"https://gateway.test": recorder}})

    session.get("https://gateway.test/pay")
    session.get("https://gateway.test/pay", timeout=3)

    assert recorder.sent[0]["timeout"] == (10, 15)
    assert recorder.sent[1]["timeout"] == 3


def test_verify_reaches_the_adapter():
    config = GatewayConfig(hmac_secret="s", cert_path="/c.pem", key_path="/k.pem", verify=False)
    recorder = RecordingAdapter()
    session = create_session(config, {"adapters": {"https://gateway.test": recorder}})

    session.get("https://gateway.test/pay")

    assert recorder.sent[0]["verify"] is False


def test_missing_certificate_raises_ssl_error(tmp_path):
    config = GatewayConfig(hmac_secret="s", cert_path=str(tmp_path / "missing.pem"), key_path=str(tmp_path / "missing-key.pem"))
    adapter = create_session(config).get_adapter("https://gateway.example.com/")

    with pytest.raises(requests.exceptions.SSLError, match="Unable to load client certificate"):
        adapter.load_client_chain()

    assert adapter.chain_loaded is False


def test_malformed_certificate_raises_ssl_error(tmp_path):
    cert = tmp_path / "cert.pem"
    key = tmp_path / "key.pem"
    cert.write_text("not a certificate")
    key.write_text("not a key")
    config = GatewayConfig(hmac_secret="s", cert_path=str(cert), key_path=str(key))
    session = create_session(config)

    with pytest.raises(requests.exceptions.SSLError):
        session.get("https://gateway.example.com/")


@pytest.mark.parametrize("verify", [False, "/custom/ca.pem"])
@pytest.mark.parametrize("env_var", ["REQUESTS_CA_BUNDLE", "CURL_CA_BUNDLE"])
def test_verify_wins_over_ca_bundle_env(monkeypatch, verify, env_var):
    monkeypatch.setenv(env_var, "/etc/ssl/certs/ca-certificates.crt")
    config = GatewayConfig(hmac_secret="s", cert_path="/c.pem", key_path="/k.pem", verify=verify)
    recorder = RecordingAdapter()
    session = create_session(config, {"adapters": {"https://gateway.test": recorder}})

    session.get("https://gateway.test/pay")

    assert recorder.sent[0]["verify"] == verify


def test_explicit_verify_per_call_still_honoured(config):
    recorder = RecordingAdapter()
    session = create_session(config, {"adapters": {"https://gateway.test": recorder}})

    session.get("https://gateway.test/pay", verify=False)

    assert recorder.sent[0]["verify"] is False
