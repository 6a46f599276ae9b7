"""
mTLS Transport Binding

Translates a GatewayConfig into requests transport settings:

- client certificate / private key (+ passphrase) on an SSL context
- server verification: on, off, or a custom CA bundle
- (connect, read) timeouts applied to every request

The binding is fixed when the session is built; requests made through it
reuse the same settings.
"""
import logging
import ssl
import threading
from http.cookiejar import DefaultCookiePolicy
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.ssl_ import create_urllib3_context

from ..config import GatewayConfig

logger = logging.getLogger(__name__)


def mtls_options(config: GatewayConfig) -> Dict[str, Any]:
    """
    Transport options derived from the connection profile.

    Returns:
        {
            "cert": (cert_path, passphrase or ""),
            "ssl_key": (key_path, passphrase or ""),
            "verify": True | False | "/path/to/ca-bundle.pem",
            "timeout": timeout_seconds,
            "connect_timeout": connect_timeout_seconds
        }
    """
    passphrase = config.passphrase or ""
    return {
        "cert": (config.cert_path, passphrase),
        "ssl_key": (config.key_path, passphrase),
        "verify": config.verify.as_transport(),
        "timeout": config.timeout_seconds,
        "connect_timeout": config.connect_timeout_seconds,
    }


class MtlsAdapter(HTTPAdapter):
    """
    HTTPS adapter presenting a client certificate.

    requests' own ``cert`` option cannot decrypt a protected key, so the
    chain is loaded onto a urllib3 SSL context instead. Files are read on
    the first request, not at construction.
    """

    def __init__(
        self,
        cert_file: str,
        key_file: str,
        password: str = "",
        verify: Union[bool, str] = True,
        **kwargs: Any
    ):
        self.cert_file = cert_file
        self.key_file = key_file
        self._password = password
        self._ssl_context = create_urllib3_context(
            cert_reqs=ssl.CERT_REQUIRED if verify is not False else ssl.CERT_NONE
        )
        self._chain_loaded = False
        self._chain_lock = threading.Lock()
        super().__init__(**kwargs)

    def init_poolmanager(self, connections, maxsize, block=False, **pool_kwargs):
        pool_kwargs["ssl_context"] = self._ssl_context
        return super().init_poolmanager(connections, maxsize, block, **pool_kwargs)

    def proxy_manager_for(self, proxy, **proxy_kwargs):
        proxy_kwargs["ssl_context"] = self._ssl_context
        return super().proxy_manager_for(proxy, **proxy_kwargs)

    @property
    def chain_loaded(self) -> bool:
        return self._chain_loaded

    def load_client_chain(self) -> None:
        """
        Load the certificate/key pair onto the SSL context once.

        Raises:
            requests.exceptions.SSLError: If a file is missing, malformed,
                or the passphrase does not decrypt the key
        """
        with self._chain_lock:
            if self._chain_loaded:
                return
            try:
                self._ssl_context.load_cert_chain(self.cert_file, self.key_file, password=self._password)
            except OSError as exc:  # ssl.SSLError included
                raise requests.exceptions.SSLError(
                    f"Unable to load client certificate {self.cert_file} / key {self.key_file}: {exc}"
                ) from exc
            self._chain_loaded = True
            logger.debug(f"Loaded client certificate chain from {self.cert_file}")

    def send(self, request, **kwargs):
        self.load_client_chain()
        return super().send(request, **kwargs)


class GatewaySession(requests.Session):
    """
    requests.Session bound to one set of transport options.

    Applies the configured (connect, read) timeout and server verification
    unless a call passes its own, resolves relative URLs against ``base_url``
    and never keeps cookies. Verification travels with each request so
    REQUESTS_CA_BUNDLE/CURL_CA_BUNDLE cannot replace it.
    """

    def __init__(self, options: Mapping[str, Any]):
        super().__init__()
        self.options: Dict[str, Any] = dict(options)
        self.base_url: Optional[str] = self.options.get("base_url")
        self.default_timeout: Tuple[Any, Any] = (
            self.options.get("connect_timeout"),
            self.options.get("timeout"),
        )
        self.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    def request(self, method, url, *args, **kwargs):
        kwargs.setdefault("timeout", self.default_timeout)
        kwargs.setdefault("verify", self.options.get("verify", True))
        if self.base_url:
            url = urljoin(self.base_url, url)
        return super().request(method, url, *args, **kwargs)


def _path_and_password(entry: Union[str, Sequence[str]]) -> Tuple[str, str]:
    if isinstance(entry, str):
        return entry, ""
    path, *rest = entry
    return path, (rest[0] if rest else "") or ""


def create_session(config: GatewayConfig, extra: Optional[Mapping[str, Any]] = None) -> GatewaySession:
    """
    Build the HTTP session for a gateway client.

    Args:
        config: Connection profile
        extra: Additional options merged over the derived ones; caller keys
            win on collision. Understood keys besides the mTLS ones:
            base_url, headers, adapters ({url_prefix: adapter}).

    Returns:
        GatewaySession with the mTLS adapter mounted for https://
    """
    options = {**mtls_options(config), **(extra or {})}

    session = GatewaySession(options)
    session.verify = options["verify"]

    cert_file, cert_password = _path_and_password(options["cert"])
    key_file, key_password = _path_and_password(options["ssl_key"])
    session.mount(
        "https://",
        MtlsAdapter(cert_file, key_file, password=key_password or cert_password, verify=options["verify"])
    )

    if options.get("headers"):
        session.headers.update(options["headers"])

    for prefix, adapter in (options.get("adapters") or {}).items():
        session.mount(prefix, adapter)

    logger.debug(
        f"Created gateway session: cert={cert_file}, verify={options['verify']}, "
        f"timeout={session.default_timeout}"
    )
    return session
