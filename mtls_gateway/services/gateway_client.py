"""
Gateway Client

Signs a payload, sends it as a GET query string over mutual TLS and
classifies the response.

Outcomes of get():
- 2xx: the requests.Response is returned untouched
- any other status: HttpError(status_code, body, headers)
- no response at all (TLS, DNS, timeout, bad key file): TransportError
- bad input (empty endpoint, malformed URL, non-scalar value): ConfigurationError

No retries, no caching; one call is one request.
"""
import logging
import threading
import weakref
from typing import Any, Iterable, Mapping, Optional

import requests

from ..config import GatewayConfig, default_endpoint
from ..exceptions import ConfigurationError, HttpError, TransportError
from .canonicalizer import Payload, query_params
from .signature_service import HmacSigner
from .transport import create_session

logger = logging.getLogger(__name__)

_BAD_URL_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
)


class GatewayClient:
    """
    mTLS + HMAC client for a single gateway endpoint.

    Args:
        config: Immutable connection profile
        http: Pre-built session to use instead of building one. It is
            shared by all threads and calls through it are serialized.
        signer: Signer to use (defaults to HmacSigner)
        transport_options: Extra options merged over the mTLS options when
            sessions are built (see transport.create_session)

    Without ``http`` each thread gets its own session built from the same
    fixed options, since requests.Session is not documented as thread-safe.
    A thread's session is closed when that thread ends or on close().
    """

    def __init__(
        self,
        config: GatewayConfig,
        http: Optional[requests.Session] = None,
        signer: Optional[HmacSigner] = None,
        transport_options: Optional[Mapping[str, Any]] = None
    ):
        self.config = config
        self.signer = signer or HmacSigner()
        self._transport_options = dict(transport_options or {})
        self._shared_http = http
        self._shared_lock = threading.Lock()
        self._local = threading.local()
        self._owned_sessions: "weakref.WeakSet[requests.Session]" = weakref.WeakSet()
        self._owned_lock = threading.Lock()

    @classmethod
    def from_env(cls, **kwargs: Any) -> "GatewayClient":
        """Client whose profile comes entirely from GATEWAY_* variables."""
        return cls(GatewayConfig.from_env(), **kwargs)

    def __enter__(self) -> "GatewayClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close sessions this client built. An injected session is left open."""
        with self._owned_lock:
            sessions = list(self._owned_sessions)
            self._owned_sessions.clear()
        for session in sessions:
            session.close()
        self._local = threading.local()

    def _session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = create_session(self.config, self._transport_options)
            self._local.session = session
            # only the thread-local slot keeps the session alive
            weakref.finalize(session, _close_adapters, list(session.adapters.values()))
            with self._owned_lock:
                self._owned_sessions.add(session)
        return session

    # ========================================================================
    # Requests
    # ========================================================================

    def get(self, endpoint_url: str, payload: Payload) -> requests.Response:
        """
        Send a signed GET to the gateway.

        Args:
            endpoint_url: Absolute gateway URL (or relative to base_url)
            payload: Query parameters; the signature covers their canonical form

        Returns:
            The 2xx requests.Response

        Raises:
            ConfigurationError: Empty or malformed endpoint, invalid payload value
            HttpError: Gateway answered outside [200, 300)
            TransportError: No response was received
        """
        if not endpoint_url or not endpoint_url.strip():
            raise ConfigurationError("Endpoint URL must not be empty")

        signature = self.signer.sign(
            payload,
            self.config.hmac_secret.get_secret_value(),
            self.config.hmac_algo
        )
        params = query_params(payload)
        headers = {self.config.signature_header: signature}

        logger.debug(
            f"GET {endpoint_url} with {len(params)} params, "
            f"{self.config.signature_header} signed using {self.config.hmac_algo}"
        )
        response = self._send(endpoint_url, params, headers)
        logger.debug(f"Gateway responded {response.status_code} for {endpoint_url}")

        if response.status_code < 200 or response.status_code >= 300:
            raise HttpError.from_response(response)

        return response

    def get_from_default_endpoint(self, payload: Payload) -> requests.Response:
        """Same as get() against GATEWAY_ENDPOINT."""
        return self.get(default_endpoint(), payload)

    def _send(self, url: str, params: Mapping[str, Optional[str]], headers: Mapping[str, str]) -> requests.Response:
        try:
            if self._shared_http is not None:
                with self._shared_lock:
                    return self._shared_http.get(
                        url,
                        params=params,
                        headers=headers,
                        timeout=(self.config.connect_timeout_seconds, self.config.timeout_seconds)
                    )
            return self._session().get(url, params=params, headers=headers)
        except _BAD_URL_ERRORS as exc:
            raise ConfigurationError(f"Invalid endpoint URL: {url}", {"endpoint_url": url}) from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"Request to {url} failed: {exc}", exc) from exc


def _close_adapters(adapters: Iterable[requests.adapters.BaseAdapter]) -> None:
    for adapter in adapters:
        adapter.close()
