"""
Gateway Exception Hierarchy

Error codes are namespaced with a gateway: prefix so callers can branch on
the failure kind without inspecting message strings.
"""
from typing import Optional, Dict, Any, Mapping, List


class GatewayError(Exception):
    """
    Base exception for all gateway client errors.

    Every subclass carries a stable error code, a human readable message and
    an optional details mapping that is safe to log (no secrets).
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a serializable error payload."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class ConfigurationError(GatewayError):
    """
    Missing or invalid configuration.

    Examples:
    - Empty HMAC secret, certificate path or key path
    - Unsupported HMAC algorithm
    - Empty endpoint URL or missing GATEWAY_ENDPOINT

    Raised before any network or crypto work takes place.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("gateway:config:invalid", message, details)


class HttpError(GatewayError):
    """
    The gateway answered with a status outside [200, 300).

    Carries the exact status code, raw body and response headers so the
    caller can inspect the rejection.
    """

    def __init__(
        self,
        status_code: int,
        body: str,
        headers: Optional[Mapping[str, str]] = None
    ):
        self.status_code = status_code
        self.body = body
        self.headers: Dict[str, str] = dict(headers or {})
        super().__init__(
            "gateway:http:unexpected_status",
            f"Unexpected HTTP status code: {status_code}",
            {"status_code": status_code}
        )

    @classmethod
    def from_response(cls, response) -> "HttpError":
        """Build from a requests.Response."""
        return cls(response.status_code, response.text, response.headers)


class TransportError(GatewayError):
    """
    The request never produced a response.

    Examples:
    - TLS handshake rejected (bad or missing client certificate)
    - DNS resolution or connection failure
    - Connect or read timeout
    - Unreadable or malformed certificate/key file

    The underlying exception is kept on ``original`` and as ``__cause__``.
    """

    def __init__(self, message: str, original: Optional[BaseException] = None):
        self.original = original
        details = {"exception": type(original).__name__} if original is not None else None
        super().__init__("gateway:transport:failed", message, details)


def validation_details(errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Strip input values from pydantic errors so secrets never reach details."""
    return {
        "errors": [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in errors
        ]
    }
