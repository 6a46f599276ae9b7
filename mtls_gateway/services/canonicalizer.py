"""
Payload Canonicalization

Produces the exact string the gateway recomputes to check our HMAC:

- one-dimensional payload only
- keys sorted ascending by code point (same order as UTF-8 bytes)
- RFC 3986 percent-encoding, unreserved characters left alone
- joined as key=value&key2=value2

Changing any of these rules breaks interoperability with the gateway.
"""
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import quote

from ..exceptions import ConfigurationError


Scalar = Union[str, int, Decimal, bool]
Payload = Mapping[str, Optional[Scalar]]


def stringify(value: Optional[Scalar]) -> str:
    """
    Render a payload value the way it is signed and sent.

    None and False render as "", True as "1", str/int/Decimal via str().
    Floats are refused: the gateway renders them differently, so amounts
    must be passed as str or Decimal.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float):
        raise ConfigurationError(
            f"Float payload values are not supported ({value!r}); pass a str or Decimal",
            {"type": "float"}
        )
    if isinstance(value, (str, int, Decimal)):
        return str(value)
    raise ConfigurationError(
        f"Payload values must be scalars, got {type(value).__name__}",
        {"type": type(value).__name__}
    )


def rfc3986_encode(text: str) -> str:
    # quote() keeps A-Z a-z 0-9 - . _ ~ unescaped; safe="" escapes "/" too
    return quote(text, safe="")


def canonicalize(payload: Payload) -> str:
    """
    Build the canonical signing string for a payload.

    Args:
        payload: Mapping of string keys to scalar values or None

    Returns:
        Canonical string, "" for an empty payload

    Example:
        >>> canonicalize({"transaction_id": "12345", "amount": "99.99", "currency": "USD"})
        'amount=99.99&currency=USD&transaction_id=12345'
    """
    pairs = []
    for key in sorted(payload, key=str):
        pairs.append(f"{rfc3986_encode(str(key))}={rfc3986_encode(stringify(payload[key]))}")
    return "&".join(pairs)


def query_params(payload: Payload) -> Dict[str, Optional[str]]:
    """
    Payload as query parameters for the wire request.

    Values use the same rendering as the signature; None is kept so the
    transport's own encoding drops the key.
    """
    return {
        str(key): (None if value is None else stringify(value))
        for key, value in payload.items()
    }


class Canonicalizer:
    """Injectable wrapper around canonicalize()."""

    def canonicalize(self, payload: Payload) -> str:
        return canonicalize(payload)
