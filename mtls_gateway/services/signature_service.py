"""
Signature Service for Gateway Requests

Implements HMAC signature generation over the canonical payload string.
Output is lowercase hex by default, base64 on request.
"""
import base64
import hmac
from typing import Optional

from ..exceptions import ConfigurationError
from .canonicalizer import Canonicalizer, Payload


def compute_hmac(message: str, secret: str, algo: str = "sha256") -> bytes:
    """
    Raw HMAC digest of a message.

    Raises:
        ConfigurationError: If the algorithm is not available
    """
    try:
        return hmac.new(secret.encode("utf-8"), message.encode("utf-8"), algo.lower()).digest()
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(f"Unsupported HMAC algorithm: {algo}", {"hmac_algo": algo}) from exc


def encode_signature(raw: bytes, use_base64: bool = False) -> str:
    if use_base64:
        return base64.b64encode(raw).decode("ascii")
    return raw.hex()


class HmacSigner:
    """
    Signs payloads for the gateway.

    Stateless apart from the canonicalizer, so one instance is safe to share
    between threads.
    """

    def __init__(self, canonicalizer: Optional[Canonicalizer] = None):
        self.canonicalizer = canonicalizer or Canonicalizer()

    def sign(
        self,
        payload: Payload,
        secret: str,
        algo: str = "sha256",
        use_base64: bool = False
    ) -> str:
        """
        Sign a payload with HMAC.

        Args:
            payload: Mapping of string keys to scalar values or None
            secret: Shared HMAC secret
            algo: hashlib algorithm name (sha256, sha512, md5, ...)
            use_base64: Return base64 instead of lowercase hex

        Returns:
            Encoded signature

        Raises:
            ConfigurationError: If the secret is empty or the algorithm unsupported
        """
        if not secret:
            raise ConfigurationError("HMAC secret must not be empty")

        canonical = self.canonicalizer.canonicalize(dict(payload))
        return encode_signature(compute_hmac(canonical, secret, algo), use_base64)


_default_signer = HmacSigner()


def sign(
    payload: Payload,
    secret: str,
    algo: str = "sha256",
    use_base64: bool = False
) -> str:
    """Sign with the module-level default signer. See HmacSigner.sign."""
    return _default_signer.sign(payload, secret, algo, use_base64)
