"""
mtls_gateway - mutually authenticated, HMAC-signing payment gateway client.

Example usage:
    from mtls_gateway import GatewayClient, GatewayConfig

    config = GatewayConfig(
        hmac_secret="top-secret",
        cert_path="./certs/client-cert.pem",
        key_path="./certs/client-key.pem",
    )
    with GatewayClient(config) as client:
        response = client.get("https://gateway.example.com/status", {"transaction_id": "12345"})
"""
from .config import GatewayConfig, RuntimeSettings, default_endpoint
from .exceptions import ConfigurationError, GatewayError, HttpError, TransportError
from .models.verify import VerifyMode, VerifyPolicy
from .services.canonicalizer import Canonicalizer, canonicalize
from .services.gateway_client import GatewayClient
from .services.signature_service import HmacSigner, sign
from .services.transport import create_session, mtls_options

__version__ = "0.1.0"
__all__ = [
    "GatewayConfig",
    "RuntimeSettings",
    "default_endpoint",
    "ConfigurationError",
    "GatewayError",
    "HttpError",
    "TransportError",
    "VerifyMode",
    "VerifyPolicy",
    "Canonicalizer",
    "canonicalize",
    "GatewayClient",
    "HmacSigner",
    "sign",
    "create_session",
    "mtls_options",
]
