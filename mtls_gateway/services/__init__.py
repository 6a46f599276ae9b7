"""
Gateway services: canonicalization, signing, transport and the client.
"""
from .canonicalizer import Canonicalizer, canonicalize, query_params, stringify
from .gateway_client import GatewayClient
from .signature_service import HmacSigner, sign
from .transport import GatewaySession, MtlsAdapter, create_session, mtls_options

__all__ = [
    "Canonicalizer",
    "canonicalize",
    "query_params",
    "stringify",
    "GatewayClient",
    "HmacSigner",
    "sign",
    "GatewaySession",
    "MtlsAdapter",
    "create_session",
    "mtls_options",
]
