"""
Gateway Client Demo

Sends one signed sample payment query to the gateway and prints the answer.

Usage:
    python -m mtls_gateway                      # everything from GATEWAY_* env
    python -m mtls_gateway --endpoint https://client.badssl.com/
    python -m mtls_gateway --offline            # mock gateway, no network

Exit codes:
    0 success, 2 HTTP error, 3 configuration error, 4 transport error
"""
import argparse
import json
import logging
import sys
import time
from typing import Any, Dict, List, Optional

from .config import GatewayConfig, load_runtime_settings
from .exceptions import ConfigurationError, HttpError, TransportError
from .mocks.gateway import MockGatewayAdapter
from .services.gateway_client import GatewayClient

logger = logging.getLogger(__name__)

OFFLINE_ENDPOINT = "https://gateway.mock/v1/payments/status"

EXIT_OK = 0
EXIT_HTTP_ERROR = 2
EXIT_CONFIG_ERROR = 3
EXIT_TRANSPORT_ERROR = 4


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mtls_gateway",
        description="Send a signed GET to the payment gateway over mutual TLS."
    )
    parser.add_argument("--endpoint", help="Gateway URL (default: GATEWAY_ENDPOINT)")
    parser.add_argument("--secret", help="HMAC secret (default: GATEWAY_HMAC_SECRET)")
    parser.add_argument("--cert", help="Client certificate PEM (default: GATEWAY_CERT_PATH)")
    parser.add_argument("--key", help="Client key PEM (default: GATEWAY_KEY_PATH)")
    parser.add_argument("--verify", help="true/false or CA bundle path (default: GATEWAY_VERIFY)")
    parser.add_argument("--algo", help="HMAC algorithm (default: GATEWAY_HMAC_ALGO or sha256)")
    parser.add_argument("--header", help="Signature header (default: GATEWAY_SIGNATURE_HEADER)")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--offline", action="store_true", help="Answer from the built-in mock gateway")
    return parser


def sample_payload() -> Dict[str, Any]:
    return {
        "transaction_id": "12345",
        "amount": "99.99",
        "currency": "USD",
        "timestamp": int(time.time()),
    }


def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        runtime = load_runtime_settings()
        configure_logging(args.log_level or runtime.log_level)

        config = GatewayConfig(
            hmac_secret=args.secret,
            cert_path=args.cert,
            key_path=args.key,
            verify=args.verify,
            hmac_algo=args.algo,
            signature_header=args.header,
        )

        endpoint = args.endpoint
        transport_options: Dict[str, Any] = {}
        if args.offline:
            endpoint = endpoint or OFFLINE_ENDPOINT
            transport_options["adapters"] = {
                endpoint: MockGatewayAdapter(
                    config.hmac_secret.get_secret_value(),
                    algo=config.hmac_algo,
                    signature_header=config.signature_header,
                )
            }

        payload = sample_payload()
        print(f"📦 Payload: {json.dumps(payload)}")
        print(f"🔐 Client certificate: {config.cert_path}")

        with GatewayClient(config, transport_options=transport_options) as client:
            if endpoint:
                response = client.get(endpoint, payload)
            else:
                response = client.get_from_default_endpoint(payload)

        print(f"✅ HTTP {response.status_code}")
        for name, value in response.headers.items():
            print(f"   {name}: {value}")
        print(response.text[:500])
        return EXIT_OK

    except HttpError as e:
        print(f"❌ {e.message}")
        print(e.body[:200])
        return EXIT_HTTP_ERROR
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e.message}")
        return EXIT_CONFIG_ERROR
    except TransportError as e:
        print(f"❌ Transport error: {e.message}")
        return EXIT_TRANSPORT_ERROR


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
