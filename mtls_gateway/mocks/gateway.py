"""
Mock Payment Gateway

Plays the receiving gateway for tests and the offline demo: recomputes the
canonical string from the received query and checks the signature header.

Mock Behavior:
- valid signature: 200 with the accepted parameters echoed back
- missing or wrong signature: 401
- a "scenario" query parameter from SCENARIO_STATUSES forces that status
- status_code= forces a status for every request
- set_cookie= adds that Set-Cookie header to every response
"""
import hmac
import json
from http import HTTPStatus
from http.client import HTTPMessage
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl, urlsplit

from requests import PreparedRequest, Response
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from ..services.signature_service import sign


# Scenario values that trigger specific gateway answers
SCENARIO_STATUSES = {
    "decline": 402,
    "not_found": 404,
    "rate_limited": 429,
    "server_error": 500,
}


class MockGatewayAdapter(BaseAdapter):
    """
    requests transport adapter standing in for the gateway.

    Mount it on a session (or pass it via transport_options["adapters"]) for
    the gateway's URL prefix. Every request is kept on ``received``.
    """

    def __init__(
        self,
        secret: str,
        algo: str = "sha256",
        signature_header: str = "X-Signature",
        use_base64: bool = False,
        status_code: Optional[int] = None,
        set_cookie: Optional[str] = None
    ):
        super().__init__()
        self.secret = secret
        self.algo = algo
        self.signature_header = signature_header
        self.use_base64 = use_base64
        self.status_code = status_code
        self.set_cookie = set_cookie
        self.received: List[PreparedRequest] = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.received.append(request)
        params = dict(parse_qsl(urlsplit(request.url).query, keep_blank_values=True))

        if self.status_code is not None:
            return self._respond(request, self.status_code, {"status": "forced"})

        expected = sign(params, self.secret, self.algo, self.use_base64)
        received = request.headers.get(self.signature_header, "")
        if not hmac.compare_digest(expected, received):
            return self._respond(request, 401, {"error": "invalid_signature"})

        scenario = params.get("scenario")
        if scenario in SCENARIO_STATUSES:
            return self._respond(request, SCENARIO_STATUSES[scenario], {"error": scenario})

        return self._respond(request, 200, {"status": "accepted", "verified": True, "params": params})

    def close(self):
        pass

    def _respond(self, request: PreparedRequest, status: int, data: Dict[str, Any]) -> Response:
        headers = {
            "Content-Type": "application/json",
            "X-Mock-Gateway": "1",
        }
        if self.set_cookie:
            headers["Set-Cookie"] = self.set_cookie

        response = Response()
        response.status_code = status
        try:
            response.reason = HTTPStatus(status).phrase
        except ValueError:
            response.reason = ""
        response.headers = CaseInsensitiveDict(headers)
        response.raw = _RawHeaders(headers)
        response._content = json.dumps(data).encode("utf-8")
        response.encoding = "utf-8"
        response.url = request.url
        response.request = request
        return response


class _RawHeaders:
    """Minimal urllib3-style raw response so requests can read Set-Cookie."""

    def __init__(self, headers: Dict[str, str]):
        self._original_response = self
        self.msg = HTTPMessage()
        for name, value in headers.items():
            self.msg[name] = value

    def close(self):
        pass
