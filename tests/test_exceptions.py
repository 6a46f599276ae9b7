import requests

from conftest import make_response
from mtls_gateway.exceptions import ConfigurationError, GatewayError, HttpError, TransportError, validation_details


def test_hierarchy():
    for error in (ConfigurationError("x"), HttpError(500, ""), TransportError("x")):
        assert isinstance(error, GatewayError)


def test_configuration_error_to_dict():
    error = ConfigurationError("HMAC secret must not be empty", {"field": "hmac_secret"})

    assert str(error) == "HMAC secret must not be empty"
    assert error.to_dict() == {
        "error_code": "gateway:config:invalid",
        "message": "HMAC secret must not be empty",
        "details": {"field": "hmac_secret"},
    }


def test_http_error_fields():
    error = HttpError(404, "Not Found", {"Content-Type": ["text/plain"]})

    assert error.status_code == 404
    assert error.body == "Not Found"
    assert error.headers == {"Content-Type": ["text/plain"]}
    assert str(error) == "Unexpected HTTP status code: 404"
    assert error.error_code == "gateway:http:unexpected_status"
    assert error.details == {"status_code": 404}


def test_http_error_defaults():
    error = HttpError(500, "")

    assert error.body == ""
    assert error.headers == {}


def test_http_error_from_response():
    response = make_response(503, "maintenance", {"Retry-After": "120"})

    error = HttpError.from_response(response)

    assert error.status_code == 503
    assert error.body == "maintenance"
    assert error.headers == {"Retry-After": "120"}


def test_transport_error_keeps_original():
    original = requests.exceptions.ConnectTimeout("timed out")

    error = TransportError("Request failed", original)

    assert error.original is original
    assert error.details == {"exception": "ConnectTimeout"}
    assert error.to_dict()["error_code"] == "gateway:transport:failed"


def test_validation_details_drop_input_values():
    errors = [{"loc": ("hmac_secret",), "msg": "bad", "type": "string_type", "input": "super-secret"}]

    assert validation_details(errors) == {"errors": [{"loc": ["hmac_secret"], "msg": "bad", "type": "string_type"}]}
