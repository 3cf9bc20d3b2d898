import json

import pytest

from models.errors import (
    ErrorKind, MalformedBodyError, PersistenceReadFailed, PriceFetchFailed, SecretUnavailable
)
from utils import http


def test_every_error_kind_is_mapped():
    assert set(http.STATUS_BY_KIND) == set(ErrorKind)
    assert set(http.ERROR_BY_KIND) == set(ErrorKind)


@pytest.mark.parametrize("error,status,message", [
    (MalformedBodyError("Invalid JSON format in request body"), 400, "Bad Request"),
    (PriceFetchFailed("timeout"), 502, "Failed to retrieve cryptocurrency data."),
    (PersistenceReadFailed("boom"), 500, "Failed to retrieve search history."),
    (SecretUnavailable("Mailtrap token", "denied"), 500, "Internal configuration error."),
])
def test_error_response_maps_kind(error, status, message):
    response = http.error_response(error, persistence_error="Failed to retrieve search history.")

    assert response["statusCode"] == status
    assert json.loads(response["body"])["error"] == message


def test_upstream_details_hide_transport_cause():
    response = http.error_response(PriceFetchFailed("HTTPSConnectionPool(host='api.coingecko.com')"))

    assert json.loads(response["body"])["details"] == "Failed to fetch price from CoinGecko."


def test_build_response_sets_json_and_cors_headers():
    response = http.build_response(200, [{"searchId": "s1"}], "https://x.example")

    assert json.loads(response["body"]) == [{"searchId": "s1"}]
    assert response["headers"]["Content-Type"] == "application/json"
    assert response["headers"]["Access-Control-Allow-Origin"] == "https://x.example"


def test_invalid_base64_body_is_malformed():
    with pytest.raises(MalformedBodyError):
        http.get_body({"body": "***", "isBase64Encoded": True})
