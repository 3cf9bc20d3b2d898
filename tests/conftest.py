"""
Test-wide configuration and shared fakes.

Puts src/ on sys.path so modules import the way the Lambda runtime sees them,
and provides in-memory stand-ins for SSM, DynamoDB, CoinGecko and SMTP.
"""
from __future__ import annotations

import pathlib
import sys
from types import SimpleNamespace

import pytest
import requests
from botocore.exceptions import ClientError

SRC_ROOT = pathlib.Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from services.dynamodb_service import DynamoDBService  # noqa: E402
from services.email_service import EmailService  # noqa: E402
from services.price_service import PriceService  # noqa: E402
from services.search_service import SearchService  # noqa: E402
from services.secret_service import SecretCache  # noqa: E402


def client_error(code: str = "InternalServerError", operation: str = "Operation") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised"}}, operation)


class FakeSSM:
    def __init__(self, values=None, error=None):
        self.values = values or {}
        self.error = error
        self.calls = []

    def get_parameter(self, Name, WithDecryption=False):
        self.calls.append((Name, WithDecryption))
        if self.error is not None:
            raise self.error
        if Name not in self.values:
            return {"Parameter": {"Name": Name}}
        return {"Parameter": {"Name": Name, "Value": self.values[Name]}}


class FakeTable:
    """DynamoDB table with a paginated scan: `page_size` stored items per page, filter applied per page"""

    def __init__(self, page_size: int = 100):
        self.items = []
        self.page_size = page_size
        self.put_error = None
        self.scan_error = None
        self.scan_calls = []

    def put_item(self, Item):
        if self.put_error is not None:
            raise self.put_error
        self.items.append(dict(Item))
        return {}

    def scan(self, **kwargs):
        self.scan_calls.append(dict(kwargs))
        if self.scan_error is not None:
            raise self.scan_error

        start = kwargs.get("ExclusiveStartKey", {}).get("index", 0)
        end = start + self.page_size
        email = kwargs["ExpressionAttributeValues"][":email"]
        page = [item for item in self.items[start:end] if item.get("recipientEmail") == email]

        response = {"Items": page, "Count": len(page)}
        if end < len(self.items):
            response["LastEvaluatedKey"] = {"index": end}
        return response


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error", response=self)

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, payload=None, status_code=200, error=None):
        self.payload = payload if payload is not None else {}
        self.status_code = status_code
        self.error = error
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append(SimpleNamespace(url=url, params=params, headers=headers, timeout=timeout))
        if self.error is not None:
            raise self.error
        return FakeResponse(self.payload, self.status_code)


class FakeTransport:
    instances = []

    def __init__(self, host, port, username, password, error=None):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.error = error
        self.sent = []
        FakeTransport.instances.append(self)

    def send_message(self, message):
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return {}


def failing_transport(host, port, username, password):
    return FakeTransport(host, port, username, password, error=ConnectionRefusedError("relay down"))


SSM_VALUES = {
    "/crypto/coingecko-key": "cg-key",
    "/crypto/mailtrap-token": "mt-token",
}


@pytest.fixture(autouse=True)
def reset_transports():
    FakeTransport.instances = []
    yield
    FakeTransport.instances = []


@pytest.fixture
def ssm():
    return FakeSSM(dict(SSM_VALUES))


@pytest.fixture
def table():
    return FakeTable()


@pytest.fixture
def session():
    return FakeSession({"bitcoin": {"usd": 65000}})


@pytest.fixture
def make_search_service(ssm, table, session):
    """Build a SearchService over the fakes; keyword overrides replace parts"""

    def _make(transport_factory=FakeTransport, session=session, table=table, ssm=ssm):
        api_key_cache = SecretCache("/crypto/coingecko-key", "CoinGecko API key", ssm)
        token_cache = SecretCache("/crypto/mailtrap-token", "Mailtrap token", ssm)
        return SearchService(
            price_service=PriceService(api_key_cache, session=session),
            db_service=DynamoDBService("searches", table=table),
            email_service=EmailService(
                token_cache,
                smtp_user="api",
                from_email="Crypto Prices <prices@example.com>",
                transport_factory=transport_factory,
            ),
            id_factory=lambda: "search-1",
            clock=lambda: 1704067200000,
        )

    return _make


@pytest.fixture
def lookup_env(monkeypatch: pytest.MonkeyPatch):
    env = {
        "TABLE_NAME": "searches",
        "MAILTRAP_SSM_PARAMETER_NAME": "/crypto/mailtrap-token",
        "MAILTRAP_USER": "api",
        "FROM_EMAIL": "prices@example.com",
        "COINGECKO_API_KEY_SSM_PARAM_NAME": "/crypto/coingecko-key",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    for key in ("SMTP_HOST", "SMTP_PORT", "QUOTE_CURRENCY", "COINGECKO_BASE_URL",
                "PRICE_TIMEOUT_SECONDS", "DISPLAY_TIMEZONE", "ALLOWED_ORIGIN"):
        monkeypatch.delenv(key, raising=False)
    return env
