"""Pytest configuration and shared fixtures"""

import os
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from mismo_gateway.auth import AuthManager
from mismo_gateway.client import MeridianLinkClient
from mismo_gateway.config import Config
from mismo_gateway.gateway import SubmissionGateway

TOKEN_URL = "https://auth.test/oauth/token"
LOAN_URL = "https://loans.test/los/webservice/Loan.asmx"

SAMPLE_MISMO = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<MESSAGE xmlns="http://www.mismo.org/residential/2009/schemas">'
    "<DEAL_SETS><DEAL_SET><DEALS><DEAL><LOANS><LOAN>"
    "<LOAN_IDENTIFIERS><LOAN_IDENTIFIER>"
    "<LoanIdentifier>A&amp;B-001</LoanIdentifier>"
    "</LOAN_IDENTIFIER></LOAN_IDENTIFIERS>"
    "</LOAN></LOANS></DEAL></DEALS></DEAL_SET></DEAL_SETS></MESSAGE>"
)


def soap_result(inner: str) -> str:
    """Wrap an inner result document the way the Loan service does: escaped."""
    escaped = (
        inner.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">'
        "<soap:Body><CreateWithOptionsResponse "
        'xmlns="http://www.lendersoffice.com/los/webservices/">'
        f"<CreateWithOptionsResult>{escaped}</CreateWithOptionsResult>"
        "</CreateWithOptionsResponse></soap:Body></soap:Envelope>"
    )


def soap_fault(message: str) -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">'
        "<soap:Body><soap:Fault><faultcode>soap:Server</faultcode>"
        f"<faultstring>{message}</faultstring><detail /></soap:Fault>"
        "</soap:Body></soap:Envelope>"
    )


class FakeClock:
    """Controllable clock for token expiry tests"""

    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeUpstream:
    """httpx MockTransport handler standing in for both MeridianLink endpoints.

    Records every request; responses are configurable per endpoint.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.token_responses: list[httpx.Response] = []
        self.token_json = {"access_token": "T1", "expires_in": 3600}
        self.loan_status = 200
        self.loan_headers: dict[str, str] = {}
        self.loan_body = soap_result(
            '<LoXmlResult status="OK"><field id="sLNm">1234567</field></LoXmlResult>'
        )
        self.token_error: Exception | None = None
        self.loan_error: Exception | None = None

    @property
    def token_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == TOKEN_URL]

    @property
    def loan_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == LOAN_URL]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == TOKEN_URL:
            if self.token_error is not None:
                raise self.token_error
            if self.token_responses:
                return self.token_responses.pop(0)
            return httpx.Response(200, json=self.token_json)
        if self.loan_error is not None:
            raise self.loan_error
        return httpx.Response(
            self.loan_status, headers=self.loan_headers, text=self.loan_body
        )


@pytest.fixture
def clean_env():
    """Fixture that temporarily clears MERIDIANLINK_* environment variables.

    This ensures Config tests see the true defaults without interference
    from environment variables that might be set in the user's shell.
    """
    saved = {
        key: value
        for key, value in os.environ.items()
        if key.startswith("MERIDIANLINK_")
    }

    for key in saved:
        os.environ.pop(key, None)

    try:
        yield
    finally:
        for key in [k for k in os.environ if k.startswith("MERIDIANLINK_")]:
            os.environ.pop(key, None)
        os.environ.update(saved)


@pytest.fixture
def clean_config(clean_env):
    """Config instance built from a clean environment"""
    return Config()


@pytest.fixture
def config():
    """Config fixture with test credentials and endpoints"""
    return Config(
        client_id="client-123",
        client_secret="s3cret&key",
        token_url=TOKEN_URL,
        loan_url=LOAN_URL,
        log_level="DEBUG",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
async def http_client(upstream):
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream)) as client:
        yield client


@pytest.fixture
def auth_manager(config, http_client, clock):
    return AuthManager(config, http_client, clock=clock)


@pytest.fixture
def client(config, http_client, auth_manager):
    return MeridianLinkClient(
        config=config, token_provider=auth_manager, http_client=http_client
    )


@pytest.fixture
def gateway(client):
    return SubmissionGateway(client)
