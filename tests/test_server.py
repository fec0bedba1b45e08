"""Tests for the MCP tool functions"""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from mismo_gateway import server
from mismo_gateway.exceptions import ConfigError
from mismo_gateway.models import SubmissionRequest, SubmissionResult

from .conftest import SAMPLE_MISMO


def tool_payload(result) -> dict:
    """Decode the JSON text content returned by FastMCP.call_tool"""
    if isinstance(result, tuple):
        # newer mcp releases return (content, structured_content)
        result = result[0]
    return json.loads(result[0].text)


@pytest.fixture
def mock_gateway():
    gateway = Mock()
    gateway.submit = AsyncMock()
    gateway.submit_many = AsyncMock()
    with patch("mismo_gateway.server.get_gateway", return_value=gateway):
        yield gateway


def test_server_name():
    assert server.mcp.name == "mismo-gateway"


@pytest.mark.asyncio
async def test_submit_loan_returns_wire_shape(mock_gateway):
    mock_gateway.submit.return_value = SubmissionResult(
        success=True,
        result="Loan created: 1234567",
        loan_number="1234567",
        raw_response="<decoded/>",
        file_name="loan.xml",
    )

    payload = await server.submit_loan("<MESSAGE/>", file_name="loan.xml")

    mock_gateway.submit.assert_awaited_once_with("<MESSAGE/>", file_name="loan.xml")
    assert payload == {
        "success": True,
        "result": "Loan created: 1234567",
        "loanNumber": "1234567",
        "rawResponse": "<decoded/>",
        "fileName": "loan.xml",
    }


@pytest.mark.asyncio
async def test_submit_loan_reports_config_error(mock_gateway, caplog):
    mock_gateway.submit.side_effect = ConfigError("Missing CLIENT_ID or CLIENT_SECRET")

    payload = await server.submit_loan("<MESSAGE/>")

    assert payload == {
        "success": False,
        "error": "Missing CLIENT_ID or CLIENT_SECRET",
    }
    assert any(r.levelname == "CRITICAL" for r in caplog.records)


@pytest.mark.asyncio
async def test_submit_loans_summary(mock_gateway):
    mock_gateway.submit_many.return_value = [
        SubmissionResult(success=True, loan_number="1", file_name="a.xml"),
        SubmissionResult(success=False, error="MeridianLink: bad", file_name="b.xml"),
    ]
    documents = [
        SubmissionRequest(xml_content="<a/>", file_name="a.xml"),
        SubmissionRequest(xml_content="<b/>", file_name="b.xml"),
    ]

    payload = await server.submit_loans(documents)

    assert payload["submitted"] == 2
    assert payload["succeeded"] == 1
    assert payload["failed"] == 1
    assert payload["results"][1] == {
        "success": False,
        "error": "MeridianLink: bad",
        "fileName": "b.xml",
    }


@pytest.mark.asyncio
async def test_submit_loans_config_error_fails_every_document(mock_gateway):
    mock_gateway.submit_many.side_effect = ConfigError("Missing CLIENT_ID")
    documents = [
        SubmissionRequest(xml_content="<a/>", file_name="a.xml"),
        SubmissionRequest(xml_content="<b/>"),
    ]

    payload = await server.submit_loans(documents)

    assert payload["failed"] == 2
    assert [r["error"] for r in payload["results"]] == ["Missing CLIENT_ID"] * 2
    assert payload["results"][0]["fileName"] == "a.xml"


@pytest.fixture
def live_gateway(gateway):
    with patch("mismo_gateway.server.get_gateway", return_value=gateway):
        yield gateway


@pytest.mark.asyncio
async def test_call_without_document_reports_input_error(
    live_gateway, upstream
):
    result = await server.mcp.call_tool("submit_loan", {})

    assert tool_payload(result) == {
        "success": False,
        "error": "XML content is required",
    }
    assert upstream.requests == []


@pytest.mark.parametrize(
    "arguments",
    [
        {"xmlContent": SAMPLE_MISMO, "fileName": "loan.xml"},
        {"xml_content": SAMPLE_MISMO, "file_name": "loan.xml"},
    ],
)
@pytest.mark.asyncio
async def test_call_accepts_wire_and_python_names(
    live_gateway, upstream, arguments
):
    result = await server.mcp.call_tool("submit_loan", arguments)

    payload = tool_payload(result)
    assert payload["success"] is True
    assert payload["loanNumber"] == "1234567"
    assert payload["fileName"] == "loan.xml"
    assert len(upstream.loan_calls) == 1
