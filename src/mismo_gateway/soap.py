"""SOAP request building and response parsing for the LendersOffice Loan service.

The upstream returns its result document as entity-escaped text inside the
SOAP body, so fields are pulled out with narrow regular expressions rather
than a full XML parse. Precedence when reading a response is fixed:
SOAP fault, then loan number, then business error.

Known limitation: the MISMO document is embedded in a CDATA section verbatim.
A document that itself contains the "]]>" sequence ends the section early and
produces a malformed import request; such documents are not detected here.
"""

import re
from dataclasses import dataclass

from .consts import IMPORT_FORMAT_MISMO_34, IMPORT_IS_LEAD, LOS_NAMESPACE

# Ampersand must be replaced first so later entities are not double-escaped
_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)

# Matches what the upstream escapes in its nested result document
_ENTITY_DECODES = (
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&amp;", "&"),
    ("&quot;", '"'),
)

_FAULT_RE = re.compile(r"<faultstring>(.*?)</faultstring>", re.DOTALL)
_LOAN_NUMBER_RE = re.compile(r'<field id="sLNm">(.*?)</field>', re.DOTALL)
_ERROR_RE = re.compile(r"<Error>(.*?)</Error>", re.DOTALL)

_ENVELOPE_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<soap:Envelope xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" xmlns:xsd="http://www.w3.org/2001/XMLSchema" xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">
  <soap:Body>
    <CreateWithOptions xmlns="{namespace}">
      <sTicket>{ticket}</sTicket>
      <optionsXml>{options}</optionsXml>
    </CreateWithOptions>
  </soap:Body>
</soap:Envelope>"""


def escape_xml(text: str) -> str:
    """Escape the five XML metacharacters for use as element text."""
    for char, entity in _XML_ESCAPES:
        text = text.replace(char, entity)
    return text


def decode_entities(text: str) -> str:
    """Undo the entity escaping the upstream applies to its result document.

    Only &lt; &gt; &amp; &quot; are decoded, in that order; &apos; is left as is.
    """
    for entity, char in _ENTITY_DECODES:
        text = text.replace(entity, char)
    return text


def build_import_options(xml_content: str) -> str:
    """Wrap a MISMO document in an LOXmlFormat import payload.

    The document goes into a CDATA section unchanged so it reaches the
    importer byte for byte.
    """
    return (
        "<LOXmlFormat>"
        f'<field id="IsLead">{IMPORT_IS_LEAD}</field>'
        f'<field id="Format">{IMPORT_FORMAT_MISMO_34}</field>'
        f'<field id="ImportFileContent"><![CDATA[{xml_content}]]></field>'
        "</LOXmlFormat>"
    )


def bearer_ticket(access_token: str) -> str:
    """The sTicket value: the token passed as a SOAP parameter, not a header."""
    return f"Bearer {access_token}"


def build_envelope(access_token: str, xml_content: str) -> str:
    """Build the SOAP 1.1 CreateWithOptions request for one MISMO document.

    Args:
        access_token: OAuth2 access token.
        xml_content: Raw MISMO XML document.

    Returns:
        Complete SOAP envelope as text.
    """
    return _ENVELOPE_TEMPLATE.format(
        namespace=LOS_NAMESPACE,
        ticket=escape_xml(bearer_ticket(access_token)),
        options=escape_xml(build_import_options(xml_content)),
    )


@dataclass(frozen=True)
class ParsedResponse:
    """Fields extracted from a CreateWithOptions response body.

    ``body`` is the raw text when a fault was found, otherwise the decoded text.
    """

    body: str
    fault: str | None = None
    loan_number: str | None = None
    error: str | None = None


def find_fault(body: str) -> str | None:
    match = _FAULT_RE.search(body)
    return match.group(1) if match else None


def find_loan_number(decoded: str) -> str | None:
    match = _LOAN_NUMBER_RE.search(decoded)
    return match.group(1) if match else None


def find_error(decoded: str) -> str | None:
    match = _ERROR_RE.search(decoded)
    return match.group(1) if match else None


def parse_response(body: str) -> ParsedResponse:
    """Extract fault, loan number and business error from a response body.

    A fault short-circuits parsing; the body is not decoded in that case.
    """
    fault = find_fault(body)
    if fault is not None:
        return ParsedResponse(body=body, fault=fault)

    decoded = decode_entities(body)
    return ParsedResponse(
        body=decoded,
        loan_number=find_loan_number(decoded),
        error=find_error(decoded),
    )
