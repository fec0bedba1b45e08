"""Submission gateway: MISMO document in, normalized SubmissionResult out."""

import asyncio
import logging
from collections.abc import Sequence
from functools import cache

import httpx

from .client import MeridianLinkClient, get_client
from .consts import (
    BUSINESS_ERROR_PREFIX,
    CREATE_WITH_OPTIONS_ACTION,
    FAULT_PREFIX,
    LOAN_CREATED_PREFIX,
    REQUEST_PROCESSED,
    XML_CONTENT_REQUIRED,
    XML_FILE_REQUIRED,
)
from .exceptions import (
    BusinessError,
    ConfigError,
    GatewayError,
    InputError,
    ProtocolFault,
    TransportError,
)
from .models import SubmissionRequest, SubmissionResult
from .soap import build_envelope, parse_response

logger = logging.getLogger("mismo-gateway.gateway")


class SubmissionGateway:
    """Submits MISMO documents to the Loan service's CreateWithOptions operation.

    Requires a client instance. Every failure except ConfigError comes back as
    a SubmissionResult with success=False.
    """

    def __init__(self, client: MeridianLinkClient):
        """Initialize SubmissionGateway.

        Args:
            client: MeridianLinkClient instance for API calls.

        Raises:
            No exceptions raised during initialization.
        """
        self.client = client
        self.config = client.config

    async def submit(
        self,
        xml_content: str | None,
        *,
        file_name: str | None = None,
        timeout: float | None = None,
    ) -> SubmissionResult:
        """Submit one MISMO document and classify the upstream response.

        Args:
            xml_content: Raw MISMO XML document.
            file_name: Source file name, echoed back on the result.
            timeout: Per-request timeout for the SOAP call, in seconds.

        Returns:
            SubmissionResult; success is True only when a loan number was found.

        Raises:
            ConfigError: If client credentials are not configured.
        """
        try:
            result = await self._submit(xml_content, timeout)
        except ConfigError:
            raise
        except Exception as e:
            if not isinstance(e, InputError):
                logger.warning(f"Submission failed: {e}")
                if isinstance(e, GatewayError):
                    logger.debug(
                        f"Failure details: errors={e.errors} context={e.context}"
                    )
            result = SubmissionResult.from_error(e)

        if file_name is not None:
            result.file_name = file_name
        return result

    async def submit_many(
        self, documents: Sequence[SubmissionRequest], timeout: float | None = None
    ) -> list[SubmissionResult]:
        """Submit several documents independently.

        Documents run concurrently; results are returned in input order.
        Entries with a non-.xml file name are rejected without any I/O.

        Raises:
            ConfigError: If client credentials are not configured.
        """
        logger.info(f"Submitting batch of {len(documents)} documents")

        async def submit_one(document: SubmissionRequest) -> SubmissionResult:
            if document.file_name and not document.file_name.lower().endswith(".xml"):
                logger.info(f"Skipping non-XML file {document.file_name}")
                return SubmissionResult(
                    success=False, error=XML_FILE_REQUIRED, file_name=document.file_name
                )
            return await self.submit(
                document.xml_content, file_name=document.file_name, timeout=timeout
            )

        results = await asyncio.gather(*(submit_one(d) for d in documents))
        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Batch complete: {succeeded}/{len(results)} loans created")
        return list(results)

    async def _submit(
        self, xml_content: str | None, timeout: float | None
    ) -> SubmissionResult:
        if not xml_content:
            raise InputError(XML_CONTENT_REQUIRED)

        logger.info(f"Submitting MISMO document ({len(xml_content)} chars)")

        try:
            access_token = await self.client.get_token()
        except httpx.RequestError as e:
            raise self._transport_error(e, self.config.token_url) from e

        envelope = build_envelope(access_token, xml_content)

        try:
            body = await self.client.post_soap(
                envelope, CREATE_WITH_OPTIONS_ACTION, timeout=timeout
            )
        except httpx.RequestError as e:
            raise self._transport_error(e, self.config.loan_url) from e

        return self._classify(body)

    def _classify(self, body: str) -> SubmissionResult:
        """Turn a CreateWithOptions response body into a result.

        Raises:
            ProtocolFault: If the envelope carries a SOAP fault.
            BusinessError: If the result has an <Error> and no loan number.
        """
        parsed = parse_response(body)

        if parsed.fault is not None:
            raise ProtocolFault(
                f"{FAULT_PREFIX}{parsed.fault}", raw_response=parsed.body
            )

        # a loan number wins over an <Error> in the same result
        if parsed.error is not None and parsed.loan_number is None:
            raise BusinessError(
                f"{BUSINESS_ERROR_PREFIX}{parsed.error}", raw_response=parsed.body
            )

        if parsed.loan_number is not None:
            logger.info(f"Loan created: {parsed.loan_number}")
            return SubmissionResult(
                success=True,
                result=f"{LOAN_CREATED_PREFIX}{parsed.loan_number}",
                loan_number=parsed.loan_number,
                raw_response=parsed.body,
            )

        logger.warning("Response contained neither a loan number nor an error")
        return SubmissionResult(
            success=False, result=REQUEST_PROCESSED, raw_response=parsed.body
        )

    @staticmethod
    def _transport_error(error: httpx.RequestError, url: str) -> TransportError:
        detail = str(error) or type(error).__name__
        return TransportError(
            f"Network error: {detail}",
            errors=[detail],
            suggestions=[
                "Check connectivity to MeridianLink",
                "Try again - this may be a temporary network issue",
            ],
            context={"url": url, "exception_type": type(error).__name__},
        )


@cache
def get_gateway() -> SubmissionGateway:
    """Get a cached SubmissionGateway instance.

    Raises:
        No exceptions raised directly.
        May propagate exceptions from client initialization via get_client().
    """
    return SubmissionGateway(get_client())
