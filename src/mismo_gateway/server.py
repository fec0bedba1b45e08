"""MISMO gateway MCP server implementation."""

import logging
from typing import Annotated

from mcp.server.fastmcp import FastMCP
from pydantic import AliasChoices, Field

from .config import get_config, setup_logging
from .consts import SERVER_NAME
from .exceptions import ConfigError
from .gateway import get_gateway
from .models import BatchSummary, SubmissionRequest, SubmissionResult

logger = logging.getLogger("mismo-gateway.server")

mcp = FastMCP(
    name=SERVER_NAME,
    instructions="""
    MISMO submission gateway.

    This MCP server allows you to:
    1. Create a loan in MeridianLink from a MISMO 3.4 XML document.
    2. Submit several MISMO documents in one call.
    """,
    log_level=get_config().log_level,
)


def _config_failure(
    error: ConfigError, file_name: str | None = None
) -> SubmissionResult:
    result = SubmissionResult.from_error(error)
    result.file_name = file_name
    return result


@mcp.tool()
async def submit_loan(
    xml_content: Annotated[
        str | None, Field(validation_alias=AliasChoices("xmlContent", "xml_content"))
    ] = None,
    file_name: Annotated[
        str | None, Field(validation_alias=AliasChoices("fileName", "file_name"))
    ] = None,
) -> dict:
    """Create a MeridianLink loan from a MISMO XML document.

    Args:
        xml_content: The complete MISMO XML document as text (xmlContent)
        file_name: Optional name of the source file, echoed in the result (fileName)

    Returns:
        {success, result, loanNumber, rawResponse} on success, or
        {success: false, error, rawResponse} when the upstream rejects it.
    """
    logger.info(f"submit_loan called for {file_name or 'inline document'}")

    try:
        result = await get_gateway().submit(xml_content, file_name=file_name)
        return result.to_json()
    except ConfigError as e:
        # Misconfiguration affects every submission; make it loud in the logs
        logger.critical(f"Gateway is misconfigured: {e.message}")
        return _config_failure(e, file_name).to_json()


@mcp.tool()
async def submit_loans(documents: list[SubmissionRequest]) -> dict:
    """Create one MeridianLink loan per MISMO document.

    Args:
        documents: List of {xmlContent, fileName} objects. Entries whose
            fileName is not an .xml file are skipped with an error.

    Returns:
        {results, submitted, succeeded, failed}, with results in input order.
    """
    logger.info(f"submit_loans called with {len(documents)} documents")

    try:
        results = await get_gateway().submit_many(documents)
    except ConfigError as e:
        logger.critical(f"Gateway is misconfigured: {e.message}")
        results = [_config_failure(e, d.file_name) for d in documents]
    return BatchSummary(results=results).to_json()


def main() -> None:
    """Run the MCP server."""
    setup_logging(get_config().log_level)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
