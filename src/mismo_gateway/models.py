from datetime import datetime, timedelta
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from .exceptions import GatewayError, UpstreamResponseError

# =============================================================================
# TOKEN STATE
# =============================================================================


class CachedToken(BaseModel):
    """An access token together with the absolute time it stops being valid."""

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., description="Opaque OAuth2 access token")
    expires_at: datetime = Field(..., description="Absolute expiry timestamp")

    def is_fresh(self, now: datetime, buffer: timedelta) -> bool:
        """True while ``now`` is earlier than ``buffer`` before expiry."""
        return now < self.expires_at - buffer


# =============================================================================
# SUBMISSION MODELS
# =============================================================================
# Inbound and outbound shapes of the gateway. Field names are snake_case in
# Python and camelCase on the wire (xmlContent, loanNumber, rawResponse).


class SubmissionRequest(BaseModel):
    """A single MISMO document to submit."""

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    xml_content: str = Field("", description="Raw MISMO XML document as text")
    file_name: str | None = Field(
        None, description="Name of the file the document came from, if any"
    )


class SubmissionResult(BaseModel):
    """Normalized outcome of one submission."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = Field(..., description="True only if a loan number was found")
    result: str | None = Field(None, description="Human-readable outcome")
    loan_number: str | None = Field(None, description="Loan number (sLNm) created")
    raw_response: str | None = Field(
        None, description="Upstream response body (decoded unless a SOAP fault)"
    )
    error: str | None = Field(None, description="Human-readable failure message")
    suggestions: list[str] | None = Field(
        None, description="Actionable suggestions for resolving a failure"
    )
    file_name: str | None = Field(None, description="Echo of the request file name")

    def to_json(self) -> dict[str, Any]:
        """Convert to a camelCase JSON-serializable dict, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_error(cls, error: Exception) -> "SubmissionResult":
        """Create a failed SubmissionResult from any Exception.

        Args:
            error: Any Exception instance

        Returns:
            SubmissionResult with success=False and a human-readable error
        """
        if isinstance(error, GatewayError):
            raw_response = None
            if isinstance(error, UpstreamResponseError):
                raw_response = error.raw_response
            return cls(
                success=False,
                error=error.message,
                raw_response=raw_response,
                suggestions=error.suggestions or None,
            )
        elif isinstance(error, httpx.RequestError):
            # httpx timeouts often carry an empty message
            detail = str(error) or type(error).__name__
            return cls(success=False, error=f"Network error: {detail}")
        else:
            return cls(success=False, error=f"Unexpected error: {str(error)}")


class BatchSummary(BaseModel):
    """Per-document results of a batch submission, in input order."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    results: list[SubmissionResult] = Field(default_factory=list)

    @computed_field
    @property
    def submitted(self) -> int:
        return len(self.results)

    @computed_field
    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @computed_field
    @property
    def failed(self) -> int:
        return self.submitted - self.succeeded

    def to_json(self) -> dict[str, Any]:
        return {
            "results": [r.to_json() for r in self.results],
            "submitted": self.submitted,
            "succeeded": self.succeeded,
            "failed": self.failed,
        }
