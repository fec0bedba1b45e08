"""MISMO gateway custom exceptions.

Exception Design Principles:
1. Every failure kind a submission can hit has its own exception, raised where
   it is detected and converted to a SubmissionResult at the gateway boundary
2. Split on domain of actionable information:
   - Fixable by the caller before resubmitting (InputError)
   - Fixable only by operators outside the request (ConfigError)
   - Reported by the upstream service (UpstreamAuthError, ProtocolFault,
     BusinessError)
   - Network trouble between us and upstream (TransportError)
3. ConfigError is the only exception allowed past SubmissionGateway.submit
"""


class GatewayError(Exception):
    """Base exception for all gateway errors.

    Provides rich context and actionable suggestions beyond standard exceptions.
    All gateway custom exceptions inherit from this base class.
    """

    def __init__(
        self,
        message: str,  # the error message
        *,
        errors: list[str] = None,  # detailed list of errors (if available)
        suggestions: list[str] = None,  # remedial actions
        context: dict = None,  # additional detailed context
    ):
        """Initialize GatewayError.

        Args:
            message: Primary error message for users
            errors: List of specific error details
            suggestions: List of actionable suggestions for resolution
            context: Additional context information as key-value pairs
        """
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.context = context or {}


class InputError(GatewayError):
    """Document content rejected before any network I/O.

    Raised for an empty or missing XML document, or a batch entry whose file
    name is not an .xml file. Never retried.
    """

    pass


class ConfigError(GatewayError):
    """Application configuration errors - recoverable by operator reconfiguration.

    Raised when the OAuth2 client id or secret is missing. Fatal for every
    submission until the process is reconfigured, so it is propagated to the
    caller instead of being folded into a per-submission result.
    """

    pass


class UpstreamAuthError(GatewayError):
    """The identity endpoint refused or garbled a client-credentials request."""

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status_code = status_code


class TransportError(GatewayError):
    """Network-level failure contacting the identity or loan endpoint.

    Wraps httpx.RequestError (timeouts, DNS, refused or reset connections).
    """

    pass


class UpstreamResponseError(GatewayError):
    """Base for failures reported inside a loan endpoint response body."""

    def __init__(self, message: str, *, raw_response: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_response = raw_response


class ProtocolFault(UpstreamResponseError):
    """A SOAP <faultstring> in the outer envelope. Definitive failure."""

    pass


class BusinessError(UpstreamResponseError):
    """An <Error> element in the decoded inner document with no loan number."""

    pass
