"""MeridianLink client: handles low-level API calls."""

import logging
from functools import cache

import httpx

from .auth import AuthManager
from .config import Config, get_config
from .consts import SOAP_CONTENT_TYPE, USER_AGENT
from .exceptions import UpstreamResponseError
from .protocols import TokenProvider

logger = logging.getLogger("mismo-gateway.client")


class MeridianLinkClient:
    """MeridianLink API client with authentication.

    Responsibilities:
    - Own the shared HTTP connection pool and its default timeout
    - Hand out access tokens from the token provider
    - Post SOAP requests and return the body whatever the HTTP status
    """

    def __init__(
        self,
        config: Config | None = None,
        token_provider: TokenProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize MeridianLinkClient.

        Args:
            config: Config instance. If None, uses get_config().
            token_provider: Authentication token provider. If None, creates AuthManager.
            http_client: HTTP client. If None, creates a new one.
        """
        self.config = config or get_config()

        self.http_client = http_client or httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            timeout=self.config.timeout_seconds,
            follow_redirects=True,
        )

        self.token_provider = token_provider or AuthManager(
            self.config, self.http_client
        )

        logger.info(f"MeridianLink client created for {self.config.loan_url}")

    async def __aenter__(self) -> "MeridianLinkClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self.http_client.aclose()

    async def get_token(self) -> str:
        """Get a valid access token.

        Raises:
            ConfigError: If client credentials are not configured.
            UpstreamAuthError: If the identity endpoint rejects the request.
            httpx.RequestError: For network errors, timeouts, DNS failures.
        """
        return await self.token_provider.get_valid_token()

    async def post_soap(
        self, envelope: str, soap_action: str, timeout: float | None = None
    ) -> str:
        """Post a SOAP envelope to the loan endpoint.

        Args:
            envelope: Complete SOAP 1.1 request document.
            soap_action: Quoted SOAPAction header value.
            timeout: Per-request timeout in seconds. If None, uses the client default.

        Returns:
            Response body text. Non-2xx statuses are not raised: the Loan
            service reports faults and business errors in the body.

        Raises:
            UpstreamResponseError: If the loan endpoint answers with a redirect.
            httpx.RequestError: For network errors, timeouts, DNS failures.
        """
        kwargs = {}
        if timeout is not None:
            kwargs["timeout"] = timeout

        logger.debug(f"POST {self.config.loan_url} ({len(envelope)} bytes)")
        # a followed redirect would replay the POST as a body-less GET
        response = await self.http_client.post(
            self.config.loan_url,
            content=envelope.encode("utf-8"),
            headers={"Content-Type": SOAP_CONTENT_TYPE, "SOAPAction": soap_action},
            follow_redirects=False,
            **kwargs,
        )
        if response.is_redirect:
            location = response.headers.get("Location", "")
            logger.error(
                f"POST {self.config.loan_url} redirected "
                f"({response.status_code}) to {location}"
            )
            raise UpstreamResponseError(
                f"Loan endpoint redirected ({response.status_code}) to {location}",
                raw_response=response.text,
                suggestions=["Check MERIDIANLINK_LOAN_URL points at Loan.asmx"],
                context={"url": self.config.loan_url, "location": location},
            )
        if response.is_success:
            logger.debug(f"POST {self.config.loan_url} returned {response.status_code}")
        else:
            logger.warning(
                f"POST {self.config.loan_url} returned {response.status_code}"
            )
        return response.text


@cache
def get_client() -> MeridianLinkClient:
    """Get a cached MeridianLinkClient instance with default configuration.

    Raises:
        No exceptions raised directly.
        May propagate exceptions from Config() initialization via get_config().
    """
    return MeridianLinkClient()
