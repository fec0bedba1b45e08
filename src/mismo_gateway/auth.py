"""Authentication management with token refresh."""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import httpx

from .config import Config
from .consts import (
    DEFAULT_TOKEN_EXPIRY_SECONDS,
    FORM_CONTENT_TYPE,
    TOKEN_REFRESH_BUFFER_MINUTES,
)
from .exceptions import ConfigError, UpstreamAuthError
from .models import CachedToken

logger = logging.getLogger("mismo-gateway.auth")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AuthManager:
    """OAuth2 client-credentials token manager.

    Responsibilities:
    - Manage token lifecycle (refresh, expiry)
    - Load credentials from config
    - Request new tokens from the identity endpoint, one shared refresh at a time
    """

    def __init__(
        self,
        config: Config,
        http_client: httpx.AsyncClient,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Initialize AuthManager.

        Args:
            config: Config instance with credentials and token_url.
            http_client: HTTP client (for token requests only)
            clock: Returns the current time as an aware datetime.
        """
        self.config = config
        self.http_client = http_client
        self.clock = clock
        self._token: CachedToken | None = None
        self._refresh_task: asyncio.Task[CachedToken] | None = None

    async def get_valid_token(self) -> str:
        """Get a valid access token.

        Concurrent callers that find the cache stale all await the same
        in-flight refresh, so they get the same token or the same exception.

        Returns:
            Access token string.

        Raises:
            ConfigError: If client credentials are not configured.
            UpstreamAuthError: If the identity endpoint rejects the request.
            httpx.RequestError: For network errors, timeouts, DNS failures.
        """
        token = self._token
        if not self._needs_refresh(token):
            return token.access_token

        task = self._refresh_task
        if task is None or task.done():
            task = asyncio.create_task(self._refresh_token())
            task.add_done_callback(self._refresh_finished)
            self._refresh_task = task
        else:
            logger.debug("Joining in-flight token refresh")

        # one cancelled caller must not cancel the refresh the others await
        token = await asyncio.shield(task)
        return token.access_token

    def _refresh_finished(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled():
            # mark the exception retrieved when every waiter was cancelled
            task.exception()

    def _needs_refresh(self, token: CachedToken | None) -> bool:
        """Check if token needs refresh."""
        if token is None:
            return True

        buffer = timedelta(minutes=TOKEN_REFRESH_BUFFER_MINUTES)
        return not token.is_fresh(self.clock(), buffer)

    async def _refresh_token(self) -> CachedToken:
        """Fetch a new token from the identity endpoint and cache it."""
        logger.debug("Refreshing authentication token")

        form = self._load_credentials()
        response = await self.http_client.post(
            self.config.token_url,
            data=form,
            headers={"Content-Type": FORM_CONTENT_TYPE},
        )

        if not response.is_success:
            logger.error(f"Token request failed with status {response.status_code}")
            raise UpstreamAuthError(
                f"OAuth token request failed: {response.status_code} - {response.text}",
                status_code=response.status_code,
                errors=[response.text] if response.text else [],
                suggestions=[
                    "Verify the MeridianLink client id and secret",
                    "Check that the OAuth client is enabled upstream",
                ],
                context={"token_url": self.config.token_url},
            )

        try:
            token_data = response.json()
            access_token = token_data["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Missing access_token in response")
            raise UpstreamAuthError(
                "Auth server returned response without access_token",
                status_code=response.status_code,
                errors=[f"Unexpected token response: {e}"],
                suggestions=[
                    "This may indicate an auth server bug or API change",
                    "Contact system administrator",
                ],
                context={"token_url": self.config.token_url},
            ) from e

        # a missing, null or zero expires_in falls back to the default lifetime
        expires_in = token_data.get("expires_in") or DEFAULT_TOKEN_EXPIRY_SECONDS
        self._token = CachedToken(
            access_token=access_token,
            expires_at=self.clock() + timedelta(seconds=int(expires_in)),
        )

        logger.info(f"Token refreshed successfully, expires in {expires_in}s")
        return self._token

    def _load_credentials(self) -> dict[str, str]:
        """Build the client-credentials form body from config."""
        if not self.config.has_credentials:
            logger.error("MeridianLink client credentials are not configured")
            raise ConfigError(
                "Missing CLIENT_ID or CLIENT_SECRET configuration",
                suggestions=[
                    "Set MERIDIANLINK_CLIENT_ID and MERIDIANLINK_CLIENT_SECRET",
                    "Restart the gateway after updating its environment",
                ],
                context={"token_url": self.config.token_url},
            )

        return {
            "grant_type": "client_credentials",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret.get_secret_value(),
        }
