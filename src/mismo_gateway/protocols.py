"""Protocol definitions for dependency injection and interface contracts."""

from typing import Protocol


class TokenProvider(Protocol):
    """Protocol for authentication token providers."""

    async def get_valid_token(self) -> str:
        """Get a valid access token.

        Returns:
            Access token string, without the "Bearer " prefix.

        Raises:
            ConfigError: If client credentials are not configured.
            UpstreamAuthError: If the identity endpoint rejects the request.
            httpx.RequestError: For network errors, timeouts, DNS failures.
        """
        ...
