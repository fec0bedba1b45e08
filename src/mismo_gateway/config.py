"""Configuration management."""

import logging
from functools import cache

from pydantic import ConfigDict, Field, SecretStr, computed_field
from pydantic_settings import BaseSettings

from .consts import DEFAULT_LOAN_URL, DEFAULT_TOKEN_URL, SERVER_NAME


class Config(BaseSettings):
    """Gateway configuration, read from MERIDIANLINK_* environment variables."""

    model_config = ConfigDict(
        env_prefix="MERIDIANLINK_", case_sensitive=False, extra="ignore"
    )
    client_id: str | None = Field(
        default=None, description="OAuth2 client id issued by MeridianLink"
    )
    client_secret: SecretStr | None = Field(
        default=None, description="OAuth2 client secret issued by MeridianLink"
    )
    token_url: str = Field(
        default=DEFAULT_TOKEN_URL,
        description="Identity endpoint for client-credentials tokens",
    )
    loan_url: str = Field(
        default=DEFAULT_LOAN_URL, description="SOAP endpoint of the Loan web service"
    )
    log_level: str = Field(
        default="INFO",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
        description="Logging level",
    )
    timeout_seconds: int = Field(
        default=30, gt=0, le=300, description="HTTP request timeout in seconds"
    )

    @computed_field
    @property
    def has_credentials(self) -> bool:
        """Whether both halves of the client credentials are set."""
        return bool(
            self.client_id
            and self.client_secret
            and self.client_secret.get_secret_value()
        )

    def __repr__(self) -> str:
        return (
            f"Config(token_url='{self.token_url}', loan_url='{self.loan_url}', "
            f"log_level='{self.log_level}')"
        )


@cache
def get_config() -> Config:
    """Get a cached Config instance."""
    return Config()


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """Configure logging for the entire application"""
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,  # Override any existing configuration
    )
    return logging.getLogger(SERVER_NAME)
