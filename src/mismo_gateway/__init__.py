"""MISMO Gateway Package

Submits MISMO XML loan documents to MeridianLink's LendersOffice Loan web
service over SOAP, authenticating with OAuth2 client credentials.
"""

from .auth import AuthManager
from .client import MeridianLinkClient, get_client
from .config import Config, get_config
from .consts import PACKAGE_VERSION
from .exceptions import (
    BusinessError,
    ConfigError,
    GatewayError,
    InputError,
    ProtocolFault,
    TransportError,
    UpstreamAuthError,
)
from .gateway import SubmissionGateway, get_gateway
from .models import SubmissionRequest, SubmissionResult

__version__ = PACKAGE_VERSION

__all__ = [
    "__version__",
    "get_config",
    "get_client",
    "get_gateway",
    "Config",
    "AuthManager",
    "MeridianLinkClient",
    "SubmissionGateway",
    "SubmissionRequest",
    "SubmissionResult",
    "GatewayError",
    "InputError",
    "ConfigError",
    "UpstreamAuthError",
    "TransportError",
    "ProtocolFault",
    "BusinessError",
]
