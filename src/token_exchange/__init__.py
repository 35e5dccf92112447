"""
OAuth callback token exchange server.

This module receives an OAuth redirect callback carrying an authorization
code, exchanges the code for an access/refresh token pair at the
provider's token endpoint, and renders the result as HTML or JSON.

Public API:
    ProviderConfig: Client credentials and token endpoint
    ServerConfig: HTTP server configuration
    CallbackRequest: Inbound redirect parameters
    TokenResult: Tokens from a successful exchange
    TokenProvider: Provider profile base (see get_provider)
    TokenExchangeHandler: Code-for-token exchange
    CallbackServer: Flask application hosting the callback

Exceptions:
    TokenExchangeServerError: Base exception
    ConfigurationError: Configuration error
    ExchangeError: Code exchange failed (base of the four kinds below)
    MissingCodeError, MissingConfigError, ProviderError, TransportError
"""

from .config import ProviderConfig, ServerConfig
from .exceptions import (
    ConfigurationError,
    ErrorKind,
    ExchangeError,
    MissingCodeError,
    MissingConfigError,
    ProviderError,
    TokenExchangeServerError,
    TransportError,
)
from .handler import TokenExchangeHandler
from .models import CallbackRequest, TokenResult
from .providers import PROVIDERS, TokenProvider, get_provider
from .server import CallbackServer

__all__ = [
    # Configuration
    "ProviderConfig",
    "ServerConfig",
    # Models
    "CallbackRequest",
    "TokenResult",
    # Providers
    "PROVIDERS",
    "TokenProvider",
    "get_provider",
    # Handler
    "TokenExchangeHandler",
    # Server
    "CallbackServer",
    # Exceptions
    "TokenExchangeServerError",
    "ConfigurationError",
    "ErrorKind",
    "ExchangeError",
    "MissingCodeError",
    "MissingConfigError",
    "ProviderError",
    "TransportError",
]
