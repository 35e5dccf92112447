"""
Exception classes for the token exchange server.

Configuration problems are fatal and raised at startup. Exchange errors
are raised per callback by the handler and recovered at the route
boundary, where they become an HTTP status plus a diagnostic payload.
"""

from enum import Enum
from typing import Any, Optional


class TokenExchangeServerError(Exception):
    """Base exception for all token exchange server errors."""

    pass


class ConfigurationError(TokenExchangeServerError):
    """Server or provider configuration error (missing or invalid values)."""

    pass


class ErrorKind(str, Enum):
    """Category of a failed code exchange."""

    MISSING_CODE = "MissingCode"
    MISSING_CONFIG = "MissingConfig"
    PROVIDER_ERROR = "ProviderError"
    TRANSPORT_ERROR = "TransportError"


class ExchangeError(TokenExchangeServerError):
    """
    Failed to exchange an authorization code for tokens.

    Attributes:
        kind: Error category
        message: Human-readable description
        provider_status_code: HTTP status returned by the provider (if any)
        provider_payload: Decoded provider response body (if any)
    """

    kind: ErrorKind = ErrorKind.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        provider_status_code: Optional[int] = None,
        provider_payload: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider_status_code = provider_status_code
        self.provider_payload = provider_payload

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON rendering.

        Returns:
            Dictionary with kind, message and any provider diagnostics
        """
        return {
            "kind": self.kind.value,
            "message": self.message,
            "provider_status_code": self.provider_status_code,
            "provider_payload": self.provider_payload,
        }


class MissingCodeError(ExchangeError):
    """Callback arrived without an authorization code."""

    kind = ErrorKind.MISSING_CODE


class MissingConfigError(ExchangeError):
    """Client credentials or redirect URI are not configured."""

    kind = ErrorKind.MISSING_CONFIG


class ProviderError(ExchangeError):
    """Provider rejected the authorization or the code exchange."""

    kind = ErrorKind.PROVIDER_ERROR


class TransportError(ExchangeError):
    """Network failure talking to the token endpoint (timeout, DNS, connection)."""

    kind = ErrorKind.TRANSPORT_ERROR
