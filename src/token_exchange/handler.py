"""
Authorization code to token exchange.

The handler turns one OAuth redirect callback into one outbound token
request. Authorization codes are single-use, so no error path ever
re-issues the request.
"""

import logging
from typing import Any, Optional

import requests

from .config import ProviderConfig
from .exceptions import (
    MissingCodeError,
    MissingConfigError,
    ProviderError,
    TransportError,
)
from .models import CallbackRequest, TokenResult
from .providers import TokenProvider, get_provider

logger = logging.getLogger(__name__)


class TokenExchangeHandler:
    """
    Exchanges authorization codes for access and refresh tokens.

    The handler holds only read-only configuration, so one instance can
    serve concurrent callbacks.
    """

    def __init__(
        self,
        config: ProviderConfig,
        provider: Optional[TokenProvider] = None,
        log: Optional[logging.Logger] = None,
    ):
        """
        Initialize the handler.

        Args:
            config: Provider credentials and endpoint
            provider: Provider profile (looked up from config.provider if not provided)
            log: Logger for exchange outcomes (module logger if not provided)
        """
        self.config = config
        self.provider = provider or get_provider(config.provider)
        self.log = log or logger

    def exchange(self, callback: CallbackRequest) -> TokenResult:
        """
        Exchange the callback's authorization code for tokens.

        Args:
            callback: Parameters of the OAuth redirect

        Returns:
            TokenResult with tokens and the full provider payload

        Raises:
            ProviderError: If the callback carries an error or the provider rejects the code
            MissingCodeError: If the callback has no authorization code
            MissingConfigError: If client credentials or redirect URI are missing
            TransportError: If the token endpoint cannot be reached
        """
        if callback.error:
            description = callback.error_description or ""
            self.log.warning(f"Provider redirected with error: {callback.error} - {description}")
            message = f"{callback.error}: {description}" if description else callback.error
            raise ProviderError(
                message,
                provider_payload={
                    "error": callback.error,
                    "error_description": callback.error_description,
                },
            )

        if not callback.code:
            self.log.warning("No authorization code in callback")
            raise MissingCodeError("No authorization code received")

        missing = self.config.missing_fields
        if missing:
            self.log.error(f"Cannot exchange code, missing configuration: {', '.join(missing)}")
            raise MissingConfigError(
                f"Server is missing configuration: {', '.join(missing)}"
            )

        token_request = self.provider.build_request(callback.code, self.config)
        self.log.info(
            f"Exchanging authorization code with {self.provider.name} "
            f"({self.config.token_endpoint})"
        )

        try:
            response = requests.post(
                self.config.token_endpoint,
                timeout=self.config.timeout,
                **token_request.as_requests_kwargs(),
            )
        except requests.Timeout as e:
            self.log.error(f"Token endpoint timed out after {self.config.timeout}s: {e}")
            raise TransportError(
                f"Token endpoint timed out after {self.config.timeout}s: {e}"
            ) from e
        except requests.RequestException as e:
            self.log.error(f"Network error during token exchange: {e}")
            raise TransportError(f"Network error during token exchange: {e}") from e

        payload = _decode(response)

        if not self.provider.is_success(response.status_code, payload):
            message = self.provider.error_message(response.status_code, payload)
            self.log.warning(
                f"Token exchange rejected: {response.status_code} - {message}"
            )
            raise ProviderError(
                message,
                provider_status_code=response.status_code,
                provider_payload=payload,
            )

        try:
            result = self.provider.parse_tokens(payload)
        except (KeyError, ValueError, TypeError) as e:
            self.log.error(f"Invalid response from token endpoint: {e}")
            raise ProviderError(
                f"Invalid response from token endpoint: {e}",
                provider_status_code=response.status_code,
                provider_payload=payload,
            ) from e

        self.log.info(
            f"Token exchange succeeded (expires in {result.expires_in_seconds}s)"
        )
        return result


def _decode(response: requests.Response) -> dict[str, Any]:
    """Decode a JSON object body, wrapping anything else for diagnostics."""
    try:
        payload = response.json()
    except ValueError:
        return {"raw_body": response.text}
    if isinstance(payload, dict):
        return payload
    return {"raw_body": payload}
