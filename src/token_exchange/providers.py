"""
Provider profiles for the authorization code exchange.

Providers that nominally speak OAuth disagree on the token endpoint
contract: body encoding (form vs JSON), the names of the fields sent,
how success is signalled, and whether tokens sit at the top level of
the response or under a ``data`` object. Each profile captures one
provider's contract so the handler itself stays provider-agnostic.

Profiles:
    oauth2: Plain RFC 6749 token endpoint (endpoint must be configured)
    tiktok: TikTok Login Kit v2 (form-encoded, flat response)
    tiktok_shop: TikTok Shop seller auth (JSON body, nested ``data``, code == 0)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from .exceptions import ConfigurationError
from .models import TokenResult

if TYPE_CHECKING:
    from .config import ProviderConfig

ENCODING_FORM = "form"
ENCODING_JSON = "json"


@dataclass(frozen=True)
class TokenRequest:
    """
    Outbound token request body and how to encode it.

    Attributes:
        body: Field name to value mapping
        encoding: ENCODING_FORM or ENCODING_JSON
        headers: Extra headers (Content-Type is derived from encoding)
    """

    body: dict[str, str]
    encoding: str = ENCODING_FORM
    headers: dict[str, str] = field(default_factory=dict)

    def as_requests_kwargs(self) -> dict[str, Any]:
        """
        Keyword arguments for requests.post carrying this body.

        Returns:
            Dictionary with headers and either ``data`` or ``json``
        """
        if self.encoding == ENCODING_JSON:
            headers = {"Content-Type": "application/json", **self.headers}
            return {"headers": headers, "json": self.body}

        headers = {"Content-Type": "application/x-www-form-urlencoded", **self.headers}
        return {"headers": headers, "data": self.body}


class TokenProvider(ABC):
    """
    Token endpoint contract of one provider.

    Subclasses set the class attributes below and implement the success
    check and the error message. Request construction and token parsing
    are driven by the attributes.
    """

    name: str = ""
    default_token_endpoint: Optional[str] = None
    encoding: str = ENCODING_FORM
    grant_type: str = "authorization_code"

    # Semantic field -> wire field name in the outbound body
    field_names: dict[str, str] = {
        "client_key": "client_id",
        "client_secret": "client_secret",
        "code": "code",
        "grant_type": "grant_type",
        "redirect_uri": "redirect_uri",
    }

    # Response fields checked, in order, for each extracted value
    expires_in_fields: tuple[str, ...] = ("expires_in",)
    refresh_expires_in_fields: tuple[str, ...] = ("refresh_expires_in",)
    scope_fields: tuple[str, ...] = ("scope",)
    open_id_fields: tuple[str, ...] = ("open_id",)

    def build_request(self, code: str, config: "ProviderConfig") -> TokenRequest:
        """
        Build the outbound token request for an authorization code.

        Args:
            code: Authorization code from the callback
            config: Provider configuration with client credentials

        Returns:
            TokenRequest ready to send
        """
        values = {
            "client_key": config.client_key,
            "client_secret": config.client_secret,
            "code": code,
            "grant_type": self.grant_type,
            "redirect_uri": config.redirect_uri,
        }
        body = {
            wire_name: values[semantic]
            for semantic, wire_name in self.field_names.items()
        }
        return TokenRequest(body=body, encoding=self.encoding)

    @abstractmethod
    def is_success(self, status_code: int, payload: dict[str, Any]) -> bool:
        """Whether the provider response signals a successful exchange."""

    @abstractmethod
    def error_message(self, status_code: int, payload: dict[str, Any]) -> str:
        """Human-readable reason for a failed exchange."""

    def token_fields(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Locate the token fields in a response payload.

        Tokens are either at the top level or nested under ``data``. A
        ``data`` object without an access token is unrelated metadata.
        """
        data = payload.get("data")
        if isinstance(data, dict) and "access_token" in data:
            return data
        return payload

    def parse_tokens(self, payload: dict[str, Any]) -> TokenResult:
        """
        Extract tokens from a successful response payload.

        Args:
            payload: Decoded response body

        Returns:
            TokenResult carrying the extracted fields and the full payload

        Raises:
            KeyError: If access_token is absent
            ValueError: If an expiry field is not an integer
        """
        fields = self.token_fields(payload)

        access_token = fields.get("access_token")
        if not access_token:
            raise KeyError("access_token")

        expires_in = _first(fields, self.expires_in_fields)
        refresh_expires_in = _first(fields, self.refresh_expires_in_fields)
        scope = _first(fields, self.scope_fields)
        if isinstance(scope, (list, tuple)):
            scope = ",".join(str(s) for s in scope)

        return TokenResult(
            access_token=access_token,
            refresh_token=fields.get("refresh_token") or "",
            expires_in_seconds=int(expires_in) if expires_in is not None else 0,
            raw_payload=payload,
            refresh_expires_in_seconds=(
                int(refresh_expires_in) if refresh_expires_in is not None else None
            ),
            scope=scope,
            open_id=_first(fields, self.open_id_fields),
        )


class OAuth2Provider(TokenProvider):
    """Standard OAuth 2.0 token endpoint (RFC 6749 section 4.1.3)."""

    name = "oauth2"

    def is_success(self, status_code: int, payload: dict[str, Any]) -> bool:
        return 200 <= status_code < 300 and not payload.get("error")

    def error_message(self, status_code: int, payload: dict[str, Any]) -> str:
        error = payload.get("error")
        if error:
            description = payload.get("error_description")
            return f"{error}: {description}" if description else str(error)
        return f"Token endpoint returned HTTP {status_code}"


class TikTokProvider(OAuth2Provider):
    """
    TikTok Login Kit v2.

    Sends ``client_key`` rather than ``client_id``, form-encoded. Errors
    may come back with HTTP 200 and an ``error`` field.
    """

    name = "tiktok"
    default_token_endpoint = "https://open.tiktokapis.com/v2/oauth/token/"
    field_names = {
        "client_key": "client_key",
        "client_secret": "client_secret",
        "code": "code",
        "grant_type": "grant_type",
        "redirect_uri": "redirect_uri",
    }


class TikTokShopProvider(TokenProvider):
    """
    TikTok Shop seller authorization.

    JSON body with app credentials and ``auth_code``. The response wraps
    tokens in ``data`` and signals success with ``code == 0``.
    """

    name = "tiktok_shop"
    default_token_endpoint = "https://auth.tiktok-shops.com/api/v2/token/get"
    encoding = ENCODING_JSON
    grant_type = "authorized_code"
    field_names = {
        "client_key": "app_key",
        "client_secret": "app_secret",
        "code": "auth_code",
        "grant_type": "grant_type",
        "redirect_uri": "redirect_uri",
    }
    expires_in_fields = ("expires_in", "access_token_expire_in")
    refresh_expires_in_fields = ("refresh_expires_in", "refresh_token_expire_in")
    scope_fields = ("scope", "granted_scopes")

    def is_success(self, status_code: int, payload: dict[str, Any]) -> bool:
        """2xx with ``code`` equal to 0, given as a number or a numeric string."""
        code = payload.get("code")
        if isinstance(code, bool) or code is None:
            return False
        return 200 <= status_code < 300 and str(code).strip() == "0"

    def error_message(self, status_code: int, payload: dict[str, Any]) -> str:
        message = payload.get("message") or f"HTTP {status_code}"
        if "code" in payload:
            return f"Provider returned code {payload['code']}: {message}"
        return f"Token endpoint returned {message}"


PROVIDERS: dict[str, type[TokenProvider]] = {
    OAuth2Provider.name: OAuth2Provider,
    TikTokProvider.name: TikTokProvider,
    TikTokShopProvider.name: TikTokShopProvider,
}


def get_provider(name: str) -> TokenProvider:
    """
    Look up a provider profile by name.

    Args:
        name: Profile name (e.g., "tiktok")

    Returns:
        TokenProvider instance

    Raises:
        ConfigurationError: If no profile has this name
    """
    try:
        return PROVIDERS[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown provider '{name}'. Available: {', '.join(sorted(PROVIDERS))}"
        ) from None


def _first(fields: dict[str, Any], names: tuple[str, ...]) -> Any:
    for name in names:
        value = fields.get(name)
        if value is not None:
            return value
    return None
