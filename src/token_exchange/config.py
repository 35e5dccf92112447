"""
Configuration for the token exchange server.

Configuration is loaded once at process start, from environment variables
or provided programmatically, and passed explicitly to the handler and
server. Nothing reads the environment after startup.
"""

import math
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from .exceptions import ConfigurationError
from .providers import get_provider

DEFAULT_TIMEOUT_SECONDS = 30.0
RESPONSE_FORMATS = ("html", "json")
LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


@dataclass(frozen=True)
class ProviderConfig:
    """
    Client credentials and token endpoint for one provider.

    Credentials may be left empty when constructed programmatically; the
    handler refuses to exchange until they are set. ``from_env`` rejects
    missing credentials outright.

    Attributes:
        provider: Provider profile name (see providers.PROVIDERS)
        client_key: Client/app key issued by the provider
        client_secret: Client/app secret issued by the provider
        redirect_uri: Redirect URI registered with the provider
        token_endpoint: Token endpoint URL (default: the profile's endpoint)
        timeout: Outbound request timeout in seconds
        allow_insecure_endpoint: Permit plain-HTTP endpoints on localhost
    """

    provider: str = "tiktok"
    client_key: str = ""
    client_secret: str = ""
    redirect_uri: str = ""
    token_endpoint: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    allow_insecure_endpoint: bool = False

    def __post_init__(self) -> None:
        """Validate configuration and resolve the default endpoint."""
        profile = get_provider(self.provider)

        if not self.token_endpoint:
            if not profile.default_token_endpoint:
                raise ConfigurationError(
                    f"Provider '{self.provider}' has no default token endpoint; "
                    f"token_endpoint must be set"
                )
            # Frozen dataclass: assign through object.__setattr__
            object.__setattr__(self, "token_endpoint", profile.default_token_endpoint)

        parsed = urlparse(self.token_endpoint)
        if not parsed.netloc:
            raise ConfigurationError(
                f"token_endpoint must be an absolute URL, got {self.token_endpoint!r}"
            )
        if parsed.scheme != "https":
            insecure_ok = (
                self.allow_insecure_endpoint
                and parsed.scheme == "http"
                and parsed.hostname in LOCAL_HOSTS
            )
            if not insecure_ok:
                raise ConfigurationError(
                    f"token_endpoint must use https, got {self.token_endpoint}"
                )

        if not math.isfinite(self.timeout) or self.timeout <= 0:
            raise ConfigurationError("timeout must be a positive, finite number of seconds")

    @property
    def missing_fields(self) -> list[str]:
        """
        Names of required credential fields that are empty.

        Returns:
            Subset of ["client_key", "client_secret", "redirect_uri"]
        """
        return [
            name
            for name in ("client_key", "client_secret", "redirect_uri")
            if not getattr(self, name)
        ]

    @classmethod
    def from_env(cls, provider: Optional[str] = None) -> "ProviderConfig":
        """
        Load configuration from environment variables.

        Required environment variables:
            OAUTH_CLIENT_KEY: Client/app key
            OAUTH_CLIENT_SECRET: Client/app secret
            OAUTH_REDIRECT_URI: Registered redirect URI

        Optional environment variables:
            OAUTH_PROVIDER: Provider profile name (default: tiktok)
            OAUTH_TOKEN_ENDPOINT: Token endpoint override
            OAUTH_TIMEOUT: Outbound timeout in seconds (default: 30)

        Args:
            provider: Provider profile name, overriding OAUTH_PROVIDER

        Returns:
            ProviderConfig instance

        Raises:
            ConfigurationError: If required variables are missing or invalid
        """
        required = {
            "client_key": "OAUTH_CLIENT_KEY",
            "client_secret": "OAUTH_CLIENT_SECRET",
            "redirect_uri": "OAUTH_REDIRECT_URI",
        }
        values = {name: os.environ.get(var, "") for name, var in required.items()}
        missing = [var for name, var in required.items() if not values[name]]

        if missing:
            raise ConfigurationError(
                "Missing OAuth provider configuration. Set environment variables:\n"
                + "\n".join(f"  {var}=..." for var in missing)
            )

        timeout_raw = os.environ.get("OAUTH_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT_SECONDS
        except ValueError:
            raise ConfigurationError(
                f"OAUTH_TIMEOUT must be a number of seconds, got {timeout_raw!r}"
            ) from None

        return cls(
            provider=provider or os.environ.get("OAUTH_PROVIDER", "tiktok"),
            token_endpoint=os.environ.get("OAUTH_TOKEN_ENDPOINT") or None,
            timeout=timeout,
            **values,
        )


@dataclass(frozen=True)
class ServerConfig:
    """
    HTTP server configuration.

    Attributes:
        host: Bind address (default: all interfaces)
        port: Listen port (default: 3000)
        environment: Deployment environment name shown on the status page
        callback_path: URL path of the OAuth redirect callback
        response_format: Default rendering, "html" or "json"
        ssl_cert_path: Path to SSL certificate (serve HTTPS when set)
        ssl_key_path: Path to SSL private key
        railway_environment: Railway deployment environment (if deployed there)
    """

    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"
    callback_path: str = "/oauth/callback"
    response_format: str = "html"
    ssl_cert_path: Optional[str] = None
    ssl_key_path: Optional[str] = None
    railway_environment: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not isinstance(self.port, int) or not (1 <= self.port <= 65535):
            raise ConfigurationError(
                f"port must be between 1 and 65535, got {self.port}"
            )

        if self.response_format not in RESPONSE_FORMATS:
            raise ConfigurationError(
                f"response_format must be one of {', '.join(RESPONSE_FORMATS)}, "
                f"got {self.response_format!r}"
            )

        if not self.callback_path.startswith("/"):
            raise ConfigurationError("callback_path must start with '/'")

        if bool(self.ssl_cert_path) != bool(self.ssl_key_path):
            raise ConfigurationError(
                "ssl_cert_path and ssl_key_path must be set together"
            )

    @property
    def use_ssl(self) -> bool:
        """Whether the server terminates TLS itself."""
        return bool(self.ssl_cert_path and self.ssl_key_path)

    @property
    def on_railway(self) -> bool:
        """Whether the process runs on a Railway deployment."""
        return bool(self.railway_environment)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Load configuration from environment variables.

        Optional environment variables:
            HOST: Bind address (default: 0.0.0.0)
            PORT: Listen port (default: 3000)
            APP_ENV: Environment name (default: development)
            CALLBACK_PATH: Callback path (default: /oauth/callback)
            RESPONSE_FORMAT: html or json (default: html)
            SSL_CERT_PATH / SSL_KEY_PATH: Serve HTTPS with this cert pair
            RAILWAY_ENVIRONMENT: Set by Railway deployments

        Returns:
            ServerConfig instance

        Raises:
            ConfigurationError: If a variable has an invalid value
        """
        port_raw = os.environ.get("PORT", "3000")
        try:
            port = int(port_raw)
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got {port_raw!r}") from None

        return cls(
            host=os.environ.get("HOST", "0.0.0.0"),
            port=port,
            environment=os.environ.get("APP_ENV", "development"),
            callback_path=os.environ.get("CALLBACK_PATH", "/oauth/callback"),
            response_format=os.environ.get("RESPONSE_FORMAT", "html").lower(),
            ssl_cert_path=os.environ.get("SSL_CERT_PATH") or None,
            ssl_key_path=os.environ.get("SSL_KEY_PATH") or None,
            railway_environment=os.environ.get("RAILWAY_ENVIRONMENT") or None,
        )
