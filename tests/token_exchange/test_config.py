"""Tests for token exchange configuration module."""

import os
from unittest import mock

import pytest

from src.token_exchange.config import ProviderConfig, ServerConfig
from src.token_exchange.exceptions import ConfigurationError

PROVIDER_ENV = {
    "OAUTH_CLIENT_KEY": "env_key",
    "OAUTH_CLIENT_SECRET": "env_secret",
    "OAUTH_REDIRECT_URI": "https://example.com/oauth/callback",
}


class TestProviderConfig:
    """Tests for ProviderConfig class."""

    def test_config_with_required_params(self):
        """Config resolves the profile's default endpoint and timeout."""
        config = ProviderConfig(
            client_key="key",
            client_secret="secret",
            redirect_uri="https://example.com/cb",
        )

        assert config.provider == "tiktok"
        assert config.token_endpoint == "https://open.tiktokapis.com/v2/oauth/token/"
        assert config.timeout == 30.0
        assert config.missing_fields == []

    def test_config_for_tiktok_shop(self):
        """tiktok_shop profile has its own default endpoint."""
        config = ProviderConfig(provider="tiktok_shop", client_key="k")

        assert config.token_endpoint == "https://auth.tiktok-shops.com/api/v2/token/get"

    def test_config_endpoint_override(self):
        """An explicit token_endpoint wins over the profile default."""
        config = ProviderConfig(token_endpoint="https://auth.example.com/token")

        assert config.token_endpoint == "https://auth.example.com/token"

    def test_config_allows_missing_credentials(self):
        """Programmatic config may omit credentials; missing_fields lists them."""
        config = ProviderConfig(client_key="key")

        assert config.missing_fields == ["client_secret", "redirect_uri"]

    def test_config_unknown_provider(self):
        """Unknown provider names are rejected."""
        with pytest.raises(ConfigurationError, match="Unknown provider 'nope'"):
            ProviderConfig(provider="nope")

    def test_config_oauth2_requires_endpoint(self):
        """The generic oauth2 profile has no default endpoint."""
        with pytest.raises(ConfigurationError, match="token_endpoint must be set"):
            ProviderConfig(provider="oauth2")

    def test_config_rejects_plain_http(self):
        """Token endpoint must use https."""
        with pytest.raises(ConfigurationError, match="must use https"):
            ProviderConfig(token_endpoint="http://auth.example.com/token")

    def test_config_allows_insecure_localhost_when_enabled(self):
        """Plain http on localhost is allowed only with allow_insecure_endpoint."""
        config = ProviderConfig(
            token_endpoint="http://localhost:9000/token", allow_insecure_endpoint=True
        )
        assert config.token_endpoint == "http://localhost:9000/token"

        with pytest.raises(ConfigurationError, match="must use https"):
            ProviderConfig(
                token_endpoint="http://evil.example.com/token",
                allow_insecure_endpoint=True,
            )

    def test_config_rejects_relative_endpoint(self):
        """Token endpoint must be absolute."""
        with pytest.raises(ConfigurationError, match="absolute URL"):
            ProviderConfig(token_endpoint="/token")

    def test_config_validates_timeout(self):
        """Timeout must be positive."""
        with pytest.raises(ConfigurationError, match="timeout must be a positive, finite"):
            ProviderConfig(timeout=0)

    @pytest.mark.parametrize("timeout", [float("inf"), float("nan"), float("-inf")])
    def test_config_rejects_unbounded_timeout(self, timeout):
        """Infinite or NaN timeouts would leave the outbound call unbounded."""
        with pytest.raises(ConfigurationError, match="timeout must be a positive, finite"):
            ProviderConfig(timeout=timeout)

    @pytest.mark.parametrize("value", ["inf", "nan", "Infinity"])
    def test_from_env_rejects_unbounded_timeout(self, value):
        """OAUTH_TIMEOUT=inf or nan fails at startup."""
        with mock.patch.dict(os.environ, {**PROVIDER_ENV, "OAUTH_TIMEOUT": value}, clear=True):
            with pytest.raises(ConfigurationError, match="finite"):
                ProviderConfig.from_env()

    @mock.patch.dict(os.environ, PROVIDER_ENV, clear=True)
    def test_from_env_with_minimal_config(self):
        """from_env loads credentials and applies defaults."""
        config = ProviderConfig.from_env()

        assert config.client_key == "env_key"
        assert config.client_secret == "env_secret"
        assert config.redirect_uri == "https://example.com/oauth/callback"
        assert config.provider == "tiktok"
        assert config.timeout == 30.0

    @mock.patch.dict(
        os.environ,
        {
            **PROVIDER_ENV,
            "OAUTH_PROVIDER": "tiktok_shop",
            "OAUTH_TOKEN_ENDPOINT": "https://auth.example.com/token",
            "OAUTH_TIMEOUT": "12.5",
        },
        clear=True,
    )
    def test_from_env_with_all_config(self):
        """from_env reads the optional variables."""
        config = ProviderConfig.from_env()

        assert config.provider == "tiktok_shop"
        assert config.token_endpoint == "https://auth.example.com/token"
        assert config.timeout == 12.5

    @mock.patch.dict(os.environ, {**PROVIDER_ENV, "OAUTH_PROVIDER": "tiktok_shop"}, clear=True)
    def test_from_env_provider_argument_overrides_env(self):
        """An explicit provider argument overrides OAUTH_PROVIDER."""
        config = ProviderConfig.from_env(provider="tiktok")

        assert config.provider == "tiktok"

    @mock.patch.dict(os.environ, {"OAUTH_CLIENT_KEY": "key"}, clear=True)
    def test_from_env_lists_every_missing_variable(self):
        """from_env fails fast naming all missing credentials."""
        with pytest.raises(ConfigurationError) as exc_info:
            ProviderConfig.from_env()

        message = str(exc_info.value)
        assert "OAUTH_CLIENT_SECRET" in message
        assert "OAUTH_REDIRECT_URI" in message
        assert "OAUTH_CLIENT_KEY" not in message

    @mock.patch.dict(os.environ, {**PROVIDER_ENV, "OAUTH_TIMEOUT": "soon"}, clear=True)
    def test_from_env_invalid_timeout(self):
        """Non-numeric OAUTH_TIMEOUT is a configuration error."""
        with pytest.raises(ConfigurationError, match="OAUTH_TIMEOUT"):
            ProviderConfig.from_env()


class TestServerConfig:
    """Tests for ServerConfig class."""

    def test_config_defaults(self):
        """Config defaults match the deployment defaults."""
        config = ServerConfig()

        assert config.host == "0.0.0.0"
        assert config.port == 3000
        assert config.environment == "development"
        assert config.callback_path == "/oauth/callback"
        assert config.response_format == "html"
        assert config.use_ssl is False
        assert config.on_railway is False

    def test_config_validates_port_range(self):
        """Config validates port is in valid range."""
        with pytest.raises(ConfigurationError, match="port must be between 1 and 65535"):
            ServerConfig(port=0)

        with pytest.raises(ConfigurationError, match="port must be between 1 and 65535"):
            ServerConfig(port=70000)

    def test_config_validates_response_format(self):
        """Only html and json response formats are accepted."""
        with pytest.raises(ConfigurationError, match="response_format"):
            ServerConfig(response_format="xml")

    def test_config_validates_callback_path(self):
        """Callback path must be absolute."""
        with pytest.raises(ConfigurationError, match="callback_path"):
            ServerConfig(callback_path="oauth/callback")

    def test_config_requires_ssl_pair(self):
        """SSL certificate and key must be set together."""
        with pytest.raises(ConfigurationError, match="must be set together"):
            ServerConfig(ssl_cert_path="/tmp/cert.pem")

        config = ServerConfig(ssl_cert_path="/tmp/cert.pem", ssl_key_path="/tmp/key.pem")
        assert config.use_ssl is True

    def test_railway_environment_is_part_of_equality(self):
        """railway_environment is an ordinary field."""
        assert ServerConfig(railway_environment="production") != ServerConfig()
        assert ServerConfig(railway_environment="production").on_railway is True

    @mock.patch.dict(
        os.environ,
        {
            "HOST": "127.0.0.1",
            "PORT": "8080",
            "APP_ENV": "production",
            "CALLBACK_PATH": "/callback",
            "RESPONSE_FORMAT": "JSON",
            "RAILWAY_ENVIRONMENT": "production",
        },
        clear=True,
    )
    def test_from_env(self):
        """from_env loads all server variables."""
        config = ServerConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.environment == "production"
        assert config.callback_path == "/callback"
        assert config.response_format == "json"
        assert config.on_railway is True

    @mock.patch.dict(os.environ, {}, clear=True)
    def test_from_env_defaults(self):
        """from_env with an empty environment uses defaults."""
        assert ServerConfig.from_env() == ServerConfig()

    @mock.patch.dict(os.environ, {"PORT": "eighty"}, clear=True)
    def test_from_env_invalid_port(self):
        """Non-integer PORT is a configuration error."""
        with pytest.raises(ConfigurationError, match="PORT must be an integer"):
            ServerConfig.from_env()
