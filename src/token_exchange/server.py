"""
HTTP server for OAuth redirect callbacks.

The server receives the provider's redirect, hands it to the token
exchange handler, and renders the outcome as HTML (for a person in a
browser) or JSON (for scripts). It also serves a status page, a health
check, and a catch-all 404.
"""

import json
import logging
import ssl
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from flask import Flask, Response, jsonify, request
from markupsafe import escape
from werkzeug.serving import BaseWSGIServer, make_server

from .config import ServerConfig
from .exceptions import ErrorKind, ExchangeError
from .handler import TokenExchangeHandler
from .models import CallbackRequest, TokenResult

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.MISSING_CODE: 400,
    ErrorKind.MISSING_CONFIG: 500,
    ErrorKind.PROVIDER_ERROR: 500,
    ErrorKind.TRANSPORT_ERROR: 500,
}

PAGE_STYLE = "font-family: Arial, sans-serif; max-width: 720px; margin: 50px auto; padding: 20px;"


class CallbackServer:
    """
    Flask application hosting the OAuth callback.

    Routes:
    - <callback_path>: exchange the authorization code and render the result
    - /: status page
    - /health: JSON health check
    - anything else: 404
    """

    def __init__(self, config: ServerConfig, handler: TokenExchangeHandler):
        """
        Initialize callback server.

        Args:
            config: Server configuration
            handler: Token exchange handler used for every callback
        """
        self.config = config
        self.handler = handler
        self.app = Flask(__name__)
        self.app.logger.setLevel(logging.WARNING)  # Suppress Flask logs
        self.server: Optional[BaseWSGIServer] = None

        # Register routes
        self.app.add_url_rule(
            self.config.callback_path,
            "oauth_callback",
            self._handle_callback,
            methods=["GET"],
        )
        self.app.add_url_rule("/", "root", self._handle_root, methods=["GET"])
        self.app.add_url_rule("/health", "health", self._handle_health, methods=["GET"])
        self.app.register_error_handler(404, self._handle_not_found)

    def _handle_callback(self) -> Response:
        """Handle OAuth redirect callback from the provider."""
        logger.info("Received OAuth callback")
        callback = CallbackRequest.from_query(request.args)

        try:
            result = self.handler.exchange(callback)
        except ExchangeError as e:
            status = STATUS_BY_KIND[e.kind]
            logger.warning(f"Callback failed with {e.kind.value} (HTTP {status})")
            if self._wants_json():
                response = jsonify({"success": False, "state": callback.state, "error": e.to_dict()})
                response.status_code = status
                return response
            return Response(_error_page(e), status=status, content_type="text/html")

        if self._wants_json():
            return jsonify({"success": True, "state": callback.state, "tokens": result.to_dict()})
        return Response(_success_page(result), status=200, content_type="text/html")

    def _handle_root(self) -> Response:
        """Status page."""
        logger.info("Root endpoint accessed")
        return Response(
            f"""<html>
            <head><title>Token Exchange Server</title></head>
            <body style="{PAGE_STYLE}">
                <h1>✅ Server is running</h1>
                <p><strong>Port:</strong> {self.config.port}</p>
                <p><strong>Time:</strong> {_now()}</p>
                <p><strong>Environment:</strong> {escape(self.config.environment)}</p>
                <p><strong>Provider:</strong> {escape(self.handler.provider.name)}</p>
            </body>
            </html>""",
            status=200,
            content_type="text/html",
        )

    def _handle_health(self) -> Response:
        """Health check endpoint."""
        logger.info("Health check accessed")
        return jsonify({"status": "OK", "port": self.config.port, "timestamp": _now()})

    def _handle_not_found(self, error: Exception) -> Response:
        """Catch-all for unknown paths."""
        logger.info(f"404 - Path not found: {request.full_path.rstrip('?')}")
        return Response("404 - Not Found", status=404, content_type="text/plain")

    def _wants_json(self) -> bool:
        """Pick JSON or HTML from ?format=, then Accept, then the configured default."""
        requested = request.args.get("format", "").lower()
        if requested in ("html", "json"):
            return requested == "json"

        accept = request.accept_mimetypes
        json_quality = accept.quality("application/json")
        html_quality = accept.quality("text/html")
        if json_quality != html_quality:
            return json_quality > html_quality

        return self.config.response_format == "json"

    def _ssl_context(self) -> Optional[ssl.SSLContext]:
        if not self.config.use_ssl:
            return None

        cert_path = Path(self.config.ssl_cert_path)
        key_path = Path(self.config.ssl_key_path)

        if not cert_path.exists():
            raise FileNotFoundError(f"SSL certificate not found at {cert_path}")

        if not key_path.exists():
            raise FileNotFoundError(f"SSL key not found at {key_path}")

        ssl_context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
        ssl_context.load_cert_chain(str(cert_path), str(key_path))
        logger.info(f"Using SSL certificate: {cert_path}")
        return ssl_context

    def serve_forever(self) -> None:
        """
        Bind and serve requests until shutdown() is called.

        Requests are dispatched on threads; the handler is reentrant.

        Raises:
            FileNotFoundError: If configured SSL certificate files are missing
            OSError: If the port cannot be bound
        """
        self.server = make_server(
            self.config.host,
            self.config.port,
            self.app,
            threaded=True,
            ssl_context=self._ssl_context(),
        )
        scheme = "https" if self.config.use_ssl else "http"
        logger.info(f"Server running on {scheme}://{self.config.host}:{self.config.port}")
        self.server.serve_forever()

    def shutdown(self) -> None:
        """
        Stop serving.

        Must be called from a thread other than the one in serve_forever().
        """
        if self.server:
            logger.info("Server shutting down")
            self.server.shutdown()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _pretty(payload: Optional[dict[str, Any]]) -> str:
    return json.dumps(payload, indent=2, sort_keys=True, default=str)


def _success_page(result: TokenResult) -> str:
    refresh_expiry = ""
    if result.refresh_expires_in_seconds is not None:
        refresh_expiry = (
            f"<p><strong>Refresh expires in:</strong> "
            f"{result.refresh_expires_in_seconds} seconds</p>"
        )

    return f"""<html>
            <head><title>Authorization Successful</title></head>
            <body style="{PAGE_STYLE}">
                <h1 style="color: #4caf50;">✅ Authorization Successful!</h1>
                <p><strong>Access token:</strong> <code>{escape(result.access_token)}</code></p>
                <p><strong>Refresh token:</strong> <code>{escape(result.refresh_token)}</code></p>
                <p><strong>Expires in:</strong> {result.expires_in_seconds} seconds</p>
                {refresh_expiry}
                <h3>Full response</h3>
                <pre>{escape(_pretty(result.raw_payload))}</pre>
                <p style="margin-top: 30px; color: #666;">You can close this window.</p>
            </body>
            </html>"""


def _error_page(error: ExchangeError) -> str:
    details = ""
    if error.provider_status_code is not None:
        details += f"<p><strong>Provider status:</strong> {error.provider_status_code}</p>"
    if error.provider_payload is not None:
        details += f"<h3>Provider response</h3><pre>{escape(_pretty(error.provider_payload))}</pre>"

    return f"""<html>
            <head><title>Authorization Failed</title></head>
            <body style="{PAGE_STYLE}">
                <h1 style="color: #d32f2f;">❌ Authorization Failed</h1>
                <p><strong>Error:</strong> {escape(error.kind.value)}</p>
                <p><strong>Description:</strong> {escape(error.message)}</p>
                {details}
                <p style="margin-top: 30px; color: #666;">You can close this window.</p>
            </body>
            </html>"""
