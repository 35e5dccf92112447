"""
Request and result types for the code exchange.

Both types live only for the duration of one callback request.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class CallbackRequest:
    """
    Parameters of an inbound OAuth redirect callback.

    Attributes:
        code: Authorization code issued by the provider (if authorized)
        state: Opaque state value echoed back by the provider
        error: Error code from the provider's error redirect (if denied)
        error_description: Human-readable error description (if denied)
    """

    code: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    @classmethod
    def from_query(cls, args: Mapping[str, str]) -> "CallbackRequest":
        """
        Create CallbackRequest from query string arguments.

        Args:
            args: Query arguments (e.g., Flask's request.args)

        Returns:
            CallbackRequest instance
        """
        return cls(
            code=args.get("code"),
            state=args.get("state"),
            error=args.get("error"),
            error_description=args.get("error_description"),
        )


@dataclass(frozen=True)
class TokenResult:
    """
    Tokens obtained from a successful code exchange.

    Attributes:
        access_token: Short-lived access token for API calls
        refresh_token: Long-lived token for obtaining new access tokens
        expires_in_seconds: Access token lifetime in seconds
        raw_payload: Full decoded provider response, for diagnostics
        refresh_expires_in_seconds: Refresh token lifetime (if returned)
        scope: Granted scopes (if returned)
        open_id: Provider-side user/shop identifier (if returned)
    """

    access_token: str
    refresh_token: str
    expires_in_seconds: int
    raw_payload: dict[str, Any] = field(default_factory=dict)
    refresh_expires_in_seconds: Optional[int] = None
    scope: Optional[str] = None
    open_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON rendering."""
        return asdict(self)
