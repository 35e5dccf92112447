"""Tests for callback request and token result types."""

import dataclasses

import pytest

from src.token_exchange.models import CallbackRequest, TokenResult


class TestCallbackRequest:
    """Tests for CallbackRequest."""

    def test_from_query_reads_all_fields(self):
        """from_query picks up code, state and error fields."""
        callback = CallbackRequest.from_query(
            {
                "code": "abc",
                "state": "xyz",
                "error": "access_denied",
                "error_description": "User denied",
                "scopes": "ignored",
            }
        )

        assert callback.code == "abc"
        assert callback.state == "xyz"
        assert callback.error == "access_denied"
        assert callback.error_description == "User denied"

    def test_from_query_missing_fields_are_none(self):
        """Absent query parameters become None."""
        callback = CallbackRequest.from_query({})

        assert callback == CallbackRequest()
        assert callback.code is None

    def test_callback_request_is_immutable(self):
        """CallbackRequest cannot be modified once received."""
        callback = CallbackRequest(code="abc")

        with pytest.raises(dataclasses.FrozenInstanceError):
            callback.code = "other"


class TestTokenResult:
    """Tests for TokenResult."""

    def test_to_dict(self):
        """to_dict includes extracted fields and raw payload."""
        payload = {"access_token": "T", "refresh_token": "R", "expires_in": 3600}
        result = TokenResult(
            access_token="T", refresh_token="R", expires_in_seconds=3600, raw_payload=payload
        )

        data = result.to_dict()

        assert data["access_token"] == "T"
        assert data["refresh_token"] == "R"
        assert data["expires_in_seconds"] == 3600
        assert data["raw_payload"] == payload
        assert data["scope"] is None
