"""
Unit tests for the consent API models.

Tests parsing of Hydra admin API payloads and validation of the
acceptance body and redirect target.
"""

import pytest
from pydantic import ValidationError

from src.shared.consent_models import (
    AcceptConsentRequest,
    ConsentRequest,
    ConsentSession,
    ProviderError,
    RedirectTo,
)


class TestConsentRequest:
    """Test cases for ConsentRequest."""

    def test_full_payload(self, consent_request_payload):
        consent_request = ConsentRequest(**consent_request_payload)

        assert consent_request.challenge == "abc123"
        assert consent_request.skip is False
        assert consent_request.subject == "user-1"
        assert consent_request.client.client_name == "First Party"

    def test_defaults(self):
        consent_request = ConsentRequest(challenge="abc123")

        assert consent_request.requested_scope == []
        assert consent_request.requested_access_token_audience == []
        assert consent_request.skip is False
        assert consent_request.client is None

    def test_unknown_fields_tolerated(self):
        consent_request = ConsentRequest(challenge="abc123", amr=["pwd"], acr="0")

        assert consent_request.challenge == "abc123"

    def test_challenge_required(self):
        with pytest.raises(ValidationError):
            ConsentRequest(requested_scope=["openid"])

    def test_empty_challenge_rejected(self):
        with pytest.raises(ValidationError):
            ConsentRequest(challenge="")


class TestAcceptConsentRequest:
    """Test cases for AcceptConsentRequest."""

    def test_serialization_omits_unset_session(self):
        body = AcceptConsentRequest(grant_scope=["openid"], remember=True, remember_for=3600)

        assert body.dict(exclude_none=True) == {
            "grant_scope": ["openid"],
            "grant_access_token_audience": [],
            "remember": True,
            "remember_for": 3600
        }

    def test_session_serialized_when_set(self):
        body = AcceptConsentRequest(
            grant_scope=["openid"],
            session=ConsentSession(id_token={"baz": "bar"})
        )

        assert body.dict(exclude_none=True)["session"] == {"id_token": {"baz": "bar"}}

    def test_negative_remember_for_rejected(self):
        with pytest.raises(ValidationError):
            AcceptConsentRequest(remember_for=-1)


class TestRedirectTo:
    """Test cases for RedirectTo."""

    def test_redirect_to(self):
        assert RedirectTo(redirect_to="https://app.example/cb").redirect_to == "https://app.example/cb"

    def test_missing_redirect_rejected(self):
        with pytest.raises(ValidationError):
            RedirectTo()


class TestProviderError:
    """Test cases for ProviderError."""

    def test_oauth2_error_body(self):
        error = ProviderError(error="invalid_request", error_description="bad challenge", status_code=400)

        assert error.error == "invalid_request"
        assert error.status_code == 400

    def test_generic_error_body_is_flattened(self):
        error = ProviderError(error={"code": 404, "status": "Not Found", "message": "no rows"})

        assert error.error == "Not Found"
        assert error.error_description == "no rows"
        assert error.status_code == 404

    def test_generic_error_falls_back_to_reason(self):
        error = ProviderError(error={"id": "not_found", "reason": "challenge expired"})

        assert error.error == "not_found"
        assert error.error_description == "challenge expired"
        assert error.status_code is None

    def test_top_level_description_wins(self):
        error = ProviderError(
            error={"status": "Not Found", "message": "nested"},
            error_description="top level",
            status_code=410
        )

        assert error.error_description == "top level"
        assert error.status_code == 410

    def test_defaults(self):
        assert ProviderError().error == "unknown_error"
