"""
Pydantic models for the Hydra admin consent API.

This module defines the payloads exchanged with the OAuth2/OIDC provider's
admin API while handling a consent challenge: the consent request fetched by
challenge, the acceptance body sent back, and the redirect target returned.
"""

from pydantic import BaseModel, Field, root_validator, validator
from typing import Any, Dict, List, Optional


class ConsentClient(BaseModel):
    """
    The OAuth2 client the consent request was issued for.

    Only the fields used for logging are declared; the provider sends many more.
    """
    client_id: Optional[str] = Field(default=None, description="OAuth client identifier")
    client_name: Optional[str] = Field(default=None, description="Human readable client name")

    class Config:
        """Pydantic model configuration."""
        extra = "allow"


class ConsentRequest(BaseModel):
    """
    Consent request details returned by ``GetConsentRequest``.

    Unknown fields are kept so newer provider versions do not break parsing.
    """
    challenge: str = Field(..., min_length=1, description="Consent challenge")
    requested_scope: List[str] = Field(default_factory=list, description="Scopes requested by the client")
    requested_access_token_audience: List[str] = Field(
        default_factory=list,
        description="Audiences requested for the access token"
    )
    skip: bool = Field(
        default=False,
        description="True if the user already granted this consent and it was remembered"
    )
    subject: Optional[str] = Field(default=None, description="Authenticated user subject")
    client: Optional[ConsentClient] = Field(default=None, description="Requesting OAuth client")
    request_url: Optional[str] = Field(default=None, description="Original authorization request URL")
    login_challenge: Optional[str] = Field(default=None, description="Login challenge of the same flow")
    login_session_id: Optional[str] = Field(default=None, description="Login session identifier")
    context: Optional[Any] = Field(default=None, description="Context set during login")

    @validator('requested_scope', 'requested_access_token_audience', pre=True)
    def null_list_to_empty(cls, v):
        """The provider sends null for empty lists."""
        return [] if v is None else v

    class Config:
        """Pydantic model configuration."""
        extra = "allow"


class ConsentSession(BaseModel):
    """
    Session data attached to issued tokens.

    AVOID sensitive information here: ``access_token`` claims are visible on
    introspection and ``id_token`` claims end up in the ID token.
    """
    access_token: Optional[Dict[str, Any]] = Field(default=None, description="Claims for token introspection")
    id_token: Optional[Dict[str, Any]] = Field(default=None, description="Claims added to the ID token")


class AcceptConsentRequest(BaseModel):
    """
    Body of ``AcceptConsentRequest``.
    """
    grant_scope: List[str] = Field(default_factory=list, description="Scopes granted to the client")
    grant_access_token_audience: List[str] = Field(
        default_factory=list,
        description="Audiences granted for the access token"
    )
    remember: bool = Field(default=False, description="Remember this decision for later requests")
    remember_for: int = Field(default=0, ge=0, description="Seconds to remember the decision, 0 means forever")
    session: Optional[ConsentSession] = Field(default=None, description="Session data for issued tokens")

    class Config:
        """Pydantic model configuration."""
        validate_assignment = True


class RedirectTo(BaseModel):
    """
    Redirect target returned after a consent request is accepted.
    """
    redirect_to: str = Field(..., min_length=1, description="URL the user agent must be sent to")


class ProviderError(BaseModel):
    """
    Error body returned by the admin API on non-2xx responses.
    """
    error: str = Field(default="unknown_error", description="Error code")
    error_description: Optional[str] = Field(default=None, description="Human-readable error description")
    status_code: Optional[int] = Field(default=None, description="HTTP status reported by the provider")

    @root_validator(pre=True)
    def flatten_generic_error(cls, values):
        """Some Ory endpoints nest the error as {"error": {"status": ..., "message": ..., "reason": ...}}."""
        nested = values.get("error") if isinstance(values, dict) else None
        if not isinstance(nested, dict):
            return values

        flattened = dict(values)
        flattened["error"] = str(nested.get("status") or nested.get("id") or "unknown_error")
        if not flattened.get("error_description"):
            flattened["error_description"] = nested.get("message") or nested.get("reason")
        if flattened.get("status_code") is None and isinstance(nested.get("code"), int):
            flattened["status_code"] = nested["code"]
        return flattened

    class Config:
        """Pydantic model configuration."""
        extra = "ignore"
