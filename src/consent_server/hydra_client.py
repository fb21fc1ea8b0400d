"""
Hydra Admin API client

Thin async client for the two admin API calls the consent server needs:
fetching a consent request by challenge and accepting it.
"""

from typing import Dict, Optional

import httpx
from pydantic import ValidationError

from ..shared.consent_models import AcceptConsentRequest, ConsentRequest, ProviderError, RedirectTo
from ..shared.logging_utils import ComponentType, OAuthLogger

CONSENT_REQUEST_PATH = "/admin/oauth2/auth/requests/consent"
ACCEPT_CONSENT_PATH = "/admin/oauth2/auth/requests/consent/accept"

logger = OAuthLogger(ComponentType.CONSENT_APP.value)


class HydraAdminError(Exception):
    """Raised when the admin API answers with a non-success status."""

    def __init__(self, status_code: int, error_code: str, description: str):
        self.status_code = status_code
        self.error_code = error_code
        self.description = description
        super().__init__(description)


def _provider_error(response: httpx.Response) -> HydraAdminError:
    try:
        body = response.json()
    except ValueError:
        body = None

    error = None
    if isinstance(body, dict):
        try:
            error = ProviderError(**body)
        except ValidationError:
            error = None
    if error is None:
        error = ProviderError(error=f"http_{response.status_code}")

    description = error.error_description or response.text or f"Hydra admin API returned status {response.status_code}"
    return HydraAdminError(response.status_code, error.error, description)


class HydraAdminClient:
    """
    Client for the consent endpoints of the Hydra admin API.

    A new ``httpx.AsyncClient`` is opened per call; the handler makes two
    sequential calls per request and nothing is shared between requests.
    """

    def __init__(self,
                 admin_url: str,
                 access_token: Optional[str] = None,
                 mock_tls_termination: bool = False,
                 timeout: Optional[float] = None):
        self.admin_url = admin_url.rstrip("/")
        self.access_token = access_token
        self.mock_tls_termination = mock_tls_termination
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if self.mock_tls_termination:
            headers["X-Forwarded-Proto"] = "https"
        return headers

    def _client_options(self) -> dict:
        options = {"headers": self._headers()}
        if self.timeout is not None:
            options["timeout"] = self.timeout
        return options

    async def get_consent_request(self, challenge: str) -> ConsentRequest:
        """
        Fetch the consent request identified by ``challenge``.

        Raises:
            HydraAdminError: If the admin API returns a non-2xx status
            httpx.HTTPError: On network failures
            pydantic.ValidationError: If the response body is malformed
        """
        url = f"{self.admin_url}{CONSENT_REQUEST_PATH}"

        logger.log_consent_operation("fetch", {
            "endpoint": url,
            "method": "GET",
            "consent_challenge": challenge
        })

        async with httpx.AsyncClient(**self._client_options()) as client:
            response = await client.get(url, params={"consent_challenge": challenge})

        if not 200 <= response.status_code < 300:
            error = _provider_error(response)
            logger.log_consent_operation("fetch", {
                "status_code": error.status_code,
                "error": error.error_code,
                "error_description": error.description
            }, success=False)
            raise error

        consent_request = ConsentRequest(**response.json())

        logger.log_consent_operation("fetch", {
            "status_code": response.status_code,
            "subject": consent_request.subject,
            "client_id": consent_request.client.client_id if consent_request.client else None,
            "requested_scope": consent_request.requested_scope,
            "requested_access_token_audience": consent_request.requested_access_token_audience,
            "skip": consent_request.skip
        })

        return consent_request

    async def accept_consent_request(self, challenge: str, body: AcceptConsentRequest) -> RedirectTo:
        """
        Accept the consent request identified by ``challenge``.

        Raises:
            HydraAdminError: If the admin API returns a non-2xx status
            httpx.HTTPError: On network failures
            pydantic.ValidationError: If the response body is malformed
        """
        url = f"{self.admin_url}{ACCEPT_CONSENT_PATH}"
        payload = body.dict(exclude_none=True)

        logger.log_consent_operation("accept", {
            "endpoint": url,
            "method": "PUT",
            "consent_challenge": challenge,
            "grant_scope": body.grant_scope,
            "grant_access_token_audience": body.grant_access_token_audience,
            "remember": body.remember,
            "remember_for": body.remember_for
        })

        async with httpx.AsyncClient(**self._client_options()) as client:
            response = await client.put(url, params={"consent_challenge": challenge}, json=payload)

        if not 200 <= response.status_code < 300:
            error = _provider_error(response)
            logger.log_consent_operation("accept", {
                "status_code": error.status_code,
                "error": error.error_code,
                "error_description": error.description
            }, success=False)
            raise error

        redirect = RedirectTo(**response.json())

        logger.log_consent_operation("accept", {
            "status_code": response.status_code,
            "redirect_to": redirect.redirect_to
        })

        return redirect
