"""
Consent Routes

The consent endpoint Hydra redirects the user agent to after login. The
client is always trusted and first-party, so the consent request is accepted
straight away and no consent form is shown. This is only valid because both
the identity provider and the relying application are run by the same party.

See: https://www.ory.sh/docs/oauth2-oidc/custom-login-consent/flow#skipping-consent-for-trusted-clients
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from ..shared.consent_models import AcceptConsentRequest, ConsentRequest
from ..shared.logging_utils import ComponentType, MessageType, OAuthLogger
from .errors import MissingConsentChallengeError
from .hydra_client import HydraAdminClient

REMEMBER_FOR_SECONDS = 3600

router = APIRouter(prefix="/consent", tags=["consent"])
logger = OAuthLogger(ComponentType.CONSENT_APP.value)


async def csrf_protection(request: Request) -> str:
    """Run the application's CSRF check before the handler."""
    return await request.app.state.csrf(request)


def get_hydra_admin(request: Request) -> HydraAdminClient:
    return request.app.state.hydra_admin


def consent_params(consent_request: ConsentRequest) -> AcceptConsentRequest:
    """
    Build the acceptance body for a consent request.

    Requested scopes and audiences are granted as-is and the decision is
    remembered for an hour.
    """
    return AcceptConsentRequest(
        grant_scope=list(consent_request.requested_scope),
        grant_access_token_audience=list(consent_request.requested_access_token_audience),
        remember=True,
        remember_for=REMEMBER_FOR_SECONDS,
        # Session claims for the access/ID token would go here:
        #   session=ConsentSession(access_token={"foo": "bar"}, id_token={"baz": "bar"})
    )


@router.get("",
            response_class=RedirectResponse,
            status_code=302,
            summary="Accept a consent request",
            description="""
            Accept the consent request identified by `consent_challenge` and
            redirect the user agent back to Hydra.

            **Required Parameters:**
            - consent_challenge: challenge issued by Hydra for this consent request
            """)
async def consent(
    request: Request,
    consent_challenge: Optional[str] = None,
    csrf_token: str = Depends(csrf_protection),
    hydra_admin: HydraAdminClient = Depends(get_hydra_admin)
):
    """Fetch the consent request, accept it and redirect to Hydra."""

    logger.log_oauth_message(
        ComponentType.USER_BROWSER.value, ComponentType.CONSENT_APP.value,
        MessageType.REQUEST.value,
        {
            "consent_challenge": consent_challenge,
            "client_ip": request.client.host if request.client else "unknown"
        }
    )

    if not consent_challenge:
        raise MissingConsentChallengeError()

    consent_request = await hydra_admin.get_consent_request(consent_challenge)

    if consent_request.skip:
        logger.log_info(
            "Consent already granted, accepting again",
            {"consent_challenge": consent_challenge, "subject": consent_request.subject}
        )

    redirect = await hydra_admin.accept_consent_request(consent_challenge, consent_params(consent_request))

    logger.log_oauth_message(
        ComponentType.CONSENT_APP.value, ComponentType.USER_BROWSER.value,
        MessageType.REDIRECT.value,
        {
            "redirect_to": redirect.redirect_to,
            "status_code": 302
        }
    )

    return RedirectResponse(redirect.redirect_to, status_code=302)
