"""
Error chain for the consent server.

Every error raised while handling a request ends up here and is rendered
with the ``error.html`` template. Development mode adds the error type,
status and stack trace to the page; production mode shows the message only.
"""

import html
import json
import traceback
from typing import Any, Dict

from fastapi import Request
from fastapi.responses import HTMLResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..shared.logging_utils import ComponentType, OAuthLogger

ERROR_STATUS_CODE = 500

logger = OAuthLogger(ComponentType.CONSENT_APP.value)


class MissingConsentChallengeError(ValueError):
    """Raised when ``/consent`` is called without a consent challenge."""

    def __init__(self):
        super().__init__("Expected a consent challenge to be set but received none.")


def error_message(exc: BaseException) -> str:
    """User-facing message for an error."""
    if isinstance(exc, StarletteHTTPException):
        return str(exc.detail)
    description = getattr(exc, "description", None)
    if description:
        return str(description)
    return str(exc) or type(exc).__name__


def error_details(exc: BaseException) -> Dict[str, Any]:
    """Error internals shown in development mode only."""
    return {
        "type": type(exc).__name__,
        "status": getattr(exc, "status_code", ERROR_STATUS_CODE),
        "code": getattr(exc, "error_code", None),
        "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    }


def render_error(request: Request, exc: BaseException) -> Response:
    """
    Render the error page for ``exc``.

    Falls back to a JSON dump of the error when the template itself cannot be
    rendered.
    """
    config = request.app.state.config
    templates = request.app.state.templates
    message = error_message(exc)

    logger.log_error(
        type(exc).__name__,
        message,
        {"path": request.url.path, "method": request.method}
    )

    try:
        return templates.TemplateResponse(request, "error.html", {
            "message": message,
            "error": error_details(exc) if config.is_development else {}
        }, status_code=ERROR_STATUS_CODE)
    except Exception as render_exc:
        logger.log_error("TemplateRenderError", str(render_exc), exc=render_exc)
        body = json.dumps({
            "message": message,
            "type": type(exc).__name__,
            "render_error": str(render_exc)
        }, indent=2)
        return HTMLResponse(f"<pre>{html.escape(body)}</pre>", status_code=ERROR_STATUS_CODE)
