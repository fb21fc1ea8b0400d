"""
Trusted-Client Consent Server

This FastAPI application auto-accepts OAuth2/OIDC consent requests for a
trusted first-party client. All authorization server logic lives in Ory Hydra
and is reached through its admin API; this server only answers the consent
redirect and sends the user agent straight back.

Key Features:
- `/consent` endpoint accepting the consent request with the requested scopes
- CSRF protection with a SameSite=Lax double-submit cookie
- Rendered error pages, with stack traces in development mode only
- Colored request and consent flow logging
"""

import time
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..shared.logging_utils import ComponentType, OAuthLogger
from ..shared.security import CSRFError, CSRFProtect, SecurityHeaders
from .config import ServerConfig
from .errors import render_error
from .hydra_client import HydraAdminClient
from .routes import router

templates_dir = Path(__file__).parent / "templates"
static_dir = Path(__file__).parent / "static"

logger = OAuthLogger(ComponentType.CONSENT_APP.value)


def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """
    Build the consent server application.

    Args:
        config: Settings to use; read from the environment when omitted

    Returns:
        FastAPI: Configured application
    """
    if config is None:
        config = ServerConfig.from_env()

    app = FastAPI(
        title="Trusted-Client Consent Server",
        description="Auto-accepts Hydra consent requests for a first-party client",
        version="1.0.0",
        docs_url="/docs" if config.is_development else None,
        redoc_url=None,
    )

    app.state.config = config
    app.state.templates = Jinja2Templates(directory=str(templates_dir))
    app.state.csrf = CSRFProtect(samesite="lax", secure=config.csrf_cookie_secure)
    app.state.hydra_admin = HydraAdminClient(
        config.hydra_admin_url,
        access_token=config.hydra_access_token,
        mock_tls_termination=config.mock_tls_termination,
        timeout=config.hydra_timeout,
    )

    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
    app.include_router(router)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return render_error(request, exc)

    @app.exception_handler(CSRFError)
    async def csrf_exception_handler(request: Request, exc: CSRFError):
        return render_error(request, exc)

    # Middleware added last runs first: logging wraps headers wraps errors.

    @app.middleware("http")
    async def handle_errors(request: Request, call_next):
        """
        Catch-all for errors the exception handlers did not claim.

        Also writes a newly issued CSRF cookie on the way out.
        """
        try:
            response = await call_next(request)
        except Exception as exc:
            response = render_error(request, exc)

        app.state.csrf.apply_cookie(request, response)
        return response

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        """Add standard security headers to all HTTP responses."""
        response = await call_next(request)

        for header_name, header_value in SecurityHeaders.get_consent_security_headers().items():
            response.headers.setdefault(header_name, header_value)

        return response

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log method, path, status and duration of every request."""
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        logger.log_http_request(
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            response.headers.get("content-length")
        )

        return response

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return JSONResponse(content={"status": "healthy", "service": "consent-server"})

    return app


app = create_app()


def main() -> None:
    """Start the consent server with uvicorn."""
    import uvicorn

    config = app.state.config
    display_host = f"[{config.host}]" if ":" in config.host else config.host

    logger.log_startup(
        f"http://{display_host}:{config.port}",
        {
            "environment": config.environment,
            "hydra_admin_url": config.hydra_admin_url
        }
    )

    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
