"""
Security utilities for the consent server.

This module provides CSRF protection (double-submit cookie), secure token
generation and the standard security headers applied to every response.
"""

import base64
import hashlib
import secrets
from typing import Optional

from fastapi import Request
from starlette.responses import Response


class CSRFError(Exception):
    """Raised when a request fails CSRF validation."""

    def __init__(self, error_code: str, description: str, status_code: int = 403):
        self.error_code = error_code
        self.description = description
        self.status_code = status_code
        super().__init__(description)


class TokenGenerator:
    """
    Secure token generation utilities.

    Provides the random values used by CSRF protection.
    """

    @staticmethod
    def generate_csrf_secret() -> str:
        """
        Generate the per-browser CSRF secret stored in the cookie.

        Returns:
            str: URL-safe secret
        """
        return secrets.token_urlsafe(18)

    @staticmethod
    def generate_salt() -> str:
        """
        Generate the salt mixed into each CSRF token.

        Returns:
            str: URL-safe salt value
        """
        return secrets.token_urlsafe(6)


def _hash_token(salt: str, secret: str) -> str:
    digest = hashlib.sha256(f"{salt}-{secret}".encode('utf-8')).digest()
    return base64.urlsafe_b64encode(digest).decode('utf-8').rstrip('=')


def create_csrf_token(secret: str) -> str:
    """
    Derive a salted CSRF token from a cookie secret.

    Args:
        secret: CSRF secret held in the browser cookie

    Returns:
        str: Token in the form ``<salt>.<hash>``
    """
    salt = TokenGenerator.generate_salt()
    return f"{salt}.{_hash_token(salt, secret)}"


def verify_csrf_token(secret: str, token: Optional[str]) -> bool:
    """
    Verify a submitted CSRF token against the cookie secret.

    Args:
        secret: CSRF secret held in the browser cookie
        token: Token submitted with the request

    Returns:
        bool: True if the token was derived from the secret
    """
    if not isinstance(secret, str) or not isinstance(token, str):
        return False

    # '.' is outside the base64url alphabet
    salt, sep, expected = token.partition('.')
    if not sep or not salt or not expected:
        return False

    return secrets.compare_digest(_hash_token(salt, secret), expected)


class CSRFProtect:
    """
    Double-submit cookie CSRF protection for FastAPI routes.

    Used as a route dependency. Safe methods only make sure the browser holds
    a CSRF secret cookie; unsafe methods must also carry a token derived from
    that secret in a header or form field.

    The secret cookie cannot be set from inside a dependency when the route
    returns its own Response, so new secrets are parked on ``request.state``
    and written by ``apply_cookie`` from the HTTP middleware.
    """

    def __init__(self,
                 cookie_name: str = "_csrf",
                 header_name: str = "X-CSRF-Token",
                 field_name: str = "_csrf",
                 samesite: str = "lax",
                 secure: bool = False,
                 ignored_methods: tuple = ("GET", "HEAD", "OPTIONS")):
        self.cookie_name = cookie_name
        self.header_name = header_name
        self.field_name = field_name
        self.samesite = samesite
        self.secure = secure
        self.ignored_methods = tuple(method.upper() for method in ignored_methods)

    async def __call__(self, request: Request) -> str:
        """
        Validate the request and return a fresh token for forms.

        Raises:
            CSRFError: If an unsafe request has no valid token
        """
        secret = request.cookies.get(self.cookie_name)
        if not secret:
            secret = TokenGenerator.generate_csrf_secret()
            request.state.csrf_new_secret = secret

        if request.method.upper() not in self.ignored_methods:
            token = await self._read_token(request)
            if not token:
                raise CSRFError("csrf_missing", "Missing CSRF token")
            if not verify_csrf_token(secret, token):
                raise CSRFError("csrf_invalid", "Invalid CSRF token")

        token = create_csrf_token(secret)
        request.state.csrf_token = token
        return token

    async def _read_token(self, request: Request) -> Optional[str]:
        token = request.headers.get(self.header_name)
        if token:
            return token

        content_type = request.headers.get("content-type", "")
        if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
            form = await request.form()
            value = form.get(self.field_name)
            return value if isinstance(value, str) else None

        return None

    def apply_cookie(self, request: Request, response: Response) -> None:
        """Write a newly issued CSRF secret to the response, if any."""
        secret = getattr(request.state, "csrf_new_secret", None)
        if not secret:
            return

        response.set_cookie(
            self.cookie_name,
            secret,
            path="/",
            httponly=True,
            samesite=self.samesite,
            secure=self.secure
        )


class SecurityHeaders:
    """
    Security headers for HTTP responses.

    Provides standard security headers to protect against
    common web vulnerabilities.
    """

    @staticmethod
    def get_consent_security_headers() -> dict:
        """
        Get security headers for consent endpoints.

        Returns:
            dict: Dictionary of security headers
        """
        return {
            'X-Content-Type-Options': 'nosniff',
            'X-Frame-Options': 'DENY',
            'X-XSS-Protection': '1; mode=block',
            'Referrer-Policy': 'no-referrer',
            'Cache-Control': 'no-cache, no-store, must-revalidate',
            'Pragma': 'no-cache',
            'Expires': '0'
        }
