"""
Consent server configuration.

Settings are read from the environment once, when the application is built,
and kept in a frozen model for the lifetime of the process.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

DEFAULT_PORT = 3000
DEFAULT_HOST = "::"
DEFAULT_HYDRA_ADMIN_URL = "http://127.0.0.1:4445"


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def _env_port(value: Optional[str]) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        return DEFAULT_PORT
    return port if 0 < port <= 65535 else DEFAULT_PORT


def _env_timeout(value: Optional[str]) -> Optional[float]:
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        return None
    return timeout if timeout > 0 else None


class ServerConfig(BaseModel):
    """Process-wide settings for the consent server."""
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Listen port")
    host: str = Field(default=DEFAULT_HOST, min_length=1, description="Bind address")
    environment: str = Field(default="development", description="development or production")
    hydra_admin_url: str = Field(default=DEFAULT_HYDRA_ADMIN_URL, min_length=1, description="Hydra admin API base URL")
    hydra_access_token: Optional[str] = Field(default=None, description="Bearer token for the admin API")
    hydra_timeout: Optional[float] = Field(default=None, description="Admin API timeout in seconds")
    mock_tls_termination: bool = Field(default=False, description="Send X-Forwarded-Proto: https to Hydra")
    csrf_cookie_secure: bool = Field(default=False, description="Mark the CSRF cookie Secure")

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        """
        Build the configuration from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            ServerConfig: Frozen configuration
        """
        env = os.environ if environ is None else environ

        return cls(
            port=_env_port(env.get("PORT")),
            host=env.get("HOST") or DEFAULT_HOST,
            environment=env.get("APP_ENV") or "development",
            hydra_admin_url=(env.get("HYDRA_ADMIN_URL") or DEFAULT_HYDRA_ADMIN_URL).rstrip("/"),
            hydra_access_token=env.get("ORY_API_KEY") or env.get("ORY_PAT") or None,
            hydra_timeout=_env_timeout(env.get("HYDRA_ADMIN_TIMEOUT")),
            mock_tls_termination=_env_flag(env.get("MOCK_TLS_TERMINATION")),
            csrf_cookie_secure=_env_flag(env.get("CSRF_COOKIE_SECURE")),
        )
