"""
Colored logging utilities for the consent server.

This module provides colored console logging with component identification,
timestamps, and message formatting so the consent hand-off between the user
agent, this server and the Hydra admin API is easy to follow in a terminal.
"""

import logging
import traceback
from datetime import datetime
from typing import Dict, Any, Optional
from enum import Enum

from colorama import Fore, Style, init

init(autoreset=True)  # Initialize colorama for Windows compatibility


class ComponentType(str, Enum):
    """Consent flow component types."""
    USER_BROWSER = "USER-BROWSER"
    CONSENT_APP = "CONSENT-APP"
    HYDRA_ADMIN = "HYDRA-ADMIN"


class MessageType(str, Enum):
    """Consent flow message types for logging."""
    REQUEST = "REQUEST"
    RESPONSE = "RESPONSE"
    ERROR = "ERROR"
    CONSENT_FETCH = "CONSENT-FETCH"
    CONSENT_ACCEPT = "CONSENT-ACCEPT"
    REDIRECT = "REDIRECT"


class OAuthLogger:
    """
    Colored logger for consent message flows.

    Every message goes through a standard ``logging.Logger`` named
    ``consent.<component>`` so tests and deployments can silence or
    redirect it like any other logger.
    """

    def __init__(self, component_name: str):
        """
        Initialize logger for a specific component.

        Args:
            component_name: Name of the component (CONSENT-APP, HYDRA-ADMIN, etc.)
        """
        self.component_name = component_name.upper()
        self.colors = self._get_component_colors()

        self.logger = logging.getLogger(f"consent.{component_name.lower()}")
        self.logger.setLevel(logging.INFO)

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()

        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)
        self.logger.addHandler(handler)
        self.logger.propagate = False

    def _get_component_colors(self) -> Dict[str, str]:
        """Get color scheme for different components and message types."""
        return {
            'USER-BROWSER': Fore.BLUE + Style.BRIGHT,
            'CONSENT-APP': Fore.GREEN + Style.BRIGHT,
            'HYDRA-ADMIN': Fore.YELLOW + Style.BRIGHT,
            'ERROR': Fore.RED + Style.BRIGHT,
            'SUCCESS': Fore.GREEN + Style.BRIGHT,
            'INFO': Fore.CYAN,
            'DEBUG': Fore.WHITE + Style.DIM,
            'HEADER': Fore.WHITE + Style.BRIGHT,
            'SEPARATOR': Fore.WHITE + Style.DIM,
            'RESET': Style.RESET_ALL
        }

    def _format_timestamp(self) -> str:
        """Format current timestamp for log messages."""
        return datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

    def _status_color(self, status_code: int) -> str:
        if status_code >= 500:
            return self.colors['ERROR']
        if status_code >= 400:
            return Fore.YELLOW
        if status_code >= 300:
            return self.colors['INFO']
        return self.colors['SUCCESS']

    def _sanitize_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sanitize sensitive data for logging.

        Redacts secrets and truncates challenges and tokens.
        """
        sanitized = {}
        for key, value in data.items():
            key_lower = key.lower()

            if any(sensitive in key_lower for sensitive in ['password', 'secret', 'api_key', 'authorization', 'cookie']):
                sanitized[key] = '[REDACTED]'
            elif any(token in key_lower for token in ['token', 'challenge', 'csrf']):
                # Show first 10 characters of challenges/tokens for debugging
                if isinstance(value, str) and len(value) > 10:
                    sanitized[key] = f"{value[:10]}..."
                else:
                    sanitized[key] = value
            else:
                sanitized[key] = value

        return sanitized

    def log_oauth_message(self,
                         source: str,
                         destination: str,
                         message_type: str,
                         data: Dict[str, Any],
                         success: bool = True):
        """
        Log a consent flow message with color coding and formatting.

        Args:
            source: Source component name
            destination: Destination component name
            message_type: Type of message (REQUEST, RESPONSE, etc.)
            data: Message data dictionary
            success: Whether the operation was successful
        """
        timestamp = self._format_timestamp()
        source_color = self.colors.get(source.upper(), self.colors['INFO'])
        dest_color = self.colors.get(destination.upper(), self.colors['INFO'])

        if not success:
            msg_color = self.colors['ERROR']
        elif message_type == MessageType.RESPONSE:
            msg_color = self.colors['SUCCESS']
        else:
            msg_color = self.colors['INFO']

        lines = [
            f"{self.colors['HEADER']}[{timestamp}] {source_color}{source}{self.colors['RESET']} → {dest_color}{destination}{self.colors['RESET']}",
            f"{msg_color}{message_type}:{self.colors['RESET']}",
        ]

        for key, value in self._sanitize_data(data).items():
            lines.append(f"  {self.colors['INFO']}{key}:{self.colors['RESET']} {value}")

        lines.append(f"{self.colors['SEPARATOR']}{'-' * 60}{self.colors['RESET']}")

        level = logging.INFO if success else logging.ERROR
        self.logger.log(level, "\n".join(lines) + "\n")

    def log_http_request(self,
                        method: str,
                        path: str,
                        status_code: int,
                        duration_ms: float,
                        content_length: Optional[str] = None):
        """
        Log one line per handled HTTP request.

        Format follows the classic "dev" access log:
        ``GET /consent 302 4.211 ms - 0``.

        Args:
            method: HTTP method
            path: Request path
            status_code: Response status code
            duration_ms: Time spent handling the request
            content_length: Response Content-Length header, if any
        """
        status_color = self._status_color(status_code)
        self.logger.info(
            f"{method} {path} {status_color}{status_code}{self.colors['RESET']} "
            f"{duration_ms:.3f} ms - {content_length if content_length is not None else '-'}"
        )

    def log_consent_operation(self,
                              operation: str,
                              details: Dict[str, Any],
                              success: bool = True):
        """
        Log a call made to the Hydra admin API.

        Args:
            operation: Consent operation (fetch, accept)
            details: Operation details
            success: Whether operation was successful
        """
        self.log_oauth_message(
            source=self.component_name,
            destination=ComponentType.HYDRA_ADMIN.value,
            message_type=MessageType(f"CONSENT-{operation.upper()}").value,
            data=details,
            success=success
        )

    def log_error(self,
                 error_type: str,
                 message: str,
                 details: Optional[Dict[str, Any]] = None,
                 exc: Optional[BaseException] = None):
        """
        Log error messages with context.

        Args:
            error_type: Type of error
            message: Error message
            details: Additional error context
            exc: Exception whose stack trace should be attached
        """
        error_data = {
            "error_type": error_type,
            "message": message
        }

        if details:
            error_data.update(details)

        self.log_oauth_message(
            source=self.component_name,
            destination="ERROR-HANDLER",
            message_type=MessageType.ERROR.value,
            data=error_data,
            success=False
        )

        if exc is not None:
            self.logger.error("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Log informational messages.

        Args:
            message: Info message
            details: Additional context
        """
        lines = [f"{self.colors['INFO']}[{self._format_timestamp()}] {self.component_name}: {message}{self.colors['RESET']}"]
        if details:
            for key, value in self._sanitize_data(details).items():
                lines.append(f"  {key}: {value}")
        self.logger.info("\n".join(lines))

    def log_startup(self, url: str, additional_info: Optional[Dict[str, Any]] = None):
        """
        Log component startup information.

        Args:
            url: URL the component is listening on
            additional_info: Additional startup information
        """
        lines = [f"{self.colors['SUCCESS']}Listening on {url}{self.colors['RESET']}"]
        if additional_info:
            for key, value in self._sanitize_data(additional_info).items():
                lines.append(f"   {key}: {value}")
        lines.append(f"{self.colors['SEPARATOR']}{'-' * 60}{self.colors['RESET']}")
        self.logger.info("\n".join(lines))
