"""
Colored logging utilities for the OAuth2 provider.

This module provides colored console logging with component identification,
timestamps and message formatting, so the message flow between the user
agent, the client, the provider and its backend can be followed in the
console.
"""

import logging
from datetime import datetime
from typing import Dict, Any, Optional, Union
from enum import Enum

from colorama import Fore, Style, init

init(autoreset=True)


class ComponentType(str, Enum):
    """Components appearing in provider log messages."""
    USER_AGENT = "USER-AGENT"
    CLIENT = "CLIENT"
    PROVIDER = "PROVIDER"
    CLIENT_AUTH = "CLIENT-AUTH"
    BACKEND = "BACKEND"
    SYSTEM = "SYSTEM"


class MessageType(str, Enum):
    """Message types with their own color in the log."""
    RESPONSE = "RESPONSE"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"


def _label(value) -> str:
    """Plain text of a component or message type, enum member or string."""
    return value.value if isinstance(value, Enum) else str(value)


class OAuthLogger:
    """
    Colored logger for OAuth2 message flows.

    Each message is written as a header line (timestamp, source and
    destination) followed by one line per data item. Secrets are redacted
    and tokens truncated before anything is written.
    """

    SENSITIVE_KEYS = ('password', 'secret', 'authorization')
    TRUNCATED_KEYS = ('token', 'code')
    HANDLER_NAME = 'oauth2-console'

    def __init__(self, component_name: str):
        """
        Initialize logger for a specific component.

        Args:
            component_name: Name of the component (PROVIDER, BACKEND, etc.)
        """
        component_name = _label(component_name)
        self.component_name = component_name.upper()
        self.colors = self._get_component_colors()

        self.logger = logging.getLogger(f"oauth2.{component_name.lower()}")
        self.logger.setLevel(logging.INFO)

        # Loggers are process-wide, only attach the console handler once
        if not any(h.get_name() == self.HANDLER_NAME for h in self.logger.handlers):
            handler = logging.StreamHandler()
            handler.set_name(self.HANDLER_NAME)
            handler.setLevel(logging.INFO)
            self.logger.addHandler(handler)
        self.logger.propagate = False

    def _get_component_colors(self) -> Dict[str, str]:
        """Get color scheme for components and message types."""
        return {
            'USER-AGENT': Fore.BLUE + Style.BRIGHT,
            'CLIENT': Fore.BLUE + Style.BRIGHT,
            'PROVIDER': Fore.GREEN + Style.BRIGHT,
            'CLIENT-AUTH': Fore.YELLOW + Style.BRIGHT,
            'BACKEND': Fore.MAGENTA + Style.BRIGHT,
            'SYSTEM': Fore.MAGENTA + Style.BRIGHT,
            'ERROR': Fore.RED + Style.BRIGHT,
            'SUCCESS': Fore.GREEN + Style.BRIGHT,
            'INFO': Fore.CYAN,
            'HEADER': Fore.WHITE + Style.BRIGHT,
            'SEPARATOR': Fore.WHITE + Style.DIM,
            'RESET': Style.RESET_ALL
        }

    def _format_timestamp(self) -> str:
        """Format current timestamp for log messages."""
        return datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

    def _sanitize_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sanitize sensitive data for logging.

        Redacts secrets and truncates tokens and codes to their first
        10 characters.
        """
        sanitized = {}
        for key, value in data.items():
            key_lower = key.lower()

            if any(sensitive in key_lower for sensitive in self.SENSITIVE_KEYS):
                sanitized[key] = '[REDACTED]'
            elif any(token in key_lower for token in self.TRUNCATED_KEYS):
                if isinstance(value, str) and len(value) > 10:
                    sanitized[key] = f"{value[:10]}..."
                else:
                    sanitized[key] = value
            else:
                sanitized[key] = value

        return sanitized

    def log_oauth_message(self,
                          source: Union[ComponentType, str],
                          destination: Union[ComponentType, str],
                          message_type: Union[MessageType, str],
                          data: Dict[str, Any],
                          success: bool = True):
        """
        Log an OAuth message with color coding and formatting.

        Args:
            source: Source component name
            destination: Destination component name
            message_type: Short description of the message
            data: Message data dictionary
            success: Whether the operation was successful
        """
        source = _label(source)
        destination = _label(destination)
        message_type = _label(message_type)

        timestamp = self._format_timestamp()
        source_color = self.colors.get(source.upper(), self.colors['INFO'])
        dest_color = self.colors.get(destination.upper(), self.colors['INFO'])
        reset = self.colors['RESET']

        if not success:
            msg_color = self.colors['ERROR']
        elif message_type in (MessageType.RESPONSE.value, MessageType.SUCCESS.value):
            msg_color = self.colors['SUCCESS']
        else:
            msg_color = self.colors['INFO']

        lines = [
            f"{self.colors['HEADER']}[{timestamp}] {source_color}{source}{reset} → {dest_color}{destination}{reset}",
            f"{msg_color}{message_type}:{reset}",
        ]
        for key, value in self._sanitize_data(data).items():
            lines.append(f"  {self.colors['INFO']}{key}:{reset} {value}")
        lines.append(f"{self.colors['SEPARATOR']}{'-' * 60}{reset}")

        level = logging.INFO if success else logging.WARNING
        self.logger.log(level, "\n".join(lines))

    def log_error(self,
                  error_type: str,
                  message: str,
                  details: Optional[Dict[str, Any]] = None):
        """
        Log an error with context.

        Args:
            error_type: Type of error
            message: Error message
            details: Additional error context
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
            message_type=MessageType.ERROR,
            data=error_data,
            success=False
        )

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Log an informational message.

        Args:
            message: Info message
            details: Additional context
        """
        lines = [f"{self.colors['INFO']}[{self._format_timestamp()}] {self.component_name}: {message}{self.colors['RESET']}"]
        if details:
            for key, value in self._sanitize_data(details).items():
                lines.append(f"  {key}: {value}")
        self.logger.info("\n".join(lines))

    def log_startup(self, port: int, additional_info: Optional[Dict[str, Any]] = None):
        """
        Log component startup information.

        Args:
            port: Port number the component is running on
            additional_info: Additional startup information
        """
        lines = [f"{self.colors['SUCCESS']}🚀 {self.component_name} started on port {port}{self.colors['RESET']}"]
        if additional_info:
            for key, value in additional_info.items():
                lines.append(f"   {key}: {value}")
        lines.append(f"{self.colors['SEPARATOR']}{'-' * 60}{self.colors['RESET']}")
        self.logger.info("\n".join(lines))


def create_logger(component_name: str) -> OAuthLogger:
    """
    Factory function to create logger instances.

    Args:
        component_name: Name of the component

    Returns:
        OAuthLogger: Configured logger instance
    """
    return OAuthLogger(component_name)
