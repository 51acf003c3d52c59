"""
Structured error system for the toolchat client.

Only transport failures and "no response" conditions surface as exceptions
to the caller; tool failures are turned into conversation messages instead.
"""

from typing import Any, Dict, Optional
import logging

import httpx

logger = logging.getLogger(__name__)


class ToolChatError(Exception):
    """Base exception for all toolchat errors."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "message": self.message,
            "status": self.status,
            "code": self.code,
            "details": self.details,
            "type": self.__class__.__name__
        }

    def __str__(self) -> str:
        parts = [self.message]
        if self.status:
            parts.append(f"(Status: {self.status})")
        if self.code:
            parts.append(f"(Code: {self.code})")
        return " ".join(parts)


class AuthenticationError(ToolChatError):
    """Bearer token could not be obtained."""

    def __init__(
        self,
        message: str = "Authentication failed",
        **kwargs
    ):
        kwargs.setdefault("status", 401)
        super().__init__(message, code="AUTHENTICATION_ERROR", **kwargs)


class ConfigurationError(ToolChatError):
    """Error related to client configuration."""

    def __init__(
        self,
        message: str = "Configuration error",
        config_field: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, code="CONFIGURATION_ERROR", **kwargs)
        if config_field:
            self.details["config_field"] = config_field


class TransportError(ToolChatError):
    """The remote endpoint answered with a non-success status."""

    def __init__(
        self,
        status: int,
        body: str = "",
        message: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message or f"Response status code does not indicate success: {status}",
            status=status,
            code="TRANSPORT_ERROR",
            **kwargs
        )
        self.body = body
        self.details["body"] = body

    def __str__(self) -> str:
        text = super().__str__()
        if self.body:
            text = f"{text}. Details: {self.body}"
        return text


class NetworkError(ToolChatError):
    """Error for network-related issues."""

    def __init__(
        self,
        message: str = "Network error",
        **kwargs
    ):
        super().__init__(message, code="NETWORK_ERROR", **kwargs)


class TimeoutError(ToolChatError):
    """Error for request timeouts."""

    def __init__(
        self,
        message: str = "Request timeout",
        timeout_seconds: Optional[float] = None,
        **kwargs
    ):
        super().__init__(message, code="TIMEOUT_ERROR", **kwargs)
        if timeout_seconds:
            self.details["timeout_seconds"] = timeout_seconds


class NoResponseError(ToolChatError):
    """The endpoint reply did not contain a usable answer."""

    def __init__(
        self,
        message: str = "No response obtained from the model",
        **kwargs
    ):
        kwargs.setdefault("code", "NO_RESPONSE")
        super().__init__(message, **kwargs)


class MalformedReplyError(NoResponseError):
    """The reply carried a structured function call that could not be read."""

    def __init__(
        self,
        message: str = "Malformed function call in model reply",
        **kwargs
    ):
        super().__init__(message, code="MALFORMED_REPLY", **kwargs)


class RequestCancelledError(ToolChatError):
    """The abort signal was set while a request was outstanding."""

    def __init__(
        self,
        message: str = "Request cancelled",
        **kwargs
    ):
        super().__init__(message, code="CANCELLED", **kwargs)


def classify_error(error: Exception) -> ToolChatError:
    """
    Classify a generic exception into a structured ToolChatError.

    Args:
        error: The original exception

    Returns:
        Classified ToolChatError instance
    """
    if isinstance(error, ToolChatError):
        return error

    error_message = str(error) or error.__class__.__name__

    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        if response.status_code == 401:
            return AuthenticationError(error_message, original_error=error)
        return TransportError(response.status_code, response.text, original_error=error)
    if isinstance(error, httpx.TimeoutException):
        return TimeoutError(error_message, original_error=error)
    if isinstance(error, httpx.TransportError):
        return NetworkError(error_message, original_error=error)

    error_lower = error_message.lower()
    if "timeout" in error_lower:
        return TimeoutError(error_message, original_error=error)
    elif "network" in error_lower or "connection" in error_lower:
        return NetworkError(error_message, original_error=error)
    elif "config" in error_lower:
        return ConfigurationError(error_message, original_error=error)

    return ToolChatError(error_message, original_error=error)


def create_user_friendly_message(error: ToolChatError) -> str:
    """
    Create a user-friendly error message.

    Args:
        error: The ToolChatError to convert

    Returns:
        User-friendly error message
    """
    if isinstance(error, AuthenticationError):
        return "Authentication failed. Please check TOOLCHAT_CREDENTIALS or TOOLCHAT_ACCESS_TOKEN."
    elif isinstance(error, ConfigurationError):
        return f"Configuration problem: {error.message}"
    elif isinstance(error, TransportError):
        return f"The model endpoint returned HTTP {error.status}: {error.body or 'no details'}"
    elif isinstance(error, NetworkError):
        return "Network error occurred. Please check your connection and try again."
    elif isinstance(error, TimeoutError):
        return "The request timed out. Please try again."
    elif isinstance(error, NoResponseError):
        return "The model did not return a usable response."
    elif isinstance(error, RequestCancelledError):
        return "The request was cancelled."
    return f"An error occurred: {error.message}"
