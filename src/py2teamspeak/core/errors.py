"""
Unified error handling framework for py2teamspeak.

This module defines the error hierarchy used by the ClientQuery client.
None of these errors ever cross the public client API; they are raised
and handled inside the background listener.

Error Code Ranges:
- 1000-1999: Connection errors
- 4000-4999: Protocol/data errors
- 6000-6999: Configuration errors
- 9000-9999: Unknown/System errors
"""

from typing import Optional, Dict, Any, List


class TeamSpeakError(Exception):
    """
    Base exception for all py2teamspeak errors.

    Carries a code, context and suggestions for the operator.
    """

    # Base error code for unknown errors
    DEFAULT_CODE = 9000

    def __init__(
        self,
        message: str,
        error_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        suggestions: Optional[List[str]] = None
    ):
        """
        Initialize an error.

        Args:
            message: Human-readable error description
            error_code: Numeric error code for categorization
            context: Additional context information (WHERE)
            cause: Original exception if this wraps another error
            suggestions: List of possible solutions or next steps
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.DEFAULT_CODE
        self.context = context or {}
        self.cause = cause
        self.suggestions = suggestions or []

        if cause:
            self.context['original_error'] = str(cause)
            self.context['original_type'] = type(cause).__name__

    def format_user_message(self) -> str:
        """Format error for operator display (without technical details)."""
        msg = f"{self.message}"
        if self.suggestions:
            msg += "\n\nSuggestions:"
            for i, suggestion in enumerate(self.suggestions, 1):
                msg += f"\n  {i}. {suggestion}"
        return msg

    def format_log_message(self) -> str:
        """Format error for logging (with all details)."""
        parts = [
            f"[{self.error_code}] {self.__class__.__name__}: {self.message}"
        ]

        if self.context:
            parts.append(f"Context: {self.context}")

        if self.cause:
            parts.append(f"Caused by: {self.cause}")

        return " | ".join(parts)


class ConnectionError(TeamSpeakError):
    """Errors related to the query socket (refused, closed, I/O failure)."""
    DEFAULT_CODE = 1001

    def __init__(self, message: str, **kwargs):
        if 'context' not in kwargs:
            kwargs['context'] = {}
        kwargs['context']['category'] = 'CONNECTION'
        super().__init__(message, **kwargs)


class NotConnectedError(ConnectionError):
    """
    The remote session is gone and the connection must be rebuilt.

    Raised at the listener step boundary when a command reports one of the
    session-fatal status ids (or the missing credential status).
    """
    DEFAULT_CODE = 1003

    def __init__(self, message: str, status_id: Optional[int] = None, **kwargs):
        if 'context' not in kwargs:
            kwargs['context'] = {}
        if status_id is not None:
            kwargs['context']['status_id'] = status_id
        self.status_id = status_id
        super().__init__(message, **kwargs)


class ProtocolError(TeamSpeakError):
    """Malformed or unexpected input from the ClientQuery plug-in."""
    DEFAULT_CODE = 4004

    def __init__(self, message: str, **kwargs):
        if 'context' not in kwargs:
            kwargs['context'] = {}
        kwargs['context']['category'] = 'PROTOCOL'
        super().__init__(message, **kwargs)


class ConfigurationError(TeamSpeakError):
    """Errors related to settings (missing file, bad values)."""
    DEFAULT_CODE = 6001

    def __init__(self, message: str, **kwargs):
        if 'context' not in kwargs:
            kwargs['context'] = {}
        kwargs['context']['category'] = 'CONFIGURATION'
        super().__init__(message, **kwargs)


class ErrorCodes:
    """Standard error codes for common error scenarios."""

    # Connection errors (1000-1999)
    CONNECTION_CLOSED = 1002
    NOT_CONNECTED = 1003

    # Protocol errors (4000-4999)
    PARSE_ERROR = 4004

    # Configuration errors (6000-6999)
    CONFIG_NOT_FOUND = 6001
    CONFIG_INVALID = 6002

    # System errors (9000-9999)
    UNKNOWN_ERROR = 9000


def wrap_external_error(e: Exception, message: str, error_class=TeamSpeakError,
                        **context) -> TeamSpeakError:
    """
    Wrap an external exception in a TeamSpeakError.

    Args:
        e: The original exception
        message: Context-specific error message
        error_class: The TeamSpeakError subclass to use
        **context: Additional context information

    Returns:
        A TeamSpeakError instance wrapping the original exception
    """
    return error_class(
        message=message,
        cause=e,
        context=context
    )
