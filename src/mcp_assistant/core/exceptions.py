"""
Exception classes for MCP Assistant.

Defines the error taxonomy used across provider registration, connection
supervision, direct tool calls and agent runtime execution.
"""

from typing import Any, Dict, Optional


class AssistantError(Exception):
    """Base exception for all MCP Assistant errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize AssistantError.

        Args:
            message: Error message
            error_code: Optional error code for categorization
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        """String representation of the error."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ConfigError(AssistantError):
    """Configuration errors. Fatal at startup."""
    pass


class DuplicateProviderError(ConfigError):
    """Raised when a provider name is registered twice."""

    def __init__(self, name: str):
        super().__init__(
            f"Provider '{name}' is already registered",
            error_code="DUPLICATE_PROVIDER",
            details={"provider": name},
        )
        self.name = name


class ProviderNotFoundError(AssistantError):
    """Raised when looking up a provider that was never registered."""

    def __init__(self, name: str):
        super().__init__(
            f"Provider '{name}' not found",
            error_code="PROVIDER_NOT_FOUND",
            details={"provider": name},
        )
        self.name = name


class ProviderConnectionError(AssistantError):
    """A provider failed to connect or timed out.

    Recorded on the provider status by the supervisor; never propagated
    out of ``connect_all``.
    """

    def __init__(self, name: str, message: str, timed_out: bool = False):
        super().__init__(
            message,
            error_code="PROVIDER_TIMEOUT" if timed_out else "PROVIDER_CONNECTION",
            details={"provider": name},
        )
        self.name = name
        self.timed_out = timed_out


class ProviderCallError(AssistantError):
    """A request to a direct HTTP provider failed.

    Converted into a structured result at the tool boundary with
    :meth:`to_tool_result` so the agent can narrate the failure.
    """

    NOT_FOUND = "not_found"
    INVALID_CREDENTIAL = "invalid_credential"
    MISSING_CREDENTIAL = "missing_credential"
    TIMEOUT = "timeout"
    FETCH_ERROR = "fetch_error"
    FAILURE = "failure"

    def __init__(
        self,
        message: str,
        kind: str = FAILURE,
        hint: Optional[str] = None,
        hint_key: str = "suggestion",
        raw: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        """
        Initialize ProviderCallError.

        Args:
            message: User-facing error message
            kind: Failure category (one of the class constants)
            hint: Optional follow-up text (suggestion or instructions)
            hint_key: Result key the hint is reported under
            raw: Raw diagnostic message from the transport
            status_code: HTTP status code if a response was received
        """
        super().__init__(
            message,
            error_code=kind.upper(),
            details={"status_code": status_code} if status_code else {},
        )
        self.kind = kind
        self.hint = hint
        self.hint_key = hint_key
        self.raw = raw
        self.status_code = status_code

    def to_tool_result(self) -> Dict[str, Any]:
        """Structured error payload returned to the agent runtime."""
        result: Dict[str, Any] = {"error": self.message}
        if self.hint:
            result[self.hint_key] = self.hint
        if self.raw:
            result["details"] = self.raw
        return result


class RuntimeExecutionError(AssistantError):
    """Raised when the external agent runtime fails a turn."""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            message,
            error_code="RUNTIME_EXECUTION",
            details={"cause": type(cause).__name__} if cause else {},
        )
        self.suggestion = suggestion
        self.cause = cause
