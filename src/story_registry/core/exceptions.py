"""
Story Registry Exception Hierarchy.

Registry operations report expected failures as ErrorKind values, not
exceptions. The exceptions here cover the code around the registry:
unwrapping a failed result, loading settings and parsing replay scripts.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from story_registry.core.models import ErrorKind


class StoryRegistryError(Exception):
    """
    Base exception for all Story Registry errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a StoryRegistryError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class RegistryOperationError(StoryRegistryError):
    """
    Raised when a failed registry result is unwrapped.

    Carries the ErrorKind so callers that prefer exceptions can
    still branch on the exact failure.
    """

    def __init__(
        self,
        kind: "ErrorKind",
        *,
        operation: str | None = None,
        token_id: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a RegistryOperationError.

        Args:
            kind: The failure kind reported by the registry
            operation: Operation that failed
            token_id: Token involved, if any
            details: Optional structured data for debugging
        """
        details = details or {}
        details["code"] = kind.value
        if operation:
            details["operation"] = operation
        if token_id is not None:
            details["token_id"] = token_id

        super().__init__(f"{kind.label}: {kind.description}", details=details)
        self.kind = kind
        self.operation = operation
        self.token_id = token_id


class ConfigurationError(StoryRegistryError):
    """
    Errors in configuration loading or validation.

    Raised when:
    - Environment variables hold malformed values
    - Configuration values are out of range
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            env_var: Environment variable name if applicable
            config_key: Configuration key if applicable
            details: Optional structured data for debugging
        """
        details = details or {}
        if env_var:
            details["env_var"] = env_var
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, details=details)
        self.env_var = env_var
        self.config_key = config_key


class ScriptError(StoryRegistryError):
    """Raised when a replay script cannot be parsed or applied."""

    def __init__(
        self,
        message: str,
        *,
        step: int | None = None,
        op: str | None = None,
    ):
        details: dict[str, Any] = {}
        if step is not None:
            details["step"] = step
        if op:
            details["op"] = op
        super().__init__(message, details=details)
        self.step = step
        self.op = op


def format_exception(error: Exception) -> str:
    """
    Format an exception for user-friendly display.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, StoryRegistryError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"
