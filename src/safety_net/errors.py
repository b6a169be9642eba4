"""Exception types for safety net.

Malformed command text never raises; these cover programmer errors,
malformed host payloads, and adapters that block by raising.
"""

from typing import Any


class SafetyNetError(Exception):
    """Base error for safety net failures.

    Attributes:
        message: Human-readable error message
        details: Additional error details
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "error": {
                "type": type(self).__name__,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(SafetyNetError):
    """Invalid analyzer configuration supplied by the caller."""


class HookInputError(SafetyNetError):
    """Host hook payload could not be decoded."""


class BlockedCommandError(SafetyNetError):
    """Raised by adapters whose host has no native deny response."""

    def __init__(self, reason: str, command: str | None = None):
        super().__init__(
            f"BLOCKED by Safety Net\n\n{reason}",
            details={"command": command} if command else None,
        )
        self.reason = reason
