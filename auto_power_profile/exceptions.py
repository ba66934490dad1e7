"""
Exception classes for auto-power-profile.

- AutoPowerProfileError: base class for every error raised by this package
- ServiceUnavailableError: a D-Bus service could not be reached
"""

from typing import Any, Dict, Optional


class AutoPowerProfileError(Exception):
    """
    Base exception for auto-power-profile errors.

    Attributes:
        message: Human-readable error message
        details: Dictionary with additional error context
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ServiceUnavailableError(AutoPowerProfileError):
    """
    A system service needed by the daemon is missing or not responding.

    Raised by the D-Bus adapters while connecting. The session reports it
    once to the user and keeps running without the service.
    """

    def __init__(self, service: str, reason: str):
        super().__init__(
            f"Error connecting {service} DBus. Check your installation",
            details={"service": service, "reason": reason},
        )
        self.service = service
