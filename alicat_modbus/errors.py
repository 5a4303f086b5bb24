"""Custom exceptions for the alicat_modbus package."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .models import DeviceType, SpecialCommandOutcome


class AlicatError(Exception):
    """Base class for all Alicat related errors."""


class ValidationError(AlicatError, ValueError):
    """A parameter is outside its documented range."""


class UnsupportedForDeviceType(ValidationError):
    """The operation is not available on the configured device type."""

    def __init__(self, operation: str, device_type: "DeviceType") -> None:
        super().__init__(f"{operation} is not supported by {device_type.name}")
        self.operation = operation
        self.device_type = device_type


class TransportError(AlicatError):
    """Communication error in the transport layer."""


class TimeoutError(TransportError):
    """Raised when a transport operation times out."""


class DeviceProtocolError(AlicatError):
    """A special command was answered with a non-success status code."""

    def __init__(self, outcome: "SpecialCommandOutcome", status_code: int, command: int | None = None) -> None:
        msg = f"device reported {outcome.name} (status code {status_code})"
        if command is not None:
            msg = f"command {command}: {msg}"
        super().__init__(msg)
        self.outcome = outcome
        self.status_code = status_code
        self.command = command
