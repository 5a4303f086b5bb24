"""Alicat Modbus RTU communication library."""

from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("alicat-modbus")
except _metadata.PackageNotFoundError:  # pragma: no cover - package not installed
    __version__ = "0.0.0"

from .client import AlicatClient
from .config import Config
from .errors import (
    AlicatError,
    DeviceProtocolError,
    TimeoutError,
    TransportError,
    UnsupportedForDeviceType,
    ValidationError,
)
from .models import DeviceType, GasMixtureComponent, SpecialCommandOutcome, StatusSnapshot, Telemetry

__all__ = [
    "AlicatClient",
    "Config",
    "DeviceType",
    "GasMixtureComponent",
    "SpecialCommandOutcome",
    "StatusSnapshot",
    "Telemetry",
    "AlicatError",
    "ValidationError",
    "UnsupportedForDeviceType",
    "TransportError",
    "TimeoutError",
    "DeviceProtocolError",
    "__version__",
]
