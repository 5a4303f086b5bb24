"""Configuration handling for alicat_modbus."""

from __future__ import annotations

import os
from dataclasses import dataclass, field


def _get_env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _get_env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _get_env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _default_port() -> str:
    return os.getenv("ALICAT_PORT", "COM6" if os.name == "nt" else "/dev/ttyUSB0")


@dataclass
class Config:
    """Runtime configuration for the Alicat client.

    Defaults are read from ``ALICAT_*`` environment variables when the
    instance is created.
    """

    port: str = field(default_factory=_default_port)
    baudrate: int = field(default_factory=lambda: _get_env_int("ALICAT_BAUD", 19200))
    parity: str = field(default_factory=lambda: os.getenv("ALICAT_PARITY", "N"))
    stopbits: int = field(default_factory=lambda: _get_env_int("ALICAT_STOPBITS", 1))
    bytesize: int = field(default_factory=lambda: _get_env_int("ALICAT_BYTESIZE", 8))
    timeout: float = field(default_factory=lambda: _get_env_float("ALICAT_TIMEOUT", 1.0))
    retries: int = field(default_factory=lambda: _get_env_int("ALICAT_RETRIES", 3))
    modbus_id: int = field(default_factory=lambda: _get_env_int("ALICAT_MODBUS_ID", 1))
    register_offset: int = field(default_factory=lambda: _get_env_int("ALICAT_REGISTER_OFFSET", -1))
    device_type: str = field(
        default_factory=lambda: os.getenv("ALICAT_DEVICE_TYPE", "MASS_FLOW_CONTROLLER")
    )
    gas_number_register: int = field(
        default_factory=lambda: _get_env_int("ALICAT_GAS_NUMBER_REGISTER", 1200)
    )
    host: str = field(default_factory=lambda: os.getenv("ALICAT_HOST", ""))
    tcp_port: int = field(default_factory=lambda: _get_env_int("ALICAT_TCP_PORT", 502))
    verbose: bool = field(default_factory=lambda: _get_env_bool("ALICAT_VERBOSE", False))

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        return cls()
