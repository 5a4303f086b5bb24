"""Which instrument variants support which operations."""

from __future__ import annotations

from .models import DeviceType

MASS_FLOW = frozenset({DeviceType.MASS_FLOW_CONTROLLER, DeviceType.MASS_FLOW_METER})
CONTROLLERS = frozenset(
    {
        DeviceType.PSID_CONTROLLER,
        DeviceType.GAUGE_PRESSURE_CONTROLLER,
        DeviceType.MASS_FLOW_CONTROLLER,
    }
)
PRESSURE_CONTROLLERS = frozenset({DeviceType.PSID_CONTROLLER, DeviceType.GAUGE_PRESSURE_CONTROLLER})
LIQUID = frozenset({DeviceType.LIQUID_CONTROLLER})


def is_mass_flow(device_type: DeviceType) -> bool:
    return device_type in MASS_FLOW


def is_controller(device_type: DeviceType) -> bool:
    return device_type in CONTROLLERS


def is_pressure_controller(device_type: DeviceType) -> bool:
    return device_type in PRESSURE_CONTROLLERS


def is_liquid(device_type: DeviceType) -> bool:
    return device_type in LIQUID


def is_psid_controller(device_type: DeviceType) -> bool:
    return device_type == DeviceType.PSID_CONTROLLER
