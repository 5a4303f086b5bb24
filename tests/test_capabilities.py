from __future__ import annotations

import pytest

from alicat_modbus import capabilities as caps
from alicat_modbus.models import DeviceType

# device type: (mass flow, controller, pressure controller, liquid, psid)
MATRIX = {
    DeviceType.MASS_FLOW_CONTROLLER: (True, True, False, False, False),
    DeviceType.LIQUID_CONTROLLER: (False, False, False, True, False),
    DeviceType.MASS_FLOW_METER: (True, False, False, False, False),
    DeviceType.PSID_CONTROLLER: (False, True, True, False, True),
    DeviceType.GAUGE_PRESSURE_CONTROLLER: (False, True, True, False, False),
}


@pytest.mark.parametrize("device_type", list(DeviceType))
def test_predicates(device_type: DeviceType) -> None:
    result = (
        caps.is_mass_flow(device_type),
        caps.is_controller(device_type),
        caps.is_pressure_controller(device_type),
        caps.is_liquid(device_type),
        caps.is_psid_controller(device_type),
    )
    assert result == MATRIX[device_type]


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, DeviceType.MASS_FLOW_CONTROLLER),
        ("3", DeviceType.PSID_CONTROLLER),
        ("mass-flow-meter", DeviceType.MASS_FLOW_METER),
        ("GAUGE_PRESSURE_CONTROLLER", DeviceType.GAUGE_PRESSURE_CONTROLLER),
        (DeviceType.LIQUID_CONTROLLER, DeviceType.LIQUID_CONTROLLER),
    ],
)
def test_device_type_parse(value, expected: DeviceType) -> None:
    assert DeviceType.parse(value) is expected


@pytest.mark.parametrize("value", ["valve", 9, "7"])
def test_device_type_parse_rejects(value) -> None:
    with pytest.raises(ValueError):
        DeviceType.parse(value)
