from __future__ import annotations

import pytest

from alicat_modbus import registers as REG
from alicat_modbus.client import AlicatClient
from alicat_modbus.config import Config
from alicat_modbus.errors import DeviceProtocolError, UnsupportedForDeviceType, ValidationError
from alicat_modbus.models import DeviceType, GasNumberRegister, PIDCoefficient, SpecialCommandOutcome
from alicat_modbus.transport import SimulatedTransport


def make_client(device_type: DeviceType, status_code: int = 0) -> tuple[AlicatClient, SimulatedTransport]:
    cfg = Config()
    cfg.register_offset = -1
    cfg.modbus_id = 1
    sim = SimulatedTransport(cfg, status_code=status_code)
    return AlicatClient(device_type, cfg, transport=sim), sim


def test_command_block_is_written_at_once() -> None:
    client, sim = make_client(DeviceType.MASS_FLOW_CONTROLLER)
    assert client.send_special_command(REG.CMD_RESET_TOTALIZER_VALUE) is SpecialCommandOutcome.SUCCESS
    assert sim.commands == [(REG.CMD_RESET_TOTALIZER_VALUE, 0)]
    assert sim.regs[REG.COMMAND_ID - 1] == REG.CMD_RESET_TOTALIZER_VALUE


@pytest.mark.parametrize(
    "code, outcome",
    [
        (REG.STATUS_CODE_INVALID_COMMAND_ID, SpecialCommandOutcome.INVALID_COMMAND_ID),
        (REG.STATUS_CODE_INVALID_GAS_MIX_INDEX, SpecialCommandOutcome.INVALID_GAS_MIX_INDEX),
        (1234, SpecialCommandOutcome.UNKNOWN_STATUS_CODE),
    ],
)
def test_failed_command_raises(code: int, outcome: SpecialCommandOutcome) -> None:
    client, _ = make_client(DeviceType.MASS_FLOW_CONTROLLER, status_code=code)
    with pytest.raises(DeviceProtocolError) as info:
        client.reset_totalizer()
    assert info.value.outcome is outcome
    assert info.value.status_code == code
    assert info.value.command == REG.CMD_RESET_TOTALIZER_VALUE


def test_tare_volume_on_mass_flow_meter() -> None:
    client, sim = make_client(DeviceType.MASS_FLOW_METER)
    assert client.tare_volume() is SpecialCommandOutcome.SUCCESS
    assert sim.commands == [(REG.CMD_TARE, 2)]


def test_tare_pressure_not_on_mass_flow_meter() -> None:
    client, sim = make_client(DeviceType.MASS_FLOW_METER)
    with pytest.raises(UnsupportedForDeviceType):
        client.tare_pressure()
    assert sim.commands == []


def test_change_gas_number_updates_register() -> None:
    client, sim = make_client(DeviceType.MASS_FLOW_CONTROLLER)
    client.change_gas_number(8)
    assert sim.commands == [(REG.CMD_CHANGE_GAS_NUMBER, 8)]
    assert client.get_gas_number() == 8


def test_custom_gas_mixture_numbers() -> None:
    client, sim = make_client(DeviceType.MASS_FLOW_CONTROLLER)
    client.create_custom_gas_mixture()
    client.create_custom_gas_mixture(236)
    client.delete_custom_gas_mixture(255)
    assert sim.commands == [
        (REG.CMD_CREATE_CUSTOM_GAS_MIXTURE, 0),
        (REG.CMD_CREATE_CUSTOM_GAS_MIXTURE, 236),
        (REG.CMD_DELETE_CUSTOM_GAS_MIXTURE, 255),
    ]
    with pytest.raises(ValidationError):
        client.create_custom_gas_mixture(100)
    with pytest.raises(ValidationError):
        client.delete_custom_gas_mixture(0)


def test_read_pid_value() -> None:
    client, sim = make_client(DeviceType.PSID_CONTROLLER)
    assert client.read_p_value() == 200
    assert client.read_d_value() == 2000
    assert client.read_pid_value(PIDCoefficient.I) == 0
    assert sim.commands == [(REG.CMD_READ_PID_VALUE, 0), (REG.CMD_READ_PID_VALUE, 1), (REG.CMD_READ_PID_VALUE, 2)]


def test_read_pid_value_error_code() -> None:
    client, _ = make_client(DeviceType.PSID_CONTROLLER, status_code=REG.STATUS_CODE_INVALID_SETTING)
    with pytest.raises(DeviceProtocolError) as info:
        client.read_i_value()
    assert info.value.outcome is SpecialCommandOutcome.INVALID_SETTING


def test_pid_gain_change() -> None:
    client, sim = make_client(DeviceType.GAUGE_PRESSURE_CONTROLLER)
    client.change_p_in_pid_loop(150)
    client.change_i_in_pid_loop(20)
    assert sim.commands == [(REG.CMD_CHANGE_P_IN_PID_LOOP, 150), (REG.CMD_CHANGE_I_IN_PID_LOOP, 20)]
    with pytest.raises(ValidationError):
        client.change_d_in_pid_loop(70000)


@pytest.mark.parametrize(
    "device_type, allowed",
    [
        (
            DeviceType.MASS_FLOW_CONTROLLER,
            {"control_mass_flow", "control_volumetric_flow", "control_absolute_pressure", "control_gauge_pressure"},
        ),
        (DeviceType.LIQUID_CONTROLLER, {"control_volumetric_flow", "control_gauge_pressure"}),
        (DeviceType.MASS_FLOW_METER, set()),
        (DeviceType.PSID_CONTROLLER, {"control_differential_pressure", "control_absolute_pressure"}),
        (DeviceType.GAUGE_PRESSURE_CONTROLLER, {"control_absolute_pressure", "control_gauge_pressure"}),
    ],
)
def test_control_loop_variable_gating(device_type: DeviceType, allowed: set) -> None:
    names = [
        "control_mass_flow",
        "control_volumetric_flow",
        "control_differential_pressure",
        "control_absolute_pressure",
        "control_gauge_pressure",
    ]
    for name in names:
        client, sim = make_client(device_type)
        if name in allowed:
            assert getattr(client, name)() is SpecialCommandOutcome.SUCCESS
            assert sim.commands[0][0] == REG.CMD_CHANGE_CONTROL_LOOP_VARIABLE
        else:
            with pytest.raises(UnsupportedForDeviceType):
                getattr(client, name)()
            assert sim.commands == []


def test_change_modbus_id() -> None:
    client, sim = make_client(DeviceType.MASS_FLOW_CONTROLLER)
    client.change_modbus_id(12)
    assert sim.commands == [(REG.CMD_CHANGE_MODBUS_ID, 12)]
    assert client.modbus_id == 12
    with pytest.raises(ValidationError):
        client.change_modbus_id(248)


def test_failed_modbus_id_change_keeps_id() -> None:
    client, _ = make_client(DeviceType.MASS_FLOW_CONTROLLER, status_code=REG.STATUS_CODE_INVALID_SETTING)
    with pytest.raises(DeviceProtocolError):
        client.change_modbus_id(12)
    assert client.modbus_id == 1


def test_display_and_setpoint_source() -> None:
    client, sim = make_client(DeviceType.MASS_FLOW_METER)
    client.lock_display()
    client.unlock_display()
    assert sim.commands == [(REG.CMD_DISPLAY_LOCK, 1), (REG.CMD_DISPLAY_LOCK, 0)]
    with pytest.raises(UnsupportedForDeviceType):
        client.set_setpoint_source_to_analog()


def test_remaining_controller_commands() -> None:
    client, sim = make_client(DeviceType.MASS_FLOW_CONTROLLER)
    client.save_current_setpoint()
    client.change_loop_control_algorithm(2)
    client.valve_control_override(1)
    client.set_setpoint_source_to_digital()
    client.exhaust_valve()
    client.change_serial_baud_rate(3)
    assert sim.commands == [
        (REG.CMD_SAVE_CURRENT_SETPOINT_TO_MEMORY, 0),
        (REG.CMD_CHANGE_LOOP_CONTROL_ALGORITHM, 2),
        (REG.CMD_VALVE_CONTROL_OVERRIDE, 1),
        (REG.CMD_CHANGE_SETPOINT_SOURCE, 0),
        (REG.CMD_VALVE_SETTING, 3),
        (REG.CMD_CHANGE_SERIAL_BAUD_RATE, 3),
    ]
    with pytest.raises(ValidationError):
        client.change_loop_control_algorithm(0)


def test_unit_registers() -> None:
    client, sim = make_client(DeviceType.MASS_FLOW_METER)
    client.set_mass_flow_units(2)
    client.set_volumetric_flow_units(27)
    assert sim.regs[REG.MASS_FLOW_UNITS - 1] == 2
    assert sim.regs[REG.VOLUMETRIC_FLOW_UNITS - 1] == 27
    with pytest.raises(ValidationError):
        client.set_mass_flow_units(1)

    liquid, _ = make_client(DeviceType.LIQUID_CONTROLLER)
    with pytest.raises(UnsupportedForDeviceType):
        liquid.set_mass_flow_units(2)


def test_simulated_gas_number_follows_legacy_register() -> None:
    cfg = Config()
    cfg.register_offset = -1
    cfg.modbus_id = 1
    cfg.gas_number_register = GasNumberRegister.LEGACY
    sim = SimulatedTransport(cfg)
    client = AlicatClient(DeviceType.MASS_FLOW_METER, cfg, transport=sim)
    client.change_gas_number(13)
    assert sim.regs[REG.GAS_NUMBER_LEGACY - 1] == 13
    assert client.get_gas_number() == 13
