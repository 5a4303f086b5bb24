"""High level client for Alicat flow and pressure instruments."""

from __future__ import annotations

import logging
import os
from typing import Callable, List, Optional, Sequence, Type, TypeVar, Union

from . import capabilities as caps
from . import registers as REG  # logical register addresses
from .codec import check_u16, decode_float, decode_percent, encode_float, encode_percent
from .config import Config
from .errors import AlicatError, DeviceProtocolError, TransportError, UnsupportedForDeviceType, ValidationError
from .models import (
    ControlLoopVariable,
    DeviceType,
    DisplayLock,
    GasMixtureComponent,
    GasNumberRegister,
    LoopControlAlgorithm,
    MassFlowUnit,
    PIDCoefficient,
    SetpointSource,
    SpecialCommandOutcome,
    StatusSnapshot,
    TareType,
    Telemetry,
    ValveSetting,
    VolumetricFlowUnit,
)
from .status import classify_status_code, decode_status, is_error_code
from .transport import RTUTransport, SimulatedTransport, TCPTransport, Transport

logger = logging.getLogger(__name__)

DiagnosticSink = Callable[[str], None]
E = TypeVar("E", bound=AlicatError)
N = TypeVar("N", bound=int)

PID_COMMANDS = {
    PIDCoefficient.P: REG.CMD_CHANGE_P_IN_PID_LOOP,
    PIDCoefficient.D: REG.CMD_CHANGE_D_IN_PID_LOOP,
    PIDCoefficient.I: REG.CMD_CHANGE_I_IN_PID_LOOP,
}


class AlicatClient:
    """Typed access to an Alicat instrument via Modbus holding registers.

    Every public operation checks that the configured :class:`DeviceType`
    supports it and that its arguments are in range before any register is
    touched. Transport failures are propagated unchanged; the client never
    retries and keeps no state between calls apart from its configuration.
    """

    def __init__(
        self,
        device_type: Union[DeviceType, str, int, None] = None,
        cfg: Optional[Config] = None,
        transport: Optional[Transport] = None,
        *,
        modbus_id: Optional[int] = None,
        register_offset: Optional[int] = None,
        gas_number_register: Optional[int] = None,
        verbose: Optional[bool] = None,
        diagnostics: Optional[DiagnosticSink] = None,
    ) -> None:
        self.cfg = cfg or Config.from_env()
        self.transport = transport
        self.device_type = DeviceType.parse(device_type if device_type is not None else self.cfg.device_type)
        self.modbus_id = int(modbus_id if modbus_id is not None else self.cfg.modbus_id)
        self._register_offset = int(register_offset if register_offset is not None else self.cfg.register_offset)
        self.verbose = bool(verbose if verbose is not None else self.cfg.verbose)
        self._sink: DiagnosticSink = diagnostics or logger.info
        self.gas_number_register = self._enum(
            GasNumberRegister,
            gas_number_register if gas_number_register is not None else self.cfg.gas_number_register,
            "gas number register",
        )

    def connect(self) -> None:
        """Initialise the transport lazily."""
        if self.transport is not None:
            return
        if os.getenv("ALICAT_SIM") or os.getenv("ALICAT_FAKE"):
            self.transport = SimulatedTransport(self.cfg)
        elif self.cfg.host:
            self.transport = TCPTransport(self.cfg)
        else:
            self.transport = RTUTransport(self.cfg)

    def close(self) -> None:
        """Close the underlying transport."""
        if self.transport is not None:
            self.transport.close()

    # ---- Configuration ----
    @property
    def register_offset(self) -> int:
        return self._register_offset

    def set_register_offset(self, register_offset: int) -> None:
        self._register_offset = int(register_offset)

    def set_modbus_id(self, modbus_id: int) -> None:
        self.modbus_id = int(modbus_id)

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = bool(verbose)

    def resolve(self, logical: int) -> int:
        """Map a logical register address to the address sent on the wire."""
        return logical + self._register_offset

    # ---- Diagnostics ----
    def _emit(self, message: str) -> None:
        if self.verbose:
            self._sink(message)

    def _diagnose(self, exc: E) -> E:
        self._emit(f"ERROR: {exc}")
        return exc

    def _require(self, allowed: bool, operation: str) -> None:
        if not allowed:
            raise self._diagnose(UnsupportedForDeviceType(operation, self.device_type))

    def _check_range(self, value: int, low: int, high: int, what: str) -> int:
        try:
            valid = not isinstance(value, bool) and int(value) == value and low <= int(value) <= high
        except (TypeError, ValueError, OverflowError):
            valid = False
        if not valid:
            raise self._diagnose(ValidationError(f"{what} must be between {low} and {high}, got {value!r}"))
        return int(value)

    def _enum(self, enum_cls: Type[N], value: int, what: str) -> N:
        try:
            return enum_cls(value)
        except ValueError:
            raise self._diagnose(ValidationError(f"invalid {what}: {value!r}")) from None

    # ---- Low level ----
    def _ensure_transport(self) -> Transport:
        if self.transport is None:
            raise AlicatError("not connected")
        return self.transport

    def statistic_register(self, slot: int) -> int:
        """Logical address of device statistic *slot* (1..20)."""
        slot = self._check_range(slot, 1, REG.DEVICE_STATISTIC_SLOTS, "statistic index")
        return REG.statistic_register(slot)

    def read_registers(self, address: int, count: int) -> List[int]:
        transport = self._ensure_transport()
        try:
            regs = transport.read_holding_registers(self.modbus_id, self.resolve(address), count)
        except TransportError as exc:
            self._emit(f"ERROR: failed to read register {address}: {exc}")
            raise
        if len(regs) != count:
            raise self._diagnose(TransportError(f"register {address}: expected {count} values, got {len(regs)}"))
        return [int(r) for r in regs]

    def write_registers(self, address: int, values: Sequence[int]) -> None:
        values = [check_u16(v) for v in values]
        transport = self._ensure_transport()
        try:
            transport.write_registers(self.modbus_id, self.resolve(address), values)
        except TransportError as exc:
            self._emit(f"ERROR: failed to write register {address}: {exc}")
            raise

    def read_u16(self, address: int) -> int:
        return self.read_registers(address, 1)[0]

    def write_u16(self, address: int, value: int) -> None:
        self.write_registers(address, [value])

    def read_float(self, address: int) -> float:
        return decode_float(self.read_registers(address, 2))

    def write_float(self, address: int, value: float) -> None:
        self.write_registers(address, encode_float(value))

    def _read_statistic(self, slot: int) -> float:
        return self.read_float(self.statistic_register(slot))

    # ---- Telemetry ----
    def get_setpoint(self) -> float:
        self._require(caps.is_controller(self.device_type), "get_setpoint")
        if caps.is_mass_flow(self.device_type):
            return self._read_statistic(5)
        if caps.is_pressure_controller(self.device_type):
            return self._read_statistic(2)
        raise self._diagnose(UnsupportedForDeviceType("get_setpoint", self.device_type))

    def set_setpoint(self, setpoint: float) -> None:
        self._require(caps.is_controller(self.device_type), "set_setpoint")
        self.write_float(REG.SETPOINT, setpoint)

    def get_pressure(self) -> float:
        # every device reports pressure in the first statistic
        return self._read_statistic(1)

    def get_flow_temperature(self) -> float:
        self._require(
            caps.is_mass_flow(self.device_type) or caps.is_liquid(self.device_type),
            "get_flow_temperature",
        )
        return self._read_statistic(2)

    def get_volumetric_flow(self) -> float:
        self._require(
            caps.is_mass_flow(self.device_type) or caps.is_liquid(self.device_type),
            "get_volumetric_flow",
        )
        return self._read_statistic(3)

    def get_mass_flow(self) -> float:
        self._require(caps.is_mass_flow(self.device_type), "get_mass_flow")
        return self._read_statistic(4)

    def get_mass_total(self) -> float:
        self._require(caps.is_mass_flow(self.device_type), "get_mass_total")
        return self._read_statistic(6 if caps.is_controller(self.device_type) else 5)

    def get_status_flags(self) -> StatusSnapshot:
        """Read the status register and decode it into named flags."""
        word = self.read_u16(REG.DEVICE_STATUS)
        status = decode_status(word)
        if self.verbose:
            self._emit(f"STATUS bits: {word:#018b}")
            for name in status.active():
                self._emit(f"STATUS: {name.replace('_', ' ').upper()} bit is set")
        return status

    def read_telemetry(self) -> Telemetry:
        """Read every statistic the device type provides, plus status."""
        dt = self.device_type
        flowing = caps.is_mass_flow(dt) or caps.is_liquid(dt)
        has_setpoint = caps.is_controller(dt) and (caps.is_mass_flow(dt) or caps.is_pressure_controller(dt))
        return Telemetry(
            device_type=dt,
            pressure=self.get_pressure(),
            status=self.get_status_flags(),
            setpoint=self.get_setpoint() if has_setpoint else None,
            flow_temperature=self.get_flow_temperature() if flowing else None,
            volumetric_flow=self.get_volumetric_flow() if flowing else None,
            mass_flow=self.get_mass_flow() if caps.is_mass_flow(dt) else None,
            mass_total=self.get_mass_total() if caps.is_mass_flow(dt) else None,
        )

    # ---- Gas selection ----
    def _mixture_registers(self, mixture_index: int) -> tuple[int, int]:
        mixture_index = self._check_range(mixture_index, 1, REG.MIXTURE_SLOTS, "mixture index")
        return REG.mixture_registers(mixture_index)

    def set_mixture_gas_properties(self, mixture_index: int, gas_index: int, gas_percent: float) -> None:
        """Configure one constituent of the custom gas mixture.

        The gas index is written before the percentage since the instrument
        validates the percentage against the constituent just written.
        """
        self._require(caps.is_mass_flow(self.device_type), "set_mixture_gas_properties")
        index_reg, percent_reg = self._mixture_registers(mixture_index)
        gas_index = self._check_range(gas_index, 0, REG.GAS_INDEX_MAX, "gas index")
        try:
            percent_word = encode_percent(gas_percent)
        except ValidationError as exc:
            raise self._diagnose(exc)
        self.write_u16(index_reg, gas_index)
        self.write_u16(percent_reg, percent_word)

    def get_mixture_gas_properties(self, mixture_index: int) -> GasMixtureComponent:
        self._require(caps.is_mass_flow(self.device_type), "get_mixture_gas_properties")
        index_reg, percent_reg = self._mixture_registers(mixture_index)
        gas_index = self.read_u16(index_reg)
        gas_percent = decode_percent(self.read_u16(percent_reg))
        return GasMixtureComponent(int(mixture_index), gas_index, gas_percent)

    def set_gas_number(self, gas_index: int) -> None:
        self._require(caps.is_mass_flow(self.device_type), "set_gas_number")
        gas_index = self._check_range(gas_index, 0, REG.GAS_INDEX_MAX, "gas index")
        self.write_u16(self.gas_number_register, gas_index)

    def get_gas_number(self) -> int:
        self._require(caps.is_mass_flow(self.device_type), "get_gas_number")
        return self.read_u16(self.gas_number_register)

    def set_mass_flow_units(self, unit: int) -> None:
        self._require(caps.is_mass_flow(self.device_type), "set_mass_flow_units")
        self.write_u16(REG.MASS_FLOW_UNITS, self._enum(MassFlowUnit, unit, "mass flow unit"))

    def set_volumetric_flow_units(self, unit: int) -> None:
        self._require(
            caps.is_mass_flow(self.device_type) or caps.is_liquid(self.device_type),
            "set_volumetric_flow_units",
        )
        self.write_u16(REG.VOLUMETRIC_FLOW_UNITS, self._enum(VolumetricFlowUnit, unit, "volumetric flow unit"))

    def set_analog_scale_factor(self, factor: float) -> None:
        self.write_float(REG.ANALOG_SCALE_FACTOR, factor)

    # ---- Special commands ----
    def _issue_command(self, command: int, argument: int) -> int:
        """Write command and argument as one block, then poll the argument register."""
        self.write_registers(REG.COMMAND_ID, [command, argument])
        return self.read_u16(REG.COMMAND_ARGUMENT)

    def send_special_command(self, command: int, argument: int = 0) -> SpecialCommandOutcome:
        """Run a special command and return its outcome.

        Raises :class:`DeviceProtocolError` unless the device answers with the
        success code.
        """
        code = self._issue_command(command, argument)
        outcome = classify_status_code(code)
        if outcome is not SpecialCommandOutcome.SUCCESS:
            raise self._diagnose(DeviceProtocolError(outcome, code, command))
        return outcome

    def change_gas_number(self, gas_index: int) -> SpecialCommandOutcome:
        self._require(caps.is_mass_flow(self.device_type), "change_gas_number")
        gas_index = self._check_range(gas_index, 0, REG.GAS_INDEX_MAX, "gas index")
        return self.send_special_command(REG.CMD_CHANGE_GAS_NUMBER, gas_index)

    def create_custom_gas_mixture(self, mixture_number: int = 0) -> SpecialCommandOutcome:
        """Store the configured constituents as a mixture.

        ``0`` lets the instrument pick the next free mixture number.
        """
        self._require(caps.is_mass_flow(self.device_type), "create_custom_gas_mixture")
        if mixture_number != 0:
            self._check_range(mixture_number, REG.CUSTOM_MIXTURE_FIRST, REG.CUSTOM_MIXTURE_LAST, "gas mixture number")
        return self.send_special_command(REG.CMD_CREATE_CUSTOM_GAS_MIXTURE, mixture_number)

    def delete_custom_gas_mixture(self, mixture_number: int) -> SpecialCommandOutcome:
        self._require(caps.is_mass_flow(self.device_type), "delete_custom_gas_mixture")
        self._check_range(mixture_number, REG.CUSTOM_MIXTURE_FIRST, REG.CUSTOM_MIXTURE_LAST, "gas mixture number")
        return self.send_special_command(REG.CMD_DELETE_CUSTOM_GAS_MIXTURE, mixture_number)

    def tare(self, tare_argument: int) -> SpecialCommandOutcome:
        tare_type = self._enum(TareType, tare_argument, "tare argument")
        if tare_type is TareType.VOLUME:
            allowed = caps.is_mass_flow(self.device_type) or caps.is_liquid(self.device_type)
        else:
            allowed = caps.is_pressure_controller(self.device_type)
        self._require(allowed, f"tare({tare_type.name})")
        return self.send_special_command(REG.CMD_TARE, tare_type)

    def tare_pressure(self) -> SpecialCommandOutcome:
        return self.tare(TareType.PRESSURE)

    def tare_absolute_pressure(self) -> SpecialCommandOutcome:
        return self.tare(TareType.ABSOLUTE_PRESSURE)

    def tare_volume(self) -> SpecialCommandOutcome:
        return self.tare(TareType.VOLUME)

    def reset_totalizer(self) -> SpecialCommandOutcome:
        self._require(
            caps.is_mass_flow(self.device_type) or caps.is_liquid(self.device_type),
            "reset_totalizer",
        )
        return self.send_special_command(REG.CMD_RESET_TOTALIZER_VALUE, 0)

    def valve_setting(self, setting: int) -> SpecialCommandOutcome:
        self._require(caps.is_controller(self.device_type), "valve_setting")
        return self.send_special_command(REG.CMD_VALVE_SETTING, self._enum(ValveSetting, setting, "valve setting"))

    def cancel_valve_setting(self) -> SpecialCommandOutcome:
        return self.valve_setting(ValveSetting.CANCEL)

    def hold_valve_closed(self) -> SpecialCommandOutcome:
        return self.valve_setting(ValveSetting.HOLD_CLOSED)

    def hold_valve_current(self) -> SpecialCommandOutcome:
        return self.valve_setting(ValveSetting.HOLD_CURRENT)

    def exhaust_valve(self) -> SpecialCommandOutcome:
        return self.valve_setting(ValveSetting.EXHAUST)

    def display_lock(self, lock: int) -> SpecialCommandOutcome:
        return self.send_special_command(REG.CMD_DISPLAY_LOCK, self._enum(DisplayLock, lock, "display lock argument"))

    def lock_display(self) -> SpecialCommandOutcome:
        return self.display_lock(DisplayLock.LOCK)

    def unlock_display(self) -> SpecialCommandOutcome:
        return self.display_lock(DisplayLock.UNLOCK)

    def change_pid_coefficient(self, coefficient: int, value: int) -> SpecialCommandOutcome:
        self._require(caps.is_controller(self.device_type), "change_pid_coefficient")
        coefficient = self._enum(PIDCoefficient, coefficient, "PID coefficient")
        value = self._check_range(value, 0, 0xFFFF, f"{coefficient.name} gain")
        return self.send_special_command(PID_COMMANDS[coefficient], value)

    def change_p_in_pid_loop(self, value: int) -> SpecialCommandOutcome:
        return self.change_pid_coefficient(PIDCoefficient.P, value)

    def change_d_in_pid_loop(self, value: int) -> SpecialCommandOutcome:
        return self.change_pid_coefficient(PIDCoefficient.D, value)

    def change_i_in_pid_loop(self, value: int) -> SpecialCommandOutcome:
        return self.change_pid_coefficient(PIDCoefficient.I, value)

    def change_control_loop_variable(self, variable: int) -> SpecialCommandOutcome:
        variable = self._enum(ControlLoopVariable, variable, "control loop variable")
        dt = self.device_type
        allowed = {
            ControlLoopVariable.MASS_FLOW: dt == DeviceType.MASS_FLOW_CONTROLLER,
            ControlLoopVariable.VOLUME_FLOW: dt in (DeviceType.MASS_FLOW_CONTROLLER, DeviceType.LIQUID_CONTROLLER),
            ControlLoopVariable.DIFFERENTIAL_PRESSURE: caps.is_psid_controller(dt),
            ControlLoopVariable.ABSOLUTE_PRESSURE: dt == DeviceType.MASS_FLOW_CONTROLLER
            or caps.is_pressure_controller(dt),
            ControlLoopVariable.GAUGE_PRESSURE: dt
            in (
                DeviceType.MASS_FLOW_CONTROLLER,
                DeviceType.LIQUID_CONTROLLER,
                DeviceType.GAUGE_PRESSURE_CONTROLLER,
            ),
        }[variable]
        self._require(allowed, f"change_control_loop_variable({variable.name})")
        return self.send_special_command(REG.CMD_CHANGE_CONTROL_LOOP_VARIABLE, variable)

    def control_mass_flow(self) -> SpecialCommandOutcome:
        return self.change_control_loop_variable(ControlLoopVariable.MASS_FLOW)

    def control_volumetric_flow(self) -> SpecialCommandOutcome:
        return self.change_control_loop_variable(ControlLoopVariable.VOLUME_FLOW)

    def control_differential_pressure(self) -> SpecialCommandOutcome:
        return self.change_control_loop_variable(ControlLoopVariable.DIFFERENTIAL_PRESSURE)

    def control_absolute_pressure(self) -> SpecialCommandOutcome:
        return self.change_control_loop_variable(ControlLoopVariable.ABSOLUTE_PRESSURE)

    def control_gauge_pressure(self) -> SpecialCommandOutcome:
        return self.change_control_loop_variable(ControlLoopVariable.GAUGE_PRESSURE)

    def save_current_setpoint(self) -> SpecialCommandOutcome:
        self._require(caps.is_controller(self.device_type), "save_current_setpoint")
        return self.send_special_command(REG.CMD_SAVE_CURRENT_SETPOINT_TO_MEMORY, 0)

    def change_loop_control_algorithm(self, algorithm: int) -> SpecialCommandOutcome:
        self._require(caps.is_controller(self.device_type), "change_loop_control_algorithm")
        algorithm = self._enum(LoopControlAlgorithm, algorithm, "loop control algorithm")
        return self.send_special_command(REG.CMD_CHANGE_LOOP_CONTROL_ALGORITHM, algorithm)

    def read_pid_value(self, coefficient: int) -> int:
        """Return the current gain of a PID coefficient.

        The instrument answers in the argument register with the gain itself,
        so only the documented error codes are treated as failures.
        """
        self._require(caps.is_controller(self.device_type), "read_pid_value")
        coefficient = self._enum(PIDCoefficient, coefficient, "PID coefficient")
        value = self._issue_command(REG.CMD_READ_PID_VALUE, coefficient)
        if is_error_code(value):
            raise self._diagnose(DeviceProtocolError(classify_status_code(value), value, REG.CMD_READ_PID_VALUE))
        return value

    def read_p_value(self) -> int:
        return self.read_pid_value(PIDCoefficient.P)

    def read_d_value(self) -> int:
        return self.read_pid_value(PIDCoefficient.D)

    def read_i_value(self) -> int:
        return self.read_pid_value(PIDCoefficient.I)

    def valve_control_override(self, argument: int) -> SpecialCommandOutcome:
        self._require(caps.is_controller(self.device_type), "valve_control_override")
        argument = self._check_range(argument, 0, 0xFFFF, "valve control override argument")
        return self.send_special_command(REG.CMD_VALVE_CONTROL_OVERRIDE, argument)

    def change_setpoint_source(self, source: int) -> SpecialCommandOutcome:
        self._require(caps.is_controller(self.device_type), "change_setpoint_source")
        source = self._enum(SetpointSource, source, "setpoint source")
        return self.send_special_command(REG.CMD_CHANGE_SETPOINT_SOURCE, source)

    def set_setpoint_source_to_digital(self) -> SpecialCommandOutcome:
        return self.change_setpoint_source(SetpointSource.DIGITAL)

    def set_setpoint_source_to_analog(self) -> SpecialCommandOutcome:
        return self.change_setpoint_source(SetpointSource.ANALOG)

    def change_modbus_id(self, new_id: int) -> SpecialCommandOutcome:
        """Assign a new Modbus id; later requests are addressed to it."""
        new_id = self._check_range(new_id, 1, 247, "modbus id")
        outcome = self.send_special_command(REG.CMD_CHANGE_MODBUS_ID, new_id)
        self.set_modbus_id(new_id)
        return outcome

    def change_serial_baud_rate(self, baud_code: int) -> SpecialCommandOutcome:
        baud_code = self._check_range(baud_code, 0, 0xFFFF, "baud rate argument")
        return self.send_special_command(REG.CMD_CHANGE_SERIAL_BAUD_RATE, baud_code)
