"""Data models for the alicat_modbus API."""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum, IntEnum
from typing import List, Optional, Union

from . import registers as REG


class DeviceType(IntEnum):
    """Instrument variants; the numeric values match the Alicat type codes."""

    MASS_FLOW_CONTROLLER = 0
    LIQUID_CONTROLLER = 1
    MASS_FLOW_METER = 2
    PSID_CONTROLLER = 3
    GAUGE_PRESSURE_CONTROLLER = 4

    @classmethod
    def parse(cls, value: Union[str, int, "DeviceType"]) -> "DeviceType":
        """Accept a member, its number or its (case-insensitive) name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        text = str(value).strip()
        if text.isdigit():
            return cls(int(text))
        try:
            return cls[text.upper().replace("-", "_")]
        except KeyError:
            raise ValueError(f"unknown device type: {value!r}") from None


class GasNumberRegister(IntEnum):
    """The two addresses the register map documents for the gas number."""

    LEGACY = REG.GAS_NUMBER_LEGACY
    STATUS_BLOCK = REG.GAS_NUMBER


class SpecialCommandOutcome(Enum):
    SUCCESS = "success"
    INVALID_COMMAND_ID = "invalid command id"
    INVALID_SETTING = "invalid setting"
    UNSUPPORTED_FEATURE = "requested feature is unsupported"
    INVALID_GAS_MIX_INDEX = "invalid gas mix index"
    INVALID_GAS_MIX_CONSTITUENT = "invalid gas mix constituent"
    INVALID_GAS_MIX_PERCENTAGE = "invalid gas mix percentage"
    UNKNOWN_STATUS_CODE = "unknown status code"


class TareType(IntEnum):
    PRESSURE = 0
    ABSOLUTE_PRESSURE = 1
    VOLUME = 2  # mass flow and liquid devices only


class ValveSetting(IntEnum):
    CANCEL = 0
    HOLD_CLOSED = 1
    HOLD_CURRENT = 2
    EXHAUST = 3  # dual valve controllers only


class DisplayLock(IntEnum):
    UNLOCK = 0
    LOCK = 1


class ControlLoopVariable(IntEnum):
    MASS_FLOW = 0
    VOLUME_FLOW = 1
    DIFFERENTIAL_PRESSURE = 2
    ABSOLUTE_PRESSURE = 3
    GAUGE_PRESSURE = 4


class LoopControlAlgorithm(IntEnum):
    PD = 1
    PDDI = 2


class PIDCoefficient(IntEnum):
    P = 0
    D = 1
    I = 2  # noqa: E741


class SetpointSource(IntEnum):
    DIGITAL = 0
    ANALOG = 1


class MassFlowUnit(IntEnum):
    G_PER_HOUR = 0
    G_PER_MINUTE = 2
    G_PER_SECOND = 5
    KG_PER_MINUTE = 8
    KG_PER_SECOND = 11
    MG_PER_MINUTE = 14
    MG_PER_SECOND = 17
    OZ_PER_MINUTE = 20
    OZ_PER_SECOND = 23
    LB_PER_HOUR = 25
    LB_PER_MINUTE = 26


class VolumetricFlowUnit(IntEnum):
    L_PER_HOUR = 0
    CM3_PER_HOUR = 7
    CM3_PER_MINUTE = 8
    CM3_PER_SECOND = 9
    FT3_PER_MINUTE = 10
    IN3_PER_MINUTE = 12
    M3_PER_DAY = 14
    M3_PER_HOUR = 15
    M3_PER_MINUTE = 16
    GAL_PER_HOUR = 24
    GAL_PER_MINUTE = 25
    L_PER_MINUTE = 27
    L_PER_SECOND = 28
    ML_PER_SECOND = 29


@dataclass(frozen=True)
class StatusSnapshot:
    """Decoded contents of the device status register."""

    temperature_overflow: bool = False
    temperature_underflow: bool = False
    volumetric_overflow: bool = False
    volumetric_underflow: bool = False
    mass_overflow: bool = False
    mass_underflow: bool = False
    pressure_overflow: bool = False
    totalizer_overflow: bool = False
    pid_loop_in_hold: bool = False
    adc_error: bool = False
    pid_exhaust: bool = False
    over_pressure_limit: bool = False
    flow_overflow_during_totalize: bool = False
    measurement_aborted: bool = False
    any_error: bool = False
    raw: int = 0

    def active(self) -> List[str]:
        """Names of all condition flags that are set."""
        return [
            f.name
            for f in fields(self)
            if f.name not in ("any_error", "raw") and getattr(self, f.name)
        ]


@dataclass(frozen=True)
class GasMixtureComponent:
    """One constituent slot of a custom gas mixture."""

    mixture_index: int
    gas_index: int
    gas_percent: float


@dataclass
class Telemetry:
    """Statistics available on the device; ``None`` where not applicable."""

    device_type: DeviceType
    pressure: float
    status: StatusSnapshot
    setpoint: Optional[float] = None
    flow_temperature: Optional[float] = None
    volumetric_flow: Optional[float] = None
    mass_flow: Optional[float] = None
    mass_total: Optional[float] = None
