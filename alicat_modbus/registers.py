"""Register definitions for Alicat instruments (logical Modbus addresses).

Logical addresses follow the Alicat Modbus RTU manual. They are shifted by the
client's register offset before they reach the transport.
"""

from __future__ import annotations

from typing import Tuple

# Spezialkommandos
COMMAND_ID = 1000  # u16, r/w
COMMAND_ARGUMENT = 1001  # u16, r/w; holds the status code after a command

# Sollwerte
SETPOINT = 1010  # 2 regs (float), write only on most firmware
SETPOINT_2 = 1012  # 2 regs (float)
BATCH_SIZE = 1015
DIRECT_VALVE_DRIVE = 1018

# Gasgemisch, stride 2 per constituent
MIXTURE_GAS_1_INDEX = 1050  # u16
MIXTURE_GAS_1_PERCENT = 1051  # u16, percent * 100
MIXTURE_SLOTS = 5

# Konfiguration
SINGLE_EXPONENTIAL_FILTER_ALPHA_GAIN = 1110
STP_DENSITY = 1112
PROPORTIONAL_GAIN = 1120
INTEGRAL_GAIN = 1122
DERIVATIVE_GAIN = 1124
VALVE_OFFSET = 1126
POWER_UP_SETPOINT = 1128
MASS_FLOW_UNITS = 1134  # u16
VOLUMETRIC_FLOW_UNITS = 1135  # u16
TOTALIZER_SELECT = 1137
TOTALIZER_UNITS = 1138
STP_TEMP = 1139
GAS_NUMBER_LEGACY = 1141  # u16
ANALOG_SCALE_FACTOR = 1142  # 2 regs (float)
STP_VOLUMETRIC_FLOW_UNITS = 1144

# Prozesswerte
GAS_NUMBER = 1200  # u16
DEVICE_STATUS = 1201  # u16 bitmask
DEVICE_STATISTIC_1_VALUE = 1203  # 2 regs (float), stride 2
DEVICE_STATISTIC_SLOTS = 20
MASS_FLOW = 1209  # 2 regs (float), same as statistic slot 4

# Status bits of DEVICE_STATUS
STATUS_BIT_TEMPERATURE_OVERFLOW = 0x0001
STATUS_BIT_TEMPERATURE_UNDERFLOW = 0x0002
STATUS_BIT_VOLUMETRIC_OVERFLOW = 0x0004
STATUS_BIT_VOLUMETRIC_UNDERFLOW = 0x0008
STATUS_BIT_MASS_OVERFLOW = 0x0010
STATUS_BIT_MASS_UNDERFLOW = 0x0020
STATUS_BIT_PRESSURE_OVERFLOW = 0x0040
STATUS_BIT_TOTALIZER_OVERFLOW = 0x0080
STATUS_BIT_PID_LOOP_IN_HOLD = 0x0100
STATUS_BIT_ADC_ERROR = 0x0200
STATUS_BIT_PID_EXHAUST = 0x0400
STATUS_BIT_OVER_PRESSURE_LIMIT = 0x0800
STATUS_BIT_FLOW_OVERFLOW_DURING_TOTALIZE = 0x1000
STATUS_BIT_MEASUREMENT_ABORTED = 0x2000

# Special command ids written to COMMAND_ID
CMD_CHANGE_GAS_NUMBER = 1
CMD_CREATE_CUSTOM_GAS_MIXTURE = 2
CMD_DELETE_CUSTOM_GAS_MIXTURE = 3
CMD_TARE = 4
CMD_RESET_TOTALIZER_VALUE = 5
CMD_VALVE_SETTING = 6
CMD_DISPLAY_LOCK = 7
CMD_CHANGE_P_IN_PID_LOOP = 8
CMD_CHANGE_D_IN_PID_LOOP = 9
CMD_CHANGE_I_IN_PID_LOOP = 10
CMD_CHANGE_CONTROL_LOOP_VARIABLE = 11
CMD_SAVE_CURRENT_SETPOINT_TO_MEMORY = 12
CMD_CHANGE_LOOP_CONTROL_ALGORITHM = 13
CMD_READ_PID_VALUE = 14
CMD_VALVE_CONTROL_OVERRIDE = 16
CMD_CHANGE_SETPOINT_SOURCE = 18
CMD_CHANGE_MODBUS_ID = 32767
CMD_CHANGE_SERIAL_BAUD_RATE = 32768

# Status codes read back from COMMAND_ARGUMENT
STATUS_CODE_SUCCESS = 0
STATUS_CODE_INVALID_COMMAND_ID = 32769
STATUS_CODE_INVALID_SETTING = 32770
STATUS_CODE_REQUESTED_FEATURE_IS_UNSUPPORTED = 32771
STATUS_CODE_INVALID_GAS_MIX_INDEX = 32772
STATUS_CODE_INVALID_GAS_MIX_CONSTITUENT = 32773
STATUS_CODE_INVALID_GAS_MIX_PERCENTAGE = 32774

# Wertebereiche
GAS_INDEX_MAX = 210
CUSTOM_MIXTURE_FIRST = 236
CUSTOM_MIXTURE_LAST = 255


def statistic_register(slot: int) -> int:
    """Logical address of device statistic *slot* (1-based, no range check)."""
    return DEVICE_STATISTIC_1_VALUE + 2 * (slot - 1)


def mixture_registers(mixture_index: int) -> Tuple[int, int]:
    """Return ``(index_register, percent_register)`` for a mixture slot."""
    index_register = MIXTURE_GAS_1_INDEX + 2 * (mixture_index - 1)
    return index_register, index_register + 1
