"""Decoding of the status register and of special command status codes."""

from __future__ import annotations

from . import registers as REG
from .models import SpecialCommandOutcome, StatusSnapshot

STATUS_BITS = {
    "temperature_overflow": REG.STATUS_BIT_TEMPERATURE_OVERFLOW,
    "temperature_underflow": REG.STATUS_BIT_TEMPERATURE_UNDERFLOW,
    "volumetric_overflow": REG.STATUS_BIT_VOLUMETRIC_OVERFLOW,
    "volumetric_underflow": REG.STATUS_BIT_VOLUMETRIC_UNDERFLOW,
    "mass_overflow": REG.STATUS_BIT_MASS_OVERFLOW,
    "mass_underflow": REG.STATUS_BIT_MASS_UNDERFLOW,
    "pressure_overflow": REG.STATUS_BIT_PRESSURE_OVERFLOW,
    "totalizer_overflow": REG.STATUS_BIT_TOTALIZER_OVERFLOW,
    "pid_loop_in_hold": REG.STATUS_BIT_PID_LOOP_IN_HOLD,
    "adc_error": REG.STATUS_BIT_ADC_ERROR,
    "pid_exhaust": REG.STATUS_BIT_PID_EXHAUST,
    "over_pressure_limit": REG.STATUS_BIT_OVER_PRESSURE_LIMIT,
    "flow_overflow_during_totalize": REG.STATUS_BIT_FLOW_OVERFLOW_DURING_TOTALIZE,
    "measurement_aborted": REG.STATUS_BIT_MEASUREMENT_ABORTED,
}

STATUS_CODES = {
    REG.STATUS_CODE_SUCCESS: SpecialCommandOutcome.SUCCESS,
    REG.STATUS_CODE_INVALID_COMMAND_ID: SpecialCommandOutcome.INVALID_COMMAND_ID,
    REG.STATUS_CODE_INVALID_SETTING: SpecialCommandOutcome.INVALID_SETTING,
    REG.STATUS_CODE_REQUESTED_FEATURE_IS_UNSUPPORTED: SpecialCommandOutcome.UNSUPPORTED_FEATURE,
    REG.STATUS_CODE_INVALID_GAS_MIX_INDEX: SpecialCommandOutcome.INVALID_GAS_MIX_INDEX,
    REG.STATUS_CODE_INVALID_GAS_MIX_CONSTITUENT: SpecialCommandOutcome.INVALID_GAS_MIX_CONSTITUENT,
    REG.STATUS_CODE_INVALID_GAS_MIX_PERCENTAGE: SpecialCommandOutcome.INVALID_GAS_MIX_PERCENTAGE,
}


def decode_status(word: int) -> StatusSnapshot:
    """Turn the raw status word into a :class:`StatusSnapshot`."""
    word = int(word) & 0xFFFF
    flags = {name: (word & mask) != 0 for name, mask in STATUS_BITS.items()}
    return StatusSnapshot(any_error=word != 0, raw=word, **flags)


def classify_status_code(code: int) -> SpecialCommandOutcome:
    return STATUS_CODES.get(int(code), SpecialCommandOutcome.UNKNOWN_STATUS_CODE)


def is_error_code(code: int) -> bool:
    """True for the codes the device uses to reject a command."""
    return int(code) in STATUS_CODES and int(code) != REG.STATUS_CODE_SUCCESS
