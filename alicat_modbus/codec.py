"""Register value codecs.

All 32-bit values occupy two consecutive registers in big-endian word order:
bits 31:16 live in the lower numbered register, bits 15:0 in the next one.
Floating point values are IEEE-754 single precision.

Gas percentages are stored as ``round(percent * 100)`` in one register, i.e. a
50 % constituent is written as 5000.
Rounding is half away from zero.
"""

from __future__ import annotations

import math
import struct
from typing import List, Sequence

from .errors import ValidationError

U16_MAX = 0xFFFF
PERCENT_SCALE = 100


def check_u16(value: int) -> int:
    """Return *value* unchanged if it fits into one register."""
    try:
        integral = not isinstance(value, bool) and int(value) == value
    except (TypeError, ValueError, OverflowError):
        integral = False
    if not integral:
        raise ValidationError(f"register value must be an integer, got {value!r}")
    value = int(value)
    if not 0 <= value <= U16_MAX:
        raise ValidationError(f"register value {value} outside 0..{U16_MAX}")
    return value


def float_to_bits(value: float) -> int:
    try:
        raw = struct.pack(">f", float(value))
    except OverflowError as exc:
        raise ValidationError(f"{value!r} does not fit into a 32-bit float") from exc
    return struct.unpack(">I", raw)[0]


def bits_to_float(bits: int) -> float:
    return struct.unpack(">f", struct.pack(">I", bits & 0xFFFFFFFF))[0]


def encode_float(value: float) -> List[int]:
    """Split a float into ``[high, low]`` register words."""
    bits = float_to_bits(value)
    return [(bits >> 16) & U16_MAX, bits & U16_MAX]


def decode_float(regs: Sequence[int]) -> float:
    """Inverse of :func:`encode_float`."""
    if len(regs) != 2:
        raise ValueError(f"decode_float expects 2 regs, got {len(regs)}")
    high, low = (int(r) & U16_MAX for r in regs)
    return bits_to_float((high << 16) | low)


def encode_percent(percent: float) -> int:
    """Encode a gas percentage in [0, 100] as fixed point hundredths."""
    percent = float(percent)
    if math.isnan(percent) or not 0.0 <= percent <= 100.0:
        raise ValidationError(f"gas percent must be between 0 and 100, got {percent}")
    return int(math.floor(percent * PERCENT_SCALE + 0.5))


def decode_percent(word: int) -> float:
    return int(word) / float(PERCENT_SCALE)
