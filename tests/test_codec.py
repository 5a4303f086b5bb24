from __future__ import annotations

import math

import pytest

from alicat_modbus.codec import (
    bits_to_float,
    check_u16,
    decode_float,
    decode_percent,
    encode_float,
    encode_percent,
    float_to_bits,
)
from alicat_modbus.errors import ValidationError


def test_float_word_order() -> None:
    assert encode_float(1.0) == [0x3F80, 0x0000]
    assert decode_float([0x3F80, 0x0000]) == 1.0


@pytest.mark.parametrize(
    "bits",
    [0x00000000, 0x80000000, 0x3F800000, 0x7F7FFFFF, 0x00000001, 0xC2F6E979, 0x7F800000, 0xFF800000],
)
def test_float_bits_survive_roundtrip(bits: int) -> None:
    value = bits_to_float(bits)
    words = encode_float(value)
    assert (words[0] << 16) | words[1] == bits
    assert float_to_bits(decode_float(words)) == bits


def test_negative_zero_keeps_sign() -> None:
    assert encode_float(-0.0) == [0x8000, 0x0000]
    assert math.copysign(1.0, decode_float([0x8000, 0x0000])) == -1.0


def test_float_out_of_range() -> None:
    with pytest.raises(ValidationError):
        encode_float(1e40)


def test_decode_float_needs_two_registers() -> None:
    with pytest.raises(ValueError):
        decode_float([0x3F80])


@pytest.mark.parametrize(
    "percent, word",
    [(0.0, 0), (50.0, 5000), (100.0, 10000), (12.5, 1250), (33.125, 3313), (0.004, 0), (99.996, 10000)],
)
def test_encode_percent(percent: float, word: int) -> None:
    assert encode_percent(percent) == word


@pytest.mark.parametrize("percent", [-0.01, 100.01, float("nan"), float("inf")])
def test_encode_percent_rejects(percent: float) -> None:
    with pytest.raises(ValidationError):
        encode_percent(percent)


def test_percent_resolution() -> None:
    for hundredths in range(0, 10001):
        percent = hundredths / 100.0
        assert abs(decode_percent(encode_percent(percent)) - percent) <= 0.01


@pytest.mark.parametrize("value", [-1, 0x10000, 1.5, True, float("nan"), float("inf"), None, "7"])
def test_check_u16_rejects(value) -> None:
    with pytest.raises(ValidationError):
        check_u16(value)


def test_check_u16_bounds() -> None:
    assert check_u16(0) == 0
    assert check_u16(0xFFFF) == 0xFFFF
