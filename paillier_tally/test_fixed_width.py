import pytest

from paillier_tally.errors import ArithmeticOverflow
from paillier_tally.fixed_width import FixedWidth


def test_values_inside_width_pass():
    width = FixedWidth(128)
    assert width.check((1 << 128) - 1) == (1 << 128) - 1
    assert width.checked_square((1 << 64) - 1) == ((1 << 64) - 1) ** 2


def test_square_overflow_detected():
    width = FixedWidth(128)
    with pytest.raises(ArithmeticOverflow):
        width.checked_square(1 << 64)


def test_add_and_mul_overflow_detected():
    width = FixedWidth(16)
    assert width.checked_add(0xFFFE, 1) == 0xFFFF
    with pytest.raises(ArithmeticOverflow):
        width.checked_add(0xFFFF, 1)
    with pytest.raises(ArithmeticOverflow):
        width.checked_mul(256, 256)


def test_negative_value_rejected():
    with pytest.raises(ArithmeticOverflow):
        FixedWidth(8).check(-1)


def test_zero_width_rejected():
    with pytest.raises(ValueError):
        FixedWidth(0)
