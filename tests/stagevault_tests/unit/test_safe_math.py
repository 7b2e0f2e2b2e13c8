"""
Unit tests for checked uint256 arithmetic.

Coverage targets:
- Results at and around the uint256 bounds
- Typed failures for overflow, underflow and division by zero
- Rejection of non-integer operands
"""

import pytest

from stagevault.core import safe_math
from stagevault.core.safe_math import UINT256_MAX
from stagevault.core.vault_exceptions import (
    ArithmeticOverflow,
    ArithmeticUnderflow,
    DivideByZero,
    VaultError,
)


def test_add_returns_sum_up_to_max():
    assert safe_math.add(2, 3) == 5
    assert safe_math.add(UINT256_MAX - 1, 1) == UINT256_MAX


def test_add_overflow_raises():
    with pytest.raises(ArithmeticOverflow):
        safe_math.add(UINT256_MAX, 1)


def test_sub_to_zero_and_underflow():
    assert safe_math.sub(7, 7) == 0
    with pytest.raises(ArithmeticUnderflow) as exc_info:
        safe_math.sub(3, 4)
    assert exc_info.value.details == {"a": 3, "b": 4}


def test_mul_zero_short_circuits_and_overflow_raises():
    assert safe_math.mul(0, UINT256_MAX) == 0
    assert safe_math.mul(UINT256_MAX, 1) == UINT256_MAX
    with pytest.raises(ArithmeticOverflow):
        safe_math.mul(2**128, 2**128)


def test_div_and_mod():
    assert safe_math.div(17, 5) == 3
    assert safe_math.mod(17, 5) == 2
    with pytest.raises(DivideByZero):
        safe_math.div(1, 0)
    with pytest.raises(DivideByZero):
        safe_math.mod(1, 0)


def test_operands_outside_range_rejected():
    with pytest.raises(ArithmeticUnderflow):
        safe_math.add(-1, 1)
    with pytest.raises(ArithmeticOverflow):
        safe_math.sub(UINT256_MAX + 1, 1)


@pytest.mark.parametrize("bad", [1.5, "1", True, None])
def test_non_integer_operands_raise_type_error(bad):
    with pytest.raises(TypeError):
        safe_math.add(bad, 1)


def test_total_is_checked():
    assert safe_math.total([]) == 0
    assert safe_math.total([1, 2, 3]) == 6
    with pytest.raises(ArithmeticOverflow):
        safe_math.total([UINT256_MAX, 1])


def test_arithmetic_errors_share_vault_base():
    with pytest.raises(VaultError) as exc_info:
        safe_math.sub(0, 1)
    assert exc_info.value.reason == "ArithmeticUnderflow"
    assert exc_info.value.recoverable is False
