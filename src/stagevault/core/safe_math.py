"""
Checked uint256 arithmetic.

Every balance, amount and timestamp computation in the vault goes through
these helpers. Results are bounded to the unsigned 256-bit range and any
operation that would leave it raises instead of wrapping.
"""

from __future__ import annotations

from .vault_exceptions import ArithmeticOverflow, ArithmeticUnderflow, DivideByZero

UINT256_MAX: int = 2**256 - 1


def _require_uint(value: int, name: str) -> None:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"SafeMath: {name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ArithmeticUnderflow(
            f"SafeMath: {name} is negative", details={"operand": name, "value": value}
        )
    if value > UINT256_MAX:
        raise ArithmeticOverflow(
            f"SafeMath: {name} exceeds uint256", details={"operand": name}
        )


def add(a: int, b: int) -> int:
    """Return ``a + b``; raises ArithmeticOverflow past UINT256_MAX."""
    _require_uint(a, "a")
    _require_uint(b, "b")
    result = a + b
    if result > UINT256_MAX:
        raise ArithmeticOverflow("SafeMath: addition overflow", details={"a": a, "b": b})
    return result


def sub(a: int, b: int) -> int:
    """Return ``a - b``; raises ArithmeticUnderflow when ``b > a``."""
    _require_uint(a, "a")
    _require_uint(b, "b")
    if b > a:
        raise ArithmeticUnderflow("SafeMath: subtraction underflow", details={"a": a, "b": b})
    return a - b


def mul(a: int, b: int) -> int:
    """Return ``a * b``; raises ArithmeticOverflow past UINT256_MAX."""
    _require_uint(a, "a")
    _require_uint(b, "b")
    if a == 0 or b == 0:
        return 0
    result = a * b
    if result > UINT256_MAX:
        raise ArithmeticOverflow("SafeMath: multiplication overflow", details={"a": a, "b": b})
    return result


def div(a: int, b: int) -> int:
    """Return ``a // b``; raises DivideByZero when ``b == 0``."""
    _require_uint(a, "a")
    _require_uint(b, "b")
    if b == 0:
        raise DivideByZero("SafeMath: division by zero", details={"a": a})
    return a // b


def mod(a: int, b: int) -> int:
    """Return ``a % b``; raises DivideByZero when ``b == 0``."""
    _require_uint(a, "a")
    _require_uint(b, "b")
    if b == 0:
        raise DivideByZero("SafeMath: modulo by zero", details={"a": a})
    return a % b


def total(amounts) -> int:
    """Checked sum of an iterable of amounts."""
    result = 0
    for amount in amounts:
        result = add(result, amount)
    return result


__all__ = ["UINT256_MAX", "add", "sub", "mul", "div", "mod", "total"]
