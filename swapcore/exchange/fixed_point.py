"""
Fixed-point arithmetic for the exchange core.

All economic math routes through this module. Amounts are unsigned 64-bit
integers; products are widened to 128 bits before multiplying and narrowed
back to 64 bits only after the final division. Any overflow, division by
zero or lost precision raises ExchangeArithmeticError, which aborts the
enclosing exchange call.
"""

from __future__ import annotations

from ..constants import AMOUNT_MAX, WIDE_MAX
from ..exceptions import ExchangeArithmeticError


def check_amount(value: int, name: str = "amount") -> int:
    """Validate that *value* is an integer in the u64 amount range."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ExchangeArithmeticError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ExchangeArithmeticError(f"{name} must be non-negative: {value}")
    if value > AMOUNT_MAX:
        raise ExchangeArithmeticError(f"{name} exceeds amount range: {value}")
    return value


def _narrow(value: int) -> int:
    if value > AMOUNT_MAX:
        raise ExchangeArithmeticError(f"Result {value} does not fit an amount")
    return value


def checked_add(a: int, b: int) -> int:
    return _narrow(a + b)


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise ExchangeArithmeticError(f"Subtraction underflow: {a} - {b}")
    return a - b


def checked_mul(a: int, b: int) -> int:
    """Widened product of two amounts; fails above the 128-bit range."""
    if a < 0 or b < 0:
        raise ExchangeArithmeticError(f"Operands must be non-negative: ({a}, {b})")
    product = a * b
    if product > WIDE_MAX:
        raise ExchangeArithmeticError(f"Wide multiplication overflow: {a} * {b}")
    return product


def mul_div(a: int, b: int, denominator: int) -> int:
    """
    floor(a * b / denominator), narrowed back to an amount.

    Raises:
        ExchangeArithmeticError: on zero denominator, wide overflow or a
            result that does not fit the amount range.
    """
    if denominator <= 0:
        raise ExchangeArithmeticError("Division by zero")
    return _narrow(checked_mul(a, b) // denominator)


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """ceil(a * b / denominator), narrowed back to an amount."""
    if denominator <= 0:
        raise ExchangeArithmeticError("Division by zero")
    return _narrow(-(-checked_mul(a, b) // denominator))


def isqrt(value: int) -> int:
    """
    Integer square root by Newton's method, rounding down.

    The iteration starts above the root and decreases monotonically, so it
    terminates with floor(sqrt(value)) for every non-negative input.
    """
    if value < 0:
        raise ExchangeArithmeticError(f"Square root of negative value: {value}")
    if value > WIDE_MAX:
        raise ExchangeArithmeticError(f"Square root operand exceeds wide range: {value}")
    if value < 2:
        return value
    x = value
    y = (x + 1) // 2
    while y < x:
        x = y
        y = (x + value // x) // 2
    return x
