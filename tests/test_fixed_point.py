"""
Test suite for swapcore fixed-point arithmetic

Covers:
  - Amount range checks (u64)
  - Checked add / sub / widened mul
  - mul_div floor and ceiling rounding, narrowing and division by zero
  - Integer square root (Newton iteration, floor rounding)
"""

import math

import pytest

from swapcore.constants import AMOUNT_MAX, WIDE_MAX
from swapcore.exceptions import ExchangeArithmeticError, ExchangeError
from swapcore.exchange.fixed_point import (
    check_amount,
    checked_add,
    checked_mul,
    checked_sub,
    isqrt,
    mul_div,
    mul_div_up,
)


class TestCheckAmount:

    def test_accepts_range_bounds(self):
        assert check_amount(0) == 0
        assert check_amount(AMOUNT_MAX) == AMOUNT_MAX

    def test_rejects_negative(self):
        with pytest.raises(ExchangeArithmeticError, match="non-negative"):
            check_amount(-1)

    def test_rejects_above_u64(self):
        with pytest.raises(ExchangeArithmeticError, match="exceeds"):
            check_amount(AMOUNT_MAX + 1)

    @pytest.mark.parametrize("bad", [1.0, "10", None, True])
    def test_rejects_non_integers(self, bad):
        with pytest.raises(ExchangeArithmeticError, match="integer"):
            check_amount(bad, "amount_in")

    def test_error_is_builtin_arithmetic_error(self):
        with pytest.raises(ArithmeticError):
            check_amount(-5)
        assert issubclass(ExchangeArithmeticError, ExchangeError)


class TestCheckedOps:

    def test_add(self):
        assert checked_add(2, 3) == 5

    def test_add_overflow(self):
        with pytest.raises(ExchangeArithmeticError):
            checked_add(AMOUNT_MAX, 1)

    def test_sub_underflow(self):
        with pytest.raises(ExchangeArithmeticError, match="underflow"):
            checked_sub(3, 4)
        assert checked_sub(4, 4) == 0

    def test_mul_widens_past_u64(self):
        assert checked_mul(AMOUNT_MAX, AMOUNT_MAX) == AMOUNT_MAX * AMOUNT_MAX

    def test_mul_overflow_past_u128(self):
        with pytest.raises(ExchangeArithmeticError, match="overflow"):
            checked_mul(WIDE_MAX, 2)


class TestMulDiv:

    def test_floor(self):
        assert mul_div(1000, 99, 1099) == 90
        assert mul_div(7, 3, 2) == 10

    def test_ceil(self):
        assert mul_div_up(7, 3, 2) == 11
        assert mul_div_up(8, 3, 2) == 12

    def test_wide_intermediate_is_exact(self):
        # product exceeds u64 but the quotient fits
        a = AMOUNT_MAX
        assert mul_div(a, a, a) == a

    def test_narrowing_failure(self):
        with pytest.raises(ExchangeArithmeticError, match="does not fit"):
            mul_div(AMOUNT_MAX, 2, 1)

    def test_division_by_zero(self):
        with pytest.raises(ExchangeArithmeticError, match="Division by zero"):
            mul_div(1, 1, 0)
        with pytest.raises(ExchangeArithmeticError, match="Division by zero"):
            mul_div_up(1, 1, 0)


class TestIsqrt:

    @pytest.mark.parametrize("value,root", [
        (0, 0), (1, 1), (2, 1), (3, 1), (4, 2), (15, 3), (16, 4), (17, 4), (40_000, 200),
    ])
    def test_small_values(self, value, root):
        assert isqrt(value) == root

    def test_matches_math_isqrt(self):
        for value in list(range(0, 2000)) + [10**18 + 7, 2**100 + 3, WIDE_MAX]:
            assert isqrt(value) == math.isqrt(value)

    def test_perfect_square_of_amount_max(self):
        assert isqrt(AMOUNT_MAX * AMOUNT_MAX) == AMOUNT_MAX

    def test_rejects_negative(self):
        with pytest.raises(ExchangeArithmeticError):
            isqrt(-1)

    def test_rejects_above_wide_range(self):
        with pytest.raises(ExchangeArithmeticError):
            isqrt(WIDE_MAX + 1)
