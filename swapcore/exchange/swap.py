"""
Swap Engine: constant-product swaps with the fee taken on the input side.

    amount_out = floor(reserve_out * amount_in * (D - N)
                       / (reserve_in * D + amount_in * (D - N)))

where N / D is the swap fee (1% by default). The fee portion of the input
stays in the reserves, so reserve_in * reserve_out never decreases and
every outstanding share gains value; there is no separate fee ledger.

Three route shapes are supported, resolved once into a SwapRoute:
  - base → token   (one pool)
  - token → base   (one pool)
  - token → token  (two pools, routed through the base asset)

Security features:
  - Slippage protection (min_amount_out on every swap)
  - Read-only planning: all hops are computed and validated before any
    reserve is touched, then committed together
  - Post-swap invariant check on every hop
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..constants import FEE_DENOM, FEE_NUM, WIDE_MAX
from ..exceptions import (
    ExchangeArithmeticError,
    InsufficientLiquidity,
    InvalidRoute,
    SlippageExceeded,
    ZeroAmount,
)
from .fixed_point import check_amount, checked_add, checked_mul, checked_sub
from .pool import PoolLedger, TokenId

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------

class SwapKind(str, Enum):
    BASE_TO_TOKEN = "base_to_token"
    TOKEN_TO_BASE = "token_to_base"
    TOKEN_TO_TOKEN = "token_to_token"


@dataclass(frozen=True)
class SwapRoute:
    """Tagged swap shape. ``None`` on either side stands for the base asset."""
    kind: SwapKind
    token_in: Optional[TokenId]
    token_out: Optional[TokenId]

    @classmethod
    def resolve(cls, token_in: Optional[TokenId], token_out: Optional[TokenId]) -> SwapRoute:
        if token_in is None and token_out is None:
            raise InvalidRoute("Cannot swap the base asset for itself")
        if token_in is None:
            return cls(SwapKind.BASE_TO_TOKEN, None, token_out)
        if token_out is None:
            return cls(SwapKind.TOKEN_TO_BASE, token_in, None)
        if token_in == token_out:
            raise InvalidRoute(f"Cannot swap token {token_in} for itself")
        return cls(SwapKind.TOKEN_TO_TOKEN, token_in, token_out)

    @property
    def is_double(self) -> bool:
        return self.kind is SwapKind.TOKEN_TO_TOKEN


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SwapHop:
    """One single-pool leg, computed but not yet committed."""
    token: TokenId
    base_in: bool
    amount_in: int
    amount_out: int
    base_reserve: int
    token_reserve: int
    new_base_reserve: int
    new_token_reserve: int

    @property
    def base_delta(self) -> int:
        return self.new_base_reserve - self.base_reserve

    @property
    def token_delta(self) -> int:
        return self.new_token_reserve - self.token_reserve


@dataclass(frozen=True)
class SwapResult:
    route: SwapRoute
    amount_in: int
    amount_out: int
    hops: Tuple[SwapHop, ...]

    @property
    def intermediate_base(self) -> int:
        """Base amount passed between the hops of a token → token swap."""
        return self.hops[0].amount_out if self.route.is_double else 0


# ---------------------------------------------------------------------------
# Formula
# ---------------------------------------------------------------------------

def get_output_amount(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_num: int = FEE_NUM,
    fee_denom: int = FEE_DENOM,
) -> int:
    """
    Constant-product output for an exact input, fee on the input side.

    Raises:
        InsufficientLiquidity: if either reserve is empty
        ExchangeArithmeticError: if an intermediate exceeds 128 bits
    """
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidity(f"Invalid reserves: ({reserve_in}, {reserve_out})")
    in_with_fee = checked_mul(amount_in, fee_denom - fee_num)
    numerator = checked_mul(in_with_fee, reserve_out)
    denominator = checked_mul(reserve_in, fee_denom) + in_with_fee
    if denominator > WIDE_MAX:
        raise ExchangeArithmeticError("Wide addition overflow in swap denominator")
    return numerator // denominator


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class SwapEngine:
    """Plans and commits swaps against the Pool Ledger."""

    def __init__(self, ledger: PoolLedger, fee_num: int = FEE_NUM, fee_denom: int = FEE_DENOM) -> None:
        if not 0 <= fee_num < fee_denom:
            raise ValueError(f"Fee must satisfy 0 <= fee_num < fee_denom, got {fee_num}/{fee_denom}")
        self.ledger = ledger
        self.fee_num = fee_num
        self.fee_denom = fee_denom

    def _hop(self, token: TokenId, base_in: bool, amount_in: int) -> SwapHop:
        pool = self.ledger.get_pool(token)
        if base_in:
            reserve_in, reserve_out = pool.base_reserve, pool.token_reserve
        else:
            reserve_in, reserve_out = pool.token_reserve, pool.base_reserve

        amount_out = get_output_amount(amount_in, reserve_in, reserve_out, self.fee_num, self.fee_denom)
        if amount_out == 0:
            raise InsufficientLiquidity(
                f"Pool {token}: input {amount_in} yields no output against reserves "
                f"({reserve_in}, {reserve_out})"
            )

        new_in = checked_add(reserve_in, amount_in)
        new_out = checked_sub(reserve_out, amount_out)
        if new_in * new_out < reserve_in * reserve_out:
            raise ExchangeArithmeticError(
                f"Invariant violation in pool {token}: {new_in * new_out} < {reserve_in * reserve_out}"
            )

        if base_in:
            new_base, new_token = new_in, new_out
        else:
            new_base, new_token = new_out, new_in
        return SwapHop(
            token=token,
            base_in=base_in,
            amount_in=amount_in,
            amount_out=amount_out,
            base_reserve=pool.base_reserve,
            token_reserve=pool.token_reserve,
            new_base_reserve=new_base,
            new_token_reserve=new_token,
        )

    def plan(self, route: SwapRoute, amount_in: int) -> Tuple[SwapHop, ...]:
        """
        Compute every hop of *route* without touching pool state.

        Raises:
            ZeroAmount, PoolNotFound, InsufficientLiquidity, ExchangeArithmeticError
        """
        check_amount(amount_in, "amount_in")
        if amount_in == 0:
            raise ZeroAmount("Swap amount must be positive")

        if route.kind is SwapKind.BASE_TO_TOKEN:
            return (self._hop(route.token_out, True, amount_in),)
        if route.kind is SwapKind.TOKEN_TO_BASE:
            return (self._hop(route.token_in, False, amount_in),)

        first = self._hop(route.token_in, False, amount_in)
        second = self._hop(route.token_out, True, first.amount_out)
        return first, second

    def quote(self, route: SwapRoute, amount_in: int) -> int:
        """Read-only output amount for *route*."""
        return self.plan(route, amount_in)[-1].amount_out

    def execute(self, route: SwapRoute, amount_in: int, min_amount_out: int) -> SwapResult:
        """
        Plan, check slippage, then commit every hop.

        Either all hops are applied or none is.
        """
        check_amount(min_amount_out, "min_amount_out")
        hops = self.plan(route, amount_in)
        amount_out = hops[-1].amount_out
        if amount_out < min_amount_out:
            raise SlippageExceeded(f"Output {amount_out} < minimum {min_amount_out}")

        for hop in hops:
            self.ledger.apply_reserve_delta(hop.token, hop.base_delta, hop.token_delta)

        logger.debug("Swap %s: %d → %d via %d hop(s)", route.kind.value, amount_in, amount_out, len(hops))
        return SwapResult(route=route, amount_in=amount_in, amount_out=amount_out, hops=hops)
