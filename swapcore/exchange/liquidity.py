"""
Liquidity Engine: add / remove liquidity against the Pool Ledger.

Share accounting is proportional ownership of both reserves:

  first deposit      shares = floor(sqrt(base * token))
  later deposits     shares = floor(share_supply * deposit / reserve)
                     on the binding side of the ratio match
  withdrawal         out    = floor(reserve * shares / share_supply)

Rounding always favours the pool. Dust left by floor rounding stays in the
reserves and accrues to the remaining and future share holders.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

from ..exceptions import InsufficientShares, RatioMismatch, SlippageExceeded, ZeroAmount
from .fixed_point import check_amount, checked_mul, isqrt, mul_div, mul_div_up
from .pool import PoolLedger, TokenId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidityResult:
    """Amounts actually deposited and shares minted."""
    base_amount: int
    token_amount: int
    shares: int
    initial: bool = False


@dataclass(frozen=True)
class RemoveResult:
    """Amounts paid out and shares burned."""
    base_amount: int
    token_amount: int
    shares: int


def match_deposit(
    base_reserve: int,
    token_reserve: int,
    share_supply: int,
    base_desired: int,
    token_desired: int,
) -> Tuple[int, int, int]:
    """
    Reduce a desired deposit to the pool's reserve ratio.

    The side whose desired amount is smaller relative to its reserve binds;
    the other side is derived from it, rounded up so the pool never
    receives less than its ratio. When both sides bind equally the base
    side is used.

    Returns:
        (base_used, token_used, shares)

    Raises:
        RatioMismatch: if the matched deposit mints no shares.
    """
    # binding side is decided on wide products; only its dependent amount is narrowed
    if checked_mul(base_desired, token_reserve) <= checked_mul(token_desired, base_reserve):
        base_used = base_desired
        token_used = mul_div_up(base_desired, token_reserve, base_reserve)
        shares = mul_div(share_supply, base_used, base_reserve)
    else:
        base_used = mul_div_up(token_desired, base_reserve, token_reserve)
        token_used = token_desired
        shares = mul_div(share_supply, token_used, token_reserve)

    if shares <= 0 or base_used <= 0 or token_used <= 0:
        raise RatioMismatch(
            f"Deposit ({base_desired}, {token_desired}) is too small to mint shares "
            f"against reserves ({base_reserve}, {token_reserve})"
        )
    return base_used, token_used, shares


class LiquidityEngine:
    """Mints and burns pool shares while moving reserves."""

    def __init__(self, ledger: PoolLedger) -> None:
        self.ledger = ledger

    # -- Quotes (read-only) -------------------------------------------------

    def quote_deposit(self, token: TokenId, base_desired: int, token_desired: int) -> LiquidityResult:
        check_amount(base_desired, "base_desired")
        check_amount(token_desired, "token_desired")
        if base_desired == 0 or token_desired == 0:
            raise ZeroAmount(f"Deposit amounts must be positive: ({base_desired}, {token_desired})")

        pool = self.ledger.find_pool(token)
        if pool is None or not pool.initialized:
            shares = isqrt(checked_mul(base_desired, token_desired))
            return LiquidityResult(base_desired, token_desired, shares, initial=True)

        base_used, token_used, shares = match_deposit(
            pool.base_reserve, pool.token_reserve, pool.share_supply,
            base_desired, token_desired,
        )
        return LiquidityResult(base_used, token_used, shares)

    def quote_withdrawal(self, token: TokenId, share_amount: int) -> RemoveResult:
        check_amount(share_amount, "share_amount")
        if share_amount == 0:
            raise ZeroAmount("Share amount must be positive")
        pool = self.ledger.get_pool(token)
        base_out = mul_div(pool.base_reserve, share_amount, pool.share_supply)
        token_out = mul_div(pool.token_reserve, share_amount, pool.share_supply)
        return RemoveResult(base_out, token_out, share_amount)

    # -- Mutations ----------------------------------------------------------

    def add_liquidity(
        self,
        token: TokenId,
        base_desired: int,
        token_desired: int,
        min_shares: int,
        holder: str,
    ) -> LiquidityResult:
        """
        Deposit base and token into a pool, creating it on first deposit.

        Raises:
            ZeroAmount, RatioMismatch, SlippageExceeded, ExchangeArithmeticError
        """
        check_amount(min_shares, "min_shares")
        quote = self.quote_deposit(token, base_desired, token_desired)
        if quote.shares < min_shares:
            raise SlippageExceeded(f"Minted shares {quote.shares} < minimum {min_shares}")

        if quote.initial:
            self.ledger.create_pool(token, quote.base_amount, quote.token_amount, holder)
        else:
            self.ledger.apply_reserve_delta(token, quote.base_amount, quote.token_amount)
            self.ledger.mint_shares(token, holder, quote.shares)

        logger.debug(
            "Liquidity added to %s by %s: base=%d token=%d shares=%d",
            token, holder, quote.base_amount, quote.token_amount, quote.shares,
        )
        return quote

    def remove_liquidity(
        self,
        token: TokenId,
        share_amount: int,
        min_base: int,
        min_token: int,
        holder: str,
    ) -> RemoveResult:
        """
        Burn shares and pay out the proportional part of both reserves.

        Raises:
            ZeroAmount, PoolNotFound, InsufficientShares, SlippageExceeded
        """
        check_amount(min_base, "min_base")
        check_amount(min_token, "min_token")
        quote = self.quote_withdrawal(token, share_amount)

        balance = self.ledger.share_balance(token, holder)
        if balance < share_amount:
            raise InsufficientShares(f"{holder} holds {balance} shares of {token}, needs {share_amount}")

        if quote.base_amount < min_base:
            raise SlippageExceeded(f"Base out {quote.base_amount} < minimum {min_base}")
        if quote.token_amount < min_token:
            raise SlippageExceeded(f"Token out {quote.token_amount} < minimum {min_token}")

        self.ledger.apply_reserve_delta(token, -quote.base_amount, -quote.token_amount)
        self.ledger.burn_shares(token, holder, share_amount)

        logger.debug(
            "Liquidity removed from %s by %s: base=%d token=%d shares=%d",
            token, holder, quote.base_amount, quote.token_amount, share_amount,
        )
        return quote
