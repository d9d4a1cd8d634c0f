"""
Pool Ledger  (registry table + per-pool share tables)

Each pool pairs the ledger-native base asset with one fungible token and is
keyed by that token's identity. A pool record is created on the first
deposit and never deleted; a full withdrawal returns it to the
uninitialized state (zero reserves), from which it can be re-seeded.

Invariants maintained here:
  - initialized  <=>  base_reserve > 0 and token_reserve > 0
  - share_supply == sum(share_balances.values())
  - share_supply == 0  =>  both reserves are zero
  - zero share balances are pruned
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Set

from ..exceptions import (
    ExchangeArithmeticError,
    InsufficientReserve,
    InsufficientShares,
    PoolExists,
    PoolNotFound,
    Unauthorized,
    ZeroAmount,
)
from .fixed_point import check_amount, checked_add, checked_mul, isqrt

if TYPE_CHECKING:
    from .store import ExchangeStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------

@dataclass(frozen=True, order=True)
class TokenId:
    """Identity of a fungible token: issuing contract plus token id."""
    contract: str
    id: str = ""

    def __post_init__(self):
        if not self.contract:
            raise ValueError("Token contract cannot be empty")
        if ":" in self.contract:
            raise ValueError(f"Token contract cannot contain ':': {self.contract!r}")

    def __str__(self) -> str:
        return f"{self.contract}:{self.id}"

    @classmethod
    def parse(cls, raw: str) -> TokenId:
        """Parse the ``contract:id`` form produced by str()."""
        contract, sep, token_id = str(raw).partition(":")
        if not sep:
            raise ValueError(f"Token identity must be 'contract:id', got {raw!r}")
        return cls(contract, token_id)


@dataclass
class Pool:
    """Reserves and share table of one base/token pool."""
    token: TokenId
    share_token_id: int
    base_reserve: int = 0
    token_reserve: int = 0
    share_supply: int = 0
    share_balances: Dict[str, int] = field(default_factory=dict)

    @property
    def initialized(self) -> bool:
        return self.base_reserve > 0 and self.token_reserve > 0

    @property
    def k(self) -> int:
        """Constant-product invariant."""
        return self.base_reserve * self.token_reserve

    def copy(self) -> Pool:
        return Pool(
            token=self.token,
            share_token_id=self.share_token_id,
            base_reserve=self.base_reserve,
            token_reserve=self.token_reserve,
            share_supply=self.share_supply,
            share_balances=dict(self.share_balances),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": {"contract": self.token.contract, "id": self.token.id},
            "share_token_id": self.share_token_id,
            "base_reserve": self.base_reserve,
            "token_reserve": self.token_reserve,
            "share_supply": self.share_supply,
            "share_balances": dict(sorted(self.share_balances.items())),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Pool:
        pool = cls(
            token=TokenId(data["token"]["contract"], data["token"].get("id", "")),
            share_token_id=int(data["share_token_id"]),
            base_reserve=int(data.get("base_reserve", 0)),
            token_reserve=int(data.get("token_reserve", 0)),
            share_supply=int(data.get("share_supply", 0)),
            share_balances={h: int(a) for h, a in data.get("share_balances", {}).items() if int(a) > 0},
        )
        if pool.share_supply != sum(pool.share_balances.values()):
            raise ValueError(f"Pool {pool.token}: share supply does not match balances")
        return pool


# ---------------------------------------------------------------------------
# Pool Ledger
# ---------------------------------------------------------------------------

class PoolLedger:
    """
    Keyed pool storage over an ExchangeStore.

    Handles:
      - Pool creation / re-seeding (initial share mint)
      - Lookup of initialized pools
      - Signed reserve deltas with non-negativity checks
      - Share mint / burn / transfer and share-token operators
    """

    def __init__(self, store: ExchangeStore) -> None:
        self.store = store

    # -- Lookup -------------------------------------------------------------

    def find_pool(self, token: TokenId) -> Pool | None:
        """Pool record for *token*, initialized or not."""
        return self.store.pools.get(token)

    def get_pool(self, token: TokenId) -> Pool:
        pool = self.store.pools.get(token)
        if pool is None or not pool.initialized:
            raise PoolNotFound(f"No pool for token {token}")
        return pool

    def list_pools(self) -> List[Pool]:
        return [self.store.pools[token] for token in sorted(self.store.pools)]

    # -- Creation -----------------------------------------------------------

    def create_pool(self, token: TokenId, base_amount: int, token_amount: int, holder: str) -> int:
        """
        Create (or re-seed) a pool and mint the initial shares to *holder*.

        shares = floor(sqrt(base_amount * token_amount))

        Returns:
            Number of shares minted.
        """
        check_amount(base_amount, "base_amount")
        check_amount(token_amount, "token_amount")
        pool = self.store.pools.get(token)
        if pool is not None and pool.initialized:
            raise PoolExists(f"Pool already exists for token {token}")
        if base_amount == 0 or token_amount == 0:
            raise ZeroAmount(f"Initial deposit must be positive: ({base_amount}, {token_amount})")

        shares = isqrt(checked_mul(base_amount, token_amount))

        if pool is None:
            self.store.last_share_token_id += 1
            pool = Pool(token=token, share_token_id=self.store.last_share_token_id)
            self.store.pools[token] = pool
            logger.info("Pool %s created: share token %d", token, pool.share_token_id)
        else:
            logger.info("Pool %s re-seeded", token)

        pool.base_reserve = base_amount
        pool.token_reserve = token_amount
        self.mint_shares(token, holder, shares)
        return shares

    # -- Reserves -----------------------------------------------------------

    def apply_reserve_delta(self, token: TokenId, base_delta: int, token_delta: int) -> Pool:
        """Apply signed reserve deltas; never lets a reserve go negative."""
        pool = self.store.pools.get(token)
        if pool is None:
            raise PoolNotFound(f"No pool for token {token}")

        new_base = pool.base_reserve + base_delta
        new_token = pool.token_reserve + token_delta
        if new_base < 0 or new_token < 0:
            raise InsufficientReserve(
                f"Pool {token}: delta ({base_delta}, {token_delta}) exceeds reserves "
                f"({pool.base_reserve}, {pool.token_reserve})"
            )
        check_amount(new_base, "base_reserve")
        check_amount(new_token, "token_reserve")

        pool.base_reserve = new_base
        pool.token_reserve = new_token
        return pool

    # -- Shares -------------------------------------------------------------

    def share_balance(self, token: TokenId, holder: str) -> int:
        pool = self.store.pools.get(token)
        if pool is None:
            return 0
        return pool.share_balances.get(holder, 0)

    def mint_shares(self, token: TokenId, holder: str, amount: int) -> None:
        pool = self.store.pools[token]
        if amount == 0:
            return
        pool.share_supply = checked_add(pool.share_supply, amount)
        pool.share_balances[holder] = pool.share_balances.get(holder, 0) + amount

    def burn_shares(self, token: TokenId, holder: str, amount: int) -> None:
        pool = self.store.pools.get(token)
        balance = 0 if pool is None else pool.share_balances.get(holder, 0)
        if balance < amount:
            raise InsufficientShares(f"{holder} holds {balance} shares of {token}, needs {amount}")
        if amount == 0:
            return
        remaining = balance - amount
        if remaining:
            pool.share_balances[holder] = remaining
        else:
            del pool.share_balances[holder]
        pool.share_supply -= amount
        if pool.share_supply == 0 and (pool.base_reserve or pool.token_reserve):
            raise ExchangeArithmeticError(
                f"Pool {token}: share supply exhausted with reserves "
                f"({pool.base_reserve}, {pool.token_reserve}) left over"
            )

    def transfer_shares(self, caller: str, token: TokenId, sender: str, recipient: str, amount: int) -> None:
        """Move shares between holders; caller must be the sender or its operator."""
        check_amount(amount, "amount")
        if caller != sender and not self.is_operator(sender, caller):
            raise Unauthorized(f"{caller} may not transfer shares of {sender}")
        pool = self.store.pools.get(token)
        if pool is None:
            raise PoolNotFound(f"No pool for token {token}")
        if amount == 0 or sender == recipient:
            if pool.share_balances.get(sender, 0) < amount:
                raise InsufficientShares(f"{sender} holds fewer than {amount} shares of {token}")
            return

        balance = pool.share_balances.get(sender, 0)
        if balance < amount:
            raise InsufficientShares(f"{sender} holds {balance} shares of {token}, needs {amount}")
        if balance == amount:
            del pool.share_balances[sender]
        else:
            pool.share_balances[sender] = balance - amount
        pool.share_balances[recipient] = pool.share_balances.get(recipient, 0) + amount

    # -- Operators ----------------------------------------------------------

    def update_operator(self, owner: str, operator: str, add: bool) -> None:
        if add:
            self.store.operators.setdefault(owner, set()).add(operator)
            return
        ops: Set[str] = self.store.operators.get(owner, set())
        ops.discard(operator)
        if not ops:
            self.store.operators.pop(owner, None)

    def is_operator(self, owner: str, operator: str) -> bool:
        return operator in self.store.operators.get(owner, ())
