"""
In-memory asset ledgers consumed by the exchange.

  - TokenLedger : multi-token fungible balances (token standard collaborator)
  - BaseLedger  : ledger-native base asset balances

Both satisfy the transfer protocols in swapcore.exchange.transfers. A
rejected transfer raises a LedgerError subclass and leaves balances
untouched. Transfer hooks run after a successful balance move and are
how callbacks into other contracts (including re-entry into the
exchange) are modelled.
"""

from typing import Callable, Dict, List, Set, Tuple

from ..exchange.fixed_point import check_amount
from ..exchange.pool import TokenId
from ..logger import get_logger

logger = get_logger(__name__)


# ══════════════════════════════════════════════════════════════════════
#  EXCEPTIONS
# ══════════════════════════════════════════════════════════════════════

class LedgerError(Exception):
    """Base exception for ledger transfers."""


class InsufficientBalanceError(LedgerError):
    """Raised when sender balance is too low."""


class TokenFrozenError(LedgerError):
    """Raised when the token (or the whole ledger) is frozen."""


TokenHook = Callable[[str, str, TokenId, int], None]
BaseHook = Callable[[str, str, int], None]


# ══════════════════════════════════════════════════════════════════════
#  TOKEN LEDGER
# ══════════════════════════════════════════════════════════════════════

class TokenLedger:
    """Balances of many fungible tokens, keyed by (holder, token)."""

    def __init__(self):
        self._balances: Dict[Tuple[str, TokenId], int] = {}
        self._frozen: Set[TokenId] = set()
        self._hooks: List[TokenHook] = []

    def balance_of(self, holder: str, token: TokenId) -> int:
        return self._balances.get((holder, token), 0)

    def mint(self, holder: str, token: TokenId, amount: int) -> None:
        check_amount(amount, "amount")
        self._balances[(holder, token)] = self.balance_of(holder, token) + amount

    def freeze(self, token: TokenId) -> None:
        self._frozen.add(token)
        logger.info("Token %s frozen", token)

    def unfreeze(self, token: TokenId) -> None:
        self._frozen.discard(token)

    def add_hook(self, hook: TokenHook) -> None:
        self._hooks.append(hook)

    def remove_hook(self, hook: TokenHook) -> None:
        self._hooks.remove(hook)

    def transfer(self, sender: str, recipient: str, token: TokenId, amount: int) -> None:
        if token in self._frozen:
            raise TokenFrozenError(f"Token {token} is frozen")
        if amount <= 0:
            raise LedgerError("Transfer amount must be positive")
        bal = self.balance_of(sender, token)
        if bal < amount:
            raise InsufficientBalanceError(f"{sender} balance {bal} of {token} < transfer amount {amount}")

        self._move((sender, token), (recipient, token), amount)
        try:
            for hook in list(self._hooks):
                hook(sender, recipient, token, amount)
        except Exception:
            # a rejected callback rejects the transfer
            self._move((recipient, token), (sender, token), amount)
            raise

    def _move(self, src: Tuple[str, TokenId], dst: Tuple[str, TokenId], amount: int) -> None:
        self._balances[src] = self._balances.get(src, 0) - amount
        self._balances[dst] = self._balances.get(dst, 0) + amount


# ══════════════════════════════════════════════════════════════════════
#  BASE LEDGER
# ══════════════════════════════════════════════════════════════════════

class BaseLedger:
    """Balances of the ledger-native base asset."""

    def __init__(self):
        self._balances: Dict[str, int] = {}
        self._frozen = False
        self._hooks: List[BaseHook] = []

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def mint(self, holder: str, amount: int) -> None:
        check_amount(amount, "amount")
        self._balances[holder] = self.balance_of(holder) + amount

    def freeze(self) -> None:
        self._frozen = True

    def unfreeze(self) -> None:
        self._frozen = False

    def add_hook(self, hook: BaseHook) -> None:
        self._hooks.append(hook)

    def remove_hook(self, hook: BaseHook) -> None:
        self._hooks.remove(hook)

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if self._frozen:
            raise TokenFrozenError("Base ledger is frozen")
        if amount <= 0:
            raise LedgerError("Transfer amount must be positive")
        bal = self.balance_of(sender)
        if bal < amount:
            raise InsufficientBalanceError(f"{sender} base balance {bal} < transfer amount {amount}")

        self._move(sender, recipient, amount)
        try:
            for hook in list(self._hooks):
                hook(sender, recipient, amount)
        except Exception:
            self._move(recipient, sender, amount)
            raise

    def _move(self, src: str, dst: str, amount: int) -> None:
        self._balances[src] = self._balances.get(src, 0) - amount
        self._balances[dst] = self._balances.get(dst, 0) + amount
