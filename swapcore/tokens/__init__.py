"""
Asset ledgers the exchange transfers against.

Provides:
  - TokenLedger : multi-token fungible balances
  - BaseLedger  : ledger-native base asset
"""

from .ledger import (
    TokenLedger,
    BaseLedger,
    LedgerError,
    InsufficientBalanceError,
    TokenFrozenError,
)

__all__ = [
    "TokenLedger",
    "BaseLedger",
    "LedgerError",
    "InsufficientBalanceError",
    "TokenFrozenError",
]
