"""
External asset transfers performed by the exchange.

The exchange never moves base or token balances itself; it asks the
collaborating ledgers to do it. Every call follows state-then-transfer
ordering: pool state is committed first, then the queued TransferEffects
are executed in order. A rejected transfer is fatal to the whole call.

Security:
  - Control decisions never read collaborator balances (balance_of is
    diagnostic only)
  - On rejection, transfers already made in the call (including those of
    nested calls it absorbed) are reversed in reverse order before
    TransferFailed is raised
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, runtime_checkable

from ..exceptions import TransferFailed
from .pool import TokenId

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Collaborator interfaces
# ---------------------------------------------------------------------------

@runtime_checkable
class TokenTransferClient(Protocol):
    """Fungible token standard consumed by the exchange."""

    def transfer(self, sender: str, recipient: str, token: TokenId, amount: int) -> None:
        ...

    def balance_of(self, holder: str, token: TokenId) -> int:
        ...


@runtime_checkable
class BaseTransferClient(Protocol):
    """Ledger-native base asset."""

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        ...

    def balance_of(self, holder: str) -> int:
        ...


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TransferEffect:
    """One queued asset movement. ``token is None`` moves the base asset."""
    sender: str
    recipient: str
    amount: int
    token: Optional[TokenId] = None

    @property
    def is_base(self) -> bool:
        return self.token is None

    def reversed(self) -> TransferEffect:
        return TransferEffect(self.recipient, self.sender, self.amount, self.token)

    def describe(self) -> str:
        asset = "base" if self.token is None else str(self.token)
        return f"{self.amount} {asset} {self.sender} → {self.recipient}"


class EffectExecutor:
    """Runs TransferEffects against the two collaborator ledgers."""

    def __init__(self, token_client: TokenTransferClient, base_client: BaseTransferClient) -> None:
        self.token_client = token_client
        self.base_client = base_client

    def _transfer(self, effect: TransferEffect) -> None:
        if effect.is_base:
            self.base_client.transfer(effect.sender, effect.recipient, effect.amount)
        else:
            self.token_client.transfer(effect.sender, effect.recipient, effect.token, effect.amount)

    def execute(self, effects: Sequence[TransferEffect], journal: Optional[List[TransferEffect]] = None) -> None:
        """
        Perform *effects* in order; zero-amount effects are skipped.

        Performed transfers are appended to *journal*. Callers may add
        transfers made on their behalf (e.g. by nested calls) to the same
        journal while a transfer is in progress.

        Raises:
            TransferFailed: if any transfer is rejected. Everything in the
                journal has been reversed by then.
        """
        done = journal if journal is not None else []
        for effect in effects:
            if effect.amount == 0:
                continue
            try:
                self._transfer(effect)
            except Exception as e:
                logger.warning("Transfer rejected: %s: %s", effect.describe(), e)
                self.compensate(done)
                raise TransferFailed(f"Transfer of {effect.describe()} rejected: {e}") from e
            done.append(effect)

    def compensate(self, done: List[TransferEffect]) -> None:
        """Reverse *done* in reverse order; failures are logged, not raised."""
        for effect in reversed(done):
            try:
                self._transfer(effect.reversed())
            except Exception as e:
                logger.error("Compensating transfer failed: %s: %s", effect.reversed().describe(), e)

    # -- Diagnostics ---------------------------------------------------------

    def token_balance(self, holder: str, token: TokenId) -> int:
        try:
            return int(self.token_client.balance_of(holder, token))
        except Exception as e:
            logger.debug("Balance query for %s failed: %s", token, e)
            return 0
