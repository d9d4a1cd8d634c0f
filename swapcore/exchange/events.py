"""
Exchange events.

Every successful state-changing call appends events to the store's log.
Events carry no wall-clock time; their position in the log orders them.
A call that fails leaves no events behind.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Union


class SwapAction(str, Enum):
    BUY_TOKEN = "buy_token"      # base in, token out
    SELL_TOKEN = "sell_token"    # token in, base out


@dataclass(frozen=True)
class SwapEvent:
    """Emitted once per pool touched by a swap (twice for a two-hop swap)."""
    client: str
    action: SwapAction
    double_swap: bool
    token: str
    base_amount: int
    token_amount: int
    base_reserve: int
    token_reserve: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Swap",
            "client": self.client,
            "action": self.action.value,
            "doubleSwap": self.double_swap,
            "token": self.token,
            "baseAmount": self.base_amount,
            "tokenAmount": self.token_amount,
            "baseReserve": self.base_reserve,
            "tokenReserve": self.token_reserve,
        }


@dataclass(frozen=True)
class MintEvent:
    """Pool shares minted on deposit."""
    owner: str
    token: str
    share_token_id: int
    shares: int
    base_amount: int
    token_amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Mint",
            "owner": self.owner,
            "token": self.token,
            "shareTokenId": self.share_token_id,
            "shares": self.shares,
            "baseAmount": self.base_amount,
            "tokenAmount": self.token_amount,
        }


@dataclass(frozen=True)
class BurnEvent:
    """Pool shares burned on withdrawal."""
    owner: str
    token: str
    share_token_id: int
    shares: int
    base_amount: int
    token_amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Burn",
            "owner": self.owner,
            "token": self.token,
            "shareTokenId": self.share_token_id,
            "shares": self.shares,
            "baseAmount": self.base_amount,
            "tokenAmount": self.token_amount,
        }


@dataclass(frozen=True)
class ShareTransferEvent:
    share_token_id: int
    sender: str
    recipient: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "Transfer",
            "shareTokenId": self.share_token_id,
            "from": self.sender,
            "to": self.recipient,
            "amount": self.amount,
        }


@dataclass(frozen=True)
class OperatorUpdateEvent:
    owner: str
    operator: str
    added: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": "UpdateOperator",
            "owner": self.owner,
            "operator": self.operator,
            "update": "add" if self.added else "remove",
        }


ExchangeEvent = Union[SwapEvent, MintEvent, BurnEvent, ShareTransferEvent, OperatorUpdateEvent]
