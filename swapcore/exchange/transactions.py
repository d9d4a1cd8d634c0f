"""
Exchange Transaction Types

Defines the envelope for exchange operations submitted by ledger callers.
The registry decodes an ExchangeTransaction into one of its entrypoints,
so every node given the same sequence of transactions reaches the same
state.

Transaction Types:
  - CREATE_POOL:       Seed a new base/token pool
  - ADD_LIQUIDITY:     Deposit into a pool (creates it on first deposit)
  - REMOVE_LIQUIDITY:  Burn shares for a proportional payout
  - SWAP:              Exact-input swap; an empty side means the base asset
  - TRANSFER_SHARES:   Move pool shares between holders
  - UPDATE_OPERATOR:   Add or remove a share operator
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Optional

from .pool import TokenId


# ---------------------------------------------------------------------------
# Exchange Operation Types
# ---------------------------------------------------------------------------

class ExchangeOpType(IntEnum):
    """All exchange operation types.  Values are consensus-critical."""
    CREATE_POOL = 1
    ADD_LIQUIDITY = 2
    REMOVE_LIQUIDITY = 3
    SWAP = 4
    TRANSFER_SHARES = 5
    UPDATE_OPERATOR = 6


_REQUIRED_PARAMS = {
    ExchangeOpType.CREATE_POOL: ("token", "base_amount", "token_amount"),
    ExchangeOpType.ADD_LIQUIDITY: ("token", "base_amount", "token_amount"),
    ExchangeOpType.REMOVE_LIQUIDITY: ("token", "shares"),
    ExchangeOpType.SWAP: ("token_in", "token_out", "amount_in"),
    ExchangeOpType.TRANSFER_SHARES: ("token", "from", "to", "amount"),
    ExchangeOpType.UPDATE_OPERATOR: ("operator", "add"),
}


# ---------------------------------------------------------------------------
# Parameter decoding
# ---------------------------------------------------------------------------

def parse_amount(params: Dict[str, Any], key: str, default: Optional[int] = None) -> int:
    """Read an integer amount; accepts ints and decimal-digit strings only."""
    if key not in params:
        if default is None:
            raise ValueError(f"Missing param: {key}")
        return default
    raw = params[key]
    if isinstance(raw, bool):
        raise ValueError(f"Param {key} must be an integer, got bool")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.isdigit():
        return int(raw)
    raise ValueError(f"Param {key} must be an integer, got {raw!r}")


def parse_holder(params: Dict[str, Any], key: str) -> str:
    """Read an account address; must be a non-empty string."""
    raw = params.get(key)
    if not isinstance(raw, str) or not raw:
        raise ValueError(f"Param {key} must be a non-empty address, got {raw!r}")
    return raw


def parse_token(params: Dict[str, Any], key: str) -> Optional[TokenId]:
    """Read a ``contract:id`` token identity; empty or null means the base asset."""
    raw = params.get(key)
    if raw is None or raw == "":
        return None
    return TokenId.parse(raw)


# ---------------------------------------------------------------------------
# Exchange Transaction
# ---------------------------------------------------------------------------

@dataclass
class ExchangeTransaction:
    """
    Envelope for a single exchange operation.

    Fields are consensus-critical; changing any field changes the tx hash.
    """
    op_type: ExchangeOpType
    sender: str                         # authenticated caller
    params: Dict[str, Any] = field(default_factory=dict)
    nonce: int = 0

    # -- Hashing ------------------------------------------------------------

    def tx_hash(self) -> str:
        """Deterministic transaction hash."""
        return hashlib.blake2b(self._canonical_bytes(), digest_size=32).hexdigest()

    def _canonical_bytes(self) -> bytes:
        params_json = json.dumps(self.params, sort_keys=True, default=str).encode("utf-8")
        parts = [
            int(self.op_type).to_bytes(1, "big"),
            self.sender.encode("utf-8"),
            self.nonce.to_bytes(8, "big"),
            params_json,
        ]
        return b"".join(parts)

    # -- Serialization ------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "op_type": int(self.op_type),
            "sender": self.sender,
            "nonce": self.nonce,
            "params": self.params,
            "tx_hash": self.tx_hash(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ExchangeTransaction:
        return cls(
            op_type=ExchangeOpType(data["op_type"]),
            sender=data["sender"],
            params=dict(data.get("params", {})),
            nonce=data.get("nonce", 0),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, default=str)

    @classmethod
    def from_json(cls, raw: str) -> ExchangeTransaction:
        return cls.from_dict(json.loads(raw))

    # -- Validation ---------------------------------------------------------

    def validate_basic(self) -> bool:
        """
        Structural validation (no state access needed).

        Raises:
            ValueError: with specific reason
        """
        if not isinstance(self.sender, str) or not self.sender:
            raise ValueError("Missing sender address")
        if self.nonce < 0:
            raise ValueError("Nonce must be non-negative")
        if self.op_type not in _REQUIRED_PARAMS:
            raise ValueError(f"Unknown operation type: {self.op_type}")
        for key in _REQUIRED_PARAMS[self.op_type]:
            if key not in self.params:
                raise ValueError(f"{self.op_type.name} missing param: {key}")
        return True
