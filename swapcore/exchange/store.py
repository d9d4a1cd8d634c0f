"""
Exchange store — the persisted state of one exchange instance.

The store is an explicit object passed to every engine; nothing in the
exchange lives in module globals. It holds:

  - the registry table (TokenId → Pool, each with its share table)
  - the share-token operator table (owner → operators)
  - the sequential share-token id counter
  - the event log (drained by the host with drain_events())

Security:
  - snapshot()/restore() give every call all-or-nothing semantics
  - compute_state_root() is blake2b over sorted records, so identical
    histories produce identical roots on every node
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

from ..constants import POOL_HASH_DIGEST_SIZE, STATE_ROOT_DIGEST_SIZE
from .events import ExchangeEvent
from .pool import Pool, TokenId


@dataclass
class StoreSnapshot:
    """Point-in-time copy of a store, used to roll back a failed call."""
    pools: Dict[TokenId, Pool]
    operators: Dict[str, Set[str]]
    last_share_token_id: int
    event_count: int


@dataclass
class ExchangeStore:
    pools: Dict[TokenId, Pool] = field(default_factory=dict)
    operators: Dict[str, Set[str]] = field(default_factory=dict)
    last_share_token_id: int = 0
    events: List[ExchangeEvent] = field(default_factory=list)

    # -- Snapshot / restore --------------------------------------------------

    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(
            pools={token: pool.copy() for token, pool in self.pools.items()},
            operators={owner: set(ops) for owner, ops in self.operators.items()},
            last_share_token_id=self.last_share_token_id,
            event_count=len(self.events),
        )

    def restore(self, snapshot: StoreSnapshot) -> None:
        """Restore state captured by snapshot(); the snapshot stays reusable."""
        self.pools = {token: pool.copy() for token, pool in snapshot.pools.items()}
        self.operators = {owner: set(ops) for owner, ops in snapshot.operators.items()}
        self.last_share_token_id = snapshot.last_share_token_id
        del self.events[snapshot.event_count:]

    # -- Events --------------------------------------------------------------

    def record(self, event: ExchangeEvent) -> None:
        self.events.append(event)

    def drain_events(self) -> List[ExchangeEvent]:
        """
        Hand the event log to the host and clear it.

        The log is not bounded; the host drains it between calls (never
        from inside a transfer callback, where a rollback may still trim it).
        """
        drained, self.events = self.events, []
        return drained

    # -- State root (consensus-critical) -------------------------------------

    def compute_state_root(self) -> str:
        """
        Deterministic hash of the whole exchange state.

        Returns:
            64-char hex string (blake2b-256)
        """
        hasher = hashlib.blake2b(digest_size=STATE_ROOT_DIGEST_SIZE)

        for token in sorted(self.pools):
            p = self.pools[token]
            pool_hash = hashlib.blake2b(
                f"{token}:{p.share_token_id}:{p.base_reserve}:{p.token_reserve}:{p.share_supply}".encode(),
                digest_size=POOL_HASH_DIGEST_SIZE,
            )
            for holder in sorted(p.share_balances):
                pool_hash.update(f"{holder}:{p.share_balances[holder]}".encode())
            hasher.update(pool_hash.digest())

        for owner in sorted(self.operators):
            hasher.update(f"{owner}:{','.join(sorted(self.operators[owner]))}".encode())

        hasher.update(self.last_share_token_id.to_bytes(8, "big"))
        return hasher.hexdigest()

    # -- Persistence ---------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe persisted layout (the event log is not state)."""
        return {
            "pools": [self.pools[token].to_dict() for token in sorted(self.pools)],
            "operators": {owner: sorted(ops) for owner, ops in sorted(self.operators.items()) if ops},
            "last_share_token_id": self.last_share_token_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ExchangeStore:
        pools = [Pool.from_dict(p) for p in data.get("pools", [])]
        return cls(
            pools={pool.token: pool for pool in pools},
            operators={owner: set(ops) for owner, ops in data.get("operators", {}).items()},
            last_share_token_id=int(data.get("last_share_token_id", 0)),
        )
