"""
swapcore Exchange Engine

Deterministic settlement core for base/token liquidity pools.

Components:
  - Fixed-point arithmetic (u64 amounts, u128 intermediates)
  - Pool Ledger (reserves, share tables, share operators)
  - Liquidity Engine (proportional share mint / burn)
  - Swap Engine (constant product, 1% input fee, two-hop routing)
  - Exchange Registry (dispatch, atomic calls, transfer effects)
"""

from .fixed_point import (
    check_amount,
    checked_add,
    checked_sub,
    checked_mul,
    mul_div,
    mul_div_up,
    isqrt,
)
from .pool import (
    TokenId,
    Pool,
    PoolLedger,
)
from .store import (
    ExchangeStore,
    StoreSnapshot,
)
from .liquidity import (
    LiquidityEngine,
    LiquidityResult,
    RemoveResult,
    match_deposit,
)
from .swap import (
    SwapEngine,
    SwapHop,
    SwapKind,
    SwapResult,
    SwapRoute,
    get_output_amount,
)
from .events import (
    SwapAction,
    SwapEvent,
    MintEvent,
    BurnEvent,
    ShareTransferEvent,
    OperatorUpdateEvent,
)
from .transfers import (
    BaseTransferClient,
    TokenTransferClient,
    TransferEffect,
    EffectExecutor,
)
from .transactions import (
    ExchangeOpType,
    ExchangeTransaction,
)
from .registry import (
    ExchangeExecResult,
    ExchangeRegistry,
    PoolView,
)

__all__ = [
    # Arithmetic
    "check_amount", "checked_add", "checked_sub", "checked_mul",
    "mul_div", "mul_div_up", "isqrt",
    # Pool Ledger
    "TokenId", "Pool", "PoolLedger", "ExchangeStore", "StoreSnapshot",
    # Liquidity
    "LiquidityEngine", "LiquidityResult", "RemoveResult", "match_deposit",
    # Swaps
    "SwapEngine", "SwapHop", "SwapKind", "SwapResult", "SwapRoute", "get_output_amount",
    # Events
    "SwapAction", "SwapEvent", "MintEvent", "BurnEvent",
    "ShareTransferEvent", "OperatorUpdateEvent",
    # Transfers
    "BaseTransferClient", "TokenTransferClient", "TransferEffect", "EffectExecutor",
    # Transactions
    "ExchangeOpType", "ExchangeTransaction",
    # Registry
    "ExchangeExecResult", "ExchangeRegistry", "PoolView",
]
