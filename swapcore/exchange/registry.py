"""
Exchange Registry  (top-level dispatch)

Entry point for every caller request. The registry resolves the target
pool(s), sequences the Liquidity and Swap engines, records events and
finally performs the external asset transfers.

Every call is one atomic transition:

    1. snapshot the store
    2. compute & commit local state (reserves, shares, events)
    3. perform transfer effects in order
    4. on any error: reverse performed transfers, restore the snapshot,
       re-raise

Because local state is committed before the first transfer, a recipient
that re-enters the exchange from inside a transfer sees already-updated,
consistent pools and cannot extract the same deposit or swap twice.

A nested call that succeeds hands its performed transfers to the
enclosing call. If the enclosing call then fails, they are reversed
together with its own, and its snapshot discards the nested state too.

Usage:

    registry = ExchangeRegistry(token_ledger, base_ledger)
    registry.add_liquidity("alice", token, 1_000, 1_000, min_shares=0)
    out = registry.swap_exact_base_for_token("bob", token, 100, min_token_out=90)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar, Union

from ..constants import FEE_DENOM, FEE_NUM, SWAPCORE_EXCHANGE_ADDRESS
from ..exceptions import ExchangeError, PoolExists
from ..logger import LogManager, get_logger
from .events import BurnEvent, MintEvent, OperatorUpdateEvent, ShareTransferEvent, SwapAction, SwapEvent
from .liquidity import LiquidityEngine, LiquidityResult, RemoveResult
from .pool import Pool, PoolLedger, TokenId
from .store import ExchangeStore
from .swap import SwapEngine, SwapResult, SwapRoute
from .transactions import ExchangeOpType, ExchangeTransaction, parse_amount, parse_holder, parse_token
from .transfers import BaseTransferClient, EffectExecutor, TokenTransferClient, TransferEffect

logger = get_logger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class ExchangeExecResult:
    """Result of executing a single exchange transaction."""

    __slots__ = ("success", "data", "error", "error_kind")

    def __init__(
        self,
        success: bool = True,
        data: Optional[Dict[str, Any]] = None,
        error: str = "",
        error_kind: str = "",
    ):
        self.success = success
        self.data = data or {}
        self.error = error
        self.error_kind = error_kind


@dataclass(frozen=True)
class PoolView:
    """Read-only snapshot of one pool, as seen by a caller."""
    token: TokenId
    share_token_id: int
    base_reserve: int
    token_reserve: int
    share_supply: int
    holder_shares: int
    token_balance: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token": str(self.token),
            "share_token_id": self.share_token_id,
            "base_reserve": self.base_reserve,
            "token_reserve": self.token_reserve,
            "share_supply": self.share_supply,
            "holder_shares": self.holder_shares,
            "token_balance": self.token_balance,
        }


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class ExchangeRegistry:
    """
    Dispatch layer over one ExchangeStore.

    The store is passed in (or created fresh); nothing is shared between
    registry instances, so tests can run against isolated stores.
    """

    def __init__(
        self,
        token_client: TokenTransferClient,
        base_client: BaseTransferClient,
        store: Optional[ExchangeStore] = None,
        address: Optional[str] = None,
        fee_num: int = FEE_NUM,
        fee_denom: int = FEE_DENOM,
    ) -> None:
        self.store = store if store is not None else ExchangeStore()
        self.address = address or str(SWAPCORE_EXCHANGE_ADDRESS)
        self.ledger = PoolLedger(self.store)
        self.liquidity = LiquidityEngine(self.ledger)
        self.swaps = SwapEngine(self.ledger, fee_num=fee_num, fee_denom=fee_denom)
        self.effects = EffectExecutor(token_client, base_client)
        # one transfer journal per in-flight call, outermost first
        self._journals: List[List[TransferEffect]] = []

        self._handlers: Dict[ExchangeOpType, Callable[[ExchangeTransaction], Dict[str, Any]]] = {
            ExchangeOpType.CREATE_POOL: self._op_create_pool,
            ExchangeOpType.ADD_LIQUIDITY: self._op_add_liquidity,
            ExchangeOpType.REMOVE_LIQUIDITY: self._op_remove_liquidity,
            ExchangeOpType.SWAP: self._op_swap,
            ExchangeOpType.TRANSFER_SHARES: self._op_transfer_shares,
            ExchangeOpType.UPDATE_OPERATOR: self._op_update_operator,
        }

    @classmethod
    def from_config(
        cls,
        config: Any,
        token_client: TokenTransferClient,
        base_client: BaseTransferClient,
        store: Optional[ExchangeStore] = None,
    ) -> ExchangeRegistry:
        """Build a registry from a loaded SwapCoreConfig."""
        LogManager().configure(
            log_level=config.logging.level,
            file_output=config.logging.file_output,
            reconfigure=True,
        )
        section = config.exchange
        return cls(
            token_client,
            base_client,
            store=store,
            address=section.exchange_address,
            fee_num=section.fee_num,
            fee_denom=section.fee_denom,
        )

    # =====================================================================
    #  Atomic call wrapper
    # =====================================================================

    def _atomic(self, op: str, caller: str, body: Callable[[], Tuple[T, List[TransferEffect]]]) -> T:
        snapshot = self.store.snapshot()
        journal: List[TransferEffect] = []
        self._journals.append(journal)
        try:
            result, effects = body()
            self.effects.execute(effects, journal)
        except Exception as e:
            self.store.restore(snapshot)
            if isinstance(e, ExchangeError):
                logger.warning("%s by %s rejected: %s: %s", op, caller, type(e).__name__, e)
            else:
                logger.error("%s by %s aborted: %s", op, caller, e)
            raise
        finally:
            self._journals.pop()

        if self._journals:
            # nested call from a transfer callback: the enclosing call owns its transfers now
            self._journals[-1].extend(journal)
            logger.debug("%s by %s nested in %d enclosing call(s)", op, caller, len(self._journals))
        return result

    def _deposit_effects(self, caller: str, token: TokenId, base_amount: int, token_amount: int) -> List[TransferEffect]:
        return [
            TransferEffect(caller, self.address, base_amount),
            TransferEffect(caller, self.address, token_amount, token),
        ]

    # =====================================================================
    #  Liquidity
    # =====================================================================

    def create_pool(
        self,
        caller: str,
        token: TokenId,
        base_amount: int,
        token_amount: int,
        min_shares: int = 0,
    ) -> LiquidityResult:
        """Seed a pool that has no reserves yet; the deposit ratio sets the price."""
        def body():
            pool = self.ledger.find_pool(token)
            if pool is not None and pool.initialized:
                raise PoolExists(f"Pool already exists for token {token}")
            return self._deposit(caller, token, base_amount, token_amount, min_shares)

        return self._atomic("create_pool", caller, body)

    def add_liquidity(
        self,
        caller: str,
        token: TokenId,
        base_desired: int,
        token_desired: int,
        min_shares: int = 0,
    ) -> LiquidityResult:
        """Deposit at the pool's ratio, or create the pool on first deposit."""
        return self._atomic(
            "add_liquidity", caller,
            lambda: self._deposit(caller, token, base_desired, token_desired, min_shares),
        )

    def _deposit(self, caller, token, base_desired, token_desired, min_shares):
        result = self.liquidity.add_liquidity(token, base_desired, token_desired, min_shares, caller)
        pool = self.store.pools[token]
        self.store.record(MintEvent(
            owner=caller,
            token=str(token),
            share_token_id=pool.share_token_id,
            shares=result.shares,
            base_amount=result.base_amount,
            token_amount=result.token_amount,
        ))
        return result, self._deposit_effects(caller, token, result.base_amount, result.token_amount)

    def remove_liquidity(
        self,
        caller: str,
        token: TokenId,
        share_amount: int,
        min_base: int = 0,
        min_token: int = 0,
    ) -> RemoveResult:
        """Burn shares and pay out both reserves proportionally."""
        def body():
            result = self.liquidity.remove_liquidity(token, share_amount, min_base, min_token, caller)
            pool = self.store.pools[token]
            self.store.record(BurnEvent(
                owner=caller,
                token=str(token),
                share_token_id=pool.share_token_id,
                shares=result.shares,
                base_amount=result.base_amount,
                token_amount=result.token_amount,
            ))
            effects = [
                TransferEffect(self.address, caller, result.token_amount, token),
                TransferEffect(self.address, caller, result.base_amount),
            ]
            return result, effects

        return self._atomic("remove_liquidity", caller, body)

    def quote_add_liquidity(self, token: TokenId, base_desired: int, token_desired: int) -> LiquidityResult:
        return self.liquidity.quote_deposit(token, base_desired, token_desired)

    def quote_remove_liquidity(self, token: TokenId, share_amount: int) -> RemoveResult:
        return self.liquidity.quote_withdrawal(token, share_amount)

    # =====================================================================
    #  Swaps
    # =====================================================================

    def swap(
        self,
        caller: str,
        token_in: Optional[TokenId],
        token_out: Optional[TokenId],
        amount_in: int,
        min_amount_out: int = 0,
    ) -> SwapResult:
        """
        Exact-input swap along the route from *token_in* to *token_out*.

        ``None`` on either side stands for the base asset.
        """
        def body():
            route = SwapRoute.resolve(token_in, token_out)
            result = self.swaps.execute(route, amount_in, min_amount_out)
            for hop in result.hops:
                pool = self.store.pools[hop.token]
                if hop.base_in:
                    action, base_amount, token_amount = SwapAction.BUY_TOKEN, hop.amount_in, hop.amount_out
                else:
                    action, base_amount, token_amount = SwapAction.SELL_TOKEN, hop.amount_out, hop.amount_in
                self.store.record(SwapEvent(
                    client=caller,
                    action=action,
                    double_swap=route.is_double,
                    token=str(hop.token),
                    base_amount=base_amount,
                    token_amount=token_amount,
                    base_reserve=pool.base_reserve,
                    token_reserve=pool.token_reserve,
                ))
            effects = [
                TransferEffect(caller, self.address, amount_in, route.token_in),
                TransferEffect(self.address, caller, result.amount_out, route.token_out),
            ]
            return result, effects

        result = self._atomic("swap", caller, body)
        logger.debug("%s swapped %d → %d (%s)", caller, result.amount_in, result.amount_out, result.route.kind.value)
        return result

    def swap_exact_base_for_token(self, caller: str, token: TokenId, base_in: int, min_token_out: int = 0) -> SwapResult:
        return self.swap(caller, None, token, base_in, min_token_out)

    def swap_exact_token_for_base(self, caller: str, token: TokenId, token_in: int, min_base_out: int = 0) -> SwapResult:
        return self.swap(caller, token, None, token_in, min_base_out)

    def swap_exact_token_for_token(
        self,
        caller: str,
        token_in: TokenId,
        token_out: TokenId,
        amount_in: int,
        min_amount_out: int = 0,
    ) -> SwapResult:
        return self.swap(caller, token_in, token_out, amount_in, min_amount_out)

    def quote_base_for_token(self, token: TokenId, base_in: int) -> int:
        return self.swaps.quote(SwapRoute.resolve(None, token), base_in)

    def quote_token_for_base(self, token: TokenId, token_in: int) -> int:
        return self.swaps.quote(SwapRoute.resolve(token, None), token_in)

    def quote_token_for_token(self, token_in: TokenId, token_out: TokenId, amount_in: int) -> int:
        return self.swaps.quote(SwapRoute.resolve(token_in, token_out), amount_in)

    # =====================================================================
    #  Share tokens
    # =====================================================================

    def transfer_shares(self, caller: str, token: TokenId, sender: str, recipient: str, amount: int) -> None:
        def body():
            self.ledger.transfer_shares(caller, token, sender, recipient, amount)
            if amount and sender != recipient:
                self.store.record(ShareTransferEvent(
                    share_token_id=self.store.pools[token].share_token_id,
                    sender=sender,
                    recipient=recipient,
                    amount=amount,
                ))
            return None, []

        self._atomic("transfer_shares", caller, body)

    def update_operator(self, caller: str, operator: str, add: bool) -> None:
        def body():
            self.ledger.update_operator(caller, operator, add)
            self.store.record(OperatorUpdateEvent(owner=caller, operator=operator, added=add))
            return None, []

        self._atomic("update_operator", caller, body)

    def share_balance_of(self, token: TokenId, holder: str) -> int:
        return self.ledger.share_balance(token, holder)

    def is_operator(self, owner: str, operator: str) -> bool:
        return self.ledger.is_operator(owner, operator)

    # =====================================================================
    #  Views
    # =====================================================================

    def view(self, caller: str, token: Optional[TokenId] = None) -> Union[PoolView, List[PoolView]]:
        """
        Reserves, share supply and *caller*'s shares.

        With *token*: that pool (PoolNotFound if absent or uninitialized).
        Without: every pool record, sorted by token.
        """
        if token is not None:
            return self._view(self.ledger.get_pool(token), caller)
        return [self._view(pool, caller) for pool in self.ledger.list_pools()]

    def _view(self, pool: Pool, caller: str) -> PoolView:
        return PoolView(
            token=pool.token,
            share_token_id=pool.share_token_id,
            base_reserve=pool.base_reserve,
            token_reserve=pool.token_reserve,
            share_supply=pool.share_supply,
            holder_shares=pool.share_balances.get(caller, 0),
            token_balance=self.effects.token_balance(self.address, pool.token),
        )

    def compute_state_root(self) -> str:
        return self.store.compute_state_root()

    # =====================================================================
    #  Transaction processing
    # =====================================================================

    def process_transaction(self, tx: ExchangeTransaction) -> ExchangeExecResult:
        """
        Decode and execute one ExchangeTransaction.

        Domain and decoding errors are reported in the result, never raised.
        """
        try:
            tx.validate_basic()
        except ValueError as e:
            return ExchangeExecResult(success=False, error=str(e), error_kind="InvalidTransaction")

        try:
            data = self._handlers[tx.op_type](tx)
        except ExchangeError as e:
            return ExchangeExecResult(success=False, error=str(e), error_kind=type(e).__name__)
        except ValueError as e:
            return ExchangeExecResult(success=False, error=str(e), error_kind="InvalidTransaction")
        return ExchangeExecResult(success=True, data=data)

    def _op_create_pool(self, tx: ExchangeTransaction) -> Dict[str, Any]:
        p = tx.params
        result = self.create_pool(
            tx.sender,
            TokenId.parse(p["token"]),
            parse_amount(p, "base_amount"),
            parse_amount(p, "token_amount"),
            parse_amount(p, "min_shares", 0),
        )
        return {"base_amount": result.base_amount, "token_amount": result.token_amount, "shares": result.shares}

    def _op_add_liquidity(self, tx: ExchangeTransaction) -> Dict[str, Any]:
        p = tx.params
        result = self.add_liquidity(
            tx.sender,
            TokenId.parse(p["token"]),
            parse_amount(p, "base_amount"),
            parse_amount(p, "token_amount"),
            parse_amount(p, "min_shares", 0),
        )
        return {"base_amount": result.base_amount, "token_amount": result.token_amount, "shares": result.shares}

    def _op_remove_liquidity(self, tx: ExchangeTransaction) -> Dict[str, Any]:
        p = tx.params
        result = self.remove_liquidity(
            tx.sender,
            TokenId.parse(p["token"]),
            parse_amount(p, "shares"),
            parse_amount(p, "min_base", 0),
            parse_amount(p, "min_token", 0),
        )
        return {"base_amount": result.base_amount, "token_amount": result.token_amount, "shares": result.shares}

    def _op_swap(self, tx: ExchangeTransaction) -> Dict[str, Any]:
        p = tx.params
        result = self.swap(
            tx.sender,
            parse_token(p, "token_in"),
            parse_token(p, "token_out"),
            parse_amount(p, "amount_in"),
            parse_amount(p, "min_amount_out", 0),
        )
        return {
            "amount_in": result.amount_in,
            "amount_out": result.amount_out,
            "intermediate_base": result.intermediate_base,
            "route": result.route.kind.value,
        }

    def _op_transfer_shares(self, tx: ExchangeTransaction) -> Dict[str, Any]:
        p = tx.params
        amount = parse_amount(p, "amount")
        self.transfer_shares(tx.sender, TokenId.parse(p["token"]), parse_holder(p, "from"), parse_holder(p, "to"), amount)
        return {"amount": amount}

    def _op_update_operator(self, tx: ExchangeTransaction) -> Dict[str, Any]:
        p = tx.params
        operator = parse_holder(p, "operator")
        if not isinstance(p["add"], bool):
            raise ValueError("Param add must be a bool")
        self.update_operator(tx.sender, operator, p["add"])
        return {"operator": operator, "add": p["add"]}
