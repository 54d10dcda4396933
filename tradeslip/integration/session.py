"""
Async session: the imperative shell around `core.engine.recompute`.

The session owns the slip store, the current account and the latest
`MarketSnapshot`. Remote calls (pool and balance fetches, fee estimates,
submission) go through a `ChainClient` and are the only suspension points;
every recompute runs synchronously on the result.

Fetches are tagged with a generation token `(account, items revision,
counter)`. A fetch whose token is no longer current when it completes is
discarded, so a late result for an old account or an old item list is never
merged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Mapping, NamedTuple, Optional, Protocol, Sequence, Tuple

from ..config import EngineConfig
from ..core.batch import BatchTransaction
from ..core.engine import DerivedState, recompute
from ..core.errors import StaleSnapshotError, SubmissionError
from ..state.assets import AssetId, OutcomeAsset, market_id_of
from ..state.balances import Account, BalanceTable
from ..state.items import TradeItem
from ..state.pools import PoolSnapshot
from ..state.slip import TradeSlipStore
from ..state.snapshot import MarketSnapshot


_logger = logging.getLogger(__name__)


class BalanceQuery(NamedTuple):
    account: Account
    asset: AssetId


@dataclass(frozen=True)
class SubmissionResult:
    ok: bool
    reason: Optional[str] = None
    tx_hash: Optional[str] = None


class ChainClient(Protocol):
    """Remote collaborator. Missing pools or balances are simply left out of the reply."""

    async def get_pools(self, market_ids: Sequence[int]) -> Mapping[int, PoolSnapshot]:
        ...

    async def get_balances(self, queries: Sequence[BalanceQuery]) -> BalanceTable:
        ...

    async def estimate_fee(self, batch: BatchTransaction, account: Account) -> Decimal:
        ...

    async def submit(self, batch: BatchTransaction, account: Account) -> SubmissionResult:
        ...


FetchToken = Tuple[Optional[Account], int, int]


def balance_queries(
    items: Sequence[TradeItem],
    pools: Mapping[int, PoolSnapshot],
    account: Optional[Account],
) -> List[BalanceQuery]:
    """Pool and trader balances needed to price `items` (base asset and traded asset, deduplicated)."""
    queries: Dict[BalanceQuery, None] = {}
    for item in items:
        pool = pools.get(market_id_of(item.asset))
        if pool is None:
            continue
        holders = [pool.account_id] if account is None else [pool.account_id, account]
        for holder in holders:
            queries[BalanceQuery(holder, pool.base_asset)] = None
            queries[BalanceQuery(holder, item.asset)] = None
    return list(queries)


class TradeSlipSession:
    """
    Holds the slip, the account and the latest derived state.

    Mutations (`put_item`, `remove_item`, `clear`, `set_slippage`) persist
    the store when it has storage attached and recompute immediately against
    the current snapshot. `refresh` fetches a new snapshot.
    """

    def __init__(
        self,
        client: ChainClient,
        store: TradeSlipStore,
        *,
        config: Optional[EngineConfig] = None,
        account: Optional[Account] = None,
    ):
        self._client = client
        self._store = store
        self._config = config or EngineConfig()
        self._account = account
        self._snapshot = MarketSnapshot(account=account)
        self._fetch_counter = 0
        self._transacting = False
        self._fee_cache: Optional[Tuple[str, Decimal]] = None
        self._derived = self._recompute()

    @property
    def store(self) -> TradeSlipStore:
        return self._store

    @property
    def account(self) -> Optional[Account]:
        return self._account

    @property
    def snapshot(self) -> MarketSnapshot:
        return self._snapshot

    @property
    def derived(self) -> DerivedState:
        return self._derived

    @property
    def items(self) -> Tuple[TradeItem, ...]:
        return self._store.items

    @property
    def total(self) -> Decimal:
        return self._derived.total

    @property
    def transaction(self) -> Optional[BatchTransaction]:
        return self._derived.transaction

    @property
    def is_transacting(self) -> bool:
        return self._transacting

    def _recompute(self) -> DerivedState:
        self._derived = recompute(self._store.items, self._snapshot, self._store.slippage, self._config)
        return self._derived

    def _current_token(self) -> FetchToken:
        return (self._account, self._store.items_revision, self._fetch_counter)

    def _after_mutation(self) -> None:
        if self._store.storage is not None:
            self._store.save()
        self._recompute()

    # ---- slip mutations ----

    def put_item(self, item: TradeItem) -> None:
        self._store.put(item)
        self._after_mutation()

    def remove_item(self, asset: OutcomeAsset) -> bool:
        removed = self._store.remove(asset)
        if removed:
            self._after_mutation()
        return removed

    def clear(self) -> None:
        self._store.clear()
        self._after_mutation()

    def set_slippage(self, value: Optional[Decimal]) -> None:
        self._store.set_slippage(value)
        self._after_mutation()

    def set_account(self, account: Optional[Account]) -> None:
        """Switch the acting account; any fetch still in flight is invalidated."""
        if account == self._account:
            return
        self._account = account
        self._fetch_counter += 1
        self._fee_cache = None
        # Pool data stays valid; trader balances are looked up under the new account.
        self._snapshot = MarketSnapshot(
            revision=self._snapshot.revision + 1,
            account=account,
            pools=self._snapshot.pools,
            balances=self._snapshot.balances,
        )
        self._recompute()

    # ---- remote ----

    async def refresh(self) -> bool:
        """
        Fetch pools and balances for the current items and account.

        Returns False when the result was discarded because the account, the
        items or a newer refresh superseded it while it was in flight.
        """
        self._fetch_counter += 1
        token = self._current_token()
        items = self._store.items
        account = self._account

        market_ids = sorted({market_id_of(item.asset) for item in items})
        pools = dict(await self._client.get_pools(market_ids)) if market_ids else {}
        if token != self._current_token():
            _logger.debug("discarding stale pool fetch token=%s current=%s", token, self._current_token())
            return False

        queries = balance_queries(items, pools, account)
        balances = await self._client.get_balances(queries) if queries else BalanceTable()
        if token != self._current_token():
            _logger.debug("discarding stale balance fetch token=%s current=%s", token, self._current_token())
            return False

        self._snapshot = MarketSnapshot(
            revision=self._snapshot.revision + 1,
            account=account,
            pools={mid: pools[mid] for mid in market_ids if mid in pools},
            balances=balances,
        )
        self._recompute()
        return True

    async def estimate_fee(self) -> Decimal:
        """Network fee for the displayed batch; zero when there is nothing to submit."""
        tx = self._derived.transaction
        if tx is None or self._account is None:
            return Decimal(0)
        fingerprint = tx.fingerprint()
        if self._fee_cache is not None and self._fee_cache[0] == fingerprint:
            return self._fee_cache[1]
        fee = await self._client.estimate_fee(tx, self._account)
        self._fee_cache = (fingerprint, fee)
        return fee

    async def submit(self, expected: Optional[BatchTransaction] = None) -> SubmissionResult:
        """
        Submit the displayed batch as one unit.

        `expected` is the batch the user confirmed; it must still be the
        current one. Failures raise `SubmissionError` with the client's reason
        unchanged and are never retried. On success the items that were in
        the slip at submission are removed; items added or edited while the
        submission was in flight stay.
        """
        if self._transacting:
            raise SubmissionError("submission already in progress")
        if self._account is None:
            raise SubmissionError("no account selected")
        tx = self._derived.transaction
        if tx is None:
            raise SubmissionError("nothing to submit")
        if expected is not None and (
            expected.revision != tx.revision or expected.fingerprint() != tx.fingerprint()
        ):
            raise StaleSnapshotError(tx.revision, expected.revision)

        submitted_items = self._store.items
        self._transacting = True
        try:
            try:
                result = await self._client.submit(tx, self._account)
            except Exception as exc:
                raise SubmissionError(str(exc)) from exc
            if not result.ok:
                _logger.info("batch rejected legs=%d reason=%s", len(tx), result.reason)
                raise SubmissionError(result.reason or "submission rejected")
        finally:
            self._transacting = False

        _logger.info("batch submitted legs=%d tx=%s", len(tx), result.tx_hash)
        self._fee_cache = None
        self._store.remove_unchanged(submitted_items)
        self._after_mutation()
        return result
