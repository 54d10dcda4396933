"""
One generation of remote data (pools + balances) used by a recompute pass.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from .assets import AssetId, OutcomeAsset, market_id_of
from .balances import Account, Balance, BalanceTable
from .pools import PoolSnapshot


@dataclass(frozen=True)
class MarketSnapshot:
    """
    Read-only view of pools and free balances, tagged with a revision.

    Every figure derived in one pass comes from a single snapshot, so a
    displayed state and the transaction assembled from it can never mix
    balances from different fetches.
    """

    revision: int = 0
    account: Optional[Account] = None
    pools: Mapping[int, PoolSnapshot] = field(default_factory=dict)
    balances: BalanceTable = field(default_factory=BalanceTable)

    def __post_init__(self) -> None:
        if not isinstance(self.revision, int) or isinstance(self.revision, bool) or self.revision < 0:
            raise ValueError("revision must be a non-negative int")
        for market_id, pool in self.pools.items():
            if pool.market_id != market_id:
                raise ValueError(f"pool {pool.pool_id} keyed under market {market_id} but trades market {pool.market_id}")
        object.__setattr__(self, "pools", MappingProxyType(dict(self.pools)))

    def get_pool(self, asset: OutcomeAsset) -> Optional[PoolSnapshot]:
        return self.pools.get(market_id_of(asset))

    def trader_balance(self, asset: AssetId) -> Balance:
        return self.balances.get(self.account, asset)

    def pool_balance(self, pool: PoolSnapshot, asset: AssetId) -> Balance:
        return self.balances.get(pool.account_id, asset)


EMPTY_SNAPSHOT = MarketSnapshot()

