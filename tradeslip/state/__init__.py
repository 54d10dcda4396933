"""
State types for the trade slip engine
"""

from .assets import (
    BASE_ASSET,
    AssetId,
    BaseAsset,
    CategoricalOutcome,
    ForeignAsset,
    OutcomeAsset,
    ScalarOutcome,
    ScalarSide,
)
from .balances import UNAVAILABLE, BalanceTable, is_available
from .items import ItemKey, TradeAction, TradeItem
from .pools import BASE_UNIT, PoolSnapshot, PoolStatus
from .slip import DEFAULT_SLIPPAGE_PERCENTAGE, SlipStorage, TradeSlipStore
from .snapshot import EMPTY_SNAPSHOT, MarketSnapshot

__all__ = [
    "BASE_ASSET",
    "BASE_UNIT",
    "DEFAULT_SLIPPAGE_PERCENTAGE",
    "EMPTY_SNAPSHOT",
    "UNAVAILABLE",
    "AssetId",
    "BalanceTable",
    "BaseAsset",
    "CategoricalOutcome",
    "ForeignAsset",
    "ItemKey",
    "MarketSnapshot",
    "OutcomeAsset",
    "PoolSnapshot",
    "PoolStatus",
    "ScalarOutcome",
    "ScalarSide",
    "SlipStorage",
    "TradeAction",
    "TradeItem",
    "TradeSlipStore",
    "is_available",
]
