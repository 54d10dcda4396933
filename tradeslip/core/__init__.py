"""
Trade slip pricing, aggregation and batching
"""

from .aggregate import SlipAggregate, SlipTotal, aggregate
from .batch import BatchTransaction, LegKind, SwapLeg, assemble_batch, slippage_bound
from .engine import DerivedState, recompute
from .errors import (
    InfeasibleQuantityError,
    NonFiniteResultError,
    StaleSnapshotError,
    SubmissionError,
    TradeSlipError,
)
from .item_state import (
    AssetDescriptor,
    ItemError,
    ItemErrorKind,
    ItemState,
    ItemStateResult,
    ReadyStatus,
    resolve_item_state,
)

__all__ = [
    "AssetDescriptor",
    "BatchTransaction",
    "DerivedState",
    "InfeasibleQuantityError",
    "ItemError",
    "ItemErrorKind",
    "ItemState",
    "ItemStateResult",
    "LegKind",
    "NonFiniteResultError",
    "ReadyStatus",
    "SlipAggregate",
    "SlipTotal",
    "StaleSnapshotError",
    "SubmissionError",
    "SwapLeg",
    "TradeSlipError",
    "aggregate",
    "assemble_batch",
    "recompute",
    "resolve_item_state",
    "slippage_bound",
]
