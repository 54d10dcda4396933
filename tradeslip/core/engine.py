"""
Recompute step (functional core).

Wires the resolver, the aggregator and the batch assembler into one pure
whole-state pass:
- Resolve every item against a single snapshot
- Fold the resolved states into the slip total
- Assemble the batch from those same states

Nothing is patched incrementally; a change to items, slippage or snapshot
means a new `DerivedState`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from ..config import EngineConfig
from ..state.assets import OutcomeAsset
from ..state.items import TradeAction, TradeItem
from ..state.snapshot import EMPTY_SNAPSHOT, MarketSnapshot
from .aggregate import SlipAggregate, SlipTotal, aggregate
from .batch import BatchTransaction, assemble_batch
from .item_state import ItemState, ItemStateResult, resolve_item_state


_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DerivedState:
    """Everything the slip displays, computed from one snapshot revision."""
    revision: int
    items: Tuple[TradeItem, ...]
    results: Tuple[ItemStateResult, ...]
    aggregate: SlipAggregate
    transaction: Optional[BatchTransaction] = None
    slippage: Decimal = field(default=Decimal(1))

    @property
    def total(self) -> Decimal:
        return self.aggregate.total.total

    @property
    def slip_total(self) -> SlipTotal:
        return self.aggregate.total

    def state_of(self, action: TradeAction, asset: OutcomeAsset) -> Optional[ItemState]:
        return self.aggregate.state_of(action, asset)


def recompute(
    items: Sequence[TradeItem],
    snapshot: MarketSnapshot = EMPTY_SNAPSHOT,
    slippage: Optional[Decimal] = None,
    config: Optional[EngineConfig] = None,
) -> DerivedState:
    """
    Derive item states, total and batch for `items` against `snapshot`.

    `slippage` defaults to `config.default_slippage`.
    """
    cfg = config or EngineConfig()
    s = cfg.default_slippage if slippage is None else slippage
    items = tuple(items)

    results = tuple(resolve_item_state(item, snapshot, cfg) for item in items)
    agg = aggregate(items, results)
    tx = assemble_batch(items, agg.states, s, snapshot.revision, base_unit=cfg.base_unit)

    _logger.debug(
        "recompute revision=%d items=%d ready=%d legs=%d total=%s",
        snapshot.revision,
        len(items),
        len(agg.states),
        len(tx) if tx is not None else 0,
        agg.total.total,
    )
    return DerivedState(
        revision=snapshot.revision,
        items=items,
        results=results,
        aggregate=agg,
        transaction=tx,
        slippage=Decimal(s),
    )
