"""
Slip aggregation: fold resolved item states into a signed total.

Pure reduction over already-resolved states; never calls the pricing
kernel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Context, Decimal
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..state.assets import OutcomeAsset
from ..state.items import ItemKey, TradeAction, TradeItem
from .item_state import ItemState, ItemStateResult


# Wide enough that summing kernel-precision figures never rounds.
_EXACT = Context(prec=100)


@dataclass(frozen=True)
class SlipTotal:
    """
    Net base-asset flow of the slip: proceeds of sells minus cost of buys.

    `pending` items are not ready yet and `invalid` items carry an error;
    both contribute zero, so `total` is final only when `is_complete`.
    """
    total: Decimal
    pending: Tuple[ItemKey, ...] = ()
    invalid: Tuple[ItemKey, ...] = ()

    @property
    def is_complete(self) -> bool:
        return not self.pending and not self.invalid


@dataclass(frozen=True)
class SlipAggregate:
    total: SlipTotal
    states: Mapping[ItemKey, ItemState] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "states", MappingProxyType(dict(self.states)))

    def state_of(self, action: TradeAction, asset: OutcomeAsset) -> Optional[ItemState]:
        """The resolved state for (action, asset), or None when not ready."""
        return self.states.get(ItemKey(action, asset))


def aggregate(
    items: Sequence[TradeItem],
    results: Iterable[Optional[ItemStateResult]],
) -> SlipAggregate:
    """
    Combine `items` with their resolution results (same order).

    A missing result (None) counts as not ready.
    """
    total = Decimal(0)
    pending: List[ItemKey] = []
    invalid: List[ItemKey] = []
    states: Dict[ItemKey, ItemState] = {}

    for item, result in zip(items, results):
        key = item.key
        if result is None or not result.is_ready or result.state is None:
            pending.append(key)
            continue
        state = result.state
        states[key] = state
        if not state.is_valid or state.sum is None:
            invalid.append(key)
            continue
        if item.action is TradeAction.SELL:
            total = _EXACT.add(total, state.sum)
        else:
            total = _EXACT.subtract(total, state.sum)

    return SlipAggregate(
        total=SlipTotal(total=total, pending=tuple(pending), invalid=tuple(invalid)),
        states=states,
    )
