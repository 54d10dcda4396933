"""
Batch transaction assembly.

Turns resolved item states plus a slippage tolerance into one all-or-nothing
batch of swap legs:

- Buy  -> exact-out leg: receive exactly `amount`, pay at most `cost * (1 + s/100)`
- Sell -> exact-in leg:  pay exactly `amount`, receive at least `proceeds * (1 - s/100)`

A leg that cannot be bounded safely is dropped, never sent with a missing or
unbounded limit. Integer base-unit conversion never loosens a limit: max-in
rounds down, min-out rounds up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_CEILING, ROUND_DOWN, ROUND_HALF_EVEN, Context, Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..kernels.python.weighted_math_v1 import KERNEL_PRECISION
from ..state.assets import AssetId, asset_to_json
from ..state.canonical import canonical_digest
from ..state.items import ItemKey, TradeItem
from ..state.pools import BASE_UNIT
from .item_state import ItemState


_logger = logging.getLogger(__name__)

_HUNDRED = Decimal(100)
_CTX = Context(prec=KERNEL_PRECISION, rounding=ROUND_HALF_EVEN)


class LegKind(Enum):
    EXACT_AMOUNT_OUT = "swapExactAmountOut"
    EXACT_AMOUNT_IN = "swapExactAmountIn"


def to_base_units(value: Decimal, *, rounding: str, base_unit: int = BASE_UNIT) -> int:
    """Convert a whole-unit amount to integer base units with explicit rounding."""
    scaled = _CTX.multiply(value, Decimal(base_unit))
    return int(scaled.to_integral_value(rounding=rounding))


@dataclass(frozen=True)
class SwapLeg:
    """
    One slippage-bounded swap instruction (amounts in whole units).

    For EXACT_AMOUNT_OUT `amount_out` is exact and `limit` is the max-in;
    for EXACT_AMOUNT_IN `amount_in` is exact and `limit` is the min-out.
    The non-exact amount is the unslipped quote.
    """
    kind: LegKind
    key: ItemKey
    pool_id: int
    asset_in: AssetId
    asset_out: AssetId
    amount_in: Decimal
    amount_out: Decimal
    limit: Decimal
    base_unit: int = BASE_UNIT

    @property
    def exact_units(self) -> int:
        exact = self.amount_out if self.kind is LegKind.EXACT_AMOUNT_OUT else self.amount_in
        return to_base_units(exact, rounding=ROUND_DOWN, base_unit=self.base_unit)

    @property
    def limit_units(self) -> int:
        rounding = ROUND_DOWN if self.kind is LegKind.EXACT_AMOUNT_OUT else ROUND_CEILING
        return to_base_units(self.limit, rounding=rounding, base_unit=self.base_unit)

    def to_call(self) -> Dict[str, Any]:
        """Chain call arguments in integer base units."""
        if self.kind is LegKind.EXACT_AMOUNT_OUT:
            return {
                "call": self.kind.value,
                "poolId": self.pool_id,
                "assetIn": asset_to_json(self.asset_in),
                "maxAmountIn": self.limit_units,
                "assetOut": asset_to_json(self.asset_out),
                "amountOut": self.exact_units,
            }
        return {
            "call": self.kind.value,
            "poolId": self.pool_id,
            "assetIn": asset_to_json(self.asset_in),
            "amountIn": self.exact_units,
            "assetOut": asset_to_json(self.asset_out),
            "minAmountOut": self.limit_units,
        }


@dataclass(frozen=True)
class BatchTransaction:
    """Ordered legs submitted as one atomic unit, tagged with the snapshot revision they were built from."""
    legs: Tuple[SwapLeg, ...]
    revision: int
    slippage: Decimal

    def __post_init__(self) -> None:
        if not self.legs:
            raise ValueError("batch must contain at least one leg")

    def to_calls(self) -> List[Dict[str, Any]]:
        return [leg.to_call() for leg in self.legs]

    def fingerprint(self) -> str:
        """Stable hash of the call list (cache key for fee estimates)."""
        return canonical_digest(self.to_calls())

    def __len__(self) -> int:
        return len(self.legs)


def _require_slippage(slippage: Decimal) -> Decimal:
    if isinstance(slippage, bool) or not isinstance(slippage, (Decimal, int)):
        raise TypeError("slippage must be a Decimal or int")
    s = Decimal(slippage)
    if not s.is_finite() or not (0 <= s < 100):
        raise ValueError(f"slippage must be in [0, 100): {slippage}")
    return s


def slippage_bound(quote: Decimal, slippage: Decimal, *, is_buy: bool) -> Decimal:
    """`quote * (1 + s/100)` for buys (max-in), `quote * (1 - s/100)` for sells (min-out)."""
    factor = _CTX.divide(_require_slippage(slippage), _HUNDRED)
    if is_buy:
        return _CTX.multiply(quote, _CTX.add(Decimal(1), factor))
    return _CTX.multiply(quote, _CTX.subtract(Decimal(1), factor))


def _build_leg(item: TradeItem, state: ItemState, slippage: Decimal, base_unit: int) -> Optional[SwapLeg]:
    quote = state.sum
    if not state.is_valid or quote is None:
        _logger.debug("dropping leg %s: %s", item.key, state.error)
        return None
    if item.amount == 0:
        _logger.debug("dropping leg %s: zero amount", item.key)
        return None

    bound = slippage_bound(quote, slippage, is_buy=item.is_buy)
    if not bound.is_finite() or bound < 0:
        _logger.debug("dropping leg %s: bound %s", item.key, bound)
        return None

    pool = state.pool
    if item.is_buy:
        leg = SwapLeg(
            kind=LegKind.EXACT_AMOUNT_OUT,
            key=item.key,
            pool_id=pool.pool_id,
            asset_in=pool.base_asset,
            asset_out=item.asset,
            amount_in=quote,
            amount_out=item.amount,
            limit=bound,
            base_unit=base_unit,
        )
    else:
        leg = SwapLeg(
            kind=LegKind.EXACT_AMOUNT_IN,
            key=item.key,
            pool_id=pool.pool_id,
            asset_in=item.asset,
            asset_out=pool.base_asset,
            amount_in=item.amount,
            amount_out=quote,
            limit=bound,
            base_unit=base_unit,
        )

    # A zero limit in base units is either unpayable (max-in) or no bound at all (min-out).
    if leg.exact_units == 0 or leg.limit_units == 0:
        _logger.debug("dropping leg %s: rounds to zero base units", item.key)
        return None
    return leg


def assemble_batch(
    items: Sequence[TradeItem],
    states: Mapping[ItemKey, ItemState],
    slippage: Decimal,
    revision: int,
    *,
    base_unit: int = BASE_UNIT,
) -> Optional[BatchTransaction]:
    """
    Build the batch for `items` (slip order) from their resolved `states`.

    Returns None when no leg survives.
    """
    s = _require_slippage(slippage)
    legs: List[SwapLeg] = []
    seen = set()
    for item in items:
        # One leg per asset: two legs on the same balance could not both settle.
        if item.asset in seen:
            _logger.debug("dropping leg %s: asset already in batch", item.key)
            continue
        state = states.get(item.key)
        if state is None:
            _logger.debug("dropping leg %s: not ready", item.key)
            continue
        leg = _build_leg(item, state, s, base_unit)
        if leg is not None:
            legs.append(leg)
            seen.add(item.asset)

    if not legs:
        return None
    return BatchTransaction(legs=tuple(legs), revision=revision, slippage=s)
