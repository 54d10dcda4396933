"""
Item state resolver.

Combines one `TradeItem` with a `MarketSnapshot` into the figures the slip
displays (spot price, maximum size, cost or proceeds, price impact).

Missing remote data is not an error: the result is `NOT_READY` and resolves
on the next snapshot. Pricing failures are recorded on the state as an
`ItemError` and never raised, so one bad item cannot block the others.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Context, Decimal
from enum import Enum
from typing import Optional

from ..config import EngineConfig
from ..kernels.python.weighted_math_v1 import KERNEL_PRECISION
from ..state.assets import AssetId, OutcomeAsset
from ..state.balances import Balance, is_available
from ..state.items import TradeItem
from ..state.pools import PoolSnapshot
from ..state.snapshot import MarketSnapshot
from . import pricing
from .errors import InfeasibleQuantityError, NonFiniteResultError


_ZERO = Decimal(0)

# Caps shown to the user round toward zero.
_DOWN = Context(prec=KERNEL_PRECISION, rounding=ROUND_DOWN)


class ReadyStatus(Enum):
    READY = "ready"
    NOT_READY = "not_ready"


class ItemErrorKind(Enum):
    INFEASIBLE_QUANTITY = "infeasible_quantity"
    NON_FINITE_RESULT = "non_finite_result"


@dataclass(frozen=True)
class ItemError:
    kind: ItemErrorKind
    message: str


@dataclass(frozen=True)
class AssetDescriptor:
    """The traded outcome asset and its live price in base-asset units (fee included)."""
    asset: OutcomeAsset
    spot_price: Optional[Decimal]


@dataclass(frozen=True)
class ItemState:
    """
    Derived figures for one item against one snapshot.

    Attributes:
        max_amount: Largest amount the UI may offer for this item
        sum: Cost (buy) or proceeds (sell) in base-asset units; None when `error` is set
        price_impact: Relative difference between mid price and average execution price
        error: Why `sum` could not be computed, if it could not
    """
    item: TradeItem
    pool: PoolSnapshot
    asset: AssetDescriptor
    base_weight: Decimal
    asset_weight: Decimal
    swap_fee: Decimal
    trader_base_balance: Balance
    trader_asset_balance: Balance
    pool_base_balance: Decimal
    pool_asset_balance: Decimal
    tradeable_pool_balance: Decimal
    max_amount: Decimal
    sum: Optional[Decimal]
    price_impact: Optional[Decimal] = None
    error: Optional[ItemError] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None

    @property
    def base_asset(self) -> AssetId:
        return self.pool.base_asset


@dataclass(frozen=True)
class ItemStateResult:
    status: ReadyStatus
    state: Optional[ItemState] = None
    reason: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.status is ReadyStatus.READY


def _not_ready(reason: str) -> ItemStateResult:
    return ItemStateResult(status=ReadyStatus.NOT_READY, reason=reason)


def _item_error(exc: Exception) -> ItemError:
    if isinstance(exc, InfeasibleQuantityError):
        return ItemError(ItemErrorKind.INFEASIBLE_QUANTITY, str(exc))
    return ItemError(ItemErrorKind.NON_FINITE_RESULT, str(exc))


def _max_amount(
    item: TradeItem,
    tradeable: Decimal,
    spot: Optional[Decimal],
    trader_base: Balance,
    trader_asset: Balance,
) -> Decimal:
    # An unavailable trader balance leaves only the pool cap; it never counts as zero.
    if item.is_buy:
        if not is_available(trader_base) or spot is None or spot == 0:
            return tradeable
        return min(tradeable, _DOWN.divide(trader_base, spot))
    if not is_available(trader_asset):
        return tradeable
    return min(tradeable, trader_asset)


def resolve_item_state(
    item: TradeItem,
    snapshot: MarketSnapshot,
    config: Optional[EngineConfig] = None,
) -> ItemStateResult:
    """
    Resolve the derived state of `item` against `snapshot`.

    NOT_READY when the pool, the asset's weight or either pool balance is
    missing. Trader balances are optional and carried through as-is.
    """
    cfg = config or EngineConfig()

    pool = snapshot.get_pool(item.asset)
    if pool is None:
        return _not_ready("pool not loaded")
    asset_weight = pool.weight_of(item.asset)
    if asset_weight is None:
        return _not_ready("asset not in pool")
    base_weight = pool.base_weight

    pool_base = snapshot.pool_balance(pool, pool.base_asset)
    pool_asset = snapshot.pool_balance(pool, item.asset)
    if not is_available(pool_base) or not is_available(pool_asset):
        return _not_ready("pool balances not loaded")

    trader_base = snapshot.trader_balance(pool.base_asset)
    trader_asset = snapshot.trader_balance(item.asset)
    fee = pool.swap_fee
    amount = item.amount

    tradeable = _DOWN.multiply(pool_asset, cfg.max_in_out_ratio)

    spot: Optional[Decimal] = None
    mid: Optional[Decimal] = None
    total: Optional[Decimal] = None
    impact: Optional[Decimal] = None
    error: Optional[ItemError] = None

    try:
        spot = pricing.spot_price(pool_base, base_weight, pool_asset, asset_weight, fee)
        mid = pricing.spot_price(pool_base, base_weight, pool_asset, asset_weight, _ZERO)
    except (InfeasibleQuantityError, NonFiniteResultError) as exc:
        error = _item_error(exc)

    if error is None and not pool.is_active:
        error = ItemError(ItemErrorKind.INFEASIBLE_QUANTITY, "pool not active")
    if error is None and amount > tradeable:
        error = ItemError(
            ItemErrorKind.INFEASIBLE_QUANTITY,
            f"amount {amount} exceeds tradeable pool balance {tradeable}",
        )

    if error is None:
        try:
            if item.is_buy:
                total = pricing.amount_in_given_out(pool_base, base_weight, pool_asset, asset_weight, amount, fee)
            else:
                total = pricing.amount_out_given_in(pool_asset, asset_weight, pool_base, base_weight, amount, fee)
            if amount > 0 and mid:
                impact = pricing.relative_diff(mid, _DOWN.divide(total, amount))
        except (InfeasibleQuantityError, NonFiniteResultError) as exc:
            error = _item_error(exc)
            total = None
            impact = None

    state = ItemState(
        item=item,
        pool=pool,
        asset=AssetDescriptor(asset=item.asset, spot_price=spot),
        base_weight=base_weight,
        asset_weight=asset_weight,
        swap_fee=fee,
        trader_base_balance=trader_base,
        trader_asset_balance=trader_asset,
        pool_base_balance=pool_base,
        pool_asset_balance=pool_asset,
        tradeable_pool_balance=tradeable,
        max_amount=_max_amount(item, tradeable, spot, trader_base, trader_asset),
        sum=total,
        price_impact=impact,
        error=error,
    )
    return ItemStateResult(status=ReadyStatus.READY, state=state)
