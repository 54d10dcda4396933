from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional

from tradeslip.config import EngineConfig
from tradeslip.core import pricing
from tradeslip.core.item_state import ItemErrorKind, ReadyStatus, resolve_item_state
from tradeslip.state.assets import BASE_ASSET, CategoricalOutcome
from tradeslip.state.balances import UNAVAILABLE, BalanceTable
from tradeslip.state.items import TradeAction, TradeItem
from tradeslip.state.pools import PoolSnapshot, PoolStatus
from tradeslip.state.snapshot import EMPTY_SNAPSHOT, MarketSnapshot


YES = CategoricalOutcome(7, 0)
NO = CategoricalOutcome(7, 1)


def _snapshot(
    pool_base: Optional[int] = 1000,
    pool_asset: Optional[int] = 1000,
    trader: Optional[Dict] = None,
    fee: str = "0",
    status: PoolStatus = PoolStatus.ACTIVE,
    account: Optional[str] = "alice",
) -> MarketSnapshot:
    pool = PoolSnapshot(
        pool_id=1,
        market_id=7,
        account_id="pool-1",
        weights={BASE_ASSET: Decimal(10), YES: Decimal(10), NO: Decimal(10)},
        swap_fee=Decimal(fee),
        status=status,
    )
    entries = {}
    if pool_base is not None:
        entries[("pool-1", BASE_ASSET)] = pool_base
    if pool_asset is not None:
        entries[("pool-1", YES)] = pool_asset
        entries[("pool-1", NO)] = pool_asset
    for asset, amount in (trader or {}).items():
        entries[(account, asset)] = amount
    return MarketSnapshot(revision=1, account=account, pools={7: pool}, balances=BalanceTable(entries))


def _buy(amount) -> TradeItem:
    return TradeItem(TradeAction.BUY, YES, Decimal(amount))


def _sell(amount) -> TradeItem:
    return TradeItem(TradeAction.SELL, YES, Decimal(amount))


def test_missing_pool_is_not_ready() -> None:
    res = resolve_item_state(_buy(1), EMPTY_SNAPSHOT)
    assert res.status is ReadyStatus.NOT_READY
    assert res.state is None
    assert res.reason == "pool not loaded"


def test_missing_pool_balance_is_not_ready() -> None:
    res = resolve_item_state(_buy(1), _snapshot(pool_base=None))
    assert not res.is_ready
    assert res.reason == "pool balances not loaded"


def test_asset_without_weight_is_not_ready() -> None:
    item = TradeItem(TradeAction.BUY, CategoricalOutcome(7, 5), Decimal(1))
    res = resolve_item_state(item, _snapshot())
    assert not res.is_ready
    assert res.reason == "asset not in pool"


def test_tradeable_balance_uses_ratio() -> None:
    cfg = EngineConfig(max_in_out_ratio=Decimal("0.5"))
    state = resolve_item_state(_sell(1), _snapshot(), cfg).state
    assert state is not None
    assert state.tradeable_pool_balance == Decimal(500)


def test_unavailable_trader_balance_leaves_pool_cap_only() -> None:
    snap = _snapshot(account=None)
    buy = resolve_item_state(_buy(1), snap).state
    sell = resolve_item_state(_sell(1), snap).state
    assert buy.trader_base_balance is UNAVAILABLE
    assert sell.trader_asset_balance is UNAVAILABLE
    assert buy.max_amount == buy.tradeable_pool_balance
    assert sell.max_amount == sell.tradeable_pool_balance
    assert buy.max_amount > 0


def test_buy_max_amount_limited_by_trader_base() -> None:
    # Equal weights and balances, no fee: spot price is 1.
    state = resolve_item_state(_buy(1), _snapshot(trader={BASE_ASSET: 10})).state
    assert state.asset.spot_price == Decimal(1)
    assert state.max_amount == Decimal(10)


def test_sell_max_amount_limited_by_trader_asset() -> None:
    small = resolve_item_state(_sell(1), _snapshot(trader={YES: 50})).state
    large = resolve_item_state(_sell(1), _snapshot(trader={YES: 5000})).state
    assert small.max_amount == Decimal(50)
    assert large.max_amount == large.tradeable_pool_balance


def test_zero_trader_balance_is_zero_not_unavailable() -> None:
    state = resolve_item_state(_sell(0), _snapshot(trader={YES: 0})).state
    assert state.max_amount == 0


def test_buy_sum_is_exact_out_cost() -> None:
    state = resolve_item_state(_buy(100), _snapshot(fee="0.02")).state
    expected = pricing.amount_in_given_out(
        Decimal(1000), Decimal(10), Decimal(1000), Decimal(10), Decimal(100), Decimal("0.02")
    )
    assert state.is_valid
    assert state.sum == expected
    assert state.price_impact is not None and state.price_impact > 0


def test_sell_sum_is_exact_in_proceeds() -> None:
    state = resolve_item_state(_sell(100), _snapshot(fee="0.02")).state
    expected = pricing.amount_out_given_in(
        Decimal(1000), Decimal(10), Decimal(1000), Decimal(10), Decimal(100), Decimal("0.02")
    )
    assert state.sum == expected
    assert state.sum < Decimal(100)


def test_zero_amount_sums_to_zero() -> None:
    state = resolve_item_state(_buy(0), _snapshot()).state
    assert state.is_valid
    assert state.sum == 0
    assert state.price_impact is None


def test_sell_at_or_above_pool_balance_is_infeasible() -> None:
    for amount in (1000, 1500):
        state = resolve_item_state(_sell(amount), _snapshot()).state
        assert state.error is not None
        assert state.error.kind is ItemErrorKind.INFEASIBLE_QUANTITY
        assert state.sum is None


def test_amount_above_tradeable_cap_is_flagged_not_clamped() -> None:
    state = resolve_item_state(_buy(400), _snapshot()).state
    assert state.error.kind is ItemErrorKind.INFEASIBLE_QUANTITY
    assert "tradeable" in state.error.message
    assert state.item.amount == Decimal(400)


def test_inactive_pool_is_infeasible() -> None:
    state = resolve_item_state(_buy(1), _snapshot(status=PoolStatus.CLOSED)).state
    assert state.error.kind is ItemErrorKind.INFEASIBLE_QUANTITY
    assert state.error.message == "pool not active"


def test_empty_base_reserve_is_non_finite() -> None:
    state = resolve_item_state(_sell(1), _snapshot(pool_base=0)).state
    assert state.error.kind is ItemErrorKind.NON_FINITE_RESULT
    assert state.sum is None


def test_empty_asset_reserve_is_non_finite() -> None:
    state = resolve_item_state(_buy(0), _snapshot(pool_asset=0)).state
    assert state.error.kind is ItemErrorKind.NON_FINITE_RESULT
    assert state.asset.spot_price is None
