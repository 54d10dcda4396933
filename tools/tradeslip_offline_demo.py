#!/usr/bin/env python3

from __future__ import annotations

import asyncio
import sys
from decimal import Decimal
from pathlib import Path
from typing import Mapping, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tradeslip.core.batch import BatchTransaction
from tradeslip.integration.session import BalanceQuery, SubmissionResult, TradeSlipSession
from tradeslip.state.assets import BASE_ASSET, CategoricalOutcome
from tradeslip.state.balances import BalanceTable
from tradeslip.state.items import TradeAction, TradeItem
from tradeslip.state.pools import BASE_UNIT, PoolSnapshot, pool_from_json
from tradeslip.state.slip import TradeSlipStore


TRADER = "trader"
POOL_ACCOUNT = "pool-7"


class OfflineChain:
    """In-memory chain: one categorical market with a 50/50 weighted pool."""

    def __init__(self) -> None:
        self.pool = pool_from_json(
            {
                "poolId": 3,
                "marketId": 7,
                "accountId": POOL_ACCOUNT,
                "swapFee": str(BASE_UNIT // 100),
                "baseAsset": {"Ztg": None},
                "status": "Active",
                "weights": [
                    {"assetId": {"Ztg": None}, "len": "20"},
                    {"assetId": {"CategoricalOutcome": [7, 0]}, "len": "10"},
                    {"assetId": {"CategoricalOutcome": [7, 1]}, "len": "10"},
                ],
            }
        )
        self.balances = BalanceTable(
            {
                (POOL_ACCOUNT, BASE_ASSET): Decimal(1000),
                (POOL_ACCOUNT, CategoricalOutcome(7, 0)): Decimal(1000),
                (POOL_ACCOUNT, CategoricalOutcome(7, 1)): Decimal(1000),
                (TRADER, BASE_ASSET): Decimal(250),
                (TRADER, CategoricalOutcome(7, 1)): Decimal(40),
            }
        )

    async def get_pools(self, market_ids: Sequence[int]) -> Mapping[int, PoolSnapshot]:
        return {self.pool.market_id: self.pool} if self.pool.market_id in market_ids else {}

    async def get_balances(self, queries: Sequence[BalanceQuery]) -> BalanceTable:
        out = BalanceTable()
        for q in queries:
            amount = self.balances.get(q.account, q.asset)
            if isinstance(amount, Decimal):
                out.set(q.account, q.asset, amount)
        return out

    async def estimate_fee(self, batch: BatchTransaction, account: str) -> Decimal:
        return Decimal("0.01") * len(batch)

    async def submit(self, batch: BatchTransaction, account: str) -> SubmissionResult:
        return SubmissionResult(ok=True, tx_hash="0x" + batch.fingerprint()[:16])


async def _run() -> int:
    session = TradeSlipSession(OfflineChain(), TradeSlipStore(), account=TRADER)
    session.put_item(TradeItem(TradeAction.BUY, CategoricalOutcome(7, 0), Decimal(10)))
    session.put_item(TradeItem(TradeAction.SELL, CategoricalOutcome(7, 1), Decimal(4)))

    if not await session.refresh():
        print("[offline-demo] FAIL (refresh discarded)")
        return 1

    derived = session.derived
    for item in derived.items:
        state = derived.state_of(item.action, item.asset)
        if state is None:
            print(f"[offline-demo] {item.action.value} {item.asset}: not ready")
            continue
        print(
            f"[offline-demo] {item.action.value} {item.amount} of {item.asset}: "
            f"spot={state.asset.spot_price:.6f} sum={state.sum:.6f} max={state.max_amount:.6f} "
            f"impact={state.price_impact:.6f}"
        )
    print(f"[offline-demo] total={derived.total:.6f} complete={derived.slip_total.is_complete}")

    tx = derived.transaction
    if tx is None:
        print("[offline-demo] FAIL (no transaction)")
        return 1
    for call in tx.to_calls():
        print(f"[offline-demo] leg {call}")
    print(f"[offline-demo] fee estimate={await session.estimate_fee()}")

    result = await session.submit(tx)
    print(f"[offline-demo] submitted tx={result.tx_hash} remaining_items={len(session.items)}")
    print("[offline-demo] OK: batch submitted")
    return 0


def main() -> int:
    return asyncio.run(_run())


if __name__ == "__main__":
    raise SystemExit(main())
