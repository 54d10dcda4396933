"""
Pool configuration snapshots for weighted pools.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .assets import AssetId, BASE_ASSET, asset_from_json, asset_to_json


BASE_UNIT = 10 ** 10  # base units per whole unit of any asset


class PoolStatus(Enum):
    """Pool status enumeration."""
    ACTIVE = "Active"
    INITIALIZED = "Initialized"
    CLOSED = "Closed"
    CLEAN = "Clean"


@dataclass(frozen=True)
class PoolSnapshot:
    """
    Configuration of a weighted pool at one point in time.

    Attributes:
        pool_id: Pool identifier
        market_id: Market whose outcome tokens the pool trades
        account_id: Account holding the pool's free balances
        weights: Per-asset weights (strictly positive), base asset included
        swap_fee: Fractional swap fee, 0 <= fee < 1
        base_asset: Collateral asset of the pool
        status: Pool status
    """
    pool_id: int
    market_id: int
    account_id: str
    weights: Mapping[AssetId, Decimal]
    swap_fee: Decimal
    base_asset: AssetId = BASE_ASSET
    status: PoolStatus = PoolStatus.ACTIVE

    def __post_init__(self):
        """Validate pool snapshot invariants."""
        if not isinstance(self.account_id, str) or not self.account_id:
            raise ValueError("account_id must be a non-empty string")

        if not isinstance(self.swap_fee, Decimal) or not self.swap_fee.is_finite():
            raise TypeError(f"swap_fee must be a finite Decimal: {self.swap_fee!r}")
        if not (0 <= self.swap_fee < 1):
            raise ValueError(f"swap_fee must be in [0, 1): {self.swap_fee}")

        weights = {}
        for asset, weight in self.weights.items():
            if not isinstance(weight, Decimal) or not weight.is_finite():
                raise TypeError(f"weight for {asset!r} must be a finite Decimal")
            # Every pricing formula divides by a weight.
            if weight <= 0:
                raise ValueError(f"weight for {asset!r} must be positive: {weight}")
            weights[asset] = weight
        if self.base_asset not in weights:
            raise ValueError("base asset must have a weight")
        object.__setattr__(self, "weights", MappingProxyType(weights))

    @property
    def is_active(self) -> bool:
        return self.status is PoolStatus.ACTIVE

    @property
    def base_weight(self) -> Decimal:
        return self.weights[self.base_asset]

    @property
    def total_weight(self) -> Decimal:
        return sum(self.weights.values(), Decimal(0))

    def weight_of(self, asset: AssetId) -> Optional[Decimal]:
        return self.weights.get(asset)

    def __repr__(self) -> str:
        return (
            f"PoolSnapshot(pool_id={self.pool_id}, market_id={self.market_id}, "
            f"assets={len(self.weights)}, swap_fee={self.swap_fee}, status={self.status.value})"
        )


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


def _require_decimal(value: Any, *, name: str) -> Decimal:
    if isinstance(value, (bool, float)) or not isinstance(value, (str, int, Decimal)):
        raise ValueError(f"{name} must be an integer string or int")
    try:
        d = Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"{name} is not a number: {value!r}") from exc
    if not d.is_finite():
        raise ValueError(f"{name} must be finite")
    return d


def pool_from_json(obj: Mapping[str, Any]) -> PoolSnapshot:
    """
    Parse an indexer/chain pool record.

    Shape:
        {"poolId": 3, "marketId": 7, "accountId": "dE...", "swapFee": "100000000",
         "baseAsset": {"Ztg": null}, "status": "Active",
         "weights": [{"assetId": {"CategoricalOutcome": [7, 0]}, "len": "10000000000"}, ...]}

    `swapFee` is expressed in base units (fee * BASE_UNIT).
    """
    if not isinstance(obj, Mapping):
        raise ValueError("pool must be an object")
    raw_weights = obj.get("weights")
    if not isinstance(raw_weights, list) or not raw_weights:
        raise ValueError("weights must be a non-empty array")

    weights = {}
    for entry in raw_weights:
        if not isinstance(entry, Mapping):
            raise ValueError("weight entry must be an object")
        asset = asset_from_json(entry.get("assetId"))
        if asset in weights:
            raise ValueError(f"duplicate weight for {asset_to_json(asset)}")
        weights[asset] = _require_decimal(entry.get("len"), name="weight")

    status_raw = obj.get("status", PoolStatus.ACTIVE.value)
    try:
        status = PoolStatus(status_raw)
    except ValueError as exc:
        raise ValueError(f"unsupported pool status: {status_raw!r}") from exc

    base_raw = obj.get("baseAsset")
    base_asset = BASE_ASSET if base_raw is None else asset_from_json(base_raw)

    return PoolSnapshot(
        pool_id=_require_int(obj.get("poolId"), name="poolId"),
        market_id=_require_int(obj.get("marketId"), name="marketId"),
        account_id=str(obj.get("accountId") or ""),
        weights=weights,
        swap_fee=_require_decimal(obj.get("swapFee", 0), name="swapFee") / BASE_UNIT,
        base_asset=base_asset,
        status=status,
    )
