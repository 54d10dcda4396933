"""
Asset identifiers as a closed tagged union.

Chain asset ids arrive as small JSON objects (`{"CategoricalOutcome": [7, 1]}`).
Inside the engine they are frozen dataclasses, so equality and hashing are
structural and an asset can key a dict directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple, Union


class ScalarSide(Enum):
    LONG = "Long"
    SHORT = "Short"


@dataclass(frozen=True)
class BaseAsset:
    """The chain's native base asset."""


@dataclass(frozen=True)
class ForeignAsset:
    asset_id: int

    def __post_init__(self) -> None:
        _require_index("asset_id", self.asset_id)


@dataclass(frozen=True)
class CategoricalOutcome:
    market_id: int
    index: int

    def __post_init__(self) -> None:
        _require_index("market_id", self.market_id)
        _require_index("index", self.index)


@dataclass(frozen=True)
class ScalarOutcome:
    market_id: int
    side: ScalarSide

    def __post_init__(self) -> None:
        _require_index("market_id", self.market_id)
        if not isinstance(self.side, ScalarSide):
            raise TypeError("side must be a ScalarSide")


OutcomeAsset = Union[CategoricalOutcome, ScalarOutcome]
AssetId = Union[BaseAsset, ForeignAsset, CategoricalOutcome, ScalarOutcome]

BASE_ASSET = BaseAsset()

_TAG_BASE = "Ztg"
_TAG_FOREIGN = "ForeignAsset"
_TAG_CATEGORICAL = "CategoricalOutcome"
_TAG_SCALAR = "ScalarOutcome"


def _require_index(name: str, value: Any) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative: {value}")


def is_outcome(asset: object) -> bool:
    return isinstance(asset, (CategoricalOutcome, ScalarOutcome))


def market_id_of(asset: OutcomeAsset) -> int:
    if not is_outcome(asset):
        raise TypeError(f"not an outcome asset: {asset!r}")
    return asset.market_id


def asset_to_json(asset: AssetId) -> Any:
    """Encode an asset id in the chain's JSON shape."""
    if isinstance(asset, BaseAsset):
        return {_TAG_BASE: None}
    if isinstance(asset, ForeignAsset):
        return {_TAG_FOREIGN: asset.asset_id}
    if isinstance(asset, CategoricalOutcome):
        return {_TAG_CATEGORICAL: [asset.market_id, asset.index]}
    if isinstance(asset, ScalarOutcome):
        return {_TAG_SCALAR: [asset.market_id, asset.side.value]}
    raise TypeError(f"unsupported asset: {asset!r}")


def asset_from_json(obj: Any) -> AssetId:
    """
    Decode the chain's JSON shape.

    Tags are matched case-insensitively on the first letter (`categoricalOutcome`
    and `CategoricalOutcome` both occur in stored data).
    """
    if not isinstance(obj, dict) or len(obj) != 1:
        raise ValueError(f"asset must be a single-key object: {obj!r}")
    (raw_tag, value), = obj.items()
    if not isinstance(raw_tag, str) or not raw_tag:
        raise ValueError("asset tag must be a non-empty string")
    tag = raw_tag[0].upper() + raw_tag[1:]

    if tag == _TAG_BASE:
        return BASE_ASSET
    if tag == _TAG_FOREIGN:
        return ForeignAsset(value)
    if tag == _TAG_CATEGORICAL:
        market_id, index = _pair(tag, value)
        return CategoricalOutcome(market_id, index)
    if tag == _TAG_SCALAR:
        market_id, side = _pair(tag, value)
        try:
            return ScalarOutcome(market_id, ScalarSide(side))
        except ValueError as exc:
            raise ValueError(f"invalid scalar side: {side!r}") from exc
    raise ValueError(f"unsupported asset tag: {raw_tag!r}")


def _pair(tag: str, value: Any) -> Tuple[Any, Any]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"{tag} must be a 2-element array")
    return value[0], value[1]


def asset_sort_key(asset: AssetId) -> Tuple[int, int, int]:
    """Deterministic ordering: base, foreign, categorical, scalar."""
    if isinstance(asset, BaseAsset):
        return (0, 0, 0)
    if isinstance(asset, ForeignAsset):
        return (1, asset.asset_id, 0)
    if isinstance(asset, CategoricalOutcome):
        return (2, asset.market_id, asset.index)
    if isinstance(asset, ScalarOutcome):
        return (3, asset.market_id, 0 if asset.side is ScalarSide.LONG else 1)
    raise TypeError(f"unsupported asset: {asset!r}")
