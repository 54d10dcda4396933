from __future__ import annotations

import pytest

from tradeslip.state.assets import (
    BASE_ASSET,
    BaseAsset,
    CategoricalOutcome,
    ForeignAsset,
    ScalarOutcome,
    ScalarSide,
    asset_from_json,
    asset_sort_key,
    asset_to_json,
    is_outcome,
    market_id_of,
)


def test_equality_is_structural() -> None:
    assert CategoricalOutcome(1, 2) == CategoricalOutcome(1, 2)
    assert CategoricalOutcome(1, 2) != CategoricalOutcome(1, 3)
    assert ScalarOutcome(1, ScalarSide.LONG) != ScalarOutcome(1, ScalarSide.SHORT)
    assert BaseAsset() == BASE_ASSET
    assert len({CategoricalOutcome(1, 2), CategoricalOutcome(1, 2)}) == 1


def test_json_shapes() -> None:
    assert asset_to_json(BASE_ASSET) == {"Ztg": None}
    assert asset_to_json(ForeignAsset(3)) == {"ForeignAsset": 3}
    assert asset_to_json(CategoricalOutcome(7, 1)) == {"CategoricalOutcome": [7, 1]}
    assert asset_to_json(ScalarOutcome(7, ScalarSide.SHORT)) == {"ScalarOutcome": [7, "Short"]}


def test_json_decoding_accepts_lower_camel_tags() -> None:
    assert asset_from_json({"categoricalOutcome": [7, 1]}) == CategoricalOutcome(7, 1)
    assert asset_from_json({"scalarOutcome": [2, "Long"]}) == ScalarOutcome(2, ScalarSide.LONG)
    assert asset_from_json({"ztg": None}) == BASE_ASSET
    assert asset_from_json({"foreignAsset": 0}) == ForeignAsset(0)


@pytest.mark.parametrize(
    "obj",
    [
        None,
        {},
        {"CategoricalOutcome": [1]},
        {"CategoricalOutcome": [1, 2], "Ztg": None},
        {"ScalarOutcome": [1, "Sideways"]},
        {"PoolShare": 3},
    ],
)
def test_json_decoding_rejects_malformed(obj) -> None:
    with pytest.raises(ValueError):
        asset_from_json(obj)


def test_constructor_validation() -> None:
    with pytest.raises(ValueError, match="non-negative"):
        CategoricalOutcome(-1, 0)
    with pytest.raises(TypeError):
        CategoricalOutcome(1, True)
    with pytest.raises(TypeError):
        ScalarOutcome(1, "Long")


def test_outcome_helpers() -> None:
    assert is_outcome(CategoricalOutcome(4, 0))
    assert not is_outcome(BASE_ASSET)
    assert market_id_of(ScalarOutcome(9, ScalarSide.LONG)) == 9
    with pytest.raises(TypeError):
        market_id_of(BASE_ASSET)


def test_sort_key_orders_kinds() -> None:
    assets = [
        ScalarOutcome(1, ScalarSide.SHORT),
        CategoricalOutcome(2, 0),
        ForeignAsset(5),
        ScalarOutcome(1, ScalarSide.LONG),
        BASE_ASSET,
        CategoricalOutcome(1, 3),
    ]
    assert sorted(assets, key=asset_sort_key) == [
        BASE_ASSET,
        ForeignAsset(5),
        CategoricalOutcome(1, 3),
        CategoricalOutcome(2, 0),
        ScalarOutcome(1, ScalarSide.LONG),
        ScalarOutcome(1, ScalarSide.SHORT),
    ]
