from __future__ import annotations

from decimal import Decimal

import pytest

from tradeslip.core import pricing
from tradeslip.core.errors import InfeasibleQuantityError, NonFiniteResultError, TradeSlipError


def test_amount_in_given_out_full_drain_is_infeasible() -> None:
    with pytest.raises(InfeasibleQuantityError, match="cannot drain"):
        pricing.amount_in_given_out(100, 1, 100, 1, 100, 0)


def test_infeasible_error_is_still_a_value_error() -> None:
    with pytest.raises(ValueError):
        pricing.amount_in_given_out(100, 1, 100, 1, 150, 0)


def test_zero_weight_is_non_finite() -> None:
    with pytest.raises(NonFiniteResultError, match="spot_price"):
        pricing.spot_price(100, 0, 100, 1, 0)


def test_empty_reserve_is_non_finite() -> None:
    with pytest.raises(NonFiniteResultError) as info:
        pricing.amount_out_given_in(100, 1, 0, 1, 5, 0)
    assert isinstance(info.value, ArithmeticError)
    assert isinstance(info.value, TradeSlipError)


def test_fee_out_of_range_is_infeasible() -> None:
    with pytest.raises(InfeasibleQuantityError, match="swap_fee"):
        pricing.amount_out_given_in(100, 1, 100, 1, 5, Decimal("1.5"))


def test_float_input_is_a_type_error() -> None:
    with pytest.raises(TypeError):
        pricing.amount_out_given_in(100.0, 1, 100, 1, 5, 0)


def test_values_pass_through() -> None:
    out = pricing.amount_out_given_in(100, 1, 100, 1, 100, 0)
    assert out == Decimal(50)
    cost = pricing.amount_in_given_out(100, 1, 100, 1, 50, 0)
    assert cost == Decimal(100)
    assert pricing.relative_diff(Decimal(2), Decimal(3)) == Decimal("0.5")
