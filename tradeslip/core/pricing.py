"""
Weighted-pool pricing API.

Validated wrapper around `kernels.python.weighted_math_v1`. The kernel
signals domain violations with `ValueError` and degenerate inputs with
`ArithmeticError`; here they become `InfeasibleQuantityError` and
`NonFiniteResultError` so a caller can tell them apart from programming
errors (`TypeError` passes through unchanged).

Argument order follows the trade direction: `*_in` is what the trader gives
the pool, `*_out` is what the pool gives back.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable

from ..kernels.python import weighted_math_v1 as _kernel
from ..kernels.python.weighted_math_v1 import Number
from .errors import InfeasibleQuantityError, NonFiniteResultError


def _call(fn: Callable[..., Decimal], **kwargs: Any) -> Decimal:
    try:
        result = fn(**kwargs)
    except ValueError as exc:
        raise InfeasibleQuantityError(str(exc)) from exc
    except ArithmeticError as exc:
        raise NonFiniteResultError(f"{fn.__name__}: {str(exc) or type(exc).__name__}") from exc
    if not result.is_finite():
        raise NonFiniteResultError(f"{fn.__name__} produced {result}")
    return result


def spot_price(
    balance_in: Number,
    weight_in: Number,
    balance_out: Number,
    weight_out: Number,
    swap_fee: Number,
) -> Decimal:
    """
    Units of the in-asset paid per unit of the out-asset, fee included.

    Raises:
        InfeasibleQuantityError: negative input or fee outside [0, 1)
        NonFiniteResultError: zero weight or empty out-reserve
    """
    return _call(
        _kernel.spot_price,
        balance_in=balance_in,
        weight_in=weight_in,
        balance_out=balance_out,
        weight_out=weight_out,
        swap_fee=swap_fee,
    )


def amount_out_given_in(
    balance_in: Number,
    weight_in: Number,
    balance_out: Number,
    weight_out: Number,
    amount_in: Number,
    swap_fee: Number,
) -> Decimal:
    """
    Output received for an exact input (rounded down).

    The result is always strictly below `balance_out`.

    Raises:
        InfeasibleQuantityError: negative input or fee outside [0, 1)
        NonFiniteResultError: zero weight or empty reserve
    """
    return _call(
        _kernel.amount_out_given_in,
        balance_in=balance_in,
        weight_in=weight_in,
        balance_out=balance_out,
        weight_out=weight_out,
        amount_in=amount_in,
        swap_fee=swap_fee,
    )


def amount_in_given_out(
    balance_in: Number,
    weight_in: Number,
    balance_out: Number,
    weight_out: Number,
    amount_out: Number,
    swap_fee: Number,
) -> Decimal:
    """
    Input required for an exact output (rounded up).

    Raises:
        InfeasibleQuantityError: `amount_out >= balance_out`, negative input or
            fee outside [0, 1)
        NonFiniteResultError: zero weight or empty reserve
    """
    return _call(
        _kernel.amount_in_given_out,
        balance_in=balance_in,
        weight_in=weight_in,
        balance_out=balance_out,
        weight_out=weight_out,
        amount_out=amount_out,
        swap_fee=swap_fee,
    )


def relative_diff(expected: Number, actual: Number) -> Decimal:
    return _call(_kernel.relative_diff, expected=expected, actual=actual)


def pool_out_given_single_in(
    balance_in: Number,
    weight_in: Number,
    pool_supply: Number,
    total_weight: Number,
    amount_in: Number,
    swap_fee: Number,
) -> Decimal:
    return _call(
        _kernel.pool_out_given_single_in,
        balance_in=balance_in,
        weight_in=weight_in,
        pool_supply=pool_supply,
        total_weight=total_weight,
        amount_in=amount_in,
        swap_fee=swap_fee,
    )


def single_in_given_pool_out(
    balance_in: Number,
    weight_in: Number,
    pool_supply: Number,
    total_weight: Number,
    pool_amount_out: Number,
    swap_fee: Number,
) -> Decimal:
    return _call(
        _kernel.single_in_given_pool_out,
        balance_in=balance_in,
        weight_in=weight_in,
        pool_supply=pool_supply,
        total_weight=total_weight,
        pool_amount_out=pool_amount_out,
        swap_fee=swap_fee,
    )


def single_out_given_pool_in(
    balance_out: Number,
    weight_out: Number,
    pool_supply: Number,
    total_weight: Number,
    pool_amount_in: Number,
    swap_fee: Number,
) -> Decimal:
    return _call(
        _kernel.single_out_given_pool_in,
        balance_out=balance_out,
        weight_out=weight_out,
        pool_supply=pool_supply,
        total_weight=total_weight,
        pool_amount_in=pool_amount_in,
        swap_fee=swap_fee,
    )
