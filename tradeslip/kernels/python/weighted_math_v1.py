"""
Weighted bonding-curve kernel (v1 semantics).

Balancer-style weighted pool math over fixed-point decimals:
- Spot price includes the swap fee (price paid by a buyer).
- Exact-in quotes round *down* (never over-promise output).
- Exact-out quotes round *up* (never under-charge input).

All arithmetic runs in a local decimal context with `KERNEL_PRECISION`
significant digits and trapping enabled, so degenerate inputs surface as
`ArithmeticError` (zero weight / empty reserve) instead of NaN or Infinity.
Input-domain violations raise `ValueError`.
"""

from __future__ import annotations

from decimal import (
    ROUND_CEILING,
    ROUND_DOWN,
    ROUND_HALF_EVEN,
    Context,
    Decimal,
    DivisionByZero,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import Union


KERNEL_PRECISION = 40

Number = Union[Decimal, int]

_ONE = Decimal(1)
_ZERO = Decimal(0)


def _context(rounding: str = ROUND_HALF_EVEN) -> Context:
    return Context(
        prec=KERNEL_PRECISION,
        rounding=rounding,
        Emin=-999_999_999,
        Emax=999_999_999,
        traps=[InvalidOperation, DivisionByZero, Overflow],
    )


def _dec(name: str, value: Number) -> Decimal:
    # Floats would carry binary rounding error into every downstream figure.
    if isinstance(value, bool) or not isinstance(value, (Decimal, int)):
        raise TypeError(f"{name} must be a Decimal or int")
    d = Decimal(value)
    if not d.is_finite():
        raise ValueError(f"{name} must be finite")
    if d < 0:
        raise ValueError(f"{name} must be non-negative")
    return d


def _fee(value: Number) -> Decimal:
    fee = _dec("swap_fee", value)
    if fee >= _ONE:
        raise ValueError("swap_fee must be < 1")
    return fee


def _require_reserve(name: str, value: Decimal) -> None:
    if value == 0:
        raise DivisionByZero(f"{name} is empty")


def spot_price(
    *,
    balance_in: Number,
    weight_in: Number,
    balance_out: Number,
    weight_out: Number,
    swap_fee: Number,
) -> Decimal:
    """
    `(balance_in / weight_in) / (balance_out / weight_out) / (1 - swap_fee)`
    """
    b_in = _dec("balance_in", balance_in)
    w_in = _dec("weight_in", weight_in)
    b_out = _dec("balance_out", balance_out)
    w_out = _dec("weight_out", weight_out)
    fee = _fee(swap_fee)

    with localcontext(_context()):
        numer = b_in / w_in
        denom = b_out / w_out
        ratio = numer / denom
        scale = _ONE / (_ONE - fee)
        return ratio * scale


def amount_out_given_in(
    *,
    balance_in: Number,
    weight_in: Number,
    balance_out: Number,
    weight_out: Number,
    amount_in: Number,
    swap_fee: Number,
) -> Decimal:
    """
    `balance_out * (1 - (balance_in / (balance_in + amount_in * (1 - fee))) ^ (weight_in / weight_out))`

    The result is strictly below `balance_out` for every finite input: the
    remaining reserve `balance_out * y^r` is positive and the final
    subtraction rounds toward zero.
    """
    b_in = _dec("balance_in", balance_in)
    w_in = _dec("weight_in", weight_in)
    b_out = _dec("balance_out", balance_out)
    w_out = _dec("weight_out", weight_out)
    a_in = _dec("amount_in", amount_in)
    fee = _fee(swap_fee)

    _require_reserve("balance_in", b_in)
    _require_reserve("balance_out", b_out)
    if a_in == 0:
        return _ZERO

    with localcontext(_context()):
        weight_ratio = w_in / w_out
        adjusted_in = a_in * (_ONE - fee)
        y = b_in / (b_in + adjusted_in)
        remaining = b_out * (y ** weight_ratio)

    down = _context(ROUND_DOWN)
    return down.subtract(b_out, remaining)


def amount_in_given_out(
    *,
    balance_in: Number,
    weight_in: Number,
    balance_out: Number,
    weight_out: Number,
    amount_out: Number,
    swap_fee: Number,
) -> Decimal:
    """
    `balance_in * ((balance_out / (balance_out - amount_out)) ^ (weight_out / weight_in) - 1) / (1 - fee)`

    Defined for `0 <= amount_out < balance_out` only.
    """
    b_in = _dec("balance_in", balance_in)
    w_in = _dec("weight_in", weight_in)
    b_out = _dec("balance_out", balance_out)
    w_out = _dec("weight_out", weight_out)
    a_out = _dec("amount_out", amount_out)
    fee = _fee(swap_fee)

    _require_reserve("balance_in", b_in)
    _require_reserve("balance_out", b_out)
    if a_out >= b_out:
        raise ValueError(f"cannot drain full reserve: amount_out ({a_out}) >= balance_out ({b_out})")
    if a_out == 0:
        return _ZERO

    with localcontext(_context()):
        weight_ratio = w_out / w_in
        diff = b_out - a_out
        y = b_out / diff
        growth = (y ** weight_ratio) - _ONE
        numer = b_in * growth

    up = _context(ROUND_CEILING)
    return up.divide(numer, up.subtract(_ONE, fee))


def relative_diff(*, expected: Number, actual: Number) -> Decimal:
    """`|expected - actual| / expected`"""
    e = _dec("expected", expected)
    a = _dec("actual", actual)
    with localcontext(_context()):
        return abs((e - a) / e)


def pool_out_given_single_in(
    *,
    balance_in: Number,
    weight_in: Number,
    pool_supply: Number,
    total_weight: Number,
    amount_in: Number,
    swap_fee: Number,
) -> Decimal:
    """Pool shares minted for a single-asset deposit of `amount_in`."""
    b_in = _dec("balance_in", balance_in)
    w_in = _dec("weight_in", weight_in)
    supply = _dec("pool_supply", pool_supply)
    w_total = _dec("total_weight", total_weight)
    a_in = _dec("amount_in", amount_in)
    fee = _fee(swap_fee)

    _require_reserve("balance_in", b_in)
    with localcontext(_context()):
        normalized_weight = w_in / w_total
        # Only the share of the deposit that is implicitly swapped pays the fee.
        fee_share = (_ONE - normalized_weight) * fee
        in_after_fee = a_in * (_ONE - fee_share)
        in_ratio = (b_in + in_after_fee) / b_in
        pool_ratio = in_ratio ** normalized_weight
        new_supply = pool_ratio * supply
    return _context(ROUND_DOWN).subtract(new_supply, supply)


def single_in_given_pool_out(
    *,
    balance_in: Number,
    weight_in: Number,
    pool_supply: Number,
    total_weight: Number,
    pool_amount_out: Number,
    swap_fee: Number,
) -> Decimal:
    """Single-asset deposit needed to mint exactly `pool_amount_out` shares."""
    b_in = _dec("balance_in", balance_in)
    w_in = _dec("weight_in", weight_in)
    supply = _dec("pool_supply", pool_supply)
    w_total = _dec("total_weight", total_weight)
    shares = _dec("pool_amount_out", pool_amount_out)
    fee = _fee(swap_fee)

    _require_reserve("pool_supply", supply)
    with localcontext(_context()):
        normalized_weight = w_in / w_total
        pool_ratio = (supply + shares) / supply
        in_ratio = pool_ratio ** (_ONE / normalized_weight)
        in_after_fee = in_ratio * b_in - b_in
        fee_share = (_ONE - normalized_weight) * fee
    up = _context(ROUND_CEILING)
    return up.divide(in_after_fee, up.subtract(_ONE, fee_share))


def single_out_given_pool_in(
    *,
    balance_out: Number,
    weight_out: Number,
    pool_supply: Number,
    total_weight: Number,
    pool_amount_in: Number,
    swap_fee: Number,
) -> Decimal:
    """Single-asset withdrawal received for burning `pool_amount_in` shares (no exit fee)."""
    b_out = _dec("balance_out", balance_out)
    w_out = _dec("weight_out", weight_out)
    supply = _dec("pool_supply", pool_supply)
    w_total = _dec("total_weight", total_weight)
    shares = _dec("pool_amount_in", pool_amount_in)
    fee = _fee(swap_fee)

    _require_reserve("pool_supply", supply)
    if shares > supply:
        raise ValueError(f"cannot burn more than pool_supply: {shares} > {supply}")
    with localcontext(_context()):
        normalized_weight = w_out / w_total
        pool_ratio = (supply - shares) / supply
        out_ratio = pool_ratio ** (_ONE / normalized_weight)
        before_fee = b_out - out_ratio * b_out
        keep = _ONE - fee * (_ONE - normalized_weight)
    return _context(ROUND_DOWN).multiply(before_fee, keep)
