"""
Free-balance snapshots keyed by (account, asset).

Implements BalanceTable[Account, AssetId] -> Decimal | UNAVAILABLE

A balance that was never reported is `UNAVAILABLE`, not zero: an unresolved
trader balance must not cap a trade size at zero.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

from .assets import AssetId


Account = str  # SS58 address or pool account id


class Unavailable:
    """Singleton marker for a balance that is not (yet) known."""

    _instance: Optional["Unavailable"] = None

    def __new__(cls) -> "Unavailable":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNAVAILABLE"


UNAVAILABLE = Unavailable()

Balance = Union[Decimal, Unavailable]


def is_available(balance: object) -> bool:
    return isinstance(balance, Decimal)


def _require_amount(amount: object) -> Decimal:
    if isinstance(amount, bool) or not isinstance(amount, (Decimal, int)):
        raise TypeError(f"balance must be a Decimal or int: {amount!r}")
    d = Decimal(amount)
    if not d.is_finite():
        raise ValueError(f"balance must be finite: {amount}")
    if d < 0:
        raise ValueError(f"Balance cannot be negative: {amount}")
    return d


class BalanceTable:
    """
    Balance table mapping (account, asset) -> amount.

    Tables are built once per fetch and then treated as read-only; `merged`
    returns a new table instead of mutating.
    """

    def __init__(self, entries: Optional[Mapping[Tuple[Account, AssetId], object]] = None):
        self._balances: Dict[Tuple[Account, AssetId], Decimal] = {}
        for (account, asset), amount in (entries or {}).items():
            self.set(account, asset, amount)

    def get(self, account: Optional[Account], asset: AssetId) -> Balance:
        """Get balance for (account, asset). Returns UNAVAILABLE if not reported."""
        if account is None:
            return UNAVAILABLE
        return self._balances.get((account, asset), UNAVAILABLE)

    def set(self, account: Account, asset: AssetId, amount: object) -> None:
        """
        Record a reported balance (zero is stored, not dropped).

        Raises:
            ValueError: If amount is negative or not finite
        """
        if not isinstance(account, str) or not account:
            raise ValueError("account must be a non-empty string")
        self._balances[(account, asset)] = _require_amount(amount)

    def merged(self, other: "BalanceTable") -> "BalanceTable":
        """New table with `other` entries taking precedence."""
        out = BalanceTable()
        out._balances = {**self._balances, **other._balances}
        return out

    def items(self) -> Iterator[Tuple[Tuple[Account, AssetId], Decimal]]:
        return iter(dict(self._balances).items())

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
