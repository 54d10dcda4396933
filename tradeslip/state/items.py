"""
Trade-slip items.

An item is a user's pending intent to buy or sell an amount of one outcome
token. Items are immutable; edits produce a new item that replaces the old
one in the slip.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, NamedTuple

from .assets import OutcomeAsset, asset_from_json, asset_to_json, is_outcome


class TradeAction(Enum):
    """Trade direction."""
    BUY = "buy"
    SELL = "sell"


class ItemKey(NamedTuple):
    """Identity of an item: (action, asset)."""
    action: TradeAction
    asset: OutcomeAsset


@dataclass(frozen=True)
class TradeItem:
    """
    A pending trade intent.

    Attributes:
        action: BUY or SELL
        asset: Outcome token traded against its pool's base asset
        amount: Requested quantity of the outcome token (whole units, >= 0)
    """
    action: TradeAction
    asset: OutcomeAsset
    amount: Decimal

    def __post_init__(self):
        """Validate item structure."""
        if not isinstance(self.action, TradeAction):
            raise TypeError(f"action must be a TradeAction: {self.action!r}")
        if not is_outcome(self.asset):
            raise TypeError(f"asset must be an outcome asset: {self.asset!r}")
        amount = self.amount
        if isinstance(amount, bool) or not isinstance(amount, (Decimal, int)):
            raise TypeError("amount must be a Decimal or int")
        amount = Decimal(amount)
        if not amount.is_finite():
            raise ValueError(f"amount must be finite: {self.amount}")
        if amount < 0:
            raise ValueError(f"amount must be non-negative: {self.amount}")
        object.__setattr__(self, "amount", amount)

    @property
    def key(self) -> ItemKey:
        return ItemKey(self.action, self.asset)

    @property
    def is_buy(self) -> bool:
        return self.action is TradeAction.BUY

    def with_amount(self, amount: Decimal) -> "TradeItem":
        return replace(self, amount=amount)

    def with_action(self, action: TradeAction) -> "TradeItem":
        return replace(self, action=action)

    def to_json(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "assetId": asset_to_json(self.asset),
            "amount": str(self.amount),
        }

    @classmethod
    def from_json(cls, obj: Any) -> "TradeItem":
        if not isinstance(obj, dict):
            raise ValueError("item must be an object")
        try:
            action = TradeAction(obj.get("action"))
        except ValueError as exc:
            raise ValueError(f"invalid action: {obj.get('action')!r}") from exc
        raw_amount = obj.get("amount")
        # Older documents stored the amount as a JSON number.
        if isinstance(raw_amount, bool) or not isinstance(raw_amount, (str, int, float)):
            raise ValueError(f"invalid amount: {raw_amount!r}")
        try:
            amount = Decimal(str(raw_amount))
        except InvalidOperation as exc:
            raise ValueError(f"invalid amount: {raw_amount!r}") from exc
        return cls(action=action, asset=asset_from_json(obj.get("assetId")), amount=amount)
