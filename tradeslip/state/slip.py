"""
The trade slip: the user's pending items plus slippage tolerance.

`TradeSlipStore` is the only mutable state the engine owns. It is persisted
through `SlipStorage` at explicit boundaries (`load` / `save`), never
implicitly on mutation.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .assets import OutcomeAsset
from .canonical import canonical_json_bytes
from .items import ItemKey, TradeItem


_logger = logging.getLogger(__name__)

DEFAULT_SLIPPAGE_PERCENTAGE = Decimal(1)

Document = Dict[str, Any]


def _require_slippage(value: object) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (Decimal, int)):
        raise TypeError(f"slippage must be a Decimal or int: {value!r}")
    d = Decimal(value)
    if not d.is_finite() or not (0 <= d < 100):
        raise ValueError(f"slippage must be in [0, 100): {value}")
    return d


class TradeSlipStore:
    """
    Ordered list of trade items, at most one per asset.

    `put` replaces the existing item for the same asset (an amount edit or a
    buy/sell flip) or appends a new one. Every mutation bumps `revision`;
    item mutations also bump `items_revision`, slippage edits do not.
    """

    def __init__(
        self,
        items: Iterable[TradeItem] = (),
        slippage: Optional[Decimal] = None,
        *,
        default_slippage: Decimal = DEFAULT_SLIPPAGE_PERCENTAGE,
        storage: Optional["SlipStorage"] = None,
    ):
        self._default_slippage = _require_slippage(default_slippage)
        self._items: List[TradeItem] = []
        self._slippage = self._default_slippage if slippage is None else _require_slippage(slippage)
        self._storage = storage
        self._revision = 0
        self._items_revision = 0
        for item in items:
            self.put(item)
        self._revision = 0
        self._items_revision = 0

    @property
    def items(self) -> Tuple[TradeItem, ...]:
        return tuple(self._items)

    @property
    def slippage(self) -> Decimal:
        return self._slippage

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def items_revision(self) -> int:
        return self._items_revision

    @property
    def storage(self) -> Optional["SlipStorage"]:
        return self._storage

    def _index_of(self, asset: OutcomeAsset) -> Optional[int]:
        for i, cand in enumerate(self._items):
            if cand.asset == asset:
                return i
        return None

    def put(self, item: TradeItem) -> None:
        if not isinstance(item, TradeItem):
            raise TypeError("item must be a TradeItem")
        idx = self._index_of(item.asset)
        if idx is None:
            self._items.append(item)
        else:
            self._items[idx] = item
        self._items_changed()

    def _items_changed(self) -> None:
        self._revision += 1
        self._items_revision += 1

    def remove(self, asset: OutcomeAsset) -> bool:
        idx = self._index_of(asset)
        if idx is None:
            return False
        del self._items[idx]
        self._items_changed()
        return True

    def remove_unchanged(self, items: Iterable[TradeItem]) -> int:
        """Remove each of `items` that is still in the slip exactly as given; returns the count removed."""
        gone = [item for item in items if item in self._items]
        if not gone:
            return 0
        self._items = [item for item in self._items if item not in gone]
        self._items_changed()
        return len(gone)

    def get(self, asset: OutcomeAsset) -> Optional[TradeItem]:
        idx = self._index_of(asset)
        return None if idx is None else self._items[idx]

    def get_by_key(self, key: ItemKey) -> Optional[TradeItem]:
        item = self.get(key.asset)
        if item is None or item.action is not key.action:
            return None
        return item

    def has(self, asset: OutcomeAsset) -> bool:
        return self._index_of(asset) is not None

    def clear(self) -> None:
        self._items = []
        self._items_changed()

    def set_slippage(self, value: Optional[Decimal]) -> None:
        """Set the slippage percentage; `None` restores the default."""
        self._slippage = self._default_slippage if value is None else _require_slippage(value)
        self._revision += 1

    def to_json(self) -> Document:
        return {
            "items": [item.to_json() for item in self._items],
            "slippage": str(self._slippage),
        }

    @classmethod
    def from_json(
        cls,
        doc: Document,
        *,
        default_slippage: Decimal = DEFAULT_SLIPPAGE_PERCENTAGE,
        storage: Optional["SlipStorage"] = None,
    ) -> "TradeSlipStore":
        items: List[TradeItem] = []
        raw_items = doc.get("items")
        if raw_items is None:
            raw_items = []
        elif not isinstance(raw_items, list):
            _logger.warning("dropping slip items stored as %s, expected a list", type(raw_items).__name__)
            raw_items = []
        for raw in raw_items:
            try:
                items.append(TradeItem.from_json(raw))
            except (TypeError, ValueError) as exc:
                _logger.warning("dropping unreadable slip item %r: %s", raw, exc)

        slippage: Optional[Decimal] = None
        raw_slippage = doc.get("slippage")
        if raw_slippage is not None:
            try:
                slippage = _require_slippage(Decimal(str(raw_slippage)))
            except (InvalidOperation, TypeError, ValueError):
                _logger.warning("ignoring invalid stored slippage %r", raw_slippage)

        return cls(items, slippage, default_slippage=default_slippage, storage=storage)

    @classmethod
    def load(
        cls, storage: "SlipStorage", *, default_slippage: Decimal = DEFAULT_SLIPPAGE_PERCENTAGE
    ) -> "TradeSlipStore":
        return cls.from_json(storage.load(), default_slippage=default_slippage, storage=storage)

    def save(self) -> None:
        if self._storage is None:
            raise RuntimeError("store has no storage attached")
        self._storage.save(self.to_json())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"TradeSlipStore({len(self._items)} items, slippage={self._slippage}, revision={self._revision})"


def _migrate_v0_to_v1(doc: Any) -> Document:
    # v0 stored the bare item list; slippage lived under a separate key.
    if isinstance(doc, list):
        return {"items": doc}
    if isinstance(doc, dict):
        return dict(doc)
    return {}


def _migrate_v1_to_v2(doc: Document) -> Document:
    # v1 amounts were JSON numbers; v2 stores exact decimal strings.
    out = dict(doc)
    if not isinstance(out.get("items"), list):
        return out
    items = []
    for raw in out["items"]:
        if isinstance(raw, dict) and isinstance(raw.get("amount"), (int, float)) and not isinstance(raw.get("amount"), bool):
            raw = {**raw, "amount": str(raw["amount"])}
        items.append(raw)
    out["items"] = items
    return out


# Index i migrates version i to i + 1. Entries are append-only.
MIGRATIONS: List[Callable[[Any], Document]] = [_migrate_v0_to_v1, _migrate_v1_to_v2]
DOCUMENT_VERSION = len(MIGRATIONS)


def migrate_document(raw: Any) -> Document:
    version = raw.get("__version", 0) if isinstance(raw, dict) else 0
    if not isinstance(version, int) or isinstance(version, bool) or version < 0:
        raise ValueError(f"invalid document version: {version!r}")
    if version > DOCUMENT_VERSION:
        raise ValueError(f"document version {version} is newer than supported {DOCUMENT_VERSION}")
    doc = raw
    for step, migration in enumerate(MIGRATIONS[version:], start=version + 1):
        doc = migration(doc)
        _logger.debug("migrated slip document to version %d", step)
    out = dict(doc)
    out["__version"] = DOCUMENT_VERSION
    return out


class SlipStorage:
    """JSON file holding the persisted slip document."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Document:
        """Read and migrate the stored document; unreadable files yield an empty slip."""
        try:
            return migrate_document(json.loads(self.path.read_text(encoding="utf-8")))
        except FileNotFoundError:
            return {"__version": DOCUMENT_VERSION}
        except (OSError, ValueError) as exc:
            # ValueError covers bad UTF-8, bad JSON and unsupported versions.
            _logger.warning("discarding unreadable slip document %s: %s", self.path, exc)
            return {"__version": DOCUMENT_VERSION}

    def save(self, doc: Document) -> None:
        payload = canonical_json_bytes({**doc, "__version": DOCUMENT_VERSION})
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=".slip-", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise


__all__ = [
    "DEFAULT_SLIPPAGE_PERCENTAGE",
    "DOCUMENT_VERSION",
    "SlipStorage",
    "TradeSlipStore",
    "migrate_document",
]
