"""
Shopping cart kept on the customer's side.

The cart lives in a key/value storage (the browser's local storage on the
site, a JSON file or a plain dict here) under ``CART_KEY`` and is only sent
to the API at checkout. Every mutation persists the cart and redraws it.
"""

import json
import logging
import os
from collections.abc import MutableMapping
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

CART_KEY = "cart_9tierras"

Number = Union[int, float]


def money(value) -> str:
    """Format an amount the way the shop shows prices: 41024 -> '41.024'."""
    try:
        amount = round(float(value or 0), 2)
    except (TypeError, ValueError, OverflowError):
        amount = 0.0
    whole, _, decimals = f"{abs(amount):,.2f}".partition(".")
    text = whole.replace(",", ".")
    decimals = decimals.rstrip("0")
    if decimals:
        text = f"{text},{decimals}"
    return f"-{text}" if amount < 0 else text


def _as_number(value, default: Number) -> Number:
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return int(number) if number.is_integer() else number


@dataclass
class CartItem:
    product_id: str
    name: str
    price: Number
    qty: int = 1

    @property
    def line_total(self) -> Number:
        return self.price * self.qty

    def to_dict(self) -> dict:
        return {"productId": self.product_id, "name": self.name, "price": self.price, "qty": self.qty}

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        return cls(
            product_id=str(data["productId"]),
            name=str(data.get("name", "")),
            price=_as_number(data.get("price"), 0),
            qty=int(data.get("qty", 1)),
        )


@dataclass(frozen=True)
class CartLine:
    product_id: str
    name: str
    qty: int
    line_total: Number

    def label(self) -> str:
        return f"{self.name} x{self.qty} - ${money(self.line_total)}"


@dataclass(frozen=True)
class CartView:
    lines: Tuple[CartLine, ...]
    total: Number

    @property
    def total_label(self) -> str:
        return money(self.total)


def serialize(items: List[CartItem]) -> str:
    return json.dumps([item.to_dict() for item in items], ensure_ascii=False)


def deserialize(raw: Optional[str]) -> List[CartItem]:
    """Parse a stored cart; anything unreadable is an empty cart."""
    if not raw:
        return []
    try:
        data = json.loads(raw)
        if not isinstance(data, list):
            return []
        return [CartItem.from_dict(entry) for entry in data]
    except (ValueError, TypeError, KeyError, AttributeError):
        logger.warning("Discarding unreadable cart in storage")
        return []


class Cart:
    """Ordered cart items with add / remove_one / clear.

    ``storage`` is any mutable mapping of str to str. ``on_change`` receives
    a fresh :class:`CartView` after every mutation.
    """

    def __init__(
        self,
        storage: Optional[MutableMapping] = None,
        key: str = CART_KEY,
        on_change: Optional[Callable[[CartView], None]] = None,
    ):
        self._storage = storage if storage is not None else {}
        self._key = key
        self._on_change = on_change
        self._items: List[CartItem] = deserialize(self._storage.get(key))

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[CartItem]:
        # copies, so callers cannot mutate cart state behind its back
        return iter([CartItem(**vars(item)) for item in self._items])

    @property
    def is_empty(self) -> bool:
        return not self._items

    def _find(self, product_id: str) -> Optional[CartItem]:
        for item in self._items:
            if item.product_id == product_id:
                return item
        return None

    def get(self, product_id: str) -> Optional[CartItem]:
        item = self._find(str(product_id))
        return CartItem(**vars(item)) if item else None

    def add(self, product: Dict) -> None:
        """Add one unit of ``product`` ({productId, name, price})."""
        product_id = product.get("productId") or product.get("_id")
        if not product_id:
            raise ValueError("product has no productId or _id")
        product_id = str(product_id)
        item = self._find(product_id)
        if item:
            item.qty += 1
        else:
            self._items.append(CartItem(
                product_id=product_id,
                name=product.get("name", ""),
                price=_as_number(product.get("price"), 0),
            ))
        self._changed()

    def remove_one(self, product_id: str) -> None:
        item = self._find(str(product_id))
        if item is None:
            return
        item.qty -= 1
        if item.qty <= 0:
            self._items.remove(item)
        self._changed()

    def clear(self) -> None:
        self._items = []
        self._changed()

    @property
    def total(self) -> Number:
        return sum(item.line_total for item in self._items)

    def view(self) -> CartView:
        lines = tuple(
            CartLine(item.product_id, item.name, item.qty, item.line_total)
            for item in self._items
        )
        return CartView(lines=lines, total=self.total)

    def to_payload(self) -> List[dict]:
        """Snapshot sent to POST /api/checkout."""
        return [item.to_dict() for item in self._items]

    def _changed(self) -> None:
        self._storage[self._key] = serialize(self._items)
        if self._on_change:
            self._on_change(self.view())


class JSONFileStorage(MutableMapping):
    """Key/value storage persisted to a JSON file, written on every change."""

    def __init__(self, path: str):
        self.path = path
        self._data: Dict[str, str] = {}
        if os.path.exists(path):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if isinstance(loaded, dict):
                    self._data = {str(k): v for k, v in loaded.items()}
            except (OSError, ValueError):
                logger.warning("Could not read storage file %s, starting empty", path)

    def _flush(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, ensure_ascii=False)

    def __getitem__(self, key):
        return self._data[key]

    def __setitem__(self, key, value):
        self._data[key] = value
        self._flush()

    def __delitem__(self, key):
        del self._data[key]
        self._flush()

    def __iter__(self):
        return iter(self._data)

    def __len__(self):
        return len(self._data)
