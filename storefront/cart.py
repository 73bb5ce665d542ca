# storefront/cart.py
from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, Iterator, Optional

logger = logging.getLogger(__name__)

CartSnapshot = Dict[str, Dict[str, Any]]


@dataclass
class CartEntry:
    quantity: int
    color: Optional[str] = None
    size: Optional[str] = None


class Cart:
    """
    Product id -> CartEntry. Quantities are always positive: anything that
    would leave a zero or negative quantity removes the entry instead.

    A cart has a single owner. `on_change` receives a fresh snapshot after
    every mutation; it is best-effort, so a failing hook is logged and the
    mutation still stands.
    """

    def __init__(self, entries: Optional[Dict[str, CartEntry]] = None,
                 on_change: Optional[Callable[[CartSnapshot], None]] = None):
        self._entries: Dict[str, CartEntry] = dict(entries or {})
        self.on_change = on_change

    # --- mutations ---
    def add(self, product_id: str, quantity: int = 1,
            color: Optional[str] = None, size: Optional[str] = None) -> None:
        if quantity < 1:
            return
        entry = self._entries.get(product_id)
        if entry:
            entry.quantity += quantity
            entry.color = color if color is not None else entry.color
            entry.size = size if size is not None else entry.size
        else:
            self._entries[product_id] = CartEntry(quantity, color, size)
        self._changed()

    def set_quantity(self, product_id: str, quantity: int) -> None:
        if quantity < 1:
            if self._entries.pop(product_id, None) is not None:
                self._changed()
            return
        entry = self._entries.get(product_id)
        if entry:
            entry.quantity = quantity
            self._changed()

    def remove(self, product_id: str) -> None:
        if self._entries.pop(product_id, None) is not None:
            self._changed()

    def clear(self) -> None:
        self._entries.clear()
        self._changed()

    # --- reads ---
    def get(self, product_id: str) -> Optional[CartEntry]:
        entry = self._entries.get(product_id)
        return CartEntry(**asdict(entry)) if entry else None

    def total_quantity(self) -> int:
        return sum(e.quantity for e in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def items(self):
        return [(pid, CartEntry(**asdict(e))) for pid, e in self._entries.items()]

    # --- storage ---
    def to_dict(self) -> CartSnapshot:
        out: CartSnapshot = {}
        for pid, e in self._entries.items():
            row: Dict[str, Any] = {"productId": pid, "quantity": e.quantity}
            if e.color is not None:
                row["color"] = e.color
            if e.size is not None:
                row["size"] = e.size
            out[pid] = row
        return out

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]],
                  on_change: Optional[Callable[[CartSnapshot], None]] = None) -> "Cart":
        """Load a stored snapshot. Rows without a positive integer quantity are dropped."""
        entries: Dict[str, CartEntry] = {}
        for pid, row in (raw or {}).items():
            if not isinstance(row, dict):
                continue
            qty = row.get("quantity")
            if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
                logger.warning("dropping cart row %r with quantity %r", pid, qty)
                continue
            entries[str(pid)] = CartEntry(qty, row.get("color"), row.get("size"))
        return cls(entries, on_change=on_change)

    def _changed(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(self.to_dict())
        except Exception:
            logger.exception("cart persistence hook failed; continuing")
