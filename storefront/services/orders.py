# storefront/services/orders.py
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from firebase_admin import firestore

from .. import order_status
from ..pricing import (
    LineItem,
    OrderPricing,
    PricingConfig,
    PricingError,
    ShippingSelection,
    present,
    price_order,
    reprice_snapshot,
)
from .errors import NotFound
from .fanout import fetch_all
from .products import ProductRepository

logger = logging.getLogger(__name__)

COLLECTION = "orders"

# stored headline price vs re-derived grand total
AUDIT_TOLERANCE = 0.01


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _oid() -> str:
    return uuid.uuid4().hex[:10].upper()


def _iso(value: Any) -> Any:
    """Firestore Timestamps come back as datetimes; orders expose ISO strings in UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    return value


def _from_snapshot(snap) -> Dict[str, Any]:
    data = snap.to_dict() or {}
    data.setdefault("orderId", snap.id)
    for key in ("timestamp", "updatedAt"):
        if key in data:
            data[key] = _iso(data[key])
    return data


def _newest_first(orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(orders, key=lambda o: str(o.get("timestamp") or ""), reverse=True)


class OrderRepository:
    def __init__(self, db: firestore.Client):
        self.db = db

    def _col(self):
        return self.db.collection(COLLECTION)

    def _rows(self, query) -> List[Dict[str, Any]]:
        return [_from_snapshot(snap) for snap in query.stream()]

    def get_order(self, order_id: str) -> Optional[Dict[str, Any]]:
        snap = self._col().document(order_id).get()
        if not snap.exists:
            return None
        return _from_snapshot(snap)

    def require_order(self, order_id: str) -> Dict[str, Any]:
        order = self.get_order(order_id)
        if order is None:
            raise NotFound(f"order {order_id} not found")
        return order

    def list_orders(self) -> List[Dict[str, Any]]:
        return _newest_first(self._rows(self._col()))

    def list_orders_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        return _newest_first(self._rows(self._col().where("userId", "==", user_id)))

    def save_order(self, order: Dict[str, Any]) -> str:
        """Persist an order. It must carry its line-item snapshot and shipping selection."""
        if not order.get("products"):
            raise ValueError("order has no line items")
        if not order.get("shipping"):
            raise ValueError("order has no shipping selection")
        order_id = order.get("orderId") or _oid()
        data = dict(order, orderId=order_id)
        self._col().document(order_id).set(data)
        return order_id

    def update_order_status(self, order_id: str, status: str) -> Dict[str, Any]:
        """Admin status change. Stored pricing is left as it is."""
        order = self.require_order(order_id)
        order_status.check_transition(order.get("status"), status)
        self._col().document(order_id).update({"status": status, "updatedAt": _now()})
        logger.info("order %s: %s -> %s", order_id, order.get("status"), status)
        return self.require_order(order_id)

    def request_cancellation(self, order_id: str, user_id: str, reason: str) -> Dict[str, Any]:
        reason = (reason or "").strip()
        if not reason:
            raise ValueError("a cancellation reason is required")
        order = self.require_order(order_id)
        if order.get("userId") != user_id:
            raise NotFound(f"order {order_id} not found")
        current = order.get("status")
        if not order_status.can_request_cancellation(current):
            raise order_status.InvalidStatusTransition(current, order_status.CANCELLATION_REQUESTED)
        self._col().document(order_id).update({
            "status": order_status.CANCELLATION_REQUESTED,
            "cancellationReason": reason,
            "statusBeforeCancellation": current or order_status.PROCESSING,
            "updatedAt": _now(),
        })
        logger.info("order %s: cancellation requested by %s", order_id, user_id)
        return self.require_order(order_id)

    def resolve_cancellation(self, order_id: str, accept: bool) -> Dict[str, Any]:
        order = self.require_order(order_id)
        current = order.get("status")
        if current != order_status.CANCELLATION_REQUESTED:
            target = order_status.CANCELLED if accept else "previous status"
            raise order_status.InvalidStatusTransition(current, target)
        if accept:
            changes = {"status": order_status.CANCELLED}
        else:
            changes = {
                "status": order_status.status_after_rejection(order.get("statusBeforeCancellation")),
                "cancellationReason": None,
            }
        changes["statusBeforeCancellation"] = None
        changes["updatedAt"] = _now()
        self._col().document(order_id).update(changes)
        logger.info("order %s: cancellation %s", order_id, "accepted" if accept else "rejected")
        return self.require_order(order_id)

    def delete_order(self, order_id: str) -> None:
        self.require_order(order_id)
        self._col().document(order_id).delete()
        logger.info("deleted order %s", order_id)


# --- CHECKOUT -----------------------------------------------------------------
class MissingProducts(ValueError):
    def __init__(self, product_ids: List[str]):
        self.product_ids = product_ids
        super().__init__(f"products unavailable: {', '.join(product_ids)}")


def build_line_items(rows: List[Dict[str, Any]], products: ProductRepository) -> List[LineItem]:
    """
    Turn cart rows ({productId, quantity, color?, size?}) into priced-ready line
    items using the current product documents, fetched in parallel.
    """
    result = fetch_all([r.get("productId") for r in rows], products.get_product)
    unavailable = result.missing + list(result.failed)
    if unavailable:
        raise MissingProducts(unavailable)

    items: List[LineItem] = []
    for r in rows:
        product = result.found[r["productId"]]
        price = product.get("price")
        items.append(LineItem(
            product_id=r["productId"],
            quantity=r.get("quantity"),
            unit_price=None if price is None else float(price),
            discount=product.get("discount"),
            name=product.get("name"),
            color=r.get("color"),
            size=r.get("size"),
        ))
    return items


def quote(rows: List[Dict[str, Any]], shipping: Any, products: ProductRepository,
          config: PricingConfig) -> OrderPricing:
    return price_order(build_line_items(rows, products), shipping, config)


def place_order(
    user: Dict[str, Any],
    rows: List[Dict[str, Any]],
    shipping: Any,
    address: Optional[Dict[str, Any]],
    products: ProductRepository,
    orders: OrderRepository,
    config: PricingConfig,
) -> Dict[str, Any]:
    """Price the cart and save the order. Nothing is written if pricing fails."""
    if user.get("isBlocked"):
        raise PermissionError("this account is blocked")
    selection = ShippingSelection.parse(shipping)
    items = build_line_items(rows, products)
    pricing = price_order(items, selection, config)

    order = {
        "userId": user["id"],
        "userName": (address or {}).get("name") or user.get("name") or "",
        "status": order_status.PROCESSING,
        "timestamp": _now(),
        "products": [i.to_dict() for i in items],
        "shipping": selection.value,
        "address": address or {},
        "price": present(pricing.grand_total),
        "pricing": pricing.to_dict(),
    }
    order_id = orders.save_order(order)
    logger.info("order %s placed by %s: %.2f", order_id, user["id"], order["price"])
    order["orderId"] = order_id
    return order


# --- ADMIN VIEW ---------------------------------------------------------------
def order_detail(order: Dict[str, Any], config: PricingConfig) -> Dict[str, Any]:
    """
    Re-derive an order's pricing from its stored snapshot and flag any
    drift from the stored headline price.

    A snapshot that cannot be priced (unknown shipping, unreadable line
    items) still returns the order, with `derivedPricing` set to None.
    """
    try:
        pricing = reprice_snapshot(order.get("products") or [], order.get("shipping"), config)
    except (PricingError, ValueError, TypeError) as e:
        logger.warning("order %s: cannot re-derive pricing: %s", order.get("orderId"), e)
        return {**order, "derivedPricing": None, "priceMatches": False, "derivationError": str(e)}
    stored = order.get("price")
    try:
        stored_price = float(stored) if stored is not None else None
    except (TypeError, ValueError):
        stored_price = None
    matches = stored_price is not None and abs(stored_price - pricing.grand_total) <= AUDIT_TOLERANCE
    if not matches:
        logger.warning("order %s: stored price %r != derived %.2f",
                       order.get("orderId"), stored, pricing.grand_total)
    return {
        **order,
        "derivedPricing": pricing.to_dict(rounded=True),
        "priceMatches": matches,
    }


def lifetime_value(orders: List[Dict[str, Any]]) -> float:
    total = 0.0
    for o in orders:
        try:
            total += float(o.get("price") or o.get("total") or 0)
        except (TypeError, ValueError):
            continue
    return total
