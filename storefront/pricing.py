# storefront/pricing.py
"""
Order pricing engine.

One pure module shared by checkout and the admin order view. Given the
line items of an order and a shipping selection it derives, per line, the
original total, discount, post-discount total, discounted unit price and
slab tax, and for the order the subtotal, discount, tax, shipping and grand
total.

Amounts are plain floats. Nothing is rounded here; call `present()` (or
`OrderPricing.to_dict(rounded=True)`) at the edge where totals are shown.
The functions have no I/O and no hidden state, so an order can always be
re-priced later from its persisted line items and shipping selection.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

# (threshold_exclusive, rate), evaluated from the highest threshold down.
DEFAULT_TAX_SLABS: Tuple[Tuple[float, float], ...] = ((2500.0, 0.18), (0.0, 0.05))
DEFAULT_EXPRESS_SURCHARGE = 250.0

_NON_NUMERIC = re.compile(r"[^0-9.]")

Discount = Union[str, int, float, None]


# ---------- Errors ----------

class PricingError(Exception):
    """Base class for pricing validation failures."""


class InvalidLineItem(PricingError):
    """Quantity is not a positive integer, or the unit price is negative."""


class EmptyOrder(PricingError):
    """An order must have at least one line item."""


class MalformedDiscount(PricingError):
    """The discount descriptor holds no usable percentage.

    Only `parse_discount_strict` raises this; the engine treats it as 0%.
    """


# ---------- Inputs / config ----------

class ShippingSelection(str, Enum):
    standard = "standard"
    express = "express"

    @classmethod
    def parse(cls, value: Union[str, "ShippingSelection", None]) -> "ShippingSelection":
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.standard
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"unknown shipping selection: {value!r}")


@dataclass(frozen=True)
class LineItem:
    product_id: str
    quantity: int
    unit_price: Optional[float]
    discount: Discount = None
    # carried through for display only; pricing ignores them
    name: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "LineItem":
        """Build from a persisted snapshot (camelCase keys, as stored on orders)."""
        price = raw.get("unitPrice", raw.get("price"))
        discount = raw.get("discount")
        if discount is None and isinstance(raw.get("product"), dict):
            # older orders nest the catalog entry, discount included
            discount = raw["product"].get("discount")
        return cls(
            product_id=str(raw.get("productId") or ""),
            quantity=raw.get("quantity"),
            unit_price=None if price is None else float(price),
            discount=discount,
            name=raw.get("name"),
            color=raw.get("color"),
            size=raw.get("size"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "discount": self.discount,
            "name": self.name,
            "color": self.color,
            "size": self.size,
        }


@dataclass(frozen=True)
class PricingConfig:
    tax_slabs: Tuple[Tuple[float, float], ...] = DEFAULT_TAX_SLABS
    express_surcharge: float = DEFAULT_EXPRESS_SURCHARGE

    def __post_init__(self):
        if self.express_surcharge < 0:
            raise ValueError("express surcharge must be >= 0")
        for threshold, rate in self.tax_slabs:
            if rate < 0:
                raise ValueError(f"tax rate must be >= 0 (slab {threshold}, {rate})")
        # keep the evaluation order independent of how the slabs were listed
        ordered = tuple(sorted(
            ((float(t), float(r)) for t, r in self.tax_slabs),
            key=lambda slab: slab[0],
            reverse=True,
        ))
        object.__setattr__(self, "tax_slabs", ordered)

    def shipping_cost(self, selection: ShippingSelection) -> float:
        if selection is ShippingSelection.express:
            return self.express_surcharge
        return 0.0

    def tax_rate_for(self, discounted_unit_price: float) -> float:
        for threshold, rate in self.tax_slabs:
            if discounted_unit_price > threshold:
                return rate
        return 0.0


DEFAULT_CONFIG = PricingConfig()


# ---------- Outputs ----------

@dataclass(frozen=True)
class LinePricing:
    item: LineItem
    line_total_original: float
    discount_percent: float
    discount_amount: float
    line_total_after_discount: float
    discounted_unit_price: float
    tax_rate: float
    tax_amount: float

    def to_dict(self) -> Dict[str, Any]:
        out = self.item.to_dict()
        out.update({
            "lineTotalOriginal": self.line_total_original,
            "discountPercent": self.discount_percent,
            "discountAmount": self.discount_amount,
            "lineTotalAfterDiscount": self.line_total_after_discount,
            "discountedUnitPrice": self.discounted_unit_price,
            "taxRate": self.tax_rate,
            "taxAmount": self.tax_amount,
        })
        return out


@dataclass(frozen=True)
class OrderPricing:
    lines: Tuple[LinePricing, ...]
    shipping: ShippingSelection
    subtotal_original: float
    total_discount: float
    total_tax: float
    shipping_cost: float
    grand_total: float
    subtotal_after_discount: float

    def to_dict(self, rounded: bool = False) -> Dict[str, Any]:
        amount = present if rounded else (lambda x: x)
        return {
            "shipping": self.shipping.value,
            "subtotalOriginal": amount(self.subtotal_original),
            "totalDiscount": amount(self.total_discount),
            "subtotalAfterDiscount": amount(self.subtotal_after_discount),
            "totalTax": amount(self.total_tax),
            "shippingCost": amount(self.shipping_cost),
            "grandTotal": amount(self.grand_total),
            "lines": [line.to_dict() for line in self.lines],
        }


def present(amount: float) -> float:
    """Round an amount to 2 decimals for display or storage as a headline figure."""
    return round(amount, 2)


# ---------- Discount parsing ----------

def parse_discount_strict(descriptor: Discount) -> float:
    """
    Extract a percentage from a loosely formatted descriptor ("20% OFF", 15, "10.5").

    Every character that is not a digit or '.' is dropped before parsing.
    Raises MalformedDiscount when nothing positive is left.
    """
    if descriptor is None or isinstance(descriptor, bool):
        raise MalformedDiscount(f"no discount in {descriptor!r}")
    cleaned = _NON_NUMERIC.sub("", str(descriptor))
    try:
        value = float(cleaned)
    except ValueError:
        raise MalformedDiscount(f"no discount in {descriptor!r}")
    if not value > 0:  # also rejects nan
        raise MalformedDiscount(f"non-positive discount in {descriptor!r}")
    return min(value, 100.0)


def parse_discount(descriptor: Discount) -> float:
    """Tolerant form of `parse_discount_strict`: anything unusable is 0%."""
    try:
        return parse_discount_strict(descriptor)
    except MalformedDiscount as e:
        if descriptor not in (None, ""):
            logger.debug("treating discount as 0%%: %s", e)
        return 0.0


# ---------- Pricing ----------

def validate_line(item: LineItem) -> None:
    qty = item.quantity
    if isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
        raise InvalidLineItem(f"quantity must be a positive integer (product {item.product_id!r}, got {qty!r})")
    if item.unit_price is not None and item.unit_price < 0:
        raise InvalidLineItem(f"unit price must be >= 0 (product {item.product_id!r}, got {item.unit_price!r})")


def price_line(item: LineItem, config: PricingConfig = DEFAULT_CONFIG) -> LinePricing:
    validate_line(item)
    unit_price = float(item.unit_price or 0.0)
    qty = item.quantity

    line_total = unit_price * qty
    percent = parse_discount(item.discount)
    discount_amount = line_total * (percent / 100) if percent > 0 else 0.0
    after_discount = line_total - discount_amount
    discounted_unit = unit_price - (discount_amount / qty)

    rate = config.tax_rate_for(discounted_unit)
    return LinePricing(
        item=item,
        line_total_original=line_total,
        discount_percent=percent,
        discount_amount=discount_amount,
        line_total_after_discount=after_discount,
        discounted_unit_price=discounted_unit,
        tax_rate=rate,
        tax_amount=after_discount * rate,
    )


def price_order(
    items: Iterable[LineItem],
    shipping: Union[ShippingSelection, str, None] = ShippingSelection.standard,
    config: PricingConfig = DEFAULT_CONFIG,
) -> OrderPricing:
    """
    Price a whole order. Every line is validated before anything is computed,
    so a bad line never yields a partial result.
    """
    lines: List[LineItem] = list(items)
    if not lines:
        raise EmptyOrder("an order needs at least one line item")
    for item in lines:
        validate_line(item)
    selection = ShippingSelection.parse(shipping)

    priced = tuple(price_line(item, config) for item in lines)
    subtotal = sum(p.line_total_original for p in priced)
    discount = sum(p.discount_amount for p in priced)
    after_discount = sum(p.line_total_after_discount for p in priced)
    tax = sum(p.tax_amount for p in priced)
    shipping_cost = config.shipping_cost(selection)

    return OrderPricing(
        lines=priced,
        shipping=selection,
        subtotal_original=subtotal,
        total_discount=discount,
        total_tax=tax,
        shipping_cost=shipping_cost,
        grand_total=after_discount + tax + shipping_cost,
        subtotal_after_discount=after_discount,
    )


def reprice_snapshot(
    products: Sequence[Dict[str, Any]],
    shipping: Union[ShippingSelection, str, None],
    config: PricingConfig = DEFAULT_CONFIG,
) -> OrderPricing:
    """Re-derive pricing from the line-item snapshot stored on an order."""
    return price_order([LineItem.from_dict(p) for p in products], shipping, config)
