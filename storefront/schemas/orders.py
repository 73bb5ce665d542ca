from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class CartRowIn(BaseModel):
    productId: str = Field(..., min_length=1)
    quantity: int
    color: Optional[str] = None
    size: Optional[str] = None


class LinePricingOut(BaseModel):
    productId: str
    name: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    quantity: int
    unitPrice: Optional[float] = None
    discount: Optional[Any] = None
    lineTotalOriginal: float
    discountPercent: float
    discountAmount: float
    lineTotalAfterDiscount: float
    discountedUnitPrice: float
    taxRate: float
    taxAmount: float


class PricingOut(BaseModel):
    shipping: str
    subtotalOriginal: float
    totalDiscount: float
    subtotalAfterDiscount: float
    totalTax: float
    shippingCost: float
    grandTotal: float
    lines: List[LinePricingOut]


class OrderOut(BaseModel):
    # stored orders may carry extra legacy fields; pass them through
    model_config = ConfigDict(extra="allow")

    orderId: str
    userId: Optional[str] = None
    userName: Optional[str] = None
    status: str
    timestamp: Optional[str] = None
    shipping: Optional[str] = None
    price: Optional[float] = None
    products: List[Dict[str, Any]] = []
    address: Optional[Dict[str, Any]] = None
    cancellationReason: Optional[str] = None


class OrderDetailOut(OrderOut):
    priceMatches: bool
    # None when the stored snapshot cannot be priced
    derivedPricing: Optional[PricingOut] = None
    derivationError: Optional[str] = None


class UserOrdersOut(BaseModel):
    userId: str
    orders: List[OrderOut]
    orderCount: int
    lifetimeValue: float
