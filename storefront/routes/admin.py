from __future__ import annotations
from typing import Any, Dict, List, Literal
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..dependencies import (
    get_auth_provider,
    get_orders,
    get_pricing_config,
    get_products,
    get_users,
    require_admin,
)
from ..pricing import PricingConfig
from ..schemas.orders import OrderDetailOut, OrderOut, UserOrdersOut
from ..schemas.products import ProductIn, ProductOut, ProductPatch
from ..services import reviews as review_service
from ..services.errors import NotFound
from ..services.firebase import FirebaseAuthProvider
from ..services.orders import OrderRepository, lifetime_value, order_detail
from ..services.products import ProductRepository
from ..services.users import UserRepository
from .products import _coerce_out

# every route here needs an admin
router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


class StatusBody(BaseModel):
    status: str


class CancellationBody(BaseModel):
    action: Literal["accept", "reject"]


class BlockBody(BaseModel):
    blocked: bool


class UserRowOut(BaseModel):
    id: str
    name: str | None = None
    email: str | None = None
    profilePic: str | None = None
    role: str = "user"
    isBlocked: bool = False
    orderCount: int = 0


# ---- Orders ------------------------------------------------------------------
@router.get("/orders", response_model=List[OrderOut])
def all_orders(orders: OrderRepository = Depends(get_orders)):
    """Every order, newest first."""
    return orders.list_orders()


@router.get("/orders/{order_id}", response_model=OrderDetailOut)
def order_detail_endpoint(order_id: str,
                          orders: OrderRepository = Depends(get_orders),
                          config: PricingConfig = Depends(get_pricing_config)):
    """
    Order with its pricing re-derived from the stored line items, plus
    whether that matches the price recorded at checkout.
    """
    return order_detail(orders.require_order(order_id), config)


@router.patch("/orders/{order_id}/status", response_model=OrderOut)
def update_status(order_id: str, body: StatusBody, orders: OrderRepository = Depends(get_orders)):
    try:
        return orders.update_order_status(order_id, body.status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/orders/{order_id}/cancellation", response_model=OrderOut)
def handle_cancellation(order_id: str, body: CancellationBody,
                        orders: OrderRepository = Depends(get_orders)):
    return orders.resolve_cancellation(order_id, accept=body.action == "accept")


@router.delete("/orders/{order_id}")
def delete_order(order_id: str, orders: OrderRepository = Depends(get_orders)):
    orders.delete_order(order_id)
    return {"ok": True}


# ---- Users -------------------------------------------------------------------
@router.get("/users", response_model=List[UserRowOut])
def all_users(users: UserRepository = Depends(get_users),
              orders: OrderRepository = Depends(get_orders)):
    counts: Dict[str, int] = {}
    for o in orders.list_orders():
        uid = o.get("userId")
        if uid:
            counts[uid] = counts.get(uid, 0) + 1
    return [UserRowOut(**{**u, "orderCount": counts.get(u["id"], 0)}) for u in users.list_users()]


@router.get("/users/{uid}/orders", response_model=UserOrdersOut)
def user_orders(uid: str, orders: OrderRepository = Depends(get_orders)):
    rows = orders.list_orders_by_user(uid)
    return UserOrdersOut(userId=uid, orders=rows, orderCount=len(rows),
                         lifetimeValue=round(lifetime_value(rows), 2))


@router.patch("/users/{uid}/block", response_model=UserRowOut)
def block_user(uid: str, body: BlockBody, users: UserRepository = Depends(get_users)):
    return users.set_blocked(uid, body.blocked)


@router.delete("/users/{uid}")
def delete_user(uid: str,
                users: UserRepository = Depends(get_users),
                provider: FirebaseAuthProvider = Depends(get_auth_provider)):
    if users.get_user(uid) is None:
        raise NotFound(f"user {uid} not found")
    users.delete_user(uid)
    provider.delete_user(uid)
    return {"ok": True}


# ---- Products ----------------------------------------------------------------
@router.post("/products", response_model=ProductOut)
def create_product(payload: ProductIn, products: ProductRepository = Depends(get_products)):
    try:
        return _coerce_out(products.create_product(payload.model_dump(exclude_unset=True)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(product_id: str, payload: ProductPatch,
                   products: ProductRepository = Depends(get_products)):
    try:
        return _coerce_out(products.update_product(product_id, payload.model_dump(exclude_unset=True)))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/products/{product_id}")
def delete_product(product_id: str, products: ProductRepository = Depends(get_products)):
    products.delete_product(product_id)
    return {"ok": True}


@router.post("/products/fix-categories")
def fix_categories(products: ProductRepository = Depends(get_products)):
    return {"ok": True, "updated": products.fix_categories()}


# ---- Reviews -----------------------------------------------------------------
@router.get("/reviews", response_model=List[ProductOut])
def rated_products(products: ProductRepository = Depends(get_products)):
    return [_coerce_out(p) for p in review_service.rated_products(products)]


@router.delete("/products/{product_id}/reviews/{index}")
def delete_review(product_id: str, index: int, products: ProductRepository = Depends(get_products)):
    remaining = review_service.delete_review(products, product_id, index)
    return {"ok": True, "remaining": len(remaining)}
