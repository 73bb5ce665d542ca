from __future__ import annotations
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel

from ..dependencies import get_current_user, get_orders, get_pricing_config, get_products, get_users
from ..pricing import PricingConfig
from ..schemas.orders import CartRowIn, OrderOut, PricingOut
from ..services.orders import OrderRepository, place_order, quote
from ..services.products import ProductRepository
from ..services.users import UserRepository, save_cart_quietly

router = APIRouter(prefix="/checkout", tags=["checkout"])


class QuoteBody(BaseModel):
    shipping: str = "standard"
    # omitted -> use the signed-in user's stored cart
    items: Optional[List[CartRowIn]] = None


class CheckoutBody(QuoteBody):
    address: Optional[Dict[str, Any]] = None


def _rows(body: QuoteBody, user: Dict[str, Any], users: UserRepository) -> List[Dict[str, Any]]:
    if body.items is not None:
        return [i.model_dump() for i in body.items]
    return list(users.get_cart(user["id"]).values())


@router.post("/quote", response_model=PricingOut)
def checkout_quote(
    body: QuoteBody,
    user: Dict[str, Any] = Depends(get_current_user),
    users: UserRepository = Depends(get_users),
    products: ProductRepository = Depends(get_products),
    config: PricingConfig = Depends(get_pricing_config),
):
    try:
        pricing = quote(_rows(body, user, users), body.shipping, products, config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return pricing.to_dict(rounded=True)


@router.post("", response_model=OrderOut)
def checkout(
    body: CheckoutBody,
    background: BackgroundTasks,
    user: Dict[str, Any] = Depends(get_current_user),
    users: UserRepository = Depends(get_users),
    products: ProductRepository = Depends(get_products),
    orders: OrderRepository = Depends(get_orders),
    config: PricingConfig = Depends(get_pricing_config),
):
    try:
        order = place_order(user, _rows(body, user, users), body.shipping, body.address,
                            products, orders, config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    background.add_task(save_cart_quietly, users, user["id"], {})
    return order
