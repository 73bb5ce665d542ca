from __future__ import annotations
from typing import Any, Dict, Optional
from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel, Field

from ..cart import Cart
from ..dependencies import get_current_user, get_users
from ..services.users import UserRepository, save_cart_quietly

router = APIRouter(prefix="/cart", tags=["cart"])


class AddBody(BaseModel):
    productId: str = Field(..., min_length=1)
    quantity: int = 1
    color: Optional[str] = None
    size: Optional[str] = None


class QuantityBody(BaseModel):
    quantity: int


class CartOut(BaseModel):
    items: Dict[str, Dict[str, Any]]
    totalQuantity: int


def _load_cart(user: Dict[str, Any], users: UserRepository, background: BackgroundTasks) -> Cart:
    uid = user["id"]
    # writes run after the response; the cart never waits on storage
    return Cart.from_dict(
        users.get_cart(uid),
        on_change=lambda snapshot: background.add_task(save_cart_quietly, users, uid, snapshot),
    )


def _out(cart: Cart) -> CartOut:
    return CartOut(items=cart.to_dict(), totalQuantity=cart.total_quantity())


@router.get("", response_model=CartOut)
def get_cart(user: Dict[str, Any] = Depends(get_current_user),
             users: UserRepository = Depends(get_users)):
    return _out(Cart.from_dict(users.get_cart(user["id"])))


@router.post("/items", response_model=CartOut)
def add_to_cart(body: AddBody, background: BackgroundTasks,
                user: Dict[str, Any] = Depends(get_current_user),
                users: UserRepository = Depends(get_users)):
    cart = _load_cart(user, users, background)
    cart.add(body.productId, body.quantity, body.color, body.size)
    return _out(cart)


@router.patch("/items/{product_id}", response_model=CartOut)
def update_quantity(product_id: str, body: QuantityBody, background: BackgroundTasks,
                    user: Dict[str, Any] = Depends(get_current_user),
                    users: UserRepository = Depends(get_users)):
    cart = _load_cart(user, users, background)
    cart.set_quantity(product_id, body.quantity)
    return _out(cart)


@router.delete("/items/{product_id}", response_model=CartOut)
def remove_from_cart(product_id: str, background: BackgroundTasks,
                     user: Dict[str, Any] = Depends(get_current_user),
                     users: UserRepository = Depends(get_users)):
    cart = _load_cart(user, users, background)
    cart.remove(product_id)
    return _out(cart)


@router.delete("", response_model=CartOut)
def clear_cart(background: BackgroundTasks,
               user: Dict[str, Any] = Depends(get_current_user),
               users: UserRepository = Depends(get_users)):
    cart = _load_cart(user, users, background)
    cart.clear()
    return _out(cart)
