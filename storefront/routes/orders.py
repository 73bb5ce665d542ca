from __future__ import annotations
from typing import Any, Dict, List
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..dependencies import get_current_user, get_orders
from ..schemas.orders import OrderOut
from ..services.errors import NotFound
from ..services.orders import OrderRepository


router = APIRouter(prefix="/orders", tags=["orders"])


class CancelBody(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


@router.get("", response_model=List[OrderOut])
def my_orders(user: Dict[str, Any] = Depends(get_current_user),
              orders: OrderRepository = Depends(get_orders)):
    """Signed-in user's orders, newest first."""
    return orders.list_orders_by_user(user["id"])


@router.get("/{order_id}", response_model=OrderOut)
def my_order(order_id: str,
             user: Dict[str, Any] = Depends(get_current_user),
             orders: OrderRepository = Depends(get_orders)):
    order = orders.get_order(order_id)
    if not order or order.get("userId") != user["id"]:
        raise NotFound(f"order {order_id} not found")
    return order


@router.post("/{order_id}/cancel", response_model=OrderOut)
def request_cancellation(order_id: str, body: CancelBody,
                         user: Dict[str, Any] = Depends(get_current_user),
                         orders: OrderRepository = Depends(get_orders)):
    try:
        return orders.request_cancellation(order_id, user["id"], body.reason)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
