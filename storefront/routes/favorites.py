from __future__ import annotations
from typing import Any, Dict, List
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..dependencies import get_current_user, get_products, get_users
from ..schemas.products import ProductOut
from ..services.favorites import list_favorites, toggle_favorite
from ..services.products import ProductRepository
from ..services.users import UserRepository
from .products import _coerce_out

router = APIRouter(prefix="/favorites", tags=["favorites"])


class FavoritesOut(BaseModel):
    products: List[ProductOut]
    missing: List[str]
    failed: List[str]


class ToggleOut(BaseModel):
    productId: str
    favorite: bool


@router.get("", response_model=FavoritesOut)
def favorites_list(user: Dict[str, Any] = Depends(get_current_user),
                   users: UserRepository = Depends(get_users),
                   products: ProductRepository = Depends(get_products)):
    result = list_favorites(users, products, user["id"])
    result["products"] = [_coerce_out(p) for p in result["products"]]
    return result


@router.post("/{product_id}", response_model=ToggleOut)
def favorites_toggle(product_id: str,
                     user: Dict[str, Any] = Depends(get_current_user),
                     users: UserRepository = Depends(get_users),
                     products: ProductRepository = Depends(get_products)):
    return toggle_favorite(users, products, user["id"], product_id)
