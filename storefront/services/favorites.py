from __future__ import annotations
from typing import Dict, Any

from .errors import NotFound
from .fanout import fetch_all
from .products import ProductRepository
from .users import UserRepository


def toggle_favorite(users: UserRepository, products: ProductRepository,
                    uid: str, product_id: str) -> Dict[str, Any]:
    favorites = users.get_favorites(uid)
    # removing a favorite whose product was since deleted is still allowed
    if product_id not in favorites and products.get_product(product_id) is None:
        raise NotFound(f"product {product_id} not found")
    added = users.toggle_favorite(uid, product_id)
    return {"productId": product_id, "favorite": added}


def list_favorites(users: UserRepository, products: ProductRepository, uid: str) -> Dict[str, Any]:
    """
    Load every favorite product in parallel. Missing products and failed
    lookups are reported next to the products that did load.
    """
    result = fetch_all(users.get_favorites(uid), products.get_product)
    return {
        "products": list(result.found.values()),
        "missing": result.missing,
        "failed": sorted(result.failed),
    }
