# storefront/services/products.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from firebase_admin import firestore

from .errors import NotFound

logger = logging.getLogger(__name__)

COLLECTION = "products"

# category spellings that mean the same shelf
_CATEGORY_ALIASES = {"women": "woman", "men": "man"}
_NO_DISCOUNT = ("", "0", "0%")


# --- CATEGORY HELPERS ---------------------------------------------------------
def _canonical(category: str) -> str:
    c = (category or "").strip().lower()
    return _CATEGORY_ALIASES.get(c, c)


def has_discount(product: Dict[str, Any]) -> bool:
    d = product.get("discount")
    if d is None:
        return False
    return str(d).strip() not in _NO_DISCOUNT


def in_category(product: Dict[str, Any], category: Optional[str]) -> bool:
    if not category:
        return True
    if category.strip().lower() == "sale":
        return has_discount(product)
    wanted = _canonical(category)
    return any(_canonical(c) == wanted for c in product.get("categories") or [])


def normalize_categories(product: Dict[str, Any]) -> List[str]:
    """
    Tidy a product's categories: add Woman when the name says so, fold
    women/woman and men/man, capitalize the rest, drop duplicates.
    """
    categories = [c for c in (product.get("categories") or []) if isinstance(c, str)]
    name = (product.get("name") or "").lower()
    has_woman = any(_canonical(c) == "woman" for c in categories)
    if not has_woman and any(w in name for w in ("women", "woman", "ladies")):
        categories.append("Woman")

    out: List[str] = []
    for c in categories:
        canon = _canonical(c)
        if canon == "woman":
            fixed = "Woman"
        elif canon == "man":
            fixed = "Man"
        else:
            trimmed = c.strip()
            fixed = trimmed[:1].upper() + trimmed[1:].lower()
        if fixed and fixed not in out:
            out.append(fixed)
    return out


def average_rating(product: Dict[str, Any]) -> float:
    ratings = [r.get("rating") for r in product.get("reviews") or [] if isinstance(r, dict)]
    ratings = [float(r) for r in ratings if isinstance(r, (int, float))]
    if not ratings:
        return 0.0
    return sum(ratings) / len(ratings)


# --- REPOSITORY ---------------------------------------------------------------
class ProductRepository:
    def __init__(self, db: firestore.Client):
        self.db = db

    def _col(self):
        return self.db.collection(COLLECTION)

    def get_product(self, product_id: str) -> Optional[Dict[str, Any]]:
        if not product_id:
            return None
        snap = self._col().document(product_id).get()
        if not snap.exists:
            return None
        data = snap.to_dict() or {}
        data["id"] = snap.id
        return data

    def list_products(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Catalog listing, newest first. `category` may be "sale" (anything with
        a discount) or a category name, matched case-insensitively.
        """
        out: List[Dict[str, Any]] = []
        for d in self._col().stream():
            data = d.to_dict() or {}
            data["id"] = d.id
            if in_category(data, category):
                out.append(data)
        out.sort(key=lambda p: str(p.get("createdAt") or ""), reverse=True)
        return out

    def recommendations(self, product_id: str, limit: int = 4) -> List[Dict[str, Any]]:
        """
        Up to `limit` other products sharing a category with `product_id`.
        With none in common, the newest other products instead.
        """
        product = self.get_product(product_id)
        if product is None:
            raise NotFound(f"product {product_id} not found")
        wanted = {_canonical(c) for c in product.get("categories") or [] if isinstance(c, str)}
        others = [p for p in self.list_products() if p["id"] != product_id]
        related = [
            p for p in others
            if wanted & {_canonical(c) for c in p.get("categories") or [] if isinstance(c, str)}
        ]
        return (related or others)[:limit]

    def create_product(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        name = (payload.get("name") or "").strip()
        if not name:
            raise ValueError("name is required")
        price = payload.get("price")
        if price is None or float(price) < 0:
            raise ValueError("price must be >= 0")

        data = {k: v for k, v in payload.items() if k != "id"}
        data["name"] = name
        data.setdefault("categories", [])
        data.setdefault("reviews", [])
        data.setdefault("createdAt", datetime.now(timezone.utc).isoformat())

        ref = self._col().document(payload["id"]) if payload.get("id") else self._col().document()
        ref.set(data)
        out = dict(data)
        out["id"] = ref.id
        return out

    def update_product(self, product_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        ref = self._col().document(product_id)
        if not ref.get().exists:
            raise NotFound(f"product {product_id} not found")
        if "price" in payload and payload["price"] is not None and float(payload["price"]) < 0:
            raise ValueError("price must be >= 0")
        ref.set(payload, merge=True)
        return self.get_product(product_id)

    def delete_product(self, product_id: str) -> None:
        if not product_id:
            raise ValueError("product_id required")
        self._col().document(product_id).delete()
        logger.info("deleted product %s", product_id)

    def set_reviews(self, product_id: str, reviews: List[Dict[str, Any]]) -> None:
        self._col().document(product_id).update({"reviews": reviews})

    def append_review(self, product_id: str, review: Dict[str, Any]) -> None:
        self._col().document(product_id).update({"reviews": firestore.ArrayUnion([review])})

    def fix_categories(self) -> int:
        """Normalize categories on every product; returns how many documents changed."""
        count = 0
        for d in self._col().stream():
            data = d.to_dict() or {}
            fixed = normalize_categories(data)
            if fixed != data.get("categories"):
                self._col().document(d.id).update({"categories": fixed})
                count += 1
        logger.info("normalized categories on %d products", count)
        return count
