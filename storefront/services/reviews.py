from __future__ import annotations
from typing import Dict, Any, List
from datetime import datetime, timezone
import logging

from .errors import NotFound
from .products import ProductRepository

logger = logging.getLogger(__name__)


def submit_review(products: ProductRepository, product_id: str,
                  user: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Append a review to the product document:
      { reviewerName, reviewerPhoto, reviewerEmail, rating, reviewText, date }
    """
    if products.get_product(product_id) is None:
        raise NotFound(f"product {product_id} not found")

    rating = int(payload.get("rating") or 0)
    text = (payload.get("reviewText") or "").strip()
    if rating < 1 or rating > 5:
        raise ValueError("please select a star rating between 1 and 5")
    if not text:
        raise ValueError("please write a review text")

    review: Dict[str, Any] = {
        "reviewerName": user.get("name") or "Anonymous",
        "reviewerPhoto": user.get("profilePic") or "",
        "reviewerEmail": user.get("email") or "",
        "rating": rating,
        "reviewText": text,
        "date": datetime.now(timezone.utc).date().isoformat(),
    }
    products.append_review(product_id, review)
    return review


def list_reviews(products: ProductRepository, product_id: str) -> List[Dict[str, Any]]:
    """
    Newest first. Each review carries `index`, its position in the stored
    array, which is what `delete_review` takes.
    """
    product = products.get_product(product_id)
    if product is None:
        raise NotFound(f"product {product_id} not found")
    reviews = [dict(r, index=i) for i, r in enumerate(product.get("reviews") or []) if isinstance(r, dict)]
    return list(reversed(reviews))


def rated_products(products: ProductRepository) -> List[Dict[str, Any]]:
    return [p for p in products.list_products() if p.get("reviews")]


def delete_review(products: ProductRepository, product_id: str, index: int) -> List[Dict[str, Any]]:
    """Remove the review at `index` (position in the stored array)."""
    product = products.get_product(product_id)
    if product is None:
        raise NotFound(f"product {product_id} not found")
    reviews = list(product.get("reviews") or [])
    if index < 0 or index >= len(reviews):
        raise NotFound(f"review {index} not found on product {product_id}")
    remaining = [r for i, r in enumerate(reviews) if i != index]
    products.set_reviews(product_id, remaining)
    logger.info("deleted review %d on product %s", index, product_id)
    return remaining
