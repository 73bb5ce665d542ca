from __future__ import annotations
from typing import Optional, Dict, Any, List
from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_current_user, get_products
from ..gallery import main_image, resolve_gallery
from ..schemas.products import GalleryOut, ProductOut, ReviewIn, ReviewOut
from ..services import reviews as review_service
from ..services.products import ProductRepository, average_rating

router = APIRouter(prefix="/products", tags=["products"])


# ---- Helpers -----------------------------------------------------------------
def _coerce_out(product: Dict[str, Any]) -> ProductOut:
    return ProductOut(**{
        **product,
        "averageRating": round(average_rating(product), 2),
        "reviewCount": len(product.get("reviews") or []),
        "mainImage": main_image(product),
    })


# ---- Routes ------------------------------------------------------------------
# GET /products?category=sale
@router.get("", response_model=List[ProductOut])
def list_products_endpoint(
    category: Optional[str] = Query(None),
    products: ProductRepository = Depends(get_products),
):
    return [_coerce_out(p) for p in products.list_products(category)]


@router.get("/{product_id}", response_model=ProductOut)
def get_product_endpoint(product_id: str, products: ProductRepository = Depends(get_products)):
    product = products.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="product not found")
    return _coerce_out(product)


@router.get("/{product_id}/gallery", response_model=GalleryOut)
def product_gallery(
    product_id: str,
    color: Optional[str] = Query(None),
    products: ProductRepository = Depends(get_products),
):
    product = products.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="product not found")
    key, images = resolve_gallery(product, color)
    return GalleryOut(productId=product_id, color=key, images=images,
                      mainImage=main_image(product, color))


@router.get("/{product_id}/recommendations", response_model=List[ProductOut])
def product_recommendations(
    product_id: str,
    limit: int = Query(4, ge=1, le=20),
    products: ProductRepository = Depends(get_products),
):
    return [_coerce_out(p) for p in products.recommendations(product_id, limit)]


@router.get("/{product_id}/reviews", response_model=List[ReviewOut])
def list_reviews_endpoint(product_id: str, products: ProductRepository = Depends(get_products)):
    return review_service.list_reviews(products, product_id)


@router.post("/{product_id}/reviews", response_model=ReviewOut)
def submit_review_endpoint(
    product_id: str,
    body: ReviewIn,
    user: Dict[str, Any] = Depends(get_current_user),
    products: ProductRepository = Depends(get_products),
):
    try:
        return review_service.submit_review(products, product_id, user, body.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
