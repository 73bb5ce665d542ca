# storefront/gallery.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


def normalize(s: Optional[str]) -> str:
    return s.strip().lower() if s else ""


def find_matching_key(image_urls: Optional[Dict[str, Any]], color: Optional[str]) -> Optional[str]:
    """Exact key first, then a case/whitespace-insensitive match."""
    if not image_urls or not color:
        return None
    if color in image_urls:
        return color
    target = normalize(color)
    for key in image_urls:
        if normalize(key) == target:
            return key
    logger.debug("no image key for color %r (available: %s)", color, list(image_urls))
    return None


def _valid(urls: Any) -> List[str]:
    if not isinstance(urls, list):
        return []
    return [u for u in urls if isinstance(u, str) and u.strip()]


def _has_images(image_urls: Dict[str, Any], key: Optional[str]) -> bool:
    return bool(key) and bool(_valid(image_urls.get(key)))


def effective_color(product: Dict[str, Any], selected_color: Optional[str] = None) -> str:
    image_urls: Dict[str, Any] = product.get("imageUrls") or {}

    if selected_color:
        match = find_matching_key(image_urls, selected_color)
        if match:
            return match

    if _has_images(image_urls, "default"):
        return "default"

    match = find_matching_key(image_urls, product.get("defaultColorName"))
    if match:
        return match

    for color in product.get("colors") or []:
        match = find_matching_key(image_urls, color)
        if match:
            return match

    for key in image_urls:
        if _valid(image_urls[key]):
            return key

    return "default"


def resolve_gallery(product: Dict[str, Any], selected_color: Optional[str] = None) -> Tuple[str, List[str]]:
    """Return the color key to display and its non-blank image urls."""
    key = effective_color(product, selected_color)
    return key, _valid((product.get("imageUrls") or {}).get(key))


def main_image(product: Dict[str, Any], selected_color: Optional[str] = None) -> str:
    _, images = resolve_gallery(product, selected_color)
    if images:
        return images[0]
    if product.get("defaultImage"):
        return product["defaultImage"]
    for urls in (product.get("imageUrls") or {}).values():
        valid = _valid(urls)
        if valid:
            return valid[0]
    return ""
