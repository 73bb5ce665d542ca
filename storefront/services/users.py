# storefront/services/users.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from firebase_admin import firestore

from .errors import NotFound

logger = logging.getLogger(__name__)

COLLECTION = "users"


class UserRepository:
    def __init__(self, db: firestore.Client):
        self.db = db

    def _ref(self, uid: str):
        return self.db.collection(COLLECTION).document(uid)

    def get_user(self, uid: str) -> Optional[Dict[str, Any]]:
        snap = self._ref(uid).get()
        if not snap.exists:
            return None
        data = snap.to_dict() or {}
        data["id"] = snap.id
        return data

    def ensure_user(self, uid: str, claims: Dict[str, Any]) -> Dict[str, Any]:
        """Return the profile for `uid`, creating it from token claims on first sight."""
        existing = self.get_user(uid)
        if existing is not None:
            return existing
        data = {
            "uid": uid,
            "name": claims.get("name") or "",
            "email": claims.get("email") or "",
            "profilePic": claims.get("picture") or "",
            "role": "user",
            "favorites": [],
            "isBlocked": False,
        }
        self._ref(uid).set(data)
        logger.info("created profile for %s", uid)
        data["id"] = uid
        return data

    def update_profile(self, uid: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        allowed = {k: v for k, v in payload.items() if k in ("name", "profilePic")}
        if not allowed:
            raise ValueError("nothing to update")
        self._ref(uid).set(allowed, merge=True)
        return self.get_user(uid) or {}

    def list_users(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for snap in self.db.collection(COLLECTION).stream():
            row = snap.to_dict() or {}
            row["id"] = snap.id
            out.append(row)
        return out

    def set_blocked(self, uid: str, blocked: bool) -> Dict[str, Any]:
        if self.get_user(uid) is None:
            raise NotFound(f"user {uid} not found")
        self._ref(uid).set({"isBlocked": bool(blocked)}, merge=True)
        logger.info("user %s %s", uid, "blocked" if blocked else "unblocked")
        return self.get_user(uid) or {}

    def delete_user(self, uid: str) -> None:
        self._ref(uid).delete()

    # --- favorites ---
    def get_favorites(self, uid: str) -> List[str]:
        user = self.get_user(uid) or {}
        favs = user.get("favorites") or []
        return [f for f in favs if isinstance(f, str)]

    def toggle_favorite(self, uid: str, product_id: str) -> bool:
        """Add or remove `product_id`; returns True when it is now a favorite."""
        favorites = self.get_favorites(uid)
        if product_id in favorites:
            favorites = [f for f in favorites if f != product_id]
            added = False
        else:
            favorites.append(product_id)
            added = True
        self._ref(uid).set({"favorites": favorites}, merge=True)
        return added

    # --- cart ---
    def get_cart(self, uid: str) -> Dict[str, Any]:
        user = self.get_user(uid) or {}
        cart = user.get("cart")
        return cart if isinstance(cart, dict) else {}

    def save_cart(self, uid: str, snapshot: Dict[str, Any]) -> None:
        ref = self._ref(uid)
        if ref.get().exists:
            # update() replaces the whole map; set(merge=True) would keep removed rows
            ref.update({"cart": snapshot})
        else:
            ref.set({"cart": snapshot})


def save_cart_quietly(users: UserRepository, uid: str, snapshot: Dict[str, Any]) -> None:
    """Best-effort cart write for background tasks: failures are logged, not raised."""
    try:
        users.save_cart(uid, snapshot)
    except Exception:
        logger.exception("could not persist cart for %s", uid)
