from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, status

from .pricing import PricingConfig
from .services.firebase import AuthError, FirebaseAuthProvider, FirebaseStorage, ensure_firestore
from .services.orders import OrderRepository
from .services.products import ProductRepository
from .services.users import UserRepository
from .settings import settings


def get_db():
    return ensure_firestore()


def get_products(db=Depends(get_db)) -> ProductRepository:
    return ProductRepository(db)


def get_orders(db=Depends(get_db)) -> OrderRepository:
    return OrderRepository(db)


def get_users(db=Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_auth_provider() -> FirebaseAuthProvider:
    return FirebaseAuthProvider()


def get_storage() -> FirebaseStorage:
    return FirebaseStorage()


def get_pricing_config() -> PricingConfig:
    return settings.pricing_config()


def _bearer(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="missing bearer token",
                            headers={"WWW-Authenticate": "Bearer"})
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail="invalid authorization header",
                            headers={"WWW-Authenticate": "Bearer"})
    return token.strip()


def get_current_user(
    authorization: Optional[str] = Header(None),
    provider: FirebaseAuthProvider = Depends(get_auth_provider),
    users: UserRepository = Depends(get_users),
) -> Dict[str, Any]:
    token = _bearer(authorization)
    try:
        claims = provider.verify_token(token)
    except AuthError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                            detail=f"invalid token: {e}",
                            headers={"WWW-Authenticate": "Bearer"})
    uid = claims.get("uid") or claims.get("sub")
    if not uid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token payload")
    return users.ensure_user(uid, claims)


def require_admin(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if current_user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
