"""Shared fixtures: in-memory Firestore and fake Firebase auth so tests run without credentials."""
from __future__ import annotations

import copy
import os
import uuid
from typing import Any, Dict, List, Optional, Tuple

# Set dummy env vars BEFORE any app imports
os.environ.setdefault("FIREBASE_PROJECT_ID", "nexura-test")
os.environ.setdefault("EXPRESS_SHIPPING_SURCHARGE", "250")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from firebase_admin import firestore
from google.api_core import exceptions as gexc

from storefront.services.firebase import AuthError


# ---------- Fake Firestore ----------

def _apply(target: Dict[str, Any], changes: Dict[str, Any]) -> None:
    for key, value in changes.items():
        if isinstance(value, firestore.ArrayUnion):
            current = list(target.get(key) or [])
            for v in value.values:
                if v not in current:
                    current.append(v)
            target[key] = current
        else:
            target[key] = copy.deepcopy(value)


def _merge(target: Dict[str, Any], changes: Dict[str, Any]) -> None:
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(target.get(key), dict):
            _merge(target[key], value)
        else:
            _apply(target, {key: value})


class FakeSnapshot:
    def __init__(self, doc_id: str, data: Optional[Dict[str, Any]]):
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, store: Dict[str, Dict[str, Any]], doc_id: str):
        self._store = store
        self.id = doc_id

    def get(self) -> FakeSnapshot:
        return FakeSnapshot(self.id, self._store.get(self.id))

    def set(self, data: Dict[str, Any], merge: bool = False) -> None:
        if merge and self.id in self._store:
            _merge(self._store[self.id], data)
        else:
            fresh: Dict[str, Any] = {}
            _apply(fresh, data)
            self._store[self.id] = fresh

    def update(self, data: Dict[str, Any]) -> None:
        if self.id not in self._store:
            raise gexc.NotFound(f"No document to update: {self.id}")
        _apply(self._store[self.id], data)

    def delete(self) -> None:
        self._store.pop(self.id, None)


class FakeQuery:
    def __init__(self, store: Dict[str, Dict[str, Any]], filters: Tuple = ()):
        self._store = store
        self._filters = filters

    def where(self, field: str, op: str, value: Any) -> "FakeQuery":
        assert op == "==", "only equality filters are used"
        return FakeQuery(self._store, self._filters + ((field, value),))

    def stream(self):
        for doc_id, data in list(self._store.items()):
            if all(data.get(f) == v for f, v in self._filters):
                yield FakeSnapshot(doc_id, data)


class FakeCollection(FakeQuery):
    def document(self, doc_id: Optional[str] = None) -> FakeDocument:
        return FakeDocument(self._store, doc_id or uuid.uuid4().hex[:20])


class FakeFirestore:
    def __init__(self):
        self.data: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self.data.setdefault(name, {}))

    def doc(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return self.data.get(collection, {}).get(doc_id)


# ---------- Fake Firebase auth / storage ----------

TOKENS = {
    "user-token": {"uid": "u1", "name": "Asha Rao", "email": "asha@example.com"},
    "other-token": {"uid": "u2", "name": "Ben Ito", "email": "ben@example.com"},
    "admin-token": {"uid": "admin1", "name": "Admin", "email": "admin@example.com"},
}


class FakeAuthProvider:
    def __init__(self):
        self.deleted: List[str] = []

    def verify_token(self, id_token: str) -> Dict[str, Any]:
        if id_token not in TOKENS:
            raise AuthError("token not recognised")
        return dict(TOKENS[id_token])

    def delete_user(self, uid: str) -> None:
        self.deleted.append(uid)


class FakeStorage:
    def __init__(self):
        self.uploads: Dict[str, bytes] = {}

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        self.uploads[path] = data
        return f"https://storage.example.com/{path}"


def auth_header(token: str = "user-token") -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------- Fixtures ----------

@pytest.fixture()
def fake_db() -> FakeFirestore:
    db = FakeFirestore()
    db.collection("users").document("admin1").set({
        "uid": "admin1", "name": "Admin", "email": "admin@example.com",
        "role": "admin", "favorites": [], "isBlocked": False,
    })
    return db


@pytest.fixture()
def auth_provider() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture()
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture()
def seed_products(fake_db):
    """Insert products; returns a helper that adds more."""
    def _add(product_id: str, **fields):
        data = {"name": product_id.title(), "price": 100.0, "categories": [], "reviews": []}
        data.update(fields)
        fake_db.collection("products").document(product_id).set(data)
        return data

    _add("runner", name="Road Runner", price=3000.0, discount="20% OFF",
         categories=["Man", "Sports"], createdAt="2024-03-01T00:00:00+00:00")
    _add("trail", name="Trail Pro", price=5000.0, discount="",
         categories=["women"], createdAt="2024-05-01T00:00:00+00:00")
    _add("socks", name="Crew Socks", price=250.0, discount=10,
         categories=["Kids"], createdAt="2024-01-01T00:00:00+00:00")
    return _add


@pytest.fixture()
def client(fake_db, auth_provider, storage):
    """FastAPI TestClient (sync) wired to the in-memory backends."""
    from fastapi.testclient import TestClient
    from storefront import dependencies
    from storefront.main import app

    app.dependency_overrides[dependencies.get_db] = lambda: fake_db
    app.dependency_overrides[dependencies.get_auth_provider] = lambda: auth_provider
    app.dependency_overrides[dependencies.get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
