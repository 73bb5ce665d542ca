from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth, credentials, firestore, storage

from ..settings import settings

logger = logging.getLogger(__name__)


def ensure_app() -> firebase_admin.App:
    """
    Initialize the default Firebase app exactly once and return it.

    Uses GOOGLE_APPLICATION_CREDENTIALS if it points at a file, or ADC otherwise.
    """
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    options: Dict[str, Any] = {"projectId": settings.firebase_project_id}
    if settings.firebase_storage_bucket:
        options["storageBucket"] = settings.firebase_storage_bucket

    sa_path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    try:
        if sa_path and os.path.isfile(sa_path):
            return firebase_admin.initialize_app(credentials.Certificate(sa_path), options)
        return firebase_admin.initialize_app(options=options)
    except ValueError:
        # another thread initialized between our check and this call
        return firebase_admin.get_app()


@lru_cache
def ensure_firestore() -> firestore.Client:
    """
    Return a Firestore client, initializing the Firebase app exactly once.

    - Safe to call many times (and from many threads).
    """
    ensure_app()
    return firestore.client()


class AuthError(Exception):
    """The bearer token was missing, malformed, expired or revoked."""


class FirebaseAuthProvider:
    """Thin wrapper over firebase_admin.auth so routes can depend on it."""

    def verify_token(self, id_token: str) -> Dict[str, Any]:
        ensure_app()
        try:
            return auth.verify_id_token(id_token)
        except (ValueError, auth.InvalidIdTokenError, auth.ExpiredIdTokenError,
                auth.RevokedIdTokenError, auth.UserDisabledError) as e:
            raise AuthError(str(e)) from e

    def delete_user(self, uid: str) -> None:
        ensure_app()
        try:
            auth.delete_user(uid)
        except auth.UserNotFoundError:
            logger.info("auth user %s already gone", uid)


class FirebaseStorage:
    """Object storage for user uploads (profile pictures)."""

    def __init__(self, bucket_name: Optional[str] = None):
        self.bucket_name = bucket_name or settings.firebase_storage_bucket

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        ensure_app()
        bucket = storage.bucket(self.bucket_name)
        blob = bucket.blob(path)
        blob.upload_from_string(data, content_type=content_type)
        blob.make_public()
        return blob.public_url
