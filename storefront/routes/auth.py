from __future__ import annotations
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from ..dependencies import get_current_user, get_storage, get_users
from ..services.firebase import FirebaseStorage
from ..services.users import UserRepository

router = APIRouter(prefix="/auth", tags=["auth"])

MAX_PICTURE_BYTES = 5 * 1024 * 1024


class ProfileBody(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    profilePic: Optional[str] = None


class ProfileOut(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    profilePic: Optional[str] = None
    role: str = "user"
    favorites: list[str] = []
    isBlocked: bool = False


@router.get("/me", response_model=ProfileOut)
def me(user: Dict[str, Any] = Depends(get_current_user)):
    """Profile of the signed-in user; created from the token on first call."""
    return user


@router.patch("/me", response_model=ProfileOut)
def update_me(body: ProfileBody,
              user: Dict[str, Any] = Depends(get_current_user),
              users: UserRepository = Depends(get_users)):
    try:
        return users.update_profile(user["id"], body.model_dump(exclude_unset=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/me/picture", response_model=ProfileOut)
async def upload_picture(file: UploadFile = File(...),
                         user: Dict[str, Any] = Depends(get_current_user),
                         users: UserRepository = Depends(get_users),
                         store: FirebaseStorage = Depends(get_storage)):
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="profile picture must be an image")
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="empty upload")
    if len(data) > MAX_PICTURE_BYTES:
        raise HTTPException(status_code=413, detail="profile picture is too large")
    url = await run_in_threadpool(store.upload, f"users/{user['id']}/profile.jpg", data, file.content_type)
    return users.update_profile(user["id"], {"profilePic": url})
