from __future__ import annotations
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
from challenge_matrix.auth_deps import get_current_user, get_now
from challenge_matrix.config import settings
from challenge_matrix.db import get_session
from challenge_matrix.models.user import User
from challenge_matrix.schemas.account import AccountUpdate, PasswordChange
from challenge_matrix.schemas.auth import UserPublic, user_public
from challenge_matrix.security import hash_password, verify_password
from challenge_matrix.services.media import InvalidUpload, ext_for_mime, validate_image
from challenge_matrix.services.storage import AVATARS, ObjectStorage, StorageError, get_storage

router = APIRouter(prefix="/account", tags=["account"])


@router.patch("", response_model=UserPublic)
async def update_account(payload: AccountUpdate, session: AsyncSession = Depends(get_session), user: User = Depends(get_current_user)):
    if payload.full_name is not None:
        user.full_name = payload.full_name.strip()
    if payload.office is not None:
        user.office = payload.office
    await session.commit()
    return user_public(user)


@router.post("/avatar", response_model=UserPublic)
async def upload_avatar(
    file: UploadFile = File(...),
    session: AsyncSession = Depends(get_session),
    storage: ObjectStorage = Depends(get_storage),
    user: User = Depends(get_current_user),
    now: datetime = Depends(get_now),
):
    data = await file.read()
    try:
        mime = validate_image(data, settings.avatar_max_bytes)
    except InvalidUpload as e:
        raise HTTPException(status_code=422, detail=str(e))
    try:
        user.avatar_url = storage.upload(AVATARS, f"{user.id}/{int(now.timestamp())}.{ext_for_mime(mime)}", data, mime)
    except StorageError as e:
        raise HTTPException(status_code=502, detail=str(e))
    await session.commit()
    return user_public(user)


@router.post("/password", status_code=204)
async def change_password(payload: PasswordChange, session: AsyncSession = Depends(get_session), user: User = Depends(get_current_user)):
    if not verify_password(payload.current_password, user.password_hash):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    user.password_hash = hash_password(payload.new_password)
    await session.commit()
