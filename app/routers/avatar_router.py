# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, HTTPException, Request, UploadFile
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.models.custom_avatar import CustomAvatar
from app.models.database import get_db
from app.models.user import User
from app.routers.video_router import provider_failure
from app.schemas.video_schemas import CustomAvatarOut
from app.services.mentor_video_service import (
    MediaValidationError,
    cancel_tracking,
    clone_voice,
    create_custom_avatar,
    track_training,
)
from app.services.video_provider import ProviderError, VideoProvider, get_video_provider
from app.utils.rate_limit_utils import UPLOAD_RATE, limiter

router = APIRouter(tags=["Avatars & Voices"])
logger = logging.getLogger(__name__)


def _owned_row(db: Session, user_id: int, row_id: int, avatar_type: Optional[str] = None) -> CustomAvatar:
    query = db.query(CustomAvatar).filter(CustomAvatar.id == row_id, CustomAvatar.user_id == user_id)
    if avatar_type:
        query = query.filter(CustomAvatar.avatar_type == avatar_type)
    row = query.first()
    if row is None:
        raise HTTPException(status_code=404, detail="Not found")
    return row


async def _delete_row(db: Session, provider: VideoProvider, user: User, row: CustomAvatar, kind: str):
    cancel_tracking(kind, row.id)
    if row.tavus_avatar_id:
        try:
            await provider.delete_job(kind, row.tavus_avatar_id)
        except ProviderError as e:
            logger.warning("⚠️ Could not delete provider %s %s: %s", kind, row.tavus_avatar_id, e)

    if user.active_custom_avatar_id == row.id:
        user.active_custom_avatar_id = None
    if kind == "voice" and user.custom_voice_id == row.tavus_avatar_id:
        user.custom_voice_id = None
    db.delete(row)
    db.commit()

# ---------------------------
# ✅ Avatars
# ---------------------------

@router.post("/avatars", response_model=CustomAvatarOut, status_code=202)
@limiter.limit(UPLOAD_RATE)
async def upload_avatar(
    request: Request,
    background_tasks: BackgroundTasks,
    name: str = Form(...),
    video: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: VideoProvider = Depends(get_video_provider),
):
    content = await video.read()
    try:
        avatar = await create_custom_avatar(db, provider, user, name, (video.filename, content, video.content_type))
    except MediaValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderError as e:
        raise provider_failure(e)

    background_tasks.add_task(track_training, avatar.id, provider)
    return avatar


@router.get("/avatars", response_model=List[CustomAvatarOut])
def list_my_avatars(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(CustomAvatar)
        .filter(CustomAvatar.user_id == user.id, CustomAvatar.avatar_type != "voice_clone")
        .order_by(CustomAvatar.created_at.desc())
        .all()
    )


@router.get("/avatars/provider")
async def list_provider_avatars(user: User = Depends(get_current_user),
                                provider: VideoProvider = Depends(get_video_provider)):
    try:
        return {"avatars": await provider.list_avatars(), "mock": provider.is_mock}
    except ProviderError as e:
        raise provider_failure(e)


@router.get("/avatars/{avatar_id}", response_model=CustomAvatarOut)
def get_avatar(avatar_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _owned_row(db, user.id, avatar_id)


@router.delete("/avatars/{avatar_id}")
async def delete_avatar(
    avatar_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: VideoProvider = Depends(get_video_provider),
):
    row = _owned_row(db, user.id, avatar_id)
    await _delete_row(db, provider, user, row, "voice" if row.avatar_type == "voice_clone" else "avatar")
    return {"message": "Avatar deleted", "avatar_id": avatar_id}

# ---------------------------
# ✅ Voice clones
# ---------------------------

@router.post("/voices", response_model=CustomAvatarOut, status_code=202)
@limiter.limit(UPLOAD_RATE)
async def upload_voice_samples(
    request: Request,
    background_tasks: BackgroundTasks,
    name: str = Form(...),
    language: str = Form("en"),
    base_persona_id: Optional[str] = Form(None),
    samples: List[UploadFile] = File(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: VideoProvider = Depends(get_video_provider),
):
    files = [(f.filename, await f.read(), f.content_type) for f in samples]
    try:
        voice = await clone_voice(db, provider, user, name, files, language, base_persona_id)
    except MediaValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderError as e:
        raise provider_failure(e)

    background_tasks.add_task(track_training, voice.id, provider)
    return voice


@router.get("/voices", response_model=List[CustomAvatarOut])
def list_my_voices(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(CustomAvatar)
        .filter(CustomAvatar.user_id == user.id, CustomAvatar.avatar_type == "voice_clone")
        .order_by(CustomAvatar.created_at.desc())
        .all()
    )


@router.delete("/voices/{voice_row_id}")
async def delete_voice(
    voice_row_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: VideoProvider = Depends(get_video_provider),
):
    row = _owned_row(db, user.id, voice_row_id, avatar_type="voice_clone")
    await _delete_row(db, provider, user, row, "voice")
    return {"message": "Voice deleted", "voice_id": voice_row_id}
