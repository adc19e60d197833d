# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.models.database import get_db
from app.models.user import User
from app.models.video_generation import VideoGeneration
from app.schemas.video_schemas import JobStatusOut, VideoGenerationOut, VideoRequest
from app.services.checkin_service import get_checkin, get_mentor
from app.services.mentor_video_service import cancel_tracking, start_mentor_video, track_video_generation
from app.services.video_provider import JOB_KINDS, ProviderError, VideoProvider, get_video_provider

router = APIRouter(prefix="/videos", tags=["Videos"])
logger = logging.getLogger(__name__)


def provider_failure(e: ProviderError) -> HTTPException:
    return HTTPException(status_code=502, detail=e.message)


def _owned_generation(db: Session, user_id: int, generation_id: int) -> VideoGeneration:
    generation = db.query(VideoGeneration).filter(
        VideoGeneration.id == generation_id, VideoGeneration.user_id == user_id
    ).first()
    if generation is None:
        raise HTTPException(status_code=404, detail="Video not found")
    return generation


@router.post("", response_model=VideoGenerationOut, status_code=202)
async def request_video(
    payload: VideoRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: VideoProvider = Depends(get_video_provider),
):
    mentor = get_mentor(db, payload.mentor_id)
    if mentor is None or (mentor.is_custom and mentor.owner_id != user.id):
        raise HTTPException(status_code=404, detail="Mentor not found")
    if payload.checkin_id is not None and get_checkin(db, user.id, payload.checkin_id) is None:
        raise HTTPException(status_code=404, detail="Check-in not found")

    try:
        generation = await start_mentor_video(db, provider, user, mentor, payload.script, checkin_id=payload.checkin_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderError as e:
        raise provider_failure(e)

    background_tasks.add_task(track_video_generation, generation.id, provider)
    return generation


@router.get("", response_model=List[VideoGenerationOut])
def list_videos(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return (
        db.query(VideoGeneration)
        .filter(VideoGeneration.user_id == user.id)
        .order_by(VideoGeneration.created_at.desc())
        .limit(50)
        .all()
    )


@router.get("/jobs/{kind}/{job_id}", response_model=JobStatusOut)
async def get_job_status(kind: str, job_id: str, user: User = Depends(get_current_user),
                         provider: VideoProvider = Depends(get_video_provider)):
    if kind not in JOB_KINDS:
        raise HTTPException(status_code=400, detail=f"kind must be one of {', '.join(JOB_KINDS)}")
    try:
        job = await provider.get_job(kind, job_id)
    except ProviderError as e:
        raise provider_failure(e)
    return JobStatusOut(**vars(job))


@router.get("/{generation_id}", response_model=VideoGenerationOut)
def get_video(generation_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _owned_generation(db, user.id, generation_id)


@router.delete("/{generation_id}")
async def delete_video(
    generation_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: VideoProvider = Depends(get_video_provider),
):
    generation = _owned_generation(db, user.id, generation_id)
    cancel_tracking("video", generation.id)

    if generation.tavus_request_id:
        try:
            await provider.delete_video(generation.tavus_request_id)
        except ProviderError as e:
            # Provider side may already be gone
            logger.warning("⚠️ Could not delete provider video %s: %s", generation.tavus_request_id, e)

    db.delete(generation)
    db.commit()
    return {"message": "Video deleted", "generation_id": generation_id}
