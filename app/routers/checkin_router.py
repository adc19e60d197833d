# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.auth import get_current_user
from app.models.database import get_db
from app.models.user import User
from app.schemas.checkin_schemas import CheckinCreate, CheckinOut
from app.services.checkin_service import (
    MAX_CHECKINS_LOADED,
    CheckinValidationError,
    get_checkin,
    list_checkins,
    submit_checkin,
)
from app.services.mentor_video_service import start_mentor_video, track_video_generation
from app.services.video_provider import ProviderError, VideoProvider, get_video_provider
from app.utils.rate_limit_utils import CHECKIN_RATE, limiter

router = APIRouter(prefix="/checkins", tags=["Check-ins"])
logger = logging.getLogger(__name__)


@router.post("", status_code=201)
@limiter.limit(CHECKIN_RATE)
async def create_checkin(
    request: Request,
    payload: CheckinCreate,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: VideoProvider = Depends(get_video_provider),
):
    # The mentor reply blocks on the LLM call, keep it off the event loop
    try:
        checkin, response, streak = await run_in_threadpool(
            submit_checkin,
            db,
            user,
            mood_score=payload.mood_score,
            goal_status=[g.model_dump() for g in payload.goal_status],
            reflection=payload.reflection,
            mentor_id=payload.mentor_id,
            emotion_score=payload.emotion_score,
            mode=payload.mode,
        )
    except CheckinValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))

    video = None
    if payload.generate_video:
        # The check-in is already saved, a video failure only drops the video
        try:
            generation = await start_mentor_video(
                db, provider, user, checkin.mentor, response.response_text,
                checkin_id=checkin.id, mentor_response_id=response.id,
            )
            background_tasks.add_task(track_video_generation, generation.id, provider)
            video = {"generation_id": generation.id, "status": generation.status}
        except (ValueError, ProviderError) as e:
            logger.warning("⚠️ Mentor video skipped for check-in %s: %s", checkin.id, e)
            video = {"generation_id": None, "status": "unavailable", "error": str(e)}

    return {
        "message": "Check-in recorded",
        "checkin": CheckinOut.model_validate(checkin).model_dump(mode="json"),
        "streak": {"current_streak": streak.current_streak, "longest_streak": streak.longest_streak},
        "video": video,
    }


@router.get("", response_model=List[CheckinOut])
def get_checkins(
    limit: int = Query(30, ge=1, le=MAX_CHECKINS_LOADED),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return list_checkins(db, user.id, limit)


@router.get("/{checkin_id}", response_model=CheckinOut)
def get_checkin_by_id(checkin_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    checkin = get_checkin(db, user.id, checkin_id)
    if checkin is None:
        raise HTTPException(status_code=404, detail="Check-in not found")
    return checkin
