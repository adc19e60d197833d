# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
import pytz
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.models.custom_avatar import CustomAvatar
from app.models.database import get_db
from app.models.goal import Goal
from app.models.user import User
from app.schemas.auth_schemas import OnboardingRequest, ProfileUpdateRequest, UserOut
from app.schemas.goal_schemas import GoalOut
from app.services.checkin_service import get_mentor

router = APIRouter(prefix="/profile", tags=["Profile"])
logger = logging.getLogger(__name__)


def _usable_mentor(db: Session, user: User, mentor_id: int):
    mentor = get_mentor(db, mentor_id)
    if mentor is None or (mentor.is_custom and mentor.owner_id != user.id):
        raise HTTPException(status_code=404, detail="Mentor not found")
    return mentor


@router.get("", response_model=UserOut)
def get_profile(user: User = Depends(get_current_user)):
    return user


@router.patch("", response_model=UserOut)
def update_profile(payload: ProfileUpdateRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    updates = payload.model_dump(exclude_unset=True)

    if updates.get("timezone") is not None and updates["timezone"] not in pytz.all_timezones_set:
        raise HTTPException(status_code=400, detail=f"Unknown timezone: {updates['timezone']}")
    if updates.get("default_mentor_id") is not None:
        _usable_mentor(db, user, updates["default_mentor_id"])
    if updates.get("active_custom_avatar_id") is not None:
        avatar = db.query(CustomAvatar).filter(
            CustomAvatar.id == updates["active_custom_avatar_id"], CustomAvatar.user_id == user.id
        ).first()
        if avatar is None:
            raise HTTPException(status_code=404, detail="Avatar not found")

    for key, value in updates.items():
        if value is not None:
            setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user


@router.post("/onboarding")
def complete_onboarding(payload: OnboardingRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    texts = []
    for text in payload.goals:
        text = text.strip()
        if text and text not in texts:
            texts.append(text)
    if not texts:
        raise HTTPException(status_code=400, detail="At least one goal is required")

    mentor = _usable_mentor(db, user, payload.mentor_id)

    user.default_mentor_id = mentor.id
    user.preferred_mode = payload.preferred_mode
    goals = [Goal(user_id=user.id, text=text) for text in texts]
    db.add_all(goals)
    user.onboarding_completed = True
    db.commit()
    db.refresh(user)

    logger.info("🎉 User %s finished onboarding with %s", user.id, mentor.name)
    return {
        "message": "Onboarding complete",
        "profile": UserOut.model_validate(user).model_dump(mode="json"),
        "goals": [GoalOut.model_validate(g).model_dump(mode="json") for g in goals],
    }
