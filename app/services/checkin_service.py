# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
import time
from datetime import datetime
from typing import List, Optional

import pytz
from sqlalchemy.orm import Session

from app.models.checkin import Checkin
from app.models.mentor import Mentor
from app.models.mentor_response import MentorResponse
from app.models.user import CheckinMode, User
from app.services.ai_mentor_service import generate_checkin_response
from app.services.checkin_analytics import StreakSummary, calculate_streaks

logger = logging.getLogger(__name__)

MAX_CHECKINS_LOADED = 200


class CheckinValidationError(ValueError):
    pass


def user_timezone(user: User):
    try:
        return pytz.timezone(user.timezone or "UTC")
    except pytz.UnknownTimeZoneError:
        logger.warning("⚠️ Unknown timezone %s for user %s, using UTC", user.timezone, user.id)
        return pytz.utc

# -------------------------------
# Repository
# -------------------------------

def list_checkins(db: Session, user_id: int, limit: int = MAX_CHECKINS_LOADED) -> List[Checkin]:
    return (
        db.query(Checkin)
        .filter(Checkin.user_id == user_id)
        .order_by(Checkin.created_at.desc())
        .limit(limit)
        .all()
    )


def checkin_timestamps(db: Session, user_id: int) -> list:
    """Every check-in time for the user, oldest first. Streaks need the full history."""
    return (
        db.query(Checkin.created_at)
        .filter(Checkin.user_id == user_id)
        .order_by(Checkin.created_at.asc())
        .all()
    )


def list_checkins_chronological(db: Session, user_id: int, limit: int = MAX_CHECKINS_LOADED) -> List[Checkin]:
    # Aggregations break ties by first-seen order
    return list(reversed(list_checkins(db, user_id, limit)))


def get_checkin(db: Session, user_id: int, checkin_id: int) -> Optional[Checkin]:
    return db.query(Checkin).filter(Checkin.id == checkin_id, Checkin.user_id == user_id).first()


def create_checkin(db: Session, user_id: int, payload: dict) -> Checkin:
    checkin = Checkin(
        user_id=user_id,
        mentor_id=payload["mentor_id"],
        mode=payload.get("mode") or CheckinMode.classic,
        mood_score=payload["mood_score"],
        emotion_score=payload.get("emotion_score"),
        goal_status=payload.get("goal_status") or [],
        reflection=payload.get("reflection"),
        created_at=payload.get("created_at") or datetime.utcnow(),
    )
    db.add(checkin)
    db.commit()
    db.refresh(checkin)
    return checkin


def get_mentor(db: Session, mentor_id: int) -> Optional[Mentor]:
    return db.query(Mentor).filter(Mentor.id == mentor_id).first()

# -------------------------------
# Submission
# -------------------------------

def validate_checkin(mood_score: int, goal_status: List[dict], emotion_score: Optional[int] = None) -> None:
    if not isinstance(mood_score, int) or not 1 <= mood_score <= 10:
        raise CheckinValidationError("mood_score must be between 1 and 10")
    if emotion_score is not None and not 1 <= emotion_score <= 10:
        raise CheckinValidationError("emotion_score must be between 1 and 10")

    seen = set()
    for goal in goal_status:
        text = (goal.get("goal_text") or "").strip()
        if not text:
            raise CheckinValidationError("goal_text cannot be empty")
        if text in seen:
            raise CheckinValidationError(f"Duplicate goal in check-in: {text}")
        seen.add(text)


def submit_checkin(
    db: Session,
    user: User,
    mood_score: int,
    goal_status: List[dict],
    reflection: Optional[str] = None,
    mentor_id: Optional[int] = None,
    emotion_score: Optional[int] = None,
    mode: Optional[CheckinMode] = None,
    now: Optional[datetime] = None,
):
    """
    Store a check-in and the mentor's reply to it.
    Returns (checkin, mentor_response, streak).
    """
    goal_status = [dict(g, goal_text=(g.get("goal_text") or "").strip()) for g in goal_status]
    validate_checkin(mood_score, goal_status, emotion_score)

    mentor_id = mentor_id or user.default_mentor_id
    if not mentor_id:
        raise CheckinValidationError("No mentor selected. Complete onboarding or pass mentor_id.")
    mentor = get_mentor(db, mentor_id)
    if mentor is None or (mentor.is_custom and mentor.owner_id != user.id):
        raise LookupError(f"Mentor {mentor_id} not found")

    now = now or datetime.utcnow()
    checkin = create_checkin(db, user.id, {
        "mentor_id": mentor.id,
        "mode": mode or user.preferred_mode,
        "mood_score": mood_score,
        "emotion_score": emotion_score,
        "goal_status": goal_status,
        "reflection": reflection,
        "created_at": now,
    })
    logger.info("📝 Check-in %s stored for user %s (mood %s)", checkin.id, user.id, mood_score)

    streak = calculate_streaks(checkin_timestamps(db, user.id), now, user_timezone(user))

    started = time.monotonic()
    reply = generate_checkin_response(mentor, mood_score, goal_status, reflection, streak.current_streak)
    elapsed_ms = int((time.monotonic() - started) * 1000)

    response = MentorResponse(
        checkin_id=checkin.id,
        mentor_id=mentor.id,
        user_id=user.id,
        prompt_data={"mood_score": mood_score, "goals": goal_status, "streak": streak.current_streak},
        response_text=reply["response"],
        response_metadata=reply["metadata"],
        generation_time_ms=elapsed_ms,
    )
    db.add(response)
    db.commit()
    db.refresh(response)
    db.refresh(checkin)

    if reply["metadata"].get("is_fallback"):
        logger.info("ℹ️ Check-in %s answered with %s fallback", checkin.id, mentor.name)

    return checkin, response, streak


def current_streak(db: Session, user: User, now: Optional[datetime] = None) -> StreakSummary:
    return calculate_streaks(checkin_timestamps(db, user.id), now or datetime.utcnow(), user_timezone(user))
