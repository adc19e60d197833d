# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

from dataclasses import asdict
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.models.database import get_db
from app.models.goal import Goal
from app.models.mentor import Mentor
from app.models.user import User
from app.services import checkin_analytics as analytics
from app.services.checkin_service import checkin_timestamps, list_checkins_chronological, user_timezone
from app.services.goal_recommendation_service import recommend_goals

router = APIRouter(prefix="/analytics", tags=["Analytics"])

PROGRESS_TIMEFRAMES = {"week": 7, "month": 30, "3months": 90}
MENTOR_TIMEFRAMES = {"week": 7, "month": 30, "all": None}


def _mentor_names(db: Session, mentor_ids) -> dict:
    ids = [m for m in mentor_ids if m is not None]
    if not ids:
        return {}
    return {m.id: m.name for m in db.query(Mentor).filter(Mentor.id.in_(ids)).all()}


def _usage(db: Session, usage) -> list:
    names = _mentor_names(db, [u.mentor_id for u in usage])
    return [{"mentor_id": u.mentor_id, "mentor_name": names.get(u.mentor_id), "count": u.count} for u in usage]


@router.get("/streak")
def get_streak(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    summary = analytics.calculate_streaks(checkin_timestamps(db, user.id), datetime.utcnow(), user_timezone(user))
    return asdict(summary)


@router.get("/weekly")
def get_weekly_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    stats = analytics.weekly_stats(list_checkins_chronological(db, user.id), datetime.utcnow())
    result = asdict(stats)
    result["mentor_usage"] = _usage(db, stats.mentor_usage)
    return result


@router.get("/progress")
def get_progress(timeframe: str = "week", user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    days = PROGRESS_TIMEFRAMES.get(timeframe)
    if days is None:
        raise HTTPException(status_code=400, detail=f"timeframe must be one of {', '.join(PROGRESS_TIMEFRAMES)}")

    overview = analytics.progress_overview(list_checkins_chronological(db, user.id), datetime.utcnow(), days, user_timezone(user))
    result = asdict(overview)
    result["timeframe"] = timeframe
    result["daily"] = [dict(point, day=point["day"].isoformat()) for point in result["daily"]]
    result["mentor_usage"] = _usage(db, overview.mentor_usage)
    return result


@router.get("/mentors")
def get_mentor_insights(timeframe: str = "month", user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if timeframe not in MENTOR_TIMEFRAMES:
        raise HTTPException(status_code=400, detail=f"timeframe must be one of {', '.join(MENTOR_TIMEFRAMES)}")

    now = datetime.utcnow()
    checkins = list_checkins_chronological(db, user.id)
    if MENTOR_TIMEFRAMES[timeframe] is not None:
        checkins = analytics.filter_window(checkins, now, MENTOR_TIMEFRAMES[timeframe])

    insights = analytics.mentor_insights(checkins)
    names = _mentor_names(db, [i.mentor_id for i in insights])
    return {
        "timeframe": timeframe,
        "total_checkins": len(checkins),
        "mentors": [
            dict(asdict(i), mentor_name=names.get(i.mentor_id),
                 last_used=i.last_used.isoformat() if i.last_used else None)
            for i in insights
        ],
    }


@router.get("/goals")
def get_goal_performance(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    now = datetime.utcnow()
    checkins = list_checkins_chronological(db, user.id)
    performance = analytics.goal_success_rates(checkins)
    patterns = analytics.analyze_goal_patterns(checkins, now)
    return {
        "goals": [asdict(p) for p in sorted(performance, key=lambda p: -p.attempts)],
        "strong_areas": patterns.strong_areas,
        "struggling_areas": patterns.struggling_areas,
    }


@router.get("/recommendations")
def get_recommendations(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    goals = db.query(Goal).filter(Goal.user_id == user.id, Goal.is_active == True).all()  # noqa: E712
    recommendations = recommend_goals(list_checkins_chronological(db, user.id), [g.text for g in goals], datetime.utcnow())
    return {"recommendations": [asdict(r) for r in recommendations]}
