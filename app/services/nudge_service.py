# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.checkin import Checkin
from app.models.database import SessionLocal
from app.models.mentor import Mentor
from app.models.proactive_message import ProactiveMessage
from app.models.user import User
from app.services.checkin_analytics import filter_window

logger = logging.getLogger(__name__)

MISSED_CHECKIN_DAYS = 3
RESEND_COOLDOWN = timedelta(hours=24)


@dataclass(frozen=True)
class NudgePattern:
    type: str  # missed_checkins / low_mood / goal_struggle / celebration
    severity: str  # low / medium / high
    data: dict = field(default_factory=dict)

# -------------------------------
# Pattern Detection
# -------------------------------

def detect_patterns(checkins: List, now: datetime) -> List[NudgePattern]:
    """Behavior patterns worth a proactive message, from the last two weeks of check-ins."""
    patterns = []

    if not filter_window(checkins, now, MISSED_CHECKIN_DAYS):
        patterns.append(NudgePattern("missed_checkins", "high", {"days_missed": MISSED_CHECKIN_DAYS}))

    weekly = sorted(filter_window(checkins, now, 7), key=lambda c: c.created_at, reverse=True)
    if len(weekly) >= 3:
        moods = [c.mood_score for c in weekly]
        avg_mood = sum(moods) / len(moods)
        low_mood_count = sum(1 for m in moods if m <= 4)
        if avg_mood <= 5 and low_mood_count >= 2:
            patterns.append(NudgePattern("low_mood", "high", {"avg_mood": avg_mood, "low_mood_count": low_mood_count}))

    fortnight = filter_window(checkins, now, 14)
    if len(fortnight) >= 5:
        total_goals = completed_goals = 0
        for checkin in fortnight:
            goals = checkin.goal_status or []
            total_goals += len(goals)
            completed_goals += sum(1 for g in goals if g.get("completed"))
        completion_rate = completed_goals / total_goals * 100 if total_goals else 0
        if completion_rate < 40:
            patterns.append(NudgePattern("goal_struggle", "medium",
                                         {"completion_rate": completion_rate, "total_goals": total_goals}))

    if len(weekly) >= 5:
        recent = [c.mood_score for c in weekly[:3]]
        avg_recent = sum(recent) / len(recent)
        if avg_recent >= 8:
            patterns.append(NudgePattern("celebration", "low", {"avg_mood": avg_recent, "streak_length": len(weekly)}))

    return patterns

# -------------------------------
# Text Generator
# -------------------------------

MENTOR_MESSAGES = {
    "ZenKai": {
        "missed_checkins": "Hello, I've noticed you haven't checked in lately. There's no judgment here, just gentle encouragement to reconnect with your journey. When you're ready, I'll be here.",
        "low_mood": "I sense you've been having some challenging days recently. Difficult emotions are part of the human experience. Take a deep breath, be kind to yourself, and know that this too shall pass.",
        "goal_struggle": "It seems your goals might need some adjustment. This isn't failure, it's wisdom. Sometimes we adapt our path to honor where we are right now.",
        "celebration": "I'm sensing beautiful energy from your recent check-ins! Keep nurturing this momentum with gentle awareness and self-compassion.",
    },
    "Coach Lex": {
        "missed_checkins": "Hey champion! 💪 You've been MIA from our check-ins. Even the strongest athletes need rest days, but let's get back in there and show your goals who's boss!",
        "low_mood": "Tough days are when champions are made! Every setback is a setup for a comeback. Let's channel that energy into movement and momentum! 🔥",
        "goal_struggle": "Goal struggles are part of the game! Even elite athletes adjust their training. Let's reassess, refocus, and come back stronger.",
        "celebration": "YESSS! 🙌 Look at you CRUSHING it! Your energy and consistency are off the charts. Keep this momentum going!",
    },
    "Prof. Ada": {
        "missed_checkins": "I've observed a gap in your check-in pattern. Consistency is key to sustainable habits. Consider scheduling a specific time for daily reflection.",
        "low_mood": "Your recent mood data suggests a challenging period. Structured activities and goal-setting can help. Let's look at what might be contributing.",
        "goal_struggle": "Your goal completion metrics indicate room for optimization. Let's reassess your objectives using SMART criteria and adjust based on the evidence.",
        "celebration": "Excellent work! Your consistent positive metrics show the power of systematic habit building. Let's analyze what's working and replicate it.",
    },
    "No-BS Tony": {
        "missed_checkins": "Enough excuses. You've been radio silent for days. Successful people show up even when they don't feel like it. Time to get back in there.",
        "low_mood": "Low moods happen to everyone, but they don't get to steer. Take one small step forward today. Action creates momentum, not feelings.",
        "goal_struggle": "Your completion rate says you're overcommitting or underperforming. What are you actually going to DO differently? No more excuses.",
        "celebration": "Now THIS is what I'm talking about! Consistency pays off. Don't get comfortable, this is your new baseline.",
    },
}

DEFAULT_MESSAGES = {
    "missed_checkins": "Hi {name}, we haven't heard from you in a few days. A quick check-in keeps your momentum going.",
    "low_mood": "Hi {name}, the last few days look heavy. Be gentle with yourself and pick one small thing to do today.",
    "goal_struggle": "Hi {name}, your goals might be a bit too big right now. Try a smaller version and build from there.",
    "celebration": "Hi {name}, you're on a roll! Keep the streak alive.",
}


def build_nudge_text(pattern: NudgePattern, mentor: Optional[Mentor], user: User) -> str:
    by_pattern = MENTOR_MESSAGES.get(mentor.name if mentor else None)
    if by_pattern and pattern.type in by_pattern:
        return by_pattern[pattern.type]
    name = (user.full_name or "there").split(" ")[0]
    return DEFAULT_MESSAGES[pattern.type].format(name=name)

# -------------------------------
# Delivery
# -------------------------------

def recently_sent(db: Session, user_id: int, pattern_type: str, now: datetime) -> bool:
    return db.query(ProactiveMessage).filter(
        ProactiveMessage.user_id == user_id,
        ProactiveMessage.pattern_type == pattern_type,
        ProactiveMessage.created_at >= now - RESEND_COOLDOWN,
    ).first() is not None


def store_proactive_message(db: Session, user: User, mentor: Optional[Mentor], pattern: NudgePattern,
                            now: datetime) -> ProactiveMessage:
    message = ProactiveMessage(
        user_id=user.id,
        mentor_id=mentor.id if mentor else None,
        message_type="celebration" if pattern.type == "celebration" else "nudge",
        pattern_type=pattern.type,
        content=build_nudge_text(pattern, mentor, user),
        metadata_json={"severity": pattern.severity, "pattern_data": pattern.data, "ai_generated": False},
        created_at=now,
    )
    db.add(message)
    return message


def nudge_user(db: Session, user: User, now: datetime) -> List[ProactiveMessage]:
    cutoff = now - timedelta(days=14)
    checkins = db.query(Checkin).filter(Checkin.user_id == user.id, Checkin.created_at >= cutoff).all()
    mentor = db.get(Mentor, user.default_mentor_id) if user.default_mentor_id else None

    sent = []
    for pattern in detect_patterns(checkins, now):
        if recently_sent(db, user.id, pattern.type, now):
            continue
        sent.append(store_proactive_message(db, user, mentor, pattern, now))
    db.commit()
    return sent

# -------------------------------
# Main Scheduler
# -------------------------------

def process_nudges(now: Optional[datetime] = None, session_factory=SessionLocal) -> int:
    now = now or datetime.utcnow()
    db = session_factory()
    total = 0
    try:
        users = db.query(User).filter(User.onboarding_completed == True).all()  # noqa: E712

        for user in users:
            try:
                sent = nudge_user(db, user, now)
                if sent:
                    logger.info("📤 %d nudge(s) for user %s: %s", len(sent), user.id,
                                ", ".join(m.pattern_type for m in sent))
                total += len(sent)
            except Exception as e:
                db.rollback()
                logger.error("⚠️ Nudge failed for user %s: %s", user.id, str(e))
    finally:
        db.close()

    logger.info("✅ Nudge run finished, %d message(s) stored", total)
    return total

# -------------------------------
# User-facing reads
# -------------------------------

def list_messages(db: Session, user_id: int, include_dismissed: bool = False, limit: int = 20) -> List[ProactiveMessage]:
    query = db.query(ProactiveMessage).filter(ProactiveMessage.user_id == user_id)
    if not include_dismissed:
        query = query.filter(ProactiveMessage.dismissed == False)  # noqa: E712
    return query.order_by(ProactiveMessage.created_at.desc()).limit(limit).all()


def dismiss_message(db: Session, user_id: int, message_id: int) -> Optional[ProactiveMessage]:
    message = db.query(ProactiveMessage).filter(
        ProactiveMessage.id == message_id, ProactiveMessage.user_id == user_id
    ).first()
    if message is None:
        return None
    message.dismissed = True
    db.commit()
    return message
