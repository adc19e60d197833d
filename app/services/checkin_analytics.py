# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Optional

import pytz

# -------------------------------
# Result types
# -------------------------------

@dataclass(frozen=True)
class StreakSummary:
    current_streak: int
    longest_streak: int


@dataclass(frozen=True)
class MentorUsage:
    mentor_id: Any
    count: int


@dataclass(frozen=True)
class GoalPerformance:
    goal_text: str
    attempts: int
    completions: int
    success_rate: float
    is_strong: bool = False
    is_struggling: bool = False


@dataclass(frozen=True)
class DailyPoint:
    day: date
    mood: Optional[int]
    goals_completed: int
    goals_total: int
    completion_rate: int


@dataclass(frozen=True)
class WeeklyStats:
    total_checkins: int
    avg_mood: int
    avg_emotion: int
    completion_rate: int
    mentor_usage: List[MentorUsage] = field(default_factory=list)


@dataclass(frozen=True)
class ProgressOverview:
    days: int
    mood_trend: int
    completion_trend: int
    consistency_score: int
    top_mood: int
    avg_completion: int
    has_enough_data: bool
    daily: List[DailyPoint] = field(default_factory=list)
    mentor_usage: List[MentorUsage] = field(default_factory=list)


@dataclass(frozen=True)
class MentorInsight:
    mentor_id: Any
    total_checkins: int
    avg_mood: int
    goal_completion_rate: int
    last_used: Optional[datetime]


@dataclass(frozen=True)
class GoalPatternAnalysis:
    struggling_areas: List[str]
    strong_areas: List[str]
    avg_mood: float
    checkin_count: int
    last_week_checkins: int


STRONG_THRESHOLD = 0.8
STRUGGLING_THRESHOLD = 0.4

# -------------------------------
# Record helpers
# -------------------------------

def _field(record, name: str, default=None):
    # ORM rows and plain dicts are both accepted
    if isinstance(record, dict):
        return record.get(name, default)
    return getattr(record, name, default)


def _round(value: float) -> int:
    """Round half up, so 2.5 -> 3 and -2.5 -> -2."""
    return int(math.floor(value + 0.5))


def _as_utc(value) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is not None:
        value = value.astimezone(pytz.utc).replace(tzinfo=None)
    return value


def _local_day(value, tz=None) -> date:
    ts = _as_utc(value)
    if tz is None:
        return ts.date()
    return pytz.utc.localize(ts).astimezone(tz).date()


def _created_at(record) -> datetime:
    return _as_utc(_field(record, "created_at"))


def _goal_counts(goal_status) -> tuple:
    goals = goal_status or []
    completed = sum(1 for g in goals if _field(g, "completed"))
    return completed, len(goals)


def _mean(values: List[float]) -> float:
    return sum(values) / len(values)

# -------------------------------
# Core aggregations
# -------------------------------

def calculate_streaks(checkins: Iterable, now: datetime, tz=None) -> StreakSummary:
    """
    Streaks over distinct calendar days.
    current_streak only counts when the last check-in day is today or yesterday.
    """
    days = sorted({_local_day(_field(c, "created_at"), tz) for c in checkins})
    if not days:
        return StreakSummary(current_streak=0, longest_streak=0)

    longest = run = 1
    for previous, day in zip(days, days[1:]):
        if (day - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)

    today = _local_day(now, tz)
    current = run if (today - days[-1]).days in (0, 1) else 0
    return StreakSummary(current_streak=current, longest_streak=longest)


def calculate_trend(values: Iterable[float]) -> int:
    """
    Signed % change between the mean of the second half and the first half.
    Returns 0 when a half is empty or the first mean is 0.
    """
    values = list(values)
    split = len(values) // 2
    first, second = values[:split], values[split:]
    if not first or not second:
        return 0

    first_mean = _mean(first)
    if first_mean == 0:
        return 0
    return _round(((_mean(second) - first_mean) / first_mean) * 100)


def goal_completion_rate(goal_status) -> int:
    completed, total = _goal_counts(goal_status)
    if total == 0:
        return 0
    return _round(completed / total * 100)


def consistency_score(checkins: Iterable, days: int) -> int:
    if days <= 0:
        return 0
    return _round(len(list(checkins)) / days * 100)


def mentor_usage_histogram(checkins: Iterable, key: str = "mentor_id") -> List[MentorUsage]:
    counts = Counter(_field(c, key) for c in checkins)
    # Counter keeps first-seen order and sorted() is stable
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [MentorUsage(mentor_id=mentor_id, count=count) for mentor_id, count in ranked]


def goal_success_rates(checkins: Iterable, min_attempts: int = 2) -> List[GoalPerformance]:
    performance = {}
    for checkin in checkins:
        for goal in _field(checkin, "goal_status") or []:
            text = _field(goal, "goal_text")
            attempts, completions = performance.get(text, (0, 0))
            performance[text] = (attempts + 1, completions + (1 if _field(goal, "completed") else 0))

    results = []
    for text, (attempts, completions) in performance.items():
        rate = completions / attempts
        reliable = attempts >= min_attempts
        results.append(GoalPerformance(
            goal_text=text,
            attempts=attempts,
            completions=completions,
            success_rate=rate,
            is_strong=reliable and rate > STRONG_THRESHOLD,
            is_struggling=reliable and rate < STRUGGLING_THRESHOLD,
        ))
    return results

# -------------------------------
# Dashboard views
# -------------------------------

def filter_window(checkins: Iterable, now: datetime, days: int) -> list:
    cutoff = _as_utc(now) - timedelta(days=days)
    return [c for c in checkins if _created_at(c) >= cutoff]


def daily_progress(checkins: Iterable, now: datetime, days: int, tz=None) -> List[DailyPoint]:
    today = _local_day(now, tz)

    latest_by_day = {}
    for checkin in checkins:
        day = _local_day(_field(checkin, "created_at"), tz)
        current = latest_by_day.get(day)
        if current is None or _created_at(checkin) >= _created_at(current):
            latest_by_day[day] = checkin

    points = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        checkin = latest_by_day.get(day)
        if checkin is None:
            points.append(DailyPoint(day=day, mood=None, goals_completed=0, goals_total=0, completion_rate=0))
            continue
        completed, total = _goal_counts(_field(checkin, "goal_status"))
        points.append(DailyPoint(
            day=day,
            mood=_field(checkin, "mood_score"),
            goals_completed=completed,
            goals_total=total,
            completion_rate=goal_completion_rate(_field(checkin, "goal_status")),
        ))
    return points


def mood_trend(checkins: Iterable, now: datetime, days: int, tz=None) -> int:
    window = filter_window(checkins, now, days)
    moods = [p.mood for p in daily_progress(window, now, days, tz) if p.mood is not None]
    return calculate_trend(moods)


def weekly_stats(checkins: Iterable, now: datetime) -> WeeklyStats:
    window = filter_window(checkins, now, 7)
    if not window:
        return WeeklyStats(total_checkins=0, avg_mood=0, avg_emotion=0, completion_rate=0)

    moods = [_field(c, "mood_score") for c in window]
    emotions = [_field(c, "emotion_score") for c in window if _field(c, "emotion_score")]

    completed_goals = total_goals = 0
    for checkin in window:
        completed, total = _goal_counts(_field(checkin, "goal_status"))
        completed_goals += completed
        total_goals += total

    return WeeklyStats(
        total_checkins=len(window),
        avg_mood=_round(_mean(moods)),
        avg_emotion=_round(_mean(emotions)) if emotions else 0,
        completion_rate=_round(completed_goals / total_goals * 100) if total_goals else 0,
        mentor_usage=mentor_usage_histogram(window),
    )


def progress_overview(checkins: Iterable, now: datetime, days: int, tz=None) -> ProgressOverview:
    window = filter_window(checkins, now, days)
    points = daily_progress(window, now, days, tz)

    moods = [p.mood for p in points if p.mood is not None]
    completions = [p.completion_rate for p in points if p.goals_total > 0]

    return ProgressOverview(
        days=days,
        mood_trend=calculate_trend(moods),
        completion_trend=calculate_trend(completions),
        consistency_score=consistency_score(window, days),
        top_mood=max(moods, default=0),
        avg_completion=_round(_mean(completions)) if completions else 0,
        has_enough_data=len(moods) >= 2,
        daily=points,
        mentor_usage=mentor_usage_histogram(window),
    )


def mentor_insights(checkins: Iterable) -> List[MentorInsight]:
    grouped = {}
    for checkin in checkins:
        grouped.setdefault(_field(checkin, "mentor_id"), []).append(checkin)

    insights = []
    for mentor_id, records in grouped.items():
        completed_goals = total_goals = 0
        for record in records:
            completed, total = _goal_counts(_field(record, "goal_status"))
            completed_goals += completed
            total_goals += total

        insights.append(MentorInsight(
            mentor_id=mentor_id,
            total_checkins=len(records),
            avg_mood=_round(_mean([_field(r, "mood_score") for r in records])),
            goal_completion_rate=_round(completed_goals / total_goals * 100) if total_goals else 0,
            last_used=max(_created_at(r) for r in records),
        ))

    return sorted(insights, key=lambda i: -i.total_checkins)


def analyze_goal_patterns(checkins: Iterable, now: datetime, min_attempts: int = 2) -> GoalPatternAnalysis:
    records = list(checkins)
    performance = goal_success_rates(records, min_attempts=min_attempts)

    moods = [_field(c, "mood_score") for c in records]
    return GoalPatternAnalysis(
        struggling_areas=[p.goal_text for p in performance if p.is_struggling],
        strong_areas=[p.goal_text for p in performance if p.is_strong],
        avg_mood=_mean(moods) if moods else 0.0,
        checkin_count=len(records),
        last_week_checkins=len(filter_window(records, now, 7)),
    )
