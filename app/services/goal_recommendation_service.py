# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from app.services.checkin_analytics import GoalPatternAnalysis, analyze_goal_patterns

MAX_RECOMMENDATIONS = 6


@dataclass(frozen=True)
class GoalRecommendation:
    id: str
    title: str
    description: str
    reasoning: str
    category: str
    difficulty: str
    estimated_duration: str
    related_goals: List[str] = field(default_factory=list)


CATALOG = [
    GoalRecommendation("hydration-1", "Drink 8 glasses of water daily",
                       "Track water intake to improve overall health and energy",
                       "Hydration supports all other wellness goals and is easy to track",
                       "wellness", "easy", "Throughout the day"),
    GoalRecommendation("gratitude-1", "Write 3 things I'm grateful for",
                       "Daily gratitude practice to improve mood and mindset",
                       "Gratitude practice is linked to better mood and life satisfaction",
                       "wellness", "easy", "5 minutes daily"),
    GoalRecommendation("reading-1", "Read for 15 minutes daily",
                       "Build a consistent reading habit for personal growth",
                       "Reading expands knowledge and fits easily into a daily routine",
                       "study", "easy", "15 minutes daily"),
    GoalRecommendation("exercise-1", "Take a 20-minute walk",
                       "Daily walking for physical and mental health",
                       "Walking is accessible, improves mood, and builds consistency",
                       "fitness", "easy", "20 minutes daily"),
    GoalRecommendation("skills-1", "Learn something new for 10 minutes",
                       "Daily learning to develop new skills or knowledge",
                       "Continuous learning keeps the mind active",
                       "study", "medium", "10 minutes daily"),
    GoalRecommendation("planning-1", "Plan tomorrow tonight",
                       "Spend 10 minutes each evening planning the next day",
                       "Planning ahead reduces stress and improves productivity",
                       "career", "easy", "10 minutes daily"),
]


def _first_word(text: str) -> str:
    words = text.lower().split()
    return words[0] if words else ""


def _too_similar(recommendation: GoalRecommendation, current: List[str]) -> bool:
    title = recommendation.title.lower()
    return any(
        existing == title or _first_word(title) in existing or (existing and _first_word(existing) in title)
        for existing in current
    )


def pattern_recommendations(analysis: GoalPatternAnalysis) -> List[GoalRecommendation]:
    recommendations = []

    for index, goal in enumerate(analysis.struggling_areas, start=1):
        recommendations.append(GoalRecommendation(
            f"smaller-{index}", f"Smaller step: {goal}",
            f"A lighter version of \"{goal}\" you can finish even on busy days",
            "This goal has been completed less than 40% of the time. Shrinking it rebuilds momentum.",
            "general", "easy", "5 minutes daily", related_goals=[goal],
        ))

    if analysis.checkin_count and analysis.avg_mood < 6:
        recommendations.append(GoalRecommendation(
            "mood-1", "Practice 5-minute mindfulness",
            "Daily mindfulness practice to improve focus and reduce stress",
            "Your recent mood scores are on the low side",
            "wellness", "easy", "5 minutes daily",
        ))

    if analysis.last_week_checkins < 3:
        recommendations.append(GoalRecommendation(
            "checkin-1", "Check in with my mentor every day",
            "A short daily check-in to keep goals visible",
            "Fewer than 3 check-ins in the last week",
            "general", "easy", "2 minutes daily",
        ))

    return recommendations


def fallback_recommendations(analysis: GoalPatternAnalysis, current_goals: List[str]) -> List[GoalRecommendation]:
    current = [g.lower() for g in current_goals]
    available = [r for r in CATALOG if not _too_similar(r, current)]

    picked = []
    if analysis.avg_mood < 6:
        picked += [r for r in available if r.category == "wellness" or "walk" in r.title.lower()][:2]
    if len(analysis.struggling_areas) > 2:
        picked += [r for r in available if r.difficulty == "easy" and r not in picked][:2]
    picked += [r for r in available if r not in picked][:3]
    return picked[:4]


def recommend_goals(checkins: List, current_goals: List[str], now: datetime) -> List[GoalRecommendation]:
    """Up to six suggestions, unique by title and not already among the user's goals."""
    analysis = analyze_goal_patterns(checkins, now)
    candidates = pattern_recommendations(analysis) + fallback_recommendations(analysis, current_goals)

    taken = {g.lower() for g in current_goals}
    unique = []
    for recommendation in candidates:
        key = recommendation.title.lower()
        if key in taken:
            continue
        taken.add(key)
        unique.append(recommendation)
    return unique[:MAX_RECOMMENDATIONS]
