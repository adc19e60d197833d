# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import Optional, List, Dict, Any
from app.models.user import CheckinMode


class GoalStatusItem(BaseModel):
    goal_id: Optional[int] = None
    goal_text: str
    completed: bool = False
    notes: Optional[str] = None


class CheckinCreate(BaseModel):
    mentor_id: Optional[int] = None
    mood_score: int
    emotion_score: Optional[int] = None
    mode: CheckinMode = CheckinMode.classic
    goal_status: List[GoalStatusItem] = []
    reflection: Optional[str] = None
    generate_video: bool = False


class MentorResponseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mentor_id: int
    response_text: str
    response_metadata: Optional[Dict[str, Any]] = None
    tavus_video_id: Optional[str] = None
    video_url: Optional[str] = None
    generation_time_ms: Optional[int] = None
    created_at: datetime


class CheckinOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mentor_id: int
    mode: CheckinMode
    mood_score: int
    emotion_score: Optional[int] = None
    goal_status: List[GoalStatusItem]
    reflection: Optional[str] = None
    video_url: Optional[str] = None
    created_at: datetime
    mentor_response: Optional[MentorResponseOut] = None
