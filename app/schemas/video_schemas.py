# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any


class VideoRequest(BaseModel):
    mentor_id: int
    script: str = Field(min_length=1, max_length=5000)
    checkin_id: Optional[int] = None


class VideoGenerationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    mentor_id: Optional[int] = None
    checkin_id: Optional[int] = None
    tavus_request_id: Optional[str] = None
    status: str
    progress: int
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration_seconds: Optional[int] = None
    generation_time_ms: Optional[int] = None
    error_message: Optional[str] = None
    created_at: datetime


class CustomAvatarOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    tavus_avatar_id: Optional[str] = None
    status: str
    avatar_type: str
    training_progress: int
    preview_video_url: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime


class JobStatusOut(BaseModel):
    job_id: str
    status: str
    result_url: Optional[str] = None
    error_message: Optional[str] = None
    progress: Optional[int] = None
    raw: Dict[str, Any] = {}
