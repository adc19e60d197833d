# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, List
from app.models.user import CheckinMode


class SignUpRequest(BaseModel):
    email: str
    password: str = Field(min_length=8)
    full_name: str = ""

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value or value.startswith("@") or value.endswith("@"):
            raise ValueError("Invalid email address")
        return value


class SignInRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    full_name: str
    default_mentor_id: Optional[int] = None
    preferred_mode: CheckinMode
    onboarding_completed: bool
    timezone: str
    custom_voice_id: Optional[str] = None
    active_custom_avatar_id: Optional[int] = None
    created_at: datetime


class ProfileUpdateRequest(BaseModel):
    full_name: Optional[str] = None
    default_mentor_id: Optional[int] = None
    preferred_mode: Optional[CheckinMode] = None
    timezone: Optional[str] = None
    active_custom_avatar_id: Optional[int] = None


class OnboardingRequest(BaseModel):
    mentor_id: int
    preferred_mode: CheckinMode = CheckinMode.classic
    goals: List[str] = Field(min_length=1, max_length=5)
