# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict, Any
from app.models.mentor import MENTOR_CATEGORIES


class MentorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str
    tone: Optional[str] = None
    description: Optional[str] = None
    personality: Optional[str] = None
    speaking_style: Optional[str] = None
    motivation_approach: Optional[str] = None
    response_style: Optional[Dict[str, Any]] = None
    gradient: Optional[str] = None
    tavus_avatar_id: Optional[str] = None
    persona_id: Optional[str] = None
    replica_id: Optional[str] = None
    is_custom: bool


class CustomMentorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    category: str = "general"
    tone: str = "supportive"
    description: str = ""
    personality: Optional[str] = None
    speaking_style: Optional[str] = None
    motivation_approach: Optional[str] = None
    prompt_template: Optional[str] = None
    response_style: Optional[Dict[str, Any]] = None
    tavus_avatar_id: Optional[str] = None
    persona_id: Optional[str] = None
    replica_id: Optional[str] = None

    @field_validator("category")
    @classmethod
    def known_category(cls, value: str) -> str:
        value = value.lower()
        if value not in MENTOR_CATEGORIES:
            raise ValueError(f"category must be one of {', '.join(MENTOR_CATEGORIES)}")
        return value
