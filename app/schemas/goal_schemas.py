# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import List


class GoalCreate(BaseModel):
    text: str = Field(min_length=1, max_length=500)


class GoalBulkCreate(BaseModel):
    goals: List[str] = Field(min_length=1, max_length=5)


class GoalUpdate(BaseModel):
    text: str = Field(min_length=1, max_length=500)


class GoalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    text: str
    is_active: bool
    created_at: datetime
