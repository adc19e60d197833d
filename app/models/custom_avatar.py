# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.database import Base

AVATAR_TYPES = ("standard", "voice_clone", "custom")

class CustomAvatar(Base):
    __tablename__ = "custom_avatars"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    tavus_avatar_id = Column(String, nullable=True, index=True)
    status = Column(String, default="creating")  # creating / training / ready / failed
    avatar_type = Column(String, default="custom")
    training_progress = Column(Integer, default=0)
    configuration = Column(JSON, default=dict)
    voice_id = Column(String, nullable=True)
    preview_video_url = Column(String, nullable=True)
    error_message = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="custom_avatars")
