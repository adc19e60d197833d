# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, DateTime, Boolean, Enum, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.database import Base
import enum

class CheckinMode(enum.Enum):
    classic = "classic"
    realtime = "realtime"

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, default="")

    # ✅ Onboarding
    default_mentor_id = Column(Integer, ForeignKey("mentors.id"), nullable=True)
    preferred_mode = Column(Enum(CheckinMode), default=CheckinMode.classic)
    onboarding_completed = Column(Boolean, default=False)
    timezone = Column(String, default="UTC")  # IANA name, used for streak days

    # ✅ Custom media from the video provider
    custom_voice_id = Column(String, nullable=True)
    active_custom_avatar_id = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # ✅ Relationships
    default_mentor = relationship("Mentor", foreign_keys=[default_mentor_id])
    goals = relationship("Goal", back_populates="user", cascade="all, delete-orphan")
    checkins = relationship("Checkin", back_populates="user", cascade="all, delete-orphan")
    mentor_responses = relationship("MentorResponse", back_populates="user", cascade="all, delete-orphan")
    video_generations = relationship("VideoGeneration", back_populates="user", cascade="all, delete-orphan")
    custom_avatars = relationship("CustomAvatar", back_populates="user", cascade="all, delete-orphan")
    proactive_messages = relationship("ProactiveMessage", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User id={self.id} email={self.email} onboarded={self.onboarding_completed}>"
