# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.database import Base
from app.utils.encryption import EncryptedText  # 🔐

class MentorResponse(Base):
    __tablename__ = "mentor_responses"

    id = Column(Integer, primary_key=True, index=True)
    checkin_id = Column(Integer, ForeignKey("checkins.id"), nullable=False, unique=True)
    mentor_id = Column(Integer, ForeignKey("mentors.id"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    prompt_data = Column(JSON, nullable=True)
    response_text = Column(EncryptedText, nullable=False)  # 🔐
    response_metadata = Column(JSON, nullable=True)  # model, tokens, is_fallback

    tavus_video_id = Column(String, nullable=True, index=True)
    video_url = Column(String, nullable=True)
    generation_time_ms = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="mentor_responses")
    checkin = relationship("Checkin", back_populates="mentor_response")
