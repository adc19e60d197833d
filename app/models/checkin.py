# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.database import Base
from app.models.user import CheckinMode
from app.utils.encryption import EncryptedText  # 🔐

class Checkin(Base):
    __tablename__ = "checkins"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    mentor_id = Column(Integer, ForeignKey("mentors.id"), nullable=False)
    mode = Column(Enum(CheckinMode), default=CheckinMode.classic)

    mood_score = Column(Integer, nullable=False)  # 1..10
    emotion_score = Column(Integer, nullable=True)
    # [{"goal_id": 1, "goal_text": "...", "completed": true, "notes": "..."}], written once
    goal_status = Column(JSON, nullable=False, default=list)

    # 🔐 Encrypted
    reflection = Column(EncryptedText, nullable=True)

    video_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="checkins")
    mentor = relationship("Mentor")
    mentor_response = relationship("MentorResponse", back_populates="checkin", uselist=False)

    def __repr__(self):
        return f"<Checkin id={self.id} mood={self.mood_score} goals={len(self.goal_status or [])}>"
