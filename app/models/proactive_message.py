# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.database import Base
from app.utils.encryption import EncryptedText  # 🔐 Encryption utils

class ProactiveMessage(Base):
    __tablename__ = "proactive_messages"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    mentor_id = Column(Integer, ForeignKey("mentors.id"), nullable=True)
    message_type = Column(String, default="nudge")  # nudge / celebration / suggestion
    pattern_type = Column(String, nullable=True)  # missed_checkins / low_mood / goal_struggle / celebration

    content = Column(EncryptedText, nullable=False)  # 🔐 Encrypted transparently
    metadata_json = Column("metadata", JSON, default=dict)

    dismissed = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="proactive_messages")
