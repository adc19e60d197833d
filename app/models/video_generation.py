# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from app.models.database import Base

# queued -> generating -> completed | failed
TERMINAL_VIDEO_STATUSES = ("completed", "failed")

class VideoGeneration(Base):
    __tablename__ = "video_generations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    checkin_id = Column(Integer, ForeignKey("checkins.id"), nullable=True)
    mentor_response_id = Column(Integer, ForeignKey("mentor_responses.id"), nullable=True)
    mentor_id = Column(Integer, ForeignKey("mentors.id"), nullable=True)

    avatar_id = Column(String, nullable=True)
    script_text = Column(Text, nullable=False)
    tavus_request_id = Column(String, nullable=True, index=True)

    status = Column(String, default="queued")
    progress = Column(Integer, default=0)
    video_url = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    generation_time_ms = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)
    metadata_json = Column("metadata", JSON, default=dict)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="video_generations")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_VIDEO_STATUSES

    def __repr__(self):
        return f"<VideoGeneration id={self.id} status={self.status} request={self.tavus_request_id}>"
