# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, JSON
from datetime import datetime
from app.models.database import Base

MENTOR_CATEGORIES = ("fitness", "wellness", "study", "career", "general")

class Mentor(Base):
    __tablename__ = "mentors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    category = Column(String, default="general", index=True)
    tone = Column(String, default="supportive")
    description = Column(Text, default="")
    personality = Column(Text, nullable=True)
    speaking_style = Column(Text, nullable=True)
    motivation_approach = Column(Text, nullable=True)
    prompt_template = Column(Text, nullable=True)
    response_style = Column(JSON, nullable=True)  # tone / emoji_use / encouragement_level / challenge_level
    gradient = Column(String, nullable=True)

    # ✅ Video provider identities
    tavus_avatar_id = Column(String, nullable=True)
    persona_id = Column(String, nullable=True)
    replica_id = Column(String, nullable=True)

    is_custom = Column(Boolean, default=False)
    owner_id = Column(Integer, nullable=True, index=True)  # users.id, only for custom mentors
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Mentor id={self.id} name={self.name} category={self.category}>"
