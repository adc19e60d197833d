# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.models.database import get_db
from app.models.user import User
from app.services.nudge_service import dismiss_message, list_messages

router = APIRouter(prefix="/nudges", tags=["Nudges"])


def _serialize(message) -> dict:
    return {
        "id": message.id,
        "mentor_id": message.mentor_id,
        "message_type": message.message_type,
        "pattern_type": message.pattern_type,
        "content": message.content,
        "metadata": message.metadata_json or {},
        "dismissed": message.dismissed,
        "created_at": message.created_at.isoformat(),
    }


@router.get("")
def get_nudges(include_dismissed: bool = False, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"messages": [_serialize(m) for m in list_messages(db, user.id, include_dismissed)]}


@router.post("/{message_id}/dismiss")
def dismiss_nudge(message_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    message = dismiss_message(db, user.id, message_id)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")
    return {"message": "Dismissed", "id": message.id}
