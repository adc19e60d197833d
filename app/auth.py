# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session
from app.models.database import get_db
from app.models.user import User
from app.utils.auth_utils import require_token


def get_current_user(payload: dict = Depends(require_token), db: Session = Depends(get_db)) -> User:
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="❌ Invalid or expired token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="❌ User not found")

    return user
