# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.models.database import get_db
from app.models.mentor import MENTOR_CATEGORIES, Mentor
from app.models.user import User
from app.schemas.mentor_schemas import CustomMentorCreate, MentorOut

router = APIRouter(prefix="/mentors", tags=["Mentors"])


@router.get("", response_model=List[MentorOut])
def list_mentors(db: Session = Depends(get_db)):
    return db.query(Mentor).filter(Mentor.is_custom == False).order_by(Mentor.id).all()  # noqa: E712


@router.get("/category/{category}", response_model=List[MentorOut])
def list_mentors_by_category(category: str, db: Session = Depends(get_db)):
    category = category.lower()
    if category not in MENTOR_CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Unknown category: {category}")
    return (
        db.query(Mentor)
        .filter(Mentor.category == category, Mentor.is_custom == False)  # noqa: E712
        .order_by(Mentor.id)
        .all()
    )


@router.get("/custom", response_model=List[MentorOut])
def list_my_mentors(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return db.query(Mentor).filter(Mentor.is_custom == True, Mentor.owner_id == user.id).all()  # noqa: E712


@router.post("/custom", response_model=MentorOut, status_code=201)
def create_custom_mentor(payload: CustomMentorCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    mentor = Mentor(**payload.model_dump(), is_custom=True, owner_id=user.id)
    db.add(mentor)
    db.commit()
    db.refresh(mentor)
    return mentor


@router.get("/{mentor_id}", response_model=MentorOut)
def get_mentor_by_id(mentor_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    mentor = db.query(Mentor).filter(Mentor.id == mentor_id).first()
    if mentor is None or (mentor.is_custom and mentor.owner_id != user.id):
        raise HTTPException(status_code=404, detail="Mentor not found")
    return mentor
