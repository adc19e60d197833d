# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.models.database import get_db
from app.models.goal import Goal
from app.models.user import User
from app.schemas.goal_schemas import GoalBulkCreate, GoalCreate, GoalOut, GoalUpdate

router = APIRouter(prefix="/goals", tags=["Goals"])


def _active_goals(db: Session, user_id: int) -> List[Goal]:
    return (
        db.query(Goal)
        .filter(Goal.user_id == user_id, Goal.is_active == True)  # noqa: E712
        .order_by(Goal.created_at)
        .all()
    )


def _owned_goal(db: Session, user_id: int, goal_id: int) -> Goal:
    goal = db.query(Goal).filter(Goal.id == goal_id, Goal.user_id == user_id, Goal.is_active == True).first()  # noqa: E712
    if goal is None:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


@router.get("", response_model=List[GoalOut])
def list_goals(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _active_goals(db, user.id)


@router.post("", response_model=GoalOut, status_code=201)
def create_goal(payload: GoalCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    text = payload.text.strip()
    if any(g.text == text for g in _active_goals(db, user.id)):
        raise HTTPException(status_code=409, detail="You already have this goal")
    goal = Goal(user_id=user.id, text=text)
    db.add(goal)
    db.commit()
    db.refresh(goal)
    return goal


@router.post("/bulk", response_model=List[GoalOut], status_code=201)
def create_goals(payload: GoalBulkCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    existing = {g.text for g in _active_goals(db, user.id)}
    created = []
    for text in payload.goals:
        text = text.strip()
        if not text or text in existing:
            continue
        existing.add(text)
        created.append(Goal(user_id=user.id, text=text))
    db.add_all(created)
    db.commit()
    for goal in created:
        db.refresh(goal)
    return created


@router.patch("/{goal_id}", response_model=GoalOut)
def update_goal(goal_id: int, payload: GoalUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    goal = _owned_goal(db, user.id, goal_id)
    goal.text = payload.text.strip()
    db.commit()
    db.refresh(goal)
    return goal


@router.delete("/{goal_id}")
def delete_goal(goal_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    goal = _owned_goal(db, user.id, goal_id)
    goal.is_active = False
    db.commit()
    return {"message": "Goal removed", "goal_id": goal_id}
