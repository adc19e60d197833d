# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.models.database import get_db
from app.models.revoked_token import RevokedToken
from app.models.user import User
from app.schemas.auth_schemas import SignInRequest, SignUpRequest, UserOut
from app.utils.auth_utils import optional_token, require_token
from app.utils.jwt_utils import create_access_token
from app.utils.rate_limit_utils import AUTH_RATE, limiter
from app.utils.security import hash_password, verify_password

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)


def _session_payload(user: User) -> dict:
    return {
        "access_token": create_access_token({"sub": str(user.id)}),
        "token_type": "bearer",
        "user": UserOut.model_validate(user).model_dump(mode="json"),
    }


@router.post("/signup", status_code=201)
@limiter.limit(AUTH_RATE)
def sign_up(request: Request, payload: SignUpRequest, db: Session = Depends(get_db)):
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=409, detail="An account with this email already exists")

    user = User(
        email=payload.email,
        password_hash=hash_password(payload.password),
        full_name=payload.full_name.strip(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("👤 New user %s signed up", user.id)
    return _session_payload(user)


@router.post("/signin")
@limiter.limit(AUTH_RATE)
def sign_in(request: Request, payload: SignInRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email).first()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return _session_payload(user)


@router.post("/signout")
def sign_out(payload: dict = Depends(require_token), db: Session = Depends(get_db)):
    db.add(RevokedToken(jti=payload["jti"]))
    db.commit()
    return {"message": "Signed out"}


@router.get("/me", response_model=UserOut)
def read_current_user(user: User = Depends(get_current_user)):
    return user


@router.get("/session")
def session_state(payload=Depends(optional_token), db: Session = Depends(get_db)):
    if payload is None:
        return {"authenticated": False, "user": None}

    user = db.query(User).filter(User.id == int(payload["sub"])).first()
    if user is None:
        return {"authenticated": False, "user": None}

    return {
        "authenticated": True,
        "user": UserOut.model_validate(user).model_dump(mode="json"),
        "expires_at": datetime.utcfromtimestamp(payload["exp"]).isoformat(),
    }
