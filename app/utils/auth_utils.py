# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from app.models.database import get_db
from app.models.revoked_token import RevokedToken
from app.utils.jwt_utils import verify_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/signin")


def is_token_revoked(db: Session, jti: str) -> bool:
    return db.query(RevokedToken).filter(RevokedToken.jti == jti).first() is not None


# ✅ Dependency to extract token payload
def require_token(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> dict:
    payload = verify_access_token(token)
    if not payload.get("sub") or not payload.get("jti"):
        raise HTTPException(status_code=401, detail="Invalid token payload")
    if is_token_revoked(db, payload["jti"]):
        raise HTTPException(status_code=401, detail="Token has been revoked")
    return payload


optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/signin", auto_error=False)


def optional_token(token: str = Depends(optional_oauth2_scheme), db: Session = Depends(get_db)):
    """Payload for a valid, unrevoked token, else None."""
    if not token:
        return None
    try:
        return require_token(token, db)
    except HTTPException:
        return None
