# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.models.database import get_db
from app.services.video_provider import ProviderError, VideoProvider, get_video_provider

router = APIRouter(tags=["Infra"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/healthz")
async def deep_health_check(db: Session = Depends(get_db), provider: VideoProvider = Depends(get_video_provider)):
    result = {
        "db_connection": False,
        "video_provider": None,
        "quota": None,
        "mock_mode": provider.is_mock,
    }

    try:
        # ✅ Check DB read
        db.execute(text("SELECT 1"))
        result["db_connection"] = True
    except Exception as e:
        logger.error("❌ Health check DB failure: %s", e)

    result["video_provider"] = await provider.check_health()
    try:
        result["quota"] = await provider.get_quota()
    except ProviderError as e:
        logger.warning("⚠️ Quota lookup failed: %s", e)

    provider_ok = result["video_provider"].get("status") in ("ok", "healthy", "mock")
    return {
        "status": "ok" if result["db_connection"] and provider_ok else "partial",
        "details": result,
    }
