# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import json
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.models.custom_avatar import CustomAvatar
from app.models.database import get_db
from app.models.video_generation import VideoGeneration
from app.services.job_poller import COMPLETED, ERROR
from app.services.mentor_video_service import apply_training_result, apply_video_result
from app.services import video_provider

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])
logger = logging.getLogger(__name__)


def _handle_video(db: Session, data: dict, status: str) -> bool:
    generation = db.query(VideoGeneration).filter(VideoGeneration.tavus_request_id == data.get("id")).first()
    if generation is None:
        return False
    return apply_video_result(
        db, generation, status,
        video_url=data.get("video_url") or data.get("download_url"),
        thumbnail_url=data.get("thumbnail_url"),
        duration=data.get("duration"),
        error_message=data.get("error_message"),
    )


def _handle_training(db: Session, data: dict, status: str, voice: bool) -> bool:
    query = db.query(CustomAvatar).filter(CustomAvatar.tavus_avatar_id == data.get("id"))
    if voice:
        query = query.filter(CustomAvatar.avatar_type == "voice_clone")
    else:
        query = query.filter(CustomAvatar.avatar_type != "voice_clone")
    row = query.first()
    if row is None:
        return False
    return apply_training_result(
        db, row, status,
        preview_url=data.get("video_url") or data.get("thumbnail_url"),
        error_message=data.get("error_message"),
    )


HANDLERS = {
    "video.completed": lambda db, data: _handle_video(db, data, COMPLETED),
    "video.error": lambda db, data: _handle_video(db, data, ERROR),
    "avatar.ready": lambda db, data: _handle_training(db, data, COMPLETED, voice=False),
    "avatar.error": lambda db, data: _handle_training(db, data, ERROR, voice=False),
    "voice.ready": lambda db, data: _handle_training(db, data, COMPLETED, voice=True),
    "voice.error": lambda db, data: _handle_training(db, data, ERROR, voice=True),
}


@router.post("/tavus")
async def tavus_webhook(request: Request, db: Session = Depends(get_db)):
    body = await request.body()
    signature = request.headers.get("x-tavus-signature")
    if not video_provider.verify_webhook_signature(body, signature, video_provider.TAVUS_WEBHOOK_SECRET):
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        payload = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON payload")

    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Webhook payload must be a JSON object")

    event_type = payload.get("event_type")
    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Webhook data must be a JSON object")
    handler = HANDLERS.get(event_type)
    if handler is None:
        logger.info("ℹ️ Ignoring unknown Tavus event %s", event_type)
        return {"success": True, "applied": False}

    applied = handler(db, data)
    logger.info("📬 Tavus %s for %s (applied=%s)", event_type, data.get("id"), applied)
    return {"success": True, "applied": applied}
