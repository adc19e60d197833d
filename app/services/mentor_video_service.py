# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import logging
import os
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.checkin import Checkin
from app.models.custom_avatar import CustomAvatar
from app.models.database import SessionLocal
from app.models.mentor_response import MentorResponse
from app.models.user import User
from app.models.video_generation import VideoGeneration
from app.services.job_poller import (
    AsyncJob,
    COMPLETED,
    ERROR,
    JobCancelledError,
    JobFailedError,
    JobPoller,
    SyntheticProgress,
    TRAINING_POLL_INTERVAL,
    VIDEO_POLL_INTERVAL,
    normalize_status,
)
from app.services.video_provider import ZENKAI_CONFIG, UploadFile, VideoProvider

logger = logging.getLogger(__name__)

# ---------------------------
# ✅ Limits + polling config
# ---------------------------

MAX_AVATAR_VIDEO_BYTES = 100 * 1024 * 1024
MAX_VOICE_SAMPLE_BYTES = 10 * 1024 * 1024
MIN_VOICE_SAMPLES = 3
MIN_VOICE_SECONDS = 60
# Rough size-to-duration estimate for uploaded audio
VOICE_BYTES_PER_SECOND = 16000

VIDEO_POLL_INTERVAL_SECONDS = float(os.getenv("VIDEO_POLL_INTERVAL_SECONDS", VIDEO_POLL_INTERVAL))
VIDEO_POLL_MAX_ATTEMPTS = int(os.getenv("VIDEO_POLL_MAX_ATTEMPTS", "200"))

# Row status per normalized job status
VIDEO_ROW_STATUS = {"queued": "queued", "generating": "generating", COMPLETED: "completed", ERROR: "failed"}
AVATAR_ROW_STATUS = {"queued": "creating", "generating": "training", COMPLETED: "ready", ERROR: "failed"}

# Pollers still running, keyed by (kind, row id)
_active_pollers = {}


class MediaValidationError(ValueError):
    pass


def _elapsed_ms(start: Optional[datetime]) -> Optional[int]:
    if start is None:
        return None
    return int((datetime.utcnow() - start).total_seconds() * 1000)

# ---------------------------
# ✅ Video generation
# ---------------------------

async def generate_mentor_video(provider: VideoProvider, mentor, script: str) -> dict:
    """
    Pick the provider endpoint a mentor's avatar config supports.
    ZenKai and replica+persona mentors go through conversations, bare avatars through videos.
    """
    name = getattr(mentor, "name", None) or "Mentor"
    persona_id = getattr(mentor, "persona_id", None)
    replica_id = getattr(mentor, "replica_id", None)
    avatar_id = getattr(mentor, "tavus_avatar_id", None)

    if name == "ZenKai" or persona_id == ZENKAI_CONFIG["persona_id"]:
        return await provider.create_conversation_video(ZENKAI_CONFIG["replica_id"], ZENKAI_CONFIG["persona_id"], script)

    if replica_id and persona_id:
        return await provider.create_conversation_video(replica_id, persona_id, script)

    if avatar_id:
        return await provider.create_video({
            "avatar_id": avatar_id,
            "script": script,
            "video_name": f"{name} Response - {datetime.utcnow():%Y-%m-%d}",
        })

    raise ValueError(f"No valid avatar configuration found for mentor: {name}")


async def start_mentor_video(
    db: Session,
    provider: VideoProvider,
    user: User,
    mentor,
    script: str,
    checkin_id: Optional[int] = None,
    mentor_response_id: Optional[int] = None,
) -> VideoGeneration:
    payload = await generate_mentor_video(provider, mentor, script)
    job_status = normalize_status(payload.get("status"))

    generation = VideoGeneration(
        user_id=user.id,
        checkin_id=checkin_id,
        mentor_response_id=mentor_response_id,
        mentor_id=getattr(mentor, "id", None),
        avatar_id=payload.get("replica_id") or getattr(mentor, "tavus_avatar_id", None),
        script_text=script,
        tavus_request_id=payload.get("video_id"),
        status=VIDEO_ROW_STATUS[job_status],
        progress=0,
        metadata_json={"mock": provider.is_mock, "persona_id": payload.get("persona_id")},
    )
    db.add(generation)

    if mentor_response_id:
        response = db.get(MentorResponse, mentor_response_id)
        if response:
            response.tavus_video_id = generation.tavus_request_id

    db.commit()
    db.refresh(generation)
    logger.info("🎬 Video %s queued for user %s (generation %s)", generation.tavus_request_id, user.id, generation.id)
    return generation


def apply_video_result(
    db: Session,
    generation: VideoGeneration,
    status: str,
    video_url: Optional[str] = None,
    thumbnail_url: Optional[str] = None,
    duration: Optional[int] = None,
    error_message: Optional[str] = None,
) -> bool:
    """Persist a terminal video outcome. A row that is already terminal is left alone."""
    if generation.is_terminal:
        logger.info("ℹ️ Generation %s already %s, ignoring %s", generation.id, generation.status, status)
        return False

    if status == COMPLETED:
        generation.status = "completed"
        generation.progress = 100
        generation.video_url = video_url
        generation.thumbnail_url = thumbnail_url
        generation.duration_seconds = duration
        generation.generation_time_ms = _elapsed_ms(generation.created_at)

        if generation.mentor_response_id:
            response = db.get(MentorResponse, generation.mentor_response_id)
            if response:
                response.video_url = video_url
                response.tavus_video_id = generation.tavus_request_id
        if generation.checkin_id:
            checkin = db.get(Checkin, generation.checkin_id)
            if checkin:
                checkin.video_url = video_url
    else:
        generation.status = "failed"
        generation.error_message = error_message or "Video generation failed"

    db.commit()
    return True


async def track_video_generation(
    generation_id: int,
    provider: VideoProvider,
    interval: float = VIDEO_POLL_INTERVAL_SECONDS,
    max_attempts: Optional[int] = VIDEO_POLL_MAX_ATTEMPTS,
    session_factory=SessionLocal,
) -> Optional[AsyncJob]:
    """Background task: poll one video job and persist every change on its row."""
    db = session_factory()
    try:
        generation = db.get(VideoGeneration, generation_id)
        if generation is None or generation.is_terminal or not generation.tavus_request_id:
            return None

        poller = None

        def on_progress(progress: int):
            db.refresh(generation)
            if generation.is_terminal:
                # Webhook got there first
                poller.cancel()
                return
            generation.status = "generating"
            generation.progress = max(generation.progress or 0, progress)
            db.commit()

        def on_complete(job: AsyncJob):
            db.refresh(generation)
            apply_video_result(
                db, generation, COMPLETED,
                video_url=job.result_url,
                thumbnail_url=job.raw.get("thumbnail_url"),
                duration=job.raw.get("duration"),
            )

        def on_error(message: str):
            db.refresh(generation)
            apply_video_result(db, generation, ERROR, error_message=message)

        poller = JobPoller(
            generation.tavus_request_id,
            lambda job_id: provider.get_job("video", job_id),
            interval=interval,
            on_progress=on_progress,
            on_complete=on_complete,
            on_error=on_error,
            max_attempts=max_attempts,
            synthetic_progress=SyntheticProgress(),
        )
        return await _run_tracked(("video", generation_id), poller)
    finally:
        db.close()

# ---------------------------
# ✅ Custom avatars + voice clones
# ---------------------------

TERMINAL_AVATAR_STATUSES = ("ready", "failed")


def validate_avatar_video(content_type: Optional[str], size: int) -> None:
    if size > MAX_AVATAR_VIDEO_BYTES:
        raise MediaValidationError("Video file must be less than 100MB")
    if not (content_type or "").startswith("video/"):
        raise MediaValidationError("File must be a video")


def validate_voice_samples(samples: List[UploadFile]) -> None:
    if len(samples) < MIN_VOICE_SAMPLES:
        raise MediaValidationError("At least 3 voice samples are required")

    estimated_seconds = sum(len(content) / VOICE_BYTES_PER_SECOND for _, content, _ in samples)
    if estimated_seconds < MIN_VOICE_SECONDS:
        raise MediaValidationError("Total voice samples must be at least 60 seconds")

    for _, content, content_type in samples:
        if len(content) > MAX_VOICE_SAMPLE_BYTES:
            raise MediaValidationError("Each audio file must be less than 10MB")
        if not (content_type or "").startswith("audio/"):
            raise MediaValidationError("All files must be audio files")


def _training_row(user: User, name: str, provider_id: str, payload: dict, avatar_type: str,
                  configuration: dict) -> CustomAvatar:
    return CustomAvatar(
        user_id=user.id,
        name=name,
        tavus_avatar_id=provider_id,
        status=AVATAR_ROW_STATUS[normalize_status(payload.get("status"))],
        avatar_type=avatar_type,
        training_progress=payload.get("training_progress") or 0,
        configuration=configuration,
        voice_id=provider_id if avatar_type == "voice_clone" else None,
        preview_video_url=payload.get("thumbnail_url"),
    )


async def create_custom_avatar(db: Session, provider: VideoProvider, user: User, name: str,
                               video: UploadFile) -> CustomAvatar:
    filename, content, content_type = video
    validate_avatar_video(content_type, len(content))

    payload = await provider.create_avatar(name, video)
    avatar = _training_row(user, name, payload.get("avatar_id"), payload, "custom", {"source_filename": filename})
    db.add(avatar)
    db.commit()
    db.refresh(avatar)
    logger.info("🧑‍🎨 Avatar %s training for user %s", avatar.tavus_avatar_id, user.id)
    return avatar


async def clone_voice(
    db: Session,
    provider: VideoProvider,
    user: User,
    name: str,
    samples: List[UploadFile],
    language: str = "en",
    base_persona_id: Optional[str] = None,
) -> CustomAvatar:
    validate_voice_samples(samples)
    persona_id = base_persona_id or ZENKAI_CONFIG["persona_id"]

    payload = await provider.create_voice_clone(name, samples, language, persona_id)
    voice = _training_row(user, name, payload.get("voice_id"), payload, "voice_clone",
                          {"language": language, "base_persona_id": persona_id, "samples": len(samples)})
    db.add(voice)
    db.commit()
    db.refresh(voice)
    logger.info("🎙️ Voice clone %s training for user %s", voice.tavus_avatar_id, user.id)
    return voice


def apply_training_result(
    db: Session,
    row: CustomAvatar,
    status: str,
    preview_url: Optional[str] = None,
    error_message: Optional[str] = None,
) -> bool:
    """Persist a terminal avatar/voice outcome. Ready voices become the owner's custom voice."""
    if row.status in TERMINAL_AVATAR_STATUSES:
        return False

    if status == COMPLETED:
        row.status = "ready"
        row.training_progress = 100
        if preview_url:
            row.preview_video_url = preview_url
        if row.avatar_type == "voice_clone":
            owner = db.get(User, row.user_id)
            if owner:
                owner.custom_voice_id = row.tavus_avatar_id
    else:
        row.status = "failed"
        row.error_message = error_message or "Training failed"

    db.commit()
    return True


async def track_training(
    row_id: int,
    provider: VideoProvider,
    interval: float = TRAINING_POLL_INTERVAL,
    max_attempts: Optional[int] = VIDEO_POLL_MAX_ATTEMPTS,
    session_factory=SessionLocal,
) -> Optional[AsyncJob]:
    """Background task for avatar training and voice cloning."""
    db = session_factory()
    try:
        row = db.get(CustomAvatar, row_id)
        if row is None or row.status in TERMINAL_AVATAR_STATUSES or not row.tavus_avatar_id:
            return None
        kind = "voice" if row.avatar_type == "voice_clone" else "avatar"

        poller = None

        def on_progress(progress: int):
            db.refresh(row)
            if row.status in TERMINAL_AVATAR_STATUSES:
                poller.cancel()
                return
            row.status = "training"
            row.training_progress = max(row.training_progress or 0, progress)
            db.commit()

        def on_complete(job: AsyncJob):
            db.refresh(row)
            apply_training_result(db, row, COMPLETED, preview_url=job.result_url)

        def on_error(message: str):
            db.refresh(row)
            apply_training_result(db, row, ERROR, error_message=message)

        poller = JobPoller(
            row.tavus_avatar_id,
            lambda job_id: provider.get_job(kind, job_id),
            interval=interval,
            on_progress=on_progress,
            on_complete=on_complete,
            on_error=on_error,
            max_attempts=max_attempts,
        )
        return await _run_tracked((kind, row_id), poller)
    finally:
        db.close()

# ---------------------------
# ✅ Poller bookkeeping
# ---------------------------

async def _run_tracked(key: tuple, poller: JobPoller) -> Optional[AsyncJob]:
    previous = _active_pollers.get(key)
    if previous is not None:
        previous.cancel()
    _active_pollers[key] = poller

    try:
        return await poller.run()
    except JobCancelledError:
        logger.info("🛑 Tracking stopped for %s %s", *key)
        return None
    except JobFailedError as e:
        logger.warning("⚠️ Tracking ended with failure for %s %s: %s", key[0], key[1], e.message)
        return None
    except Exception:
        logger.exception("❌ Unexpected error while tracking %s %s", *key)
        return None
    finally:
        if _active_pollers.get(key) is poller:
            del _active_pollers[key]


def cancel_tracking(kind: str, key) -> bool:
    poller = _active_pollers.get((kind, key))
    if poller is None:
        return False
    poller.cancel()
    return True
