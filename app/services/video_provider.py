# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import hashlib
import hmac
import itertools
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from functools import lru_cache
from typing import List, Optional, Tuple

import httpx

from app.services.job_poller import AsyncJob

logger = logging.getLogger(__name__)

# ---------------------------
# ✅ Environment Variables
# ---------------------------

if os.getenv("ENV") != "production":
    from dotenv import load_dotenv
    load_dotenv()

TAVUS_API_URL = os.getenv("TAVUS_API_URL", "https://tavusapi.com/v2")
TAVUS_API_KEY = os.getenv("TAVUS_API_KEY", "")
TAVUS_WEBHOOK_URL = os.getenv("TAVUS_WEBHOOK_URL", "")
TAVUS_WEBHOOK_SECRET = os.getenv("TAVUS_WEBHOOK_SECRET", "")
TAVUS_ENVIRONMENT = os.getenv("TAVUS_ENVIRONMENT", "production")

# ---------------------------
# ✅ Built-in ZenKai persona
# ---------------------------

ZENKAI_CONFIG = {
    "avatar_id": "rca8a38779a8",
    "persona_id": "pa34d77a26e9",
    "replica_id": "rca8a38779a8",
    "voice_settings": {
        "stability": 0.6,
        "similarity_boost": 0.8,
        "style": 0.2,
        "use_speaker_boost": True,
    },
    "background": "calm_office",
    "video_settings": {"quality": "high", "format": "mp4", "resolution": "1080p"},
}

SAMPLE_VIDEO_URL = "https://storage.googleapis.com/gtv-videos-bucket/sample/BigBuckBunny.mp4"
PLACEHOLDER_THUMBNAIL = "https://via.placeholder.com/320x180/2ABB63/FFFFFF?text=ZenKai"
PLACEHOLDER_AVATAR = "https://via.placeholder.com/150x150/2ABB63/FFFFFF?text=Avatar"

JOB_KINDS = ("video", "avatar", "voice")

# (filename, content, content_type)
UploadFile = Tuple[str, bytes, str]


class ProviderError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _clean(payload: dict) -> dict:
    return {k: v for k, v in payload.items() if v is not None}

# ---------------------------
# ✅ Provider payload -> AsyncJob
# ---------------------------

def video_to_job(payload: dict) -> AsyncJob:
    return AsyncJob(
        job_id=payload.get("video_id") or payload.get("conversation_id"),
        status=payload.get("status"),
        result_url=payload.get("video_url") or payload.get("download_url"),
        error_message=payload.get("error_message"),
        progress=payload.get("progress"),
        raw=payload,
    )


def avatar_to_job(payload: dict) -> AsyncJob:
    return AsyncJob(
        job_id=payload.get("avatar_id"),
        status=payload.get("status"),
        result_url=payload.get("video_url") or payload.get("thumbnail_url"),
        error_message=payload.get("error_message"),
        progress=payload.get("training_progress"),
        raw=payload,
    )


def voice_to_job(payload: dict) -> AsyncJob:
    return AsyncJob(
        job_id=payload.get("voice_id"),
        status=payload.get("status"),
        error_message=payload.get("error_message"),
        progress=payload.get("training_progress"),
        raw=payload,
    )

# ---------------------------
# ✅ Provider interface
# ---------------------------

class VideoProvider(ABC):
    is_mock = False

    @abstractmethod
    async def create_video(self, request: dict) -> dict: ...

    @abstractmethod
    async def create_conversation_video(self, replica_id: str, persona_id: str, script: str) -> dict: ...

    @abstractmethod
    async def get_video(self, video_id: str) -> dict: ...

    @abstractmethod
    async def list_videos(self, limit: int = 50) -> List[dict]: ...

    @abstractmethod
    async def delete_video(self, video_id: str) -> None: ...

    @abstractmethod
    async def create_avatar(self, name: str, video: UploadFile) -> dict: ...

    @abstractmethod
    async def get_avatar(self, avatar_id: str) -> dict: ...

    @abstractmethod
    async def list_avatars(self) -> List[dict]: ...

    @abstractmethod
    async def delete_avatar(self, avatar_id: str) -> None: ...

    @abstractmethod
    async def create_voice_clone(self, name: str, samples: List[UploadFile], language: str = "en",
                                 base_persona_id: Optional[str] = None) -> dict: ...

    @abstractmethod
    async def get_voice_clone(self, voice_id: str) -> dict: ...

    @abstractmethod
    async def list_voice_clones(self) -> List[dict]: ...

    @abstractmethod
    async def delete_voice_clone(self, voice_id: str) -> None: ...

    @abstractmethod
    async def check_health(self) -> dict: ...

    @abstractmethod
    async def get_quota(self) -> dict: ...

    # Generic job view used by the poller and the status endpoints

    async def create_job(self, kind: str, config: dict) -> AsyncJob:
        if kind == "video":
            return video_to_job(await self.create_video(config))
        if kind == "avatar":
            return avatar_to_job(await self.create_avatar(config["name"], config["video"]))
        if kind == "voice":
            return voice_to_job(await self.create_voice_clone(
                config["name"], config["samples"], config.get("language", "en"), config.get("base_persona_id")
            ))
        raise ValueError(f"Unknown job kind: {kind}")

    async def get_job(self, kind: str, job_id: str) -> AsyncJob:
        if kind == "video":
            return video_to_job(await self.get_video(job_id))
        if kind == "avatar":
            return avatar_to_job(await self.get_avatar(job_id))
        if kind == "voice":
            return voice_to_job(await self.get_voice_clone(job_id))
        raise ValueError(f"Unknown job kind: {kind}")

    async def delete_job(self, kind: str, job_id: str) -> None:
        if kind == "video":
            return await self.delete_video(job_id)
        if kind == "avatar":
            return await self.delete_avatar(job_id)
        if kind == "voice":
            return await self.delete_voice_clone(job_id)
        raise ValueError(f"Unknown job kind: {kind}")

# ---------------------------
# ✅ Live Tavus API
# ---------------------------

class TavusProvider(VideoProvider):
    def __init__(
        self,
        api_key: str,
        base_url: str = TAVUS_API_URL,
        webhook_url: str = TAVUS_WEBHOOK_URL,
        environment: str = TAVUS_ENVIRONMENT,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30,
    ):
        if not api_key:
            raise ValueError("Tavus API key is required for the live provider")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.webhook_url = webhook_url
        self.environment = environment
        self.timeout = timeout
        self._client = client

    def _callback(self, suffix: str) -> Optional[str]:
        return f"{self.webhook_url}/{suffix}" if self.webhook_url else None

    async def _request(self, method: str, endpoint: str, **kwargs) -> dict:
        url = f"{self.base_url}{endpoint}"
        headers = {"x-api-key": self.api_key}

        try:
            if self._client is not None:
                response = await self._client.request(method, url, headers=headers, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("⚠️ Tavus request %s %s failed: %s", method, endpoint, e)
            raise ProviderError(f"Tavus API unreachable: {e}") from e

        if response.status_code >= 400:
            try:
                data = response.json()
                detail = data.get("message") or data.get("error") or str(data)
            except ValueError:
                detail = response.reason_phrase
            raise ProviderError(f"Tavus API error: {response.status_code} - {detail}", response.status_code)

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    async def create_video(self, request: dict) -> dict:
        body = _clean({**request, "callback_url": self._callback("video")})
        return await self._request("POST", "/videos", json=body)

    async def create_conversation_video(self, replica_id: str, persona_id: str, script: str) -> dict:
        body = _clean({
            "replica_id": replica_id,
            "persona_id": persona_id,
            "script": script,
            "callback_url": self._callback("conversation"),
        })
        data = await self._request("POST", "/conversations", json=body)
        data.setdefault("video_id", data.get("conversation_id"))
        data.setdefault("status", "queued")
        return data

    async def get_video(self, video_id: str) -> dict:
        return await self._request("GET", f"/videos/{video_id}")

    async def list_videos(self, limit: int = 50) -> List[dict]:
        data = await self._request("GET", "/videos", params={"limit": limit})
        return data.get("videos") or []

    async def delete_video(self, video_id: str) -> None:
        await self._request("DELETE", f"/videos/{video_id}")

    async def create_avatar(self, name: str, video: UploadFile) -> dict:
        form = _clean({"avatar_name": name, "callback_url": self._callback("avatar")})
        return await self._request("POST", "/avatars", data=form, files={"video": video})

    async def get_avatar(self, avatar_id: str) -> dict:
        return await self._request("GET", f"/avatars/{avatar_id}")

    async def list_avatars(self) -> List[dict]:
        data = await self._request("GET", "/avatars")
        return data.get("avatars") or []

    async def delete_avatar(self, avatar_id: str) -> None:
        await self._request("DELETE", f"/avatars/{avatar_id}")

    async def create_voice_clone(self, name: str, samples: List[UploadFile], language: str = "en",
                                 base_persona_id: Optional[str] = None) -> dict:
        form = _clean({
            "voice_name": name,
            "language": language,
            "base_persona_id": base_persona_id,
            "callback_url": self._callback("voice"),
        })
        files = [(f"voice_sample_{index}", sample) for index, sample in enumerate(samples)]
        return await self._request("POST", "/voices", data=form, files=files)

    async def get_voice_clone(self, voice_id: str) -> dict:
        return await self._request("GET", f"/voices/{voice_id}")

    async def list_voice_clones(self) -> List[dict]:
        data = await self._request("GET", "/voices")
        return data.get("voices") or []

    async def delete_voice_clone(self, voice_id: str) -> None:
        await self._request("DELETE", f"/voices/{voice_id}")

    async def check_health(self) -> dict:
        try:
            data = await self._request("GET", "/health")
            return {**data, "environment": self.environment}
        except ProviderError as e:
            logger.warning("⚠️ Tavus health check failed: %s", e)
            return {"status": "error", "version": "unknown", "environment": self.environment}

    async def get_quota(self) -> dict:
        return await self._request("GET", "/quota")

# ---------------------------
# ✅ Demo provider (no API key)
# ---------------------------

class MockVideoProvider(VideoProvider):
    """
    Deterministic stand-in used when no Tavus key is configured.
    Jobs report `generating` for `polls_until_ready` checks, then finish.
    """

    is_mock = True

    def __init__(self, polls_until_ready: int = 0):
        self.polls_until_ready = polls_until_ready
        self._ids = itertools.count(1)
        self._polls = {}
        self._names = {}

    def _next_id(self, prefix: str) -> str:
        return f"mock_{prefix}_{next(self._ids)}"

    def _ready(self, job_id: str) -> bool:
        seen = self._polls.get(job_id, 0)
        self._polls[job_id] = seen + 1
        return seen >= self.polls_until_ready

    def _progress(self, job_id: str) -> int:
        if self.polls_until_ready <= 0:
            return 100
        return min(99, int(self._polls.get(job_id, 0) * 100 / (self.polls_until_ready + 1)))

    def _new_video(self, replica_id: Optional[str] = None, persona_id: Optional[str] = None) -> dict:
        return {
            "video_id": self._next_id("video"),
            "status": "generating",
            "created_at": datetime.utcnow().isoformat(),
            "persona_id": persona_id,
            "replica_id": replica_id,
        }

    async def create_video(self, request: dict) -> dict:
        return self._new_video(request.get("replica_id"), request.get("persona_id"))

    async def create_conversation_video(self, replica_id: str, persona_id: str, script: str) -> dict:
        return self._new_video(replica_id, persona_id)

    async def get_video(self, video_id: str) -> dict:
        if not self._ready(video_id):
            return {"video_id": video_id, "status": "generating"}
        return {
            "video_id": video_id,
            "status": "completed",
            "video_url": SAMPLE_VIDEO_URL,
            "thumbnail_url": PLACEHOLDER_THUMBNAIL,
            "download_url": SAMPLE_VIDEO_URL,
            "duration": 30,
            "persona_id": ZENKAI_CONFIG["persona_id"],
            "replica_id": ZENKAI_CONFIG["replica_id"],
        }

    async def list_videos(self, limit: int = 50) -> List[dict]:
        return []

    async def delete_video(self, video_id: str) -> None:
        self._polls.pop(video_id, None)

    async def create_avatar(self, name: str, video: UploadFile) -> dict:
        avatar_id = self._next_id("avatar")
        self._names[avatar_id] = name
        return {
            "avatar_id": avatar_id,
            "avatar_name": name,
            "status": "training",
            "thumbnail_url": PLACEHOLDER_AVATAR,
            "created_at": datetime.utcnow().isoformat(),
            "training_progress": 0,
        }

    async def get_avatar(self, avatar_id: str) -> dict:
        name = self._names.get(avatar_id, "Mock Avatar")
        if not self._ready(avatar_id):
            return {"avatar_id": avatar_id, "avatar_name": name, "status": "training",
                    "training_progress": self._progress(avatar_id)}
        return {"avatar_id": avatar_id, "avatar_name": name, "status": "ready",
                "thumbnail_url": PLACEHOLDER_AVATAR, "training_progress": 100}

    async def list_avatars(self) -> List[dict]:
        return [
            {
                "avatar_id": ZENKAI_CONFIG["avatar_id"],
                "avatar_name": "ZenKai",
                "status": "ready",
                "training_progress": 100,
                "persona_id": ZENKAI_CONFIG["persona_id"],
                "replica_id": ZENKAI_CONFIG["replica_id"],
            },
            {"avatar_id": "default_coach", "avatar_name": "Default Coach", "status": "ready", "training_progress": 100},
        ]

    async def delete_avatar(self, avatar_id: str) -> None:
        self._names.pop(avatar_id, None)

    async def create_voice_clone(self, name: str, samples: List[UploadFile], language: str = "en",
                                 base_persona_id: Optional[str] = None) -> dict:
        voice_id = self._next_id("voice")
        self._names[voice_id] = name
        return {
            "voice_id": voice_id,
            "voice_name": name,
            "status": "training",
            "training_progress": 0,
            "created_at": datetime.utcnow().isoformat(),
            "language": language,
            "persona_id": base_persona_id,
        }

    async def get_voice_clone(self, voice_id: str) -> dict:
        name = self._names.get(voice_id, "Mock Voice")
        if not self._ready(voice_id):
            return {"voice_id": voice_id, "voice_name": name, "status": "training",
                    "training_progress": self._progress(voice_id)}
        return {"voice_id": voice_id, "voice_name": name, "status": "ready", "training_progress": 100, "language": "en"}

    async def list_voice_clones(self) -> List[dict]:
        return []

    async def delete_voice_clone(self, voice_id: str) -> None:
        self._names.pop(voice_id, None)

    async def check_health(self) -> dict:
        return {"status": "mock", "version": "1.0.0", "environment": "development"}

    async def get_quota(self) -> dict:
        return {
            "videos_remaining": 100,
            "voice_minutes_remaining": 500,
            "avatars_remaining": 10,
            "reset_date": (datetime.utcnow() + timedelta(days=30)).isoformat(),
        }

# ---------------------------
# ✅ Selection + webhook signature
# ---------------------------

def build_video_provider(api_key: Optional[str] = None) -> VideoProvider:
    if api_key:
        return TavusProvider(api_key=api_key)
    logger.warning("⚠️ Tavus API key not found. Video features will use mock data.")
    return MockVideoProvider()


@lru_cache(maxsize=1)
def get_video_provider() -> VideoProvider:
    """Process-wide provider, chosen once from TAVUS_API_KEY."""
    return build_video_provider(TAVUS_API_KEY)


def verify_webhook_signature(payload: bytes, signature: Optional[str], secret: Optional[str] = TAVUS_WEBHOOK_SECRET) -> bool:
    if not secret:
        return True
    if not signature:
        return False
    expected = hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)
