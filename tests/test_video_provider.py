# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import asyncio
import hashlib
import hmac
import json

import httpx
import pytest

from app.services.video_provider import (
    MockVideoProvider,
    ProviderError,
    TavusProvider,
    ZENKAI_CONFIG,
    build_video_provider,
    verify_webhook_signature,
)


def _tavus(handler, webhook_url="https://api.mentormate.app/webhooks/tavus"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return TavusProvider(api_key="tvs-test", base_url="https://tavus.test/v2", webhook_url=webhook_url, client=client)


class Captured:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body if body is not None else {}
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.status_code == 204:
            return httpx.Response(204)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last(self):
        return self.requests[-1]


# ---------------------------
# Live provider over a mock transport
# ---------------------------

def test_create_video_sends_key_and_callback():
    handler = Captured(body={"video_id": "v_1", "status": "queued"})
    provider = _tavus(handler)

    data = asyncio.run(provider.create_video({"replica_id": "r1", "script": "Hi", "video_name": "n"}))

    assert data["video_id"] == "v_1"
    assert handler.last.method == "POST"
    assert str(handler.last.url) == "https://tavus.test/v2/videos"
    assert handler.last.headers["x-api-key"] == "tvs-test"
    body = json.loads(handler.last.content)
    assert body["callback_url"] == "https://api.mentormate.app/webhooks/tavus/video"
    assert body["script"] == "Hi"


def test_callback_omitted_without_webhook_url():
    handler = Captured(body={"video_id": "v_1", "status": "queued"})
    asyncio.run(_tavus(handler, webhook_url="").create_video({"script": "Hi"}))
    assert "callback_url" not in json.loads(handler.last.content)


def test_conversation_id_becomes_the_video_id():
    handler = Captured(body={"conversation_id": "c_9"})
    provider = _tavus(handler)

    data = asyncio.run(provider.create_conversation_video("r1", "p1", "Breathe"))

    assert data["video_id"] == "c_9"
    assert data["status"] == "queued"
    assert str(handler.last.url).endswith("/conversations")
    assert json.loads(handler.last.content)["callback_url"].endswith("/conversation")


def test_error_status_raises_provider_error():
    provider = _tavus(Captured(status_code=402, body={"message": "Out of credits"}))

    with pytest.raises(ProviderError) as info:
        asyncio.run(provider.get_video("v_1"))

    assert info.value.status_code == 402
    assert info.value.message == "Tavus API error: 402 - Out of credits"


def test_network_failure_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderError) as info:
        asyncio.run(_tavus(handler).get_video("v_1"))

    assert info.value.status_code is None
    assert isinstance(info.value.__cause__, httpx.ConnectError)


def test_delete_accepts_empty_response():
    handler = Captured(status_code=204)
    assert asyncio.run(_tavus(handler).delete_video("v_1")) is None
    assert handler.last.method == "DELETE"


def test_get_job_maps_provider_payload():
    handler = Captured(body={"avatar_id": "a_1", "status": "training", "training_progress": 35})
    job = asyncio.run(_tavus(handler).get_job("avatar", "a_1"))

    assert job.job_id == "a_1"
    assert job.status == "generating"
    assert job.progress == 35
    assert str(handler.last.url).endswith("/avatars/a_1")


def test_voice_clone_uploads_every_sample():
    handler = Captured(body={"voice_id": "vc_1", "status": "training"})
    samples = [(f"s{i}.wav", b"RIFF" + bytes(10), "audio/wav") for i in range(3)]

    asyncio.run(_tavus(handler).create_voice_clone("My voice", samples, "en", "p1"))

    content = handler.last.content
    assert handler.last.headers["content-type"].startswith("multipart/form-data")
    for index in range(3):
        assert f'name="voice_sample_{index}"'.encode() in content
    assert b'name="voice_name"' in content
    assert b"/webhooks/tavus/voice" in content


def test_lists_read_named_keys():
    provider = _tavus(Captured(body={"videos": [{"video_id": "v_1"}]}))
    assert asyncio.run(provider.list_videos()) == [{"video_id": "v_1"}]


def test_health_failure_is_reported_not_raised():
    health = asyncio.run(_tavus(Captured(status_code=500, body={"error": "down"})).check_health())
    assert health == {"status": "error", "version": "unknown", "environment": "production"}


def test_live_provider_requires_key():
    with pytest.raises(ValueError):
        TavusProvider(api_key="")


# ---------------------------
# Mock provider
# ---------------------------

def test_mock_jobs_finish_after_configured_polls():
    provider = MockVideoProvider(polls_until_ready=2)

    async def scenario():
        created = await provider.create_job("video", {"script": "Hello"})
        statuses = [(await provider.get_job("video", created.job_id)).status for _ in range(3)]
        return created, statuses

    created, statuses = asyncio.run(scenario())
    assert created.job_id == "mock_video_1"
    assert created.status == "generating"
    assert statuses == ["generating", "generating", "completed"]


def test_mock_ids_are_sequential():
    provider = MockVideoProvider()

    async def scenario():
        avatar = await provider.create_avatar("Me", ("me.mp4", b"x", "video/mp4"))
        voice = await provider.create_voice_clone("Me", [])
        return avatar, voice

    avatar, voice = asyncio.run(scenario())
    assert avatar["avatar_id"] == "mock_avatar_1"
    assert voice["voice_id"] == "mock_voice_2"


def test_mock_avatar_list_includes_zenkai():
    avatars = asyncio.run(MockVideoProvider().list_avatars())
    assert avatars[0]["avatar_id"] == ZENKAI_CONFIG["avatar_id"]


def test_unknown_job_kind():
    with pytest.raises(ValueError):
        asyncio.run(MockVideoProvider().get_job("podcast", "x"))


def test_build_without_key_falls_back_to_mock():
    assert build_video_provider("").is_mock
    assert not build_video_provider("tvs-key").is_mock


# ---------------------------
# Webhook signatures
# ---------------------------

def test_signature_verification():
    payload = b'{"event_type":"video.completed"}'
    good = hmac.new(b"shh", payload, hashlib.sha256).hexdigest()

    assert verify_webhook_signature(payload, good, "shh")
    assert not verify_webhook_signature(payload, "0" * 64, "shh")
    assert not verify_webhook_signature(payload, None, "shh")
    assert verify_webhook_signature(payload, None, "")
