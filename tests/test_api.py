# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import asyncio
import hashlib
import hmac
import json

import pytest

from app.models.custom_avatar import CustomAvatar
from app.models.user import User
from app.models.video_generation import VideoGeneration
from app.services import checkin_service, video_provider
from app.services.ai_mentor_service import MENTOR_FALLBACKS


def _onboard(client, headers, mentors, name="Coach Lex", goals=("Run 5k", "Read")):
    response = client.post("/profile/onboarding", headers=headers,
                           json={"mentor_id": mentors[name].id, "goals": list(goals)})
    assert response.status_code == 200, response.text
    return response.json()


def _check_in(client, headers, **overrides):
    body = {"mood_score": 7, "goal_status": [{"goal_text": "Run 5k", "completed": True},
                                             {"goal_text": "Read", "completed": False}]}
    body.update(overrides)
    return client.post("/checkins", headers=headers, json=body)


# ---------------------------
# Auth + session
# ---------------------------

def test_root_and_health(client):
    assert client.get("/").status_code == 200
    assert client.get("/health").json() == {"status": "ok"}


def test_signup_signin_and_me(client, sign_up):
    headers, user = sign_up(email="Alex@Example.com ")
    assert user["email"] == "alex@example.com"
    assert user["onboarding_completed"] is False

    assert client.post("/auth/signup", json={"email": "alex@example.com", "password": "another-pass"}).status_code == 409

    bad = client.post("/auth/signin", json={"email": "alex@example.com", "password": "wrong-pass"})
    assert bad.status_code == 401

    good = client.post("/auth/signin", json={"email": "alex@example.com", "password": "s3cure-pass"})
    assert good.status_code == 200
    me = client.get("/auth/me", headers={"Authorization": f"Bearer {good.json()['access_token']}"})
    assert me.json()["id"] == user["id"]


def test_signup_validation(client):
    assert client.post("/auth/signup", json={"email": "nope", "password": "s3cure-pass"}).status_code == 422
    assert client.post("/auth/signup", json={"email": "a@b.co", "password": "short"}).status_code == 422


def test_session_and_signout(client, auth_headers):
    assert client.get("/auth/session").json() == {"authenticated": False, "user": None}

    session = client.get("/auth/session", headers=auth_headers).json()
    assert session["authenticated"] is True
    assert session["expires_at"]

    assert client.post("/auth/signout", headers=auth_headers).status_code == 200
    assert client.get("/auth/me", headers=auth_headers).status_code == 401
    assert client.get("/auth/session", headers=auth_headers).json()["authenticated"] is False


def test_protected_routes_need_a_token(client):
    assert client.get("/checkins").status_code == 401
    assert client.get("/analytics/streak", headers={"Authorization": "Bearer junk"}).status_code == 401

# ---------------------------
# Mentors, profile, goals
# ---------------------------

def test_mentor_catalog(client, auth_headers):
    mentors = client.get("/mentors").json()
    assert [m["name"] for m in mentors] == ["Coach Lex", "ZenKai", "Prof. Ada", "No-BS Tony"]

    wellness = client.get("/mentors/category/wellness").json()
    assert [m["name"] for m in wellness] == ["ZenKai"]
    assert client.get("/mentors/category/cooking").status_code == 400


def test_custom_mentors_are_private(client, sign_up):
    owner, _ = sign_up(email="owner@example.com")
    other, _ = sign_up(email="other@example.com")

    created = client.post("/mentors/custom", headers=owner, json={"name": "Gran", "category": "Wellness"})
    assert created.status_code == 201
    mentor_id = created.json()["id"]

    assert client.get(f"/mentors/{mentor_id}", headers=owner).status_code == 200
    assert client.get(f"/mentors/{mentor_id}", headers=other).status_code == 404
    assert [m["name"] for m in client.get("/mentors/custom", headers=owner).json()] == ["Gran"]
    assert "Gran" not in [m["name"] for m in client.get("/mentors").json()]


def test_onboarding_sets_mentor_and_goals(client, auth_headers, mentors):
    result = _onboard(client, auth_headers, mentors, "ZenKai", goals=("Meditate", " Meditate ", "Walk"))

    assert result["profile"]["onboarding_completed"] is True
    assert result["profile"]["default_mentor_id"] == mentors["ZenKai"].id
    assert [g["text"] for g in result["goals"]] == ["Meditate", "Walk"]


def test_profile_update_checks_timezone(client, auth_headers):
    assert client.patch("/profile", headers=auth_headers, json={"timezone": "Mars/Olympus"}).status_code == 400
    updated = client.patch("/profile", headers=auth_headers, json={"timezone": "Europe/Berlin", "full_name": "Alex K"})
    assert updated.json()["timezone"] == "Europe/Berlin"
    assert updated.json()["full_name"] == "Alex K"


def test_goal_crud(client, auth_headers):
    created = client.post("/goals", headers=auth_headers, json={"text": "Stretch"})
    assert created.status_code == 201
    goal_id = created.json()["id"]
    assert client.post("/goals", headers=auth_headers, json={"text": "Stretch "}).status_code == 409

    bulk = client.post("/goals/bulk", headers=auth_headers, json={"goals": ["Stretch", "Journal", "Sleep by 11"]})
    assert [g["text"] for g in bulk.json()] == ["Journal", "Sleep by 11"]

    assert client.patch(f"/goals/{goal_id}", headers=auth_headers, json={"text": "Stretch 10 min"}).status_code == 200
    assert client.delete(f"/goals/{goal_id}", headers=auth_headers).status_code == 200
    texts = [g["text"] for g in client.get("/goals", headers=auth_headers).json()]
    assert texts == ["Journal", "Sleep by 11"]
    assert client.delete(f"/goals/{goal_id}", headers=auth_headers).status_code == 404

# ---------------------------
# Check-ins + analytics
# ---------------------------

def test_checkin_needs_a_mentor(client, auth_headers):
    response = _check_in(client, auth_headers)
    assert response.status_code == 400
    assert "No mentor selected" in response.json()["detail"]


def test_checkin_returns_reply_and_streak(client, auth_headers, mentors):
    _onboard(client, auth_headers, mentors)

    response = _check_in(client, auth_headers)
    assert response.status_code == 201
    body = response.json()

    assert body["streak"] == {"current_streak": 1, "longest_streak": 1}
    assert body["video"] is None
    reply = body["checkin"]["mentor_response"]
    assert reply["response_text"] == MENTOR_FALLBACKS["Coach Lex"][7 % 3]
    assert reply["response_metadata"]["is_fallback"] is True

    listed = client.get("/checkins", headers=auth_headers).json()
    assert [c["id"] for c in listed] == [body["checkin"]["id"]]
    assert client.get(f"/checkins/{body['checkin']['id']}", headers=auth_headers).status_code == 200
    assert client.get("/checkins/9999", headers=auth_headers).status_code == 404


def test_checkin_reply_is_generated_off_the_event_loop(client, auth_headers, mentors, monkeypatch):
    threads = []

    def fake_reply(mentor, mood_score, goals, reflection=None, streak=None):
        try:
            asyncio.get_running_loop()
            threads.append("event loop")
        except RuntimeError:
            threads.append("worker")
        return {"response": "Nice work.", "metadata": {"is_fallback": False}}

    monkeypatch.setattr(checkin_service, "generate_checkin_response", fake_reply)
    _onboard(client, auth_headers, mentors)

    response = _check_in(client, auth_headers)
    assert response.status_code == 201
    assert response.json()["checkin"]["mentor_response"]["response_text"] == "Nice work."
    assert threads == ["worker"]


@pytest.mark.parametrize("overrides", [
    {"mood_score": 0},
    {"mood_score": 11},
    {"goal_status": [{"goal_text": "  ", "completed": True}]},
    {"goal_status": [{"goal_text": "Read", "completed": True}, {"goal_text": "Read ", "completed": False}]},
])
def test_invalid_checkins_are_rejected(client, auth_headers, mentors, overrides):
    _onboard(client, auth_headers, mentors)
    assert _check_in(client, auth_headers, **overrides).status_code == 400


def test_checkin_with_someone_elses_mentor(client, sign_up, mentors):
    owner, _ = sign_up(email="owner@example.com")
    other, _ = sign_up(email="other@example.com")
    mentor_id = client.post("/mentors/custom", headers=owner, json={"name": "Gran"}).json()["id"]
    _onboard(client, other, mentors)

    assert _check_in(client, other, mentor_id=mentor_id).status_code == 404


def test_checkin_video_is_generated_and_linked(client, auth_headers, mentors, db):
    _onboard(client, auth_headers, mentors, "ZenKai")

    body = _check_in(client, auth_headers, generate_video=True).json()
    assert body["video"]["status"] == "generating"

    db.expire_all()
    generation = db.get(VideoGeneration, body["video"]["generation_id"])
    assert generation.status == "completed"
    assert generation.video_url == video_provider.SAMPLE_VIDEO_URL

    checkin = client.get(f"/checkins/{body['checkin']['id']}", headers=auth_headers).json()
    assert checkin["video_url"] == video_provider.SAMPLE_VIDEO_URL
    assert checkin["mentor_response"]["video_url"] == video_provider.SAMPLE_VIDEO_URL


def test_checkin_video_unavailable_for_mentor_without_avatar(client, auth_headers, mentors):
    _onboard(client, auth_headers, mentors, "Prof. Ada")

    response = _check_in(client, auth_headers, generate_video=True)
    assert response.status_code == 201
    assert response.json()["video"]["status"] == "unavailable"


def test_analytics_endpoints(client, auth_headers, mentors):
    _onboard(client, auth_headers, mentors)
    _check_in(client, auth_headers)

    assert client.get("/analytics/streak", headers=auth_headers).json() == {"current_streak": 1, "longest_streak": 1}

    weekly = client.get("/analytics/weekly", headers=auth_headers).json()
    assert weekly["total_checkins"] == 1
    assert weekly["completion_rate"] == 50
    assert weekly["mentor_usage"] == [{"mentor_id": mentors["Coach Lex"].id, "mentor_name": "Coach Lex", "count": 1}]

    progress = client.get("/analytics/progress?timeframe=month", headers=auth_headers).json()
    assert len(progress["daily"]) == 30
    assert progress["has_enough_data"] is False
    assert client.get("/analytics/progress?timeframe=year", headers=auth_headers).status_code == 400

    insights = client.get("/analytics/mentors?timeframe=all", headers=auth_headers).json()
    assert insights["mentors"][0]["mentor_name"] == "Coach Lex"
    assert client.get("/analytics/mentors?timeframe=decade", headers=auth_headers).status_code == 400

    goals = client.get("/analytics/goals", headers=auth_headers).json()
    assert {g["goal_text"] for g in goals["goals"]} == {"Run 5k", "Read"}

    recommendations = client.get("/analytics/recommendations", headers=auth_headers).json()["recommendations"]
    titles = [r["title"] for r in recommendations]
    assert "Check in with my mentor every day" in titles
    assert "Read" not in titles

# ---------------------------
# Videos, webhooks, media
# ---------------------------

def test_video_request_and_delete(client, auth_headers, mentors):
    created = client.post("/videos", headers=auth_headers,
                          json={"mentor_id": mentors["ZenKai"].id, "script": "You showed up today."})
    assert created.status_code == 202
    generation_id = created.json()["id"]

    fetched = client.get(f"/videos/{generation_id}", headers=auth_headers).json()
    assert fetched["status"] == "completed"
    assert len(client.get("/videos", headers=auth_headers).json()) == 1

    job = client.get(f"/videos/jobs/video/{fetched['tavus_request_id']}", headers=auth_headers).json()
    assert job["status"] == "completed"
    assert client.get("/videos/jobs/podcast/x", headers=auth_headers).status_code == 400

    assert client.delete(f"/videos/{generation_id}", headers=auth_headers).status_code == 200
    assert client.get(f"/videos/{generation_id}", headers=auth_headers).status_code == 404


def test_video_request_for_mentor_without_avatar(client, auth_headers, mentors):
    response = client.post("/videos", headers=auth_headers, json={"mentor_id": mentors["Coach Lex"].id, "script": "Go"})
    assert response.status_code == 400


def test_webhook_completes_video(client, db, user, monkeypatch):
    monkeypatch.setattr(video_provider, "TAVUS_WEBHOOK_SECRET", "shh")
    generation = VideoGeneration(user_id=user.id, script_text="Hi", tavus_request_id="tv_42", status="generating")
    db.add(generation)
    db.commit()

    body = json.dumps({"event_type": "video.completed",
                       "data": {"id": "tv_42", "video_url": "https://cdn.example.com/42.mp4", "duration": 12}}).encode()
    signature = hmac.new(b"shh", body, hashlib.sha256).hexdigest()

    assert client.post("/webhooks/tavus", content=body, headers={"x-tavus-signature": "bad"}).status_code == 401

    response = client.post("/webhooks/tavus", content=body, headers={"x-tavus-signature": signature})
    assert response.json() == {"success": True, "applied": True}

    db.expire_all()
    generation = db.get(VideoGeneration, generation.id)
    assert generation.status == "completed"
    assert generation.duration_seconds == 12

    # A repeat or late event leaves the finished row alone
    late = json.dumps({"event_type": "video.error", "data": {"id": "tv_42", "error_message": "late"}}).encode()
    late_sig = hmac.new(b"shh", late, hashlib.sha256).hexdigest()
    assert client.post("/webhooks/tavus", content=late, headers={"x-tavus-signature": late_sig}).json()["applied"] is False


def test_webhook_rejects_bad_json_and_ignores_unknown_events(client):
    assert client.post("/webhooks/tavus", content=b"{not json").status_code == 400
    assert client.post("/webhooks/tavus", json=[]).status_code == 400
    assert client.post("/webhooks/tavus", json={"event_type": "video.completed", "data": "v_1"}).status_code == 400
    response = client.post("/webhooks/tavus", json={"event_type": "replica.created", "data": {}})
    assert response.json() == {"success": True, "applied": False}


def test_voice_webhook_sets_custom_voice(client, db, user):
    db.add(CustomAvatar(user_id=user.id, name="Me", tavus_avatar_id="vc_7", avatar_type="voice_clone",
                        status="training"))
    db.commit()

    response = client.post("/webhooks/tavus", json={"event_type": "voice.ready", "data": {"id": "vc_7"}})
    assert response.json()["applied"] is True
    db.expire_all()
    assert db.get(User, user.id).custom_voice_id == "vc_7"


def test_avatar_upload_trains_in_background(client, auth_headers):
    response = client.post("/avatars", headers=auth_headers, data={"name": "Me on camera"},
                           files={"video": ("me.mp4", b"\x00" * 2048, "video/mp4")})
    assert response.status_code == 202
    avatar_id = response.json()["id"]

    assert client.get(f"/avatars/{avatar_id}", headers=auth_headers).json()["status"] == "ready"
    assert [a["id"] for a in client.get("/avatars", headers=auth_headers).json()] == [avatar_id]

    wrong_type = client.post("/avatars", headers=auth_headers, data={"name": "Me"},
                             files={"video": ("me.png", b"\x00", "image/png")})
    assert wrong_type.status_code == 400

    assert client.delete(f"/avatars/{avatar_id}", headers=auth_headers).status_code == 200
    assert client.get("/avatars", headers=auth_headers).json() == []


def test_voice_upload_and_delete(client, auth_headers):
    samples = [("samples", (f"s{i}.wav", b"\x00" * 320000, "audio/wav")) for i in range(3)]
    response = client.post("/voices", headers=auth_headers, data={"name": "My voice"}, files=samples)
    assert response.status_code == 202
    voice_id = response.json()["id"]

    voices = client.get("/voices", headers=auth_headers).json()
    assert [(v["id"], v["status"]) for v in voices] == [(voice_id, "ready")]
    assert client.get("/auth/me", headers=auth_headers).json()["custom_voice_id"] == response.json()["tavus_avatar_id"]
    assert client.get("/avatars", headers=auth_headers).json() == []

    assert client.delete(f"/voices/{voice_id}", headers=auth_headers).status_code == 200
    assert client.get("/auth/me", headers=auth_headers).json()["custom_voice_id"] is None


def test_voice_upload_needs_three_samples(client, auth_headers):
    samples = [("samples", ("s.wav", b"\x00" * 320000, "audio/wav"))]
    assert client.post("/voices", headers=auth_headers, data={"name": "Me"}, files=samples).status_code == 400


def test_provider_avatars_and_deep_health(client, auth_headers):
    avatars = client.get("/avatars/provider", headers=auth_headers).json()
    assert avatars["mock"] is True
    assert avatars["avatars"][0]["avatar_name"] == "ZenKai"

    health = client.get("/healthz").json()
    assert health["status"] == "ok"
    assert health["details"]["db_connection"] is True
    assert health["details"]["mock_mode"] is True
    assert health["details"]["quota"]["videos_remaining"] == 100

# ---------------------------
# Nudges
# ---------------------------

def test_nudges_list_and_dismiss(client, auth_headers, mentors):
    from app.services.nudge_service import process_nudges

    _onboard(client, auth_headers, mentors, "No-BS Tony")
    assert process_nudges() == 1

    messages = client.get("/nudges", headers=auth_headers).json()["messages"]
    assert [m["pattern_type"] for m in messages] == ["missed_checkins"]
    assert "radio silent" in messages[0]["content"]

    assert client.post(f"/nudges/{messages[0]['id']}/dismiss", headers=auth_headers).status_code == 200
    assert client.get("/nudges", headers=auth_headers).json()["messages"] == []
    assert client.post("/nudges/9999/dismiss", headers=auth_headers).status_code == 404
