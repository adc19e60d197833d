# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import requests

from app.services import ai_mentor_service as ai

ZENKAI = {
    "name": "ZenKai",
    "category": "wellness",
    "personality": "Calm, empathetic and wise",
    "response_style": {"tone": "calm", "emoji_use": "low"},
}


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


def test_system_prompt_carries_persona_and_checkin():
    context = ai.build_checkin_context(4, [{"goal_text": "Run 5k", "completed": False}], "Rough day", streak=3)
    prompt = ai.build_system_prompt(ZENKAI, context, "checkin")

    assert prompt.startswith("You are ZenKai, a wellness mentor.")
    assert "Your Personality: Calm, empathetic and wise" in prompt
    assert "- Tone: calm" in prompt
    assert "- Current mood: 4/10" in prompt
    assert "Run 5k (not completed)" in prompt
    assert 'User reflection: "Rough day"' in prompt
    assert "Current streak: 3 days" in prompt
    assert prompt.endswith(ai.LENGTH_GUIDELINES["checkin"])


def test_chat_prompt_skips_checkin_context():
    prompt = ai.build_system_prompt({"name": "Coach Lex", "prompt_template": "You are Coach Lex."},
                                    {"mood_score": 7}, "chat")
    assert prompt.startswith("You are Coach Lex.")
    assert "Current mood" not in prompt
    assert prompt.endswith(ai.LENGTH_GUIDELINES["chat"])


def test_fallback_line_is_stable_per_mood():
    assert ai.generate_local_fallback(ZENKAI, 7) == ai.MENTOR_FALLBACKS["ZenKai"][1]
    assert ai.generate_local_fallback({"name": "Somebody"}, 3) == ai.DEFAULT_FALLBACKS[0]


def test_missing_key_returns_fallback(monkeypatch):
    monkeypatch.setattr(ai, "OPENAI_API_KEY", None)

    def fail(*args, **kwargs):
        raise AssertionError("no HTTP call expected")

    monkeypatch.setattr(ai.requests, "post", fail)
    result = ai.generate_checkin_response(ZENKAI, 6, [], None, 1)

    assert result["response"] == ai.MENTOR_FALLBACKS["ZenKai"][0]
    assert result["metadata"]["model"] == "local_fallback"
    assert result["metadata"]["is_fallback"] is True


def test_successful_reply_reports_usage(monkeypatch):
    sent = {}

    def fake_post(url, headers, json, timeout):
        sent.update(url=url, headers=headers, body=json)
        return FakeResponse({
            "choices": [{"message": {"content": "  Breathe in. You showed up today.  "}}],
            "usage": {"prompt_tokens": 120, "completion_tokens": 30, "total_tokens": 150},
        })

    monkeypatch.setattr(ai, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(ai.requests, "post", fake_post)

    history = [{"sender_type": "user", "content": "hi"}, {"sender_type": "mentor", "content": "hello"}]
    result = ai.generate_mentor_response(ZENKAI, "How am I doing?", {"mood_score": 6}, "chat", history)

    assert result["response"] == "Breathe in. You showed up today."
    assert result["metadata"]["total_tokens"] == 150
    assert result["metadata"]["is_fallback"] is False
    assert sent["headers"]["Authorization"] == "Bearer sk-test"
    assert sent["body"]["max_tokens"] == 200
    assert [m["role"] for m in sent["body"]["messages"]] == ["system", "user", "assistant", "user"]


def test_request_failures_retry_then_fall_back(monkeypatch):
    calls = []

    def failing_post(*args, **kwargs):
        calls.append(1)
        return FakeResponse({}, status_code=503)

    monkeypatch.setattr(ai, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(ai, "RETRY_DELAY_SECONDS", 0)
    monkeypatch.setattr(ai.requests, "post", failing_post)

    result = ai.generate_checkin_response(ZENKAI, 5, [], None, None)

    assert len(calls) == ai.MAX_RETRIES
    assert result["metadata"]["model"] == "fallback"
    assert result["metadata"]["is_fallback"] is True
    assert "503" in result["metadata"]["error"]
    assert result["response"] == ai.generate_local_fallback(ZENKAI, 5)


def test_empty_completion_falls_back(monkeypatch):
    monkeypatch.setattr(ai, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(ai.requests, "post", lambda *a, **k: FakeResponse({"choices": []}))

    result = ai.generate_checkin_response(ZENKAI, 8, [], None, None)
    assert result["metadata"]["error"] == "No response generated from AI"
