# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import os
import logging
import requests
from time import sleep

# ---------------------------
# ✅ Logger Setup
# ---------------------------

logger = logging.getLogger(__name__)

# ---------------------------
# ✅ Environment Variables
# ---------------------------

if os.getenv("ENV") != "production":
    from dotenv import load_dotenv
    load_dotenv()

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_API_URL = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")

SESSION_TYPES = ("checkin", "chat", "conversation")
MAX_RETRIES = 2
RETRY_DELAY_SECONDS = 1

# ---------------------------
# ✅ Persona fallbacks
# ---------------------------

MENTOR_FALLBACKS = {
    "ZenKai": [
        "Thank you for sharing that with me. Take a deep breath and remember that every moment is a new beginning. How are you feeling right now?",
        "I appreciate your openness. Let's approach this with mindfulness and compassion. What would bring you peace in this moment?",
        "Your awareness is beautiful. Remember, progress isn't about perfection, it's about presence. What intention would you like to set?",
    ],
    "Coach Lex": [
        "That's the spirit! I love hearing about your journey. You're building real momentum here! What's your next challenge? 💪",
        "YES! You're showing up and that's what matters! Keep that energy flowing. How can we level up your game today?",
        "Amazing work! Every step forward counts, no matter how small. What victory are we celebrating next?",
    ],
    "Prof. Ada": [
        "Excellent insight! Let's analyze this systematically. I can see you're thinking critically about your approach. What patterns do you notice?",
        "That's valuable data you've shared. Let's break this down into actionable components. What's the next logical step in your strategy?",
        "Great observation! Your analytical thinking is improving. How does this connect to your larger learning objectives?",
    ],
    "No-BS Tony": [
        "Alright, let's cut to the chase. I hear what you're saying, but what specific action are you going to take about it?",
        "Good. Now stop thinking and start doing. What's your concrete next step and when are you going to execute it?",
        "I appreciate the honesty. Results speak louder than words. What measurable outcome are you committing to this week?",
    ],
}

DEFAULT_FALLBACKS = [
    "Thank you for sharing that. I'm here to support you on your journey. How can I help you move forward?",
    "I hear you, and I appreciate your commitment to growth. What's one thing you can do right now to progress?",
    "That's valuable insight. Let's focus on what you can control and take meaningful action.",
]

LENGTH_GUIDELINES = {
    "chat": "Keep responses conversational and under 150 words. Ask follow-up questions to engage the user.",
    "checkin": "Provide thoughtful, personalized advice in 150-200 words. Focus on their progress and next steps.",
}


def _attr(mentor, name, default=None):
    if isinstance(mentor, dict):
        return mentor.get(name) or default
    return getattr(mentor, name, None) or default

# ---------------------------
# ✅ Prompt building
# ---------------------------

def build_checkin_context(mood_score: int, goals: list, reflection: str = None, streak: int = None) -> dict:
    return {"mood_score": mood_score, "goals": goals or [], "reflection": reflection, "streak": streak}


def build_system_prompt(mentor, context: dict = None, session_type: str = "checkin") -> str:
    name = _attr(mentor, "name", "Mentor")
    category = _attr(mentor, "category", "general")

    prompt = _attr(mentor, "prompt_template") or f"You are {name}, a {category} mentor. Respond helpfully and in character."
    prompt += f"\n\nYour Personality: {_attr(mentor, 'personality', 'supportive and encouraging')}"
    prompt += f"\nYour Speaking Style: {_attr(mentor, 'speaking_style', 'conversational and helpful')}"
    prompt += f"\nYour Motivation Approach: {_attr(mentor, 'motivation_approach', 'balanced support and challenge')}"

    style = _attr(mentor, "response_style")
    if style:
        prompt += "\nResponse Guidelines:"
        prompt += f"\n- Tone: {style.get('tone') or 'supportive'}"
        prompt += f"\n- Emoji use: {style.get('emoji_use') or 'moderate'}"
        prompt += f"\n- Encouragement level: {style.get('encouragement_level') or 'medium'}"
        prompt += f"\n- Challenge level: {style.get('challenge_level') or 'medium'}"

    if session_type == "checkin" and context:
        prompt += "\n\nUser Context for this check-in:"
        if context.get("mood_score"):
            prompt += f"\n- Current mood: {context['mood_score']}/10"
        goals = context.get("goals") or []
        if goals:
            summary = ", ".join(
                f"{g.get('goal_text')} ({'completed' if g.get('completed') else 'not completed'})" for g in goals
            )
            prompt += f"\n- Goals: {summary}"
        if context.get("reflection"):
            prompt += f"\n- User reflection: \"{context['reflection']}\""
        if context.get("streak"):
            prompt += f"\n- Current streak: {context['streak']} days"

    prompt += "\n\n" + LENGTH_GUIDELINES.get(
        session_type, "Respond naturally and helpfully, keeping messages concise but meaningful."
    )
    return prompt


def generate_local_fallback(mentor, mood_score: int = None) -> str:
    """Persona line picked by mood so the same check-in always gets the same reply."""
    lines = MENTOR_FALLBACKS.get(_attr(mentor, "name"), DEFAULT_FALLBACKS)
    return lines[(mood_score or 0) % len(lines)]

# ---------------------------
# ✅ Chat completion call
# ---------------------------

def _call_chat_completion(messages: list, session_type: str) -> dict:
    headers = {"Authorization": f"Bearer {OPENAI_API_KEY}", "Content-Type": "application/json"}
    body = {
        "model": OPENAI_MODEL,
        "messages": messages,
        "max_tokens": 200 if session_type == "chat" else 300,
        "temperature": 0.7,
        "presence_penalty": 0.1,
        "frequency_penalty": 0.1,
    }

    try_count = 0
    while True:
        try:
            logger.info("🔁 Sending mentor prompt to %s", OPENAI_MODEL)
            response = requests.post(OPENAI_API_URL, headers=headers, json=body, timeout=30)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.RequestException:
            try_count += 1
            if try_count >= MAX_RETRIES:
                raise
            logger.warning("⚠️ AI request failed (attempt %d/%d). Retrying...", try_count, MAX_RETRIES)
            sleep(RETRY_DELAY_SECONDS)


def generate_mentor_response(mentor, user_message: str, context: dict = None,
                             session_type: str = "checkin", history: list = None) -> dict:
    """
    Ask the AI mentor for a reply in character.
    Never raises: without a key, or on any failure, a persona fallback is returned
    with metadata.is_fallback = True.
    """
    name = _attr(mentor, "name", "Mentor")
    mood_score = (context or {}).get("mood_score")

    if not OPENAI_API_KEY:
        logger.warning("⚠️ OPENAI_API_KEY missing, using %s fallback reply", name)
        return {
            "response": generate_local_fallback(mentor, mood_score),
            "metadata": {"model": "local_fallback", "mentor_name": name, "session_type": session_type,
                         "is_fallback": True, "error": "OpenAI API key not configured"},
        }

    messages = [{"role": "system", "content": build_system_prompt(mentor, context, session_type)}]
    for msg in (history or [])[-5:]:
        messages.append({
            "role": "user" if msg.get("sender_type") == "user" else "assistant",
            "content": msg.get("content", ""),
        })
    messages.append({"role": "user", "content": user_message})

    try:
        result = _call_chat_completion(messages, session_type)
        text = ((result.get("choices") or [{}])[0].get("message") or {}).get("content")
        if not text:
            raise ValueError("No response generated from AI")
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error("❌ AI mentor reply failed for %s: %s", name, e)
        return {
            "response": generate_local_fallback(mentor, mood_score),
            "metadata": {"model": "fallback", "mentor_name": name, "session_type": session_type,
                         "is_fallback": True, "error": str(e)},
        }

    usage = result.get("usage") or {}
    return {
        "response": text.strip(),
        "metadata": {
            "model": OPENAI_MODEL,
            "prompt_tokens": usage.get("prompt_tokens"),
            "completion_tokens": usage.get("completion_tokens"),
            "total_tokens": usage.get("total_tokens"),
            "mentor_name": name,
            "session_type": session_type,
            "is_fallback": False,
        },
    }


def generate_checkin_response(mentor, mood_score: int, goals: list, reflection: str = None, streak: int = None) -> dict:
    context = build_checkin_context(mood_score, goals, reflection, streak)
    message = f"User completed a daily check-in with mood score {mood_score}/10, goals status, and reflection."
    return generate_mentor_response(mentor, message, context, session_type="checkin")
