# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

import base64
import os

# Settings are read at import time, so they go in before any app module loads
os.environ["ENV"] = "production"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["FERNET_SECRET"] = base64.urlsafe_b64encode(b"m" * 32).decode()
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["TAVUS_API_KEY"] = ""
os.environ["TAVUS_WEBHOOK_SECRET"] = ""
os.environ["OPENAI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

import app.models  # noqa: F401 registers all models
from app.models.database import Base, SessionLocal, engine
from app.models.mentor import Mentor
from app.models.user import User
from app.services.video_provider import MockVideoProvider, get_video_provider
from app.utils.mentor_seed import seed_default_mentors
from app.utils.security import hash_password


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    seed_default_mentors(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mentors(db):
    return {m.name: m for m in db.query(Mentor).all()}


@pytest.fixture
def user(db, mentors):
    u = User(
        email="sam@example.com",
        password_hash=hash_password("correct-horse"),
        full_name="Sam Rivera",
        default_mentor_id=mentors["Coach Lex"].id,
        onboarding_completed=True,
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def provider():
    return MockVideoProvider()


@pytest.fixture
def client(db, provider):
    from app.main import app

    app.dependency_overrides[get_video_provider] = lambda: provider
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _sign_up(client, email="alex@example.com", password="s3cure-pass", full_name="Alex Kim"):
    response = client.post("/auth/signup", json={"email": email, "password": password, "full_name": full_name})
    assert response.status_code == 201, response.text
    body = response.json()
    return {"Authorization": f"Bearer {body['access_token']}"}, body["user"]


@pytest.fixture
def sign_up(client):
    return lambda **kwargs: _sign_up(client, **kwargs)


@pytest.fixture
def auth_headers(sign_up):
    headers, _ = sign_up()
    return headers
