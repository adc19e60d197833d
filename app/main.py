# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.


from fastapi import FastAPI
from contextlib import asynccontextmanager
from apscheduler.schedulers.background import BackgroundScheduler

import logging
import os

from app.models import database
from app.models import *  # registers all models

from app.routers import auth_router, profile_router, mentor_router, goal_router
from app.routers import checkin_router, analytics_router
from app.routers import video_router, avatar_router, webhook_router
from app.routers import notifications_router, healthz_router

from app.services.nudge_service import process_nudges
from app.utils.mentor_seed import seed_default_mentors

from pytz import timezone  # ✅ use this for interval

from app.utils.rate_limit_utils import limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from fastapi.responses import JSONResponse

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ENABLE_SCHEDULER = os.getenv("ENABLE_SCHEDULER", "true").lower() == "true"
SCHEDULER_TIMEZONE = os.getenv("SCHEDULER_TIMEZONE", "UTC")

# Scheduler setup
scheduler = BackgroundScheduler(job_defaults={"misfire_grace_time": 60})

@asynccontextmanager
async def lifespan(app: FastAPI):

    # Create DB tables in one go
    database.Base.metadata.create_all(bind=database.engine)

    db = database.SessionLocal()
    try:
        seed_default_mentors(db)
    finally:
        db.close()

    if ENABLE_SCHEDULER:
        # 🗓️ Proactive nudges every 6 hours
        scheduler.add_job(process_nudges, trigger="cron", hour="*/6", minute=15,
                          timezone=timezone(SCHEDULER_TIMEZONE), id="process_nudges", replace_existing=True)
        scheduler.start()
        logger.info("⏰ Scheduler started (%s)", SCHEDULER_TIMEZONE)

    yield

    if scheduler.running:
        scheduler.shutdown()

# Create FastAPI app with lifespan
app = FastAPI(
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    title="MentorMate API",
    description="AI mentor accountability backend: check-ins, analytics and mentor videos",
    version="1.0"
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

# Include routers
app.include_router(auth_router.router)
app.include_router(profile_router.router)
app.include_router(mentor_router.router)
app.include_router(goal_router.router)
app.include_router(checkin_router.router)
app.include_router(analytics_router.router)
app.include_router(video_router.router)
app.include_router(avatar_router.router)
app.include_router(webhook_router.router)
app.include_router(notifications_router.router)
app.include_router(healthz_router.router)


# ---------------------- ADDING EXCEPTION HANDLER ----------------------
@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request, exc):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests. Please slow down."}
    )

@app.get("/")
def read_root():
    return {"message": "Welcome to MentorMate - AI mentor accountability backend Live"}
