# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the MentorMate - AI Mentor Accountability project.
# Licensed under the MIT License - see the LICENSE file for details.

# reset_db.py
from app.models import database  # Make sure this imports your Base
from app.models import *  # noqa: F401,F403 registers all models
from app.models.database import engine, SessionLocal
from app.utils.mentor_seed import seed_default_mentors

if __name__ == "__main__":
    print("⚠️ Dropping all existing tables...")
    database.Base.metadata.drop_all(bind=engine)

    print("✅ Recreating tables from models...")
    database.Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        print(f"🌱 Seeded {seed_default_mentors(db)} built-in mentors")
    finally:
        db.close()

    print("✅ Database reset complete.")
