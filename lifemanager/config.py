import os
from dotenv import load_dotenv

load_dotenv()

# --- Database ---
# Default to local SQLite, but prefer environment variable
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/lifemanager.db")

# Fix for common SQLAlchemy issues with postgres:// vs postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

# --- Calendar ---
# "Today" is resolved in this zone; every day key below it is an epoch day
APP_TIMEZONE = os.getenv("APP_TIMEZONE", "UTC")

# --- Habits ---
RECENT_CHECKIN_DAYS = int(os.getenv("RECENT_CHECKIN_DAYS", "30"))

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- App ---
APP_NAME = os.getenv("APP_NAME", "Life Manager")
