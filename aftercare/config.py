# aftercare/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the instance folder unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///aftercare.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Booking runs check + insert under a subject lock; a concurrent booking
    # for the same subject forces a retry of the whole command.
    BOOKING_RETRY_ATTEMPTS = int(os.environ.get("BOOKING_RETRY_ATTEMPTS", "5"))
    BOOKING_RETRY_BACKOFF = float(os.environ.get("BOOKING_RETRY_BACKOFF", "0.05"))

    # Chat sessions untouched for this long are ended by `flask chat end-stale`
    CHAT_STALE_AFTER_MINUTES = int(os.environ.get("CHAT_STALE_AFTER_MINUTES", "120"))
