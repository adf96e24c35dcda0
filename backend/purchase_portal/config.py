# backend/purchase_portal/config.py
from __future__ import annotations
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root (helpful locally)
_root_env = Path(__file__).resolve().parent.parent.parent / ".env"
if _root_env.exists():
    load_dotenv(dotenv_path=_root_env)


def _env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///purchase_portal.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Notification routing ---
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@huntsmanoptics.com")
    REBATE_EMAIL = os.environ.get("REBATE_EMAIL", "")
    BASE_URL = os.environ.get("BASE_URL", "http://localhost:5173").rstrip("/")

    # --- Email transport (SendGrid). Without an API key mail is only logged. ---
    SENDGRID_API_KEY = os.environ.get("SENDGRID_API_KEY")
    FROM_EMAIL = os.environ.get("FROM_EMAIL", "portal@huntsmanoptics.com")
    FROM_NAME = os.environ.get("FROM_NAME", "Huntsman Optics Portal")
    REPLY_TO_EMAIL = os.environ.get("REPLY_TO_EMAIL", "")

    # --- Identity token verification ---
    IDENTITY_JWT_SECRET = os.environ.get("IDENTITY_JWT_SECRET", "dev-identity-secret-change-me")
    IDENTITY_JWT_ALGORITHMS = [
        a.strip() for a in os.environ.get("IDENTITY_JWT_ALGORITHMS", "HS256").split(",") if a.strip()
    ]
    IDENTITY_JWT_AUDIENCE = os.environ.get("IDENTITY_JWT_AUDIENCE") or None
    IDENTITY_JWT_ISSUER = os.environ.get("IDENTITY_JWT_ISSUER") or None

    # --- Daily reminder sweep ---
    REMINDER_HOUR = int(os.environ.get("REMINDER_HOUR", "8"))
    REMINDER_MINUTE = int(os.environ.get("REMINDER_MINUTE", "0"))
    REMINDER_TIMEZONE = os.environ.get("REMINDER_TIMEZONE", "UTC")
    REMINDER_SCHEDULER_ENABLED = _env_flag("REMINDER_SCHEDULER_ENABLED")

    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
        if o.strip()
    ]

    # Injection points for tests; None means "build the default".
    MAILER = None
    IDENTITY_VERIFIER = None
    CLOCK = None
