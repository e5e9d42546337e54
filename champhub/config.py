"""
Environment-driven settings.
Values are read once at import; .env in the working directory is honoured.
"""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("true", "1", "yes", "on")


PROJECT_ROOT = Path(__file__).resolve().parent.parent

DB_PATH = os.getenv("CHAMPHUB_DB_PATH", str(PROJECT_ROOT / "data" / "app.db"))

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "champhub-dev-secret-change-in-production")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24 * 7)))  # 7 days

# Visitors see the "coming soon" page instead of the landing page while true.
MAINTENANCE_MODE = _env_bool("CHAMPHUB_MAINTENANCE_MODE", True)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
]
_extra = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = _DEFAULT_CORS_ORIGINS + [o.strip() for o in _extra.split(",") if o.strip()]
