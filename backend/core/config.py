import os
from datetime import time

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_time(value: str | None, default: time) -> time:
    if value is None or not value.strip():
        return default
    return time.fromisoformat(value.strip())


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")

DEFAULT_DATABASE_URL = "sqlite:///./clinic.db"
DATABASE_URL = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:4200"])

CLINIC_OPENING_TIME = _get_time(os.getenv("CLINIC_OPENING_TIME"), time(10, 0))
CLINIC_CLOSING_TIME = _get_time(os.getenv("CLINIC_CLOSING_TIME"), time(15, 0))
MAX_DAILY_DOCTOR_APPOINTMENTS = int(os.getenv("MAX_DAILY_DOCTOR_APPOINTMENTS", "5"))


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and DATABASE_URL == DEFAULT_DATABASE_URL:
        raise RuntimeError("DATABASE_URL must be set in production.")
    if CLINIC_OPENING_TIME >= CLINIC_CLOSING_TIME:
        raise RuntimeError("CLINIC_OPENING_TIME must be earlier than CLINIC_CLOSING_TIME.")
    if MAX_DAILY_DOCTOR_APPOINTMENTS < 1:
        raise RuntimeError("MAX_DAILY_DOCTOR_APPOINTMENTS must be at least 1.")
