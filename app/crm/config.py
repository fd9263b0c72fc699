import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str
    log_level: str

    session_hours: int
    max_upload_mb: int

    admin_email: str
    admin_password: str
    admin_name: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///crm.db"),
        log_level=_getenv("LOG_LEVEL", "INFO").upper(),
        session_hours=_getenv_int("SESSION_HOURS", 8),
        max_upload_mb=_getenv_int("MAX_UPLOAD_MB", 25),
        admin_email=_getenv("ADMIN_EMAIL", "admin@dronetech.cz").lower(),
        admin_password=_getenv("ADMIN_PASSWORD", "change-me"),
        admin_name=_getenv("ADMIN_NAME", "Admin User"),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "LOG_LEVEL": s.log_level,
        "SESSION_HOURS": s.session_hours,
        # security defaults
        "SESSION_COOKIE_NAME": "crm_session",
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,
        "MAX_CONTENT_LENGTH": s.max_upload_mb * 1024 * 1024,
    }
