import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    record_store_backend: str
    record_store_url: str
    record_store_api_key: str
    record_store_timeout: int


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
        database_url=_getenv("DATABASE_URL", "sqlite:///registry.db"),
        record_store_backend=_getenv("RECORD_STORE_BACKEND", "sql").lower(),
        record_store_url=_getenv("RECORD_STORE_URL", ""),
        record_store_api_key=_getenv("RECORD_STORE_API_KEY", ""),
        record_store_timeout=_getenv_int("RECORD_STORE_TIMEOUT", 30),
    )


def load_config() -> dict:
    s = load_settings()
    is_production = s.env in ("prod", "production")
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "RECORD_STORE_BACKEND": s.record_store_backend,
        "RECORD_STORE_URL": s.record_store_url,
        "RECORD_STORE_API_KEY": s.record_store_api_key,
        "RECORD_STORE_TIMEOUT": s.record_store_timeout,
        # security defaults
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
        # form posts only; no uploads
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
