"""
Homesite – Application configuration from environment variables.
"""

import os
from pathlib import Path
from functools import lru_cache

from pydantic import BaseModel

BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseModel):
    """Application settings loaded from environment."""

    # App
    APP_NAME: str = "Homesite"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    PORT: int = 3020
    SECRET_KEY: str = "change-me-in-production-homesite"

    # Storage
    CONFIG_DIR: Path = BASE_DIR / "config"
    PUBLIC_DIR: Path = BASE_DIR / "public"
    UPLOAD_DIR: Path = BASE_DIR / "public" / "uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"

    # Sessions
    SESSION_BACKEND: str = "memory"  # memory | database
    SESSION_COOKIE_NAME: str = "homesite_session"
    SESSION_COOKIE_SECURE: bool = False
    SESSION_EXPIRE_MINUTES: int = 60 * 8
    JWT_ALGORITHM: str = "HS256"

    # Database (only used by the database session backend)
    DATABASE_URL: str = "sqlite+aiosqlite:///./homesite.db"

    # Outbound mail; non-empty values override the emailSettings document
    EMAIL_SENDER: str = ""
    EMAIL_APP_PASSWORD: str = ""
    EMAIL_RECIPIENT: str = ""
    EMAIL_SMTP_HOST: str = "smtp.gmail.com"
    EMAIL_SMTP_PORT: int = 465
    SMTP_TIMEOUT: int = 30
    CONTACT_SUBJECT: str = "New Contact Form Submission from AZHomesbyIris"

    # Login brute force protection
    LOGIN_MAX_ATTEMPTS: int = 5
    LOGIN_WINDOW_SECONDS: int = 900

    # Server
    CORS_ORIGINS: list[str] = ["*"]


def _load_dotenv():
    """Load .env file from project root."""
    env_path = BASE_DIR / ".env"
    if env_path.exists():
        for line in env_path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, val = line.split("=", 1)
                os.environ.setdefault(key.strip(), val.strip())


def _env_flag(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


_load_dotenv()


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance, populated from env vars."""
    defaults = Settings()
    public_dir = Path(os.getenv("PUBLIC_DIR", str(defaults.PUBLIC_DIR)))
    return Settings(
        DEBUG=_env_flag("DEBUG"),
        LOG_LEVEL=os.getenv("LOG_LEVEL", defaults.LOG_LEVEL).upper(),
        PORT=int(os.getenv("PORT", defaults.PORT)),
        SECRET_KEY=os.getenv("SECRET_KEY", defaults.SECRET_KEY),
        CONFIG_DIR=Path(os.getenv("CONFIG_DIR", str(defaults.CONFIG_DIR))),
        PUBLIC_DIR=public_dir,
        UPLOAD_DIR=Path(os.getenv("UPLOAD_DIR", str(public_dir / "uploads"))),
        SESSION_BACKEND=os.getenv("SESSION_BACKEND", defaults.SESSION_BACKEND).lower(),
        SESSION_COOKIE_SECURE=_env_flag("SESSION_COOKIE_SECURE"),
        SESSION_EXPIRE_MINUTES=int(os.getenv("SESSION_EXPIRE_MINUTES", defaults.SESSION_EXPIRE_MINUTES)),
        DATABASE_URL=os.getenv("DATABASE_URL", defaults.DATABASE_URL),
        EMAIL_SENDER=os.getenv("EMAIL_SENDER", ""),
        EMAIL_APP_PASSWORD=os.getenv("EMAIL_APP_PASSWORD", ""),
        EMAIL_RECIPIENT=os.getenv("EMAIL_RECIPIENT", ""),
        EMAIL_SMTP_HOST=os.getenv("EMAIL_SMTP_HOST", defaults.EMAIL_SMTP_HOST),
        EMAIL_SMTP_PORT=int(os.getenv("EMAIL_SMTP_PORT", defaults.EMAIL_SMTP_PORT)),
        LOGIN_MAX_ATTEMPTS=int(os.getenv("LOGIN_MAX_ATTEMPTS", defaults.LOGIN_MAX_ATTEMPTS)),
        LOGIN_WINDOW_SECONDS=int(os.getenv("LOGIN_WINDOW_SECONDS", defaults.LOGIN_WINDOW_SECONDS)),
    )
