"""
Application configuration

Settings are read from the environment once (a local ``.env`` file is loaded
first when present) and shared as an immutable object:

- DATABASE_URL / DATABASE_NAME: MongoDB connection and database name
- JWT_SECRET / JWT_EXPIRATION_HOURS: token signing
- PAGINATION_DEFAULT_LIMIT / PAGINATION_MAX_LIMIT: list endpoints
- CORS_ORIGINS: comma-separated origins, "*" allows all
- LOG_LEVEL: logging level name
- PORT: port for the development server
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _parse_cors_origins(raw: str) -> List[str]:
    raw = (raw or "").strip()
    if not raw or raw == "*":
        return ["*"]
    return [p.strip() for p in raw.split(",") if p.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str] = None
    database_name: Optional[str] = None
    jwt_secret: str = "blogsphere_secret_key"
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 24
    default_limit: int = 10
    max_limit: int = 50
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL") or None,
            database_name=os.getenv("DATABASE_NAME") or None,
            jwt_secret=os.getenv("JWT_SECRET") or cls.jwt_secret,
            jwt_expiration_hours=_int_env("JWT_EXPIRATION_HOURS", cls.jwt_expiration_hours),
            default_limit=_int_env("PAGINATION_DEFAULT_LIMIT", cls.default_limit),
            max_limit=_int_env("PAGINATION_MAX_LIMIT", cls.max_limit),
            cors_origins=_parse_cors_origins(os.getenv("CORS_ORIGINS", "*")),
            log_level=(os.getenv("LOG_LEVEL") or cls.log_level).upper(),
            port=_int_env("PORT", cls.port),
        )


_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, reading the environment on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS


def set_settings(settings: Settings) -> None:
    """Replace the process-wide settings (used by tests)."""
    global _SETTINGS
    _SETTINGS = settings


def configure_logging(level: Optional[str] = None) -> None:
    name = (level or get_settings().log_level).upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
