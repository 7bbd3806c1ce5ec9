"""Runtime settings read from the environment; loads .env locally via python-dotenv."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

# Does not override variables already set in the environment
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


DATABASE_URL: str | None = os.getenv("DATABASE_URL")
DB_POOL_MIN: int = _env_int("DB_POOL_MIN", 1)
DB_POOL_MAX: int = _env_int("DB_POOL_MAX", 10)

# "postgres" or "memory"; memory serves the built-in catalog seed data
CALCULATOR_BACKEND: str = os.getenv("CALCULATOR_BACKEND", "postgres" if DATABASE_URL else "memory").strip().lower()

CATALOG_CACHE: bool = _env_bool("CATALOG_CACHE", False)
HISTORY_LIMIT: int = _env_int("HISTORY_LIMIT", 20)

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGIN_REGEX: str = os.getenv("CORS_ORIGIN_REGEX", r"^https?://(localhost|127\.0\.0\.1)(?::\d+)?$")


def configure_logging() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
