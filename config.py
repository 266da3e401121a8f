"""
config.py
Runtime settings, read from CAMP_* environment variables (and .env).
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CAMP_", env_file=".env", extra="ignore")

    # Storage backend
    STORE_BACKEND: Literal["sqlite", "supabase"] = "sqlite"
    DB_FILE: Path = Path(__file__).with_name("camp.db")
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""

    # Check-in policy
    ALLOW_DUPLICATE_SAME_DAY_CHECKIN: bool = True
    CHECKIN_MAX_ATTEMPTS: int = 3

    # IANA zone used to decide what "today" is
    TIMEZONE: str = "UTC"

    LOG_LEVEL: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
