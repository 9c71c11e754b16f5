"""
Platform configuration — environment-driven settings for the engine.
"""

import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

LOG_FORMAT: str = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


class Settings(BaseSettings):
    """Central configuration for VolleyScore."""

    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "VolleyScore"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # ── Roster ───────────────────────────────────────────
    PLAYERS_PER_TEAM: int = Field(default=6, ge=1, le=12)
    DEFAULT_SKILL_LEVEL: int = Field(default=3, ge=1, le=5)
    MAX_NAME_LENGTH: int = 30
    QUEUE_TEAM_PREFIX: str = "Queue Team"

    # ── Match Defaults ───────────────────────────────────
    DEFAULT_TEAM_A_NAME: str = "Home"
    DEFAULT_TEAM_B_NAME: str = "Guest"
    TEAM_COLORS: list[str] = [
        "indigo", "rose", "emerald", "amber", "sky", "violet", "orange", "teal",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a stream handler with the shared format to the package logger."""
    logger = logging.getLogger("volley")
    logger.setLevel(level or settings.LOG_LEVEL)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
