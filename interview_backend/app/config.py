# interview_backend/app/config.py
from __future__ import annotations

import json
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic.functional_validators import BeforeValidator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Annotated


def _clean_str(v: str | None) -> str | None:
    if v is None:
        return None
    s = str(v).strip().strip('"').strip("'").rstrip("\r")
    return s


def _to_bool(v) -> bool:
    if isinstance(v, bool):
        return v
    s = str(v or "").strip().strip('"').strip("'").strip()
    s = s.lower().rstrip("\r")
    if s in {"1", "true", "yes", "on"}:
        return True
    if s in {"0", "false", "no", "off", ""}:
        return False
    return bool(s)


def parse_cors_env(v) -> List[str]:
    if v is None or v == "":
        return ["*"]
    if isinstance(v, list):
        return v
    s = str(v).strip()
    if s.startswith("["):
        try:
            return [str(x).strip() for x in json.loads(s)]
        except json.JSONDecodeError:
            pass
    return [x.strip() for x in s.split(",") if x.strip()]


def _project_root() -> Path:
    # .../interview_backend
    return Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """
    Service configuration, read from the environment and ``.env``.

    - STORAGE_BACKEND: 'local' | 'memory': where interview session snapshots live
    - SESSION_STORAGE_DIR: directory for the 'local' backend (one JSON file per key)
    - SESSION_TTL_HOURS: snapshots older than this are discarded on restore
    - AUTOSAVE_INTERVAL_SECONDS: heartbeat save period while an interview is active
    - EVALUATION_MAX_ATTEMPTS / EVALUATION_RETRY_DELAY_SECONDS: scoring retry policy
    - IDLE_ENGINE_SECONDS: in-memory engines not running a question are dropped after this long untouched
    - SCORING_WORKERS: threads that score interviews finished by the clock loop
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )

    # --- DB ---
    DB_HOST: Annotated[str, BeforeValidator(_clean_str)] = "localhost"
    DB_PORT: int = 5432
    DB_NAME: Annotated[str, BeforeValidator(_clean_str)] = "interviewdb"
    DB_USER: Annotated[str, BeforeValidator(_clean_str)] = "interview"
    DB_PASSWORD: Annotated[str, BeforeValidator(_clean_str)] = "interview"

    DATABASE_URL: str | None = None

    RUN_IN_DOCKER: Annotated[bool, BeforeValidator(_to_bool)] = False

    @property
    def db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL

        host = "interview_postgres" if self.RUN_IN_DOCKER else self.DB_HOST
        return (
            f"postgresql+psycopg://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{host}:{self.DB_PORT}/{self.DB_NAME}?sslmode=disable"
        )

    DEBUG: Annotated[bool, BeforeValidator(_to_bool)] = False

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_db_url(cls, v: str) -> str:
        # "postgresql://" without a driver -> psycopg
        if isinstance(v, str) and v.startswith("postgresql://"):
            return "postgresql+psycopg://" + v[len("postgresql://"):]
        return v

    CORS_ALLOW_ORIGINS: Annotated[List[str] | str,
                                  BeforeValidator(parse_cors_env)] = ["*"]

    # --- AI scoring ---
    OPENAI_API_KEY: Annotated[str | None, BeforeValidator(_clean_str)] = None
    OPENAI_MODEL: str = Field(default="gpt-4o-mini")
    EVALUATION_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    EVALUATION_RETRY_DELAY_SECONDS: float = Field(default=1.0, ge=0)

    # --- interview sessions ---
    STORAGE_BACKEND: str = Field(default="local")
    SESSION_STORAGE_DIR: Path = Field(default_factory=lambda: _project_root() / "session_data")
    SESSION_TTL_HOURS: float = Field(default=24.0, gt=0)
    AUTOSAVE_INTERVAL_SECONDS: float = Field(default=5.0, gt=0)
    CLOCK_INTERVAL_SECONDS: float = Field(default=1.0, gt=0)
    CLOCK_ENABLED: Annotated[bool, BeforeValidator(_to_bool)] = True
    IDLE_ENGINE_SECONDS: float = Field(default=1800.0, gt=0)
    SCORING_WORKERS: int = Field(default=4, ge=1)


settings = Settings()
