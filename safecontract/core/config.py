"""Core configuration for the SafeContract engine."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SAFECONTRACT_",
        case_sensitive=False,
    )

    # ── App ──────────────────────────────────────────────────────────────
    app_name: str = "SafeContract Engine"
    app_env: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    cors_allowed_origins: str = "http://localhost:3000,http://localhost:3001"

    # ── Input limits ─────────────────────────────────────────────────────
    # Regex triggers run over raw function bodies; cap the source before
    # the pipeline sees it and bound the time one scan may hold a worker.
    max_source_bytes: int = 200_000
    scan_timeout_seconds: float = 30.0
    max_request_bytes: int = 1024 * 1024  # 1 MB

    # ── Certificates ─────────────────────────────────────────────────────
    verification_method: str = "Heuristic pattern analysis"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings singleton."""
    return Settings()
