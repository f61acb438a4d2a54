"""Civora — Application configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class CivoraSettings(BaseSettings):
    """Central configuration loaded from environment / .env file (prefix ``CIVORA_``)."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "CIVORA_",
        "extra": "ignore",
    }

    # ── Storage ────────────────────────────────────────────────
    storage_backend: str = "memory"  # "memory" or "sql"
    database_url: str = "sqlite:///civora.db"

    # ── Population ─────────────────────────────────────────────
    citizen_data_dir: str = "data/citizens"
    max_workers: int = 8

    # ── Scoring ────────────────────────────────────────────────
    blend_parameters: str = "baseline-1"
    persistence_retries: int = 1

    # ── Logging ────────────────────────────────────────────────
    log_level: str = "INFO"
    log_format: str = "console"


settings = CivoraSettings()
