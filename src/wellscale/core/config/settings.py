"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """wellscale server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback: there is no auth layer in front of the tools.
    wellscale_host: str = "127.0.0.1"
    wellscale_port: int = 8001
    wellscale_log_level: str = "info"
    # Binding to a non-loopback host is refused unless this is set true.
    wellscale_allow_insecure_bind: bool = False

    # Storage (body composition data bank)
    db_path: str = "~/.wellscale/body_composition.db"

    # Encryption (storage tools are only registered when a key is set)
    encryption_key: str = ""

    # Scoring: empty means the packaged calibration tables
    risk_tables_path: str = ""

    # Analytics: 'monthly' graphs switch from daily to weekly buckets above this
    week_bucket_threshold: int = 60

    # Dashboard defaults for readings without a profile
    default_gender: Literal["male", "female"] = "male"
    default_height_cm: float = 168
    standard_weight_kg: float = 75


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
