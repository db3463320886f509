"""Configuration management using Pydantic Settings"""

import json
import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from safetransfer.models import RegulatoryLimits

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="SAFETRANSFER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service
    service_name: str = "safetransfer-eligibility"
    log_level: str = "INFO"

    # Reference data (regulatory_limits.json)
    data_dir: Path = Path(__file__).parent.parent / "data"

    # Eligibility
    lock_timeout_seconds: float = 5.0
    client_search_threshold: int = 80


def load_limits(data_dir: Path) -> RegulatoryLimits:
    """Load regulatory limits from ``regulatory_limits.json`` or use defaults."""
    limits_path = data_dir / "regulatory_limits.json"
    if not limits_path.exists():
        logger.info("No regulatory_limits.json in %s, using defaults", data_dir)
        return RegulatoryLimits()

    with open(limits_path, "r") as f:
        limits = RegulatoryLimits(**json.load(f))
    logger.info(
        "Loaded regulatory limits",
        extra={
            "max_amount_per_transfer": str(limits.max_amount_per_transfer),
            "max_window_amount": str(limits.max_window_amount),
            "period_days": limits.period_days,
        },
    )
    return limits


settings = Settings()
