"""
Type-safe configuration using Pydantic Settings.

Values load from environment variables and the ``.env`` file.

Usage:
    from shared.config import config

    logger = get_logger(__name__, config.log_level)
"""
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CronWorkflowConfig(BaseSettings):
    """
    Central configuration for the cron workflow tooling.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ============================================================================
    # Logging
    # ============================================================================

    log_level: str = Field(default="INFO", description="Level for console loggers (DEBUG, INFO, WARNING, ...)")

    # ============================================================================
    # Workflow runs
    # ============================================================================

    default_dispatch_channel: str = Field(default="console", description="Channel used when a job does not name one")
    run_id_prefix: str = Field(default="run", description="Prefix for generated workflow run ids")
    max_delay_seconds: Optional[int] = Field(
        default=None,
        ge=0,
        description="Upper bound applied by the CLI to delay nodes; unset means delays run in full",
    )

    @property
    def is_delay_capped(self) -> bool:
        return self.max_delay_seconds is not None


# ============================================================================
# Global Config Instance
# ============================================================================

config = CronWorkflowConfig()
