"""Estimate review configuration settings.

Loads runtime configuration from environment variables with sensible defaults.
Analysis constants (admission threshold, O&P rates, keyword tables) are NOT
configuration; they live as named constants next to the code that uses them.
"""

import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for local runs (log level, feature flags, etc.)
load_dotenv()


VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_flag(name: str, default: str = "false") -> bool:
    """Read a boolean flag from the environment."""
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    console_banners: bool = field(default_factory=lambda: _env_flag("REVIEW_CONSOLE_BANNERS"))

    # Pipeline Configuration
    parallel_stages: bool = field(default_factory=lambda: _env_flag("REVIEW_PARALLEL_STAGES"))
    stage_workers: int = field(default_factory=lambda: int(os.getenv("REVIEW_STAGE_WORKERS", "2")))

    # O&P detector compatibility switch: let the depreciation-scoped and
    # estimate-scoped "missing O&P" gaps fire together and sum their impacts.
    allow_overlapping_op_gaps: bool = field(
        default_factory=lambda: _env_flag("REVIEW_ALLOW_OVERLAPPING_OP_GAPS")
    )

    def validate(self) -> None:
        """Validate settings values.

        Raises:
            ValueError: If a setting holds an unusable value.
        """
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {VALID_LOG_LEVELS}, got {self.log_level!r}")
        if self.stage_workers < 1:
            raise ValueError("REVIEW_STAGE_WORKERS must be at least 1")


# Singleton settings instance
settings = Settings()
