"""
Configuration for the Case Ingestion Pipeline
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

# Load .env file
load_dotenv()

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class PipelineConfig:
    """Configuration settings for the pipeline."""

    # Database (None keeps everything in memory)
    database_url: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    # Processing settings
    scan_workers: int = 1                   # Threads used to scan documents
    skip_deadline_extraction: bool = False

    @classmethod
    def from_env(cls) -> 'PipelineConfig':
        """Load configuration from environment variables."""
        return cls(
            database_url=os.getenv("DATABASE_URL") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            scan_workers=int(os.getenv("SCAN_WORKERS", "1")),
            skip_deadline_extraction=_env_flag("SKIP_DEADLINE_EXTRACTION"),
        )

    def validate(self) -> bool:
        """Validate settings, raising ValueError on the first problem."""
        if self.scan_workers < 1:
            raise ValueError("SCAN_WORKERS must be at least 1")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown LOG_LEVEL: {self.log_level}")
        return True
