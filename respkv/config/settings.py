"""
respkv Configuration Settings

This module contains the configuration constants for the respkv server,
read once from the environment at import time.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Settings:
    """Server configuration settings."""

    # Network settings
    HOST: str = os.environ.get("RESPKV_HOST", "127.0.0.1")
    PORT: int = int(os.environ.get("RESPKV_PORT", "6379"))

    # Snapshot settings
    DIR: Optional[str] = os.environ.get("RESPKV_DIR")
    DBFILENAME: Optional[str] = os.environ.get("RESPKV_DBFILENAME")

    # Protocol settings
    READ_BUFFER_SIZE: int = 4096
    MAX_NESTING_DEPTH: int = 32
    MAX_BULK_LENGTH: int = int(os.environ.get("RESPKV_MAX_BULK_LENGTH", str(1024 * 1024)))
    MAX_ARRAY_LENGTH: int = int(os.environ.get("RESPKV_MAX_ARRAY_LENGTH", str(1024 * 1024)))
    # Unanswered bytes held for one connection; must exceed MAX_BULK_LENGTH
    MAX_BUFFER_SIZE: int = int(os.environ.get("RESPKV_MAX_BUFFER_SIZE", str(4 * 1024 * 1024)))

    # Logging settings
    DEBUG: bool = os.environ.get("RESPKV_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("RESPKV_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
