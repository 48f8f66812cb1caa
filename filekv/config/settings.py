"""
filekv Configuration Settings

Runtime settings come from environment variables with sensible defaults.
Protocol limits are fixed and are not read from the environment.
"""

import os
from dataclasses import dataclass


# Protocol limits (bytes)
BUFFER_SIZE = 1023
MAX_COMMAND_LENGTH = 15
MAX_KEY_LENGTH = 255
MAX_VALUE_LENGTH = 767


@dataclass
class Settings:
    """Server configuration settings."""

    # Network settings
    HOST: str = os.environ.get("FILEKV_HOST", "127.0.0.1")
    PORT: int = int(os.environ.get("FILEKV_PORT", "5000"))
    BACKLOG: int = int(os.environ.get("FILEKV_BACKLOG", "10"))

    # Storage settings
    DATA_DIR: str = os.environ.get("FILEKV_DATA_DIR", "data")
    STORAGE_BACKEND: str = os.environ.get("FILEKV_STORAGE", "file")

    # Connection settings
    READ_TIMEOUT: float = float(os.environ.get("FILEKV_READ_TIMEOUT", "10.0"))
    WRITE_TIMEOUT: float = float(os.environ.get("FILEKV_WRITE_TIMEOUT", "10.0"))

    # Logging settings
    DEBUG: bool = os.environ.get("FILEKV_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("FILEKV_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()
