"""
Configuration module for the conformance grading harness.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import ConfigError

from .utils.constants import (
    DEFAULT_DRIVER, DEFAULT_OUTPUT_FOLDER, DEFAULT_PORT, DEFAULT_QUERY_FILE,
    DEFAULT_SERVER, DEFAULT_TIMEOUT, DEFAULT_USER,
)


@dataclass
class GradingConfig:
    """Configuration class for one grading run."""

    # Database connection settings
    server: str = DEFAULT_SERVER
    port: int = DEFAULT_PORT
    user: str = DEFAULT_USER
    password: str = ""
    driver: str = DEFAULT_DRIVER
    timeout: int = DEFAULT_TIMEOUT
    # None means: use the schema named in the expectations file
    schema: Optional[str] = None

    # Inputs
    expectations_file: Optional[str] = None
    query_file: str = DEFAULT_QUERY_FILE

    # Output settings
    output_folder: str = DEFAULT_OUTPUT_FOLDER
    export_csv: bool = True

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        try:
            self.port = int(self.port)
            self.timeout = int(self.timeout)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Port and timeout must be integers: {e}") from e
        if self.port <= 0:
            raise ConfigError(f"Invalid port: {self.port}")

    @staticmethod
    def _env_int(key: str, default: int) -> int:
        """Integer environment variable; unset or empty means the default."""
        raw = os.getenv(key, '').strip()
        if not raw:
            return default
        try:
            return int(raw)
        except ValueError:
            raise ConfigError(f"{key} must be an integer, got {raw!r}") from None

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'GradingConfig':
        """Create configuration from environment variables.

        A `.env` file (the given one, or `.env` in the working directory) is
        loaded first; variables already set in the environment win.
        """
        env_path = Path(env_file) if env_file else Path.cwd() / '.env'
        if env_path.exists():
            load_dotenv(env_path)

        return cls(
            server=os.getenv('DB_SERVER', DEFAULT_SERVER),
            port=cls._env_int('DB_PORT', DEFAULT_PORT),
            user=os.getenv('DB_USER', DEFAULT_USER),
            password=os.getenv('DB_PASSWORD', ''),
            driver=os.getenv('DB_DRIVER', DEFAULT_DRIVER),
            timeout=cls._env_int('DB_TIMEOUT', DEFAULT_TIMEOUT),
            schema=os.getenv('DB_NAME') or None,
            expectations_file=os.getenv('EXPECTATIONS_FILE') or None,
            query_file=os.getenv('QUERY_FILE', DEFAULT_QUERY_FILE),
            output_folder=os.getenv('OUTPUT_FOLDER', DEFAULT_OUTPUT_FOLDER),
            export_csv=os.getenv('EXPORT_CSV', 'true').lower() == 'true',
            log_level=os.getenv('LOG_LEVEL', 'INFO'),
            log_file=os.getenv('LOG_FILE') or None,
        )
