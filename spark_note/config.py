"""
Spark Note Configuration
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import List, Optional

from spark_note.constants import (
    DEFAULT_DB_NAME,
    DEFAULT_SECRET_LENGTH,
    MAX_SECRET_LENGTH,
    MIN_SECRET_LENGTH,
)

logger = logging.getLogger(__name__)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class LogConfig:
    """Logging configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_size_mb: int = 100
    backup_count: int = 5


@dataclass
class StorageConfig:
    """Spent nullifier storage configuration."""
    data_dir: str = "./data"
    db_name: str = DEFAULT_DB_NAME

    @property
    def db_path(self) -> Path:
        return Path(self.data_dir) / self.db_name


@dataclass
class SecretConfig:
    """Secret generation configuration."""
    default_length: int = DEFAULT_SECRET_LENGTH


@dataclass
class SparkConfig:
    """
    Complete configuration.

    All settings for the command line tool and services built on it.
    """
    storage: StorageConfig = field(default_factory=StorageConfig)
    secret: SecretConfig = field(default_factory=SecretConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @property
    def db_path(self) -> Path:
        return self.storage.db_path

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.storage.data_dir:
            errors.append("data_dir cannot be empty")
        if not self.storage.db_name:
            errors.append("db_name cannot be empty")

        length = self.secret.default_length
        if not MIN_SECRET_LENGTH <= length <= MAX_SECRET_LENGTH:
            errors.append(
                f"default_length must be between {MIN_SECRET_LENGTH} and "
                f"{MAX_SECRET_LENGTH}, got {length}"
            )

        if self.log.level.upper() not in _LOG_LEVELS:
            errors.append(f"Invalid log level: {self.log.level}")
        if self.log.max_size_mb < 1:
            errors.append("max_size_mb must be at least 1")

        return errors

    def save(self, path: str) -> None:
        """Save configuration to file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.info(f"Configuration saved to {path}")

    @classmethod
    def load(cls, path: str) -> SparkConfig:
        """Load configuration from file."""
        with open(path, 'r') as f:
            data = json.load(f)

        config = cls()

        if "storage" in data:
            config.storage = StorageConfig(**data["storage"])

        if "secret" in data:
            config.secret = SecretConfig(**data["secret"])

        if "log" in data:
            config.log = LogConfig(**data["log"])

        logger.info(f"Configuration loaded from {path}")
        return config

    def to_dict(self) -> dict:
        """Export configuration as dictionary."""
        return {
            "storage": asdict(self.storage),
            "secret": asdict(self.secret),
            "log": asdict(self.log),
        }


def setup_logging(config: LogConfig) -> None:
    """Configure logging based on config."""
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers = [logging.StreamHandler()]

    if config.file:
        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            config.file,
            maxBytes=config.max_size_mb * 1024 * 1024,
            backupCount=config.backup_count,
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
        force=True,
    )
