"""
Configuration for the analysis engine.

Values come from keyword arguments or from the environment (optionally
via a .env file loaded with python-dotenv).
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Optional, Set

from dotenv import load_dotenv

from .errors import ConfigError


# --- CONFIGURATION ---
DEFAULT_SKIP_DIRS = {
    "build", "node_modules", ".git", ".idea", "dist", "target",
    ".gradle", "vendor", "__pycache__", "venv", ".venv",
}
DEFAULT_PARSE_TIMEOUT = 10.0
DEFAULT_MAX_FILE_BYTES = 2 * 1024 * 1024
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _default_workers() -> int:
    return min(8, os.cpu_count() or 1)


@dataclass
class AnalysisConfig:
    """
    Tunables for one analysis run.

    Attributes:
        max_workers: Size of the extraction worker pool
        parse_timeout: Seconds allowed per file before it is skipped
        skip_dirs: Directory names never descended into
        skip_hidden: Whether dot-directories are skipped as well
        max_file_bytes: Files larger than this are skipped with a diagnostic
        detect_navigation: Run the navigation flow detector
        log_level: Level used by configure_logging()
    """
    max_workers: int = field(default_factory=_default_workers)
    parse_timeout: float = DEFAULT_PARSE_TIMEOUT
    skip_dirs: Set[str] = field(default_factory=lambda: set(DEFAULT_SKIP_DIRS))
    skip_hidden: bool = True
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES
    detect_navigation: bool = True
    log_level: str = "INFO"

    def __post_init__(self):
        if self.max_workers < 1:
            raise ConfigError("max_workers must be at least 1")
        if self.parse_timeout <= 0:
            raise ConfigError("parse_timeout must be positive")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "AnalysisConfig":
        """Build a config from CODEATLAS_* environment variables."""
        load_dotenv(env_file)

        config = cls()
        workers = os.getenv("CODEATLAS_MAX_WORKERS")
        if workers:
            config.max_workers = _parse_int("CODEATLAS_MAX_WORKERS", workers)
        timeout = os.getenv("CODEATLAS_PARSE_TIMEOUT")
        if timeout:
            config.parse_timeout = _parse_float("CODEATLAS_PARSE_TIMEOUT", timeout)
        max_bytes = os.getenv("CODEATLAS_MAX_FILE_BYTES")
        if max_bytes:
            config.max_file_bytes = _parse_int("CODEATLAS_MAX_FILE_BYTES", max_bytes)
        extra_dirs = os.getenv("CODEATLAS_SKIP_DIRS", "")
        config.skip_dirs.update(d.strip() for d in extra_dirs.split(",") if d.strip())
        nav = os.getenv("CODEATLAS_DETECT_NAVIGATION")
        if nav:
            config.detect_navigation = nav.strip().lower() not in ("0", "false", "no", "off")
        config.log_level = os.getenv("CODEATLAS_LOG_LEVEL", config.log_level).upper()

        config.__post_init__()
        return config


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}")


def _parse_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}")


def configure_logging(level: str = "INFO"):
    """Attach a stream handler to the codeatlas logger."""
    logger = logging.getLogger("codeatlas")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(level.upper())
    return logger
